"""Pointer gesture state machine: playhead scrub, trim, move, overlay drag and resize."""

from __future__ import annotations

import logging
from contextlib import ExitStack
from dataclasses import dataclass
from typing import Literal

from video_create.timeline.models import (
    MIN_GEOMETRY_SIZE_PCT,
    MIN_ITEM_SPAN_SEC,
    SNAP_THRESHOLD_PCT,
    Geometry,
    Position,
    TimeRange,
    supports_geometry,
)
from video_create.timeline.store import CompositionStore
from video_create.timeline.time_model import TimelineZoom, pixel_to_time

logger = logging.getLogger(__name__)

GestureKind = Literal["playhead", "trim-start", "trim-end", "move", "drag", "resize"]
ResizeHandle = Literal["n", "s", "e", "w", "ne", "nw", "se", "sw"]

TIME_GESTURES: frozenset[str] = frozenset({"playhead", "trim-start", "trim-end", "move"})
RESIZE_HANDLES: tuple[ResizeHandle, ...] = ("n", "s", "e", "w", "ne", "nw", "se", "sw")


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_playhead(origin_time: float, delta: float, duration: float) -> float:
    return _clamp(origin_time + delta, 0.0, duration)


def clamp_trim_start(origin_start: float, delta: float, end: float) -> float:
    return max(0.0, min(end - MIN_ITEM_SPAN_SEC, origin_start + delta))


def clamp_trim_end(origin_end: float, delta: float, start: float, duration: float) -> float:
    return max(start + MIN_ITEM_SPAN_SEC, min(duration, origin_end + delta))


def clamp_move(origin: TimeRange, delta: float, duration: float) -> TimeRange:
    span = origin.span
    max_start = duration - span
    start = max(0.0, min(max_start, origin.start + delta))
    return TimeRange(start, start + span)


@dataclass(frozen=True, slots=True)
class SnapGuides:
    """Canvas edges (0 or 100 percent) an overlay is currently snapped to."""

    vertical: tuple[float, ...] = ()
    horizontal: tuple[float, ...] = ()

    @property
    def active(self) -> bool:
        return bool(self.vertical or self.horizontal)


NO_SNAP = SnapGuides()


def _snap_low(value: float, guides: list[float]) -> float:
    if abs(value) <= SNAP_THRESHOLD_PCT:
        guides.append(0.0)
        return 0.0
    return value


def _snap_high(value: float, guides: list[float]) -> float:
    if abs(100.0 - value) <= SNAP_THRESHOLD_PCT:
        guides.append(100.0)
        return 100.0
    return value


def _drag_axis(origin: float, size: float, delta: float, guides: list[float]) -> float:
    pos = _clamp(origin + delta, 0.0, 100.0 - size)
    if abs(pos) <= SNAP_THRESHOLD_PCT:
        guides.append(0.0)
        return 0.0
    if abs(100.0 - (pos + size)) <= SNAP_THRESHOLD_PCT:
        guides.append(100.0)
        return 100.0 - size
    return pos


def drag_geometry(origin: Geometry, dx: float, dy: float) -> tuple[Geometry, SnapGuides]:
    vertical: list[float] = []
    horizontal: list[float] = []
    x = _drag_axis(origin.position.x, origin.width or 0.0, dx, vertical)
    y = _drag_axis(origin.position.y, origin.height or 0.0, dy, horizontal)
    moved = Geometry(
        position=Position(x, y),
        width=origin.width,
        height=origin.height,
        rotation=origin.rotation,
    )
    return moved, SnapGuides(tuple(vertical), tuple(horizontal))


def resize_geometry(origin: Geometry, handle: ResizeHandle, dx: float, dy: float) -> tuple[Geometry, SnapGuides]:
    """Resize from one of the eight handles.

    Each handle only moves the edges it names: "n" moves the top edge (y and
    height), "e" the right edge (width), "sw" the bottom and left edges, etc.
    """
    if handle not in RESIZE_HANDLES:
        raise ValueError(f"Unsupported resize handle '{handle}'")
    if origin.width is None or origin.height is None:
        raise ValueError("resize requires an overlay with explicit width and height")

    left = origin.position.x
    top = origin.position.y
    right = left + origin.width
    bottom = top + origin.height
    vertical: list[float] = []
    horizontal: list[float] = []

    if "w" in handle:
        left = _snap_low(_clamp(left + dx, 0.0, right - MIN_GEOMETRY_SIZE_PCT), vertical)
    if "e" in handle:
        right = _snap_high(_clamp(right + dx, left + MIN_GEOMETRY_SIZE_PCT, 100.0), vertical)
    if "n" in handle:
        top = _snap_low(_clamp(top + dy, 0.0, bottom - MIN_GEOMETRY_SIZE_PCT), horizontal)
    if "s" in handle:
        bottom = _snap_high(_clamp(bottom + dy, top + MIN_GEOMETRY_SIZE_PCT, 100.0), horizontal)

    resized = Geometry(
        position=Position(left, top),
        width=right - left,
        height=bottom - top,
        rotation=origin.rotation,
    )
    return resized, SnapGuides(tuple(vertical), tuple(horizontal))


@dataclass(frozen=True, slots=True)
class GestureOrigin:
    pointer_x: float
    pointer_y: float
    pixels_per_second: float
    duration: float = 0.0
    time: float = 0.0
    time_range: TimeRange | None = None
    geometry: Geometry | None = None


@dataclass(frozen=True, slots=True)
class Dragging:
    gesture: GestureKind
    item_id: str | None
    origin: GestureOrigin
    handle: ResizeHandle | None = None


class InteractionController:
    def __init__(
        self,
        store: CompositionStore,
        zoom: TimelineZoom,
        canvas_width: float = 0.0,
        canvas_height: float = 0.0,
    ) -> None:
        self._store = store
        self._zoom = zoom
        self._canvas_width = max(float(canvas_width), 0.0)
        self._canvas_height = max(float(canvas_height), 0.0)
        self._dragging: Dragging | None = None
        self._snap = NO_SNAP
        self._txn: ExitStack | None = None

    @property
    def dragging(self) -> Dragging | None:
        return self._dragging

    @property
    def is_idle(self) -> bool:
        return self._dragging is None

    @property
    def snap_guides(self) -> SnapGuides:
        return self._snap

    def set_canvas_size(self, width: float, height: float) -> None:
        self._canvas_width = max(float(width), 0.0)
        self._canvas_height = max(float(height), 0.0)

    def click_timeline(self, x: float) -> bool:
        if self._dragging is not None:
            return False
        t = self._zoom.pixel_to_time(x)
        if 0.0 <= t <= self._store.state.duration:
            self._store.set_current_time(t)
            return True
        return False

    def pointer_down(
        self,
        gesture: GestureKind,
        x: float,
        y: float = 0.0,
        item_id: str | None = None,
        handle: ResizeHandle | None = None,
    ) -> bool:
        if self._dragging is not None:
            self.pointer_up()
        state = self._store.state
        pps = self._zoom.pixels_per_second

        if gesture == "playhead":
            origin = GestureOrigin(
                pointer_x=x,
                pointer_y=y,
                pixels_per_second=pps,
                duration=state.duration,
                time=state.current_time,
            )
            self._begin(Dragging(gesture, None, origin), "Scrub playhead", record=False)
            return True

        item = state.get(item_id)
        if item is None:
            return False

        if gesture in ("trim-start", "trim-end", "move"):
            origin = GestureOrigin(
                pointer_x=x,
                pointer_y=y,
                pixels_per_second=pps,
                duration=state.duration,
                time=item.end_time if gesture == "trim-end" else item.start_time,
                time_range=item.time_range,
            )
        elif gesture in ("drag", "resize"):
            if not supports_geometry(item):
                return False
            geometry: Geometry = item.geometry  # type: ignore[union-attr]
            if gesture == "resize":
                if handle not in RESIZE_HANDLES:
                    raise ValueError(f"Unsupported resize handle '{handle}'")
                if geometry.width is None or geometry.height is None:
                    return False
            origin = GestureOrigin(pointer_x=x, pointer_y=y, pixels_per_second=pps, geometry=geometry)
        else:
            raise ValueError(f"Unsupported gesture '{gesture}'")

        self._store.set_selection(item.item_id)
        self._begin(Dragging(gesture, item.item_id, origin, handle), _gesture_label(gesture), record=True)
        return True

    def pointer_move(self, x: float, y: float = 0.0) -> None:
        drag = self._dragging
        if drag is None:
            return
        origin = drag.origin
        if drag.gesture in TIME_GESTURES:
            self._apply_time_gesture(drag, pixel_to_time(x - origin.pointer_x, origin.pixels_per_second))
        else:
            self._apply_canvas_gesture(drag, x - origin.pointer_x, y - origin.pointer_y)

    def pointer_up(self) -> None:
        if self._dragging is None:
            return
        self._dragging = None
        self._snap = NO_SNAP
        self._end_transaction()

    def cancel(self) -> None:
        """Abort the gesture and restore the values captured at pointer-down.

        Item gestures are rolled back as a whole, track reassignments included,
        and leave no undo step behind.
        """
        drag = self._dragging
        if drag is None:
            return
        if drag.gesture == "playhead":
            self._store.set_current_time(drag.origin.time)
        else:
            self._store.rollback_transaction()
        self._dragging = None
        self._snap = NO_SNAP
        self._end_transaction()

    def _begin(self, drag: Dragging, label: str, record: bool) -> None:
        self._dragging = drag
        self._snap = NO_SNAP
        if record:
            self._txn = ExitStack()
            self._txn.enter_context(self._store.transaction(label))

    def _end_transaction(self) -> None:
        if self._txn is not None:
            self._txn.close()
            self._txn = None

    def _apply_time_gesture(self, drag: Dragging, delta: float) -> None:
        # Bounds come from pointer-down: edits during the gesture move the duration.
        state = self._store.state
        origin = drag.origin
        if drag.gesture == "playhead":
            self._store.set_current_time(clamp_playhead(origin.time, delta, state.duration))
            return

        item = state.get(drag.item_id)
        if item is None or origin.time_range is None:
            return
        if drag.gesture == "trim-start":
            start = clamp_trim_start(origin.time, delta, item.end_time)
            self._store.update_item(item.item_id, start_time=start)
        elif drag.gesture == "trim-end":
            end = clamp_trim_end(origin.time, delta, item.start_time, origin.duration)
            self._store.update_item(item.item_id, end_time=end)
        else:
            moved = clamp_move(origin.time_range, delta, origin.duration)
            self._store.update_item(item.item_id, start_time=moved.start, end_time=moved.end)

    def _apply_canvas_gesture(self, drag: Dragging, dx_px: float, dy_px: float) -> None:
        origin = drag.origin
        if origin.geometry is None or self._store.get_item(drag.item_id) is None:
            return
        if self._canvas_width <= 0.0 or self._canvas_height <= 0.0:
            logger.debug("canvas size unknown, ignoring %s gesture", drag.gesture)
            return
        dx = dx_px / self._canvas_width * 100.0
        dy = dy_px / self._canvas_height * 100.0
        if drag.gesture == "drag":
            geometry, snap = drag_geometry(origin.geometry, dx, dy)
        else:
            assert drag.handle is not None
            geometry, snap = resize_geometry(origin.geometry, drag.handle, dx, dy)
        self._snap = snap
        self._store.update_item(drag.item_id, geometry=geometry)  # type: ignore[arg-type]


def _gesture_label(gesture: GestureKind) -> str:
    return {
        "trim-start": "Trim start",
        "trim-end": "Trim end",
        "move": "Move item",
        "drag": "Move overlay",
        "resize": "Resize overlay",
    }.get(gesture, gesture)
