"""Authoritative composition state: items, derived duration, playhead and selection."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterator, Literal

from video_create.config import DEFAULT_MIN_DURATION_SEC
from video_create.timeline.history import HistoryEntry, HistoryManager
from video_create.timeline.models import (
    DUPLICATE_OFFSET_SEC,
    Geometry,
    ItemDraft,
    Position,
    TimeRange,
    TimelineItem,
    Typography,
    UnsupportedFieldError,
    contributes_to_duration,
    new_item_id,
    supports_geometry,
    supports_mute,
    text_draft,
)
from video_create.timeline.tracks import find_available_track, is_track_free

logger = logging.getLogger(__name__)

ChangeKind = Literal["items", "selection", "time", "playing", "project"]

_COMMON_FIELDS = frozenset({"name", "start_time", "end_time", "track", "media_ref", "source_duration"})
_GEOMETRY_FIELDS = frozenset({"geometry", "position", "x", "y", "width", "height", "rotation"})
_TYPOGRAPHY_FIELDS = frozenset(
    {"typography", "content", "font_family", "font_size", "font_color", "font_weight", "font_style", "text_align"}
)


def compute_duration(items: tuple[TimelineItem, ...] | list[TimelineItem], floor: float) -> float:
    longest = 0.0
    for item in items:
        if contributes_to_duration(item):
            longest = max(longest, item.end_time)
    return max(longest, floor)


@dataclass(frozen=True, slots=True)
class CompositionState:
    project_id: str | None = None
    project_name: str = "Untitled project"
    items: tuple[TimelineItem, ...] = ()
    duration: float = DEFAULT_MIN_DURATION_SEC
    current_time: float = 0.0
    is_playing: bool = False
    selected_id: str | None = None

    def get(self, item_id: str | None) -> TimelineItem | None:
        if item_id is None:
            return None
        for item in self.items:
            if item.item_id == item_id:
                return item
        return None

    @property
    def selected(self) -> TimelineItem | None:
        return self.get(self.selected_id)

    def track_numbers(self) -> list[int]:
        return sorted({item.track for item in self.items})

    def items_on_track(self, track: int) -> list[TimelineItem]:
        return sorted((it for it in self.items if it.track == track), key=lambda it: it.start_time)

    def active_items(self, t: float | None = None) -> list[TimelineItem]:
        at = self.current_time if t is None else t
        return [item for item in self.items if item.time_range.contains(at)]


@dataclass(frozen=True, slots=True)
class StoreChange:
    kinds: frozenset[ChangeKind]
    state: CompositionState
    previous: CompositionState
    source: str | None = None


StoreListener = Callable[[StoreChange], None]


class CompositionStore:
    """Single source of truth for the composition.

    Every operation swaps in a complete new `CompositionState`; listeners only
    ever observe consistent states.
    """

    def __init__(
        self,
        min_duration: float = DEFAULT_MIN_DURATION_SEC,
        history_limit: int = 100,
    ) -> None:
        self.min_duration = max(float(min_duration), 0.0)
        self._state = CompositionState(duration=self.min_duration)
        self._listeners: list[StoreListener] = []
        self._history = HistoryManager(limit=history_limit)
        self._txn_depth = 0
        self._txn_label = ""
        self._txn_recorded = False

    @property
    def state(self) -> CompositionState:
        return self._state

    @property
    def history(self) -> HistoryManager:
        return self._history

    def get_item(self, item_id: str | None) -> TimelineItem | None:
        return self._state.get(item_id)

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # -- project lifecycle -------------------------------------------------

    def initialize_project(
        self,
        project_id: str | None,
        project_name: str,
        items: list[TimelineItem] | None = None,
    ) -> None:
        placed = _normalize_tracks(list(items or []))
        new_state = CompositionState(
            project_id=project_id,
            project_name=project_name or "Untitled project",
            items=tuple(placed),
            duration=compute_duration(placed, self.min_duration),
        )
        self._history.clear()
        logger.info("initialized project %s with %d items", project_id or "<new>", len(placed))
        self._commit(new_state, {"project", "items", "time", "playing", "selection"})

    # -- item operations ---------------------------------------------------

    def add_item(self, draft: ItemDraft, select: bool = False) -> str:
        draft.validate()
        state = self._state
        item_id = new_item_id()
        track = _resolve_track(draft.track, draft.start_time, draft.end_time, state.items, None)
        item = draft.build(item_id=item_id, track=track)
        self._record(f"Add {item.kind}")
        items = (*state.items, item)
        new_state = self._with_items(state, items)
        kinds: set[ChangeKind] = {"items"}
        if select:
            new_state = replace(new_state, selected_id=item_id)
            kinds.add("selection")
        logger.debug("added %s item %s on track %d", item.kind, item_id, track)
        self._commit(new_state, kinds)
        return item_id

    def add_text(self, content: str = "Your Text Here", start_time: float = 0.0) -> str:
        return self.add_item(text_draft(content=content, start_time=start_time), select=True)

    def update_item(self, item_id: str, **changes: Any) -> bool:
        return self._update(item_id, changes, record=True)

    def adopt_media_duration(self, item_id: str, duration: float) -> bool:
        """Size a video or audio item to the length its media reported.

        Only items whose source length is still unknown are touched, and the
        change is not an undo step.
        """
        item = self._state.get(item_id)
        if item is None or item.kind not in ("video", "audio") or item.source_duration is not None:
            return False
        if duration <= 0:
            return False
        changes = {"source_duration": float(duration), "end_time": item.start_time + float(duration)}
        return self._update(item_id, changes, record=False)

    def _update(self, item_id: str, changes: dict[str, Any], record: bool) -> bool:
        state = self._state
        item = state.get(item_id)
        if item is None:
            logger.debug("update ignored for unknown item %s", item_id)
            return False
        if not changes:
            return True
        updated = _apply_changes(item, changes)
        if updated.time_range != item.time_range or updated.track != item.track:
            track = _resolve_track(
                updated.track,
                updated.start_time,
                updated.end_time,
                state.items,
                item_id,
            )
            if track != updated.track:
                logger.debug("item %s collides on track %d, moved to %d", item_id, updated.track, track)
                updated = replace(updated, track=track)
        if updated == item:
            return True
        if record:
            self._record(f"Edit {item.kind}")
        items = tuple(updated if it.item_id == item_id else it for it in state.items)
        self._commit(self._with_items(state, items), {"items"})
        return True

    def remove_item(self, item_id: str) -> bool:
        state = self._state
        if state.get(item_id) is None:
            return False
        self._record("Delete item")
        items = tuple(it for it in state.items if it.item_id != item_id)
        new_state = self._with_items(state, items)
        kinds: set[ChangeKind] = {"items"}
        if state.selected_id == item_id:
            new_state = replace(new_state, selected_id=None)
            kinds.add("selection")
        self._commit(new_state, kinds)
        return True

    def duplicate_item(self, item_id: str) -> str | None:
        state = self._state
        item = state.get(item_id)
        if item is None:
            return None
        new_range = item.time_range.shifted(DUPLICATE_OFFSET_SEC)
        preferred = item.track + 1
        track = _resolve_track(preferred, new_range.start, new_range.end, state.items, None)
        copy = replace(item, item_id=new_item_id(), name=f"{item.name} (Copy)", time_range=new_range, track=track)
        self._record("Duplicate item")
        new_state = replace(self._with_items(state, (*state.items, copy)), selected_id=copy.item_id)
        self._commit(new_state, {"items", "selection"})
        return copy.item_id

    def toggle_mute(self, item_id: str) -> bool:
        item = self._state.get(item_id)
        if item is None or not supports_mute(item):
            return False
        return self.update_item(item_id, mute=not item.mute)

    # -- transport and selection -------------------------------------------

    def set_selection(self, item_id: str | None) -> None:
        target = item_id if self._state.get(item_id) is not None else None
        if target == self._state.selected_id:
            return
        self._commit(replace(self._state, selected_id=target), {"selection"})

    def set_current_time(self, t: float, source: str | None = None) -> float:
        clamped = min(max(float(t), 0.0), self._state.duration)
        if clamped != self._state.current_time:
            self._commit(replace(self._state, current_time=clamped), {"time"}, source=source)
        return clamped

    def set_playing(self, playing: bool, source: str | None = None) -> None:
        flag = bool(playing)
        if flag == self._state.is_playing:
            return
        self._commit(replace(self._state, is_playing=flag), {"playing"}, source=source)

    # -- history -----------------------------------------------------------

    @contextmanager
    def transaction(self, label: str) -> Iterator[None]:
        """Group several edits into one undo step."""
        outermost = self._txn_depth == 0
        if outermost:
            self._txn_label = label
            self._txn_recorded = False
        self._txn_depth += 1
        try:
            yield
        finally:
            self._txn_depth -= 1
            if outermost:
                self._txn_recorded = False
                self._txn_label = ""

    def rollback_transaction(self) -> bool:
        """Undo every edit made so far in the open transaction and forget its step."""
        if self._txn_depth == 0 or not self._txn_recorded:
            return False
        entry = self._history.discard_last()
        self._txn_recorded = False
        if entry is None:
            return False
        self._restore(entry)
        return True

    def undo(self) -> bool:
        entry = self._history.undo(self._snapshot(""))
        if entry is None:
            return False
        self._restore(entry)
        return True

    def redo(self) -> bool:
        entry = self._history.redo(self._snapshot(""))
        if entry is None:
            return False
        self._restore(entry)
        return True

    # -- internals ---------------------------------------------------------

    def _snapshot(self, label: str) -> HistoryEntry:
        return HistoryEntry(label=label, items=self._state.items, selected_id=self._state.selected_id)

    def _record(self, label: str) -> None:
        if self._txn_depth > 0:
            if self._txn_recorded:
                return
            self._txn_recorded = True
            label = self._txn_label or label
        self._history.record(self._snapshot(label))

    def _restore(self, entry: HistoryEntry) -> None:
        state = self._with_items(self._state, entry.items)
        selected = entry.selected_id if state.get(entry.selected_id) is not None else None
        self._commit(replace(state, selected_id=selected), {"items", "selection"}, source="history")

    def _with_items(self, state: CompositionState, items: tuple[TimelineItem, ...]) -> CompositionState:
        duration = compute_duration(items, self.min_duration)
        current = min(state.current_time, duration)
        return replace(state, items=items, duration=duration, current_time=current)

    def _commit(
        self,
        new_state: CompositionState,
        kinds: set[ChangeKind],
        source: str | None = None,
    ) -> None:
        previous = self._state
        if new_state.current_time != previous.current_time:
            kinds = {*kinds, "time"}
        self._state = new_state
        change = StoreChange(kinds=frozenset(kinds), state=new_state, previous=previous, source=source)
        for listener in list(self._listeners):
            listener(change)


def _resolve_track(
    requested: int | None,
    start: float,
    end: float,
    items: tuple[TimelineItem, ...],
    exclude_id: str | None,
) -> int:
    if requested is not None and is_track_free(requested, start, end, items, exclude_id):
        return requested
    return find_available_track(start, end, items, exclude_id=exclude_id)


def _normalize_tracks(items: list[TimelineItem]) -> list[TimelineItem]:
    placed: list[TimelineItem] = []
    for item in items:
        track = _resolve_track(item.track, item.start_time, item.end_time, tuple(placed), None)
        placed.append(item if track == item.track else replace(item, track=track))
    return placed


def _apply_changes(item: TimelineItem, changes: dict[str, Any]) -> TimelineItem:
    allowed = set(_COMMON_FIELDS)
    if supports_mute(item):
        allowed.add("mute")
    if supports_geometry(item):
        allowed |= _GEOMETRY_FIELDS
    if item.kind == "text":
        allowed |= _TYPOGRAPHY_FIELDS
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise UnsupportedFieldError(f"'{item.kind}' items do not support: {', '.join(unknown)}")

    direct: dict[str, Any] = {}
    for key in ("name", "media_ref", "source_duration", "mute"):
        if key in changes:
            direct[key] = changes[key]
    if "track" in changes:
        track = int(changes["track"])
        if track < 0:
            raise ValueError("track must be >= 0")
        direct["track"] = track

    if "start_time" in changes or "end_time" in changes:
        new_range = TimeRange(
            float(changes.get("start_time", item.start_time)),
            float(changes.get("end_time", item.end_time)),
        )
        new_range.validate()
        direct["time_range"] = new_range

    if supports_geometry(item) and _GEOMETRY_FIELDS & set(changes):
        direct["geometry"] = _merge_geometry(item.geometry, changes)  # type: ignore[union-attr]

    if item.kind == "text" and _TYPOGRAPHY_FIELDS & set(changes):
        direct["typography"] = _merge_typography(item.typography, changes)  # type: ignore[union-attr]

    return replace(item, **direct)


def _merge_geometry(current: Geometry, changes: dict[str, Any]) -> Geometry:
    base = changes.get("geometry", current)
    if not isinstance(base, Geometry):
        raise ValueError("geometry must be a Geometry instance")
    position = changes.get("position", base.position)
    if isinstance(position, (tuple, list)):
        position = Position(float(position[0]), float(position[1]))
    if not isinstance(position, Position):
        raise ValueError("position must be a Position or an (x, y) pair")
    if "x" in changes or "y" in changes:
        position = Position(float(changes.get("x", position.x)), float(changes.get("y", position.y)))
    merged = Geometry(
        position=position,
        width=changes.get("width", base.width),
        height=changes.get("height", base.height),
        rotation=changes.get("rotation", base.rotation),
    )
    merged.validate()
    return merged


def _merge_typography(current: Typography, changes: dict[str, Any]) -> Typography:
    base = changes.get("typography", current)
    if not isinstance(base, Typography):
        raise ValueError("typography must be a Typography instance")
    fields = {
        key: changes[key]
        for key in ("content", "font_family", "font_size", "font_color", "font_weight", "font_style", "text_align")
        if key in changes
    }
    merged = replace(base, **fields)
    merged.validate()
    return merged
