"""Multi-track timeline widget: ruler, item blocks and playhead."""

from __future__ import annotations

from dataclasses import dataclass

from video_create.timeline.interaction import GestureKind, InteractionController
from video_create.timeline.store import CompositionState, StoreChange
from video_create.timeline.time_model import TimelineZoom, format_timecode, time_markers, time_to_pixel

try:
    from PySide6.QtCore import Qt
    from PySide6.QtGui import QColor, QPainter, QPen
    from PySide6.QtWidgets import QWidget
except ImportError:  # pragma: no cover - runtime-only path
    QWidget = object  # type: ignore[assignment]
    QColor = object  # type: ignore[assignment]
    QPainter = object  # type: ignore[assignment]
    QPen = object  # type: ignore[assignment]
    Qt = object  # type: ignore[assignment]

RULER_HEIGHT_PX = 30
TRACK_HEIGHT_PX = 48
HANDLE_WIDTH_PX = 8

_KIND_COLORS = {
    "video": (59, 130, 246),
    "audio": (16, 185, 129),
    "image": (245, 158, 11),
    "text": (168, 85, 247),
}


@dataclass(frozen=True, slots=True)
class ItemBlock:
    item_id: str
    kind: str
    label: str
    x: float
    y: float
    width: float
    height: float
    selected: bool

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.x + self.width and self.y <= py <= self.y + self.height


def layout_items(
    state: CompositionState,
    pixels_per_second: float,
    track_height: float = TRACK_HEIGHT_PX,
    ruler_height: float = RULER_HEIGHT_PX,
) -> list[ItemBlock]:
    blocks: list[ItemBlock] = []
    for item in sorted(state.items, key=lambda it: (it.track, it.start_time)):
        x = time_to_pixel(item.start_time, pixels_per_second)
        blocks.append(
            ItemBlock(
                item_id=item.item_id,
                kind=item.kind,
                label=item.name,
                x=x,
                y=ruler_height + item.track * track_height + 4,
                width=max(time_to_pixel(item.end_time, pixels_per_second) - x, 2.0),
                height=track_height - 8,
                selected=item.item_id == state.selected_id,
            )
        )
    return blocks


def hit_test(
    blocks: list[ItemBlock],
    px: float,
    py: float,
    ruler_height: float = RULER_HEIGHT_PX,
    handle_width: float = HANDLE_WIDTH_PX,
) -> tuple[GestureKind, str | None] | None:
    """Map a pointer position to the gesture it starts.

    The ruler scrubs the playhead; the outer `handle_width` pixels of a block
    trim it and the rest moves it. Returns None over empty track space.
    """
    if py < ruler_height:
        return "playhead", None
    for block in reversed(blocks):
        if not block.contains(px, py):
            continue
        edge = min(handle_width, block.width / 3.0)
        if px <= block.x + edge:
            return "trim-start", block.item_id
        if px >= block.x + block.width - edge:
            return "trim-end", block.item_id
        return "move", block.item_id
    return None


def track_count(state: CompositionState) -> int:
    return max(state.track_numbers(), default=-1) + 1


class TimelineView(QWidget):
    def __init__(
        self,
        controller: InteractionController,
        zoom: TimelineZoom,
        state: CompositionState,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self._controller = controller
        self._zoom = zoom
        self._state = state
        self._blocks: list[ItemBlock] = []
        self.setMouseTracking(False)
        self._refresh_geometry()

    def on_store_change(self, change: StoreChange) -> None:
        self._state = change.state
        self._refresh_geometry()
        self.update()

    def refresh(self) -> None:
        self._refresh_geometry()
        self.update()

    def _refresh_geometry(self) -> None:
        self._blocks = layout_items(self._state, self._zoom.pixels_per_second)
        height = RULER_HEIGHT_PX + max(track_count(self._state), 1) * TRACK_HEIGHT_PX + 8
        self.setMinimumHeight(int(height))
        self.setMinimumWidth(int(self._zoom.content_width()))

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        self._zoom.set_viewport_width(float(self.width()))
        self._refresh_geometry()
        super().resizeEvent(event)

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        pos = event.position()
        hit = hit_test(self._blocks, pos.x(), pos.y())
        if hit is None:
            self._controller.click_timeline(pos.x())
            return
        gesture, item_id = hit
        if gesture == "playhead":
            self._controller.click_timeline(pos.x())
        self._controller.pointer_down(gesture, pos.x(), pos.y(), item_id=item_id)

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        pos = event.position()
        self._controller.pointer_move(pos.x(), pos.y())

    def mouseReleaseEvent(self, _event) -> None:  # type: ignore[override]
        self._controller.pointer_up()

    def keyPressEvent(self, event) -> None:  # type: ignore[override]
        if event.key() == Qt.Key.Key_Escape:
            self._controller.cancel()
            return
        super().keyPressEvent(event)

    def paintEvent(self, _event) -> None:  # type: ignore[override]
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor(17, 24, 39))
        pps = self._zoom.pixels_per_second

        painter.fillRect(0, 0, self.width(), RULER_HEIGHT_PX, QColor(31, 41, 55))
        painter.setPen(QPen(QColor(156, 163, 175), 1))
        for second in time_markers(self._state.duration, pps):
            x = int(time_to_pixel(second, pps))
            painter.drawLine(x, RULER_HEIGHT_PX - 8, x, RULER_HEIGHT_PX)
            painter.drawText(x + 3, RULER_HEIGHT_PX - 10, format_timecode(second))

        painter.setPen(QPen(QColor(55, 65, 81), 1))
        for track in range(track_count(self._state) + 1):
            y = RULER_HEIGHT_PX + track * TRACK_HEIGHT_PX
            painter.drawLine(0, y, self.width(), y)

        for block in self._blocks:
            r, g, b = _KIND_COLORS.get(block.kind, (107, 114, 128))
            painter.setBrush(QColor(r, g, b, 230 if block.selected else 170))
            outline = QColor(255, 255, 255) if block.selected else QColor(r, g, b)
            painter.setPen(QPen(outline, 2 if block.selected else 1))
            painter.drawRoundedRect(int(block.x), int(block.y), int(block.width), int(block.height), 4, 4)
            painter.setPen(QPen(QColor(249, 250, 251), 1))
            painter.drawText(int(block.x) + HANDLE_WIDTH_PX + 2, int(block.y + block.height / 2) + 4, block.label)

        play_x = int(time_to_pixel(self._state.current_time, pps))
        painter.setPen(QPen(QColor(239, 68, 68), 2))
        painter.drawLine(play_x, 0, play_x, self.height())
