"""Desktop editor window: transport bar, timeline and Qt-backed media surfaces."""

from __future__ import annotations

import logging
import sys
import time

from video_create.config import EditorSettings, configure_logging
from video_create.services.upload import UploadClient, UploadError
from video_create.timeline.facade import Editor
from video_create.timeline.models import TimelineItem
from video_create.timeline.playback import SurfaceListener
from video_create.timeline.store import StoreChange
from video_create.timeline.time_model import follow_playhead, format_timecode
from video_create.ui.timeline_view import TimelineView

try:
    from PySide6.QtCore import QTimer, QUrl
    from PySide6.QtMultimedia import QAudioOutput, QMediaPlayer
    from PySide6.QtWidgets import (
        QApplication,
        QFileDialog,
        QHBoxLayout,
        QLabel,
        QMainWindow,
        QPushButton,
        QScrollArea,
        QVBoxLayout,
        QWidget,
    )
except ImportError:  # pragma: no cover - runtime-only path
    QTimer = object  # type: ignore[assignment]
    QUrl = object  # type: ignore[assignment]
    QAudioOutput = object  # type: ignore[assignment]
    QMediaPlayer = object  # type: ignore[assignment]
    QApplication = None  # type: ignore[assignment]
    QFileDialog = object  # type: ignore[assignment]
    QHBoxLayout = object  # type: ignore[assignment]
    QLabel = object  # type: ignore[assignment]
    QMainWindow = object  # type: ignore[assignment]
    QPushButton = object  # type: ignore[assignment]
    QScrollArea = object  # type: ignore[assignment]
    QVBoxLayout = object  # type: ignore[assignment]
    QWidget = object  # type: ignore[assignment]

logger = logging.getLogger(__name__)

TICK_INTERVAL_MS = 33


def resolve_media_url(ref: str, base_url: str) -> str:
    if ref.startswith(("http://", "https://", "file:")):
        return ref
    if ref.startswith("/"):
        return f"{base_url.rstrip('/')}{ref}"
    return QUrl.fromLocalFile(ref).toString()


class QtMediaSurface:
    """MediaSurface over a QMediaPlayer; positions are seconds local to the clip."""

    def __init__(self, base_url: str) -> None:
        self._base_url = base_url
        self._listeners: list[SurfaceListener] = []
        self._audio = QAudioOutput()
        self._player = QMediaPlayer()
        self._player.setAudioOutput(self._audio)
        self._player.positionChanged.connect(self._on_position)
        self._player.durationChanged.connect(self._on_duration)
        self._player.mediaStatusChanged.connect(self._on_status)
        self._player.errorOccurred.connect(self._on_error)

    def load(self, ref: str) -> None:
        self._player.setSource(QUrl(resolve_media_url(ref, self._base_url)))

    def play(self) -> None:
        self._player.play()

    def pause(self) -> None:
        self._player.pause()

    def seek(self, t: float) -> None:
        self._player.setPosition(int(max(t, 0.0) * 1000))

    def current_time(self) -> float:
        return self._player.position() / 1000.0

    def duration(self) -> float | None:
        ms = self._player.duration()
        return ms / 1000.0 if ms > 0 else None

    def set_muted(self, muted: bool) -> None:
        self._audio.setMuted(muted)

    def add_listener(self, listener: SurfaceListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SurfaceListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _on_position(self, ms: int) -> None:
        for listener in list(self._listeners):
            listener.on_time_update(ms / 1000.0)

    def _on_duration(self, ms: int) -> None:
        if ms <= 0:
            return
        for listener in list(self._listeners):
            listener.on_duration_ready(ms / 1000.0)

    def _on_status(self, status) -> None:
        if status == QMediaPlayer.MediaStatus.EndOfMedia:
            for listener in list(self._listeners):
                listener.on_ended()

    def _on_error(self, _error, message: str) -> None:
        for listener in list(self._listeners):
            listener.on_error(message or "media error")


class EditorWindow(QMainWindow):
    def __init__(self, settings: EditorSettings | None = None) -> None:
        super().__init__()
        self.setWindowTitle("video-create")
        self.resize(1280, 720)

        self._settings = settings or EditorSettings.from_env()
        self._editor = Editor(settings=self._settings, surface_factory=self._create_surface)
        self._uploader = UploadClient(base_url=self._settings.api_base_url)
        self._last_tick: float | None = None

        self._build_ui()
        self._unsubscribe = self._editor.store.subscribe(self._on_store_change)

        self._tick_timer: QTimer | None = None
        if QTimer is not object:
            self._tick_timer = QTimer(self)
            self._tick_timer.setInterval(TICK_INTERVAL_MS)
            self._tick_timer.timeout.connect(self._on_tick)
            self._tick_timer.start()
        self._refresh_transport()

    def _create_surface(self, _item: TimelineItem) -> QtMediaSurface:
        return QtMediaSurface(self._settings.api_base_url)

    def _build_ui(self) -> None:
        root = QWidget()
        layout = QVBoxLayout(root)
        layout.setContentsMargins(10, 10, 10, 10)

        bar = QHBoxLayout()
        buttons = [
            ("Import", self._on_import),
            ("Add text", lambda: self._editor.add_text()),
            ("-5s", lambda: self._editor.skip_backward()),
            ("Play/Pause", lambda: self._editor.toggle_playback()),
            ("+5s", lambda: self._editor.skip_forward()),
            ("Duplicate", lambda: self._editor.duplicate_selected()),
            ("Delete", lambda: self._editor.delete_selected()),
            ("Mute", lambda: self._editor.toggle_mute_selected()),
            ("Undo", lambda: self._editor.undo()),
            ("Redo", lambda: self._editor.redo()),
            ("Zoom -", self._on_zoom_out),
            ("Zoom +", self._on_zoom_in),
            ("Fit", self._on_zoom_fit),
        ]
        for label, handler in buttons:
            button = QPushButton(label)
            button.clicked.connect(handler)
            bar.addWidget(button)
        self.time_label = QLabel()
        bar.addStretch(1)
        bar.addWidget(self.time_label)
        layout.addLayout(bar)

        self.timeline_view = TimelineView(self._editor.controller, self._editor.zoom, self._editor.state)
        self._editor.store.subscribe(self.timeline_view.on_store_change)
        self.timeline_scroll = QScrollArea()
        self.timeline_scroll.setWidgetResizable(True)
        self.timeline_scroll.setWidget(self.timeline_view)
        layout.addWidget(self.timeline_scroll, 1)

        self.status_label = QLabel("Ready.")
        layout.addWidget(self.status_label)
        self.setCentralWidget(root)

    def _on_store_change(self, change: StoreChange) -> None:
        if "time" in change.kinds or "playing" in change.kinds or "project" in change.kinds:
            self._refresh_transport()
        if "time" in change.kinds and change.state.is_playing:
            self._follow_playhead()

    def _refresh_transport(self) -> None:
        state = self._editor.state
        self.time_label.setText(
            f"{format_timecode(state.current_time, centiseconds=True)} / {format_timecode(state.duration)}"
        )

    def _follow_playhead(self) -> None:
        scroll = self.timeline_scroll.horizontalScrollBar()
        viewport = float(self.timeline_scroll.viewport().width())
        playhead_px = self._editor.zoom.time_to_pixel(self._editor.state.current_time)
        target = follow_playhead(playhead_px, float(scroll.value()), viewport)
        if target is not None:
            scroll.setValue(int(target))

    def _on_tick(self) -> None:
        now = time.monotonic()
        if self._last_tick is not None:
            self._editor.playback.advance(now - self._last_tick)
        self._last_tick = now

    def _refresh_zoom(self) -> None:
        self.timeline_view.refresh()

    def _on_zoom_in(self) -> None:
        self._editor.zoom.zoom_in()
        self._refresh_zoom()

    def _on_zoom_out(self) -> None:
        self._editor.zoom.zoom_out()
        self._refresh_zoom()

    def _on_zoom_fit(self) -> None:
        self._editor.zoom.fit()
        self._refresh_zoom()

    def _on_import(self) -> None:
        paths, _ = QFileDialog.getOpenFileNames(self, "Import media")
        if not paths:
            return
        try:
            uploaded = self._uploader.upload(paths)
        except UploadError as exc:
            logger.warning("import failed: %s", exc)
            self.status_label.setText(f"Import failed: {exc}")
            return
        for media in uploaded:
            if media.kind == "unknown":
                continue
            self._editor.add_item(media.to_draft(start_time=self._editor.state.current_time))
        self.status_label.setText(f"Imported {len(uploaded)} file(s).")

    def closeEvent(self, event) -> None:  # type: ignore[override]
        if self._tick_timer is not None:
            self._tick_timer.stop()
        self._unsubscribe()
        self._editor.close()
        super().closeEvent(event)


def main() -> int:
    settings = EditorSettings.from_env()
    configure_logging(settings.log_level)
    if QApplication is None:  # pragma: no cover - runtime-only path
        print("PySide6 is not installed. Run `pip install -e .[ui]`.")
        return 1
    app = QApplication(sys.argv)
    window = EditorWindow(settings)
    window.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
