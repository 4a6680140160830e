"""Editor public facade: one object wiring the store, zoom, gestures and playback."""

from __future__ import annotations

from video_create.config import EditorSettings
from video_create.project.codec import document_to_items, state_to_document
from video_create.project.schema import ProjectDocument
from video_create.timeline.interaction import InteractionController
from video_create.timeline.models import ItemDraft
from video_create.timeline.playback import PlaybackSynchronizer, SurfaceFactory
from video_create.timeline.store import CompositionState, CompositionStore, StoreChange
from video_create.timeline.time_model import TimelineZoom

SKIP_STEP_SEC = 5.0


class Editor:
    def __init__(
        self,
        settings: EditorSettings | None = None,
        surface_factory: SurfaceFactory | None = None,
        viewport_width: float = 0.0,
    ) -> None:
        self.settings = settings or EditorSettings()
        self.store = CompositionStore(min_duration=self.settings.min_duration_sec)
        self.zoom = TimelineZoom(viewport_width=viewport_width, duration=self.store.state.duration)
        self.controller = InteractionController(self.store, self.zoom)
        self.playback = PlaybackSynchronizer(
            self.store,
            surface_factory=surface_factory,
            drift_tolerance={"video": self.settings.drift_tolerance_sec},
        )
        self._unsubscribe = self.store.subscribe(self._on_store_change)

    @property
    def state(self) -> CompositionState:
        return self.store.state

    def _on_store_change(self, change: StoreChange) -> None:
        if change.state.duration != self.zoom.duration:
            self.zoom.set_duration(change.state.duration)

    # -- project -----------------------------------------------------------

    def new_project(self, name: str = "Untitled project", project_id: str | None = None) -> None:
        self.store.initialize_project(project_id, name, [])

    def load_document(self, document: ProjectDocument) -> None:
        self.store.initialize_project(document.project_id, document.meta.title, document_to_items(document))

    def to_document(self) -> ProjectDocument:
        return state_to_document(self.store.state)

    # -- items -------------------------------------------------------------

    def add_item(self, draft: ItemDraft, select: bool = False) -> str:
        return self.store.add_item(draft, select=select)

    def add_text(self, content: str = "Your Text Here") -> str:
        return self.store.add_text(content=content, start_time=self.store.state.current_time)

    def update_item(self, item_id: str, **changes: object) -> bool:
        return self.store.update_item(item_id, **changes)

    def remove_item(self, item_id: str) -> bool:
        return self.store.remove_item(item_id)

    def select(self, item_id: str | None) -> None:
        self.store.set_selection(item_id)

    def duplicate_selected(self) -> str | None:
        selected = self.store.state.selected_id
        return self.store.duplicate_item(selected) if selected else None

    def delete_selected(self) -> bool:
        selected = self.store.state.selected_id
        return self.store.remove_item(selected) if selected else False

    def toggle_mute_selected(self) -> bool:
        selected = self.store.state.selected_id
        return self.store.toggle_mute(selected) if selected else False

    def undo(self) -> bool:
        return self.store.undo()

    def redo(self) -> bool:
        return self.store.redo()

    # -- transport ---------------------------------------------------------

    def seek(self, t: float) -> float:
        return self.store.set_current_time(t)

    def play(self) -> None:
        self.store.set_playing(True)

    def pause(self) -> None:
        self.store.set_playing(False)

    def toggle_playback(self) -> bool:
        playing = not self.store.state.is_playing
        self.store.set_playing(playing)
        return playing

    def skip_forward(self, step: float = SKIP_STEP_SEC) -> float:
        return self.seek(self.store.state.current_time + step)

    def skip_backward(self, step: float = SKIP_STEP_SEC) -> float:
        return self.seek(self.store.state.current_time - step)

    def close(self) -> None:
        self.controller.cancel()
        self.playback.detach()
        self._unsubscribe()
