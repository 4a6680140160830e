"""Keeps one authoritative play time consistent across external media surfaces."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal, Protocol

from video_create.timeline.models import TimelineItem
from video_create.timeline.store import CompositionState, CompositionStore, StoreChange

logger = logging.getLogger(__name__)

PLAYBACK_SOURCE = "playback"
DEFAULT_DRIFT_TOLERANCE_SEC: dict[str, float] = {"video": 0.1, "audio": 0.25}

SurfaceStatus = Literal["loading", "ready", "failed"]


class SurfaceListener(Protocol):
    def on_time_update(self, t: float) -> None: ...

    def on_duration_ready(self, duration: float) -> None: ...

    def on_ended(self) -> None: ...

    def on_error(self, reason: str) -> None: ...


class MediaSurface(Protocol):
    """Opaque handle to a decoder/player owned by the host environment."""

    def load(self, ref: str) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek(self, t: float) -> None: ...

    def current_time(self) -> float: ...

    def duration(self) -> float | None: ...

    def set_muted(self, muted: bool) -> None: ...

    def add_listener(self, listener: SurfaceListener) -> None: ...

    def remove_listener(self, listener: SurfaceListener) -> None: ...


SurfaceFactory = Callable[[TimelineItem], MediaSurface]


class _SlotListener:
    def __init__(self, owner: PlaybackSynchronizer, item_id: str) -> None:
        self._owner = owner
        self._item_id = item_id

    def on_time_update(self, t: float) -> None:
        self._owner._handle_time_update(self._item_id, t)

    def on_duration_ready(self, duration: float) -> None:
        self._owner._handle_duration_ready(self._item_id, duration)

    def on_ended(self) -> None:
        self._owner._handle_ended(self._item_id)

    def on_error(self, reason: str) -> None:
        self._owner._handle_error(self._item_id, reason)


@dataclass(slots=True)
class _SurfaceSlot:
    item_id: str
    surface: MediaSurface
    listener: _SlotListener
    status: SurfaceStatus = "loading"
    playing: bool = False
    muted: bool | None = None


class PlaybackSynchronizer:
    """Drives media surfaces from the store and the store clock from the primary surface.

    The primary surface is the ready, active video on the lowest track (an
    audio surface when no video is active). Its time updates move the
    playhead; other active surfaces are re-seeked once they drift past the
    tolerance for their kind. When nothing can act as primary the host calls
    `advance()` from its own timer.
    """

    def __init__(
        self,
        store: CompositionStore,
        surface_factory: SurfaceFactory | None = None,
        drift_tolerance: dict[str, float] | None = None,
    ) -> None:
        self._store = store
        self._factory = surface_factory
        self._tolerance = dict(DEFAULT_DRIFT_TOLERANCE_SEC)
        if drift_tolerance:
            self._tolerance.update(drift_tolerance)
        self._slots: dict[str, _SurfaceSlot] = {}
        self._primary_id: str | None = None
        self._unsubscribe: Callable[[], None] | None = store.subscribe(self._on_store_change)
        if self._factory is not None:
            self._sync_surfaces(store.state)

    @property
    def primary_item_id(self) -> str | None:
        return self._primary_id

    def surface_status(self, item_id: str) -> SurfaceStatus | None:
        slot = self._slots.get(item_id)
        return slot.status if slot else None

    def surface_ids(self) -> list[str]:
        return list(self._slots)

    def attach_surface(self, item_id: str, surface: MediaSurface) -> None:
        self.detach_surface(item_id)
        listener = _SlotListener(self, item_id)
        slot = _SurfaceSlot(item_id=item_id, surface=surface, listener=listener)
        self._slots[item_id] = slot
        surface.add_listener(listener)
        if surface.duration() is not None:
            slot.status = "ready"
            self._prepare_ready_slot(slot)
        self._reconcile(self._store.state, seek_all=False)

    def detach_surface(self, item_id: str) -> None:
        slot = self._slots.pop(item_id, None)
        if slot is None:
            return
        slot.surface.remove_listener(slot.listener)
        if slot.playing and slot.status != "failed":
            slot.surface.pause()
        if self._primary_id == item_id:
            self._primary_id = None

    def detach(self) -> None:
        """Stop listening to the store and to every surface."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for item_id in list(self._slots):
            self.detach_surface(item_id)

    def advance(self, elapsed_sec: float) -> None:
        """Move the playhead from the host clock when no primary surface drives it."""
        state = self._store.state
        if not state.is_playing or self._primary_id is not None or elapsed_sec <= 0.0:
            return
        target = state.current_time + elapsed_sec
        if target >= state.duration:
            self._finish_playback()
            return
        self._store.set_current_time(target, source=PLAYBACK_SOURCE)

    # -- store side --------------------------------------------------------

    def _on_store_change(self, change: StoreChange) -> None:
        state = change.state
        if "project" in change.kinds:
            for item_id in list(self._slots):
                self.detach_surface(item_id)
        if "items" in change.kinds or "project" in change.kinds:
            if self._factory is not None:
                self._sync_surfaces(state)
            self._apply_mute(state)
        if "playing" in change.kinds and not state.is_playing:
            self._pause_all()
        external_seek = "time" in change.kinds and change.source != PLAYBACK_SOURCE
        moved_items = "items" in change.kinds
        self._reconcile(state, seek_all=external_seek or moved_items or "playing" in change.kinds)

    def _sync_surfaces(self, state: CompositionState) -> None:
        assert self._factory is not None
        wanted = {item.item_id: item for item in state.items if item.kind in ("video", "audio") and item.media_ref}
        for item_id in list(self._slots):
            if item_id not in wanted:
                self.detach_surface(item_id)
        for item_id, item in wanted.items():
            if item_id in self._slots:
                continue
            try:
                surface = self._factory(item)
                surface.load(item.media_ref)  # type: ignore[arg-type]
            except (OSError, ValueError, RuntimeError) as exc:
                logger.warning("media surface for %s could not be created: %s", item_id, exc)
                continue
            self.attach_surface(item_id, surface)

    def _apply_mute(self, state: CompositionState) -> None:
        for slot in self._slots.values():
            item = state.get(slot.item_id)
            if item is None or slot.status == "failed":
                continue
            muted = bool(getattr(item, "mute", False))
            if slot.muted != muted:
                slot.surface.set_muted(muted)
                slot.muted = muted

    def _reconcile(self, state: CompositionState, seek_all: bool) -> None:
        t = state.current_time
        active: list[tuple[_SurfaceSlot, TimelineItem]] = []
        for slot in self._slots.values():
            if slot.status != "ready":
                continue
            item = state.get(slot.item_id)
            if item is None:
                continue
            if item.time_range.contains(t) and t < item.end_time:
                active.append((slot, item))
            elif slot.playing:
                slot.surface.pause()
                slot.playing = False

        self._primary_id = _choose_primary([item for _, item in active])

        for slot, item in active:
            local = max(t - item.start_time, 0.0)
            if seek_all:
                slot.surface.seek(local)
            elif slot.item_id != self._primary_id and state.is_playing:
                drift = abs(slot.surface.current_time() - local)
                if drift > self._tolerance.get(item.kind, 0.1):
                    logger.debug("resync %s: drift %.3fs", slot.item_id, drift)
                    slot.surface.seek(local)
            if state.is_playing and not slot.playing:
                if not seek_all:
                    slot.surface.seek(local)
                slot.surface.play()
                slot.playing = True

    def _pause_all(self) -> None:
        for slot in self._slots.values():
            if slot.status == "ready" and slot.playing:
                slot.surface.pause()
            slot.playing = False

    def _finish_playback(self) -> None:
        self._store.set_playing(False, source=PLAYBACK_SOURCE)
        self._store.set_current_time(0.0)

    def _prepare_ready_slot(self, slot: _SurfaceSlot) -> None:
        item = self._store.state.get(slot.item_id)
        muted = bool(getattr(item, "mute", False)) if item is not None else False
        slot.surface.set_muted(muted)
        slot.muted = muted

    # -- surface side ------------------------------------------------------

    def _handle_time_update(self, item_id: str, local_t: float) -> None:
        state = self._store.state
        if item_id != self._primary_id or not state.is_playing:
            return
        item = state.get(item_id)
        if item is None:
            return
        self._store.set_current_time(item.start_time + local_t, source=PLAYBACK_SOURCE)

    def _handle_duration_ready(self, item_id: str, duration: float) -> None:
        slot = self._slots.get(item_id)
        if slot is None or slot.status == "failed":
            return
        slot.status = "ready"
        logger.debug("surface %s ready (%.2fs)", item_id, duration)
        self._prepare_ready_slot(slot)
        if self._store.adopt_media_duration(item_id, duration):
            logger.info("item %s sized to its media length %.2fs", item_id, duration)
        self._reconcile(self._store.state, seek_all=False)

    def _handle_ended(self, item_id: str) -> None:
        slot = self._slots.get(item_id)
        if slot is None:
            return
        slot.playing = False
        if item_id == self._primary_id:
            self._finish_playback()

    def _handle_error(self, item_id: str, reason: str) -> None:
        slot = self._slots.get(item_id)
        if slot is None:
            return
        logger.warning("media surface for %s failed: %s", item_id, reason)
        slot.status = "failed"
        slot.playing = False
        if self._primary_id == item_id:
            self._reconcile(self._store.state, seek_all=False)


def _choose_primary(items: list[TimelineItem]) -> str | None:
    for kind in ("video", "audio"):
        candidates = [item for item in items if item.kind == kind]
        if candidates:
            return min(candidates, key=lambda item: (item.track, item.start_time)).item_id
    return None
