import pytest

from video_create.timeline.models import ItemDraft, TimelineItem
from video_create.timeline.playback import PlaybackSynchronizer, SurfaceListener
from video_create.timeline.store import CompositionStore


class FakeSurface:
    def __init__(self) -> None:
        self.ref: str | None = None
        self.position = 0.0
        self.ready_duration: float | None = None
        self.playing = False
        self.muted: bool | None = None
        self.seeks: list[float] = []
        self.played_from: list[float] = []
        self.calls: list[str] = []
        self.listeners: list[SurfaceListener] = []

    def load(self, ref: str) -> None:
        self.ref = ref

    def play(self) -> None:
        self.playing = True
        self.played_from.append(self.position)
        self.calls.append("play")

    def pause(self) -> None:
        self.playing = False
        self.calls.append("pause")

    def seek(self, t: float) -> None:
        self.position = t
        self.seeks.append(t)

    def current_time(self) -> float:
        return self.position

    def duration(self) -> float | None:
        return self.ready_duration

    def set_muted(self, muted: bool) -> None:
        self.muted = muted

    def add_listener(self, listener: SurfaceListener) -> None:
        self.listeners.append(listener)

    def remove_listener(self, listener: SurfaceListener) -> None:
        self.listeners.remove(listener)

    def become_ready(self, duration: float) -> None:
        self.ready_duration = duration
        for listener in list(self.listeners):
            listener.on_duration_ready(duration)

    def emit_time(self, t: float) -> None:
        self.position = t
        for listener in list(self.listeners):
            listener.on_time_update(t)

    def emit_ended(self) -> None:
        for listener in list(self.listeners):
            listener.on_ended()

    def emit_error(self, reason: str) -> None:
        for listener in list(self.listeners):
            listener.on_error(reason)


class Harness:
    def __init__(self, min_duration: float = 60.0) -> None:
        self.store = CompositionStore(min_duration=min_duration)
        self.surfaces: dict[str, FakeSurface] = {}
        self.sync = PlaybackSynchronizer(self.store, surface_factory=self._factory)

    def _factory(self, item: TimelineItem) -> FakeSurface:
        surface = FakeSurface()
        self.surfaces[item.item_id] = surface
        return surface

    def add(self, kind: str, start: float, end: float, track: int | None = None, ready: bool = True) -> str:
        item_id = self.store.add_item(
            ItemDraft(kind=kind, name=kind, start_time=start, end_time=end, track=track, media_ref=f"/m/{kind}")  # type: ignore[arg-type]
        )
        if ready:
            self.surfaces[item_id].become_ready(end - start)
        return item_id


def test_primary_ended_stops_and_rewinds() -> None:
    h = Harness()
    video_id = h.add("video", 0.0, 30.0)
    h.store.set_playing(True)
    assert h.sync.primary_item_id == video_id

    h.surfaces[video_id].emit_time(12.0)
    assert h.store.state.current_time == 12.0

    h.surfaces[video_id].emit_ended()
    assert h.store.state.is_playing is False
    assert h.store.state.current_time == 0.0


def test_play_and_pause_fan_out_to_active_surfaces() -> None:
    h = Harness()
    video_id = h.add("video", 0.0, 30.0)
    audio_id = h.add("audio", 0.0, 20.0)
    later_id = h.add("video", 40.0, 50.0)

    h.store.set_playing(True)
    assert h.surfaces[video_id].playing
    assert h.surfaces[audio_id].playing
    assert not h.surfaces[later_id].playing

    h.store.set_playing(False)
    assert not h.surfaces[video_id].playing
    assert not h.surfaces[audio_id].playing
    assert h.surfaces[video_id].calls == ["play", "pause"]


def test_primary_time_drives_clock_and_secondaries_resync_on_drift() -> None:
    h = Harness()
    primary_id = h.add("video", 0.0, 30.0, track=0)
    other_id = h.add("video", 0.0, 30.0, track=1)
    h.store.set_playing(True)
    assert h.sync.primary_item_id == primary_id

    other = h.surfaces[other_id]
    other.seeks.clear()
    other.position = 9.0
    h.surfaces[primary_id].emit_time(10.0)
    assert other.seeks == [10.0]

    other.position = 10.05
    h.surfaces[primary_id].emit_time(10.1)
    assert other.seeks == [10.0]


def test_secondary_time_updates_do_not_move_the_clock() -> None:
    h = Harness()
    h.add("video", 0.0, 30.0, track=0)
    other_id = h.add("video", 0.0, 30.0, track=1)
    h.store.set_playing(True)

    h.surfaces[other_id].emit_time(7.0)
    assert h.store.state.current_time == 0.0


def test_audio_drift_tolerance_is_wider() -> None:
    h = Harness()
    video_id = h.add("video", 0.0, 30.0)
    audio_id = h.add("audio", 0.0, 30.0)
    h.store.set_playing(True)

    audio = h.surfaces[audio_id]
    audio.seeks.clear()
    audio.position = 4.8
    h.surfaces[video_id].emit_time(5.0)
    assert audio.seeks == []

    audio.position = 4.5
    h.surfaces[video_id].emit_time(5.0 + 1e-3)
    assert audio.seeks == [pytest.approx(5.001)]


def test_external_seek_maps_to_item_local_time() -> None:
    h = Harness()
    first_id = h.add("video", 0.0, 30.0, track=0)
    offset_id = h.add("video", 10.0, 40.0, track=1)

    h.store.set_current_time(20.0)
    assert h.surfaces[first_id].seeks[-1] == 20.0
    assert h.surfaces[offset_id].seeks[-1] == 10.0


def test_surfaces_outside_their_range_are_paused() -> None:
    h = Harness()
    long_id = h.add("video", 0.0, 30.0, track=0)
    short_id = h.add("audio", 0.0, 5.0, track=1)
    h.store.set_playing(True)
    assert h.surfaces[short_id].playing

    h.surfaces[long_id].emit_time(6.0)
    assert not h.surfaces[short_id].playing
    assert h.surfaces[long_id].playing


def test_failed_surface_is_isolated_and_primary_falls_back() -> None:
    h = Harness()
    video_id = h.add("video", 0.0, 30.0)
    audio_id = h.add("audio", 0.0, 30.0)
    h.store.set_playing(True)

    h.surfaces[video_id].emit_error("decode error")
    assert h.sync.surface_status(video_id) == "failed"
    assert h.sync.primary_item_id == audio_id

    h.surfaces[audio_id].emit_time(3.0)
    assert h.store.state.current_time == 3.0
    assert h.store.state.is_playing


def test_mute_changes_reach_the_surface() -> None:
    h = Harness()
    video_id = h.add("video", 0.0, 30.0)
    assert h.surfaces[video_id].muted is False

    h.store.toggle_mute(video_id)
    assert h.surfaces[video_id].muted is True


def test_removed_item_detaches_its_surface() -> None:
    h = Harness()
    video_id = h.add("video", 0.0, 30.0)
    surface = h.surfaces[video_id]

    h.store.remove_item(video_id)
    assert video_id not in h.sync.surface_ids()
    assert surface.listeners == []


def test_advance_uses_host_clock_without_primary() -> None:
    h = Harness(min_duration=10.0)
    h.store.set_playing(True)

    h.sync.advance(1.5)
    assert h.store.state.current_time == 1.5

    h.sync.advance(20.0)
    assert h.store.state.is_playing is False
    assert h.store.state.current_time == 0.0


def test_advance_is_ignored_while_a_primary_drives_time() -> None:
    h = Harness()
    h.add("video", 0.0, 30.0)
    h.store.set_playing(True)

    h.sync.advance(2.0)
    assert h.store.state.current_time == 0.0


def test_detach_stops_listening() -> None:
    h = Harness()
    video_id = h.add("video", 0.0, 30.0)
    h.sync.detach()

    h.store.set_playing(True)
    assert not h.surfaces[video_id].playing
    assert h.sync.surface_ids() == []


def test_loading_surface_joins_playback_once_ready() -> None:
    h = Harness()
    video_id = h.add("video", 2.0, 32.0, ready=False)
    surface = h.surfaces[video_id]
    h.store.set_current_time(5.0)
    h.store.set_playing(True)

    assert h.sync.surface_status(video_id) == "loading"
    assert h.sync.primary_item_id is None
    assert surface.calls == []
    assert surface.seeks == []

    surface.become_ready(30.0)
    assert h.sync.surface_status(video_id) == "ready"
    assert h.sync.primary_item_id == video_id
    assert surface.seeks[-1] == pytest.approx(3.0)
    assert surface.calls == ["play"]
    assert surface.played_from == [pytest.approx(3.0)]


def test_reported_media_length_sizes_unprobed_item() -> None:
    h = Harness()
    video_id = h.add("video", 5.0, 15.0, ready=False)

    h.surfaces[video_id].become_ready(42.0)
    item = h.store.get_item(video_id)
    assert item is not None
    assert (item.start_time, item.end_time) == (5.0, 47.0)
    assert item.source_duration == 42.0
    assert h.store.state.duration == 60.0
    assert h.store.history.peek_undo_label() == "Add video"

    h.surfaces[video_id].become_ready(50.0)
    assert h.store.get_item(video_id).end_time == 47.0  # type: ignore[union-attr]


def test_reported_media_length_keeps_known_source_length() -> None:
    h = Harness()
    audio_id = h.store.add_item(
        ItemDraft(kind="audio", name="a", start_time=0.0, end_time=8.0, media_ref="/m/a", source_duration=20.0)
    )

    h.surfaces[audio_id].become_ready(20.0)
    item = h.store.get_item(audio_id)
    assert item is not None
    assert item.end_time == 8.0
    assert h.sync.surface_status(audio_id) == "ready"
