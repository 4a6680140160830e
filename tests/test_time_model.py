import math

import pytest

from video_create.timeline.time_model import (
    MAX_PIXELS_PER_SECOND,
    MIN_PIXELS_PER_SECOND,
    TimelineZoom,
    fit_pixels_per_second,
    follow_playhead,
    format_timecode,
    marker_step,
    pixel_to_time,
    time_markers,
    time_to_pixel,
)


def test_time_pixel_round_trip() -> None:
    for pps in (10.0, 37.5, 100.0, 499.0):
        for t in (0.0, 0.25, 12.345, 299.99):
            assert math.isclose(pixel_to_time(time_to_pixel(t, pps), pps), t, abs_tol=1e-6)


def test_pixel_to_time_rejects_non_positive_scale() -> None:
    with pytest.raises(ValueError):
        pixel_to_time(100.0, 0.0)


def test_fit_with_zero_duration_falls_back_to_minimum() -> None:
    assert fit_pixels_per_second(800.0, 0.0) == MIN_PIXELS_PER_SECOND
    assert fit_pixels_per_second(0.0, 60.0) == MIN_PIXELS_PER_SECOND

    zoom = TimelineZoom(viewport_width=800.0, duration=0.0)
    assert math.isfinite(zoom.pixels_per_second)
    assert zoom.pixel_to_time(400.0) == 40.0


def test_fit_mode_follows_viewport_and_duration() -> None:
    zoom = TimelineZoom(viewport_width=1200.0, duration=300.0)
    assert zoom.pixels_per_second == 4.0

    zoom.set_viewport_width(1500.0)
    assert zoom.pixels_per_second == 5.0

    zoom.set_duration(150.0)
    assert zoom.pixels_per_second == 10.0
    assert zoom.content_width() == 1500.0


def test_zoom_steps_are_clamped() -> None:
    zoom = TimelineZoom(mode="fixed", pixels_per_second=100.0)
    zoom.zoom_in()
    assert math.isclose(zoom.pixels_per_second, 120.0)

    for _ in range(50):
        zoom.zoom_in()
    assert zoom.pixels_per_second == MAX_PIXELS_PER_SECOND

    for _ in range(50):
        zoom.zoom_out()
    assert zoom.pixels_per_second == MIN_PIXELS_PER_SECOND

    zoom.fit()
    assert zoom.mode == "fit"


def test_marker_step_and_ruler_ticks() -> None:
    assert marker_step(10.0) == 10
    assert marker_step(30.0) == 5
    assert marker_step(80.0) == 2
    assert marker_step(150.0) == 1

    ticks = time_markers(20.0, 30.0)
    assert ticks == [0, 5, 10, 15, 20, 25]


def test_format_timecode() -> None:
    assert format_timecode(0.0) == "00:00"
    assert format_timecode(65.5) == "01:05"
    assert format_timecode(65.5, centiseconds=True) == "01:05.50"
    assert format_timecode(59.999, centiseconds=True) == "00:59.99"
    assert format_timecode(-3.0) == "00:00"


def test_follow_playhead_recenters_only_outside_margin() -> None:
    assert follow_playhead(400.0, 0.0, 1000.0) is None
    assert follow_playhead(950.0, 0.0, 1000.0) == 450.0
    assert follow_playhead(550.0, 500.0, 1000.0) == 50.0
