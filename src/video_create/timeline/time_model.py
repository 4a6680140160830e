"""Conversions between timeline seconds and pixels, zoom state and ruler helpers."""

from __future__ import annotations

from typing import Literal

MIN_PIXELS_PER_SECOND = 10.0
MAX_PIXELS_PER_SECOND = 500.0
DEFAULT_PIXELS_PER_SECOND = 100.0
ZOOM_STEP_FACTOR = 1.2
FOLLOW_MARGIN_PX = 100.0

ZoomMode = Literal["fixed", "fit"]


def time_to_pixel(t: float, pixels_per_second: float) -> float:
    return t * pixels_per_second


def pixel_to_time(p: float, pixels_per_second: float) -> float:
    if pixels_per_second <= 0.0:
        raise ValueError(f"pixels_per_second must be positive (got {pixels_per_second})")
    return p / pixels_per_second


def fit_pixels_per_second(viewport_width: float, duration: float) -> float:
    if duration <= 0.0 or viewport_width <= 0.0:
        return MIN_PIXELS_PER_SECOND
    return viewport_width / duration


def clamp_zoom(pixels_per_second: float) -> float:
    return min(max(float(pixels_per_second), MIN_PIXELS_PER_SECOND), MAX_PIXELS_PER_SECOND)


class TimelineZoom:
    """Horizontal scale of the timeline.

    In "fixed" mode the user-controlled zoom scalar is the scale directly. In
    "fit" mode the whole duration is squeezed into the viewport and the scale
    follows every viewport resize or duration change.
    """

    def __init__(
        self,
        viewport_width: float = 0.0,
        duration: float = 0.0,
        mode: ZoomMode = "fit",
        pixels_per_second: float = DEFAULT_PIXELS_PER_SECOND,
    ) -> None:
        if mode not in ("fixed", "fit"):
            raise ValueError(f"Unsupported zoom mode '{mode}'")
        self.mode: ZoomMode = mode
        self.viewport_width = max(float(viewport_width), 0.0)
        self.duration = max(float(duration), 0.0)
        self._fixed_pps = clamp_zoom(pixels_per_second)

    @property
    def pixels_per_second(self) -> float:
        if self.mode == "fit":
            return fit_pixels_per_second(self.viewport_width, self.duration)
        return self._fixed_pps

    def set_viewport_width(self, width: float) -> None:
        self.viewport_width = max(float(width), 0.0)

    def set_duration(self, duration: float) -> None:
        self.duration = max(float(duration), 0.0)

    def set_zoom(self, pixels_per_second: float) -> None:
        self.mode = "fixed"
        self._fixed_pps = clamp_zoom(pixels_per_second)

    def fit(self) -> None:
        self.mode = "fit"

    def zoom_in(self) -> None:
        self.set_zoom(self.pixels_per_second * ZOOM_STEP_FACTOR)

    def zoom_out(self) -> None:
        self.set_zoom(self.pixels_per_second / ZOOM_STEP_FACTOR)

    def time_to_pixel(self, t: float) -> float:
        return time_to_pixel(t, self.pixels_per_second)

    def pixel_to_time(self, p: float) -> float:
        return pixel_to_time(p, self.pixels_per_second)

    def content_width(self) -> float:
        return self.time_to_pixel(self.duration)


def marker_step(pixels_per_second: float) -> int:
    if pixels_per_second < 20:
        return 10
    if pixels_per_second < 50:
        return 5
    if pixels_per_second < 100:
        return 2
    return 1


def time_markers(duration: float, pixels_per_second: float) -> list[int]:
    step = marker_step(pixels_per_second)
    limit = max(duration, 0.0) + step
    markers: list[int] = []
    value = 0
    while value <= limit:
        markers.append(value)
        value += step
    return markers


def format_timecode(t: float, centiseconds: bool = False) -> str:
    value = max(float(t), 0.0)
    minutes = int(value // 60)
    seconds = int(value % 60)
    text = f"{minutes:02d}:{seconds:02d}"
    if centiseconds:
        cs = int((value % 1) * 100)
        text = f"{text}.{cs:02d}"
    return text


def follow_playhead(
    playhead_px: float,
    scroll_left: float,
    viewport_width: float,
    margin: float = FOLLOW_MARGIN_PX,
) -> float | None:
    """Scroll offset that keeps the playhead in view during playback, or None."""
    offset = playhead_px - scroll_left
    if offset > viewport_width - margin:
        return max(0.0, playhead_px - viewport_width / 2.0)
    if offset < margin and scroll_left > 0.0:
        return max(0.0, playhead_px - viewport_width / 2.0)
    return None
