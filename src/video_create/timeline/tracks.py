"""Overlap tests and greedy first-fit track assignment."""

from __future__ import annotations

from typing import Iterable, Sequence

from video_create.timeline.models import TimelineItem


def ranges_overlap(a_start: float, a_end: float, b_start: float, b_end: float) -> bool:
    return a_start < b_end and b_start < a_end


def find_available_track(
    start: float,
    end: float,
    items: Iterable[TimelineItem],
    exclude_id: str | None = None,
) -> int:
    """Lowest track index on which [start, end) collides with no existing item.

    Tracks are probed from 0 upward, so at most `distinct tracks + 1` probes
    are needed before an empty track is reached.
    """
    occupied: dict[int, list[tuple[float, float]]] = {}
    for item in items:
        if exclude_id is not None and item.item_id == exclude_id:
            continue
        occupied.setdefault(item.track, []).append((item.start_time, item.end_time))

    track = 0
    while True:
        ranges = occupied.get(track)
        if not ranges or not any(ranges_overlap(start, end, s, e) for s, e in ranges):
            return track
        track += 1


def is_track_free(
    track: int,
    start: float,
    end: float,
    items: Iterable[TimelineItem],
    exclude_id: str | None = None,
) -> bool:
    for item in items:
        if item.track != track or item.item_id == exclude_id:
            continue
        if ranges_overlap(start, end, item.start_time, item.end_time):
            return False
    return True


def items_by_track(items: Sequence[TimelineItem]) -> dict[int, list[TimelineItem]]:
    grouped: dict[int, list[TimelineItem]] = {}
    for item in sorted(items, key=lambda it: (it.track, it.start_time, it.item_id)):
        grouped.setdefault(item.track, []).append(item)
    return grouped


def items_at(items: Iterable[TimelineItem], t: float) -> list[TimelineItem]:
    return [item for item in items if item.time_range.contains(t)]
