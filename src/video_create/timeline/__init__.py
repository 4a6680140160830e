"""Timeline domain exports."""

from video_create.timeline.history import HistoryEntry, HistoryManager
from video_create.timeline.interaction import InteractionController, SnapGuides, drag_geometry, resize_geometry
from video_create.timeline.models import (
    AudioItem,
    Geometry,
    ImageItem,
    ItemDraft,
    Position,
    TextItem,
    TimelineItem,
    TimeRange,
    Typography,
    VideoItem,
    text_draft,
)
from video_create.timeline.playback import PLAYBACK_SOURCE, MediaSurface, PlaybackSynchronizer
from video_create.timeline.store import CompositionState, CompositionStore, StoreChange
from video_create.timeline.time_model import TimelineZoom, format_timecode, pixel_to_time, time_to_pixel
from video_create.timeline.tracks import find_available_track

__all__ = [
    "AudioItem",
    "CompositionState",
    "CompositionStore",
    "Geometry",
    "HistoryEntry",
    "HistoryManager",
    "ImageItem",
    "InteractionController",
    "ItemDraft",
    "MediaSurface",
    "PLAYBACK_SOURCE",
    "PlaybackSynchronizer",
    "Position",
    "SnapGuides",
    "StoreChange",
    "TextItem",
    "TimeRange",
    "TimelineItem",
    "TimelineZoom",
    "Typography",
    "VideoItem",
    "drag_geometry",
    "find_available_track",
    "format_timecode",
    "pixel_to_time",
    "resize_geometry",
    "text_draft",
    "time_to_pixel",
]
