"""Timeline domain models: time ranges, geometry and the item variants."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Literal, Union
from uuid import uuid4

ItemKind = Literal["video", "audio", "image", "text"]
TextAlign = Literal["left", "center", "right"]
FontWeight = Literal["normal", "bold"]
FontStyle = Literal["normal", "italic"]

SUPPORTED_KINDS: tuple[ItemKind, ...] = ("video", "audio", "image", "text")
TIMED_MEDIA_KINDS: frozenset[str] = frozenset({"video", "audio"})
GEOMETRY_KINDS: frozenset[str] = frozenset({"image", "text"})

MIN_ITEM_SPAN_SEC = 0.5
MIN_GEOMETRY_SIZE_PCT = 2.0
SNAP_THRESHOLD_PCT = 2.0
DEFAULT_TEXT_DURATION_SEC = 10.0
DUPLICATE_OFFSET_SEC = 1.0
MIN_FONT_SIZE = 12
MAX_FONT_SIZE = 120


class InvalidTimeRangeError(ValueError):
    """Raised when an edit would produce a range shorter than the minimum span."""


class InvalidGeometryError(ValueError):
    """Raised when an edit would shrink an overlay below the minimum size."""


class UnsupportedFieldError(ValueError):
    """Raised when an update names a field the item kind does not carry."""


def new_item_id() -> str:
    return uuid4().hex


@dataclass(frozen=True, slots=True)
class TimeRange:
    start: float
    end: float

    @property
    def span(self) -> float:
        return self.end - self.start

    def overlaps(self, other: TimeRange) -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, t: float) -> bool:
        return self.start <= t <= self.end

    def shifted(self, delta: float) -> TimeRange:
        return TimeRange(self.start + delta, self.end + delta)

    def validate(self, min_span: float = MIN_ITEM_SPAN_SEC) -> None:
        if self.start < 0.0:
            raise InvalidTimeRangeError(f"start must be >= 0 (got {self.start})")
        if self.end - self.start < min_span - 1e-9:
            raise InvalidTimeRangeError(
                f"range [{self.start}, {self.end}) is shorter than the minimum span of {min_span}s"
            )


@dataclass(frozen=True, slots=True)
class Position:
    x: float = 50.0
    y: float = 50.0


@dataclass(frozen=True, slots=True)
class Geometry:
    """Placement on the preview canvas in percent of its width/height.

    `position` is the top-left anchor. Auto-sized overlays (plain text) leave
    width/height unset and are positioned by the anchor alone.
    """

    position: Position = field(default_factory=Position)
    width: float | None = None
    height: float | None = None
    rotation: float | None = None

    def validate(self) -> None:
        for label, value in (("width", self.width), ("height", self.height)):
            if value is not None and value < MIN_GEOMETRY_SIZE_PCT - 1e-9:
                raise InvalidGeometryError(f"{label} must be >= {MIN_GEOMETRY_SIZE_PCT}% (got {value})")


@dataclass(frozen=True, slots=True)
class Typography:
    content: str = "Your Text Here"
    font_family: str = "Arial"
    font_size: int = 32
    font_color: str = "#000000"
    font_weight: FontWeight = "normal"
    font_style: FontStyle = "normal"
    text_align: TextAlign = "center"

    def validate(self) -> None:
        if not (MIN_FONT_SIZE <= self.font_size <= MAX_FONT_SIZE):
            raise ValueError(f"font_size must be in range [{MIN_FONT_SIZE},{MAX_FONT_SIZE}]")
        if self.font_weight not in ("normal", "bold"):
            raise ValueError(f"Unsupported font_weight '{self.font_weight}'")
        if self.font_style not in ("normal", "italic"):
            raise ValueError(f"Unsupported font_style '{self.font_style}'")
        if self.text_align not in ("left", "center", "right"):
            raise ValueError(f"Unsupported text_align '{self.text_align}'")


@dataclass(frozen=True, slots=True)
class _ItemBase:
    item_id: str
    name: str
    time_range: TimeRange
    track: int
    media_ref: str | None = None
    source_duration: float | None = None

    kind: ClassVar[ItemKind]

    @property
    def start_time(self) -> float:
        return self.time_range.start

    @property
    def end_time(self) -> float:
        return self.time_range.end


@dataclass(frozen=True, slots=True)
class VideoItem(_ItemBase):
    mute: bool = False

    kind: ClassVar[ItemKind] = "video"


@dataclass(frozen=True, slots=True)
class AudioItem(_ItemBase):
    mute: bool = False

    kind: ClassVar[ItemKind] = "audio"


@dataclass(frozen=True, slots=True)
class ImageItem(_ItemBase):
    geometry: Geometry = field(default_factory=Geometry)

    kind: ClassVar[ItemKind] = "image"


@dataclass(frozen=True, slots=True)
class TextItem(_ItemBase):
    geometry: Geometry = field(default_factory=Geometry)
    typography: Typography = field(default_factory=Typography)

    kind: ClassVar[ItemKind] = "text"


TimelineItem = Union[VideoItem, AudioItem, ImageItem, TextItem]

ITEM_TYPES: dict[ItemKind, type] = {
    "video": VideoItem,
    "audio": AudioItem,
    "image": ImageItem,
    "text": TextItem,
}


def contributes_to_duration(item: TimelineItem) -> bool:
    return item.kind in TIMED_MEDIA_KINDS


def supports_mute(item: TimelineItem) -> bool:
    return item.kind in TIMED_MEDIA_KINDS


def supports_geometry(item: TimelineItem) -> bool:
    return item.kind in GEOMETRY_KINDS


@dataclass(slots=True)
class ItemDraft:
    """Everything needed to place a new item; the store assigns id and track."""

    kind: ItemKind
    name: str
    start_time: float
    end_time: float
    track: int | None = None
    media_ref: str | None = None
    source_duration: float | None = None
    mute: bool = False
    geometry: Geometry | None = None
    typography: Typography | None = None

    def validate(self) -> None:
        if self.kind not in SUPPORTED_KINDS:
            raise ValueError(f"Unsupported item kind '{self.kind}'")
        TimeRange(self.start_time, self.end_time).validate()
        if self.track is not None and self.track < 0:
            raise ValueError("track must be >= 0")
        if self.kind not in TIMED_MEDIA_KINDS and self.mute:
            raise UnsupportedFieldError(f"'{self.kind}' items do not support mute")
        if self.kind not in GEOMETRY_KINDS and self.geometry is not None:
            raise UnsupportedFieldError(f"'{self.kind}' items do not carry geometry")
        if self.kind != "text" and self.typography is not None:
            raise UnsupportedFieldError(f"'{self.kind}' items do not carry typography")
        if self.geometry is not None:
            self.geometry.validate()
        if self.typography is not None:
            self.typography.validate()

    def build(self, item_id: str, track: int) -> TimelineItem:
        common = {
            "item_id": item_id,
            "name": self.name,
            "time_range": TimeRange(float(self.start_time), float(self.end_time)),
            "track": track,
            "media_ref": self.media_ref,
            "source_duration": self.source_duration,
        }
        if self.kind == "video":
            return VideoItem(**common, mute=self.mute)
        if self.kind == "audio":
            return AudioItem(**common, mute=self.mute)
        if self.kind == "image":
            return ImageItem(**common, geometry=self.geometry or Geometry())
        return TextItem(
            **common,
            geometry=self.geometry or Geometry(),
            typography=self.typography or Typography(),
        )


def text_draft(
    content: str = "Your Text Here",
    duration: float = DEFAULT_TEXT_DURATION_SEC,
    start_time: float = 0.0,
    name: str = "New Text",
) -> ItemDraft:
    return ItemDraft(
        kind="text",
        name=name,
        start_time=start_time,
        end_time=start_time + duration,
        geometry=Geometry(position=Position(50.0, 50.0)),
        typography=Typography(content=content),
    )
