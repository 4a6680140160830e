"""Conversion between timeline items and persisted/exported records."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from video_create.project.schema import GeometryRecord, ItemRecord, PositionRecord, ProjectDocument, TypographyRecord
from video_create.timeline.models import (
    MIN_GEOMETRY_SIZE_PCT,
    AudioItem,
    Geometry,
    ImageItem,
    Position,
    TextItem,
    TimeRange,
    TimelineItem,
    Typography,
    VideoItem,
)
from video_create.timeline.store import CompositionState


def item_to_record(item: TimelineItem) -> ItemRecord:
    record = ItemRecord(
        item_id=item.item_id,
        kind=item.kind,
        name=item.name,
        start_time=item.start_time,
        end_time=item.end_time,
        track=item.track,
        media_ref=item.media_ref,
        source_duration=item.source_duration,
    )
    if isinstance(item, (VideoItem, AudioItem)):
        record.mute = item.mute
    if isinstance(item, (ImageItem, TextItem)):
        geometry = item.geometry
        record.geometry = GeometryRecord(
            position=PositionRecord(x=geometry.position.x, y=geometry.position.y),
            width=geometry.width,
            height=geometry.height,
            rotation=geometry.rotation,
        )
    if isinstance(item, TextItem):
        record.typography = TypographyRecord(
            content=item.typography.content,
            font_family=item.typography.font_family,
            font_size=item.typography.font_size,
            font_color=item.typography.font_color,
            font_weight=item.typography.font_weight,
            font_style=item.typography.font_style,
            text_align=item.typography.text_align,
        )
    return record


def record_to_item(record: ItemRecord) -> TimelineItem:
    time_range = TimeRange(record.start_time, record.end_time)
    time_range.validate()
    common: dict[str, Any] = {
        "item_id": record.item_id,
        "name": record.name,
        "time_range": time_range,
        "track": record.track,
        "media_ref": record.media_ref,
        "source_duration": record.source_duration,
    }
    if record.kind == "video":
        return VideoItem(**common, mute=record.mute)
    if record.kind == "audio":
        return AudioItem(**common, mute=record.mute)
    geometry = _geometry_from_record(record.geometry)
    if record.kind == "image":
        return ImageItem(**common, geometry=geometry)
    typography = Typography(**record.typography.model_dump()) if record.typography else Typography()
    return TextItem(**common, geometry=geometry, typography=typography)


def _geometry_from_record(record: GeometryRecord | None) -> Geometry:
    if record is None:
        return Geometry()

    def _size(value: float | None) -> float | None:
        if value is None or value < MIN_GEOMETRY_SIZE_PCT:
            return None
        return value

    return Geometry(
        position=Position(record.position.x, record.position.y),
        width=_size(record.width),
        height=_size(record.height),
        rotation=record.rotation,
    )


def state_to_document(state: CompositionState) -> ProjectDocument:
    document = ProjectDocument(
        project_id=state.project_id,
        duration=state.duration,
        items=[item_to_record(item) for item in state.items],
    )
    document.meta.title = state.project_name
    document.meta.updated_at = datetime.now(UTC)
    return document


def document_to_items(document: ProjectDocument) -> list[TimelineItem]:
    return [record_to_item(record) for record in document.items]


def to_export_payload(state: CompositionState, aspect_ratio: str = "16:9") -> dict[str, Any]:
    """Project data in the camelCase shape the render backend consumes."""
    media_items: list[dict[str, Any]] = []
    for item in state.items:
        entry: dict[str, Any] = {
            "id": item.item_id,
            "type": item.kind,
            "name": item.name,
            "duration": item.time_range.span,
            "startTime": item.start_time,
            "endTime": item.end_time,
            "track": item.track,
        }
        if item.media_ref:
            entry["url"] = item.media_ref
        if isinstance(item, (VideoItem, AudioItem)):
            entry["isMuted"] = item.mute
        if isinstance(item, (ImageItem, TextItem)):
            entry["position"] = {"x": item.geometry.position.x, "y": item.geometry.position.y}
            for key in ("width", "height", "rotation"):
                value = getattr(item.geometry, key)
                if value is not None:
                    entry[key] = value
        if isinstance(item, TextItem):
            entry.update(
                {
                    "content": item.typography.content,
                    "fontSize": item.typography.font_size,
                    "fontFamily": item.typography.font_family,
                    "fontColor": item.typography.font_color,
                    "fontWeight": item.typography.font_weight,
                    "fontStyle": item.typography.font_style,
                    "textAlign": item.typography.text_align,
                }
            )
        media_items.append(entry)
    return {"mediaItems": media_items, "duration": state.duration, "aspectRatio": aspect_ratio}
