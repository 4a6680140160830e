"""Persisted project document, format version 2."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

CURRENT_FORMAT_VERSION = 2


class PositionRecord(BaseModel):
    x: float = Field(default=50.0, ge=0.0, le=100.0)
    y: float = Field(default=50.0, ge=0.0, le=100.0)


class GeometryRecord(BaseModel):
    position: PositionRecord = Field(default_factory=PositionRecord)
    width: float | None = Field(default=None, ge=0.0, le=100.0)
    height: float | None = Field(default=None, ge=0.0, le=100.0)
    rotation: float | None = None


class TypographyRecord(BaseModel):
    content: str = "Your Text Here"
    font_family: str = "Arial"
    font_size: int = Field(default=32, ge=12, le=120)
    font_color: str = "#000000"
    font_weight: Literal["normal", "bold"] = "normal"
    font_style: Literal["normal", "italic"] = "normal"
    text_align: Literal["left", "center", "right"] = "center"


class ItemRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    item_id: str
    kind: Literal["video", "audio", "image", "text"]
    name: str = ""
    start_time: float = Field(ge=0.0)
    end_time: float = Field(gt=0.0)
    track: int = Field(default=0, ge=0)
    media_ref: str | None = None
    source_duration: float | None = None
    mute: bool = False
    geometry: GeometryRecord | None = None
    typography: TypographyRecord | None = None


class ProjectMeta(BaseModel):
    title: str = "Untitled project"
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ProjectDocument(BaseModel):
    model_config = ConfigDict(extra="allow")

    format_version: int = CURRENT_FORMAT_VERSION
    project_id: str | None = None
    meta: ProjectMeta = Field(default_factory=ProjectMeta)
    duration: float = 0.0
    aspect_ratio: str = "16:9"
    items: list[ItemRecord] = Field(default_factory=list)
    migration_warnings: list[str] = Field(default_factory=list)
