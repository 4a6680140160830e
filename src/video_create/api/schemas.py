"""FastAPI request/response schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from video_create.project.schema import GeometryRecord, TypographyRecord


class ItemView(BaseModel):
    item_id: str
    kind: Literal["video", "audio", "image", "text"]
    name: str
    start_time: float
    end_time: float
    track: int
    media_ref: str | None = None
    mute: bool | None = None
    geometry: GeometryRecord | None = None
    typography: TypographyRecord | None = None


class CompositionResponse(BaseModel):
    project_id: str | None
    project_name: str
    duration: float
    current_time: float
    is_playing: bool
    selected_id: str | None
    track_count: int
    items: list[ItemView]
    can_undo: bool
    can_redo: bool


class AddItemRequest(BaseModel):
    kind: Literal["video", "audio", "image", "text"]
    name: str = ""
    start_time: float = Field(default=0.0, ge=0.0)
    end_time: float = Field(gt=0.0)
    track: int | None = Field(default=None, ge=0)
    media_ref: str | None = None
    source_duration: float | None = Field(default=None, gt=0.0)
    mute: bool = False
    geometry: GeometryRecord | None = None
    typography: TypographyRecord | None = None
    select: bool = False


class AddItemResponse(BaseModel):
    item_id: str
    track: int


class UpdateItemRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    start_time: float | None = Field(default=None, ge=0.0)
    end_time: float | None = Field(default=None, gt=0.0)
    track: int | None = Field(default=None, ge=0)
    media_ref: str | None = None
    mute: bool | None = None
    x: float | None = Field(default=None, ge=0.0, le=100.0)
    y: float | None = Field(default=None, ge=0.0, le=100.0)
    width: float | None = Field(default=None, ge=0.0, le=100.0)
    height: float | None = Field(default=None, ge=0.0, le=100.0)
    rotation: float | None = None
    content: str | None = None
    font_family: str | None = None
    font_size: int | None = Field(default=None, ge=12, le=120)
    font_color: str | None = None
    font_weight: Literal["normal", "bold"] | None = None
    font_style: Literal["normal", "italic"] | None = None
    text_align: Literal["left", "center", "right"] | None = None


class UpdateItemResponse(BaseModel):
    updated: bool


class DeleteItemResponse(BaseModel):
    deleted: bool


class DuplicateItemResponse(BaseModel):
    item_id: str


class SelectionRequest(BaseModel):
    item_id: str | None = None


class PlayheadRequest(BaseModel):
    time: float


class PlayheadResponse(BaseModel):
    current_time: float


class PlaybackRequest(BaseModel):
    playing: bool


class HistoryResponse(BaseModel):
    applied: bool


class ExportRequest(BaseModel):
    quality: Literal["high", "medium", "low"] = "medium"
    format: Literal["mp4", "webm", "avi"] = "mp4"
    resolution: Literal["1920x1080", "1280x720", "854x480"] = "1920x1080"


class ExportJobResponse(BaseModel):
    job_id: str
    status: Literal["submitted", "processing", "completed", "failed"]
    estimated_size_mb: float
    last_message: str = ""
    output_ref: str | None = None
    reason: str | None = None


class ExportMessageRequest(BaseModel):
    message: str = Field(min_length=1)
