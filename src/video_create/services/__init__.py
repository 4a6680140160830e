"""Backend service clients: media upload and export hand-off."""

from video_create.services.export import (
    ExportClient,
    ExportError,
    ExportJob,
    ExportProgress,
    ExportService,
    ExportSettings,
    parse_export_message,
)
from video_create.services.upload import UploadClient, UploadedMedia, UploadError, media_kind_for

__all__ = [
    "ExportClient",
    "ExportError",
    "ExportJob",
    "ExportProgress",
    "ExportService",
    "ExportSettings",
    "UploadClient",
    "UploadError",
    "UploadedMedia",
    "media_kind_for",
    "parse_export_message",
]
