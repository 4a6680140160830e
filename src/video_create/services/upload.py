"""Media upload client for the backend `/upload` endpoint."""

from __future__ import annotations

import logging
import mimetypes
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal
from uuid import uuid4

from video_create.config import DEFAULT_API_BASE_URL
from video_create.services.http import TRANSPORT_ERRORS, HTTPTransport, auth_headers, default_http_transport
from video_create.timeline.models import ItemDraft

logger = logging.getLogger(__name__)

MediaKind = Literal["video", "audio", "image", "unknown"]

DEFAULT_IMAGE_DURATION_SEC = 10.0
DEFAULT_MEDIA_DURATION_SEC = 10.0

_EXTENSION_KINDS: dict[str, MediaKind] = {
    ".mp4": "video",
    ".avi": "video",
    ".mov": "video",
    ".mkv": "video",
    ".webm": "video",
    ".mp3": "audio",
    ".wav": "audio",
    ".flac": "audio",
    ".aac": "audio",
    ".jpg": "image",
    ".jpeg": "image",
    ".png": "image",
    ".gif": "image",
    ".webp": "image",
}


class UploadError(RuntimeError):
    """Raised when media cannot be read or the upload request fails."""


def media_kind_for(filename: str) -> MediaKind:
    return _EXTENSION_KINDS.get(Path(filename).suffix.lower(), "unknown")


@dataclass(frozen=True, slots=True)
class UploadedMedia:
    name: str
    ref: str
    size_bytes: int
    kind: MediaKind

    def to_draft(self, duration: float | None = None, start_time: float = 0.0) -> ItemDraft:
        """Turn an uploaded file into a draft ready for `CompositionStore.add_item`.

        `duration` is the probed media length; images and unprobed media fall
        back to fixed defaults.
        """
        if self.kind == "unknown":
            raise UploadError(f"'{self.name}' is not a supported media type")
        if duration is not None and duration <= 0:
            raise ValueError("duration must be positive")
        if duration is None:
            span = DEFAULT_IMAGE_DURATION_SEC if self.kind == "image" else DEFAULT_MEDIA_DURATION_SEC
        else:
            span = duration
        return ItemDraft(
            kind=self.kind,
            name=self.name,
            start_time=start_time,
            end_time=start_time + span,
            media_ref=self.ref,
            source_duration=duration if self.kind != "image" else None,
        )


@dataclass(slots=True)
class UploadClient:
    base_url: str = DEFAULT_API_BASE_URL
    api_key: str = ""
    timeout_sec: float = 30.0
    transport: HTTPTransport | None = None

    @staticmethod
    def from_env() -> UploadClient:
        from video_create.config import EditorSettings

        settings = EditorSettings.from_env()
        return UploadClient(
            base_url=settings.api_base_url,
            api_key=os.getenv("VIDEO_CREATE_API_KEY", "").strip(),
            timeout_sec=max(settings.http_timeout_sec, 30.0),
        )

    def upload(self, paths: list[str | Path]) -> list[UploadedMedia]:
        if not paths:
            raise UploadError("no files to upload")
        boundary = f"----video-create-{uuid4().hex}"
        try:
            body = _encode_multipart([Path(p) for p in paths], boundary)
        except OSError as exc:
            raise UploadError(f"cannot read upload file: {exc}") from exc

        headers = auth_headers(self.api_key, f"multipart/form-data; boundary={boundary}")
        transport = self.transport or default_http_transport
        url = f"{self.base_url.rstrip('/')}/upload"
        try:
            response = transport("POST", url, body, headers, self.timeout_sec)
        except TRANSPORT_ERRORS as exc:
            raise UploadError(f"upload request failed: {exc}") from exc

        files = response.get("files")
        if not isinstance(files, list):
            raise UploadError(str(response.get("error") or "upload response has no 'files' list"))
        uploaded = [_parse_uploaded(entry) for entry in files]
        logger.info("uploaded %d file(s) to %s", len(uploaded), url)
        return uploaded


def _parse_uploaded(entry: object) -> UploadedMedia:
    if not isinstance(entry, dict):
        raise UploadError("upload response entry must be an object")
    name = str(entry.get("filename") or "")
    ref = str(entry.get("url") or "")
    if not name or not ref:
        raise UploadError("upload response entry requires 'filename' and 'url'")
    kind = entry.get("type")
    if kind not in ("video", "audio", "image"):
        kind = media_kind_for(name)
    try:
        size = int(entry.get("size") or 0)
    except (TypeError, ValueError):
        size = 0
    return UploadedMedia(name=name, ref=ref, size_bytes=size, kind=kind)


def _encode_multipart(paths: list[Path], boundary: str) -> bytes:
    chunks: list[bytes] = []
    for path in paths:
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        chunks.append(f"--{boundary}\r\n".encode("utf-8"))
        chunks.append(
            f'Content-Disposition: form-data; name="files"; filename="{path.name}"\r\n'
            f"Content-Type: {content_type}\r\n\r\n".encode("utf-8")
        )
        chunks.append(path.read_bytes())
        chunks.append(b"\r\n")
    chunks.append(f"--{boundary}--\r\n".encode("utf-8"))
    return b"".join(chunks)
