"""Export hand-off: submit the composition for rendering and follow job progress."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import asdict, dataclass, field
from typing import Callable, Iterable, Literal

from video_create.config import DEFAULT_API_BASE_URL
from video_create.project.codec import to_export_payload
from video_create.services.http import TRANSPORT_ERRORS, HTTPTransport, auth_headers, default_http_transport, json_body
from video_create.timeline.store import CompositionState

logger = logging.getLogger(__name__)

ExportQuality = Literal["high", "medium", "low"]
ExportFormat = Literal["mp4", "webm", "avi"]
ExportResolution = Literal["1920x1080", "1280x720", "854x480"]
JobStatus = Literal["submitted", "processing", "completed", "failed"]

SUPPORTED_QUALITIES: tuple[str, ...] = ("high", "medium", "low")
SUPPORTED_FORMATS: tuple[str, ...] = ("mp4", "webm", "avi")
SUPPORTED_RESOLUTIONS: tuple[str, ...] = ("1920x1080", "1280x720", "854x480")
TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "failed"})

_MB_PER_MINUTE = {"high": 50.0, "medium": 25.0, "low": 10.0}
_MESSAGE_RE = re.compile(r"^Job (?P<job_id>\S+?):\s*(?P<body>.*)$", re.DOTALL)


class ExportError(RuntimeError):
    """Raised when an export request cannot be submitted."""


@dataclass(frozen=True, slots=True)
class ExportSettings:
    quality: ExportQuality = "medium"
    format: ExportFormat = "mp4"
    resolution: ExportResolution = "1920x1080"

    def validate(self) -> None:
        if self.quality not in SUPPORTED_QUALITIES:
            raise ValueError(f"Unsupported quality '{self.quality}'")
        if self.format not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported format '{self.format}'")
        if self.resolution not in SUPPORTED_RESOLUTIONS:
            raise ValueError(f"Unsupported resolution '{self.resolution}'")

    def estimate_size_mb(self, duration_sec: float) -> float:
        return round(max(duration_sec, 0.0) / 60.0 * _MB_PER_MINUTE[self.quality], 1)


@dataclass(frozen=True, slots=True)
class ExportProgress:
    job_id: str
    status: JobStatus
    message: str
    output_ref: str | None = None
    reason: str | None = None


def parse_export_message(message: str) -> ExportProgress | None:
    """Parse one `Job <id>: ...` progress line pushed by the render backend.

    Returns None for lines that do not belong to a job.
    """
    match = _MESSAGE_RE.match(message.strip())
    if match is None:
        return None
    job_id = match.group("job_id")
    body = match.group("body").strip()
    if body.startswith("Completed!"):
        output = body.split("Output:", 1)[1].strip() if "Output:" in body else ""
        return ExportProgress(job_id, "completed", message, output_ref=output or None)
    if body.startswith("Completed"):
        # rendered, but the backend could not record the output
        return ExportProgress(job_id, "completed", message)
    if body.startswith("Failed!"):
        reason = body[len("Failed!") :].strip() or "export failed"
        return ExportProgress(job_id, "failed", message, reason=reason)
    return ExportProgress(job_id, "processing", message)


@dataclass(slots=True)
class ExportJob:
    job_id: str
    settings: ExportSettings
    status: JobStatus = "submitted"
    last_message: str = ""
    output_ref: str | None = None
    reason: str | None = None
    estimated_size_mb: float = 0.0

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def download_url(self, base_url: str) -> str | None:
        if self.output_ref is None:
            return None
        if self.output_ref.startswith(("http://", "https://")):
            return self.output_ref
        return f"{base_url.rstrip('/')}/{self.output_ref.lstrip('/')}"


@dataclass(slots=True)
class ExportClient:
    base_url: str = DEFAULT_API_BASE_URL
    api_key: str = ""
    timeout_sec: float = 10.0
    transport: HTTPTransport | None = None

    @staticmethod
    def from_env() -> ExportClient:
        from video_create.config import EditorSettings

        settings = EditorSettings.from_env()
        return ExportClient(
            base_url=settings.api_base_url,
            api_key=os.getenv("VIDEO_CREATE_API_KEY", "").strip(),
            timeout_sec=settings.http_timeout_sec,
        )

    def submit(self, payload: dict[str, object], settings: ExportSettings) -> str:
        settings.validate()
        body = json_body({"projectData": payload, "settings": asdict(settings)})
        transport = self.transport or default_http_transport
        url = f"{self.base_url.rstrip('/')}/export"
        try:
            response = transport("POST", url, body, auth_headers(self.api_key), self.timeout_sec)
        except TRANSPORT_ERRORS as exc:
            raise ExportError(f"export request failed: {exc}") from exc

        job_id = response.get("job_id")
        if not isinstance(job_id, str) or not job_id:
            raise ExportError(str(response.get("error") or "export response has no job_id"))
        logger.info("export job %s submitted: %s", job_id, response.get("message", ""))
        return job_id


ExportListener = Callable[[ExportJob], None]


@dataclass(slots=True)
class ExportService:
    """Tracks export jobs; reads composition snapshots and never writes to them."""

    client: ExportClient = field(default_factory=ExportClient)
    aspect_ratio: str = "16:9"
    _jobs: dict[str, ExportJob] = field(default_factory=dict)
    _listeners: list[ExportListener] = field(default_factory=list)

    def subscribe(self, listener: ExportListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def submit(self, state: CompositionState, settings: ExportSettings | None = None) -> ExportJob:
        settings = settings or ExportSettings()
        payload = to_export_payload(state, aspect_ratio=self.aspect_ratio)
        job_id = self.client.submit(payload, settings)
        job = ExportJob(
            job_id=job_id,
            settings=settings,
            estimated_size_mb=settings.estimate_size_mb(state.duration),
        )
        self._jobs[job_id] = job
        self._notify(job)
        return job

    def get_job(self, job_id: str) -> ExportJob | None:
        return self._jobs.get(job_id)

    def jobs(self) -> list[ExportJob]:
        return list(self._jobs.values())

    def handle_message(self, message: str) -> ExportJob | None:
        progress = parse_export_message(message)
        if progress is None:
            return None
        job = self._jobs.get(progress.job_id)
        if job is None:
            logger.debug("ignoring progress for unknown export job %s", progress.job_id)
            return None
        if job.is_terminal:
            return job

        job.status = progress.status
        job.last_message = progress.message
        if progress.status == "completed":
            job.output_ref = progress.output_ref
            logger.info("export job %s completed: %s", job.job_id, job.output_ref)
        elif progress.status == "failed":
            job.reason = progress.reason
            logger.warning("export job %s failed: %s", job.job_id, job.reason)
        self._notify(job)
        return job

    def follow(self, messages: Iterable[str], job_id: str | None = None) -> ExportJob | None:
        """Feed progress lines until `job_id` (or any tracked job) reaches a terminal state."""
        last: ExportJob | None = None
        for message in messages:
            job = self.handle_message(message)
            if job is None or (job_id is not None and job.job_id != job_id):
                continue
            last = job
            if job.is_terminal:
                break
        return last

    def _notify(self, job: ExportJob) -> None:
        for listener in list(self._listeners):
            listener(job)
