import json
from pathlib import Path

import pytest

from video_create.services.export import (
    ExportClient,
    ExportError,
    ExportService,
    ExportSettings,
    parse_export_message,
)
from video_create.services.upload import UploadClient, UploadedMedia, UploadError, media_kind_for
from video_create.timeline.models import ItemDraft
from video_create.timeline.store import CompositionStore


class RecordingTransport:
    def __init__(self, response: dict[str, object]) -> None:
        self.response = response
        self.requests: list[dict[str, object]] = []

    def __call__(self, method, url, body, headers, timeout):  # type: ignore[no-untyped-def]
        self.requests.append({"method": method, "url": url, "body": body, "headers": headers, "timeout": timeout})
        return self.response


def test_parse_export_messages() -> None:
    processing = parse_export_message("Job 65f1a: Processing...")
    assert processing is not None
    assert (processing.job_id, processing.status) == ("65f1a", "processing")

    done = parse_export_message("Job 65f1a: Completed! Output: /uploads/u/exports/out.mp4")
    assert done is not None
    assert done.status == "completed"
    assert done.output_ref == "/uploads/u/exports/out.mp4"

    failed = parse_export_message("Job 65f1a: Failed! ffmpeg exited with status 1")
    assert failed is not None
    assert failed.status == "failed"
    assert failed.reason == "ffmpeg exited with status 1"

    assert parse_export_message("hello") is None


def test_export_settings_defaults_and_size_estimate() -> None:
    settings = ExportSettings()
    assert (settings.quality, settings.format, settings.resolution) == ("medium", "mp4", "1920x1080")
    assert settings.estimate_size_mb(120.0) == 50.0
    assert ExportSettings(quality="high").estimate_size_mb(60.0) == 50.0
    assert ExportSettings(quality="low").estimate_size_mb(30.0) == 5.0

    with pytest.raises(ValueError):
        ExportSettings(format="gif").validate()  # type: ignore[arg-type]


def test_export_client_posts_project_data_and_settings() -> None:
    transport = RecordingTransport({"message": "Export job submitted", "job_id": "job-1"})
    client = ExportClient(base_url="http://backend:8080", transport=transport)

    job_id = client.submit({"mediaItems": []}, ExportSettings(quality="low"))

    assert job_id == "job-1"
    request = transport.requests[0]
    assert request["method"] == "POST"
    assert request["url"] == "http://backend:8080/export"
    body = json.loads(request["body"])  # type: ignore[arg-type]
    assert body["projectData"] == {"mediaItems": []}
    assert body["settings"] == {"quality": "low", "format": "mp4", "resolution": "1920x1080"}


def test_export_client_errors() -> None:
    with pytest.raises(ExportError):
        ExportClient(transport=RecordingTransport({"error": "bad request"})).submit({}, ExportSettings())

    def broken(method, url, body, headers, timeout):  # type: ignore[no-untyped-def]
        raise TimeoutError("timed out")

    with pytest.raises(ExportError):
        ExportClient(transport=broken).submit({}, ExportSettings())


def test_export_service_tracks_job_to_completion_without_touching_composition() -> None:
    store = CompositionStore(min_duration=60.0)
    store.add_item(ItemDraft(kind="video", name="v", start_time=0.0, end_time=120.0))
    before = store.state

    service = ExportService(client=ExportClient(transport=RecordingTransport({"job_id": "job-9"})))
    seen: list[str] = []
    service.subscribe(lambda job: seen.append(job.status))

    job = service.submit(store.state, ExportSettings(quality="medium"))
    assert job.estimated_size_mb == 50.0

    final = service.follow(
        [
            "Job other: Processing...",
            "Job job-9: Processing...",
            "Job job-9: Completed! Output: /uploads/u/exports/final.mp4",
            "Job job-9: Failed! late message",
        ],
        job_id="job-9",
    )

    assert final is job
    assert job.status == "completed"
    assert job.output_ref == "/uploads/u/exports/final.mp4"
    assert job.download_url("http://backend:8080") == "http://backend:8080/uploads/u/exports/final.mp4"
    assert seen == ["submitted", "processing", "completed"]
    assert store.state is before


def test_export_failure_is_terminal() -> None:
    service = ExportService(client=ExportClient(transport=RecordingTransport({"job_id": "j"})))
    job = service.submit(CompositionStore().state)

    service.handle_message("Job j: Failed! out of disk")
    service.handle_message("Job j: Completed! Output: /x.mp4")

    assert job.status == "failed"
    assert job.reason == "out of disk"
    assert job.output_ref is None
    assert service.get_job("j") is job


def test_upload_client_posts_multipart_and_parses_files(tmp_path: Path) -> None:
    clip = tmp_path / "beach.mp4"
    clip.write_bytes(b"\x00\x01fake")
    transport = RecordingTransport(
        {"files": [{"filename": "beach.mp4", "url": "/uploads/u/1_beach.mp4", "size": 6, "type": "video"}]}
    )
    client = UploadClient(base_url="http://backend:8080", api_key="token", transport=transport)

    uploaded = client.upload([clip])

    assert uploaded == [UploadedMedia(name="beach.mp4", ref="/uploads/u/1_beach.mp4", size_bytes=6, kind="video")]
    request = transport.requests[0]
    assert request["url"] == "http://backend:8080/upload"
    headers = request["headers"]
    assert headers["Authorization"] == "Bearer token"  # type: ignore[index]
    assert headers["Content-Type"].startswith("multipart/form-data; boundary=")  # type: ignore[index]
    body = request["body"]
    assert b'name="files"; filename="beach.mp4"' in body  # type: ignore[operator]
    assert b"\x00\x01fake" in body  # type: ignore[operator]


def test_upload_errors(tmp_path: Path) -> None:
    with pytest.raises(UploadError):
        UploadClient(transport=RecordingTransport({"files": []})).upload([])
    with pytest.raises(UploadError):
        UploadClient(transport=RecordingTransport({"files": []})).upload([tmp_path / "missing.mp4"])
    existing = tmp_path / "a.png"
    existing.write_bytes(b"png")
    with pytest.raises(UploadError):
        UploadClient(transport=RecordingTransport({"error": "No files provided"})).upload([existing])


def test_uploaded_media_to_draft() -> None:
    assert media_kind_for("clip.MOV") == "video"
    assert media_kind_for("notes.txt") == "unknown"

    video = UploadedMedia(name="clip.mov", ref="/u/clip.mov", size_bytes=10, kind="video")
    draft = video.to_draft(duration=42.0, start_time=3.0)
    assert (draft.kind, draft.start_time, draft.end_time) == ("video", 3.0, 45.0)
    assert draft.source_duration == 42.0
    assert draft.media_ref == "/u/clip.mov"

    image = UploadedMedia(name="a.png", ref="/u/a.png", size_bytes=1, kind="image").to_draft()
    assert image.end_time == 10.0
    assert image.source_duration is None

    with pytest.raises(UploadError):
        UploadedMedia(name="a.txt", ref="/u/a.txt", size_bytes=1, kind="unknown").to_draft()
