import json
from pathlib import Path

import pytest

from video_create.project.codec import document_to_items, state_to_document, to_export_payload
from video_create.project.migration import migrate_project
from video_create.project.repository import FileProjectRepository, ProjectClient, ProjectLoadError
from video_create.timeline.models import Geometry, ItemDraft, Position, TextItem, VideoItem
from video_create.timeline.store import CompositionStore


def _legacy_project() -> dict[str, object]:
    return {
        "projectId": "p-legacy",
        "projectName": "Holiday cut",
        "duration": 120,
        "mediaItems": [
            {"id": "v1", "type": "video", "name": "beach.mp4", "url": "/uploads/u/beach.mp4",
             "startTime": 0, "endTime": 30, "duration": 45, "track": 0, "isMuted": True},
            {"id": "t1", "type": "subtitle", "content": "Day one", "startTime": 2, "endTime": 2.1,
             "track": 1, "position": {"x": 120, "y": 40}, "fontSize": 300, "fontWeight": "bold"},
            {"id": "x1", "type": "sticker", "startTime": 0, "endTime": 5},
        ],
    }


def test_migrate_legacy_camel_case_project() -> None:
    document = migrate_project(_legacy_project())

    assert document.format_version == 2
    assert document.project_id == "p-legacy"
    assert document.meta.title == "Holiday cut"
    assert [item.item_id for item in document.items] == ["v1", "t1"]

    video, text = document.items
    assert video.mute is True
    assert video.media_ref == "/uploads/u/beach.mp4"
    assert video.source_duration == 45.0

    assert text.kind == "text"
    assert text.end_time == pytest.approx(2.5)
    assert text.geometry.position.x == 100.0  # type: ignore[union-attr]
    assert text.typography.font_size == 120  # type: ignore[union-attr]
    assert text.typography.font_weight == "bold"  # type: ignore[union-attr]
    assert len(document.migration_warnings) == 2


def test_v2_document_passes_through() -> None:
    current = {
        "format_version": 2,
        "project_id": "p2",
        "items": [{"item_id": "a", "kind": "audio", "start_time": 0, "end_time": 4}],
    }
    document = migrate_project(current)
    assert document.items[0].kind == "audio"


def test_unknown_format_version_is_rejected() -> None:
    with pytest.raises(ValueError):
        migrate_project({"format_version": 7})


def test_document_round_trip_through_store() -> None:
    store = CompositionStore()
    video_id = store.add_item(ItemDraft(kind="video", name="v", start_time=0.0, end_time=12.0, mute=True))
    text_id = store.add_text("Title")
    store.update_item(text_id, x=5.0, font_style="italic")
    store.initialize_project("p1", "Demo", list(store.state.items))

    document = state_to_document(store.state)
    restored = {item.item_id: item for item in document_to_items(document)}

    video = restored[video_id]
    text = restored[text_id]
    assert isinstance(video, VideoItem) and video.mute is True
    assert isinstance(text, TextItem)
    assert text.geometry.position == Position(5.0, 50.0)
    assert text.typography.font_style == "italic"
    assert document.meta.title == "Demo"


def test_export_payload_uses_camel_case_records() -> None:
    store = CompositionStore(min_duration=60.0)
    store.add_item(ItemDraft(kind="video", name="v", start_time=0.0, end_time=12.0, media_ref="/u/v.mp4"))
    store.add_item(
        ItemDraft(kind="image", name="logo", start_time=1.0, end_time=3.0, geometry=Geometry(Position(5, 5), 10, 10))
    )

    payload = to_export_payload(store.state)
    assert payload["duration"] == 60.0
    assert payload["aspectRatio"] == "16:9"
    video, image = payload["mediaItems"]
    assert video["type"] == "video"
    assert video["startTime"] == 0.0 and video["endTime"] == 12.0
    assert video["url"] == "/u/v.mp4"
    assert video["isMuted"] is False
    assert image["position"] == {"x": 5, "y": 5}
    assert image["width"] == 10
    assert "isMuted" not in image


def test_file_repository_save_and_load(tmp_path: Path) -> None:
    repo = FileProjectRepository(tmp_path)
    document = migrate_project(_legacy_project())

    path = repo.save(document)
    assert path.exists()
    assert repo.list_ids() == ["p-legacy"]

    loaded = repo.load("p-legacy")
    assert loaded.project_id == "p-legacy"
    assert len(loaded.items) == 2


def test_file_repository_keeps_similar_ids_apart(tmp_path: Path) -> None:
    repo = FileProjectRepository(tmp_path)
    document = migrate_project(_legacy_project())
    ids = ["a.b", "ab", "team/demo", "a b"]

    paths = {repo.save(document.model_copy(update={"project_id": project_id})) for project_id in ids}
    assert len(paths) == len(ids)
    assert all(path.parent == tmp_path for path in paths)
    assert repo.list_ids() == sorted(ids)
    for project_id in ids:
        assert repo.load(project_id).project_id == project_id

    with pytest.raises(ValueError):
        repo.path_for("")


def test_file_repository_removes_temp_file_when_write_fails(tmp_path: Path, monkeypatch) -> None:  # type: ignore[no-untyped-def]
    from video_create.project import repository

    def failing_replace(src, dst):  # type: ignore[no-untyped-def]
        raise OSError("disk full")

    monkeypatch.setattr(repository.os, "replace", failing_replace)
    repo = FileProjectRepository(tmp_path)

    with pytest.raises(OSError):
        repo.save(migrate_project(_legacy_project()))
    assert list(tmp_path.iterdir()) == []


def test_file_repository_reports_broken_files(tmp_path: Path) -> None:
    repo = FileProjectRepository(tmp_path)
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(ProjectLoadError):
        repo.load("broken")
    with pytest.raises(ProjectLoadError):
        repo.load("missing")


def test_project_client_fetches_and_migrates() -> None:
    calls: list[tuple[str, str]] = []

    def transport(method, url, body, headers, timeout):  # type: ignore[no-untyped-def]
        calls.append((method, url))
        return json.loads(json.dumps(_legacy_project()))

    client = ProjectClient(base_url="http://backend:8080/", transport=transport)
    document = client.load("p-legacy")

    assert calls == [("GET", "http://backend:8080/projects/p-legacy")]
    assert document.meta.title == "Holiday cut"


def test_project_client_wraps_transport_errors() -> None:
    def transport(method, url, body, headers, timeout):  # type: ignore[no-untyped-def]
        raise OSError("connection refused")

    with pytest.raises(ProjectLoadError):
        ProjectClient(transport=transport).load("p1")
