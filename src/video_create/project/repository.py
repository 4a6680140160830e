"""Project loading and saving: local JSON files and the backend project endpoint."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote, unquote

from pydantic import ValidationError

from video_create.config import DEFAULT_API_BASE_URL
from video_create.project.migration import migrate_project
from video_create.project.schema import ProjectDocument
from video_create.services.http import TRANSPORT_ERRORS, HTTPTransport, auth_headers, default_http_transport

logger = logging.getLogger(__name__)


class ProjectLoadError(RuntimeError):
    """Raised when a project cannot be fetched, read or validated."""


class FileProjectRepository:
    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    def path_for(self, project_id: str) -> Path:
        # Percent-encoding keeps distinct ids on distinct files and is reversible.
        if not project_id:
            raise ValueError("project_id must not be empty")
        return self._root / f"{quote(project_id, safe='')}.json"

    def load(self, project_id: str) -> ProjectDocument:
        path = self.path_for(project_id)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ProjectLoadError(f"cannot read project '{project_id}': {exc}") from exc
        if not isinstance(data, dict):
            raise ProjectLoadError(f"project '{project_id}' is not a JSON object")
        try:
            return migrate_project(data)
        except (ValidationError, ValueError) as exc:
            raise ProjectLoadError(f"project '{project_id}' is invalid: {exc}") from exc

    def save(self, document: ProjectDocument) -> Path:
        if not document.project_id:
            raise ValueError("document.project_id is required to save")
        path = self.path_for(document.project_id)
        tmp = path.with_name(path.name + ".tmp")
        try:
            tmp.write_text(document.model_dump_json(indent=2), encoding="utf-8")
            os.replace(tmp, path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise
        logger.info("saved project %s to %s", document.project_id, path)
        return path

    def list_ids(self) -> list[str]:
        return sorted(unquote(p.stem) for p in self._root.glob("*.json"))


@dataclass(slots=True)
class ProjectClient:
    base_url: str = DEFAULT_API_BASE_URL
    api_key: str = ""
    timeout_sec: float = 10.0
    transport: HTTPTransport | None = None

    @staticmethod
    def from_env() -> ProjectClient:
        from video_create.config import EditorSettings

        settings = EditorSettings.from_env()
        return ProjectClient(
            base_url=settings.api_base_url,
            api_key=os.getenv("VIDEO_CREATE_API_KEY", "").strip(),
            timeout_sec=settings.http_timeout_sec,
        )

    def load(self, project_id: str) -> ProjectDocument:
        url = f"{self.base_url.rstrip('/')}/projects/{quote(project_id, safe='')}"
        transport = self.transport or default_http_transport
        try:
            response = transport("GET", url, None, auth_headers(self.api_key, None), self.timeout_sec)
        except TRANSPORT_ERRORS as exc:
            raise ProjectLoadError(f"project request failed: {exc}") from exc
        response.setdefault("projectId", project_id)
        try:
            return migrate_project(response)
        except (ValidationError, ValueError) as exc:
            raise ProjectLoadError(f"project '{project_id}' is invalid: {exc}") from exc
