"""Project schema, migration and persistence exports."""

from video_create.project.codec import document_to_items, state_to_document, to_export_payload
from video_create.project.migration import migrate_project
from video_create.project.repository import FileProjectRepository, ProjectClient, ProjectLoadError
from video_create.project.schema import CURRENT_FORMAT_VERSION, ProjectDocument

__all__ = [
    "CURRENT_FORMAT_VERSION",
    "FileProjectRepository",
    "ProjectClient",
    "ProjectDocument",
    "ProjectLoadError",
    "document_to_items",
    "migrate_project",
    "state_to_document",
    "to_export_payload",
]
