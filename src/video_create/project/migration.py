"""Project migration from the web client's camelCase records."""

from __future__ import annotations

import logging
from copy import deepcopy
from typing import Any
from uuid import uuid4

from video_create.project.schema import CURRENT_FORMAT_VERSION, ProjectDocument
from video_create.timeline.models import MIN_ITEM_SPAN_SEC

logger = logging.getLogger(__name__)

_LEGACY_TYPE_MAP = {"video": "video", "audio": "audio", "image": "image", "text": "text", "subtitle": "text"}


def migrate_project(project_data: dict[str, Any]) -> ProjectDocument:
    original = deepcopy(project_data)
    format_version = int(original.get("format_version", 1))

    if format_version == CURRENT_FORMAT_VERSION:
        return ProjectDocument.model_validate(original)
    if format_version != 1:
        raise ValueError(f"Unsupported format_version={format_version}")

    warnings: list[str] = []
    raw_items = original.get("mediaItems", original.get("items", []))
    if not isinstance(raw_items, list):
        warnings.append("mediaItems was not a list and has been dropped")
        raw_items = []

    items: list[dict[str, Any]] = []
    for idx, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            warnings.append(f"mediaItems[{idx}] is not an object")
            continue
        converted = _convert_legacy_item(raw, warnings, idx)
        if converted is not None:
            items.append(converted)

    name = str(original.get("projectName") or original.get("name") or "Untitled project")
    migrated = {
        "format_version": CURRENT_FORMAT_VERSION,
        "project_id": _optional_str(original.get("projectId") or original.get("id")),
        "meta": {"title": name},
        "duration": _as_float(original.get("duration"), 0.0),
        "aspect_ratio": str(original.get("aspectRatio") or "16:9"),
        "items": items,
        "migration_warnings": warnings,
    }
    for warning in warnings:
        logger.warning("project migration: %s", warning)
    return ProjectDocument.model_validate(migrated)


def _convert_legacy_item(raw: dict[str, Any], warnings: list[str], idx: int) -> dict[str, Any] | None:
    kind = _LEGACY_TYPE_MAP.get(str(raw.get("type", "")).strip().lower())
    if kind is None:
        warnings.append(f"mediaItems[{idx}] has unsupported type '{raw.get('type')}'")
        return None

    start = max(_as_float(raw.get("startTime", raw.get("start")), 0.0), 0.0)
    end = _as_float(raw.get("endTime"), -1.0)
    if end < 0.0:
        end = start + _as_float(raw.get("duration"), 0.0)
    if end - start < MIN_ITEM_SPAN_SEC:
        warnings.append(f"mediaItems[{idx}] was shorter than {MIN_ITEM_SPAN_SEC}s and has been extended")
        end = start + MIN_ITEM_SPAN_SEC

    record: dict[str, Any] = {
        "item_id": str(raw.get("id") or uuid4().hex),
        "kind": kind,
        "name": str(raw.get("name") or raw.get("title") or kind.title()),
        "start_time": start,
        "end_time": end,
        "track": max(int(_as_float(raw.get("track"), 0.0)), 0),
        "media_ref": _optional_str(raw.get("url") or raw.get("src")),
        "source_duration": _as_float(raw.get("duration"), 0.0) or None,
    }
    if kind in ("video", "audio"):
        record["mute"] = bool(raw.get("isMuted", False))
    if kind in ("image", "text"):
        position = raw.get("position") if isinstance(raw.get("position"), dict) else {}
        record["geometry"] = {
            "position": {
                "x": min(max(_as_float(position.get("x"), 50.0), 0.0), 100.0),
                "y": min(max(_as_float(position.get("y"), 50.0), 0.0), 100.0),
            },
            "width": raw.get("width"),
            "height": raw.get("height"),
            "rotation": raw.get("rotation"),
        }
    if kind == "text":
        font_size = int(_as_float(raw.get("fontSize"), 32.0))
        record["typography"] = {
            "content": str(raw.get("content") or raw.get("title") or ""),
            "font_family": str(raw.get("fontFamily") or "Arial"),
            "font_size": min(max(font_size, 12), 120),
            "font_color": str(raw.get("fontColor") or "#000000"),
            "font_weight": "bold" if raw.get("fontWeight") == "bold" else "normal",
            "font_style": "italic" if raw.get("fontStyle") == "italic" else "normal",
            "text_align": raw.get("textAlign") if raw.get("textAlign") in ("left", "center", "right") else "center",
        }
    return record


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
