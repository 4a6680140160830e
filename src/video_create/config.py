"""Environment-driven editor settings and logging setup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

DEFAULT_API_BASE_URL = "http://localhost:8080"
DEFAULT_MIN_DURATION_SEC = 300.0


@dataclass(slots=True)
class EditorSettings:
    api_base_url: str = DEFAULT_API_BASE_URL
    http_timeout_sec: float = 10.0
    min_duration_sec: float = DEFAULT_MIN_DURATION_SEC
    drift_tolerance_sec: float = 0.1
    log_level: str = "INFO"

    @staticmethod
    def from_env() -> EditorSettings:
        base_url = os.getenv("VIDEO_CREATE_API_BASE_URL", "").strip() or DEFAULT_API_BASE_URL
        log_level = os.getenv("VIDEO_CREATE_LOG_LEVEL", "INFO").strip().upper() or "INFO"
        return EditorSettings(
            api_base_url=base_url.rstrip("/"),
            http_timeout_sec=max(_env_float("VIDEO_CREATE_HTTP_TIMEOUT_SEC", 10.0), 0.1),
            min_duration_sec=max(_env_float("VIDEO_CREATE_MIN_DURATION_SEC", DEFAULT_MIN_DURATION_SEC), 0.0),
            drift_tolerance_sec=max(_env_float("VIDEO_CREATE_DRIFT_TOLERANCE_SEC", 0.1), 0.01),
            log_level=log_level,
        )


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def configure_logging(level: str | int = "INFO") -> None:
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            resolved = logging.INFO
    else:
        resolved = level
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
