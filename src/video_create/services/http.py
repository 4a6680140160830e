"""Minimal JSON-over-HTTP transport shared by the backend clients."""

from __future__ import annotations

import json
from typing import Callable
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

# (method, url, body, headers, timeout_sec) -> decoded JSON object
HTTPTransport = Callable[[str, str, bytes | None, dict[str, str], float], dict[str, object]]


class BackendResponseError(RuntimeError):
    """Raised when the backend answers with something other than a JSON object."""


TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    HTTPError,
    URLError,
    OSError,
    TimeoutError,
    json.JSONDecodeError,
    BackendResponseError,
)


def default_http_transport(
    method: str,
    url: str,
    body: bytes | None,
    headers: dict[str, str],
    timeout_sec: float,
) -> dict[str, object]:
    req = Request(url, data=body, headers=headers, method=method)
    with urlopen(req, timeout=timeout_sec) as resp:  # noqa: S310
        raw = resp.read().decode("utf-8")
    decoded = json.loads(raw) if raw.strip() else {}
    if not isinstance(decoded, dict):
        raise BackendResponseError("backend response must be a JSON object")
    return decoded


def json_body(payload: dict[str, object]) -> bytes:
    return json.dumps(payload).encode("utf-8")


def auth_headers(api_key: str, content_type: str | None = "application/json") -> dict[str, str]:
    headers: dict[str, str] = {}
    if content_type:
        headers["Content-Type"] = content_type
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers
