"""JSON-over-HTTP helpers that classify failures into the error taxonomy."""

from __future__ import annotations

import base64
import binascii
import json
import threading
import time
from typing import Any, Mapping
from urllib.error import HTTPError, URLError
from urllib.parse import unquote_to_bytes
from urllib.request import Request, urlopen

from ..errors import GenerationCancelled, InvalidCredential, NetworkError, ProviderError


_CREDENTIAL_MARKERS = (
    "invalid token",
    "authentication credentials were not provided",
    "incorrect api key",
    "invalid api key",
    "unauthenticated",
)


def post_json(
    url: str,
    payload: Mapping[str, Any],
    headers: Mapping[str, str],
    timeout_s: float,
    *,
    label: str,
) -> tuple[int, dict[str, Any]]:
    body = json.dumps(payload).encode("utf-8")
    req = Request(url, data=body, headers=dict(headers), method="POST")
    return _send(req, timeout_s, label=label)


def get_json(
    url: str,
    headers: Mapping[str, str],
    timeout_s: float,
    *,
    label: str,
) -> tuple[int, dict[str, Any]]:
    req = Request(url, headers=dict(headers), method="GET")
    return _send(req, timeout_s, label=label)


def send_request(req: Request, timeout_s: float, *, label: str) -> tuple[int, dict[str, Any]]:
    return _send(req, timeout_s, label=label)


def _send(req: Request, timeout_s: float, *, label: str) -> tuple[int, dict[str, Any]]:
    try:
        with urlopen(req, timeout=timeout_s) as response:
            status_code = int(getattr(response, "status", 200))
            raw = response.read().decode("utf-8")
    except HTTPError as exc:
        raw = exc.read().decode("utf-8", errors="replace") if exc.fp else str(exc)
        raise classify_http_error(exc.code, raw, label=label) from exc
    except URLError as exc:
        raise NetworkError(f"Network error: unable to connect to {label} ({exc.reason}).") from exc
    except OSError as exc:
        raise NetworkError(f"Network error: unable to connect to {label} ({exc}).") from exc
    try:
        payload_json = json.loads(raw) if raw.strip() else {}
    except ValueError as exc:
        raise ProviderError(f"{label} returned a non-JSON response.", status_code) from exc
    if not isinstance(payload_json, dict):
        payload_json = {"data": payload_json}
    return status_code, payload_json


def classify_http_error(status_code: int, raw: str, *, label: str) -> Exception:
    message = extract_error_message(raw) or f"{label} request failed"
    lowered = message.lower()
    if status_code in {401, 403} or any(marker in lowered for marker in _CREDENTIAL_MARKERS):
        return InvalidCredential(f"Invalid API key for {label}: {message}")
    return ProviderError(f"{label} error ({status_code}): {message}", status_code)


def extract_error_message(raw: str) -> str | None:
    text = (raw or "").strip()
    if not text:
        return None
    try:
        data = json.loads(text)
    except ValueError:
        return text[:500]
    if not isinstance(data, Mapping):
        return text[:500]
    error = data.get("error")
    if isinstance(error, Mapping):
        message = error.get("message")
        if message:
            return str(message)
    if isinstance(error, str) and error:
        return error
    detail = data.get("detail")
    if isinstance(detail, str) and detail:
        return detail
    if detail is not None:
        return json.dumps(detail)
    return text[:500]


def wait_or_cancel(cancel_event: threading.Event | None, seconds: float) -> None:
    if cancel_event is None:
        if seconds > 0:
            time.sleep(seconds)
        return
    if cancel_event.wait(max(0.0, seconds)):
        raise GenerationCancelled("Generation was cancelled.")


def check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise GenerationCancelled("Generation was cancelled.")


def fetch_image_bytes(url: str, timeout_s: float = 60.0, *, label: str = "image host") -> bytes:
    if url.startswith("data:"):
        header, _, data = url.partition(",")
        if ";base64" not in header:
            return unquote_to_bytes(data)
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ProviderError(f"Malformed image data URL ({exc}).") from exc
    req = Request(url, method="GET")
    try:
        with urlopen(req, timeout=timeout_s) as response:
            return response.read()
    except HTTPError as exc:
        raw = exc.read().decode("utf-8", errors="replace") if exc.fp else str(exc)
        raise classify_http_error(exc.code, raw, label=label) from exc
    except URLError as exc:
        raise NetworkError(f"Network error: unable to download image from {label} ({exc.reason}).") from exc
    except OSError as exc:
        raise NetworkError(f"Network error: unable to download image from {label} ({exc}).") from exc
