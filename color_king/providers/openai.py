"""OpenAI image provider (synchronous: one request returns the final images)."""

from __future__ import annotations

import threading
import time
from typing import Any, Mapping
from urllib.request import Request

from ..errors import ColorKingError, EmptyResult, InvalidCredential
from .base import GenerationParams, ensure_reachable
from .http_utils import check_cancelled, post_json, send_request
from .prompts import coloring_page_prompt


_LABEL = "OpenAI API"
MAX_OUTPUTS = 4


class OpenAIProvider:
    name = "openai"
    requires_credential = True

    def __init__(
        self,
        api_base: str | None = None,
        model: str = "dall-e-3",
        timeout_s: float = 90.0,
        *,
        direct_from_browser: bool = False,
    ) -> None:
        self.api_base = (api_base or "https://api.openai.com/v1").rstrip("/")
        self.model = model
        self.timeout_s = timeout_s
        self.direct_from_browser = direct_from_browser
        self.last_warnings: list[str] = []

    def submit_and_await(
        self,
        params: GenerationParams,
        credential: str | None,
        cancel_event: threading.Event | None = None,
    ) -> list[str]:
        api_key = (credential or "").strip()
        if not api_key:
            raise InvalidCredential("OpenAI API key missing.")
        ensure_reachable(_LABEL, self.direct_from_browser)

        warnings: list[str] = []
        urls: list[str] = []
        target = max(1, min(int(params.num_outputs or 1), MAX_OUTPUTS))
        for idx in range(target):
            check_cancelled(cancel_event)
            try:
                url = self.generate_one(params.prompt, idx + 1, api_key)
            except ColorKingError as exc:
                # The first image decides success; later variations are best-effort.
                if idx == 0:
                    raise
                warnings.append(f"Variation {idx + 1} failed: {exc}")
                continue
            urls.append(url)
        self.last_warnings = warnings
        return urls

    def generate_one(self, prompt: str, variation: int, credential: str) -> str:
        payload = build_generation_payload(prompt, variation, self.model)
        _, response = post_json(
            f"{self.api_base}/images/generations",
            payload,
            _headers(credential),
            self.timeout_s,
            label=_LABEL,
        )
        image_urls = extract_image_urls(response)
        if not image_urls:
            raise EmptyResult("OpenAI Images API returned no image data.")
        return image_urls[0]

    def create_variations(
        self,
        image_bytes: bytes,
        credential: str,
        count: int = 1,
        size: str = "1024x1024",
    ) -> list[str]:
        boundary = f"----ColorKingBoundary{int(time.time() * 1000)}"
        body = build_variation_form(boundary, image_bytes, {"n": count, "size": size, "response_format": "url"})
        req = Request(
            f"{self.api_base}/images/variations",
            data=body,
            headers={
                "Authorization": f"Bearer {credential}",
                "Content-Type": f"multipart/form-data; boundary={boundary}",
            },
            method="POST",
        )
        _, response = send_request(req, self.timeout_s, label=_LABEL)
        urls = extract_image_urls(response)
        if not urls:
            raise EmptyResult("OpenAI variations endpoint returned no image data.")
        return urls


def build_generation_payload(prompt: str, variation: int, model: str = "dall-e-3") -> dict[str, Any]:
    return {
        "prompt": coloring_page_prompt(prompt, variation),
        "model": model,
        "n": 1,
        "size": "1024x1024",
        "quality": "standard",
        "style": "natural",
    }


def extract_image_urls(response: Mapping[str, Any]) -> list[str]:
    data = response.get("data")
    if not isinstance(data, list):
        return []
    urls: list[str] = []
    for item in data:
        if not isinstance(item, Mapping):
            continue
        url = item.get("url")
        if isinstance(url, str) and url:
            urls.append(url)
            continue
        blob = item.get("b64_json")
        if isinstance(blob, str) and blob:
            urls.append(f"data:image/png;base64,{blob}")
    return urls


def build_variation_form(boundary: str, image_bytes: bytes, fields: Mapping[str, Any]) -> bytes:
    """Encode a variations upload: plain form fields, then the PNG as `image`."""
    marker = f"--{boundary}\r\n".encode("utf-8")
    parts: list[bytes] = []
    for key, value in fields.items():
        parts.append(marker)
        parts.append(f'Content-Disposition: form-data; name="{key}"\r\n\r\n{value}\r\n'.encode("utf-8"))
    parts.append(marker)
    parts.append(b'Content-Disposition: form-data; name="image"; filename="image.png"\r\nContent-Type: image/png\r\n\r\n')
    parts.append(image_bytes)
    parts.append(f"\r\n--{boundary}--\r\n".encode("utf-8"))
    return b"".join(parts)


def _headers(api_key: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
