"""Proxied provider: same-origin functions that hold the vendor credential server-side."""

from __future__ import annotations

import threading
from typing import Any, Mapping

from ..errors import EmptyResult, ProviderError
from .base import GenerationParams
from .http_utils import check_cancelled, post_json


_LABEL = "image functions"


class ProxiedProvider:
    name = "proxy"
    requires_credential = False

    def __init__(self, base_url: str, anon_key: str | None = None, timeout_s: float = 120.0) -> None:
        if not base_url:
            raise ProviderError("Proxy URL is not configured. Set COLORKING_PROXY_URL.")
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.timeout_s = timeout_s

    def submit_and_await(
        self,
        params: GenerationParams,
        credential: str | None,
        cancel_event: threading.Event | None = None,
    ) -> list[str]:
        check_cancelled(cancel_event)
        data = self._invoke("generate-images", {"prompt": params.prompt, "count": params.num_outputs})
        images = data.get("images")
        if not isinstance(images, list):
            raise EmptyResult("No images returned from generation service.")
        return _urls(images)

    def convert_to_outline(
        self,
        image_url: str,
        style: str,
        credential: str | None,
        count: int = 3,
        cancel_event: threading.Event | None = None,
    ) -> list[str]:
        check_cancelled(cancel_event)
        data = self._invoke("convert-to-outline", {"imageUrl": image_url, "style": style})
        outlines = data.get("outlines")
        if not isinstance(outlines, list):
            raise EmptyResult("No outlines returned from conversion service.")
        return _urls(outlines)[:count]

    def _invoke(self, function_name: str, body: Mapping[str, Any]) -> dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if self.anon_key:
            headers["Authorization"] = f"Bearer {self.anon_key}"
        _, data = post_json(
            f"{self.base_url}/{function_name}", body, headers, self.timeout_s, label=_LABEL
        )
        error = data.get("error")
        if error:
            raise ProviderError(f"{function_name} failed: {error}")
        return data


def _urls(items: list[Any]) -> list[str]:
    urls: list[str] = []
    for item in items:
        if isinstance(item, Mapping) and isinstance(item.get("url"), str) and item["url"]:
            urls.append(item["url"])
    return urls
