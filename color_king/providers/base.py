"""Provider base classes."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from ..errors import BrowserRestricted


OUTLINE_STYLES = ("simple", "detailed", "artistic")


@dataclass
class GenerationParams:
    prompt: str
    num_outputs: int = 4
    guidance_scale: float = 7.0
    negative_prompt: str | None = None


class GenerationProvider(Protocol):
    name: str
    requires_credential: bool

    def submit_and_await(
        self,
        params: GenerationParams,
        credential: str | None,
        cancel_event: threading.Event | None = None,
    ) -> list[str]:
        ...


@runtime_checkable
class OutlineProvider(Protocol):
    def convert_to_outline(
        self,
        image_url: str,
        style: str,
        credential: str | None,
        count: int = 3,
        cancel_event: threading.Event | None = None,
    ) -> list[str]:
        ...


def ensure_reachable(provider_label: str, direct_from_browser: bool) -> None:
    if direct_from_browser:
        raise BrowserRestricted(
            f"Direct API calls from the browser to {provider_label} are blocked by cross-origin policy. "
            "Route requests through the proxy functions instead."
        )
