"""Drawing service: turns prompts and drawings into image options.

Generation goes through one configured provider. Fallback to canned demo
data happens in exactly two places: when the provider is disabled (and the
environment allows mocks) and when the provider reports a browser
restriction. Every other provider failure propagates unchanged.
"""

from __future__ import annotations

import threading

from .errors import BrowserRestricted, EmptyResult, ProviderMisconfigured
from .events import EventWriter, emit_event
from .mock_data import MOCK_DRAWINGS, MOCK_OUTLINES
from .models import ImageOption
from .providers.base import GenerationParams, GenerationProvider, OutlineProvider
from .providers.prompts import outline_prompt


OUTLINE_COUNT = 3


class DrawingService:
    def __init__(
        self,
        provider: GenerationProvider,
        *,
        num_outputs: int = 4,
        guidance_scale: float = 7.0,
        allow_mock_fallback: bool = True,
        outline_via_provider: bool = False,
        events: EventWriter | None = None,
    ) -> None:
        self.provider = provider
        self.num_outputs = num_outputs
        self.guidance_scale = guidance_scale
        self.allow_mock_fallback = allow_mock_fallback
        self.outline_via_provider = outline_via_provider
        self.events = events

    def generate_drawings(
        self,
        description: str,
        provider_enabled: bool,
        credential: str | None,
        cancel_event: threading.Event | None = None,
    ) -> list[ImageOption]:
        if not provider_enabled:
            return self._mock_drawings("provider_disabled")
        if not self._has_credential(credential):
            raise ProviderMisconfigured(
                f"{self.provider.name} is enabled but not properly configured. Please set your API key."
            )

        params = GenerationParams(
            prompt=description,
            num_outputs=self.num_outputs,
            guidance_scale=self.guidance_scale,
        )
        try:
            urls = self.provider.submit_and_await(params, credential, cancel_event=cancel_event)
        except BrowserRestricted as exc:
            emit_event(self.events, "mock_fallback", reason="browser_restricted", message=str(exc))
            return list(MOCK_DRAWINGS)

        if not urls:
            raise EmptyResult("No images were generated. Please try again with a different description.")
        options = [
            ImageOption(id=str(idx + 1), url=url, alt=f"AI generated drawing of {description}")
            for idx, url in enumerate(urls)
        ]
        emit_event(self.events, "drawings_generated", provider=self.provider.name, count=len(options))
        return options

    def generate_outlines(
        self,
        drawing: ImageOption,
        provider_enabled: bool,
        credential: str | None,
        style: str = "simple",
        cancel_event: threading.Event | None = None,
    ) -> list[ImageOption]:
        # Validates the style even when the canned set is served.
        outline_prompt(style)
        if not self._outlines_via_provider(provider_enabled, credential):
            emit_event(self.events, "outlines_generated", source="mock", drawing_id=drawing.id)
            return list(MOCK_OUTLINES)

        try:
            urls = self.provider.convert_to_outline(  # type: ignore[attr-defined]
                drawing.url,
                style,
                credential,
                count=OUTLINE_COUNT,
                cancel_event=cancel_event,
            )
        except BrowserRestricted as exc:
            emit_event(self.events, "mock_fallback", reason="browser_restricted", message=str(exc))
            return list(MOCK_OUTLINES)

        if not urls:
            raise EmptyResult("No outlines were generated for the selected drawing.")
        options = [
            ImageOption(id=str(idx + 1), url=url, alt=f"{style} outline {idx + 1}")
            for idx, url in enumerate(urls[:OUTLINE_COUNT])
        ]
        emit_event(
            self.events,
            "outlines_generated",
            source=self.provider.name,
            drawing_id=drawing.id,
            count=len(options),
        )
        return options

    def _mock_drawings(self, reason: str) -> list[ImageOption]:
        if not self.allow_mock_fallback:
            raise ProviderMisconfigured(
                f"{self.provider.name} is not enabled. Please enable it in settings."
            )
        emit_event(self.events, "mock_fallback", reason=reason)
        return list(MOCK_DRAWINGS)

    def _has_credential(self, credential: str | None) -> bool:
        if not getattr(self.provider, "requires_credential", True):
            return True
        return bool((credential or "").strip())

    def _outlines_via_provider(self, provider_enabled: bool, credential: str | None) -> bool:
        if not self.outline_via_provider or not provider_enabled:
            return False
        if not isinstance(self.provider, OutlineProvider):
            return False
        return self._has_credential(credential)
