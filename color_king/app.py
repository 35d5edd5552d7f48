"""Application wiring: one context object per running process."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from .config import AppConfig
from .events import EventWriter
from .local_storage import CredentialStore
from .providers import build_provider
from .providers.openai import OpenAIProvider
from .service import DrawingService
from .store import WizardStore


@dataclass
class AppContext:
    config: AppConfig
    store: WizardStore
    events: EventWriter
    function_provider: OpenAIProvider


def build_app(config: AppConfig, session_id: str | None = None) -> AppContext:
    events = EventWriter(config.events_path, session_id or str(uuid.uuid4()))
    service = DrawingService(
        build_provider(config),
        num_outputs=config.num_outputs,
        guidance_scale=config.guidance_scale,
        allow_mock_fallback=config.allow_mock_fallback,
        outline_via_provider=config.outline_via_provider,
        events=events,
    )
    store = WizardStore(service, CredentialStore(config.local_storage_path), events)
    function_provider = OpenAIProvider(
        config.openai_api_base,
        model=config.openai_model,
        timeout_s=config.request_timeout_s,
    )
    return AppContext(config=config, store=store, events=events, function_provider=function_provider)
