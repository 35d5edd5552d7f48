"""Provider construction from config."""

from __future__ import annotations

from ..config import AppConfig
from .base import GenerationProvider
from .openai import OpenAIProvider
from .proxy import ProxiedProvider
from .replicate import ReplicateProvider


def build_provider(config: AppConfig) -> GenerationProvider:
    if config.provider == "openai":
        return OpenAIProvider(
            config.openai_api_base,
            model=config.openai_model,
            timeout_s=config.request_timeout_s,
            direct_from_browser=config.direct_from_browser,
        )
    if config.provider == "proxy":
        return ProxiedProvider(
            config.proxy_url or "",
            anon_key=config.proxy_anon_key,
            timeout_s=config.request_timeout_s,
        )
    if config.provider == "replicate":
        return ReplicateProvider(
            config.replicate_api_base,
            config.replicate_version,
            poll_interval_s=config.poll_interval_s,
            max_poll_attempts=config.max_poll_attempts,
            max_network_retries=config.max_network_retries,
            timeout_s=config.request_timeout_s,
            direct_from_browser=config.direct_from_browser,
        )
    raise RuntimeError(f"No provider available for {config.provider}")

