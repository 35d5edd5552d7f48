"""Runtime configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from .utils import getenv_flag, getenv_float, getenv_int


PROVIDER_NAMES = ("replicate", "openai", "proxy")

DEFAULT_STATE_DIR = Path.home() / ".color_king"
DEFAULT_REPLICATE_API_BASE = "https://api.replicate.com/v1"
DEFAULT_OPENAI_API_BASE = "https://api.openai.com/v1"
# Line-art model used for coloring pages.
DEFAULT_REPLICATE_VERSION = "435061a1b5a4c1e26740464bf786efdfa9cb3a3ac488595a2de23e143fdb0117"


@dataclass
class AppConfig:
    provider: str = "replicate"
    replicate_api_base: str = DEFAULT_REPLICATE_API_BASE
    replicate_version: str = DEFAULT_REPLICATE_VERSION
    openai_api_base: str = DEFAULT_OPENAI_API_BASE
    openai_model: str = "dall-e-3"
    proxy_url: str | None = None
    proxy_anon_key: str | None = None
    server_openai_api_key: str | None = None
    poll_interval_s: float = 10.0
    max_poll_attempts: int = 30
    max_network_retries: int = 3
    request_timeout_s: float = 60.0
    num_outputs: int = 4
    guidance_scale: float = 7.0
    direct_from_browser: bool = False
    allow_mock_fallback: bool = True
    outline_via_provider: bool = False
    state_dir: Path = field(default_factory=lambda: DEFAULT_STATE_DIR)

    @classmethod
    def from_env(cls) -> "AppConfig":
        provider = (os.getenv("COLORKING_PROVIDER") or "replicate").strip().lower()
        if provider not in PROVIDER_NAMES:
            raise RuntimeError(
                f"COLORKING_PROVIDER must be one of {', '.join(PROVIDER_NAMES)} (got {provider!r})."
            )
        state_dir = os.getenv("COLORKING_STATE_DIR")
        return cls(
            provider=provider,
            replicate_api_base=os.getenv("COLORKING_REPLICATE_API_BASE") or DEFAULT_REPLICATE_API_BASE,
            replicate_version=os.getenv("COLORKING_REPLICATE_VERSION") or DEFAULT_REPLICATE_VERSION,
            openai_api_base=os.getenv("COLORKING_OPENAI_API_BASE") or DEFAULT_OPENAI_API_BASE,
            openai_model=os.getenv("COLORKING_OPENAI_MODEL") or "dall-e-3",
            proxy_url=os.getenv("COLORKING_PROXY_URL") or None,
            proxy_anon_key=os.getenv("COLORKING_PROXY_ANON_KEY") or None,
            server_openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            poll_interval_s=getenv_float("COLORKING_POLL_INTERVAL", 10.0),
            max_poll_attempts=getenv_int("COLORKING_MAX_POLL_ATTEMPTS", 30),
            max_network_retries=getenv_int("COLORKING_MAX_NETWORK_RETRIES", 3),
            request_timeout_s=getenv_float("COLORKING_REQUEST_TIMEOUT", 60.0),
            direct_from_browser=getenv_flag("COLORKING_DIRECT_FROM_BROWSER", False),
            allow_mock_fallback=getenv_flag("COLORKING_ALLOW_MOCK", True),
            outline_via_provider=getenv_flag("COLORKING_OUTLINE_VIA_PROVIDER", False),
            state_dir=Path(state_dir).expanduser() if state_dir else DEFAULT_STATE_DIR,
        )

    @property
    def events_path(self) -> Path:
        return self.state_dir / "events.jsonl"

    @property
    def local_storage_path(self) -> Path:
        return self.state_dir / "local_storage.json"

    @property
    def print_dir(self) -> Path:
        return self.state_dir / "prints"
