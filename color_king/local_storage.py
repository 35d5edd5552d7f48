"""Durable key-value storage for the provider credential and enabled flag."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .utils import read_json, write_json


CREDENTIAL_KEY = "provider_credential"
ENABLED_KEY = "provider_enabled"


@dataclass
class CredentialStore:
    path: Path
    _payload: dict[str, Any] | None = field(default=None, init=False, repr=False)

    def _ensure_loaded(self, *, refresh: bool = False) -> dict[str, Any]:
        if refresh or self._payload is None:
            payload = read_json(self.path, {})
            self._payload = payload if isinstance(payload, dict) else {}
        return self._payload

    def load(self) -> tuple[str | None, bool]:
        payload = self._ensure_loaded(refresh=True)
        credential = payload.get(CREDENTIAL_KEY)
        if not isinstance(credential, str) or not credential:
            credential = None
        enabled = str(payload.get(ENABLED_KEY, "false")).strip().lower() == "true"
        return credential, enabled

    def save(self, credential: str | None, enabled: bool) -> None:
        payload = self._ensure_loaded(refresh=True)
        if credential:
            payload[CREDENTIAL_KEY] = credential
        else:
            payload.pop(CREDENTIAL_KEY, None)
        payload[ENABLED_KEY] = "true" if enabled else "false"
        write_json(self.path, payload)
