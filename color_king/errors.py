"""Error taxonomy shared by providers, the drawing service and the wizard."""

from __future__ import annotations


class ColorKingError(RuntimeError):
    kind = "error"


class ValidationError(ColorKingError):
    kind = "validation"


class InvalidCredential(ColorKingError):
    kind = "invalid_credential"


class NetworkError(ColorKingError):
    kind = "network"


class BrowserRestricted(ColorKingError):
    kind = "browser_restricted"


class ProviderError(ColorKingError):
    kind = "provider"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GenerationTimeout(ColorKingError):
    kind = "timeout"


class EmptyResult(ColorKingError):
    kind = "empty_result"


class ProviderMisconfigured(ColorKingError):
    kind = "provider_misconfigured"


class GenerationCancelled(ColorKingError):
    kind = "cancelled"
