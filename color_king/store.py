"""Wizard state store: the single writer of a WizardSession."""

from __future__ import annotations

import threading
from dataclasses import fields, replace
from typing import Any, Mapping

from .errors import GenerationCancelled, ValidationError
from .events import EventWriter, emit_event
from .local_storage import CredentialStore
from .models import (
    MAX_COPIES,
    MIN_COPIES,
    ImageOption,
    OutlineColor,
    OutlineThickness,
    PageSize,
    PrintSettings,
    WizardSession,
    find_option,
)
from .service import DrawingService
from .steps import Step, can_enter, resolve_step


_PRINT_FIELD_TYPES: dict[str, type] = {
    "page_size": PageSize,
    "outline_thickness": OutlineThickness,
    "outline_color": OutlineColor,
}


class WizardStore:
    """Holds one session and exposes its mutators and generation operations.

    Views read ``session`` and call methods; they never assign fields. The
    store does not queue or coalesce generations: callers must not start a
    second one while ``session.is_generating`` is true.
    """

    def __init__(
        self,
        service: DrawingService,
        credentials: CredentialStore | None = None,
        events: EventWriter | None = None,
    ) -> None:
        self.service = service
        self.credentials = credentials
        self.events = events
        self.session = WizardSession()
        self._cancel_event: threading.Event | None = None
        if credentials is not None:
            credential, enabled = credentials.load()
            self.session.provider_credential = credential
            self.session.provider_enabled = enabled
        emit_event(
            self.events,
            "session_started",
            provider=service.provider.name,
            provider_enabled=self.session.provider_enabled,
        )

    # Guards

    def can_enter(self, step: Step) -> bool:
        return can_enter(step, self.session)

    def resolve_step(self, step: Step) -> Step:
        return resolve_step(step, self.session)

    # Mutators

    def select_drawing(self, drawing_id: str) -> ImageOption:
        drawing = find_option(self.session.drawing_options, drawing_id)
        if drawing is None:
            raise ValidationError("Selected drawing not found.")
        self.session.selected_drawing = drawing
        return drawing

    def select_outline(self, outline_id: str) -> ImageOption:
        outline = find_option(self.session.outline_options, outline_id)
        if outline is None:
            raise ValidationError("Selected outline not found.")
        self.session.selected_outline = outline
        return outline

    def update_print_settings(self, changes: Mapping[str, Any]) -> PrintSettings:
        known = {item.name for item in fields(PrintSettings)}
        coerced: dict[str, Any] = {}
        for key, value in changes.items():
            if key not in known:
                raise ValidationError(f"Unknown print setting '{key}'.")
            if key == "copies":
                coerced[key] = _coerce_copies(value)
                continue
            enum_type = _PRINT_FIELD_TYPES[key]
            try:
                coerced[key] = enum_type(value)
            except ValueError as exc:
                allowed = ", ".join(member.value for member in enum_type)
                raise ValidationError(f"Invalid {key} '{value}'. Expected one of: {allowed}.") from exc
        self.session.print_settings = replace(self.session.print_settings, **coerced)
        return self.session.print_settings

    # Provider settings

    def save_provider_settings(self, credential: str | None) -> None:
        cleaned = (credential or "").strip()
        if cleaned:
            self.session.provider_credential = cleaned
            self.session.provider_enabled = True
        elif self.session.provider_enabled:
            self.session.provider_enabled = False
        self._persist_provider_settings()

    def set_provider_enabled(self, enabled: bool) -> None:
        self.session.provider_enabled = bool(enabled)
        self._persist_provider_settings()

    def clear_provider_credential(self) -> None:
        self.session.provider_credential = None
        self.session.provider_enabled = False
        self._persist_provider_settings()

    def _persist_provider_settings(self) -> None:
        if self.credentials is not None:
            self.credentials.save(self.session.provider_credential, self.session.provider_enabled)
        emit_event(
            self.events,
            "provider_settings_saved",
            provider_enabled=self.session.provider_enabled,
            has_credential=bool(self.session.provider_credential),
        )

    # Generation

    def generate_drawing_options(self, description: str) -> None:
        text = (description or "").strip()
        if not text:
            raise ValidationError("Please enter a description.")
        session = self.session
        session.description = description
        session.drawing_options = []
        session.selected_drawing = None
        session.outline_options = []
        session.selected_outline = None
        cancel_event = self._begin_generation("drawings", description=text)
        try:
            session.drawing_options = self.service.generate_drawings(
                text,
                session.provider_enabled,
                session.provider_credential,
                cancel_event=cancel_event,
            )
        except Exception as exc:
            self._record_failure("drawings", exc)
            raise
        finally:
            self._end_generation()

    def generate_outline_options(self, drawing_id: str, style: str = "simple") -> None:
        session = self.session
        drawing = find_option(session.drawing_options, drawing_id)
        if drawing is None:
            raise ValidationError("Selected drawing not found.")
        session.selected_drawing = drawing
        session.outline_options = []
        session.selected_outline = None
        cancel_event = self._begin_generation("outlines", drawing_id=drawing_id, style=style)
        try:
            session.outline_options = self.service.generate_outlines(
                drawing,
                session.provider_enabled,
                session.provider_credential,
                style=style,
                cancel_event=cancel_event,
            )
        except Exception as exc:
            self._record_failure("outlines", exc)
            raise
        finally:
            self._end_generation()

    def cancel_generation(self) -> bool:
        cancel_event = self._cancel_event
        if cancel_event is None or not self.session.is_generating:
            return False
        cancel_event.set()
        return True

    def _begin_generation(self, target: str, **payload: Any) -> threading.Event:
        cancel_event = threading.Event()
        self._cancel_event = cancel_event
        self.session.is_generating = True
        emit_event(self.events, "generation_started", target=target, **payload)
        return cancel_event

    def _end_generation(self) -> None:
        self.session.is_generating = False
        self._cancel_event = None

    def _record_failure(self, target: str, exc: Exception) -> None:
        event_type = "generation_cancelled" if isinstance(exc, GenerationCancelled) else "generation_failed"
        emit_event(
            self.events,
            event_type,
            target=target,
            error=str(exc),
            kind=getattr(exc, "kind", type(exc).__name__),
        )

    # Lifecycle

    def reset_state(self) -> None:
        credential = self.session.provider_credential
        enabled = self.session.provider_enabled
        self.session = WizardSession(provider_credential=credential, provider_enabled=enabled)
        emit_event(self.events, "session_reset")

    def snapshot(self) -> dict[str, Any]:
        return self.session.to_dict()


def _coerce_copies(value: Any) -> int:
    try:
        copies = int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValidationError(f"Copies must be a whole number between {MIN_COPIES} and {MAX_COPIES}.") from exc
    if isinstance(value, float) and value != copies:
        raise ValidationError(f"Copies must be a whole number between {MIN_COPIES} and {MAX_COPIES}.")
    if copies < MIN_COPIES or copies > MAX_COPIES:
        raise ValidationError(f"Copies must be between {MIN_COPIES} and {MAX_COPIES}.")
    return copies
