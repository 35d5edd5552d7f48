"""Step views: read-only view models and the actions that move the wizard forward."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping

from PIL import Image

from .errors import (
    BrowserRestricted,
    ColorKingError,
    GenerationTimeout,
    InvalidCredential,
    NetworkError,
    ProviderMisconfigured,
    ValidationError,
)
from .events import emit_event
from .mock_data import PROMPT_EXAMPLES
from .models import MAX_COPIES, MIN_COPIES, OutlineColor, OutlineThickness, PageSize
from .print_sheet import render_print_sheet, write_print_job
from .providers.base import OUTLINE_STYLES
from .providers.http_utils import fetch_image_bytes
from .steps import Step
from .store import WizardStore


@dataclass(frozen=True)
class Redirect:
    step: Step


ViewResult = dict[str, Any] | Redirect
ImageFetcher = Callable[[str], bytes]


def home_view(store: WizardStore) -> dict[str, Any]:
    return {
        "view": "home",
        "title": "Color King",
        "start": Step.DESCRIBE.route,
        "prompt_examples": list(PROMPT_EXAMPLES),
        "provider_enabled": store.session.provider_enabled,
    }


def describe_view(store: WizardStore) -> dict[str, Any]:
    session = store.session
    return _step_payload(
        Step.DESCRIBE,
        description=session.description,
        is_generating=session.is_generating,
        prompt_examples=list(PROMPT_EXAMPLES),
        provider_enabled=session.provider_enabled,
        has_provider_credential=bool(session.provider_credential),
    )


def choose_drawing_view(store: WizardStore) -> dict[str, Any]:
    session = store.session
    selected = session.selected_drawing
    return _step_payload(
        Step.CHOOSE_DRAWING,
        description=session.description,
        is_generating=session.is_generating,
        options=[option.to_dict() for option in session.drawing_options],
        selected_id=selected.id if selected else None,
        outline_styles=list(OUTLINE_STYLES),
    )


def choose_outline_view(store: WizardStore) -> dict[str, Any]:
    session = store.session
    selected = session.selected_outline
    return _step_payload(
        Step.CHOOSE_OUTLINE,
        drawing=session.selected_drawing.to_dict() if session.selected_drawing else None,
        options=[option.to_dict() for option in session.outline_options],
        selected_id=selected.id if selected else None,
    )


def print_settings_view(store: WizardStore) -> dict[str, Any]:
    session = store.session
    return _step_payload(
        Step.PRINT_SETTINGS,
        outline=session.selected_outline.to_dict() if session.selected_outline else None,
        settings=_settings_dict(store),
        choices={
            "page_size": [item.value for item in PageSize],
            "outline_thickness": [item.value for item in OutlineThickness],
            "outline_color": [item.value for item in OutlineColor],
            "copies": {"min": MIN_COPIES, "max": MAX_COPIES},
        },
    )


def preview_view(store: WizardStore) -> dict[str, Any]:
    session = store.session
    return _step_payload(
        Step.PREVIEW,
        outline=session.selected_outline.to_dict() if session.selected_outline else None,
        settings=_settings_dict(store),
        sheet=f"{Step.PREVIEW.route}/sheet.png",
    )


VIEWS: dict[Step, Callable[[WizardStore], dict[str, Any]]] = {
    Step.DESCRIBE: describe_view,
    Step.CHOOSE_DRAWING: choose_drawing_view,
    Step.CHOOSE_OUTLINE: choose_outline_view,
    Step.PRINT_SETTINGS: print_settings_view,
    Step.PREVIEW: preview_view,
}


def render_step(store: WizardStore, step: Step) -> ViewResult:
    resolved = store.resolve_step(step)
    if resolved is not step:
        return Redirect(resolved)
    return VIEWS[step](store)


# Actions. Each returns the step to navigate to.


def submit_description(store: WizardStore, description: str) -> Step:
    store.generate_drawing_options(description)
    return Step.CHOOSE_DRAWING


def choose_drawing(store: WizardStore, drawing_id: str, style: str = "simple") -> Step:
    if not store.can_enter(Step.CHOOSE_DRAWING):
        return Step.DESCRIBE
    store.select_drawing(drawing_id)
    store.generate_outline_options(drawing_id, style=style)
    return Step.CHOOSE_OUTLINE


def choose_outline(store: WizardStore, outline_id: str) -> Step:
    if not store.can_enter(Step.CHOOSE_OUTLINE):
        return Step.DESCRIBE
    store.select_outline(outline_id)
    return Step.PRINT_SETTINGS


def submit_print_settings(store: WizardStore, changes: Mapping[str, Any]) -> Step:
    if not store.can_enter(Step.PRINT_SETTINGS):
        return Step.DESCRIBE
    store.update_print_settings(changes)
    return Step.PREVIEW


def back_to_start(store: WizardStore) -> Step:
    store.reset_state()
    return Step.DESCRIBE


def build_print_sheet(store: WizardStore, fetch: ImageFetcher = fetch_image_bytes) -> Image.Image:
    outline = store.session.selected_outline
    if outline is None:
        raise ValidationError("Select an outline before previewing.")
    try:
        image_bytes: bytes | None = fetch(outline.url)
    except ColorKingError:
        image_bytes = None
    return render_print_sheet(image_bytes, store.session.print_settings, caption=outline.alt)


def print_selected(store: WizardStore, out_dir: Path, fetch: ImageFetcher = fetch_image_bytes) -> Path:
    page = build_print_sheet(store, fetch)
    path = write_print_job(page, store.session.print_settings.copies, out_dir)
    emit_event(
        store.events,
        "print_job_written",
        path=str(path),
        copies=store.session.print_settings.copies,
        page_size=store.session.print_settings.page_size.value,
    )
    return path


def alert_for(exc: BaseException) -> str:
    if isinstance(exc, (InvalidCredential, ProviderMisconfigured)):
        return "credential_prompt"
    if isinstance(exc, (NetworkError, BrowserRestricted)):
        return "network_help"
    if isinstance(exc, GenerationTimeout):
        return "retry_guidance"
    return "generic"


def _step_payload(step: Step, **payload: Any) -> dict[str, Any]:
    return {"view": step.value, "step": step.number, "route": step.route, **payload}


def _settings_dict(store: WizardStore) -> dict[str, Any]:
    settings = store.session.print_settings
    return {
        "page_size": settings.page_size.value,
        "outline_thickness": settings.outline_thickness.value,
        "outline_color": settings.outline_color.value,
        "copies": settings.copies,
    }
