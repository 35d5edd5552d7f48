"""Wizard steps and their entry guards."""

from __future__ import annotations

from enum import Enum

from .models import WizardSession


class Step(str, Enum):
    DESCRIBE = "describe"
    CHOOSE_DRAWING = "choose-drawing"
    CHOOSE_OUTLINE = "choose-outline"
    PRINT_SETTINGS = "print-settings"
    PREVIEW = "preview"

    @property
    def route(self) -> str:
        return f"/{self.value}"

    @property
    def number(self) -> int:
        return list(Step).index(self) + 1


def can_enter(step: Step, session: WizardSession) -> bool:
    if step is Step.DESCRIBE:
        return True
    if step is Step.CHOOSE_DRAWING:
        return bool(session.drawing_options)
    if step is Step.CHOOSE_OUTLINE:
        return session.selected_drawing is not None and bool(session.outline_options)
    return session.selected_outline is not None


def resolve_step(step: Step, session: WizardSession) -> Step:
    return step if can_enter(step, session) else Step.DESCRIBE


def step_from_route(route: str) -> Step | None:
    slug = route.strip("/")
    for step in Step:
        if step.value == slug:
            return step
    return None
