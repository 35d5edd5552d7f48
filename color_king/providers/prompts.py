"""Prompt templates for coloring pages and outline conversion."""

from __future__ import annotations

from ..errors import ValidationError
from .base import OUTLINE_STYLES


_OUTLINE_PROMPTS = {
    "simple": (
        "Convert this image into a simple black and white line drawing suitable for children to color. "
        "Use thick, clear outlines with minimal detail."
    ),
    "detailed": (
        "Convert this image into a detailed black and white coloring page with medium-thick outlines "
        "and moderate detail level."
    ),
    "artistic": (
        "Convert this image into an artistic black and white line drawing with varied line weights "
        "and intricate details suitable for adult coloring."
    ),
}


def coloring_page_prompt(prompt: str, variation: int = 1) -> str:
    text = (
        f"Create a detailed, child-friendly coloring page design: {prompt}. "
        "Make it suitable for coloring with clear, bold outlines and interesting details."
    )
    if variation > 1:
        text = f"{text} Style variation {variation}."
    return text


def outline_prompt(style: str) -> str:
    normalized = (style or "simple").strip().lower()
    if normalized not in OUTLINE_STYLES:
        raise ValidationError(f"Unknown outline style '{style}'. Expected one of: {', '.join(OUTLINE_STYLES)}.")
    return _OUTLINE_PROMPTS[normalized]
