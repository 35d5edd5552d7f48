"""Canned demo drawings and outlines."""

from __future__ import annotations

from .models import ImageOption


MOCK_DRAWINGS: tuple[ImageOption, ...] = (
    ImageOption(
        id="1",
        url="https://images.unsplash.com/photo-1581344947731-c678889a686e?q=80&w=1000",
        alt="Football players running on field",
    ),
    ImageOption(
        id="2",
        url="https://images.unsplash.com/photo-1624526267942-ab0c0e53d1c1?q=80&w=1000",
        alt="Football players with guitars",
    ),
    ImageOption(
        id="3",
        url="https://images.unsplash.com/photo-1614632537197-38a17061c2bd?q=80&w=1000",
        alt="Children playing football",
    ),
    ImageOption(
        id="4",
        url="https://images.unsplash.com/photo-1560272564-c83b66b1ad12?q=80&w=1000",
        alt="Football stadium",
    ),
)

MOCK_OUTLINES: tuple[ImageOption, ...] = (
    ImageOption(
        id="1",
        url="https://images.unsplash.com/photo-1581344947731-c678889a686e?q=80&w=1000&auto=format&fit=crop&ixlib=rb-4.0.3",
        alt="Outline 1",
    ),
    ImageOption(
        id="2",
        url="https://images.unsplash.com/photo-1624526267942-ab0c0e53d1c1?q=80&w=1000&auto=format&fit=crop&ixlib=rb-4.0.3",
        alt="Outline 2",
    ),
    ImageOption(
        id="3",
        url="https://images.unsplash.com/photo-1614632537197-38a17061c2bd?q=80&w=1000&auto=format&fit=crop&ixlib=rb-4.0.3",
        alt="Outline 3",
    ),
)

PROMPT_EXAMPLES = (
    "Create a drawing of football players with guitars",
    "A cat wearing a crown and royal cape",
    "Dinosaurs playing in a playground",
    "A magical forest with fairies and unicorns",
    "Astronauts playing sports on the moon",
)
