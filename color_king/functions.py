"""Server-side image functions backing the proxied provider.

The vendor credential stays on the server; callers only send a prompt or
an image URL.
"""

from __future__ import annotations

from typing import Any

from .errors import ColorKingError, ProviderError, ProviderMisconfigured, ValidationError
from .providers.http_utils import fetch_image_bytes
from .providers.openai import OpenAIProvider
from .providers.prompts import outline_prompt


MAX_IMAGES = 4
OUTLINE_VARIANTS = 3


def generate_images(provider: OpenAIProvider, api_key: str | None, prompt: str, count: int = 4) -> dict[str, Any]:
    if not api_key:
        raise ProviderMisconfigured("OpenAI API key not configured")
    if not (prompt or "").strip():
        raise ValidationError("Prompt is required")

    images: list[dict[str, str]] = []
    target = max(1, min(int(count or MAX_IMAGES), MAX_IMAGES))
    for idx in range(target):
        # Failed variations are skipped.
        try:
            url = provider.generate_one(prompt, idx + 1, api_key)
        except ColorKingError:
            continue
        images.append({"id": str(idx + 1), "url": url, "alt": f"Generated image {idx + 1}: {prompt}"})

    if not images:
        raise ProviderError("Failed to generate any images")
    return {"images": images}


def convert_to_outline(
    provider: OpenAIProvider,
    api_key: str | None,
    image_url: str,
    style: str = "simple",
) -> dict[str, Any]:
    if not api_key:
        raise ProviderMisconfigured("OpenAI API key not configured")
    if not (image_url or "").strip():
        raise ValidationError("Image URL is required")
    outline_prompt(style)

    outlines: list[dict[str, str]] = []
    try:
        image_bytes: bytes | None = fetch_image_bytes(image_url, provider.timeout_s)
    except ColorKingError:
        image_bytes = None
    if image_bytes is not None:
        for idx in range(OUTLINE_VARIANTS):
            try:
                urls = provider.create_variations(image_bytes, api_key, count=1)
            except ColorKingError:
                continue
            outlines.append({"id": str(idx + 1), "url": urls[0], "alt": f"{style} outline {idx + 1}"})

    if not outlines:
        # Every conversion failed: hand back the source image for each slot.
        outlines = [
            {"id": str(idx + 1), "url": image_url, "alt": f"{style} outline {idx + 1}"}
            for idx in range(OUTLINE_VARIANTS)
        ]
    return {"outlines": outlines}
