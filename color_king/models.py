"""Wizard data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .utils import serialize


MIN_COPIES = 1
MAX_COPIES = 10


class PageSize(str, Enum):
    A4 = "A4"
    A3 = "A3"


class OutlineThickness(str, Enum):
    THIN = "thin"
    MEDIUM = "medium"
    THICK = "thick"


class OutlineColor(str, Enum):
    BLACK = "black"
    GRAY = "gray"
    BLUE = "blue"


@dataclass(frozen=True)
class ImageOption:
    id: str
    url: str
    alt: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "url": self.url, "alt": self.alt}


@dataclass
class PrintSettings:
    page_size: PageSize = PageSize.A4
    outline_thickness: OutlineThickness = OutlineThickness.MEDIUM
    outline_color: OutlineColor = OutlineColor.BLACK
    copies: int = 1


@dataclass
class WizardSession:
    description: str = ""
    is_generating: bool = False
    drawing_options: list[ImageOption] = field(default_factory=list)
    selected_drawing: ImageOption | None = None
    outline_options: list[ImageOption] = field(default_factory=list)
    selected_outline: ImageOption | None = None
    print_settings: PrintSettings = field(default_factory=PrintSettings)
    provider_credential: str | None = None
    provider_enabled: bool = False

    def to_dict(self) -> dict[str, Any]:
        payload = serialize(self)
        # The credential itself never leaves the process.
        payload.pop("provider_credential", None)
        payload["has_provider_credential"] = bool(self.provider_credential)
        return payload


def find_option(options: list[ImageOption], option_id: str) -> ImageOption | None:
    for option in options:
        if option.id == option_id:
            return option
    return None
