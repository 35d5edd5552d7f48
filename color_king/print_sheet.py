"""Print sheet rendering for the preview and print steps."""

from __future__ import annotations

import time
from io import BytesIO
from pathlib import Path

from PIL import Image, ImageDraw, ImageFilter, ImageFont, ImageOps, UnidentifiedImageError

from .models import OutlineColor, OutlineThickness, PageSize, PrintSettings


PRINT_DPI = 150
PAGE_PIXELS: dict[PageSize, tuple[int, int]] = {
    PageSize.A4: (1240, 1754),
    PageSize.A3: (1754, 2480),
}
LINE_WIDTH: dict[OutlineThickness, int] = {
    OutlineThickness.THIN: 1,
    OutlineThickness.MEDIUM: 3,
    OutlineThickness.THICK: 5,
}
LINE_COLOR: dict[OutlineColor, tuple[int, int, int]] = {
    OutlineColor.BLACK: (0, 0, 0),
    OutlineColor.GRAY: (128, 128, 128),
    OutlineColor.BLUE: (37, 99, 235),
}
_LINE_THRESHOLD = 128
_MARGIN_RATIO = 0.06


def render_print_sheet(image_bytes: bytes | None, settings: PrintSettings, caption: str | None = None) -> Image.Image:
    width, height = PAGE_PIXELS[settings.page_size]
    page = Image.new("RGB", (width, height), (255, 255, 255))
    margin = int(min(width, height) * _MARGIN_RATIO)
    box = (width - 2 * margin, height - 2 * margin)

    if image_bytes is None:
        _draw_placeholder(page, margin, caption or "No image selected")
        return page

    try:
        with Image.open(BytesIO(image_bytes)) as source:
            mask = line_mask(source, settings.outline_thickness)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError):
        _draw_placeholder(page, margin, caption or "Image could not be read")
        return page
    mask = ImageOps.contain(mask, box)
    ink = Image.new("RGB", mask.size, LINE_COLOR[settings.outline_color])
    offset = ((width - mask.width) // 2, (height - mask.height) // 2)
    page.paste(ink, offset, mask)
    return page


def line_mask(source: Image.Image, thickness: OutlineThickness) -> Image.Image:
    """Return an L-mode mask where 255 marks line pixels."""
    gray = ImageOps.grayscale(source)
    # Dark pixels become lines.
    mask = gray.point(lambda value: 255 if value < _LINE_THRESHOLD else 0)
    size = LINE_WIDTH[thickness]
    if size > 1:
        mask = mask.filter(ImageFilter.MaxFilter(size))
    return mask


def sheet_png_bytes(page: Image.Image) -> bytes:
    buffer = BytesIO()
    page.save(buffer, format="PNG")
    return buffer.getvalue()


def write_print_job(page: Image.Image, copies: int, out_dir: Path) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    stamp = int(time.time() * 1000)
    path = out_dir / f"coloring-page-{stamp}.pdf"
    pages = [page.copy() for _ in range(max(1, copies) - 1)]
    page.save(path, format="PDF", resolution=PRINT_DPI, save_all=True, append_images=pages)
    return path


def _draw_placeholder(page: Image.Image, margin: int, text: str) -> None:
    draw = ImageDraw.Draw(page)
    draw.rectangle(
        (margin, margin, page.width - margin, page.height - margin),
        outline=(200, 200, 200),
        width=2,
    )
    font = ImageFont.load_default()
    draw.text((margin + 20, margin + 20), text[:80], fill=(120, 120, 120), font=font)
