"""Debug previews of rendered pages."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from functools import lru_cache
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont
from slugify import slugify

from glyphsmith.core.atlas import write_png
from glyphsmith.core.layout import RenderedPage, RenderedString


BACKGROUND = (255, 255, 255, 255)
BOUNDS = (127, 127, 127, 96)
INK = (0, 0, 0, 255)
FRAME = (200, 0, 0, 255)


@lru_cache(maxsize=64)
def _load_font(path: Path | None, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    if path is None:
        return ImageFont.load_default(size=size)
    return ImageFont.truetype(str(path), size)


def preview_stem(key: str, taken: set[str]) -> str:
    """Return a file stem for ``key`` that is not in ``taken``, and reserve it."""
    base = slugify(key, separator="-") or "string"
    stem = base
    suffix = 2
    while stem in taken:
        stem = f"{base}-{suffix}"
        suffix += 1
    taken.add(stem)
    return stem


def preview_path(output_dir: Path, stem: str, page: int) -> Path:
    return output_dir / f"{stem}.{page}.png"


def draw_page(
    page: RenderedPage,
    width: int,
    height: int,
    font_paths: Mapping[int, Path] | None = None,
) -> Image.Image:
    """Draw every glyph's source character over its ink box.

    ``font_paths`` maps glyph identities to the font file they came from;
    glyphs without an entry use Pillow's default font.
    """
    font_paths = font_paths or {}
    image = Image.new("RGBA", (max(width, 1), max(height, 1)), BACKGROUND)
    draw = ImageDraw.Draw(image, "RGBA")
    for glyph in page.glyphs:
        box = (
            min(glyph.x0, glyph.x1),
            min(glyph.y0, glyph.y1),
            max(glyph.x0, glyph.x1),
            max(glyph.y0, glyph.y1),
        )
        draw.rectangle(box, fill=BOUNDS)
        char = page.text[glyph.source_offset] if glyph.source_offset < len(page.text) else ""
        if not char.strip():
            continue
        font = _load_font(font_paths.get(glyph.identity), max(1, round(box[3] - box[1])))
        draw.text((box[0], box[1]), char, fill=INK, font=font)
    draw.rectangle((0, 0, image.width - 1, image.height - 1), outline=FRAME)
    return image


def write_previews(
    rendered: Iterable[RenderedString],
    output_dir: Path,
    *,
    font_paths: Mapping[int, Path] | None = None,
) -> list[Path]:
    """Write one PNG per rendered page and return their paths.

    Keys that slugify to the same stem get ``-2``, ``-3``... suffixes in
    document order.
    """
    taken: set[str] = set()
    written: list[Path] = []
    for entry in rendered:
        stem = preview_stem(entry.key, taken)
        for page in entry.pages:
            target = preview_path(output_dir, stem, page.index)
            write_png(draw_page(page, entry.width, entry.height, font_paths), target)
            written.append(target)
    return written


__all__ = ["draw_page", "preview_path", "preview_stem", "write_previews"]
