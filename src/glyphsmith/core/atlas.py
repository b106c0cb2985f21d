"""Glyph atlas packing and composition.

Glyphs are rasterized one by one into square distance-field bitmaps, trimmed to
their ink box plus padding, packed into a square power-of-two texture with a
shelf packer and pasted into a single RGBA image. UV rectangles are measured
from the image's top-left corner, matching the y-down page space of the
compiled document.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import math
from pathlib import Path
from typing import Protocol, runtime_checkable

from PIL import Image

from glyphsmith.core.config import AtlasSettings
from glyphsmith.core.exceptions import CollaboratorFailureError, CompilationError
from glyphsmith.core.logging import PipelineLogger
from glyphsmith.core.registry import GlyphRecord
from glyphsmith.core.utils import atomic_output


CHANNELS = 4


@dataclass(frozen=True, slots=True)
class GlyphBitmap:
    """Square RGBA bitmap with rows stored bottom-up.

    ``bounds`` is the glyph's ``(left, bottom, right, top)`` ink box in ems.
    """

    bounds: tuple[float, float, float, float]
    pixels: bytes
    resolution: int


@runtime_checkable
class RasterizationClient(Protocol):
    def rasterize(self, face: str, glyph_index: int, resolution: int) -> GlyphBitmap: ...


@dataclass(frozen=True, slots=True)
class GlyphBox:
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class AtlasRect:
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class PackResult:
    """Atlas edge length and one rectangle per input box, in input order."""

    size: int
    rects: tuple[AtlasRect, ...]


@dataclass(frozen=True, slots=True)
class GlyphUV:
    u0: float
    v0: float
    u1: float
    v1: float


@dataclass(frozen=True, slots=True)
class AtlasBake:
    image: Image.Image
    uvs: tuple[GlyphUV, ...]
    size: int


def _next_power_of_two(value: int) -> int:
    size = 1
    while size < value:
        size *= 2
    return size


def _shelf_pack(boxes: Sequence[GlyphBox], order: Sequence[int], size: int) -> list[AtlasRect] | None:
    rects: list[AtlasRect | None] = [None] * len(boxes)
    x = y = shelf = 0
    for index in order:
        box = boxes[index]
        if x + box.width > size:
            y += shelf
            x = 0
            shelf = 0
        if y + box.height > size:
            return None
        rects[index] = AtlasRect(x=x, y=y, width=box.width, height=box.height)
        x += box.width
        shelf = max(shelf, box.height)
    return rects  # type: ignore[return-value]


def pack_glyphs(boxes: Sequence[GlyphBox]) -> PackResult:
    """Pack ``boxes`` into the smallest square atlas the shelf strategy allows.

    Boxes are placed tallest first (ties keep input order), left to right, in
    shelves as tall as their first box. Whenever a box would overflow the
    bottom edge the atlas size doubles and packing restarts.
    """
    if not boxes:
        return PackResult(size=1, rects=())

    order = sorted(range(len(boxes)), key=lambda index: -boxes[index].height)
    size = _next_power_of_two(max(max(box.width, box.height) for box in boxes))
    while True:
        rects = _shelf_pack(boxes, order, size)
        if rects is not None:
            return PackResult(size=size, rects=tuple(rects))
        size *= 2


def glyph_uv(rect: AtlasRect, size: int, padding: int) -> GlyphUV:
    """Return the normalised UV rectangle of ``rect`` without its padding."""
    u0 = (rect.x + padding) / size
    v0 = (rect.y + padding) / size
    u1 = (rect.x + rect.width - padding) / size
    v1 = (rect.y + rect.height - padding) / size
    return GlyphUV(u0=u0, v0=v0, u1=max(u0, u1), v1=max(v0, v1))


def glyph_pixel_box(
    bounds: tuple[float, float, float, float], settings: AtlasSettings
) -> tuple[int, int, int, int]:
    """Return ``(xmin, ymin, xmax, ymax)`` of the padded ink box in bitmap pixels.

    Coordinates are bottom-up, like the bitmap rows, and clamped to the bitmap.
    """
    left, bottom, right, top = bounds
    origin = settings.origin_px
    scale = settings.em_scale
    pad = settings.padding
    limit = settings.glyph_resolution

    def _clamp(value: float) -> int:
        return min(max(int(value), 0), limit)

    xmin = _clamp(origin + math.floor(scale * left) - pad)
    ymin = _clamp(origin + math.floor(scale * bottom) - pad)
    xmax = _clamp(origin + math.ceil(scale * right) + pad)
    ymax = _clamp(origin + math.ceil(scale * top) + pad)
    return xmin, ymin, max(xmin, xmax), max(ymin, ymax)


class AtlasBuilder:
    """Rasterize registered glyphs and compose them into one atlas image."""

    def __init__(
        self,
        rasterizer: RasterizationClient,
        settings: AtlasSettings | None = None,
        logger: PipelineLogger | None = None,
    ) -> None:
        self.rasterizer = rasterizer
        self.settings = settings or AtlasSettings()
        self.logger = logger or PipelineLogger()

    def _rasterize(self, record: GlyphRecord) -> Image.Image:
        resolution = self.settings.glyph_resolution
        try:
            bitmap = self.rasterizer.rasterize(record.face, record.glyph_index, resolution)
        except CompilationError:
            raise
        except Exception as exc:
            raise CollaboratorFailureError(
                f"rasterizing {record.face}#{record.glyph_index} failed: {exc}"
            ) from exc

        expected = resolution * resolution * CHANNELS
        if bitmap.resolution != resolution or len(bitmap.pixels) != expected:
            raise CollaboratorFailureError(
                f"rasterizer returned {len(bitmap.pixels)} bytes at {bitmap.resolution}px "
                f"for {record.face}#{record.glyph_index}, expected {expected} bytes "
                f"at {resolution}px"
            )

        xmin, ymin, xmax, ymax = glyph_pixel_box(bitmap.bounds, self.settings)
        tile = Image.frombytes("RGBA", (resolution, resolution), bitmap.pixels)
        tile = tile.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
        return tile.crop((xmin, resolution - ymax, xmax, resolution - ymin))

    def bake(self, records: Sequence[GlyphRecord]) -> AtlasBake:
        """Rasterize ``records`` in order and return the atlas with one UV per record."""
        tiles: list[Image.Image] = []
        with self.logger.progress("Rasterizing glyphs", total=len(records)) as advance:
            for record in records:
                tiles.append(self._rasterize(record))
                advance(1)

        packed = pack_glyphs([GlyphBox(width=tile.width, height=tile.height) for tile in tiles])
        image = Image.new("RGBA", (packed.size, packed.size), (0, 0, 0, 0))
        for tile, rect in zip(tiles, packed.rects):
            if rect.width and rect.height:
                image.paste(tile, (rect.x, rect.y))

        padding = self.settings.padding
        uvs = tuple(glyph_uv(rect, packed.size, padding) for rect in packed.rects)
        return AtlasBake(image=image, uvs=uvs, size=packed.size)


def write_png(image: Image.Image, path: Path) -> None:
    """Save ``image`` as PNG through a temporary sibling file."""
    with atomic_output(path) as handle:
        image.save(handle, format="PNG")


__all__ = [
    "AtlasBake",
    "AtlasBuilder",
    "AtlasRect",
    "GlyphBitmap",
    "GlyphBox",
    "GlyphUV",
    "PackResult",
    "RasterizationClient",
    "glyph_pixel_box",
    "glyph_uv",
    "pack_glyphs",
    "write_png",
]
