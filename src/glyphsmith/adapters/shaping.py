"""HarfBuzz backed text shaping and greedy line layout."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, TypeVar

import uharfbuzz as hb

from glyphsmith.core.layout import GlyphSink, StyledRun
from glyphsmith.fonts.catalog import FontCatalog


NOTDEF = 0


class _Advancing(Protocol):
    offset: int
    advance: float


T = TypeVar("T", bound=_Advancing)


@dataclass(frozen=True, slots=True)
class ShapedGlyph:
    """Glyph position in pixels, relative to the pen and the baseline (y up)."""

    offset: int
    face: str
    glyph_index: int
    advance: float
    x_offset: float
    y_offset: float
    ink: tuple[float, float, float, float] | None
    ascent: float
    descent: float
    line_height: float


@dataclass(slots=True)
class _LoadedFace:
    key: str
    font: hb.Font
    upem: int
    ascender: int
    descender: int


def break_lines(items: Sequence[T], text: str, width: float) -> list[list[T]]:
    """Split shaped items into lines no wider than ``width``.

    Lines break after whitespace when possible and in the middle of a word
    otherwise. ``\\n`` forces a break and is dropped. A non-positive ``width``
    disables wrapping.
    """
    lines: list[list[T]] = [[]]
    pen = 0.0
    last_break: int | None = None

    for item in items:
        char = text[item.offset] if 0 <= item.offset < len(text) else ""
        current = lines[-1]
        if char == "\n":
            lines.append([])
            pen = 0.0
            last_break = None
            continue
        if char.isspace():
            current.append(item)
            pen += item.advance
            last_break = len(current)
            continue
        if width > 0 and current and pen + item.advance > width:
            carry: list[T] = []
            if last_break is not None:
                carry = current[last_break:]
                del current[last_break:]
            lines.append(carry)
            current = carry
            pen = sum(glyph.advance for glyph in carry)
            last_break = None
        current.append(item)
        pen += item.advance
    return lines


class HarfBuzzShaper:
    """Shape styled runs with HarfBuzz and lay lines out top to bottom.

    Each run is shaped at its style's point size in pixels per em. Line
    height is the tallest natural font height on the line times the largest
    ``line_height`` factor; the extra leading is split evenly above and
    below. Lines that do not fit ``height`` are still emitted.
    """

    def __init__(self, fonts: FontCatalog) -> None:
        self.fonts = fonts
        self._faces: dict[str, _LoadedFace] = {}

    def _load(self, face: str) -> _LoadedFace:
        loaded = self._faces.get(face)
        if loaded is not None:
            return loaded
        blob = hb.Blob(self.fonts.path_for(face).read_bytes())
        hb_face = hb.Face(blob)
        upem = hb_face.upem
        font = hb.Font(hb_face)
        font.scale = (upem, upem)
        extents = font.get_font_extents("ltr")
        loaded = _LoadedFace(
            key=face,
            font=font,
            upem=upem,
            ascender=extents.ascender,
            descender=extents.descender,
        )
        self._faces[face] = loaded
        return loaded

    def shape_run(self, text: str, run: StyledRun) -> list[ShapedGlyph]:
        face = self._load(run.style.face)
        scale = run.style.point_size / face.upem

        buf = hb.Buffer()
        buf.add_codepoints([ord(char) for char in text[run.start : run.end]])
        buf.guess_segment_properties()
        hb.shape(face.font, buf)

        glyphs: list[ShapedGlyph] = []
        for info, position in zip(buf.glyph_infos, buf.glyph_positions):
            ink = None
            if info.codepoint != NOTDEF:
                extents = face.font.get_glyph_extents(info.codepoint)
                if extents is not None and extents.width and extents.height:
                    ink = (
                        extents.x_bearing * scale,
                        extents.y_bearing * scale,
                        extents.width * scale,
                        extents.height * scale,
                    )
            glyphs.append(
                ShapedGlyph(
                    offset=run.start + info.cluster,
                    face=face.key,
                    glyph_index=info.codepoint,
                    advance=position.x_advance * scale,
                    x_offset=position.x_offset * scale,
                    y_offset=position.y_offset * scale,
                    ink=ink,
                    ascent=face.ascender * scale,
                    descent=-face.descender * scale,
                    line_height=run.style.line_height,
                )
            )
        return glyphs

    def shape(
        self,
        text: str,
        runs: Sequence[StyledRun],
        width: int,
        height: int,
        on_glyph: GlyphSink,
    ) -> None:
        shaped: list[ShapedGlyph] = []
        for run in runs:
            shaped.extend(self.shape_run(text, run))

        top = 0.0
        for line in break_lines(shaped, text, width):
            if not line:
                # Blank lines take the room of the page's first run.
                if runs:
                    top += self._empty_line_height(runs[0])
                continue
            ascent = max(glyph.ascent for glyph in line)
            descent = max(glyph.descent for glyph in line)
            natural = ascent + descent
            advance = natural * max(glyph.line_height for glyph in line)
            baseline = top + (advance - natural) / 2 + ascent

            pen = 0.0
            for glyph in line:
                if glyph.ink is not None:
                    bearing_x, bearing_y, ink_width, ink_height = glyph.ink
                    x0 = pen + glyph.x_offset + bearing_x
                    y0 = baseline - (glyph.y_offset + bearing_y)
                    on_glyph(
                        glyph.offset,
                        glyph.face,
                        glyph.glyph_index,
                        (x0, y0, x0 + ink_width, y0 - ink_height),
                    )
                pen += glyph.advance
            top += advance

    def _empty_line_height(self, run: StyledRun) -> float:
        face = self._load(run.style.face)
        scale = run.style.point_size / face.upem
        return (face.ascender - face.descender) * scale * run.style.line_height


__all__ = ["HarfBuzzShaper", "ShapedGlyph", "break_lines"]
