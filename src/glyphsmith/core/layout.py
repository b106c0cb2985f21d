"""Bridge between paginated markup and the text shaper.

The shaper reports glyphs in whatever order suits its layout (visual order for
right-to-left runs, line by line, ...). This module registers each glyph,
restores logical order by sorting on the source offset, and translates user
tag offsets from plain-text positions into glyph-array indices.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from operator import attrgetter
from typing import Protocol, runtime_checkable

from glyphsmith.core.arena import Arena
from glyphsmith.core.exceptions import CollaboratorFailureError, CompilationError
from glyphsmith.core.markup import PageText, UserTag
from glyphsmith.core.registry import GlyphRegistry
from glyphsmith.core.tables import Style


InkBox = tuple[float, float, float, float]
GlyphSink = Callable[[int, str, int, InkBox], None]


@dataclass(frozen=True, slots=True)
class StyledRun:
    """Span of page text handed to the shaper with its style."""

    start: int
    end: int
    style: Style


@dataclass(frozen=True, slots=True)
class TypesetGlyph:
    """Positioned glyph in page-local coordinates, y pointing down."""

    source_offset: int
    identity: int
    x0: float
    y0: float
    x1: float
    y1: float


@dataclass(frozen=True, slots=True)
class RenderedPage:
    index: int
    tags: tuple[UserTag, ...]
    glyphs: tuple[TypesetGlyph, ...]
    text: str = ""


@dataclass(frozen=True, slots=True)
class RenderedString:
    key: str
    width: int
    height: int
    pages: tuple[RenderedPage, ...]

    @property
    def glyph_count(self) -> int:
        return sum(len(page.glyphs) for page in self.pages)


@runtime_checkable
class Shaper(Protocol):
    """Text shaping and line layout collaborator.

    ``shape`` must call ``on_glyph(offset, face, glyph_index, (x0, y0, x1, y1))``
    once per visible glyph, where ``offset`` is the glyph's position in
    ``text`` and the box is the ink rectangle in page coordinates.
    """

    def shape(
        self,
        text: str,
        runs: Sequence[StyledRun],
        width: int,
        height: int,
        on_glyph: GlyphSink,
    ) -> None: ...


def build_index_map(glyph_offsets: Sequence[int], text_length: int) -> list[int]:
    """Map every text offset in ``[0, text_length]`` to a glyph index.

    An offset where a glyph starts maps to the first such glyph; any other
    offset carries the nearest preceding mapping forward, or ``0`` when no
    glyph precedes it. ``glyph_offsets`` must be sorted.
    """
    table = [-1] * (text_length + 1)
    for index, offset in enumerate(glyph_offsets):
        if 0 <= offset <= text_length and table[offset] < 0:
            table[offset] = index

    carry = 0
    for offset, value in enumerate(table):
        if value < 0:
            table[offset] = carry
        else:
            carry = value
    return table


def remap_user_tags(tags: Sequence[UserTag], index_map: Sequence[int]) -> tuple[UserTag, ...]:
    """Rewrite tag offsets through ``index_map``."""
    last = len(index_map) - 1

    def _lookup(offset: int) -> int:
        return index_map[min(max(offset, 0), last)]

    return tuple(
        UserTag(label=tag.label, start=_lookup(tag.start), end=_lookup(tag.end)) for tag in tags
    )


def shape_page(
    shaper: Shaper,
    registry: GlyphRegistry,
    page: PageText,
    width: int,
    height: int,
    *,
    scratch: Arena[TypesetGlyph] | None = None,
) -> RenderedPage:
    """Shape one page and return its glyphs in logical order."""
    buffer = scratch if scratch is not None else Arena("typeset-glyphs")
    runs = [StyledRun(start=r.start, end=r.end, style=r.style) for r in page.style_ranges]

    with buffer.scope() as glyphs:
        base = len(glyphs)

        def _on_glyph(offset: int, face: str, glyph_index: int, box: InkBox) -> None:
            record = registry.intern(face, glyph_index)
            x0, y0, x1, y1 = box
            glyphs.push(
                TypesetGlyph(
                    source_offset=offset,
                    identity=record.identity,
                    x0=float(x0),
                    y0=float(y0),
                    x1=float(x1),
                    y1=float(y1),
                )
            )

        try:
            shaper.shape(page.text, runs, width, height, _on_glyph)
        except CompilationError:
            raise
        except Exception as exc:
            raise CollaboratorFailureError(f"text shaping failed on page {page.index}: {exc}") from exc

        ordered = tuple(sorted(glyphs.view(base), key=attrgetter("source_offset")))

    index_map = build_index_map([glyph.source_offset for glyph in ordered], len(page.text))
    return RenderedPage(
        index=page.index,
        tags=remap_user_tags(page.user_tags, index_map),
        glyphs=ordered,
        text=page.text,
    )


__all__ = [
    "GlyphSink",
    "InkBox",
    "RenderedPage",
    "RenderedString",
    "Shaper",
    "StyledRun",
    "TypesetGlyph",
    "build_index_map",
    "remap_user_tags",
    "shape_page",
]
