from __future__ import annotations

import pytest

from glyphsmith.core.exceptions import CollaboratorFailureError, MissingResourceError
from glyphsmith.core.layout import build_index_map, remap_user_tags, shape_page
from glyphsmith.core.markup import UserTag, paginate
from glyphsmith.core.registry import GlyphRegistry, glyph_identity


def test_index_map_uses_first_glyph_and_carries_forward() -> None:
    assert build_index_map([0, 1, 1, 3], 5) == [0, 1, 1, 3, 3, 3]


def test_index_map_without_glyphs_is_all_zero() -> None:
    assert build_index_map([], 3) == [0, 0, 0, 0]


def test_index_map_before_first_glyph_points_at_zero() -> None:
    assert build_index_map([2], 3) == [0, 0, 0, 0]


def test_remap_clamps_offsets_to_table() -> None:
    tags = remap_user_tags([UserTag("a", 1, 9)], [0, 0, 1, 2])

    assert tags == (UserTag("a", 0, 2),)


def test_shape_page_sorts_glyphs_and_remaps_tags(catalog, fake_shaper) -> None:
    registry = GlyphRegistry()
    page = paginate(catalog, "ab [#word]cd[#/]")[0]

    rendered = shape_page(fake_shaper, registry, page, 100, 50)

    assert [glyph.source_offset for glyph in rendered.glyphs] == [0, 1, 3, 4]
    assert rendered.glyphs[0].identity == glyph_identity("SomeFace", ord("a"))
    assert rendered.tags == (UserTag(label="word", start=2, end=3),)
    assert len(registry) == 4


def test_shape_page_indices_are_monotonic(catalog, fake_shaper) -> None:
    registry = GlyphRegistry()
    page = paginate(catalog, "[#a]x[#/] [#b]yy[#/]  [#c]z [#/]")[0]

    rendered = shape_page(fake_shaper, registry, page, 100, 50)

    for tag in rendered.tags:
        assert 0 <= tag.start <= tag.end < len(rendered.glyphs)


def test_shape_page_wraps_unexpected_shaper_errors(catalog) -> None:
    class Broken:
        def shape(self, text, runs, width, height, on_glyph):
            raise RuntimeError("font exploded")

    page = paginate(catalog, "abc")[0]

    with pytest.raises(CollaboratorFailureError, match="font exploded"):
        shape_page(Broken(), GlyphRegistry(), page, 10, 10)


def test_shape_page_lets_compiler_errors_through(catalog) -> None:
    class Missing:
        def shape(self, text, runs, width, height, on_glyph):
            raise MissingResourceError("font face 'SomeFace' not found")

    page = paginate(catalog, "abc")[0]

    with pytest.raises(MissingResourceError):
        shape_page(Missing(), GlyphRegistry(), page, 10, 10)


def test_shape_page_hands_runs_to_shaper(catalog) -> None:
    received = []

    class Recorder:
        def shape(self, text, runs, width, height, on_glyph):
            received.append((text, [(r.start, r.end, r.style.name) for r in runs], width, height))

    page = paginate(catalog, "ab[#- bold]cd")[0]
    rendered = shape_page(Recorder(), GlyphRegistry(), page, 120, 30)

    assert received == [("abcd", [(0, 2, "default"), (2, 4, "bold")], 120, 30)]
    assert rendered.glyphs == ()
