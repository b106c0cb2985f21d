from __future__ import annotations

import pytest

from glyphsmith.core.exceptions import MalformedMarkupError, UnknownStyleReferenceError
from glyphsmith.core.markup import MarkupMachine, PageText, UserTag, paginate


def _ranges(page: PageText) -> list[tuple[int, int, str]]:
    return [(r.start, r.end, r.style.name) for r in page.style_ranges]


def _assert_tiles(page: PageText) -> None:
    position = 0
    for style_range in page.style_ranges:
        assert style_range.start == position
        assert style_range.end > style_range.start
        position = style_range.end
    assert position == len(page.text)


def test_style_switch_and_page_break(catalog) -> None:
    pages = paginate(catalog, "Hello[#- bold]world[#- ][#.]Page2")

    assert [page.text for page in pages] == ["Helloworld", "Page2"]
    assert _ranges(pages[0]) == [(0, 5, "default"), (5, 10, "bold")]
    assert _ranges(pages[1]) == [(0, 5, "default")]
    assert all(page.user_tags == () for page in pages)
    assert [page.index for page in pages] == [0, 1]


@pytest.mark.parametrize(
    "source",
    [
        "",
        "plain",
        "[#- bold]all bold",
        "a[#- bold]b[#- ]c[#- bold][#- bold]d[#- ][#- ]e",
        "x[#.][#- bold][#.]y[#- ]z",
        "[#- bold][#- ]",
    ],
)
def test_style_ranges_tile_every_page(catalog, source: str) -> None:
    for page in paginate(catalog, source):
        _assert_tiles(page)


def test_string_without_break_has_one_page(catalog) -> None:
    pages = paginate(catalog, "")

    assert len(pages) == 1
    assert pages[0].text == ""
    assert pages[0].style_ranges == ()


def test_escaped_tag_is_literal_text(catalog) -> None:
    pages = paginate(catalog, "a[[#- bold]b")

    assert pages[0].text == "a[#- bold]b"
    assert _ranges(pages[0]) == [(0, len("a[#- bold]b"), "default")]


def test_style_state_carries_across_pages(catalog) -> None:
    pages = paginate(catalog, "[#- bold]ab[#.]cd[#- ]ef")

    assert _ranges(pages[0]) == [(0, 2, "bold")]
    assert _ranges(pages[1]) == [(0, 2, "bold"), (2, 4, "default")]


def test_user_tags_are_recorded_in_closing_order(catalog) -> None:
    pages = paginate(catalog, "[#outer]x[#inner]y[#/]z[#/]")

    assert pages[0].text == "xyz"
    assert pages[0].user_tags == (
        UserTag(label="inner", start=1, end=2),
        UserTag(label="outer", start=0, end=3),
    )


def test_tags_do_not_shift_offsets(catalog) -> None:
    pages = paginate(catalog, "Hi [#link]there[#/] !")

    assert pages[0].text == "Hi there !"
    assert pages[0].user_tags == (UserTag(label="link", start=3, end=8),)


def test_on_page_is_called_as_pages_close(catalog) -> None:
    seen: list[str] = []
    machine = MarkupMachine(catalog)

    pages = machine.paginate("one[#.]two[#.]three", on_page=lambda page: seen.append(page.text))

    assert seen == ["one", "two", "three"]
    assert [page.text for page in pages] == seen


def test_machine_can_be_reused(catalog) -> None:
    machine = MarkupMachine(catalog)
    machine.paginate("[#- bold]left open[#tag]")

    pages = machine.paginate("fresh")

    assert _ranges(pages[0]) == [(0, 5, "default")]
    assert pages[0].user_tags == ()


def test_unknown_style_warns_and_keeps_balance(catalog, emitter) -> None:
    machine = MarkupMachine(catalog, emitter=emitter)

    pages = machine.paginate("[#- bold]a[#- missing]b[#- ]c[#- ]d", key="greet")

    assert _ranges(pages[0]) == [(0, 1, "bold"), (1, 2, "bold"), (2, 3, "bold"), (3, 4, "default")]
    assert len(emitter.warnings) == 1
    assert "missing" in emitter.warnings[0]
    assert emitter.warnings[0].startswith("greet:")


def test_unknown_style_raises_in_strict_mode(catalog) -> None:
    with pytest.raises(UnknownStyleReferenceError) as excinfo:
        paginate(catalog, "[#- missing]b", strict=True)

    assert excinfo.value.name == "missing"


def test_strict_unknown_style_names_string_and_page(catalog) -> None:
    with pytest.raises(UnknownStyleReferenceError) as excinfo:
        paginate(catalog, "a[#.]b[#- missing]c", key="greet", strict=True)

    assert (excinfo.value.key, excinfo.value.page) == ("greet", 1)
    assert str(excinfo.value) == "greet: unknown style 'missing' on page 1"


def test_unterminated_user_tag_is_dropped_at_page_break(catalog, emitter) -> None:
    pages = paginate(catalog, "[#open]a[#.]b[#/]", emitter=emitter)

    assert pages[0].user_tags == ()
    assert pages[1].user_tags == ()
    assert len(emitter.warnings) == 2
    assert "open" in emitter.warnings[0]


@pytest.mark.parametrize(
    "source",
    ["[#open]never closed", "stray[#/]", "empty[#]tag", "cut off [#- bold"],
)
def test_malformed_markup_raises_in_strict_mode(catalog, source: str) -> None:
    with pytest.raises(MalformedMarkupError):
        paginate(catalog, source, strict=True)


def test_missing_closing_bracket_drops_rest_of_string(catalog, emitter) -> None:
    pages = paginate(catalog, "abc[#- bold", emitter=emitter)

    assert pages[0].text == "abc"
    assert emitter.warnings


def test_oversized_label_always_raises(catalog) -> None:
    with pytest.raises(MalformedMarkupError, match="255 bytes"):
        paginate(catalog, f"[#{'x' * 256}]a[#/]")


def test_pop_without_push_is_reported(catalog, emitter) -> None:
    pages = paginate(catalog, "a[#- ]b", emitter=emitter)

    assert _ranges(pages[0]) == [(0, 1, "default"), (1, 2, "default")]
    assert emitter.warnings
