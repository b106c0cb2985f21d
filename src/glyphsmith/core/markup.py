"""Inline markup state machine.

Tags are introduced by ``[#`` and run to the next ``]``:

``[#- name]`` / ``[#- ]``
: switch to the named style / return to the previous one.

``[#.]``
: page break.

``[#label]`` / ``[#/]``
: open / close a user annotation.

A ``[`` immediately before ``[#`` escapes it, so ``[[#`` produces a literal
``[#``. Tags contribute nothing to the plain-text output, and every offset
recorded here is an offset into that output.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from glyphsmith.core.arena import Arena
from glyphsmith.core.diagnostics import DiagnosticEmitter, NullEmitter
from glyphsmith.core.exceptions import MalformedMarkupError, UnknownStyleReferenceError
from glyphsmith.core.tables import ContentCatalog, Style


TAG_OPEN = "[#"
TAG_END = "]"
STYLE_MARKER = "-"
PAGE_BREAK = "."
CLOSE_TAG = "/"
MAX_LABEL_BYTES = 255


@dataclass(frozen=True, slots=True)
class StyleRange:
    """Half-open ``[start, end)`` span of output text drawn with ``style``."""

    start: int
    end: int
    style: Style


@dataclass(frozen=True, slots=True)
class UserTag:
    """Author-placed annotation over a page."""

    label: str
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class PageText:
    """Plain text of one page plus the ranges and tags resolved to it."""

    index: int
    text: str
    style_ranges: tuple[StyleRange, ...]
    user_tags: tuple[UserTag, ...]


@dataclass(frozen=True, slots=True)
class _OpenTag:
    label: str
    start: int


PageCallback = Callable[[PageText], None]


class MarkupMachine:
    """Expand inline tags of localized strings into pages.

    The machine keeps its working buffers in arenas and resets them between
    strings, so a single instance can be reused for a whole document set.
    With ``strict`` enabled, malformed markup and unknown style names raise;
    otherwise they are reported as warnings and skipped.
    """

    def __init__(
        self,
        catalog: ContentCatalog,
        *,
        strict: bool = False,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.catalog = catalog
        self.strict = strict
        self.emitter = emitter or NullEmitter()

        self._chars: Arena[str] = Arena("page-text")
        self._ranges: Arena[StyleRange] = Arena("style-ranges")
        self._style_stack: Arena[Style] = Arena("style-stack")
        self._tag_stack: Arena[_OpenTag] = Arena("tag-stack")
        self._page_tags: Arena[UserTag] = Arena("page-tags")

        self._key = ""
        self._style = catalog.default_style
        self._range_start = 0
        self._pages: list[PageText] = []
        self._on_page: PageCallback | None = None

    # ------------------------------------------------------------------ driver

    def paginate(
        self, source: str, *, key: str = "", on_page: PageCallback | None = None
    ) -> list[PageText]:
        """Split ``source`` into pages, calling ``on_page`` as each one closes."""
        self._reset(key, on_page)

        position = 0
        length = len(source)
        while position < length:
            char = source[position]
            if char == "[" and source.startswith(TAG_OPEN, position):
                if position > 0 and source[position - 1] == "[":
                    # The previous "[" was emitted as text and stands for this one.
                    position += 1
                    continue
                end = source.find(TAG_END, position + len(TAG_OPEN))
                if end < 0:
                    self._problem(f"unterminated tag at offset {position}")
                    break
                self._handle_tag(source[position + len(TAG_OPEN) : end])
                position = end + 1
                continue
            self._chars.push(char)
            position += 1

        self._close_range()
        self._finish_page()
        if self._style_stack:
            # Style scopes may legitimately stay open until the end of a string.
            self._style_stack.clear()
        pages = self._pages
        self._pages = []
        return pages

    def _reset(self, key: str, on_page: PageCallback | None) -> None:
        for arena in (self._chars, self._ranges, self._style_stack, self._tag_stack, self._page_tags):
            arena.clear()
        self._key = key
        self._on_page = on_page
        self._style = self.catalog.default_style
        self._range_start = 0
        self._pages = []

    # -------------------------------------------------------------------- tags

    def _handle_tag(self, body: str) -> None:
        if body.startswith(STYLE_MARKER):
            self._switch_style(body[len(STYLE_MARKER) :].strip())
        elif body == PAGE_BREAK:
            self._close_range()
            self._finish_page()
        elif body == CLOSE_TAG:
            self._close_user_tag()
        elif not body:
            self._problem("empty tag '[#]'")
        else:
            self._open_user_tag(body)

    def _switch_style(self, name: str) -> None:
        self._close_range()
        if not name:
            if self._style_stack:
                self._style = self._style_stack.pop()
            else:
                self._problem("style pop '[#- ]' without a matching push")
            return

        style = self.catalog.style(name)
        if style is None:
            if self.strict:
                raise UnknownStyleReferenceError(name, key=self._key, page=len(self._pages))
            self.emitter.warning(
                f"{self._key}: unknown style '{name}' on page {len(self._pages)}, "
                "keeping current style"
            )
            style = self._style
        self._style_stack.push(self._style)
        self._style = style

    def _open_user_tag(self, label: str) -> None:
        if len(label.encode("utf-8")) > MAX_LABEL_BYTES:
            raise MalformedMarkupError(
                f"{self._key}: tag label exceeds {MAX_LABEL_BYTES} bytes: {label[:32]!r}..."
            )
        self._tag_stack.push(_OpenTag(label=label, start=len(self._chars)))

    def _close_user_tag(self) -> None:
        if not self._tag_stack:
            self._problem("closing tag '[#/]' without an open tag")
            return
        opened = self._tag_stack.pop()
        self._page_tags.push(UserTag(label=opened.label, start=opened.start, end=len(self._chars)))

    # ------------------------------------------------------------------- pages

    def _close_range(self) -> None:
        end = len(self._chars)
        if end > self._range_start:
            self._ranges.push(StyleRange(start=self._range_start, end=end, style=self._style))
        self._range_start = end

    def _finish_page(self) -> None:
        if self._tag_stack:
            labels = ", ".join(repr(tag.label) for tag in self._tag_stack)
            self._problem(f"dropping unterminated tag(s) {labels} on page {len(self._pages)}")
            self._tag_stack.clear()

        page = PageText(
            index=len(self._pages),
            text="".join(self._chars),
            style_ranges=self._ranges.view(),
            user_tags=self._page_tags.view(),
        )
        self._pages.append(page)
        if self._on_page is not None:
            self._on_page(page)

        self._chars.clear()
        self._ranges.clear()
        self._page_tags.clear()
        self._range_start = 0

    def _problem(self, message: str) -> None:
        if self.strict:
            raise MalformedMarkupError(f"{self._key}: {message}" if self._key else message)
        self.emitter.warning(f"{self._key}: {message}" if self._key else message)


def paginate(
    catalog: ContentCatalog,
    source: str,
    *,
    key: str = "",
    strict: bool = False,
    emitter: DiagnosticEmitter | None = None,
) -> list[PageText]:
    """Convenience wrapper running a fresh :class:`MarkupMachine` once."""
    return MarkupMachine(catalog, strict=strict, emitter=emitter).paginate(source, key=key)


__all__ = [
    "MarkupMachine",
    "PageCallback",
    "PageText",
    "StyleRange",
    "UserTag",
    "paginate",
]
