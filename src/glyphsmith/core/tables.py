"""Content model built from the styles and strings tables.

Styles table
: ``name, fontFace, pointSize, lineHeight``. An optional header row is
  recognised when its point-size column is not numeric. The first declared
  style is the catalog default.

Strings table
: ``key, width, height, <lang>...``. The header row is mandatory and names the
  languages; its order defines the language index used everywhere else. A
  width of zero keeps the string out of the compiled document while it still
  takes part in parsing and hashing.

Both tables accept quoted fields with embedded delimiters, doubled quotes and
embedded newlines. Blank rows are ignored.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
import csv
from dataclasses import dataclass, field
import io
from pathlib import Path

from glyphsmith.core.exceptions import (
    MalformedTableError,
    MissingResourceError,
    UnknownLanguageError,
)


STYLE_FIELDS = 4
STRING_PARAM_FIELDS = 3
MAX_KEY_BYTES = 255


@dataclass(frozen=True, slots=True)
class Style:
    """Named text style."""

    name: str
    face: str
    point_size: int
    line_height: float


@dataclass(frozen=True, slots=True)
class LocalizedString:
    """One row of the strings table."""

    key: str
    width: int
    height: int
    texts: tuple[str, ...]

    @property
    def in_scope(self) -> bool:
        """Return True when the string is rendered into the output document."""
        return self.width > 0

    def text(self, language_index: int) -> str:
        return self.texts[language_index]


@dataclass(slots=True)
class ContentCatalog:
    """In-memory catalog of styles and localized strings."""

    styles: tuple[Style, ...]
    languages: tuple[str, ...]
    strings: tuple[LocalizedString, ...]
    _by_name: dict[str, Style] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.styles:
            raise MalformedTableError("styles table declares no styles")
        self._by_name = {}
        for style in self.styles:
            # First declaration wins, matching lookup by scan order.
            self._by_name.setdefault(style.name, style)

    @property
    def default_style(self) -> Style:
        return self.styles[0]

    def style(self, name: str) -> Style | None:
        """Return the style registered under ``name``, if any."""
        return self._by_name.get(name)

    def faces(self) -> list[str]:
        """Return the distinct font faces referenced by the styles, in order."""
        seen: dict[str, None] = {}
        for style in self.styles:
            seen.setdefault(style.face, None)
        return list(seen)

    def language_index(self, language: str) -> int:
        """Return the column index of ``language`` (case-sensitive)."""
        try:
            return self.languages.index(language)
        except ValueError:
            raise UnknownLanguageError(language, self.languages) from None

    def in_scope(self) -> list[LocalizedString]:
        """Return the strings that end up in the compiled document."""
        return [entry for entry in self.strings if entry.in_scope]


def _iter_rows(text: str, source: str | None) -> Iterator[tuple[int, list[str]]]:
    """Yield ``(row_number, fields)`` for every non-blank CSV record."""
    reader = csv.reader(
        io.StringIO(text, newline=""),
        delimiter=",",
        quotechar='"',
        doublequote=True,
        strict=True,
    )
    try:
        for fields in reader:
            if not fields or all(not value.strip() for value in fields):
                continue
            yield reader.line_num, fields
    except csv.Error as exc:
        raise MalformedTableError(str(exc), source=source, row=reader.line_num) from exc


def _parse_uint(value: str, column: str, *, source: str | None, row: int) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        raise MalformedTableError(
            f"column '{column}' expects an unsigned integer, got {value!r}",
            source=source,
            row=row,
        ) from None
    if parsed < 0:
        raise MalformedTableError(
            f"column '{column}' must not be negative, got {parsed}", source=source, row=row
        )
    return parsed


def _parse_float(value: str, column: str, *, source: str | None, row: int) -> float:
    try:
        return float(value.strip())
    except ValueError:
        raise MalformedTableError(
            f"column '{column}' expects a number, got {value!r}", source=source, row=row
        ) from None


def _is_number(value: str) -> bool:
    try:
        float(value.strip())
    except ValueError:
        return False
    return True


def _is_header(fields: Sequence[str]) -> bool:
    # Both size columns must be labels; a single bad value is a data error.
    return not _is_number(fields[2]) and not _is_number(fields[3])


def parse_styles(text: str, source: str | Path | None = None) -> list[Style]:
    """Parse the styles table into an ordered list of styles."""
    label = str(source) if source is not None else None
    styles: list[Style] = []
    first = True
    for row, fields in _iter_rows(text, label):
        if len(fields) != STYLE_FIELDS:
            raise MalformedTableError(
                f"expected {STYLE_FIELDS} fields, found {len(fields)}", source=label, row=row
            )
        if first:
            first = False
            if _is_header(fields):
                continue
        name, face, size, line_height = (value.strip() for value in fields)
        if not name:
            raise MalformedTableError("style name must not be empty", source=label, row=row)
        styles.append(
            Style(
                name=name,
                face=face,
                point_size=_parse_uint(size, "pointSize", source=label, row=row),
                line_height=_parse_float(line_height, "lineHeight", source=label, row=row),
            )
        )
    return styles


def parse_strings(
    text: str, source: str | Path | None = None
) -> tuple[list[str], list[LocalizedString]]:
    """Parse the strings table into its language header and rows."""
    label = str(source) if source is not None else None
    languages: list[str] | None = None
    strings: list[LocalizedString] = []
    for row, fields in _iter_rows(text, label):
        if languages is None:
            if len(fields) <= STRING_PARAM_FIELDS:
                raise MalformedTableError(
                    "header row must name at least one language column", source=label, row=row
                )
            languages = [value.strip() for value in fields[STRING_PARAM_FIELDS:]]
            continue
        expected = STRING_PARAM_FIELDS + len(languages)
        if len(fields) != expected:
            raise MalformedTableError(
                f"expected {expected} fields, found {len(fields)}", source=label, row=row
            )
        key = fields[0].strip()
        if len(key.encode("utf-8")) > MAX_KEY_BYTES:
            raise MalformedTableError(
                f"string key exceeds {MAX_KEY_BYTES} bytes", source=label, row=row
            )
        strings.append(
            LocalizedString(
                key=key,
                width=_parse_uint(fields[1], "width", source=label, row=row),
                height=_parse_uint(fields[2], "height", source=label, row=row),
                texts=tuple(fields[STRING_PARAM_FIELDS:]),
            )
        )
    if languages is None:
        raise MalformedTableError("strings table is missing its header row", source=label)
    return languages, strings


def build_catalog(
    styles_text: str,
    strings_text: str,
    *,
    styles_source: str | Path | None = None,
    strings_source: str | Path | None = None,
) -> ContentCatalog:
    """Parse both tables and return the populated catalog."""
    styles = parse_styles(styles_text, styles_source)
    languages, strings = parse_strings(strings_text, strings_source)
    return ContentCatalog(styles=tuple(styles), languages=tuple(languages), strings=tuple(strings))


def read_table(path: Path) -> bytes:
    """Return the raw bytes of a table, raising ``MissingResourceError`` if absent."""
    try:
        return path.read_bytes()
    except FileNotFoundError:
        raise MissingResourceError(f"input table not found: {path}") from None
    except OSError as exc:
        raise MissingResourceError(f"cannot read input table {path}: {exc}") from exc


def _decode(raw: bytes, path: Path) -> str:
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise MalformedTableError(f"not valid UTF-8 ({exc.reason})", source=path) from exc


def load_catalog(styles_path: Path, strings_path: Path) -> tuple[ContentCatalog, bytes, bytes]:
    """Read both tables from disk and return the catalog plus their raw bytes."""
    styles_raw = read_table(styles_path)
    strings_raw = read_table(strings_path)
    catalog = build_catalog(
        _decode(styles_raw, styles_path),
        _decode(strings_raw, strings_path),
        styles_source=styles_path.name,
        strings_source=strings_path.name,
    )
    return catalog, styles_raw, strings_raw


__all__ = [
    "ContentCatalog",
    "LocalizedString",
    "Style",
    "build_catalog",
    "load_catalog",
    "parse_strings",
    "parse_styles",
    "read_table",
]
