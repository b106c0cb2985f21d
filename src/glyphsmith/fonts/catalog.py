"""Discover the font files referenced by the styles table.

Styles name their font by *face key*, the file name without extension, so
``SomeFace`` resolves to ``SomeFace.ttf`` (or ``.otf``) inside the fonts
directory. Family names are read from the ``name`` table for lookups by
family.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
import logging
from pathlib import Path

from fontTools.ttLib import TTFont, TTLibError

from glyphsmith.core.exceptions import MissingResourceError
from glyphsmith.fonts.utils import is_font_file, normalize_family


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FontEntry:
    face: str
    family: str
    path: Path


def read_family_name(path: Path) -> str:
    """Return the best family name stored in ``path``, or its stem."""
    try:
        with TTFont(path, lazy=True) as font:
            if "name" not in font:
                return path.stem
            family = font["name"].getBestFamilyName()
    except (OSError, TTLibError) as exc:
        logger.warning("Cannot read font names from %s: %s", path, exc)
        return path.stem
    return family or path.stem


class FontCatalog:
    """Face-keyed index of the fonts available to a compilation."""

    def __init__(self, entries: Iterable[FontEntry] = (), *, directory: Path | None = None) -> None:
        self.directory = directory
        self._faces: dict[str, FontEntry] = {}
        self._families: dict[str, list[FontEntry]] = {}
        for entry in entries:
            self._register(entry)

    @classmethod
    def scan(cls, directory: Path) -> FontCatalog:
        """Index every ``.ttf`` / ``.otf`` file directly inside ``directory``."""
        if not directory.is_dir():
            raise MissingResourceError(f"font directory not found: {directory}")
        entries = [
            FontEntry(face=path.stem, family=read_family_name(path), path=path)
            for path in sorted(directory.iterdir())
            if is_font_file(path)
        ]
        logger.debug("Found %d font file(s) in %s", len(entries), directory)
        return cls(entries, directory=directory)

    def _register(self, entry: FontEntry) -> None:
        if entry.face in self._faces:
            # ``Face.ttf`` wins over ``Face.otf`` since scanning is sorted.
            return
        self._faces[entry.face] = entry
        self._families.setdefault(normalize_family(entry.family), []).append(entry)

    def __len__(self) -> int:
        return len(self._faces)

    def __iter__(self) -> Iterator[FontEntry]:
        return iter(self._faces.values())

    def __contains__(self, face: object) -> bool:
        return face in self._faces

    def by_face(self, face: str) -> FontEntry | None:
        return self._faces.get(face)

    def by_family(self, family: str) -> list[FontEntry]:
        return list(self._families.get(normalize_family(family), ()))

    def path_for(self, face: str) -> Path:
        entry = self._faces.get(face)
        if entry is None:
            where = f" in {self.directory}" if self.directory is not None else ""
            raise MissingResourceError(f"font face '{face}' not found{where}")
        return entry.path

    def require_faces(self, faces: Iterable[str]) -> None:
        """Raise ``MissingResourceError`` listing every face without a file."""
        missing = [face for face in faces if face not in self._faces]
        if missing:
            where = f" in {self.directory}" if self.directory is not None else ""
            raise MissingResourceError(
                f"font face(s) not found{where}: {', '.join(sorted(set(missing)))}"
            )


__all__ = ["FontCatalog", "FontEntry", "read_family_name"]
