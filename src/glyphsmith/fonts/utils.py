"""Shared helpers for font handling."""

from __future__ import annotations

from pathlib import Path


FONT_SUFFIXES = (".ttf", ".otf")


def normalize_family(name: str) -> str:
    """Return a normalised font family key suitable for lookups."""
    return "".join(ch for ch in name.casefold() if ch not in {" ", "-", "_"})


def is_font_file(path: Path) -> bool:
    return path.is_file() and path.suffix.lower() in FONT_SUFFIXES


__all__ = ["FONT_SUFFIXES", "is_font_file", "normalize_family"]
