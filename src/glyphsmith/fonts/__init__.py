"""Font discovery helpers."""

from __future__ import annotations

from .catalog import FontCatalog, FontEntry, read_family_name
from .utils import normalize_family


__all__ = ["FontCatalog", "FontEntry", "normalize_family", "read_family_name"]
