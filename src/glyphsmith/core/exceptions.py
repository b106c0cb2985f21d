"""Custom exception hierarchy for the text compilation pipeline."""

from __future__ import annotations

from pathlib import Path


class CompilationError(RuntimeError):
    """Base exception for fatal compilation failures."""


class ConfigError(CompilationError):
    """Raised when a configuration file cannot be read or validated."""


class MalformedTableError(CompilationError):
    """Raised when a styles or strings table does not have the expected shape."""

    def __init__(self, message: str, *, source: str | Path | None = None, row: int | None = None):
        self.source = str(source) if source is not None else None
        self.row = row
        location = ""
        if self.source and row is not None:
            location = f"{self.source}:{row}: "
        elif self.source:
            location = f"{self.source}: "
        super().__init__(f"{location}{message}")


class MalformedMarkupError(CompilationError):
    """Raised when inline markup is malformed and strict parsing is enabled."""


class MissingResourceError(CompilationError):
    """Raised when an input table or font file cannot be located."""


class UnknownLanguageError(CompilationError):
    """Raised when the requested language is not a column of the strings table."""

    def __init__(self, language: str, available: list[str] | tuple[str, ...] = ()) -> None:
        self.language = language
        self.available = tuple(available)
        message = f"language key not present in strings table: '{language}'"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)


class UnknownStyleReferenceError(CompilationError):
    """Raised when a style tag names a style missing from the catalog."""

    def __init__(self, name: str, *, key: str = "", page: int | None = None) -> None:
        self.name = name
        self.key = key
        self.page = page
        message = f"unknown style '{name}'"
        if page is not None:
            message += f" on page {page}"
        super().__init__(f"{key}: {message}" if key else message)


class CollaboratorFailureError(CompilationError):
    """Raised when an external shaping, rasterization or font tool fails."""


class InternalConsistencyError(CompilationError):
    """Raised when pipeline stages disagree about the glyph set."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "CollaboratorFailureError",
    "CompilationError",
    "ConfigError",
    "InternalConsistencyError",
    "MalformedMarkupError",
    "MalformedTableError",
    "MissingResourceError",
    "UnknownLanguageError",
    "UnknownStyleReferenceError",
    "exception_hint",
    "exception_messages",
]
