"""Primary public API for glyphsmith."""

from __future__ import annotations

from glyphsmith.core.config import AtlasSettings, CompilerConfig, load_config
from glyphsmith.core.exceptions import (
    CollaboratorFailureError,
    CompilationError,
    ConfigError,
    InternalConsistencyError,
    MalformedMarkupError,
    MalformedTableError,
    MissingResourceError,
    UnknownLanguageError,
    UnknownStyleReferenceError,
)
from glyphsmith.core.markup import MarkupMachine, PageText, StyleRange, UserTag
from glyphsmith.core.pipeline import CompileResult, TextCompiler, compile_language
from glyphsmith.core.serializer import read_document
from glyphsmith.core.tables import ContentCatalog, LocalizedString, Style, build_catalog, load_catalog
from glyphsmith.version import get_version


__version__ = get_version()

__all__ = [
    "AtlasSettings",
    "CollaboratorFailureError",
    "CompilationError",
    "CompileResult",
    "CompilerConfig",
    "ConfigError",
    "ContentCatalog",
    "InternalConsistencyError",
    "LocalizedString",
    "MalformedMarkupError",
    "MalformedTableError",
    "MarkupMachine",
    "MissingResourceError",
    "PageText",
    "Style",
    "StyleRange",
    "TextCompiler",
    "UnknownLanguageError",
    "UnknownStyleReferenceError",
    "UserTag",
    "__version__",
    "build_catalog",
    "compile_language",
    "get_version",
    "load_catalog",
    "load_config",
    "read_document",
]
