"""Public CLI exports for glyphsmith."""

from __future__ import annotations

from .app import app, main
from .commands import build
from .state import emit_error, emit_warning, get_cli_state


__all__ = [
    "app",
    "build",
    "emit_error",
    "emit_warning",
    "get_cli_state",
    "main",
]
