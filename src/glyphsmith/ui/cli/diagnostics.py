"""Diagnostic emitter collecting build diagnostics into the CLI state."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from glyphsmith.core.diagnostics import DiagnosticEmitter, format_event_message

from .state import CLIState, emit_error, emit_warning, get_cli_state, render_message


def split_string_key(message: str) -> tuple[str, str]:
    """Split a ``"<key>: <problem>"`` markup warning into its two parts."""
    key, separator, problem = message.partition(": ")
    if not separator or not key:
        return "", message
    return key, problem


class CliEmitter(DiagnosticEmitter):
    """Record warnings and pipeline events for the build summary.

    Markup warnings are grouped by string key and shown once the build ends;
    with ``-v`` they are also echoed as they happen, together with a line per
    pipeline event.
    """

    def __init__(self, state: CLIState | None = None) -> None:
        self._state = state or get_cli_state()

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        key, problem = split_string_key(message)
        self._state.record_event("warning", {"key": key, "message": problem})
        if self._state.verbosity > 0:
            emit_warning(message, exception=exc)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        emit_error(message, exception=exc)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        data = dict(payload)
        self._state.record_event(name, data)
        if self._state.verbosity > 0:
            message = format_event_message(name, data)
            if message:
                render_message("info", message)


__all__ = ["CliEmitter", "split_string_key"]
