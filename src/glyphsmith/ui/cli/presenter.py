"""Rich presenters for build summaries and collected diagnostics."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from rich import box
from rich.table import Table

from glyphsmith.core.diagnostics import format_event_message

from .state import CLIState, render_message


if TYPE_CHECKING:  # pragma: no cover - typing only
    from glyphsmith.core.pipeline import CompileResult


def _build_table(
    *,
    title: str | None,
    columns: Sequence[str],
    header_style: str = "bold cyan",
) -> Table:
    """Create a Rich table with the house style."""
    table = Table(title=title or None, box=box.SQUARE, show_edge=True, header_style=header_style)
    for column in columns:
        table.add_column(column)
    return table


def present_warnings(state: CLIState) -> int:
    """Print collected markup warnings grouped by string key and return their count."""
    warnings = state.consume_events("warning")
    if not warnings:
        return 0
    table = _build_table(
        title="Markup warnings", columns=("String", "Problem"), header_style="bold yellow"
    )
    for entry in sorted(warnings, key=lambda item: item.get("key", "")):
        table.add_row(entry.get("key") or "-", entry.get("message", ""))
    state.err_console.print(table)
    return len(warnings)


def _atlas_details(state: CLIState, result: CompileResult) -> str:
    baked = state.consume_events("atlas_baked")
    if baked:
        size = baked[-1].get("size", result.atlas_size)
        return f"baked {result.glyphs} glyph(s) into {size}x{size}"
    if state.consume_events("atlas_reused"):
        return f"reused cached atlas for {result.glyphs} glyph(s)"
    return f"{result.glyphs} glyph(s)"


def present_build_summary(state: CLIState, result: CompileResult) -> None:
    """Render the outcome of a build from the result and the recorded events."""
    warning_count = present_warnings(state)

    if result.skipped:
        hits = state.consume_events("cache_hit")
        payload = hits[-1] if hits else {"source_hash": result.source_hash}
        render_message("info", format_event_message("cache_hit", payload) or result.status)
        return

    table = _build_table(title=f"{result.language}: {result.status}", columns=("Output", "Details"))
    written = state.consume_events("document_written")
    document = written[-1].get("path") if written else str(result.document_path)
    table.add_row(
        "Document", f"{document}\n{result.strings} string(s), {result.pages} page(s)"
    )
    table.add_row("Atlas", f"{result.atlas_path}\n{_atlas_details(state, result)}")
    if warning_count:
        table.add_row("Warnings", str(warning_count))
    for preview in result.previews:
        table.add_row("Preview", str(preview))
    state.console.print(table)


__all__ = ["present_build_summary", "present_warnings"]
