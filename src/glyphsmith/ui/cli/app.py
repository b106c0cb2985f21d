"""Typer application wiring for the glyphsmith CLI."""

from __future__ import annotations

import typer

from glyphsmith.ui.cli.commands.build import build


app = typer.Typer(
    help="Compile localized strings into glyph quads and an MSDF atlas.",
    context_settings={"help_option_names": ["--help", "-h"]},
    add_completion=False,
)

app.command(name="build")(build)


def main() -> None:
    """Console script entry point."""
    app()


__all__ = ["app", "main"]
