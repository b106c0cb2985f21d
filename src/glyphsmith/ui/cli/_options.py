"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


INPUTS_PANEL = "Inputs"
OUTPUT_PANEL = "Output"
TOOLS_PANEL = "Tools"
DIAGNOSTICS_PANEL = "Diagnostics"

LanguageArgument = Annotated[
    str | None,
    typer.Argument(
        metavar="LANGUAGE",
        help="Language key to compile, as named in the strings table header.",
        show_default=False,
    ),
]

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Configuration file (defaults to ./glyphsmith.yml when present).",
        dir_okay=False,
        resolve_path=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

StylesOption = Annotated[
    Path | None,
    typer.Option(
        "--styles",
        help="Styles table (name, fontFace, pointSize, lineHeight).",
        resolve_path=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

StringsOption = Annotated[
    Path | None,
    typer.Option(
        "--strings",
        help="Strings table (key, width, height, one column per language).",
        resolve_path=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

FontsDirOption = Annotated[
    Path | None,
    typer.Option(
        "--fonts-dir",
        help="Directory holding the .ttf/.otf files named by the styles table.",
        file_okay=False,
        resolve_path=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

OutputDirOption = Annotated[
    Path | None,
    typer.Option(
        "--output-dir",
        "-o",
        help="Directory receiving the compiled document and the atlas.",
        file_okay=False,
        resolve_path=True,
        rich_help_panel=OUTPUT_PANEL,
    ),
]

CacheFileOption = Annotated[
    Path | None,
    typer.Option(
        "--cache-file",
        help="Incremental build record.",
        dir_okay=False,
        resolve_path=True,
        rich_help_panel=OUTPUT_PANEL,
    ),
]

DebugPagesOption = Annotated[
    bool | None,
    typer.Option(
        "--debug-pages/--no-debug-pages",
        help="Write a PNG preview of every rendered page next to the document.",
        show_default=False,
        rich_help_panel=OUTPUT_PANEL,
    ),
]

MsdfgenOption = Annotated[
    str | None,
    typer.Option(
        "--msdfgen",
        metavar="PATH",
        help="msdfgen executable used to rasterize glyphs.",
        rich_help_panel=TOOLS_PANEL,
    ),
]

StrictOption = Annotated[
    bool | None,
    typer.Option(
        "--strict/--permissive",
        help="Treat markup problems as fatal errors instead of warnings.",
        show_default=False,
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug",
        help="Show full tracebacks when an error occurs.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]


__all__ = [
    "CacheFileOption",
    "ConfigOption",
    "DebugOption",
    "DebugPagesOption",
    "FontsDirOption",
    "LanguageArgument",
    "MsdfgenOption",
    "OutputDirOption",
    "StrictOption",
    "StringsOption",
    "StylesOption",
    "VerboseOption",
]
