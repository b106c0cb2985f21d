"""Implementation of the ``glyphsmith`` build command."""

from __future__ import annotations

from pathlib import Path

import click
import typer

from glyphsmith.core.config import find_config, load_config
from glyphsmith.core.exceptions import CompilationError, exception_hint
from glyphsmith.core.logging import PipelineLogger
from glyphsmith.core.pipeline import TextCompiler

from .._options import (
    CacheFileOption,
    ConfigOption,
    DebugOption,
    DebugPagesOption,
    FontsDirOption,
    LanguageArgument,
    MsdfgenOption,
    OutputDirOption,
    StrictOption,
    StringsOption,
    StylesOption,
    VerboseOption,
)
from ..diagnostics import CliEmitter
from ..presenter import present_build_summary, present_warnings
from ..state import emit_error, render_message, set_cli_state


def build(
    language: LanguageArgument = None,
    config_file: ConfigOption = None,
    styles: StylesOption = None,
    strings: StringsOption = None,
    fonts_dir: FontsDirOption = None,
    output_dir: OutputDirOption = None,
    cache_file: CacheFileOption = None,
    msdfgen: MsdfgenOption = None,
    strict: StrictOption = None,
    debug_pages: DebugPagesOption = None,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
) -> None:
    """Compile the strings table for LANGUAGE into a glyph document and atlas."""

    ctx = click.get_current_context(silent=True)
    typer_ctx = ctx if isinstance(ctx, typer.Context) else None
    state = set_cli_state(ctx=typer_ctx, verbosity=verbose, debug=debug)

    if typer_ctx is not None and typer_ctx.resilient_parsing:
        return

    if not language:
        emit_error("Missing LANGUAGE argument: name the language column to compile.")
        raise typer.Exit(code=1)

    config_path = config_file or find_config(Path.cwd())
    overrides: dict[str, object] = {
        "styles": styles,
        "strings": strings,
        "fonts_dir": fonts_dir,
        "output_dir": output_dir,
        "cache_file": cache_file,
        "msdfgen": msdfgen,
        "strict_markup": strict,
        "debug_pages": debug_pages,
    }
    if config_path is None:
        overrides["root"] = Path.cwd()

    try:
        config = load_config(config_path, **overrides)
        compiler = TextCompiler(
            config,
            emitter=CliEmitter(state),
            logger=PipelineLogger(verbose=state.verbosity > 0, console=state.console),
        )
        result = compiler.compile(language)
    except (CompilationError, OSError) as exc:
        if state.show_tracebacks:
            raise
        present_warnings(state)
        emit_error(str(exc), exception=exc)
        hint = exception_hint(exc)
        if hint and hint != str(exc) and state.verbosity == 0:
            render_message("warning", f"hint: {hint}")
        raise typer.Exit(code=1) from exc

    present_build_summary(state, result)


__all__ = ["build"]
