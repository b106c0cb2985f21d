"""Console logging helpers for the long-running pipeline stages."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskID, TextColumn, TimeElapsedColumn
import typer


Advance = Callable[[int], None]


@dataclass(slots=True)
class PipelineLogger:
    """Light wrapper around a rich console with a plain ``typer`` fallback.

    When no console is attached, messages go through ``typer.echo`` and
    progress updates are silent unless ``verbose`` is set.
    """

    verbose: bool = False
    console: Console | None = None
    quiet: bool = False

    def _render_message(self, message: str, args: tuple[Any, ...]) -> str:
        if args:
            try:
                message = message % args
            except (TypeError, ValueError):
                message = " ".join([message, *(str(arg) for arg in args)])
        return message

    def info(self, message: str, *args: Any) -> None:
        if self.quiet:
            return
        message = self._render_message(message, args)
        if self.console is not None:
            self.console.log(message)
            return
        typer.echo(message)

    def warning(self, message: str, *args: Any) -> None:
        message = self._render_message(message, args)
        if self.console is not None:
            self.console.print(f"[yellow]warning:[/] {message}")
            return
        typer.secho(message, fg="yellow", err=True)

    def debug(self, message: str, *args: Any) -> None:
        """Emit a message only in verbose mode."""
        if not self.verbose:
            return
        self.info(message, *args)

    @contextmanager
    def progress(self, task: str, total: int | None = None) -> Iterator[Advance]:
        """Yield an ``advance(step=1)`` callable driving a progress bar."""
        if self.console is None or self.quiet:
            count = 0

            def _advance(step: int = 1) -> None:
                nonlocal count
                count += step
                if self.verbose:
                    suffix = f"/{total}" if total else ""
                    typer.echo(f"{task}: {count}{suffix}", err=True)

            yield _advance
            return

        with Progress(
            SpinnerColumn(),
            TextColumn(f"[bold cyan]{task}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}" if total else "{task.completed}"),
            TimeElapsedColumn(),
            console=self.console,
            transient=not self.verbose,
        ) as progress:
            task_id: TaskID = progress.add_task(task, total=total)

            def _advance(step: int = 1) -> None:
                progress.update(task_id, advance=step)

            yield _advance


__all__ = ["Advance", "PipelineLogger"]
