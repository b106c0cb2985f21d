"""Glyph rasterization through the ``msdfgen`` command line tool."""

from __future__ import annotations

from pathlib import Path
import re
import subprocess
import tempfile

from glyphsmith.core.atlas import CHANNELS, GlyphBitmap
from glyphsmith.core.config import AtlasSettings
from glyphsmith.core.exceptions import CollaboratorFailureError
from glyphsmith.fonts.catalog import FontCatalog


_NUMBER = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"
_BOUNDS_RE = re.compile(
    rf"bounds\s*=\s*({_NUMBER})\s*,\s*({_NUMBER})\s*,\s*({_NUMBER})\s*,\s*({_NUMBER})"
)


def parse_bounds(output: str) -> tuple[float, float, float, float]:
    """Extract ``(left, bottom, right, top)`` from ``msdfgen metrics`` output."""
    match = _BOUNDS_RE.search(output)
    if match is None:
        raise CollaboratorFailureError(f"msdfgen metrics output has no bounds: {output.strip()!r}")
    left, bottom, right, top = (float(value) for value in match.groups())
    return left, bottom, right, top


def _format(value: float) -> str:
    return f"{value:g}"


class MsdfgenClient:
    """Run ``msdfgen`` once for metrics and once for the MTSDF bitmap per glyph."""

    def __init__(
        self,
        executable: str | Path,
        fonts: FontCatalog,
        settings: AtlasSettings | None = None,
    ) -> None:
        self.executable = str(executable)
        self.fonts = fonts
        self.settings = settings or AtlasSettings()

    def _run_cli(self, arguments: list[str], *, description: str) -> subprocess.CompletedProcess[str]:
        command = [self.executable, *arguments]
        try:
            result = subprocess.run(command, check=False, capture_output=True, text=True)
        except OSError as exc:
            raise CollaboratorFailureError(f"Failed to execute {description}: {exc}") from exc

        if result.returncode != 0:
            detail = (result.stderr or "").strip() or (result.stdout or "").strip()
            message = f"{description} exited with status {result.returncode}"
            if detail:
                message = f"{message}: {detail}"
            raise CollaboratorFailureError(message)
        return result

    def metrics(self, face: str, glyph_index: int) -> tuple[float, float, float, float]:
        font = str(self.fonts.path_for(face))
        result = self._run_cli(
            ["metrics", "-font", font, f"g{glyph_index}", "-emnormalize"],
            description=f"msdfgen metrics for {face}#{glyph_index}",
        )
        return parse_bounds(result.stdout)

    def rasterize(self, face: str, glyph_index: int, resolution: int) -> GlyphBitmap:
        bounds = self.metrics(face, glyph_index)
        font = str(self.fonts.path_for(face))
        settings = self.settings
        description = f"msdfgen mtsdf for {face}#{glyph_index}"

        with tempfile.TemporaryDirectory(prefix="glyphsmith-msdfgen-") as tmpdir:
            output = Path(tmpdir) / "glyph.bin"
            self._run_cli(
                [
                    "mtsdf",
                    "-font",
                    font,
                    f"g{glyph_index}",
                    "-o",
                    str(output),
                    "-pxrange",
                    str(settings.px_range),
                    "-emnormalize",
                    "-translate",
                    _format(settings.em_origin),
                    _format(settings.em_origin),
                    "-scale",
                    _format(settings.em_scale),
                    "-dimensions",
                    str(resolution),
                    str(resolution),
                    "-format",
                    "bin",
                ],
                description=description,
            )
            try:
                pixels = output.read_bytes()
            except OSError as exc:
                raise CollaboratorFailureError(f"{description} produced no output: {exc}") from exc

        expected = resolution * resolution * CHANNELS
        if len(pixels) != expected:
            raise CollaboratorFailureError(
                f"{description} produced {len(pixels)} bytes, expected {expected}"
            )
        return GlyphBitmap(bounds=bounds, pixels=pixels, resolution=resolution)


__all__ = ["MsdfgenClient", "parse_bounds"]
