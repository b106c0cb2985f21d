from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen
import pytest

from glyphsmith.core.atlas import GlyphBitmap
from glyphsmith.core.config import AtlasSettings, CompilerConfig
from glyphsmith.core.layout import GlyphSink, StyledRun
from glyphsmith.core.tables import build_catalog


STYLES_CSV = "default,SomeFace,24,1.2\nbold,SomeFace,24,1.2\n"
STRINGS_CSV = (
    "key,width,height,en,fr\n"
    'greet,100,50,"Hello[#- bold]world[#- ][#.]Page2",Bonjour\n'
    'hidden,0,0,"Secret [#note]x[#/]",Cache\n'
)

GLYPH_ADVANCE = 10.0


def build_test_font(path: Path, family: str = "Test Sans") -> Path:
    """Write a 1024 upem font with a square "A" (ink 64..448 x 0..704) and a space."""
    pen = TTGlyphPen(None)
    pen.moveTo((64, 0))
    pen.lineTo((64, 704))
    pen.lineTo((448, 704))
    pen.lineTo((448, 0))
    pen.closePath()
    square = pen.glyph()
    empty = TTGlyphPen(None).glyph()

    builder = FontBuilder(1024, isTTF=True)
    builder.setupGlyphOrder([".notdef", "A", "space"])
    builder.setupCharacterMap({ord("A"): "A", ord(" "): "space"})
    builder.setupGlyf({".notdef": empty, "A": square, "space": empty})
    builder.setupHorizontalMetrics({".notdef": (512, 0), "A": (512, 64), "space": (256, 0)})
    builder.setupHorizontalHeader(ascent=896, descent=-128)
    builder.setupNameTable({"familyName": family, "styleName": "Regular"})
    builder.setupOS2(sTypoAscender=896, sTypoDescender=-128, usWinAscent=896, usWinDescent=128)
    builder.setupPost()
    path.parent.mkdir(parents=True, exist_ok=True)
    builder.save(str(path))
    return path


class FakeShaper:
    """Lays every non-space character out on one line, reporting glyphs in reverse."""

    def __init__(self) -> None:
        self.texts: list[str] = []

    def shape(
        self,
        text: str,
        runs: Sequence[StyledRun],
        width: int,
        height: int,
        on_glyph: GlyphSink,
    ) -> None:
        self.texts.append(text)
        glyphs = []
        for run in runs:
            for offset in range(run.start, run.end):
                char = text[offset]
                if char.isspace():
                    continue
                x0 = offset * GLYPH_ADVANCE
                glyphs.append((offset, run.style.face, ord(char), (x0, 2.0, x0 + 8.0, 14.0)))
        for glyph in reversed(glyphs):
            on_glyph(*glyph)


class FakeRasterizer:
    """Returns uniform bitmaps whose bytes encode the glyph index."""

    def __init__(self, bounds: tuple[float, float, float, float] = (0.0, 0.0, 0.5, 0.5)) -> None:
        self.bounds = bounds
        self.calls: list[tuple[str, int, int]] = []

    def rasterize(self, face: str, glyph_index: int, resolution: int) -> GlyphBitmap:
        self.calls.append((face, glyph_index, resolution))
        value = glyph_index % 256
        return GlyphBitmap(
            bounds=self.bounds,
            pixels=bytes([value]) * (resolution * resolution * 4),
            resolution=resolution,
        )


class RecordingEmitter:
    def __init__(self) -> None:
        self.warnings: list[str] = []
        self.errors: list[str] = []
        self.events: list[tuple[str, dict[str, Any]]] = []

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self.warnings.append(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self.errors.append(message)

    def event(self, name: str, payload) -> None:
        self.events.append((name, dict(payload)))

    def event_names(self) -> list[str]:
        return [name for name, _ in self.events]


SMALL_ATLAS = AtlasSettings(glyph_resolution=16, em_scale=8.0, em_origin=0.5, px_range=2, padding=1)


@pytest.fixture
def catalog():
    return build_catalog(STYLES_CSV, STRINGS_CSV, styles_source="styles.csv", strings_source="strings.csv")


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture
def fake_shaper() -> FakeShaper:
    return FakeShaper()


@pytest.fixture
def fake_rasterizer() -> FakeRasterizer:
    return FakeRasterizer()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "styles.csv").write_text(STYLES_CSV, encoding="utf-8")
    (tmp_path / "strings.csv").write_text(STRINGS_CSV, encoding="utf-8")
    return tmp_path


@pytest.fixture
def config(project: Path) -> CompilerConfig:
    return CompilerConfig(root=project, atlas=SMALL_ATLAS)
