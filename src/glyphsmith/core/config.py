"""Configuration models used by the text compiler.

AtlasSettings

`glyph_resolution` (`int`)
: Edge length in pixels of the square bitmap requested for every glyph.

`em_scale` (`float`)
: Pixels per em inside the glyph bitmap.

`em_origin` (`float`)
: Offset, in ems, of the glyph origin from the bitmap's lower-left corner.

`px_range` (`int`)
: Distance field range in pixels forwarded to the rasterizer.

`padding` (`int`)
: Pixels of field kept around each glyph's ink box in the atlas. The UV
  rectangle excludes this margin.

CompilerConfig

`root` (`Path`)
: Project directory. Every relative path below is resolved against it.

`styles` / `strings` (`Path`)
: Input tables.

`fonts_dir` (`Path`)
: Directory scanned for `.ttf` / `.otf` files.

`output_dir` (`Path`)
: Directory receiving the compiled document, the atlas and debug previews.

`document_name` / `atlas_name` (`str`)
: File names of the compiled document and the atlas image.

`cache_file` (`Path`)
: Incremental cache record.

`msdfgen` (`str`)
: Rasterizer executable. Values containing a directory part are resolved
  against `root`; bare names are looked up on `PATH`.

`strict_markup` (`bool`)
: Turn markup warnings into fatal errors.

`debug_pages` (`bool`)
: Draw a preview PNG for every rendered page.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
import yaml

from glyphsmith.core.exceptions import ConfigError


DEFAULT_CONFIG_NAME = "glyphsmith.yml"


class AtlasSettings(BaseModel):
    """Glyph rasterization and atlas packing parameters."""

    model_config = ConfigDict(extra="forbid")

    glyph_resolution: int = Field(default=128, gt=0)
    em_scale: float = Field(default=64.0, gt=0)
    em_origin: float = 0.5
    px_range: int = Field(default=2, ge=0)
    padding: int = Field(default=2, ge=0)

    @property
    def origin_px(self) -> float:
        return self.em_origin * self.em_scale


class CompilerConfig(BaseModel):
    """Paths and switches for one compilation."""

    model_config = ConfigDict(extra="forbid")

    root: Path = Path(".")
    styles: Path = Path("styles.csv")
    strings: Path = Path("strings.csv")
    fonts_dir: Path = Path(".")
    output_dir: Path = Path("bin")
    document_name: str = "strings.txtc"
    atlas_name: str = "atlas.png"
    cache_file: Path = Path(".cache")
    msdfgen: str = "tool/msdfgen"
    strict_markup: bool = False
    debug_pages: bool = False
    atlas: AtlasSettings = Field(default_factory=AtlasSettings)

    @model_validator(mode="after")
    def resolve_paths(self) -> CompilerConfig:
        """Anchor relative paths on ``root``."""
        for name in ("styles", "strings", "fonts_dir", "output_dir", "cache_file"):
            value: Path = getattr(self, name)
            if not value.is_absolute():
                setattr(self, name, self.root / value)
        executable = Path(self.msdfgen)
        if not executable.is_absolute() and executable.parent != Path("."):
            self.msdfgen = str(self.root / executable)
        return self

    @property
    def document_path(self) -> Path:
        return self.output_dir / self.document_name

    @property
    def atlas_path(self) -> Path:
        return self.output_dir / self.atlas_name


def find_config(root: Path) -> Path | None:
    """Return ``root/glyphsmith.yml`` when it exists."""
    candidate = root / DEFAULT_CONFIG_NAME
    return candidate if candidate.is_file() else None


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read configuration file {path}: {exc}") from exc
    try:
        loaded = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"configuration file {path} must contain a mapping")
    return loaded


def load_config(path: Path | None = None, **overrides: Any) -> CompilerConfig:
    """Build a :class:`CompilerConfig` from an optional YAML file and overrides.

    Overrides set to ``None`` are ignored so that unset CLI options fall back
    to the file or the defaults. A ``root`` read from the file is relative to
    the file's directory.
    """
    data: dict[str, Any] = {}
    if path is not None:
        data.update(_read_yaml(path))
        file_root = Path(data.get("root", "."))
        data["root"] = file_root if file_root.is_absolute() else path.parent / file_root

    data.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return CompilerConfig.model_validate(data)
    except ValidationError as exc:
        source = f" in {path}" if path is not None else ""
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
            for error in exc.errors()
        )
        raise ConfigError(f"invalid configuration{source}: {details}") from exc


__all__ = [
    "DEFAULT_CONFIG_NAME",
    "AtlasSettings",
    "CompilerConfig",
    "find_config",
    "load_config",
]
