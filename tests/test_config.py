from __future__ import annotations

from pathlib import Path

import pytest

from glyphsmith.core.config import AtlasSettings, CompilerConfig, find_config, load_config
from glyphsmith.core.exceptions import ConfigError


def test_defaults_are_anchored_on_root(tmp_path: Path) -> None:
    config = CompilerConfig(root=tmp_path)

    assert config.styles == tmp_path / "styles.csv"
    assert config.strings == tmp_path / "strings.csv"
    assert config.cache_file == tmp_path / ".cache"
    assert config.document_path == tmp_path / "bin" / "strings.txtc"
    assert config.atlas_path == tmp_path / "bin" / "atlas.png"
    assert config.msdfgen == str(tmp_path / "tool" / "msdfgen")


def test_bare_executable_name_is_left_for_path_lookup(tmp_path: Path) -> None:
    config = CompilerConfig(root=tmp_path, msdfgen="msdfgen")

    assert config.msdfgen == "msdfgen"


def test_absolute_paths_are_kept(tmp_path: Path) -> None:
    elsewhere = tmp_path / "elsewhere" / "strings.csv"

    config = CompilerConfig(root=tmp_path / "project", strings=elsewhere)

    assert config.strings == elsewhere


def test_yaml_root_is_relative_to_the_file(tmp_path: Path) -> None:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    path = config_dir / "glyphsmith.yml"
    path.write_text(
        "root: ../game\noutput_dir: build\natlas:\n  glyph_resolution: 64\n", encoding="utf-8"
    )

    config = load_config(path)

    assert config.root == config_dir / "../game"
    assert config.output_dir == config_dir / "../game" / "build"
    assert config.atlas.glyph_resolution == 64
    assert config.atlas.em_scale == AtlasSettings().em_scale


def test_overrides_win_and_none_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "glyphsmith.yml"
    path.write_text("strict_markup: true\ndocument_name: a.bin\n", encoding="utf-8")

    config = load_config(path, document_name="b.bin", strict_markup=None)

    assert config.document_name == "b.bin"
    assert config.strict_markup is True


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "glyphsmith.yml"
    path.write_text("", encoding="utf-8")

    assert load_config(path).root == tmp_path


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("unknown: 1\n", "invalid configuration"),
        ("atlas:\n  glyph_resolution: 0\n", "atlas.glyph_resolution"),
        ("output_dir: [unclosed\n", "invalid YAML"),
        ("- just\n- a list\n", "must contain a mapping"),
    ],
)
def test_invalid_files_raise_config_error(tmp_path: Path, content: str, message: str) -> None:
    path = tmp_path / "glyphsmith.yml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError, match=message):
        load_config(path)


def test_find_config(tmp_path: Path) -> None:
    assert find_config(tmp_path) is None

    (tmp_path / "glyphsmith.yml").write_text("{}\n", encoding="utf-8")

    assert find_config(tmp_path) == tmp_path / "glyphsmith.yml"
