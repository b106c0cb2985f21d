from __future__ import annotations

from pathlib import Path
import struct

import pytest

from glyphsmith.core.atlas import GlyphUV
from glyphsmith.core.exceptions import InternalConsistencyError
from glyphsmith.core.layout import RenderedPage, RenderedString, TypesetGlyph
from glyphsmith.core.markup import UserTag
from glyphsmith.core.registry import GlyphRegistry
from glyphsmith.core.serializer import MAGIC, pad_string, read_document, write_document


@pytest.mark.parametrize(
    ("value", "size"),
    [("", 4), ("abc", 4), ("abcd", 8), ("é", 4), ("x" * 255, 256)],
)
def test_padded_strings_align_to_four_bytes(value: str, size: int) -> None:
    encoded = pad_string(value)

    assert len(encoded) == size
    assert encoded[0] == len(value.encode("utf-8"))
    assert encoded[1 + encoded[0] :] == b"\x00" * (size - 1 - encoded[0])


def test_padded_string_rejects_long_values() -> None:
    with pytest.raises(InternalConsistencyError):
        pad_string("x" * 256)


def _fixture() -> tuple[GlyphRegistry, list[RenderedString], list[GlyphUV]]:
    registry = GlyphRegistry()
    b = registry.intern("Face", 2)
    a = registry.intern("Face", 1)
    glyphs = (
        TypesetGlyph(source_offset=0, identity=b.identity, x0=1, y0=2, x1=3, y1=4),
        TypesetGlyph(source_offset=1, identity=a.identity, x0=5, y0=6, x1=7, y1=8),
    )
    page = RenderedPage(index=0, tags=(UserTag("link", 0, 1),), glyphs=glyphs)
    strings = [
        RenderedString(key="greet", width=100, height=50, pages=(page, RenderedPage(1, (), ()))),
    ]
    # UVs follow sorted order: Face#1 then Face#2.
    uvs = [GlyphUV(0.0, 0.0, 0.25, 0.25), GlyphUV(0.5, 0.5, 0.75, 1.0)]
    return registry, strings, uvs


def test_document_layout(tmp_path: Path) -> None:
    registry, strings, uvs = _fixture()
    target = tmp_path / "bin" / "strings.txtc"

    size = write_document(target, strings, registry, uvs)

    data = target.read_bytes()
    assert len(data) == size
    assert struct.unpack_from("<II", data) == (MAGIC, 1)
    assert data[8:16] == b"\x05greet\x00\x00"
    assert struct.unpack_from("<III", data, 16) == (100, 50, 2)


def test_document_round_trip_quads(tmp_path: Path) -> None:
    registry, strings, uvs = _fixture()
    target = tmp_path / "strings.txtc"
    write_document(target, strings, registry, uvs)

    decoded = read_document(target.read_bytes())

    assert [entry.key for entry in decoded] == ["greet"]
    first, second = decoded[0].pages
    assert first.tags == (UserTag("link", 0, 1),)
    assert first.vertices[:4] == (
        (1.0, 2.0, 0.5, 0.5),
        (1.0, 4.0, 0.5, 1.0),
        (3.0, 4.0, 0.75, 1.0),
        (3.0, 2.0, 0.75, 0.5),
    )
    assert first.vertices[4] == (5.0, 6.0, 0.0, 0.0)
    assert len(first.vertices) == 8
    assert second.tags == ()
    assert second.vertices == ()


def test_missing_uv_writes_nothing(tmp_path: Path) -> None:
    registry, strings, uvs = _fixture()
    target = tmp_path / "strings.txtc"

    with pytest.raises(InternalConsistencyError, match="no atlas entry"):
        write_document(target, strings, registry, uvs[:1])

    assert not target.exists()
    assert list(tmp_path.iterdir()) == []


def test_read_document_rejects_garbage() -> None:
    with pytest.raises(ValueError, match="magic"):
        read_document(b"\x00" * 8)
    with pytest.raises(ValueError, match="truncated"):
        read_document(struct.pack("<II", MAGIC, 1))
