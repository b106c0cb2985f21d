from __future__ import annotations

from pathlib import Path
import struct

from glyphsmith.core.atlas import GlyphUV
from glyphsmith.core.cache import CacheRecord, CacheStore, decode_record, encode_record


def _record() -> CacheRecord:
    return CacheRecord(
        source_hash=0x12345678,
        glyph_set_hash=0x9ABCDEF0,
        uvs=(GlyphUV(0.0, 0.25, 0.5, 0.75), GlyphUV(0.125, 0.5, 1.0, 1.0)),
    )


def test_missing_cache_is_cold_start(tmp_path: Path) -> None:
    assert CacheStore(tmp_path / ".cache").load() is None


def test_save_then_load(tmp_path: Path) -> None:
    store = CacheStore(tmp_path / ".cache")

    store.save(_record())

    assert store.load() == _record()
    assert (tmp_path / ".cache").stat().st_size == 12 + 2 * 16


def test_layout_is_little_endian() -> None:
    data = encode_record(_record())

    assert struct.unpack_from("<III", data) == (0x12345678, 0x9ABCDEF0, 2)
    assert struct.unpack_from("<4f", data, 12) == (0.0, 0.25, 0.5, 0.75)


def test_short_or_inconsistent_records_are_ignored(tmp_path: Path) -> None:
    path = tmp_path / ".cache"
    store = CacheStore(path)

    path.write_bytes(b"\x01\x02")
    assert store.load() is None

    path.write_bytes(struct.pack("<III", 1, 2, 3) + b"\x00" * 16)
    assert store.load() is None

    assert decode_record(struct.pack("<III", 1, 2, 0)) == CacheRecord(1, 2, ())


def test_discard_removes_the_record(tmp_path: Path) -> None:
    store = CacheStore(tmp_path / ".cache")
    store.save(_record())

    store.discard()

    assert store.load() is None
    assert not (tmp_path / ".cache").exists()
    store.discard()
