"""Incremental build record.

Layout, little endian::

    sourceHash:u32  glyphSetHash:u32  glyphCount:u32
    glyphCount * (u0, v0, u1, v1 : f32)

UVs are stored in the registry's sorted order so that a matching glyph-set
hash lets the previous table be reused verbatim.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import struct

from glyphsmith.core.atlas import GlyphUV
from glyphsmith.core.utils import write_atomic


logger = logging.getLogger(__name__)

_HEADER = struct.Struct("<III")
_UV = struct.Struct("<4f")


@dataclass(frozen=True, slots=True)
class CacheRecord:
    source_hash: int
    glyph_set_hash: int
    uvs: tuple[GlyphUV, ...]

    @property
    def glyph_count(self) -> int:
        return len(self.uvs)


def encode_record(record: CacheRecord) -> bytes:
    parts = [_HEADER.pack(record.source_hash, record.glyph_set_hash, len(record.uvs))]
    parts.extend(_UV.pack(uv.u0, uv.v0, uv.u1, uv.v1) for uv in record.uvs)
    return b"".join(parts)


def decode_record(data: bytes) -> CacheRecord | None:
    """Decode a cache record, returning ``None`` when it is short or inconsistent."""
    if len(data) < _HEADER.size:
        return None
    source_hash, glyph_set_hash, count = _HEADER.unpack_from(data)
    if len(data) != _HEADER.size + count * _UV.size:
        return None
    uvs = tuple(
        GlyphUV(*_UV.unpack_from(data, _HEADER.size + index * _UV.size)) for index in range(count)
    )
    return CacheRecord(source_hash=source_hash, glyph_set_hash=glyph_set_hash, uvs=uvs)


class CacheStore:
    """Read and write the cache record at ``path``.

    A record that cannot be read is treated as absent, which forces a full
    rebuild rather than failing the compilation.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> CacheRecord | None:
        try:
            data = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Ignoring unreadable cache file %s: %s", self.path, exc)
            return None
        record = decode_record(data)
        if record is None:
            logger.debug("Ignoring malformed cache file %s (%d bytes)", self.path, len(data))
        return record

    def save(self, record: CacheRecord) -> None:
        write_atomic(self.path, encode_record(record))

    def discard(self) -> None:
        """Remove the record; the next build then starts cold."""
        self.path.unlink(missing_ok=True)


__all__ = ["CacheRecord", "CacheStore", "decode_record", "encode_record"]
