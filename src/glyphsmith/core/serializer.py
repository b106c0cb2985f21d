"""Binary encoder for the compiled strings document.

All integers and floats are little endian. Strings are stored as a one-byte
length, the UTF-8 bytes, then zero padding so that the whole field is a
multiple of four bytes. Every glyph becomes a quad of four ``(x, y, u, v)``
vertices, in the order top-left, bottom-left, bottom-right, top-right.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
import struct

from glyphsmith.core.atlas import GlyphUV
from glyphsmith.core.exceptions import InternalConsistencyError
from glyphsmith.core.layout import RenderedPage, RenderedString
from glyphsmith.core.markup import UserTag
from glyphsmith.core.registry import GlyphRegistry
from glyphsmith.core.utils import write_atomic


MAGIC = 0x00545854
VERTICES_PER_GLYPH = 4

_U32 = struct.Struct("<I")
_PAIR = struct.Struct("<II")
_STRING_HEADER = struct.Struct("<III")
_VERTEX = struct.Struct("<4f")


def pad_string(value: str) -> bytes:
    """Encode ``value`` as a length-prefixed, four-byte aligned field."""
    data = value.encode("utf-8")
    if len(data) > 255:
        raise InternalConsistencyError(f"string field exceeds 255 bytes: {value[:32]!r}...")
    padding = -(len(data) + 1) & 3
    return bytes([len(data)]) + data + b"\x00" * padding


class DocumentWriter:
    """Encode rendered strings against a UV table.

    ``uvs`` is indexed in :meth:`GlyphRegistry.sorted_records` order.
    """

    def __init__(self, registry: GlyphRegistry, uvs: Sequence[GlyphUV]) -> None:
        self.registry = registry
        self.uvs = uvs

    def _uv_for(self, identity: int) -> GlyphUV:
        position = self.registry.index_of(identity)
        if position is None or position >= len(self.uvs):
            raise InternalConsistencyError(f"glyph {identity:#018x} has no atlas entry")
        return self.uvs[position]

    def _encode_page(self, page: RenderedPage, out: bytearray) -> None:
        out += _U32.pack(len(page.tags))
        for tag in page.tags:
            out += pad_string(tag.label)
            out += _PAIR.pack(tag.start, tag.end)

        out += _U32.pack(len(page.glyphs) * VERTICES_PER_GLYPH)
        for glyph in page.glyphs:
            uv = self._uv_for(glyph.identity)
            out += _VERTEX.pack(glyph.x0, glyph.y0, uv.u0, uv.v0)
            out += _VERTEX.pack(glyph.x0, glyph.y1, uv.u0, uv.v1)
            out += _VERTEX.pack(glyph.x1, glyph.y1, uv.u1, uv.v1)
            out += _VERTEX.pack(glyph.x1, glyph.y0, uv.u1, uv.v0)

    def encode(self, strings: Sequence[RenderedString]) -> bytes:
        out = bytearray()
        out += _PAIR.pack(MAGIC, len(strings))
        for entry in strings:
            out += pad_string(entry.key)
            out += _STRING_HEADER.pack(entry.width, entry.height, len(entry.pages))
            for page in entry.pages:
                self._encode_page(page, out)
        return bytes(out)


def write_document(
    path: Path,
    strings: Sequence[RenderedString],
    registry: GlyphRegistry,
    uvs: Sequence[GlyphUV],
) -> int:
    """Encode and atomically write the document, returning its size in bytes.

    The whole payload is built before anything touches ``path``, so a missing
    UV leaves any previous document in place.
    """
    payload = DocumentWriter(registry, uvs).encode(strings)
    write_atomic(path, payload)
    return len(payload)


@dataclass(frozen=True, slots=True)
class DecodedPage:
    tags: tuple[UserTag, ...]
    vertices: tuple[tuple[float, float, float, float], ...]


@dataclass(frozen=True, slots=True)
class DecodedString:
    key: str
    width: int
    height: int
    pages: tuple[DecodedPage, ...]


class _Reader:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.offset = 0

    def unpack(self, layout: struct.Struct) -> tuple:
        if self.offset + layout.size > len(self.data):
            raise ValueError(f"truncated document at byte {self.offset}")
        values = layout.unpack_from(self.data, self.offset)
        self.offset += layout.size
        return values

    def u32(self) -> int:
        return self.unpack(_U32)[0]

    def padded(self) -> str:
        if self.offset >= len(self.data):
            raise ValueError(f"truncated document at byte {self.offset}")
        length = self.data[self.offset]
        start = self.offset + 1
        end = start + length
        if end > len(self.data):
            raise ValueError(f"truncated string at byte {self.offset}")
        self.offset = end + (-(length + 1) & 3)
        return self.data[start:end].decode("utf-8")


def read_document(data: bytes) -> list[DecodedString]:
    """Decode a compiled document. Raises ``ValueError`` on malformed input."""
    reader = _Reader(data)
    magic = reader.u32()
    if magic != MAGIC:
        raise ValueError(f"bad magic {magic:#010x}")
    strings: list[DecodedString] = []
    for _ in range(reader.u32()):
        key = reader.padded()
        width, height, page_count = reader.unpack(_STRING_HEADER)
        pages: list[DecodedPage] = []
        for _ in range(page_count):
            tags = []
            for _ in range(reader.u32()):
                label = reader.padded()
                start, end = reader.unpack(_PAIR)
                tags.append(UserTag(label=label, start=start, end=end))
            vertices = tuple(reader.unpack(_VERTEX) for _ in range(reader.u32()))
            pages.append(DecodedPage(tags=tuple(tags), vertices=vertices))
        strings.append(DecodedString(key=key, width=width, height=height, pages=tuple(pages)))
    if reader.offset != len(data):
        raise ValueError(f"{len(data) - reader.offset} trailing bytes after document")
    return strings


__all__ = [
    "MAGIC",
    "DecodedPage",
    "DecodedString",
    "DocumentWriter",
    "pad_string",
    "read_document",
    "write_document",
]
