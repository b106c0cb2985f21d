"""Deduplicated registry of every glyph referenced by the rendered strings."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
import struct

from glyphsmith.core.arena import Arena
from glyphsmith.core.exceptions import InternalConsistencyError
from glyphsmith.core.hashing import HASH_SEED, face_hash, rolling_hash


_IDENTITY = struct.Struct("<Q")
_MAX_GLYPH_INDEX = 0xFFFFFFFF


@dataclass(frozen=True, slots=True)
class GlyphRecord:
    """Registered glyph together with its 64-bit identity."""

    face: str
    glyph_index: int
    identity: int


def glyph_identity(face: str, glyph_index: int) -> int:
    """Return ``face_hash(face) << 32 | glyph_index``."""
    if not 0 <= glyph_index <= _MAX_GLYPH_INDEX:
        raise InternalConsistencyError(
            f"glyph index {glyph_index} of face '{face}' does not fit in 32 bits"
        )
    return (face_hash(face) << 32) | glyph_index


class GlyphRegistry:
    """Intern ``(face, glyph_index)`` pairs in first-seen order.

    Lookups by pair go through a dictionary, so interning is constant time per
    glyph. Two different pairs hashing to the same identity would make the UV
    table ambiguous and are rejected.
    """

    def __init__(self) -> None:
        self._records: Arena[GlyphRecord] = Arena("glyphs")
        self._by_pair: dict[tuple[str, int], int] = {}
        self._by_identity: dict[int, int] = {}
        self._sorted: list[GlyphRecord] | None = None
        self._positions: dict[int, int] | None = None

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[GlyphRecord]:
        return iter(self._records)

    def __contains__(self, identity: object) -> bool:
        return identity in self._by_identity

    def intern(self, face: str, glyph_index: int) -> GlyphRecord:
        """Return the record for ``(face, glyph_index)``, registering it if new."""
        slot = self._by_pair.get((face, glyph_index))
        if slot is not None:
            return self._records[slot]

        identity = glyph_identity(face, glyph_index)
        clash = self._by_identity.get(identity)
        if clash is not None:
            other = self._records[clash]
            raise InternalConsistencyError(
                f"glyph identity collision between {other.face}#{other.glyph_index} "
                f"and {face}#{glyph_index}"
            )

        record = GlyphRecord(face=face, glyph_index=glyph_index, identity=identity)
        slot = self._records.push(record)
        self._by_pair[face, glyph_index] = slot
        self._by_identity[identity] = slot
        self._sorted = None
        self._positions = None
        return record

    def sorted_records(self) -> list[GlyphRecord]:
        """Return every record ordered by ``(face, glyph_index)``."""
        if self._sorted is None:
            self._sorted = sorted(self._records, key=lambda record: (record.face, record.glyph_index))
        return list(self._sorted)

    def identity_hash(self) -> int:
        """Hash the sorted identities, eight little-endian bytes each."""
        value = HASH_SEED
        for record in self.sorted_records():
            value = rolling_hash(_IDENTITY.pack(record.identity), value)
        return value

    def index_of(self, identity: int) -> int | None:
        """Return the position of ``identity`` in :meth:`sorted_records` order."""
        if self._positions is None:
            self._positions = {
                record.identity: position for position, record in enumerate(self.sorted_records())
            }
        return self._positions.get(identity)


__all__ = ["GlyphRecord", "GlyphRegistry", "glyph_identity"]
