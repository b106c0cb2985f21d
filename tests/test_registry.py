from __future__ import annotations

import pytest

from glyphsmith.core import registry as registry_module
from glyphsmith.core.exceptions import InternalConsistencyError
from glyphsmith.core.hashing import HASH_SEED, face_hash
from glyphsmith.core.registry import GlyphRegistry, glyph_identity


def test_identity_packs_face_hash_and_index() -> None:
    identity = glyph_identity("SomeFace", 42)

    assert identity >> 32 == face_hash("SomeFace")
    assert identity & 0xFFFFFFFF == 42


def test_identity_rejects_out_of_range_index() -> None:
    with pytest.raises(InternalConsistencyError):
        glyph_identity("SomeFace", 1 << 32)


def test_intern_deduplicates_pairs() -> None:
    registry = GlyphRegistry()

    first = registry.intern("A", 3)
    again = registry.intern("A", 3)
    other = registry.intern("B", 3)

    assert first is again
    assert first.identity != other.identity
    assert len(registry) == 2
    assert first.identity in registry


def test_sorted_records_order_by_face_then_index() -> None:
    registry = GlyphRegistry()
    for face, index in [("B", 1), ("A", 9), ("A", 2), ("B", 0)]:
        registry.intern(face, index)

    assert [(r.face, r.glyph_index) for r in registry.sorted_records()] == [
        ("A", 2),
        ("A", 9),
        ("B", 0),
        ("B", 1),
    ]
    assert registry.index_of(glyph_identity("B", 0)) == 2
    assert registry.index_of(glyph_identity("C", 0)) is None


def test_identity_hash_ignores_insertion_order() -> None:
    left = GlyphRegistry()
    right = GlyphRegistry()
    for face, index in [("A", 1), ("B", 2), ("A", 3)]:
        left.intern(face, index)
    for face, index in [("A", 3), ("A", 1), ("B", 2)]:
        right.intern(face, index)

    assert left.identity_hash() == right.identity_hash()
    right.intern("B", 4)
    assert left.identity_hash() != right.identity_hash()


def test_identity_hash_of_empty_registry_is_seed() -> None:
    assert GlyphRegistry().identity_hash() == HASH_SEED


def test_index_cache_refreshes_after_intern() -> None:
    registry = GlyphRegistry()
    registry.intern("B", 1)
    assert registry.index_of(glyph_identity("B", 1)) == 0

    registry.intern("A", 1)

    assert registry.index_of(glyph_identity("B", 1)) == 1


def test_identity_collision_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(registry_module, "face_hash", lambda face: 7)
    registry = GlyphRegistry()
    registry.intern("A", 1)

    with pytest.raises(InternalConsistencyError, match="collision"):
        registry.intern("B", 1)
