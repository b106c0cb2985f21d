"""Order-sensitive rolling hashes used for change detection."""

from __future__ import annotations

from collections.abc import Iterable


HASH_SEED = 5381
_MASK = 0xFFFFFFFF


def rolling_hash(data: bytes | bytearray | memoryview, seed: int = HASH_SEED) -> int:
    """Accumulate ``data`` byte by byte into a 32-bit hash.

    Each step computes ``h = (h << 5) + (h ^ byte)`` modulo 2**32. Passing the
    result of a previous call as ``seed`` chains several buffers together.
    """
    value = seed & _MASK
    for byte in bytes(data):
        value = ((value << 5) + (value ^ byte)) & _MASK
    return value


def chain_hash(chunks: Iterable[bytes], seed: int = HASH_SEED) -> int:
    """Fold several byte buffers into a single rolling hash, in order."""
    value = seed
    for chunk in chunks:
        value = rolling_hash(chunk, value)
    return value


def source_hash(styles: bytes, strings: bytes, language: str) -> int:
    """Hash the raw table contents together with the target language key."""
    return chain_hash((styles, strings, language.encode("utf-8")))


def face_hash(face: str) -> int:
    """Return the 32-bit hash of a face name, capped at 255 UTF-8 bytes."""
    return rolling_hash(face.encode("utf-8")[:255])


__all__ = ["HASH_SEED", "chain_hash", "face_hash", "rolling_hash", "source_hash"]
