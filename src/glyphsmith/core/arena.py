"""Index-based arenas backing every pipeline stage.

An :class:`Arena` is a growable contiguous buffer. Pushing returns a stable
integer index rather than a reference, and memory is reclaimed wholesale by
resetting the length counter: slots beyond the live length are kept as spare
capacity and overwritten by later pushes. Scratch work nests naturally through
:meth:`Arena.scope`, which truncates the arena back to the length it had on
entry once the block exits.

The compiler keeps one long-lived arena for rendered strings and opens scratch
scopes per string and per page, so peak usage stays around one page's worth of
working data.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Generic, TypeVar, overload


T = TypeVar("T")


class ArenaError(IndexError):
    """Raised on out-of-range access or invalid marks."""


class Arena(Generic[T]):
    """Growable buffer handing out stable indices."""

    __slots__ = ("_high_water", "_items", "_length", "name")

    def __init__(self, name: str = "arena", *, capacity: int = 0) -> None:
        self.name = name
        self._items: list[T | None] = [None] * capacity
        self._length = 0
        self._high_water = 0

    # ------------------------------------------------------------------ sizing

    def __len__(self) -> int:
        return self._length

    def __bool__(self) -> bool:
        return self._length > 0

    @property
    def capacity(self) -> int:
        """Number of slots allocated so far, live or spare."""
        return len(self._items)

    @property
    def high_water(self) -> int:
        """Largest live length observed since the arena was created."""
        return self._high_water

    # -------------------------------------------------------------- allocation

    def push(self, value: T) -> int:
        """Append ``value`` and return its index."""
        index = self._length
        if index < len(self._items):
            self._items[index] = value
        else:
            self._items.append(value)
        self._length = index + 1
        if self._length > self._high_water:
            self._high_water = self._length
        return index

    def extend(self, values: Iterable[T]) -> range:
        """Append every value and return the range of indices they occupy."""
        start = self._length
        for value in values:
            self.push(value)
        return range(start, self._length)

    def pop(self) -> T:
        """Remove and return the most recently pushed value."""
        if self._length == 0:
            raise ArenaError(f"pop from empty arena '{self.name}'")
        self._length -= 1
        value = self._items[self._length]
        self._items[self._length] = None
        return value  # type: ignore[return-value]

    # ------------------------------------------------------------------ access

    @overload
    def __getitem__(self, index: int) -> T: ...

    @overload
    def __getitem__(self, index: slice) -> list[T]: ...

    def __getitem__(self, index: int | slice) -> T | list[T]:
        if isinstance(index, slice):
            start, stop, step = index.indices(self._length)
            return [self._items[i] for i in range(start, stop, step)]  # type: ignore[misc]
        if index < 0:
            index += self._length
        if not 0 <= index < self._length:
            raise ArenaError(f"index {index} out of range for arena '{self.name}'")
        return self._items[index]  # type: ignore[return-value]

    def __iter__(self) -> Iterator[T]:
        for index in range(self._length):
            yield self._items[index]  # type: ignore[misc]

    def view(self, start: int = 0, stop: int | None = None) -> tuple[T, ...]:
        """Return an immutable copy of the live slots in ``[start, stop)``."""
        stop = self._length if stop is None else min(stop, self._length)
        return tuple(self._items[start:stop])  # type: ignore[arg-type]

    # --------------------------------------------------------------- reclaiming

    def mark(self) -> int:
        """Return the current length, to be handed back to :meth:`release`."""
        return self._length

    def release(self, mark: int) -> None:
        """Drop every value pushed after ``mark`` was taken."""
        if not 0 <= mark <= self._length:
            raise ArenaError(f"invalid mark {mark} for arena '{self.name}'")
        for index in range(mark, self._length):
            self._items[index] = None
        self._length = mark

    def clear(self) -> None:
        """Reset the arena to empty while keeping its capacity."""
        self.release(0)

    @contextmanager
    def scope(self) -> Iterator[Arena[T]]:
        """Yield the arena and truncate it back to its entry length on exit."""
        mark = self.mark()
        try:
            yield self
        finally:
            self.release(mark)

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"Arena(name={self.name!r}, length={self._length}, capacity={self.capacity})"


__all__ = ["Arena", "ArenaError"]
