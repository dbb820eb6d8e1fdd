"""Cell hashing and an open addressing map keyed by cells.

:class:`CellHashTable` is a linear probing table with one state byte
per slot.  Deleted slots become tombstones that later inserts reuse.
The table doubles before it becomes half full, and is rehashed in place
when tombstones alone would fill it, so every probe sequence reaches an
empty slot.
"""

from __future__ import annotations

from typing import Any, Iterator, List, Optional, Tuple

from yapgrid.cell import Cell, as_cell
from yapgrid.config import get_setting

_MASK64 = 0xFFFFFFFFFFFFFFFF
_MASK32 = 0xFFFFFFFF

_EMPTY = 0
_LIVE = 1
_TOMBSTONE = 2

MIN_CAPACITY = 16


def _mix64(h: int) -> int:
    # SplitMix64 finaliser
    h ^= h >> 30
    h = (h * 0xBF58476D1CE4E5B9) & _MASK64
    h ^= h >> 27
    h = (h * 0x94D049BB133111EB) & _MASK64
    h ^= h >> 31
    return h


def cell_hash(cell) -> int:
    """64-bit hash of a cell, stable across runs and platforms."""
    x, y, z = as_cell(cell)
    h = (((x & _MASK32) * 0x9E3779B97F4A7C15)
         ^ ((y & _MASK32) * 0xC2B2AE3D27D4EB4F)
         ^ ((z & _MASK32) * 0x165667B19E3779F9)) & _MASK64
    return _mix64(h)


def _round_capacity(capacity: int) -> int:
    cap = 1
    while cap < max(capacity, MIN_CAPACITY):
        cap <<= 1
    return cap


class CellHashTable:
    """Mapping from cells to arbitrary values.

    ``capacity`` defaults to the ``hash_initial_capacity`` setting and
    is rounded up to a power of two no smaller than 16.
    """

    def __init__(self, capacity: Optional[int] = None):
        if capacity is None:
            capacity = int(get_setting("hash_initial_capacity"))
        self._allocate(_round_capacity(int(capacity)))

    def _allocate(self, capacity: int) -> None:
        self._states = bytearray(capacity)
        self._keys: List[Optional[Cell]] = [None] * capacity
        self._values: List[Any] = [None] * capacity
        self._size = 0
        self._used = 0  # live slots plus tombstones

    @property
    def capacity(self) -> int:
        return len(self._states)

    def __len__(self) -> int:
        return self._size

    def __repr__(self):
        return f"CellHashTable(size={self._size}, capacity={self.capacity})"

    ## probing

    def _find(self, key: Cell) -> int:
        """Slot holding ``key``, or -1."""
        mask = self.capacity - 1
        idx = cell_hash(key) & mask
        while True:
            state = self._states[idx]
            if state == _EMPTY:
                return -1
            if state == _LIVE and self._keys[idx] == key:
                return idx
            idx = (idx + 1) & mask

    def _rehash(self, capacity: int) -> None:
        live = [(self._keys[i], self._values[i])
                for i in range(self.capacity) if self._states[i] == _LIVE]
        self._allocate(capacity)
        for key, value in live:
            self._insert(key, value)

    def _reserve(self) -> None:
        if (self._size + 1) * 2 >= self.capacity:
            self._rehash(self.capacity * 2)
        elif (self._used + 1) * 2 >= self.capacity:
            self._rehash(self.capacity)

    def _insert(self, key: Cell, value: Any) -> None:
        mask = self.capacity - 1
        idx = cell_hash(key) & mask
        tomb = -1
        while True:
            state = self._states[idx]
            if state == _EMPTY:
                if tomb >= 0:
                    idx = tomb
                else:
                    self._used += 1
                self._states[idx] = _LIVE
                self._keys[idx] = key
                self._values[idx] = value
                self._size += 1
                return
            if state == _TOMBSTONE:
                if tomb < 0:
                    tomb = idx
            elif self._keys[idx] == key:
                self._values[idx] = value
                return
            idx = (idx + 1) & mask

    ## mapping protocol

    def __setitem__(self, key, value) -> None:
        key = as_cell(key)
        idx = self._find(key)
        if idx >= 0:
            self._values[idx] = value
            return
        self._reserve()
        self._insert(key, value)

    def __getitem__(self, key) -> Any:
        key = as_cell(key)
        idx = self._find(key)
        if idx < 0:
            raise KeyError(key)
        return self._values[idx]

    def __delitem__(self, key) -> None:
        key = as_cell(key)
        idx = self._find(key)
        if idx < 0:
            raise KeyError(key)
        self._states[idx] = _TOMBSTONE
        self._keys[idx] = None
        self._values[idx] = None
        self._size -= 1

    def __contains__(self, key) -> bool:
        return self._find(as_cell(key)) >= 0

    def get(self, key, default: Any = None) -> Any:
        idx = self._find(as_cell(key))
        return default if idx < 0 else self._values[idx]

    def __iter__(self) -> Iterator[Cell]:
        for i in range(self.capacity):
            if self._states[i] == _LIVE:
                yield self._keys[i]

    def keys(self) -> List[Cell]:
        return list(self)

    def values(self) -> List[Any]:
        return [self._values[i] for i in range(self.capacity) if self._states[i] == _LIVE]

    def items(self) -> List[Tuple[Cell, Any]]:
        return [(self._keys[i], self._values[i])
                for i in range(self.capacity) if self._states[i] == _LIVE]

    def clear(self) -> None:
        """Drop every entry, keeping the current capacity."""
        self._allocate(self.capacity)


__all__ = [
    "cell_hash",
    "CellHashTable",
    "MIN_CAPACITY",
]
