"""Mask modifier: keeps the cells that pass a predicate."""

from __future__ import annotations

import math
from typing import Callable, Iterable, List, Optional, Sequence

from yapgrid.cell import Cell, Move, as_cell
from yapgrid.errors import InvalidArgumentError, NullArgumentError
from yapgrid.grid import Grid
from yapgrid.modifiers.base import GridModifier


class MaskModifier(GridModifier):
    """Restrict ``underlying`` to the cells accepted by ``contains``
    and, if given, listed in ``cells``.

    An explicit list makes the grid finite and fixes the enumeration
    order.  The kept cells need not be connected.  Indexing is dense
    over the kept cells.
    """

    def __init__(self, underlying: Grid,
                 contains: Optional[Callable[[Cell], bool]] = None,
                 cells: Optional[Iterable] = None):
        if contains is None and cells is None:
            raise NullArgumentError("a mask needs a predicate or a cell list")
        if contains is not None and not callable(contains):
            raise InvalidArgumentError(f"mask predicate is not callable: {contains!r}")
        super().__init__(underlying)
        self._contains = contains
        if cells is None:
            self._cells = None
            self._members = None
        else:
            self._cells = tuple(dict.fromkeys(as_cell(c) for c in cells))
            self._members = frozenset(self._cells)

    def _rebuild(self, underlying: Grid) -> "MaskModifier":
        return MaskModifier(underlying, self._contains, self._cells)

    def _passes(self, cell: Cell) -> bool:
        if self._members is not None and cell not in self._members:
            return False
        return self._contains is None or bool(self._contains(cell))

    @property
    def is_finite(self) -> bool:
        return self._cells is not None or self.underlying.is_finite

    def is_cell_in_grid(self, cell: Cell) -> bool:
        return self.underlying.is_cell_in_grid(cell) and self._passes(cell)

    def try_move(self, cell: Cell, dir: int) -> Optional[Move]:
        if not self.is_cell_in_grid(cell):
            return None
        move = self.underlying.try_move(cell, dir)
        if move is None or not self._passes(move.dest):
            return None
        return move

    def find_cell(self, position: Sequence[float]) -> Optional[Cell]:
        cell = self.underlying.find_cell(position)
        if cell is None or not self._passes(cell):
            return None
        return cell

    def cells(self, max_cells: Optional[int] = None) -> List[Cell]:
        if self._cells is not None:
            source = (c for c in self._cells if self.is_cell_in_grid(c))
        else:
            source = (c for c in self.underlying.cells() if self._passes(c))
        result = []
        for cell in source:
            if max_cells is not None and len(result) >= max_cells:
                break
            result.append(cell)
        return result

    def cell_count(self) -> int:
        return len(self.cells())

    def cells_in_aabb(self, aabb_min, aabb_max) -> List[Cell]:
        return [c for c in self.underlying.cells_in_aabb(aabb_min, aabb_max) if self._passes(c)]

    def raycast(self, origin, direction, max_distance=math.inf, max_hits=None):
        if max_hits is None:
            return [h for h in self.underlying.raycast(origin, direction, max_distance)
                    if self._passes(h.cell)]
        if max_hits <= 0:
            return []
        # widen the underlying query until enough hits survive the mask
        # or the ray runs out of cells
        batch = max_hits
        while True:
            raw = self.underlying.raycast(origin, direction, max_distance, batch)
            hits = [h for h in raw if self._passes(h.cell)]
            if len(hits) >= max_hits or len(raw) < batch:
                return hits[:max_hits]
            batch *= 2

    # dense over the kept cells rather than the underlying numbering
    index_count = Grid.index_count
    index = Grid.index
    cell_by_index = Grid.cell_by_index


__all__ = ["MaskModifier"]
