"""Ravel modifier: chooses how a finite grid's cells are numbered.

Row and column major orders over a dense rectangle or box are computed
arithmetically.  Every other case ranks the cells by a sort key, so the
indices are always the dense range ``[0, cell_count)``.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from yapgrid.bounds import CubeBound, RectBound
from yapgrid.cell import Cell
from yapgrid.errors import CellNotInGridError, InfiniteGridError, InvalidArgumentError
from yapgrid.grid import Grid
from yapgrid.modifiers.base import GridModifier

MORTON_BITS = {2: 16, 3: 10}


class RavelOrder(Enum):
    ROW_MAJOR = "row_major"
    COLUMN_MAJOR = "column_major"
    MORTON = "morton"
    HILBERT = "hilbert"


def morton_code(offsets: Sequence[int], bits: int) -> int:
    """Interleave the low ``bits`` bits of each offset, first axis in the
    lowest bit."""
    n = len(offsets)
    code = 0
    for b in range(bits):
        for axis, value in enumerate(offsets):
            code |= ((value >> b) & 1) << (b * n + axis)
    return code


def hilbert_index(offsets: Sequence[int], bits: int) -> int:
    """Position along an ``n``-dimensional Hilbert curve of side
    ``2**bits`` (Skilling's transpose algorithm)."""
    x = list(offsets)
    n = len(x)
    m = 1 << (bits - 1)

    # inverse undo excess work
    q = m
    while q > 1:
        p = q - 1
        for i in range(n):
            if x[i] & q:
                x[0] ^= p
            else:
                t = (x[0] ^ x[i]) & p
                x[0] ^= t
                x[i] ^= t
        q >>= 1

    # gray encode
    for i in range(1, n):
        x[i] ^= x[i - 1]
    t = 0
    q = m
    while q > 1:
        if x[n - 1] & q:
            t ^= q - 1
        q >>= 1
    for i in range(n):
        x[i] ^= t

    # read the transposed bits out most significant first
    h = 0
    for b in range(bits - 1, -1, -1):
        for i in range(n):
            h = (h << 1) | ((x[i] >> b) & 1)
    return h


class RavelModifier(GridModifier):
    """Renumber the cells of a finite grid in ``order``."""

    def __init__(self, underlying: Grid, order: RavelOrder = RavelOrder.ROW_MAJOR):
        if not isinstance(order, RavelOrder):
            raise InvalidArgumentError(f"not a ravel order: {order!r}")
        if underlying is not None and isinstance(underlying, Grid) and not underlying.is_finite:
            raise InfiniteGridError("only a finite grid can be ravelled")
        super().__init__(underlying)
        self._order = order
        self._table: Optional[Tuple[List[Cell], Dict[Cell, int]]] = None
        self._dense = self._dense_box()

    def _rebuild(self, underlying: Grid) -> "RavelModifier":
        return RavelModifier(underlying, self._order)

    @property
    def order(self) -> RavelOrder:
        return self._order

    def _dense_box(self) -> Optional[Tuple[Tuple[int, ...], Tuple[int, ...]]]:
        """``(mins, sizes)`` when the cells fill a rect or cube bound."""
        if self._order not in (RavelOrder.ROW_MAJOR, RavelOrder.COLUMN_MAJOR):
            return None
        bound = self.underlying.bound
        if isinstance(bound, RectBound) and not bound.is_empty:
            mins, sizes = (bound.min_x, bound.min_y), (bound.width, bound.height)
        elif isinstance(bound, CubeBound) and not bound.is_empty:
            mins, sizes = (bound.min_x, bound.min_y, bound.min_z), bound.size
        else:
            return None
        total = 1
        for s in sizes:
            total *= s
        if self.underlying.cell_count() != total:
            return None
        return mins, tuple(sizes)

    ## rank tables

    def _key(self, cell: Cell, mins: Sequence[int], bits: int, dims: int):
        offsets = [cell[i] - mins[i] for i in range(dims)]
        if self._order is RavelOrder.ROW_MAJOR:
            return tuple(offsets)
        if self._order is RavelOrder.COLUMN_MAJOR:
            return tuple(reversed(offsets))
        if self._order is RavelOrder.MORTON:
            return morton_code(offsets, bits)
        return hilbert_index(offsets, bits)

    def _ranks(self) -> Tuple[List[Cell], Dict[Cell, int]]:
        if self._table is None:
            cells = self.underlying.cells()
            dims = 3 if any(c[2] != 0 for c in cells) else 2
            if cells:
                mins = [min(c[i] for c in cells) for i in range(dims)]
                span = max(max(c[i] for c in cells) - mins[i] for i in range(dims))
            else:
                mins, span = [0] * dims, 0
            bits = max(1, span.bit_length())
            if self._order is RavelOrder.MORTON and bits > MORTON_BITS[dims]:
                raise InvalidArgumentError(
                    f"grid too large for a {dims}-D Morton code of {MORTON_BITS[dims]} bits per axis")
            ordered = sorted(cells, key=lambda c: self._key(c, mins, bits, dims))
            self._table = (ordered, {c: i for i, c in enumerate(ordered)})
        return self._table

    ## indexing

    def index_count(self) -> int:
        if self._dense is not None:
            total = 1
            for s in self._dense[1]:
                total *= s
            return total
        return len(self._ranks()[0])

    def index(self, cell: Cell) -> int:
        if self._dense is not None:
            if not self.underlying.is_cell_in_grid(cell):
                raise CellNotInGridError(cell)
            mins, sizes = self._dense
            offsets = [cell[i] - mins[i] for i in range(len(sizes))]
            axes = range(len(sizes))
            if self._order is RavelOrder.COLUMN_MAJOR:
                axes = reversed(axes)
            result = 0
            for i in axes:
                result = result * sizes[i] + offsets[i]
            return result
        lookup = self._ranks()[1]
        if cell not in lookup:
            raise CellNotInGridError(cell)
        return lookup[cell]

    def cell_by_index(self, index: int) -> Optional[Cell]:
        if not 0 <= index < self.index_count():
            return None
        if self._dense is not None:
            mins, sizes = self._dense
            offsets = [0] * len(sizes)
            axes = list(range(len(sizes)))
            if self._order is RavelOrder.ROW_MAJOR:
                axes.reverse()
            rest = index
            for i in axes:
                rest, offsets[i] = divmod(rest, sizes[i])
            coords = [mins[i] + offsets[i] for i in range(len(sizes))]
            return Cell(*coords)
        return self._ranks()[0][index]

    def cells(self, max_cells: Optional[int] = None) -> List[Cell]:
        n = self.index_count()
        if max_cells is not None:
            n = min(n, max_cells)
        return [self.cell_by_index(i) for i in range(n)]

    def cell_count(self) -> int:
        return self.index_count()

    def close(self) -> None:
        super().close()
        self._table = None


__all__ = [
    "RavelOrder",
    "RavelModifier",
    "morton_code",
    "hilbert_index",
]
