"""Wrap modifier: glues opposite edges of a finite grid together.

Each wrapped axis is reduced into its inclusive range ``[min, max]``
with a Euclidean modulo, so stepping off one side re-enters on the
other.  Axes are wrapped independently; the modifier suits grids whose
cells are addressed per axis (square, cube and prism layers).
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

from yapgrid.bounds import Bound
from yapgrid.cell import Cell, Move
from yapgrid.errors import InvalidArgumentError, UnboundedError
from yapgrid.grid import Grid
from yapgrid.modifiers.base import GridModifier

Range = Tuple[int, int]


def _ranges_from(bounds) -> Optional[Tuple[Range, Range, Range]]:
    if isinstance(bounds, Bound):
        box = bounds.get_cube()
        rect = bounds.get_rect() if box is None else None
        if box is None and rect is None:
            return None
        bounds = box if box is not None else rect
    if len(bounds) == 4:
        min_x, min_y, max_x, max_y = bounds
        return ((min_x, max_x), (min_y, max_y), (0, 0))
    if len(bounds) == 6:
        min_x, min_y, min_z, max_x, max_y, max_z = bounds
        return ((min_x, max_x), (min_y, max_y), (min_z, max_z))
    raise InvalidArgumentError(f"wrap bounds need 4 or 6 values, got {bounds!r}")


class WrapModifier(GridModifier):
    """Toroidal (or cylindrical) wrapping of ``underlying``.

    ``bounds`` is a :class:`~yapgrid.bounds.Bound` or a tuple
    ``(min_x, min_y, max_x, max_y)`` / ``(min_x, min_y, min_z, max_x,
    max_y, max_z)``; by default the underlying grid's own bound is
    used.  Moves are taken on the underlying grid's unbounded topology
    and the destination is wrapped back in.
    """

    def __init__(self, underlying: Grid, wrap_x: bool = True, wrap_y: bool = True,
                 wrap_z: bool = False, bounds=None):
        if bounds is None:
            if underlying is None or getattr(underlying, "bound", None) is None:
                raise UnboundedError("wrapping needs bounds or a bounded grid")
            bounds = underlying.bound
        ranges = _ranges_from(bounds)
        if ranges is None:
            raise UnboundedError(f"cannot take wrap ranges from {bounds!r}")
        if any(lo > hi for lo, hi in ranges):
            raise InvalidArgumentError(f"empty wrap range in {bounds!r}")
        super().__init__(underlying)
        self.ranges = ranges
        self.wrap = (bool(wrap_x), bool(wrap_y), bool(wrap_z))
        self._bounds_arg = bounds
        self._walker = underlying.unbounded() if underlying.supports("unbounded") else underlying

    def _rebuild(self, underlying: Grid) -> "WrapModifier":
        bounds = self._bounds_arg if underlying.bound is None else None
        return WrapModifier(underlying, *self.wrap, bounds=bounds)

    def normalize(self, cell: Sequence[int]) -> Cell:
        """Reduce each wrapped coordinate into its range."""
        out = list(cell) + [0] * (3 - len(cell))
        for axis in range(3):
            if self.wrap[axis]:
                lo, hi = self.ranges[axis]
                span = hi - lo + 1
                out[axis] = lo + (out[axis] - lo) % span
        return Cell(*out)

    def is_cell_in_grid(self, cell: Cell) -> bool:
        return self.underlying.is_cell_in_grid(self.normalize(cell))

    def try_move(self, cell: Cell, dir: int) -> Optional[Move]:
        src = self.normalize(cell)
        if not self.underlying.is_cell_in_grid(src):
            return None
        move = self._walker.try_move(src, dir)
        if move is None:
            return None
        dest = self.normalize(move.dest)
        if not self.underlying.is_cell_in_grid(dest):
            return None
        return Move(dest, move.inverse_dir, move.connection)

    def cell_type(self, cell: Cell):
        return self.underlying.cell_type(self.normalize(cell))

    def cell_dirs(self, cell: Cell):
        return self.underlying.cell_dirs(self.normalize(cell))

    def cell_corners(self, cell: Cell):
        return self.underlying.cell_corners(self.normalize(cell))

    def cell_center(self, cell: Cell):
        return self.underlying.cell_center(self.normalize(cell))

    def corner_position(self, cell: Cell, corner: int):
        return self.underlying.corner_position(self.normalize(cell), corner)

    def polygon(self, cell: Cell):
        return self.underlying.polygon(self.normalize(cell))

    def cell_aabb(self, cell: Cell):
        return self.underlying.cell_aabb(self.normalize(cell))

    def index(self, cell: Cell) -> int:
        return self.underlying.index(self.normalize(cell))

    def close(self) -> None:
        super().close()
        if self._walker is not self.underlying:
            self._walker.close()


__all__ = ["WrapModifier"]
