"""Square grid: unit squares scaled by a per-axis cell size."""

from __future__ import annotations

import math
from typing import Iterator, List, Optional, Sequence, Tuple

from yapgrid.bounds import Bound, RectBound
from yapgrid.cell import IDENTITY, Cell, Move, RaycastInfo, SquareDir
from yapgrid.cell_type import square_cell_type
from yapgrid.config import get_setting
from yapgrid.errors import InvalidArgumentError
from yapgrid.geometry import Aabb, Vec3, add, ray_aabb, scale, to_vec3
from yapgrid.grid import Grid, GridType

SQUARE_DELTAS = ((1, 0, 0), (0, 1, 0), (-1, 0, 0), (0, -1, 0))

# side of a cell a ray enters through, keyed by (axis, step)
_ENTRY_DIR = {
    (0, 1): SquareDir.LEFT,
    (0, -1): SquareDir.RIGHT,
    (1, 1): SquareDir.DOWN,
    (1, -1): SquareDir.UP,
}


def cell_size_tuple(cell_size, dims: int) -> Tuple[float, ...]:
    """Normalise a scalar or per-axis cell size, rejecting non-positive sizes."""
    if isinstance(cell_size, (int, float)):
        size = (float(cell_size),) * dims
    else:
        size = tuple(float(s) for s in cell_size)
        if len(size) != dims:
            raise InvalidArgumentError(f"cell size needs {dims} components, got {cell_size!r}")
    if any(not s > 0 or math.isinf(s) for s in size):
        raise InvalidArgumentError(f"cell size must be positive and finite, got {cell_size!r}")
    return size


def dda(origin: Sequence[float], direction: Sequence[float], size: Sequence[float],
        t_end: float, max_steps: int) -> Iterator[Tuple[Tuple[int, ...], float, Optional[int], int]]:
    """Amanatides-Woo voxel traversal.

    Yields ``(cell, t, axis, step)`` for each voxel the ray visits:
    ``t`` is the ray parameter where it was entered, ``axis``/``step``
    the face crossed to get there (``None``/``0`` for the first).
    """
    n = len(size)
    cell = [math.floor(origin[i] / size[i]) for i in range(n)]
    step = [0] * n
    t_max = [math.inf] * n
    t_delta = [math.inf] * n
    for i in range(n):
        if direction[i] > 0:
            step[i] = 1
            t_max[i] = ((cell[i] + 1) * size[i] - origin[i]) / direction[i]
            t_delta[i] = size[i] / direction[i]
        elif direction[i] < 0:
            step[i] = -1
            t_max[i] = (cell[i] * size[i] - origin[i]) / direction[i]
            t_delta[i] = -size[i] / direction[i]

    yield tuple(cell), 0.0, None, 0
    if not any(step):
        return
    for _ in range(max_steps):
        axis = min(range(n), key=lambda i: t_max[i])
        t = t_max[axis]
        if t > t_end:
            return
        cell[axis] += step[axis]
        t_max[axis] += t_delta[axis]
        yield tuple(cell), t, axis, step[axis]


class SquareGrid(Grid):
    """Infinite or bounded grid of ``cell_size`` squares.

    Cell ``(x, y)`` covers ``[x*sx, (x+1)*sx] x [y*sy, (y+1)*sy]``.
    Directions follow :class:`SquareDir`; the inverse of ``d`` is
    ``d ^ 2``.
    """

    grid_type = GridType.SQUARE

    def __init__(self, cell_size=1.0, bound: Optional[Bound] = None):
        super().__init__(bound)
        self.cell_size = cell_size_tuple(cell_size, 2)

    def __repr__(self):
        return f"SquareGrid(cell_size={self.cell_size}, bound={self.bound!r})"

    @property
    def is_repeating(self) -> bool:
        return True

    def is_cell_in_grid(self, cell: Cell) -> bool:
        if cell[2] != 0:
            return False
        return self._bound is None or self._bound.contains(cell)

    def cell_type(self, cell: Cell):
        return square_cell_type()

    def try_move(self, cell: Cell, dir: int) -> Optional[Move]:
        if not 0 <= dir < 4 or not self.is_cell_in_grid(cell):
            return None
        dest = cell.delta(SQUARE_DELTAS[dir])
        if not self.is_cell_in_grid(dest):
            return None
        return Move(dest, dir ^ 2, IDENTITY)

    def cell_center(self, cell: Cell) -> Vec3:
        sx, sy = self.cell_size
        return ((cell[0] + 0.5) * sx, (cell[1] + 0.5) * sy, 0.0)

    def corner_position(self, cell: Cell, corner: int) -> Vec3:
        ux, uy, _ = square_cell_type().corner_position(corner)
        sx, sy = self.cell_size
        return ((cell[0] + 0.5 + ux) * sx, (cell[1] + 0.5 + uy) * sy, 0.0)

    def cell_aabb(self, cell: Cell) -> Aabb:
        sx, sy = self.cell_size
        return Aabb((cell[0] * sx, cell[1] * sy, 0.0),
                    ((cell[0] + 1) * sx, (cell[1] + 1) * sy, 0.0))

    def find_cell(self, position: Sequence[float]) -> Optional[Cell]:
        p = to_vec3(position)
        sx, sy = self.cell_size
        cell = Cell(math.floor(p[0] / sx), math.floor(p[1] / sy), 0)
        return cell if self.is_cell_in_grid(cell) else None

    def cells_in_aabb(self, aabb_min: Sequence[float], aabb_max: Sequence[float]) -> List[Cell]:
        lo, hi = to_vec3(aabb_min), to_vec3(aabb_max)
        sx, sy = self.cell_size
        x0, y0 = math.floor(lo[0] / sx), math.floor(lo[1] / sy)
        x1 = max(x0, math.ceil(hi[0] / sx) - 1)
        y1 = max(y0, math.ceil(hi[1] / sy) - 1)
        rect = self._bound.get_rect() if self._bound is not None else None
        if rect is not None:
            x0, y0 = max(x0, rect[0]), max(y0, rect[1])
            x1, y1 = min(x1, rect[2]), min(y1, rect[3])
        return [Cell(x, y, 0)
                for y in range(y0, y1 + 1)
                for x in range(x0, x1 + 1)
                if self.is_cell_in_grid(Cell(x, y, 0))]

    def _world_box(self) -> Optional[Aabb]:
        """World-space box of the bound, or ``None`` if unbounded."""
        if self._bound is None:
            return None
        if self._bound.is_empty:
            return Aabb((0.0, 0.0, 0.0), (-1.0, -1.0, -1.0))
        rect = self._bound.get_rect()
        sx, sy = self.cell_size
        if rect is not None:
            return Aabb((rect[0] * sx, rect[1] * sy, 0.0),
                        ((rect[2] + 1) * sx, (rect[3] + 1) * sy, 0.0))
        box = None
        for cell in self.cells():
            b = self.cell_aabb(cell)
            box = b if box is None else box.union(b)
        return box

    def raycast(self, origin, direction, max_distance=math.inf, max_hits=None):
        o = to_vec3(origin)
        dx, dy, _ = to_vec3(direction)
        norm = math.hypot(dx, dy)
        if norm == 0.0:
            raise InvalidArgumentError("ray direction has no component in the grid plane")
        d = (dx / norm, dy / norm, 0.0)

        t_start, t_end = 0.0, max_distance
        box = self._world_box()
        if box is not None:
            if box.is_empty:
                return []
            flat = Aabb((box.min[0], box.min[1], -1.0), (box.max[0], box.max[1], 1.0))
            span = ray_aabb((o[0], o[1], 0.0), d, flat)
            if span is None:
                return []
            t_start = max(0.0, span[0])
            t_end = min(t_end, span[1])
            if t_start > t_end:
                return []

        start = add(o, scale(d, t_start))
        hits: List[RaycastInfo] = []
        for cell, t, axis, step in dda(start, d, self.cell_size, t_end - t_start,
                                       int(get_setting("raycast_max_steps"))):
            c = Cell(cell[0], cell[1], 0)
            if not self.is_cell_in_grid(c):
                continue
            tt = t + t_start
            entered = None if axis is None else int(_ENTRY_DIR[(axis, step)])
            hits.append(RaycastInfo(c, add(o, scale(d, tt)), tt, entered))
            if max_hits is not None and len(hits) >= max_hits:
                break
        return hits

    def cells(self, max_cells=None):
        if isinstance(self._bound, RectBound):
            return self._bound.cells(max_cells)
        return super().cells(max_cells)

    def cell_count(self) -> int:
        if isinstance(self._bound, RectBound):
            return self._bound.cell_count
        return super().cell_count()

    def index_count(self) -> int:
        if isinstance(self._bound, RectBound):
            return self._bound.cell_count
        return super().index_count()

    def index(self, cell: Cell) -> int:
        if isinstance(self._bound, RectBound):
            self._require_cell(cell)
            b = self._bound
            return (cell[1] - b.min_y) * b.width + (cell[0] - b.min_x)
        return super().index(cell)

    def cell_by_index(self, index: int) -> Optional[Cell]:
        if isinstance(self._bound, RectBound):
            b = self._bound
            if not 0 <= index < b.cell_count:
                return None
            return Cell(b.min_x + index % b.width, b.min_y + index // b.width, 0)
        return super().cell_by_index(index)

    def bound_by(self, bound: Bound) -> "SquareGrid":
        return SquareGrid(self.cell_size, bound)

    def unbounded(self) -> "SquareGrid":
        return SquareGrid(self.cell_size)


__all__ = [
    "SquareGrid",
    "SQUARE_DELTAS",
    "cell_size_tuple",
    "dda",
]
