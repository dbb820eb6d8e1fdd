"""Cube grid: the three dimensional counterpart of :mod:`yapgrid.square`."""

from __future__ import annotations

import math
from typing import List, Optional, Sequence

from yapgrid.bounds import Bound, CubeBound
from yapgrid.cell import IDENTITY, Cell, CubeDir, Move, RaycastInfo
from yapgrid.cell_type import CUBE_CELL_TYPE
from yapgrid.config import get_setting
from yapgrid.errors import InvalidArgumentError
from yapgrid.geometry import Aabb, Vec3, add, length, ray_aabb, scale, to_vec3
from yapgrid.grid import Grid, GridType
from yapgrid.square import cell_size_tuple, dda

CUBE_DELTAS = (
    (1, 0, 0), (-1, 0, 0),
    (0, 1, 0), (0, -1, 0),
    (0, 0, 1), (0, 0, -1),
)

_ENTRY_DIR = {
    (0, 1): CubeDir.LEFT,
    (0, -1): CubeDir.RIGHT,
    (1, 1): CubeDir.DOWN,
    (1, -1): CubeDir.UP,
    (2, 1): CubeDir.BACK,
    (2, -1): CubeDir.FORWARD,
}


class CubeGrid(Grid):
    """Grid of axis aligned boxes of ``cell_size``.

    Cell ``(x, y, z)`` covers ``[x*sx, (x+1)*sx]`` and likewise on y and
    z.  Directions follow :class:`CubeDir`; the inverse of ``d`` is
    ``d ^ 1``.
    """

    grid_type = GridType.CUBE

    def __init__(self, cell_size=1.0, bound: Optional[Bound] = None):
        super().__init__(bound)
        self.cell_size = cell_size_tuple(cell_size, 3)

    def __repr__(self):
        return f"CubeGrid(cell_size={self.cell_size}, bound={self.bound!r})"

    @property
    def coordinate_dimension(self) -> int:
        return 3

    @property
    def is_repeating(self) -> bool:
        return True

    def is_cell_in_grid(self, cell: Cell) -> bool:
        return self._bound is None or self._bound.contains(cell)

    def cell_type(self, cell: Cell):
        return CUBE_CELL_TYPE

    def try_move(self, cell: Cell, dir: int) -> Optional[Move]:
        if not 0 <= dir < 6 or not self.is_cell_in_grid(cell):
            return None
        dest = cell.delta(CUBE_DELTAS[dir])
        if not self.is_cell_in_grid(dest):
            return None
        return Move(dest, dir ^ 1, IDENTITY)

    def cell_center(self, cell: Cell) -> Vec3:
        sx, sy, sz = self.cell_size
        return ((cell[0] + 0.5) * sx, (cell[1] + 0.5) * sy, (cell[2] + 0.5) * sz)

    def corner_position(self, cell: Cell, corner: int) -> Vec3:
        ux, uy, uz = CUBE_CELL_TYPE.corner_position(corner)
        sx, sy, sz = self.cell_size
        return ((cell[0] + 0.5 + ux) * sx,
                (cell[1] + 0.5 + uy) * sy,
                (cell[2] + 0.5 + uz) * sz)

    def cell_aabb(self, cell: Cell) -> Aabb:
        sx, sy, sz = self.cell_size
        return Aabb((cell[0] * sx, cell[1] * sy, cell[2] * sz),
                    ((cell[0] + 1) * sx, (cell[1] + 1) * sy, (cell[2] + 1) * sz))

    def find_cell(self, position: Sequence[float]) -> Optional[Cell]:
        p = to_vec3(position)
        cell = Cell(*(math.floor(p[i] / self.cell_size[i]) for i in range(3)))
        return cell if self.is_cell_in_grid(cell) else None

    def cells_in_aabb(self, aabb_min: Sequence[float], aabb_max: Sequence[float]) -> List[Cell]:
        lo, hi = to_vec3(aabb_min), to_vec3(aabb_max)
        first = [math.floor(lo[i] / self.cell_size[i]) for i in range(3)]
        last = [max(first[i], math.ceil(hi[i] / self.cell_size[i]) - 1) for i in range(3)]
        box = self._bound.get_cube() if self._bound is not None else None
        if box is not None:
            first = [max(first[i], box[i]) for i in range(3)]
            last = [min(last[i], box[i + 3]) for i in range(3)]
        return [Cell(x, y, z)
                for z in range(first[2], last[2] + 1)
                for y in range(first[1], last[1] + 1)
                for x in range(first[0], last[0] + 1)
                if self.is_cell_in_grid(Cell(x, y, z))]

    def _world_box(self) -> Optional[Aabb]:
        if self._bound is None:
            return None
        if self._bound.is_empty:
            return Aabb((0.0, 0.0, 0.0), (-1.0, -1.0, -1.0))
        box = self._bound.get_cube()
        if box is not None:
            return Aabb(tuple(box[i] * self.cell_size[i] for i in range(3)),
                        tuple((box[i + 3] + 1) * self.cell_size[i] for i in range(3)))
        result = None
        for cell in self.cells():
            b = self.cell_aabb(cell)
            result = b if result is None else result.union(b)
        return result

    def raycast(self, origin, direction, max_distance=math.inf, max_hits=None):
        o = to_vec3(origin)
        d = to_vec3(direction)
        norm = length(d)
        if norm == 0.0:
            raise InvalidArgumentError("ray direction is the zero vector")
        d = scale(d, 1.0 / norm)

        t_start, t_end = 0.0, max_distance
        box = self._world_box()
        if box is not None:
            if box.is_empty:
                return []
            span = ray_aabb(o, d, box)
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
            c = Cell(*cell)
            if not self.is_cell_in_grid(c):
                continue
            tt = t + t_start
            entered = None if axis is None else int(_ENTRY_DIR[(axis, step)])
            hits.append(RaycastInfo(c, add(o, scale(d, tt)), tt, entered))
            if max_hits is not None and len(hits) >= max_hits:
                break
        return hits

    def cells(self, max_cells=None):
        if isinstance(self._bound, CubeBound):
            return self._bound.cells(max_cells)
        return super().cells(max_cells)

    def cell_count(self) -> int:
        if isinstance(self._bound, CubeBound):
            return self._bound.cell_count
        return super().cell_count()

    def index_count(self) -> int:
        if isinstance(self._bound, CubeBound):
            return self._bound.cell_count
        return super().index_count()

    def index(self, cell: Cell) -> int:
        if isinstance(self._bound, CubeBound):
            self._require_cell(cell)
            b = self._bound
            w, h, _ = b.size
            return ((cell[2] - b.min_z) * h + (cell[1] - b.min_y)) * w + (cell[0] - b.min_x)
        return super().index(cell)

    def cell_by_index(self, index: int) -> Optional[Cell]:
        if isinstance(self._bound, CubeBound):
            b = self._bound
            if not 0 <= index < b.cell_count:
                return None
            w, h, _ = b.size
            return Cell(b.min_x + index % w, b.min_y + (index // w) % h, b.min_z + index // (w * h))
        return super().cell_by_index(index)

    def bound_by(self, bound: Bound) -> "CubeGrid":
        return CubeGrid(self.cell_size, bound)

    def unbounded(self) -> "CubeGrid":
        return CubeGrid(self.cell_size)


__all__ = [
    "CubeGrid",
    "CUBE_DELTAS",
]
