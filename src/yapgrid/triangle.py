"""Triangle grid.

Each cell is a cube-like triple with ``x + y + z`` equal to 1 or 2; the
two values are the two parities of triangle that share every unit
parallelogram.  With flat topped triangles, cells summing to 2 point up
and cells summing to 1 point down.  With flat sides, cells summing to 2
point right.

``cell_size`` is the side length.  Flat topped cells have extents
``(s, s*sqrt(3)/2)``; flat sided cells ``(s*sqrt(3)/2, s)``.
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

from yapgrid.bounds import Bound
from yapgrid.cell import IDENTITY, Cell, Move
from yapgrid.cell_type import SQRT3, TriangleOrientation, triangle_cell_type
from yapgrid.errors import InvalidArgumentError
from yapgrid.geometry import Aabb, Vec3, to_vec3
from yapgrid.grid import Grid, GridType

FLAT_TOP_DELTAS = (
    (0, 0, -1),
    (0, 1, 0),
    (-1, 0, 0),
    (0, 0, 1),
    (0, -1, 0),
    (1, 0, 0),
)

FLAT_SIDE_DELTAS = (
    (1, 0, 0),
    (0, 0, -1),
    (0, 1, 0),
    (-1, 0, 0),
    (0, 0, 1),
    (0, -1, 0),
)

_EVEN = [0, 2, 4]
_ODD = [1, 3, 5]


class TriangleGrid(Grid):
    """Equilateral triangles in either orientation."""

    grid_type = GridType.TRIANGLE

    def __init__(self, cell_size: float = 1.0,
                 orientation: TriangleOrientation = TriangleOrientation.FLAT_TOPPED,
                 bound: Optional[Bound] = None):
        super().__init__(bound)
        if not isinstance(orientation, TriangleOrientation):
            raise InvalidArgumentError(f"not a triangle orientation: {orientation!r}")
        size = float(cell_size)
        if not size > 0 or math.isinf(size):
            raise InvalidArgumentError(f"cell size must be positive and finite, got {cell_size!r}")
        self.cell_size = size
        self.orientation = orientation
        if orientation is TriangleOrientation.FLAT_TOPPED:
            self.cell_extent = (size, size * SQRT3 / 2.0)
            self._deltas = FLAT_TOP_DELTAS
        else:
            self.cell_extent = (size * SQRT3 / 2.0, size)
            self._deltas = FLAT_SIDE_DELTAS
        self._cell_type = triangle_cell_type(orientation)

    def __repr__(self):
        return (f"TriangleGrid(cell_size={self.cell_size}, orientation={self.orientation.name},"
                f" bound={self.bound!r})")

    @property
    def is_repeating(self) -> bool:
        return True

    @property
    def is_flat_topped(self) -> bool:
        return self.orientation is TriangleOrientation.FLAT_TOPPED

    @staticmethod
    def is_up(cell: Cell) -> bool:
        """True for the parity that points up (flat topped) or right
        (flat sides)."""
        return cell[0] + cell[1] + cell[2] == 2

    def is_cell_in_grid(self, cell: Cell) -> bool:
        if cell[0] + cell[1] + cell[2] not in (1, 2):
            return False
        return self._bound is None or self._bound.contains(cell)

    def cell_type(self, cell: Cell):
        return self._cell_type

    def cell_dirs(self, cell: Cell) -> List[int]:
        up = self.is_up(cell)
        if self.is_flat_topped:
            return list(_EVEN if up else _ODD)
        return list(_ODD if up else _EVEN)

    def cell_corners(self, cell: Cell) -> List[int]:
        return list(_EVEN if self.is_up(cell) else _ODD)

    def try_move(self, cell: Cell, dir: int) -> Optional[Move]:
        if not self.is_cell_in_grid(cell) or dir not in self.cell_dirs(cell):
            return None
        dest = cell.delta(self._deltas[dir])
        if not self.is_cell_in_grid(dest):
            return None
        return Move(dest, (dir + 3) % 6, IDENTITY)

    ## geometry

    def cell_center(self, cell: Cell) -> Vec3:
        x, y, z = cell
        sx, sy = self.cell_extent
        if self.is_flat_topped:
            return ((0.5 * x - 0.5 * z) * sx, (-x / 3.0 + 2.0 * y / 3.0 - z / 3.0) * sy, 0.0)
        return ((2.0 * x / 3.0 - y / 3.0 - z / 3.0) * sx, (0.5 * y - 0.5 * z) * sy, 0.0)

    def corner_position(self, cell: Cell, corner: int) -> Vec3:
        cx, cy, _ = self.cell_center(cell)
        ux, uy, _ = self._cell_type.corner_position(corner)
        return (cx + ux * self.cell_size, cy + uy * self.cell_size, 0.0)

    def _locate(self, p: Sequence[float]) -> Cell:
        sx, sy = self.cell_extent
        fx, fy = p[0] / sx, p[1] / sy
        if self.is_flat_topped:
            return Cell(math.ceil(fx - fy / 2.0), math.floor(fy) + 1, math.ceil(-fx - fy / 2.0))
        return Cell(math.floor(fx) + 1, math.ceil(fy - fx / 2.0), math.ceil(-fy - fx / 2.0))

    def find_cell(self, position: Sequence[float]) -> Optional[Cell]:
        cell = self._locate(to_vec3(position))
        return cell if self.is_cell_in_grid(cell) else None

    def cells_in_aabb(self, aabb_min: Sequence[float], aabb_max: Sequence[float]) -> List[Cell]:
        box = Aabb(to_vec3(aabb_min), to_vec3(aabb_max))
        if box.is_empty:
            return []
        hits = [self._locate(c) for c in box.corners()[:4]]
        lo = [min(h[i] for h in hits) - 1 for i in range(3)]
        hi = [max(h[i] for h in hits) + 1 for i in range(3)]
        limits = self._bound.get_cube() if self._bound is not None else None
        if limits is not None:
            lo = [max(lo[i], limits[i]) for i in range(3)]
            hi = [min(hi[i], limits[i + 3]) for i in range(3)]
        result = []
        for x in range(lo[0], hi[0] + 1):
            for y in range(lo[1], hi[1] + 1):
                for z in range(max(lo[2], 1 - x - y), min(hi[2], 2 - x - y) + 1):
                    cell = Cell(x, y, z)
                    if self.is_cell_in_grid(cell) and self.cell_aabb(cell).intersects(box):
                        result.append(cell)
        return result

    def raycast(self, origin, direction, max_distance=math.inf, max_hits=None):
        return self._walk_raycast(origin, direction, max_distance, max_hits)

    ## planar keys: parity folded into the second coordinate

    def planar_key(self, cell: Cell) -> Tuple[int, int]:
        s = cell[0] + cell[1] + cell[2]
        if s not in (1, 2):
            raise InvalidArgumentError(f"{cell} is not a triangle cell")
        return (cell[0], 2 * cell[1] + s - 1)

    def from_planar_key(self, a: int, b: int) -> Cell:
        s = (b & 1) + 1
        y = b >> 1
        return Cell(a, y, s - a - y)

    ## bounds

    def bound_by(self, bound: Bound) -> "TriangleGrid":
        return TriangleGrid(self.cell_size, self.orientation, bound)

    def unbounded(self) -> "TriangleGrid":
        return TriangleGrid(self.cell_size, self.orientation)


__all__ = [
    "TriangleGrid",
    "TriangleOrientation",
    "FLAT_TOP_DELTAS",
    "FLAT_SIDE_DELTAS",
]
