"""Hexagonal grid in cube coordinates.

Cells are cube triples ``(x, y, z)`` with ``x + y + z == 0``.  The axial
form used by bound constructors and planar keys is ``(q, r) = (x, z)``.

``cell_size`` is the corner to corner diameter of a hexagon.  For a
pointy topped grid the cell extents are ``(s*sqrt(3)/2, s)`` and cube
``y`` runs up the page; for a flat topped grid they are
``(s, s*sqrt(3)/2)`` and cube ``x`` runs to the right.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from yapgrid.bounds import Bound
from yapgrid.cell import IDENTITY, Cell, Move
from yapgrid.cell_type import SQRT3, HexOrientation, hex_cell_type
from yapgrid.errors import InvalidArgumentError
from yapgrid.geometry import Aabb, Vec3, to_vec3
from yapgrid.grid import Grid, GridType

# shared by both orientations; pointy direction 0 faces +x, flat
# direction 0 faces 30 degrees
HEX_DELTAS = (
    (1, 0, -1),
    (0, 1, -1),
    (-1, 1, 0),
    (-1, 0, 1),
    (0, -1, 1),
    (1, -1, 0),
)


class OffsetLayout(Enum):
    """Offset coordinate layouts.

    ``*_R`` layouts store rows of a pointy topped grid (``row = y``) and
    shift odd or even rows half a cell to the right.  ``*_Q`` layouts
    store columns of a flat topped grid (``col = x``) and shift odd or
    even columns half a cell up.
    """

    ODD_R = "odd_r"
    EVEN_R = "even_r"
    ODD_Q = "odd_q"
    EVEN_Q = "even_q"


## coordinate helpers

def axial_to_cube(q: int, r: int) -> Cell:
    return Cell(q, -q - r, r)


def cube_to_axial(cell: Sequence[int]) -> Tuple[int, int]:
    x, y, z = cell
    if x + y + z != 0:
        raise InvalidArgumentError(f"{tuple(cell)} is not a cube coordinate")
    return (x, z)


def hex_round(fx: float, fy: float, fz: float) -> Cell:
    """Round fractional cube coordinates to the containing hexagon.

    Each axis is rounded independently; the axis with the largest
    rounding residual is then recomputed from the other two so the
    result stays on the ``x + y + z = 0`` plane.
    """
    rx, ry, rz = math.floor(fx + 0.5), math.floor(fy + 0.5), math.floor(fz + 0.5)
    dx, dy, dz = abs(rx - fx), abs(ry - fy), abs(rz - fz)
    if dx > dy and dx > dz:
        rx = -ry - rz
    elif dy > dz:
        ry = -rx - rz
    else:
        rz = -rx - ry
    return Cell(rx, ry, rz)


def hex_distance(a: Sequence[int], b: Sequence[int]) -> int:
    """Number of moves between two hexes."""
    return max(abs(a[0] - b[0]), abs(a[1] - b[1]), abs(a[2] - b[2]))


def hex_rotate(cell: Sequence[int], steps: int = 1, center: Sequence[int] = (0, 0, 0)) -> Cell:
    """Rotate ``cell`` about ``center`` by ``steps`` sixths of a turn,
    counter-clockwise for positive ``steps``."""
    x, y, z = (cell[0] - center[0], cell[1] - center[1], cell[2] - center[2])
    for _ in range(steps % 6):
        x, y, z = -y, -z, -x
    return Cell(x + center[0], y + center[1], z + center[2])


def offset_to_cube(col: int, row: int, layout: OffsetLayout) -> Cell:
    if layout is OffsetLayout.ODD_R:
        x = col - (row - (row & 1)) // 2
        return Cell(x, row, -x - row)
    if layout is OffsetLayout.EVEN_R:
        x = col - (row + (row & 1)) // 2
        return Cell(x, row, -x - row)
    if layout is OffsetLayout.ODD_Q:
        y = row - (col - (col & 1)) // 2
        return Cell(col, y, -col - y)
    if layout is OffsetLayout.EVEN_Q:
        y = row - (col + (col & 1)) // 2
        return Cell(col, y, -col - y)
    raise InvalidArgumentError(f"unknown offset layout {layout!r}")


def cube_to_offset(cell: Sequence[int], layout: OffsetLayout) -> Tuple[int, int]:
    x, y, z = cell
    if x + y + z != 0:
        raise InvalidArgumentError(f"{tuple(cell)} is not a cube coordinate")
    if layout is OffsetLayout.ODD_R:
        return (x + (y - (y & 1)) // 2, y)
    if layout is OffsetLayout.EVEN_R:
        return (x + (y + (y & 1)) // 2, y)
    if layout is OffsetLayout.ODD_Q:
        return (x, y + (x - (x & 1)) // 2)
    if layout is OffsetLayout.EVEN_Q:
        return (x, y + (x + (x & 1)) // 2)
    raise InvalidArgumentError(f"unknown offset layout {layout!r}")


class HexGrid(Grid):
    """Regular hexagons in either orientation.

    Directions follow :class:`~yapgrid.cell.PointyHexDir` or
    :class:`~yapgrid.cell.FlatHexDir`; in both cases direction ``d``
    steps by ``HEX_DELTAS[d]`` and its inverse is ``(d + 3) % 6``.
    """

    grid_type = GridType.HEX

    def __init__(self, cell_size: float = 1.0,
                 orientation: HexOrientation = HexOrientation.POINTY_TOPPED,
                 bound: Optional[Bound] = None):
        super().__init__(bound)
        if not isinstance(orientation, HexOrientation):
            raise InvalidArgumentError(f"not a hex orientation: {orientation!r}")
        size = float(cell_size)
        if not size > 0 or math.isinf(size):
            raise InvalidArgumentError(f"cell size must be positive and finite, got {cell_size!r}")
        self.cell_size = size
        self.orientation = orientation
        if orientation is HexOrientation.POINTY_TOPPED:
            self.cell_extent = (size * SQRT3 / 2.0, size)
        else:
            self.cell_extent = (size, size * SQRT3 / 2.0)
        self._cell_type = hex_cell_type(orientation)

    def __repr__(self):
        return (f"HexGrid(cell_size={self.cell_size}, orientation={self.orientation.name},"
                f" bound={self.bound!r})")

    @property
    def is_repeating(self) -> bool:
        return True

    @property
    def is_pointy(self) -> bool:
        return self.orientation is HexOrientation.POINTY_TOPPED

    def is_cell_in_grid(self, cell: Cell) -> bool:
        if cell[0] + cell[1] + cell[2] != 0:
            return False
        return self._bound is None or self._bound.contains(cell)

    def cell_type(self, cell: Cell):
        return self._cell_type

    def try_move(self, cell: Cell, dir: int) -> Optional[Move]:
        if not 0 <= dir < 6 or not self.is_cell_in_grid(cell):
            return None
        dest = cell.delta(HEX_DELTAS[dir])
        if not self.is_cell_in_grid(dest):
            return None
        return Move(dest, (dir + 3) % 6, IDENTITY)

    ## geometry

    def cell_center(self, cell: Cell) -> Vec3:
        x, y, z = cell
        sx, sy = self.cell_extent
        if self.is_pointy:
            return ((0.5 * x - 0.5 * z) * sx, (0.5 * y - 0.25 * x - 0.25 * z) * sy, 0.0)
        return ((0.5 * x - 0.25 * y - 0.25 * z) * sx, (0.5 * y - 0.5 * z) * sy, 0.0)

    def corner_position(self, cell: Cell, corner: int) -> Vec3:
        cx, cy, _ = self.cell_center(cell)
        ux, uy, _ = self._cell_type.corner_position(corner)
        k = min(self.cell_extent)
        return (cx + ux * k, cy + uy * k, 0.0)

    def _fractional(self, p: Sequence[float]) -> Tuple[float, float, float]:
        """Fractional cube coordinates of a world point."""
        sx, sy = self.cell_extent
        if self.is_pointy:
            fy = p[1] / (0.75 * sy)
            u = 2.0 * p[0] / sx
            return ((u - fy) / 2.0, fy, (-fy - u) / 2.0)
        fx = p[0] / (0.75 * sx)
        v = 2.0 * p[1] / sy
        return (fx, (v - fx) / 2.0, (-fx - v) / 2.0)

    def find_cell(self, position: Sequence[float]) -> Optional[Cell]:
        cell = hex_round(*self._fractional(to_vec3(position)))
        return cell if self.is_cell_in_grid(cell) else None

    def cells_in_aabb(self, aabb_min: Sequence[float], aabb_max: Sequence[float]) -> List[Cell]:
        box = Aabb(to_vec3(aabb_min), to_vec3(aabb_max))
        if box.is_empty:
            return []
        fracs = [self._fractional(c) for c in box.corners()[:4]]
        lo = [math.floor(min(f[i] for f in fracs)) - 1 for i in range(3)]
        hi = [math.ceil(max(f[i] for f in fracs)) + 1 for i in range(3)]
        limits = self._bound.get_cube() if self._bound is not None else None
        if limits is not None:
            lo = [max(lo[i], limits[i]) for i in range(3)]
            hi = [min(hi[i], limits[i + 3]) for i in range(3)]
        result = []
        for x in range(lo[0], hi[0] + 1):
            for y in range(max(lo[1], -x - hi[2]), min(hi[1], -x - lo[2]) + 1):
                cell = Cell(x, y, -x - y)
                if self.is_cell_in_grid(cell) and self.cell_aabb(cell).intersects(box):
                    result.append(cell)
        return result

    def raycast(self, origin, direction, max_distance=math.inf, max_hits=None):
        return self._walk_raycast(origin, direction, max_distance, max_hits)

    ## planar keys

    def planar_key(self, cell: Cell) -> Tuple[int, int]:
        return cube_to_axial(cell)

    def from_planar_key(self, a: int, b: int) -> Cell:
        return axial_to_cube(a, b)

    ## bounds

    def bound_by(self, bound: Bound) -> "HexGrid":
        return HexGrid(self.cell_size, self.orientation, bound)

    def unbounded(self) -> "HexGrid":
        return HexGrid(self.cell_size, self.orientation)


__all__ = [
    "HEX_DELTAS",
    "HexGrid",
    "HexOrientation",
    "OffsetLayout",
    "axial_to_cube",
    "cube_to_axial",
    "hex_round",
    "hex_distance",
    "hex_rotate",
    "offset_to_cube",
    "cube_to_offset",
]
