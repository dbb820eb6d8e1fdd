"""The grid interface shared by concrete grids and modifiers.

A grid answers topology questions (which cell lies in direction ``d``
of this one), geometry questions (where is this cell, which cell is at
this point) and enumeration questions (which cells exist, in which
order).  Every operation is optional: a grid that cannot answer one
leaves the base implementation in place, :meth:`Grid.supports` reports
it as absent and calling it raises :class:`NotImplementedGridError`.
That is distinct from a supported operation failing, which returns
``None`` or raises a more specific :class:`GridError`.

Several operations have default derivations from others: polygons from
corners, bounding boxes from polygons, enumeration and indexing from
the bound.
"""

from __future__ import annotations

import math
import weakref
from enum import Enum
from functools import wraps
from typing import Dict, List, Optional, Sequence, Tuple

from yapgrid.bounds import Bound
from yapgrid.cell import Cell, Move, RaycastInfo
from yapgrid.cell_type import CellType
from yapgrid.config import get_setting
from yapgrid.errors import (
    CellNotInGridError,
    InfiniteGridError,
    InvalidArgumentError,
    NotImplementedGridError,
)
from yapgrid.geometry import (
    Aabb,
    Vec3,
    add,
    length,
    ray_segment_xy,
    scale,
    to_vec3,
)


class GridType(Enum):
    SQUARE = "square"
    HEX = "hex"
    TRIANGLE = "triangle"
    CUBE = "cube"
    MESH = "mesh"
    MODIFIER = "modifier"
    CUSTOM = "custom"


def unsupported(func):
    """Mark a base method as an absent capability."""

    @wraps(func)
    def absent(self, *args, **kwargs):
        raise NotImplementedGridError(
            f"{type(self).__name__} does not support {func.__name__}()")

    absent.__unsupported__ = True
    return absent


class Grid:
    """Base class for every grid."""

    grid_type = GridType.CUSTOM

    def __init__(self, bound: Optional[Bound] = None):
        if bound is not None and not isinstance(bound, Bound):
            raise InvalidArgumentError(f"not a bound: {bound!r}")
        self._bound = bound
        self._owner = None
        self._index_table: Optional[Tuple[List[Cell], Dict[Cell, int]]] = None

    def __repr__(self):
        return f"<{type(self).__name__} bound={self._bound!r}>"

    ## capability discovery

    def supports(self, name: str) -> bool:
        """True if operation ``name`` is provided by this grid."""
        method = getattr(type(self), name, None)
        if method is None:
            return False
        return not getattr(method, "__unsupported__", False)

    ## ownership

    def _claim(self, owner: "Grid") -> None:
        """Record ``owner`` as the single modifier wrapping this grid."""
        current = self._owner() if self._owner is not None else None
        if current is not None and current is not owner:
            raise InvalidArgumentError(
                f"{self!r} is already owned by {current!r}; wrap a fresh grid instead")
        self._owner = weakref.ref(owner)

    @property
    def owner(self) -> Optional["Grid"]:
        return self._owner() if self._owner is not None else None

    def close(self) -> None:
        """Release anything this grid owns.  Never raises."""
        self._index_table = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    ## identity and properties

    @property
    def bound(self) -> Optional[Bound]:
        return self._bound

    @property
    def coordinate_dimension(self) -> int:
        return 2

    @property
    def is_2d(self) -> bool:
        return self.coordinate_dimension == 2

    @property
    def is_3d(self) -> bool:
        return not self.is_2d

    @property
    def is_planar(self) -> bool:
        return self.is_2d

    @property
    def is_repeating(self) -> bool:
        return False

    @property
    def is_orientable(self) -> bool:
        return True

    @property
    def is_finite(self) -> bool:
        return self._bound is not None

    ## membership

    @unsupported
    def is_cell_in_grid(self, cell: Cell) -> bool:
        pass

    @unsupported
    def cell_type(self, cell: Cell) -> CellType:
        pass

    def _require_cell(self, cell: Cell) -> Cell:
        if not self.is_cell_in_grid(cell):
            raise CellNotInGridError(cell)
        return cell

    ## topology

    @unsupported
    def try_move(self, cell: Cell, dir: int) -> Optional[Move]:
        pass

    def cell_dirs(self, cell: Cell) -> List[int]:
        return self.cell_type(cell).dirs()

    def cell_corners(self, cell: Cell) -> List[int]:
        return self.cell_type(cell).corners()

    def neighbours(self, cell: Cell) -> List[Cell]:
        """Cells reachable in one move, in direction order."""
        result = []
        for d in self.cell_dirs(cell):
            move = self.try_move(cell, d)
            if move is not None:
                result.append(move.dest)
        return result

    ## geometry

    @unsupported
    def cell_center(self, cell: Cell) -> Vec3:
        pass

    @unsupported
    def corner_position(self, cell: Cell, corner: int) -> Vec3:
        pass

    def polygon(self, cell: Cell) -> List[Vec3]:
        """Corner positions in corner order (counter-clockwise for 2-D cells)."""
        return [self.corner_position(cell, c) for c in self.cell_corners(cell)]

    def cell_aabb(self, cell: Cell) -> Aabb:
        return Aabb.from_points(self.polygon(cell))

    ## queries

    @unsupported
    def find_cell(self, position: Sequence[float]) -> Optional[Cell]:
        pass

    @unsupported
    def raycast(self, origin: Sequence[float], direction: Sequence[float],
                max_distance: float = math.inf,
                max_hits: Optional[int] = None) -> List[RaycastInfo]:
        pass

    ## enumeration

    def cells(self, max_cells: Optional[int] = None) -> List[Cell]:
        """Every cell of a finite grid in bound order."""
        if self._bound is None:
            raise InfiniteGridError(f"{self!r} is unbounded; cannot enumerate")
        result = []
        for cell in self._bound:
            if max_cells is not None and len(result) >= max_cells:
                break
            if self.is_cell_in_grid(cell):
                result.append(cell)
        return result

    def cell_count(self) -> int:
        return len(self.cells())

    def cells_in_aabb(self, aabb_min: Sequence[float], aabb_max: Sequence[float]) -> List[Cell]:
        """Cells whose bounding box overlaps the box ``[aabb_min, aabb_max]``."""
        if not self.is_finite:
            raise NotImplementedGridError(
                f"{type(self).__name__} cannot search an unbounded grid by box")
        box = Aabb(to_vec3(aabb_min), to_vec3(aabb_max))
        return [c for c in self.cells() if self.cell_aabb(c).intersects(box)]

    ## indexing

    def _indexing(self) -> Tuple[List[Cell], Dict[Cell, int]]:
        if self._index_table is None:
            cells = self.cells()
            self._index_table = (cells, {c: i for i, c in enumerate(cells)})
        return self._index_table

    def index_count(self) -> int:
        return len(self._indexing()[0])

    def index(self, cell: Cell) -> int:
        lookup = self._indexing()[1]
        if cell not in lookup:
            raise CellNotInGridError(cell)
        return lookup[cell]

    def cell_by_index(self, index: int) -> Optional[Cell]:
        cells = self._indexing()[0]
        if 0 <= index < len(cells):
            return cells[index]
        return None

    ## bounds

    @unsupported
    def bound_by(self, bound: Bound) -> "Grid":
        pass

    @unsupported
    def unbounded(self) -> "Grid":
        pass

    ## planar keys, used when extruding a 2-D grid into layers

    def planar_key(self, cell: Cell) -> Tuple[int, int]:
        """Two integers identifying a 2-D cell."""
        if cell.z != 0:
            raise InvalidArgumentError(f"{cell} is not a planar cell of {type(self).__name__}")
        return (cell.x, cell.y)

    def from_planar_key(self, a: int, b: int) -> Cell:
        return Cell(a, b, 0)

    ## shared raycast for planar tilings of convex cells

    def _walk_raycast(self, origin, direction, max_distance, max_hits):
        """Follow a ray across the XY plane cell by cell.

        Each step leaves the current polygon through its nearest exit
        edge and locates the next cell just beyond it.  Distances are
        measured along the normalised XY direction.
        """
        origin = to_vec3(origin)
        dx, dy, _ = to_vec3(direction)
        norm = math.hypot(dx, dy)
        if norm == 0.0:
            raise InvalidArgumentError("ray direction has no component in the grid plane")
        d = (dx / norm, dy / norm, 0.0)
        walker = self.unbounded() if self._bound is not None else self
        max_steps = int(get_setting("raycast_max_steps"))

        hits: List[RaycastInfo] = []
        cell = walker.find_cell(origin)
        t = 0.0
        entered = None
        steps = 0
        while cell is not None and steps < max_steps:
            steps += 1
            if self.is_cell_in_grid(cell):
                hits.append(RaycastInfo(cell, add(origin, scale(d, t)), t, entered))
                if max_hits is not None and len(hits) >= max_hits:
                    break
            poly = walker.polygon(cell)
            nudge = 1e-7 * max(length(walker.cell_aabb(cell).size), 1e-9)
            t_exit = None
            for i in range(len(poly)):
                te = ray_segment_xy(origin, d, poly[i], poly[(i + 1) % len(poly)])
                if te is not None and te > t + nudge and (t_exit is None or te < t_exit):
                    t_exit = te
            if t_exit is None or t_exit > max_distance:
                break
            nxt = walker.find_cell(add(origin, scale(d, t_exit + nudge)))
            if nxt is None or nxt == cell:
                break
            entered = None
            for dir in walker.cell_dirs(cell):
                move = walker.try_move(cell, dir)
                if move is not None and move.dest == nxt:
                    entered = move.inverse_dir
                    break
            cell, t = nxt, t_exit
        return hits


__all__ = [
    "GridType",
    "Grid",
    "unsupported",
]
