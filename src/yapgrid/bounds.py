"""Bounds: finite regions of cell space and their set algebra.

Four coordinate families are supported, plus an explicit cell set:

``RectBound``
    inclusive ``[min_x, max_x] x [min_y, max_y]`` on the ``z = 0`` plane.
``CubeBound``
    inclusive box on all three axes.
``HexBound``
    half-open cube-coordinate box ``[min, mex)``; members satisfy
    ``x + y + z == 0``.
``TriangleBound``
    inclusive cube-coordinate box; members satisfy ``x + y + z`` in
    ``{1, 2}``.
``MaskBound``
    an explicit finite set of cells, kept in insertion order.

Intersecting or uniting two bounds of one family yields that family.
Mixed families are projected to rectangles with :meth:`Bound.get_rect`;
when a projection is undefined ``intersect`` yields an empty rectangle
and ``union`` raises :class:`NotImplementedGridError`, since no
rectangle could contain both operands.  Empty operands are absorbed
before any projection: ``empty | b == b`` and ``empty & b`` is empty.
"""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator, List, Optional, Tuple

from yapgrid.cell import Cell, as_cell
from yapgrid.errors import InvalidArgumentError, NotImplementedGridError
from yapgrid.geometry import Aabb

Rect = Tuple[int, int, int, int]
Box = Tuple[int, int, int, int, int, int]


class Bound:
    """Common interface.  Concrete bounds are frozen dataclasses."""

    def contains(self, cell: Cell) -> bool:
        raise NotImplementedError

    def __contains__(self, cell) -> bool:
        return self.contains(as_cell(cell))

    def _iter_cells(self) -> Iterator[Cell]:
        raise NotImplementedError

    def __iter__(self) -> Iterator[Cell]:
        return self._iter_cells()

    def cells(self, max_cells: Optional[int] = None) -> List[Cell]:
        """Enumerate member cells in the family's canonical order,
        stopping after ``max_cells`` if given."""
        if max_cells is None:
            return list(self._iter_cells())
        if max_cells < 0:
            raise InvalidArgumentError("max_cells must be non-negative")
        return list(itertools.islice(self._iter_cells(), max_cells))

    @property
    def cell_count(self) -> int:
        return sum(1 for _ in self._iter_cells())

    def __len__(self) -> int:
        return self.cell_count

    @property
    def is_empty(self) -> bool:
        raise NotImplementedError

    def clone(self) -> "Bound":
        return replace(self)

    def aabb(self) -> Aabb:
        raise NotImplementedError

    def get_rect(self) -> Optional[Rect]:
        """``(min_x, min_y, max_x, max_y)`` or ``None`` if not applicable."""
        return None

    def get_cube(self) -> Optional[Box]:
        """``(min_x, min_y, min_z, max_x, max_y, max_z)`` or ``None``."""
        return None

    def empty(self) -> "Bound":
        """A canonical empty bound of this family."""
        raise NotImplementedError

    # same-family set operations, implemented per family
    def _intersect_same(self, other: "Bound") -> "Bound":
        raise NotImplementedError

    def _union_same(self, other: "Bound") -> "Bound":
        raise NotImplementedError

    def intersect(self, other: "Bound") -> "Bound":
        if self.is_empty or other.is_empty:
            return self.empty()
        if type(self) is type(other):
            return self._intersect_same(other)
        if isinstance(other, MaskBound):
            return other.intersect(self)
        a, b = self.get_rect(), other.get_rect()
        if a is None or b is None:
            return RectBound.EMPTY
        return RectBound(*a)._intersect_same(RectBound(*b))

    def union(self, other: "Bound") -> "Bound":
        if self.is_empty:
            return other.clone()
        if other.is_empty:
            return self.clone()
        if type(self) is type(other):
            return self._union_same(other)
        if isinstance(other, MaskBound):
            return other.union(self)
        a, b = self.get_rect(), other.get_rect()
        if a is None or b is None:
            raise NotImplementedGridError(
                "no common projection for union of {} and {}".format(
                    type(self).__name__, type(other).__name__))
        return RectBound(*a)._union_same(RectBound(*b))

    __and__ = intersect
    __or__ = union


@dataclass(frozen=True)
class RectBound(Bound):
    min_x: int
    min_y: int
    max_x: int
    max_y: int

    def contains(self, cell: Cell) -> bool:
        return (cell[2] == 0 and self.min_x <= cell[0] <= self.max_x
                and self.min_y <= cell[1] <= self.max_y)

    def _iter_cells(self):
        for y in range(self.min_y, self.max_y + 1):
            for x in range(self.min_x, self.max_x + 1):
                yield Cell(x, y, 0)

    @property
    def width(self) -> int:
        return max(0, self.max_x - self.min_x + 1)

    @property
    def height(self) -> int:
        return max(0, self.max_y - self.min_y + 1)

    @property
    def cell_count(self) -> int:
        return self.width * self.height

    @property
    def is_empty(self) -> bool:
        return self.min_x > self.max_x or self.min_y > self.max_y

    def empty(self):
        return RectBound.EMPTY

    def aabb(self) -> Aabb:
        return Aabb((float(self.min_x), float(self.min_y), 0.0),
                    (float(self.max_x + 1), float(self.max_y + 1), 1.0))

    def get_rect(self):
        return (self.min_x, self.min_y, self.max_x, self.max_y)

    def _intersect_same(self, other):
        r = RectBound(max(self.min_x, other.min_x), max(self.min_y, other.min_y),
                      min(self.max_x, other.max_x), min(self.max_y, other.max_y))
        return RectBound.EMPTY if r.is_empty else r

    def _union_same(self, other):
        return RectBound(min(self.min_x, other.min_x), min(self.min_y, other.min_y),
                         max(self.max_x, other.max_x), max(self.max_y, other.max_y))


RectBound.EMPTY = RectBound(1, 1, 0, 0)


@dataclass(frozen=True)
class CubeBound(Bound):
    min_x: int
    min_y: int
    min_z: int
    max_x: int
    max_y: int
    max_z: int

    def contains(self, cell: Cell) -> bool:
        return (self.min_x <= cell[0] <= self.max_x
                and self.min_y <= cell[1] <= self.max_y
                and self.min_z <= cell[2] <= self.max_z)

    def _iter_cells(self):
        for z in range(self.min_z, self.max_z + 1):
            for y in range(self.min_y, self.max_y + 1):
                for x in range(self.min_x, self.max_x + 1):
                    yield Cell(x, y, z)

    @property
    def size(self) -> Tuple[int, int, int]:
        return (max(0, self.max_x - self.min_x + 1),
                max(0, self.max_y - self.min_y + 1),
                max(0, self.max_z - self.min_z + 1))

    @property
    def cell_count(self) -> int:
        w, h, d = self.size
        return w * h * d

    @property
    def is_empty(self) -> bool:
        return self.min_x > self.max_x or self.min_y > self.max_y or self.min_z > self.max_z

    def empty(self):
        return CubeBound.EMPTY

    def aabb(self) -> Aabb:
        return Aabb((float(self.min_x), float(self.min_y), float(self.min_z)),
                    (float(self.max_x + 1), float(self.max_y + 1), float(self.max_z + 1)))

    def get_cube(self):
        return (self.min_x, self.min_y, self.min_z, self.max_x, self.max_y, self.max_z)

    def _intersect_same(self, other):
        b = CubeBound(max(self.min_x, other.min_x), max(self.min_y, other.min_y),
                      max(self.min_z, other.min_z), min(self.max_x, other.max_x),
                      min(self.max_y, other.max_y), min(self.max_z, other.max_z))
        return CubeBound.EMPTY if b.is_empty else b

    def _union_same(self, other):
        return CubeBound(min(self.min_x, other.min_x), min(self.min_y, other.min_y),
                         min(self.min_z, other.min_z), max(self.max_x, other.max_x),
                         max(self.max_y, other.max_y), max(self.max_z, other.max_z))


CubeBound.EMPTY = CubeBound(1, 1, 1, 0, 0, 0)


@dataclass(frozen=True)
class HexBound(Bound):
    """Half-open cube-coordinate region.

    ``AABB_SCALE`` maps cube x/y extents to world units for a pointy
    topped grid of unit cell size; the box it yields is an
    over-approximation.
    """

    min_x: int
    min_y: int
    min_z: int
    mex_x: int
    mex_y: int
    mex_z: int

    AABB_SCALE = (math.sqrt(3.0) / 2.0, 0.75)

    def contains(self, cell: Cell) -> bool:
        x, y, z = cell
        return (x + y + z == 0
                and self.min_x <= x < self.mex_x
                and self.min_y <= y < self.mex_y
                and self.min_z <= z < self.mex_z)

    def _y_range(self, x: int) -> range:
        # y values in the row whose z = -x - y also lies in [min_z, mex_z)
        lo = max(self.min_y, -x - self.mex_z + 1)
        hi = min(self.mex_y - 1, -x - self.min_z)
        return range(lo, hi + 1)

    def _iter_cells(self):
        for x in range(self.min_x, self.mex_x):
            for y in self._y_range(x):
                yield Cell(x, y, -x - y)

    @property
    def cell_count(self) -> int:
        return sum(len(self._y_range(x)) for x in range(self.min_x, self.mex_x))

    @property
    def is_empty(self) -> bool:
        if self.min_x >= self.mex_x or self.min_y >= self.mex_y or self.min_z >= self.mex_z:
            return True
        # the integer box meets the plane x+y+z=0 iff 0 lies between its extreme sums
        return (self.min_x + self.min_y + self.min_z > 0
                or (self.mex_x - 1) + (self.mex_y - 1) + (self.mex_z - 1) < 0)

    def empty(self):
        return HexBound.EMPTY

    def aabb(self) -> Aabb:
        sx, sy = self.AABB_SCALE
        return Aabb((self.min_x * sx, self.min_y * sy, 0.0),
                    (self.mex_x * sx, self.mex_y * sy, 1.0))

    def axial_rect(self) -> Rect:
        """Inclusive axial ``(min_q, min_r, max_q, max_r)`` box, ``(q, r) = (x, z)``.

        Not a :meth:`get_rect` projection: hex cells keep their cube
        ``y``, so the box says nothing about rectangle membership.
        """
        return (self.min_x, self.min_z, self.mex_x - 1, self.mex_z - 1)

    def get_cube(self):
        return (self.min_x, self.min_y, self.min_z,
                self.mex_x - 1, self.mex_y - 1, self.mex_z - 1)

    def _intersect_same(self, other):
        b = HexBound(max(self.min_x, other.min_x), max(self.min_y, other.min_y),
                     max(self.min_z, other.min_z), min(self.mex_x, other.mex_x),
                     min(self.mex_y, other.mex_y), min(self.mex_z, other.mex_z))
        return HexBound.EMPTY if b.is_empty else b

    def _union_same(self, other):
        return HexBound(min(self.min_x, other.min_x), min(self.min_y, other.min_y),
                        min(self.min_z, other.min_z), max(self.mex_x, other.mex_x),
                        max(self.mex_y, other.mex_y), max(self.mex_z, other.mex_z))


@dataclass(frozen=True)
class TriangleBound(Bound):
    """Inclusive cube-coordinate region of triangle cells.

    ``AABB_SCALE`` assumes flat topped triangles of unit side.
    """

    min_x: int
    min_y: int
    min_z: int
    max_x: int
    max_y: int
    max_z: int

    AABB_SCALE = (0.5, math.sqrt(3.0) / 2.0)

    def contains(self, cell: Cell) -> bool:
        x, y, z = cell
        return (x + y + z in (1, 2)
                and self.min_x <= x <= self.max_x
                and self.min_y <= y <= self.max_y
                and self.min_z <= z <= self.max_z)

    def _iter_cells(self):
        for x in range(self.min_x, self.max_x + 1):
            for y in range(self.min_y, self.max_y + 1):
                for z in range(max(self.min_z, 1 - x - y), min(self.max_z, 2 - x - y) + 1):
                    yield Cell(x, y, z)

    @property
    def cell_count(self) -> int:
        n = 0
        for x in range(self.min_x, self.max_x + 1):
            for y in range(self.min_y, self.max_y + 1):
                n += max(0, min(self.max_z, 2 - x - y) - max(self.min_z, 1 - x - y) + 1)
        return n

    @property
    def is_empty(self) -> bool:
        if self.min_x > self.max_x or self.min_y > self.max_y or self.min_z > self.max_z:
            return True
        return (self.min_x + self.min_y + self.min_z > 2
                or self.max_x + self.max_y + self.max_z < 1)

    def empty(self):
        return TriangleBound.EMPTY

    def aabb(self) -> Aabb:
        sx, sy = self.AABB_SCALE
        return Aabb((self.min_x * sx, self.min_y * sy, 0.0),
                    ((self.max_x + 1) * sx, (self.max_y + 1) * sy, 1.0))

    def get_cube(self):
        return (self.min_x, self.min_y, self.min_z, self.max_x, self.max_y, self.max_z)

    def _intersect_same(self, other):
        b = TriangleBound(max(self.min_x, other.min_x), max(self.min_y, other.min_y),
                          max(self.min_z, other.min_z), min(self.max_x, other.max_x),
                          min(self.max_y, other.max_y), min(self.max_z, other.max_z))
        return TriangleBound.EMPTY if b.is_empty else b

    def _union_same(self, other):
        return TriangleBound(min(self.min_x, other.min_x), min(self.min_y, other.min_y),
                             min(self.min_z, other.min_z), max(self.max_x, other.max_x),
                             max(self.max_y, other.max_y), max(self.max_z, other.max_z))


TriangleBound.EMPTY = TriangleBound(1, 1, 1, 0, 0, 0)


@dataclass(frozen=True)
class MaskBound(Bound):
    """Explicit set of cells.  Works with any coordinate family."""

    members: Tuple[Cell, ...] = ()
    _lookup: frozenset = field(default=frozenset(), init=False, repr=False, compare=False)

    def __post_init__(self):
        ordered = tuple(dict.fromkeys(as_cell(c) for c in self.members))
        object.__setattr__(self, "members", ordered)
        object.__setattr__(self, "_lookup", frozenset(ordered))

    def __eq__(self, other):
        if not isinstance(other, MaskBound):
            return NotImplemented
        return self._lookup == other._lookup

    def __hash__(self):
        return hash(self._lookup)

    def contains(self, cell: Cell) -> bool:
        return cell in self._lookup

    def _iter_cells(self):
        return iter(self.members)

    @property
    def cell_count(self) -> int:
        return len(self.members)

    @property
    def is_empty(self) -> bool:
        return not self.members

    def empty(self):
        return MaskBound()

    def aabb(self) -> Aabb:
        box = self.get_cube()
        if box is None:
            return Aabb((0.0, 0.0, 0.0), (-1.0, -1.0, -1.0))
        return Aabb((float(box[0]), float(box[1]), float(box[2])),
                    (float(box[3] + 1), float(box[4] + 1), float(box[5] + 1)))

    def get_rect(self):
        if not self.members or any(c.z != 0 for c in self.members):
            return None
        xs = [c.x for c in self.members]
        ys = [c.y for c in self.members]
        return (min(xs), min(ys), max(xs), max(ys))

    def get_cube(self):
        if not self.members:
            return None
        xs = [c.x for c in self.members]
        ys = [c.y for c in self.members]
        zs = [c.z for c in self.members]
        return (min(xs), min(ys), min(zs), max(xs), max(ys), max(zs))

    def intersect(self, other: Bound) -> Bound:
        if self.is_empty or other.is_empty:
            return MaskBound()
        return MaskBound(tuple(c for c in self.members if other.contains(c)))

    def union(self, other: Bound) -> Bound:
        if other.is_empty:
            return self.clone()
        if self.is_empty:
            return other.clone()
        return MaskBound(self.members + tuple(other.cells()))

    __and__ = intersect
    __or__ = union


## constructors

def bound_rectangle(min_x: int, min_y: int, max_x: int, max_y: int) -> RectBound:
    return RectBound(min_x, min_y, max_x, max_y)


def bound_cube(min_x: int, min_y: int, min_z: int,
               max_x: int, max_y: int, max_z: int) -> CubeBound:
    return CubeBound(min_x, min_y, min_z, max_x, max_y, max_z)


def bound_hex_parallelogram(min_q: int, min_r: int, max_q: int, max_r: int) -> HexBound:
    """Axial parallelogram ``[min_q, max_q] x [min_r, max_r]`` (inclusive)
    as a cube-coordinate :class:`HexBound`."""
    return HexBound(min_q, -max_q - max_r, min_r,
                    max_q + 1, -min_q - min_r + 1, max_r + 1)


HexBound.EMPTY = bound_hex_parallelogram(1, 1, 0, 0)


def bound_triangle_parallelogram(min_x: int, min_y: int, min_z: int,
                                 max_x: int, max_y: int, max_z: int) -> TriangleBound:
    return TriangleBound(min_x, min_y, min_z, max_x, max_y, max_z)


def bound_mask(cells: Iterable) -> MaskBound:
    return MaskBound(tuple(as_cell(c) for c in cells))


__all__ = [
    "Bound",
    "RectBound",
    "CubeBound",
    "HexBound",
    "TriangleBound",
    "MaskBound",
    "bound_rectangle",
    "bound_cube",
    "bound_hex_parallelogram",
    "bound_triangle_parallelogram",
    "bound_mask",
]
