"""Cell types: the shape-level description shared by every cell of a kind.

A cell type knows its dimension, how many directions (neighbour slots)
and corners it has, and where each corner sits in a unit frame centred
on the origin.  Cell types are immutable values compared by their
parameters.  Regular polygon and polygon prism types with a small
number of sides are shared through a lazily filled registry.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Dict, List, Optional, Tuple

from yapgrid.config import get_setting
from yapgrid.errors import InvalidArgumentError
from yapgrid.geometry import Vec3

SQRT3 = math.sqrt(3.0)


class HexOrientation(Enum):
    FLAT_TOPPED = "flat_topped"
    POINTY_TOPPED = "pointy_topped"


class TriangleOrientation(Enum):
    FLAT_TOPPED = "flat_topped"
    FLAT_SIDES = "flat_sides"


class CellType:
    """Base class.  Subclasses set the counts and implement
    :meth:`corner_position`."""

    dimension = 2
    dir_count = 0
    corner_count = 0

    @property
    def key(self) -> Tuple:
        raise NotImplementedError

    @property
    def name(self) -> str:
        raise NotImplementedError

    def corner_position(self, corner: int) -> Vec3:
        raise NotImplementedError

    def dirs(self) -> List[int]:
        return list(range(self.dir_count))

    def corners(self) -> List[int]:
        return list(range(self.corner_count))

    def invert_dir(self, d: int) -> Optional[int]:
        """The opposite direction, or ``None`` if the shape has none."""
        return None

    def _check_corner(self, corner: int) -> None:
        if not 0 <= corner < self.corner_count:
            raise InvalidArgumentError(f"corner {corner} out of range for {self.name}")

    def __eq__(self, other):
        if not isinstance(other, CellType):
            return NotImplemented
        return self.key == other.key

    def __hash__(self):
        return hash(self.key)

    def __repr__(self):
        return f"<CellType {self.name}>"


class NGonCellType(CellType):
    """Regular n-gon with inradius 1/2.

    Direction ``i`` faces angle ``i*2pi/n + offset``; corner ``i`` lies
    half a step clockwise of it, so edge ``i`` runs from corner ``i`` to
    corner ``i+1``.
    """

    def __init__(self, n: int, angle_offset: float = 0.0):
        if n < 3:
            raise InvalidArgumentError(f"n-gon needs at least 3 sides, got {n}")
        self.n = n
        self.angle_offset = float(angle_offset)
        self.dir_count = n
        self.corner_count = n

    @property
    def key(self):
        return ("ngon", self.n, self.angle_offset)

    @property
    def name(self):
        if self.angle_offset:
            return f"ngon{self.n}@{self.angle_offset:g}"
        return f"ngon{self.n}"

    @property
    def circumradius(self) -> float:
        return 0.5 / math.cos(math.pi / self.n)

    def corner_position(self, corner: int) -> Vec3:
        self._check_corner(corner)
        a = (corner - 0.5) * 2.0 * math.pi / self.n + math.radians(self.angle_offset)
        r = self.circumradius
        return (r * math.cos(a), r * math.sin(a), 0.0)

    def dir_vector(self, d: int) -> Vec3:
        a = d * 2.0 * math.pi / self.n + math.radians(self.angle_offset)
        return (math.cos(a), math.sin(a), 0.0)

    def invert_dir(self, d: int) -> Optional[int]:
        if self.n % 2:
            return None
        return (d + self.n // 2) % self.n


class CubeCellType(CellType):
    """Unit cube.  Corner bits: 1 selects +x, 2 selects +y, 4 selects +z."""

    dimension = 3
    dir_count = 6
    corner_count = 8

    @property
    def key(self):
        return ("cube",)

    @property
    def name(self):
        return "cube"

    def corner_position(self, corner: int) -> Vec3:
        self._check_corner(corner)
        return (0.5 if corner & 1 else -0.5,
                0.5 if corner & 2 else -0.5,
                0.5 if corner & 4 else -0.5)

    def invert_dir(self, d: int) -> Optional[int]:
        return d ^ 1


_H = SQRT3 / 2.0

# unit-side corner table for flat topped triangles:
# down-right, up-right, up, up-left, down-left, down
_FLAT_TOP_CORNERS = (
    (0.5, -_H / 3.0),
    (0.5, _H / 3.0),
    (0.0, 2.0 * _H / 3.0),
    (-0.5, _H / 3.0),
    (-0.5, -_H / 3.0),
    (0.0, -2.0 * _H / 3.0),
)


class TriangleCellType(CellType):
    """Equilateral triangle with unit side.

    Triangles come in two parities sharing one type with six direction
    and six corner slots; each cell uses three of each.  Even corners
    belong to triangles pointing up (flat topped) or right (flat sides),
    odd corners to the other parity.  The flat sides table is the flat
    topped one rotated by -90 degrees.
    """

    dir_count = 6
    corner_count = 6

    def __init__(self, orientation: TriangleOrientation):
        self.orientation = orientation

    @property
    def key(self):
        return ("triangle", self.orientation.value)

    @property
    def name(self):
        return f"triangle_{self.orientation.value}"

    def corner_position(self, corner: int) -> Vec3:
        self._check_corner(corner)
        x, y = _FLAT_TOP_CORNERS[corner]
        if self.orientation is TriangleOrientation.FLAT_SIDES:
            x, y = y, -x
        return (x, y, 0.0)

    def invert_dir(self, d: int) -> Optional[int]:
        return (d + 3) % 6


class NGonPrismCellType(CellType):
    """Prism over the regular n-gon of :class:`NGonCellType`.

    Directions ``0..n-1`` are the sides, ``n`` is up and ``n+1`` is
    down.  Corners ``0..n-1`` form the bottom ring at ``z=-1/2`` and
    corner ``c+n`` sits above corner ``c`` at ``z=+1/2``.
    """

    dimension = 3

    def __init__(self, n: int):
        if n < 3:
            raise InvalidArgumentError(f"n-gon prism needs at least 3 sides, got {n}")
        self.n = n
        self.dir_count = n + 2
        self.corner_count = 2 * n
        self._base = NGonCellType(n)

    @property
    def key(self):
        return ("ngon_prism", self.n)

    @property
    def name(self):
        return f"ngon_prism{self.n}"

    @property
    def up_dir(self) -> int:
        return self.n

    @property
    def down_dir(self) -> int:
        return self.n + 1

    def corner_position(self, corner: int) -> Vec3:
        self._check_corner(corner)
        x, y, _ = self._base.corner_position(corner % self.n)
        return (x, y, 0.5 if corner >= self.n else -0.5)

    def invert_dir(self, d: int) -> Optional[int]:
        if d == self.n:
            return self.n + 1
        if d == self.n + 1:
            return self.n
        return self._base.invert_dir(d)


class PrismCellType(CellType):
    """Prism extruded from an arbitrary 2-D cell type."""

    dimension = 3

    def __init__(self, base: CellType):
        if base.dimension != 2:
            raise InvalidArgumentError(f"cannot extrude {base.name}: not 2-D")
        self.base = base
        self.dir_count = base.dir_count + 2
        self.corner_count = 2 * base.corner_count

    @property
    def key(self):
        return ("prism",) + self.base.key

    @property
    def name(self):
        return f"prism_{self.base.name}"

    @property
    def up_dir(self) -> int:
        return self.base.dir_count

    @property
    def down_dir(self) -> int:
        return self.base.dir_count + 1

    def corner_position(self, corner: int) -> Vec3:
        self._check_corner(corner)
        k = self.base.corner_count
        x, y, _ = self.base.corner_position(corner % k)
        return (x, y, 0.5 if corner >= k else -0.5)

    def invert_dir(self, d: int) -> Optional[int]:
        if d == self.up_dir:
            return self.down_dir
        if d == self.down_dir:
            return self.up_dir
        return self.base.invert_dir(d)


## registry

_ngon_cache: Dict[int, NGonCellType] = {}
_ngon_prism_cache: Dict[int, NGonPrismCellType] = {}


def _cache_limit() -> int:
    return int(get_setting("cell_type_cache_limit"))


def ngon_cell_type(n: int) -> NGonCellType:
    """Regular n-gon type.  Shared for small ``n``, fresh otherwise."""
    if n < 3:
        raise InvalidArgumentError(f"n-gon needs at least 3 sides, got {n}")
    if n >= _cache_limit():
        return NGonCellType(n)
    ct = _ngon_cache.get(n)
    if ct is None:
        ct = _ngon_cache[n] = NGonCellType(n)
    return ct


def ngon_prism_cell_type(n: int) -> NGonPrismCellType:
    """Regular n-gon prism type.  Shared for small ``n``, fresh otherwise."""
    if n < 3:
        raise InvalidArgumentError(f"n-gon prism needs at least 3 sides, got {n}")
    if n >= _cache_limit():
        return NGonPrismCellType(n)
    ct = _ngon_prism_cache.get(n)
    if ct is None:
        ct = _ngon_prism_cache[n] = NGonPrismCellType(n)
    return ct


CUBE_CELL_TYPE = CubeCellType()

_FLAT_HEX_CELL_TYPE = NGonCellType(6, 30.0)

_TRIANGLE_TYPES = {o: TriangleCellType(o) for o in TriangleOrientation}


def square_cell_type() -> NGonCellType:
    return ngon_cell_type(4)


def hex_cell_type(orientation: HexOrientation) -> NGonCellType:
    """Pointy topped hexes are plain hexagons (a side faces +x); flat
    topped ones are turned 30 degrees."""
    if orientation is HexOrientation.POINTY_TOPPED:
        return ngon_cell_type(6)
    return _FLAT_HEX_CELL_TYPE


def triangle_cell_type(orientation: TriangleOrientation) -> TriangleCellType:
    return _TRIANGLE_TYPES[orientation]


def prism_cell_type(base: CellType) -> CellType:
    """Cell type of ``base`` extruded one layer.

    Unrotated regular polygons map onto the shared n-gon prism types.
    """
    if isinstance(base, NGonCellType) and base.angle_offset == 0.0:
        return ngon_prism_cell_type(base.n)
    return PrismCellType(base)


def is_registered(cell_type: CellType) -> bool:
    """True if ``cell_type`` is a shared registry instance rather than one
    constructed for the caller."""
    if isinstance(cell_type, NGonPrismCellType):
        return _ngon_prism_cache.get(cell_type.n) is cell_type
    if isinstance(cell_type, NGonCellType):
        return (_ngon_cache.get(cell_type.n) is cell_type
                or cell_type is _FLAT_HEX_CELL_TYPE)
    return cell_type is CUBE_CELL_TYPE or any(cell_type is t for t in _TRIANGLE_TYPES.values())


__all__ = [
    "HexOrientation",
    "TriangleOrientation",
    "CellType",
    "NGonCellType",
    "CubeCellType",
    "TriangleCellType",
    "NGonPrismCellType",
    "PrismCellType",
    "CUBE_CELL_TYPE",
    "ngon_cell_type",
    "ngon_prism_cell_type",
    "square_cell_type",
    "hex_cell_type",
    "triangle_cell_type",
    "prism_cell_type",
    "is_registered",
]
