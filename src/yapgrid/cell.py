"""Cell coordinates, connections and the small value types grids return."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import NamedTuple, Optional, Tuple


class Cell(NamedTuple):
    """Integer cell coordinate.  2-D grids leave ``z`` at 0."""

    x: int
    y: int
    z: int = 0

    def offset(self, dx: int = 0, dy: int = 0, dz: int = 0) -> "Cell":
        return Cell(self.x + dx, self.y + dy, self.z + dz)

    def delta(self, d: Tuple[int, int, int]) -> "Cell":
        return Cell(self.x + d[0], self.y + d[1], self.z + d[2])


def as_cell(value) -> Cell:
    """Coerce a 2- or 3-sequence of ints into a :class:`Cell`."""
    if isinstance(value, Cell):
        return value
    if len(value) == 2:
        return Cell(int(value[0]), int(value[1]), 0)
    if len(value) == 3:
        return Cell(int(value[0]), int(value[1]), int(value[2]))
    raise ValueError(f"cannot interpret {value!r} as a cell")


@dataclass(frozen=True)
class Connection:
    """How a neighbour's local frame relates to the frame it was entered from.

    ``rotation`` counts steps of the cell type's rotational symmetry;
    ``is_mirror`` marks a reflection applied before the rotation.
    """

    rotation: int = 0
    is_mirror: bool = False

    @classmethod
    def identity(cls) -> "Connection":
        return IDENTITY

    @property
    def is_identity(self) -> bool:
        return self.rotation == 0 and not self.is_mirror

    def inverse(self) -> "Connection":
        # a reflection composed with any rotation is an involution
        if self.is_mirror:
            return self
        return Connection(-self.rotation, False)

    def compose(self, other: "Connection") -> "Connection":
        """Apply ``self`` and then ``other``."""
        # a mirror reverses the sense of any rotation applied before it
        if other.is_mirror:
            rotation = other.rotation - self.rotation
        else:
            rotation = other.rotation + self.rotation
        return Connection(rotation, self.is_mirror != other.is_mirror)


IDENTITY = Connection()


class Move(NamedTuple):
    """Result of a successful ``try_move``."""

    dest: Cell
    inverse_dir: int
    connection: Connection = IDENTITY


class RaycastInfo(NamedTuple):
    """One cell crossed by a ray.

    ``cell_dir`` is the direction the ray entered through, ``None`` for
    the cell containing the origin or when the grid cannot tell.
    """

    cell: Cell
    point: Tuple[float, float, float]
    distance: float
    cell_dir: Optional[int] = None


class SquareDir(IntEnum):
    RIGHT = 0
    UP = 1
    LEFT = 2
    DOWN = 3


class CubeDir(IntEnum):
    RIGHT = 0
    LEFT = 1
    UP = 2
    DOWN = 3
    FORWARD = 4
    BACK = 5


class PointyHexDir(IntEnum):
    RIGHT = 0
    UP_RIGHT = 1
    UP_LEFT = 2
    LEFT = 3
    DOWN_LEFT = 4
    DOWN_RIGHT = 5


class FlatHexDir(IntEnum):
    UP_RIGHT = 0
    UP = 1
    UP_LEFT = 2
    DOWN_LEFT = 3
    DOWN = 4
    DOWN_RIGHT = 5


class FlatTopTriangleDir(IntEnum):
    UP_RIGHT = 0
    UP = 1
    UP_LEFT = 2
    DOWN_LEFT = 3
    DOWN = 4
    DOWN_RIGHT = 5


class FlatSideTriangleDir(IntEnum):
    RIGHT = 0
    UP_RIGHT = 1
    UP_LEFT = 2
    LEFT = 3
    DOWN_LEFT = 4
    DOWN_RIGHT = 5


__all__ = [
    "Cell",
    "as_cell",
    "Connection",
    "IDENTITY",
    "Move",
    "RaycastInfo",
    "SquareDir",
    "CubeDir",
    "PointyHexDir",
    "FlatHexDir",
    "FlatTopTriangleDir",
    "FlatSideTriangleDir",
]
