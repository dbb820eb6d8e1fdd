"""Planar prism modifier: stacks layers of a 2-D grid into a 3-D grid.

A cell ``(a, b, layer)`` is the underlying cell with planar key
``(a, b)`` extruded through layer ``layer``.  With ``n`` the underlying
cell type's direction count, direction ``n`` steps up a layer and
``n + 1`` steps down; corner ``c + k`` (``k`` the corner count) is the
top copy of corner ``c``.  Layers may have different heights; layer 0
sits on ``z = 0``.
"""

from __future__ import annotations

import itertools
import logging
import math
from bisect import bisect_right
from typing import List, Optional, Sequence

from yapgrid.bounds import Bound
from yapgrid.cell import IDENTITY, Cell, Move, as_cell
from yapgrid.cell_type import HexOrientation, TriangleOrientation, prism_cell_type
from yapgrid.errors import CellNotInGridError, InvalidArgumentError
from yapgrid.geometry import Aabb, Vec3, to_vec3
from yapgrid.grid import Grid, unsupported
from yapgrid.hex import HexGrid
from yapgrid.modifiers.base import GridModifier
from yapgrid.square import SquareGrid
from yapgrid.triangle import TriangleGrid

logger = logging.getLogger(__name__)


class PlanarPrismModifier(GridModifier):
    """Extrude ``underlying`` into ``layers`` layers.

    Heights are ``layer_heights`` when given (one per layer), otherwise
    ``layer_height`` for every layer.  The bound is the underlying
    grid's footprint bound.
    """

    def __init__(self, underlying: Grid, layers: int, layer_height: float = 1.0,
                 layer_heights: Optional[Sequence[float]] = None):
        if isinstance(underlying, Grid) and not (underlying.is_2d and underlying.is_planar):
            raise InvalidArgumentError(f"{underlying!r} is not a planar 2-D grid")
        if int(layers) != layers or layers <= 0:
            raise InvalidArgumentError(f"layer count must be a positive integer, got {layers!r}")
        layers = int(layers)
        if layer_heights is None:
            heights = [float(layer_height)] * layers
        else:
            heights = [float(h) for h in layer_heights]
            if len(heights) != layers:
                raise InvalidArgumentError(
                    f"{len(heights)} layer heights given for {layers} layers")
        if any(not h > 0 or math.isinf(h) for h in heights):
            raise InvalidArgumentError(f"layer heights must be positive and finite: {heights}")
        super().__init__(underlying)
        self.layers = layers
        self.layer_heights = tuple(heights)
        self._uniform = layer_heights is None
        self._bottoms = [0.0] + list(itertools.accumulate(heights))
        logger.debug("extruding %r into %d layers, total height %g",
                     underlying, layers, self._bottoms[-1])

    def __repr__(self):
        return f"PlanarPrismModifier({self.underlying!r}, layers={self.layers})"

    def _rebuild(self, underlying: Grid) -> "PlanarPrismModifier":
        if self._uniform:
            return PlanarPrismModifier(underlying, self.layers, self.layer_heights[0])
        return PlanarPrismModifier(underlying, self.layers, layer_heights=self.layer_heights)

    ## properties

    @property
    def coordinate_dimension(self) -> int:
        return 3

    @property
    def is_planar(self) -> bool:
        return False

    @property
    def bound(self):
        """The footprint bound of the underlying grid, or ``None``.

        It is a 2-D bound over planar cells: test a prism cell with
        :meth:`is_cell_in_grid`, or test ``bound`` against
        :meth:`footprint_cell` of it.  Layers always span
        ``[0, layers)``.
        """
        return self.underlying.bound

    def footprint_cell(self, cell: Cell) -> Cell:
        """The underlying cell a prism cell stands on."""
        return self._base(as_cell(cell))

    @property
    def height(self) -> float:
        return self._bottoms[-1]

    def layer_bottom(self, layer: int) -> float:
        return self._bottoms[layer]

    def layer_top(self, layer: int) -> float:
        return self._bottoms[layer + 1]

    ## cells

    def _base(self, cell: Cell) -> Cell:
        return self.underlying.from_planar_key(cell[0], cell[1])

    def _lift(self, base: Cell, layer: int) -> Cell:
        a, b = self.underlying.planar_key(base)
        return Cell(a, b, layer)

    def _require(self, cell: Cell) -> Cell:
        if not self.is_cell_in_grid(cell):
            raise CellNotInGridError(cell)
        return self._base(cell)

    def is_cell_in_grid(self, cell: Cell) -> bool:
        if not 0 <= cell[2] < self.layers:
            return False
        return self.underlying.is_cell_in_grid(self._base(cell))

    def cell_type(self, cell: Cell):
        return prism_cell_type(self.underlying.cell_type(self._base(cell)))

    def up_dir(self, cell: Cell) -> int:
        return self.underlying.cell_type(self._base(cell)).dir_count

    def down_dir(self, cell: Cell) -> int:
        return self.up_dir(cell) + 1

    def cell_dirs(self, cell: Cell) -> List[int]:
        base = self._base(cell)
        n = self.underlying.cell_type(base).dir_count
        return self.underlying.cell_dirs(base) + [n, n + 1]

    def cell_corners(self, cell: Cell) -> List[int]:
        base = self._base(cell)
        k = self.underlying.cell_type(base).corner_count
        corners = self.underlying.cell_corners(base)
        return corners + [c + k for c in corners]

    ## topology

    def try_move(self, cell: Cell, dir: int) -> Optional[Move]:
        if not self.is_cell_in_grid(cell):
            return None
        base = self._base(cell)
        layer = cell[2]
        n = self.underlying.cell_type(base).dir_count
        if dir == n:
            if layer + 1 >= self.layers:
                return None
            return Move(Cell(cell[0], cell[1], layer + 1), n + 1, IDENTITY)
        if dir == n + 1:
            if layer == 0:
                return None
            return Move(Cell(cell[0], cell[1], layer - 1), n, IDENTITY)
        move = self.underlying.try_move(base, dir)
        if move is None:
            return None
        return Move(self._lift(move.dest, layer), move.inverse_dir, move.connection)

    ## geometry

    def cell_center(self, cell: Cell) -> Vec3:
        base = self._require(cell)
        x, y, _ = self.underlying.cell_center(base)
        layer = cell[2]
        return (x, y, (self._bottoms[layer] + self._bottoms[layer + 1]) / 2.0)

    def corner_position(self, cell: Cell, corner: int) -> Vec3:
        base = self._require(cell)
        k = self.underlying.cell_type(base).corner_count
        if not 0 <= corner < 2 * k:
            raise InvalidArgumentError(f"corner {corner} out of range for {cell}")
        x, y, _ = self.underlying.corner_position(base, corner % k)
        layer = cell[2] + (1 if corner >= k else 0)
        return (x, y, self._bottoms[layer])

    # every corner, bottom ring first
    polygon = Grid.polygon

    def cell_aabb(self, cell: Cell) -> Aabb:
        base = self._require(cell)
        box = self.underlying.cell_aabb(base)
        layer = cell[2]
        return Aabb((box.min[0], box.min[1], self._bottoms[layer]),
                    (box.max[0], box.max[1], self._bottoms[layer + 1]))

    ## queries

    def find_cell(self, position: Sequence[float]) -> Optional[Cell]:
        x, y, z = to_vec3(position)
        if not 0.0 <= z < self._bottoms[-1]:
            return None
        base = self.underlying.find_cell((x, y, 0.0))
        if base is None:
            return None
        layer = bisect_right(self._bottoms, z) - 1
        return self._lift(base, layer)

    def _layers_between(self, z0: float, z1: float) -> List[int]:
        # half-open like the footprint query: a box ending on a layer
        # boundary does not reach the layer above
        if z0 == z1:
            if not 0.0 <= z0 < self._bottoms[-1]:
                return []
            return [bisect_right(self._bottoms, z0) - 1]
        return [i for i in range(self.layers)
                if self._bottoms[i] < z1 and z0 < self._bottoms[i + 1]]

    def cells_in_aabb(self, aabb_min: Sequence[float], aabb_max: Sequence[float]) -> List[Cell]:
        lo, hi = to_vec3(aabb_min), to_vec3(aabb_max)
        layers = self._layers_between(lo[2], hi[2])
        if not layers:
            return []
        footprint = self.underlying.cells_in_aabb((lo[0], lo[1], 0.0), (hi[0], hi[1], 0.0))
        return [self._lift(c, layer) for layer in layers for c in footprint]

    raycast = Grid.raycast

    ## enumeration and indexing, layer by layer

    def cells(self, max_cells: Optional[int] = None) -> List[Cell]:
        footprint = self.underlying.cells()
        result = []
        for layer in range(self.layers):
            for base in footprint:
                if max_cells is not None and len(result) >= max_cells:
                    return result
                result.append(self._lift(base, layer))
        return result

    def cell_count(self) -> int:
        return self.underlying.cell_count() * self.layers

    def index_count(self) -> int:
        return self.underlying.index_count() * self.layers

    def index(self, cell: Cell) -> int:
        base = self._require(cell)
        return self.underlying.index(base) + cell[2] * self.underlying.index_count()

    def cell_by_index(self, index: int) -> Optional[Cell]:
        per_layer = self.underlying.index_count()
        if per_layer == 0 or not 0 <= index < per_layer * self.layers:
            return None
        layer, rest = divmod(index, per_layer)
        base = self.underlying.cell_by_index(rest)
        if base is None:
            return None
        return self._lift(base, layer)

    # prism cells are already 3-D
    planar_key = unsupported(Grid.planar_key)
    from_planar_key = unsupported(Grid.from_planar_key)

    def bound_by(self, bound: Bound) -> "PlanarPrismModifier":
        """Bind the footprint; the layer range is unchanged."""
        return self._rebuild(self.underlying.bound_by(bound))


def square_prism_grid(layers: int, cell_size: float = 1.0, layer_height: float = 1.0,
                      bound: Optional[Bound] = None) -> PlanarPrismModifier:
    return PlanarPrismModifier(SquareGrid(cell_size, bound), layers, layer_height)


def hex_prism_grid(layers: int, cell_size: float = 1.0,
                   orientation: HexOrientation = HexOrientation.POINTY_TOPPED,
                   layer_height: float = 1.0,
                   bound: Optional[Bound] = None) -> PlanarPrismModifier:
    return PlanarPrismModifier(HexGrid(cell_size, orientation, bound), layers, layer_height)


def triangle_prism_grid(layers: int, cell_size: float = 1.0,
                        orientation: TriangleOrientation = TriangleOrientation.FLAT_TOPPED,
                        layer_height: float = 1.0,
                        bound: Optional[Bound] = None) -> PlanarPrismModifier:
    return PlanarPrismModifier(TriangleGrid(cell_size, orientation, bound), layers, layer_height)


__all__ = [
    "PlanarPrismModifier",
    "square_prism_grid",
    "hex_prism_grid",
    "triangle_prism_grid",
]
