"""Transform modifier: moves a grid's geometry by a 4x4 matrix."""

from __future__ import annotations

import math
from typing import List, Optional, Sequence

from yapgrid.cell import Cell, RaycastInfo
from yapgrid.errors import InvalidArgumentError
from yapgrid.geometry import Aabb, Matrix, Vec3, distance, length, scale, to_vec3
from yapgrid.grid import Grid
from yapgrid.modifiers.base import GridModifier


class TransformModifier(GridModifier):
    """Apply ``matrix`` to every position the underlying grid reports.

    Topology, bounds and the cell set are untouched.  Queries taking a
    position map it back through the inverse first.
    """

    def __init__(self, underlying: Grid, matrix):
        matrix = matrix if isinstance(matrix, Matrix) else Matrix(matrix)
        inverse = matrix.inverse()
        super().__init__(underlying)
        self.matrix = matrix
        self.inverse = inverse

    def __repr__(self):
        return f"TransformModifier({self.underlying!r}, {self.matrix!r})"

    def _rebuild(self, underlying: Grid) -> "TransformModifier":
        return TransformModifier(underlying, self.matrix)

    @property
    def is_planar(self) -> bool:
        # planar means the cells stay in a plane of constant z
        m = self.matrix
        return (self.underlying.is_planar
                and abs(m.get(2, 0)) <= 1e-12 and abs(m.get(2, 1)) <= 1e-12)

    ## geometry

    def cell_center(self, cell: Cell) -> Vec3:
        return self.matrix.transform_point(self.underlying.cell_center(cell))

    def corner_position(self, cell: Cell, corner: int) -> Vec3:
        return self.matrix.transform_point(self.underlying.corner_position(cell, corner))

    def polygon(self, cell: Cell) -> List[Vec3]:
        return [self.matrix.transform_point(p) for p in self.underlying.polygon(cell)]

    def cell_aabb(self, cell: Cell) -> Aabb:
        return self.underlying.cell_aabb(cell).transform(self.matrix)

    ## queries

    def find_cell(self, position: Sequence[float]) -> Optional[Cell]:
        return self.underlying.find_cell(self.inverse.transform_point(to_vec3(position)))

    def cells_in_aabb(self, aabb_min: Sequence[float], aabb_max: Sequence[float]) -> List[Cell]:
        box = Aabb(to_vec3(aabb_min), to_vec3(aabb_max))
        local = box.transform(self.inverse)
        return [c for c in self.underlying.cells_in_aabb(local.min, local.max)
                if self.cell_aabb(c).intersects(box)]

    def raycast(self, origin, direction, max_distance=math.inf, max_hits=None):
        o = to_vec3(origin)
        d = to_vec3(direction)
        if length(d) == 0.0:
            raise InvalidArgumentError("ray direction is the zero vector")
        local_o = self.inverse.transform_point(o)
        local_d = self.inverse.transform_vector(d)
        local_max = max_distance
        if not math.isinf(max_distance):
            # 2-D grids measure distance in their plane
            probe = (local_d[0], local_d[1], 0.0) if self.underlying.is_2d else local_d
            n = length(probe)
            if n == 0.0:
                raise InvalidArgumentError("ray direction has no component in the grid plane")
            stretch = length(self.matrix.transform_vector(scale(probe, 1.0 / n)))
            local_max = max_distance / stretch
        hits: List[RaycastInfo] = []
        for hit in self.underlying.raycast(local_o, local_d, local_max, max_hits):
            point = self.matrix.transform_point(hit.point)
            dist = distance(point, o)
            hits.append(RaycastInfo(hit.cell, point, dist, hit.cell_dir))
        return hits

    def transform_position(self, p: Sequence[float]) -> Vec3:
        """Map an underlying-space position into this grid's space."""
        return self.matrix.transform_point(p)

    def untransform_position(self, p: Sequence[float]) -> Vec3:
        return self.inverse.transform_point(p)


__all__ = ["TransformModifier"]
