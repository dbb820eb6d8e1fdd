"""Periodic planar tilings.

A periodic grid repeats one *unit cell* mesh along two lattice strides.
It is a :class:`~yapgrid.lazy.PlanarLazyMeshGrid` whose chunks are the
translated copies of the unit cell, partitioned ``(face_count, 1)``:
cell ``(i*F + f, j)`` is face ``f`` of the copy at ``i*stride_x +
j*stride_y``.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Optional, Sequence, Tuple

from yapgrid.bounds import Bound
from yapgrid.errors import InvalidArgumentError, NotImplementedGridError
from yapgrid.lazy import PlanarLazyMeshGrid
from yapgrid.mesh import MeshData, MeshGrid

_H = math.sqrt(3.0) / 2.0


class PeriodicTiling(Enum):
    SQUARE = "square"
    TETRAKIS_SQUARE = "tetrakis_square"
    RHOMBILLE = "rhombille"
    TRIHEX = "trihex"
    CAIRO = "cairo"
    SNUB_SQUARE = "snub_square"


class PeriodicPlanarMeshGrid(PlanarLazyMeshGrid):
    """Infinite tiling by translated copies of ``unit_mesh``."""

    def __init__(self, unit_mesh: MeshData,
                 stride_x: Sequence[float], stride_y: Sequence[float],
                 bound: Optional[Bound] = None, **kwargs):
        if not isinstance(unit_mesh, MeshData):
            raise InvalidArgumentError(f"expected MeshData, got {type(unit_mesh).__name__}")
        if unit_mesh.face_count == 0:
            raise InvalidArgumentError("unit cell has no faces")
        self.unit_mesh = unit_mesh
        aabb = unit_mesh.aabb()
        super().__init__(self._unit_cell, stride_x, stride_y, aabb.min, aabb.max,
                         translate_mesh_data=True,
                         cells_per_chunk=(unit_mesh.face_count, 1),
                         bound=bound, **kwargs)

    def _unit_cell(self, cx: int, cy: int) -> MeshData:
        return self.unit_mesh

    def _options(self) -> dict:
        settings = self._settings()
        del settings["translate_mesh_data"], settings["cells_per_chunk"]
        return settings

    def unit_cell_grid(self) -> MeshGrid:
        """The unit cell alone as a finite mesh grid."""
        return MeshGrid(self.unit_mesh, compute_adjacency=self.compute_adjacency)

    def bound_by(self, bound: Bound) -> "PeriodicPlanarMeshGrid":
        return PeriodicPlanarMeshGrid(self.unit_mesh, self.stride_x, self.stride_y,
                                      bound=bound, **self._options())

    def unbounded(self) -> "PeriodicPlanarMeshGrid":
        return PeriodicPlanarMeshGrid(self.unit_mesh, self.stride_x, self.stride_y,
                                      **self._options())


## built-in unit cells, for unit edge or lattice spacing

def _square() -> Tuple[MeshData, Tuple[float, float], Tuple[float, float]]:
    mesh = MeshData([(0, 0), (1, 0), (1, 1), (0, 1)], [(0, 1, 2, 3)])
    return mesh, (1.0, 0.0), (0.0, 1.0)


def _tetrakis_square():
    # the unit square cut into four triangles meeting at its centre
    mesh = MeshData([(0, 0), (1, 0), (1, 1), (0, 1), (0.5, 0.5)],
                    [(0, 1, 4), (1, 2, 4), (2, 3, 4), (3, 0, 4)])
    return mesh, (1.0, 0.0), (0.0, 1.0)


def _rhombille():
    # a pointy topped hexagon of circumradius 1 cut into three rhombi
    ring = [(math.cos(math.radians(30 + 60 * k)), math.sin(math.radians(30 + 60 * k)))
            for k in range(6)]
    mesh = MeshData([(0.0, 0.0)] + ring,
                    [(0, 1, 2, 3), (0, 3, 4, 5), (0, 5, 6, 1)])
    return mesh, (2.0 * _H, 0.0), (_H, 1.5)


def _trihex():
    # a flat topped hexagon of side 1 plus the two triangles above and
    # to its upper right
    ring = [(math.cos(math.radians(60 * k)), math.sin(math.radians(60 * k))) for k in range(6)]
    vertices = ring + [(1.5, _H), (0.0, 2.0 * _H)]
    faces = [(0, 1, 2, 3, 4, 5), (0, 6, 1), (1, 7, 2)]
    return MeshData(vertices, faces), (2.0, 0.0), (1.0, 2.0 * _H)


_BUILDERS = {
    PeriodicTiling.SQUARE: _square,
    PeriodicTiling.TETRAKIS_SQUARE: _tetrakis_square,
    PeriodicTiling.RHOMBILLE: _rhombille,
    PeriodicTiling.TRIHEX: _trihex,
}


def periodic_grid(tiling: PeriodicTiling, cell_size: float = 1.0,
                  bound: Optional[Bound] = None, **kwargs) -> PeriodicPlanarMeshGrid:
    """One of the built-in tilings scaled by ``cell_size``."""
    builder = _BUILDERS.get(tiling)
    if builder is None:
        raise NotImplementedGridError(f"no unit cell for the {tiling.value} tiling")
    s = float(cell_size)
    if not s > 0 or math.isinf(s):
        raise InvalidArgumentError(f"cell size must be positive and finite, got {cell_size!r}")
    mesh, sx, sy = builder()
    mesh = MeshData([(v[0] * s, v[1] * s, 0.0) for v in mesh.vertices], mesh.faces)
    return PeriodicPlanarMeshGrid(mesh, (sx[0] * s, sx[1] * s), (sy[0] * s, sy[1] * s),
                                  bound=bound, **kwargs)


__all__ = [
    "PeriodicTiling",
    "PeriodicPlanarMeshGrid",
    "periodic_grid",
]
