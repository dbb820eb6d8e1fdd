"""Mesh backed grids.

A :class:`MeshData` is a vertex list plus a list of polygonal faces
given as vertex index tuples.  :class:`MeshGrid` turns one into a grid
whose cells are ``(face, 0, 0)``; direction ``d`` of a face is its edge
from vertex ``d`` to vertex ``d + 1``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from yapgrid.bounds import Bound
from yapgrid.cell import IDENTITY, Cell, Connection, Move, RaycastInfo
from yapgrid.cell_type import ngon_cell_type
from yapgrid.config import get_setting
from yapgrid.errors import InvalidArgumentError, NotImplementedGridError
from yapgrid.geometry import (
    Aabb,
    Matrix,
    Vec3,
    add,
    centroid,
    length,
    point_in_polygon_xy,
    ray_aabb,
    ray_polygon,
    ray_segment_xy,
    scale,
    to_vec3,
)
from yapgrid.grid import Grid, GridType

logger = logging.getLogger(__name__)

# (neighbour face, neighbour edge, mirrored) for each face edge, or None
Adjacency = List[List[Optional[Tuple[int, int, bool]]]]

_MIRROR = Connection(0, True)


@dataclass
class MeshData:
    """Polygon soup with shared vertices."""

    vertices: List[Vec3]
    faces: List[Tuple[int, ...]]
    _aabb: Optional[Aabb] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        self.vertices = [to_vec3(v) for v in self.vertices]
        self.faces = [tuple(int(i) for i in f) for f in self.faces]
        n = len(self.vertices)
        for k, face in enumerate(self.faces):
            if len(face) < 3:
                raise InvalidArgumentError(f"face {k} has fewer than three vertices")
            if any(not 0 <= i < n for i in face):
                raise InvalidArgumentError(f"face {k} references a missing vertex")

    @property
    def face_count(self) -> int:
        return len(self.faces)

    def face_vertices(self, face: int) -> List[Vec3]:
        return [self.vertices[i] for i in self.faces[face]]

    def aabb(self) -> Aabb:
        if self._aabb is None:
            if not self.vertices:
                raise InvalidArgumentError("mesh has no vertices")
            self._aabb = Aabb.from_points(self.vertices)
        return self._aabb

    def is_planar(self, tol: Optional[float] = None) -> bool:
        """True if every vertex lies in one plane of constant z."""
        if tol is None:
            tol = get_setting("epsilon")
        if not self.vertices:
            return True
        z0 = self.vertices[0][2]
        return all(abs(v[2] - z0) <= tol for v in self.vertices)

    def translated(self, offset: Sequence[float]) -> "MeshData":
        d = to_vec3(offset)
        return MeshData([add(v, d) for v in self.vertices], list(self.faces))

    def transformed(self, matrix: Matrix) -> "MeshData":
        return MeshData([matrix.transform_point(v) for v in self.vertices], list(self.faces))


def face_adjacency(mesh: MeshData) -> Adjacency:
    """Pair up faces that share an edge.

    An edge traversed in opposite directions by its two faces is an
    ordinary, identity connection.  If both faces traverse it the same
    way one of them is flipped and the connection is a mirror.  Edges
    used by more than two faces are left unconnected.
    """
    by_edge: Dict[Tuple[int, int], List[Tuple[int, int, int]]] = {}
    for f, face in enumerate(mesh.faces):
        n = len(face)
        for e in range(n):
            a, b = face[e], face[(e + 1) % n]
            key = (a, b) if a < b else (b, a)
            by_edge.setdefault(key, []).append((f, e, a))

    result: Adjacency = [[None] * len(face) for face in mesh.faces]
    for key, uses in by_edge.items():
        if len(uses) != 2:
            if len(uses) > 2:
                logger.debug("edge %s shared by %d faces; left unconnected", key, len(uses))
            continue
        (f1, e1, a1), (f2, e2, a2) = uses
        mirrored = a1 == a2
        result[f1][e1] = (f2, e2, mirrored)
        result[f2][e2] = (f1, e1, mirrored)
    return result


class MeshGrid(Grid):
    """Grid over the faces of a :class:`MeshData`."""

    grid_type = GridType.MESH

    def __init__(self, mesh_data: MeshData, compute_adjacency: bool = True,
                 bound: Optional[Bound] = None, adjacency: Optional[Adjacency] = None):
        super().__init__(bound)
        if not isinstance(mesh_data, MeshData):
            raise InvalidArgumentError(f"expected MeshData, got {type(mesh_data).__name__}")
        self.mesh_data = mesh_data
        if adjacency is None and compute_adjacency:
            adjacency = face_adjacency(mesh_data)
        self.adjacency = adjacency
        self._face_boxes: Optional[List[Aabb]] = None
        self._planar = mesh_data.is_planar()

    def __repr__(self):
        return f"MeshGrid(faces={self.mesh_data.face_count}, bound={self.bound!r})"

    def close(self) -> None:
        super().close()
        self._face_boxes = None

    ## properties

    @property
    def is_planar(self) -> bool:
        return self._planar

    @property
    def is_finite(self) -> bool:
        return True

    @property
    def is_orientable(self) -> bool:
        if self.adjacency is None:
            return True
        return not any(entry is not None and entry[2]
                       for row in self.adjacency for entry in row)

    ## membership and topology

    def is_cell_in_grid(self, cell: Cell) -> bool:
        if cell[1] != 0 or cell[2] != 0 or not 0 <= cell[0] < self.mesh_data.face_count:
            return False
        return self._bound is None or self._bound.contains(cell)

    def cell_type(self, cell: Cell):
        self._require_cell(cell)
        return ngon_cell_type(len(self.mesh_data.faces[cell[0]]))

    def cell_dirs(self, cell: Cell) -> List[int]:
        self._require_cell(cell)
        return list(range(len(self.mesh_data.faces[cell[0]])))

    cell_corners = cell_dirs

    def try_move(self, cell: Cell, dir: int) -> Optional[Move]:
        if self.adjacency is None or not self.is_cell_in_grid(cell):
            return None
        row = self.adjacency[cell[0]]
        if not 0 <= dir < len(row) or row[dir] is None:
            return None
        face, edge, mirrored = row[dir]
        dest = Cell(face, 0, 0)
        if not self.is_cell_in_grid(dest):
            return None
        return Move(dest, edge, _MIRROR if mirrored else IDENTITY)

    ## geometry

    def polygon(self, cell: Cell) -> List[Vec3]:
        self._require_cell(cell)
        return self.mesh_data.face_vertices(cell[0])

    def cell_center(self, cell: Cell) -> Vec3:
        return centroid(self.polygon(cell))

    def corner_position(self, cell: Cell, corner: int) -> Vec3:
        face = self.mesh_data.faces[self._require_cell(cell)[0]]
        if not 0 <= corner < len(face):
            raise InvalidArgumentError(f"corner {corner} out of range for face {cell[0]}")
        return self.mesh_data.vertices[face[corner]]

    def _boxes(self) -> List[Aabb]:
        if self._face_boxes is None:
            self._face_boxes = [Aabb.from_points(self.mesh_data.face_vertices(f))
                                for f in range(self.mesh_data.face_count)]
        return self._face_boxes

    def cell_aabb(self, cell: Cell) -> Aabb:
        return self._boxes()[self._require_cell(cell)[0]]

    ## queries

    def find_cell(self, position: Sequence[float]) -> Optional[Cell]:
        if not self._planar:
            raise NotImplementedGridError("find_cell needs a mesh lying in a plane of constant z")
        p = to_vec3(position)
        tol = get_setting("epsilon")
        for f, box in enumerate(self._boxes()):
            if not (box.min[0] - tol <= p[0] <= box.max[0] + tol
                    and box.min[1] - tol <= p[1] <= box.max[1] + tol):
                continue
            cell = Cell(f, 0, 0)
            if self.is_cell_in_grid(cell) and point_in_polygon_xy(p, self.mesh_data.face_vertices(f)):
                return cell
        return None

    def cells(self, max_cells=None) -> List[Cell]:
        result = []
        for f in range(self.mesh_data.face_count):
            if max_cells is not None and len(result) >= max_cells:
                break
            cell = Cell(f, 0, 0)
            if self.is_cell_in_grid(cell):
                result.append(cell)
        return result

    def cells_in_aabb(self, aabb_min: Sequence[float], aabb_max: Sequence[float]) -> List[Cell]:
        box = Aabb(to_vec3(aabb_min), to_vec3(aabb_max))
        return [Cell(f, 0, 0) for f, b in enumerate(self._boxes())
                if b.intersects(box) and self.is_cell_in_grid(Cell(f, 0, 0))]

    def index(self, cell: Cell) -> int:
        if self._bound is None:
            return self._require_cell(cell)[0]
        return super().index(cell)

    def index_count(self) -> int:
        if self._bound is None:
            return self.mesh_data.face_count
        return super().index_count()

    def cell_by_index(self, index: int) -> Optional[Cell]:
        if self._bound is None:
            if 0 <= index < self.mesh_data.face_count:
                return Cell(index, 0, 0)
            return None
        return super().cell_by_index(index)

    def raycast(self, origin, direction, max_distance=math.inf, max_hits=None):
        o = to_vec3(origin)
        d = to_vec3(direction)
        norm = length(d)
        if norm == 0.0:
            raise InvalidArgumentError("ray direction is the zero vector")
        d = scale(d, 1.0 / norm)
        eps = get_setting("epsilon")
        in_plane = (self._planar and bool(self.mesh_data.vertices)
                    and abs(d[2]) <= eps
                    and abs(o[2] - self.mesh_data.vertices[0][2]) <= eps)

        found = []
        for f, box in enumerate(self._boxes()):
            cell = Cell(f, 0, 0)
            if not self.is_cell_in_grid(cell):
                continue
            if ray_aabb(o, d, box.expand(eps)) is None:
                continue
            poly = self.mesh_data.face_vertices(f)
            if in_plane:
                hit = self._planar_entry(o, d, poly)
            else:
                t = ray_polygon(o, d, poly)
                hit = None if t is None else (t, None)
            if hit is not None and hit[0] <= max_distance:
                found.append((hit[0], f, hit[1]))

        found.sort()
        if max_hits is not None:
            found = found[:max_hits]
        return [RaycastInfo(Cell(f, 0, 0), add(o, scale(d, t)), t, edge)
                for t, f, edge in found]

    @staticmethod
    def _planar_entry(o: Vec3, d: Vec3, poly: List[Vec3]):
        """Where a ray in the mesh plane first touches a face, and through
        which edge."""
        if point_in_polygon_xy(o, poly):
            return (0.0, None)
        best = None
        n = len(poly)
        for e in range(n):
            t = ray_segment_xy(o, d, poly[e], poly[(e + 1) % n])
            if t is not None and (best is None or t < best[0]):
                best = (t, e)
        return best

    ## bounds

    def bound_by(self, bound: Bound) -> "MeshGrid":
        return MeshGrid(self.mesh_data, bound=bound, adjacency=self.adjacency,
                        compute_adjacency=False)

    def unbounded(self) -> "MeshGrid":
        return MeshGrid(self.mesh_data, adjacency=self.adjacency, compute_adjacency=False)


def mesh_data_from_grid(grid: Grid, cells: Optional[Sequence[Cell]] = None,
                        tolerance: Optional[float] = None) -> MeshData:
    """Collect the polygons of ``cells`` (default: every cell of a finite
    grid) into one mesh, welding vertices closer than ``tolerance``.

    Face ``i`` of the result is the polygon of ``cells[i]``.
    """
    if cells is None:
        cells = grid.cells()
    if tolerance is None:
        tolerance = get_setting("edge_match_tolerance")
    vertices: List[Vec3] = []
    lookup: Dict[Tuple[int, int, int], int] = {}
    faces = []
    for cell in cells:
        face = []
        for p in grid.polygon(cell):
            key = tuple(round(c / tolerance) for c in p)
            index = lookup.get(key)
            if index is None:
                index = lookup[key] = len(vertices)
                vertices.append(p)
            face.append(index)
        faces.append(tuple(face))
    return MeshData(vertices, faces)


__all__ = [
    "MeshData",
    "MeshGrid",
    "face_adjacency",
    "mesh_data_from_grid",
]
