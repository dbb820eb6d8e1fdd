"""Lazily generated planar mesh grids.

A :class:`PlanarLazyMeshGrid` presents an unbounded planar tiling whose
geometry comes from a callback ``get_mesh_data(chunk_x, chunk_y)``.
Chunk ``(cx, cy)`` sits at ``cx*stride_x + cy*stride_y``; its mesh is
generated on first use, wrapped in a :class:`~yapgrid.mesh.MeshGrid`
and kept according to a :class:`CachePolicy`.

Global cells ``(x, y, 0)`` split into a chunk and a local face with a
fixed ``(w, h)`` partition::

    chunk = (x // w, y // h)
    face  = (x % w) + (y % h) * w

Moves that leave a chunk are resolved by looking for a face in a nearby
chunk that shares the outgoing edge's world space endpoints.

A lazy grid's chunk cache is mutated by queries; do not query one
instance from several threads at once.
"""

from __future__ import annotations

import logging
import math
from collections import OrderedDict
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from yapgrid.bounds import Bound
from yapgrid.cell import IDENTITY, Cell, Connection, Move
from yapgrid.cell_type import HexOrientation
from yapgrid.config import get_setting
from yapgrid.errors import InvalidArgumentError
from yapgrid.geometry import Aabb, Vec3, add, distance, sub, to_vec3
from yapgrid.grid import Grid, GridType
from yapgrid.hex import HexGrid
from yapgrid.mesh import MeshData, MeshGrid, mesh_data_from_grid
from yapgrid.square import SquareGrid

logger = logging.getLogger(__name__)

MeshSource = Callable[[int, int], Optional[MeshData]]
ChunkKey = Tuple[int, int]

_MIRROR = Connection(0, True)


class CachePolicy(Enum):
    NONE = "none"
    UNBOUNDED = "unbounded"
    LRU = "lru"


class _Chunk:
    __slots__ = ("mesh_data", "grid")

    def __init__(self, mesh_data: MeshData, grid: MeshGrid):
        self.mesh_data = mesh_data
        self.grid = grid


def _vec2(v: Sequence[float], what: str) -> Tuple[float, float]:
    if len(v) < 2:
        raise InvalidArgumentError(f"{what} needs two components, got {v!r}")
    return (float(v[0]), float(v[1]))


class PlanarLazyMeshGrid(Grid):
    """Unbounded planar grid assembled from generated mesh chunks.

    ``aabb_min``/``aabb_max`` bound the mesh of a chunk in its own
    frame (that is, chunk ``(0, 0)`` before translation); they are used
    to work out which chunks can contain a point or overlap a box.
    When ``translate_mesh_data`` is false the generator is assumed to
    return meshes already placed in world space.
    """

    grid_type = GridType.MESH

    def __init__(self, get_mesh_data: MeshSource,
                 stride_x: Sequence[float], stride_y: Sequence[float],
                 aabb_min: Sequence[float], aabb_max: Sequence[float],
                 translate_mesh_data: bool = True,
                 cells_per_chunk=None,
                 cache_policy: CachePolicy = CachePolicy.UNBOUNDED,
                 cache_size: Optional[int] = None,
                 compute_adjacency: bool = True,
                 bound: Optional[Bound] = None):
        super().__init__(bound)
        if get_mesh_data is None or not callable(get_mesh_data):
            raise InvalidArgumentError("get_mesh_data must be callable")
        self._get_mesh_data = get_mesh_data
        self.stride_x = _vec2(stride_x, "stride_x")
        self.stride_y = _vec2(stride_y, "stride_y")
        det = self.stride_x[0] * self.stride_y[1] - self.stride_x[1] * self.stride_y[0]
        if abs(det) < get_setting("epsilon"):
            raise InvalidArgumentError("chunk strides are parallel")
        self._det = det
        self.chunk_aabb = Aabb(to_vec3(aabb_min), to_vec3(aabb_max))
        self.translate_mesh_data = translate_mesh_data

        if cells_per_chunk is None:
            cells_per_chunk = int(get_setting("lazy_cells_per_chunk"))
        if isinstance(cells_per_chunk, int):
            cells_per_chunk = (cells_per_chunk, cells_per_chunk)
        w, h = (int(c) for c in cells_per_chunk)
        if w <= 0 or h <= 0:
            raise InvalidArgumentError(f"cells_per_chunk must be positive, got {cells_per_chunk!r}")
        self.cells_per_chunk = (w, h)

        if not isinstance(cache_policy, CachePolicy):
            raise InvalidArgumentError(f"not a cache policy: {cache_policy!r}")
        self.cache_policy = cache_policy
        if cache_size is None:
            cache_size = int(get_setting("lazy_lru_capacity"))
        if cache_policy is CachePolicy.LRU and cache_size <= 0:
            raise InvalidArgumentError("an LRU cache needs a positive size")
        self.cache_size = cache_size
        self.compute_adjacency = compute_adjacency
        self._cache: "OrderedDict[ChunkKey, Optional[_Chunk]]" = OrderedDict()

    def __repr__(self):
        return (f"{type(self).__name__}(cells_per_chunk={self.cells_per_chunk},"
                f" cache={self.cache_policy.name}, bound={self.bound!r})")

    def _settings(self) -> dict:
        return dict(translate_mesh_data=self.translate_mesh_data,
                    cells_per_chunk=self.cells_per_chunk,
                    cache_policy=self.cache_policy,
                    cache_size=self.cache_size,
                    compute_adjacency=self.compute_adjacency)

    ## chunk bookkeeping

    def split_cell(self, cell: Cell) -> Tuple[ChunkKey, int]:
        """Chunk key and local face index of a global cell."""
        w, h = self.cells_per_chunk
        x, y = cell[0], cell[1]
        return (x // w, y // h), (x % w) + (y % h) * w

    def combine(self, chunk: ChunkKey, face: int) -> Cell:
        w, h = self.cells_per_chunk
        return Cell(chunk[0] * w + face % w, chunk[1] * h + face // w, 0)

    def chunk_offset(self, chunk: ChunkKey) -> Vec3:
        cx, cy = chunk
        return (cx * self.stride_x[0] + cy * self.stride_y[0],
                cx * self.stride_x[1] + cy * self.stride_y[1], 0.0)

    @property
    def cached_chunks(self) -> List[ChunkKey]:
        """Keys currently held, least recently used first."""
        return [k for k, v in self._cache.items() if v is not None]

    def _generate(self, key: ChunkKey) -> Optional[_Chunk]:
        mesh = self._get_mesh_data(key[0], key[1])
        if mesh is None:
            logger.debug("chunk %s: generator returned no mesh", key)
            return None
        w, h = self.cells_per_chunk
        if mesh.face_count > w * h:
            raise InvalidArgumentError(
                f"chunk {key} has {mesh.face_count} faces; the partition holds {w * h}")
        if self.translate_mesh_data:
            mesh = mesh.translated(self.chunk_offset(key))
        logger.debug("chunk %s: generated %d faces", key, mesh.face_count)
        return _Chunk(mesh, MeshGrid(mesh, compute_adjacency=self.compute_adjacency))

    def _chunk(self, key: ChunkKey) -> Optional[_Chunk]:
        if key in self._cache:
            self._cache.move_to_end(key)
            return self._cache[key]
        chunk = self._generate(key)
        if self.cache_policy is CachePolicy.NONE:
            return chunk
        self._cache[key] = chunk
        if self.cache_policy is CachePolicy.LRU:
            while len(self._cache) > self.cache_size:
                old_key, old = self._cache.popitem(last=False)
                logger.debug("chunk %s: evicted", old_key)
                if old is not None:
                    old.grid.close()
        return chunk

    def close(self) -> None:
        super().close()
        for chunk in self._cache.values():
            if chunk is not None:
                chunk.grid.close()
        self._cache.clear()

    def _locate(self, cell: Cell) -> Optional[Tuple[ChunkKey, _Chunk, Cell]]:
        if cell[2] != 0:
            return None
        key, face = self.split_cell(cell)
        chunk = self._chunk(key)
        if chunk is None or face >= chunk.mesh_data.face_count:
            return None
        return key, chunk, Cell(face, 0, 0)

    def _require(self, cell: Cell) -> Tuple[ChunkKey, _Chunk, Cell]:
        found = self._locate(cell) if self.is_cell_in_grid(cell) else None
        if found is None:
            self._require_cell(cell)
        return found

    def _to_world(self, key: ChunkKey, p: Vec3) -> Vec3:
        if self.translate_mesh_data:
            return p
        return add(p, self.chunk_offset(key))

    def _to_local(self, key: ChunkKey, p: Vec3) -> Vec3:
        if self.translate_mesh_data:
            return p
        return sub(p, self.chunk_offset(key))

    def _chunks_near(self, box: Aabb) -> List[ChunkKey]:
        """Chunks whose extent overlaps ``box``, in row order."""
        lo = (box.min[0] - self.chunk_aabb.max[0], box.min[1] - self.chunk_aabb.max[1])
        hi = (box.max[0] - self.chunk_aabb.min[0], box.max[1] - self.chunk_aabb.min[1])
        (ax, ay), (bx, by) = self.stride_x, self.stride_y
        us, vs = [], []
        for px, py in ((lo[0], lo[1]), (hi[0], lo[1]), (lo[0], hi[1]), (hi[0], hi[1])):
            us.append((px * by - py * bx) / self._det)
            vs.append((ax * py - ay * px) / self._det)
        result = []
        for cy in range(math.floor(min(vs)), math.ceil(max(vs)) + 1):
            for cx in range(math.floor(min(us)), math.ceil(max(us)) + 1):
                off = self.chunk_offset((cx, cy))
                extent = Aabb(add(self.chunk_aabb.min, off), add(self.chunk_aabb.max, off))
                if (extent.min[0] <= box.max[0] and box.min[0] <= extent.max[0]
                        and extent.min[1] <= box.max[1] and box.min[1] <= extent.max[1]):
                    result.append((cx, cy))
        return result

    ## properties

    @property
    def is_repeating(self) -> bool:
        return True

    ## membership and topology

    def is_cell_in_grid(self, cell: Cell) -> bool:
        if self._bound is not None and not self._bound.contains(cell):
            return False
        return self._locate(cell) is not None

    def cell_type(self, cell: Cell):
        _, chunk, local = self._require(cell)
        return chunk.grid.cell_type(local)

    def cell_dirs(self, cell: Cell) -> List[int]:
        _, chunk, local = self._require(cell)
        return chunk.grid.cell_dirs(local)

    def cell_corners(self, cell: Cell) -> List[int]:
        _, chunk, local = self._require(cell)
        return chunk.grid.cell_corners(local)

    def try_move(self, cell: Cell, dir: int) -> Optional[Move]:
        if not self.is_cell_in_grid(cell):
            return None
        key, chunk, local = self._locate(cell)
        n = len(chunk.mesh_data.faces[local[0]])
        if not 0 <= dir < n:
            return None
        move = chunk.grid.try_move(local, dir)
        if move is not None:
            dest = self.combine(key, move.dest[0])
            if not self.is_cell_in_grid(dest):
                return None
            return Move(dest, move.inverse_dir, move.connection)
        return self._cross_chunk_move(key, chunk, local[0], dir)

    def _cross_chunk_move(self, key: ChunkKey, chunk: _Chunk, face: int, dir: int) -> Optional[Move]:
        verts = chunk.mesh_data.face_vertices(face)
        a = self._to_world(key, verts[dir])
        b = self._to_world(key, verts[(dir + 1) % len(verts)])
        tol = get_setting("edge_match_tolerance")
        box = Aabb.from_points([a, b]).expand(tol)
        for other_key in self._chunks_near(box):
            other = self._chunk(other_key)
            if other is None:
                continue
            local_box = Aabb(self._to_local(other_key, box.min), self._to_local(other_key, box.max))
            for candidate in other.grid.cells_in_aabb(local_box.min, local_box.max):
                if other_key == key and candidate[0] == face:
                    continue
                poly = other.mesh_data.face_vertices(candidate[0])
                for e in range(len(poly)):
                    p = self._to_world(other_key, poly[e])
                    q = self._to_world(other_key, poly[(e + 1) % len(poly)])
                    if distance(p, b) <= tol and distance(q, a) <= tol:
                        connection = IDENTITY
                    elif distance(p, a) <= tol and distance(q, b) <= tol:
                        connection = _MIRROR
                    else:
                        continue
                    dest = self.combine(other_key, candidate[0])
                    if not self.is_cell_in_grid(dest):
                        return None
                    return Move(dest, e, connection)
        return None

    ## geometry

    def cell_center(self, cell: Cell) -> Vec3:
        key, chunk, local = self._require(cell)
        return self._to_world(key, chunk.grid.cell_center(local))

    def corner_position(self, cell: Cell, corner: int) -> Vec3:
        key, chunk, local = self._require(cell)
        return self._to_world(key, chunk.grid.corner_position(local, corner))

    def polygon(self, cell: Cell) -> List[Vec3]:
        key, chunk, local = self._require(cell)
        return [self._to_world(key, p) for p in chunk.grid.polygon(local)]

    def cell_aabb(self, cell: Cell) -> Aabb:
        key, chunk, local = self._require(cell)
        box = chunk.grid.cell_aabb(local)
        return Aabb(self._to_world(key, box.min), self._to_world(key, box.max))

    ## queries

    def find_cell(self, position: Sequence[float]) -> Optional[Cell]:
        p = to_vec3(position)
        for key in self._chunks_near(Aabb(p, p)):
            chunk = self._chunk(key)
            if chunk is None:
                continue
            local = chunk.grid.find_cell(self._to_local(key, p))
            if local is not None:
                cell = self.combine(key, local[0])
                if self.is_cell_in_grid(cell):
                    return cell
        return None

    def cells_in_aabb(self, aabb_min: Sequence[float], aabb_max: Sequence[float]) -> List[Cell]:
        box = Aabb(to_vec3(aabb_min), to_vec3(aabb_max))
        result = []
        for key in self._chunks_near(box):
            chunk = self._chunk(key)
            if chunk is None:
                continue
            lo, hi = self._to_local(key, box.min), self._to_local(key, box.max)
            for local in chunk.grid.cells_in_aabb(lo, hi):
                cell = self.combine(key, local[0])
                if self.is_cell_in_grid(cell):
                    result.append(cell)
        return result

    def raycast(self, origin, direction, max_distance=math.inf, max_hits=None):
        return self._walk_raycast(origin, direction, max_distance, max_hits)

    ## bounds

    def bound_by(self, bound: Bound) -> "PlanarLazyMeshGrid":
        return PlanarLazyMeshGrid(self._get_mesh_data, self.stride_x, self.stride_y,
                                  self.chunk_aabb.min, self.chunk_aabb.max,
                                  bound=bound, **self._settings())

    def unbounded(self) -> "PlanarLazyMeshGrid":
        return PlanarLazyMeshGrid(self._get_mesh_data, self.stride_x, self.stride_y,
                                  self.chunk_aabb.min, self.chunk_aabb.max,
                                  **self._settings())


## standard layouts

def _template_grid(chunk_mesh: MeshData, stride_x, stride_y, cells_per_chunk, **kwargs):
    aabb = chunk_mesh.aabb()
    return PlanarLazyMeshGrid(lambda cx, cy: chunk_mesh, stride_x, stride_y,
                              aabb.min, aabb.max, translate_mesh_data=True,
                              cells_per_chunk=cells_per_chunk, **kwargs)


def _partition(cells_per_chunk) -> Tuple[int, int]:
    if cells_per_chunk is None:
        cells_per_chunk = int(get_setting("lazy_cells_per_chunk"))
    if isinstance(cells_per_chunk, int):
        return (cells_per_chunk, cells_per_chunk)
    w, h = cells_per_chunk
    return (int(w), int(h))


def planar_lazy_square_grid(cell_size: float = 1.0, cells_per_chunk=None,
                            **kwargs) -> PlanarLazyMeshGrid:
    """Lazy grid of squares whose cell ``(x, y)`` coincides with
    :class:`~yapgrid.square.SquareGrid` cell ``(x, y)``."""
    w, h = _partition(cells_per_chunk)
    square = SquareGrid(cell_size)
    cells = [Cell(x, y, 0) for y in range(h) for x in range(w)]
    mesh = mesh_data_from_grid(square, cells)
    sx, sy = square.cell_size
    return _template_grid(mesh, (w * sx, 0.0), (0.0, h * sy), (w, h), **kwargs)


def planar_lazy_hex_grid(cell_size: float = 1.0,
                         orientation: HexOrientation = HexOrientation.FLAT_TOPPED,
                         cells_per_chunk=None, **kwargs) -> PlanarLazyMeshGrid:
    """Lazy grid of hexagons.

    Cell ``(x, y)`` is the hexagon with cube coordinates
    ``(x, y, -x - y)`` of a :class:`~yapgrid.hex.HexGrid` with the same
    size and orientation, so chunks are parallelograms along the cube x
    and y axes.
    """
    w, h = _partition(cells_per_chunk)
    hexes = HexGrid(cell_size, orientation)
    cells = [Cell(x, y, -x - y) for y in range(h) for x in range(w)]
    mesh = mesh_data_from_grid(hexes, cells)
    ux = hexes.cell_center(Cell(1, 0, -1))
    uy = hexes.cell_center(Cell(0, 1, -1))
    return _template_grid(mesh, (w * ux[0], w * ux[1]), (h * uy[0], h * uy[1]), (w, h),
                          **kwargs)


__all__ = [
    "CachePolicy",
    "PlanarLazyMeshGrid",
    "planar_lazy_square_grid",
    "planar_lazy_hex_grid",
]
