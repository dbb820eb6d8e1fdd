# -*- coding: utf-8 -*-
"""yapgrid: structured grids over square, hexagonal, triangular, cube,
mesh and periodic tilings, with a uniform cell / topology / geometry
interface and stackable modifiers.

Quick Start:
    >>> from yapgrid import SquareGrid, find_basic_path
    >>> grid = SquareGrid(1.0)
    >>> len(find_basic_path(grid, (0, 0), (2, 1)))
    4
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("yapgrid")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

from yapgrid.errors import (
    Status,
    GridError,
    InvalidArgumentError,
    NullArgumentError,
    CellNotInGridError,
    InfiniteGridError,
    OutOfMemoryError,
    BufferTooSmallError,
    PathNotFoundError,
    NotImplementedGridError,
    UnboundedError,
    GridIOError,
)
from yapgrid.cell import (
    Cell,
    Connection,
    Move,
    RaycastInfo,
    SquareDir,
    CubeDir,
    PointyHexDir,
    FlatHexDir,
    FlatTopTriangleDir,
    FlatSideTriangleDir,
)
from yapgrid.cell_type import (
    HexOrientation,
    TriangleOrientation,
    CellType,
    ngon_cell_type,
    ngon_prism_cell_type,
    prism_cell_type,
)
from yapgrid.geometry import Aabb, Matrix
from yapgrid.bounds import (
    Bound,
    RectBound,
    CubeBound,
    HexBound,
    TriangleBound,
    MaskBound,
    bound_rectangle,
    bound_cube,
    bound_hex_parallelogram,
    bound_triangle_parallelogram,
    bound_mask,
)
from yapgrid.grid import Grid, GridType
from yapgrid.square import SquareGrid
from yapgrid.cube import CubeGrid
from yapgrid.hex import HexGrid, OffsetLayout
from yapgrid.triangle import TriangleGrid
from yapgrid.mesh import MeshData, MeshGrid, mesh_data_from_grid
from yapgrid.lazy import (
    CachePolicy,
    PlanarLazyMeshGrid,
    planar_lazy_square_grid,
    planar_lazy_hex_grid,
)
from yapgrid.periodic import PeriodicTiling, PeriodicPlanarMeshGrid, periodic_grid
from yapgrid.modifiers import (
    GridModifier,
    TransformModifier,
    MaskModifier,
    WrapModifier,
    RavelModifier,
    RavelOrder,
    PlanarPrismModifier,
    square_prism_grid,
    hex_prism_grid,
    triangle_prism_grid,
)
from yapgrid.hashing import CellHashTable, cell_hash
from yapgrid.spatial import GridSpatialHash
from yapgrid.pathfinding import (
    Path,
    find_basic_path,
    find_path,
    astar_heuristic,
    cell_distances,
)

__all__ = [
    '__version__',
    # errors
    'Status', 'GridError', 'InvalidArgumentError', 'NullArgumentError',
    'CellNotInGridError', 'InfiniteGridError', 'OutOfMemoryError',
    'BufferTooSmallError', 'PathNotFoundError', 'NotImplementedGridError',
    'UnboundedError', 'GridIOError',
    # cells and cell types
    'Cell', 'Connection', 'Move', 'RaycastInfo',
    'SquareDir', 'CubeDir', 'PointyHexDir', 'FlatHexDir',
    'FlatTopTriangleDir', 'FlatSideTriangleDir',
    'HexOrientation', 'TriangleOrientation', 'CellType',
    'ngon_cell_type', 'ngon_prism_cell_type', 'prism_cell_type',
    'Aabb', 'Matrix',
    # bounds
    'Bound', 'RectBound', 'CubeBound', 'HexBound', 'TriangleBound', 'MaskBound',
    'bound_rectangle', 'bound_cube', 'bound_hex_parallelogram',
    'bound_triangle_parallelogram', 'bound_mask',
    # grids
    'Grid', 'GridType', 'SquareGrid', 'CubeGrid', 'HexGrid', 'OffsetLayout',
    'TriangleGrid', 'MeshData', 'MeshGrid', 'mesh_data_from_grid',
    'CachePolicy', 'PlanarLazyMeshGrid', 'planar_lazy_square_grid',
    'planar_lazy_hex_grid', 'PeriodicTiling', 'PeriodicPlanarMeshGrid',
    'periodic_grid',
    # modifiers
    'GridModifier', 'TransformModifier', 'MaskModifier', 'WrapModifier',
    'RavelModifier', 'RavelOrder', 'PlanarPrismModifier',
    'square_prism_grid', 'hex_prism_grid', 'triangle_prism_grid',
    # queries
    'CellHashTable', 'cell_hash', 'GridSpatialHash',
    'Path', 'find_basic_path', 'find_path', 'astar_heuristic', 'cell_distances',
]
