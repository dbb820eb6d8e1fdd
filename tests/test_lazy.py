import math

import pytest

from yapgrid.bounds import bound_rectangle
from yapgrid.cell import IDENTITY, Cell
from yapgrid.cell_type import HexOrientation
from yapgrid.errors import CellNotInGridError, InvalidArgumentError
from yapgrid.hex import HEX_DELTAS, HexGrid
from yapgrid.lazy import (
    CachePolicy,
    PlanarLazyMeshGrid,
    planar_lazy_hex_grid,
    planar_lazy_square_grid,
)
from yapgrid.mesh import MeshData

UNIT_SQUARE = MeshData([(0, 0), (1, 0), (1, 1), (0, 1)], [(0, 1, 2, 3)])


class CountingSource:
    """Hands out a unit square per chunk, except for the ``holes``."""

    def __init__(self, holes=()):
        self.calls = 0
        self.holes = set(holes)

    def __call__(self, cx, cy):
        self.calls += 1
        if (cx, cy) in self.holes:
            return None
        return UNIT_SQUARE


def unit_grid(source, **kwargs):
    return PlanarLazyMeshGrid(source, (1.0, 0.0), (0.0, 1.0), (0, 0), (1, 1),
                              cells_per_chunk=1, **kwargs)


def test_partition_uses_floor():
    grid = planar_lazy_square_grid(cells_per_chunk=(3, 2))
    assert grid.split_cell(Cell(4, 1)) == ((1, 0), 4)
    assert grid.split_cell(Cell(-1, -1)) == ((-1, -1), 5)
    for c in (Cell(4, 1), Cell(-1, -1), Cell(-7, 5)):
        assert grid.combine(*grid.split_cell(c)) == c


def test_square_layout_matches_square_grid():
    grid = planar_lazy_square_grid(1.0, cells_per_chunk=2)
    for c in (Cell(0, 0), Cell(3, -1), Cell(-5, 4)):
        center = grid.cell_center(c)
        assert math.isclose(center[0], c.x + 0.5)
        assert math.isclose(center[1], c.y + 0.5)
        assert grid.find_cell(center) == c
    assert not grid.is_finite


def test_moves_within_and_across_chunks():
    grid = planar_lazy_square_grid(1.0, cells_per_chunk=2)
    inside = grid.try_move(Cell(0, 0), 0)
    assert inside.dest == Cell(1, 0)
    assert inside.inverse_dir == 2
    across = grid.try_move(Cell(1, 0), 0)
    assert across.dest == Cell(2, 0)
    assert across.inverse_dir == 2
    assert across.connection == IDENTITY
    down = grid.try_move(Cell(0, 0), 3)
    assert down.dest == Cell(0, -1)
    assert grid.try_move(down.dest, down.inverse_dir).dest == Cell(0, 0)
    assert grid.try_move(Cell(0, 0), 7) is None


def test_hex_layout_neighbours():
    grid = planar_lazy_hex_grid(1.0, HexOrientation.FLAT_TOPPED, cells_per_chunk=2)
    hexes = HexGrid(1.0, HexOrientation.FLAT_TOPPED)
    cell = Cell(1, 0)
    center = grid.cell_center(cell)
    expected_center = hexes.cell_center(Cell(1, 0, -1))
    assert math.isclose(center[0], expected_center[0])
    assert math.isclose(center[1], expected_center[1], abs_tol=1e-12)
    expected = {Cell(1 + d[0], 0 + d[1]) for d in HEX_DELTAS}
    assert set(grid.neighbours(cell)) == expected


def test_unbounded_cache_generates_once():
    source = CountingSource()
    grid = unit_grid(source)
    grid.cell_center(Cell(0, 0))
    grid.cell_center(Cell(0, 0))
    assert source.calls == 1
    assert grid.cached_chunks == [(0, 0)]


def test_no_cache_regenerates():
    source = CountingSource()
    grid = unit_grid(source, cache_policy=CachePolicy.NONE)
    grid.cell_center(Cell(0, 0))
    first = source.calls
    grid.cell_center(Cell(0, 0))
    assert source.calls > first
    assert grid.cached_chunks == []


def test_lru_eviction():
    grid = planar_lazy_square_grid(cells_per_chunk=2, cache_policy=CachePolicy.LRU, cache_size=2)
    for c in (Cell(0, 0), Cell(2, 0), Cell(4, 0)):
        grid.cell_center(c)
    assert grid.cached_chunks == [(1, 0), (2, 0)]
    grid.cell_center(Cell(2, 1))
    assert grid.cached_chunks == [(2, 0), (1, 0)]
    grid.close()
    assert grid.cached_chunks == []


def test_missing_chunk_is_a_hole():
    source = CountingSource(holes={(1, 0)})
    grid = unit_grid(source)
    assert not grid.is_cell_in_grid(Cell(1, 0))
    # edge 1 of the unit square faces +x
    assert grid.try_move(Cell(0, 0), 1) is None
    assert grid.try_move(Cell(0, 0), 0).dest == Cell(0, -1)
    assert grid.find_cell((1.5, 0.5)) is None
    with pytest.raises(CellNotInGridError):
        grid.cell_center(Cell(1, 0))


def test_bound_limits_cells():
    grid = planar_lazy_square_grid(cells_per_chunk=2).bound_by(bound_rectangle(0, 0, 2, 2))
    assert grid.is_finite
    assert grid.cell_count() == 9
    assert grid.try_move(Cell(2, 0), 0) is None
    assert grid.unbounded().bound is None


def test_cells_in_aabb_spans_chunks():
    grid = planar_lazy_square_grid(cells_per_chunk=2)
    cells = set(grid.cells_in_aabb((1.5, 1.5), (2.5, 2.5)))
    assert {Cell(1, 1), Cell(2, 1), Cell(1, 2), Cell(2, 2)} <= cells


def test_raycast_crosses_chunks():
    grid = planar_lazy_square_grid(cells_per_chunk=2)
    hits = grid.raycast((0.5, 0.5), (1.0, 0.0), max_hits=4)
    assert [h.cell for h in hits] == [Cell(x, 0) for x in range(4)]


def test_bad_arguments():
    with pytest.raises(InvalidArgumentError):
        PlanarLazyMeshGrid(None, (1, 0), (0, 1), (0, 0), (1, 1))
    with pytest.raises(InvalidArgumentError):
        PlanarLazyMeshGrid(CountingSource(), (1, 0), (2, 0), (0, 0), (1, 1))
    with pytest.raises(InvalidArgumentError):
        unit_grid(CountingSource(), cache_policy=CachePolicy.LRU, cache_size=0)
    crowded = MeshData([(0, 0), (1, 0), (1, 1), (0, 1), (2, 0), (2, 1)],
                       [(0, 1, 2, 3), (1, 4, 5, 2)])
    grid = unit_grid(lambda cx, cy: crowded)
    with pytest.raises(InvalidArgumentError):
        grid.cell_center(Cell(0, 0))
