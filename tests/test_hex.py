import math

import pytest

from yapgrid.bounds import bound_hex_parallelogram
from yapgrid.cell import Cell, PointyHexDir
from yapgrid.cell_type import HexOrientation
from yapgrid.errors import InvalidArgumentError
from yapgrid.geometry import distance
from yapgrid.hex import (
    HexGrid,
    OffsetLayout,
    axial_to_cube,
    cube_to_axial,
    cube_to_offset,
    hex_distance,
    hex_rotate,
    hex_round,
    offset_to_cube,
)

SAMPLE = [Cell(0, 0, 0), Cell(1, 0, -1), Cell(-2, 3, -1), Cell(4, -7, 3), Cell(-5, -1, 6)]


@pytest.mark.parametrize("orientation", list(HexOrientation))
def test_find_cell_round_trip(orientation):
    grid = HexGrid(1.0, orientation)
    for c in SAMPLE:
        assert grid.find_cell(grid.cell_center(c)) == c


@pytest.mark.parametrize("orientation", list(HexOrientation))
def test_moves_are_symmetric(orientation):
    grid = HexGrid(2.0, orientation)
    for c in SAMPLE:
        for d in range(6):
            move = grid.try_move(c, d)
            assert sum(move.dest) == 0
            assert hex_distance(c, move.dest) == 1
            back = grid.try_move(move.dest, move.inverse_dir)
            assert back.dest == c
            # neighbours are a cell width apart
            width = min(grid.cell_extent)
            assert math.isclose(distance(grid.cell_center(c), grid.cell_center(move.dest)), width)


def test_pointy_directions():
    grid = HexGrid(1.0)
    origin = Cell(0, 0, 0)
    right = grid.cell_center(grid.try_move(origin, PointyHexDir.RIGHT).dest)
    assert math.isclose(right[0], math.sqrt(3) / 2)
    assert math.isclose(right[1], 0.0, abs_tol=1e-12)
    assert grid.try_move(origin, 6) is None
    assert not grid.is_cell_in_grid(Cell(1, 1, 1))


def test_polygon_size():
    grid = HexGrid(1.0)
    center = grid.cell_center(Cell(0, 0, 0))
    poly = grid.polygon(Cell(0, 0, 0))
    assert len(poly) == 6
    for p in poly:
        assert math.isclose(distance(center, p), 0.5)


def test_coordinate_helpers():
    assert axial_to_cube(2, 1) == Cell(2, -3, 1)
    assert cube_to_axial(Cell(2, -3, 1)) == (2, 1)
    with pytest.raises(InvalidArgumentError):
        cube_to_axial((1, 1, 1))
    assert hex_round(0.1, -0.2, 0.1) == Cell(0, 0, 0)
    assert hex_round(0.9, -0.6, -0.3) == Cell(1, -1, 0)
    assert hex_distance((0, 0, 0), (2, -1, -1)) == 2
    assert hex_rotate(Cell(1, 0, -1)) == Cell(0, 1, -1)
    assert hex_rotate(Cell(1, 0, -1), 6) == Cell(1, 0, -1)
    assert hex_rotate(Cell(2, 0, -2), 3, center=(1, 0, -1)) == Cell(0, 0, 0)


@pytest.mark.parametrize("layout", list(OffsetLayout))
def test_offset_round_trip(layout):
    for col in range(-3, 4):
        for row in range(-3, 4):
            cube = offset_to_cube(col, row, layout)
            assert sum(cube) == 0
            assert cube_to_offset(cube, layout) == (col, row)


def test_planar_keys():
    grid = HexGrid(1.0)
    for c in SAMPLE:
        a, b = grid.planar_key(c)
        assert grid.from_planar_key(a, b) == c


def test_bounded_grid():
    grid = HexGrid(1.0, bound=bound_hex_parallelogram(0, 0, 2, 2))
    assert grid.cell_count() == 9
    corner = axial_to_cube(2, 2)
    assert grid.try_move(corner, PointyHexDir.RIGHT) is None
    assert len(grid.neighbours(axial_to_cube(1, 1))) == 6
    for i, c in enumerate(grid.cells()):
        assert grid.index(c) == i


def test_cells_in_aabb():
    grid = HexGrid(1.0)
    found = grid.cells_in_aabb((-0.01, -0.01), (0.01, 0.01))
    assert found == [Cell(0, 0, 0)]
    wide = grid.cells_in_aabb((-1.0, -1.0), (1.0, 1.0))
    assert len(wide) == len(set(wide))
    assert Cell(1, 0, -1) in wide
    assert Cell(5, 0, -5) not in wide


def test_raycast_walks_cells():
    grid = HexGrid(1.0)
    hits = grid.raycast((0.0, 0.0), (1.0, 0.0), max_hits=3)
    assert [h.cell for h in hits] == [Cell(0, 0, 0), Cell(1, 0, -1), Cell(2, 0, -2)]
    assert hits[1].cell_dir == PointyHexDir.LEFT
    assert math.isclose(hits[1].distance, math.sqrt(3) / 4)


def test_bad_arguments():
    with pytest.raises(InvalidArgumentError):
        HexGrid(-1.0)
    with pytest.raises(InvalidArgumentError):
        HexGrid(1.0, "pointy")
