import gc
import math

import pytest

from yapgrid.bounds import bound_cube, bound_mask, bound_rectangle
from yapgrid.cell import IDENTITY, Cell, CubeDir, SquareDir
from yapgrid.cube import CubeGrid
from yapgrid.errors import (
    CellNotInGridError,
    InfiniteGridError,
    InvalidArgumentError,
    NotImplementedGridError,
    NullArgumentError,
    UnboundedError,
)
from yapgrid.geometry import Identity, Rotation, Scale, Translation
from yapgrid.hex import HexGrid
from yapgrid.modifiers import (
    GridModifier,
    MaskModifier,
    PlanarPrismModifier,
    RavelModifier,
    RavelOrder,
    TransformModifier,
    WrapModifier,
    hex_prism_grid,
    hilbert_index,
    morton_code,
    square_prism_grid,
)
from yapgrid.square import SquareGrid


def square(w=10, h=10):
    return SquareGrid(1.0, bound_rectangle(0, 0, w - 1, h - 1))


class TestGridModifier:

    def test_forwards_everything(self):
        grid = square(4, 4)
        plain = GridModifier(grid)
        assert plain.cells() == grid.cells()
        assert plain.try_move(Cell(1, 1), 0) == grid.try_move(Cell(1, 1), 0)
        assert plain.cell_center(Cell(2, 3)) == grid.cell_center(Cell(2, 3))
        assert plain.bound is grid.bound
        assert plain.is_finite

    def test_rebinding_rebuilds(self):
        plain = GridModifier(SquareGrid(1.0))
        bounded = plain.bound_by(bound_rectangle(0, 0, 1, 1))
        assert isinstance(bounded, GridModifier)
        assert bounded.cell_count() == 4

    def test_single_owner(self):
        grid = square()
        first = TransformModifier(grid, Identity())
        with pytest.raises(InvalidArgumentError):
            MaskModifier(grid, contains=lambda c: True)
        assert grid.owner is first
        del first
        gc.collect()
        MaskModifier(grid, contains=lambda c: True)

    def test_null_underlying(self):
        with pytest.raises(NullArgumentError):
            GridModifier(None)
        with pytest.raises(InvalidArgumentError):
            GridModifier("grid")

    def test_supports_follows_underlying(self):
        prism = square_prism_grid(2)
        assert not prism.supports("raycast")
        masked = MaskModifier(prism, contains=lambda c: True)
        assert not masked.supports("raycast")
        assert masked.supports("find_cell")
        with pytest.raises(NotImplementedGridError):
            masked.raycast((0, 0, 0), (1, 0, 0))

    def test_close_closes_chain(self):
        with WrapModifier(square()) as torus:
            assert torus.cell_count() == 100


class TestTransform:

    def setup_method(self):
        self.matrix = Translation((10, 0, 0)).mul(Rotation((0, 0, 1), 90))
        self.grid = TransformModifier(SquareGrid(1.0), self.matrix)

    def test_positions_are_transformed(self):
        center = self.grid.cell_center(Cell(0, 0))
        assert math.isclose(center[0], 9.5)
        assert math.isclose(center[1], 0.5)
        for c in (Cell(0, 0), Cell(3, -2), Cell(-4, 7)):
            assert self.grid.find_cell(self.grid.cell_center(c)) == c
        assert self.grid.try_move(Cell(0, 0), SquareDir.RIGHT).dest == Cell(1, 0)
        assert self.grid.is_planar

    def test_aabb_query(self):
        found = self.grid.cells_in_aabb((9.1, 0.1), (9.9, 0.9))
        assert found == [Cell(0, 0)]

    def test_raycast(self):
        hits = self.grid.raycast((9.5, 0.5), (0, 1), max_distance=1.6)
        assert [h.cell for h in hits] == [Cell(0, 0), Cell(1, 0), Cell(2, 0)]
        assert math.isclose(hits[1].distance, 0.5)
        assert math.isclose(hits[1].point[0], 9.5)

    def test_tilted_is_not_planar(self):
        tilted = TransformModifier(SquareGrid(1.0), Rotation((1, 0, 0), 30))
        assert not tilted.is_planar

    def test_singular_matrix(self):
        grid = SquareGrid(1.0)
        with pytest.raises(InvalidArgumentError):
            TransformModifier(grid, Scale(1.0, 0.0, 1.0))
        # the failed modifier never claimed the grid
        TransformModifier(grid, Identity())


class TestMask:

    def test_predicate(self):
        grid = MaskModifier(square(4, 4), contains=lambda c: c != Cell(1, 1))
        assert grid.cell_count() == 15
        assert not grid.is_cell_in_grid(Cell(1, 1))
        assert grid.try_move(Cell(0, 1), SquareDir.RIGHT) is None
        assert grid.try_move(Cell(0, 1), SquareDir.UP).dest == Cell(0, 2)
        assert grid.find_cell((1.5, 1.5)) is None
        assert grid.index(Cell(2, 1)) == 5
        assert grid.cell_by_index(5) == Cell(2, 1)
        with pytest.raises(CellNotInGridError):
            grid.index(Cell(1, 1))

    def test_cell_list_makes_finite(self):
        grid = MaskModifier(SquareGrid(1.0), cells=[(0, 0), (5, 5), (0, 0)])
        assert grid.is_finite
        assert grid.cells() == [Cell(0, 0), Cell(5, 5)]
        assert grid.index_count() == 2
        assert grid.try_move(Cell(0, 0), 0) is None

    def test_raycast_skips_masked_cells(self):
        grid = MaskModifier(SquareGrid(1.0), contains=lambda c: c.x != 1)
        hits = grid.raycast((0.5, 0.5), (1, 0), max_distance=5.0, max_hits=3)
        assert [h.cell for h in hits] == [Cell(0, 0), Cell(2, 0), Cell(3, 0)]

    def test_raycast_stops_after_max_hits(self, monkeypatch):
        grid = MaskModifier(SquareGrid(1.0), contains=lambda c: c.x % 3 == 2)
        walk = grid.underlying.raycast
        batches = []

        def counted(origin, direction, max_distance=math.inf, max_hits=None):
            batches.append(max_hits)
            return walk(origin, direction, max_distance, max_hits)

        monkeypatch.setattr(grid.underlying, "raycast", counted)
        hits = grid.raycast((0.5, 0.5), (1, 0), max_hits=2)
        assert [h.cell for h in hits] == [Cell(2, 0), Cell(5, 0)]
        # the unbounded walk is never asked for more than a few cells
        assert batches == [2, 4, 8]
        assert grid.raycast((0.5, 0.5), (1, 0), max_hits=0) == []
        near = grid.raycast((0.5, 0.5), (1, 0), max_distance=3.0, max_hits=5)
        assert [h.cell for h in near] == [Cell(2, 0)]

    def test_needs_a_rule(self):
        with pytest.raises(NullArgumentError):
            MaskModifier(SquareGrid(1.0))
        with pytest.raises(InvalidArgumentError):
            MaskModifier(SquareGrid(1.0), contains=42)


class TestWrap:

    def test_torus(self):
        torus = WrapModifier(square())
        move = torus.try_move(Cell(9, 5), SquareDir.RIGHT)
        assert move == (Cell(0, 5), SquareDir.LEFT, IDENTITY)
        back = torus.try_move(Cell(0, 5), SquareDir.LEFT)
        assert back.dest == Cell(9, 5)
        assert back.inverse_dir == SquareDir.RIGHT
        assert len(set(torus.neighbours(Cell(0, 0)))) == 4

    def test_normalize(self):
        torus = WrapModifier(square())
        assert torus.normalize(Cell(-1, 12)) == Cell(9, 2)
        assert torus.normalize(torus.normalize(Cell(-31, 47))) == torus.normalize(Cell(-31, 47))
        assert torus.is_cell_in_grid(Cell(10, 0))
        assert torus.cell_center(Cell(10, 0)) == torus.cell_center(Cell(0, 0))

    def test_cylinder(self):
        cylinder = WrapModifier(square(), wrap_y=False)
        assert cylinder.try_move(Cell(5, 9), SquareDir.UP) is None
        assert cylinder.try_move(Cell(9, 9), SquareDir.RIGHT).dest == Cell(0, 9)

    def test_explicit_bounds(self):
        grid = WrapModifier(SquareGrid(1.0), bounds=(0, 0, 3, 3))
        assert grid.try_move(Cell(3, 0), SquareDir.RIGHT).dest == Cell(0, 0)
        with pytest.raises(UnboundedError):
            WrapModifier(SquareGrid(1.0))
        with pytest.raises(InvalidArgumentError):
            WrapModifier(SquareGrid(1.0), bounds=(0, 0, 1))

    def test_cube_wraps_z(self):
        grid = WrapModifier(CubeGrid(1.0, bound_cube(0, 0, 0, 2, 2, 2)), wrap_z=True)
        move = grid.try_move(Cell(0, 0, 2), CubeDir.FORWARD)
        assert move.dest == Cell(0, 0, 0)
        assert move.inverse_dir == CubeDir.BACK


class TestRavel:

    def test_row_major(self):
        grid = RavelModifier(square())
        assert grid.index(Cell(3, 4)) == 34
        assert grid.cell_by_index(34) == Cell(3, 4)
        assert grid.index(Cell(0, 0)) == 0
        assert grid.index(Cell(9, 9)) == 99
        assert grid.cell_by_index(100) is None
        assert grid.cell_by_index(-1) is None
        assert grid.cells(3) == [Cell(0, 0), Cell(0, 1), Cell(0, 2)]
        with pytest.raises(CellNotInGridError):
            grid.index(Cell(10, 0))

    def test_column_major(self):
        grid = RavelModifier(square(), RavelOrder.COLUMN_MAJOR)
        assert grid.index(Cell(3, 4)) == 43
        assert grid.cell_by_index(43) == Cell(3, 4)

    def test_cube_box(self):
        grid = RavelModifier(CubeGrid(1.0, bound_cube(0, 0, 0, 1, 2, 3)))
        assert grid.index_count() == 24
        assert grid.index(Cell(1, 2, 3)) == 23
        assert grid.index(Cell(0, 0, 1)) == 1
        for i in range(24):
            assert grid.index(grid.cell_by_index(i)) == i

    def test_morton(self):
        grid = RavelModifier(square(4, 4), RavelOrder.MORTON)
        assert [grid.index(c) for c in (Cell(0, 0), Cell(1, 0), Cell(0, 1), Cell(1, 1), Cell(2, 0))] \
            == [0, 1, 2, 3, 4]
        assert sorted(grid.index(c) for c in grid.cells()) == list(range(16))
        assert morton_code((3, 0), 2) == 0b0101

    def test_hilbert_is_a_walk(self):
        grid = RavelModifier(square(4, 4), RavelOrder.HILBERT)
        cells = grid.cells()
        assert sorted(grid.index(c) for c in cells) == list(range(16))
        for a, b in zip(cells, cells[1:]):
            assert abs(a.x - b.x) + abs(a.y - b.y) == 1
        assert hilbert_index((0, 0), 1) == 0

    def test_sparse_cells_are_ranked(self):
        grid = RavelModifier(SquareGrid(1.0, bound_mask([(5, 5), (0, 0), (2, 1)])))
        assert grid.cells() == [Cell(0, 0), Cell(2, 1), Cell(5, 5)]
        assert grid.index(Cell(2, 1)) == 1

    def test_rejections(self):
        with pytest.raises(InfiniteGridError):
            RavelModifier(SquareGrid(1.0))
        with pytest.raises(InvalidArgumentError):
            RavelModifier(square(), "row_major")
        wide = RavelModifier(SquareGrid(1.0, bound_mask([(0, 0), (70000, 0)])), RavelOrder.MORTON)
        with pytest.raises(InvalidArgumentError):
            wide.index(Cell(0, 0))


class TestPlanarPrism:

    def test_layers(self):
        grid = square_prism_grid(3, layer_height=2.0, bound=bound_rectangle(0, 0, 1, 1))
        assert grid.coordinate_dimension == 3
        assert grid.height == 6.0
        assert grid.cell_center(Cell(0, 0, 1)) == (0.5, 0.5, 3.0)
        assert grid.try_move(Cell(0, 0, 2), 4) is None
        assert grid.try_move(Cell(0, 0, 0), 5) is None
        assert grid.try_move(Cell(0, 0, 0), 4) == (Cell(0, 0, 1), 5, IDENTITY)
        assert grid.try_move(Cell(0, 0, 1), 5).inverse_dir == 4
        side = grid.try_move(Cell(0, 0, 1), SquareDir.RIGHT)
        assert side.dest == Cell(1, 0, 1)
        assert side.inverse_dir == SquareDir.LEFT
        assert not grid.is_cell_in_grid(Cell(0, 0, 3))

    def test_geometry(self):
        grid = square_prism_grid(3, layer_height=2.0, bound=bound_rectangle(0, 0, 1, 1))
        c = Cell(1, 0, 1)
        assert grid.cell_dirs(c) == [0, 1, 2, 3, 4, 5]
        assert len(grid.polygon(c)) == 8
        assert grid.corner_position(c, 4)[2] == 4.0
        box = grid.cell_aabb(c)
        assert box.min[2] == 2.0 and box.max[2] == 4.0
        assert grid.find_cell((0.5, 0.5, 3.9)) == Cell(0, 0, 1)
        assert grid.find_cell((0.5, 0.5, 6.0)) is None
        assert set(grid.cells_in_aabb((0.2, 0.2, 0.5), (0.4, 0.4, 1.5))) == {Cell(0, 0, 0)}

    def test_box_query_is_half_open_in_z(self):
        grid = square_prism_grid(3)
        # a box ending on a layer boundary stops below it, as in x and y
        assert grid.cells_in_aabb((0.2, 0.2, 0.0), (0.8, 0.8, 1.0)) == [Cell(0, 0, 0)]
        assert grid.cells_in_aabb((0.2, 0.2, 1.0), (0.8, 0.8, 2.0)) == [Cell(0, 0, 1)]
        assert grid.cells_in_aabb((0.2, 0.2, 0.5), (0.8, 0.8, 2.5)) == [
            Cell(0, 0, 0), Cell(0, 0, 1), Cell(0, 0, 2)]
        # a flat box picks the layer find_cell would
        assert grid.cells_in_aabb((0.2, 0.2, 1.0), (0.8, 0.8, 1.0)) == [Cell(0, 0, 1)]
        assert grid.cells_in_aabb((0.2, 0.2, 3.0), (0.8, 0.8, 3.0)) == []
        assert grid.cells_in_aabb((0.2, 0.2, 4.0), (0.8, 0.8, 5.0)) == []

    def test_bound_is_footprint(self):
        grid = square_prism_grid(3, bound=bound_rectangle(0, 0, 1, 1))
        c = Cell(0, 0, 1)
        assert grid.is_cell_in_grid(c)
        assert grid.bound.get_rect() == (0, 0, 1, 1)
        assert grid.footprint_cell(c) == Cell(0, 0, 0)
        assert grid.bound.contains(grid.footprint_cell(c))
        assert hex_prism_grid(2).footprint_cell((1, -1, 1)) == Cell(1, 0, -1)

    def test_enumeration(self):
        grid = square_prism_grid(3, bound=bound_rectangle(0, 0, 1, 1))
        assert grid.cell_count() == 12
        assert grid.index(Cell(1, 1, 2)) == 11
        assert grid.cell_by_index(11) == Cell(1, 1, 2)
        assert grid.cells()[4] == Cell(0, 0, 1)

    def test_variable_heights(self):
        grid = PlanarPrismModifier(SquareGrid(1.0), 3, layer_heights=[1.0, 2.0, 3.0])
        assert grid.find_cell((0.5, 0.5, 2.5)) == Cell(0, 0, 1)
        assert grid.cell_center(Cell(0, 0, 2))[2] == 4.5
        assert grid.layer_bottom(2) == 3.0 and grid.layer_top(2) == 6.0

    def test_hex_prism(self):
        grid = hex_prism_grid(2)
        assert grid.cell_type(Cell(0, 0, 0)).dir_count == 8
        up = grid.try_move(Cell(1, 0, 0), 6)
        assert up.dest == Cell(1, 0, 1)
        assert up.inverse_dir == 7
        # cells are (q, r, layer); pointy RIGHT steps q up and r down
        side = grid.try_move(Cell(0, 0, 1), 0)
        assert side.dest == Cell(1, -1, 1)
        assert side.inverse_dir == 3
        assert grid.find_cell(grid.cell_center(Cell(2, -1, 1))) == Cell(2, -1, 1)

    def test_capabilities(self):
        grid = square_prism_grid(2)
        assert not grid.supports("raycast")
        assert not grid.supports("planar_key")
        assert grid.supports("bound_by")
        with pytest.raises(NotImplementedGridError):
            grid.planar_key(Cell(0, 0, 0))

    def test_rejections(self):
        with pytest.raises(InvalidArgumentError):
            PlanarPrismModifier(SquareGrid(1.0), 0)
        with pytest.raises(InvalidArgumentError):
            PlanarPrismModifier(SquareGrid(1.0), 2, layer_heights=[1.0])
        with pytest.raises(InvalidArgumentError):
            PlanarPrismModifier(SquareGrid(1.0), 2, layer_height=-1.0)
        with pytest.raises(InvalidArgumentError):
            PlanarPrismModifier(CubeGrid(1.0), 2)
        with pytest.raises(InvalidArgumentError):
            PlanarPrismModifier(HexGrid(1.0), 1.5)
