import math

import pytest

from yapgrid.cell_type import (
    CUBE_CELL_TYPE,
    HexOrientation,
    NGonCellType,
    NGonPrismCellType,
    PrismCellType,
    TriangleOrientation,
    hex_cell_type,
    is_registered,
    ngon_cell_type,
    ngon_prism_cell_type,
    prism_cell_type,
    square_cell_type,
    triangle_cell_type,
)
from yapgrid.errors import InvalidArgumentError
from yapgrid.geometry import distance, polygon_area_xy


def test_square_type():
    sq = square_cell_type()
    assert sq is ngon_cell_type(4)
    assert sq.dir_count == 4
    assert sq.corner_count == 4
    assert sq.dirs() == [0, 1, 2, 3]
    assert [sq.invert_dir(d) for d in range(4)] == [2, 3, 0, 1]
    c0 = sq.corner_position(0)
    assert math.isclose(c0[0], 0.5) and math.isclose(c0[1], -0.5)


def test_ngon_edges_face_their_direction():
    for n in (3, 5, 6, 8):
        ct = ngon_cell_type(n)
        for d in range(n):
            a = ct.corner_position(d)
            b = ct.corner_position((d + 1) % n)
            mid = ((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)
            v = ct.dir_vector(d)
            # the edge midpoint lies at the inradius along the direction
            assert math.isclose(mid[0], 0.5 * v[0], abs_tol=1e-12)
            assert math.isclose(mid[1], 0.5 * v[1], abs_tol=1e-12)
        poly = [ct.corner_position(i) for i in range(n)]
        assert polygon_area_xy(poly) > 0


def test_odd_ngon_has_no_inverse_dir():
    assert ngon_cell_type(5).invert_dir(0) is None
    assert ngon_cell_type(6).invert_dir(1) == 4


def test_registry_shares_small_types():
    assert ngon_cell_type(6) is ngon_cell_type(6)
    assert is_registered(ngon_cell_type(6))
    big = ngon_cell_type(40)
    assert big is not ngon_cell_type(40)
    assert big == ngon_cell_type(40)
    assert not is_registered(big)
    assert not is_registered(NGonCellType(6))
    assert ngon_prism_cell_type(4) is ngon_prism_cell_type(4)
    with pytest.raises(InvalidArgumentError):
        ngon_cell_type(2)


def test_hex_types():
    pointy = hex_cell_type(HexOrientation.POINTY_TOPPED)
    flat = hex_cell_type(HexOrientation.FLAT_TOPPED)
    assert pointy is ngon_cell_type(6)
    assert flat != pointy
    assert is_registered(flat)
    # pointy topped: a corner straight up
    tops = [pointy.corner_position(i) for i in range(6)]
    assert any(math.isclose(p[0], 0.0, abs_tol=1e-12) and p[1] > 0 for p in tops)
    # flat topped: two corners share the highest y
    ys = sorted(p[1] for p in (flat.corner_position(i) for i in range(6)))
    assert math.isclose(ys[-1], ys[-2])


def test_cube_type():
    assert CUBE_CELL_TYPE.dimension == 3
    assert [CUBE_CELL_TYPE.invert_dir(d) for d in range(6)] == [1, 0, 3, 2, 5, 4]
    assert CUBE_CELL_TYPE.corner_position(7) == (0.5, 0.5, 0.5)
    with pytest.raises(InvalidArgumentError):
        CUBE_CELL_TYPE.corner_position(8)


def test_triangle_type():
    ct = triangle_cell_type(TriangleOrientation.FLAT_TOPPED)
    assert ct.dir_count == 6
    up = [ct.corner_position(i) for i in (0, 2, 4)]
    for i in range(3):
        assert math.isclose(distance(up[i], up[(i + 1) % 3]), 1.0)
    assert polygon_area_xy(up) > 0
    assert ct.invert_dir(1) == 4
    sides = triangle_cell_type(TriangleOrientation.FLAT_SIDES)
    assert sides != ct


def test_prism_types():
    p = prism_cell_type(ngon_cell_type(6))
    assert isinstance(p, NGonPrismCellType)
    assert p.dir_count == 8 and p.corner_count == 12
    assert p.up_dir == 6 and p.down_dir == 7
    assert p.invert_dir(6) == 7
    bottom = p.corner_position(0)
    top = p.corner_position(6)
    assert bottom[:2] == top[:2]
    assert bottom[2] == -0.5 and top[2] == 0.5

    tri = prism_cell_type(triangle_cell_type(TriangleOrientation.FLAT_TOPPED))
    assert isinstance(tri, PrismCellType)
    assert tri.up_dir == 6
    assert tri.invert_dir(0) == 3
    with pytest.raises(InvalidArgumentError):
        PrismCellType(CUBE_CELL_TYPE)
