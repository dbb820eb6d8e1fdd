import pytest

from yapgrid.bounds import (
    CubeBound,
    HexBound,
    MaskBound,
    RectBound,
    TriangleBound,
    bound_cube,
    bound_hex_parallelogram,
    bound_mask,
    bound_rectangle,
    bound_triangle_parallelogram,
)
from yapgrid.cell import Cell
from yapgrid.errors import InvalidArgumentError, NotImplementedGridError


def same_cells(a, b):
    return set(a.cells()) == set(b.cells())


def test_rectangle_intersect():
    r = bound_rectangle(0, 0, 5, 5) & bound_rectangle(3, 3, 10, 10)
    assert isinstance(r, RectBound)
    assert r.get_rect() == (3, 3, 5, 5)
    assert r.cell_count == 9
    assert len(r.cells()) == 9


def test_hex_parallelogram():
    b = bound_hex_parallelogram(0, 0, 2, 2)
    expected = {Cell(q, -q - r, r) for q in range(3) for r in range(3)}
    assert set(b.cells()) == expected
    assert b.cell_count == 9
    for c in expected:
        assert b.contains(c)
    assert not b.contains(Cell(3, -3, 0))
    assert not b.contains(Cell(0, 0, 1))  # off the x+y+z=0 plane


def test_cell_count_matches_enumeration():
    bounds = [
        bound_rectangle(-2, 1, 3, 4),
        bound_cube(0, -1, 2, 3, 1, 4),
        bound_hex_parallelogram(-1, -2, 2, 1),
        bound_triangle_parallelogram(-2, -2, -2, 2, 2, 2),
        bound_mask([(0, 0), (1, 0), (0, 0)]),
    ]
    for b in bounds:
        assert b.cell_count == len(b.cells())
        assert all(b.contains(c) for c in b.cells())


def test_enumeration_order_and_limit():
    r = bound_rectangle(0, 0, 2, 1)
    assert r.cells() == [Cell(0, 0), Cell(1, 0), Cell(2, 0), Cell(0, 1), Cell(1, 1), Cell(2, 1)]
    assert r.cells(2) == [Cell(0, 0), Cell(1, 0)]
    with pytest.raises(InvalidArgumentError):
        r.cells(-1)


def test_triangle_bound_members():
    b = bound_triangle_parallelogram(0, 0, 0, 1, 1, 1)
    for c in b.cells():
        assert sum(c) in (1, 2)
    assert Cell(1, 0, 0) in b
    assert Cell(1, 1, 0) in b
    assert Cell(0, 0, 0) not in b
    assert Cell(1, 1, 1) not in b


def test_intersect_commutative_and_idempotent():
    pairs = [
        (bound_rectangle(0, 0, 5, 5), bound_rectangle(3, -2, 8, 4)),
        (bound_cube(0, 0, 0, 3, 3, 3), bound_cube(2, 1, -1, 5, 5, 2)),
        (bound_hex_parallelogram(0, 0, 3, 3), bound_hex_parallelogram(2, -1, 4, 2)),
        (bound_hex_parallelogram(0, 0, 2, 2), bound_rectangle(1, 1, 5, 5)),
        (bound_rectangle(0, 0, 3, 3), bound_cube(1, 1, 0, 4, 4, 2)),
        (bound_triangle_parallelogram(0, 0, 0, 2, 2, 2), bound_rectangle(0, 0, 2, 2)),
        (bound_mask([(0, 0), (2, 1), (7, 7)]), bound_rectangle(0, 0, 3, 3)),
        (bound_hex_parallelogram(-1, -1, 1, 1), bound_mask([(0, 0, 0), (1, 0, 0), (1, -1, 0)])),
    ]
    for a, b in pairs:
        assert same_cells(a & b, b & a)
        assert same_cells(a & a, a)
        for c in (a & b).cells():
            assert a.contains(c) and b.contains(c)


def test_union_contains_both():
    a = bound_rectangle(0, 0, 2, 2)
    b = bound_rectangle(5, 5, 6, 6)
    u = a | b
    assert same_cells(u, b | a)
    assert same_cells(a | a, a)
    for c in a.cells() + b.cells():
        assert u.contains(c)


def test_empty_bounds():
    b = bound_rectangle(0, 0, 3, 3)
    for empty in (RectBound.EMPTY, CubeBound.EMPTY, HexBound.EMPTY, TriangleBound.EMPTY, MaskBound()):
        assert empty.is_empty
        assert empty.cell_count == 0
        assert not empty.contains(Cell(0, 0, 0))
        assert same_cells(empty | b, b)
        assert (empty & b).is_empty
        assert (b & empty).is_empty


def test_disjoint_intersection_is_empty():
    r = bound_rectangle(0, 0, 1, 1) & bound_rectangle(5, 5, 6, 6)
    assert r.is_empty
    assert r.get_rect() == RectBound.EMPTY.get_rect()


def test_mixed_families():
    hexb = bound_hex_parallelogram(0, 0, 2, 2)
    rect = bound_rectangle(1, 1, 5, 5)
    assert hexb.get_rect() is None
    assert hexb.axial_rect() == (0, 0, 2, 2)
    # hex cells keep their cube y, so no rectangle describes them
    mixed = hexb & rect
    assert isinstance(mixed, RectBound)
    assert mixed.is_empty
    assert (rect & hexb).is_empty
    with pytest.raises(NotImplementedGridError):
        hexb | rect

    cube = bound_cube(0, 0, 0, 2, 2, 2)
    assert (cube & rect).is_empty
    with pytest.raises(NotImplementedGridError):
        cube | rect


def test_mask_bound():
    m = bound_mask([(0, 0), (2, 1), (0, 0)])
    assert m.members == (Cell(0, 0), Cell(2, 1))
    assert m.get_rect() == (0, 0, 2, 1)
    assert m.get_cube() == (0, 0, 0, 2, 1, 0)
    r = m & bound_rectangle(0, 0, 1, 1)
    assert isinstance(r, MaskBound)
    assert r.cells() == [Cell(0, 0)]
    u = bound_rectangle(5, 5, 5, 5) | m
    assert u.contains(Cell(5, 5)) and u.contains(Cell(2, 1))
    assert bound_mask([(0, 0, 1)]).get_rect() is None


def test_clone_and_aabb():
    r = bound_rectangle(0, 0, 3, 1)
    assert r.clone() == r
    box = r.aabb()
    assert box.min == (0.0, 0.0, 0.0)
    assert box.max == (4.0, 2.0, 1.0)
    assert bound_cube(0, 0, 0, 1, 1, 1).get_cube() == (0, 0, 0, 1, 1, 1)
    assert r.get_cube() is None
