import math

import pytest

from yapgrid.errors import InvalidArgumentError
from yapgrid.geometry import (
    Aabb,
    Identity,
    Matrix,
    Rotation,
    Scale,
    Translation,
    close,
    point_in_polygon_xy,
    polygon_area_xy,
    ray_aabb,
    ray_polygon,
    ray_segment_xy,
    to_vec3,
)
## unit tests for yapgrid geometry.py


class TestMatrix:
    """unit tests for 4x4 matrix operations"""

    def test_matrix(self):
        foo = Matrix([1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14, 15, 16])
        fooT = Matrix(foo, True)
        bar = Matrix([[1, 0, 0, 1], [0, 1, 0, 1], [0, 0, 1, 1], [0, 0, 0, 1]])
        I = Matrix()
        assert I.mul(bar) == bar
        assert I.mul(foo) == foo
        assert I.mul(fooT) == fooT.mul(I)
        assert foo.mul(bar).m == [[1, 2, 3, 10], [5, 6, 7, 26], [9, 10, 11, 42], [13, 14, 15, 58]]
        assert foo.mul([1, 2, 3, 1]) == [18, 46, 74, 102]
        assert foo.mul(10.0).getrow(3) == [130.0, 140.0, 150.0, 160.0]
        assert fooT.getrow(0) == [1.0, 5.0, 9.0, 13.0]
        assert fooT.getcol(0) == [1.0, 2.0, 3.0, 4.0]

    def test_bad_initialisers(self):
        with pytest.raises(InvalidArgumentError):
            Matrix([1, 2, 3])
        with pytest.raises(InvalidArgumentError):
            Matrix([[1, 2, 3, 4]] * 3)
        with pytest.raises(InvalidArgumentError):
            Matrix().get(4, 0)

    def test_inverse(self):
        m = Translation((1, 2, 3)).mul(Rotation((0, 0, 1), 30)).mul(Scale(2.0))
        inv = m.inverse()
        p = (0.3, -1.2, 4.0)
        assert close(inv.transform_point(m.transform_point(p)), p, 1e-9)
        prod = m.mul(inv)
        for i in range(4):
            for j in range(4):
                assert math.isclose(prod.get(i, j), 1.0 if i == j else 0.0, abs_tol=1e-9)

    def test_singular_matrix(self):
        with pytest.raises(InvalidArgumentError):
            Scale(1.0, 0.0, 1.0).inverse()

    def test_rotation_and_translation(self):
        r = Rotation((0, 0, 1), 90)
        assert close(r.transform_point((1, 0, 0)), (0, 1, 0), 1e-12)
        assert close(Rotation((0, 0, 1), 90, inverse=True).transform_point((0, 1, 0)),
                     (1, 0, 0), 1e-12)
        t = Translation((1, 2, 3))
        assert t.transform_point((0, 0, 0)) == (1.0, 2.0, 3.0)
        # directions ignore translation
        assert t.transform_vector((1, 0, 0)) == (1.0, 0.0, 0.0)
        assert Identity() == Matrix()


def test_to_vec3():
    assert to_vec3((1, 2)) == (1.0, 2.0, 0.0)
    assert to_vec3([1, 2, 3, 1]) == (1.0, 2.0, 3.0)
    with pytest.raises(InvalidArgumentError):
        to_vec3((1,))


def test_aabb_basics():
    box = Aabb.from_points([(0, 0, 0), (2, 1, 0), (1, 3, -1)])
    assert box.min == (0.0, 0.0, -1.0)
    assert box.max == (2.0, 3.0, 0.0)
    assert box.size == (2.0, 3.0, 1.0)
    assert box.center == (1.0, 1.5, -0.5)
    assert box.contains((1, 1, -0.5))
    assert not box.contains((3, 1, 0))
    assert box.intersects(Aabb((2, 3, 0), (5, 5, 5)))  # touching counts
    assert not box.intersects(Aabb((2.1, 0, 0), (5, 5, 5)))
    assert len(box.corners()) == 8
    assert Aabb((1, 0, 0), (0, 1, 1)).is_empty


def test_aabb_transform():
    box = Aabb((0, 0, 0), (1, 1, 0))
    moved = box.transform(Rotation((0, 0, 1), 45))
    h = math.sqrt(2.0) / 2.0
    assert math.isclose(moved.min[0], -h, abs_tol=1e-12)
    assert math.isclose(moved.max[0], h, abs_tol=1e-12)
    assert math.isclose(moved.max[1], 2 * h, abs_tol=1e-12)


def test_ray_aabb():
    box = Aabb((1, -1, -1), (2, 1, 1))
    assert ray_aabb((0, 0, 0), (1, 0, 0), box) == (1.0, 2.0)
    assert ray_aabb((0, 2, 0), (1, 0, 0), box) is None
    assert ray_aabb((3, 0, 0), (1, 0, 0), box) is None


def test_polygon_helpers():
    square = [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)]
    assert math.isclose(polygon_area_xy(square), 1.0)
    assert math.isclose(polygon_area_xy(list(reversed(square))), -1.0)
    assert point_in_polygon_xy((0.5, 0.5), square)
    assert point_in_polygon_xy((1.0, 0.5), square)
    assert not point_in_polygon_xy((1.5, 0.5), square)
    t = ray_polygon((0.5, 0.5, 2.0), (0, 0, -1), square)
    assert math.isclose(t, 2.0)
    assert math.isclose(ray_segment_xy((0, 0.5, 0), (1, 0, 0), (1, 0, 0), (1, 1, 0)), 1.0)
