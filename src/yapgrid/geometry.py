## vectors, bounding boxes and 4x4 homogeneous transformations for
## yapgrid

## Copyright (c) 2020 Richard W. DeVaul
## Copyright (c) 2020 yapCAD contributors
## All rights reserved

# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from yapgrid.errors import InvalidArgumentError

## Points and vectors are plain 3-tuples of floats.  Matrices work in
## homogeneous coordinates internally: points are lifted with w=1,
## direction vectors with w=0.

Vec3 = Tuple[float, float, float]

epsilon = 1e-9


def vec3(x: float = 0.0, y: float = 0.0, z: float = 0.0) -> Vec3:
    return (float(x), float(y), float(z))


def to_vec3(p: Sequence[float]) -> Vec3:
    """Return XYZ of a 2-, 3- or 4-component sequence; z defaults to 0."""
    if len(p) < 2:
        raise InvalidArgumentError("value must have at least two components")
    z = p[2] if len(p) > 2 else 0.0
    return (float(p[0]), float(p[1]), float(z))


def add(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def sub(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def scale(a: Vec3, s: float) -> Vec3:
    return (a[0] * s, a[1] * s, a[2] * s)


def dot(a: Vec3, b: Vec3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def cross(a: Vec3, b: Vec3) -> Vec3:
    return (a[1] * b[2] - a[2] * b[1],
            a[2] * b[0] - a[0] * b[2],
            a[0] * b[1] - a[1] * b[0])


def length(a: Vec3) -> float:
    return math.sqrt(dot(a, a))


def distance(a: Vec3, b: Vec3) -> float:
    return length(sub(a, b))


def close(a: Vec3, b: Vec3, tol: float = epsilon) -> bool:
    """True if every component of ``a`` and ``b`` differs by at most ``tol``."""
    return (abs(a[0] - b[0]) <= tol and abs(a[1] - b[1]) <= tol
            and abs(a[2] - b[2]) <= tol)


def centroid(points: Sequence[Vec3]) -> Vec3:
    n = len(points)
    if n == 0:
        raise InvalidArgumentError("centroid of an empty point list")
    return (sum(p[0] for p in points) / n,
            sum(p[1] for p in points) / n,
            sum(p[2] for p in points) / n)


@dataclass(frozen=True)
class Aabb:
    """Axis-aligned bounding box given by its ``min`` and ``max`` corners."""

    min: Vec3
    max: Vec3

    @classmethod
    def from_points(cls, points: Iterable[Sequence[float]]) -> "Aabb":
        pts = [to_vec3(p) for p in points]
        if not pts:
            raise InvalidArgumentError("bounding box of an empty point list")
        return cls((min(p[0] for p in pts), min(p[1] for p in pts), min(p[2] for p in pts)),
                   (max(p[0] for p in pts), max(p[1] for p in pts), max(p[2] for p in pts)))

    @property
    def is_empty(self) -> bool:
        return any(self.min[i] > self.max[i] for i in range(3))

    @property
    def size(self) -> Vec3:
        return sub(self.max, self.min)

    @property
    def center(self) -> Vec3:
        return scale(add(self.min, self.max), 0.5)

    def corners(self) -> List[Vec3]:
        """The eight corners; bit 1 selects max x, bit 2 max y, bit 4 max z."""
        lo, hi = self.min, self.max
        return [(hi[0] if i & 1 else lo[0],
                 hi[1] if i & 2 else lo[1],
                 hi[2] if i & 4 else lo[2]) for i in range(8)]

    def contains(self, p: Sequence[float], tol: float = 0.0) -> bool:
        p = to_vec3(p)
        return all(self.min[i] - tol <= p[i] <= self.max[i] + tol for i in range(3))

    def intersects(self, other: "Aabb") -> bool:
        """Closed-interval overlap test on all three axes."""
        return all(self.min[i] <= other.max[i] and other.min[i] <= self.max[i]
                   for i in range(3))

    def union(self, other: "Aabb") -> "Aabb":
        return Aabb(tuple(min(self.min[i], other.min[i]) for i in range(3)),
                    tuple(max(self.max[i], other.max[i]) for i in range(3)))

    def expand(self, margin: float) -> "Aabb":
        m = (margin, margin, margin)
        return Aabb(sub(self.min, m), add(self.max, m))

    def transform(self, matrix: "Matrix") -> "Aabb":
        """Bounding box of the eight transformed corners."""
        return Aabb.from_points(matrix.transform_point(c) for c in self.corners())


def _isgoodnum(x) -> bool:
    return (not isinstance(x, bool)) and isinstance(x, (int, float)) and math.isfinite(x)


## a matrix is represented as a list of four rows.  The transpose
## flag swaps row and column access without copying; inverses are
## computed numerically.

class Matrix:
    """4x4 transformation matrix for homogeneous 3D coordinates"""

    def __init__(self, a=None, trans=False):
        self.m = [[1.0, 0.0, 0.0, 0.0],
                  [0.0, 1.0, 0.0, 0.0],
                  [0.0, 0.0, 1.0, 0.0],
                  [0.0, 0.0, 0.0, 1.0]]
        self.trans = False

        if isinstance(a, Matrix):
            for i in range(4):
                self.setrow(i, list(a.getrow(i)))
        elif isinstance(a, np.ndarray):
            if a.shape != (4, 4):
                raise InvalidArgumentError('bad array shape for matrix: {}'.format(a.shape))
            self.m = [[float(a[i][j]) for j in range(4)] for i in range(4)]
        elif isinstance(a, (tuple, list)):
            if len(a) == 4 and all(isinstance(r, (tuple, list)) and len(r) == 4 for r in a):
                rows = a
            elif len(a) == 16:
                rows = [a[i * 4:i * 4 + 4] for i in range(4)]
            else:
                raise InvalidArgumentError('bad thing used in attempt to initialize matrix: {}'.format(a))
            for i in range(4):
                for j in range(4):
                    x = rows[i][j]
                    if not _isgoodnum(x):
                        raise InvalidArgumentError('bad element in matrix initialization: {}'.format(x))
                    self.m[i][j] = float(x)
        elif a is not None:
            raise InvalidArgumentError('bad thing used in attempt to initialize matrix: {}'.format(a))
        self.trans = trans

    def __repr__(self):
        return "Matrix({},{},{},{},{})".format(self.m[0], self.m[1],
                                               self.m[2], self.m[3], self.trans)

    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return all(self.getrow(i) == other.getrow(i) for i in range(4))

    __hash__ = None

    #return value indexed by i,j
    def get(self, i, j):
        if i < 0 or i > 3 or j < 0 or j > 3:
            raise InvalidArgumentError('bad index passed to get: {},{}'.format(i, j))
        if self.trans:
            return self.m[j][i]
        return self.m[i][j]

    #set value indexed by i,j
    def set(self, i, j, x):
        if i < 0 or i > 3 or j < 0 or j > 3:
            raise InvalidArgumentError('bad index passed to set: {},{}'.format(i, j))
        if not _isgoodnum(x):
            raise InvalidArgumentError('bad value passed to set: {}'.format(x))
        if self.trans:
            self.m[j][i] = x
        else:
            self.m[i][j] = x

    def getrow(self, i):
        if i < 0 or i > 3:
            raise InvalidArgumentError('bad row passed to getrow: {}'.format(i))
        if self.trans:
            return [self.m[0][i], self.m[1][i], self.m[2][i], self.m[3][i]]
        return list(self.m[i])

    def getcol(self, j):
        if j < 0 or j > 3:
            raise InvalidArgumentError('bad column passed to getcol: {}'.format(j))
        if not self.trans:
            return [self.m[0][j], self.m[1][j], self.m[2][j], self.m[3][j]]
        return list(self.m[j])

    def setrow(self, i, x):
        if len(x) != 4:
            raise InvalidArgumentError('bad non-vector passed to setrow: {}'.format(x))
        for j in range(4):
            self.set(i, j, x[j])

    def setcol(self, j, x):
        if len(x) != 4:
            raise InvalidArgumentError('bad non-vector passed to setcol: {}'.format(x))
        for i in range(4):
            self.set(i, j, x[i])

    # matrix multiply.  If x is a matrix, compute MX.  If x is a
    # 4-vector, compute Mx.  If x is a scalar, compute xM.
    def mul(self, x):
        if isinstance(x, Matrix):
            result = Matrix()
            for i in range(4):
                row = self.getrow(i)
                for j in range(4):
                    col = x.getcol(j)
                    result.set(i, j, sum(row[k] * col[k] for k in range(4)))
            return result
        elif isinstance(x, (tuple, list)) and len(x) == 4:
            return [sum(r * v for r, v in zip(self.getrow(i), x)) for i in range(4)]
        elif _isgoodnum(x):
            result = Matrix()
            for i in range(4):
                result.setrow(i, [v * x for v in self.getrow(i)])
            return result

        raise InvalidArgumentError('bad thing passed to mul(): {}'.format(x))

    def to_array(self) -> np.ndarray:
        return np.array([self.getrow(i) for i in range(4)], dtype=float)

    def inverse(self) -> "Matrix":
        """Numeric inverse; raises ``InvalidArgumentError`` if singular."""
        a = self.to_array()
        if abs(np.linalg.det(a)) <= epsilon:
            raise InvalidArgumentError('matrix is not invertible: {}'.format(self))
        try:
            inv = np.linalg.inv(a)
        except np.linalg.LinAlgError as err:
            raise InvalidArgumentError('matrix is not invertible: {}'.format(self)) from err
        return Matrix(inv)

    def transform_point(self, p: Sequence[float]) -> Vec3:
        """Apply to a point (w=1), dividing through by w when needed."""
        x, y, z = to_vec3(p)
        r = self.mul([x, y, z, 1.0])
        w = r[3]
        if w != 1.0 and abs(w) > epsilon:
            return (r[0] / w, r[1] / w, r[2] / w)
        return (r[0], r[1], r[2])

    def transform_vector(self, v: Sequence[float]) -> Vec3:
        """Apply to a direction (w=0); translation has no effect."""
        x, y, z = to_vec3(v)
        r = self.mul([x, y, z, 0.0])
        return (r[0], r[1], r[2])


def Identity():
    return Matrix()


# return the generalized 4x4 arbitrary axis rotation matrix, angle in
# degrees
def Rotation(axis, angle, inverse=False):
    axis = to_vec3(axis)
    m = length(axis)
    if m < epsilon:
        raise InvalidArgumentError('zero-length rotation axis not allowed')
    ux, uy, uz = scale(axis, 1.0 / m)

    if inverse:
        angle *= -1.0
    rad = math.radians(angle % 360.0)

    cang = math.cos(rad)
    cmin = 1.0 - cang
    sang = math.sin(rad)

    # see http://www.opengl-tutorial.org/assets/faq_quaternions/index.html#Q38
    R = [[cang + ux*ux*cmin, ux*uy*cmin - uz*sang, ux*uz*cmin + uy*sang, 0],
         [uy*ux*cmin + uz*sang, cang + uy*uy*cmin, uy*uz*cmin - ux*sang, 0],
         [uz*ux*cmin - uy*sang, uz*uy*cmin + ux*sang, cang + uz*uz*cmin, 0],
         [0, 0, 0, 1]]
    return Matrix(R)


def Translation(delta, inverse=False):
    dx, dy, dz = to_vec3(delta)
    if inverse:
        dx, dy, dz = -dx, -dy, -dz
    T = [[1, 0, 0, dx],
         [0, 1, 0, dy],
         [0, 0, 1, dz],
         [0, 0, 0, 1]]
    return Matrix(T)


def Scale(x, y=None, z=None, inverse=False):
    if _isgoodnum(x):
        sx = x
        if _isgoodnum(y) and _isgoodnum(z):
            sy, sz = y, z
        else:
            sy = sz = x
    elif isinstance(x, (tuple, list)) and len(x) >= 3:
        sx, sy, sz = x[0], x[1], x[2]
    else:
        raise InvalidArgumentError('bad scaling values passed to Scale')

    if inverse:
        sx, sy, sz = 1.0 / sx, 1.0 / sy, 1.0 / sz

    S = [[sx, 0, 0, 0],
         [0, sy, 0, 0],
         [0, 0, sz, 0],
         [0, 0, 0, 1.0]]
    return Matrix(S)


## ray and polygon tests used by raycasting and point location

def ray_aabb(origin: Vec3, direction: Vec3, box: Aabb) -> Optional[Tuple[float, float]]:
    """Slab test.  Return ``(t_enter, t_exit)`` with ``t_exit >= max(t_enter, 0)``
    or ``None`` if the ray misses the box."""
    tmin, tmax = -math.inf, math.inf
    for i in range(3):
        if abs(direction[i]) < epsilon:
            if origin[i] < box.min[i] or origin[i] > box.max[i]:
                return None
            continue
        t1 = (box.min[i] - origin[i]) / direction[i]
        t2 = (box.max[i] - origin[i]) / direction[i]
        if t1 > t2:
            t1, t2 = t2, t1
        tmin = max(tmin, t1)
        tmax = min(tmax, t2)
        if tmin > tmax:
            return None
    if tmax < 0:
        return None
    return tmin, tmax


def ray_triangle(origin: Vec3, direction: Vec3, v0: Vec3, v1: Vec3, v2: Vec3) -> Optional[float]:
    """Moller-Trumbore intersection; returns the ray parameter or ``None``."""
    e1 = sub(v1, v0)
    e2 = sub(v2, v0)
    p = cross(direction, e2)
    det = dot(e1, p)
    if abs(det) < epsilon:
        return None
    inv = 1.0 / det
    s = sub(origin, v0)
    u = dot(s, p) * inv
    if u < -epsilon or u > 1.0 + epsilon:
        return None
    q = cross(s, e1)
    v = dot(direction, q) * inv
    if v < -epsilon or u + v > 1.0 + epsilon:
        return None
    t = dot(e2, q) * inv
    if t < 0:
        return None
    return t


def ray_polygon(origin: Vec3, direction: Vec3, polygon: Sequence[Vec3]) -> Optional[float]:
    """Nearest hit of a ray with a convex or star-shaped planar polygon
    (tested as a triangle fan)."""
    best = None
    for i in range(1, len(polygon) - 1):
        t = ray_triangle(origin, direction, polygon[0], polygon[i], polygon[i + 1])
        if t is not None and (best is None or t < best):
            best = t
    return best


def point_in_polygon_xy(p: Sequence[float], polygon: Sequence[Vec3]) -> bool:
    """Even-odd point containment in the XY plane.  Points on an edge
    count as inside."""
    x, y = p[0], p[1]
    n = len(polygon)
    inside = False
    for i in range(n):
        x1, y1 = polygon[i][0], polygon[i][1]
        x2, y2 = polygon[(i + 1) % n][0], polygon[(i + 1) % n][1]
        # on-edge check
        cr = (x2 - x1) * (y - y1) - (y2 - y1) * (x - x1)
        if abs(cr) <= epsilon and min(x1, x2) - epsilon <= x <= max(x1, x2) + epsilon \
           and min(y1, y2) - epsilon <= y <= max(y1, y2) + epsilon:
            return True
        if (y1 > y) != (y2 > y):
            xint = x1 + (y - y1) * (x2 - x1) / (y2 - y1)
            if x < xint:
                inside = not inside
    return inside


def ray_segment_xy(origin: Vec3, direction: Vec3, a: Vec3, b: Vec3) -> Optional[float]:
    """Ray parameter where a ray crosses segment ``ab`` in the XY plane."""
    ex, ey = b[0] - a[0], b[1] - a[1]
    dx, dy = direction[0], direction[1]
    den = dx * ey - dy * ex
    if abs(den) < epsilon:
        return None
    wx, wy = a[0] - origin[0], a[1] - origin[1]
    t = (wx * ey - wy * ex) / den
    u = (wx * dy - wy * dx) / den
    if t < 0 or u < -epsilon or u > 1.0 + epsilon:
        return None
    return t


def polygon_area_xy(polygon: Sequence[Vec3]) -> float:
    """Signed shoelace area; positive for counter-clockwise winding."""
    n = len(polygon)
    s = 0.0
    for i in range(n):
        a = polygon[i]
        b = polygon[(i + 1) % n]
        s += a[0] * b[1] - b[0] * a[1]
    return 0.5 * s


__all__ = [
    "Vec3",
    "epsilon",
    "vec3",
    "to_vec3",
    "add",
    "sub",
    "scale",
    "dot",
    "cross",
    "length",
    "distance",
    "close",
    "centroid",
    "Aabb",
    "Matrix",
    "Identity",
    "Rotation",
    "Translation",
    "Scale",
    "ray_aabb",
    "ray_triangle",
    "ray_polygon",
    "point_in_polygon_xy",
    "ray_segment_xy",
    "polygon_area_xy",
]
