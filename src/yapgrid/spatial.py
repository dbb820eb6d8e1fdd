## bucketed spatial index over the cells of a grid

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

"""Spatial hash for fast geometric lookups over a finite set of cells.

Cells are dropped into cubic buckets by the position of their centre.
A cell's bounding box can reach past its bucket by at most the largest
half-extent seen, so every query widens its bucket range by that much
and then tests the candidates' boxes exactly.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

from yapgrid.bounds import Bound
from yapgrid.cell import Cell, RaycastInfo
from yapgrid.config import get_setting
from yapgrid.errors import InfiniteGridError, InvalidArgumentError, NullArgumentError
from yapgrid.geometry import Aabb, Vec3, add, length, ray_aabb, scale, to_vec3
from yapgrid.grid import Grid
from yapgrid.hashing import CellHashTable
from yapgrid.square import dda

logger = logging.getLogger(__name__)


def _median(values: Sequence[float]) -> float:
    s = sorted(values)
    mid = len(s) // 2
    if len(s) % 2:
        return s[mid]
    return 0.5 * (s[mid - 1] + s[mid])


class GridSpatialHash:
    """Index the cells of ``grid`` (or of ``bound`` on it) by position.

    ``bucket_size`` defaults to the median diameter of a sample of cell
    bounding boxes.
    """

    def __init__(self, grid: Grid, bound: Optional[Bound] = None,
                 bucket_size: Optional[float] = None):
        if grid is None:
            raise NullArgumentError("a spatial hash needs a grid")
        if bound is not None:
            cells = [c for c in bound.cells() if grid.is_cell_in_grid(c)]
        elif grid.is_finite:
            cells = grid.cells()
        else:
            raise InfiniteGridError("index an unbounded grid through an explicit bound")

        self.grid = grid
        self._cells: List[Cell] = cells
        self._boxes: Dict[Cell, Aabb] = {c: grid.cell_aabb(c) for c in cells}
        self._order = {c: i for i, c in enumerate(cells)}

        if bucket_size is None:
            bucket_size = self._auto_bucket_size()
        bucket_size = float(bucket_size)
        if not bucket_size > 0 or math.isinf(bucket_size):
            raise InvalidArgumentError(f"bucket size must be positive and finite, got {bucket_size!r}")
        self.bucket_size = bucket_size

        self._pad = [0.0, 0.0, 0.0]
        self._extent: Optional[Aabb] = None
        self._buckets = CellHashTable()
        for cell in cells:
            box = self._boxes[cell]
            for i in range(3):
                self._pad[i] = max(self._pad[i], 0.5 * box.size[i])
            self._extent = box if self._extent is None else self._extent.union(box)
            key = self._bucket_of(box.center)
            members = self._buckets.get(key)
            if members is None:
                self._buckets[key] = [cell]
            else:
                members.append(cell)
        logger.debug("spatial hash of %d cells in %d buckets of size %g",
                     len(cells), len(self._buckets), bucket_size)

    def __len__(self) -> int:
        return len(self._cells)

    def _auto_bucket_size(self) -> float:
        if not self._cells:
            return 1.0
        limit = int(get_setting("spatial_hash_sample_size"))
        step = max(1, len(self._cells) // limit)
        sample = self._cells[::step][:limit]
        diameter = _median([length(self._boxes[c].size) for c in sample])
        return diameter if diameter > 0 else 1.0

    def _bucket_of(self, p: Sequence[float]) -> Cell:
        s = self.bucket_size
        return Cell(math.floor(p[0] / s), math.floor(p[1] / s), math.floor(p[2] / s))

    def _candidates(self, lo: Vec3, hi: Vec3) -> List[Cell]:
        b0 = self._bucket_of([lo[i] - self._pad[i] for i in range(3)])
        b1 = self._bucket_of([hi[i] + self._pad[i] for i in range(3)])
        found: List[Cell] = []
        for bx in range(b0[0], b1[0] + 1):
            for by in range(b0[1], b1[1] + 1):
                for bz in range(b0[2], b1[2] + 1):
                    members = self._buckets.get((bx, by, bz))
                    if members:
                        found.extend(members)
        return found

    ## queries

    def query_aabb(self, aabb_min: Sequence[float], aabb_max: Sequence[float]) -> List[Cell]:
        """Cells whose bounding box overlaps ``[aabb_min, aabb_max]``,
        in grid enumeration order."""
        box = Aabb(to_vec3(aabb_min), to_vec3(aabb_max))
        if box.is_empty or self._extent is None or not box.intersects(self._extent):
            return []
        hits = [c for c in self._candidates(box.min, box.max) if self._boxes[c].intersects(box)]
        hits.sort(key=self._order.__getitem__)
        return hits

    def query_point(self, p: Sequence[float]) -> List[Cell]:
        """Cells whose bounding box contains ``p``."""
        p = to_vec3(p)
        return self.query_aabb(p, p)

    def raycast(self, origin: Sequence[float], direction: Sequence[float],
                max_distance: float = math.inf) -> List[RaycastInfo]:
        """Cells whose bounding box the ray passes through, nearest first."""
        o = to_vec3(origin)
        d = to_vec3(direction)
        n = length(d)
        if n == 0.0:
            raise InvalidArgumentError("ray direction is the zero vector")
        d = scale(d, 1.0 / n)
        if self._extent is None:
            return []
        span = ray_aabb(o, d, self._extent)
        if span is None:
            return []
        t0 = max(0.0, span[0])
        t1 = min(span[1], max_distance)
        if t0 > t1:
            return []

        s = self.bucket_size
        reach = [int(math.ceil(self._pad[i] / s)) for i in range(3)]
        start = add(o, scale(d, t0))
        visited = set()
        candidates: List[Cell] = []
        max_steps = int(get_setting("raycast_max_steps"))
        for bucket, _, _, _ in dda(start, d, (s, s, s), t1 - t0, max_steps):
            for bx in range(bucket[0] - reach[0], bucket[0] + reach[0] + 1):
                for by in range(bucket[1] - reach[1], bucket[1] + reach[1] + 1):
                    for bz in range(bucket[2] - reach[2], bucket[2] + reach[2] + 1):
                        key = (bx, by, bz)
                        if key in visited:
                            continue
                        visited.add(key)
                        members = self._buckets.get(key)
                        if members:
                            candidates.extend(members)

        hits: List[Tuple[float, int, RaycastInfo]] = []
        for cell in candidates:
            hit = ray_aabb(o, d, self._boxes[cell])
            if hit is None:
                continue
            t = max(0.0, hit[0])
            if t > max_distance:
                continue
            hits.append((t, self._order[cell], RaycastInfo(cell, add(o, scale(d, t)), t)))
        hits.sort(key=lambda h: (h[0], h[1]))
        return [h[2] for h in hits]


__all__ = ["GridSpatialHash"]
