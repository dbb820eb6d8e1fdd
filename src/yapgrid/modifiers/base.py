"""Modifier base class.

A modifier is a grid that wraps exactly one *underlying* grid.  Every
capability not overridden by a subclass is forwarded unchanged, so for
an operation ``f`` a modifier does not touch ``M.f(x) ==
M.underlying.f(x)``.  Modifiers stack; the outermost one answers first.

A grid can be wrapped by a single live modifier at a time, and closing
a modifier closes the chain beneath it.
"""

from __future__ import annotations

import logging

from yapgrid.bounds import Bound
from yapgrid.errors import InvalidArgumentError, NullArgumentError
from yapgrid.grid import Grid, GridType

logger = logging.getLogger(__name__)


def _forward(name: str):
    def forward(self, *args, **kwargs):
        return getattr(self.underlying, name)(*args, **kwargs)

    forward.__name__ = name
    forward.__qualname__ = f"GridModifier.{name}"
    forward.__doc__ = f"Forwarded to ``underlying.{name}``."
    return forward


class GridModifier(Grid):
    """Forward everything to ``underlying``."""

    grid_type = GridType.MODIFIER

    def __init__(self, underlying: Grid):
        if underlying is None:
            raise NullArgumentError("a modifier needs an underlying grid")
        if not isinstance(underlying, Grid):
            raise InvalidArgumentError(f"not a grid: {underlying!r}")
        super().__init__(None)
        underlying._claim(self)
        self.underlying = underlying
        logger.debug("%s wraps %r", type(self).__name__, underlying)

    def __repr__(self):
        return f"{type(self).__name__}({self.underlying!r})"

    def supports(self, name: str) -> bool:
        """Available here and on the underlying grid.

        Overrides still lean on the underlying operation of the same
        name, so a modifier cannot add a capability its grid lacks.
        """
        return super().supports(name) and self.underlying.supports(name)

    def close(self) -> None:
        super().close()
        self.underlying.close()

    def _rebuild(self, underlying: Grid) -> "GridModifier":
        """The same modifier around a different underlying grid."""
        return GridModifier(underlying)

    ## forwarded properties

    @property
    def bound(self):
        return self.underlying.bound

    @property
    def coordinate_dimension(self) -> int:
        return self.underlying.coordinate_dimension

    @property
    def is_planar(self) -> bool:
        return self.underlying.is_planar

    @property
    def is_repeating(self) -> bool:
        return self.underlying.is_repeating

    @property
    def is_orientable(self) -> bool:
        return self.underlying.is_orientable

    @property
    def is_finite(self) -> bool:
        return self.underlying.is_finite

    ## forwarded operations

    is_cell_in_grid = _forward("is_cell_in_grid")
    cell_type = _forward("cell_type")
    try_move = _forward("try_move")
    cell_dirs = _forward("cell_dirs")
    cell_corners = _forward("cell_corners")
    cell_center = _forward("cell_center")
    corner_position = _forward("corner_position")
    polygon = _forward("polygon")
    cell_aabb = _forward("cell_aabb")
    find_cell = _forward("find_cell")
    raycast = _forward("raycast")
    cells = _forward("cells")
    cell_count = _forward("cell_count")
    cells_in_aabb = _forward("cells_in_aabb")
    index_count = _forward("index_count")
    index = _forward("index")
    cell_by_index = _forward("cell_by_index")
    planar_key = _forward("planar_key")
    from_planar_key = _forward("from_planar_key")

    ## bounds rebuild the modifier around a rebound underlying grid

    def bound_by(self, bound: Bound) -> "GridModifier":
        return self._rebuild(self.underlying.bound_by(bound))

    def unbounded(self) -> "GridModifier":
        return self._rebuild(self.underlying.unbounded())


__all__ = ["GridModifier"]
