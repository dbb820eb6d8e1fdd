"""Grid modifiers: grids that wrap and adjust another grid.

Quick Start:
    >>> from yapgrid import SquareGrid, bound_rectangle
    >>> from yapgrid.modifiers import WrapModifier, RavelModifier
    >>> torus = WrapModifier(SquareGrid(1.0, bound_rectangle(0, 0, 9, 9)))
    >>> torus.try_move((9, 0), 0).dest
    Cell(x=0, y=0, z=0)

A grid may be wrapped by one modifier at a time; build a fresh
underlying grid for each chain.
"""

from .base import GridModifier
from .mask import MaskModifier
from .planar_prism import (
    PlanarPrismModifier,
    hex_prism_grid,
    square_prism_grid,
    triangle_prism_grid,
)
from .ravel import RavelModifier, RavelOrder, hilbert_index, morton_code
from .transform import TransformModifier
from .wrap import WrapModifier

__all__ = [
    'GridModifier',
    'TransformModifier',
    'MaskModifier',
    'WrapModifier',
    'RavelModifier',
    'RavelOrder',
    'morton_code',
    'hilbert_index',
    'PlanarPrismModifier',
    'square_prism_grid',
    'hex_prism_grid',
    'triangle_prism_grid',
]
