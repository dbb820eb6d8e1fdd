"""Path searches over grid topology.

:func:`find_basic_path` is a breadth-first search counting moves.
:func:`find_path` weighs each move (by default the distance between the
two cell centres) and runs Dijkstra's algorithm, or A* when given a
heuristic.  :func:`cell_distances` floods outward from one cell.

Searches on unbounded grids are allowed but give up with
:class:`InfiniteGridError` after visiting ``max_search_cells`` cells.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from yapgrid.cell import Cell, Move, as_cell
from yapgrid.config import get_setting
from yapgrid.errors import (
    BufferTooSmallError,
    CellNotInGridError,
    InfiniteGridError,
    InvalidArgumentError,
    OutOfMemoryError,
    PathNotFoundError,
)
from yapgrid.geometry import distance
from yapgrid.grid import Grid
from yapgrid.hashing import CellHashTable

logger = logging.getLogger(__name__)

StepCost = Callable[[Cell, int, Move], Optional[float]]
Heuristic = Callable[[Cell], float]


@dataclass
class Path:
    """A route through a grid.

    ``dirs[i]`` is the direction that leads from ``cells[i]`` to
    ``cells[i+1]``.  ``cost`` is the summed step cost for weighted
    searches and the move count for breadth-first ones.
    """

    cells: List[Cell]
    dirs: List[int] = field(default_factory=list)
    cost: float = 0.0

    def __post_init__(self):
        if self.cells and len(self.dirs) != len(self.cells) - 1:
            raise InvalidArgumentError(
                f"{len(self.cells)} cells need {len(self.cells) - 1} directions, got {len(self.dirs)}")

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(self.cells)

    @property
    def start(self) -> Cell:
        return self.cells[0]

    @property
    def dest(self) -> Cell:
        return self.cells[-1]

    def steps(self) -> List[Tuple[Cell, int, Cell]]:
        """``(cell, dir, next_cell)`` for every move along the path."""
        return [(self.cells[i], self.dirs[i], self.cells[i + 1]) for i in range(len(self.dirs))]


def _endpoints(grid: Grid, start, dest) -> Tuple[Cell, Cell]:
    start, dest = as_cell(start), as_cell(dest)
    for cell in (start, dest):
        if not grid.is_cell_in_grid(cell):
            raise CellNotInGridError(cell)
    return start, dest


def _search_cap(grid: Grid) -> Optional[int]:
    return None if grid.is_finite else int(get_setting("max_search_cells"))


def _moves(grid: Grid, cell: Cell) -> Iterator[Tuple[int, Move]]:
    for d in grid.cell_dirs(cell):
        move = grid.try_move(cell, d)
        if move is not None:
            yield d, move


def _trace(came_from: CellHashTable, start: Cell, dest: Cell) -> Tuple[List[Cell], List[int]]:
    cells = [dest]
    dirs: List[int] = []
    cell = dest
    while cell != start:
        prev, d = came_from[cell]
        cells.append(prev)
        dirs.append(d)
        cell = prev
    cells.reverse()
    dirs.reverse()
    return cells, dirs


def _check_length(cells: List[Cell], max_steps: Optional[int]) -> None:
    if max_steps is not None and len(cells) > max_steps:
        raise BufferTooSmallError(len(cells), max_steps)


def find_basic_path(grid: Grid, start, dest, max_steps: Optional[int] = None) -> Path:
    """Fewest-moves path from ``start`` to ``dest``.

    Directions are tried in ``cell_dirs`` order, so the result is
    deterministic.  ``max_steps`` limits the number of cells the path
    may hold; a longer path raises :class:`BufferTooSmallError` whose
    ``required`` is the full length.
    """
    start, dest = _endpoints(grid, start, dest)
    if start == dest:
        _check_length([start], max_steps)
        return Path([start], [], 0.0)

    cap = _search_cap(grid)
    try:
        came_from = CellHashTable()
        came_from[start] = (None, None)
        queue = deque([start])
        found = False
        while queue:
            cell = queue.popleft()
            if cell == dest:
                found = True
                break
            for d, move in _moves(grid, cell):
                if move.dest in came_from:
                    continue
                came_from[move.dest] = (cell, d)
                if cap is not None and len(came_from) > cap:
                    raise InfiniteGridError(
                        f"search from {start} gave up after {cap} cells")
                queue.append(move.dest)
    except MemoryError as e:
        raise OutOfMemoryError(f"out of memory searching from {start} to {dest}") from e

    logger.debug("breadth-first search visited %d cells", len(came_from))
    if not found:
        raise PathNotFoundError(f"no path from {start} to {dest}")
    cells, dirs = _trace(came_from, start, dest)
    _check_length(cells, max_steps)
    return Path(cells, dirs, float(len(dirs)))


def center_distance_cost(grid: Grid) -> StepCost:
    """Step cost equal to the distance between the two cell centres."""

    def cost(cell: Cell, dir: int, move: Move) -> float:
        return distance(grid.cell_center(cell), grid.cell_center(move.dest))

    return cost


def astar_heuristic(grid: Grid, dest) -> Heuristic:
    """Straight-line distance to the centre of ``dest``.

    Never overestimates the default step cost, so A* stays optimal.
    """
    target = grid.cell_center(as_cell(dest))

    def heuristic(cell: Cell) -> float:
        return distance(grid.cell_center(cell), target)

    return heuristic


def _dijkstra(grid: Grid, start: Cell, step_cost: StepCost,
              heuristic: Optional[Heuristic] = None,
              dest: Optional[Cell] = None,
              max_distance: Optional[float] = None) -> Tuple[CellHashTable, CellHashTable]:
    """Settle cells in order of cost; stop early once ``dest`` is settled."""
    cap = _search_cap(grid)
    best = CellHashTable()
    came_from = CellHashTable()
    settled = CellHashTable()
    best[start] = 0.0
    tie = itertools.count()
    h0 = heuristic(start) if heuristic is not None else 0.0
    heap = [(h0, next(tie), 0.0, start)]
    try:
        while heap:
            _, _, g, cell = heapq.heappop(heap)
            if cell in settled:
                continue
            settled[cell] = g
            if cell == dest:
                break
            for d, move in _moves(grid, cell):
                if move.dest in settled:
                    continue
                w = step_cost(cell, d, move)
                if w is None:
                    continue
                if w < 0:
                    raise InvalidArgumentError(f"negative step cost {w} from {cell} in direction {d}")
                g2 = g + w
                if max_distance is not None and g2 > max_distance:
                    continue
                known = best.get(move.dest)
                if known is not None and known <= g2:
                    continue
                best[move.dest] = g2
                came_from[move.dest] = (cell, d)
                if cap is not None and len(best) > cap:
                    raise InfiniteGridError(f"search from {start} gave up after {cap} cells")
                f = g2 + (heuristic(move.dest) if heuristic is not None else 0.0)
                heapq.heappush(heap, (f, next(tie), g2, move.dest))
    except MemoryError as e:
        raise OutOfMemoryError(f"out of memory searching from {start}") from e
    logger.debug("weighted search settled %d of %d reached cells", len(settled), len(best))
    return settled, came_from


def find_path(grid: Grid, start, dest,
              step_cost: Optional[StepCost] = None,
              heuristic: Optional[Heuristic] = None) -> Path:
    """Cheapest path from ``start`` to ``dest``.

    ``step_cost(cell, dir, move)`` prices each move; returning ``None``
    blocks it.  With a ``heuristic`` the search is A*, which is exact
    as long as the heuristic never overestimates the remaining cost.
    """
    start, dest = _endpoints(grid, start, dest)
    if step_cost is None:
        step_cost = center_distance_cost(grid)
    settled, came_from = _dijkstra(grid, start, step_cost, heuristic, dest=dest)
    if dest not in settled:
        raise PathNotFoundError(f"no path from {start} to {dest}")
    cells, dirs = _trace(came_from, start, dest)
    return Path(cells, dirs, settled[dest])


def cell_distances(grid: Grid, start, max_distance: Optional[float] = None,
                   step_cost: Optional[StepCost] = None) -> Dict[Cell, float]:
    """Cost of the cheapest path from ``start`` to every reachable cell,
    optionally only those within ``max_distance``."""
    start = as_cell(start)
    if not grid.is_cell_in_grid(start):
        raise CellNotInGridError(start)
    if step_cost is None:
        step_cost = center_distance_cost(grid)
    settled, _ = _dijkstra(grid, start, step_cost, max_distance=max_distance)
    return dict(settled.items())


__all__ = [
    "Path",
    "find_basic_path",
    "find_path",
    "astar_heuristic",
    "center_distance_cost",
    "cell_distances",
]
