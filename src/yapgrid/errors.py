"""
Status codes and exceptions raised by yapgrid.

Every exception derives from :class:`GridError` and carries the
:class:`Status` code a caller would observe.  Where a builtin exception
has the same meaning (``ValueError``, ``KeyError``, ``MemoryError``,
``NotImplementedError``, ``OSError``) it is mixed in so that ordinary
``except`` clauses keep working.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class Status(Enum):
    """Distinct outcome codes for grid operations."""
    SUCCESS = 0
    NULL_POINTER = 1
    INVALID_ARGUMENT = 2
    CELL_NOT_IN_GRID = 3
    INFINITE_GRID = 4
    OUT_OF_MEMORY = 5
    BUFFER_TOO_SMALL = 6
    PATH_NOT_FOUND = 7
    NOT_IMPLEMENTED = 8
    UNBOUNDED = 9
    IO = 10


class GridError(Exception):
    """Base class for all yapgrid errors."""
    status = Status.INVALID_ARGUMENT

    def __init__(self, message: str = "", status: Optional[Status] = None):
        super().__init__(message)
        if status is not None:
            self.status = status

    def __str__(self) -> str:
        msg = super().__str__()
        return f"[{self.status.name}] {msg}" if msg else self.status.name


class InvalidArgumentError(GridError, ValueError):
    status = Status.INVALID_ARGUMENT


class NullArgumentError(InvalidArgumentError):
    """A required argument was ``None``."""
    status = Status.NULL_POINTER


class CellNotInGridError(GridError, KeyError):
    status = Status.CELL_NOT_IN_GRID

    def __init__(self, cell=None, message: str = ""):
        self.cell = cell
        if not message:
            message = f"cell {cell} is not in the grid"
        super().__init__(message)

    # KeyError quotes its argument; keep the plain message instead
    def __str__(self) -> str:
        return GridError.__str__(self)


class InfiniteGridError(GridError):
    status = Status.INFINITE_GRID


class OutOfMemoryError(GridError, MemoryError):
    status = Status.OUT_OF_MEMORY


class BufferTooSmallError(GridError):
    """Raised when a result would exceed a caller-supplied limit.

    ``required`` holds the full size so the caller can retry.
    """
    status = Status.BUFFER_TOO_SMALL

    def __init__(self, required: int, limit: int, message: str = ""):
        self.required = required
        self.limit = limit
        if not message:
            message = f"result needs {required} entries, limit is {limit}"
        super().__init__(message)


class PathNotFoundError(GridError):
    status = Status.PATH_NOT_FOUND


class NotImplementedGridError(GridError, NotImplementedError):
    status = Status.NOT_IMPLEMENTED


class UnboundedError(GridError):
    status = Status.UNBOUNDED


class GridIOError(GridError, OSError):
    status = Status.IO


__all__ = [
    "Status",
    "GridError",
    "InvalidArgumentError",
    "NullArgumentError",
    "CellNotInGridError",
    "InfiniteGridError",
    "OutOfMemoryError",
    "BufferTooSmallError",
    "PathNotFoundError",
    "NotImplementedGridError",
    "UnboundedError",
    "GridIOError",
]
