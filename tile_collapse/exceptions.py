"""Exception hierarchy for tile generation failures."""

from __future__ import annotations


class TileCollapseError(Exception):
    """Base exception for tile generation failures."""


class ConfigurationError(TileCollapseError, ValueError):
    """Raised when a catalog, grid size or run setting is invalid."""


class InvalidStateError(TileCollapseError):
    """Raised when a cell is collapsed twice or does not belong to the grid."""


class ContradictionError(TileCollapseError):
    """Raised when propagation leaves an unresolved cell with no candidates.

    The grid is left in its failed state; callers discard it and start over.
    """

    def __init__(self, x: int, y: int) -> None:
        self.x = x
        self.y = y
        super().__init__(f"No candidate tiles left for cell ({x}, {y})")

    @property
    def position(self) -> tuple[int, int]:
        return self.x, self.y
