"""Fixed-size grid of cells, each holding a resolved tile or its candidates."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from tile_collapse.catalog import Direction, TileCatalog, TileId
from tile_collapse.exceptions import ConfigurationError, InvalidStateError


@dataclass(eq=False)
class Cell:
    """One grid position.

    ``candidates`` is empty exactly when ``resolved_tile`` is set, except in
    the terminal state after a contradiction.
    """

    x: int
    y: int
    candidates: tuple[TileId, ...] = ()
    resolved_tile: TileId | None = None

    @property
    def is_resolved(self) -> bool:
        return self.resolved_tile is not None

    @property
    def entropy(self) -> int:
        return len(self.candidates)


class Grid:
    """Row-major ``width x height`` cells; ``index = y * width + x``."""

    def __init__(self, width: int, height: int, tile_ids: Sequence[TileId]) -> None:
        for name, value in (("width", width), ("height", height)):
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
                msg = f"Grid {name} must be a positive integer, got {value!r}"
                raise ConfigurationError(msg)
        tile_ids = tuple(tile_ids)
        if not tile_ids:
            msg = "Grid needs at least one tile id"
            raise ConfigurationError(msg)
        if None in tile_ids:
            msg = "None cannot be used as a tile id"
            raise ConfigurationError(msg)

        self.width = int(width)
        self.height = int(height)
        self.tile_ids = tile_ids
        self._cells = [
            Cell(x, y, candidates=tile_ids)
            for y in range(self.height)
            for x in range(self.width)
        ]

    @classmethod
    def from_catalog(cls, width: int, height: int, catalog: TileCatalog) -> Grid:
        return cls(width, height, catalog.tile_ids)

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self):
        return iter(self._cells)

    def __repr__(self) -> str:
        return f"Grid({self.width}x{self.height}, unresolved={self.unresolved_count()})"

    # -- lookup --------------------------------------------------------

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell_at(self, x: int, y: int) -> Cell:
        if not self.in_bounds(x, y):
            msg = f"Cell ({x}, {y}) is outside the {self.width}x{self.height} grid"
            raise InvalidStateError(msg)
        return self._cells[y * self.width + x]

    def owns(self, cell: Cell) -> bool:
        return (
            self.in_bounds(cell.x, cell.y)
            and self._cells[cell.y * self.width + cell.x] is cell
        )

    def position_of(self, cell: Cell) -> tuple[int, int]:
        """Coordinates of *cell*, checked by index arithmetic rather than a scan."""
        if not self.owns(cell):
            msg = f"{cell!r} does not belong to this grid"
            raise InvalidStateError(msg)
        return cell.x, cell.y

    def neighbors(self, cell: Cell) -> dict[Direction, Cell | None]:
        """Adjacent cells that are in bounds and still unresolved, per direction.

        Resolved neighbours map to ``None``: only open cells can still narrow.
        """
        x, y = self.position_of(cell)
        result: dict[Direction, Cell | None] = {}
        for direction in Direction:
            dx, dy = direction.offset
            nx, ny = x + dx, y + dy
            neighbor = self._cells[ny * self.width + nx] if self.in_bounds(nx, ny) else None
            result[direction] = neighbor if neighbor is not None and neighbor.candidates else None
        return result

    def cells_with_positive_entropy(self) -> list[Cell]:
        return [cell for cell in self._cells if cell.candidates]

    # -- read-only accessors for renderers ----------------------------

    def tile_at(self, x: int, y: int) -> TileId | None:
        return self.cell_at(x, y).resolved_tile

    def candidate_count_at(self, x: int, y: int) -> int:
        return len(self.cell_at(x, y).candidates)

    def unresolved_count(self) -> int:
        return sum(1 for cell in self._cells if not cell.is_resolved)

    def is_solved(self) -> bool:
        return all(cell.is_resolved for cell in self._cells)

    def entropy_map(self) -> np.ndarray:
        """(H, W) int array of candidate counts."""
        counts = np.fromiter((len(c.candidates) for c in self._cells), dtype=np.int64)
        return counts.reshape(self.height, self.width)

    def tile_index_map(self) -> np.ndarray:
        """(H, W) int array of tile positions in ``tile_ids``; -1 where unresolved."""
        index = {tile: i for i, tile in enumerate(self.tile_ids)}
        values = np.fromiter(
            (index[c.resolved_tile] if c.is_resolved else -1 for c in self._cells),
            dtype=np.int64,
        )
        return values.reshape(self.height, self.width)
