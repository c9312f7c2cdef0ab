"""Wave-function-collapse style solver: collapse, propagate one hop, select next."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np

from tile_collapse.catalog import Direction, TileCatalog, TileId
from tile_collapse.exceptions import ConfigurationError, ContradictionError, InvalidStateError
from tile_collapse.grid import Cell, Grid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepResult:
    """What one ``collapse`` call did, handed to renderers.

    Attributes:
        collapsed_cell:     The cell that was just resolved.
        narrowed_neighbors: Open neighbours per direction (``None`` where absent).
        next_cell:          Lowest-entropy cell to collapse next; ``None`` once solved.
    """

    collapsed_cell: Cell
    narrowed_neighbors: dict[Direction, Cell | None]
    next_cell: Cell | None

    @property
    def tile(self) -> TileId:
        return self.collapsed_cell.resolved_tile

    @property
    def position(self) -> tuple[int, int]:
        return self.collapsed_cell.x, self.collapsed_cell.y

    def neighbor_cells(self) -> list[Cell]:
        return [cell for cell in self.narrowed_neighbors.values() if cell is not None]


class Solver:
    """Drives collapses over a :class:`Grid` using a catalog's compatibility table.

    Args:
        catalog:      Compatibility source.
        seed:         Seed for a fresh ``numpy`` generator (ignored if *rng* given).
        rng:          Injected random generator, for deterministic runs.
        tile_weights: Optional bias; tile id -> non-negative weight. Tiles not
                      listed weigh 1. ``None`` draws uniformly.
    """

    def __init__(
        self,
        catalog: TileCatalog,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
        tile_weights: Mapping[TileId, float] | None = None,
    ) -> None:
        self.catalog = catalog
        if rng is None and seed is not None and seed < 0:
            msg = f"Seed must be a non-negative integer, got {seed}"
            raise ConfigurationError(msg)
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        if tile_weights is not None:
            bad = {t: w for t, w in tile_weights.items() if w < 0 or t not in catalog}
            if bad:
                msg = f"Tile weights must be non-negative and name catalog tiles: {bad!r}"
                raise ConfigurationError(msg)
        self.tile_weights = dict(tile_weights) if tile_weights is not None else None

    # -- selection -----------------------------------------------------

    def choose_tile(self, candidates: tuple[TileId, ...]) -> TileId:
        if self.tile_weights is None:
            return candidates[int(self.rng.integers(len(candidates)))]
        weights = np.array([self.tile_weights.get(t, 1.0) for t in candidates], dtype=np.float64)
        total = weights.sum()
        if total <= 0:
            return candidates[int(self.rng.integers(len(candidates)))]
        return candidates[int(self.rng.choice(len(candidates), p=weights / total))]

    def select_next(self, grid: Grid) -> Cell | None:
        """Random cell among those tied at the lowest positive entropy."""
        open_cells = grid.cells_with_positive_entropy()
        if not open_cells:
            return None
        lowest = min(len(cell.candidates) for cell in open_cells)
        tied = [cell for cell in open_cells if len(cell.candidates) == lowest]
        return tied[int(self.rng.integers(len(tied)))]

    def random_start(self, grid: Grid) -> Cell:
        index = int(self.rng.integers(len(grid)))
        return grid.cell_at(index % grid.width, index // grid.width)

    # -- core step -----------------------------------------------------

    def collapse(self, grid: Grid, cell: Cell) -> StepResult:
        """Resolve *cell*, narrow its open neighbours, and pick the next cell.

        Raises:
            InvalidStateError: *cell* is resolved, empty, or not in *grid*.
            ContradictionError: a neighbour was left with no candidates.
        """
        x, y = grid.position_of(cell)
        if cell.is_resolved or not cell.candidates:
            msg = f"Cell ({x}, {y}) has no candidates left to collapse"
            raise InvalidStateError(msg)

        cell.resolved_tile = self.choose_tile(cell.candidates)
        cell.candidates = ()
        logger.debug("Collapsed (%d, %d) -> %r", x, y, cell.resolved_tile)

        neighbors = grid.neighbors(cell)
        for direction, neighbor in neighbors.items():
            if neighbor is None:
                continue
            allowed = self.catalog.compatible_neighbors(cell.resolved_tile, direction)
            neighbor.candidates = tuple(t for t in neighbor.candidates if t in allowed)

        for neighbor in neighbors.values():
            if neighbor is not None and not neighbor.candidates:
                logger.warning(
                    "Contradiction at (%d, %d) after collapsing (%d, %d) to %r",
                    neighbor.x, neighbor.y, x, y, cell.resolved_tile,
                )
                raise ContradictionError(neighbor.x, neighbor.y)

        return StepResult(cell, neighbors, self.select_next(grid))

    def run_to_completion(self, grid: Grid, starting_cell: Cell) -> list[StepResult]:
        """Collapse repeatedly from *starting_cell* until the grid is solved."""
        steps: list[StepResult] = []
        cell: Cell | None = starting_cell
        while cell is not None:
            result = self.collapse(grid, cell)
            steps.append(result)
            cell = result.next_cell
        logger.debug("Grid %dx%d solved in %d collapses", grid.width, grid.height, len(steps))
        return steps

    def solve(self, grid: Grid) -> list[StepResult]:
        return self.run_to_completion(grid, self.random_start(grid))
