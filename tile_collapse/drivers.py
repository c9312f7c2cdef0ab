"""Scheduling policies layered on :meth:`Solver.collapse`.

- **instant**: loop until solved (:func:`solve_instant`).
- **stepping / animated**: one collapse per trigger or frame
  (:func:`iter_steps`, :class:`Stepper`).
- **retry**: discard the grid and reseed after a contradiction
  (:func:`solve_with_retries`).
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from tile_collapse.catalog import TileCatalog
from tile_collapse.exceptions import ConfigurationError, ContradictionError
from tile_collapse.grid import Cell, Grid
from tile_collapse.solver import Solver, StepResult

logger = logging.getLogger(__name__)


def solve_instant(grid: Grid, solver: Solver, start: Cell | None = None) -> list[StepResult]:
    """Collapse to completion in one go; contradictions propagate."""
    if start is None:
        start = solver.random_start(grid)
    return solver.run_to_completion(grid, start)


def iter_steps(grid: Grid, solver: Solver, start: Cell | None = None) -> Iterator[StepResult]:
    """Yield one :class:`StepResult` per collapse; stop early by not iterating."""
    cell: Cell | None = start if start is not None else solver.random_start(grid)
    while cell is not None:
        result = solver.collapse(grid, cell)
        yield result
        cell = result.next_cell


class Stepper:
    """Button-driven policy: each :meth:`step` performs exactly one collapse."""

    def __init__(
        self,
        width: int,
        height: int,
        catalog: TileCatalog,
        seed: int | None = None,
    ) -> None:
        self.width = width
        self.height = height
        self.catalog = catalog
        self.seed = seed
        self.reset()

    def reset(self, seed: int | None = None) -> None:
        if seed is not None:
            self.seed = seed
        self.grid = Grid.from_catalog(self.width, self.height, self.catalog)
        self.solver = Solver(self.catalog, seed=self.seed)
        self.next_cell: Cell | None = self.solver.random_start(self.grid)
        self.last: StepResult | None = None
        self.error: ContradictionError | None = None
        self.steps = 0

    @property
    def done(self) -> bool:
        return self.next_cell is None or self.error is not None

    def step(self) -> StepResult | None:
        """Collapse the pending cell; ``None`` once solved or failed."""
        if self.done:
            return None
        try:
            self.last = self.solver.collapse(self.grid, self.next_cell)
        except ContradictionError as exc:
            self.error = exc
            raise
        self.next_cell = self.last.next_cell
        self.steps += 1
        return self.last

    def run(self) -> list[StepResult]:
        results = []
        while not self.done:
            results.append(self.step())
        return results


@dataclass
class SolveOutcome:
    """A solved grid plus how it was obtained."""

    grid: Grid
    steps: list[StepResult]
    attempts: int
    seed: int | None
    elapsed: float = 0.0


def solve_with_retries(
    width: int,
    height: int,
    catalog: TileCatalog,
    seed: int | None = None,
    max_attempts: int = 10,
    on_step: Callable[[Grid, StepResult], None] | None = None,
) -> SolveOutcome:
    """Solve a fresh grid, starting over on contradiction.

    Attempt *k* (0-based) uses ``seed + k`` when *seed* is given, so a
    seeded run stays reproducible. *on_step* is called after every collapse
    (e.g. to capture animation frames); frames of failed attempts are the
    caller's to discard.

    Raises:
        ConfigurationError: *max_attempts* is not positive.
        ContradictionError: every attempt hit a contradiction (the last one).
    """
    if max_attempts <= 0:
        msg = f"max_attempts must be positive, got {max_attempts}"
        raise ConfigurationError(msg)

    t0 = time.perf_counter()
    attempt = 0
    while True:
        attempt_seed = None if seed is None else seed + attempt
        attempt += 1
        grid = Grid.from_catalog(width, height, catalog)
        solver = Solver(catalog, seed=attempt_seed)
        steps: list[StepResult] = []
        try:
            for result in iter_steps(grid, solver):
                steps.append(result)
                if on_step is not None:
                    on_step(grid, result)
        except ContradictionError as exc:
            logger.info(
                "Attempt %d/%d failed after %d collapses: %s",
                attempt, max_attempts, len(steps), exc,
            )
            if attempt == max_attempts:
                raise
            continue

        elapsed = time.perf_counter() - t0
        logger.info(
            "Solved %dx%d in %d collapses (attempt %d, %.2f s)",
            width, height, len(steps), attempt, elapsed,
        )
        return SolveOutcome(grid, steps, attempt, attempt_seed, elapsed)
