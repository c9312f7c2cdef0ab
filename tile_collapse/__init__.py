"""
Tile Collapse
=============

Fill a grid with tiles so that every pair of neighbouring tiles fits,
using a wave-function-collapse style loop:

- **collapse** a random lowest-entropy cell to one of its candidates,
- **propagate** to its open neighbours (one hop),
- **select** the next cell, until solved or a contradiction stops the run.
"""

__version__ = "0.1.0"

from tile_collapse.catalog import BUILTIN_CATALOGS, Direction, TileCatalog, get_catalog
from tile_collapse.config import CollapseConfig
from tile_collapse.drivers import SolveOutcome, Stepper, iter_steps, solve_instant, solve_with_retries
from tile_collapse.exceptions import (
    ConfigurationError,
    ContradictionError,
    InvalidStateError,
    TileCollapseError,
)
from tile_collapse.grid import Cell, Grid
from tile_collapse.image_io import load_tile_dir, load_tile_images, save_gif, save_image
from tile_collapse.render import procedural_tile_images, render_grid
from tile_collapse.solver import Solver, StepResult

__all__ = [
    "BUILTIN_CATALOGS",
    "Cell",
    "CollapseConfig",
    "ConfigurationError",
    "ContradictionError",
    "Direction",
    "Grid",
    "InvalidStateError",
    "SolveOutcome",
    "Solver",
    "StepResult",
    "Stepper",
    "TileCatalog",
    "TileCollapseError",
    "get_catalog",
    "iter_steps",
    "load_tile_dir",
    "load_tile_images",
    "procedural_tile_images",
    "render_grid",
    "save_gif",
    "save_image",
    "solve_instant",
    "solve_with_retries",
]
