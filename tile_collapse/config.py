"""Centralised configuration via a frozen dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from tile_collapse.exceptions import ConfigurationError


@dataclass(frozen=True)
class CollapseConfig:
    """All tuneable parameters for a generation run.

    Attributes:
        width:          Grid columns.
        height:         Grid rows.
        catalog:        Built-in catalog name (see catalog.BUILTIN_CATALOGS).
        seed:           Random seed (None = non-deterministic).
        max_attempts:   Fresh grids to try before giving up on contradictions.
        tile_size:      Pixel size of one tile in rendered output.
        show_entropy:   Overlay remaining candidate counts on open cells.
        show_guides:    Draw grid lines.
        gif_frame_ms:   Frame duration of the step-by-step animation.
        output_format:  Image format for saved stills.
        output_dir:     Folder for results.
    """

    # Grid
    width: int = 15
    height: int = 15
    catalog: str = "pipes"

    # Solver
    seed: int | None = None
    max_attempts: int = 10

    # Rendering
    tile_size: int = 40
    show_entropy: bool = False
    show_guides: bool = False
    gif_frame_ms: int = 60

    # Output
    output_format: str = "png"
    output_dir: Path = field(default_factory=lambda: Path("output"))

    def validate(self) -> CollapseConfig:
        for name in ("width", "height", "max_attempts", "tile_size", "gif_frame_ms"):
            value = getattr(self, name)
            if value <= 0:
                msg = f"{name} must be positive, got {value}"
                raise ConfigurationError(msg)
        if self.seed is not None and self.seed < 0:
            msg = f"seed must be non-negative, got {self.seed}"
            raise ConfigurationError(msg)
        return self


def parse_seed(text: str) -> int | None:
    """Non-negative integer seed from user text; ``None`` (random) otherwise."""
    try:
        value = int(text.strip())
    except ValueError:
        return None
    return value if value >= 0 else None
