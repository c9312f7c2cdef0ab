"""Tile image loading and still / animation saving."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

from PIL import Image

from tile_collapse.catalog import TileId
from tile_collapse.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES: frozenset[str] = frozenset(
    {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tiff", ".tif", ".webp"}
)


def load_tile_images(
    paths: Mapping[TileId, str | Path] | Sequence[str | Path],
    tile_size: int = 40,
) -> dict[TileId, Image.Image]:
    """Load one image per tile and resize it to ``tile_size`` square.

    A plain sequence is keyed by position, matching integer tile ids.

    Returns:
        tile id -> RGBA image.
    """
    if not isinstance(paths, Mapping):
        paths = dict(enumerate(paths))
    images = {}
    for tile, path in paths.items():
        img = Image.open(path).convert("RGBA")
        images[tile] = img.resize((tile_size, tile_size), Image.NEAREST)
    logger.debug("Loaded %d tile images", len(images))
    return images


def load_tile_dir(
    folder: str | Path,
    tile_ids: Sequence[TileId],
    tile_size: int = 40,
) -> dict[TileId, Image.Image]:
    """Load a folder holding one image per tile.

    Files are matched to *tile_ids* in sorted filename order, so name them
    e.g. ``00.png``, ``01.png`` ... in catalog order.

    Raises:
        ConfigurationError: the folder is missing or its image count differs
            from the number of tiles.
    """
    folder = Path(folder)
    if not folder.is_dir():
        msg = f"Tile folder not found: {folder}"
        raise ConfigurationError(msg)
    paths = sorted(
        f for f in folder.iterdir()
        if f.is_file() and f.suffix.lower() in IMAGE_SUFFIXES
    )
    if len(paths) != len(tile_ids):
        msg = f"{folder} holds {len(paths)} images but the catalog has {len(tile_ids)} tiles"
        raise ConfigurationError(msg)
    return load_tile_images(dict(zip(tile_ids, paths)), tile_size)


def save_image(image: Image.Image, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    image.save(path)
    return path


def save_gif(
    frames: Sequence[Image.Image],
    path: str | Path,
    frame_ms: int = 60,
    hold_last_ms: int = 1500,
) -> Path:
    """Save *frames* as a looping GIF; the final frame is held longer."""
    if not frames:
        msg = "Cannot save an animation with no frames"
        raise ValueError(msg)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    rgb = [f.convert("RGB") for f in frames]
    durations = [frame_ms] * (len(rgb) - 1) + [hold_last_ms]
    rgb[0].save(
        path,
        save_all=True,
        append_images=rgb[1:],
        duration=durations,
        loop=0,
    )
    logger.info("Animation saved: %s (%d frames)", path, len(rgb))
    return path
