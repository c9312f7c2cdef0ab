"""Procedural tile art and grid compositing with debug overlays."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from PIL import Image, ImageDraw, ImageFont

from tile_collapse.catalog import Direction, TileCatalog, TileId
from tile_collapse.grid import Cell, Grid

BACKGROUND = (250, 249, 246, 255)
PIPE_COLOR = (38, 38, 38, 255)
NEIGHBOR_COLOR = (150, 0, 150, 64)
ACTIVE_COLOR = (0, 249, 187, 128)
GUIDE_COLOR = (0, 0, 0, 255)
ENTROPY_COLOR = (0, 0, 0, 102)

# Quadrant symbols are coloured in order of first appearance in the catalog.
SYMBOL_COLORS = [
    (38, 92, 66, 255),
    (226, 232, 206, 255),
    (255, 127, 17, 255),
    (58, 154, 255, 255),
    (172, 191, 164, 255),
    (218, 61, 32, 255),
]


def _font(size: int) -> ImageFont.ImageFont:
    try:
        return ImageFont.truetype("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf", size)
    except OSError:
        return ImageFont.load_default()


def _open_sides(catalog: TileCatalog, tile: TileId) -> list[Direction]:
    """Sides to draw a pipe on.

    Edge catalogs use truthy labels. Connector catalogs treat the first tile
    as empty: a side is open when the empty tile may not sit on that side.
    """
    if catalog.encoding == "edges":
        labels = catalog.pattern(tile)
        return [d for d in Direction if labels[d]]
    empty = catalog.tile_ids[0]
    return [d for d in Direction if empty not in catalog.compatible_neighbors(tile, d)]


def procedural_tile_images(catalog: TileCatalog, tile_size: int = 40) -> dict[TileId, Image.Image]:
    """Draw one RGBA image per tile from the catalog's own encoding.

    Quadrant tiles are painted per quadrant; edge and connector tiles are
    drawn as pipes from the centre to each open side, on a transparent
    background so cell highlights show through.
    """
    images: dict[TileId, Image.Image] = {}
    half = tile_size // 2

    if catalog.encoding == "quadrants":
        symbols: list = []
        for tile in catalog.tile_ids:
            symbols.extend(s for s in catalog.pattern(tile) if s not in symbols)
        colors = {s: SYMBOL_COLORS[i % len(SYMBOL_COLORS)] for i, s in enumerate(symbols)}
        boxes = [
            (0, 0, half, half),
            (half, 0, tile_size, half),
            (half, half, tile_size, tile_size),
            (0, half, half, tile_size),
        ]
        for tile in catalog.tile_ids:
            img = Image.new("RGBA", (tile_size, tile_size))
            draw = ImageDraw.Draw(img)
            for symbol, (x0, y0, x1, y1) in zip(catalog.pattern(tile), boxes, strict=True):
                draw.rectangle((x0, y0, x1 - 1, y1 - 1), fill=colors[symbol])
            images[tile] = img
        return images

    width = max(2, tile_size // 5)
    for tile in catalog.tile_ids:
        img = Image.new("RGBA", (tile_size, tile_size), (0, 0, 0, 0))
        draw = ImageDraw.Draw(img)
        sides = _open_sides(catalog, tile)
        for d in sides:
            dx, dy = d.offset
            draw.line((half, half, half + dx * half, half + dy * half), fill=PIPE_COLOR, width=width)
        if sides:
            r = width // 2
            draw.ellipse((half - r, half - r, half + r, half + r), fill=PIPE_COLOR)
        images[tile] = img
    return images


def _fill_cell(draw: ImageDraw.ImageDraw, cell: Cell, tile_size: int, color: tuple) -> None:
    x0, y0 = cell.x * tile_size, cell.y * tile_size
    draw.rectangle((x0, y0, x0 + tile_size - 1, y0 + tile_size - 1), fill=color)


def render_grid(
    grid: Grid,
    tile_images: Mapping[TileId, Image.Image],
    tile_size: int = 40,
    show_entropy: bool = False,
    show_guides: bool = False,
    active_cell: Cell | None = None,
    neighbor_cells: Iterable[Cell] | None = None,
) -> Image.Image:
    """Composite the current grid state into one RGBA image.

    Layer order: background, neighbour highlight, active highlight, tiles,
    entropy counts on open cells, guide lines.
    """
    size = (grid.width * tile_size, grid.height * tile_size)
    canvas = Image.new("RGBA", size, BACKGROUND)

    overlay = Image.new("RGBA", size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    for cell in neighbor_cells or ():
        _fill_cell(draw, cell, tile_size, NEIGHBOR_COLOR)
    if active_cell is not None:
        _fill_cell(draw, active_cell, tile_size, ACTIVE_COLOR)
    canvas = Image.alpha_composite(canvas, overlay)

    for cell in grid:
        if cell.is_resolved:
            tile_img = tile_images[cell.resolved_tile]
            if tile_img.size != (tile_size, tile_size):
                tile_img = tile_img.resize((tile_size, tile_size), Image.NEAREST)
            canvas.alpha_composite(tile_img.convert("RGBA"), (cell.x * tile_size, cell.y * tile_size))

    draw = ImageDraw.Draw(canvas)
    if show_entropy:
        font = _font(max(8, tile_size // 2))
        text_layer = Image.new("RGBA", size, (0, 0, 0, 0))
        text_draw = ImageDraw.Draw(text_layer)
        for cell in grid:
            if cell.candidates:
                label = str(len(cell.candidates))
                bbox = text_draw.textbbox((0, 0), label, font=font)
                tx = cell.x * tile_size + (tile_size - (bbox[2] - bbox[0])) // 2 - bbox[0]
                ty = cell.y * tile_size + (tile_size - (bbox[3] - bbox[1])) // 2 - bbox[1]
                text_draw.text((tx, ty), label, fill=ENTROPY_COLOR, font=font)
        canvas = Image.alpha_composite(canvas, text_layer)
        draw = ImageDraw.Draw(canvas)

    if show_guides:
        for y in range(1, grid.height):
            draw.line((0, y * tile_size, size[0], y * tile_size), fill=GUIDE_COLOR)
        for x in range(1, grid.width):
            draw.line((x * tile_size, 0, x * tile_size, size[1]), fill=GUIDE_COLOR)

    return canvas
