"""Rich command-line interface powered by Typer."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from tile_collapse.catalog import BUILTIN_CATALOGS, TileCatalog, get_catalog
from tile_collapse.config import CollapseConfig
from tile_collapse.drivers import Stepper, solve_with_retries
from tile_collapse.exceptions import ConfigurationError, ContradictionError
from tile_collapse.grid import Grid
from tile_collapse.image_io import load_tile_dir, save_gif, save_image
from tile_collapse.render import procedural_tile_images, render_grid
from tile_collapse.solver import StepResult

app = typer.Typer(
    name="tile-collapse",
    help="Generate tiled grid images with wave function collapse.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=True)],
    )


def _build_config(**kwargs) -> CollapseConfig:
    try:
        cfg = CollapseConfig(**kwargs).validate()
        get_catalog(cfg.catalog)
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(2) from exc
    return cfg


def _tile_images(tiles: TileCatalog, tiles_dir: Path | None, tile_size: int) -> dict:
    """Images from *tiles_dir* when given, otherwise drawn from the catalog."""
    if tiles_dir is None:
        return procedural_tile_images(tiles, tile_size)
    try:
        return load_tile_dir(tiles_dir, tiles.tile_ids, tile_size)
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(2) from exc


def _grid_table(grid: Grid, result: StepResult | None = None) -> Table:
    """Tiles of resolved cells and entropy of open ones, as a Rich table."""
    table = Table(show_header=False, show_lines=False, box=None, padding=(0, 1))
    for _ in range(grid.width):
        table.add_column(justify="center")
    active = result.collapsed_cell if result else None
    nearby = set(map(id, result.neighbor_cells())) if result else set()
    for y in range(grid.height):
        row = []
        for x in range(grid.width):
            cell = grid.cell_at(x, y)
            if cell.is_resolved:
                text = str(cell.resolved_tile)
                row.append(f"[bold green]{text}[/bold green]" if cell is active else text)
            elif id(cell) in nearby:
                row.append(f"[magenta]{len(cell.candidates)}[/magenta]")
            else:
                row.append(f"[dim]{len(cell.candidates)}[/dim]")
        table.add_row(*row)
    return table


# Defaults come from CollapseConfig - single source of truth
_DEFAULTS = CollapseConfig()


# -- generate command --------------------------------------------------

@app.command()
def generate(
    output: Path = typer.Option(
        _DEFAULTS.output_dir / f"tiles.{_DEFAULTS.output_format}", "--output", "-o",
        help="Where to save the finished image",
    ),
    width: int = typer.Option(_DEFAULTS.width, "--width", "-w", help="Grid columns"),
    height: int = typer.Option(_DEFAULTS.height, "--height", "-h", help="Grid rows"),
    catalog: str = typer.Option(
        _DEFAULTS.catalog, "--catalog", "-c",
        help=f"Tile set: {', '.join(BUILTIN_CATALOGS)}",
    ),
    seed: int | None = typer.Option(_DEFAULTS.seed, "--seed", "-s", help="Random seed (None = random)"),
    max_attempts: int = typer.Option(
        _DEFAULTS.max_attempts, "--attempts", "-a", help="Fresh grids to try on contradiction",
    ),
    tile_size: int = typer.Option(_DEFAULTS.tile_size, "--tile-size", "-t", help="Tile size in pixels"),
    guides: bool = typer.Option(_DEFAULTS.show_guides, "--guides/--no-guides", help="Draw grid lines"),
    tiles_dir: Path | None = typer.Option(
        None, "--tiles", help="Folder with one image per tile, in catalog order",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Solve a grid in one go and save it as an image."""
    _setup_logging(verbose)
    cfg = _build_config(
        width=width, height=height, catalog=catalog, seed=seed,
        max_attempts=max_attempts, tile_size=tile_size, show_guides=guides,
    )
    tiles = get_catalog(cfg.catalog)
    tile_images = _tile_images(tiles, tiles_dir, cfg.tile_size)

    console.print(Panel.fit(
        f"[bold]TILE COLLAPSE[/bold]\n"
        f"Grid: {cfg.width}x{cfg.height}  |  Catalog: {cfg.catalog} ({len(tiles)} tiles)\n"
        f"Seed: {cfg.seed}  |  Attempts: {cfg.max_attempts}",
        border_style="cyan",
    ))

    try:
        outcome = solve_with_retries(
            cfg.width, cfg.height, tiles, seed=cfg.seed, max_attempts=cfg.max_attempts,
        )
    except ContradictionError as exc:
        console.print(f"[red]✗ Gave up after {cfg.max_attempts} attempts:[/red] {exc}")
        raise typer.Exit(1) from exc

    image = render_grid(
        outcome.grid,
        tile_images,
        cfg.tile_size,
        show_guides=cfg.show_guides,
    )
    save_image(image, output)

    console.print(
        f"  [green]✓[/green] {output}  "
        f"[dim]{len(outcome.steps)} collapses  attempts={outcome.attempts}"
        f"  time={outcome.elapsed:.2f}s[/dim]"
    )


# -- animate command ---------------------------------------------------

@app.command()
def animate(
    output: Path = typer.Option(
        _DEFAULTS.output_dir / "tiles.gif", "--output", "-o", help="Where to save the GIF",
    ),
    width: int = typer.Option(_DEFAULTS.width, "--width", "-w"),
    height: int = typer.Option(_DEFAULTS.height, "--height", "-h"),
    catalog: str = typer.Option(_DEFAULTS.catalog, "--catalog", "-c"),
    seed: int | None = typer.Option(_DEFAULTS.seed, "--seed", "-s"),
    max_attempts: int = typer.Option(_DEFAULTS.max_attempts, "--attempts", "-a"),
    tile_size: int = typer.Option(_DEFAULTS.tile_size, "--tile-size", "-t"),
    frame_ms: int = typer.Option(_DEFAULTS.gif_frame_ms, "--frame-ms", help="Milliseconds per collapse"),
    entropy: bool = typer.Option(True, "--entropy/--no-entropy", help="Overlay candidate counts"),
    guides: bool = typer.Option(True, "--guides/--no-guides"),
    tiles_dir: Path | None = typer.Option(None, "--tiles", help="Folder with one image per tile"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Record one frame per collapse and save the run as a GIF."""
    _setup_logging(verbose)
    cfg = _build_config(
        width=width, height=height, catalog=catalog, seed=seed, max_attempts=max_attempts,
        tile_size=tile_size, gif_frame_ms=frame_ms, show_entropy=entropy, show_guides=guides,
    )
    tiles = get_catalog(cfg.catalog)
    tile_images = _tile_images(tiles, tiles_dir, cfg.tile_size)
    frames = []
    attempt_grid: list[Grid] = []

    def _capture(grid: Grid, result: StepResult) -> None:
        # Frames from a failed attempt are dropped when the next grid starts.
        if not attempt_grid or attempt_grid[0] is not grid:
            attempt_grid[:] = [grid]
            frames.clear()
        frames.append(render_grid(
            grid, tile_images, cfg.tile_size,
            show_entropy=cfg.show_entropy,
            show_guides=cfg.show_guides,
            active_cell=result.collapsed_cell,
            neighbor_cells=result.neighbor_cells(),
        ))

    try:
        outcome = solve_with_retries(
            cfg.width, cfg.height, tiles, seed=cfg.seed,
            max_attempts=cfg.max_attempts, on_step=_capture,
        )
    except ContradictionError as exc:
        console.print(f"[red]✗ Gave up after {cfg.max_attempts} attempts:[/red] {exc}")
        raise typer.Exit(1) from exc

    frames.append(render_grid(outcome.grid, tile_images, cfg.tile_size, show_guides=cfg.show_guides))
    save_gif(frames, output, frame_ms=cfg.gif_frame_ms)
    console.print(
        f"[green]✓[/green] Saved to {output}  "
        f"[dim]{len(frames)} frames  attempts={outcome.attempts}[/dim]"
    )


# -- step command ------------------------------------------------------

@app.command()
def step(
    width: int = typer.Option(8, "--width", "-w"),
    height: int = typer.Option(8, "--height", "-h"),
    catalog: str = typer.Option(_DEFAULTS.catalog, "--catalog", "-c"),
    seed: int | None = typer.Option(_DEFAULTS.seed, "--seed", "-s"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Collapse one cell per Enter press; type [bold]q[/bold] to quit."""
    _setup_logging(verbose)
    cfg = _build_config(width=width, height=height, catalog=catalog, seed=seed)
    stepper = Stepper(cfg.width, cfg.height, get_catalog(cfg.catalog), seed=cfg.seed)

    console.print(_grid_table(stepper.grid))
    while not stepper.done:
        if console.input("[dim]Enter = step, q = quit[/dim] ").strip().lower() == "q":
            raise typer.Exit(0)
        try:
            result = stepper.step()
        except ContradictionError as exc:
            console.print(_grid_table(stepper.grid))
            console.print(f"[red]✗ Contradiction:[/red] {exc}")
            raise typer.Exit(1) from exc
        console.rule(f"[cyan]Step {stepper.steps}: ({result.position[0]}, {result.position[1]}) -> {result.tile}")
        console.print(_grid_table(stepper.grid, result))

    console.print(f"[green]✓[/green] Solved in {stepper.steps} steps")


# -- catalogs command --------------------------------------------------

@app.command()
def catalogs() -> None:
    """List the built-in tile catalogs."""
    table = Table(title="Tile catalogs")
    table.add_column("Name", style="bold")
    table.add_column("Encoding")
    table.add_column("Tiles", justify="right")
    for name in BUILTIN_CATALOGS:
        tiles = get_catalog(name)
        table.add_row(name, tiles.encoding, str(len(tiles)))
    console.print(table)


if __name__ == "__main__":
    app()
