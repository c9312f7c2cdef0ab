"""Tests for catalogs, the grid, and the collapse solver."""

from __future__ import annotations

import numpy as np
import pytest

from tile_collapse.catalog import (
    BUILTIN_CATALOGS,
    PIPE_CONNECTORS,
    Direction,
    TileCatalog,
    get_catalog,
)
from tile_collapse.exceptions import ConfigurationError, ContradictionError, InvalidStateError
from tile_collapse.grid import Grid
from tile_collapse.solver import Solver

# -- Fixtures ----------------------------------------------------------

W, H = 6, 4  # non-square so x/y mix-ups show


@pytest.fixture
def pipes() -> TileCatalog:
    return get_catalog("pipes")


@pytest.fixture
def free_catalog() -> TileCatalog:
    """Three tiles that fit anywhere: never contradicts."""
    return TileCatalog.from_edges({t: (0, 0, 0, 0) for t in "abc"})


@pytest.fixture
def dead_end() -> TileCatalog:
    """One tile that allows nothing above or below it."""
    return TileCatalog.from_connectors({"A": [[], [], ["A"], ["A"]]})


def _trace(catalog: TileCatalog, seed: int, width: int = W, height: int = H) -> list:
    """Collapsed positions, tiles and next positions until done or failed."""
    grid = Grid.from_catalog(width, height, catalog)
    solver = Solver(catalog, seed=seed)
    cell = solver.random_start(grid)
    trace = []
    while cell is not None:
        try:
            result = solver.collapse(grid, cell)
        except ContradictionError as exc:
            trace.append(("contradiction", exc.position))
            break
        nxt = result.next_cell
        trace.append((result.position, result.tile, None if nxt is None else (nxt.x, nxt.y)))
        cell = nxt
    return trace


# -- Direction ---------------------------------------------------------

class TestDirection:
    def test_order(self) -> None:
        assert [d.name for d in Direction] == ["NORTH", "SOUTH", "EAST", "WEST"]

    def test_opposites(self) -> None:
        for d in Direction:
            assert d.opposite.opposite is d
            dx, dy = d.offset
            assert d.opposite.offset == (-dx, -dy)


# -- Catalog -----------------------------------------------------------

class TestCatalog:
    def test_builtins_are_symmetric(self) -> None:
        for name in BUILTIN_CATALOGS:
            catalog = get_catalog(name)
            for a in catalog.tile_ids:
                for d in Direction:
                    for b in catalog.compatible_neighbors(a, d):
                        assert a in catalog.compatible_neighbors(b, d.opposite), (name, a, b, d)

    def test_pipes_match_connector_table(self, pipes: TileCatalog) -> None:
        assert pipes.tile_ids == tuple(range(7))
        for tile, sides in enumerate(PIPE_CONNECTORS):
            for d in Direction:
                assert pipes.compatible_neighbors(tile, d) == tuple(sides[d])

    def test_edge_encoding_is_looser_than_connector_table(self, pipes: TileCatalog) -> None:
        edges = get_catalog("pipes-edges")
        assert edges.is_symmetric()
        for tile in pipes.tile_ids:
            for d in Direction:
                assert set(pipes.compatible_neighbors(tile, d)) <= set(edges.compatible_neighbors(tile, d))
        # Socket matching alone lets two vertical pipes sit side by side
        assert 1 in edges.compatible_neighbors(1, Direction.EAST)
        assert 1 not in pipes.compatible_neighbors(1, Direction.EAST)

    def test_quadrant_matching(self) -> None:
        quads = get_catalog("quadrants")
        assert len(quads) == 16
        assert quads.compatible_neighbors("AABB", Direction.NORTH) == ("AAAA", "ABAA", "BAAA", "BBAA")
        assert quads.compatible_neighbors("ABBA", Direction.EAST) == ("BAAB", "BABB", "BBAB", "BBBB")

    def test_blank_fits_everything(self) -> None:
        catalog = TileCatalog.from_edges(
            {"a": (1, 1, 1, 1), "c": (2, 2, 2, 2), "blank": (0, 0, 0, 0)},
            blank="blank",
        )
        assert catalog.compatible_neighbors("a", Direction.NORTH) == ("a", "blank")
        for d in Direction:
            assert catalog.compatible_neighbors("blank", d) == ("a", "c", "blank")
        assert catalog.is_symmetric()

    def test_patterns(self, pipes: TileCatalog) -> None:
        assert pipes.pattern(1) is None
        assert get_catalog("pipes-edges").pattern(1) == (1, 1, 0, 0)
        assert get_catalog("quadrants").pattern("ABBA") == ("A", "B", "B", "A")

    @pytest.mark.parametrize(
        "build",
        [
            lambda: TileCatalog.from_connectors([]),
            lambda: TileCatalog.from_quadrants([]),
            lambda: TileCatalog.from_quadrants(["ABA"]),
            lambda: TileCatalog.from_quadrants(["ABBA", "ABBA"]),
            lambda: TileCatalog.from_edges({"a": (0, 0, 0)}),
            lambda: TileCatalog.from_connectors({"a": [["zzz"], [], [], []]}),
            lambda: TileCatalog.from_connectors({"a": [["a"], [], [], []]}),
            lambda: TileCatalog.from_connectors({"a": [[], [], []]}),
            lambda: TileCatalog.from_edges({"a": (0, 0, 0, 0)}, blank="missing"),
            lambda: TileCatalog.from_edges({None: (0, 0, 0, 0)}),
            lambda: TileCatalog.from_connectors({None: [[], [], [], []]}),
            lambda: get_catalog("no-such-catalog"),
        ],
    )
    def test_malformed(self, build) -> None:
        with pytest.raises(ConfigurationError):
            build()

    def test_configuration_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            TileCatalog.from_quadrants(["A"])


# -- Grid --------------------------------------------------------------

class TestGrid:
    def test_initial_state(self, pipes: TileCatalog) -> None:
        grid = Grid.from_catalog(W, H, pipes)
        assert len(grid) == W * H
        assert grid.unresolved_count() == W * H
        assert not grid.is_solved()
        assert grid.tile_at(W - 1, H - 1) is None
        assert grid.candidate_count_at(2, 3) == 7
        assert len(grid.cells_with_positive_entropy()) == W * H

    @pytest.mark.parametrize("width, height", [(0, 3), (3, 0), (-1, 2), (2.5, 2), (True, 2)])
    def test_bad_dimensions(self, width, height) -> None:
        with pytest.raises(ConfigurationError):
            Grid(width, height, ["a"])

    def test_empty_tiles(self) -> None:
        with pytest.raises(ConfigurationError):
            Grid(2, 2, [])

    def test_none_tile_id(self) -> None:
        with pytest.raises(ConfigurationError):
            Grid(2, 1, ["a", None])

    def test_position_by_index(self, pipes: TileCatalog) -> None:
        grid = Grid.from_catalog(W, H, pipes)
        for index, cell in enumerate(grid):
            assert grid.position_of(cell) == (index % W, index // W)

    def test_position_of_foreign_cell(self, pipes: TileCatalog) -> None:
        grid = Grid.from_catalog(W, H, pipes)
        other = Grid.from_catalog(W, H, pipes)
        with pytest.raises(InvalidStateError):
            grid.position_of(other.cell_at(0, 0))

    def test_cell_at_out_of_bounds(self, pipes: TileCatalog) -> None:
        grid = Grid.from_catalog(W, H, pipes)
        with pytest.raises(InvalidStateError):
            grid.cell_at(W, 0)

    def test_corner_neighbors(self, pipes: TileCatalog) -> None:
        grid = Grid.from_catalog(W, H, pipes)
        n = grid.neighbors(grid.cell_at(0, 0))
        assert list(n) == list(Direction)
        assert n[Direction.NORTH] is None
        assert n[Direction.WEST] is None
        assert n[Direction.SOUTH] is grid.cell_at(0, 1)
        assert n[Direction.EAST] is grid.cell_at(1, 0)

    def test_resolved_neighbors_excluded(self, pipes: TileCatalog) -> None:
        grid = Grid.from_catalog(W, H, pipes)
        east = grid.cell_at(2, 1)
        east.resolved_tile, east.candidates = 0, ()
        n = grid.neighbors(grid.cell_at(1, 1))
        assert n[Direction.EAST] is None
        assert n[Direction.WEST] is grid.cell_at(0, 1)

    def test_numpy_maps(self, free_catalog: TileCatalog) -> None:
        grid = Grid.from_catalog(W, H, free_catalog)
        cell = grid.cell_at(4, 1)
        cell.resolved_tile, cell.candidates = "c", ()
        entropy = grid.entropy_map()
        tiles = grid.tile_index_map()
        assert entropy.shape == (H, W)
        assert entropy[1, 4] == 0
        assert entropy.sum() == 3 * (W * H - 1)
        assert tiles[1, 4] == 2
        assert (tiles == -1).sum() == W * H - 1


# -- Solver ------------------------------------------------------------

class TestCollapse:
    def test_blank_scenario(self) -> None:
        catalog = get_catalog("blank")
        grid = Grid.from_catalog(3, 3, catalog)
        solver = Solver(catalog, seed=0)
        steps = solver.run_to_completion(grid, solver.random_start(grid))
        assert len(steps) == 9
        assert all(grid.tile_at(x, y) == "blank" for x in range(3) for y in range(3))
        assert steps[-1].next_cell is None

    def test_contradiction_names_neighbor(self, dead_end: TileCatalog) -> None:
        grid = Grid.from_catalog(1, 2, dead_end)
        solver = Solver(dead_end, seed=0)
        with pytest.raises(ContradictionError) as info:
            solver.collapse(grid, grid.cell_at(0, 1))
        assert info.value.position == (0, 0)
        assert "(0, 0)" in str(info.value)
        assert grid.tile_at(0, 1) == "A"
        assert grid.candidate_count_at(0, 0) == 0

    def test_run_to_completion_stops_at_contradiction(self, dead_end: TileCatalog) -> None:
        grid = Grid.from_catalog(1, 3, dead_end)
        with pytest.raises(ContradictionError) as info:
            Solver(dead_end, seed=0).run_to_completion(grid, grid.cell_at(0, 1))
        assert info.value.position == (0, 0)
        assert grid.unresolved_count() == 2
        assert grid.tile_at(0, 2) is None

    def test_collapse_twice(self, pipes: TileCatalog) -> None:
        grid = Grid.from_catalog(W, H, pipes)
        solver = Solver(pipes, seed=1)
        cell = grid.cell_at(2, 2)
        solver.collapse(grid, cell)
        with pytest.raises(InvalidStateError):
            solver.collapse(grid, cell)

    def test_collapse_foreign_cell(self, pipes: TileCatalog) -> None:
        grid = Grid.from_catalog(W, H, pipes)
        other = Grid.from_catalog(W, H, pipes)
        with pytest.raises(InvalidStateError):
            Solver(pipes, seed=1).collapse(grid, other.cell_at(0, 0))

    def test_propagation_is_one_hop(self, pipes: TileCatalog) -> None:
        grid = Grid.from_catalog(W, H, pipes)
        result = Solver(pipes, seed=3).collapse(grid, grid.cell_at(2, 2))
        tile = result.tile
        for d, neighbor in result.narrowed_neighbors.items():
            assert neighbor is not None
            assert neighbor.candidates == pipes.compatible_neighbors(tile, d)
        assert grid.candidate_count_at(0, 0) == 7
        assert grid.candidate_count_at(2, 0) == 7

    def test_next_is_lowest_entropy(self, pipes: TileCatalog) -> None:
        grid = Grid.from_catalog(W, H, pipes)
        result = Solver(pipes, seed=4).collapse(grid, grid.cell_at(0, 0))
        lowest = grid.entropy_map()
        lowest = lowest[lowest > 0].min()
        assert result.next_cell.entropy == lowest
        assert result.next_cell in result.neighbor_cells()

    def test_tie_break_covers_all_tied_cells(self, free_catalog: TileCatalog) -> None:
        grid = Grid.from_catalog(3, 1, free_catalog)
        solver = Solver(free_catalog, seed=11)
        picks = {solver.select_next(grid).x for _ in range(200)}
        assert picks == {0, 1, 2}

    def test_select_next_prefers_constrained(self, free_catalog: TileCatalog) -> None:
        grid = Grid.from_catalog(W, H, free_catalog)
        grid.cell_at(5, 3).candidates = ("b",)
        assert Solver(free_catalog, seed=0).select_next(grid) is grid.cell_at(5, 3)

    def test_determinism(self, pipes: TileCatalog) -> None:
        assert _trace(pipes, seed=42) == _trace(pipes, seed=42)
        quads = get_catalog("quadrants")
        assert _trace(quads, seed=7) == _trace(quads, seed=7)

    def test_injected_rng(self, pipes: TileCatalog) -> None:
        a = Solver(pipes, rng=np.random.default_rng(9))
        b = Solver(pipes, seed=9)
        grid_a = Grid.from_catalog(W, H, pipes)
        grid_b = Grid.from_catalog(W, H, pipes)
        ra = a.collapse(grid_a, grid_a.cell_at(1, 1))
        rb = b.collapse(grid_b, grid_b.cell_at(1, 1))
        assert ra.tile == rb.tile
        assert ra.next_cell.x == rb.next_cell.x and ra.next_cell.y == rb.next_cell.y

    def test_completion(self, free_catalog: TileCatalog) -> None:
        grid = Grid.from_catalog(W, H, free_catalog)
        steps = Solver(free_catalog, seed=5).solve(grid)
        assert len(steps) == W * H
        assert grid.is_solved()
        assert len({s.position for s in steps}) == W * H

    def test_monotonic_and_resolved_invariant(self, pipes: TileCatalog) -> None:
        grid = Grid.from_catalog(W, H, pipes)
        solver = Solver(pipes, seed=8)
        cell = solver.random_start(grid)
        while cell is not None:
            before = {id(c): set(c.candidates) for c in grid}
            try:
                result = solver.collapse(grid, cell)
            except ContradictionError:
                break
            for c in grid:
                assert set(c.candidates) <= before[id(c)]
                assert c.is_resolved == (not c.candidates)
            cell = result.next_cell

    def test_weighted_bias(self, free_catalog: TileCatalog) -> None:
        grid = Grid.from_catalog(3, 3, free_catalog)
        Solver(free_catalog, seed=2, tile_weights={"a": 1.0, "b": 0.0, "c": 0.0}).solve(grid)
        assert {c.resolved_tile for c in grid} == {"a"}

    def test_bad_weights(self, free_catalog: TileCatalog) -> None:
        with pytest.raises(ConfigurationError):
            Solver(free_catalog, tile_weights={"a": -1.0})
        with pytest.raises(ConfigurationError):
            Solver(free_catalog, tile_weights={"zzz": 1.0})

    def test_negative_seed(self, free_catalog: TileCatalog) -> None:
        with pytest.raises(ConfigurationError):
            Solver(free_catalog, seed=-1)
