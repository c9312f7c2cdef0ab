"""Tile catalogs: which tiles may sit next to which, on each side.

A catalog is built once from one of three encodings and never changes:

- **connectors**: an explicit list of allowed neighbour ids per side.
- **quadrants**: each tile id is a 4-symbol string (top-left, top-right,
  bottom-right, bottom-left); touching quadrants must match.
- **edges**: each tile carries one label per side; touching labels must match.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence
from enum import IntEnum
from itertools import product

from tile_collapse.exceptions import ConfigurationError

TileId = Hashable


class Direction(IntEnum):
    """Grid directions, in the order used to index per-side data."""

    NORTH = 0
    SOUTH = 1
    EAST = 2
    WEST = 3

    @property
    def opposite(self) -> Direction:
        return _OPPOSITES[self]

    @property
    def offset(self) -> tuple[int, int]:
        """(dx, dy) step towards this side; y grows downwards."""
        return _OFFSETS[self]


_OPPOSITES = {
    Direction.NORTH: Direction.SOUTH,
    Direction.SOUTH: Direction.NORTH,
    Direction.EAST: Direction.WEST,
    Direction.WEST: Direction.EAST,
}

_OFFSETS = {
    Direction.NORTH: (0, -1),
    Direction.SOUTH: (0, 1),
    Direction.EAST: (1, 0),
    Direction.WEST: (-1, 0),
}

# Quadrant index pairs (this tile, neighbour) that touch across each side.
# Quadrants are ordered top-left, top-right, bottom-right, bottom-left.
_TOUCHING_QUADRANTS: dict[Direction, tuple[tuple[int, int], ...]] = {
    Direction.NORTH: ((0, 3), (1, 2)),
    Direction.SOUTH: ((3, 0), (2, 1)),
    Direction.EAST: ((1, 0), (2, 3)),
    Direction.WEST: ((0, 1), (3, 2)),
}


class TileCatalog:
    """Closed set of tile ids plus their precomputed compatibility table.

    Use one of the ``from_*`` constructors rather than calling this directly.
    Every per-direction result is a tuple in catalog order.
    """

    def __init__(
        self,
        tile_ids: Sequence[TileId],
        allowed: Mapping[TileId, Sequence[Iterable[TileId]]],
        encoding: str = "connectors",
        patterns: Mapping[TileId, tuple] | None = None,
        blank: TileId | None = None,
    ) -> None:
        self._tile_ids = _check_tile_ids(tile_ids)
        self.encoding = encoding
        self.blank = blank
        self._patterns = dict(patterns or {})

        sets = {tile: [set(allowed[tile][d]) for d in Direction] for tile in self._tile_ids}
        if blank is not None:
            if blank not in sets:
                msg = f"Blank tile {blank!r} is not in the catalog"
                raise ConfigurationError(msg)
            for tile, sides in sets.items():
                for side in sides:
                    side.update(self._tile_ids if tile == blank else (blank,))

        self._table: dict[TileId, tuple[tuple[TileId, ...], ...]] = {
            tile: tuple(
                tuple(t for t in self._tile_ids if t in sides[d]) for d in Direction
            )
            for tile, sides in sets.items()
        }

    # -- constructors --------------------------------------------------

    @classmethod
    def from_connectors(
        cls,
        table: Mapping[TileId, Sequence[Iterable[TileId]]] | Sequence[Sequence[Iterable[TileId]]],
        blank: TileId | None = None,
    ) -> TileCatalog:
        """Build from explicit allowed-neighbour lists (N, S, E, W per tile).

        A plain sequence is keyed by position, so ``table[3]`` describes
        tile ``3``. The table must reference only known tiles and be
        symmetric.
        """
        if not isinstance(table, Mapping):
            table = dict(enumerate(table))
        tile_ids = _check_tile_ids(list(table))

        known = set(tile_ids)
        allowed: dict[TileId, list[list[TileId]]] = {}
        for tile, sides in table.items():
            sides = list(sides)
            if len(sides) != len(Direction):
                msg = f"Tile {tile!r} needs 4 neighbour lists (N, S, E, W), got {len(sides)}"
                raise ConfigurationError(msg)
            allowed[tile] = [list(side) for side in sides]
            for side in allowed[tile]:
                unknown = [t for t in side if t not in known]
                if unknown:
                    msg = f"Tile {tile!r} references unknown tiles {unknown!r}"
                    raise ConfigurationError(msg)

        catalog = cls(tile_ids, allowed, encoding="connectors", blank=blank)
        asymmetric = catalog.find_asymmetry()
        if asymmetric is not None:
            a, b, d = asymmetric
            msg = (
                f"Tile {b!r} is allowed {d.name} of {a!r} but {a!r} is not "
                f"allowed {d.opposite.name} of {b!r}"
            )
            raise ConfigurationError(msg)
        return catalog

    @classmethod
    def from_quadrants(
        cls,
        patterns: Iterable[str],
        blank: str | None = None,
    ) -> TileCatalog:
        """Build from 4-symbol quadrant strings; each string is its own id."""
        tile_ids = _check_tile_ids(list(patterns))
        for pattern in tile_ids:
            if not isinstance(pattern, str) or len(pattern) != 4:
                msg = f"Quadrant pattern must be a 4-character string, got {pattern!r}"
                raise ConfigurationError(msg)

        allowed = {
            a: [
                [
                    b for b in tile_ids
                    if all(a[mine] == b[theirs] for mine, theirs in _TOUCHING_QUADRANTS[d])
                ]
                for d in Direction
            ]
            for a in tile_ids
        }
        patterns_by_id = {p: tuple(p) for p in tile_ids}
        return cls(tile_ids, allowed, encoding="quadrants", patterns=patterns_by_id, blank=blank)

    @classmethod
    def from_edges(
        cls,
        edges: Mapping[TileId, Sequence[Hashable]],
        blank: TileId | None = None,
    ) -> TileCatalog:
        """Build from one edge label per side (N, S, E, W); labels must match."""
        tile_ids = _check_tile_ids(list(edges))
        labels: dict[TileId, tuple] = {}
        for tile in tile_ids:
            sides = tuple(edges[tile])
            if len(sides) != len(Direction):
                msg = f"Tile {tile!r} needs 4 edge labels (N, S, E, W), got {len(sides)}"
                raise ConfigurationError(msg)
            labels[tile] = sides

        allowed = {
            a: [
                [b for b in tile_ids if labels[a][d] == labels[b][d.opposite]]
                for d in Direction
            ]
            for a in tile_ids
        }
        return cls(tile_ids, allowed, encoding="edges", patterns=labels, blank=blank)

    # -- queries -------------------------------------------------------

    @property
    def tile_ids(self) -> tuple[TileId, ...]:
        return self._tile_ids

    def __len__(self) -> int:
        return len(self._tile_ids)

    def __contains__(self, tile: object) -> bool:
        return tile in self._table

    def __repr__(self) -> str:
        return f"TileCatalog(encoding={self.encoding!r}, tiles={len(self)})"

    def compatible_neighbors(self, tile: TileId, direction: Direction) -> tuple[TileId, ...]:
        """Tiles that may occupy the cell on *direction* side of *tile*."""
        try:
            return self._table[tile][Direction(direction)]
        except KeyError:
            msg = f"Unknown tile {tile!r}"
            raise ConfigurationError(msg) from None

    def pattern(self, tile: TileId) -> tuple | None:
        """Quadrant symbols or edge labels of *tile*; ``None`` for connectors."""
        return self._patterns.get(tile)

    def find_asymmetry(self) -> tuple[TileId, TileId, Direction] | None:
        """First ``(a, b, d)`` where b is allowed on side d of a but not vice versa."""
        for a in self._tile_ids:
            for d in Direction:
                for b in self._table[a][d]:
                    if a not in self._table[b][d.opposite]:
                        return a, b, d
        return None

    def is_symmetric(self) -> bool:
        return self.find_asymmetry() is None


def _check_tile_ids(tile_ids: Sequence[TileId]) -> tuple[TileId, ...]:
    tile_ids = tuple(tile_ids)
    if not tile_ids:
        msg = "Tile catalog is empty"
        raise ConfigurationError(msg)
    if None in tile_ids:
        msg = "None cannot be used as a tile id"
        raise ConfigurationError(msg)
    if len(set(tile_ids)) != len(tile_ids):
        msg = f"Tile catalog has duplicate ids: {list(tile_ids)!r}"
        raise ConfigurationError(msg)
    return tile_ids


# -- built-in catalogs -------------------------------------------------

# Allowed neighbours per side (N, S, E, W). Tile 0 is empty, 1 vertical,
# 2 horizontal, 3 south+east, 4 north+west, 5 north+east, 6 south+west.
PIPE_CONNECTORS: list[list[list[int]]] = [
    [[0, 2, 4, 5], [0, 2, 3, 6], [0, 1, 3, 5], [0, 1, 4, 6]],
    [[1, 3, 6], [1, 4, 5], [0, 3, 5], [0, 4, 6]],
    [[0, 2, 4, 5], [0, 2, 3, 6], [2, 4, 6], [2, 3, 5]],
    [[0, 2, 4, 5], [1, 4, 5], [2, 4, 6], [0, 1, 4, 6]],
    [[1, 3, 6], [0, 2, 3, 6], [0, 1, 3, 5], [2, 3, 5]],
    [[1, 3, 6], [0, 2, 3, 6], [2, 4, 6], [0, 1, 4, 6]],
    [[0, 2, 4, 5], [1, 4, 5], [0, 1, 3, 5], [2, 3, 5]],
]

# The pipe shapes as edge sockets (N, S, E, W): 1 = pipe opening. Plain socket
# matching is looser than PIPE_CONNECTORS, which also keeps two vertical
# pipes from sitting side by side.
PIPE_EDGES: dict[int, tuple[int, int, int, int]] = {
    0: (0, 0, 0, 0),
    1: (1, 1, 0, 0),
    2: (0, 0, 1, 1),
    3: (0, 1, 1, 0),
    4: (1, 0, 0, 1),
    5: (1, 0, 1, 0),
    6: (0, 1, 0, 1),
}

QUADRANT_PATTERNS: list[str] = ["".join(p) for p in product("AB", repeat=4)]

BUILTIN_CATALOGS: dict[str, Callable[[], TileCatalog]] = {
    "pipes": lambda: TileCatalog.from_connectors(PIPE_CONNECTORS),
    "pipes-edges": lambda: TileCatalog.from_edges(PIPE_EDGES),
    "quadrants": lambda: TileCatalog.from_quadrants(QUADRANT_PATTERNS),
    "blank": lambda: TileCatalog.from_connectors({"blank": [[], [], [], []]}, blank="blank"),
}


def get_catalog(name: str) -> TileCatalog:
    """Build one of :data:`BUILTIN_CATALOGS` by name."""
    try:
        factory = BUILTIN_CATALOGS[name]
    except KeyError:
        msg = f"Unknown catalog {name!r}. Choose from: {', '.join(BUILTIN_CATALOGS)}"
        raise ConfigurationError(msg) from None
    return factory()
