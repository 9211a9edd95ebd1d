"""
Registry Module for the Tile Collapse Solver

This module validates a raw tile catalogue, expands rotatable tiles into one
concrete tile per allowed angle, and builds the lookup tables the solver uses
for fast edge matching.
"""

from collections import defaultdict

from tilecollapse.errors import (
    DuplicateTileNameError, InvalidTileError, MissingComplementError
)
from tilecollapse.tile import tile_problem


class TileRegistry:
    """
    Validated and expanded tile catalogue with edge lookup tables.

    Attributes:
        tileset: The tileset capability the registry was built from
        tiles: Expanded tiles, one per concrete orientation
        by_name: Maps tile name to tile
        by_edge: Maps (direction, edge label) to the frozenset of tiles
                 carrying that label on that side
    """

    def __init__(self, raw_tiles, tileset):
        """
        Build the registry.

        Args:
            raw_tiles: Canonical tiles, before rotation expansion
            tileset: Tileset capability providing complement and rotate

        Raises:
            InvalidTileError, DuplicateTileNameError, MissingComplementError
        """
        self.tileset = tileset
        self.raw_tiles = tuple(raw_tiles)

        self.tiles = ()
        self.by_name = {}
        self.by_edge = {}

        self._preprocess_tiles()

    def _preprocess_tiles(self):
        """Validate, expand and index the raw tiles."""
        self._validate_structure(self.raw_tiles)
        self._check_unique_names(self.raw_tiles)

        expanded = self._expand_rotations(self.raw_tiles)
        # Derived names may clash with a raw tile name
        self._check_unique_names(expanded)
        self._check_complements(expanded)

        self.tiles = tuple(expanded)
        self.by_name = {tile.name: tile for tile in self.tiles}

        # Create lookup by side and edge label
        by_edge = defaultdict(set)
        for tile in self.tiles:
            for direction, label in tile.sides.items():
                by_edge[(direction, label)].add(tile)
        self.by_edge = {key: frozenset(tiles) for key, tiles in by_edge.items()}

    def _validate_structure(self, tiles):
        directions = set(self.tileset.directions)
        for tile in tiles:
            problem = tile_problem(tile, self.tileset.angles)
            if problem is None:
                missing = [d for d in self.tileset.directions if d not in tile.sides]
                unknown = sorted(set(tile.sides) - directions)
                if missing:
                    problem = f"no side for {', '.join(missing)}"
                elif unknown:
                    problem = f"unknown direction {', '.join(unknown)}"
            if problem is not None:
                raise InvalidTileError(tile, problem)

    def _check_unique_names(self, tiles):
        seen = set()
        for tile in tiles:
            if tile.name in seen:
                raise DuplicateTileNameError(tile.name)
            seen.add(tile.name)

    def _expand_rotations(self, tiles):
        """
        Generate one concrete tile per listed angle of every rotatable tile.

        Args:
            tiles: Validated canonical tiles

        Returns:
            List of tiles; rotated variants are named "<name>_<angle>"
        """
        expanded = []
        for tile in tiles:
            if not tile.rotations:
                expanded.append(tile)
                continue
            for angle in tile.rotations:
                rotated = self.tileset.rotate(tile, angle)
                expanded.append(rotated.renamed(f"{tile.name}_{angle}"))
        return expanded

    def _check_complements(self, tiles):
        """Every side must be matched by some tile on the opposite side."""
        offered = set()
        for tile in tiles:
            for direction, label in tile.sides.items():
                offered.add((direction, label))

        for tile in tiles:
            for direction in self.tileset.directions:
                label = tile.sides[direction]
                if (self.tileset.complement(direction), label) not in offered:
                    raise MissingComplementError(tile, direction, label)

    def get_valid_tiles(self, direction, label):
        """
        Get all tiles that carry `label` on their `direction` side.

        Args:
            direction: Side of the tile
            label: Edge label

        Returns:
            Frozenset of tiles (empty if none)
        """
        return self.by_edge.get((direction, label), frozenset())

    def get_matching_side(self, direction):
        """Return the side of a neighbour that faces `direction`."""
        return self.tileset.complement(direction)

    def compatible_neighbours(self, tile, direction):
        """
        Get the tiles that may sit next to `tile` in `direction`.

        Args:
            tile: Placed tile
            direction: Direction from `tile` to the neighbour

        Returns:
            Frozenset of tiles whose facing side matches
        """
        return self.get_valid_tiles(self.get_matching_side(direction), tile.sides[direction])

    def __len__(self):
        return len(self.tiles)

    def __contains__(self, tile_name):
        return tile_name in self.by_name


def build(raw_tiles, tileset):
    """
    Build a tile registry.

    Args:
        raw_tiles: Canonical tiles; None means `tileset.all()`
        tileset: Tileset capability

    Returns:
        TileRegistry
    """
    if raw_tiles is None:
        raw_tiles = tileset.all()
    return TileRegistry(raw_tiles, tileset)
