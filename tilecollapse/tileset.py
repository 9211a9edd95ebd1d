"""
Tileset Module for the Tile Collapse Solver

This module defines the tileset capability: the topology-specific knowledge the
registry, grid and solver rely on. A topology enumerates its canonical tiles,
knows which direction faces which, where each neighbour lies, and how a tile's
sides move when the tile is rotated.
"""

from abc import ABC, abstractmethod

from tilecollapse.errors import (
    InvalidRotationError, UnknownDirectionError, UnknownTilesetError
)


class Tileset(ABC):
    """
    Capability interface implemented once per grid topology.

    Subclasses set `directions` (ordered direction labels) and `angles`
    (allowed rotation angles) and implement the abstract methods.
    """

    name = None
    directions = ()
    angles = ()

    def __init__(self, tiles=()):
        """
        Initialize the tileset with its canonical catalogue.

        Args:
            tiles: Canonical (pre-rotation) tiles of this tileset
        """
        self._tiles = list(tiles)

    def all(self):
        """Return the canonical tile catalogue."""
        return list(self._tiles)

    @abstractmethod
    def complement(self, direction):
        """Return the direction facing `direction` from the neighbouring cell."""

    @abstractmethod
    def rotate(self, tile, angle):
        """Return `tile` re-expressed at `angle`."""

    @abstractmethod
    def offset(self, direction):
        """Return the coordinate delta of the neighbour in `direction`."""


class CartesianTileset(Tileset):
    """
    Four-connected square grid.

    Directions are north, east, south and west; y grows southwards. Tiles turn
    clockwise in quarter turns.
    """

    name = 'cartesian'
    directions = ('north', 'east', 'south', 'west')
    angles = (0, 90, 180, 270)

    OPPOSITES = {
        'north': 'south',
        'south': 'north',
        'east': 'west',
        'west': 'east',
    }

    OFFSETS = {
        'north': (0, -1),
        'east': (1, 0),
        'south': (0, 1),
        'west': (-1, 0),
    }

    # Direction each side takes its label from after a quarter turn
    QUARTER_TURN = {
        'north': 'west',
        'east': 'north',
        'south': 'east',
        'west': 'south',
    }

    def complement(self, direction):
        try:
            return self.OPPOSITES[direction]
        except (KeyError, TypeError):
            raise UnknownDirectionError(direction) from None

    def offset(self, direction):
        try:
            return self.OFFSETS[direction]
        except (KeyError, TypeError):
            raise UnknownDirectionError(direction) from None

    def rotate(self, tile, angle):
        """
        Rotate a tile to the requested angle.

        Rotation is relative to the tile's current angle, so rotating a tile at
        90 to 0 undoes a quarter turn.

        Args:
            tile: Tile to rotate
            angle: Target angle (0, 90, 180 or 270)

        Returns:
            The rotated tile, or `tile` itself if it is already at `angle`
        """
        if angle == tile.angle:
            return tile
        if not tile.rotatable or not isinstance(angle, int) or angle not in tile.rotations \
                or angle not in self.angles:
            raise InvalidRotationError(tile, angle)

        quarter_turns = ((angle - tile.angle) % 360) // 90
        sides = dict(tile.sides)
        for _ in range(quarter_turns):
            sides = self._quarter_turn(sides)

        return tile.with_sides(sides, angle)

    def _quarter_turn(self, sides):
        return {
            direction: sides[source]
            for direction, source in self.QUARTER_TURN.items()
            if source in sides
        }


TILESETS = {
    CartesianTileset.name: CartesianTileset,
}


def get_tileset(name, tiles=()):
    """
    Build the tileset registered under `name`.

    Args:
        name: Tileset name, e.g. "cartesian"
        tiles: Canonical tiles for the tileset

    Returns:
        Tileset instance
    """
    try:
        tileset_class = TILESETS[name]
    except KeyError:
        raise UnknownTilesetError(name, TILESETS) from None
    return tileset_class(tiles)
