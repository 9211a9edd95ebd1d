"""
Tile Definitions

This file contains the default configuration values and the built-in tile
catalogues used by the command line solver.
"""

from tilecollapse.errors import UnknownCatalogueError
from tilecollapse.tile import Tile

# Grid bounds (half-open: x_min <= x < x_max)
DEFAULT_X_MIN = 0
DEFAULT_Y_MIN = 0
DEFAULT_X_MAX = 16
DEFAULT_Y_MAX = 16

DEFAULT_TILESET = 'cartesian'
DEFAULT_CATALOGUE = 'roads'
DEFAULT_RECOVERY = 'backtrack'

ALL_ANGLES = [0, 90, 180, 270]

GRASS = ('grass',)
ROAD = ('road',)
WATER = ('water',)
SAND = ('sand',)


def _sides(north, east, south, west):
    return {'north': north, 'east': east, 'south': south, 'west': west}


def road_tiles():
    """
    Road network: empty grass, straights, corners, junctions and crossings.

    Every label appears on every side somewhere, so the catalogue is closed
    under complements in every orientation.
    """
    return [
        Tile('grass', _sides(GRASS, GRASS, GRASS, GRASS), weight=6.0),
        Tile('straight', _sides(ROAD, GRASS, ROAD, GRASS), weight=2.0,
             angle=0, rotations=[0, 90]),
        Tile('corner', _sides(ROAD, ROAD, GRASS, GRASS), weight=1.0,
             angle=0, rotations=ALL_ANGLES),
        Tile('junction', _sides(ROAD, ROAD, GRASS, ROAD), weight=0.5,
             angle=0, rotations=ALL_ANGLES),
        Tile('crossing', _sides(ROAD, ROAD, ROAD, ROAD), weight=0.25),
    ]


def island_tiles():
    """
    Coastline: open water, beach and inland grass.

    Beaches have water on one side and grass on the opposite one, so water and
    grass never touch directly.
    """
    beach = ('beach',)
    return [
        Tile('water', _sides(WATER, WATER, WATER, WATER), weight=4.0,
             properties={'walkable': False}),
        Tile('grass', _sides(GRASS, GRASS, GRASS, GRASS), weight=3.0,
             properties={'walkable': True}),
        Tile('beach', _sides(WATER, beach, GRASS, beach), weight=1.0,
             angle=0, rotations=ALL_ANGLES, properties={'walkable': True}),
    ]


CATALOGUES = {
    'roads': road_tiles,
    'islands': island_tiles,
}


def load_tile_definitions(name=DEFAULT_CATALOGUE):
    """
    Load a built-in tile catalogue.

    Args:
        name: Catalogue name, one of CATALOGUES

    Returns:
        List of canonical tiles
    """
    try:
        factory = CATALOGUES[name]
    except KeyError:
        raise UnknownCatalogueError(name, CATALOGUES) from None
    return factory()
