"""Shared fixtures for the tile collapse tests."""

import pytest

from tilecollapse.data.tile_definitions import island_tiles, road_tiles
from tilecollapse.registry import build
from tilecollapse.tile import Tile
from tilecollapse.tileset import CartesianTileset


def uniform_sides(label):
    return {'north': label, 'east': label, 'south': label, 'west': label}


def make_sides(north, east, south, west):
    return {'north': north, 'east': east, 'south': south, 'west': west}


@pytest.fixture
def tileset():
    return CartesianTileset()


@pytest.fixture
def ab_tiles():
    """Two interchangeable tiles with the same label on every side."""
    return [
        Tile('A', uniform_sides(('x',)), weight=1.0),
        Tile('B', uniform_sides(('x',)), weight=1.0),
    ]


@pytest.fixture
def ab_registry(ab_tiles, tileset):
    return build(ab_tiles, tileset)


@pytest.fixture
def road_registry():
    tiles = road_tiles()
    return build(tiles, CartesianTileset(tiles))


@pytest.fixture
def island_registry():
    tiles = island_tiles()
    return build(tiles, CartesianTileset(tiles))


@pytest.fixture
def trap_tiles():
    """
    Catalogue whose heaviest tile dooms a 2x2 grid when placed at (0, 0).

    "bad" sends C1 east and C2 south; C1 then needs D1 below it while C2
    needs D2 to its right, and no tile is both. Every label still has a
    complement, so the registry builds.
    """
    g, b, c, d = ('g',), ('b',), ('c',), ('d',)
    return [
        Tile('bad', make_sides(g, b, b, g), weight=1e12),
        Tile('good', uniform_sides(g)),
        Tile('C1', make_sides(g, g, c, b)),
        Tile('C2', make_sides(b, d, g, g)),
        Tile('D1', make_sides(c, g, g, g)),
        Tile('D2', make_sides(g, g, g, d)),
    ]


@pytest.fixture
def trap_registry(trap_tiles, tileset):
    return build(trap_tiles, tileset)
