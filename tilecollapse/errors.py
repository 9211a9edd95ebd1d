"""
Error Module for the Tile Collapse Solver

This module defines the exceptions raised while building tile registries and
grids. Contradictions found while solving are reported as a solver status and
never raised.
"""


class TileCollapseError(ValueError):
    """Base class for all tilecollapse errors."""


class TileDefinitionError(TileCollapseError):
    """A tile catalogue cannot be turned into a registry."""


class InvalidTileError(TileDefinitionError):
    def __init__(self, tile, reason=None):
        self.tile = tile
        self.reason = reason
        name = getattr(tile, 'name', tile)
        message = f"Invalid tile {name!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class DuplicateTileNameError(TileDefinitionError):
    def __init__(self, name):
        self.name = name
        super().__init__(f"Duplicate tile name {name!r}")


class MissingComplementError(TileDefinitionError):
    """
    No tile carries the label of `side` on the side opposite `direction`.

    Every placed edge must have at least one legal neighbour, so a catalogue
    with such a tile is rejected.
    """

    def __init__(self, tile, direction, side):
        self.tile = tile
        self.direction = direction
        self.side = side
        super().__init__(
            f"Tile {tile.name!r} has side {side!r} facing {direction!r} "
            f"but no tile offers {side!r} on the opposite side"
        )


class ConfigurationError(TileCollapseError):
    """Invalid grid or solver configuration."""


class DegenerateBoundsError(ConfigurationError):
    def __init__(self, bounds):
        self.bounds = bounds
        super().__init__(
            f"Degenerate grid bounds {bounds!r}: need x_min < x_max and y_min < y_max"
        )


class OutOfBoundsError(ConfigurationError):
    def __init__(self, coord, bounds):
        self.coord = coord
        self.bounds = bounds
        super().__init__(f"Cell {coord!r} lies outside the grid bounds {bounds!r}")


class UnknownTilesetError(ConfigurationError):
    def __init__(self, name, known=()):
        self.name = name
        super().__init__(
            f"Unknown tileset {name!r} (known: {', '.join(sorted(known)) or 'none'})"
        )


class UnknownCatalogueError(ConfigurationError):
    def __init__(self, name, known=()):
        self.name = name
        super().__init__(
            f"Unknown tile catalogue {name!r} (known: {', '.join(sorted(known)) or 'none'})"
        )


class UnknownDirectionError(TileCollapseError):
    def __init__(self, direction):
        self.direction = direction
        super().__init__(f"Unrecognized direction {direction!r}")


class InvalidRotationError(TileCollapseError):
    def __init__(self, tile, angle):
        self.tile = tile
        self.angle = angle
        super().__init__(
            f"Tile {tile.name!r} cannot be rotated to {angle!r} "
            f"(allowed: {tile.rotations!r})"
        )
