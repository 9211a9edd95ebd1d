"""
Tile Module for the Tile Collapse Solver

This module defines the immutable tile value placed on the grid and the
structural validity check applied before a tile enters a registry.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType


@dataclass(frozen=True)
class Tile:
    """
    One tile variant.

    Attributes:
        name: Unique name of the tile
        sides: Mapping of direction to edge label (a tuple of strings)
        weight: Relative selection likelihood
        angle: Current orientation, None for non-rotatable tiles
        rotations: Angles this tile may be instantiated at, None if not rotatable
        properties: Opaque metadata, ignored by the solver
    """
    name: str
    sides: Mapping = field(hash=False)
    weight: float = 1.0
    angle: object = None
    rotations: tuple = None
    properties: Mapping = field(default_factory=dict, hash=False, compare=False)

    def __post_init__(self):
        # Freeze the containers so a tile can be shared between cells
        if isinstance(self.sides, Mapping):
            object.__setattr__(self, 'sides', MappingProxyType(dict(self.sides)))
        if isinstance(self.rotations, list):
            object.__setattr__(self, 'rotations', tuple(self.rotations))

    @property
    def rotatable(self):
        return self.rotations is not None

    def side(self, direction):
        """Return the edge label facing `direction`."""
        return self.sides[direction]

    def with_sides(self, sides, angle):
        """Return a copy of this tile with new sides at a new angle."""
        return replace(self, sides=sides, angle=angle)

    def renamed(self, name):
        """Return a copy of this tile under a different name."""
        return replace(self, name=name)


def is_edge_label(label):
    return isinstance(label, tuple) and all(isinstance(part, str) for part in label)


def is_valid_tile(tile, angles):
    """
    Check the structure of a tile.

    Args:
        tile: Candidate tile
        angles: Angles allowed by the tile's topology

    Returns:
        True if the tile is structurally valid
    """
    return tile_problem(tile, angles) is None


def tile_problem(tile, angles):
    """
    Describe what is wrong with a tile.

    Args:
        tile: Candidate tile
        angles: Angles allowed by the tile's topology

    Returns:
        A short description of the first problem found, or None
    """
    if not isinstance(tile, Tile):
        return "not a Tile"
    if not isinstance(tile.name, str):
        return "name must be a string"
    if not isinstance(tile.sides, Mapping):
        return "sides must be a mapping"

    for direction, label in tile.sides.items():
        if not isinstance(direction, str):
            return f"direction {direction!r} is not a string"
        if not is_edge_label(label):
            return f"side {direction!r} is not a tuple of strings: {label!r}"

    weight = tile.weight
    if isinstance(weight, bool) or not isinstance(weight, (int, float)):
        return f"weight must be a number, got {weight!r}"
    if not math.isfinite(weight) or weight <= 0:
        return f"weight must be positive, got {weight!r}"

    # Rotation consistency
    if tile.rotations is None:
        if tile.angle is not None:
            return "angle given for a non-rotatable tile"
    else:
        if not isinstance(tile.rotations, tuple):
            return "rotations must be a sequence of angles"
        if not _is_angle(tile.angle, angles):
            return f"angle {tile.angle!r} is not one of {tuple(angles)!r}"
        for angle in tile.rotations:
            if not _is_angle(angle, angles):
                return f"rotation {angle!r} is not one of {tuple(angles)!r}"

    return None


def _is_angle(angle, angles):
    # 90.0 compares equal to 90 but cannot count quarter turns
    return isinstance(angle, int) and not isinstance(angle, bool) and angle in angles
