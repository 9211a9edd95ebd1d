"""
Grid Module for the Tile Collapse Solver

This module holds the bounded grid the solver collapses. Every in-bounds
coordinate maps to an immutable cell that is either undecided (a set of still
possible tiles) or committed to one tile name.
"""

from dataclasses import dataclass

import numpy as np

from tilecollapse.errors import DegenerateBoundsError, OutOfBoundsError


@dataclass(frozen=True)
class Cell:
    """
    State of a single grid cell.

    Exactly one of `possibilities` and `tile_name` is set. An undecided cell
    with no possibilities is a contradiction.
    """
    x: int
    y: int
    possibilities: frozenset = None
    tile_name: str = None

    @property
    def coord(self):
        return (self.x, self.y)

    @property
    def is_committed(self):
        return self.tile_name is not None

    @property
    def is_contradiction(self):
        return self.tile_name is None and not self.possibilities


class GridModel:
    """
    Bounded 2-D grid of cells.

    Bounds are half-open: x_min <= x < x_max and y_min <= y < y_max.
    """

    def __init__(self, bounds, registry):
        """
        Initialize every in-bounds cell with the full tile list.

        Args:
            bounds: (x_min, y_min, x_max, y_max)
            registry: TileRegistry the grid draws its tiles from

        Raises:
            DegenerateBoundsError: if min >= max on either axis
        """
        x_min, y_min, x_max, y_max = bounds
        if x_min >= x_max or y_min >= y_max:
            raise DegenerateBoundsError(tuple(bounds))

        self.x_min, self.y_min, self.x_max, self.y_max = x_min, y_min, x_max, y_max
        self.registry = registry
        self.all_tiles = frozenset(registry.tiles)

        self.cells = {}
        self.trail = None
        self.reset()

    @property
    def bounds(self):
        return (self.x_min, self.y_min, self.x_max, self.y_max)

    @property
    def width(self):
        return self.x_max - self.x_min

    @property
    def height(self):
        return self.y_max - self.y_min

    def reset(self):
        """Make every cell undecided with the full tile list."""
        self.cells = {
            (x, y): Cell(x, y, possibilities=self.all_tiles)
            for x, y in self.coords()
        }
        if self.trail is not None:
            self.trail = []

    def coords(self):
        """Return every in-bounds coordinate in (x, y) order."""
        return [
            (x, y)
            for x in range(self.x_min, self.x_max)
            for y in range(self.y_min, self.y_max)
        ]

    def in_bounds(self, where):
        """
        Check whether a coordinate or a cell lies inside the grid.

        Args:
            where: (x, y) pair or Cell

        Returns:
            True if inside the bounds
        """
        x, y = where.coord if isinstance(where, Cell) else where
        return self.x_min <= x < self.x_max and self.y_min <= y < self.y_max

    def __getitem__(self, coord):
        return self.cells[coord]

    def __iter__(self):
        return iter(self.cells.values())

    def __len__(self):
        return len(self.cells)

    def neighbour(self, coord, direction):
        """
        Get the neighbouring coordinate in `direction`.

        Args:
            coord: (x, y) of the cell
            direction: Direction label of the registry's tileset

        Returns:
            (x, y) of the neighbour, or None if it is out of bounds
        """
        dx, dy = self.registry.tileset.offset(direction)
        x, y = coord
        target = (x + dx, y + dy)
        return target if self.in_bounds(target) else None

    def neighbours(self, coord):
        """Yield (direction, neighbour coordinate) pairs that are in bounds."""
        for direction in self.registry.tileset.directions:
            target = self.neighbour(coord, direction)
            if target is not None:
                yield direction, target

    def commit(self, coord, tile_name):
        """
        Commit a cell to one tile.

        Args:
            coord: (x, y) of the cell
            tile_name: Name of a registry tile

        Raises:
            OutOfBoundsError: if `coord` is not a cell of the grid
            KeyError: if the registry has no tile called `tile_name`
        """
        if tile_name not in self.registry:
            raise KeyError(f"Unknown tile {tile_name!r}")
        x, y = coord
        self._write(coord, Cell(x, y, tile_name=tile_name))

    def restrict(self, coord, possibilities):
        """Replace the possibilities of an undecided cell."""
        x, y = coord
        self._write(coord, Cell(x, y, possibilities=frozenset(possibilities)))

    def _write(self, coord, cell):
        if coord not in self.cells:
            raise OutOfBoundsError(coord, self.bounds)
        if self.trail is not None:
            self.trail.append((coord, self.cells[coord]))
        self.cells[coord] = cell

    def start_trail(self):
        """Record every later cell write so it can be undone with `undo`."""
        self.trail = []

    def mark(self):
        """Return the current trail position for a later `undo`."""
        return len(self.trail)

    def undo(self, mark):
        """
        Revert every cell write made since `mark`.

        Args:
            mark: Trail position returned by `mark()`
        """
        while len(self.trail) > mark:
            coord, previous = self.trail.pop()
            self.cells[coord] = previous

    def options(self, coord):
        """
        Get the tiles a cell may still hold.

        Args:
            coord: (x, y) of the cell

        Returns:
            Frozenset of tiles; a single tile for committed cells
        """
        cell = self.cells[coord]
        if cell.is_committed:
            return frozenset((self.registry.by_name[cell.tile_name],))
        return cell.possibilities

    def undecided(self):
        """Return undecided cells in (x, y) order."""
        return [cell for cell in self.cells.values() if not cell.is_committed]

    def contradictions(self):
        """Return the coordinates of undecided cells with no possibilities."""
        return [cell.coord for cell in self.cells.values() if cell.is_contradiction]

    def is_solved(self):
        return all(cell.is_committed for cell in self.cells.values())

    def committed_count(self):
        return sum(1 for cell in self.cells.values() if cell.is_committed)

    def snapshot(self):
        """Return a copy of the cell mapping; cells themselves are immutable."""
        return dict(self.cells)

    def restore(self, snapshot):
        """Replace every cell from a snapshot; any undo trail starts over."""
        self.cells = dict(snapshot)
        if self.trail is not None:
            self.trail = []

    def tile_at(self, coord):
        """Return the committed tile at `coord`, or None."""
        cell = self.cells[coord]
        if not cell.is_committed:
            return None
        return self.registry.by_name[cell.tile_name]

    def to_array(self):
        """
        Convert the grid to a numpy array of tile names.

        Returns:
            Object array of shape (height, width); undecided cells are None
        """
        array = np.full((self.height, self.width), None, dtype=object)
        for (x, y), cell in self.cells.items():
            array[y - self.y_min, x - self.x_min] = cell.tile_name
        return array


def new_grid(bounds, registry):
    """
    Create a grid with every cell undecided.

    Args:
        bounds: (x_min, y_min, x_max, y_max), half-open
        registry: TileRegistry

    Returns:
        GridModel
    """
    return GridModel(bounds, registry)
