"""
Utilities Module for the Tile Collapse Solver

This module provides edge checking, text output and timing helpers.
"""

import time

import numpy as np


def iter_adjacent_pairs(grid):
    """
    Yield every pair of adjacent in-bounds cells once.

    Args:
        grid: GridModel

    Yields:
        (coord, direction, neighbour coord)
    """
    for coord in grid.coords():
        for direction, target in grid.neighbours(coord):
            # Each pair once, from the smaller coordinate
            if coord < target:
                yield coord, direction, target


def count_matching_edges(grid):
    """
    Count the adjacent committed pairs whose facing sides match.

    Args:
        grid: GridModel

    Returns:
        (matching, mismatched) edge counts
    """
    matching = 0
    mismatched = 0
    complement = grid.registry.tileset.complement

    for coord, direction, target in iter_adjacent_pairs(grid):
        tile = grid.tile_at(coord)
        neighbour = grid.tile_at(target)
        if tile is None or neighbour is None:
            continue
        if tile.sides[direction] == neighbour.sides[complement(direction)]:
            matching += 1
        else:
            mismatched += 1

    return matching, mismatched


def is_consistent(grid):
    """Check that no two adjacent committed tiles disagree on their shared edge."""
    _, mismatched = count_matching_edges(grid)
    return mismatched == 0


def count_adjacent_pairs(grid):
    return sum(1 for _ in iter_adjacent_pairs(grid))


def format_grid(grid, undecided='.', contradiction='!'):
    """
    Format a grid as rows of tile names.

    Args:
        grid: GridModel
        undecided: Marker for undecided cells
        contradiction: Marker for cells with no possibilities left

    Returns:
        Multi-line string, one row per y value
    """
    names = grid.to_array()
    for (x, y), cell in grid.cells.items():
        if not cell.is_committed:
            marker = contradiction if cell.is_contradiction else undecided
            names[y - grid.y_min, x - grid.x_min] = marker

    width = max(len(str(name)) for name in names.flat)
    return '\n'.join(
        ' '.join(str(name).ljust(width) for name in row).rstrip()
        for row in names
    )


def tile_histogram(grid):
    """
    Count how often each tile was committed.

    Args:
        grid: GridModel

    Returns:
        Dictionary of tile name to count, most common first
    """
    names = [name for name in grid.to_array().flat if name is not None]
    if not names:
        return {}
    unique, counts = np.unique(np.array(names, dtype=str), return_counts=True)
    order = np.argsort(-counts, kind='stable')
    return {str(unique[i]): int(counts[i]) for i in order}


def print_grid_stats(grid):
    """
    Print statistics about a grid.

    Args:
        grid: GridModel
    """
    matching, mismatched = count_matching_edges(grid)
    total_pairs = count_adjacent_pairs(grid)
    committed = grid.committed_count()

    print(f"Grid Statistics:")
    print(f"  Size: {grid.width}x{grid.height} (bounds {grid.bounds})")
    print(f"  Committed Cells: {committed}/{len(grid)}")
    print(f"  Matching Edges: {matching}/{total_pairs}")

    if mismatched:
        print(f"  Mismatched Edges: {mismatched}")
    else:
        print(f"  No mismatched edges found.")

    contradictions = grid.contradictions()
    if contradictions:
        print(f"  Contradictions at: {contradictions}")

    histogram = tile_histogram(grid)
    if histogram:
        print(f"  Tile Usage:")
        for name, count in histogram.items():
            print(f"    {name}: {count}")


def time_function(func, *args, **kwargs):
    """
    Time the execution of a function.

    Args:
        func: Function to time
        *args, **kwargs: Arguments to pass to the function

    Returns:
        (result, elapsed_time)
    """
    start_time = time.time()
    result = func(*args, **kwargs)
    elapsed_time = time.time() - start_time

    return result, elapsed_time
