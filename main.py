#!/usr/bin/env python3
"""
Tile Collapse Solver - Main Entry Point

This script builds a tile registry from a built-in catalogue, creates a grid,
and runs the Wave Function Collapse solver on it, retrying with fresh seeds
when a run ends in a contradiction.
"""

import argparse
import sys
import time

import numpy as np

from tilecollapse.data.tile_definitions import (
    CATALOGUES, DEFAULT_CATALOGUE, DEFAULT_RECOVERY, DEFAULT_TILESET,
    DEFAULT_X_MAX, DEFAULT_X_MIN, DEFAULT_Y_MAX, DEFAULT_Y_MIN,
    load_tile_definitions
)
from tilecollapse.errors import TileCollapseError
from tilecollapse.grid import new_grid
from tilecollapse.registry import build
from tilecollapse.sat_solver import SATSolver
from tilecollapse.solver import (
    CONTRADICTION, RECOVERY_STRATEGIES, SOLVED, CollapseSolver
)
from tilecollapse.tileset import TILESETS, get_tileset
from tilecollapse.utils import format_grid, print_grid_stats, time_function


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Tile Collapse Solver')

    # Grid bounds
    parser.add_argument('--x-min', type=int, default=DEFAULT_X_MIN,
                        help='Smallest x coordinate (inclusive)')
    parser.add_argument('--y-min', type=int, default=DEFAULT_Y_MIN,
                        help='Smallest y coordinate (inclusive)')
    parser.add_argument('--x-max', type=int, default=DEFAULT_X_MAX,
                        help='Largest x coordinate (exclusive)')
    parser.add_argument('--y-max', type=int, default=DEFAULT_Y_MAX,
                        help='Largest y coordinate (exclusive)')

    # Tiles
    parser.add_argument('--tileset', type=str, default=DEFAULT_TILESET,
                        help=f"Grid topology ({', '.join(TILESETS)})")
    parser.add_argument('--catalogue', type=str, default=DEFAULT_CATALOGUE,
                        help=f"Built-in tile catalogue ({', '.join(CATALOGUES)})")

    # Solver options
    parser.add_argument('--recovery', type=str, default=DEFAULT_RECOVERY,
                        choices=RECOVERY_STRATEGIES,
                        help='How to handle contradictions')
    parser.add_argument('--max-steps', type=int, default=None,
                        help='Step budget per attempt')
    parser.add_argument('--max-backtracks', type=int, default=10000,
                        help='Maximum backtracks per attempt')
    parser.add_argument('--max-restarts', type=int, default=10,
                        help='Maximum restarts per attempt (restart strategy)')
    parser.add_argument('--sat-conflict-budget', type=int, default=100000,
                        help='Conflict budget per SAT call (0 = unlimited)')
    parser.add_argument('--retries', type=int, default=3,
                        help='Fresh attempts after a contradiction')

    # General options
    parser.add_argument('--show-every', type=int, default=0,
                        help='Print the grid every N steps (0 = never)')
    parser.add_argument('--verbose', action='store_true',
                        help='Enable verbose output')
    parser.add_argument('--seed', type=int, default=None,
                        help='Global random seed')

    args = parser.parse_args(argv)
    if args.retries < 0:
        parser.error("--retries must be zero or more")

    return args


def setup_environment(args):
    """Set up the environment based on arguments."""
    # Pick a seed so every attempt can be reproduced
    if args.seed is None:
        args.seed = int(np.random.SeedSequence().entropy % (2 ** 32))

    if args.verbose:
        print(f"Environment:")
        print(f"  Python: {sys.version.split()[0]}")
        print(f"  NumPy: {np.__version__}")
        print(f"  Seed: {args.seed}")


def build_registry(args):
    """Build the tile registry for the configured tileset and catalogue."""
    print("\n=== Building Tile Registry ===")

    raw_tiles = load_tile_definitions(args.catalogue)
    tileset = get_tileset(args.tileset, raw_tiles)
    registry, elapsed_time = time_function(build, None, tileset)

    print(f"Registry built in {elapsed_time:.3f} seconds")
    print(f"  Canonical tiles: {len(raw_tiles)}")
    print(f"  Expanded tiles: {len(registry)}")
    print(f"  Edge index entries: {len(registry.by_edge)}")

    return registry


def run_collapse_phase(registry, args, seed):
    """Run one collapse attempt."""
    bounds = (args.x_min, args.y_min, args.x_max, args.y_max)
    grid = new_grid(bounds, registry)

    sat_solver = None
    if args.recovery == 'sat':
        sat_solver = SATSolver(registry, conflict_budget=args.sat_conflict_budget)

    solver = CollapseSolver(
        grid,
        seed=seed,
        recovery=args.recovery,
        max_backtracks=args.max_backtracks,
        max_restarts=args.max_restarts,
        sat_solver=sat_solver,
        verbose=args.verbose
    )

    start_time = time.time()
    for result in solver.iter_steps(args.max_steps):
        if args.show_every and solver.steps % args.show_every == 0:
            print(f"\n--- Step {solver.steps} ({result.status}) ---")
            print(format_grid(result.grid))
    elapsed_time = time.time() - start_time

    stats = solver.get_solver_stats()
    print(f"Collapse finished in {elapsed_time:.2f} seconds: {stats['status']}")
    print(f"  Steps: {stats['steps']}")
    print(f"  Committed cells: {stats['committed_cells']}/{stats['total_cells']}")
    print(f"  Cells revised: {stats['cells_revised']}")
    print(f"  Contradictions: {stats['contradictions']}")
    print(f"  Backtracks: {stats['backtracks']}")
    print(f"  Restarts: {stats['restarts']}")
    if sat_solver is not None:
        sat_stats = sat_solver.get_solver_stats()
        print(f"  SAT calls: {sat_stats['calls']} ({sat_stats['total_time']:.2f} seconds)")

    return solver


def main(argv=None):
    """Main entry point."""
    args = parse_arguments(argv)
    setup_environment(args)

    total_start_time = time.time()

    try:
        registry = build_registry(args)

        for attempt in range(args.retries + 1):
            seed = args.seed + attempt
            print(f"\n=== Running Collapse Phase (attempt {attempt + 1}, seed {seed}) ===")
            solver = run_collapse_phase(registry, args, seed)
            if solver.status != CONTRADICTION:
                break
            print("Run ended in a contradiction.")
    except TileCollapseError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    print("\n=== Final Grid ===")
    print(format_grid(solver.grid))
    print()
    print_grid_stats(solver.grid)

    total_time = time.time() - total_start_time
    print(f"\nTotal execution time: {total_time:.2f} seconds")

    return 0 if solver.status == SOLVED else 1


if __name__ == "__main__":
    sys.exit(main())
