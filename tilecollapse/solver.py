"""
Collapse Solver Module

This module implements the Wave Function Collapse search over a grid model.
Each step picks the undecided cell with the lowest entropy, commits it to a
weighted random tile, and propagates the edge constraints outwards until no
cell can shrink any further. Contradictions are reported as a status and can
be recovered from by backtracking, restarting, or handing the grid to the SAT
completer.
"""

import time
from collections import deque, namedtuple

import numpy as np

from tilecollapse.errors import ConfigurationError
from tilecollapse.sat_solver import SATSolver

IN_PROGRESS = 'in_progress'
SOLVED = 'solved'
CONTRADICTION = 'contradiction'

RECOVERY_STRATEGIES = ('none', 'backtrack', 'restart', 'sat')

StepResult = namedtuple('StepResult', ['grid', 'status'])

# Grid trail position before a commitment and the tiles not yet tried there
ChoicePoint = namedtuple('ChoicePoint', ['mark', 'coord', 'untried'])


class CollapseSolver:
    """
    Step-wise Wave Function Collapse solver.

    The solver owns the grid it is given. Callers drive it with `step()` and
    may inspect `grid` between steps.
    """

    def __init__(self, grid, seed=None, recovery='backtrack', max_backtracks=10000,
                 max_restarts=10, sat_solver=None, verbose=False):
        """
        Initialize the collapse solver.

        Args:
            grid: GridModel to collapse
            seed: Random seed for reproducible runs
            recovery: Contradiction handling, one of RECOVERY_STRATEGIES
            max_backtracks: Maximum choice points popped before giving up
            max_restarts: Maximum restarts for the "restart" strategy
            sat_solver: SATSolver used by the "sat" strategy (created if None)
            verbose: Print progress messages
        """
        if recovery not in RECOVERY_STRATEGIES:
            raise ConfigurationError(
                f"Unknown recovery strategy {recovery!r} "
                f"(known: {', '.join(RECOVERY_STRATEGIES)})"
            )

        self.grid = grid
        self.registry = grid.registry
        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self.recovery = recovery
        self.max_backtracks = max_backtracks
        self.max_restarts = max_restarts
        self.verbose = verbose

        if recovery == 'sat' and sat_solver is None:
            sat_solver = SATSolver(self.registry)
        self.sat_solver = sat_solver

        self.status = IN_PROGRESS
        self.last_commit = None
        self.last_contradiction = None

        self._choices = []
        self._initial = None
        self._started = False
        self._entropy_cache = {}

        # Statistics
        self.steps = 0
        self.commits = 0
        self.cells_revised = 0
        self.contradictions = 0
        self.backtracks = 0
        self.restarts = 0
        self.sat_calls = 0
        self.start_time = None

    def step(self):
        """
        Run one selection, commitment and propagation round.

        Returns:
            StepResult(grid, status) where status is IN_PROGRESS, SOLVED or
            CONTRADICTION. Terminal statuses are returned unchanged by later
            calls.
        """
        if self.status != IN_PROGRESS:
            return StepResult(self.grid, self.status)

        if self.start_time is None:
            self.start_time = time.time()
        self.steps += 1

        if not self._started:
            self._started = True
            if not self._propagate_committed():
                # Pre-committed cells conflict; there is nothing to undo
                self.contradictions += 1
                return self._finish(CONTRADICTION)
            if self.recovery == 'restart':
                self._initial = self.grid.snapshot()
            elif self.recovery in ('backtrack', 'sat'):
                self.grid.start_trail()

        # Termination check
        if self.grid.is_solved():
            return self._finish(SOLVED)
        if self.grid.contradictions():
            self.last_contradiction = self.grid.contradictions()[0]
            return self._handle_contradiction()

        coord = self._select_cell()
        candidates = sorted(self.grid[coord].possibilities, key=lambda tile: tile.name)
        tile = self._sample(candidates)

        untried = frozenset(candidates) - {tile}
        # A forced choice has nothing to retry, but SAT may still start from it
        if self.recovery == 'sat' or (self.recovery == 'backtrack' and untried):
            self._choices.append(ChoicePoint(self.grid.mark(), coord, untried))

        self.grid.commit(coord, tile.name)
        self.commits += 1
        self.last_commit = (coord, tile)

        if not self._propagate([coord]):
            return self._handle_contradiction()

        if self.grid.is_solved():
            return self._finish(SOLVED)
        return StepResult(self.grid, self.status)

    def iter_steps(self, max_steps=None):
        """
        Yield the result of every step until the run terminates.

        Args:
            max_steps: Optional step budget

        Yields:
            StepResult after each step
        """
        taken = 0
        while self.status == IN_PROGRESS and (max_steps is None or taken < max_steps):
            taken += 1
            yield self.step()

    def solve(self, max_steps=None):
        """
        Step until solved, contradicted, or out of budget.

        Args:
            max_steps: Optional step budget

        Returns:
            The last StepResult
        """
        result = StepResult(self.grid, self.status)
        for result in self.iter_steps(max_steps):
            pass
        return result

    def _finish(self, status):
        self.status = status
        if self.verbose:
            print(f"Run finished: {status} after {self.steps} steps")
        return StepResult(self.grid, status)

    def _select_cell(self):
        """
        Choose the next cell to commit.

        Cells with a single possibility go first. Otherwise the cell with the
        lowest entropy wins, ties broken by (x, y).

        Returns:
            (x, y) of the selected cell
        """
        undecided = self.grid.undecided()
        for cell in undecided:
            if len(cell.possibilities) == 1:
                return cell.coord

        best = min(
            undecided,
            key=lambda cell: (self._entropy(cell.possibilities), cell.coord)
        )
        return best.coord

    def _entropy(self, possibilities):
        """
        Shannon entropy of the weight distribution over a possibility set.

        Args:
            possibilities: Frozenset of tiles

        Returns:
            Entropy in nats (0 for a single tile)
        """
        entropy = self._entropy_cache.get(possibilities)
        if entropy is None:
            # Sorted so equal sets always sum in the same order
            weights = np.sort(np.array([tile.weight for tile in possibilities], dtype=np.float64))
            total = weights.sum()
            entropy = float(np.log(total) - np.sum(weights * np.log(weights)) / total)
            self._entropy_cache[possibilities] = entropy
        return entropy

    def _sample(self, candidates):
        """
        Pick a tile with probability proportional to its weight.

        Args:
            candidates: Tiles sorted by name

        Returns:
            The chosen tile
        """
        weights = np.array([tile.weight for tile in candidates], dtype=np.float64)
        index = self.rng.choice(len(candidates), p=weights / weights.sum())
        return candidates[int(index)]

    def _propagate_committed(self):
        """Propagate from cells committed before the first step."""
        seeds = [cell.coord for cell in self.grid if cell.is_committed]
        if any(cell.is_contradiction for cell in self.grid):
            return False

        # Pinned neighbours are never filtered, so check them directly
        for coord in seeds:
            tile = self.grid.tile_at(coord)
            for direction, target in self.grid.neighbours(coord):
                neighbour = self.grid.tile_at(target)
                if neighbour is not None and neighbour not in self.registry.compatible_neighbours(tile, direction):
                    self.last_contradiction = target
                    return False

        return self._propagate(seeds)

    def _propagate(self, seeds):
        """
        Filter neighbour possibilities until a fixed point is reached.

        Args:
            seeds: Coordinates whose options changed

        Returns:
            False if some cell ran out of possibilities, True otherwise
        """
        queue = deque(seeds)
        queued = set(queue)

        while queue:
            coord = queue.popleft()
            queued.discard(coord)
            sources = self.grid.options(coord)

            for direction, target in self.grid.neighbours(coord):
                cell = self.grid[target]
                if cell.is_committed:
                    continue

                # Tiles allowed next to any remaining option of the source
                facing = self.registry.get_matching_side(direction)
                allowed = set()
                for label in {tile.sides[direction] for tile in sources}:
                    allowed |= self.registry.get_valid_tiles(facing, label)

                self.cells_revised += 1
                remaining = cell.possibilities & allowed
                if len(remaining) == len(cell.possibilities):
                    continue

                self.grid.restrict(target, remaining)
                if not remaining:
                    self.last_contradiction = target
                    return False
                if target not in queued:
                    queue.append(target)
                    queued.add(target)

        return True

    def _handle_contradiction(self):
        self.contradictions += 1
        if self.verbose:
            print(f"Contradiction at {self.last_contradiction} (strategy: {self.recovery})")

        if self.recovery == 'backtrack' and self._backtrack():
            return StepResult(self.grid, self.status)
        if self.recovery == 'restart' and self._restart():
            return StepResult(self.grid, self.status)
        if self.recovery == 'sat' and self._complete_with_sat():
            return self._finish(SOLVED)

        return self._finish(CONTRADICTION)

    def _backtrack(self):
        """
        Undo commitments until an untried tile remains consistent.

        Returns:
            True if the search can continue
        """
        while self._choices:
            if self.backtracks >= self.max_backtracks:
                if self.verbose:
                    print(f"Backtrack budget of {self.max_backtracks} exhausted")
                return False

            choice = self._choices.pop()
            self.backtracks += 1
            if not choice.untried:
                continue

            self.grid.undo(choice.mark)
            self.grid.restrict(choice.coord, choice.untried)
            if self._propagate([choice.coord]):
                return True

        return False

    def _restart(self):
        if self.restarts >= self.max_restarts:
            if self.verbose:
                print(f"Restart budget of {self.max_restarts} exhausted")
            return False

        self.restarts += 1
        self._choices.clear()
        self.grid.restore(self._initial)
        if self.verbose:
            print(f"Restarting from the initial grid ({self.restarts}/{self.max_restarts})")
        return True

    def _complete_with_sat(self):
        """
        Complete the grid from the latest consistent choice point using SAT.

        Choice points are tried from the most recent back to the initial grid.

        Returns:
            True if every cell was committed
        """
        marks = [choice.mark for choice in reversed(self._choices)]
        marks.append(0)
        self._choices.clear()

        for mark in marks:
            self.grid.undo(mark)
            self.sat_calls += 1
            assignment = self.sat_solver.complete(self.grid)
            if assignment is None:
                continue

            for coord in sorted(assignment):
                self.grid.commit(coord, assignment[coord].name)
                self.commits += 1
            return True

        return False

    def get_solver_stats(self):
        """
        Get statistics about the run.

        Returns:
            Dictionary of statistics
        """
        elapsed_time = time.time() - self.start_time if self.start_time else 0

        return {
            "status": self.status,
            "seed": self.seed,
            "steps": self.steps,
            "commits": self.commits,
            "cells_revised": self.cells_revised,
            "contradictions": self.contradictions,
            "backtracks": self.backtracks,
            "restarts": self.restarts,
            "sat_calls": self.sat_calls,
            "choice_points": len(self._choices),
            "elapsed_time": elapsed_time,
            "steps_per_sec": self.steps / elapsed_time if elapsed_time > 0 else 0,
            "committed_cells": self.grid.committed_count(),
            "total_cells": len(self.grid),
        }
