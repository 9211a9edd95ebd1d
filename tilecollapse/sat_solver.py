"""
SAT Completion Module

This module encodes the undecided part of a grid as a SAT formula and solves it
exactly. The collapse solver uses it to finish a run after a contradiction,
when the greedy search has painted itself into a corner.
"""

import time

from pysat.formula import CNF
from pysat.solvers import Solver


class SATSolver:
    """
    Exact completion of partially collapsed grids.

    Each (undecided cell, possible tile) pair becomes one boolean variable.
    """

    def __init__(self, registry, conflict_budget=100000, solver_name='glucose4'):
        """
        Initialize the SAT solver.

        Args:
            registry: TileRegistry of the grids to complete
            conflict_budget: Conflicts allowed per call (0 or None = unlimited)
            solver_name: pysat solver backend
        """
        self.registry = registry
        self.conflict_budget = conflict_budget
        self.solver_name = solver_name

        # Statistics
        self.encoding_time = 0
        self.solving_time = 0
        self.calls = 0
        self.completions = 0

    def complete(self, grid):
        """
        Find tiles for every undecided cell of a grid.

        The grid is not modified.

        Args:
            grid: GridModel, possibly with committed cells

        Returns:
            Dictionary mapping (x, y) to a tile for every undecided cell, or
            None if no completion exists or the conflict budget ran out
        """
        self.calls += 1
        if grid.contradictions():
            return None
        if grid.is_solved():
            self.completions += 1
            return {}

        start_time = time.time()
        cnf, var_map = self._encode_grid(grid)
        self.encoding_time += time.time() - start_time

        start_time = time.time()
        model = self._solve_cnf(cnf)
        self.solving_time += time.time() - start_time

        if model is None:
            return None

        inv_var_map = {v: k for k, v in var_map.items()}
        assignment = {}
        for literal in model:
            if literal > 0 and literal in inv_var_map:
                coord, tile = inv_var_map[literal]
                assignment[coord] = tile

        self.completions += 1
        return assignment

    def _encode_grid(self, grid):
        """
        Encode the undecided cells of a grid as a CNF formula.

        Args:
            grid: GridModel

        Returns:
            (CNF formula, variable mapping)
        """
        var_map = {}  # Maps (coord, tile) to variable ID
        var_counter = 1

        undecided = grid.undecided()
        for cell in undecided:
            for tile in _ordered(cell.possibilities):
                var_map[(cell.coord, tile)] = var_counter
                var_counter += 1

        cnf = CNF()

        # Constraint 1: each undecided cell holds exactly one tile
        for cell in undecided:
            cell_vars = [var_map[(cell.coord, tile)] for tile in _ordered(cell.possibilities)]
            cnf.append(cell_vars)
            for i in range(len(cell_vars)):
                for j in range(i + 1, len(cell_vars)):
                    cnf.append([-cell_vars[i], -cell_vars[j]])

        # Constraint 2: matching edges with every neighbour
        for cell in undecided:
            for direction, target in grid.neighbours(cell.coord):
                self._add_edge_constraints(cnf, var_map, grid, cell, direction, target)

        return cnf, var_map

    def _add_edge_constraints(self, cnf, var_map, grid, cell, direction, target):
        """
        Add edge matching constraints between a cell and one neighbour.

        Args:
            cnf: CNF formula
            var_map: Variable mapping
            grid: GridModel
            cell: Undecided cell
            direction: Direction from `cell` to `target`
            target: Neighbour coordinate
        """
        neighbour = grid[target]

        for tile in _ordered(cell.possibilities):
            variable = var_map[(cell.coord, tile)]
            compatible = self.registry.compatible_neighbours(tile, direction)

            if neighbour.is_committed:
                # The neighbour is fixed, so `tile` is out unless it matches
                if grid.tile_at(target) not in compatible:
                    cnf.append([-variable])
                continue

            # Some compatible tile must remain possible next door
            support = [
                var_map[(target, other)]
                for other in _ordered(neighbour.possibilities)
                if other in compatible
            ]
            cnf.append([-variable] + support)

    def _solve_cnf(self, cnf):
        """
        Solve a CNF formula.

        Args:
            cnf: CNF formula

        Returns:
            Model (list of literals) or None if unsatisfiable or out of budget
        """
        with Solver(name=self.solver_name, bootstrap_with=cnf.clauses) as solver:
            if self.conflict_budget:
                solver.conf_budget(self.conflict_budget)
                satisfiable = solver.solve_limited()
            else:
                satisfiable = solver.solve()

            if satisfiable:
                return solver.get_model()
            return None

    def get_solver_stats(self):
        """
        Get statistics about the solver process.

        Returns:
            Dictionary of statistics
        """
        return {
            "encoding_time": self.encoding_time,
            "solving_time": self.solving_time,
            "total_time": self.encoding_time + self.solving_time,
            "calls": self.calls,
            "completions": self.completions,
            "success_rate": self.completions / self.calls if self.calls > 0 else 0,
        }


def _ordered(tiles):
    # Stable clause order, independent of set iteration order
    return sorted(tiles, key=lambda tile: tile.name)
