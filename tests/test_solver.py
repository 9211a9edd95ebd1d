import pytest

from tilecollapse.errors import ConfigurationError
from tilecollapse.grid import new_grid
from tilecollapse.registry import build
from tilecollapse.solver import (
    CONTRADICTION, IN_PROGRESS, SOLVED, CollapseSolver, StepResult
)
from tilecollapse.tile import Tile
from tilecollapse.utils import is_consistent

from conftest import uniform_sides


def run_to_end(solver, limit=10000):
    results = []
    for result in solver.iter_steps(limit):
        results.append(result)
    return results


@pytest.mark.parametrize('seed', range(10))
def test_two_by_two_with_interchangeable_tiles(ab_registry, seed):
    grid = new_grid((0, 0, 2, 2), ab_registry)
    solver = CollapseSolver(grid, seed=seed)

    results = run_to_end(solver)

    assert len(results) <= 4
    assert results[-1].status == SOLVED
    assert all(result.status == IN_PROGRESS for result in results[:-1])
    assert {cell.tile_name for cell in grid} <= {'A', 'B'}
    assert grid.committed_count() == 4


def test_single_cell_solves_in_one_step(tileset):
    registry = build([Tile('only', uniform_sides(('x',)))], tileset)
    grid = new_grid((0, 0, 1, 1), registry)
    solver = CollapseSolver(grid, seed=0)

    result = solver.step()

    assert isinstance(result, StepResult)
    assert result.status == SOLVED
    assert result.grid is grid
    assert grid[(0, 0)].tile_name == 'only'
    assert solver.cells_revised == 0
    assert solver.steps == 1


def test_fully_committed_grid_is_solved_immediately(ab_registry):
    grid = new_grid((0, 0, 1, 1), ab_registry)
    grid.commit((0, 0), 'B')
    solver = CollapseSolver(grid)

    assert solver.step().status == SOLVED
    assert solver.commits == 0


def test_terminal_status_is_sticky(ab_registry):
    grid = new_grid((0, 0, 1, 1), ab_registry)
    solver = CollapseSolver(grid, seed=1)
    solver.solve()
    assert solver.step().status == SOLVED
    assert list(solver.iter_steps()) == []


@pytest.mark.parametrize('seed', range(5))
def test_solved_road_grids_are_consistent(road_registry, seed):
    grid = new_grid((0, 0, 6, 6), road_registry)
    solver = CollapseSolver(grid, seed=seed, recovery='backtrack')

    result = solver.solve()

    assert result.status == SOLVED
    assert grid.is_solved()
    assert is_consistent(grid)


def test_commitments_come_from_current_possibilities(road_registry):
    grid = new_grid((0, 0, 5, 5), road_registry)
    solver = CollapseSolver(grid, seed=11)
    catalogue = frozenset(road_registry.tiles)

    while solver.status == IN_PROGRESS:
        before = grid.snapshot()
        solver.step()
        if solver.last_commit is not None and solver.status != SOLVED:
            coord, tile = solver.last_commit
            if not before[coord].is_committed:
                assert tile in before[coord].possibilities
        for cell in grid:
            if not cell.is_committed:
                assert cell.possibilities <= catalogue

    assert is_consistent(grid)


def test_same_seed_same_grid(road_registry):
    layouts = []
    for _ in range(2):
        grid = new_grid((0, 0, 6, 4), road_registry)
        CollapseSolver(grid, seed=42).solve()
        layouts.append(grid.to_array().tolist())
    assert layouts[0] == layouts[1]


def test_lowest_entropy_cell_is_chosen_first(road_registry):
    grid = new_grid((0, 0, 3, 3), road_registry)
    grid.commit((2, 2), 'grass')
    solver = CollapseSolver(grid, seed=3)

    solver.step()

    # Both cells next to the pinned grass have the lowest entropy; x breaks the tie
    coord, _ = solver.last_commit
    assert coord == (1, 2)


def test_single_possibility_cells_go_first_in_coordinate_order(ab_registry):
    grid = new_grid((0, 0, 3, 3), ab_registry)
    grid.restrict((2, 0), [ab_registry.by_name['A']])
    grid.restrict((0, 2), [ab_registry.by_name['B']])
    solver = CollapseSolver(grid, seed=0)

    solver.step()
    assert solver.last_commit == ((0, 2), ab_registry.by_name['B'])

    solver.step()
    assert solver.last_commit == ((2, 0), ab_registry.by_name['A'])


@pytest.mark.parametrize('bounds', [(0, 0, 4, 4), (-3, -2, 2, 2)])
def test_untouched_grid_starts_at_minimum_corner(ab_registry, bounds):
    grid = new_grid(bounds, ab_registry)
    solver = CollapseSolver(grid, seed=11)

    solver.step()

    coord, _ = solver.last_commit
    assert coord == bounds[:2]


def test_step_budget_leaves_partial_grid(road_registry):
    grid = new_grid((0, 0, 4, 4), road_registry)
    solver = CollapseSolver(grid, seed=5)

    result = solver.solve(max_steps=3)

    assert result.status == IN_PROGRESS
    assert 0 < grid.committed_count() <= 3
    assert is_consistent(grid)


def test_contradiction_is_reported_without_recovery(trap_registry):
    grid = new_grid((0, 0, 2, 2), trap_registry)
    solver = CollapseSolver(grid, seed=0, recovery='none')

    result = solver.step()

    assert result.status == CONTRADICTION
    assert grid[(0, 0)].tile_name == 'bad'
    assert grid.contradictions() == [(1, 1)]
    assert solver.last_contradiction == (1, 1)
    assert solver.step().status == CONTRADICTION


def test_backtracking_recovers_from_contradiction(trap_registry):
    grid = new_grid((0, 0, 2, 2), trap_registry)
    solver = CollapseSolver(grid, seed=0, recovery='backtrack')

    result = solver.solve()

    assert result.status == SOLVED
    assert solver.backtracks >= 1
    assert solver.contradictions >= 1
    assert grid[(0, 0)].tile_name != 'bad'
    assert is_consistent(grid)


def test_choice_points_hold_trail_positions_not_grid_copies(road_registry):
    grid = new_grid((0, 0, 12, 12), road_registry)
    solver = CollapseSolver(grid, seed=1, recovery='backtrack')

    assert solver.solve().status == SOLVED

    # Every cell write is recorded once and each one narrows the cell
    assert len(grid.trail) <= len(grid) * len(road_registry)
    stats = solver.get_solver_stats()
    assert stats['choice_points'] <= solver.commits
    assert all(isinstance(mark, int) for mark, _, _ in solver._choices)
    assert all(untried for _, _, untried in solver._choices)


def test_backtrack_budget_is_enforced(trap_registry):
    grid = new_grid((0, 0, 2, 2), trap_registry)
    solver = CollapseSolver(grid, seed=0, recovery='backtrack', max_backtracks=0)

    assert solver.solve().status == CONTRADICTION
    assert solver.backtracks == 0


def test_restart_budget_is_enforced(trap_registry):
    grid = new_grid((0, 0, 2, 2), trap_registry)
    solver = CollapseSolver(grid, seed=0, recovery='restart', max_restarts=3)

    assert solver.solve().status == CONTRADICTION
    assert solver.restarts == 3
    assert solver.contradictions == 4


def test_sat_recovery_completes_grid(trap_registry):
    grid = new_grid((0, 0, 2, 2), trap_registry)
    solver = CollapseSolver(grid, seed=0, recovery='sat')

    result = solver.solve()

    assert result.status == SOLVED
    assert solver.sat_calls >= 1
    assert grid.is_solved()
    assert is_consistent(grid)


def test_pinned_tiles_are_kept(road_registry):
    grid = new_grid((0, 0, 4, 4), road_registry)
    grid.commit((1, 1), 'crossing')
    solver = CollapseSolver(grid, seed=8)

    assert solver.solve().status == SOLVED
    assert grid[(1, 1)].tile_name == 'crossing'
    assert is_consistent(grid)


def test_conflicting_pins_are_a_contradiction(road_registry):
    grid = new_grid((0, 0, 2, 1), road_registry)
    grid.commit((0, 0), 'straight_90')
    grid.commit((1, 0), 'grass')
    solver = CollapseSolver(grid, recovery='backtrack')

    assert solver.step().status == CONTRADICTION


def test_dead_end_pins_are_a_contradiction(road_registry):
    grid = new_grid((0, 0, 3, 3), road_registry)
    grid.commit((0, 1), 'straight_90')
    grid.commit((2, 1), 'grass')
    grid.commit((1, 0), 'grass')
    grid.commit((1, 2), 'grass')
    solver = CollapseSolver(grid, recovery='backtrack')

    assert solver.step().status == CONTRADICTION
    assert grid.contradictions() == [(1, 1)]


def test_unknown_recovery_strategy(ab_registry):
    grid = new_grid((0, 0, 2, 2), ab_registry)
    with pytest.raises(ConfigurationError):
        CollapseSolver(grid, recovery='pray')


def test_solver_stats(road_registry):
    grid = new_grid((0, 0, 3, 3), road_registry)
    solver = CollapseSolver(grid, seed=2)
    solver.solve()

    stats = solver.get_solver_stats()
    assert stats['status'] == solver.status
    assert stats['seed'] == 2
    assert stats['total_cells'] == 9
    assert stats['steps'] == solver.steps
    assert stats['committed_cells'] == grid.committed_count()
