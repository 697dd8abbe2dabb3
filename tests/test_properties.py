"""Properties checked over every bundled puzzle"""
from pathlib import Path

import pytest

from Flow.direction import are_adjacent
from Flow.formations import FormationChecker
from Flow.puzzle import PuzzleDefinition
from Flow.route_generator import Generation, RouteGenerator
from Flow.solver import FlowSolver

PUZZLE_DIR = Path(__file__).parent.parent / "data" / "puzzles"
PUZZLE_FILES = sorted(PUZZLE_DIR.glob("*.txt"))
SLOW_PUZZLES = {"worm31", "party26"}
ROUTE_LIMIT = 50
CHECKED_ROUTES = 10
VALIDATION_BUDGET = 2000


def load(path):
    return PuzzleDefinition.from_file(str(path)).generate_puzzle()


def puzzle_params():
    return [pytest.param(p, id=p.stem, marks=pytest.mark.slow) if p.stem in SLOW_PUZZLES
            else pytest.param(p, id=p.stem)
            for p in PUZZLE_FILES]


def collect_routes(puzzle, pipe_id, limit, validator=None):
    """First routes of pipe_id; validator calls past the budget reject every extension."""
    routes = []
    calls = [0]

    def receive(pipe, route):
        routes.append(route)
        return Generation.STOP if len(routes) >= limit else Generation.CONTINUE

    def budgeted(pipe, path):
        calls[0] += 1
        if calls[0] > VALIDATION_BUDGET:
            return False
        return validator is None or validator(pipe, path)

    generator = RouteGenerator(puzzle)
    generator.set_path_validator(budgeted)
    generator.generate_routes(pipe_id, receive)
    return routes


def test_bundled_puzzles_exist():
    assert len(PUZZLE_FILES) >= 10
    # Puzzles under slow/ are solved on request only
    assert all(p.parent == PUZZLE_DIR for p in PUZZLE_FILES)


@pytest.mark.parametrize("path", puzzle_params())
def test_propagation_reaches_fixed_point(path):
    puzzle = load(path)
    solver = FlowSolver(puzzle, verbose=False)
    solver.propagate()
    before = puzzle.render()
    assert solver.propagate() == 0
    assert puzzle.render() == before


@pytest.mark.parametrize("path", puzzle_params())
def test_emitted_routes_are_simple_paths(path):
    puzzle = load(path)
    for pipe_id in puzzle.pipe_ids:
        start, end = puzzle.endpoints(pipe_id)
        for route in collect_routes(puzzle, pipe_id, ROUTE_LIMIT):
            assert route[0] == start and route[-1] == end
            assert len(route) == len(set(route))
            assert all(are_adjacent(a, b) for a, b in zip(route, route[1:]))


@pytest.mark.parametrize("path", puzzle_params())
def test_accepted_routes_leave_no_bad_formation(path):
    puzzle = load(path)
    solver = FlowSolver(puzzle, verbose=False)
    solver.propagate()
    before = puzzle.render()

    checked = 0
    for pipe_id in solver._unrouted_pipes():
        for route in collect_routes(puzzle, pipe_id, CHECKED_ROUTES, solver._validate_path):
            with puzzle.injected_route(pipe_id, route):
                bad = FormationChecker.detect_bad_formation(puzzle, route, pipe_id)
                broken = FormationChecker.adjacency_law_broken(puzzle, route)
                dead_end = FormationChecker.detect_dead_end(puzzle, route, pipe_id)
                deviation = FormationChecker.detect_invalid_deviation(puzzle, route, pipe_id)
                trapped = FormationChecker.detect_entrapment(puzzle, route, pipe_id)
                saturated = FormationChecker.saturated_cells(puzzle, route, pipe_id)
                dead_cell = FormationChecker.find_dead_end_cell(puzzle, saturated)

            assert bad == (broken or dead_end or deviation or trapped)
            if not bad:
                assert not broken
                assert dead_cell is None
                assert not trapped
            checked += 1

    # Injection never leaks into the grid
    assert puzzle.render() == before
    if solver._unrouted_pipes():
        assert checked > 0


@pytest.mark.parametrize("path", puzzle_params())
def test_bundled_puzzle_solves(path):
    puzzle = load(path)
    solver = FlowSolver(puzzle, verbose=False)
    assert solver.solve()
    assert puzzle.check_if_solution(solver.solution)
    assert sorted(solver.solution) == sorted(puzzle.pipe_ids)
    assert all(not cell.is_empty() for cell in puzzle.reachable_cells())
