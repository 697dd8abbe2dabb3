from Flow.cell import CellConnection
from Flow.direction import Direction
from Flow.heuristics import HeuristicDetector
from Flow.puzzle import Puzzle
from Flow.solver import FlowSolver
from helpers import make_puzzle


def test_option_directions(simple1):
    assert HeuristicDetector.option_directions(simple1, simple1.cell_at((1, 1))) == [Direction.NORTH, Direction.EAST]
    assert HeuristicDetector.option_directions(simple1, simple1.cell_at((1, 0))) == [Direction.NORTH]
    # Empty cells have no options of their own
    assert HeuristicDetector.option_directions(simple1, simple1.cell_at((0, 3))) == []


def test_only_one_way(simple1):
    assert HeuristicDetector.find_only_one_way(simple1, simple1.cell_at((1, 0))) == Direction.NORTH
    assert HeuristicDetector.find_only_one_way(simple1, simple1.cell_at((1, 1))) is None


def test_forced_moves(simple1):
    moves = HeuristicDetector.find_forced_moves(simple1)
    assert moves == [
        {'cell': (1, 0), 'direction': Direction.NORTH, 'pipe': 'A', 'reason': 'only_one_way'},
        {'cell': (1, 6), 'direction': Direction.NORTH, 'pipe': 'A', 'reason': 'only_one_way'},
    ]


def test_channel_entrance():
    puzzle = Puzzle.from_definition(",".join([
        " = = = ",
        "|A . .|",
        "|  =  |",
        "|. . A|",
        " = = = ",
    ]))
    # (0,1) is walled above and below
    assert HeuristicDetector.find_only_one_way(puzzle, puzzle.cell_at((0, 0))) == Direction.EAST


def test_fill_to_obstruction():
    puzzle = Puzzle.from_definition(",".join([
        " = = = ",
        "|. . .|",
        "|    =|",
        "|. A .|",
        "|     |",
        "|. . A|",
        " = = = ",
    ]))
    start = puzzle.cell_at((1, 1))
    assert HeuristicDetector.find_only_one_way(puzzle, start) is None
    # (1,2) can only be entered from (1,1) or (2,2)
    assert HeuristicDetector.find_fill_to_obstruction(puzzle, start) == Direction.EAST


def test_corner_formations():
    puzzle = make_puzzle(
        "|. . .|",
        "|. A .|",
        "|. . A|",
    )
    removed = HeuristicDetector.apply_corner_formations(puzzle, puzzle.cell_at((1, 1)))
    assert removed == 7
    assert 'A' not in puzzle.cell_at((0, 0)).possible_pipes
    assert 'A' not in puzzle.cell_at((2, 1)).possible_pipes
    assert HeuristicDetector.apply_corner_formations(puzzle, puzzle.cell_at((1, 1))) == 0
    assert HeuristicDetector.apply_corner_formations(puzzle, puzzle.cell_at((0, 0))) == 0


def test_only_one_possibility(simple1):
    cell = simple1.cell_at((1, 1))
    assert HeuristicDetector.find_only_one_possibility(simple1, cell) is None
    simple1.cell_at((0, 1)).possible_pipes.discard('B')
    assert HeuristicDetector.possible_directions(simple1, cell) == [Direction.EAST]
    assert HeuristicDetector.find_only_one_possibility(simple1, cell) == Direction.EAST


def test_propagation_solves_simple(simple1):
    solver = FlowSolver(simple1, verbose=False)
    moves = solver.propagate()
    assert moves == 12
    assert sorted(simple1.trace_routes()) == ['A', 'B']
    assert solver.stats['only_one_way'] == 12
    # Nothing left to do
    assert solver.propagate() == 0
    assert simple1.render().splitlines()[1] == "|A A A A A A A|"


def test_propagation_removes_completed_pipes():
    puzzle = make_puzzle(
        "|A A . .|",
        "|B . . B|",
    )
    solver = FlowSolver(puzzle, verbose=False)
    solver.propagate()
    assert puzzle.trace_route('A') == [(0, 0), (0, 1)]
    assert all('A' not in cell.possible_pipes for cell in puzzle.empty_cells())


def test_dead_connectors():
    puzzle = make_puzzle(
        "|A A . .|",
        "|B . . B|",
    )
    # Untouched grid: every open connector can still be used
    assert all(HeuristicDetector.find_dead_connectors(puzzle, cell) == [] for cell in puzzle.reachable_cells())

    solver = FlowSolver(puzzle, verbose=False)
    solver.propagate()
    finished = puzzle.cell_at((0, 1))
    assert finished.connection(Direction.SOUTH) == CellConnection.NO_CONNECTOR
    assert finished.connection(Direction.EAST) == CellConnection.NO_CONNECTOR
    assert finished.connection(Direction.WEST) == CellConnection.FIXTURE_CONNECTION
    assert puzzle.open_directions((0, 1)) == [Direction.WEST]
    assert solver.stats['connectors_removed'] >= 2
    for cell in puzzle.reachable_cells():
        dead = HeuristicDetector.find_dead_connectors(puzzle, cell)
        assert not any(solver.plumber.can_remove_connector(cell, d) for d in dead)
