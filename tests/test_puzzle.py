import pytest

from Flow.cell import CellConnection, PipeEnd
from Flow.direction import Direction
from Flow.exceptions import PuzzleDefinitionError, PuzzleError, PuzzleIntegrityError
from Flow.puzzle import Puzzle, PuzzleDefinition
from helpers import SIMPLE_1, open_grid


def test_parse_simple(simple1):
    assert simple1.shape == (2, 7)
    assert simple1.pipe_ids == ['A', 'B']
    assert simple1.endpoints('A') == ((1, 0), (1, 6))
    assert simple1.cell_at((1, 0)).endpoint == PipeEnd.START
    assert simple1.cell_at((1, 6)).endpoint == PipeEnd.END
    assert repr(simple1) == "Puzzle(simple1: 2x7, 2 pipes)"


def test_initial_connections(simple1):
    corner = simple1.cell_at((0, 0))
    assert corner.connection(Direction.NORTH) == CellConnection.NO_CONNECTOR
    assert corner.connection(Direction.WEST) == CellConnection.NO_CONNECTOR
    assert corner.connection(Direction.EAST) == CellConnection.OPEN_CONNECTOR

    end_a = simple1.cell_at((1, 0))
    assert end_a.connection(Direction.NORTH) == CellConnection.OPEN_FIXTURE
    # Endpoints of different pipes side by side
    assert end_a.connection(Direction.EAST) == CellConnection.NO_CONNECTOR
    assert simple1.cell_at((1, 1)).connection(Direction.WEST) == CellConnection.NO_CONNECTOR
    assert simple1.open_directions((1, 0)) == [Direction.NORTH]


def test_initial_possibilities(simple1):
    assert simple1.cell_at((0, 3)).possible_pipes == {'A', 'B'}
    assert simple1.cell_at((1, 0)).possible_pipes == {'A'}


def test_unreachable_cells_are_sealed():
    puzzle = Puzzle.from_definition(",".join([
        " = = = ",
        "|A . B|",
        "|     |",
        "|A   B|",
        " = = = ",
    ]))
    hole = puzzle.cell_at((1, 1))
    assert not hole.reachable
    assert hole.count_walls() == 4
    assert puzzle.cell_at((0, 1)).is_wall(Direction.SOUTH)
    assert puzzle.cell_at((1, 0)).is_wall(Direction.EAST)
    assert puzzle.cell_at((1, 2)).is_wall(Direction.WEST)
    assert int(puzzle.reachable_mask.sum()) == 5
    assert puzzle.adjacent((0, 1), Direction.SOUTH) is None
    assert hole.possible_pipes == set()


@pytest.mark.parametrize("rows", [
    [" = = ", "|A .|", " = = "],                      # single endpoint
    [" = = = ", "|A A A|", " = = = "],                # three endpoints
    [" = = ", "|A A ", " = = "],                      # open east side
    [" = = ", "|A A|", "     "],                      # missing outer wall
    [" = = ", "|A A|"],                               # even number of rows
    [" = = ", "|. .|", " = = "],                      # no pipes
    [" = = ", "|A|A|", " x = "],                      # bad border character
])
def test_invalid_definitions(rows):
    with pytest.raises(PuzzleDefinitionError):
        Puzzle.from_definition(",".join(rows))


def test_render_round_trip(simple1):
    text = simple1.render()
    again = PuzzleDefinition(text).generate_puzzle()
    assert again.render() == text
    assert text.splitlines()[1] == "|. . . . . . .|"


def test_from_file(tmp_path):
    path = tmp_path / "tiny.txt"
    path.write_text("# comment\n" + SIMPLE_1.replace(",", "\n") + "\n")
    puzzle = PuzzleDefinition.from_file(str(path)).generate_puzzle()
    assert puzzle.name == "tiny"
    assert puzzle.pipe_ids == ['A', 'B']


def test_injection_round_trip(simple1):
    route = [(1, 0), (0, 0), (0, 1)]
    before = simple1.render()
    with simple1.injected_route('A', route) as inserted:
        assert inserted == [(0, 0), (0, 1)]
        assert simple1.cell_at((0, 1)).pipe_id == 'A'
    assert simple1.render() == before


def test_injection_removed_on_error(simple1):
    with pytest.raises(RuntimeError):
        with simple1.injected_route('A', [(1, 0), (0, 0)]):
            raise RuntimeError("inside")
    assert simple1.cell_at((0, 0)).is_empty()


def test_injection_over_other_pipe(simple1):
    with pytest.raises(PuzzleError):
        simple1.insert_route('A', [(0, 0), (0, 1), (1, 1)])
    assert simple1.cell_at((0, 0)).is_empty()
    assert simple1.cell_at((0, 1)).is_empty()


def test_copy_is_independent(simple1):
    branch = simple1.copy()
    branch.cell_at((0, 0)).pipe_id = 'A'
    branch.cell_at((0, 1)).possible_pipes.discard('B')
    assert simple1.cell_at((0, 0)).is_empty()
    assert 'B' in simple1.cell_at((0, 1)).possible_pipes


def test_cell_out_of_range(simple1):
    with pytest.raises(PuzzleIntegrityError):
        simple1.cell_at((2, 0))
    assert simple1.neighbor((0, 0), Direction.NORTH) is None


def test_check_if_solution(simple1):
    routes = {
        'A': [(1, 0), (0, 0), (0, 1), (0, 2), (0, 3), (0, 4), (0, 5), (0, 6), (1, 6)],
        'B': [(1, 1), (1, 2), (1, 3), (1, 4), (1, 5)],
    }
    assert not simple1.check_if_solution({'A': routes['A']})
    assert not simple1.check_if_solution({'A': routes['A'], 'B': [(1, 1), (1, 2), (1, 5)]})
    assert simple1.check_if_solution(routes)
    assert simple1.cell_at((0, 3)).pipe_id == 'A'
    assert simple1.cell_at((1, 3)).possible_pipes == {'B'}
    assert simple1.get_completion_percentage() == 1.0


def test_route_tracing(simple1):
    assert simple1.trace_route('A') is None
    assert simple1.trace_routes() == {}
    assert simple1.follow_fixtures((1, 0)) == [(1, 0)]


def test_open_grid_helper():
    assert open_grid("|A A|") == " = = ,|A A|, = = "
