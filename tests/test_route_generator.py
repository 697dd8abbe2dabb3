import pytest

from Flow.direction import are_adjacent
from Flow.exceptions import PuzzleError
from Flow.plumber import Plumber
from Flow.puzzle import Puzzle
from Flow.route_generator import Generation, RouteGenerator


def collect_routes(puzzle, pipe_id, validator=None):
    routes = []

    def receive(pipe, route):
        routes.append(route)
        return Generation.CONTINUE

    generator = RouteGenerator(puzzle)
    generator.set_path_validator(validator)
    generator.generate_routes(pipe_id, receive)
    return routes


def assert_simple_route(puzzle, pipe_id, route):
    assert route[0] == puzzle.endpoints(pipe_id)[0]
    assert route[-1] == puzzle.endpoints(pipe_id)[1]
    assert len(route) == len(set(route))
    for a, b in zip(route, route[1:]):
        assert are_adjacent(a, b)
    for coord in route[1:-1]:
        assert puzzle.cell_at(coord).pipe_id in (None, pipe_id)


def test_routes_are_simple_paths(simple1):
    routes = collect_routes(simple1, 'A')
    assert routes
    for route in routes:
        assert_simple_route(simple1, 'A', route)
    top = [(1, 0), (0, 0), (0, 1), (0, 2), (0, 3), (0, 4), (0, 5), (0, 6), (1, 6)]
    assert top in routes


def test_routes_avoid_other_pipes(simple1):
    for route in collect_routes(simple1, 'B'):
        assert (1, 0) not in route and (1, 6) not in route
        assert_simple_route(simple1, 'B', route)


def test_stop_after_first_route(simple1):
    received = []

    def receive(pipe, route):
        received.append(route)
        return Generation.STOP

    generator = RouteGenerator(simple1)
    assert generator.generate_routes('A', receive) == Generation.STOP
    assert len(received) == 1
    assert generator.routes_emitted == 1


def test_validator_sees_partial_routes(simple1):
    seen = []

    def validator(pipe, path):
        seen.append(list(path))
        return (1, 3) not in path

    routes = collect_routes(simple1, 'B', validator)
    assert seen and all(path[0] == (1, 1) for path in seen)
    assert routes
    assert all((1, 3) not in route for route in routes)


def test_routes_follow_committed_connections(simple1):
    Plumber(simple1).connect((1, 6), (0, 6), 'A')
    routes = collect_routes(simple1, 'A')
    assert routes
    for route in routes:
        assert route[-2:] == [(0, 6), (1, 6)]
        assert_simple_route(simple1, 'A', route)


def test_unreachable_end_yields_nothing():
    puzzle = Puzzle.from_definition(" = = = ,|A .|A|, = = = ")
    assert collect_routes(puzzle, 'A') == []


def test_receiver_error_is_raised(simple1):
    def receive(pipe, route):
        raise PuzzleError("receiver failed")

    with pytest.raises(PuzzleError) as info:
        RouteGenerator(simple1).generate_routes('A', receive)
    assert "receiving route for pipe 'A'" in str(info.value)
