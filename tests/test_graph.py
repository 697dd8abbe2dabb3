import pytest

from Flow.exceptions import GraphError, NodeNotFoundError
from Flow.graph import Generation, Graph, Visitor


def build(edges, directed=()):
    graph = Graph()
    for a, b in edges:
        graph.add_edge(a, b)
    for a, b in directed:
        graph.add_directed_edge(a, b)
    return graph


def collect(graph, source, destination):
    paths = []

    def emit(path):
        paths.append(path)
        return Generation.CONTINUE

    graph.set_emit_path_callback(emit)
    graph.gen_all_paths(source, destination)
    return paths


@pytest.fixture
def small_graph():
    return build([(3, 1), (2, 6), (1, 2), (4, 7)], directed=[(3, 6)])


def test_counts_paths(small_graph):
    assert len(collect(small_graph, 1, 6)) == 2


def test_directed_edge_is_one_way(small_graph):
    assert collect(small_graph, 6, 3) == [[6, 2, 1, 3]]


def test_searches(small_graph):
    assert small_graph.breadth_first_search(lambda n: n == 3) == 3
    assert small_graph.depth_first_search(lambda n: n == 7) == 7
    with pytest.raises(NodeNotFoundError):
        small_graph.breadth_first_search(lambda n: n == 5)
    with pytest.raises(NodeNotFoundError):
        small_graph.depth_first_search(lambda n: n == 5)


def test_search_on_empty_graph():
    with pytest.raises(GraphError):
        Graph().breadth_first_search(lambda n: True)
    with pytest.raises(GraphError):
        Graph().adjacent_nodes(1)


def test_missing_source_is_not_found(small_graph):
    with pytest.raises(NodeNotFoundError):
        small_graph.gen_all_paths(5, 6)


def test_visitor_sees_every_node():
    class Counter(Visitor):
        def __init__(self):
            self.nodes = []

        def visit_node(self, node, adjacent):
            self.nodes.append((node, adjacent))

    graph = build([(4, 9)], directed=[(9, 3)])
    counter = Counter()
    graph.accept(counter)
    assert len(counter.nodes) == 3
    assert (3, []) in counter.nodes


def test_validator_prunes_paths():
    graph = build([(3, 8), (8, 1), (8, 13), (8, 24), (24, 19), (19, 1), (19, 6),
                   (9, 13), (5, 1), (3, 9), (9, 5)])
    graph.set_validate_path_callback(lambda path: path[-1] <= 9)
    assert collect(graph, 1, 3) == [[1, 8, 3], [1, 5, 9, 3]]


def test_without_validator_more_paths():
    graph = build([(3, 8), (8, 1), (8, 13), (8, 24), (24, 19), (19, 1), (19, 6),
                   (9, 13), (5, 1), (3, 9), (9, 5)])
    paths = collect(graph, 1, 3)
    assert [1, 8, 3] in paths
    assert [1, 19, 24, 8, 3] in paths
    assert len(paths) > 2


def test_stop_ends_enumeration(small_graph):
    paths = []

    def emit(path):
        paths.append(path)
        return Generation.STOP

    small_graph.set_emit_path_callback(emit)
    assert small_graph.gen_all_paths(1, 6) == Generation.STOP
    assert len(paths) == 1


def test_emit_errors_do_not_stop_enumeration(small_graph):
    calls = []

    def emit(path):
        calls.append(path)
        raise ValueError("bad receiver")

    small_graph.set_emit_path_callback(emit)
    assert small_graph.gen_all_paths(1, 6) == Generation.CONTINUE
    assert len(calls) == 2


def test_paths_are_simple(small_graph):
    for path in collect(small_graph, 1, 6):
        assert len(path) == len(set(path))
        assert path[0] == 1 and path[-1] == 6
