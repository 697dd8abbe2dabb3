"""
Generic graph over hashable nodes, with searches and simple path enumeration
"""
import logging
from enum import Enum
from collections import deque
from typing import Callable, Dict, Generic, Hashable, List, Optional, Set, TypeVar

from .exceptions import GraphError, NodeNotFoundError

logger = logging.getLogger(__name__)

NodeT = TypeVar("NodeT", bound=Hashable)


class Generation(Enum):
    """Receiver decision threaded back through path enumeration."""
    CONTINUE = 'continue'
    STOP = 'stop'


class Visitor(Generic[NodeT]):
    """Visitor called once per node by Graph.accept()"""

    def visit_node(self, node: NodeT, adjacent: List[NodeT]) -> None:
        raise NotImplementedError


class Graph(Generic[NodeT]):
    """
    Adjacency-list graph.

    Edges may be undirected or directed. Adjacency lists keep insertion order
    and hold each neighbor once.
    """

    def __init__(self):
        self._adjacency: Dict[NodeT, List[NodeT]] = {}
        self._emit_path: Optional[Callable[[List[NodeT]], Generation]] = None
        self._validate_path: Optional[Callable[[List[NodeT]], bool]] = None

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------
    def add_edge(self, node1: NodeT, node2: NodeT, directed: bool = False) -> None:
        """Add an edge node1 -> node2, and node2 -> node1 unless directed."""
        self._link(node1, node2)
        if not directed:
            self._link(node2, node1)
        else:
            self._adjacency.setdefault(node2, [])

    def add_directed_edge(self, source: NodeT, destination: NodeT) -> None:
        self.add_edge(source, destination, directed=True)

    def _link(self, source: NodeT, destination: NodeT) -> None:
        adjacent = self._adjacency.setdefault(source, [])
        if destination not in adjacent:
            adjacent.append(destination)

    def order_adjacency(self, key: Callable[[NodeT], object]) -> None:
        """Sort every adjacency list; enumeration tries neighbors in this order."""
        for adjacent in self._adjacency.values():
            adjacent.sort(key=key)

    def is_empty(self) -> bool:
        return not self._adjacency

    def clear(self) -> None:
        self._adjacency.clear()

    def contains(self, node: NodeT) -> bool:
        return node in self._adjacency

    def nodes(self) -> List[NodeT]:
        return list(self._adjacency)

    def adjacent_nodes(self, node: NodeT) -> List[NodeT]:
        try:
            return self._adjacency[node]
        except KeyError:
            raise GraphError(f"node {node} not found adjacent")

    def __len__(self):
        return len(self._adjacency)

    # -------------------------------------------------------------------------
    # Searches
    # -------------------------------------------------------------------------
    def breadth_first_search(self, check: Callable[[NodeT], bool]) -> NodeT:
        """
        First node satisfying check, in breadth-first order.

        Every first-level node seeds the queue so a divided graph is searched
        completely in one call.
        """
        if self.is_empty():
            raise GraphError("search attempt on empty graph")
        queue = deque(self._adjacency)
        visited: Set[NodeT] = set()
        while queue:
            node = queue.popleft()
            if node in visited:
                continue
            if check(node):
                return node
            visited.add(node)
            for neighbor in self.adjacent_nodes(node):
                if neighbor not in visited:
                    queue.append(neighbor)
        raise NodeNotFoundError("node not found in breadth first search")

    def depth_first_search(self, check: Callable[[NodeT], bool]) -> NodeT:
        """First node satisfying check, in depth-first order from each first-level node."""
        if self.is_empty():
            raise GraphError("search attempt on empty graph")
        visited: Set[NodeT] = set()
        for root in self._adjacency:
            if root in visited:
                continue
            stack = [root]
            while stack:
                node = stack.pop()
                if node in visited:
                    continue
                if check(node):
                    return node
                visited.add(node)
                # Reversed so neighbors are explored in list order
                stack.extend(n for n in reversed(self.adjacent_nodes(node)) if n not in visited)
        raise NodeNotFoundError("node not found in depth first search")

    def accept(self, visitor: Visitor) -> None:
        for node, adjacent in self._adjacency.items():
            visitor.visit_node(node, list(adjacent))

    # -------------------------------------------------------------------------
    # Path enumeration
    # -------------------------------------------------------------------------
    def set_emit_path_callback(self, callback: Optional[Callable[[List[NodeT]], Generation]]) -> None:
        self._emit_path = callback

    def set_validate_path_callback(self, callback: Optional[Callable[[List[NodeT]], bool]]) -> None:
        self._validate_path = callback

    def gen_all_paths(self, source: NodeT, destination: NodeT) -> Generation:
        """
        Enumerate every simple path from source to destination.

        Each complete path is passed to the emit callback, which decides
        whether enumeration continues. Partial paths are passed to the
        validate callback before being extended.

        Returns Generation.STOP if the emit callback stopped enumeration.
        """
        self.breadth_first_search(lambda node: node == source)
        self.breadth_first_search(lambda node: node == destination)
        return self._gen_all_paths(source, destination, set(), [], set())

    def _gen_all_paths(self, position: NodeT, destination: NodeT, visited: Set[NodeT],
                       path: List[NodeT], invalid: Set[NodeT]) -> Generation:
        visited.add(position)
        path.append(position)
        try:
            if position == destination:
                return self._emit(path)

            if self._validate_path is not None and not self._validate_path(path):
                # Skipped by sibling branches until the enclosing frame unwinds
                invalid.add(position)
                return Generation.CONTINUE

            adjacent = self.adjacent_nodes(position)
            try:
                for node in adjacent:
                    if node in visited or node in invalid:
                        continue
                    if self._gen_all_paths(node, destination, visited, path, invalid) == Generation.STOP:
                        return Generation.STOP
            finally:
                invalid.difference_update(adjacent)
            return Generation.CONTINUE
        finally:
            path.pop()
            visited.discard(position)

    def _emit(self, path: List[NodeT]) -> Generation:
        if self._emit_path is None:
            return Generation.CONTINUE
        try:
            result = self._emit_path(list(path))
        except Exception:
            logger.exception("Emit path callback failed for path %s", path)
            return Generation.CONTINUE
        return Generation.STOP if result == Generation.STOP else Generation.CONTINUE

