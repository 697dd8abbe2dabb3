"""
Candidate route generation for a single pipe.

Cells are graph nodes (by coordinate); edges exist where a pipe could pass
between two cells. Every simple path from the pipe's START to its END is a
candidate route.
"""
import logging
from typing import Callable, List, Optional

import numpy as np

from .cell import Cell, PipeEnd
from .direction import Coordinate, Direction, manhattan_distance
from .exceptions import PuzzleError
from .graph import Graph, Generation, Visitor
from .puzzle import Puzzle, Route

logger = logging.getLogger(__name__)

RouteReceiver = Callable[[str, Route], Generation]
PathValidator = Callable[[str, Route], bool]

__all__ = ['RouteGenerator', 'Generation', 'RouteReceiver', 'PathValidator']


class GraphDescriber(Visitor):
    """Collects one 'node: neighbors' line per graph node"""

    def __init__(self):
        self.lines: List[str] = []

    def visit_node(self, node, adjacent) -> None:
        self.lines.append(f"{node}: {' '.join(str(n) for n in adjacent)}")


class RouteGenerator:
    """Builds the path graph for one pipe and streams its routes to a receiver"""

    def __init__(self, puzzle: Puzzle):
        self.puzzle = puzzle
        self.graph: Graph = Graph()
        self._visited = np.zeros(puzzle.shape, dtype=bool)
        self._validator: Optional[PathValidator] = None
        self._receiver: Optional[RouteReceiver] = None
        self._pipe_id: Optional[str] = None
        self._receiver_error: Optional[PuzzleError] = None
        self.routes_emitted = 0

    def set_path_validator(self, validator: Optional[PathValidator]) -> None:
        """validator(pipe_id, partial_route) -> False rejects the partial route."""
        self._validator = validator

    def generate_routes(self, pipe_id: str, receiver: RouteReceiver) -> Generation:
        """
        Pass every candidate route of pipe_id to receiver until it returns STOP.

        A pipe whose END cannot be reached yields no routes. PuzzleErrors from
        the receiver or validator are re-raised with the pipe's context.
        """
        start, end = self.puzzle.endpoints(pipe_id)
        try:
            self.create_graph(pipe_id)
        except PuzzleError as ex:
            raise ex.add_context(f"creating graph for pipe '{pipe_id}' from {start}")

        if not self.graph.contains(start) or not self.graph.contains(end):
            logger.debug("Pipe %s: %s not reachable from %s", pipe_id, end, start)
            return Generation.CONTINUE

        self.graph.order_adjacency(key=lambda coord: manhattan_distance(coord, end))
        if logger.isEnabledFor(logging.DEBUG):
            describer = GraphDescriber()
            self.graph.accept(describer)
            logger.debug("Graph for pipe %s:\n%s", pipe_id, '\n'.join(describer.lines))

        self._pipe_id = pipe_id
        self._receiver = receiver
        self._receiver_error = None
        self.graph.set_emit_path_callback(self._receive_path)
        self.graph.set_validate_path_callback(self._validate_path if self._validator is not None else None)
        try:
            result = self.graph.gen_all_paths(start, end)
        except PuzzleError as ex:
            raise ex.add_context(f"generating routes for pipe '{pipe_id}' from {start} to {end}")
        finally:
            self.graph.set_emit_path_callback(None)
            self.graph.set_validate_path_callback(None)
            self._receiver = None

        if self._receiver_error is not None:
            error, self._receiver_error = self._receiver_error, None
            raise error.add_context(f"receiving route for pipe '{pipe_id}' from {start} to {end}")
        return result

    # -------------------------------------------------------------------------
    # Graph construction
    # -------------------------------------------------------------------------
    def create_graph(self, pipe_id: str) -> Graph:
        """Depth-first traversal from START over empty cells and cells of pipe_id."""
        self.graph.clear()
        self._visited[:] = False
        stack = [self.puzzle.endpoint(pipe_id, PipeEnd.START)]
        while stack:
            coord = stack.pop()
            if self._visited[coord]:
                continue
            self._visited[coord] = True
            cell = self.puzzle.cell_at(coord)
            for direction in self._edge_directions(cell):
                other = self.puzzle.adjacent(coord, direction)
                if other is None or not self._belongs(other, pipe_id):
                    continue
                if direction.opposite not in self._edge_directions(other):
                    continue
                self._add_edge(cell, other)
                if not self._visited[other.coordinate]:
                    stack.append(other.coordinate)
        return self.graph

    @staticmethod
    def _belongs(cell: Cell, pipe_id: str) -> bool:
        return cell.is_empty() or cell.pipe_id == pipe_id

    def _edge_directions(self, cell: Cell) -> List[Direction]:
        """Directions a route may use through cell; committed fixtures force the way."""
        fixed = cell.fixture_directions()
        if fixed and len(fixed) >= cell.fixture_limit():
            return fixed
        return self.puzzle.open_directions(cell.coordinate)

    def _add_edge(self, cell: Cell, other: Cell) -> None:
        # Routes leave START and enter END, never the reverse
        forward = other.endpoint != PipeEnd.START and cell.endpoint != PipeEnd.END
        backward = cell.endpoint != PipeEnd.START and other.endpoint != PipeEnd.END
        if forward and backward:
            self.graph.add_edge(cell.coordinate, other.coordinate)
        elif forward:
            self.graph.add_directed_edge(cell.coordinate, other.coordinate)
        elif backward:
            self.graph.add_directed_edge(other.coordinate, cell.coordinate)

    # -------------------------------------------------------------------------
    # Graph callbacks
    # -------------------------------------------------------------------------
    def _validate_path(self, path: List[Coordinate]) -> bool:
        return self._validator(self._pipe_id, path)

    def _receive_path(self, path: List[Coordinate]) -> Generation:
        if not path:
            return Generation.CONTINUE
        route = self._extend_along_fixtures(list(path))
        self.routes_emitted += 1
        try:
            return self._receiver(self._pipe_id, route)
        except PuzzleError as ex:
            # The graph swallows callback errors; hold this one for generate_routes
            self._receiver_error = ex
            return Generation.STOP

    def _extend_along_fixtures(self, route: Route) -> Route:
        """Follow committed connections from the last node on to the pipe's endpoint."""
        while not self.puzzle.cell_at(route[-1]).is_endpoint():
            cell = self.puzzle.cell_at(route[-1])
            onward = [(cell.row + d.offset[0], cell.col + d.offset[1]) for d in cell.fixture_directions()]
            onward = [c for c in onward if c not in route]
            if not onward:
                break
            route.append(onward[0])
        return route
