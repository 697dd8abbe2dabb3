"""
Plumber: the only code that changes cell connection state.

The plumber does exactly what it is told. It never chains further
connections that a change makes possible; callers re-invoke as needed.
"""
import logging
from typing import Optional

from .cell import Cell, CellConnection
from .direction import Coordinate, Direction, TRAVERSAL_DIRECTIONS, direction_between
from .exceptions import PlumberError, PuzzleIntegrityError

logger = logging.getLogger(__name__)


def _plumber_message(msg: str, coord: Coordinate, direction: Optional[Direction] = None) -> str:
    text = f"{msg} at {coord}"
    if direction is not None:
        text += f" {direction.name}"
    return text


class Plumber:
    """Connects and disconnects cells of one puzzle, enforcing cell invariants"""

    def __init__(self, puzzle):
        self.puzzle = puzzle

    def _cell(self, coord: Coordinate) -> Cell:
        try:
            return self.puzzle.cell_at(coord)
        except PuzzleIntegrityError:
            raise PlumberError(_plumber_message("attempt to connect cell not existing", coord))

    def connect(self, c1: Coordinate, c2: Coordinate, pipe_id: str,
                kind: CellConnection = CellConnection.FIXTURE_CONNECTION) -> None:
        """
        Connect adjacent cells c1 and c2 for pipe_id.

        At least one side must already hold the pipe. A fixed connection turns
        both sides to FIXTURE_CONNECTION and every other open connector of both
        cells into OPEN_FIXTURE.
        """
        if kind not in (CellConnection.FIXTURE_CONNECTION, CellConnection.TEMPORARY_CONNECTION):
            raise PlumberError(f"attempt invalid connection {kind.name}")

        direction = direction_between(c1, c2)
        if direction is None:
            raise PlumberError(_plumber_message("cannot connect cells not adjacent", c1))
        cell1 = self._cell(c1)
        cell2 = self._cell(c2)

        if cell1.is_empty() and cell2.is_empty():
            raise PlumberError(_plumber_message("nothing to connect", c1))
        for cell in (cell1, cell2):
            if not cell.is_empty() and cell.pipe_id != pipe_id:
                raise PlumberError(_plumber_message(
                    f"attempt to connect pipe '{pipe_id}' to incompatible pipe '{cell.pipe_id}'", cell.coordinate))

        for cell, d in ((cell1, direction), (cell2, direction.opposite)):
            if cell.connection(d) == CellConnection.NO_CONNECTOR:
                raise PlumberError(_plumber_message("attempt to connect where no connector exists", cell.coordinate, d))
            if cell.connection(d) == CellConnection.FIXTURE_CONNECTION:
                raise PlumberError(_plumber_message(
                    "attempt to connect where fixed connection already exists", cell.coordinate, d))

        for cell in (cell1, cell2):
            count = cell.count_fixtures()
            if cell.is_endpoint() and count >= 1:
                raise PlumberError(_plumber_message(
                    "attempt to connect extra fixed connection to end point", cell.coordinate))
            if count >= 2:
                raise PlumberError(_plumber_message("attempt to connect extra fixed connection", cell.coordinate))

        logger.debug("Plumb %s from %s to %s for pipe %s", kind.name, c1, c2, pipe_id)
        cell1.pipe_id = pipe_id
        cell2.pipe_id = pipe_id
        cell1.possible_pipes = {pipe_id}
        cell2.possible_pipes = {pipe_id}
        if kind == CellConnection.FIXTURE_CONNECTION:
            cell1.connections[direction] = CellConnection.FIXTURE_CONNECTION
            cell2.connections[direction.opposite] = CellConnection.FIXTURE_CONNECTION
            for cell in (cell1, cell2):
                for d in TRAVERSAL_DIRECTIONS:
                    if cell.connections[d] == CellConnection.OPEN_CONNECTOR:
                        cell.connections[d] = CellConnection.OPEN_FIXTURE
        else:
            for cell, d in ((cell1, direction), (cell2, direction.opposite)):
                if cell.connections[d] == CellConnection.OPEN_CONNECTOR:
                    cell.connections[d] = CellConnection.TEMPORARY_CONNECTION

    @staticmethod
    def can_remove_connector(cell: Cell, direction: Direction) -> bool:
        """Whether remove_connector would succeed without raising."""
        connection = cell.connection(direction)
        if connection in (CellConnection.NO_CONNECTOR, CellConnection.FIXTURE_CONNECTION):
            return False
        count = sum(1 for c in cell.connections.values() if c != CellConnection.NO_CONNECTOR)
        return count > (1 if cell.is_endpoint() else 2)

    def remove_connector(self, cell: Cell, direction: Direction) -> bool:
        """
        Remove the connector of cell in direction.
        Returns False if there was none to remove.
        """
        connection = cell.connection(direction)
        if connection == CellConnection.NO_CONNECTOR:
            return False
        if connection == CellConnection.FIXTURE_CONNECTION:
            raise PlumberError(_plumber_message("cannot remove fixed connection", cell.coordinate, direction))

        count = sum(1 for c in cell.connections.values() if c != CellConnection.NO_CONNECTOR)
        if cell.is_endpoint() and count == 1:
            raise PlumberError(_plumber_message("cannot remove last connection from endpoint", cell.coordinate))
        if not cell.is_endpoint() and count <= 2:
            raise PlumberError(_plumber_message("cannot have less than 2 connections for cell", cell.coordinate))

        logger.debug("Remove connector at %s %s", cell.coordinate, direction.name)
        cell.connections[direction] = CellConnection.NO_CONNECTOR
        return True

    def commit_route(self, pipe_id: str, route) -> int:
        """Fix every step of route not already fixed. Returns the number of new connections."""
        made = 0
        for c1, c2 in zip(route, route[1:]):
            direction = direction_between(c1, c2)
            if direction is None:
                raise PlumberError(_plumber_message("route steps are not adjacent", c1))
            if self._cell(c1).connection(direction) == CellConnection.FIXTURE_CONNECTION:
                continue
            self.connect(c1, c2, pipe_id)
            made += 1
        return made
