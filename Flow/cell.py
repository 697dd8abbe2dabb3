"""
Cell model for Flow puzzle grids
"""
from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, Optional, Set

from .direction import Direction, Coordinate, TRAVERSAL_DIRECTIONS


class CellBorder(Enum):
    OPEN = 'open'
    WALL = 'wall'


class CellConnection(Enum):
    """Per-direction connection state of a cell."""
    NO_CONNECTOR = 'none'
    OPEN_CONNECTOR = 'open'
    TEMPORARY_CONNECTION = 'temporary'
    FIXTURE_CONNECTION = 'fixed'
    OPEN_FIXTURE = 'open-fixture'


class PipeEnd(Enum):
    NO_ENDPOINT = 0
    START = 1
    END = 2


# Connector states a new connection may be made through
CONNECTABLE = (CellConnection.OPEN_CONNECTOR, CellConnection.OPEN_FIXTURE, CellConnection.TEMPORARY_CONNECTION)


def _all_directions(value):
    return lambda: {d: value for d in TRAVERSAL_DIRECTIONS}


@dataclass
class Cell:
    """A single grid cell: borders, connectors, occupancy and possible pipes"""
    row: int
    col: int
    pipe_id: Optional[str] = None  # None when empty
    endpoint: PipeEnd = PipeEnd.NO_ENDPOINT
    reachable: bool = True
    borders: Dict[Direction, CellBorder] = field(default_factory=_all_directions(CellBorder.OPEN))
    connections: Dict[Direction, CellConnection] = field(
        default_factory=_all_directions(CellConnection.OPEN_CONNECTOR))
    possible_pipes: Set[str] = field(default_factory=set)

    @property
    def coordinate(self) -> Coordinate:
        return (self.row, self.col)

    def copy(self) -> 'Cell':
        return Cell(self.row, self.col, self.pipe_id, self.endpoint, self.reachable,
                    dict(self.borders), dict(self.connections), set(self.possible_pipes))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    def is_empty(self) -> bool:
        return self.pipe_id is None

    def is_endpoint(self) -> bool:
        return self.endpoint != PipeEnd.NO_ENDPOINT

    def is_wall(self, direction: Direction) -> bool:
        return self.borders[direction] == CellBorder.WALL

    def is_border_open(self, direction: Direction) -> bool:
        return self.borders[direction] == CellBorder.OPEN

    def connection(self, direction: Direction) -> CellConnection:
        return self.connections[direction]

    def count_walls(self) -> int:
        return sum(1 for d in TRAVERSAL_DIRECTIONS if self.is_wall(d))

    def fixture_directions(self):
        return [d for d in TRAVERSAL_DIRECTIONS
                if self.connections[d] == CellConnection.FIXTURE_CONNECTION]

    def count_fixtures(self) -> int:
        return len(self.fixture_directions())

    def fixture_limit(self) -> int:
        """Maximum number of fixed connections: endpoints terminate, others pass through."""
        return 1 if self.is_endpoint() else 2

    def needs_connection(self) -> bool:
        """True for a pipe cell that still has room for a fixed connection."""
        return not self.is_empty() and self.count_fixtures() < self.fixture_limit()

    def can_accept(self, direction: Direction) -> bool:
        """Whether a fixed connection could still be made through direction."""
        return (self.reachable
                and self.is_border_open(direction)
                and self.connections[direction] in CONNECTABLE
                and self.count_fixtures() < self.fixture_limit())

    def is_horizontal_channel(self) -> bool:
        return (self.is_wall(Direction.NORTH) and self.is_wall(Direction.SOUTH)
                and self.is_border_open(Direction.WEST) and self.is_border_open(Direction.EAST))

    def is_vertical_channel(self) -> bool:
        return (self.is_wall(Direction.WEST) and self.is_wall(Direction.EAST)
                and self.is_border_open(Direction.NORTH) and self.is_border_open(Direction.SOUTH))

    def is_channel(self) -> bool:
        return self.is_horizontal_channel() or self.is_vertical_channel()

    def is_corner(self) -> bool:
        return self.count_walls() == 2 and not self.is_channel()

    def describe(self) -> str:
        """One-line summary used in logs and diagnostics."""
        content = self.pipe_id if self.pipe_id is not None else ('.' if self.reachable else ' ')
        walls = ''.join(d.name[0] for d in TRAVERSAL_DIRECTIONS if self.is_wall(d))
        fixed = ''.join(d.name[0] for d in self.fixture_directions())
        text = f"{self.coordinate} '{content}' walls={walls or '-'} fixed={fixed or '-'}"
        if self.is_endpoint():
            text += f" {self.endpoint.name}"
        return text

    def __repr__(self):
        return f"Cell({self.describe()})"
