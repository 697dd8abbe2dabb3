"""
Grid directions and coordinate arithmetic
"""
from enum import Enum
from typing import List, Optional, Tuple

Coordinate = Tuple[int, int]


class Direction(Enum):
    """Orthogonal traversal directions. Values are (row, col) offsets."""
    NORTH = (-1, 0)
    SOUTH = (1, 0)
    WEST = (0, -1)
    EAST = (0, 1)

    @property
    def offset(self) -> Tuple[int, int]:
        return self.value

    @property
    def opposite(self) -> 'Direction':
        return _OPPOSITES[self]

    @property
    def is_vertical(self) -> bool:
        return self in (Direction.NORTH, Direction.SOUTH)

    def perpendicular(self) -> Tuple['Direction', 'Direction']:
        """The two directions at right angles to this one."""
        if self.is_vertical:
            return (Direction.WEST, Direction.EAST)
        return (Direction.NORTH, Direction.SOUTH)

    def __str__(self):
        return self.name


_OPPOSITES = {
    Direction.NORTH: Direction.SOUTH,
    Direction.SOUTH: Direction.NORTH,
    Direction.WEST: Direction.EAST,
    Direction.EAST: Direction.WEST,
}

TRAVERSAL_DIRECTIONS: List[Direction] = [Direction.NORTH, Direction.SOUTH, Direction.WEST, Direction.EAST]

# Quadrants of a cell for 2x2 checks, listed clockwise from north-east
QUADRANTS: List[Tuple[Direction, Direction]] = [
    (Direction.NORTH, Direction.EAST),
    (Direction.EAST, Direction.SOUTH),
    (Direction.SOUTH, Direction.WEST),
    (Direction.WEST, Direction.NORTH),
]


def coordinate_change(coord: Coordinate, direction: Direction) -> Coordinate:
    """Coordinate one step in direction. No range check."""
    return (coord[0] + direction.value[0], coord[1] + direction.value[1])


def direction_between(c1: Coordinate, c2: Coordinate) -> Optional[Direction]:
    """Direction from c1 to orthogonally adjacent c2, or None if not adjacent."""
    delta = (c2[0] - c1[0], c2[1] - c1[1])
    for direction in TRAVERSAL_DIRECTIONS:
        if direction.value == delta:
            return direction
    return None


def are_adjacent(c1: Coordinate, c2: Coordinate) -> bool:
    return direction_between(c1, c2) is not None


def manhattan_distance(c1: Coordinate, c2: Coordinate) -> int:
    return abs(c1[0] - c2[0]) + abs(c1[1] - c2[1])
