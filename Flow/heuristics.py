"""
Propagation rules: connections and possibilities that the current grid forces.

Each finder looks at one pipe cell and reports what is forced; the solver
applies the result through the plumber and repeats until nothing changes.
"""
from typing import List, Dict, Optional

from .cell import Cell, CellConnection
from .direction import Direction, QUADRANTS
from .puzzle import Puzzle


class HeuristicDetector:
    """Detects forced connections and impossible pipe placements"""

    # -------------------------------------------------------------------------
    # Options of a pipe cell
    # -------------------------------------------------------------------------
    @staticmethod
    def option_directions(puzzle: Puzzle, cell: Cell) -> List[Direction]:
        """
        Directions in which a pipe cell still needing a connection could get
        one: an empty neighbor, or an accepting cell of the same pipe.
        """
        if not cell.needs_connection():
            return []
        options = []
        for d in puzzle.open_directions(cell.coordinate):
            if not cell.can_accept(d):
                continue
            other = puzzle.adjacent(cell.coordinate, d)
            if other.is_empty():
                if other.connection(d.opposite) != CellConnection.NO_CONNECTOR:
                    options.append(d)
            elif other.pipe_id == cell.pipe_id and other.can_accept(d.opposite):
                options.append(d)
        return options

    @staticmethod
    def possible_directions(puzzle: Puzzle, cell: Cell) -> List[Direction]:
        """Options whose empty neighbor may still hold this cell's pipe."""
        result = []
        for d in HeuristicDetector.option_directions(puzzle, cell):
            other = puzzle.adjacent(cell.coordinate, d)
            if not other.is_empty() or cell.pipe_id in other.possible_pipes:
                result.append(d)
        return result

    @staticmethod
    def find_dead_connectors(puzzle: Puzzle, cell: Cell) -> List[Direction]:
        """
        Open connectors of cell that no connection can use any more: those of
        a saturated pipe cell, and those facing a cell that cannot accept or
        belongs to another pipe.
        """
        saturated = not cell.is_empty() and cell.count_fixtures() >= cell.fixture_limit()
        dead = []
        for d in puzzle.open_directions(cell.coordinate):
            if cell.connection(d) not in (CellConnection.OPEN_CONNECTOR, CellConnection.OPEN_FIXTURE):
                continue
            other = puzzle.adjacent(cell.coordinate, d)
            if saturated:
                dead.append(d)
            elif other.is_empty():
                continue
            elif not other.can_accept(d.opposite):
                dead.append(d)
            elif not cell.is_empty() and other.pipe_id != cell.pipe_id:
                dead.append(d)
        return dead

    @staticmethod
    def _enterable_sides(puzzle: Puzzle, cell: Cell) -> List[Direction]:
        """Sides through which an empty cell could still be connected."""
        sides = []
        for d in puzzle.open_directions(cell.coordinate):
            other = puzzle.adjacent(cell.coordinate, d)
            if other.is_empty():
                if other.connection(d.opposite) != CellConnection.NO_CONNECTOR:
                    sides.append(d)
            elif other.can_accept(d.opposite) and other.pipe_id in cell.possible_pipes:
                sides.append(d)
        return sides

    # -------------------------------------------------------------------------
    # Rule 1: only one way
    # -------------------------------------------------------------------------
    @staticmethod
    def find_only_one_way(puzzle: Puzzle, cell: Cell) -> Optional[Direction]:
        """
        The single way on: one option left, one accepting cell of the same
        pipe, or the entrance of a channel lined up with the direction.
        """
        options = HeuristicDetector.option_directions(puzzle, cell)
        if len(options) == 1:
            return options[0]

        same_pipe = [d for d in options if not puzzle.adjacent(cell.coordinate, d).is_empty()]
        if len(same_pipe) == 1:
            return same_pipe[0]

        for d in options:
            other = puzzle.adjacent(cell.coordinate, d)
            if not other.is_empty():
                continue
            if d.is_vertical and other.is_vertical_channel():
                return d
            if not d.is_vertical and other.is_horizontal_channel():
                return d
        return None

    # -------------------------------------------------------------------------
    # Rule 2: fill to obstruction
    # -------------------------------------------------------------------------
    @staticmethod
    def find_fill_to_obstruction(puzzle: Puzzle, cell: Cell) -> Optional[Direction]:
        """
        An empty neighbor with only two ways in, one of them this cell, must
        connect here. Likewise the first of two empty cells running along a
        wall into a corner:

            X N1 N2|      N2 must turn; if N1 turned too the four cells
            -------       above and beside would form a 2x2 block
        """
        options = HeuristicDetector.option_directions(puzzle, cell)
        for d in options:
            other = puzzle.adjacent(cell.coordinate, d)
            if not other.is_empty():
                continue
            sides = HeuristicDetector._enterable_sides(puzzle, other)
            if len(sides) == 2 and d.opposite in sides:
                return d

        for d in options:
            first = puzzle.adjacent(cell.coordinate, d)
            if not first.is_empty():
                continue
            second = puzzle.adjacent(first.coordinate, d)
            if second is None or not second.is_empty() or not second.is_corner() or not second.is_wall(d):
                continue
            for wall in d.perpendicular():
                if not (first.is_wall(wall) and second.is_wall(wall)):
                    continue
                outer1 = puzzle.adjacent(first.coordinate, wall.opposite)
                outer2 = puzzle.adjacent(second.coordinate, wall.opposite)
                if outer1 is not None and outer2 is not None and outer1.is_border_open(d):
                    return d
        return None

    # -------------------------------------------------------------------------
    # Rule 3: corner formations
    # -------------------------------------------------------------------------
    @staticmethod
    def apply_corner_formations(puzzle: Puzzle, cell: Cell) -> int:
        """
        Remove this cell's pipe from an empty inside corner on its diagonal,
        and from the two cells between. The corner must join those two, and
        with this pipe the four cells would form an undivided 2x2 block.

        Returns the number of possibilities removed.
        """
        if cell.is_empty():
            return 0
        removed = 0
        for d1, d2 in QUADRANTS:
            axis1 = puzzle.adjacent(cell.coordinate, d1)
            axis2 = puzzle.adjacent(cell.coordinate, d2)
            if axis1 is None or axis2 is None:
                continue
            diagonal = puzzle.adjacent(axis1.coordinate, d2)
            if diagonal is None or puzzle.adjacent(axis2.coordinate, d1) is not diagonal:
                continue
            if not (axis1.is_empty() and axis2.is_empty() and diagonal.is_empty()):
                continue
            if not (diagonal.count_walls() == 2 and diagonal.is_wall(d1) and diagonal.is_wall(d2)):
                continue
            for target in (diagonal, axis1, axis2):
                if cell.pipe_id in target.possible_pipes:
                    target.possible_pipes.discard(cell.pipe_id)
                    removed += 1
        return removed

    # -------------------------------------------------------------------------
    # Rule 4: only one possibility
    # -------------------------------------------------------------------------
    @staticmethod
    def find_only_one_possibility(puzzle: Puzzle, cell: Cell) -> Optional[Direction]:
        """The single option leading to a cell that may still hold this pipe."""
        options = HeuristicDetector.option_directions(puzzle, cell)
        if len(options) < 2:
            return None
        possible = HeuristicDetector.possible_directions(puzzle, cell)
        if len(possible) == 1:
            return possible[0]
        return None

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------
    @staticmethod
    def find_forced_moves(puzzle: Puzzle) -> List[Dict]:
        """
        Forced connections in the current grid, without applying them.
        Returns list of dicts:
          { 'cell', 'direction', 'pipe', 'reason' }
        """
        finders = [
            ('only_one_way', HeuristicDetector.find_only_one_way),
            ('fill_to_obstruction', HeuristicDetector.find_fill_to_obstruction),
            ('only_one_possibility', HeuristicDetector.find_only_one_possibility),
        ]
        moves: List[Dict] = []
        for cell in puzzle.reachable_cells():
            if not cell.needs_connection():
                continue
            for reason, finder in finders:
                direction = finder(puzzle, cell)
                if direction is not None:
                    moves.append({
                        'cell': cell.coordinate,
                        'direction': direction,
                        'pipe': cell.pipe_id,
                        'reason': reason
                    })
                    break
        return moves
