"""
Formation checks: cell and wall arrangements that no solution can contain.

Each check takes the puzzle, a candidate route and the route's pipe id. The
route is expected to be injected into the puzzle (its cells carry the pipe
id) while the checks run.
"""
import logging
from collections import Counter, deque
from typing import Callable, Iterable, List, Optional, Set, Tuple

from .cell import Cell, CellConnection, CONNECTABLE
from .direction import Coordinate, Direction, QUADRANTS, coordinate_change
from .exceptions import PuzzleError
from .puzzle import Puzzle, Route

logger = logging.getLogger(__name__)

BlockedTest = Callable[[Cell, Direction], bool]


class FormationChecker:
    """Pruning oracles used while generating and accepting routes"""

    # -------------------------------------------------------------------------
    # Shared helpers
    # -------------------------------------------------------------------------
    @staticmethod
    def saturated_cells(puzzle: Puzzle, route: Route, pipe_id: str) -> Set[Coordinate]:
        """Route cells that can take no further connection: all but the head of an incomplete route."""
        if not route:
            return set()
        if puzzle.is_route_complete(pipe_id, route):
            return set(route)
        return set(route[:-1])

    @staticmethod
    def _accepts(cell: Cell, direction: Direction, saturated: Set[Coordinate]) -> bool:
        """A pipe cell still able to take a connection through direction."""
        return (not cell.is_empty()
                and cell.coordinate not in saturated
                and cell.can_accept(direction))

    @staticmethod
    def _find_sealed_pocket(puzzle: Puzzle, first: Cell, second: Cell, axis: Direction,
                            blocked: BlockedTest) -> Optional[List[Tuple[Cell, Direction]]]:
        """
        Two cells side by side (first -> second along axis), closed on one long
        side and both short ends, open on the other long side toward a pair of
        cells with no wall between them.

            . .         any pipe filling the pair must U-turn through the
           |. .|        cells above, forming a same-pipe 2x2 block
            ---

        Returns the sealing sides, or None.
        """
        for long_side in axis.perpendicular():
            exit_side = long_side.opposite
            sides = [(first, long_side), (second, long_side), (first, axis.opposite), (second, axis)]
            if not all(blocked(cell, d) for cell, d in sides):
                continue
            if blocked(first, exit_side) or blocked(second, exit_side):
                continue
            outer1 = puzzle.adjacent(first.coordinate, exit_side)
            outer2 = puzzle.adjacent(second.coordinate, exit_side)
            if outer1 is not None and outer2 is not None and outer1.is_border_open(axis):
                return sides
        return None

    @staticmethod
    def _empty_pairs_beside(puzzle: Puzzle, coords: Iterable[Coordinate], on_route: Set[Coordinate]):
        """Yield (first, second, axis) for adjacent empty cells next to coords and off the route."""
        for coord in coords:
            for d in puzzle.open_directions(coord):
                first = puzzle.adjacent(coord, d)
                if first.coordinate in on_route or not first.is_empty():
                    continue
                for axis in puzzle.open_directions(first.coordinate):
                    second = puzzle.adjacent(first.coordinate, axis)
                    if second.coordinate in on_route or not second.is_empty():
                        continue
                    yield first, second, axis

    # -------------------------------------------------------------------------
    # Dead end
    # -------------------------------------------------------------------------
    @staticmethod
    def is_dead_end_cell(puzzle: Puzzle, coord: Coordinate, saturated: Set[Coordinate] = frozenset()) -> bool:
        """
        True if the cell at coord can no longer be part of any valid route.

        An empty cell needs two ways in: two empty neighbors, one empty and one
        accepting pipe cell, or two accepting cells of the same pipe. A pipe
        cell needs one (endpoint) or two neighbors that are empty or of its
        own pipe. Saturated cells are complete and never dead ends.
        """
        cell = puzzle.cell_at(coord)
        if not cell.reachable or coord in saturated:
            return False
        directions = puzzle.open_directions(coord)
        if not directions:
            return True

        empties = 0
        matches = 0
        accepting = Counter()
        for d in directions:
            other = puzzle.adjacent(coord, d)
            if other.is_empty():
                if other.connection(d.opposite) != CellConnection.NO_CONNECTOR:
                    empties += 1
            elif other.pipe_id == cell.pipe_id:
                matches += 1
            elif FormationChecker._accepts(other, d.opposite, saturated):
                accepting[other.pipe_id] += 1

        if cell.is_empty():
            if empties >= 2:
                return False
            accepting = Counter({p: n for p, n in accepting.items() if p in cell.possible_pipes})
            if empties == 1 and accepting:
                return False
            return not any(n >= 2 for n in accepting.values())

        if cell.is_endpoint():
            return empties + matches < 1
        return empties + matches < 2

    @staticmethod
    def find_dead_end_cell(puzzle: Puzzle, saturated: Set[Coordinate] = frozenset()) -> Optional[Coordinate]:
        """First reachable cell that is a dead end, scanning row by row."""
        for cell in puzzle.reachable_cells():
            if FormationChecker.is_dead_end_cell(puzzle, cell.coordinate, saturated):
                return cell.coordinate
        return None

    @staticmethod
    def detect_dead_end(puzzle: Puzzle, route: Route, pipe_id: str, start_index: int = 0) -> bool:
        """
        Dead end caused by route: a single cell next to the route that can no
        longer be filled, or a two-cell pocket sealed by walls.

        start_index limits the scan to cells beside route[start_index:], for
        checking a path as it grows.
        """
        if not route:
            return False
        saturated = FormationChecker.saturated_cells(puzzle, route, pipe_id)
        on_route = set(route)
        tail = route[max(start_index, 0):]

        checked: Set[Coordinate] = set()
        for coord in tail:
            for d in puzzle.open_directions(coord):
                other = coordinate_change(coord, d)
                if other in on_route or other in checked:
                    continue
                checked.add(other)
                if FormationChecker.is_dead_end_cell(puzzle, other, saturated):
                    logger.debug("Dead end at %s beside route of %s", other, pipe_id)
                    return True

        for first, second, axis in FormationChecker._empty_pairs_beside(puzzle, tail, on_route):
            if FormationChecker._find_sealed_pocket(puzzle, first, second, axis, lambda c, d: c.is_wall(d)):
                logger.debug("Dead end pocket at %s-%s beside route of %s",
                             first.coordinate, second.coordinate, pipe_id)
                return True
        return False

    # -------------------------------------------------------------------------
    # Adjacency law
    # -------------------------------------------------------------------------
    @staticmethod
    def adjacency_law_broken(puzzle: Puzzle, route: Route) -> bool:
        """
        A solution never needs a 2x2 block of one pipe unless a wall divides
        it; the same path would fit in fewer cells.
        """
        for coord in route:
            center = puzzle.cell_at(coord)
            if center.is_empty():
                raise PuzzleError("expected pipe for adjacency check", coord)
            for d1, d2 in QUADRANTS:
                axis1 = puzzle.neighbor(coord, d1)
                axis2 = puzzle.neighbor(coord, d2)
                if axis1 is None or axis2 is None:
                    continue
                diagonal = puzzle.neighbor(axis1.coordinate, d2)
                if diagonal is None:
                    continue
                if any(c.pipe_id != center.pipe_id for c in (axis1, axis2, diagonal)):
                    continue
                if (center.is_wall(d1) or center.is_wall(d2)
                        or diagonal.is_wall(d2.opposite) or diagonal.is_wall(d1.opposite)):
                    continue
                logger.debug("Adjacency law broken at %s toward %s-%s", coord, d1.name, d2.name)
                return True
        return False

    # -------------------------------------------------------------------------
    # Invalid deviation
    # -------------------------------------------------------------------------
    @staticmethod
    def detect_invalid_deviation(puzzle: Puzzle, route: Route, pipe_id: str) -> bool:
        """
        A complete route leaving a two-cell gap closed by its own cells:

            X X . . X
              X X X X

        Any other pipe filling the gap would break the adjacency law. A gap
        of three or more cells is fine.
        """
        if not route or not puzzle.is_route_complete(pipe_id, route):
            return False
        on_route = set(route)

        def blocked(cell: Cell, d: Direction) -> bool:
            if cell.is_wall(d):
                return True
            other = puzzle.neighbor(cell.coordinate, d)
            return other is None or other.coordinate in on_route

        for first, second, axis in FormationChecker._empty_pairs_beside(puzzle, route, on_route):
            sides = FormationChecker._find_sealed_pocket(puzzle, first, second, axis, blocked)
            if sides and not all(cell.is_wall(d) for cell, d in sides):
                logger.debug("Invalid deviation of %s around %s-%s", pipe_id, first.coordinate, second.coordinate)
                return True
        return False

    # -------------------------------------------------------------------------
    # Entrapment
    # -------------------------------------------------------------------------
    @staticmethod
    def _flood(puzzle: Puzzle, pipe_id: str, head: Cell, targets: Set[Coordinate]) -> Tuple[bool, Set[Coordinate]]:
        """
        Flood from head through empty cells that may still hold pipe_id.
        Returns whether an accepting target cell was reached, and the empty cells reached.
        """
        found = False
        reached: Set[Coordinate] = set()
        queue = deque([head])
        while queue:
            cell = queue.popleft()
            for d in puzzle.open_directions(cell.coordinate):
                if cell.connection(d) not in CONNECTABLE and not cell.is_empty():
                    continue
                other = puzzle.adjacent(cell.coordinate, d)
                if other.coordinate in targets and other.can_accept(d.opposite):
                    found = True
                elif (other.is_empty() and other.coordinate not in reached
                        and other.connection(d.opposite) != CellConnection.NO_CONNECTOR
                        and pipe_id in other.possible_pipes):
                    reached.add(other.coordinate)
                    queue.append(other)
        return found, reached

    @staticmethod
    def detect_entrapment(puzzle: Puzzle, route: Route, pipe_id: str) -> bool:
        """
        True if, with route in place, some reachable cell is a dead end, some
        pipe can no longer join its two ends through empty cells, or some empty
        cell is out of reach of every unfinished pipe.
        """
        if not route:
            return False
        saturated = FormationChecker.saturated_cells(puzzle, route, pipe_id)
        dead = FormationChecker.find_dead_end_cell(puzzle, saturated)
        if dead is not None:
            logger.debug("Entrapment: dead end at %s with route of %s", dead, pipe_id)
            return True

        reachable_empty: Set[Coordinate] = set()
        for pipe in puzzle.pipe_ids:
            if pipe == pipe_id:
                if puzzle.is_route_complete(pipe_id, route):
                    continue
                start, end = puzzle.endpoints(pipe)
                far_end = end if route[0] == start else start
                head = route[-1]
            else:
                start, far_end = puzzle.endpoints(pipe)
                head = puzzle.follow_fixtures(start)[-1]
            end_side = puzzle.follow_fixtures(far_end)
            if head in end_side:
                continue

            found, reached = FormationChecker._flood(puzzle, pipe, puzzle.cell_at(head), {end_side[-1]})
            if not found:
                logger.debug("Entrapment: pipe %s cannot reach %s from %s", pipe, end_side[-1], head)
                return True
            reachable_empty |= reached

        for cell in puzzle.empty_cells():
            if cell.coordinate not in reachable_empty:
                logger.debug("Entrapment: empty cell %s out of reach of every pipe", cell.coordinate)
                return True
        return False

    # -------------------------------------------------------------------------
    # Combined
    # -------------------------------------------------------------------------
    @staticmethod
    def detect_bad_formation(puzzle: Puzzle, route: Route, pipe_id: str) -> bool:
        """Any formation that rules the route out, checked cheapest first."""
        checks = [
            ("adjacency law", lambda: FormationChecker.adjacency_law_broken(puzzle, route)),
            ("dead end", lambda: FormationChecker.detect_dead_end(puzzle, route, pipe_id)),
            ("invalid deviation", lambda: FormationChecker.detect_invalid_deviation(puzzle, route, pipe_id)),
            ("entrapment", lambda: FormationChecker.detect_entrapment(puzzle, route, pipe_id)),
        ]
        for name, check in checks:
            try:
                if check():
                    logger.debug("Bad formation (%s) for pipe %s route %s", name, pipe_id, route)
                    return True
            except PuzzleError as ex:
                logger.error("Puzzle error checking %s for pipe %s route %s: %s", name, pipe_id, route, ex)
                raise ex.add_context(f"checking {name} for pipe '{pipe_id}'")
        return False
