"""
Puzzle definition parsing and grid representation for Flow puzzles

A definition is a list of text rows, alternating border rows and cell rows:

     = = = = = = =      <- border row: '=' is a wall below/above a cell
    |. . . . . . .|     <- cell row: '|' is a wall, '.' empty, ' ' unreachable,
    |             |        anything else a pipe endpoint
    |A B . . . B A|
     = = = = = = =

Rows are separated by ',' (inline definitions) or by newlines (puzzle files).
"""
import re
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import List, Dict, Set, Tuple, Optional, Iterator

import numpy as np

from .cell import Cell, CellBorder, CellConnection, PipeEnd
from .direction import Direction, Coordinate, TRAVERSAL_DIRECTIONS, coordinate_change, direction_between
from .exceptions import PuzzleError, PuzzleDefinitionError, PuzzleIntegrityError

logger = logging.getLogger(__name__)

Route = List[Coordinate]

HORIZONTAL_WALL_CH = '='
VERTICAL_WALL_CH = '|'
EMPTY_CELL_CH = '.'
UNREACHABLE_CELL_CH = ' '
COMMENT_CH = '#'


class PuzzleDefinition:
    """Parses and validates the text form of a puzzle"""

    def __init__(self, definition: str, name: str = "puzzle"):
        self.name = name
        self.rows: List[str] = [line.rstrip('\r') for line in re.split(r'[,\n]', definition)]
        self.rows = [line for line in self.rows if line != '']
        if len(self.rows) < 3 or len(self.rows) % 2 == 0:
            raise PuzzleDefinitionError(
                f"definition '{name}' needs alternating border and cell rows, got {len(self.rows)} rows")

    @classmethod
    def from_file(cls, path: str) -> 'PuzzleDefinition':
        """Load a definition file, one row per line. Lines starting with '#' are comments."""
        with open(path, 'r') as f:
            lines = [line.rstrip('\n').rstrip('\r') for line in f]
        lines = [line.rstrip(',') for line in lines if not line.startswith(COMMENT_CH)]
        return cls('\n'.join(lines), name=Path(path).stem)

    @property
    def cell_rows(self) -> List[str]:
        return self.rows[1::2]

    @property
    def border_rows(self) -> List[str]:
        return self.rows[0::2]

    def generate_puzzle(self) -> 'Puzzle':
        cells = self._parse_cells()
        self._seal_unreachable(cells)
        self._assign_endpoints(cells)
        self._check_outer_walls(cells)
        self._init_connections(cells)
        puzzle = Puzzle(cells, self.name)
        puzzle.reset_possibilities()
        logger.debug("Generated %r", puzzle)
        return puzzle

    # -------------------------------------------------------------------------
    # Parsing
    # -------------------------------------------------------------------------
    def _parse_border_row(self, line: str, num_cols: int) -> List[CellBorder]:
        borders = []
        for col in range(num_cols):
            i = 2 * col + 1
            ch = line[i] if i < len(line) else ' '
            if ch == HORIZONTAL_WALL_CH:
                borders.append(CellBorder.WALL)
            elif ch == ' ':
                borders.append(CellBorder.OPEN)
            else:
                raise PuzzleDefinitionError(
                    f"invalid character '{ch}' in horizontal wall definition at column {i}")
        return borders

    def _parse_cells(self) -> List[List[Cell]]:
        cell_rows = self.cell_rows
        num_cols = (len(cell_rows[0]) - 1) // 2
        if num_cols < 1:
            raise PuzzleDefinitionError(f"cell row '{cell_rows[0]}' defines no cells")

        cells = []
        for r, line in enumerate(cell_rows):
            if len(line) != 2 * num_cols + 1:
                raise PuzzleDefinitionError(
                    f"cell row {r} has {len(line)} characters, expected {2 * num_cols + 1}")
            above = self._parse_border_row(self.border_rows[r], num_cols)
            below = self._parse_border_row(self.border_rows[r + 1], num_cols)
            row = []
            for c in range(num_cols):
                ch = line[2 * c + 1]
                if ch in (HORIZONTAL_WALL_CH, VERTICAL_WALL_CH):
                    raise PuzzleDefinitionError(f"wall character '{ch}' in cell position", (r, c))
                cell = Cell(r, c)
                cell.borders[Direction.NORTH] = above[c]
                cell.borders[Direction.SOUTH] = below[c]
                cell.borders[Direction.WEST] = self._vertical_border(line[2 * c])
                cell.borders[Direction.EAST] = self._vertical_border(line[2 * c + 2])
                if ch == UNREACHABLE_CELL_CH:
                    cell.reachable = False
                elif ch != EMPTY_CELL_CH:
                    cell.pipe_id = ch
                row.append(cell)
            cells.append(row)
        return cells

    @staticmethod
    def _vertical_border(ch: str) -> CellBorder:
        return CellBorder.WALL if ch == VERTICAL_WALL_CH else CellBorder.OPEN

    @staticmethod
    def _neighbor(cells: List[List[Cell]], cell: Cell, d: Direction) -> Optional[Cell]:
        r, c = coordinate_change(cell.coordinate, d)
        if 0 <= r < len(cells) and 0 <= c < len(cells[0]):
            return cells[r][c]
        return None

    def _seal_unreachable(self, cells: List[List[Cell]]) -> None:
        """Wall unreachable cells on every side, including their neighbors' side."""
        for row in cells:
            for cell in row:
                if cell.reachable:
                    continue
                for d in TRAVERSAL_DIRECTIONS:
                    cell.borders[d] = CellBorder.WALL
                    other = self._neighbor(cells, cell, d)
                    if other is not None:
                        other.borders[d.opposite] = CellBorder.WALL

    def _assign_endpoints(self, cells: List[List[Cell]]) -> None:
        found: Dict[str, int] = {}
        for row in cells:
            for cell in row:
                if cell.pipe_id is None:
                    continue
                count = found.get(cell.pipe_id, 0)
                if count >= 2:
                    raise PuzzleDefinitionError(
                        f"pipe '{cell.pipe_id}' has more than 2 endpoints", cell.coordinate)
                cell.endpoint = PipeEnd.START if count == 0 else PipeEnd.END
                found[cell.pipe_id] = count + 1
        single = sorted(p for p, n in found.items() if n != 2)
        if single:
            raise PuzzleDefinitionError(f"pipes without a second endpoint: {', '.join(single)}")
        if not found:
            raise PuzzleDefinitionError(f"definition '{self.name}' has no pipes")

    def _check_outer_walls(self, cells: List[List[Cell]]) -> None:
        num_rows, num_cols = len(cells), len(cells[0])
        for cell in (c for row in cells for c in row):
            edges = []
            if cell.row == 0:
                edges.append(Direction.NORTH)
            if cell.row == num_rows - 1:
                edges.append(Direction.SOUTH)
            if cell.col == 0:
                edges.append(Direction.WEST)
            if cell.col == num_cols - 1:
                edges.append(Direction.EAST)
            for d in edges:
                if not cell.is_wall(d):
                    raise PuzzleDefinitionError(f"outer wall incomplete on the {d.name} side", cell.coordinate)

    def _init_connections(self, cells: List[List[Cell]]) -> None:
        for row in cells:
            for cell in row:
                for d in TRAVERSAL_DIRECTIONS:
                    if cell.is_wall(d):
                        cell.connections[d] = CellConnection.NO_CONNECTOR
                    elif cell.is_endpoint():
                        cell.connections[d] = CellConnection.OPEN_FIXTURE
                    else:
                        cell.connections[d] = CellConnection.OPEN_CONNECTOR

        # Endpoints of different pipes side by side can never connect
        for row in cells:
            for cell in row:
                if not cell.is_endpoint():
                    continue
                for d in (Direction.SOUTH, Direction.EAST):
                    other = self._neighbor(cells, cell, d)
                    if other is not None and other.is_endpoint() and other.pipe_id != cell.pipe_id:
                        cell.connections[d] = CellConnection.NO_CONNECTOR
                        other.connections[d.opposite] = CellConnection.NO_CONNECTOR


class Puzzle:
    """Grid of cells with the queries and route primitives the solver relies on"""

    def __init__(self, cells: List[List[Cell]], name: str = "puzzle"):
        self.name = name
        self.num_rows = len(cells)
        self.num_cols = len(cells[0])
        self.grid = np.empty((self.num_rows, self.num_cols), dtype=object)
        for row in cells:
            for cell in row:
                self.grid[cell.row, cell.col] = cell
        # Reachability never changes after construction
        self.reachable_mask = np.array([[cell.reachable for cell in row] for row in cells], dtype=bool)

        self._endpoints: Dict[str, Dict[PipeEnd, Coordinate]] = {}
        for cell in self.cells():
            if cell.is_endpoint():
                self._endpoints.setdefault(cell.pipe_id, {})[cell.endpoint] = cell.coordinate
        self.pipe_ids: List[str] = sorted(self._endpoints)

    @classmethod
    def from_definition(cls, definition: str, name: str = "puzzle") -> 'Puzzle':
        return PuzzleDefinition(definition, name).generate_puzzle()

    def copy(self) -> 'Puzzle':
        """Deep copy, used so a search branch cannot corrupt its parent."""
        cells = [[self.grid[r, c].copy() for c in range(self.num_cols)] for r in range(self.num_rows)]
        return Puzzle(cells, self.name)

    def reset_possibilities(self) -> None:
        """Every reachable empty cell may hold any pipe; endpoints only their own."""
        for cell in self.cells():
            if not cell.reachable:
                cell.possible_pipes = set()
            elif cell.is_empty():
                cell.possible_pipes = set(self.pipe_ids)
            else:
                cell.possible_pipes = {cell.pipe_id}

    # -------------------------------------------------------------------------
    # Cell queries
    # -------------------------------------------------------------------------
    @property
    def shape(self) -> Tuple[int, int]:
        return (self.num_rows, self.num_cols)

    def in_bounds(self, coord: Coordinate) -> bool:
        return 0 <= coord[0] < self.num_rows and 0 <= coord[1] < self.num_cols

    def cell_at(self, coord: Coordinate) -> Cell:
        if not self.in_bounds(coord):
            raise PuzzleIntegrityError("coordinate out of range", coord)
        return self.grid[coord[0], coord[1]]

    def neighbor(self, coord: Coordinate, direction: Direction) -> Optional[Cell]:
        """Cell next to coord in direction, disregarding walls."""
        other = coordinate_change(coord, direction)
        if not self.in_bounds(other):
            return None
        return self.grid[other[0], other[1]]

    def adjacent(self, coord: Coordinate, direction: Direction) -> Optional[Cell]:
        """Cell next to coord in direction, only if no wall separates them."""
        if self.cell_at(coord).is_wall(direction):
            return None
        other = self.neighbor(coord, direction)
        if other is None or not other.reachable:
            return None
        return other

    def open_directions(self, coord: Coordinate) -> List[Direction]:
        """Directions not blocked by a wall or a removed connector."""
        cell = self.cell_at(coord)
        return [d for d in TRAVERSAL_DIRECTIONS
                if cell.connections[d] != CellConnection.NO_CONNECTOR
                and self.adjacent(coord, d) is not None]

    def cells(self) -> Iterator[Cell]:
        """All cells in row-major order."""
        for r in range(self.num_rows):
            for c in range(self.num_cols):
                yield self.grid[r, c]

    def reachable_cells(self) -> Iterator[Cell]:
        for r, c in zip(*np.nonzero(self.reachable_mask)):
            yield self.grid[r, c]

    def empty_cells(self) -> List[Cell]:
        return [cell for cell in self.reachable_cells() if cell.is_empty()]

    def endpoint(self, pipe_id: str, end: PipeEnd) -> Coordinate:
        try:
            return self._endpoints[pipe_id][end]
        except KeyError:
            raise PuzzleIntegrityError(f"no {end.name} endpoint for pipe '{pipe_id}'")

    def endpoints(self, pipe_id: str) -> Tuple[Coordinate, Coordinate]:
        return (self.endpoint(pipe_id, PipeEnd.START), self.endpoint(pipe_id, PipeEnd.END))

    def get_completion_percentage(self) -> float:
        total = int(self.reachable_mask.sum())
        if total == 0:
            return 1.0
        filled = sum(1 for cell in self.reachable_cells() if not cell.is_empty())
        return filled / total

    # -------------------------------------------------------------------------
    # Routes
    # -------------------------------------------------------------------------
    def follow_fixtures(self, coord: Coordinate) -> Route:
        """Walk fixed connections from coord (normally an endpoint) as far as they go."""
        route = [coord]
        while True:
            cell = self.cell_at(route[-1])
            onward = [coordinate_change(route[-1], d) for d in cell.fixture_directions()]
            onward = [c for c in onward if c not in route]
            if not onward:
                break
            route.append(onward[0])
            if self.cell_at(onward[0]).is_endpoint():
                break
        return route

    def trace_route(self, pipe_id: str) -> Optional[Route]:
        """The committed route for pipe from START to END, or None if incomplete."""
        start, end = self.endpoints(pipe_id)
        route = self.follow_fixtures(start)
        return route if route[-1] == end else None

    def trace_routes(self) -> Dict[str, Route]:
        """Complete committed routes, keyed by pipe."""
        routes = {}
        for pipe_id in self.pipe_ids:
            route = self.trace_route(pipe_id)
            if route is not None:
                routes[pipe_id] = route
        return routes

    def is_route_complete(self, pipe_id: str, route: Route) -> bool:
        return len(route) > 1 and set((route[0], route[-1])) == set(self.endpoints(pipe_id))

    def insert_route(self, pipe_id: str, route: Route) -> List[Coordinate]:
        """
        Mark route cells with pipe_id.
        Returns the coordinates that were empty before, for remove_route().
        """
        inserted = []
        for coord in route:
            cell = self.cell_at(coord)
            if cell.pipe_id is None:
                inserted.append(coord)
            elif cell.pipe_id != pipe_id:
                raise PuzzleError(f"route for pipe '{pipe_id}' crosses pipe '{cell.pipe_id}'", coord)
        for coord in inserted:
            self.cell_at(coord).pipe_id = pipe_id
        return inserted

    def remove_route(self, inserted: List[Coordinate]) -> None:
        for coord in inserted:
            self.cell_at(coord).pipe_id = None

    @contextmanager
    def injected_route(self, pipe_id: str, route: Route):
        """Temporarily occupy route cells with pipe_id; always removed on exit."""
        inserted = self.insert_route(pipe_id, route)
        try:
            yield inserted
        finally:
            self.remove_route(inserted)

    def check_if_solution(self, routes: Dict[str, Route]) -> bool:
        """
        Verify a full pipe -> route assignment:
        one route per pipe between its endpoints, adjacent steps through open
        borders, no shared coordinate, every reachable cell covered.
        Labels the cells on success.
        """
        if set(routes) != set(self.pipe_ids):
            return False

        covered: Set[Coordinate] = set()
        for pipe_id, route in routes.items():
            if not self.is_route_complete(pipe_id, route):
                return False
            for i, coord in enumerate(route):
                if coord in covered or not self.in_bounds(coord):
                    return False
                cell = self.cell_at(coord)
                if not cell.reachable:
                    return False
                if cell.pipe_id is not None and cell.pipe_id != pipe_id:
                    return False
                covered.add(coord)
                if i > 0:
                    d = direction_between(route[i - 1], coord)
                    if d is None or self.cell_at(route[i - 1]).is_wall(d):
                        return False

        if len(covered) != int(self.reachable_mask.sum()):
            return False

        for pipe_id, route in routes.items():
            for coord in route:
                cell = self.cell_at(coord)
                cell.pipe_id = pipe_id
                cell.possible_pipes = {pipe_id}
        return True

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------
    def render(self) -> str:
        """The grid in definition form, with current pipe ids in the cells."""
        lines = []
        for r in range(self.num_rows):
            lines.append(self._render_border_row(r, Direction.NORTH, edge=(r == 0)))
            row = ''
            for c in range(self.num_cols):
                cell = self.grid[r, c]
                row += VERTICAL_WALL_CH if cell.is_wall(Direction.WEST) else ' '
                if not cell.reachable:
                    row += UNREACHABLE_CELL_CH
                else:
                    row += cell.pipe_id if cell.pipe_id is not None else EMPTY_CELL_CH
            row += VERTICAL_WALL_CH if self.grid[r, self.num_cols - 1].is_wall(Direction.EAST) else ' '
            lines.append(row)
        lines.append(self._render_border_row(self.num_rows - 1, Direction.SOUTH, edge=True))
        return '\n'.join(lines)

    def _render_border_row(self, r: int, direction: Direction, edge: bool) -> str:
        side = ' ' if edge else VERTICAL_WALL_CH
        text = side
        for c in range(self.num_cols):
            text += HORIZONTAL_WALL_CH if self.grid[r, c].is_wall(direction) else ' '
            text += ' ' if c < self.num_cols - 1 else side
        return text

    def __repr__(self):
        return f"Puzzle({self.name}: {self.num_rows}x{self.num_cols}, {len(self.pipe_ids)} pipes)"
