"""
Flow puzzle solver: propagation to a fixed point, then route search with backtracking.

Strategy:
1. Apply propagation rules (only forced connections) until nothing changes
2. Stop if every pipe already traces a complete route
3. Otherwise pick the most constrained unrouted pipe, enumerate its routes
   (pruned by formation checks), commit each candidate to a copy of the grid
   and solve the copy recursively
"""
import time
import logging
from typing import Dict, List, Optional

from .cell import Cell
from .direction import Coordinate, Direction, coordinate_change, manhattan_distance
from .exceptions import PuzzleError
from .formations import FormationChecker
from .heuristics import HeuristicDetector
from .plumber import Plumber
from .puzzle import Puzzle, PuzzleDefinition, Route
from .route_generator import Generation, RouteGenerator

logger = logging.getLogger(__name__)


def new_stats() -> Dict:
    return {
        'propagation_moves': 0,
        'only_one_way': 0,
        'fill_to_obstruction': 0,
        'only_one_possibility': 0,
        'possibilities_removed': 0,
        'connectors_removed': 0,
        'route_searches': 0,
        'routes_generated': 0,
        'routes_rejected': 0,
        'branches': 0,
        'backtracks': 0,
        'max_depth': 0,
        'elapsed_seconds': 0.0
    }


class FlowSolver:
    def __init__(self, puzzle: Puzzle, verbose: bool = True, use_propagation: bool = True,
                 validate_paths: bool = True, depth: int = 0, stats: Optional[Dict] = None):
        self.puzzle = puzzle
        self.plumber = Plumber(puzzle)
        self.verbose = verbose
        self.use_propagation = use_propagation
        self.validate_paths = validate_paths
        self.depth = depth
        # Shared by every solver of one search tree
        self.stats = stats if stats is not None else new_stats()
        self.solution: Optional[Dict[str, Route]] = None

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------
    def solve(self) -> bool:
        """
        Solve the puzzle. On success self.solution maps each pipe to its
        route and the grid cells are labeled.

        PuzzleErrors (corrupted grid state) propagate with added context.
        """
        start_time = time.time()
        if self.depth == 0 and self.verbose:
            print(f"Starting Flow solver: {self.puzzle}")
            print("Strategy: propagation rules + route search with backtracking\n")

        try:
            result = self._solve()
        finally:
            if self.depth == 0:
                self.stats['elapsed_seconds'] = time.time() - start_time

        if self.depth == 0 and self.verbose:
            print("\n✓ Puzzle solved!" if result else "\n✗ No solution found")
            self._print_stats()
        return result

    def _solve(self) -> bool:
        self.stats['max_depth'] = max(self.stats['max_depth'], self.depth)

        if self.use_propagation:
            moves = self.propagate()
            if self.verbose and self.depth == 0:
                print("=== Phase 1: Propagation ===")
                print(f"Propagation moves: {moves}")
            if self._has_contradiction():
                logger.debug("Depth %d: contradiction after propagation", self.depth)
                return False

        if self._check_solved():
            if self.verbose and self.depth == 0:
                print("\n✓ Solved by propagation alone!")
            return True

        dead = FormationChecker.find_dead_end_cell(self.puzzle)
        if dead is not None:
            logger.debug("Depth %d: dead end at %s, branch fails", self.depth, dead)
            return False

        pipe_id = self._select_pipe()
        if pipe_id is None:
            return False

        if self.verbose and self.depth == 0:
            cp = self.puzzle.get_completion_percentage()
            print("\n=== Phase 2: Route search ===")
            print(f"Starting at {cp:.1%} complete")
        if self.verbose and self.depth < 3:
            print(f"{'  ' * self.depth}Routing pipe {pipe_id}")

        self.stats['route_searches'] += 1
        generator = RouteGenerator(self.puzzle)
        if self.validate_paths:
            generator.set_path_validator(self._validate_path)
        try:
            generator.generate_routes(pipe_id, self._receive_route)
        except PuzzleError as ex:
            raise ex.add_context(f"solving depth {self.depth}, pipe '{pipe_id}'")
        return self.solution is not None

    # -------------------------------------------------------------------------
    # Propagation
    # -------------------------------------------------------------------------
    def propagate(self) -> int:
        """
        Run the rules in order until a full pass changes nothing,
        restarting from the first rule after every change.
        Returns the number of connections made.
        """
        made = 0
        while True:
            self._remove_completed_pipes()
            self._prune_connectors()
            if self._apply_rule('only_one_way', HeuristicDetector.find_only_one_way):
                made += 1
                continue
            if self._apply_rule('fill_to_obstruction', HeuristicDetector.find_fill_to_obstruction):
                made += 1
                continue
            if self._apply_corner_formations():
                continue
            if self._apply_rule('only_one_possibility', HeuristicDetector.find_only_one_possibility):
                made += 1
                continue
            break
        return made

    def _apply_rule(self, name: str, finder) -> bool:
        for cell in self.puzzle.reachable_cells():
            if not cell.needs_connection():
                continue
            direction = finder(self.puzzle, cell)
            if direction is not None:
                self._commit(cell, direction, name)
                return True
        return False

    def _commit(self, cell: Cell, direction: Direction, rule: str) -> None:
        target = coordinate_change(cell.coordinate, direction)
        logger.debug("Depth %d: %s connects %s %s to %s for pipe %s",
                     self.depth, rule, cell.coordinate, direction.name, target, cell.pipe_id)
        self.plumber.connect(cell.coordinate, target, cell.pipe_id)
        self.stats['propagation_moves'] += 1
        self.stats[rule] += 1

    def _apply_corner_formations(self) -> bool:
        removed = 0
        for cell in self.puzzle.reachable_cells():
            removed += HeuristicDetector.apply_corner_formations(self.puzzle, cell)
        self.stats['possibilities_removed'] += removed
        return removed > 0

    def _remove_completed_pipes(self) -> None:
        """A pipe with a complete route cannot occupy any other cell."""
        complete = set(self.puzzle.trace_routes())
        if not complete:
            return
        for cell in self.puzzle.empty_cells():
            if cell.possible_pipes & complete:
                self.stats['possibilities_removed'] += len(cell.possible_pipes & complete)
                cell.possible_pipes -= complete

    def _prune_connectors(self) -> None:
        """Remove connectors no connection can use; a removal may expose more."""
        removed = True
        while removed:
            removed = False
            for cell in self.puzzle.reachable_cells():
                for d in HeuristicDetector.find_dead_connectors(self.puzzle, cell):
                    if self.plumber.can_remove_connector(cell, d):
                        self.plumber.remove_connector(cell, d)
                        self.stats['connectors_removed'] += 1
                        removed = True

    def _has_contradiction(self) -> bool:
        """A pipe cell with nowhere to go, or an empty cell no pipe can fill."""
        for cell in self.puzzle.reachable_cells():
            if cell.is_empty():
                if not cell.possible_pipes:
                    logger.debug("No possible pipe left for %s", cell.coordinate)
                    return True
            elif cell.needs_connection() and not HeuristicDetector.possible_directions(self.puzzle, cell):
                logger.debug("No way on for %s", cell.describe())
                return True
        return False

    # -------------------------------------------------------------------------
    # Route search
    # -------------------------------------------------------------------------
    def _check_solved(self) -> bool:
        routes = self.puzzle.trace_routes()
        if len(routes) != len(self.puzzle.pipe_ids):
            return False
        if not self.puzzle.check_if_solution(routes):
            return False
        self.solution = routes
        return True

    def _unrouted_pipes(self) -> List[str]:
        return [p for p in self.puzzle.pipe_ids if self.puzzle.trace_route(p) is None]

    def _select_pipe(self) -> Optional[str]:
        """MRV: the unrouted pipe whose chain heads have the fewest ways on, then the shortest gap."""
        best = None
        best_key = None
        for pipe_id in self._unrouted_pipes():
            start, end = self.puzzle.endpoints(pipe_id)
            heads = [self.puzzle.follow_fixtures(start)[-1], self.puzzle.follow_fixtures(end)[-1]]
            options = sum(len(HeuristicDetector.possible_directions(self.puzzle, self.puzzle.cell_at(h)))
                          for h in heads)
            key = (options, manhattan_distance(heads[0], heads[1]), pipe_id)
            if best_key is None or key < best_key:
                best, best_key = pipe_id, key
        return best

    def _validate_path(self, pipe_id: str, path: List[Coordinate]) -> bool:
        """Reject a partial route already breaking the adjacency law or leaving a dead end at its tail."""
        with self.puzzle.injected_route(pipe_id, path):
            if FormationChecker.adjacency_law_broken(self.puzzle, path[-1:]):
                return False
            if FormationChecker.detect_dead_end(self.puzzle, path, pipe_id, start_index=len(path) - 2):
                return False
        return True

    def _receive_route(self, pipe_id: str, route: Route) -> Generation:
        self.stats['routes_generated'] += 1
        with self.puzzle.injected_route(pipe_id, route):
            if FormationChecker.detect_bad_formation(self.puzzle, route, pipe_id):
                self.stats['routes_rejected'] += 1
                return Generation.CONTINUE

        self.stats['branches'] += 1
        branch = self.puzzle.copy()
        Plumber(branch).commit_route(pipe_id, route)
        if self.verbose and self.depth < 2:
            print(f"{'  ' * self.depth}  Trying {pipe_id} route of {len(route)} cells")

        child = FlowSolver(branch, verbose=self.verbose, use_propagation=self.use_propagation,
                           validate_paths=self.validate_paths, depth=self.depth + 1, stats=self.stats)
        try:
            solved = child.solve()
        except PuzzleError as ex:
            raise ex.add_context(f"branch at depth {self.depth + 1} after routing '{pipe_id}'")

        if solved:
            self.solution = child.solution
            self.puzzle.check_if_solution(self.solution)
            return Generation.STOP

        self.stats['backtracks'] += 1
        if self.verbose and self.depth < 2:
            print(f"{'  ' * self.depth}  Backtrack")
        return Generation.CONTINUE

    # -------------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------------
    def _print_stats(self) -> None:
        """Print solving statistics."""
        print("\nSolving Statistics:")
        print(f"  Propagation moves: {self.stats['propagation_moves']}")
        print(f"    only one way: {self.stats['only_one_way']}, "
              f"fill to obstruction: {self.stats['fill_to_obstruction']}, "
              f"only one possibility: {self.stats['only_one_possibility']}")
        print(f"  Possibilities removed: {self.stats['possibilities_removed']}")
        print(f"  Connectors removed: {self.stats['connectors_removed']}")
        print(f"  Route searches: {self.stats['route_searches']}")
        print(f"  Routes generated: {self.stats['routes_generated']} "
              f"(rejected by formations: {self.stats['routes_rejected']})")
        print(f"  Branches: {self.stats['branches']}")
        print(f"  Backtracks: {self.stats['backtracks']}")
        print(f"  Max depth: {self.stats['max_depth']}")
        print(f"  Time: {self.stats['elapsed_seconds']:.2f}s")


def solve_definition(definition: str, verbose: bool = False, name: str = "puzzle") -> bool:
    """Parse a puzzle definition and solve it."""
    puzzle = PuzzleDefinition(definition, name).generate_puzzle()
    return FlowSolver(puzzle, verbose=verbose).solve()
