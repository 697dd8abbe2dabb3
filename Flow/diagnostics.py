"""
Diagnostics: inspect a puzzle's structure and what propagation can do with it
"""
from typing import Dict

from .formations import FormationChecker
from .heuristics import HeuristicDetector
from .puzzle import Puzzle
from .solver import FlowSolver


def analyze_puzzle_structure(puzzle: Puzzle) -> Dict:
    """Print the grid layout, pipes and cells with few ways in"""
    print("\n" + "=" * 70)
    print("PUZZLE STRUCTURE ANALYSIS")
    print("=" * 70)

    reachable = int(puzzle.reachable_mask.sum())
    unreachable = puzzle.num_rows * puzzle.num_cols - reachable
    print(f"\nGrid: {puzzle.num_rows}x{puzzle.num_cols}")
    print(f"Reachable cells: {reachable} ({unreachable} unreachable)")
    print(f"Pipes: {len(puzzle.pipe_ids)}")

    print("\n--- PIPE ANALYSIS ---")
    for pipe_id in puzzle.pipe_ids:
        start, end = puzzle.endpoints(pipe_id)
        gap = abs(start[0] - end[0]) + abs(start[1] - end[1])
        print(f"Pipe {pipe_id}: {start} -> {end}, distance {gap}")

    print("\n--- CONNECTIVITY ANALYSIS ---")
    isolated = []
    narrow = []
    for cell in puzzle.reachable_cells():
        ways = len(puzzle.open_directions(cell.coordinate))
        if ways == 0:
            isolated.append(cell.coordinate)
        elif ways == 1 and not cell.is_endpoint():
            narrow.append(cell.coordinate)
    for coord in narrow:
        print(f"Cell {coord} has only 1 way in")

    if isolated:
        print(f"\n⚠ WARNING: {len(isolated)} isolated cells found!")
        for coord in isolated:
            print(f"  Cell {coord}")

    dead = FormationChecker.find_dead_end_cell(puzzle)
    if dead is not None:
        print(f"\n⚠ Dead end at {dead}: puzzle cannot be solved")
    else:
        print("\nNo dead ends ✓")

    return {
        'reachable_cells': reachable,
        'pipes': len(puzzle.pipe_ids),
        'isolated_cells': isolated,
        'narrow_cells': narrow,
        'dead_end': dead
    }


def analyze_initial_moves(puzzle: Puzzle) -> int:
    """Print the connections forced by the untouched grid"""
    print("\n" + "=" * 70)
    print("INITIAL MOVE ANALYSIS")
    print("=" * 70)

    forced = HeuristicDetector.find_forced_moves(puzzle)
    print(f"\nForced moves available: {len(forced)}")
    for move in forced[:10]:
        print(f"  Pipe {move['pipe']} at {move['cell']} -> {move['direction'].name} ({move['reason']})")
    if len(forced) > 10:
        print(f"  ... and {len(forced) - 10} more")

    if not forced:
        print("\n⚠ No forced moves: the solver starts routing straight away")
    return len(forced)


def simulate_propagation(puzzle: Puzzle) -> FlowSolver:
    """Run propagation alone on a copy and report how far it gets"""
    print("\n" + "=" * 70)
    print("PROPAGATION SIMULATION")
    print("=" * 70)

    solver = FlowSolver(puzzle.copy(), verbose=False)
    moves = solver.propagate()
    completion = solver.puzzle.get_completion_percentage()
    routed = solver.puzzle.trace_routes()

    print(f"\nPropagation moves: {moves}")
    print(f"  only one way: {solver.stats['only_one_way']}")
    print(f"  fill to obstruction: {solver.stats['fill_to_obstruction']}")
    print(f"  only one possibility: {solver.stats['only_one_possibility']}")
    print(f"Possibilities removed: {solver.stats['possibilities_removed']}")
    print(f"Dead connectors removed: {solver.stats['connectors_removed']}")
    print(f"Completion after propagation: {completion:.1%}")
    print(f"Pipes routed: {len(routed)}/{len(puzzle.pipe_ids)} "
          f"{' '.join(sorted(routed))}")
    print("\n" + solver.puzzle.render())
    return solver


def run_diagnostics(puzzle: Puzzle) -> None:
    analyze_puzzle_structure(puzzle)
    analyze_initial_moves(puzzle)
    simulate_propagation(puzzle)
