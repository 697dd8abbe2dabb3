#!/usr/bin/env python3
"""
Flow Solver - Main Entry Point

Usage:
    python -m Flow.main data/puzzles/simple2.txt
    python -m Flow.main --diagnose data/puzzles/courtyard1.txt
    python -m Flow.main  # Solves all puzzles in data/puzzles/
"""

import sys
import logging
from pathlib import Path

from .diagnostics import run_diagnostics
from .exceptions import PuzzleError
from .logging_config import setup_logging
from .output import SolutionFormatter
from .puzzle import PuzzleDefinition
from .solver import FlowSolver

logger = logging.getLogger(__name__)

# ============================================================================
# CONFIGURATION
# ============================================================================
PUZZLE_PATH = "data/puzzles/simple2.txt"   # Puzzle to solve by default
PUZZLE_DIR = "data/puzzles"                # Puzzles solved in SOLVE_ALL mode
OUTPUT_DIR = "data/solutions"              # Base output directory
SOLVE_ALL = True                           # Set True to solve every puzzle in PUZZLE_DIR

# --- Solver Strategy Configuration ---

USE_PROPAGATION = True
# Apply the propagation rules before and between route searches
# - False: route search alone (slower, same solutions)

VALIDATE_PATHS = True
# Check partial routes while they are generated
# - False: only complete routes are checked (many more candidates)

LOG_LEVEL = logging.WARNING                # Console (stderr) log level
LOG_FILE = None                            # e.g. "data/solutions/solver.log"
LOG_FILE_LEVEL = logging.DEBUG             # Per-move trace when LOG_FILE is set
# ============================================================================

PROJECT_ROOT = Path(__file__).parent.parent


def solve_puzzle(input_path: str, output_dir: str = None, verbose: bool = True,
                 use_propagation: bool = USE_PROPAGATION,
                 validate_paths: bool = VALIDATE_PATHS):
    """
    Solve a single puzzle file and save results.

    Args:
        input_path: Path to the puzzle definition file
        output_dir: Directory for output files (default: data/solutions/<puzzle_name>/)
        verbose: Print detailed solving progress
        use_propagation: Enable the propagation rules
        validate_paths: Enable partial route checks

    Returns (solved, puzzle, solver); puzzle and solver are None if loading failed.
    """
    puzzle_name = Path(input_path).stem

    if output_dir is None:
        output_dir = PROJECT_ROOT / OUTPUT_DIR / puzzle_name

    output_dir = Path(output_dir)

    print(f"\n{'='*60}")
    print(f"Loading puzzle: {input_path}")
    print(f"Output directory: {output_dir}")
    print(f"{'='*60}")

    puzzle = None
    solver = None
    try:
        puzzle = PuzzleDefinition.from_file(str(input_path)).generate_puzzle()
        solver = FlowSolver(
            puzzle,
            verbose=verbose,
            use_propagation=use_propagation,
            validate_paths=validate_paths
        )

        if verbose:
            print("\nSolver Configuration:")
            print(f"  Propagation: {'ON' if use_propagation else 'OFF'}")
            print(f"  Partial route checks: {'ON' if validate_paths else 'OFF'}")
            print("\n" + puzzle.render() + "\n")

        solved = solver.solve()

        if solved:
            print(f"\n{'='*60}")
            print("SUCCESS! Puzzle solved ✓")
            print(f"{'='*60}")

            output_dir.mkdir(parents=True, exist_ok=True)
            json_output = output_dir / "solution.json"
            text_output = output_dir / "solution.txt"

            SolutionFormatter.save_solution(puzzle, solver.solution, solver.stats, str(json_output))
            SolutionFormatter.save_human_readable(puzzle, solver.solution, str(text_output))

            if verbose:
                print("\n" + SolutionFormatter.format_solution_human_readable(puzzle, solver.solution))
                print(SolutionFormatter.format_grid_visualization(puzzle))
        else:
            print(f"\n{'='*60}")
            print("FAILED: Could not solve puzzle ✗")
            print(f"{'='*60}")

        return solved, puzzle, solver

    except KeyboardInterrupt:
        print(f"\n\n{'='*60}")
        print("⚠ Solving interrupted by user (Ctrl+C)")
        print(f"{'='*60}")
        if solver is not None:
            print(f"\nProgress when stopped: {puzzle.get_completion_percentage():.1%} complete")
            solver._print_stats()
        return False, puzzle, solver

    except (PuzzleError, OSError) as e:
        logger.error("Error while solving %s: %s", input_path, e)
        print(f"\nError while solving {input_path}: {e}")
        return False, puzzle, solver


def solve_all_puzzles(data_dir: str = None, output_dir: str = None,
                      use_propagation: bool = USE_PROPAGATION,
                      validate_paths: bool = VALIDATE_PATHS) -> bool:
    """
    Solve all puzzles in data/puzzles/ (or a specified directory).
    Returns True if every puzzle was solved.
    """
    if data_dir is None:
        data_dir = PROJECT_ROOT / PUZZLE_DIR

    data_path = Path(data_dir)
    if not data_path.exists():
        print(f"Error: Directory not found: {data_dir}")
        return False

    puzzle_files = sorted(data_path.glob("*.txt"))
    if not puzzle_files:
        print(f"No puzzles found in {data_dir}")
        return False

    print(f"\nFound {len(puzzle_files)} puzzle(s) to solve")

    results = []
    for i, puzzle_file in enumerate(puzzle_files, 1):
        print(f"\n[{i}/{len(puzzle_files)}] Solving {puzzle_file.name}...")

        puzzle_output = Path(output_dir) / puzzle_file.stem if output_dir else None
        solved, puzzle, solver = solve_puzzle(
            str(puzzle_file),
            output_dir=puzzle_output,
            verbose=False,
            use_propagation=use_propagation,
            validate_paths=validate_paths
        )

        results.append({
            'file': puzzle_file.name,
            'solved': bool(solved),
            'pipes': len(puzzle.pipe_ids) if puzzle else None,
            'routes': solver.stats['routes_generated'] if solver else None,
            'backtracks': solver.stats['backtracks'] if solver else None,
            'propagation_moves': solver.stats['propagation_moves'] if solver else None,
            'seconds': solver.stats['elapsed_seconds'] if solver else None
        })

        status = "✓ SOLVED" if solved else "✗ FAILED"
        print(f"  {status}")

    # ---------------------------
    # Print summary
    # ---------------------------
    print(f"\n{'='*60}")
    print("SUMMARY")
    print(f"{'='*60}")
    solved_count = sum(1 for r in results if r['solved'])
    total_count = len(results)
    solve_rate = (solved_count / total_count * 100) if total_count > 0 else 0

    print(f"Solved: {solved_count}/{total_count} puzzles ({solve_rate:.1f}%)")
    print(f"{'='*60}\n")

    for r in results:
        status = "✓" if r['solved'] else "✗"
        print(f"{status} {r['file']:30s}", end="")
        if r['solved']:
            print(f" - {r['pipes']} pipes, {r['propagation_moves']} propagation moves, "
                  f"{r['routes']} routes, {r['backtracks']} backtracks, {r['seconds']:.2f}s")
        else:
            print(" - Failed")

    return solved_count == total_count


def _resolve(input_file: str) -> Path:
    path = Path(input_file)
    if not path.is_absolute() and not path.exists():
        path = PROJECT_ROOT / input_file
    if not path.exists():
        print(f"Error: File not found: {input_file}")
        sys.exit(1)
    return path


def main(argv=None) -> int:
    """Main entry point. Returns the process exit code."""
    args = list(sys.argv[1:] if argv is None else argv)
    setup_logging(LOG_LEVEL, LOG_FILE, LOG_FILE_LEVEL)

    if args and args[0] in ("--diagnose", "-d"):
        if len(args) < 2:
            print("Usage: python -m Flow.main --diagnose <puzzle.txt>")
            return 1
        try:
            puzzle = PuzzleDefinition.from_file(str(_resolve(args[1]))).generate_puzzle()
        except PuzzleError as e:
            print(f"\nError loading {args[1]}: {e}")
            return 1
        run_diagnostics(puzzle)
        return 0

    if args:
        results = [solve_puzzle(str(_resolve(a)), verbose=True)[0] for a in args]
        return 0 if all(results) else 1

    if SOLVE_ALL:
        print(f"SOLVE_ALL mode enabled - solving all puzzles in {PUZZLE_DIR}/")
        return 0 if solve_all_puzzles() else 1

    print(f"Using configured PUZZLE_PATH: {PUZZLE_PATH}")
    solved, _, _ = solve_puzzle(str(_resolve(PUZZLE_PATH)), verbose=True)
    return 0 if solved else 1


if __name__ == "__main__":
    sys.exit(main())
