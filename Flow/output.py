import json
from datetime import datetime
from typing import Dict

from .direction import direction_between
from .puzzle import Puzzle, Route


class SolutionFormatter:
    """Formats puzzle solutions for output"""

    @staticmethod
    def format_solution_json(puzzle: Puzzle, routes: Dict[str, Route], stats: Dict) -> Dict:
        """
        Format solution as JSON
        """
        solution = {
            'puzzle_info': {
                'name': puzzle.name,
                'rows': puzzle.num_rows,
                'cols': puzzle.num_cols,
                'reachable_cells': int(puzzle.reachable_mask.sum()),
                'total_pipes': len(puzzle.pipe_ids),
                'solved': puzzle.check_if_solution(routes) if routes else False,
                'timestamp': datetime.now().isoformat()
            },
            'solving_stats': stats,
            'routes': []
        }

        for pipe_id in sorted(routes):
            route = routes[pipe_id]
            solution['routes'].append({
                'pipe': pipe_id,
                'length': len(route),
                'start': {'row': route[0][0], 'col': route[0][1]},
                'end': {'row': route[-1][0], 'col': route[-1][1]},
                'cells': [[r, c] for r, c in route],
                'turns': SolutionFormatter._count_turns(route)
            })

        return solution

    @staticmethod
    def _count_turns(route: Route) -> int:
        """Number of direction changes along a route"""
        steps = [direction_between(a, b) for a, b in zip(route, route[1:])]
        return sum(1 for a, b in zip(steps, steps[1:]) if a != b)

    @staticmethod
    def format_solution_human_readable(puzzle: Puzzle, routes: Dict[str, Route]) -> str:
        """
        Format solution as human-readable text
        """
        lines = []
        lines.append("=" * 60)
        lines.append("FLOW PUZZLE SOLUTION")
        lines.append("=" * 60)
        lines.append(f"\nPuzzle '{puzzle.name}' is {puzzle.num_rows}x{puzzle.num_cols}, "
                     f"{len(puzzle.pipe_ids)} pipes")
        lines.append(f"Routed {len(routes)} pipes\n")

        lines.append("ROUTES:")
        lines.append("-" * 60)

        for pipe_id in sorted(routes):
            route = routes[pipe_id]
            start, end = route[0], route[-1]
            lines.append(
                f"Pipe {pipe_id}: {len(route):3d} cells "
                f"from ({start[0]},{start[1]}) to ({end[0]},{end[1]}), "
                f"{SolutionFormatter._count_turns(route)} turns"
            )

        missing = [p for p in puzzle.pipe_ids if p not in routes]
        lines.append("\n" + "=" * 60)
        lines.append("VALIDATION:")
        lines.append("-" * 60)
        covered = sum(len(r) for r in routes.values())
        total = int(puzzle.reachable_mask.sum())
        mark = "✓" if covered == total and not missing else "✗"
        lines.append(f"Cells covered: {covered}/{total} {mark}")
        if missing:
            lines.append(f"Pipes without route: {', '.join(missing)} ✗")

        lines.append("=" * 60)

        return "\n".join(lines)

    @staticmethod
    def format_grid_visualization(puzzle: Puzzle) -> str:
        """
        Create a text-based grid visualization, walls included.
        """
        lines = []
        lines.append("\nGRID VISUALIZATION:")
        lines.append(puzzle.render())
        return "\n".join(lines)

    @staticmethod
    def save_solution(puzzle: Puzzle, routes: Dict[str, Route], stats: Dict, output_path: str):
        """
        Save solution to JSON file
        """
        solution = SolutionFormatter.format_solution_json(puzzle, routes, stats)

        with open(output_path, 'w') as f:
            json.dump(solution, f, indent=2)

        print(f"\n✓ Solution saved to: {output_path}")

    @staticmethod
    def save_human_readable(puzzle: Puzzle, routes: Dict[str, Route], output_path: str):
        """
        Save human-readable solution to text file
        """
        text = SolutionFormatter.format_solution_human_readable(puzzle, routes)
        text += "\n\n" + SolutionFormatter.format_grid_visualization(puzzle)

        with open(output_path, 'w') as f:
            f.write(text)

        print(f"✓ Human-readable solution saved to: {output_path}")
