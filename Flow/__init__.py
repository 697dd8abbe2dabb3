"""
Flow Puzzle Solver Package

Solves Numberlink-style pipe puzzles: propagation rules, route generation
over a path graph, formation checks and recursive backtracking.
"""

from .cell import Cell, CellBorder, CellConnection, PipeEnd
from .direction import Direction
from .exceptions import (PuzzleError, PuzzleDefinitionError, PuzzleIntegrityError,
                         PlumberError, GraphError, NodeNotFoundError)
from .puzzle import Puzzle, PuzzleDefinition
from .plumber import Plumber
from .graph import Graph, Generation, Visitor
from .route_generator import RouteGenerator
from .formations import FormationChecker
from .heuristics import HeuristicDetector
from .solver import FlowSolver, solve_definition
from .output import SolutionFormatter

__version__ = "1.0.0"
__all__ = [
    'Cell',
    'CellBorder',
    'CellConnection',
    'PipeEnd',
    'Direction',
    'PuzzleError',
    'PuzzleDefinitionError',
    'PuzzleIntegrityError',
    'PlumberError',
    'GraphError',
    'NodeNotFoundError',
    'Puzzle',
    'PuzzleDefinition',
    'Plumber',
    'Graph',
    'Generation',
    'Visitor',
    'RouteGenerator',
    'FormationChecker',
    'HeuristicDetector',
    'FlowSolver',
    'solve_definition',
    'SolutionFormatter'
]
