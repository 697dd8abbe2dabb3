"""
Error types raised by the Flow solver.

Integrity errors abort a solve; search exhaustion is reported through return
values and never through these exceptions.
"""
from typing import List, Optional, Tuple


class PuzzleError(Exception):
    """Base class for puzzle errors, carrying call-site context."""

    def __init__(self, message: str, coordinate: Optional[Tuple[int, int]] = None):
        super().__init__(message)
        self.message = message
        self.coordinate = coordinate
        self.context: List[str] = []

    def add_context(self, context: str) -> 'PuzzleError':
        """Append context as the error travels up the call stack."""
        self.context.append(context)
        return self

    def __str__(self):
        text = self.message
        if self.coordinate is not None:
            text += f" at {self.coordinate}"
        if self.context:
            text += " | " + " | ".join(self.context)
        return text


class PuzzleDefinitionError(PuzzleError):
    """Malformed puzzle definition text."""


class PuzzleIntegrityError(PuzzleError):
    """Grid state is inconsistent (missing cell, broken route, ...)."""


class PlumberError(PuzzleError):
    """A connection request violated a cell invariant."""


class GraphError(PuzzleError):
    """Graph used on a node or state it does not hold."""


class NodeNotFoundError(GraphError):
    """A graph search ran out of nodes without satisfying its predicate."""
