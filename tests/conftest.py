import pytest

from Flow.puzzle import Puzzle
from helpers import SIMPLE_1, SIMPLE_2, WALLED_IN


@pytest.fixture
def simple1() -> Puzzle:
    return Puzzle.from_definition(SIMPLE_1, "simple1")


@pytest.fixture
def simple2() -> Puzzle:
    return Puzzle.from_definition(SIMPLE_2, "simple2")


@pytest.fixture
def walled_in() -> Puzzle:
    return Puzzle.from_definition(WALLED_IN, "walled_in")
