"""Puzzle definitions shared by the tests"""
from Flow.puzzle import Puzzle


def open_grid(*cell_rows: str) -> str:
    """Definition text for cell rows with outer walls only."""
    n = (len(cell_rows[0]) - 1) // 2
    edge = " " + "= " * n
    middle = "|" + " " * (2 * n - 1) + "|"
    rows = [edge]
    for i, row in enumerate(cell_rows):
        if i > 0:
            rows.append(middle)
        rows.append(row)
    rows.append(edge)
    return ",".join(rows)


def make_puzzle(*cell_rows: str) -> Puzzle:
    return Puzzle.from_definition(open_grid(*cell_rows))


# Solved by propagation alone
SIMPLE_1 = open_grid(
    "|. . . . . . .|",
    "|A B . . . B A|",
)

SIMPLE_2 = open_grid(
    "|. . R Y . .|",
    "|. . B O G .|",
    "|. . O . . .|",
    "|R . G . . .|",
    "|Y . . . B .|",
    "|. . . . . .|",
)

SIMPLE_2_SOLUTION = {
    'R': [(0, 2), (0, 1), (0, 0), (1, 0), (2, 0), (3, 0)],
    'Y': [(0, 3), (0, 4), (0, 5), (1, 5), (2, 5), (3, 5), (4, 5), (5, 5),
          (5, 4), (5, 3), (5, 2), (5, 1), (5, 0), (4, 0)],
    'B': [(1, 2), (1, 1), (2, 1), (3, 1), (4, 1), (4, 2), (4, 3), (4, 4)],
    'O': [(1, 3), (2, 3), (2, 2)],
    'G': [(1, 4), (2, 4), (3, 4), (3, 3), (3, 2)],
}

# Cell (0, 4) is walled in on every side
WALLED_IN = ",".join([
    " = = = = = ",
    "|A . . A|.|",
    "|        =|",
    "|B . . . B|",
    " = = = = = ",
])
