"""CNF encoders for benchmark and test instances."""

from __future__ import annotations

from itertools import combinations
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from solvers.sat.problem import InvalidProblemError

__all__ = [
    "CRITICAL_RATIO",
    "generate_3sat",
    "encode_sudoku",
    "encode_n_queens",
    "decode_sudoku",
]

# Clause/variable ratio at the random 3-SAT phase transition
CRITICAL_RATIO = 4.26

SUDOKU_N = 9
SUDOKU_VARS = SUDOKU_N ** 3


def generate_3sat(
    num_vars: int,
    ratio: float = CRITICAL_RATIO,
    seed: Optional[int] = None,
    distinct: bool = False,
) -> List[List[int]]:
    """floor(num_vars * ratio) random 3-literal clauses with random polarity.

    With `distinct=True` the three variables of each clause differ.
    """
    assert num_vars > 0, "num_vars must be positive"
    if distinct and num_vars < 3:
        raise ValueError("distinct 3-SAT needs at least 3 variables")
    rng = np.random.default_rng(seed)
    n_clauses = int(np.floor(num_vars * ratio))
    clauses: List[List[int]] = []
    for _ in range(n_clauses):
        if distinct:
            vs = rng.choice(num_vars, size=3, replace=False) + 1
        else:
            vs = rng.integers(1, num_vars + 1, size=3)
        signs = np.where(rng.random(3) > 0.5, 1, -1)
        clauses.append([int(s * v) for s, v in zip(signs, vs)])
    return clauses


def _sudoku_var(r: int, c: int, v: int) -> int:
    # r, c in [0, 9), v in [1, 9]
    return (r * SUDOKU_N + c) * SUDOKU_N + v


def _parse_grid(grid: Union[str, Sequence[Sequence[int]]]) -> List[int]:
    if isinstance(grid, str):
        cells: List[int] = []
        for ch in grid:
            if ch.isspace():
                continue
            if ch in ".0":
                cells.append(0)
            elif ch.isdigit():
                cells.append(int(ch))
            else:
                raise InvalidProblemError(f"unexpected character {ch!r} in sudoku grid")
    else:
        cells = [int(v) for row in grid for v in row]
    if len(cells) != SUDOKU_N * SUDOKU_N:
        raise InvalidProblemError(f"sudoku grid needs 81 cells, got {len(cells)}")
    if any(v < 0 or v > SUDOKU_N for v in cells):
        raise InvalidProblemError("sudoku cell values must be 0-9")
    return cells


def encode_sudoku(grid: Union[str, Sequence[Sequence[int]]]) -> Tuple[int, List[List[int]]]:
    """9x9 Sudoku as CNF over 729 variables x(r, c, v).

    `grid` is an 81-character string ('1'-'9' given, '.' or '0' empty,
    whitespace ignored) or a 9x9 nested sequence with 0 for empty cells.
    """
    cells = _parse_grid(grid)
    n = SUDOKU_N
    clauses: List[List[int]] = []
    for r in range(n):
        for c in range(n):
            clauses.append([_sudoku_var(r, c, v) for v in range(1, n + 1)])
    for v in range(1, n + 1):
        for r in range(n):
            for c1, c2 in combinations(range(n), 2):
                clauses.append([-_sudoku_var(r, c1, v), -_sudoku_var(r, c2, v)])
        for c in range(n):
            for r1, r2 in combinations(range(n), 2):
                clauses.append([-_sudoku_var(r1, c, v), -_sudoku_var(r2, c, v)])
        for br in range(3):
            for bc in range(3):
                box = [(br * 3 + i, bc * 3 + j) for i in range(3) for j in range(3)]
                for (r1, c1), (r2, c2) in combinations(box, 2):
                    clauses.append([-_sudoku_var(r1, c1, v), -_sudoku_var(r2, c2, v)])
    for idx, val in enumerate(cells):
        if val:
            clauses.append([_sudoku_var(idx // n, idx % n, val)])
    return SUDOKU_VARS, clauses


def decode_sudoku(assignment: Sequence[int]) -> List[List[int]]:
    """9x9 grid from an assignment; a cell with no true value decodes to 0."""
    assert len(assignment) == SUDOKU_VARS, "assignment must cover 729 variables"
    grid = [[0] * SUDOKU_N for _ in range(SUDOKU_N)]
    for r in range(SUDOKU_N):
        for c in range(SUDOKU_N):
            for v in range(1, SUDOKU_N + 1):
                if assignment[_sudoku_var(r, c, v) - 1] == 1:
                    grid[r][c] = v
                    break
    return grid


def encode_n_queens(n: int) -> Tuple[int, List[List[int]]]:
    """N-Queens over n*n variables: one queen per row, at most one per column and diagonal."""
    assert n > 0, "n must be positive"

    def var(r: int, c: int) -> int:
        return r * n + c + 1

    clauses: List[List[int]] = [[var(r, c) for c in range(n)] for r in range(n)]
    for r in range(n):
        for c1, c2 in combinations(range(n), 2):
            clauses.append([-var(r, c1), -var(r, c2)])
    for c in range(n):
        for r1, r2 in combinations(range(n), 2):
            clauses.append([-var(r1, c), -var(r2, c)])
    for r1, r2 in combinations(range(n), 2):
        for c1 in range(n):
            for c2 in range(n):
                if abs(r1 - r2) == abs(c1 - c2):
                    clauses.append([-var(r1, c1), -var(r2, c2)])
    return n * n, clauses
