from __future__ import annotations

import math

import pytest

from solvers.sat.encoders import decode_sudoku, encode_n_queens, encode_sudoku, generate_3sat
from solvers.sat.problem import InvalidProblemError, SatProblem, verify


def _solved_grid():
    return [[(r * 3 + r // 3 + c) % 9 + 1 for c in range(9)] for r in range(9)]


def _grid_to_assignment(grid):
    assignment = [0] * 729
    for r in range(9):
        for c in range(9):
            assignment[(r * 9 + c) * 9 + grid[r][c] - 1] = 1
    return assignment


def test_generate_3sat_shape_and_reproducibility():
    clauses = generate_3sat(50, ratio=4.26, seed=3)
    assert len(clauses) == math.floor(50 * 4.26)
    assert all(len(c) == 3 for c in clauses)
    SatProblem.create(50, clauses)
    assert generate_3sat(50, seed=3) == clauses


def test_generate_3sat_distinct_variables():
    clauses = generate_3sat(10, ratio=5.0, seed=0, distinct=True)
    assert all(len({abs(lit) for lit in c}) == 3 for c in clauses)
    with pytest.raises(ValueError):
        generate_3sat(2, distinct=True)


def test_sudoku_encoding_counts():
    num_vars, clauses = encode_sudoku("." * 81)
    assert num_vars == 729
    assert len(clauses) == 81 + 9 * 3 * 9 * 36
    num_vars, with_givens = encode_sudoku("1" + "0" * 80)
    assert len(with_givens) == len(clauses) + 1
    assert with_givens[-1] == [1]


def test_solved_sudoku_satisfies_its_encoding():
    grid = _solved_grid()
    givens = "".join(str(v) if (r + c) % 4 == 0 else "." for r, row in enumerate(grid) for c, v in enumerate(row))
    _, clauses = encode_sudoku(givens)
    assignment = _grid_to_assignment(grid)
    assert verify(clauses, assignment) == 1.0
    assert decode_sudoku(assignment) == grid


def test_sudoku_accepts_nested_grid_and_rejects_bad_input():
    grid = _solved_grid()
    _, clauses = encode_sudoku(grid)
    assert len(clauses) == 81 + 9 * 3 * 9 * 36 + 81
    with pytest.raises(InvalidProblemError):
        encode_sudoku("123")
    with pytest.raises(InvalidProblemError):
        encode_sudoku("x" * 81)


def test_n_queens_encoding():
    num_vars, clauses = encode_n_queens(4)
    assert num_vars == 16
    assert len(clauses) == 4 + 24 + 24 + 28
    cols = [1, 3, 0, 2]
    assignment = [0] * 16
    for r, c in enumerate(cols):
        assignment[r * 4 + c] = 1
    assert verify(clauses, assignment) == 1.0
    attacking = [0] * 16
    for r in range(4):
        attacking[r * 4 + r] = 1
    assert verify(clauses, attacking) < 1.0
