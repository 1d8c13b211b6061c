from __future__ import annotations

import numpy as np
import pytest

from solvers.sat.encoders import generate_3sat
from solvers.sat.navokoj import NavokojOptions, NavokojSolver, first_primes, prime_weights
from solvers.sat.problem import InvalidProblemError, verify


def test_first_primes_and_weights():
    assert first_primes(10).tolist() == [2, 3, 5, 7, 11, 13, 17, 19, 23, 29]
    assert first_primes(0).tolist() == []
    assert len(first_primes(1000)) == 1000
    assert first_primes(1000)[-1] == 7919
    w = prime_weights(5)
    assert w[0] == pytest.approx(1.0 / np.log(3.0))
    assert np.all(np.diff(w) < 0)


def test_zero_clauses_returns_immediately():
    assignment, steps, energy = NavokojSolver(4, []).solve()
    assert len(assignment) == 4
    assert steps == 0
    assert energy == 0.0


def test_unit_clauses_are_satisfied():
    clauses = [[1], [-2], [3]]
    solver = NavokojSolver(3, clauses, {"seed": 0, "steps": 200})
    start = solver.energy()
    assignment, steps, energy = solver.solve()
    assert assignment == [1, 0, 1]
    assert steps == 200
    assert energy < start


def test_shared_literal_instance_is_solved():
    clauses = [[1, 2], [-1, 2]]
    assignment, _, _ = NavokojSolver(2, clauses, {"seed": 1}).solve()
    assert verify(clauses, assignment) == 1.0


def test_state_stays_clamped():
    clauses = generate_3sat(15, ratio=4.0, seed=2, distinct=True)
    solver = NavokojSolver(15, clauses, NavokojOptions(steps=100, learning_rate=0.5, seed=2))
    for t in range(100):
        solver.step(t)
        assert np.all((solver.x >= 0.001) & (solver.x <= 0.999))
    assert 0.0 <= verify(clauses, solver.get_assignment()) <= 1.0


def test_gradient_matches_log_satisfaction_finite_difference():
    clauses = [[1, -2, 3], [-1, 2], [2, 3]]
    solver = NavokojSolver(3, clauses)
    x0 = np.array([0.3, 0.6, 0.45])

    def objective(x):
        solver.x = x
        p = solver._literal_probs()
        unsat = np.prod(np.where(solver._valid, 1.0 - p, 1.0), axis=1)
        return float(np.dot(solver.weights, np.log(1.0 - unsat)))

    solver.x = x0.copy()
    grad = solver.gradient()
    eps = 1e-6
    for i in range(3):
        up, down = x0.copy(), x0.copy()
        up[i] += eps
        down[i] -= eps
        assert grad[i] == pytest.approx((objective(up) - objective(down)) / (2 * eps), rel=1e-4, abs=1e-6)


def test_seeded_runs_repeat_and_bad_input_raises():
    clauses = generate_3sat(10, ratio=3.0, seed=0)
    a = NavokojSolver(10, clauses, {"seed": 3, "steps": 50}).solve()
    b = NavokojSolver(10, clauses, {"seed": 3, "steps": 50}).solve()
    assert a == b
    with pytest.raises(InvalidProblemError):
        NavokojSolver(2, [[3]])
    with pytest.raises(ValueError):
        NavokojOptions(learning_rate=0.0)
    with pytest.raises(ValueError):
        NavokojSolver(2, [[1]], {"beta": 1.0})
