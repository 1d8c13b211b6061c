"""Prime-weighted adiabatic gradient flow for SAT.

Clause c carries the weight w_c = 1 / log(p_c + 1), where p_c is the c-th
prime, so no two clauses pull with exactly the same strength. Variables
hold probabilities x_i ∈ [0.001, 0.999] and follow

    x ← clip(x + lr·β(t)·∇ Σ_c w_c·log(sat_c),  0.001, 0.999)

with β(t) = β_max·t / steps swept linearly from 0. The final state is
rounded at 0.5.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, NamedTuple, Optional, Sequence, Union
import math

import numpy as np

from core.options import coerce_options
from solvers.sat.problem import Clause, SatProblem

__all__ = ["NavokojOptions", "NavokojResult", "NavokojSolver", "first_primes", "prime_weights"]

_EPS = 1e-9
X_MIN = 0.001
X_MAX = 0.999
_INIT_JITTER = 0.001


def first_primes(n: int) -> np.ndarray:
    """The first n primes via a sieve sized by the prime-counting bound."""
    assert n >= 0, "n must be non-negative"
    if n == 0:
        return np.zeros(0, dtype=np.int64)
    # p_n < n (log n + log log n) for n ≥ 6
    limit = 15 if n < 6 else int(n * (math.log(n) + math.log(math.log(n)))) + 1
    sieve = np.ones(limit + 1, dtype=bool)
    sieve[:2] = False
    for p in range(2, int(math.isqrt(limit)) + 1):
        if sieve[p]:
            sieve[p * p::p] = False
    return np.flatnonzero(sieve)[:n].astype(np.int64)


def prime_weights(n: int) -> np.ndarray:
    """w_c = 1 / log(p_c + 1) for the first n primes."""
    return 1.0 / np.log(first_primes(n).astype(float) + 1.0)


@dataclass
class NavokojOptions:
    steps: int = 1000
    learning_rate: float = 0.1
    beta_max: float = 2.5
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if int(self.steps) < 0:
            raise ValueError("steps must be non-negative")
        if self.learning_rate <= 0.0:
            raise ValueError("learning_rate must be positive")
        if self.beta_max < 0.0:
            raise ValueError("beta_max must be non-negative")
        self.steps = int(self.steps)


class NavokojResult(NamedTuple):
    assignment: List[int]
    steps: int
    energy: float


class NavokojSolver:
    """Deterministic-flow SAT heuristic; only the initial jitter is random."""

    def __init__(
        self,
        num_vars: int,
        clauses: Sequence[Clause],
        options: Optional[Union[NavokojOptions, Mapping[str, Any]]] = None,
    ) -> None:
        self.problem = SatProblem.create(num_vars, clauses)
        self.options = coerce_options(NavokojOptions, options)
        self.num_vars = self.problem.num_vars
        self.clauses = self.problem.clauses
        self.weights = prime_weights(len(self.clauses))
        self._rng = np.random.default_rng(self.options.seed)
        self.x = 0.5 + _INIT_JITTER * self._rng.standard_normal(self.num_vars)
        m = len(self.clauses)
        width = max((len(c) for c in self.clauses), default=0)
        self._var_idx = np.zeros((m, width), dtype=np.intp)
        self._positive = np.zeros((m, width), dtype=bool)
        self._valid = np.zeros((m, width), dtype=bool)
        for ci, clause in enumerate(self.clauses):
            k = len(clause)
            self._var_idx[ci, :k] = [abs(lit) - 1 for lit in clause]
            self._positive[ci, :k] = [lit > 0 for lit in clause]
            self._valid[ci, :k] = True

    def _literal_probs(self) -> np.ndarray:
        xv = self.x[self._var_idx]
        return np.where(self._positive, xv, 1.0 - xv)

    def energy(self) -> float:
        """Weighted unsatisfied probability Σ_c w_c·Π(1 - p_ℓ)."""
        if len(self.clauses) == 0:
            return 0.0
        unsat = np.prod(np.where(self._valid, 1.0 - self._literal_probs(), 1.0), axis=1)
        return float(np.dot(self.weights, unsat))

    def gradient(self) -> np.ndarray:
        """Ascent direction of Σ_c w_c·log(sat_c) with respect to x."""
        grad = np.zeros(self.num_vars, dtype=float)
        if len(self.clauses) == 0:
            return grad
        p = self._literal_probs()
        unsat = np.prod(np.where(self._valid, 1.0 - p, 1.0), axis=1)
        coeff = self.weights * unsat / (1.0 - unsat + _EPS)
        sign = np.where(self._positive, 1.0, -1.0)
        contrib = coeff[:, None] * sign / (1.0 - p + _EPS)
        grad += np.bincount(self._var_idx[self._valid], weights=contrib[self._valid], minlength=self.num_vars)
        return grad

    def step(self, t: int) -> None:
        opts = self.options
        beta = (t / opts.steps) * opts.beta_max
        self.x = np.clip(self.x + opts.learning_rate * beta * self.gradient(), X_MIN, X_MAX)

    def get_assignment(self) -> List[int]:
        return [int(v) for v in (self.x > 0.5)]

    def solve(self) -> NavokojResult:
        """Run the full adiabatic sweep; zero clauses return at once."""
        if len(self.clauses) == 0:
            return NavokojResult(self.get_assignment(), 0, 0.0)
        for t in range(self.options.steps):
            self.step(t)
        return NavokojResult(self.get_assignment(), self.options.steps, self.energy())
