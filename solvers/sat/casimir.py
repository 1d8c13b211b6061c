"""Continuous-relaxation SAT solver driven by Langevin dynamics.

Each variable carries a probability x_i ∈ (0, 1) of being true. Treating the
literals of a clause as independent (mean-field), the probability a clause is
unsatisfied is

    unsat_c = Π_{ℓ ∈ c} (1 - x_ℓ)      with x_ℓ = x_i for +i and 1 - x_i for -i

and the energy is E = Σ_c unsat_c². Dynamics run in logit space:

    u ← u - lr·∂E/∂x + 0.1·√(2T)·ξ,    ξ ~ N(0, 1)
    x = σ(β·u)

while T falls as 2 / log(1 + 0.05 t) and β rises as 1 + 0.01 t, so the
sigmoid sharpens and probabilities crystallise toward 0/1.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, NamedTuple, Optional, Sequence, Union
import math

import numpy as np

from core.options import coerce_options
from core.schedules import linear_beta, logarithmic_temperature
from solvers.sat.problem import Clause, SatProblem

__all__ = ["CasimirOptions", "CasimirResult", "CasimirStep", "CasimirSolver"]

# Factors at or below this are treated as exactly 0 when dividing
_FACTOR_EPS = 1e-10
INDECISIVE_LOW = 0.1
INDECISIVE_HIGH = 0.9


@dataclass
class CasimirOptions:
    temperature: float = 2.0
    learning_rate: float = 0.5
    correlation_length: float = 3.0
    convergence_tol: float = 1e-3
    noise_scale: float = 0.1
    correlation_decay: float = 0.995
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.temperature < 0.0:
            raise ValueError("temperature must be non-negative")
        if self.learning_rate <= 0.0:
            raise ValueError("learning_rate must be positive")
        if self.convergence_tol < 0.0:
            raise ValueError("convergence_tol must be non-negative")
        if self.noise_scale < 0.0:
            raise ValueError("noise_scale must be non-negative")


class CasimirResult(NamedTuple):
    assignment: List[int]
    steps: int
    energy: float


@dataclass(frozen=True)
class CasimirStep:
    step: int
    energy: float
    best_energy: float
    temperature: float
    beta: float
    correlation_length: float
    indecisive_fraction: float


def _sigmoid(z: np.ndarray) -> np.ndarray:
    # tanh form never overflows
    return 0.5 * (1.0 + np.tanh(0.5 * z))


class CasimirSolver:
    """Langevin relaxation of clause-satisfaction probabilities."""

    def __init__(
        self,
        num_vars: int,
        clauses: Sequence[Clause],
        options: Optional[Union[CasimirOptions, Mapping[str, Any]]] = None,
    ) -> None:
        self.problem = SatProblem.create(num_vars, clauses)
        self.options = coerce_options(CasimirOptions, options)
        self.num_vars = self.problem.num_vars
        self.clauses = self.problem.clauses
        self.temperature = float(self.options.temperature)
        self.learning_rate = float(self.options.learning_rate)
        self.correlation_length = float(self.options.correlation_length)
        self.step_count = 0
        self.beta = 1.0
        self.u = np.zeros(self.num_vars, dtype=float)
        self.x = _sigmoid(self.beta * self.u)
        self.on_step: List[Callable[[CasimirStep], None]] = []
        self._rng = np.random.default_rng(self.options.seed)
        self._build_clause_matrix()
        self.best_energy = self.total_energy()

    def _build_clause_matrix(self) -> None:
        """Pad clauses into (m, L) index/polarity arrays; padding factors are 1."""
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

    def _factors(self) -> np.ndarray:
        xv = self.x[self._var_idx]
        f = np.where(self._positive, 1.0 - xv, xv)
        return np.where(self._valid, f, 1.0)

    def fractional_satisfaction(self, clause: Clause) -> float:
        """s_c = 1 - Π(unsatisfied-literal probabilities)."""
        unsat = 1.0
        for lit in clause:
            xi = float(self.x[abs(lit) - 1])
            unsat *= (1.0 - xi) if lit > 0 else xi
        return 1.0 - unsat

    def clause_unsat(self) -> np.ndarray:
        """unsat_c for every clause."""
        if len(self.clauses) == 0:
            return np.zeros(0, dtype=float)
        return np.prod(self._factors(), axis=1)

    def total_energy(self) -> float:
        """E = Σ_c (1 - s_c)²; identically 0 for an empty clause set."""
        if len(self.clauses) == 0:
            return 0.0
        unsat = self.clause_unsat()
        return float(np.dot(unsat, unsat))

    def compute_gradients(self) -> np.ndarray:
        """∂E/∂x_i = Σ_c 2·unsat_c·∂unsat_c/∂x_i.

        Satisfied clauses (unsat_c == 0) contribute nothing; a literal whose
        factor is ≤ 1e-10 is skipped instead of divided by.
        """
        grads = np.zeros(self.num_vars, dtype=float)
        if len(self.clauses) == 0:
            return grads
        f = self._factors()
        unsat = np.prod(f, axis=1)
        usable = self._valid & (unsat != 0.0)[:, None] & (f > _FACTOR_EPS)
        ratio = unsat[:, None] / np.where(usable, f, 1.0)
        d_unsat = np.where(self._positive, -ratio, ratio)
        contrib = 2.0 * unsat[:, None] * d_unsat
        grads += np.bincount(self._var_idx[usable], weights=contrib[usable], minlength=self.num_vars)
        return grads

    def langevin_step(self) -> float:
        """One noisy gradient step plus the annealing update; returns the new energy."""
        grads = self.compute_gradients()
        noise = math.sqrt(2.0 * self.temperature) * self._rng.standard_normal(self.num_vars)
        self.u += -self.learning_rate * grads + self.options.noise_scale * noise

        self.step_count += 1
        self.temperature = logarithmic_temperature(self.step_count)
        self.beta = linear_beta(self.step_count)
        self.correlation_length *= self.options.correlation_decay
        self.x = _sigmoid(self.beta * self.u)

        energy = self.total_energy()
        if energy < self.best_energy:
            self.best_energy = energy
        if self.on_step:
            event = CasimirStep(
                step=self.step_count,
                energy=energy,
                best_energy=self.best_energy,
                temperature=self.temperature,
                beta=self.beta,
                correlation_length=self.correlation_length,
                indecisive_fraction=self.indecisive_fraction(),
            )
            for cb in self.on_step:
                cb(event)
        return energy

    def indecisive_fraction(self) -> float:
        """Share of variables still inside the (0.1, 0.9) band."""
        if self.num_vars == 0:
            return 0.0
        band = (self.x > INDECISIVE_LOW) & (self.x < INDECISIVE_HIGH)
        return float(np.count_nonzero(band)) / float(self.num_vars)

    def is_converged(self, tol: Optional[float] = None) -> bool:
        if len(self.clauses) == 0:
            return True
        return self._converged(self.total_energy(), tol)

    def _converged(self, energy: float, tol: Optional[float]) -> bool:
        limit = self.options.convergence_tol if tol is None else float(tol)
        if energy > limit:
            return False
        return self.indecisive_fraction() == 0.0

    def get_assignment(self) -> List[int]:
        return [int(v) for v in (self.x > 0.5)]

    def solve(self, max_steps: int = 1000) -> CasimirResult:
        """Run until converged or max_steps; returns (assignment, steps, energy)."""
        assert max_steps >= 0, "max_steps must be non-negative"
        if len(self.clauses) == 0:
            return CasimirResult(self.get_assignment(), 0, 0.0)
        energy = self.total_energy()
        for step in range(1, max_steps + 1):
            energy = self.langevin_step()
            if self._converged(energy, None):
                return CasimirResult(self.get_assignment(), step, energy)
        return CasimirResult(self.get_assignment(), max_steps, energy)

    def build_adjacency(self) -> np.ndarray:
        """Symmetric 0/1 variable interaction matrix (variables sharing a clause)."""
        adj = np.zeros((self.num_vars, self.num_vars), dtype=float)
        for clause in self.clauses:
            vs = sorted({abs(lit) - 1 for lit in clause})
            for a in range(len(vs)):
                for b in range(a + 1, len(vs)):
                    adj[vs[a], vs[b]] = 1.0
                    adj[vs[b], vs[a]] = 1.0
        return adj
