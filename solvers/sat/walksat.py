"""WalkSAT stochastic local search.

Each flip picks a uniformly random unsatisfied clause. With probability
`noise` a random literal of that clause is flipped (random walk); otherwise
the variable with the smallest break count (clauses that would become
unsatisfied) is flipped, the first minimum winning ties.

True-literal counts per clause are maintained incrementally so a flip costs
O(occurrences of the flipped variable).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union
import logging

import numpy as np

from core.options import coerce_options
from solvers.sat.problem import Clause, SatProblem, clause_satisfied, validate_assignment

__all__ = ["WalksatOptions", "WalksatResult", "WalksatSolver", "SAT_STATUS"]

logger = logging.getLogger(__name__)

SAT_STATUS = "SAT"


@dataclass
class WalksatOptions:
    noise: float = 0.5
    max_flips: int = 10_000
    max_tries: int = 10
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if not 0.0 <= float(self.noise) <= 1.0:
            raise ValueError("noise must be within [0, 1]")
        if int(self.max_flips) < 0:
            raise ValueError("max_flips must be non-negative")
        if int(self.max_tries) <= 0:
            raise ValueError("max_tries must be positive")
        self.max_flips = int(self.max_flips)
        self.max_tries = int(self.max_tries)


class WalksatResult(NamedTuple):
    assignment: List[int]
    flips: int
    status: str


@dataclass
class _Occurrence:
    clause: int
    positive: int  # occurrences of +v in the clause
    negative: int  # occurrences of -v in the clause


class _SearchState:
    """Assignment plus per-clause true-literal counts and an O(1) unsat set."""

    def __init__(self, solver: "WalksatSolver", assignment: List[int]) -> None:
        self.solver = solver
        self.assignment = assignment
        m = len(solver.clauses)
        self.num_true = np.zeros(m, dtype=np.int64)
        for ci, clause in enumerate(solver.clauses):
            self.num_true[ci] = sum(1 for lit in clause if self._lit_true(lit))
        self.unsat: List[int] = []
        self._unsat_pos: Dict[int, int] = {}
        for ci in range(m):
            if self.num_true[ci] == 0:
                self._add_unsat(ci)

    def _lit_true(self, lit: int) -> bool:
        val = self.assignment[abs(lit) - 1]
        return val == 1 if lit > 0 else val == 0

    def _add_unsat(self, ci: int) -> None:
        self._unsat_pos[ci] = len(self.unsat)
        self.unsat.append(ci)

    def _remove_unsat(self, ci: int) -> None:
        pos = self._unsat_pos.pop(ci)
        last = self.unsat.pop()
        if last != ci:
            self.unsat[pos] = last
            self._unsat_pos[last] = pos

    def _true_false_counts(self, occ: _Occurrence, var: int) -> Tuple[int, int]:
        if self.assignment[var] == 1:
            return occ.positive, occ.negative
        return occ.negative, occ.positive

    def break_count(self, var: int) -> int:
        """Clauses that flipping var (0-based) would leave with no true literal."""
        broken = 0
        for occ in self.solver._occurrences[var]:
            now_true, now_false = self._true_false_counts(occ, var)
            if self.num_true[occ.clause] > 0 and self.num_true[occ.clause] - now_true + now_false == 0:
                broken += 1
        return broken

    def flip(self, var: int) -> None:
        for occ in self.solver._occurrences[var]:
            now_true, now_false = self._true_false_counts(occ, var)
            before = int(self.num_true[occ.clause])
            after = before - now_true + now_false
            self.num_true[occ.clause] = after
            if before == 0 and after > 0:
                self._remove_unsat(occ.clause)
            elif before > 0 and after == 0:
                self._add_unsat(occ.clause)
        self.assignment[var] = 1 - self.assignment[var]


class WalksatSolver:
    """Classic WalkSAT with restarts and best-so-far tracking."""

    def __init__(
        self,
        num_vars: int,
        clauses: Sequence[Clause],
        options: Optional[Union[WalksatOptions, Mapping[str, Any]]] = None,
    ) -> None:
        self.problem = SatProblem.create(num_vars, clauses)
        self.options = coerce_options(WalksatOptions, options)
        self.num_vars = self.problem.num_vars
        self.clauses = self.problem.clauses
        self.noise = float(self.options.noise)
        self.max_flips = self.options.max_flips
        self.max_tries = self.options.max_tries
        self.on_try: List[Callable[[int, int, int], None]] = []
        self._rng = np.random.default_rng(self.options.seed)
        self._occurrences: List[List[_Occurrence]] = [[] for _ in range(self.num_vars)]
        for ci, clause in enumerate(self.clauses):
            per_var: Dict[int, List[int]] = {}
            for lit in clause:
                counts = per_var.setdefault(abs(lit) - 1, [0, 0])
                counts[0 if lit > 0 else 1] += 1
            for var, (pos, neg) in per_var.items():
                self._occurrences[var].append(_Occurrence(clause=ci, positive=pos, negative=neg))

    def count_satisfied(self, assignment: Sequence[int]) -> int:
        return sum(1 for clause in self.clauses if clause_satisfied(clause, assignment))

    def count_unsatisfied(self, assignment: Sequence[int]) -> int:
        return len(self.clauses) - self.count_satisfied(assignment)

    def get_unsatisfied_clauses(self, assignment: Sequence[int]) -> List[int]:
        """0-based indices of clauses the assignment leaves unsatisfied."""
        return [ci for ci, clause in enumerate(self.clauses) if not clause_satisfied(clause, assignment)]

    @staticmethod
    def flip(assignment: List[int], var: int) -> None:
        """Flip 1-based variable `var` in place."""
        assignment[var - 1] = 1 - assignment[var - 1]

    def random_assignment(self) -> List[int]:
        return [int(v) for v in self._rng.integers(0, 2, size=self.num_vars)]

    def _pick_variable(self, state: _SearchState, clause: Tuple[int, ...]) -> int:
        if self._rng.random() < self.noise:
            return abs(clause[int(self._rng.integers(len(clause)))]) - 1
        best_var = abs(clause[0]) - 1
        best_break = None
        for lit in clause:
            var = abs(lit) - 1
            b = state.break_count(var)
            if best_break is None or b < best_break:
                best_break = b
                best_var = var
        return best_var

    def run(self, initial: Optional[Sequence[int]] = None) -> WalksatResult:
        """Search from `initial` (copied each try) or fresh random starts."""
        start = validate_assignment(self.num_vars, initial) if initial is not None else None
        n_clauses = len(self.clauses)
        best_assignment = list(start) if start is not None else None
        best_unsat = n_clauses + 1
        total_flips = 0

        for try_idx in range(self.max_tries):
            assignment = list(start) if start is not None else self.random_assignment()
            state = _SearchState(self, assignment)
            if len(state.unsat) < best_unsat:
                best_unsat = len(state.unsat)
                best_assignment = list(assignment)
            if not state.unsat:
                return WalksatResult(list(assignment), total_flips, SAT_STATUS)

            for _ in range(self.max_flips):
                clause = self.clauses[state.unsat[int(self._rng.integers(len(state.unsat)))]]
                state.flip(self._pick_variable(state, clause))
                total_flips += 1
                n_unsat = len(state.unsat)
                if n_unsat < best_unsat:
                    best_unsat = n_unsat
                    best_assignment = list(state.assignment)
                if n_unsat == 0:
                    return WalksatResult(list(state.assignment), total_flips, SAT_STATUS)
            for cb in self.on_try:
                cb(try_idx + 1, total_flips, best_unsat)
            logger.debug("walksat try %d: best %d/%d unsatisfied", try_idx + 1, best_unsat, n_clauses)

        assert best_assignment is not None
        if best_unsat < n_clauses:
            status = f"PARTIAL({best_unsat}/{n_clauses})"
        else:
            status = f"UNSAT({best_unsat} remaining)"
        return WalksatResult(best_assignment, total_flips, status)

    def solve(self) -> WalksatResult:
        """Run from a random start."""
        return self.run(None)
