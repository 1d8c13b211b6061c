"""CNF problem model, input validation and clause verification.

Literals are signed 1-based variable indices (DIMACS convention). An
assignment is a list of 0/1 values where element i holds variable i + 1.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple
import operator

import numpy as np

__all__ = [
    "Literal",
    "Clause",
    "Assignment",
    "InvalidProblemError",
    "SatProblem",
    "validate_clauses",
    "validate_assignment",
    "clause_satisfied",
    "satisfied_mask",
    "count_unsatisfied",
    "verify",
]

Literal = int
Clause = Sequence[int]
Assignment = List[int]


class InvalidProblemError(ValueError):
    """Malformed CNF input (bad literal, empty clause, wrong assignment shape)."""


def _as_literal(lit: object, num_vars: int, clause_idx: int) -> int:
    if isinstance(lit, bool):
        raise InvalidProblemError(f"clause {clause_idx}: boolean {lit!r} is not a literal")
    try:
        value = operator.index(lit)  # type: ignore[arg-type]
    except TypeError:
        raise InvalidProblemError(f"clause {clause_idx}: literal {lit!r} is not an integer") from None
    if value == 0:
        raise InvalidProblemError(f"clause {clause_idx}: literal 0 is not allowed")
    if abs(value) > num_vars:
        raise InvalidProblemError(
            f"clause {clause_idx}: literal {value} references variable {abs(value)} but num_vars={num_vars}"
        )
    return int(value)


def validate_clauses(num_vars: int, clauses: Iterable[Clause]) -> Tuple[Tuple[int, ...], ...]:
    """Check every literal against [1, num_vars] and freeze the clause list."""
    try:
        n = operator.index(num_vars)
    except TypeError:
        raise InvalidProblemError(f"num_vars must be an integer, got {num_vars!r}") from None
    if n < 0:
        raise InvalidProblemError(f"num_vars must be non-negative, got {n}")
    frozen: List[Tuple[int, ...]] = []
    for ci, clause in enumerate(clauses):
        lits = tuple(_as_literal(lit, n, ci) for lit in clause)
        if not lits:
            raise InvalidProblemError(f"clause {ci} is empty")
        frozen.append(lits)
    return tuple(frozen)


def validate_assignment(num_vars: int, assignment: Sequence[int]) -> List[int]:
    """Copy an assignment after checking its length and 0/1 values."""
    values = [int(v) for v in assignment]
    if len(values) != num_vars:
        raise InvalidProblemError(f"assignment has {len(values)} values but num_vars={num_vars}")
    if any(v not in (0, 1) for v in values):
        raise InvalidProblemError("assignment values must be 0 or 1")
    return values


@dataclass(frozen=True)
class SatProblem:
    """Validated, immutable CNF instance."""

    num_vars: int
    clauses: Tuple[Tuple[int, ...], ...]

    @classmethod
    def create(cls, num_vars: int, clauses: Iterable[Clause]) -> "SatProblem":
        frozen = validate_clauses(num_vars, clauses)
        return cls(num_vars=int(num_vars), clauses=frozen)

    @property
    def num_clauses(self) -> int:
        return len(self.clauses)

    def verify(self, assignment: Sequence[int]) -> float:
        return verify(self.clauses, assignment)


def clause_satisfied(clause: Clause, assignment: Sequence[int]) -> bool:
    for lit in clause:
        val = int(assignment[abs(lit) - 1])
        if (lit > 0 and val == 1) or (lit < 0 and val == 0):
            return True
    return False


def satisfied_mask(clauses: Sequence[Clause], assignment: Sequence[int]) -> np.ndarray:
    return np.fromiter((clause_satisfied(c, assignment) for c in clauses), dtype=bool, count=len(clauses))


def count_unsatisfied(clauses: Sequence[Clause], assignment: Sequence[int]) -> int:
    return int(len(clauses) - int(np.count_nonzero(satisfied_mask(clauses, assignment))))


def verify(clauses: Sequence[Clause], assignment: Optional[Sequence[int]]) -> float:
    """Fraction of clauses satisfied by the assignment, in [0, 1].

    Pure function; an empty clause list is fully satisfied.
    """
    if len(clauses) == 0:
        return 1.0
    if assignment is None:
        return 0.0
    mask = satisfied_mask(clauses, assignment)
    return float(np.count_nonzero(mask)) / float(len(clauses))
