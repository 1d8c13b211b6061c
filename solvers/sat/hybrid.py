"""Casimir relaxation followed by WalkSAT refinement.

Phase 1 runs the Langevin relaxation and rounds it to a boolean assignment.
If that assignment already satisfies at least `solved_threshold` of the
clauses the pipeline stops; otherwise phase 2 seeds WalkSAT with it.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union
import logging
import time

from core.options import coerce_options
from solvers.sat.casimir import CasimirOptions, CasimirSolver
from solvers.sat.problem import Clause, SatProblem, verify
from solvers.sat.walksat import WalksatOptions, WalksatSolver

__all__ = [
    "CASIMIR_SOLVED",
    "HYBRID_SOLVED",
    "IMPROVED",
    "NO_IMPROVEMENT",
    "HybridOptions",
    "HybridReport",
    "HybridResult",
    "HybridPipeline",
    "solve",
]

logger = logging.getLogger(__name__)

CASIMIR_SOLVED = "CASIMIR_SOLVED"
HYBRID_SOLVED = "HYBRID_SOLVED"
IMPROVED = "IMPROVED"
NO_IMPROVEMENT = "NO_IMPROVEMENT"


@dataclass
class HybridOptions:
    casimir_opts: Optional[Union[CasimirOptions, Mapping[str, Any]]] = None
    walksat_opts: Optional[Union[WalksatOptions, Mapping[str, Any]]] = None
    max_casimir_steps: int = 2000
    verbose: bool = False
    solved_threshold: float = 0.999
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if int(self.max_casimir_steps) < 0:
            raise ValueError("max_casimir_steps must be non-negative")
        if not 0.0 < float(self.solved_threshold) <= 1.0:
            raise ValueError("solved_threshold must be within (0, 1]")
        self.max_casimir_steps = int(self.max_casimir_steps)
        self.casimir_opts = coerce_options(CasimirOptions, self.casimir_opts)
        self.walksat_opts = coerce_options(WalksatOptions, self.walksat_opts)


class HybridResult(NamedTuple):
    assignment: List[int]
    total_ops: int
    status: str


@dataclass
class HybridReport:
    """Per-phase details of one pipeline run."""

    num_vars: int
    num_clauses: int
    assignment: List[int]
    status: str
    casimir_steps: int
    casimir_energy: float
    casimir_satisfaction: float
    casimir_converged: bool
    casimir_time_s: float
    walksat_flips: int = 0
    walksat_status: Optional[str] = None
    walksat_time_s: float = 0.0
    final_satisfaction: float = 0.0

    @property
    def total_ops(self) -> int:
        return self.casimir_steps + self.walksat_flips

    @property
    def total_time_s(self) -> float:
        return self.casimir_time_s + self.walksat_time_s

    @property
    def improvement(self) -> float:
        return self.final_satisfaction - self.casimir_satisfaction

    def as_result(self) -> HybridResult:
        return HybridResult(list(self.assignment), self.total_ops, self.status)

    def to_record(self) -> dict:
        return {
            "num_vars": self.num_vars,
            "num_clauses": self.num_clauses,
            "status": self.status,
            "casimir_steps": self.casimir_steps,
            "casimir_energy": self.casimir_energy,
            "casimir_satisfaction": self.casimir_satisfaction,
            "casimir_converged": self.casimir_converged,
            "casimir_time_s": self.casimir_time_s,
            "walksat_flips": self.walksat_flips,
            "walksat_status": self.walksat_status or "",
            "walksat_time_s": self.walksat_time_s,
            "final_satisfaction": self.final_satisfaction,
            "total_ops": self.total_ops,
            "total_time_s": self.total_time_s,
        }


@dataclass
class HybridPipeline:
    options: Optional[Union[HybridOptions, Mapping[str, Any]]] = None
    on_report: List[Callable[[HybridReport], None]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.options = coerce_options(HybridOptions, self.options)

    def _phase_options(self) -> Tuple[CasimirOptions, WalksatOptions]:
        opts = self.options
        cas_opts = opts.casimir_opts
        walk_opts = opts.walksat_opts
        if opts.seed is not None:
            if cas_opts.seed is None:
                cas_opts = replace(cas_opts, seed=opts.seed)
            if walk_opts.seed is None:
                walk_opts = replace(walk_opts, seed=opts.seed + 1)
        return cas_opts, walk_opts

    def run(self, num_vars: int, clauses: Sequence[Clause]) -> HybridReport:
        problem = SatProblem.create(num_vars, clauses)
        opts = self.options
        cas_opts, walk_opts = self._phase_options()
        if opts.verbose:
            logger.info("hybrid: %d variables, %d clauses", problem.num_vars, problem.num_clauses)

        t0 = time.perf_counter()
        cas_solver = CasimirSolver(problem.num_vars, problem.clauses, cas_opts)
        assignment, cas_steps, cas_energy = cas_solver.solve(opts.max_casimir_steps)
        cas_time = time.perf_counter() - t0
        cas_sat = verify(problem.clauses, assignment)
        report = HybridReport(
            num_vars=problem.num_vars,
            num_clauses=problem.num_clauses,
            assignment=assignment,
            status=CASIMIR_SOLVED,
            casimir_steps=cas_steps,
            casimir_energy=float(cas_energy),
            casimir_satisfaction=cas_sat,
            casimir_converged=cas_solver.is_converged(),
            casimir_time_s=cas_time,
            final_satisfaction=cas_sat,
        )
        if opts.verbose:
            logger.info(
                "casimir: %d steps, E=%.6f, %.2f%% satisfied, converged=%s, %.3fs",
                cas_steps, cas_energy, 100.0 * cas_sat, report.casimir_converged, cas_time,
            )

        if cas_sat >= opts.solved_threshold or problem.num_clauses == 0:
            self._emit(report)
            return report

        t1 = time.perf_counter()
        walk_solver = WalksatSolver(problem.num_vars, problem.clauses, walk_opts)
        refined, flips, walk_status = walk_solver.run(assignment)
        report.walksat_time_s = time.perf_counter() - t1
        report.walksat_flips = flips
        report.walksat_status = walk_status
        report.assignment = refined
        report.final_satisfaction = verify(problem.clauses, refined)

        if report.final_satisfaction >= opts.solved_threshold:
            report.status = HYBRID_SOLVED
        elif report.final_satisfaction > cas_sat:
            report.status = IMPROVED
        else:
            report.status = NO_IMPROVEMENT
        if opts.verbose:
            logger.info(
                "walksat: %d flips, %s, %.2f%% satisfied (%+.2f%%), total %.3fs",
                flips, walk_status, 100.0 * report.final_satisfaction,
                100.0 * report.improvement, report.total_time_s,
            )
        self._emit(report)
        return report

    def _emit(self, report: HybridReport) -> None:
        for cb in self.on_report:
            cb(report)


def solve(
    num_vars: int,
    clauses: Sequence[Clause],
    options: Optional[Union[HybridOptions, Mapping[str, Any]]] = None,
) -> HybridResult:
    """Run the pipeline and return (assignment, total_ops, status)."""
    return HybridPipeline(options).run(num_vars, clauses).as_result()
