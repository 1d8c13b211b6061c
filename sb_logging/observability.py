from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import time

from core.annealing import SimulatedAnnealing
from core.baha import BahaStep, Branch, BranchAwareOptimizer
from sb_logging.metrics_log import log_records
from solvers.sat.casimir import CasimirSolver, CasimirStep
from solvers.sat.hybrid import HybridPipeline, HybridReport
from solvers.sat.walksat import WalksatSolver


@dataclass
class CasimirTracker:
    """Attach to CasimirSolver.on_step and log the relaxation trace to Polars CSV.

    Usage:
        tracker = CasimirTracker(run_id="demo")
        tracker.attach(solver)
        solver.solve(...)
        tracker.flush()
    """

    name: str = "casimir_trace"
    run_id: str = "default"
    buffer: List[Dict[str, Any]] = field(default_factory=list)
    every: int = 1
    prev_energy: Optional[float] = None
    last_timestamp: Optional[float] = None

    def attach(self, solver: CasimirSolver) -> None:
        assert self.every >= 1, "every must be >= 1"
        solver.on_step.append(self.on_step)
        self.last_timestamp = time.perf_counter()

    def on_step(self, event: CasimirStep) -> None:
        delta = None if self.prev_energy is None else float(event.energy - self.prev_energy)
        self.prev_energy = float(event.energy)
        now = time.perf_counter()
        compute_cost = None if self.last_timestamp is None else float(now - self.last_timestamp)
        self.last_timestamp = now
        if event.step % self.every != 0:
            return
        self.buffer.append({
            "run_id": self.run_id,
            "step": int(event.step),
            "energy": float(event.energy),
            "best_energy": float(event.best_energy),
            "delta_energy": float("nan") if delta is None else delta,
            "temperature": float(event.temperature),
            "beta": float(event.beta),
            "correlation_length": float(event.correlation_length),
            "indecisive_fraction": float(event.indecisive_fraction),
            "compute_cost": float("nan") if compute_cost is None else compute_cost,
        })

    def flush(self) -> None:
        if self.buffer:
            log_records(self.name, self.buffer)
            self.buffer.clear()


@dataclass
class BahaTracker:
    """Per-step BAHA trace plus fracture and jump counters."""

    name: str = "baha_trace"
    run_id: str = "default"
    buffer: List[Dict[str, Any]] = field(default_factory=list)
    fractures: int = 0
    jumps: int = 0
    _pending_branch: Optional[Branch] = field(default=None, init=False, repr=False)

    def attach(self, optimizer: BranchAwareOptimizer) -> None:
        optimizer.on_step.append(self.on_step)
        optimizer.on_fracture.append(self.on_fracture)
        optimizer.on_jump.append(self.on_jump)

    def on_fracture(self, step: int, beta: float, rate: float) -> None:
        self.fractures += 1

    def on_jump(self, branch: Branch, energy: float) -> None:
        self.jumps += 1
        self._pending_branch = branch

    def on_step(self, event: BahaStep) -> None:
        branch = self._pending_branch if event.jumped else None
        self._pending_branch = None
        self.buffer.append({
            "run_id": self.run_id,
            "step": int(event.step),
            "beta": float(event.beta),
            "log_z": float(event.log_z),
            "fracture_rate": float(event.fracture_rate),
            "fracture": bool(event.fracture),
            "jumped": bool(event.jumped),
            "branch_k": float(branch.k) if branch is not None else float("nan"),
            "branch_beta": float(branch.beta) if branch is not None else float("nan"),
            "current_energy": float(event.current_energy),
            "best_energy": float(event.best_energy),
            "fractures_total": int(self.fractures),
            "jumps_total": int(self.jumps),
        })

    def flush(self) -> None:
        if self.buffer:
            log_records(self.name, self.buffer)
            self.buffer.clear()


@dataclass
class AnnealTracker:
    """One row per β level of SimulatedAnnealing."""

    name: str = "anneal_trace"
    run_id: str = "default"
    buffer: List[Dict[str, Any]] = field(default_factory=list)

    def attach(self, annealer: SimulatedAnnealing) -> None:
        annealer.on_level.append(self.on_level)

    def on_level(self, level: int, beta: float, current_energy: float, best_energy: float) -> None:
        self.buffer.append({
            "run_id": self.run_id,
            "level": int(level),
            "beta": float(beta),
            "current_energy": float(current_energy),
            "best_energy": float(best_energy),
        })

    def flush(self) -> None:
        if self.buffer:
            log_records(self.name, self.buffer)
            self.buffer.clear()


@dataclass
class WalksatTracker:
    """One row per exhausted WalkSAT try; a solved try ends the run without a row."""

    name: str = "walksat_tries"
    run_id: str = "default"
    buffer: List[Dict[str, Any]] = field(default_factory=list)
    problem: str = ""

    def attach(self, solver: WalksatSolver) -> None:
        solver.on_try.append(self.on_try)

    def on_try(self, try_idx: int, total_flips: int, best_unsat: int) -> None:
        self.buffer.append({
            "run_id": self.run_id,
            "problem": self.problem,
            "try": int(try_idx),
            "total_flips": int(total_flips),
            "best_unsat": int(best_unsat),
        })

    def flush(self) -> None:
        if self.buffer:
            log_records(self.name, self.buffer)
            self.buffer.clear()


@dataclass
class SolverRunLogger:
    """Summary row per hybrid pipeline run."""

    name: str = "solver_runs"
    run_id: str = "default"
    buffer: List[Dict[str, Any]] = field(default_factory=list)
    problem: str = ""

    def attach(self, pipeline: HybridPipeline) -> None:
        pipeline.on_report.append(self.on_report)

    def on_report(self, report: HybridReport) -> None:
        row: Dict[str, Any] = {"run_id": self.run_id, "problem": self.problem}
        row.update(report.to_record())
        self.buffer.append(row)

    def record(self, **fields: Any) -> None:
        """Free-form summary row (e.g. single-solver baselines)."""
        row: Dict[str, Any] = {"run_id": self.run_id, "problem": self.problem}
        row.update(fields)
        self.buffer.append(row)

    def flush(self) -> None:
        if not self.buffer:
            return
        log_records(self.name, self.buffer)
        self.buffer.clear()
