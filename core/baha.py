"""Branch-Aware Holonomy Annealing (BAHA).

A β-sweep minimiser over an opaque state type. At every β it estimates
log Z(β) by Monte Carlo and feeds it to a FractureDetector. When the slope
|d log Z / dβ| spikes (a "fracture"), the optimizer enumerates the real
Lambert-W branches around a critical β_c,

    u = β - β_c,   ξ = u·e^u,   β_k = β_c + W_k(ξ),   k ∈ {0, -1}

scores each candidate β_k by resampling, and tries a jump to the best one.
The jump is only accepted when it strictly beats the incumbent, so most
fractures end without a jump. A standard Metropolis sweep runs every step.

Phases: SWEEPING → (FRACTURE_RESPONDING → SWEEPING)* → CONVERGED | EXHAUSTED.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Tuple, Union
import logging
import math
import time

import numpy as np

from .energy import estimate_log_partition, metropolis_accept, sample_energies
from .fracture import DEFAULT_FRACTURE_THRESHOLD, FractureDetector
from .interfaces import EnergyFn, NeighborFn, SamplerFn, SearchSpace
from .lambert import lambert_wk
from .options import coerce_options
from .schedules import beta_schedule, validate_schedule

__all__ = [
    "OptimizerPhase",
    "BahaConfig",
    "Branch",
    "BahaStep",
    "OptimizeResult",
    "BranchAwareOptimizer",
]

logger = logging.getLogger(__name__)

BRANCH_KS = (0, -1)
# Bonus numerator rewarding a low minimum energy during branch scoring
_MIN_ENERGY_BONUS = 100.0
# Largest u for which u·e^u is a finite double
_MAX_EXP_ARG = 709.0


class OptimizerPhase(str, Enum):
    SWEEPING = "sweeping"
    FRACTURE_RESPONDING = "fracture_responding"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"


@dataclass
class BahaConfig:
    """β-sweep configuration; also accepted as a plain mapping."""

    beta_start: float = 0.01
    beta_end: float = 10.0
    beta_steps: int = 500
    fracture_threshold: float = DEFAULT_FRACTURE_THRESHOLD
    beta_critical: float = 1.0
    max_branches: int = 5
    samples_per_beta: int = 100
    verbose: bool = False
    schedule: str = "linear"
    time_budget_s: Optional[float] = None
    max_climb_moves: int = 10_000

    def __post_init__(self) -> None:
        if int(self.beta_steps) <= 0:
            raise ValueError("beta_steps must be positive")
        if int(self.samples_per_beta) <= 0:
            raise ValueError("samples_per_beta must be positive")
        if int(self.max_branches) <= 0:
            raise ValueError("max_branches must be positive")
        validate_schedule(self.schedule, self.beta_start, self.beta_end)
        if self.time_budget_s is not None and self.time_budget_s < 0.0:
            raise ValueError("time_budget_s must be non-negative")
        self.beta_steps = int(self.beta_steps)
        self.samples_per_beta = int(self.samples_per_beta)
        self.max_branches = int(self.max_branches)


@dataclass
class Branch:
    """Candidate inverse temperature from Lambert-W branch k."""

    k: int
    beta: float
    score: float = 0.0


@dataclass(frozen=True)
class BahaStep:
    """Per-step telemetry passed to on_step callbacks."""

    step: int
    beta: float
    log_z: float
    fracture_rate: float
    fracture: bool
    jumped: bool
    current_energy: float
    best_energy: float


@dataclass
class OptimizeResult:
    best_state: Any
    best_energy: float
    fractures_detected: int
    branch_jumps: int
    beta_at_solution: float
    steps_taken: int
    time_s: float
    phase: OptimizerPhase = OptimizerPhase.EXHAUSTED

    @property
    def jump_selectivity(self) -> float:
        """Accepted jumps per detected fracture (0 when nothing was detected)."""
        if self.fractures_detected == 0:
            return 0.0
        return float(self.branch_jumps) / float(self.fractures_detected)

    @property
    def converged(self) -> bool:
        return self.phase is OptimizerPhase.CONVERGED


StepCallback = Callable[[BahaStep], None]
FractureCallback = Callable[[int, float, float], None]
JumpCallback = Callable[[Branch, float], None]


@dataclass
class BranchAwareOptimizer:
    """Fracture-aware annealer over caller-supplied capabilities."""

    energy_fn: EnergyFn
    sampler_fn: SamplerFn
    neighbor_fn: Optional[NeighborFn] = None
    seed: Optional[int] = None

    on_step: List[StepCallback] = field(default_factory=list)
    on_fracture: List[FractureCallback] = field(default_factory=list)
    on_jump: List[JumpCallback] = field(default_factory=list)

    phase: OptimizerPhase = field(default=OptimizerPhase.SWEEPING, init=False)
    _rng: np.random.Generator = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._rng = np.random.default_rng(self.seed)

    @classmethod
    def from_space(cls, space: SearchSpace, seed: Optional[int] = None) -> "BranchAwareOptimizer":
        return cls(space.energy, space.sample, space.neighbors, seed=seed)

    def estimate_log_z(self, beta: float, n_samples: int) -> float:
        return estimate_log_partition(self.energy_fn, self.sampler_fn, beta, n_samples)

    def enumerate_branches(self, beta: float, beta_critical: float, max_branches: int = len(BRANCH_KS)) -> List[Branch]:
        """Real Lambert-W branch candidates β_k = β_c + W_k(u·e^u), u = β - β_c.

        Out-of-domain branches and non-positive candidates are dropped; when
        u·e^u overflows there is no candidate at all.
        """
        u = float(beta) - float(beta_critical)
        if abs(u) < 1e-10:
            u = 1e-10
        if u > _MAX_EXP_ARG:
            return []
        xi = u * math.exp(u)
        branches: List[Branch] = []
        for k in BRANCH_KS:
            w = lambert_wk(xi, k)
            if w is None or not math.isfinite(w):
                continue
            candidate = float(beta_critical) + w
            if candidate <= 0.0:
                continue
            branches.append(Branch(k=k, beta=candidate))
            if len(branches) >= max_branches:
                break
        return branches

    def score_branch(self, beta: float, n_samples: int) -> float:
        """mean exp(-β E) over fresh samples plus a bonus for a low minimum energy."""
        if beta <= 0.0:
            return float("-inf")
        samples = sample_energies(self.energy_fn, self.sampler_fn, n_samples)
        if not samples:
            return float("-inf")
        energies = np.fromiter((e for _, e in samples), dtype=float, count=len(samples))
        boltzmann = float(np.mean(np.exp(np.minimum(-beta * energies, 700.0))))
        min_e = float(np.min(energies))
        bonus = _MIN_ENERGY_BONUS / (min_e + 1.0) if min_e > -1.0 else float("inf")
        return boltzmann + bonus

    def sample_from_branch(self, n_samples: int, max_climb_moves: int = 10_000) -> Tuple[Any, float]:
        """Best of n_samples fresh draws, then first-improvement hill-climb.

        The sampler is β-agnostic: draws come from sampler_fn unchanged, so the
        chosen branch only decides whether a jump is attempted, not how the
        candidate states are tempered.
        """
        samples = sample_energies(self.energy_fn, self.sampler_fn, n_samples)
        if not samples:
            return None, float("inf")
        best, best_e = min(samples, key=lambda se: se[1])
        if self.neighbor_fn is None:
            return best, best_e
        moves = 0
        improved = True
        while improved and moves < max_climb_moves:
            improved = False
            for nbr in self.neighbor_fn(best):
                e = float(self.energy_fn(nbr))
                if e < best_e:
                    best, best_e = nbr, e
                    improved = True
                    moves += 1
                    break
        return best, best_e

    def _respond_to_fracture(self, beta: float, cfg: BahaConfig) -> Tuple[Optional[Branch], Any, float]:
        branches = self.enumerate_branches(beta, cfg.beta_critical, cfg.max_branches)
        if not branches:
            return None, None, float("inf")
        for b in branches:
            b.score = self.score_branch(b.beta, cfg.samples_per_beta)
        branches.sort(key=lambda b: b.score, reverse=True)
        chosen = branches[0]
        state, energy = self.sample_from_branch(cfg.samples_per_beta, cfg.max_climb_moves)
        return chosen, state, energy

    def optimize(self, config: Optional[Union[BahaConfig, Mapping[str, Any]]] = None) -> OptimizeResult:
        cfg = coerce_options(BahaConfig, config)
        t0 = time.perf_counter()
        detector = FractureDetector(threshold=cfg.fracture_threshold)
        schedule = beta_schedule(cfg.beta_start, cfg.beta_end, cfg.beta_steps, cfg.schedule)

        current = self.sampler_fn()
        cur_e = float(self.energy_fn(current))
        best, best_e = current, cur_e
        fractures = 0
        jumps = 0
        steps_taken = 0
        beta = float(schedule[0])
        self.phase = OptimizerPhase.SWEEPING

        if best_e <= 0.0:
            self.phase = OptimizerPhase.CONVERGED
        for step_idx in range(cfg.beta_steps):
            if self.phase is OptimizerPhase.CONVERGED:
                break
            if cfg.time_budget_s is not None and (time.perf_counter() - t0) >= cfg.time_budget_s:
                break
            beta = float(schedule[step_idx])
            steps_taken = step_idx + 1
            log_z = self.estimate_log_z(beta, cfg.samples_per_beta)
            detector.record(beta, log_z)
            rho = detector.fracture_rate()
            is_fracture = rho > detector.threshold
            jumped = False

            if is_fracture:
                self.phase = OptimizerPhase.FRACTURE_RESPONDING
                fractures += 1
                for cb in self.on_fracture:
                    cb(steps_taken, beta, rho)
                if cfg.verbose:
                    logger.info("FRACTURE at beta=%.3f rho=%.2f", beta, rho)
                chosen, state, energy = self._respond_to_fracture(beta, cfg)
                if chosen is not None and energy < best_e:
                    best, best_e = state, energy
                    jumps += 1
                    jumped = True
                    for jcb in self.on_jump:
                        jcb(chosen, energy)
                    if cfg.verbose:
                        logger.info("JUMPED via branch k=%d beta=%.3f to E=%.4f", chosen.k, chosen.beta, best_e)
                self.phase = OptimizerPhase.SWEEPING

            if self.neighbor_fn is not None and best_e > 0.0:
                current, cur_e, best, best_e = self._metropolis_sweep(current, cur_e, best, best_e, beta)

            for scb in self.on_step:
                scb(BahaStep(
                    step=steps_taken,
                    beta=beta,
                    log_z=float(log_z),
                    fracture_rate=float(rho),
                    fracture=bool(is_fracture),
                    jumped=jumped,
                    current_energy=float(cur_e),
                    best_energy=float(best_e),
                ))
            if best_e <= 0.0:
                self.phase = OptimizerPhase.CONVERGED

        if self.phase is not OptimizerPhase.CONVERGED:
            self.phase = OptimizerPhase.EXHAUSTED
        assert jumps <= fractures, "accepted jumps cannot exceed detected fractures"
        result = OptimizeResult(
            best_state=best,
            best_energy=float(best_e),
            fractures_detected=fractures,
            branch_jumps=jumps,
            beta_at_solution=beta,
            steps_taken=steps_taken,
            time_s=float(time.perf_counter() - t0),
            phase=self.phase,
        )
        if cfg.verbose:
            logger.info(
                "BAHA %s: E=%.4f after %d steps, %d fractures, %d jumps (%.1f%%)",
                result.phase.value, result.best_energy, result.steps_taken,
                fractures, jumps, 100.0 * result.jump_selectivity,
            )
        return result

    def _metropolis_sweep(
        self,
        current: Any,
        cur_e: float,
        best: Any,
        best_e: float,
        beta: float,
    ) -> Tuple[Any, float, Any, float]:
        assert self.neighbor_fn is not None
        for nbr in self.neighbor_fn(current):
            nbr_e = float(self.energy_fn(nbr))
            if not math.isfinite(nbr_e):
                continue
            if metropolis_accept(nbr_e - cur_e, beta, self._rng):
                current, cur_e = nbr, nbr_e
                if cur_e < best_e:
                    best, best_e = current, cur_e
        return current, cur_e, best, best_e
