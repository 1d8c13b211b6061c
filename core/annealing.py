"""Plain simulated annealing, the A/B baseline for BAHA.

Uses the same β schedule builder and Metropolis criterion as
BranchAwareOptimizer so comparisons differ only in fracture handling.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional, Union
import logging
import math
import time

import numpy as np

from .baha import OptimizerPhase
from .energy import metropolis_accept
from .interfaces import EnergyFn, NeighborFn, SamplerFn, SearchSpace
from .options import coerce_options
from .schedules import beta_schedule, validate_schedule

__all__ = ["AnnealConfig", "AnnealResult", "SimulatedAnnealing"]

logger = logging.getLogger(__name__)


@dataclass
class AnnealConfig:
    beta_start: float = 0.01
    beta_end: float = 10.0
    beta_steps: int = 500
    steps_per_beta: int = 10
    verbose: bool = False
    schedule: str = "linear"
    time_budget_s: Optional[float] = None

    def __post_init__(self) -> None:
        if int(self.beta_steps) <= 0:
            raise ValueError("beta_steps must be positive")
        if int(self.steps_per_beta) <= 0:
            raise ValueError("steps_per_beta must be positive")
        validate_schedule(self.schedule, self.beta_start, self.beta_end)
        if self.time_budget_s is not None and self.time_budget_s < 0.0:
            raise ValueError("time_budget_s must be non-negative")
        self.beta_steps = int(self.beta_steps)
        self.steps_per_beta = int(self.steps_per_beta)


@dataclass
class AnnealResult:
    best_state: Any
    best_energy: float
    beta_at_solution: float
    steps_taken: int
    time_s: float
    phase: OptimizerPhase = OptimizerPhase.EXHAUSTED

    @property
    def converged(self) -> bool:
        return self.phase is OptimizerPhase.CONVERGED


LevelCallback = Callable[[int, float, float, float], None]


@dataclass
class SimulatedAnnealing:
    """Metropolis proposals drawn uniformly from neighbor(current)."""

    energy_fn: EnergyFn
    sampler_fn: SamplerFn
    neighbor_fn: NeighborFn
    seed: Optional[int] = None

    # (level, beta, current_energy, best_energy) after each β level
    on_level: List[LevelCallback] = field(default_factory=list)

    _rng: np.random.Generator = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._rng = np.random.default_rng(self.seed)

    @classmethod
    def from_space(cls, space: SearchSpace, seed: Optional[int] = None) -> "SimulatedAnnealing":
        return cls(space.energy, space.sample, space.neighbors, seed=seed)

    def optimize(self, config: Optional[Union[AnnealConfig, Mapping[str, Any]]] = None) -> AnnealResult:
        cfg = coerce_options(AnnealConfig, config)
        t0 = time.perf_counter()
        schedule = beta_schedule(cfg.beta_start, cfg.beta_end, cfg.beta_steps, cfg.schedule)

        cur = self.sampler_fn()
        cur_e = float(self.energy_fn(cur))
        best, best_e = cur, cur_e
        proposals = 0
        beta = float(schedule[0])
        phase = OptimizerPhase.CONVERGED if best_e <= 0.0 else OptimizerPhase.SWEEPING

        for level in range(cfg.beta_steps):
            if phase is OptimizerPhase.CONVERGED:
                break
            if cfg.time_budget_s is not None and (time.perf_counter() - t0) >= cfg.time_budget_s:
                break
            beta = float(schedule[level])
            for _ in range(cfg.steps_per_beta):
                nbrs = self.neighbor_fn(cur)
                if len(nbrs) == 0:
                    break
                nbr = nbrs[int(self._rng.integers(len(nbrs)))]
                nbr_e = float(self.energy_fn(nbr))
                proposals += 1
                if not math.isfinite(nbr_e):
                    continue
                if metropolis_accept(nbr_e - cur_e, beta, self._rng):
                    cur, cur_e = nbr, nbr_e
                    if cur_e < best_e:
                        best, best_e = cur, cur_e
                        if best_e <= 0.0:
                            phase = OptimizerPhase.CONVERGED
                            break
            for cb in self.on_level:
                cb(level + 1, beta, float(cur_e), float(best_e))

        if phase is not OptimizerPhase.CONVERGED:
            phase = OptimizerPhase.EXHAUSTED
        result = AnnealResult(
            best_state=best,
            best_energy=float(best_e),
            beta_at_solution=beta,
            steps_taken=proposals,
            time_s=float(time.perf_counter() - t0),
            phase=phase,
        )
        if cfg.verbose:
            logger.info("SA %s: E=%.4f after %d proposals", phase.value, result.best_energy, proposals)
        return result
