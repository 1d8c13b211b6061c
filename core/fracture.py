"""Fracture detection on a (β, log Z) time series.

ρ(β) = |Δ log Z / Δβ| between the two most recent samples is a finite-difference
estimate of d(log Z)/dβ (the mean energy). A sharp jump in it marks a phase
transition in the energy landscape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple
import math

__all__ = ["FractureDetector", "DEFAULT_FRACTURE_THRESHOLD"]

DEFAULT_FRACTURE_THRESHOLD = 1.5


@dataclass
class FractureDetector:
    """Records (β, log Z) pairs and flags steep slopes."""

    threshold: float = DEFAULT_FRACTURE_THRESHOLD
    beta_history: List[float] = field(default_factory=list)
    log_z_history: List[float] = field(default_factory=list)

    def record(self, beta: float, log_z: float) -> None:
        self.beta_history.append(float(beta))
        self.log_z_history.append(float(log_z))

    def fracture_rate(self) -> float:
        n = len(self.beta_history)
        if n < 2:
            return 0.0
        d_beta = self.beta_history[-1] - self.beta_history[-2]
        if d_beta <= 0.0:
            return 0.0
        d_log_z = abs(self.log_z_history[-1] - self.log_z_history[-2])
        if not math.isfinite(d_log_z):
            return 0.0
        return float(d_log_z / d_beta)

    def is_fracture(self) -> bool:
        return self.fracture_rate() > self.threshold

    def clear(self) -> None:
        self.beta_history.clear()
        self.log_z_history.clear()

    @property
    def history(self) -> List[Tuple[float, float]]:
        return list(zip(self.beta_history, self.log_z_history))

    def __len__(self) -> int:
        return len(self.beta_history)
