"""Thermodynamic helpers shared by the annealing optimizers."""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Tuple
import math
import warnings

import numpy as np

__all__ = [
    "log_sum_exp",
    "sample_energies",
    "estimate_log_partition",
    "metropolis_accept",
]


def log_sum_exp(log_terms: Iterable[float]) -> float:
    """Numerically stable log Σ exp(t).

    Subtracts the maximum before exponentiating. Empty input gives -inf.
    """
    arr = np.asarray(list(log_terms), dtype=float)
    if arr.size == 0:
        return float("-inf")
    mx = float(np.max(arr))
    if math.isinf(mx):
        return mx
    return float(mx + math.log(float(np.sum(np.exp(arr - mx)))))


def sample_energies(
    energy_fn: Callable[[Any], float],
    sampler_fn: Callable[[], Any],
    n_samples: int,
) -> List[Tuple[Any, float]]:
    """Draw n_samples fresh states and their energies.

    Non-finite energies are dropped with a RuntimeWarning.
    """
    assert n_samples > 0, "n_samples must be positive"
    out: List[Tuple[Any, float]] = []
    dropped = 0
    for _ in range(n_samples):
        state = sampler_fn()
        e = float(energy_fn(state))
        if not math.isfinite(e):
            dropped += 1
            continue
        out.append((state, e))
    if dropped:
        warnings.warn(
            f"energy_fn returned {dropped} non-finite value(s) out of {n_samples} samples; skipped",
            RuntimeWarning,
            stacklevel=2,
        )
    return out


def estimate_log_partition(
    energy_fn: Callable[[Any], float],
    sampler_fn: Callable[[], Any],
    beta: float,
    n_samples: int,
) -> float:
    """Monte Carlo estimate log Z(β) ≈ log Σ_s exp(-β E(s)) over sampled states."""
    samples = sample_energies(energy_fn, sampler_fn, n_samples)
    return log_sum_exp(-float(beta) * e for _, e in samples)


def metropolis_accept(delta_energy: float, beta: float, rng: np.random.Generator) -> bool:
    """Metropolis criterion: always accept descent, else with prob exp(-β ΔE)."""
    if delta_energy < 0.0:
        return True
    exponent = -float(beta) * float(delta_energy)
    if math.isnan(exponent):
        return False
    return bool(rng.random() < math.exp(min(0.0, exponent)))
