"""Annealing schedules for inverse temperature β and temperature T."""

from __future__ import annotations

import math

import numpy as np

__all__ = [
    "SCHEDULE_KINDS",
    "validate_schedule",
    "beta_schedule",
    "logarithmic_temperature",
    "linear_beta",
]

SCHEDULE_KINDS = ("linear", "geometric")


def validate_schedule(kind: str, beta_start: float, beta_end: float) -> None:
    """Raise ValueError for an unknown kind or a geometric sweep touching β ≤ 0."""
    if kind not in SCHEDULE_KINDS:
        raise ValueError(f"schedule must be one of {SCHEDULE_KINDS}")
    if kind == "geometric" and (beta_start <= 0.0 or beta_end <= 0.0):
        raise ValueError("geometric schedule needs positive beta_start and beta_end")


def beta_schedule(beta_start: float, beta_end: float, steps: int, kind: str = "linear") -> np.ndarray:
    """β values from beta_start to beta_end inclusive.

    Args:
        kind: "linear" (evenly spaced) or "geometric" (evenly spaced in log β;
            both endpoints must be positive).
    """
    assert steps > 0, "steps must be positive"
    validate_schedule(kind, beta_start, beta_end)
    if steps == 1:
        return np.array([float(beta_start)], dtype=float)
    if kind == "geometric":
        return np.geomspace(float(beta_start), float(beta_end), num=steps)
    return np.linspace(float(beta_start), float(beta_end), num=steps)


def logarithmic_temperature(step: int, scale: float = 2.0, rate: float = 0.05) -> float:
    """T(step) = scale / log(1 + rate·step); monotonically decreasing for step ≥ 1."""
    assert step >= 1, "temperature schedule starts at step 1"
    return float(scale / math.log1p(rate * step))


def linear_beta(step: int, rate: float = 0.01) -> float:
    """β(step) = 1 + rate·step; monotonically increasing."""
    return float(1.0 + rate * step)
