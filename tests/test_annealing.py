from __future__ import annotations

import numpy as np
import pytest

from core.annealing import AnnealConfig, SimulatedAnnealing
from core.baha import OptimizerPhase


def test_sa_descends_integer_walk_to_zero():
    rng = np.random.default_rng(0)
    sa = SimulatedAnnealing(
        energy_fn=lambda s: float(s),
        sampler_fn=lambda: int(rng.integers(5, 20)),
        neighbor_fn=lambda s: [s - 1, s + 1] if s > 0 else [s + 1],
        seed=0,
    )
    res = sa.optimize({"beta_steps": 300, "beta_end": 20.0})
    assert res.converged
    assert res.best_state == 0
    assert res.steps_taken > 0


def test_empty_neighbourhood_takes_no_steps():
    sa = SimulatedAnnealing(lambda s: 3.0, lambda: 0, lambda s: [], seed=0)
    res = sa.optimize(AnnealConfig(beta_steps=10))
    assert res.steps_taken == 0
    assert res.phase is OptimizerPhase.EXHAUSTED
    assert res.best_energy == 3.0


def test_steps_taken_counts_proposals():
    sa = SimulatedAnnealing(lambda s: 1.0, lambda: 0, lambda s: [s], seed=0)
    res = sa.optimize({"beta_steps": 7, "steps_per_beta": 3})
    assert res.steps_taken == 21


def test_on_level_hook_and_best_energy_monotone():
    rng = np.random.default_rng(1)
    sa = SimulatedAnnealing(
        energy_fn=lambda s: float(abs(s)),
        sampler_fn=lambda: int(rng.integers(-30, 30)),
        neighbor_fn=lambda s: [s - 1, s + 1],
        seed=1,
    )
    levels = []
    sa.on_level.append(lambda level, beta, cur, best: levels.append(best))
    sa.optimize({"beta_steps": 50})
    assert levels
    assert all(a >= b for a, b in zip(levels, levels[1:]))


def test_bad_anneal_config():
    with pytest.raises(ValueError):
        AnnealConfig(steps_per_beta=0)
    with pytest.raises(ValueError):
        AnnealConfig(time_budget_s=-1.0)


def test_geometric_schedule_rejects_zero_start():
    with pytest.raises(ValueError):
        AnnealConfig(schedule="geometric", beta_start=0.0)
    sa = SimulatedAnnealing(lambda s: 1.0, lambda: 0, lambda s: [s], seed=0)
    with pytest.raises(ValueError):
        sa.optimize({"schedule": "geometric", "beta_start": 0.0})
