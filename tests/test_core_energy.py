from __future__ import annotations

import math

import numpy as np
import pytest

from core.energy import estimate_log_partition, log_sum_exp, metropolis_accept, sample_energies


def test_log_sum_exp_is_stable_for_large_terms():
    assert log_sum_exp([0.0, 0.0]) == pytest.approx(math.log(2.0))
    assert log_sum_exp([1000.0, 1000.0]) == pytest.approx(1000.0 + math.log(2.0))
    assert log_sum_exp([-1000.0, -1000.0]) == pytest.approx(-1000.0 + math.log(2.0))
    assert log_sum_exp([]) == float("-inf")


def test_log_partition_of_constant_energy():
    log_z = estimate_log_partition(lambda s: 2.0, lambda: 0, beta=0.5, n_samples=10)
    assert log_z == pytest.approx(math.log(10.0) - 1.0)


def test_non_finite_energies_are_skipped_with_warning():
    values = iter([1.0, float("nan"), 2.0, float("inf")])
    with pytest.warns(RuntimeWarning):
        samples = sample_energies(lambda s: s, lambda: next(values), 4)
    assert [e for _, e in samples] == [1.0, 2.0]


def test_metropolis_accepts_descent_and_rejects_huge_ascent():
    rng = np.random.default_rng(0)
    assert metropolis_accept(-1.0, 5.0, rng)
    assert not any(metropolis_accept(1e6, 10.0, rng) for _ in range(100))
    assert not metropolis_accept(float("nan"), 1.0, rng)


def test_metropolis_acceptance_rate_matches_boltzmann_factor():
    rng = np.random.default_rng(1)
    n = 20000
    accepted = sum(metropolis_accept(1.0, 1.0, rng) for _ in range(n))
    assert abs(accepted / n - math.exp(-1.0)) < 0.02
