from __future__ import annotations

import math

import numpy as np
import pytest

from core.lambert import E_INV, halley_iterate, lambert_w0, lambert_wk, lambert_wm1


def test_w0_of_one_is_omega_constant():
    w = lambert_w0(1.0)
    assert w is not None
    assert abs(w - 0.56714329) < 1e-8


def test_w0_inverts_w_exp_w_across_range():
    for z in np.concatenate([np.linspace(-0.3, 1.0, 40), np.geomspace(1.0, 100.0, 30)]):
        w = lambert_w0(float(z))
        assert w is not None
        assert abs(w * math.exp(w) - z) < 1e-8


def test_wm1_inverts_and_stays_below_minus_one():
    for z in np.linspace(-0.36, -0.01, 30):
        w = lambert_wm1(float(z))
        assert w is not None
        assert w <= -1.0
        assert abs(w * math.exp(w) - z) < 1e-8


def test_branch_point_returns_minus_one():
    assert lambert_w0(-E_INV) == -1.0
    assert lambert_wm1(-E_INV) == -1.0


def test_out_of_domain_returns_none():
    assert lambert_w0(-0.5) is None
    assert lambert_w0(float("nan")) is None
    assert lambert_w0(float("inf")) is None
    assert lambert_wm1(0.0) is None
    assert lambert_wm1(0.5) is None
    assert lambert_wm1(-1.0) is None


def test_wk_dispatch():
    assert lambert_wk(1.0, 0) == lambert_w0(1.0)
    assert lambert_wk(-0.2, -1) == lambert_wm1(-0.2)
    assert lambert_wk(1.0, 1) is None


def test_w0_of_zero_and_identity_on_u_exp_u():
    assert lambert_w0(0.0) == 0.0
    for u in (-0.9, -0.5, 0.3, 2.0):
        w = lambert_w0(u * math.exp(u))
        assert w is not None and abs(w - u) < 1e-8


def test_halley_returns_last_estimate_when_budget_exhausted():
    w = halley_iterate(1.0, 5.0, max_iter=1)
    assert math.isfinite(w)
    assert w != 5.0
    with pytest.raises(AssertionError):
        halley_iterate(1.0, 0.0, max_iter=0)
