"""Real branches of the Lambert-W function.

W(z) solves w·e^w = z. Two real branches exist:
    W0  (principal)  for z ≥ -1/e
    W-1 (secondary)  for z ∈ [-1/e, 0)

Both are computed from an analytic seed refined by Halley iteration. Values
outside a branch's domain return None so callers cannot feed a NaN into
further arithmetic.
"""

from __future__ import annotations

from typing import Optional
import math

__all__ = [
    "E_INV",
    "HALLEY_TOL",
    "HALLEY_MAX_ITER",
    "halley_iterate",
    "lambert_w0",
    "lambert_wm1",
    "lambert_wk",
]

E_INV = math.exp(-1.0)  # 1/e ≈ 0.3679
HALLEY_TOL = 1e-10
HALLEY_MAX_ITER = 50
_BRANCH_POINT_EPS = 1e-15
_DERIV_EPS = 1e-15
# Below this z the branch-point series is a better seed than the Taylor/log seeds
_BRANCH_POINT_REGION = -0.25


def halley_iterate(z: float, w: float, tol: float = HALLEY_TOL, max_iter: int = HALLEY_MAX_ITER) -> float:
    """Refine an estimate of w·e^w = z with Halley's method.

    Best effort: returns the last estimate when the iteration budget runs out
    or the derivative becomes too small to divide by.
    """
    assert max_iter > 0, "max_iter must be positive"
    for _ in range(max_iter):
        ew = math.exp(w)
        f = w * ew - z
        fp = ew * (w + 1.0)
        if abs(fp) < _DERIV_EPS:
            break
        fpp = ew * (w + 2.0)
        denom = fp - f * fpp / (2.0 * fp)
        if abs(denom) < _DERIV_EPS:
            break
        w_new = w - f / denom
        if abs(w_new - w) < tol:
            return float(w_new)
        w = w_new
    return float(w)


def _branch_point_seed(z: float, sign: float) -> float:
    # w ≈ -1 ± p - p²/3 with p = sqrt(2(e·z + 1))
    p = math.sqrt(max(0.0, 2.0 * (math.e * z + 1.0)))
    return -1.0 + sign * p - (p * p) / 3.0


def lambert_w0(z: float) -> Optional[float]:
    """Principal branch W0(z) for z ≥ -1/e; None outside the domain."""
    z = float(z)
    if not math.isfinite(z) or z < -E_INV - _BRANCH_POINT_EPS:
        return None
    if z <= -E_INV + _BRANCH_POINT_EPS:
        return -1.0
    if z == 0.0:
        return 0.0
    if z < _BRANCH_POINT_REGION:
        w = _branch_point_seed(z, 1.0)
    elif z < 1.0:
        w = z * (1.0 - z + z * z)
    else:
        lz = math.log(z)
        w = lz - math.log(lz + 1.0)
    return halley_iterate(z, w)


def lambert_wm1(z: float) -> Optional[float]:
    """Secondary branch W-1(z) for z ∈ [-1/e, 0); None outside the domain."""
    z = float(z)
    if not math.isfinite(z) or z < -E_INV - _BRANCH_POINT_EPS or z >= 0.0:
        return None
    if z <= -E_INV + _BRANCH_POINT_EPS:
        return -1.0
    if z < _BRANCH_POINT_REGION:
        w = _branch_point_seed(z, -1.0)
    else:
        lz = math.log(-z)
        w = lz - math.log(-lz)
    return halley_iterate(z, w)


def lambert_wk(z: float, k: int) -> Optional[float]:
    """Branch dispatch; only k=0 and k=-1 have real values."""
    if k == 0:
        return lambert_w0(z)
    if k == -1:
        return lambert_wm1(z)
    return None
