from __future__ import annotations

from dataclasses import dataclass

import pytest

from core.options import coerce_options


@dataclass
class _Opts:
    alpha: float = 1.0
    steps: int = 10


def test_none_gives_defaults():
    assert coerce_options(_Opts, None) == _Opts()


def test_instance_passes_through():
    opts = _Opts(alpha=2.0)
    assert coerce_options(_Opts, opts) is opts


def test_mapping_with_none_values_falls_back_to_defaults():
    opts = coerce_options(_Opts, {"alpha": 3.0, "steps": None})
    assert opts.alpha == 3.0
    assert opts.steps == 10


def test_unknown_key_and_wrong_type_raise():
    with pytest.raises(ValueError, match="stpes"):
        coerce_options(_Opts, {"stpes": 3})
    with pytest.raises(ValueError):
        coerce_options(_Opts, [("alpha", 1.0)])
