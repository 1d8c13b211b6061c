"""Capability interfaces for domain-agnostic optimizers.

An optimizer never inspects a state; it only asks the search space for an
energy, a fresh random sample, or the single-move neighbours of a state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, Sequence, TypeVar, runtime_checkable

__all__ = [
    "State",
    "EnergyFn",
    "SamplerFn",
    "NeighborFn",
    "SearchSpace",
    "CallableSearchSpace",
]

State = TypeVar("State")

EnergyFn = Callable[[Any], float]
SamplerFn = Callable[[], Any]
NeighborFn = Callable[[Any], Sequence[Any]]


@runtime_checkable
class SearchSpace(Protocol):
    """The three capabilities that fully determine a search problem."""

    def energy(self, state: Any) -> float:
        """Scalar energy to minimise; ≤ 0 means solved."""
        ...

    def sample(self) -> Any:
        """Independent random state."""
        ...

    def neighbors(self, state: Any) -> Sequence[Any]:
        """Finite (possibly empty) list of single-move perturbations."""
        ...


@dataclass(frozen=True)
class CallableSearchSpace(SearchSpace):
    """Adapts three plain callables to the SearchSpace protocol."""

    energy_fn: EnergyFn
    sampler_fn: SamplerFn
    neighbor_fn: Optional[NeighborFn] = None

    def energy(self, state: Any) -> float:
        return float(self.energy_fn(state))

    def sample(self) -> Any:
        return self.sampler_fn()

    def neighbors(self, state: Any) -> Sequence[Any]:
        if self.neighbor_fn is None:
            return []
        return list(self.neighbor_fn(state))
