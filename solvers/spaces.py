"""Search-space adapters that drive the annealers on concrete domains.

Both classes satisfy ``core.interfaces.SearchSpace`` so they plug straight
into ``BranchAwareOptimizer.from_space`` and ``SimulatedAnnealing.from_space``.
States are tuples, so they are hashable and safe to share between calls.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from solvers.sat.problem import InvalidProblemError, SatProblem, count_unsatisfied

__all__ = ["SatSearchSpace", "ListColoringSpace"]


class SatSearchSpace:
    """Energy = number of unsatisfied clauses; moves flip one variable."""

    def __init__(self, problem: SatProblem, seed: Optional[int] = None) -> None:
        self.problem = problem
        self._rng = np.random.default_rng(seed)

    def energy(self, state: Sequence[int]) -> float:
        return float(count_unsatisfied(self.problem.clauses, state))

    def sample(self) -> Tuple[int, ...]:
        return tuple(int(v) for v in self._rng.integers(0, 2, size=self.problem.num_vars))

    def neighbors(self, state: Sequence[int]) -> List[Tuple[int, ...]]:
        out: List[Tuple[int, ...]] = []
        base = list(state)
        for i in range(len(base)):
            base[i] = 1 - base[i]
            out.append(tuple(base))
            base[i] = 1 - base[i]
        return out


class ListColoringSpace:
    """List coloring: each node takes a color from its own list.

    Energy counts edges whose endpoints share a color; moves recolor one node
    with another color from that node's list.
    """

    def __init__(
        self,
        num_nodes: int,
        edges: Iterable[Tuple[int, int]],
        color_lists: Sequence[Sequence[int]],
        seed: Optional[int] = None,
    ) -> None:
        if len(color_lists) != num_nodes:
            raise InvalidProblemError(f"expected {num_nodes} color lists, got {len(color_lists)}")
        if any(len(colors) == 0 for colors in color_lists):
            raise InvalidProblemError("every node needs at least one allowed color")
        self.num_nodes = int(num_nodes)
        self.color_lists: List[Tuple[int, ...]] = [tuple(int(c) for c in colors) for colors in color_lists]
        edge_list: List[Tuple[int, int]] = []
        for a, b in edges:
            if not (0 <= a < num_nodes and 0 <= b < num_nodes) or a == b:
                raise InvalidProblemError(f"invalid edge ({a}, {b}) for {num_nodes} nodes")
            edge_list.append((int(a), int(b)))
        self.edges = edge_list
        self._rng = np.random.default_rng(seed)

    def conflicts(self, state: Sequence[int]) -> List[Tuple[int, int]]:
        return [(a, b) for a, b in self.edges if state[a] == state[b]]

    def energy(self, state: Sequence[int]) -> float:
        return float(len(self.conflicts(state)))

    def sample(self) -> Tuple[int, ...]:
        return tuple(colors[int(self._rng.integers(len(colors)))] for colors in self.color_lists)

    def neighbors(self, state: Sequence[int]) -> List[Tuple[int, ...]]:
        out: List[Tuple[int, ...]] = []
        base = list(state)
        for node, colors in enumerate(self.color_lists):
            current = base[node]
            for color in colors:
                if color == current:
                    continue
                base[node] = color
                out.append(tuple(base))
            base[node] = current
        return out
