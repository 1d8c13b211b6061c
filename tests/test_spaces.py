from __future__ import annotations

import pytest

from core.annealing import SimulatedAnnealing
from core.baha import BranchAwareOptimizer
from core.interfaces import SearchSpace
from solvers.sat.problem import InvalidProblemError, SatProblem
from solvers.spaces import ListColoringSpace, SatSearchSpace


def test_sat_space_energy_and_neighbours():
    problem = SatProblem.create(3, [[1, 2], [-1], [3]])
    space = SatSearchSpace(problem, seed=0)
    assert isinstance(space, SearchSpace)
    assert space.energy((1, 0, 0)) == 2.0
    nbrs = space.neighbors((1, 0, 0))
    assert nbrs == [(0, 0, 0), (1, 1, 0), (1, 0, 1)]
    state = space.sample()
    assert len(state) == 3 and set(state) <= {0, 1}


def test_baha_solves_small_sat_space():
    problem = SatProblem.create(4, [[1, 2], [-1, 3], [-3, 4], [-2, -4]])
    opt = BranchAwareOptimizer.from_space(SatSearchSpace(problem, seed=1), seed=1)
    res = opt.optimize({"beta_steps": 100, "samples_per_beta": 20})
    assert res.converged
    assert problem.verify(list(res.best_state)) == 1.0


def _path_coloring(seed: int) -> ListColoringSpace:
    edges = [(0, 1), (1, 2), (2, 3), (3, 4)]
    lists = [[0, 1], [0, 1], [0, 1, 2], [1, 2], [0, 2]]
    return ListColoringSpace(5, edges, lists, seed=seed)


def test_list_coloring_space_moves_stay_in_lists():
    space = _path_coloring(0)
    assert isinstance(space, SearchSpace)
    state = space.sample()
    for node, color in enumerate(state):
        assert color in space.color_lists[node]
    for nbr in space.neighbors(state):
        diff = [i for i in range(5) if nbr[i] != state[i]]
        assert len(diff) == 1
        assert nbr[diff[0]] in space.color_lists[diff[0]]
    assert space.energy((0, 0, 0, 1, 2)) == 2.0
    assert space.conflicts((0, 0, 0, 1, 2)) == [(0, 1), (1, 2)]


def test_annealers_colour_a_path():
    sa = SimulatedAnnealing.from_space(_path_coloring(2), seed=2)
    assert sa.optimize({"beta_steps": 200}).converged
    baha = BranchAwareOptimizer.from_space(_path_coloring(3), seed=3)
    assert baha.optimize({"beta_steps": 100, "samples_per_beta": 20}).converged


def test_list_coloring_rejects_bad_input():
    with pytest.raises(InvalidProblemError):
        ListColoringSpace(2, [(0, 1)], [[0]])
    with pytest.raises(InvalidProblemError):
        ListColoringSpace(2, [(0, 2)], [[0], [1]])
    with pytest.raises(InvalidProblemError):
        ListColoringSpace(2, [(0, 1)], [[0], []])


def test_empty_sat_space_is_solved_without_steps():
    space = SatSearchSpace(SatProblem.create(3, []), seed=0)
    baha = BranchAwareOptimizer.from_space(space, seed=0).optimize()
    sa = SimulatedAnnealing.from_space(space, seed=0).optimize()
    assert baha.converged and baha.steps_taken == 0 and baha.best_energy == 0.0
    assert sa.converged and sa.steps_taken == 0
