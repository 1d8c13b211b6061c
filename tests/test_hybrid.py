from __future__ import annotations

import pytest

from solvers.sat.casimir import CasimirOptions
from solvers.sat.encoders import encode_sudoku, generate_3sat
from solvers.sat.hybrid import (
    CASIMIR_SOLVED,
    HYBRID_SOLVED,
    NO_IMPROVEMENT,
    HybridOptions,
    HybridPipeline,
    HybridReport,
    solve,
)
from solvers.sat.problem import verify
from solvers.sat.walksat import WalksatOptions

AI_ESCARGOT = "800000000003600000070090200050007000000045700000100030001000068008500010090000400"


def test_no_clauses_is_casimir_solved():
    assignment, total_ops, status = solve(5, [])
    assert status == CASIMIR_SOLVED
    assert len(assignment) == 5
    assert total_ops == 0


def test_contradiction_cannot_improve():
    opts = {"max_casimir_steps": 50, "walksat_opts": {"max_flips": 20, "max_tries": 2}, "seed": 0}
    report = HybridPipeline(opts).run(1, [[1], [-1]])
    assert report.status == NO_IMPROVEMENT
    assert report.casimir_steps == 50
    assert report.walksat_flips == 40
    assert report.total_ops == 90
    assert report.final_satisfaction == 0.5
    assert report.total_time_s == pytest.approx(report.casimir_time_s + report.walksat_time_s)


def test_small_satisfiable_instance_is_solved():
    clauses = [[1, 2, 3], [-1, 4, -5], [2, -3, 6], [1, -2, 5], [-3, -4, 6]]
    assignment, _, status = solve(6, clauses, {"seed": 1})
    assert status in (CASIMIR_SOLVED, HYBRID_SOLVED)
    assert verify(clauses, assignment) == 1.0


def test_random_3sat_status_matches_verification():
    clauses = generate_3sat(30, ratio=3.5, seed=4, distinct=True)
    report = HybridPipeline(HybridOptions(max_casimir_steps=200, seed=4)).run(30, clauses)
    final = verify(clauses, report.assignment)
    assert final == report.final_satisfaction
    if report.status in (CASIMIR_SOLVED, HYBRID_SOLVED):
        assert final >= 0.999
    assert final >= report.casimir_satisfaction
    assert report.total_ops == report.casimir_steps + report.walksat_flips


def test_sudoku_reaches_high_satisfaction():
    num_vars, clauses = encode_sudoku(AI_ESCARGOT)
    opts = {
        "max_casimir_steps": 300,
        "walksat_opts": {"max_flips": 20000, "max_tries": 1},
        "seed": 0,
    }
    assignment, _, _ = solve(num_vars, clauses, opts)
    assert len(assignment) == 729
    assert verify(clauses, assignment) >= 0.95


def test_options_are_coerced_and_validated():
    opts = HybridOptions(casimir_opts={"learning_rate": 0.3}, walksat_opts=None)
    assert opts.casimir_opts.learning_rate == 0.3
    assert opts.walksat_opts.noise == 0.5
    with pytest.raises(ValueError):
        HybridOptions(solved_threshold=0.0)
    with pytest.raises(ValueError):
        solve(2, [[1]], {"casimir_steps": 10})


def test_on_report_receives_final_report():
    pipeline = HybridPipeline({"max_casimir_steps": 20, "seed": 0})
    reports = []
    pipeline.on_report.append(reports.append)
    result = pipeline.run(2, [[1, 2]])
    assert reports == [result]
    assert isinstance(result, HybridReport)
    assert result.as_result().status == result.status


def test_every_solver_half_satisfies_two_clause_instance():
    from solvers.sat.casimir import CasimirSolver
    from solvers.sat.navokoj import NavokojSolver
    from solvers.sat.walksat import WalksatSolver

    clauses = [[1, 2], [-1, 2]]
    cas_assignment, _, _ = CasimirSolver(2, clauses, {"seed": 0}).solve(200)
    walk_assignment, _, _ = WalksatSolver(2, clauses, {"seed": 0}).solve()
    hyb_assignment, _, _ = solve(2, clauses, {"seed": 0})
    nav_assignment, _, _ = NavokojSolver(2, clauses, {"seed": 0}).solve()
    assert verify(clauses, cas_assignment) >= 0.5
    assert verify(clauses, walk_assignment) == 1.0
    assert verify(clauses, hyb_assignment) >= 0.5
    assert verify(clauses, nav_assignment) >= 0.5


def test_pipeline_seed_fills_unset_phase_seeds():
    pipeline = HybridPipeline({"seed": 7, "walksat_opts": {"seed": 99, "noise": 0.3}})
    cas_opts, walk_opts = pipeline._phase_options()
    assert isinstance(cas_opts, CasimirOptions)
    assert isinstance(walk_opts, WalksatOptions)
    assert cas_opts.seed == 7
    assert walk_opts.seed == 99
    assert walk_opts.noise == 0.3
    assert pipeline.options.casimir_opts.seed is None

    unseeded = HybridPipeline()._phase_options()
    assert unseeded[0].seed is None and unseeded[1].seed is None
    assert HybridPipeline({"seed": 3})._phase_options()[1].seed == 4
