"""SAT benchmark: Casimir vs WalkSAT vs NAVOKOJ vs Hybrid on random 3-SAT, plus BAHA vs SA.

Example:
  uv run python -m experiments.sat_benchmark --sizes 20 50 100 --ratio 4.26 --seed 0
"""

from __future__ import annotations

import argparse
import time
from typing import Any, Dict, List, Sequence

from core.annealing import SimulatedAnnealing
from core.baha import BranchAwareOptimizer
from sb_logging.metrics_log import log_records
from sb_logging.observability import SolverRunLogger, WalksatTracker
from solvers.sat.casimir import CasimirSolver
from solvers.sat.encoders import encode_sudoku, generate_3sat
from solvers.sat.hybrid import HybridPipeline
from solvers.sat.navokoj import NavokojSolver
from solvers.sat.problem import SatProblem, verify
from solvers.sat.walksat import WalksatSolver
from solvers.spaces import SatSearchSpace

AI_ESCARGOT = "800000000003600000070090200050007000000045700000100030001000068008500010090000400"


def _baseline_rows(
    name: str,
    num_vars: int,
    clauses: Sequence[Sequence[int]],
    args: argparse.Namespace,
    tries: WalksatTracker,
) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    t0 = time.perf_counter()
    assignment, steps, energy = CasimirSolver(num_vars, clauses, {"seed": args.seed}).solve(args.casimir_steps)
    rows.append({
        "problem": name,
        "solver": "casimir",
        "satisfaction": verify(clauses, assignment),
        "ops": int(steps),
        "time_s": float(time.perf_counter() - t0),
        "status": f"E={energy:.4f}",
    })
    t0 = time.perf_counter()
    walk = WalksatSolver(num_vars, clauses, {"max_flips": args.max_flips, "max_tries": args.max_tries, "seed": args.seed})
    tries.problem = name
    tries.attach(walk)
    assignment, flips, status = walk.solve()
    rows.append({
        "problem": name,
        "solver": "walksat",
        "satisfaction": verify(clauses, assignment),
        "ops": int(flips),
        "time_s": float(time.perf_counter() - t0),
        "status": status,
    })
    t0 = time.perf_counter()
    assignment, steps, energy = NavokojSolver(num_vars, clauses, {"steps": args.navokoj_steps, "seed": args.seed}).solve()
    rows.append({
        "problem": name,
        "solver": "navokoj",
        "satisfaction": verify(clauses, assignment),
        "ops": int(steps),
        "time_s": float(time.perf_counter() - t0),
        "status": f"E={energy:.4f}",
    })
    return rows


def _annealer_rows(name: str, problem: SatProblem, args: argparse.Namespace) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    baha = BranchAwareOptimizer.from_space(SatSearchSpace(problem, seed=args.seed), seed=args.seed)
    res = baha.optimize({"beta_steps": args.beta_steps, "samples_per_beta": args.samples_per_beta})
    rows.append({
        "problem": name,
        "solver": "baha",
        "satisfaction": verify(problem.clauses, list(res.best_state)),
        "ops": int(res.steps_taken),
        "time_s": float(res.time_s),
        "status": f"{res.phase.value} fractures={res.fractures_detected} jumps={res.branch_jumps}",
    })
    sa = SimulatedAnnealing.from_space(SatSearchSpace(problem, seed=args.seed), seed=args.seed)
    sres = sa.optimize({"beta_steps": args.beta_steps})
    rows.append({
        "problem": name,
        "solver": "sa",
        "satisfaction": verify(problem.clauses, list(sres.best_state)),
        "ops": int(sres.steps_taken),
        "time_s": float(sres.time_s),
        "status": sres.phase.value,
    })
    return rows


def run(args: argparse.Namespace) -> None:
    instances = []
    for i, n in enumerate(args.sizes):
        clauses = generate_3sat(n, ratio=args.ratio, seed=args.seed + i, distinct=True)
        instances.append((f"3sat_n{n}", n, clauses))
    if args.sudoku:
        num_vars, clauses = encode_sudoku(AI_ESCARGOT)
        instances.append(("sudoku_ai_escargot", num_vars, clauses))

    runs = SolverRunLogger(run_id=args.run_id)
    tries = WalksatTracker(run_id=args.run_id)
    pipeline = HybridPipeline({
        "max_casimir_steps": args.casimir_steps,
        "walksat_opts": {"max_flips": args.max_flips, "max_tries": args.max_tries},
        "seed": args.seed,
    })
    runs.attach(pipeline)

    rows: List[Dict[str, Any]] = []
    for name, num_vars, clauses in instances:
        rows.extend(_baseline_rows(name, num_vars, clauses, args, tries))
        runs.problem = name
        report = pipeline.run(num_vars, clauses)
        rows.append({
            "problem": name,
            "solver": "hybrid",
            "satisfaction": report.final_satisfaction,
            "ops": int(report.total_ops),
            "time_s": float(report.total_time_s),
            "status": report.status,
        })
        if args.annealers and num_vars <= args.annealer_max_vars:
            rows.extend(_annealer_rows(name, SatProblem.create(num_vars, clauses), args))

    for row in rows:
        row["run_id"] = args.run_id
    out = log_records("sat_benchmark", rows)
    runs.flush()
    tries.flush()
    for row in rows:
        print(f"{row['problem']:<22} {row['solver']:<8} {100.0 * row['satisfaction']:6.2f}%  {row['status']}")
    print(f"Wrote {len(rows)} rows to {out}")


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--sizes", type=int, nargs="+", default=[20, 50, 100])
    parser.add_argument("--ratio", type=float, default=4.26)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--casimir_steps", type=int, default=2000)
    parser.add_argument("--max_flips", type=int, default=10_000)
    parser.add_argument("--max_tries", type=int, default=10)
    parser.add_argument("--navokoj_steps", type=int, default=1000)
    parser.add_argument("--sudoku", action="store_true")
    parser.add_argument("--annealers", action="store_true", help="also run BAHA and SA on small instances")
    parser.add_argument("--annealer_max_vars", type=int, default=50)
    parser.add_argument("--beta_steps", type=int, default=200)
    parser.add_argument("--samples_per_beta", type=int, default=50)
    parser.add_argument("--run_id", type=str, default="sat_benchmark")
    args = parser.parse_args()
    run(args)


if __name__ == "__main__":
    main()
