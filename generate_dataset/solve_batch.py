"""
Solve many one-line CNFs with the CDCL solver and write gzip-compressed JSONL.

Example:
    python -m generate_dataset.solve_batch \
        --raw-dir ./dataset/raw/ \
        --out-dir ./dataset/solved/ \
        --heuristics vsids dlis

Output JSONL (gzip), one record per CNF:
    {"cnf":"1 -2 0 ...","n_v":18,"n_c":74,"status":"SAT",
     "stats":{"vsids":{...},"dlis":{...}},"key_trace":"D -1 L 1 A 9 ..."}
"""
import argparse
import gzip
import json
import sys
from functools import partial
from multiprocessing import Pool, cpu_count
from pathlib import Path
from typing import Dict, List

from tqdm import tqdm
from pysat.solvers import Minisat22

from py_cdcl.branching import HEURISTICS, make_heuristic
from py_cdcl.cdcl import CdclSolver, Lbool
from utils.trace_utils import convert_trace_to_str
from utils.utils import cnf_line_2_CNF_class, cnf_line_2_formula

STATUS_NAMES = {Lbool.TRUE: "SAT", Lbool.FALSE: "UNSAT", Lbool.UNDEF: "INDET"}


def _solve_and_trace(dimacs_line: str, heuristics: List[str], seed: int = 0,
                     conflict_budget: int = -1, check: bool = False) -> Dict:
    """
    Solve one CNF line with every requested heuristic.

    Args:
    	dimacs_line: One-line DIMACS-lite CNF.
    	heuristics: Heuristic names; the first one provides the key trace.
    	seed: Seed for the random heuristic.
    	conflict_budget: Per-run conflict limit, -1 for none.
    	check: Cross-check the verdict with pysat's Minisat22.

    Returns:
    	Record dict with fields: cnf, n_v, n_c, status, stats, key_trace.
    """
    statuses = {}
    stats = {}
    key_trace = ""
    n_v = n_c = 0
    for i, name in enumerate(heuristics):
        formula = cnf_line_2_formula(dimacs_line)
        n_v, n_c = formula.nVars(), formula.nClauses()
        solver = CdclSolver(heuristic=make_heuristic(name, seed), conflict_budget=conflict_budget)
        verdict = solver.solve_(formula)
        if verdict.is_sat and not solver.assignments.satisfies(formula, original_only=True):
            raise RuntimeError(f"[{name}] model does not satisfy: {dimacs_line.strip()}")
        statuses[name] = STATUS_NAMES[verdict.status]
        stats[name] = solver.stats()
        if i == 0:
            key_trace = convert_trace_to_str(solver.key_trace_events)

    decided = {s for s in statuses.values() if s != "INDET"}
    if len(decided) > 1:
        raise RuntimeError(f"Heuristics disagree {statuses}: {dimacs_line.strip()}")
    status = decided.pop() if decided else "INDET"

    if check and status != "INDET":
        with Minisat22(bootstrap_with=cnf_line_2_CNF_class(dimacs_line).clauses) as oracle:
            expected = "SAT" if oracle.solve() else "UNSAT"
        if expected != status:
            raise RuntimeError(f"Verdict {status} but Minisat22 says {expected}: {dimacs_line.strip()}")

    return {
        "cnf": dimacs_line.strip(),
        "n_v": n_v,
        "n_c": n_c,
        "status": status,
        "stats": stats,
        "key_trace": key_trace,
    }


def _process_one_file(raw_path: Path, out_path: Path, workers: int, **solve_kwargs) -> None:
    """
    Process one .txt bucket into a .jsonl.gz of solve records.

    Args:
    	raw_path: Path to input .txt (one CNF per line).
    	out_path: Destination .jsonl.gz path.
    	workers: Solver processes to use in the pool.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)

    with raw_path.open() as fh:
        lines = [line for line in fh if line.strip()]

    job = partial(_solve_and_trace, **solve_kwargs)
    with Pool(processes=workers) as pool, \
            gzip.open(out_path, "wt") as gz_out:
        for rec in tqdm(pool.imap_unordered(job, lines, 16),
                        total=len(lines),
                        desc=f"[{raw_path.name}]"):
            gz_out.write(json.dumps(rec, separators=(",", ":")) + "\n")


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Batch CDCL solver")
    ap.add_argument("--raw-dir", default='./dataset/raw/',
                    help="root directory that contains *.txt buckets")
    ap.add_argument("--out-dir", default=None,
                    help="root for *.jsonl.gz (default: alongside raw file)")
    ap.add_argument("--glob", default="**/*.txt",
                    help="glob relative to --raw-dir (default: **/*.txt)")
    ap.add_argument("--heuristics", nargs="+", default=["vsids"], choices=sorted(HEURISTICS))
    ap.add_argument("--seed", type=int, default=0)
    ap.add_argument("--conflict-budget", type=int, default=-1)
    ap.add_argument("--check", action="store_true",
                    help="cross-check every verdict with Minisat22")
    ap.add_argument("--workers", type=int, default=max(1, cpu_count() // 4),
                    help="Solver processes per file.")
    return ap.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    raw_root = Path(args.raw_dir).resolve()
    out_root = Path(args.out_dir).resolve() if args.out_dir else raw_root

    txt_files = sorted(raw_root.glob(args.glob))
    if not txt_files:
        print("No matching .txt files found.", file=sys.stderr)
        sys.exit(1)

    for raw_path in txt_files:
        rel = raw_path.relative_to(raw_root).with_suffix(".jsonl.gz")
        out_path = out_root / rel
        if out_path.exists():
            print(f"[skip] {out_path} already exists")
            continue

        print(f"→ {rel}")
        _process_one_file(raw_path, out_path, args.workers,
                          heuristics=args.heuristics, seed=args.seed,
                          conflict_budget=args.conflict_budget, check=args.check)


if __name__ == "__main__":
    main()
