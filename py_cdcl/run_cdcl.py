# *************************************************************************
# SPDX-License-Identifier: Apache-2.0
# Licensed under the Apache License, Version 2.0.
# See the LICENSE file in the project root for the full license text.
# *************************************************************************
"""
Command line front end: read a DIMACS CNF file, solve it and report.

Exit codes follow the SAT competition convention: 10 for SAT, 20 for UNSAT,
0 when the search stopped on a budget.
"""
import sys
import gzip
import time
import psutil
import argparse

from typing import Iterable, List, Tuple

from py_cdcl.branching import HEURISTICS, make_heuristic
from py_cdcl.cdcl import ANALYSIS_MODES, CdclSolver, Lbool
from py_cdcl.formula import Formula


def _parse_problem_line(line: str) -> Tuple[int, int]:
    parts = line.split()
    if len(parts) >= 4 and parts[1] == 'cnf':
        try:
            return int(parts[2]), int(parts[3])
        except ValueError:
            pass
    raise ValueError(f"Unexpected format in the 'p' line: {line!r}")


def parse_dimacs_lines(lines: Iterable[str], verbose: bool = True) -> Formula:
    """
    Read DIMACS clauses from an iterable of lines.

    - Blank lines and lines starting with 'c' or '%' are skipped.
    - The 'p cnf <vars> <clauses>' line only provides counts to check against.
    - A clause may span several lines and ends at a 0.
    - A lone 0 past the declared clause count is ignored (SATLIB files end with '%' then '0').
    - A trailing clause without its 0 is kept.
    """
    vars_ = 0
    clauses = 0
    has_header = False
    clause_list: List[List[int]] = []
    lits: List[int] = []

    for line in lines:
        line = line.strip()
        if not line or line[0] in ('c', 'C', '%'):
            continue

        if line[0] == 'p':
            vars_, clauses = _parse_problem_line(line)
            has_header = True
            continue

        for tok in line.split():
            try:
                lit_val = int(tok)
            except ValueError:
                raise ValueError(f"Invalid literal token {tok!r}") from None
            if lit_val == 0:
                # Lone '0' -> empty clause, only while still within the declared count
                if lits or not has_header or len(clause_list) < clauses:
                    clause_list.append(lits)
                lits = []
            else:
                lits.append(lit_val)

    if lits:
        clause_list.append(lits)

    formula = Formula.from_ints(clause_list)
    if verbose and has_header:
        max_var = max(formula.variables(), default=0)
        if max_var > vars_:
            print("WARNING! DIMACS header mismatch: wrong number of variables.")
        if clauses != len(clause_list):
            print("WARNING! DIMACS header mismatch: wrong number of clauses.")
    return formula


def parse_dimacs_string(text: str, verbose: bool = True) -> Formula:
    return parse_dimacs_lines(text.splitlines(), verbose=verbose)


def parse_dimacs(filename: str, verbose: bool = True) -> Formula:
    """Parse a .cnf or .cnf.gz file into a Formula."""
    open_fn = gzip.open if filename.endswith('.gz') else open
    with open_fn(filename, 'rt', encoding='utf-8') as f:
        return parse_dimacs_lines(f, verbose=verbose)


def model_to_dimacs(model) -> str:
    return " ".join(str(v) if model[v] else str(-v) for v in sorted(model)) + " 0"


def print_stats(S: CdclSolver, start_time: float):
    cpu_time = time.process_time() - start_time

    process = psutil.Process()
    mem_used = process.memory_info().rss / (1024 * 1024)  # in MB

    conflicts_per_sec = S.conflicts / cpu_time if cpu_time > 0 else 0
    decisions_per_sec = S.decisions / cpu_time if cpu_time > 0 else 0
    propagations_per_sec = S.propagations / cpu_time if cpu_time > 0 else 0
    lits_per_learnt = S.learnts_literals / S.learnts if S.learnts > 0 else 0.0

    print("conflicts             : {:<14} ({:.0f} /sec)".format(S.conflicts, conflicts_per_sec))
    print("decisions             : {:<14} ({:.0f} /sec)".format(S.decisions, decisions_per_sec))
    print("propagations          : {:<14} ({:.0f} /sec)".format(S.propagations, propagations_per_sec))
    print("learnt clauses        : {:<14} ({:.2f} lits/clause)".format(S.learnts, lits_per_learnt))
    print("max decision level    : {}".format(S.max_level))
    print("Memory used           : {:.2f} MB".format(mem_used))
    print("CPU time              : {:.3f} s".format(cpu_time))


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Solve a DIMACS CNF with a CDCL solver."
    )
    parser.add_argument("-i", "--input_file", required=True,
                        help="Path to input CNF file (.cnf or .cnf.gz).")
    parser.add_argument("-o", "--output_file", default=None,
                        help="Path to write result (SAT/UNSAT + model).")
    parser.add_argument("--heuristic", default="vsids", choices=sorted(HEURISTICS),
                        help="Branching heuristic.")
    parser.add_argument("--analysis", default="1uip", choices=ANALYSIS_MODES,
                        help="Conflict analysis policy.")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for the random heuristic.")
    parser.add_argument("--conflict-budget", type=int, default=-1,
                        help="Stop after this many conflicts (-1 for no limit).")
    parser.add_argument("--verify", action="store_true",
                        help="Check the model against the original clauses.")
    parser.add_argument("-v", "--verbosity", type=int, default=1)
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    start_time = time.process_time()

    try:
        formula = parse_dimacs(args.input_file, verbose=args.verbosity >= 1)
    except ValueError as e:
        print(f"PARSE ERROR! {e}")
        sys.exit(1)

    if args.verbosity >= 1:
        print("|  Number of variables:  {:>12}".format(formula.nVars()))
        print("|  Number of clauses:    {:>12}".format(formula.nClauses()))

    S = CdclSolver(heuristic=make_heuristic(args.heuristic, args.seed), analysis=args.analysis,
                   conflict_budget=args.conflict_budget, verbosity=args.verbosity)
    verdict = S.solve_(formula)

    if args.verbosity >= 1:
        print_stats(S, start_time)

    if verdict.status == Lbool.TRUE:
        if args.verify:
            assert S.assignments.satisfies(formula, original_only=True), "model does not satisfy the formula"
        print("SATISFIABLE")
        if args.output_file:
            with open(args.output_file, 'w') as rf:
                rf.write("SAT\n")
                rf.write(model_to_dimacs(verdict.model) + "\n")
        sys.exit(10)
    elif verdict.status == Lbool.FALSE:
        print("UNSATISFIABLE")
        if args.output_file:
            with open(args.output_file, 'w') as rf:
                rf.write("UNSAT\n")
        sys.exit(20)
    else:
        print("INDETERMINATE")
        if args.output_file:
            with open(args.output_file, 'w') as rf:
                rf.write("INDET\n")
        sys.exit(0)


if __name__ == "__main__":
    main()
