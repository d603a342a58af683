"""
Generate random k-SAT formulas in variable-count buckets and write each CNF on one line
(DIMACS-lite: integers with trailing 0 per clause).

Two modes:
    planted  - every clause is satisfied by a hidden random assignment, so the formula is SAT.
    uniform  - literals drawn uniformly; near ratio 4.26 for 3-SAT about half are UNSAT.

Example:
    python -m generate_dataset.gen_cnf_buckets \
        --vars-min 5 --vars-max 15 --samples 500 --out-dir ./dataset/raw/
"""
import argparse
import random
from pathlib import Path
from typing import List

import numpy as np
from tqdm import trange


LITERAL_MAKES_CLAUSE_TRUE_PROB = 0.5


def generate_random_assignment(num_vars: int) -> List[bool]:
    """
    Generate a random boolean assignment for variables 1..N.

    Returns:
    	List where index i holds the value of variable i + 1.
    """
    return [bool(v) for v in np.random.choice([True, False], size=num_vars)]


def generate_sat_clause_from_assignment(assignment: List[bool], num_literals: int) -> List[int]:
    """
    Create one clause that is satisfied by the given assignment.

    Args:
    	assignment: Values of variables 1..N.
    	num_literals: Number of literals in the clause.

    Returns:
    	Signed integer literals, e.g. [1, -3, 7].
    """
    selected_vars = random.sample(range(1, len(assignment) + 1), k=num_literals)
    clause = []
    clause_is_true = False

    for i, v in enumerate(selected_vars):
        make_true = (random.random() < LITERAL_MAKES_CLAUSE_TRUE_PROB)
        is_last = (i == num_literals - 1)
        value = assignment[v - 1]
        if make_true or (is_last and not clause_is_true):
            clause.append(v if value else -v)
            clause_is_true = True
        else:
            clause.append(-v if value else v)

    return clause


def generate_uniform_clause(num_vars: int, num_literals: int) -> List[int]:
    """Distinct variables, each negated with probability 1/2."""
    selected_vars = random.sample(range(1, num_vars + 1), k=num_literals)
    return [v if random.random() < 0.5 else -v for v in selected_vars]


def generate_sat_problem(num_vars: int, num_clauses: int, clause_size: int) -> List[List[int]]:
    """
    Generate a satisfiable CNF with the requested size.
    """
    if clause_size > num_vars:
        raise ValueError(f"clause size {clause_size} exceeds number of variables {num_vars}")
    assignment = generate_random_assignment(num_vars)
    return [
        generate_sat_clause_from_assignment(assignment, clause_size)
        for _ in range(num_clauses)
    ]


def generate_uniform_problem(num_vars: int, num_clauses: int, clause_size: int) -> List[List[int]]:
    if clause_size > num_vars:
        raise ValueError(f"clause size {clause_size} exceeds number of variables {num_vars}")
    return [generate_uniform_clause(num_vars, clause_size) for _ in range(num_clauses)]


def to_dimacs_like_format(clauses: List[List[int]]) -> str:
    """
    Convert clauses like [[1, -3], [2]] to '1 -3 0 2 0' in a single line.
    """
    return " ".join(" ".join(str(x) for x in clause) + " 0" for clause in clauses)


def write_bucket(
        vars_min: int,
        vars_max: int,
        samples: int,
        ratio_min: float,
        ratio_max: float,
        clause_size: int,
        out_dir: Path,
        mode: str = "planted",
) -> Path:
    """
    Write a bucket of random CNFs to a text file (one CNF per line).

    Args:
    	vars_min: Inclusive lower bound on #vars.
    	vars_max: Inclusive upper bound on #vars.
    	samples: Number of CNFs to generate.
    	ratio_min: Min clause/var ratio.
    	ratio_max: Max clause/var ratio.
    	clause_size: Literals per clause.
    	out_dir: Output folder for the bucket file.
    	mode: 'planted' or 'uniform'.

    Returns:
    	Path of the bucket file.
    """
    generate = {"planted": generate_sat_problem, "uniform": generate_uniform_problem}[mode]
    out_dir.mkdir(parents=True, exist_ok=True)
    fname = out_dir / f"{mode}_{vars_min}_{vars_max}.txt"
    with fname.open("w") as fh:
        desc = f"[{fname.name}] {samples:,} formulas"
        for _ in trange(samples, desc=desc):
            n_vars = random.randint(vars_min, vars_max)
            ratio = random.uniform(ratio_min, ratio_max)
            n_clauses = max(1, int(round(ratio * n_vars)))

            clauses = generate(n_vars, n_clauses, clause_size)
            fh.write(to_dimacs_like_format(clauses) + "\n")
    return fname


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Generate bucketed k-SAT dataset")

    ap.add_argument("--vars-min", type=int, required=True)
    ap.add_argument("--vars-max", type=int, required=True)
    ap.add_argument("--samples", type=int, required=True)
    ap.add_argument("--ratio-min", type=float, default=4.1)
    ap.add_argument("--ratio-max", type=float, default=4.4)
    ap.add_argument("--clause-size", type=int, default=3)
    ap.add_argument("--mode", choices=["planted", "uniform"], default="planted")
    ap.add_argument("--seed", type=int, default=42)
    ap.add_argument("--out-dir", type=Path, required=True)
    return ap.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)

    random.seed(args.seed)
    np.random.seed(args.seed)

    write_bucket(
        vars_min=args.vars_min,
        vars_max=args.vars_max,
        samples=args.samples,
        ratio_min=args.ratio_min,
        ratio_max=args.ratio_max,
        clause_size=args.clause_size,
        out_dir=args.out_dir,
        mode=args.mode,
    )


if __name__ == "__main__":
    main()
