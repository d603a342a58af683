# *************************************************************************
# SPDX-License-Identifier: Apache-2.0
# Licensed under the Apache License, Version 2.0.
# See the LICENSE file in the project root for the full license text.
# *************************************************************************
"""
Unit tests for the trace helpers, CNF utilities, dataset generator,
batch solver and heuristic comparison.
"""
import gzip
import json
import os
import random
import tempfile
import unittest
from pathlib import Path

import numpy as np

from analysis_data.compare_heuristics import analyze_records, read_records
from generate_dataset.gen_cnf_buckets import (generate_sat_problem, generate_uniform_problem,
                                              to_dimacs_like_format, write_bucket)
from generate_dataset.solve_batch import _process_one_file, _solve_and_trace
from py_cdcl.cdcl import solve
from py_cdcl.run_cdcl import parse_dimacs
from utils.trace_utils import convert_trace_to_str, extract_decisions, get_key_trace
from utils.utils import (cnf_line_2_CNF_class, cnf_line_2_formula, formula_2_cnf_line,
                         get_cnf_files, read_sat_problems_lines, write_temp_cnf_file)


class TestTraceUtils(unittest.TestCase):
    def test_convert(self):
        events = [("D", -1, 1), ("A", 9, 1), ("BT", 4, 0), ("A", 7, 0)]
        self.assertEqual(convert_trace_to_str(events), "D -1 L 1 A 9 BT 4 L 0 A 7")
        with self.assertRaises(ValueError):
            convert_trace_to_str([("X", 1, 0)])

    def test_key_trace_drops_undone_levels(self):
        trace = "A 5 D -1 L 1 A 9 D 2 L 2 A 3 BT -2 L 1 A 6"
        self.assertEqual(get_key_trace(trace), "A 5 D -1 L 1 A 9 BT -2 L 1 A 6")

    def test_key_trace_rejects_bad_tokens(self):
        with self.assertRaises(ValueError):
            get_key_trace("D 1 X 1")
        with self.assertRaises(ValueError):
            get_key_trace("Q 1")

    def test_extract_decisions(self):
        self.assertEqual(extract_decisions("D -1 L 1 A 9 BT 4 L 0 D 3 L 1"), [-1, 3])


class TestCnfUtils(unittest.TestCase):
    def test_line_to_formula_and_back(self):
        line = "1 -2 0 2 3 0 -3 0"
        formula = cnf_line_2_formula(line)
        self.assertEqual([c.to_ints() for c in formula], [[1, -2], [2, 3], [-3]])
        self.assertEqual(formula_2_cnf_line(formula), line)
        self.assertEqual(cnf_line_2_CNF_class(line).nv, 3)

    def test_files(self):
        with tempfile.TemporaryDirectory() as tmp:
            cnf_path = os.path.join(tmp, "a.cnf")
            write_temp_cnf_file(cnf_line_2_CNF_class("1 -2 0 2 0"), filename=cnf_path)
            open(os.path.join(tmp, "notes.txt"), "w").close()
            self.assertEqual(get_cnf_files(tmp), [cnf_path])
            formula = parse_dimacs(cnf_path, verbose=False)
            self.assertEqual(solve(formula).model, {1: True, 2: True})

            lines_path = os.path.join(tmp, "bucket.txt")
            with open(lines_path, "w") as f:
                f.write("1 0\n\n-1 2 0\n")
            self.assertEqual(read_sat_problems_lines(lines_path), ["1 0", "-1 2 0"])


class TestGenerator(unittest.TestCase):
    def setUp(self):
        random.seed(0)
        np.random.seed(0)

    def test_planted_problems_are_sat(self):
        for _ in range(10):
            clauses = generate_sat_problem(12, 50, 3)
            self.assertEqual(len(clauses), 50)
            self.assertTrue(all(len(set(abs(x) for x in c)) == 3 for c in clauses))
            self.assertTrue(solve(cnf_line_2_formula(to_dimacs_like_format(clauses))).is_sat)

    def test_uniform_problem_shape(self):
        clauses = generate_uniform_problem(6, 20, 3)
        self.assertEqual(len(clauses), 20)
        self.assertTrue(all(1 <= abs(x) <= 6 for c in clauses for x in c))
        with self.assertRaises(ValueError):
            generate_uniform_problem(2, 1, 3)

    def test_format(self):
        self.assertEqual(to_dimacs_like_format([[1, -3], [2]]), "1 -3 0 2 0")


class TestBatch(unittest.TestCase):
    def test_solve_and_trace(self):
        rec = _solve_and_trace("1 2 0 1 -2 0 -1 2 0 -1 -2 0", ["vsids", "dlis"], check=True)
        self.assertEqual(rec["status"], "UNSAT")
        self.assertEqual((rec["n_v"], rec["n_c"]), (2, 4))
        self.assertEqual(set(rec["stats"]), {"vsids", "dlis"})

        rec = _solve_and_trace("1 -2 0 2 3 0", ["random"], seed=4, check=True)
        self.assertEqual(rec["status"], "SAT")
        self.assertTrue(rec["key_trace"].startswith("D"))

    def test_bucket_round_trip(self):
        random.seed(1)
        np.random.seed(1)
        with tempfile.TemporaryDirectory() as tmp:
            bucket = write_bucket(5, 8, 6, 3.0, 4.0, 3, Path(tmp), mode="uniform")
            out_path = Path(tmp) / "solved" / "bucket.jsonl.gz"
            _process_one_file(bucket, out_path, 1, heuristics=["random", "vsids"], seed=0,
                              conflict_budget=-1, check=True)
            records = read_records(str(out_path))
            self.assertEqual(len(records), 6)
            summary = analyze_records(records, "random", "vsids")
            self.assertEqual(summary["decisions"]["n_ratio"], 6)


class TestCompareHeuristics(unittest.TestCase):
    def test_median_and_wins(self):
        records = [
            {"stats": {"a": {"decisions": 10, "conflicts": 0, "propagations": 4},
                       "b": {"decisions": 5, "conflicts": 0, "propagations": 4}}},
            {"stats": {"a": {"decisions": 10, "conflicts": 2, "propagations": 8},
                       "b": {"decisions": 20, "conflicts": 1, "propagations": 2}}},
            {"stats": {"a": {"decisions": 1}}},
        ]
        summary = analyze_records(records, "a", "b")
        self.assertEqual(summary["decisions"]["n_ratio"], 2)
        self.assertAlmostEqual(summary["decisions"]["ratio_med"], 1.25)
        self.assertEqual(summary["decisions"]["wins"], 1)
        self.assertEqual(summary["conflicts"]["n_win_den"], 1)
        self.assertEqual(summary["conflicts"]["win_ratio"], 1.0)

    def test_read_records(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "r.jsonl.gz")
            with gzip.open(path, "wt") as f:
                f.write(json.dumps({"status": "SAT"}) + "\n\n")
            self.assertEqual(read_records(path), [{"status": "SAT"}])


if __name__ == '__main__':
    unittest.main()
