# *************************************************************************
# SPDX-License-Identifier: Apache-2.0
# Licensed under the Apache License, Version 2.0.
# See the LICENSE file in the project root for the full license text.
# *************************************************************************
"""
Unit tests for the assignment trail and backtracking.
"""
import unittest

from py_cdcl.cdcl import Assignment, Assignments, all_variables_assigned, backtrack
from py_cdcl.formula import Formula, Literal


class TestAssignments(unittest.TestCase):
    def setUp(self):
        self.a = Assignments()

    def test_value_of_literals(self):
        self.a.assign(1, True, None)
        self.a.assign(2, False, None)
        self.assertTrue(self.a.value(Literal(1, False)))
        self.assertFalse(self.a.value(Literal(1, True)))
        self.assertFalse(self.a.value(Literal(2, False)))
        self.assertTrue(self.a.value(Literal(2, True)))

    def test_unassigned_reads_false_for_both_polarities(self):
        self.assertFalse(self.a.value(Literal(5, False)))
        self.assertFalse(self.a.value(Literal(5, True)))
        self.assertFalse(self.a.is_assigned(5))

    def test_assign_records_current_level_and_antecedent(self):
        self.a.dl = 3
        self.a.assign(4, True, 7)
        self.assertEqual(self.a.assignments[4], Assignment(True, 7, 3))
        self.assertEqual(self.a.level(4), 3)
        self.assertEqual(self.a.antecedent(4), 7)

    def test_overwrite_keeps_one_entry(self):
        self.a.assign(1, True, None)
        self.a.assign(2, True, None)
        self.a.dl = 1
        self.a.assign(1, False, 0)
        self.assertEqual(self.a.size(), 2)
        self.assertEqual(self.a.assignments[1], Assignment(False, 0, 1))
        self.assertEqual(self.a.trail, [2, 1])

    def test_unassign_removes_entry(self):
        self.a.assign(1, True, None)
        self.a.assign(2, True, None)
        self.a.unassign(1)
        self.assertFalse(self.a.is_assigned(1))
        self.assertEqual(self.a.trail, [2])
        self.a.unassign(1)
        self.assertEqual(self.a.size(), 1)

    def test_satisfies(self):
        formula = Formula.from_ints([[1, 2], [-1]])
        self.a.assign(1, False, None)
        self.assertFalse(self.a.satisfies(formula))
        self.a.assign(2, True, None)
        self.assertTrue(self.a.satisfies(formula))
        self.assertTrue(all_variables_assigned(formula, self.a))

    def test_satisfies_empty_formula(self):
        self.assertTrue(self.a.satisfies(Formula([])))

    def test_model(self):
        self.a.assign(1, True, None)
        self.a.assign(3, False, 0)
        self.assertEqual(self.a.model(), {1: True, 3: False})


class TestBacktrack(unittest.TestCase):
    def setUp(self):
        a = Assignments()
        a.assign(1, True, 0)
        a.dl = 1
        a.assign(2, False, None)
        a.assign(3, True, 1)
        a.dl = 2
        a.assign(4, True, None)
        a.assign(5, False, 2)
        a.dl = 3
        a.assign(6, True, None)
        self.a = a

    def snapshot(self):
        return {v: Assignment(e.value, e.antecedent, e.dl) for v, e in self.a.assignments.items()}

    def test_entries_above_level_are_removed(self):
        before = self.snapshot()
        backtrack(self.a, 1)
        self.assertTrue(all(e.dl <= 1 for e in self.a.assignments.values()))
        self.assertEqual(set(self.a.assignments), {1, 2, 3})
        for v, entry in self.a.assignments.items():
            self.assertEqual(entry, before[v])
        self.assertEqual(self.a.trail, [1, 2, 3])

    def test_assign_below_top_level_keeps_trail_ordered(self):
        a = Assignments()
        a.dl = 2
        a.assign(1, True, None)
        a.dl = 1
        a.assign(2, False, None)
        self.assertEqual(a.trail, [2, 1])
        backtrack(a, 1)
        self.assertEqual(a.model(), {2: False})
        self.assertEqual(a.trail, [2])

    def test_backtrack_to_zero_keeps_root_assignments(self):
        backtrack(self.a, 0)
        self.assertEqual(self.a.model(), {1: True})

    def test_backtrack_to_current_level_is_noop(self):
        before = self.snapshot()
        backtrack(self.a, 3)
        self.assertEqual(self.snapshot(), before)

    def test_backtrack_leaves_level_counter_to_caller(self):
        backtrack(self.a, 1)
        self.assertEqual(self.a.dl, 3)


if __name__ == '__main__':
    unittest.main()
