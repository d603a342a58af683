# *************************************************************************
# SPDX-License-Identifier: Apache-2.0
# Licensed under the Apache License, Version 2.0.
# See the LICENSE file in the project root for the full license text.
# *************************************************************************
"""
Unit tests for the literal, clause and formula model.
"""
import unittest

from pysat.formula import CNF

from py_cdcl.formula import Clause, Formula, Literal


class TestLiteral(unittest.TestCase):
    def test_negation_flips_polarity_only(self):
        lit = Literal(3, False)
        self.assertEqual(lit.neg(), Literal(3, True))
        self.assertEqual(~lit, Literal(3, True))
        self.assertEqual(lit.neg().neg(), lit)

    def test_equality_needs_variable_and_polarity(self):
        self.assertEqual(Literal(1, True), Literal(1, True))
        self.assertNotEqual(Literal(1, True), Literal(1, False))
        self.assertNotEqual(Literal(1, False), Literal(2, False))
        self.assertFalse(Literal(3, True) != Literal(3, True))
        self.assertTrue(Literal(3, True) != 3)
        self.assertEqual(len({Literal(1, True), Literal(1, True), Literal(2, True)}), 2)

    def test_int_conversion(self):
        self.assertEqual(Literal.from_int(-4), Literal(4, True))
        self.assertEqual(Literal.from_int(4), Literal(4, False))
        self.assertEqual(Literal(7, True).to_int(), -7)

    def test_str(self):
        self.assertEqual(str(Literal(2, True)), "¬2")
        self.assertEqual(str(Literal(2, False)), "2")


class TestClauseAndFormula(unittest.TestCase):
    def setUp(self):
        self.formula = Formula.from_ints([[1, -2], [2, 3], [-3]])

    def test_clause_keeps_literal_order(self):
        clause = Clause.from_ints([3, -1, 2])
        self.assertEqual(clause.to_ints(), [3, -1, 2])
        self.assertEqual(len(clause), 3)
        self.assertEqual(clause[1], Literal(1, True))
        self.assertEqual(str(clause), "3 ∨ ¬1 ∨ 2")
        self.assertFalse(clause.learnt)

    def test_variables(self):
        self.assertEqual(self.formula.variables(), {1, 2, 3})
        self.assertEqual(self.formula.nVars(), 3)

    def test_empty_formula_has_no_variables(self):
        formula = Formula([])
        self.assertEqual(formula.variables(), frozenset())
        self.assertEqual(formula.nClauses(), 0)

    def test_learnt_clauses_are_appended_with_stable_indices(self):
        first = self.formula[0]
        cref = self.formula.add_learnt(Clause.from_ints([1, 3], learnt=True))
        self.assertEqual(cref, 3)
        self.assertIs(self.formula[0], first)
        self.assertEqual(self.formula.num_original, 3)
        self.assertEqual(self.formula.nLearnts(), 1)
        self.assertEqual(len(self.formula.original_clauses()), 3)
        self.assertEqual(self.formula.variables(), {1, 2, 3})

    def test_str(self):
        self.assertEqual(str(Formula.from_ints([[1, 2], [-1]])), "(1 ∨ 2) ∧ (¬1)")

    def test_cnf_conversion(self):
        cnf = CNF(from_clauses=[[1, -2], [2]])
        formula = Formula.from_cnf(cnf)
        self.assertEqual([c.to_ints() for c in formula], [[1, -2], [2]])
        formula.add_learnt(Clause.from_ints([1], learnt=True))
        self.assertEqual(formula.to_cnf().clauses, [[1, -2], [2]])
        self.assertEqual(formula.to_cnf(include_learnts=True).clauses, [[1, -2], [2], [1]])


if __name__ == '__main__':
    unittest.main()
