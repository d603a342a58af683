# *************************************************************************
# SPDX-License-Identifier: Apache-2.0
# Licensed under the Apache License, Version 2.0.
# See the LICENSE file in the project root for the full license text.
# *************************************************************************
"""
Conflict-Driven Clause Learning.

The solving core: an assignment trail with decision levels, unit
propagation by repeated clause scans, conflict analysis, non-chronological
backtracking and the driver that ties them together.

Clause references are indices into the formula's append-only clause list,
so antecedents recorded on the trail stay valid while clauses are learnt.
"""
import time

from typing import Dict, List, Optional, Tuple

from py_cdcl.branching import BranchingHeuristic, RandomBranching
from py_cdcl.formula import Clause, Formula, Literal


# Solve status, same encoding as Minisat's lbool: l_True = 0, l_False = 1, l_Undef = 2
class Lbool:
    TRUE = 0
    FALSE = 1
    UNDEF = 2


CONFLICT = "conflict"
UNRESOLVED = "unresolved"

ANALYSIS_MODES = ("1uip", "decrement")


class Assignment:
    __slots__ = ('value', 'antecedent', 'dl')

    def __init__(self, value: bool, antecedent: Optional[int], dl: int):
        self.value = value
        self.antecedent = antecedent  # clause index, None for a decision
        self.dl = dl  # decision level

    def __eq__(self, other) -> bool:
        if not isinstance(other, Assignment):
            return NotImplemented
        return (self.value, self.antecedent, self.dl) == (other.value, other.antecedent, other.dl)

    def __repr__(self) -> str:
        return f"Assignment(value={self.value}, antecedent={self.antecedent}, dl={self.dl})"


class Assignments:
    """
    The assignment trail.

    `assignments` maps a variable to its Assignment. `trail` lists the
    assigned variables in the order they were assigned, except that an
    entry made below the current top level is slotted in after the last
    entry at or below its level. Decision levels along it never decrease,
    which lets backtracking pop from the end instead of scanning the
    whole map.
    """

    def __init__(self):
        self.assignments: Dict[int, Assignment] = {}
        self.trail: List[int] = []
        self.dl = 0

    def value(self, literal: Literal) -> bool:
        """Truth value of a literal. An unassigned variable reads as false."""
        entry = self.assignments.get(literal.variable)
        if entry is None:
            return False
        return not entry.value if literal.negation else entry.value

    def is_assigned(self, variable: int) -> bool:
        return variable in self.assignments

    def level(self, variable: int) -> int:
        return self.assignments[variable].dl

    def antecedent(self, variable: int) -> Optional[int]:
        return self.assignments[variable].antecedent

    def assign(self, variable: int, value: bool, antecedent: Optional[int]):
        if variable in self.assignments:
            self.trail.remove(variable)
        self.assignments[variable] = Assignment(value, antecedent, self.dl)
        # An entry below the top level goes after the last entry at or below its level
        pos = len(self.trail)
        while pos > 0 and self.assignments[self.trail[pos - 1]].dl > self.dl:
            pos -= 1
        self.trail.insert(pos, variable)

    def unassign(self, variable: int):
        if variable not in self.assignments:
            return
        del self.assignments[variable]
        if self.trail and self.trail[-1] == variable:
            self.trail.pop()
        else:
            self.trail.remove(variable)

    def satisfies(self, formula: Formula, original_only: bool = False) -> bool:
        clauses = formula.original_clauses() if original_only else formula.clauses
        for clause in clauses:
            if not any(self.value(lit) for lit in clause):
                return False
        return True

    def size(self) -> int:
        return len(self.assignments)

    def __len__(self) -> int:
        return len(self.assignments)

    def model(self) -> Dict[int, bool]:
        return {v: a.value for v, a in self.assignments.items()}


def all_variables_assigned(formula: Formula, assignments: Assignments) -> bool:
    return len(formula.variables()) == assignments.size()


def backtrack(assignments: Assignments, b: int):
    """
    Remove every entry whose decision level exceeds b. Entries at or below
    b are left untouched. The caller resets assignments.dl afterwards.
    """
    trail = assignments.trail
    while trail and assignments.assignments[trail[-1]].dl > b:
        del assignments.assignments[trail.pop()]


def unit_propagation(formula: Formula, assignments: Assignments) -> Tuple[str, Optional[int]]:
    """
    Propagate unit clauses until a fixed point or a conflict.

    Returns (CONFLICT, clause index) for the first clause found with every
    literal false, otherwise (UNRESOLVED, None).
    """
    finish = False
    while not finish:
        finish = True
        for cref, clause in enumerate(formula.clauses):
            unassigned_literal = None
            multiple_unassigned = False
            clause_satisfied = False
            for literal in clause:
                if not assignments.is_assigned(literal.variable):
                    if unassigned_literal is None:
                        unassigned_literal = literal
                    elif literal != unassigned_literal:
                        multiple_unassigned = True
                elif assignments.value(literal):
                    clause_satisfied = True
                    break

            if clause_satisfied:
                continue

            if unassigned_literal is None:
                return CONFLICT, cref
            if not multiple_unassigned:
                assignments.assign(unassigned_literal.variable, not unassigned_literal.negation, cref)
                finish = False
    return UNRESOLVED, None


def analyze_decrement(formula: Formula, conflict: int, assignments: Assignments) -> Tuple[int, Clause]:
    """
    Minimal policy: learn a copy of the conflicting clause and go back one
    decision level. Level 0 has nowhere to go, so -1 signals UNSAT.
    """
    clause = formula[conflict]
    if assignments.dl == 0:
        return -1, clause
    return assignments.dl - 1, Clause(clause.literals, learnt=True)


def analyze_1uip(formula: Formula, conflict: int, assignments: Assignments) -> Tuple[int, Clause]:
    """
    Resolve the conflicting clause with antecedents, walking the trail
    backwards, until a single literal of the conflict level is left (the
    first Unique Implication Point).

    The learnt clause puts the negated UIP first and a literal of the
    backtrack level second. The backtrack level is the highest level among
    the non-UIP literals, 0 when the clause is unit. Level 0 literals are
    permanently false and are left out.
    """
    clause = formula[conflict]
    if assignments.dl == 0 or clause.size() == 0:
        return -1, clause
    conflict_level = max(assignments.level(lit.variable) for lit in clause)
    if conflict_level == 0:
        return -1, clause

    seen = set()
    out_learnt: List[Literal] = []
    pathC = 0
    index = len(assignments.trail) - 1
    while True:
        for q in clause:
            v = q.variable
            if v in seen:
                continue
            lvl = assignments.level(v)
            if lvl == 0:
                continue
            seen.add(v)
            if lvl >= conflict_level:
                pathC += 1
            else:
                out_learnt.append(q)
        while assignments.trail[index] not in seen:
            index -= 1
        p = assignments.trail[index]
        index -= 1
        pathC -= 1
        if pathC <= 0:
            break
        reason = assignments.antecedent(p)
        assert reason is not None, f"decision variable {p} reached before the UIP"
        clause = formula[reason]

    uip = Literal(p, assignments.assignments[p].value)
    if not out_learnt:
        return 0, Clause([uip], learnt=True)

    max_i = 0
    for i in range(1, len(out_learnt)):
        if assignments.level(out_learnt[i].variable) > assignments.level(out_learnt[max_i].variable):
            max_i = i
    out_learnt[0], out_learnt[max_i] = out_learnt[max_i], out_learnt[0]
    out_btlevel = assignments.level(out_learnt[0].variable)
    return out_btlevel, Clause([uip] + out_learnt, learnt=True)


def conflict_analysis(formula: Formula, conflict: int, assignments: Assignments,
                      mode: str = "1uip") -> Tuple[int, Clause]:
    if mode == "1uip":
        return analyze_1uip(formula, conflict, assignments)
    if mode == "decrement":
        return analyze_decrement(formula, conflict, assignments)
    raise ValueError(f"Unknown conflict analysis mode '{mode}', expected one of {ANALYSIS_MODES}")


class Verdict:
    def __init__(self, status: int, model: Optional[Dict[int, bool]] = None):
        self.status = status
        self.model = model

    @property
    def is_sat(self) -> bool:
        return self.status == Lbool.TRUE

    @property
    def is_unsat(self) -> bool:
        return self.status == Lbool.FALSE

    def __repr__(self) -> str:
        name = {Lbool.TRUE: "SAT", Lbool.FALSE: "UNSAT"}.get(self.status, "UNDEF")
        return f"Verdict({name}, model={self.model})"


class CdclSolver:
    """
    Decide, propagate, and on conflict analyze, learn and backtrack, until
    every variable is assigned (SAT) or a conflict occurs at level 0 (UNSAT).

    A non-negative conflict or propagation budget stops the search early
    with Lbool.UNDEF.
    """

    def __init__(self, heuristic: Optional[BranchingHeuristic] = None, analysis: str = "1uip",
                 conflict_budget: int = -1, propagation_budget: int = -1, verbosity: int = 0):
        if analysis not in ANALYSIS_MODES:
            raise ValueError(f"Unknown conflict analysis mode '{analysis}', expected one of {ANALYSIS_MODES}")
        self.heuristic = heuristic if heuristic is not None else RandomBranching()
        self.analysis = analysis
        self.conflict_budget = conflict_budget
        self.propagation_budget = propagation_budget
        self.verbosity = verbosity
        self.report_every = 100

        self.formula: Optional[Formula] = None
        self.assignments = Assignments()

        self.decisions = 0
        self.propagations = 0
        self.conflicts = 0
        self.learnts = 0
        self.learnts_literals = 0
        self.max_level = 0
        self.solve_time_ms = 0.0

        self.record_trace = True
        self.trace_events: List[Tuple[str, int, int]] = []
        self.key_trace_events: List[Tuple[str, int, int]] = []

    def withinBudget(self) -> bool:
        if self.conflict_budget >= 0 and self.conflicts >= self.conflict_budget:
            return False
        if self.propagation_budget >= 0 and self.propagations >= self.propagation_budget:
            return False
        return True

    def _record(self, etype: str, val: int, level: int):
        if not self.record_trace:
            return
        self.trace_events.append((etype, val, level))
        if etype == "BT":
            self.key_trace_events = [e for e in self.key_trace_events if e[2] <= level]
        self.key_trace_events.append((etype, val, level))
        if self.verbosity >= 2:
            if etype == "A":
                print("A {} ".format(val), end='')
            else:
                print("{} {} L {} ".format(etype, val, level), end='')

    def propagate(self) -> Tuple[str, Optional[int]]:
        start = len(self.assignments.trail)
        reason, cref = unit_propagation(self.formula, self.assignments)
        implied = self.assignments.trail[start:]
        self.propagations += len(implied)
        for v in implied:
            lit = -v if not self.assignments.assignments[v].value else v
            self._record("A", lit, self.assignments.dl)
        return reason, cref

    def decide(self):
        var_, val = self.heuristic.pick(self.formula, self.assignments)
        assert not self.assignments.is_assigned(var_), f"heuristic picked assigned variable {var_}"
        self.assignments.dl += 1
        self.assignments.assign(var_, val, None)
        self.decisions += 1
        self.max_level = max(self.max_level, self.assignments.dl)
        self._record("D", var_ if val else -var_, self.assignments.dl)

    def learn_and_backtrack(self, learnt_clause: Clause, b: int):
        self.formula.add_learnt(learnt_clause)
        self.learnts += 1
        self.learnts_literals += learnt_clause.size()
        self.heuristic.on_learnt(learnt_clause)
        self.heuristic.on_backtrack(self.assignments, b)
        backtrack(self.assignments, b)
        self.assignments.dl = b
        head = learnt_clause[0].to_int() if learnt_clause.size() > 0 else 0
        self._record("BT", head, b)

    def print_progress(self):
        print("| %9d | %8d %8d | %8d %8d | %6d |" % (
            self.conflicts, self.decisions, self.propagations,
            self.learnts, self.formula.nClauses(), self.assignments.dl))

    def search(self) -> int:
        while not all_variables_assigned(self.formula, self.assignments):
            if not self.withinBudget():
                return Lbool.UNDEF
            self.decide()
            while True:
                reason, cref = self.propagate()
                if reason != CONFLICT:
                    break
                self.conflicts += 1
                b, learnt_clause = conflict_analysis(self.formula, cref, self.assignments, self.analysis)
                if b < 0:
                    return Lbool.FALSE
                self.learn_and_backtrack(learnt_clause, b)
                if self.verbosity >= 1 and self.conflicts % self.report_every == 0:
                    self.print_progress()
                if not self.withinBudget():
                    return Lbool.UNDEF
        return Lbool.TRUE

    def solve_(self, formula: Formula) -> Verdict:
        self.formula = formula
        self.assignments = Assignments()
        self.trace_events = []
        self.key_trace_events = []

        if self.verbosity >= 1:
            print("============================[ Search Statistics ]============================")
            print("| Conflicts | Decisions  Props    | Learnts  Clauses  | Level  |")
            print("=============================================================================")

        t0 = time.perf_counter()
        reason, _ = self.propagate()
        if reason == CONFLICT:
            status = Lbool.FALSE
        else:
            status = self.search()
        self.solve_time_ms = (time.perf_counter() - t0) * 1000.0

        if self.verbosity >= 1:
            print("\n=============================================================================")

        if status == Lbool.TRUE:
            return Verdict(status, self.assignments.model())
        return Verdict(status)

    def stats(self) -> Dict[str, float]:
        return {
            'decisions': self.decisions,
            'propagations': self.propagations,
            'conflicts': self.conflicts,
            'learnts': self.learnts,
            'learnts_literals': self.learnts_literals,
            'max_level': self.max_level,
            'time_ms': self.solve_time_ms,
        }


def solve(formula: Formula, heuristic: Optional[BranchingHeuristic] = None, **kwargs) -> Verdict:
    """
    Solve a formula with a fresh CdclSolver. Learnt clauses are appended to
    the formula passed in.
    """
    return CdclSolver(heuristic=heuristic, **kwargs).solve_(formula)
