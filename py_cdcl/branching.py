# *************************************************************************
# SPDX-License-Identifier: Apache-2.0
# Licensed under the Apache License, Version 2.0.
# See the LICENSE file in the project root for the full license text.
# *************************************************************************
"""
Branching heuristics for the CDCL driver.

A heuristic is asked for a (variable, value) pair whenever propagation stalls
without resolving the formula. It must only return a variable that has no
entry on the trail. The driver notifies it of every learnt clause and of
every backtrack so that activity based policies can keep their scores.
"""
import random

from typing import Dict, Iterable, List, Optional, Tuple

from py_cdcl.formula import Clause, Formula


def unassigned_variables(formula: Formula, assignments) -> List[int]:
    """Return the unassigned variables of the formula in ascending order."""
    return sorted(v for v in formula.variables() if not assignments.is_assigned(v))


class BranchingHeuristic:
    name = "base"

    def pick(self, formula: Formula, assignments) -> Tuple[int, bool]:
        raise NotImplementedError

    def on_learnt(self, clause: Clause):
        pass

    def on_backtrack(self, assignments, level: int):
        pass


class RandomBranching(BranchingHeuristic):
    """
    Uniformly random variable and value. Pass a seed to make runs repeatable.
    """
    name = "random"

    def __init__(self, seed: Optional[int] = None):
        self.rng = random.Random(seed)

    def pick(self, formula, assignments):
        candidates = unassigned_variables(formula, assignments)
        assert candidates, "pick called with every variable assigned"
        return self.rng.choice(candidates), self.rng.random() < 0.5


class OrderedBranching(BranchingHeuristic):
    """Smallest unassigned variable, always the same value."""
    name = "ordered"

    def __init__(self, value: bool = False):
        self.value = value

    def pick(self, formula, assignments):
        candidates = unassigned_variables(formula, assignments)
        assert candidates, "pick called with every variable assigned"
        return candidates[0], self.value


class DlisBranching(BranchingHeuristic):
    """
    Dynamic Largest Individual Sum: choose the unassigned literal that occurs
    most often in clauses not yet satisfied, and make it true.
    """
    name = "dlis"

    def pick(self, formula, assignments):
        counts: Dict[int, int] = {}
        for clause in formula:
            if any(assignments.is_assigned(l.variable) and assignments.value(l) for l in clause):
                continue
            for lit in clause:
                if not assignments.is_assigned(lit.variable):
                    x = lit.to_int()
                    counts[x] = counts.get(x, 0) + 1

        if not counts:
            candidates = unassigned_variables(formula, assignments)
            assert candidates, "pick called with every variable assigned"
            return candidates[0], True

        # ties go to the smaller variable, positive literal first
        best = max(counts.items(), key=lambda item: (item[1], -abs(item[0]), item[0] > 0))[0]
        return abs(best), best > 0


class VsidsBranching(BranchingHeuristic):
    """
    Variable State Independent Decaying Sum.

    Variables of every learnt clause get their activity bumped by var_inc,
    after which var_inc grows by 1 / decay, so older bumps fade. The value
    tried is the phase the variable last held before being backtracked.
    """
    name = "vsids"

    def __init__(self, decay: float = 0.95, default_phase: bool = False):
        if not 0 < decay <= 1:
            raise ValueError(f"VSIDS decay must be in (0, 1], got {decay}")
        self.decay = decay
        self.default_phase = default_phase
        self.var_inc = 1.0
        self.activity: Dict[int, float] = {}
        self.phase: Dict[int, bool] = {}

    def varBumpActivity(self, v: int):
        self.activity[v] = self.activity.get(v, 0.0) + self.var_inc
        if self.activity[v] > 1e100:
            for u in self.activity:
                self.activity[u] *= 1e-100
            self.var_inc *= 1e-100

    def varDecayActivity(self):
        self.var_inc *= (1 / self.decay)

    def on_learnt(self, clause):
        for lit in clause:
            self.varBumpActivity(lit.variable)
        self.varDecayActivity()

    def on_backtrack(self, assignments, level):
        for v in assignments.trail:
            entry = assignments.assignments[v]
            if entry.dl > level:
                self.phase[v] = entry.value

    def pick(self, formula, assignments):
        candidates = unassigned_variables(formula, assignments)
        assert candidates, "pick called with every variable assigned"
        best = candidates[0]
        for v in candidates[1:]:
            if self.activity.get(v, 0.0) > self.activity.get(best, 0.0):
                best = v
        return best, self.phase.get(best, self.default_phase)


class ReplayBranching(BranchingHeuristic):
    """
    Replay a recorded list of decisions given as signed integers, e.g. the
    decisions extracted from a trace. Entries whose variable is already
    assigned or unknown to the formula are skipped. Once the list runs out,
    the fallback heuristic takes over.
    """
    name = "replay"

    def __init__(self, decisions: Iterable[int], fallback: Optional[BranchingHeuristic] = None):
        self.decisions = [d for d in decisions if d != 0]
        self.fallback = fallback if fallback is not None else OrderedBranching()
        self.num_replayed = 0
        self.num_fallback = 0

    def pick(self, formula, assignments):
        while self.decisions:
            x = self.decisions.pop(0)
            if abs(x) in formula.variables() and not assignments.is_assigned(abs(x)):
                self.num_replayed += 1
                return abs(x), x > 0
        self.num_fallback += 1
        return self.fallback.pick(formula, assignments)

    def on_learnt(self, clause):
        self.fallback.on_learnt(clause)

    def on_backtrack(self, assignments, level):
        self.fallback.on_backtrack(assignments, level)


HEURISTICS = {
    RandomBranching.name: RandomBranching,
    OrderedBranching.name: OrderedBranching,
    DlisBranching.name: DlisBranching,
    VsidsBranching.name: VsidsBranching,
}


def make_heuristic(name: str, seed: Optional[int] = None) -> BranchingHeuristic:
    """
    Build a branching heuristic by name. The seed only affects 'random'.
    """
    if name not in HEURISTICS:
        raise ValueError(f"Unknown branching heuristic '{name}', expected one of {sorted(HEURISTICS)}")
    if name == RandomBranching.name:
        return RandomBranching(seed)
    return HEURISTICS[name]()
