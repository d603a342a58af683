# *************************************************************************
# SPDX-License-Identifier: Apache-2.0
# Licensed under the Apache License, Version 2.0.
# See the LICENSE file in the project root for the full license text.
# *************************************************************************
"""
Literal, clause and formula model for the CDCL solver.

Variables are positive integers. A literal is a (variable, negation) pair,
a clause is an ordered disjunction of literals and a formula is an
append-only arena of clauses addressed by stable indices.
"""
from typing import FrozenSet, Iterable, Iterator, List, Sequence

from pysat.formula import CNF


class Literal:
    __slots__ = ('variable', 'negation')

    def __init__(self, variable: int, negation: bool = False):
        self.variable = variable
        self.negation = negation

    def neg(self) -> 'Literal':
        return Literal(self.variable, not self.negation)

    def __invert__(self) -> 'Literal':
        return self.neg()

    def __eq__(self, other) -> bool:
        if not isinstance(other, Literal):
            return NotImplemented
        return self.variable == other.variable and self.negation == other.negation

    def __hash__(self) -> int:
        return hash((self.variable, self.negation))

    def __repr__(self) -> str:
        return f"Literal({self.variable}, {self.negation})"

    def __str__(self) -> str:
        return f"¬{self.variable}" if self.negation else str(self.variable)

    def to_int(self) -> int:
        """DIMACS form: magnitude is the variable, negative means negated."""
        return -self.variable if self.negation else self.variable

    @staticmethod
    def from_int(x: int) -> 'Literal':
        return Literal(abs(x), x < 0)


class Clause:
    """
    Disjunction of literals. The literal tuple never changes after creation.
    """
    __slots__ = ('literals', 'learnt')

    def __init__(self, literals: Iterable[Literal], learnt: bool = False):
        self.literals = tuple(literals)
        self.learnt = learnt

    def size(self) -> int:
        return len(self.literals)

    def __len__(self) -> int:
        return len(self.literals)

    def __iter__(self) -> Iterator[Literal]:
        return iter(self.literals)

    def __getitem__(self, i: int) -> Literal:
        return self.literals[i]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Clause):
            return NotImplemented
        return self.literals == other.literals

    def __hash__(self) -> int:
        return hash(self.literals)

    def __repr__(self) -> str:
        return f"Clause([{', '.join(repr(l) for l in self.literals)}], learnt={self.learnt})"

    def __str__(self) -> str:
        return " ∨ ".join(str(l) for l in self.literals)

    def to_ints(self) -> List[int]:
        return [l.to_int() for l in self.literals]

    @staticmethod
    def from_ints(ints: Iterable[int], learnt: bool = False) -> 'Clause':
        return Clause((Literal.from_int(x) for x in ints), learnt=learnt)


class Formula:
    """
    Clause database of a single solve.

    Original clauses occupy indices [0, num_original); learnt clauses are
    appended after them and are never removed, so an index handed out by
    the formula stays valid for its whole lifetime. The variable set is
    fixed at construction.
    """

    def __init__(self, clauses: Iterable[Clause]):
        self.clauses: List[Clause] = list(clauses)
        self.num_original = len(self.clauses)
        vs = set()
        for clause in self.clauses:
            for lit in clause:
                vs.add(lit.variable)
        self._variables: FrozenSet[int] = frozenset(vs)

    def variables(self) -> FrozenSet[int]:
        return self._variables

    def nVars(self) -> int:
        return len(self._variables)

    def nClauses(self) -> int:
        return len(self.clauses)

    def nLearnts(self) -> int:
        return len(self.clauses) - self.num_original

    def original_clauses(self) -> Sequence[Clause]:
        return self.clauses[:self.num_original]

    def add_learnt(self, clause: Clause) -> int:
        """Append a learnt clause and return its index."""
        self.clauses.append(clause)
        return len(self.clauses) - 1

    def __getitem__(self, cref: int) -> Clause:
        return self.clauses[cref]

    def __len__(self) -> int:
        return len(self.clauses)

    def __iter__(self) -> Iterator[Clause]:
        return iter(self.clauses)

    def __str__(self) -> str:
        return " ∧ ".join(f"({c})" for c in self.clauses)

    @staticmethod
    def from_ints(clauses: Iterable[Iterable[int]]) -> 'Formula':
        """
        Build a formula from DIMACS-style integer clauses, e.g. [[1, -2], [2]].
        """
        return Formula(Clause.from_ints(c) for c in clauses)

    @staticmethod
    def from_cnf(cnf: CNF) -> 'Formula':
        return Formula.from_ints(cnf.clauses)

    def to_cnf(self, include_learnts: bool = False) -> CNF:
        clauses = self.clauses if include_learnts else self.original_clauses()
        return CNF(from_clauses=[c.to_ints() for c in clauses])
