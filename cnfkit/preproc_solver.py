"""A clause database with unit propagation, occurrence lists and a small solver.

Literals are integers: ``2 * v`` is the positive literal of variable ``v``
and ``2 * v + 1`` its negation. Values are ``True``, ``False`` or ``None``
(unassigned). Clause slots keep their index until ``remove_and_compact``
is called. Occurrence lists are kept only for protected variables.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence


class UnsatisfiableError(Exception):
    """Raised when the formula is found to have no model."""


class _Clause:
    __slots__ = ("lits", "attached", "removed", "learnt")

    def __init__(self, lits: list[int], learnt: bool = False):
        self.lits = lits
        self.attached = False
        self.removed = False
        self.learnt = learnt


def _readable(lit: int) -> int:
    v = (lit >> 1) + 1
    return -v if lit & 1 else v


class PreprocSolver:
    """Watched-literal propagation over clauses, with occurrence bookkeeping."""

    def __init__(self, nb_var, clauses=(), protected=None):
        if nb_var < 0:
            raise ValueError("the number of variables must not be negative")
        self._nb_var = nb_var
        if protected is None:
            self._protected = [True] * nb_var
        else:
            self._protected = [bool(p) for p in protected]
            if len(self._protected) != nb_var:
                raise ValueError("protected must give one flag per variable")
        self.activity: list[float] = [0.0] * nb_var
        self._assigns: list[bool | None] = [None] * nb_var
        self._trail: list[int] = []
        self._trail_lim: list[int] = []
        self._qhead = 0
        self._watches: list[list[_Clause]] = [[] for _ in range(2 * nb_var)]
        self._clauses: list[_Clause] = []
        self._learnts: list[_Clause] = []
        self._free: list[int] = []
        self._model: list[bool] = []
        self._ok = True

        for clause in clauses:
            self._add_original(clause)

        self._occurrences: list[list[int]] = [[] for _ in range(2 * nb_var)]
        self._rebuild_occurrences()
        self._hash_keys = [self.hash_clause(c.lits) for c in self._clauses]

    # ------------------------------------------------------------------ setup

    def _check_lit(self, lit: int) -> None:
        if not 0 <= lit < 2 * self._nb_var:
            raise ValueError(f"literal {lit} out of range")

    def _add_original(self, clause: Iterable[int]) -> None:
        lits = sorted(set(clause))
        for lit in lits:
            self._check_lit(lit)
        present = set(lits)
        if any(lit ^ 1 in present for lit in lits):
            return
        if any(self.value(lit) is True for lit in lits):
            return
        lits = [lit for lit in lits if self.value(lit) is None]
        if not lits:
            self._ok = False
            raise UnsatisfiableError("the formula is unsatisfiable")
        if len(lits) == 1:
            self.unchecked_enqueue(lits[0])
            if self.propagate() is not None:
                self._ok = False
                raise UnsatisfiableError("the formula is unsatisfiable")
            return
        c = _Clause(lits)
        self._clauses.append(c)
        self._attach(c)

    def _rebuild_occurrences(self) -> None:
        for occ in self._occurrences:
            occ.clear()
        for i, c in enumerate(self._clauses):
            if c.removed:
                continue
            for lit in c.lits:
                if self._protected[lit >> 1]:
                    self._occurrences[lit].append(i)

    # -------------------------------------------------------------- assignment

    def value(self, lit):
        """Value of a literal under the current assignment."""
        val = self._assigns[lit >> 1]
        return None if val is None else val != bool(lit & 1)

    def value_var(self, v):
        return self._assigns[v]

    def new_decision_level(self) -> None:
        self._trail_lim.append(len(self._trail))

    def decision_level(self) -> int:
        return len(self._trail_lim)

    def unchecked_enqueue(self, lit) -> None:
        """Make ``lit`` true at the current level without propagating."""
        self._check_lit(lit)
        v = lit >> 1
        if self._assigns[v] is not None:
            raise ValueError(f"variable {v} is already assigned")
        self._assigns[v] = not (lit & 1)
        self._trail.append(lit)

    def cancel_until(self, level) -> None:
        """Undo every assignment made above decision level ``level``."""
        if self.decision_level() <= level:
            return
        start = self._trail_lim[level]
        for lit in self._trail[start:]:
            self._assigns[lit >> 1] = None
        del self._trail[start:]
        del self._trail_lim[level:]
        self._qhead = len(self._trail)

    def propagate(self):
        """Run unit propagation; return the literals of a conflicting clause or ``None``."""
        while self._qhead < len(self._trail):
            p = self._trail[self._qhead]
            self._qhead += 1
            false_lit = p ^ 1
            ws = self._watches[p]
            kept: list[_Clause] = []
            self._watches[p] = kept
            for k, c in enumerate(ws):
                lits = c.lits
                if lits[0] == false_lit:
                    lits[0], lits[1] = lits[1], lits[0]
                first = lits[0]
                if self.value(first) is True:
                    kept.append(c)
                    continue
                for j in range(2, len(lits)):
                    if self.value(lits[j]) is not False:
                        lits[1], lits[j] = lits[j], lits[1]
                        self._watches[lits[1] ^ 1].append(c)
                        break
                else:
                    kept.append(c)
                    if self.value(first) is False:
                        kept.extend(ws[k + 1:])
                        self._qhead = len(self._trail)
                        return lits
                    self.unchecked_enqueue(first)
        return None

    # ------------------------------------------------------------------ solving

    def solve(self, assumptions=()):
        """Decide satisfiability under ``assumptions``; the model is kept on success.

        On failure the negation of the assumptions is learnt. The search
        always ends back at decision level 0.
        """
        if self.decision_level():
            raise RuntimeError("solve must start at decision level 0")
        assumptions = list(assumptions)
        for lit in assumptions:
            self._check_lit(lit)
        self._model = []
        if not self._ok:
            return False
        if self.propagate() is not None:
            self._ok = False
            return False

        for i, lit in enumerate(assumptions):
            self.new_decision_level()
            val = self.value(lit)
            if val is False:
                self._learn_failure(assumptions[: i + 1])
                return False
            if val is None:
                self.unchecked_enqueue(lit)
                if self.propagate() is not None:
                    self._learn_failure(assumptions[: i + 1])
                    return False

        base = self.decision_level()
        decisions: list[tuple[int, bool]] = []
        while True:
            if self.propagate() is not None:
                while decisions and decisions[-1][1]:
                    decisions.pop()
                if not decisions:
                    self._learn_failure(assumptions)
                    return False
                lit, _ = decisions.pop()
                self.cancel_until(base + len(decisions))
                self.new_decision_level()
                decisions.append((lit ^ 1, True))
                self.unchecked_enqueue(lit ^ 1)
                continue
            v = next((v for v, val in enumerate(self._assigns) if val is None), None)
            if v is None:
                self._model = [bool(val) for val in self._assigns]
                self.cancel_until(0)
                return True
            self.new_decision_level()
            decisions.append((2 * v + 1, False))
            self.unchecked_enqueue(2 * v + 1)

    def _learn_failure(self, assumptions: Sequence[int]) -> None:
        self.cancel_until(0)
        learnt = []
        for lit in dict.fromkeys(assumptions):
            neg = lit ^ 1
            val = self.value(neg)
            if val is True:
                return
            if val is None:
                learnt.append(neg)
        if not learnt:
            self._ok = False
        elif len(learnt) == 1:
            self.unchecked_enqueue(learnt[0])
            if self.propagate() is not None:
                self._ok = False
        else:
            c = _Clause(learnt, learnt=True)
            self._learnts.append(c)
            self._attach(c)

    def model(self) -> list[bool]:
        """The model found by the last successful ``solve``."""
        return list(self._model)

    def trail(self) -> list[int]:
        return list(self._trail)

    # ----------------------------------------------------------------- clauses

    def clause(self, index) -> list[int]:
        """The live literal list of a slot; it may be edited while detached."""
        return self._clauses[index].lits

    def nb_clauses(self) -> int:
        return len(self._clauses)

    def nb_vars(self) -> int:
        return self._nb_var

    def _attach(self, c: _Clause) -> None:
        if len(c.lits) < 2:
            raise ValueError("only clauses of two literals or more can be attached")
        self._watches[c.lits[0] ^ 1].append(c)
        self._watches[c.lits[1] ^ 1].append(c)
        c.attached = True

    def _detach(self, c: _Clause) -> None:
        if not c.attached:
            raise ValueError("the clause is not attached")
        self._watches[c.lits[0] ^ 1].remove(c)
        self._watches[c.lits[1] ^ 1].remove(c)
        c.attached = False

    def attach_clause(self, index) -> None:
        c = self._clauses[index]
        if c.attached or c.removed:
            raise ValueError(f"clause {index} cannot be attached")
        self._attach(c)

    def detach_clause(self, index) -> None:
        self._detach(self._clauses[index])

    def is_attached(self, index) -> bool:
        return self._clauses[index].attached

    def search_and_remove_occ_from_lit(self, lit, index) -> None:
        """Remove ``index`` from the occurrence list of ``lit``."""
        occ = self._occurrences[lit]
        pos = occ.index(index)
        occ[pos] = occ[-1]
        occ.pop()

    def remove_clause_occ(self, index) -> None:
        """Delete the clause of a slot and free the slot for reuse."""
        c = self._clauses[index]
        if c.removed:
            raise ValueError(f"clause {index} is already removed")
        if c.attached:
            self._detach(c)
        for lit in c.lits:
            if self._protected[lit >> 1]:
                self.search_and_remove_occ_from_lit(lit, index)
        self._hash_keys[index] = 0
        self._free.append(index)
        c.removed = True

    def add_clause_occ(self, lits):
        """Add a clause, reusing a free slot; return its index (``None`` for a unit)."""
        lits = list(lits)
        if not lits:
            raise ValueError("cannot add an empty clause")
        for lit in lits:
            self._check_lit(lit)
        if len(lits) == 1:
            val = self.value(lits[0])
            if val is False:
                raise UnsatisfiableError("the formula became unsatisfiable")
            if val is None:
                self.unchecked_enqueue(lits[0])
            return None
        c = _Clause(lits)
        if self._free:
            pos = self._free.pop()
            self._clauses[pos] = c
        else:
            pos = len(self._clauses)
            self._clauses.append(c)
            self._hash_keys.append(0)
        self._hash_keys[pos] = self.hash_clause(lits)
        for lit in lits:
            if self._protected[lit >> 1]:
                self._occurrences[lit].append(pos)
        self._attach(c)
        return pos

    def remove_clause_from_lit(self, lit) -> None:
        """Remove every clause containing ``lit`` or its negation."""
        indexes = dict.fromkeys(self._occurrences[lit] + self._occurrences[lit ^ 1])
        for index in indexes:
            self.remove_clause_occ(index)

    def remove_and_compact(self) -> None:
        """Drop the freed slots and renumber the remaining clauses."""
        freed = set(self._free)
        kept = [i for i in range(len(self._clauses)) if i not in freed]
        self._clauses = [self._clauses[i] for i in kept]
        self._hash_keys = [self._hash_keys[i] for i in kept]
        self._free.clear()
        self._rebuild_occurrences()

    def remove_learnt(self) -> int:
        """Detach and drop the learnt clauses; return how many there were."""
        count = len(self._learnts)
        for c in self._learnts:
            if c.attached:
                self._detach(c)
        self._learnts.clear()
        return count

    # ------------------------------------------------------------- occurrences

    def occurrence_lit(self, lit) -> list[int]:
        return list(self._occurrences[lit])

    def nb_occ_lit(self, lit) -> int:
        return len(self._occurrences[lit])

    def product_occ_lit(self, lit) -> int:
        return len(self._occurrences[lit]) * len(self._occurrences[lit ^ 1])

    def sum_occ_lit(self, lit) -> int:
        return len(self._occurrences[lit]) + len(self._occurrences[lit ^ 1])

    def lit_is_marked(self, lit) -> bool:
        """Whether the variable of ``lit`` is protected."""
        return self._protected[lit >> 1]

    @staticmethod
    def hash_clause(lits) -> int:
        """A 64-bit signature with one bit per literal modulo 64."""
        key = 0
        for lit in lits:
            key |= 1 << (lit & 63)
        return key

    def set_hash_key_init(self, index) -> None:
        self._hash_keys[index] = self.hash_clause(self._clauses[index].lits)

    def hash_key_init(self, index) -> int:
        return self._hash_keys[index]

    def sort_clause(self, index) -> None:
        """Order a detached clause: protected variables first, then by activity."""
        c = self._clauses[index]
        if c.attached:
            raise ValueError("detach the clause before sorting it")
        c.lits.sort(key=lambda lit: (not self._protected[lit >> 1], -self.activity[lit >> 1]))

    def collect_init_formula(self) -> list[list[int]]:
        """Return the units of the trail followed by the unsatisfied clauses, reduced."""
        formula = [[lit] for lit in self._trail]
        for c in self._clauses:
            if c.removed or any(self.value(lit) is True for lit in c.lits):
                continue
            formula.append([lit for lit in c.lits if self.value(lit) is None])
        return formula

    def format_occurrences(self) -> str:
        lines = []
        for lit, occ in enumerate(self._occurrences):
            lines.append(f"{_readable(lit)} => " + " ".join(str(i) for i in occ))
        return "\n".join(lines) + "\n"