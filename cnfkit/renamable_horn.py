"""Local search for a renaming that makes as many clauses Horn as possible.

Literals are integers: ``2 * v`` is the positive literal of variable ``v``
and ``2 * v + 1`` its negation. A variable that is *renamed* has its
polarity swapped. A clause is Horn when at most one of its literals is
positive under the current renaming.
"""

from __future__ import annotations

import random
from collections.abc import Sequence


def _var(lit: int) -> int:
    return lit >> 1


def _sign(lit: int) -> bool:
    return bool(lit & 1)


class RenamableHorn:
    """Incremental make/break bookkeeping plus a WalkSAT-like flip search."""

    def __init__(self, nb_var, rng=None):
        self.rng = rng if rng is not None else random.Random()
        self.nb_var = nb_var
        self._cnf: list[list[int]] = []
        self._occurrences: list[list[int]] = [[] for _ in range(2 * nb_var)]
        self.renamed: list[bool] = [False] * nb_var
        self.count_positive: list[int] = []
        self._where_false: list[int] = []
        self.not_horn_clauses: list[int] = []
        self.make_count: list[int] = [0] * nb_var
        self.break_count: list[int] = [0] * nb_var
        self._changed: list[int] = [0] * nb_var
        self.best_renaming: list[bool] = []
        self.best_not_horn_clauses: list[int] = []

    def __len__(self) -> int:
        return len(self._cnf)

    def add_clause(self, clause: Sequence[int]) -> None:
        """Append a clause to the formula."""
        index = len(self._cnf)
        self._cnf.append(list(clause))
        self.count_positive.append(0)
        self._where_false.append(0)
        for lit in clause:
            self._occurrences[lit].append(index)

    def clause(self, index: int) -> list[int]:
        return self._cnf[index]

    def is_positive(self, lit: int) -> bool:
        """Whether ``lit`` is positive under the current renaming."""
        return not (_sign(lit) ^ self.renamed[_var(lit)])

    def heuristic_interpretation(self) -> None:
        """Rename the variables of a few random clauses so they become Horn-like."""
        cnf = self._cnf
        for _ in range(len(cnf) >> 5):
            cl = cnf[self.rng.randrange(len(cnf))]
            for lit in cl:
                self.renamed[_var(lit)] = not _sign(lit)
            if self.rng.getrandbits(1):
                pos = self.rng.randrange(len(cl))
                self.renamed[_var(cl[pos])] = _sign(cl[pos])

    def random_interpretation(self) -> None:
        self.renamed = [bool(self.rng.getrandbits(1)) for _ in self.renamed]

    def init(self, init_random=True) -> None:
        """Choose a starting renaming and compute every counter from scratch."""
        if init_random:
            self.random_interpretation()
        else:
            self.heuristic_interpretation()

        self.count_positive = [0] * len(self._cnf)
        self.make_count = [0] * self.nb_var
        self.break_count = [0] * self.nb_var
        self.not_horn_clauses = []

        for i, cl in enumerate(self._cnf):
            positive = sum(1 for lit in cl if self.is_positive(lit))
            self.count_positive[i] = positive
            if positive > 1:
                self._add_not_horn_clause(i)
            if positive == 1:
                for lit in cl:
                    if not self.is_positive(lit):
                        self.break_count[_var(lit)] += 1
            if positive == 2:
                for lit in cl:
                    if self.is_positive(lit):
                        self.make_count[_var(lit)] += 1

    def _add_not_horn_clause(self, index: int) -> None:
        self.not_horn_clauses.append(index)
        self._where_false[index] = len(self.not_horn_clauses) - 1

    def _remove_not_horn_clause(self, index: int) -> None:
        last = self.not_horn_clauses[-1]
        pos = self._where_false[index]
        self.not_horn_clauses[pos] = last
        self._where_false[last] = pos
        self.not_horn_clauses.pop()

    def flip(self, v: int) -> None:
        """Toggle the renaming of ``v`` and update all counters incrementally."""
        lit = 2 * v + int(self.renamed[v])  # positive before the flip
        self.renamed[v] = not self.renamed[v]
        cnf = self._cnf
        make, brk = self.make_count, self.break_count

        for idx in self._occurrences[lit]:
            self.count_positive[idx] -= 1
            count = self.count_positive[idx]
            cl = cnf[idx]
            if count == 0:
                for other in cl:
                    if _var(other) != v and not self.is_positive(other):
                        brk[_var(other)] -= 1
            if count == 1:
                self._remove_not_horn_clause(idx)
                make[v] -= 1
                for other in cl:
                    if self.is_positive(other):
                        make[_var(other)] -= 1
                    else:
                        brk[_var(other)] += 1
            if count == 2:
                for other in cl:
                    if self.is_positive(other):
                        make[_var(other)] += 1

        for idx in self._occurrences[lit ^ 1]:
            self.count_positive[idx] += 1
            count = self.count_positive[idx]
            cl = cnf[idx]
            if count == 1:
                for other in cl:
                    if not self.is_positive(other):
                        brk[_var(other)] += 1
            if count == 2:
                brk[v] -= 1
                for other in cl:
                    if self.is_positive(other):
                        make[_var(other)] += 1
                    else:
                        brk[_var(other)] -= 1
                self._add_not_horn_clause(idx)
            if count == 3:
                for other in cl:
                    if _var(other) != v and self.is_positive(other):
                        make[_var(other)] -= 1

    def reinit_data_structure(self) -> None:
        """Empty the formula, keeping the variable count."""
        self._cnf.clear()
        self.count_positive.clear()
        self._where_false.clear()
        self.not_horn_clauses.clear()
        for occ in self._occurrences:
            occ.clear()

    def select_positive_random(self, clause: Sequence[int]) -> int:
        """Return the variable of a positive literal, scanning from a random start."""
        pos = self.rng.randrange(len(clause))
        for lit in list(clause[pos:]) + list(clause[:pos]):
            if self.is_positive(lit):
                return _var(lit)
        raise ValueError("clause has no positive literal")

    def _choose_flip(self, clause: Sequence[int]) -> int:
        floor = -len(self._cnf)
        changed = self._changed
        best = second_best = youngest = None
        youngest_birthdate = best_diff = second_best_diff = floor

        for lit in clause:
            if not self.is_positive(lit):
                continue
            v = _var(lit)
            diff = self.make_count[v] - self.break_count[v]
            birthdate = changed[v]
            if birthdate > youngest_birthdate:
                youngest_birthdate = birthdate
                youngest = v
            if diff > best_diff or (
                diff == best_diff and best is not None and changed[v] < changed[best]
            ):
                second_best, second_best_diff = best, best_diff
                best, best_diff = v, diff
            elif diff > second_best_diff or (
                diff == second_best_diff
                and second_best is not None
                and changed[v] < changed[second_best]
            ):
                second_best, second_best_diff = v, diff

        if best is None:
            raise RuntimeError("non-Horn clause without a positive literal")
        if second_best is None or best != youngest:
            return best
        return second_best if self.rng.getrandbits(1) else best

    def run(self, nb_runs, nb_flips) -> int:
        """Search for a good renaming.

        Returns the smallest number of non-Horn clauses reached; the
        corresponding renaming is kept in ``best_renaming`` and
        ``best_not_horn_clauses``.
        """
        best_obtained = len(self._cnf)
        for _ in range(nb_runs):
            self.init(False)
            self._changed = [0] * self.nb_var
            best_this_run = len(self.not_horn_clauses)

            for step in range(nb_flips):
                if not self.not_horn_clauses:
                    break
                idx = self.not_horn_clauses[self.rng.randrange(len(self.not_horn_clauses))]
                v = self._choose_flip(self._cnf[idx])
                self.flip(v)
                self._changed[v] = step

                best_this_run = min(best_this_run, len(self.not_horn_clauses))
                if best_this_run < best_obtained:
                    best_obtained = best_this_run
                    self.best_renaming = list(self.renamed)
                    self.best_not_horn_clauses = list(self.not_horn_clauses)
        return best_obtained