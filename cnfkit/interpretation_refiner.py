"""Improve a model so that unprotected variables satisfy as many clauses as possible.

Literals are integers: ``2 * v`` is the positive literal of variable ``v``
and ``2 * v + 1`` its negation. A model is a sequence indexed by variable
holding ``True``, ``False`` or ``None`` (unassigned).
"""

from __future__ import annotations

from collections.abc import Sequence


def _var(lit: int) -> int:
    return lit >> 1


def _sign(lit: int) -> bool:
    return bool(lit & 1)


def _lit_true(lit: int, model: Sequence) -> bool:
    value = model[_var(lit)]
    return value is not None and bool(value) != _sign(lit)


class InterpretationRefiner:
    """Occurrence lists and per-clause counters over a CNF formula.

    ``nb_true_lit[i]`` counts the literals of clause ``i`` over unprotected
    variables that the current model makes true.
    """

    def __init__(self, protected, formula=None):
        self.protected: list[bool] = list(protected)
        self.cnf: list[list[int]] = []
        self._occurrences: list[list[int]] = []
        self.nb_true_lit: list[int] = []
        self.satisfied_by_assums: list[bool] = []
        self.nb_exist_variables: list[int] = []
        self.idx_clauses_with_exist: list[int] = []
        self._selector_to_clause: dict[int, int] = {}
        for clause in formula or ():
            self.add_clause(clause)

    def _is_protected(self, v: int) -> bool:
        return v < len(self.protected) and self.protected[v]

    def _occ(self, lit: int) -> list[int]:
        return self._occurrences[lit] if lit < len(self._occurrences) else []

    def add_clause(self, clause: Sequence[int]) -> None:
        """Append a clause to the formula."""
        index = len(self.cnf)
        self.nb_true_lit.append(0)
        self.satisfied_by_assums.append(False)
        self.nb_exist_variables.append(0)
        for lit in clause:
            needed = (_var(lit) + 1) << 1
            while len(self._occurrences) < needed:
                self._occurrences.append([])
            self._occurrences[lit].append(index)
        self.cnf.append(list(clause))

    def init(self, assumptions: Sequence[int], model: Sequence) -> None:
        """Recompute the counters from ``model`` and the clauses the assumptions satisfy."""
        for i, clause in enumerate(self.cnf):
            self.nb_true_lit[i] = sum(
                1
                for lit in clause
                if not self._is_protected(_var(lit)) and _lit_true(lit, model)
            )

        self.satisfied_by_assums = [False] * len(self.cnf)
        for lit in assumptions:
            v = _var(lit)
            if v in self._selector_to_clause and not _sign(lit):
                self.satisfied_by_assums[self._selector_to_clause[v]] = True
            if lit >= len(self._occurrences):
                continue
            for idx in self._occurrences[lit]:
                self.satisfied_by_assums[idx] = True

    def transfer_pure_literal(self, assumptions: Sequence[int], model: Sequence):
        """Add pure unprotected literals to the assumptions, repeatedly.

        Returns ``(assumptions, model)`` as new lists: the extended
        assumptions and the model agreeing with every literal added.
        """
        assums = list(assumptions)
        new_model = list(model)
        nb_var = len(new_model)
        counts = [0] * (2 * nb_var)

        for i, clause in enumerate(self.cnf):
            if self.satisfied_by_assums[i]:
                continue
            for lit in clause:
                if not self._is_protected(_var(lit)):
                    counts[lit] += 1

        marked = {_var(lit) for lit in assums}
        while True:
            pure = []
            for v in range(nb_var):
                if self._is_protected(v) or v in marked:
                    continue
                pos, neg = 2 * v, 2 * v + 1
                if not counts[pos] and not counts[neg]:
                    continue
                if not counts[pos]:
                    pure.append(neg)
                if not counts[neg]:
                    pure.append(pos)

            if not pure:
                break
            for lit in pure:
                assums.append(lit)
                marked.add(_var(lit))
                for idx in self._occ(lit):
                    if self.satisfied_by_assums[idx]:
                        continue
                    self.satisfied_by_assums[idx] = True
                    for other in self.cnf[idx]:
                        if not self._is_protected(_var(other)):
                            counts[other] -= 1
                new_model[_var(lit)] = not _sign(lit)
        return assums, new_model

    def refine(self, assumptions: Sequence[int], model: Sequence) -> list:
        """Return a copy of ``model`` improved by greedy flips of free variables.

        A variable is flipped when that breaks no clause and satisfies at
        least one more. Assumption and protected variables are never flipped.
        The scan cycles until a whole round makes no flip.
        """
        new_model = list(model)
        marked = {_var(lit) for lit in assumptions}
        size = len(self.protected)
        limit = size
        v = 0
        nb_occ_vars = len(self._occurrences) >> 1
        while v != limit:
            if v == size:
                v = 0
            if v == limit:
                break

            if v not in marked and not self.protected[v] and v < nb_occ_vars:
                lit = 2 * v + (0 if new_model[v] is True else 1)
                create_unsat = any(
                    not self.satisfied_by_assums[idx] and self.nb_true_lit[idx] == 1
                    for idx in self._occurrences[lit]
                )
                if not create_unsat:
                    create_sat = any(
                        not self.satisfied_by_assums[idx] and self.nb_true_lit[idx] == 0
                        for idx in self._occurrences[lit ^ 1]
                    )
                    if create_sat:
                        for idx in self._occurrences[lit]:
                            self.nb_true_lit[idx] -= 1
                        for idx in self._occurrences[lit ^ 1]:
                            self.nb_true_lit[idx] += 1
                        new_model[v] = new_model[v] is not True
                        limit = v
            v += 1
        return new_model

    def init_idx_clauses_with_exist(self, nb_var, indexes, selectors) -> None:
        """Record the clauses holding unprotected variables and their selectors.

        ``selectors[i]`` selects the clause ``indexes[i]``.
        """
        self.idx_clauses_with_exist = list(indexes)
        self.nb_exist_variables = [0] * len(self.cnf)
        for idx in self.idx_clauses_with_exist:
            self.nb_exist_variables[idx] = sum(
                1 for lit in self.cnf[idx] if not self._is_protected(_var(lit))
            )

        self._selector_to_clause = {}
        for selector, idx in zip(selectors, indexes):
            v = _var(selector)
            if v >= nb_var:
                raise ValueError(f"selector variable {v} out of range")
            self._selector_to_clause[v] = idx

    def should_be_relaxed(self) -> list[int]:
        """Return unprotected variables that can be left to the end of the counting."""
        candidates = [
            idx
            for idx in self.idx_clauses_with_exist
            if not self.satisfied_by_assums[idx] and not self.nb_true_lit[idx]
        ]

        seen: set[int] = set()
        candidate_lits = []
        for idx in candidates:
            for lit in self.cnf[idx]:
                v = _var(lit)
                if not self._is_protected(v) and v not in seen:
                    seen.add(v)
                    candidate_lits.append(lit)

        tmp_true = list(self.nb_true_lit)
        relaxed = []
        for lit in candidate_lits:
            def ok(idx: int) -> bool:
                return tmp_true[idx] > 1 or self.nb_exist_variables[idx] == 1

            if all(ok(idx) for idx in self._occ(lit)) and all(
                ok(idx) for idx in self._occ(lit ^ 1)
            ):
                relaxed.append(_var(lit))
                for idx in self._occ(lit ^ 1):
                    tmp_true[idx] -= 1
        return relaxed