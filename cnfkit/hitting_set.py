"""Greedy minimal hitting sets over clauses of integer literals."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Sequence


class HittingSet:
    """Picks one high-scoring literal per clause, then drops redundant ones.

    ``score`` maps a variable to a number; literals are ``2 * v + sign``.
    """

    def __init__(self, nb_var: int, score: Callable[[int], float]):
        self.nb_var = nb_var
        self.score = score

    def _lit_score(self, lit: int) -> float:
        return self.score(lit >> 1)

    def compute_hitting_set(self, clauses: Sequence[Sequence[int]]) -> list[int]:
        """Return literals such that every clause contains one, none of them redundant."""
        occ: dict[int, list[int]] = defaultdict(list)
        for i, clause in enumerate(clauses):
            if not clause:
                raise ValueError(f"clause {i} is empty")
            for lit in clause:
                if not 0 <= lit >> 1 < self.nb_var:
                    raise ValueError(f"literal {lit} out of range")
                occ[lit].append(i)

        selected: set[int] = set()
        hs: list[int] = []
        for clause in clauses:
            best = clause[0]
            best_score = self._lit_score(best)
            for lit in clause[1:]:
                s = self._lit_score(lit)
                if s > best_score:
                    best, best_score = lit, s
            if best not in selected:
                hs.append(best)
                selected.add(best)

        hs.sort(key=self._lit_score, reverse=True)

        nb_selected = [sum(1 for lit in clause if lit in selected) for clause in clauses]
        for i in range(len(hs) - 1, -1, -1):
            lit = hs[i]
            if any(nb_selected[c] == 1 for c in occ[lit]):
                continue
            hs[i] = hs[-1]
            hs.pop()
            selected.discard(lit)
            for c in occ[lit]:
                nb_selected[c] -= 1
        return hs