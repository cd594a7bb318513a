"""Occurrence elimination: drop literals from clauses when propagation shows them redundant.

For a clause ``C`` holding literal ``l``, asserting ``l`` together with the
negation of the other literals of ``C`` is probed by unit propagation. A
conflict proves that the rest of the formula entails ``C`` without ``l``, so
``l`` is removed from ``C``.
"""

from __future__ import annotations

import time

from cnfkit.preproc_solver import PreprocSolver


class OccurrenceLitElimination:
    """Removes literal occurrences from the clauses of a ``PreprocSolver``."""

    def __init__(self, solver: PreprocSolver):
        self.solver = solver
        self.time = 0.0
        self.nb_removed_literals = 0

    def run_lit(self, lit) -> None:
        """Try to remove ``lit`` from every clause in which it occurs.

        Clauses found satisfied at level 0 are deleted. The solver is left
        at decision level 0.
        """
        s = self.solver
        for index in s.occurrence_lit(lit):
            if s.value(lit) is not None:
                break
            c = s.clause(index)
            s.new_decision_level()

            satisfied = False
            for other in list(c):
                val = s.value(other)
                if val is True:
                    satisfied = True
                    break
                if val is None:
                    s.unchecked_enqueue(other if other == lit else other ^ 1)

            if satisfied:
                s.remove_clause_occ(index)
            elif s.propagate() is not None:
                self.nb_removed_literals += 1
                s.detach_clause(index)
                pos = c.index(lit)
                c[pos] = c[0]
                c[0] = lit
                if len(c) > 2:
                    s.search_and_remove_occ_from_lit(lit, index)
                    c[0] = c[-1]
                    c.pop()
                    s.attach_clause(index)
                    s.set_hash_key_init(index)
                else:
                    s.cancel_until(0)
                    if s.value(c[1]) is None:
                        s.unchecked_enqueue(c[1])
                    s.remove_clause_occ(index)

            s.cancel_until(0)

    def run(self) -> None:
        """Process every unassigned literal, rarest first, then compact the clauses."""
        s = self.solver
        start = time.process_time()
        lits = [
            lit
            for v in range(s.nb_vars())
            if s.value_var(v) is None
            for lit in (2 * v, 2 * v + 1)
        ]
        lits.sort(key=s.nb_occ_lit)

        for lit in lits:
            if s.value(lit) is not None or not s.nb_occ_lit(lit):
                continue
            self.run_lit(lit)

        s.remove_and_compact()
        self.time += time.process_time() - start

    def stats(self) -> dict:
        return {"time": self.time, "removed_literals": self.nb_removed_literals}