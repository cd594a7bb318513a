"""Clause vivification: shorten or drop clauses by probing with propagation."""

from __future__ import annotations

import time

from cnfkit.preproc_solver import PreprocSolver


class Vivification:
    """Vivifies every attached clause of a ``PreprocSolver`` in turn."""

    def __init__(self, solver: PreprocSolver):
        self.solver = solver
        self.time = 0.0
        self.nb_removed_literals = 0
        self.nb_removed_clauses = 0

    def run(self) -> None:
        """Vivify the clauses, then compact the clause slots."""
        s = self.solver
        s.remove_learnt()
        start = time.process_time()

        for i in range(s.nb_clauses()):
            if not s.is_attached(i):
                continue
            c = s.clause(i)
            s.new_decision_level()
            s.detach_clause(i)
            s.sort_clause(i)

            keep = True
            shortened = False
            k = 0
            while k < len(c):
                val = s.value(c[k])
                if val is True:
                    keep = False
                    break
                if val is False:
                    if s.lit_is_marked(c[k]):
                        s.search_and_remove_occ_from_lit(c[k], i)
                    self.nb_removed_literals += 1
                    c[k] = c[-1]
                    c.pop()
                    shortened = True
                    continue
                s.unchecked_enqueue(c[k] ^ 1)
                if s.propagate() is not None:
                    keep = False
                    break
                k += 1

            s.cancel_until(0)
            if not keep or len(c) <= 1:
                self.nb_removed_clauses += 1
                s.remove_clause_occ(i)
            else:
                s.attach_clause(i)
                if shortened:
                    s.set_hash_key_init(i)

            if len(c) == 1 and s.value(c[0]) is None:
                s.unchecked_enqueue(c[0])

        s.remove_and_compact()
        self.time += time.process_time() - start

    def stats(self) -> dict:
        return {
            "time": self.time,
            "removed_clauses": self.nb_removed_clauses,
            "removed_literals": self.nb_removed_literals,
        }