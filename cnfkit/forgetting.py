"""Variable forgetting by resolution, interleaved with vivification and occurrence elimination.

Forgetting a variable replaces every clause holding it by the non-tautological,
non-subsumed resolvents on that variable, whenever this does not increase the
number of clauses. Only protected variables have occurrence lists, so the
variables to forget must be protected.
"""

from __future__ import annotations

import time
from collections import defaultdict
from collections.abc import Sequence

from cnfkit.occurrence_elimination import OccurrenceLitElimination
from cnfkit.preproc_solver import PreprocSolver, UnsatisfiableError
from cnfkit.vivification import Vivification


class Forgetting:
    """Eliminates a set of variables from the formula held by a ``PreprocSolver``."""

    def __init__(self, solver: PreprocSolver):
        self.solver = solver
        self.occ_elim = OccurrenceLitElimination(solver)
        self.vivifier = Vivification(solver)
        self.time = 0.0
        self.nb_forget = 0
        self.nb_iteration = 0

    def _select_var_and_pop(self, outputs: list[int]) -> int:
        """Pop the variable with the fewest resolvents, or one that is pure."""
        s = self.solver
        best = 0
        score = s.product_occ_lit(2 * outputs[0])
        for i, v in enumerate(outputs[1:], start=1):
            if s.value_var(v) is not None:
                continue
            lit = 2 * v
            if not s.nb_occ_lit(lit) or not s.nb_occ_lit(lit ^ 1):
                best = i
                break
            tmp = s.product_occ_lit(lit)
            if tmp < score:
                score, best = tmp, i
        chosen = outputs[best]
        outputs[best] = outputs[-1]
        outputs.pop()
        return chosen

    def generate_all_resolution(self, v) -> list[list[int]]:
        """Return every non-tautological resolvent on ``v``.

        Literals false at level 0 are left out; a pair giving a literal true
        at level 0 yields no resolvent.
        """
        s = self.solver
        pos, neg = 2 * v, 2 * v + 1
        resolvents = []
        for ip in s.occurrence_lit(pos):
            cp = s.clause(ip)
            marked = set(cp)
            base = [lit for lit in cp if lit != pos and s.value(lit) is not False]
            for jn in s.occurrence_lit(neg):
                current = list(base)
                tautology = False
                for lit in s.clause(jn):
                    if lit == neg or s.value(lit) is False:
                        continue
                    if (lit ^ 1) in marked or s.value(lit) is True:
                        tautology = True
                        break
                    if lit not in marked:
                        current.append(lit)
                if not tautology:
                    resolvents.append(current)
        return resolvents

    @staticmethod
    def _subsumes(other: Sequence[int], other_key: int, clause: Sequence[int],
                  key: int, marked: set) -> bool:
        return (
            (key & other_key) == other_key
            and len(other) <= len(clause)
            and all(lit in marked for lit in other)
        )

    def remove_subsumed(self, clauses) -> list[list[int]]:
        """Return ``clauses`` without those subsumed by another one or by a solver clause.

        Of two equal clauses the later one is kept.
        """
        s = self.solver
        new = [list(c) for c in clauses]
        if any(not c for c in new):
            raise ValueError("cannot check subsumption of an empty clause")
        keys = [s.hash_clause(c) for c in new]

        watches: dict[int, list[int]] = defaultdict(list)
        for i, c in enumerate(new):
            watches[c[i % len(c)]].append(i)

        init_by_first: dict[int, list[list[int]]] = defaultdict(list)
        for j in range(s.nb_clauses()):
            if s.is_attached(j):
                lits = s.clause(j)
                init_by_first[lits[0]].append(list(lits))

        kept = []
        for i, c in enumerate(new):
            marked = set(c)
            subsumed = any(
                k != i and self._subsumes(new[k], keys[k], c, keys[i], marked)
                for lit in c
                for k in watches.get(lit, ())
            ) or any(
                self._subsumes(lits, s.hash_clause(lits), c, keys[i], marked)
                for lit in c
                for lits in init_by_first.get(lit, ())
            )
            if subsumed:
                watches[c[i % len(c)]].remove(i)
            else:
                kept.append(c)
        return kept

    def run(self, output_vars, lim_occ) -> list[int]:
        """Forget as many of ``output_vars`` as possible; return those forgotten.

        A variable is skipped while the product of its positive and negative
        occurrence counts exceeds ``lim_occ``. Raises ``UnsatisfiableError``
        when the empty clause is derived.
        """
        s = self.solver
        start = time.process_time()
        forgotten: list[int] = []

        s.remove_learnt()
        self.vivifier.run()

        outputs = list(dict.fromkeys(output_vars))
        applied = True
        while applied:
            self.nb_iteration += 1
            applied = False
            pending: list[int] = []

            while outputs:
                v = self._select_var_and_pop(outputs)
                if s.value_var(v) is not None:
                    continue
                lit = 2 * v
                self.occ_elim.run_lit(lit)
                self.occ_elim.run_lit(lit ^ 1)

                if s.product_occ_lit(lit) > lim_occ:
                    pending.append(v)
                    continue

                resolvents = self.generate_all_resolution(v)
                if any(not r for r in resolvents):
                    raise UnsatisfiableError("the empty clause was derived while forgetting")
                resolvents = self.remove_subsumed(resolvents)

                if len(resolvents) <= s.sum_occ_lit(lit):
                    forgotten.append(v)
                    applied = True
                    s.remove_clause_from_lit(lit)
                    for clause in resolvents:
                        s.add_clause_occ(clause)
                else:
                    pending.append(v)

            self.vivifier.run()
            outputs = pending

        s.remove_and_compact()
        self.time += time.process_time() - start
        self.nb_forget += len(forgotten)
        return forgotten

    def stats(self) -> dict:
        return {
            "forgotten": self.nb_forget,
            "iterations": self.nb_iteration,
            "time": self.time,
            "vivification": self.vivifier.stats(),
            "occurrence_elimination": self.occ_elim.stats(),
        }