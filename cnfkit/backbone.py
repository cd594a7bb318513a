"""Backbone computation: the literals true in every model of the formula."""

from __future__ import annotations

import time
import warnings

from cnfkit.preproc_solver import PreprocSolver


class Backbone:
    """Finds the backbone by testing each candidate literal's negation."""

    def __init__(self, solver: PreprocSolver):
        self.solver = solver
        self.time = 0.0
        self.backbone: list[int] = []

    def run(self) -> list[int]:
        """Compute the backbone; its literals are fixed at level 0 of the solver.

        Returns the backbone literals. On an unsatisfiable formula a
        ``RuntimeWarning`` is issued and an empty list is returned.
        """
        s = self.solver
        start = time.process_time()
        if not s.solve():
            warnings.warn("the problem is unsatisfiable", RuntimeWarning, stacklevel=2)
            return []

        current: list = list(s.model())
        for v in range(s.nb_vars()):
            if s.value_var(v) is not None or current[v] is None:
                continue
            lit = 2 * v + (0 if current[v] else 1)
            if not s.solve([lit ^ 1]):
                if s.value(lit) is None:
                    s.unchecked_enqueue(lit)
            else:
                model = s.model()
                for i, val in enumerate(model[v:], start=v):
                    if current[i] != val:
                        current[i] = None
            s.cancel_until(0)

        self.backbone = s.trail()
        self.time += time.process_time() - start
        return list(self.backbone)

    def stats(self) -> dict:
        return {"time": self.time, "size": len(self.backbone)}