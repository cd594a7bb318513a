"""Preprocessing pipeline driven by a '+'-separated list of step names."""

from __future__ import annotations

import sys
import time
from collections.abc import Iterable, Sequence
from typing import TextIO

from cnfkit.backbone import Backbone
from cnfkit.occurrence_elimination import OccurrenceLitElimination
from cnfkit.preproc_solver import PreprocSolver
from cnfkit.vivification import Vivification

_STEPS = {
    "backbone": ("c Run Backbone", Backbone),
    "vivification": ("c Run Vivification", Vivification),
    "occElimination": ("c Run Occurrence Elimination", OccurrenceLitElimination),
}


class Preproc:
    """Applies backbone, vivification and occurrence elimination in the order given."""

    def __init__(self, out: TextIO | None = None):
        self.out = out
        self.stats: dict[str, dict] = {}

    def _write(self, text: str) -> None:
        print(text, file=self.out if self.out is not None else sys.stdout)

    def run(self, clauses, nb_var, protected, options) -> list[list[int]]:
        """Announce the options and return the clauses untouched.

        Preprocessing is disabled in this entry point; ``apply`` performs it.
        """
        self._write(f"c Preproc options: {options}")
        return [list(clause) for clause in clauses]

    def apply(
        self,
        clauses: Iterable[Sequence[int]],
        nb_var: int,
        protected: Sequence[bool] | None,
        options: str,
    ) -> list[list[int]]:
        """Run each step named in ``options`` and return the resulting formula.

        Unknown step names are ignored. The result holds the fixed literals
        as unit clauses followed by the clauses not yet satisfied. Raises
        ``UnsatisfiableError`` when loading the clauses yields a conflict.
        """
        start = time.process_time()
        self._write(f"c Preproc options: {options}")
        solver = PreprocSolver(nb_var, [list(c) for c in clauses], protected)
        self.stats = {}

        for token in filter(None, options.split("+")):
            step = _STEPS.get(token)
            if step is None:
                continue
            message, factory = step
            self._write(message)
            runner = factory(solver)
            runner.run()
            self.stats[token] = runner.stats()

        formula = solver.collect_init_formula()
        self._write(f"c\nc Preproc time: {time.process_time() - start:f}")
        return formula