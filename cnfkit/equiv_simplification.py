"""Equivalence-preserving clause simplification.

Two passes run over the whole formula, with every variable protected:
occurrence elimination, then vivification. The result is equivalent to
the input.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from cnfkit.occurrence_elimination import OccurrenceLitElimination
from cnfkit.preproc_solver import PreprocSolver
from cnfkit.vivification import Vivification


class EquivClauseSimplification:
    """Simplifies formulas over a fixed number of variables."""

    def __init__(self, nb_var: int):
        if nb_var < 0:
            raise ValueError("the number of variables must not be negative")
        self.nb_var = nb_var
        self.stats: dict[str, dict] = {}

    def equiv_preproc(
        self,
        clauses: Iterable[Sequence[int]],
        vivification: bool = True,
        occurrence_elimination: bool = True,
    ) -> list[list[int]]:
        """Return a formula equivalent to ``clauses``, simplified.

        The simplified clauses come first, followed by one unit clause per
        literal fixed at level 0. With both passes disabled the clauses are
        returned unchanged. Raises ``UnsatisfiableError`` when loading the
        clauses already yields a conflict.
        """
        formula = [list(clause) for clause in clauses]
        if not vivification and not occurrence_elimination:
            return formula

        solver = PreprocSolver(self.nb_var, formula)
        self.stats = {}

        if occurrence_elimination:
            eliminator = OccurrenceLitElimination(solver)
            eliminator.run()
            self.stats["occurrence_elimination"] = eliminator.stats()

        if vivification:
            vivifier = Vivification(solver)
            vivifier.run()
            self.stats["vivification"] = vivifier.stats()

        result = [list(solver.clause(i)) for i in range(solver.nb_clauses())]
        result.extend([lit] for lit in solver.trail())
        return result