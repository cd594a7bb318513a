"""The residual part of a formula: clauses not yet covered by a property."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence


class ClauseCheckProperty(ABC):
    """Decides, for a component of variables, which clauses are settled."""

    @abstractmethod
    def set_component(self, component):
        """Prepare to test clauses against ``component``."""

    @abstractmethod
    def unset_component(self, component):
        """Undo what ``set_component`` prepared."""

    @abstractmethod
    def satisfy_property(self, clause):
        """Return whether ``clause`` satisfies the property."""

    @abstractmethod
    def extract_remaining_clause(self, clause):
        """Return what remains of ``clause``, or ``None`` if nothing does."""

    def format_clause(self, clause):
        """Return a one-line text form of ``clause``."""
        return " ".join(str(lit) for lit in clause)


class ResidualNotPC:
    """Clauses kept apart, partitioned into settled ones and remaining ones.

    Settled clauses sit before ``current_start`` in the index order; the
    boundary can be saved and restored with ``push_size``/``pop_size``.
    """

    def __init__(self, checker: ClauseCheckProperty):
        self.checker = checker
        self._residue: list[list[int]] = []
        self._indexes: list[int] = []
        self._stack: list[int] = []
        self.current_start = 0

    def add_clause(self, clause: Sequence[int]) -> None:
        self._residue.append(list(clause))
        self._indexes.append(len(self._residue) - 1)

    def clause(self, index: int) -> list[int]:
        return self._residue[index]

    def remaining_clause(self, index: int) -> list[int]:
        return self._residue[self._indexes[self.current_start + index]]

    def push_size(self) -> None:
        self._stack.append(self.current_start)

    def pop_size(self) -> None:
        self.current_start = self._stack.pop()

    def current_size(self) -> int:
        return len(self._residue) - self.current_start

    def set_current_size(self, size: int) -> None:
        self.current_start = size

    def top_size(self) -> int:
        if not self._stack:
            raise IndexError("no saved size")
        return self._stack[-1]

    def set_component(self, component) -> None:
        self.checker.set_component(component)

    def unset_component(self, component) -> None:
        self.checker.unset_component(component)

    def update_residual_formula(self, component) -> None:
        """Move every remaining clause that now satisfies the property to the settled part."""
        self.checker.set_component(component)
        try:
            indexes = self._indexes
            for i in range(self.current_start, len(indexes)):
                if self.checker.satisfy_property(self._residue[indexes[i]]):
                    start = self.current_start
                    indexes[i], indexes[start] = indexes[start], indexes[i]
                    self.current_start += 1
        finally:
            self.checker.unset_component(component)

    def _remaining(self):
        return (self._residue[i] for i in self._indexes[self.current_start:])

    def extract_remaining_clauses(self) -> list:
        """Return what the checker keeps of each remaining clause."""
        extracted = (self.checker.extract_remaining_clause(cl) for cl in self._remaining())
        return [cl for cl in extracted if cl is not None]

    def format_remaining_clauses(self) -> str:
        lines = [f"remaining clauses {self.current_start}/{len(self._indexes)}"]
        lines.extend(self.checker.format_clause(cl) for cl in self._remaining())
        return "\n".join(lines) + "\n"