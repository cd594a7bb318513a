import itertools

import pytest

from cnfkit.equiv_simplification import EquivClauseSimplification
from cnfkit.preproc_solver import UnsatisfiableError


def _models(nb_var, clauses):
    result = set()
    for values in itertools.product((False, True), repeat=nb_var):
        if all(any(values[lit >> 1] != bool(lit & 1) for lit in cl) for cl in clauses):
            result.add(values)
    return result


FORMULAS = [
    (3, [[0, 2], [0, 2, 4]]),
    (3, [[0, 2], [1, 4], [3, 5]]),
    (4, [[0, 2, 4], [1, 2], [3, 6], [5, 7, 0]]),
    (2, [[0], [1, 2]]),
    (3, [[0, 3], [2, 5], [4, 1]]),
]


def test_no_pass_returns_clauses_unchanged():
    clauses = [[0, 2], [1, 3]]
    result = EquivClauseSimplification(2).equiv_preproc(clauses, False, False)
    assert result == [[0, 2], [1, 3]]
    assert result is not clauses


@pytest.mark.parametrize("nb_var,clauses", FORMULAS)
@pytest.mark.parametrize("viv,occ", [(True, True), (True, False), (False, True)])
def test_models_are_preserved(nb_var, clauses, viv, occ):
    result = EquivClauseSimplification(nb_var).equiv_preproc(clauses, viv, occ)
    assert _models(nb_var, result) == _models(nb_var, clauses)


def test_vivification_drops_subsumed_clause():
    clauses = [[0, 2], [0, 2, 4]]
    simplifier = EquivClauseSimplification(3)
    result = simplifier.equiv_preproc(clauses, True, False)
    assert [sorted(c) for c in result] == [[0, 2]]
    assert simplifier.stats["vivification"]["removed_clauses"] == 1


def test_unit_clause_is_kept_as_unit():
    result = EquivClauseSimplification(1).equiv_preproc([[0]])
    assert result == [[0]]


def test_empty_formula_stays_empty():
    assert EquivClauseSimplification(2).equiv_preproc([]) == []


def test_result_never_grows():
    nb_var, clauses = FORMULAS[2]
    result = EquivClauseSimplification(nb_var).equiv_preproc(clauses)
    assert sum(len(c) for c in result) <= sum(len(c) for c in clauses)


def test_empty_clause_is_unsatisfiable():
    with pytest.raises(UnsatisfiableError):
        EquivClauseSimplification(1).equiv_preproc([[]])


def test_negative_variable_count_rejected():
    with pytest.raises(ValueError):
        EquivClauseSimplification(-1)