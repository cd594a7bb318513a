from itertools import product

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from cnfkit.backbone import Backbone
from cnfkit.preproc_solver import PreprocSolver, UnsatisfiableError

NB_VAR = 4

clause_st = st.lists(st.integers(0, 2 * NB_VAR - 1), min_size=1, max_size=3, unique=True)
formula_st = st.lists(clause_st, min_size=1, max_size=8)


def models(nb_var, clauses):
    return [
        bits
        for bits in product([False, True], repeat=nb_var)
        if all(any(bits[lit >> 1] != bool(lit & 1) for lit in c) for c in clauses)
    ]


def common_literals(nb_var, clauses):
    found = models(nb_var, clauses)
    result = set()
    for v in range(nb_var):
        if all(m[v] for m in found):
            result.add(2 * v)
        elif not any(m[v] for m in found):
            result.add(2 * v + 1)
    return result


def test_backbone_found_by_search():
    s = PreprocSolver(4, [[0, 2], [0, 3], [4, 6]])
    b = Backbone(s)
    assert set(b.run()) == {0}
    assert b.stats()["size"] == len(b.backbone)


def test_backbone_literals_are_fixed_at_level_zero():
    s = PreprocSolver(4, [[0, 2], [0, 3], [4, 6]])
    backbone = Backbone(s).run()
    assert all(s.value(lit) is True for lit in backbone)
    assert s.decision_level() == 0


def test_unsatisfiable_formula_warns_and_gives_empty_backbone():
    s = PreprocSolver(2, [[0, 2], [0, 3], [1, 2], [1, 3]])
    b = Backbone(s)
    with pytest.warns(RuntimeWarning):
        result = b.run()
    assert result == []
    assert b.stats()["size"] == 0


@settings(max_examples=80, deadline=None)
@given(formula_st)
def test_backbone_matches_literals_true_in_every_model(clauses):
    assume(models(NB_VAR, clauses))
    try:
        s = PreprocSolver(NB_VAR, clauses)
    except UnsatisfiableError:
        assume(False)
    backbone = Backbone(s).run()
    assert len(backbone) == len(set(backbone))
    assert set(backbone) == common_literals(NB_VAR, clauses)