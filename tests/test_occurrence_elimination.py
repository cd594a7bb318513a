from itertools import product

from hypothesis import assume, given, settings
from hypothesis import strategies as st

from cnfkit.occurrence_elimination import OccurrenceLitElimination
from cnfkit.preproc_solver import PreprocSolver, UnsatisfiableError

NB_VAR = 4

clause_st = st.lists(st.integers(0, 2 * NB_VAR - 1), min_size=1, max_size=3, unique=True)
formula_st = st.lists(clause_st, min_size=1, max_size=8)


def models(nb_var, clauses):
    return {
        bits
        for bits in product([False, True], repeat=nb_var)
        if all(any(bits[lit >> 1] != bool(lit & 1) for lit in c) for c in clauses)
    }


def normalize(formula):
    return sorted(sorted(c) for c in formula)


def test_worked_example_removes_one_literal():
    s = PreprocSolver(3, [[0, 2, 4], [3, 4]])
    elim = OccurrenceLitElimination(s)
    elim.run()
    assert normalize(s.collect_init_formula()) == [[0, 4], [3, 4]]
    assert elim.stats()["removed_literals"] == 1


def test_worked_example_keeps_models():
    original = [[0, 2, 4], [3, 4]]
    s = PreprocSolver(3, original)
    OccurrenceLitElimination(s).run()
    assert models(3, s.collect_init_formula()) == models(3, original)


def test_run_lit_on_unprotected_variable_changes_nothing():
    original = [[0, 2, 4], [3, 4]]
    s = PreprocSolver(3, original, protected=[False, True, True])
    elim = OccurrenceLitElimination(s)
    elim.run_lit(0)
    assert normalize(s.collect_init_formula()) == normalize(original)
    assert elim.nb_removed_literals == 0


def test_run_lit_leaves_level_zero():
    s = PreprocSolver(3, [[0, 2, 4], [3, 4]])
    OccurrenceLitElimination(s).run_lit(2)
    assert s.decision_level() == 0


@settings(max_examples=80, deadline=None)
@given(formula_st)
def test_elimination_preserves_models(clauses):
    assume(models(NB_VAR, clauses))
    try:
        s = PreprocSolver(NB_VAR, clauses)
    except UnsatisfiableError:
        assume(False)
    elim = OccurrenceLitElimination(s)
    elim.run()
    result = s.collect_init_formula()
    assert models(NB_VAR, result) == models(NB_VAR, clauses)
    assert sum(len(c) for c in result) <= sum(len(set(c)) for c in clauses) + NB_VAR