import itertools

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from cnfkit.preproc_solver import PreprocSolver, UnsatisfiableError


def L(d):
    return 2 * (abs(d) - 1) + (1 if d < 0 else 0)


def models(nb_var, clauses):
    found = set()
    for bits in itertools.product([False, True], repeat=nb_var):
        if all(any(bits[lit >> 1] != bool(lit & 1) for lit in cl) for cl in clauses):
            found.add(bits)
    return found


@st.composite
def formulas(draw):
    nb_var = draw(st.integers(1, 5))
    clauses = draw(
        st.lists(
            st.lists(st.integers(0, 2 * nb_var - 1), min_size=1, max_size=3),
            max_size=8,
        )
    )
    return nb_var, clauses


def test_units_propagated_at_construction():
    s = PreprocSolver(2, [[L(1)], [L(-1), L(2)]])
    assert s.value(L(2)) is True
    assert s.value_var(0) is True
    assert s.trail() == [L(1), L(2)]
    assert s.nb_clauses() == 0


def test_unsatisfiable_construction_raises():
    with pytest.raises(UnsatisfiableError):
        PreprocSolver(1, [[L(1)], [L(-1)]])


def test_literal_out_of_range():
    with pytest.raises(ValueError):
        PreprocSolver(1, [[L(2), L(1)]])


def test_protected_length_checked():
    with pytest.raises(ValueError):
        PreprocSolver(2, [], protected=[True])


def test_occurrence_counts_only_protected():
    s = PreprocSolver(3, [[L(1), L(2)], [L(1), L(-2)], [L(-1), L(3)]],
                      protected=[True, True, False])
    assert s.occurrence_lit(L(1)) == [0, 1]
    assert s.nb_occ_lit(L(-1)) == 1
    assert s.product_occ_lit(L(1)) == 2
    assert s.sum_occ_lit(L(1)) == 3
    assert s.nb_occ_lit(L(3)) == 0
    assert s.lit_is_marked(L(1)) and not s.lit_is_marked(L(-3))


def test_remove_and_compact_renumbers():
    s = PreprocSolver(3, [[L(1), L(2)], [L(1), L(-2)], [L(-1), L(3)]])
    s.remove_clause_occ(0)
    assert s.nb_clauses() == 3
    assert not s.is_attached(0)
    assert s.hash_key_init(0) == 0
    s.remove_and_compact()
    assert s.nb_clauses() == 2
    assert s.occurrence_lit(L(1)) == [0]
    assert s.occurrence_lit(L(-1)) == [1]
    with pytest.raises(ValueError):
        s.remove_clause_occ(5 - 5) or s.remove_clause_occ(0)


def test_add_clause_reuses_free_slot():
    s = PreprocSolver(3, [[L(1), L(2)], [L(1), L(-2)], [L(-1), L(3)]])
    s.remove_clause_occ(1)
    index = s.add_clause_occ([L(2), L(3)])
    assert index == 1
    assert s.clause(1) == [L(2), L(3)]
    assert 1 in s.occurrence_lit(L(2))
    assert s.is_attached(1)
    assert s.hash_key_init(1) == s.hash_clause([L(2), L(3)])


def test_add_unit_clauses():
    s = PreprocSolver(2, [[L(1)]])
    with pytest.raises(UnsatisfiableError):
        s.add_clause_occ([L(-1)])
    assert s.add_clause_occ([L(2)]) is None
    assert s.value(L(2)) is True


def test_add_empty_clause_rejected():
    s = PreprocSolver(1, [])
    with pytest.raises(ValueError):
        s.add_clause_occ([])


def test_hash_clause_bits():
    assert PreprocSolver.hash_clause([0, 3, 64]) == 9


def test_propagate_conflict_and_cancel():
    s = PreprocSolver(2, [[L(1), L(2)], [L(1), L(-2)]])
    s.new_decision_level()
    s.unchecked_enqueue(L(-1))
    conflict = s.propagate()
    assert set(conflict) in ({L(1), L(2)}, {L(1), L(-2)})
    s.cancel_until(0)
    assert s.decision_level() == 0
    assert s.value_var(0) is None
    assert s.trail() == []


def test_enqueue_assigned_variable_rejected():
    s = PreprocSolver(1, [[L(1)]])
    with pytest.raises(ValueError):
        s.unchecked_enqueue(L(-1))


@settings(max_examples=150, deadline=None)
@given(formulas())
def test_solve_agrees_with_enumeration(data):
    nb_var, clauses = data
    expected = models(nb_var, clauses)
    try:
        s = PreprocSolver(nb_var, clauses)
    except UnsatisfiableError:
        assert not expected
        return
    result = s.solve()
    assert result == bool(expected)
    assert s.decision_level() == 0
    if result:
        assert tuple(s.model()) in expected


@settings(max_examples=100, deadline=None)
@given(formulas(), st.lists(st.integers(0, 9), max_size=2))
def test_solve_under_assumptions(data, raw_assumptions):
    nb_var, clauses = data
    assumptions = [a % (2 * nb_var) for a in raw_assumptions]
    expected = models(nb_var, clauses + [[a] for a in assumptions])
    try:
        s = PreprocSolver(nb_var, clauses)
    except UnsatisfiableError:
        assert not expected
        return
    assert s.solve(assumptions) == bool(expected)
    assert s.solve() == bool(models(nb_var, clauses))


def test_failed_assumption_learns_unit():
    s = PreprocSolver(2, [[L(1), L(2)], [L(1), L(-2)]])
    assert s.solve([L(-1)]) is False
    assert s.value(L(1)) is True
    assert s.trail() == [L(1)]
    assert s.solve() is True
    assert s.model()[0] is True


def test_remove_learnt_after_failure():
    s = PreprocSolver(3, [[L(1), L(2), L(3)], [L(1), L(2), L(-3)]])
    assert s.solve([L(-1), L(-2)]) is False
    assert s.remove_learnt() == 1
    assert s.remove_learnt() == 0
    assert s.solve() is True


def test_sort_clause_puts_protected_first():
    s = PreprocSolver(2, [[L(1), L(2)]], protected=[False, True])
    with pytest.raises(ValueError):
        s.sort_clause(0)
    s.detach_clause(0)
    s.sort_clause(0)
    assert s.clause(0) == [L(2), L(1)]
    s.attach_clause(0)
    assert s.is_attached(0)


def test_detach_twice_rejected():
    s = PreprocSolver(2, [[L(1), L(2)]])
    s.detach_clause(0)
    with pytest.raises(ValueError):
        s.detach_clause(0)


def test_collect_init_formula():
    s = PreprocSolver(3, [[L(1)], [L(-1), L(2), L(3)], [L(1), L(3)]])
    assert s.collect_init_formula() == [[L(1)], [L(2), L(3)]]
    s.unchecked_enqueue(L(2))
    assert s.collect_init_formula() == [[L(1)], [L(2)]]


def test_remove_clause_from_lit():
    s = PreprocSolver(3, [[L(1), L(2)], [L(-1), L(3)], [L(2), L(3)]])
    s.remove_clause_from_lit(L(1))
    assert not s.is_attached(0) and not s.is_attached(1)
    assert s.is_attached(2)
    s.remove_and_compact()
    assert s.nb_clauses() == 1
    assert s.clause(0) == [L(2), L(3)]


def test_search_and_remove_missing_occurrence():
    s = PreprocSolver(2, [[L(1), L(2)]])
    with pytest.raises(ValueError):
        s.search_and_remove_occ_from_lit(L(-1), 0)
    s.search_and_remove_occ_from_lit(L(1), 0)
    assert s.occurrence_lit(L(1)) == []


def test_format_occurrences():
    s = PreprocSolver(2, [[L(1), L(-2)]])
    lines = s.format_occurrences().splitlines()
    assert lines[0] == "1 => 0"
    assert lines[3] == "-2 => 0"
    assert len(lines) == 2 * s.nb_vars()