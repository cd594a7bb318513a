# cnfkit

Tools for working with propositional formulas in conjunctive normal form.

Literals use an integer encoding: a variable `v` (counted from 0) has the
positive literal `2*v` and the negative literal `2*v + 1`. A clause is a
sequence of literals and a formula is a sequence of clauses. Values of
literals and variables are `True`, `False` or `None` (unassigned).

## What is inside

- `cnfkit.preproc_solver.PreprocSolver`: a clause database with
  watched-literal unit propagation, a small complete search (`solve`), and
  occurrence lists for protected variables. All preprocessing passes work on
  it. Conflicts found while loading or adding clauses raise
  `cnfkit.preproc_solver.UnsatisfiableError`.
- `cnfkit.vivification.Vivification`: shortens or removes clauses by
  propagating the negations of their literals.
- `cnfkit.occurrence_elimination.OccurrenceLitElimination`: removes a
  literal from a clause wherever propagation shows the occurrence is
  redundant (`run_lit` for one literal, `run` for all of them).
- `cnfkit.backbone.Backbone`: finds the literals that hold in every model
  and fixes them in the solver. On an unsatisfiable formula it issues a
  `RuntimeWarning` and returns an empty list.
- `cnfkit.forgetting.Forgetting`: eliminates protected variables by
  resolution whenever that does not increase the number of clauses;
  `run(output_vars, lim_occ)` returns the variables forgotten.
- `cnfkit.equiv_simplification.EquivClauseSimplification`: occurrence
  elimination and vivification as one equivalence-preserving pass over a
  list of clauses (`equiv_preproc`).
- `cnfkit.preproc.Preproc`: `apply` runs a `+`-separated chain of the steps
  `backbone`, `vivification` and `occElimination` and returns the fixed
  literals as unit clauses followed by the clauses not yet satisfied.
  Unknown step names are ignored. `run` only prints the options and returns
  the clauses unchanged.
- `cnfkit.renamable_horn.RenamableHorn`: a local search for a variable
  renaming that leaves as few non-Horn clauses as possible; the best
  renaming found is kept in `best_renaming`.
- `cnfkit.hitting_set.HittingSet`: picks the best-scoring literal of each
  clause, then drops the literals no clause needs.
- `cnfkit.interpretation_refiner.InterpretationRefiner`: adds pure
  unprotected literals to a set of assumptions, flips unprotected variables
  of a model so they satisfy more clauses, and lists variables that can be
  relaxed.
- `cnfkit.residual.ResidualNotPC`: keeps the clauses that still fail a
  property decided by a `ClauseCheckProperty`, with a stack of checkpoints.
- `cnfkit.hashing.hash_cnf`: a 32-bit MurmurHash2-style hash of a
  bytes-like object.
- `cnfkit.options`: typed command-line options (`IntOption`,
  `Int64Option`, `DoubleOption`, `StringOption`, `BoolOption`) written as
  `-name=value` or `-flag` / `-no-flag`, collected in an `OptionRegistry`.
  Values out of range and, in strict mode, unknown flags raise
  `OptionError`; `--help` and `--help-verb` print the usage and exit.

## Example

```python
from cnfkit.preproc import Preproc

clauses = [[0, 2], [1, 2]]   # (x0 or x1) and (not x0 or x1)
protected = [True, True]
result = Preproc().apply(clauses, 2, protected, "backbone+vivification")
assert result == [[2]]       # only x1 remains, as a unit clause
```

## What it does not do

The package is a library only. It installs no command, reads no DIMACS
files, and does not count models or compile formulas; the passes here
simplify a formula handed to them as Python lists.

## Running the tests

```
pip install -e ".[test]"
pytest
```