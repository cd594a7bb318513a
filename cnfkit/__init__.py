"""CNF preprocessing passes, a small propagation solver, and related formula tools."""

__version__ = "0.1.0"