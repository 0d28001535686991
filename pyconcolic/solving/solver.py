"""Z3 solver session for replaying path constraints.
A SolverSession owns one Z3 context and one incremental solver for the
lifetime of a single mutation-generation call. The timeout is a budget for
the whole session rather than for each query: every check gets whatever is
left, and once the budget is spent checks report unknown without touching
the solver.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import z3

from pyconcolic.config import DEFAULT_TIMEOUT_MS
from pyconcolic.core.exceptions import SessionClosedError, SessionStateError


@dataclass
class SolverResult:
    """Result of a satisfiability check."""

    is_sat: bool
    is_unsat: bool
    is_unknown: bool
    model: z3.ModelRef | None = None

    @staticmethod
    def sat(model: z3.ModelRef) -> SolverResult:
        return SolverResult(is_sat=True, is_unsat=False, is_unknown=False, model=model)

    @staticmethod
    def unsat() -> SolverResult:
        return SolverResult(is_sat=False, is_unsat=True, is_unknown=False)

    @staticmethod
    def unknown() -> SolverResult:
        return SolverResult(is_sat=False, is_unsat=False, is_unknown=True)

    def __str__(self) -> str:
        if self.is_sat:
            return "sat"
        if self.is_unsat:
            return "unsat"
        return "unknown"


class SolverSession:
    """Incremental Z3 session scoped to one generation call.
    Example:
        with SolverSession(timeout_ms=10_000) as session:
            x = z3.BitVec("x", 8, session.context)
            with session.scope():
                session.assert_constraint(x == 65)
                result = session.check()
    """

    def __init__(self, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        """Initialize the session.
        Args:
            timeout_ms: Total solver budget for this session in milliseconds.
        """
        if timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {timeout_ms}")
        self.timeout_ms = timeout_ms
        self._context: z3.Context | None = None
        self._solver: z3.Solver | None = None
        self._started: float | None = None
        self._depth = 0
        self.checks = 0
        self.sat_count = 0
        self.unsat_count = 0
        self.unknown_count = 0

    def open(self) -> SolverSession:
        if self._solver is not None:
            raise SessionStateError("solver session is already open")
        self._context = z3.Context()
        self._solver = z3.Solver(ctx=self._context)
        self._started = time.perf_counter()
        return self

    def close(self) -> None:
        """Release the solver and its context."""
        self._solver = None
        self._context = None
        self._depth = 0

    def __enter__(self) -> SolverSession:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._solver is not None

    @property
    def context(self) -> z3.Context:
        if self._context is None:
            raise SessionClosedError("solver session is not open")
        return self._context

    def _require_solver(self) -> z3.Solver:
        if self._solver is None:
            raise SessionClosedError("solver session is not open")
        return self._solver

    @property
    def elapsed_ms(self) -> float:
        if self._started is None:
            return 0.0
        return (time.perf_counter() - self._started) * 1000.0

    @property
    def remaining_ms(self) -> float:
        return max(0.0, self.timeout_ms - self.elapsed_ms)

    @property
    def depth(self) -> int:
        """Number of scopes currently pushed."""
        return self._depth

    def push(self) -> None:
        self._require_solver().push()
        self._depth += 1

    def pop(self) -> None:
        if self._depth == 0:
            raise SessionStateError("pop without a matching push")
        self._require_solver().pop()
        self._depth -= 1

    @contextmanager
    def scope(self) -> Iterator[SolverSession]:
        """Push a constraint scope that is popped on every exit path."""
        self.push()
        try:
            yield self
        finally:
            if self._solver is not None:
                self.pop()

    def assert_constraint(self, *constraints: z3.BoolRef) -> None:
        self._require_solver().add(*constraints)

    def assertions(self) -> list[z3.BoolRef]:
        return list(self._require_solver().assertions())

    def check(self) -> SolverResult:
        """Check satisfiability of everything asserted so far.
        Returns unknown without querying Z3 once the session budget is spent.
        """
        solver = self._require_solver()
        self.checks += 1
        remaining = self.remaining_ms
        if remaining < 1:
            self.unknown_count += 1
            return SolverResult.unknown()
        solver.set("timeout", int(remaining))
        result = solver.check()
        if result == z3.sat:
            self.sat_count += 1
            return SolverResult.sat(solver.model())
        elif result == z3.unsat:
            self.unsat_count += 1
            return SolverResult.unsat()
        else:
            self.unknown_count += 1
            return SolverResult.unknown()

    def get_stats(self) -> dict[str, float]:
        """Get session statistics."""
        return {
            "checks": self.checks,
            "sat": self.sat_count,
            "unsat": self.unsat_count,
            "unknown": self.unknown_count,
            "elapsed_ms": self.elapsed_ms,
        }

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"SolverSession({state}, checks={self.checks}, timeout_ms={self.timeout_ms})"


__all__ = ["SolverResult", "SolverSession"]
