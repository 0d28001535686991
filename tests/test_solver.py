"""Tests for the solver session."""

import time

import pytest
import z3

from pyconcolic.core.exceptions import SessionClosedError, SessionStateError
from pyconcolic.solving.solver import SolverResult, SolverSession


def test_result_constructors():
    assert str(SolverResult.unsat()) == "unsat"
    assert str(SolverResult.unknown()) == "unknown"
    assert SolverResult.unknown().model is None


def test_check_sat_and_unsat():
    with SolverSession() as session:
        x = z3.BitVec("x", 8, session.context)
        session.assert_constraint(x == 3)
        result = session.check()
        assert result.is_sat
        assert result.model.eval(x).as_long() == 3
        session.assert_constraint(x == 4)
        assert session.check().is_unsat
        assert session.get_stats()["checks"] == 2


def test_scope_is_popped_on_exception():
    with SolverSession() as session:
        x = z3.BitVec("x", 8, session.context)
        session.assert_constraint(x == 1)
        with pytest.raises(RuntimeError):
            with session.scope():
                session.assert_constraint(x == 2)
                assert session.depth == 1
                raise RuntimeError("boom")
        assert session.depth == 0
        assert session.check().is_sat
        assert len(session.assertions()) == 1


def test_session_is_unusable_after_close():
    session = SolverSession()
    with session:
        assert session.is_open
    assert not session.is_open
    with pytest.raises(SessionClosedError):
        session.check()
    with pytest.raises(SessionClosedError):
        session.context


def test_pop_without_push():
    with SolverSession() as session:
        with pytest.raises(SessionStateError) as excinfo:
            session.pop()
    assert not isinstance(excinfo.value, SessionClosedError)


def test_open_twice():
    with SolverSession() as session:
        with pytest.raises(SessionStateError) as excinfo:
            session.open()
    assert not isinstance(excinfo.value, SessionClosedError)


def test_exhausted_budget_reports_unknown():
    with SolverSession(timeout_ms=1) as session:
        time.sleep(0.01)
        x = z3.BitVec("x", 8, session.context)
        session.assert_constraint(x == 1)
        assert session.remaining_ms == 0
        assert session.check().is_unknown
        assert session.unknown_count == 1


def test_rejects_non_positive_timeout():
    with pytest.raises(ValueError):
        SolverSession(timeout_ms=0)


def test_sessions_do_not_share_state():
    with SolverSession() as first:
        x = z3.BitVec("x", 8, first.context)
        first.assert_constraint(x == 1)
    with SolverSession() as second:
        assert second.assertions() == []
        assert second.check().is_sat
