"""Tests for the logging framework."""

import io
import logging

import pytest

from pyconcolic.logging import (
    ConcolicLogger,
    LogLevel,
    PythonLoggingBridge,
    configure_logging,
    get_logger,
    set_logger,
)


def test_level_filters_output_but_keeps_history():
    stream = io.StringIO()
    logger = ConcolicLogger(level=LogLevel.VERBOSE, color=False, stream=stream)
    logger.verbose("shown", category="concolic")
    logger.trace("hidden")
    output = stream.getvalue()
    assert "[concolic] shown" in output
    assert "hidden" not in output
    assert [e.message for e in logger.get_entries()] == ["shown", "hidden"]
    assert len(logger.get_entries(level=LogLevel.TRACE)) == 1


def test_context_is_rendered():
    stream = io.StringIO()
    logger = ConcolicLogger(level=LogLevel.NORMAL, color=False, stream=stream)
    logger.info("done", mutations=3)
    assert "done mutations=3" in stream.getvalue()


def test_history_is_bounded():
    logger = ConcolicLogger(level=LogLevel.QUIET, stream=io.StringIO(), max_entries=3)
    for i in range(5):
        logger.trace(str(i))
    assert [e.message for e in logger.get_entries()] == ["2", "3", "4"]


def test_timer_and_counters():
    logger = ConcolicLogger(level=LogLevel.QUIET, stream=io.StringIO())
    with logger.timer("mutate"):
        pass
    with logger.timer("mutate"):
        pass
    assert logger.get_timing("mutate") >= logger.last_timing("mutate") >= 0.0
    assert logger.count("evals") == 1
    assert logger.count("evals", 2) == 3
    assert logger.get_count("evals") == 3
    assert logger.get_count("missing") == 0


def test_level_from_name():
    assert LogLevel.from_name("debug") is LogLevel.DEBUG
    with pytest.raises(ValueError):
        LogLevel.from_name("loud")


def test_global_logger():
    previous = get_logger()
    try:
        configured = configure_logging(level=LogLevel.DEBUG, color=False)
        assert get_logger() is configured
        assert configured.level is LogLevel.DEBUG
    finally:
        set_logger(previous)


def test_python_logging_bridge():
    stream = io.StringIO()
    target = ConcolicLogger(level=LogLevel.DEBUG, color=False, stream=stream)
    log = logging.getLogger("pyconcolic.test_bridge")
    log.propagate = False
    log.setLevel(logging.DEBUG)
    handler = PythonLoggingBridge(target)
    log.addHandler(handler)
    try:
        log.debug("from stdlib")
        log.warning("careful")
    finally:
        log.removeHandler(handler)
    assert target.get_entries(category="python")[0].message == "from stdlib"
    assert "⚠ careful" in stream.getvalue()


def test_configure_logging_closes_the_replaced_logger(tmp_path):
    previous = get_logger()
    try:
        first = configure_logging(level=LogLevel.QUIET, color=False, file_path=tmp_path / "a.log")
        handle = first._file_handle
        configure_logging(level=LogLevel.QUIET, color=False)
        assert handle.closed
        assert first._file_handle is None
    finally:
        set_logger(previous)
