import io

import pytest

from pyconcolic.core.trace import TraceRecorder
from pyconcolic.logging import ConcolicLogger, LogLevel


@pytest.fixture
def log_stream():
    return io.StringIO()


@pytest.fixture
def logger(log_stream):
    """A logger that keeps every entry but prints nothing below warnings."""
    return ConcolicLogger(level=LogLevel.QUIET, color=False, stream=log_stream)


@pytest.fixture
def recorder():
    return TraceRecorder()
