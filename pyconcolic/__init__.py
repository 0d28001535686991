"""pyconcolic: concolic mutation generation for coverage-guided fuzzing.
Replays a recorded symbolic-execution trace of one target run with the Z3
theorem prover and derives byte patches that flip branches the run did not
take.
Example:
    >>> from pyconcolic import TraceRecorder, generate_mutations
    >>> from pyconcolic.core.expressions import Equal, InputByte, Integer, PathConstraint
    >>> recorder = TraceRecorder()
    >>> x = recorder.record(InputByte(offset=0))
    >>> c = recorder.record(Integer(value=65, bits=8))
    >>> eq = recorder.record(Equal(a=x, b=c))
    >>> _ = recorder.record(PathConstraint(constraint=eq, taken=False))
    >>> generate_mutations(recorder.records)
    [[(0, 65)]]
"""

from pyconcolic.config import (
    ConcolicConfig,
    SolverConfig,
    configure_logging_from_config,
    load_config,
)
from pyconcolic.core.exceptions import (
    ConcolicError,
    ModelDecodeError,
    TraceFormatError,
    TranslationError,
    UndefinedExpressionError,
    UnsupportedExpressionError,
)
from pyconcolic.core.expressions import SymExpr, SymExprRef
from pyconcolic.core.trace import ConcolicTrace, TraceRecorder
from pyconcolic.logging import LogLevel, configure_logging, get_logger
from pyconcolic.solving import (
    ExpressionTranslator,
    Mutation,
    MutationGenerator,
    SolverSession,
    generate_mutations,
)
from pyconcolic.stages import (
    ConcolicMutationalStage,
    ConcolicTracingStage,
    Testcase,
    apply_mutation,
)

__version__ = "0.1.0"

__all__ = [
    "ConcolicConfig",
    "SolverConfig",
    "load_config",
    "configure_logging_from_config",
    "ConcolicError",
    "ModelDecodeError",
    "TraceFormatError",
    "TranslationError",
    "UndefinedExpressionError",
    "UnsupportedExpressionError",
    "SymExpr",
    "SymExprRef",
    "ConcolicTrace",
    "TraceRecorder",
    "LogLevel",
    "configure_logging",
    "get_logger",
    "ExpressionTranslator",
    "Mutation",
    "MutationGenerator",
    "SolverSession",
    "generate_mutations",
    "ConcolicMutationalStage",
    "ConcolicTracingStage",
    "Testcase",
    "apply_mutation",
]
