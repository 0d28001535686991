"""Core module for pyconcolic.
Provides:
- Symbolic expression records (SymExpr and its variants)
- The persisted concolic trace and its recorder
- The error hierarchy
"""

from pyconcolic.core.exceptions import (
    AlignmentError,
    ConcolicError,
    DuplicateExpressionError,
    ExpressionSortError,
    ModelDecodeError,
    MutationApplyError,
    SessionClosedError,
    SessionStateError,
    TraceFormatError,
    TranslationError,
    UndefinedExpressionError,
    UnsupportedExpressionError,
    WidthMismatchError,
)
from pyconcolic.core.expressions import EXPRESSION_KINDS, SymExpr, SymExprRef
from pyconcolic.core.trace import ConcolicTrace, TraceRecord, TraceRecorder

__all__ = [
    "AlignmentError",
    "ConcolicError",
    "DuplicateExpressionError",
    "ExpressionSortError",
    "ModelDecodeError",
    "MutationApplyError",
    "SessionClosedError",
    "SessionStateError",
    "TraceFormatError",
    "TranslationError",
    "UndefinedExpressionError",
    "UnsupportedExpressionError",
    "WidthMismatchError",
    "EXPRESSION_KINDS",
    "SymExpr",
    "SymExprRef",
    "ConcolicTrace",
    "TraceRecord",
    "TraceRecorder",
]
