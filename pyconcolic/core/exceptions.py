"""
Error hierarchy for pyconcolic.
Fatal conditions raised while replaying a concolic trace:
- TranslationError: the trace cannot be turned into a Z3 formula
- ModelDecodeError: the solver produced a model we cannot map back to bytes
- TraceFormatError: a persisted trace buffer is malformed
Non-fatal solver outcomes (unknown, unsat) are not exceptions; they are
reported through SolverResult.
"""

from __future__ import annotations


class ConcolicError(Exception):
    """Base class for all pyconcolic errors."""


class TranslationError(ConcolicError):
    """A trace record could not be translated into a symbolic value."""


class UndefinedExpressionError(TranslationError):
    """A record referenced an expression id with no translation."""

    def __init__(self, ref: int, message: str | None = None) -> None:
        self.ref = ref
        super().__init__(message or f"reference to undefined expression #{ref}")


class UnsupportedExpressionError(UndefinedExpressionError):
    """A record referenced an expression whose kind cannot be translated."""

    def __init__(self, ref: int, kind: str) -> None:
        self.kind = kind
        super().__init__(ref, f"expression #{ref} has unsupported kind {kind!r}")


class DuplicateExpressionError(TranslationError):
    """An expression id was defined more than once."""

    def __init__(self, ref: int) -> None:
        self.ref = ref
        super().__init__(f"expression #{ref} is already defined")


class ExpressionSortError(TranslationError):
    """An operand had the wrong sort (boolean where a bitvector was needed, or vice versa)."""


class WidthMismatchError(TranslationError):
    """Operands of a binary bitvector operation have different widths."""

    def __init__(self, operation: str, left: int, right: int) -> None:
        self.operation = operation
        self.left = left
        self.right = right
        super().__init__(f"{operation}: operand widths differ ({left} != {right} bits)")


class AlignmentError(TranslationError):
    """A byte-level insert or extract was not byte aligned or out of range."""


class ModelDecodeError(ConcolicError):
    """A solver model entry does not describe an input byte."""


class TraceFormatError(ConcolicError):
    """A serialized concolic trace could not be decoded."""


class SessionStateError(ConcolicError):
    """A solver session call does not fit the session's current state."""


class SessionClosedError(SessionStateError):
    """A solver session was used outside of its lifetime."""


class MutationApplyError(ConcolicError):
    """A mutation touches bytes outside of the base input."""


__all__ = [
    "ConcolicError",
    "TranslationError",
    "UndefinedExpressionError",
    "UnsupportedExpressionError",
    "DuplicateExpressionError",
    "ExpressionSortError",
    "WidthMismatchError",
    "AlignmentError",
    "ModelDecodeError",
    "TraceFormatError",
    "SessionClosedError",
    "SessionStateError",
    "MutationApplyError",
]
