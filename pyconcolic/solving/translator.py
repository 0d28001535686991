"""Translation of concolic trace records into Z3 expressions.
Each record is translated by a handler registered for its SymExpr class with
the @translates decorator. The set of record kinds is closed; at import time
every kind must either have a handler, be declared unsupported, or be a
marker that carries no value.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

import z3

from pyconcolic.core import expressions as ex
from pyconcolic.core.exceptions import (
    AlignmentError,
    DuplicateExpressionError,
    ExpressionSortError,
    TranslationError,
    UndefinedExpressionError,
    UnsupportedExpressionError,
    WidthMismatchError,
)
from pyconcolic.solving.decoder import input_symbol_name

if TYPE_CHECKING:
    from pyconcolic.core.expressions import SymExpr, SymExprRef

SymbolicValue = Union[z3.BoolRef, z3.BitVecRef]
TranslationHandler = Callable[["ExpressionTranslator", "SymExpr"], SymbolicValue]

POINTER_BITS = 64

_HANDLERS: dict[type[ex.SymExpr], TranslationHandler] = {}

# Value-producing kinds the solver does not model yet. They get an
# Unsupported table entry so later references can say what went wrong.
UNSUPPORTED_KINDS: frozenset[type[ex.SymExpr]] = frozenset(
    {
        ex.Integer128,
        ex.IntegerFromBuffer,
        ex.FloatValue,
        ex.Ite,
        ex.RotateLeft,
        ex.RotateRight,
    }
)

# Records that never define a value.
MARKER_KINDS: frozenset[type[ex.SymExpr]] = frozenset(
    {
        ex.PathConstraint,
        ex.ExpressionsUnreachable,
        ex.Call,
        ex.Return,
        ex.BasicBlock,
    }
)


@dataclass(frozen=True)
class Translated:
    value: SymbolicValue


@dataclass(frozen=True)
class Unsupported:
    kind: str


TranslationOutcome = Union[Translated, Unsupported]


def translates(*kinds: type[ex.SymExpr]) -> Callable[[TranslationHandler], TranslationHandler]:
    """Register a handler for one or more record classes."""

    def decorator(handler: TranslationHandler) -> TranslationHandler:
        for kind in kinds:
            _HANDLERS[kind] = handler
        return handler

    return decorator


def build_extract(bv: z3.BitVecRef, offset: int, length: int, little_endian: bool) -> z3.BitVecRef:
    """Extract ``length`` bytes starting at byte ``offset`` (counted from the most significant end).
    With ``little_endian`` the extracted bytes are reassembled in reverse
    order, so the first extracted byte becomes the least significant one.
    Raises:
        AlignmentError: if ``bv`` is not byte sized or the range is out of bounds.
    """
    size = bv.size()
    if size % 8 != 0:
        raise AlignmentError(f"can't extract on byte boundary from a {size}-bit value")
    if offset < 0 or length <= 0 or offset + length > size // 8:
        raise AlignmentError(
            f"byte range [{offset}, {offset + length}) is outside a {size // 8}-byte value"
        )
    if not little_endian:
        return z3.Extract(size - offset * 8 - 1, size - (offset + length) * 8, bv)
    result = None
    for i in range(length):
        byte = z3.Extract(size - (offset + i) * 8 - 1, size - (offset + i + 1) * 8, bv)
        result = byte if result is None else z3.Concat(byte, result)
    return result


def build_insert(
    target: z3.BitVecRef,
    to_insert: z3.BitVecRef,
    offset: int,
    little_endian: bool,
) -> z3.BitVecRef:
    """Overwrite the bytes of ``target`` starting at byte ``offset`` with ``to_insert``.
    Raises:
        AlignmentError: if either value is not byte sized or the insert does not fit.
    """
    bits_to_insert = to_insert.size()
    if bits_to_insert % 8 != 0:
        raise AlignmentError(f"can only insert full bytes, got {bits_to_insert} bits")
    if target.size() % 8 != 0:
        raise AlignmentError(f"can't insert into a {target.size()}-bit value")
    insert_len = bits_to_insert // 8
    after_len = target.size() // 8 - offset - insert_len
    if offset < 0 or after_len < 0:
        raise AlignmentError(
            f"inserting {insert_len} bytes at offset {offset} overflows a "
            f"{target.size() // 8}-byte value"
        )
    parts = []
    if offset > 0:
        parts.append(build_extract(target, 0, offset, False))
    if little_endian:
        parts.append(build_extract(to_insert, 0, insert_len, True))
    else:
        parts.append(to_insert)
    if after_len > 0:
        parts.append(build_extract(target, offset + insert_len, after_len, False))
    if len(parts) == 1:
        return parts[0]
    return z3.Concat(*parts)


class ExpressionTranslator:
    """Builds Z3 expressions for trace records, keyed by their id.
    The table only grows; a translator lives for a single generation call.
    No constant folding happens here, simplification is left to the caller.
    """

    def __init__(self, ctx: z3.Context | None = None) -> None:
        self.ctx = ctx
        self._table: dict[SymExprRef, TranslationOutcome] = {}

    def translate(self, ref: SymExprRef, expr: SymExpr) -> TranslationOutcome | None:
        """Translate one record and store the outcome under ``ref``.
        Returns None for marker records, which define nothing.
        Raises:
            TranslationError: on undefined operands, sort or width mismatches,
                misaligned byte operations, or a redefined id.
        """
        kind = type(expr)
        if kind in MARKER_KINDS:
            return None
        if ref in self._table:
            raise DuplicateExpressionError(ref)
        if kind in UNSUPPORTED_KINDS:
            outcome: TranslationOutcome = Unsupported(expr.KIND)
        else:
            outcome = Translated(_HANDLERS[kind](self, expr))
        self._table[ref] = outcome
        return outcome

    def lookup(self, ref: SymExprRef) -> SymbolicValue:
        outcome = self._table.get(ref)
        if outcome is None:
            raise UndefinedExpressionError(ref)
        if isinstance(outcome, Unsupported):
            raise UnsupportedExpressionError(ref, outcome.kind)
        return outcome.value

    def lookup_bool(self, ref: SymExprRef) -> z3.BoolRef:
        value = self.lookup(ref)
        if not z3.is_bool(value):
            raise ExpressionSortError(f"expression #{ref} is {value.sort()}, expected Bool")
        return value

    def lookup_bitvector(self, ref: SymExprRef) -> z3.BitVecRef:
        value = self.lookup(ref)
        if not z3.is_bv(value):
            raise ExpressionSortError(f"expression #{ref} is {value.sort()}, expected a bitvector")
        return value

    def bitvector_pair(self, expr: SymExpr) -> tuple[z3.BitVecRef, z3.BitVecRef]:
        """Operands of a binary bitvector record, checked for equal width."""
        a = self.lookup_bitvector(expr.a)
        b = self.lookup_bitvector(expr.b)
        if a.size() != b.size():
            raise WidthMismatchError(expr.KIND, a.size(), b.size())
        return a, b

    def outcome(self, ref: SymExprRef) -> TranslationOutcome | None:
        return self._table.get(ref)

    def __contains__(self, ref: object) -> bool:
        return ref in self._table

    def __len__(self) -> int:
        return len(self._table)


@translates(ex.InputByte)
def _input_byte(t: ExpressionTranslator, expr: ex.InputByte) -> SymbolicValue:
    return z3.BitVec(input_symbol_name(expr.offset), 8, t.ctx)


@translates(ex.Integer)
def _integer(t: ExpressionTranslator, expr: ex.Integer) -> SymbolicValue:
    if expr.bits <= 0:
        raise TranslationError(f"integer literal needs a positive width, got {expr.bits}")
    return z3.BitVecVal(expr.value, expr.bits, t.ctx)


@translates(ex.NullPointer)
def _null_pointer(t: ExpressionTranslator, expr: ex.NullPointer) -> SymbolicValue:
    return z3.BitVecVal(0, POINTER_BITS, t.ctx)


@translates(ex.TrueExpr)
def _true(t: ExpressionTranslator, expr: ex.TrueExpr) -> SymbolicValue:
    return z3.BoolVal(True, t.ctx)


@translates(ex.FalseExpr)
def _false(t: ExpressionTranslator, expr: ex.FalseExpr) -> SymbolicValue:
    return z3.BoolVal(False, t.ctx)


@translates(ex.Bool)
def _bool(t: ExpressionTranslator, expr: ex.Bool) -> SymbolicValue:
    return z3.BoolVal(bool(expr.value), t.ctx)


@translates(ex.Neg)
def _neg(t: ExpressionTranslator, expr: ex.Neg) -> SymbolicValue:
    return -t.lookup_bitvector(expr.op)


@translates(ex.Not)
def _not(t: ExpressionTranslator, expr: ex.Not) -> SymbolicValue:
    value = t.lookup(expr.op)
    if z3.is_bv(value):
        return ~value
    if z3.is_bool(value):
        return z3.Not(value)
    raise ExpressionSortError(f"can't apply not to expression of sort {value.sort()}")


_BITVECTOR_BINOPS: dict[type[ex.SymExpr], Callable[[z3.BitVecRef, z3.BitVecRef], SymbolicValue]] = {
    ex.Add: lambda a, b: a + b,
    ex.Sub: lambda a, b: a - b,
    ex.Mul: lambda a, b: a * b,
    ex.UnsignedDiv: z3.UDiv,
    ex.SignedDiv: lambda a, b: a / b,
    ex.UnsignedRem: z3.URem,
    ex.SignedRem: z3.SRem,
    ex.ShiftLeft: lambda a, b: a << b,
    ex.LogicalShiftRight: z3.LShR,
    ex.ArithmeticShiftRight: lambda a, b: a >> b,
    ex.SignedLessThan: lambda a, b: a < b,
    ex.SignedLessEqual: lambda a, b: a <= b,
    ex.SignedGreaterThan: lambda a, b: a > b,
    ex.SignedGreaterEqual: lambda a, b: a >= b,
    ex.UnsignedLessThan: z3.ULT,
    ex.UnsignedLessEqual: z3.ULE,
    ex.UnsignedGreaterThan: z3.UGT,
    ex.UnsignedGreaterEqual: z3.UGE,
    ex.And: lambda a, b: a & b,
    ex.Or: lambda a, b: a | b,
    ex.Xor: lambda a, b: a ^ b,
}


@translates(*_BITVECTOR_BINOPS)
def _bitvector_binop(t: ExpressionTranslator, expr: ex.BinaryExpr) -> SymbolicValue:
    a, b = t.bitvector_pair(expr)
    return _BITVECTOR_BINOPS[type(expr)](a, b)


def _equality_operands(t: ExpressionTranslator, expr: ex.BinaryExpr) -> tuple[SymbolicValue, SymbolicValue]:
    a = t.lookup(expr.a)
    b = t.lookup(expr.b)
    if z3.is_bv(a) and z3.is_bv(b):
        if a.size() != b.size():
            raise WidthMismatchError(expr.KIND, a.size(), b.size())
    elif not (z3.is_bool(a) and z3.is_bool(b)):
        raise ExpressionSortError(f"{expr.KIND}: can't compare {a.sort()} with {b.sort()}")
    return a, b


@translates(ex.Equal)
def _equal(t: ExpressionTranslator, expr: ex.Equal) -> SymbolicValue:
    a, b = _equality_operands(t, expr)
    return a == b


@translates(ex.NotEqual)
def _not_equal(t: ExpressionTranslator, expr: ex.NotEqual) -> SymbolicValue:
    a, b = _equality_operands(t, expr)
    return z3.Not(a == b)


@translates(ex.BoolAnd)
def _bool_and(t: ExpressionTranslator, expr: ex.BoolAnd) -> SymbolicValue:
    return z3.And(t.lookup_bool(expr.a), t.lookup_bool(expr.b))


@translates(ex.BoolOr)
def _bool_or(t: ExpressionTranslator, expr: ex.BoolOr) -> SymbolicValue:
    return z3.Or(t.lookup_bool(expr.a), t.lookup_bool(expr.b))


@translates(ex.BoolXor)
def _bool_xor(t: ExpressionTranslator, expr: ex.BoolXor) -> SymbolicValue:
    return z3.Xor(t.lookup_bool(expr.a), t.lookup_bool(expr.b))


@translates(ex.Sext)
def _sext(t: ExpressionTranslator, expr: ex.Sext) -> SymbolicValue:
    if expr.bits < 0:
        raise TranslationError(f"can't sign-extend by {expr.bits} bits")
    return z3.SignExt(expr.bits, t.lookup_bitvector(expr.op))


@translates(ex.Zext)
def _zext(t: ExpressionTranslator, expr: ex.Zext) -> SymbolicValue:
    if expr.bits < 0:
        raise TranslationError(f"can't zero-extend by {expr.bits} bits")
    return z3.ZeroExt(expr.bits, t.lookup_bitvector(expr.op))


@translates(ex.Trunc)
def _trunc(t: ExpressionTranslator, expr: ex.Trunc) -> SymbolicValue:
    value = t.lookup_bitvector(expr.op)
    if not 0 < expr.bits <= value.size():
        raise TranslationError(f"can't truncate a {value.size()}-bit value to {expr.bits} bits")
    return z3.Extract(expr.bits - 1, 0, value)


@translates(ex.BoolToBit)
def _bool_to_bit(t: ExpressionTranslator, expr: ex.BoolToBit) -> SymbolicValue:
    return z3.If(
        t.lookup_bool(expr.op),
        z3.BitVecVal(1, 1, t.ctx),
        z3.BitVecVal(0, 1, t.ctx),
    )


@translates(ex.Concat)
def _concat(t: ExpressionTranslator, expr: ex.Concat) -> SymbolicValue:
    return z3.Concat(t.lookup_bitvector(expr.a), t.lookup_bitvector(expr.b))


@translates(ex.Extract)
def _extract(t: ExpressionTranslator, expr: ex.Extract) -> SymbolicValue:
    value = t.lookup_bitvector(expr.op)
    if not 0 <= expr.last_bit <= expr.first_bit < value.size():
        raise TranslationError(
            f"bit range [{expr.first_bit}:{expr.last_bit}] is outside a {value.size()}-bit value"
        )
    return z3.Extract(expr.first_bit, expr.last_bit, value)


@translates(ex.Insert)
def _insert(t: ExpressionTranslator, expr: ex.Insert) -> SymbolicValue:
    return build_insert(
        t.lookup_bitvector(expr.target),
        t.lookup_bitvector(expr.to_insert),
        expr.offset,
        expr.little_endian,
    )


def _uncategorized_kinds() -> list[str]:
    known = set(_HANDLERS) | UNSUPPORTED_KINDS | MARKER_KINDS
    return sorted(kind for kind, cls in ex.EXPRESSION_KINDS.items() if cls not in known)


_missing = _uncategorized_kinds()
if _missing:
    raise RuntimeError(f"no translation rule for expression kinds: {', '.join(_missing)}")


__all__ = [
    "ExpressionTranslator",
    "Translated",
    "Unsupported",
    "TranslationOutcome",
    "SymbolicValue",
    "UNSUPPORTED_KINDS",
    "MARKER_KINDS",
    "POINTER_BITS",
    "build_extract",
    "build_insert",
    "translates",
]
