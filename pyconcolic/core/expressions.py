"""Symbolic expression records emitted by the instrumented target runtime.
Every record in a concolic trace is a pair ``(SymExprRef, SymExpr)``. Operands
are referenced by the id of an earlier record, so a trace is a DAG written in
topological order. The set of record kinds is closed: every concrete class
below registers itself in ``EXPRESSION_KINDS`` under its ``KIND`` name.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import ClassVar, NewType

SymExprRef = NewType("SymExprRef", int)

EXPRESSION_KINDS: dict[str, type[SymExpr]] = {}

_REFERENCE_FIELDS = ("op", "a", "b", "cond", "target", "to_insert", "constraint")


@dataclass(frozen=True)
class SymExpr:
    """Base class of all trace records."""

    KIND: ClassVar[str] = ""

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        kind = cls.__dict__.get("KIND")
        if kind:
            if kind in EXPRESSION_KINDS:
                raise TypeError(f"duplicate expression kind {kind!r}")
            EXPRESSION_KINDS[kind] = cls

    def operands(self) -> list[SymExprRef]:
        """Ids of the expressions this record refers to, in field order."""
        refs: list[SymExprRef] = []
        for f in fields(self):
            if f.name in _REFERENCE_FIELDS:
                refs.append(getattr(self, f.name))
            elif f.name == "exprs":
                refs.extend(getattr(self, f.name))
        return refs

    def to_dict(self) -> dict:
        """Field values keyed by name, without the kind tag."""
        return {
            f.name: list(getattr(self, f.name))
            if isinstance(getattr(self, f.name), tuple)
            else getattr(self, f.name)
            for f in fields(self)
        }


@dataclass(frozen=True)
class UnaryExpr(SymExpr):
    op: SymExprRef


@dataclass(frozen=True)
class BinaryExpr(SymExpr):
    a: SymExprRef
    b: SymExprRef


@dataclass(frozen=True)
class CastExpr(SymExpr):
    op: SymExprRef
    bits: int


@dataclass(frozen=True)
class InputByte(SymExpr):
    """One byte of the fuzzer input, ``value`` is its concrete value on the traced run."""

    KIND = "InputByte"
    offset: int
    value: int = 0


@dataclass(frozen=True)
class Integer(SymExpr):
    KIND = "Integer"
    value: int
    bits: int


@dataclass(frozen=True)
class Integer128(SymExpr):
    KIND = "Integer128"
    high: int
    low: int


@dataclass(frozen=True)
class IntegerFromBuffer(SymExpr):
    KIND = "IntegerFromBuffer"


@dataclass(frozen=True)
class NullPointer(SymExpr):
    KIND = "NullPointer"


@dataclass(frozen=True)
class TrueExpr(SymExpr):
    KIND = "True"


@dataclass(frozen=True)
class FalseExpr(SymExpr):
    KIND = "False"


@dataclass(frozen=True)
class Bool(SymExpr):
    KIND = "Bool"
    value: bool


@dataclass(frozen=True)
class FloatValue(SymExpr):
    KIND = "Float"
    value: float
    is_double: bool = True


class Neg(UnaryExpr):
    KIND = "Neg"


class Not(UnaryExpr):
    """Bitwise not on bitvectors, logical not on booleans."""

    KIND = "Not"


class Add(BinaryExpr):
    KIND = "Add"


class Sub(BinaryExpr):
    KIND = "Sub"


class Mul(BinaryExpr):
    KIND = "Mul"


class UnsignedDiv(BinaryExpr):
    KIND = "UnsignedDiv"


class SignedDiv(BinaryExpr):
    KIND = "SignedDiv"


class UnsignedRem(BinaryExpr):
    KIND = "UnsignedRem"


class SignedRem(BinaryExpr):
    KIND = "SignedRem"


class ShiftLeft(BinaryExpr):
    KIND = "ShiftLeft"


class LogicalShiftRight(BinaryExpr):
    KIND = "LogicalShiftRight"


class ArithmeticShiftRight(BinaryExpr):
    KIND = "ArithmeticShiftRight"


class RotateLeft(BinaryExpr):
    KIND = "RotateLeft"


class RotateRight(BinaryExpr):
    KIND = "RotateRight"


class SignedLessThan(BinaryExpr):
    KIND = "SignedLessThan"


class SignedLessEqual(BinaryExpr):
    KIND = "SignedLessEqual"


class SignedGreaterThan(BinaryExpr):
    KIND = "SignedGreaterThan"


class SignedGreaterEqual(BinaryExpr):
    KIND = "SignedGreaterEqual"


class UnsignedLessThan(BinaryExpr):
    KIND = "UnsignedLessThan"


class UnsignedLessEqual(BinaryExpr):
    KIND = "UnsignedLessEqual"


class UnsignedGreaterThan(BinaryExpr):
    KIND = "UnsignedGreaterThan"


class UnsignedGreaterEqual(BinaryExpr):
    KIND = "UnsignedGreaterEqual"


class Equal(BinaryExpr):
    KIND = "Equal"


class NotEqual(BinaryExpr):
    KIND = "NotEqual"


class BoolAnd(BinaryExpr):
    KIND = "BoolAnd"


class BoolOr(BinaryExpr):
    KIND = "BoolOr"


class BoolXor(BinaryExpr):
    KIND = "BoolXor"


class And(BinaryExpr):
    KIND = "And"


class Or(BinaryExpr):
    KIND = "Or"


class Xor(BinaryExpr):
    KIND = "Xor"


class Concat(BinaryExpr):
    KIND = "Concat"


class Sext(CastExpr):
    """Sign-extend ``op`` by ``bits`` additional bits."""

    KIND = "Sext"


class Zext(CastExpr):
    """Zero-extend ``op`` by ``bits`` additional bits."""

    KIND = "Zext"


class Trunc(CastExpr):
    """Keep the low ``bits`` bits of ``op``."""

    KIND = "Trunc"


class BoolToBit(UnaryExpr):
    KIND = "BoolToBit"


@dataclass(frozen=True)
class Ite(SymExpr):
    KIND = "Ite"
    cond: SymExprRef
    a: SymExprRef
    b: SymExprRef


@dataclass(frozen=True)
class Extract(SymExpr):
    """Bit range ``[first_bit .. last_bit]`` of ``op``, both inclusive, ``first_bit`` high."""

    KIND = "Extract"
    op: SymExprRef
    first_bit: int
    last_bit: int


@dataclass(frozen=True)
class Insert(SymExpr):
    """Overwrite bytes of ``target`` starting at byte ``offset`` with ``to_insert``."""

    KIND = "Insert"
    target: SymExprRef
    to_insert: SymExprRef
    offset: int
    little_endian: bool


@dataclass(frozen=True)
class PathConstraint(SymExpr):
    """A branch on ``constraint``; ``taken`` tells whether it held on the traced run."""

    KIND = "PathConstraint"
    constraint: SymExprRef
    taken: bool
    site_id: int = 0


@dataclass(frozen=True)
class ExpressionsUnreachable(SymExpr):
    KIND = "ExpressionsUnreachable"
    exprs: tuple[SymExprRef, ...] = ()


@dataclass(frozen=True)
class Call(SymExpr):
    KIND = "Call"
    location: int


@dataclass(frozen=True)
class Return(SymExpr):
    KIND = "Return"
    location: int


@dataclass(frozen=True)
class BasicBlock(SymExpr):
    KIND = "BasicBlock"
    location: int


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


_FIELD_CHECKS = {
    "int": _is_int,
    "SymExprRef": _is_int,
    "bool": lambda value: isinstance(value, bool),
    "float": lambda value: _is_int(value) or isinstance(value, float),
    "tuple[SymExprRef, ...]": lambda value: all(_is_int(item) for item in value),
}


def expression_from_dict(kind: str, data: dict) -> SymExpr:
    """Build a record from its kind name and field values.
    Raises:
        KeyError: unknown kind.
        TypeError: missing, unexpected or mistyped fields.
    """
    cls = EXPRESSION_KINDS[kind]
    if cls is ExpressionsUnreachable and "exprs" in data:
        if not isinstance(data["exprs"], list):
            raise TypeError(f"exprs must be a list, got {data['exprs']!r}")
        data = {**data, "exprs": tuple(data["exprs"])}
    for f in fields(cls):
        if f.name in data and not _FIELD_CHECKS[f.type](data[f.name]):
            raise TypeError(f"{f.name} must be {f.type}, got {data[f.name]!r}")
    return cls(**data)


__all__ = [
    "SymExprRef",
    "SymExpr",
    "EXPRESSION_KINDS",
    "expression_from_dict",
    "InputByte",
    "Integer",
    "Integer128",
    "IntegerFromBuffer",
    "NullPointer",
    "TrueExpr",
    "FalseExpr",
    "Bool",
    "FloatValue",
    "Neg",
    "Not",
    "Add",
    "Sub",
    "Mul",
    "UnsignedDiv",
    "SignedDiv",
    "UnsignedRem",
    "SignedRem",
    "ShiftLeft",
    "LogicalShiftRight",
    "ArithmeticShiftRight",
    "RotateLeft",
    "RotateRight",
    "SignedLessThan",
    "SignedLessEqual",
    "SignedGreaterThan",
    "SignedGreaterEqual",
    "UnsignedLessThan",
    "UnsignedLessEqual",
    "UnsignedGreaterThan",
    "UnsignedGreaterEqual",
    "Equal",
    "NotEqual",
    "BoolAnd",
    "BoolOr",
    "BoolXor",
    "And",
    "Or",
    "Xor",
    "Concat",
    "Sext",
    "Zext",
    "Trunc",
    "BoolToBit",
    "Ite",
    "Extract",
    "Insert",
    "PathConstraint",
    "ExpressionsUnreachable",
    "Call",
    "Return",
    "BasicBlock",
]
