"""Decode Z3 models into byte-level mutations."""

from __future__ import annotations

import re

import z3

from pyconcolic.core.exceptions import ModelDecodeError

INPUT_SYMBOL_PREFIX = "input_byte_"
_INPUT_SYMBOL = re.compile(rf"^{INPUT_SYMBOL_PREFIX}(\d+)$")

Mutation = list[tuple[int, int]]


def input_symbol_name(offset: int) -> str:
    """Name of the 8-bit symbol standing for input byte ``offset``."""
    if offset < 0:
        raise ValueError(f"input offset must be non-negative, got {offset}")
    return f"{INPUT_SYMBOL_PREFIX}{offset}"


def parse_input_symbol(name: str) -> int:
    """Inverse of input_symbol_name.
    Raises:
        ModelDecodeError: if ``name`` does not name an input byte.
    """
    match = _INPUT_SYMBOL.match(name)
    if match is None:
        raise ModelDecodeError(f"model symbol {name!r} is not an input byte")
    return int(match.group(1))


def decode_model(model: z3.ModelRef) -> Mutation:
    """Turn a satisfying assignment into ``(offset, value)`` byte replacements.
    Entries are returned in the order the model lists its declarations. Every
    declaration must be an input-byte constant bound to an 8-bit numeral.
    Raises:
        ModelDecodeError: on any other kind of model entry.
    """
    replacements: Mutation = []
    for decl in model.decls():
        name = decl.name()
        if decl.arity() != 0:
            raise ModelDecodeError(f"model entry {name!r} is a function, not an input byte")
        offset = parse_input_symbol(name)
        value = model[decl]
        if not z3.is_bv_value(value):
            raise ModelDecodeError(f"model value for {name!r} is not a bitvector numeral: {value}")
        if value.size() != 8:
            raise ModelDecodeError(f"model value for {name!r} is {value.size()} bits wide, expected 8")
        replacements.append((offset, value.as_long()))
    return replacements


__all__ = [
    "Mutation",
    "INPUT_SYMBOL_PREFIX",
    "input_symbol_name",
    "parse_input_symbol",
    "decode_model",
]
