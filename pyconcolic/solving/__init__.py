"""Constraint solving for concolic traces.
Provides:
- ExpressionTranslator: trace records to Z3 expressions
- SolverSession: one incremental Z3 session with a global time budget
- decode_model: Z3 models to byte replacements
- generate_mutations: the full replay pipeline
"""

from pyconcolic.solving.decoder import Mutation, decode_model, input_symbol_name, parse_input_symbol
from pyconcolic.solving.generator import GenerationStats, MutationGenerator, generate_mutations
from pyconcolic.solving.solver import SolverResult, SolverSession
from pyconcolic.solving.translator import (
    ExpressionTranslator,
    Translated,
    Unsupported,
    build_extract,
    build_insert,
)

__all__ = [
    "Mutation",
    "decode_model",
    "input_symbol_name",
    "parse_input_symbol",
    "GenerationStats",
    "MutationGenerator",
    "generate_mutations",
    "SolverResult",
    "SolverSession",
    "ExpressionTranslator",
    "Translated",
    "Unsupported",
    "build_extract",
    "build_insert",
]
