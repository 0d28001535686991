"""Hypothesis strategies for testing code built on pyconcolic."""

from pyconcolic.testing.strategies import (
    GeneratedTrace,
    InsertCase,
    aligned_insert_cases,
    byte_comparisons,
    concolic_traces,
    input_bytes,
)

__all__ = [
    "GeneratedTrace",
    "InsertCase",
    "aligned_insert_cases",
    "byte_comparisons",
    "concolic_traces",
    "input_bytes",
]
