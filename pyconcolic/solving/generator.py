"""Mutation generation from a recorded concolic trace.
Replays the trace once, in order. Every path constraint is first challenged
(can the other side of the branch be reached given everything asserted so
far?) and then asserted as observed, so later branches are checked against
the real path prefix. Each satisfiable challenge yields one mutation.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass

import z3

from pyconcolic.config import SolverConfig
from pyconcolic.core.expressions import PathConstraint
from pyconcolic.core.trace import TraceRecord
from pyconcolic.logging import ConcolicLogger, get_logger
from pyconcolic.solving.decoder import Mutation, decode_model
from pyconcolic.solving.solver import SolverSession
from pyconcolic.solving.translator import ExpressionTranslator


@dataclass
class GenerationStats:
    """Counters for one generation call."""

    records: int = 0
    path_constraints: int = 0
    constant_constraints: int = 0
    flips_sat: int = 0
    flips_unsat: int = 0
    flips_unknown: int = 0
    stopped_early: bool = False
    elapsed_seconds: float = 0.0

    def to_dict(self) -> dict[str, int | float | bool]:
        return {
            "records": self.records,
            "path_constraints": self.path_constraints,
            "constant_constraints": self.constant_constraints,
            "flips_sat": self.flips_sat,
            "flips_unsat": self.flips_unsat,
            "flips_unknown": self.flips_unknown,
            "stopped_early": self.stopped_early,
            "elapsed_seconds": self.elapsed_seconds,
        }


class MutationGenerator:
    """Turns one concolic trace into a list of byte-level mutations.
    A generator is single use: run() creates its own translator and solver
    session and drops both before returning.
    """

    def __init__(
        self,
        config: SolverConfig | None = None,
        logger: ConcolicLogger | None = None,
    ) -> None:
        self.config = config or SolverConfig()
        self.logger = logger or get_logger()
        self.stats = GenerationStats()

    def run(self, records: Iterable[TraceRecord]) -> list[Mutation]:
        """Generate mutations for ``records``.
        Raises:
            TranslationError: if the trace cannot be translated.
            ModelDecodeError: if a model cannot be mapped back to input bytes.
        """
        self.stats = GenerationStats()
        start = time.perf_counter()
        try:
            with SolverSession(self.config.timeout_ms) as session:
                translator = ExpressionTranslator(session.context)
                return self._replay(records, translator, session)
        finally:
            self.stats.elapsed_seconds = time.perf_counter() - start
            self.logger.verbose(
                "concolic generation finished",
                category="concolic",
                **self.stats.to_dict(),
            )

    def _replay(
        self,
        records: Iterable[TraceRecord],
        translator: ExpressionTranslator,
        session: SolverSession,
    ) -> list[Mutation]:
        mutations: list[Mutation] = []
        limit = self.config.max_mutations
        for ref, expr in records:
            self.stats.records += 1
            if not isinstance(expr, PathConstraint):
                translator.translate(ref, expr)
                continue
            self.stats.path_constraints += 1
            if limit is not None and len(mutations) >= limit:
                break
            condition = translator.lookup_bool(expr.constraint)
            effective = z3.simplify(condition if expr.taken else z3.Not(condition))
            if z3.is_true(effective) or z3.is_false(effective):
                self.stats.constant_constraints += 1
                continue
            negated = z3.simplify(z3.Not(effective))
            with session.scope():
                session.assert_constraint(negated)
                result = session.check()
                if result.is_sat:
                    mutation = decode_model(result.model)
                    mutations.append(mutation)
                    self.stats.flips_sat += 1
                elif result.is_unknown:
                    self.stats.flips_unknown += 1
                else:
                    self.stats.flips_unsat += 1
            self.logger.trace(
                f"path constraint #{ref} ({'taken' if expr.taken else 'not taken'}): flip {result}",
                category="concolic",
            )
            if result.is_unsat and not session.check().is_sat:
                self.logger.debug(
                    f"path prefix infeasible at #{ref}, stopping",
                    category="concolic",
                )
                self.stats.stopped_early = True
                return mutations
            session.assert_constraint(effective)
        return mutations


def generate_mutations(
    records: Iterable[TraceRecord],
    config: SolverConfig | None = None,
    logger: ConcolicLogger | None = None,
) -> list[Mutation]:
    """Generate byte-level mutations from a concolic trace.
    Args:
        records: ``(SymExprRef, SymExpr)`` pairs in trace order.
        config: Solver settings (timeout budget, mutation cap).
        logger: Logger to report to (default: the global logger).
    Returns:
        At most one mutation per path constraint, in trace order. Each
        mutation is a list of ``(offset, value)`` byte replacements.
    """
    return MutationGenerator(config, logger).run(records)


__all__ = ["GenerationStats", "MutationGenerator", "generate_mutations"]
