"""Concolic stages: trace a testcase, then mutate it from its trace.
The tracing stage runs the target under the symbolic runtime and stores the
resulting ConcolicTrace on the testcase. The mutational stage replays that
trace through the solver and hands every patched input to the fuzzer for
evaluation. Both stages are deterministic and run at most once per testcase.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from pyconcolic.config import ConcolicConfig, SolverConfig
from pyconcolic.core.trace import ConcolicTrace
from pyconcolic.logging import ConcolicLogger, get_logger
from pyconcolic.solving.decoder import Mutation
from pyconcolic.solving.generator import GenerationStats, MutationGenerator
from pyconcolic.stages.progress import (
    InMemoryProgressStore,
    JsonProgressStore,
    ProgressStore,
    clear_progress,
    should_run,
)
from pyconcolic.stages.testcase import Testcase, apply_mutation


class Tracer(Protocol):
    """Runs the target under the symbolic runtime."""

    def trace(self, data: bytes) -> ConcolicTrace: ...


class Evaluator(Protocol):
    """The fuzzer's evaluation loop."""

    def evaluate_input(self, data: bytes) -> Any: ...


@dataclass
class StageReport:
    """What one stage invocation did."""

    stage: str
    testcase_id: str
    ran: bool
    mutations: int = 0
    evaluations: int = 0
    results: list[Any] = field(default_factory=list)
    generation: GenerationStats | None = None
    timings: dict[str, float] = field(default_factory=dict)


def progress_store_from_config(config: ConcolicConfig) -> ProgressStore:
    """JSON-backed store when a progress file is configured, in-memory otherwise."""
    if config.stages.progress_file:
        return JsonProgressStore(config.stages.progress_file)
    return InMemoryProgressStore()


class ConcolicTracingStage:
    """Records a concolic trace of the current testcase."""

    name = "ConcolicTracingStage"

    def __init__(
        self,
        tracer: Tracer,
        progress: ProgressStore | None = None,
        logger: ConcolicLogger | None = None,
    ) -> None:
        self.tracer = tracer
        self.progress = progress if progress is not None else InMemoryProgressStore()
        self.logger = logger or get_logger()

    def should_run(self, testcase: Testcase) -> bool:
        return should_run(self.progress, testcase.testcase_id, self.name)

    def clear_progress(self, testcase: Testcase) -> None:
        clear_progress(self.progress, testcase.testcase_id, self.name)

    def perform(self, testcase: Testcase) -> StageReport:
        """Trace ``testcase`` and attach the trace, replacing any earlier one."""
        report = StageReport(stage=self.name, testcase_id=testcase.testcase_id, ran=False)
        if not self.should_run(testcase):
            self.logger.debug(
                f"{self.name} already attempted for {testcase.testcase_id}",
                category="stage",
            )
            return report
        report.ran = True
        with self.logger.timer("trace", category="stage"):
            trace = self.tracer.trace(testcase.input)
        if not isinstance(trace, ConcolicTrace):
            raise TypeError(f"tracer returned {type(trace).__name__}, expected a ConcolicTrace")
        testcase.add_metadata(trace, ConcolicTrace)
        report.timings["trace"] = self.logger.last_timing("trace")
        self.logger.verbose(
            f"traced {testcase.testcase_id}",
            category="stage",
            records=len(trace),
        )
        return report


class ConcolicMutationalStage:
    """Solves the trace attached by ConcolicTracingStage and evaluates each mutation."""

    name = "ConcolicMutationalStage"

    def __init__(
        self,
        evaluator: Evaluator,
        progress: ProgressStore | None = None,
        config: SolverConfig | None = None,
        logger: ConcolicLogger | None = None,
    ) -> None:
        self.evaluator = evaluator
        self.progress = progress if progress is not None else InMemoryProgressStore()
        self.config = config or SolverConfig()
        self.logger = logger or get_logger()
        self._last_stats: GenerationStats | None = None

    def should_run(self, testcase: Testcase) -> bool:
        return should_run(self.progress, testcase.testcase_id, self.name)

    def clear_progress(self, testcase: Testcase) -> None:
        clear_progress(self.progress, testcase.testcase_id, self.name)

    def generate(self, testcase: Testcase) -> list[Mutation] | None:
        """Mutations for ``testcase``, or None if it carries no trace."""
        trace = testcase.metadata(ConcolicTrace)
        if trace is None:
            return None
        generator = MutationGenerator(self.config, self.logger)
        mutations = generator.run(trace.iter_messages())
        self._last_stats = generator.stats
        return mutations

    def perform(self, testcase: Testcase) -> StageReport:
        """Generate mutations once and submit every patched input in order.
        Translation and decode errors propagate to the caller.
        """
        report = StageReport(stage=self.name, testcase_id=testcase.testcase_id, ran=False)
        if not self.should_run(testcase):
            return report
        report.ran = True
        self._last_stats = None
        with self.logger.timer("get input", category="stage"):
            base = bytes(testcase.input)
        with self.logger.timer("mutate", category="stage"):
            mutations = self.generate(testcase)
        report.timings["get input"] = self.logger.last_timing("get input")
        report.timings["mutate"] = self.logger.last_timing("mutate")
        report.generation = self._last_stats
        if mutations is None:
            self.logger.debug(f"{testcase.testcase_id} has no concolic trace", category="stage")
            return report
        report.mutations = len(mutations)
        for mutation in mutations:
            result = self.evaluator.evaluate_input(apply_mutation(base, mutation))
            report.results.append(result)
            report.evaluations += 1
            self.logger.count("concolic evaluations")
        self.logger.verbose(
            f"concolic stage on {testcase.testcase_id}",
            category="stage",
            mutations=report.mutations,
        )
        return report


__all__ = [
    "Tracer",
    "Evaluator",
    "StageReport",
    "ConcolicTracingStage",
    "ConcolicMutationalStage",
    "progress_store_from_config",
]
