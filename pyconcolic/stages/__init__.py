"""Fuzzer stages driving the concolic pipeline."""

from pyconcolic.stages.concolic import (
    ConcolicMutationalStage,
    ConcolicTracingStage,
    Evaluator,
    StageReport,
    Tracer,
    progress_store_from_config,
)
from pyconcolic.stages.progress import (
    InMemoryProgressStore,
    JsonProgressStore,
    ProgressStore,
    StageProgress,
    clear_progress,
    should_run,
)
from pyconcolic.stages.testcase import Testcase, apply_mutation

__all__ = [
    "ConcolicMutationalStage",
    "ConcolicTracingStage",
    "Evaluator",
    "StageReport",
    "Tracer",
    "progress_store_from_config",
    "InMemoryProgressStore",
    "JsonProgressStore",
    "ProgressStore",
    "StageProgress",
    "clear_progress",
    "should_run",
    "Testcase",
    "apply_mutation",
]
