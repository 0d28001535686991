"""Per-(testcase, stage) run-once bookkeeping.
Deterministic stages must not be retried after a crash or restart: they
would only crash again. Before a stage does any work it records that it was
attempted for the current testcase, in a store that outlives the process.
"""
from __future__ import annotations
import json
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol
ProgressKey = tuple[str, str]
@dataclass
class StageProgress:
    """Progress of one stage on one testcase."""
    attempted: bool = False
    attempts: int = 0
    last_attempt: float | None = None
    def to_dict(self) -> dict:
        return {
            "attempted": self.attempted,
            "attempts": self.attempts,
            "last_attempt": self.last_attempt,
        }
    @staticmethod
    def from_dict(data: dict) -> StageProgress:
        return StageProgress(
            attempted=bool(data.get("attempted", False)),
            attempts=int(data.get("attempts", 0)),
            last_attempt=data.get("last_attempt"),
        )
class ProgressStore(Protocol):
    """Storage for stage progress; implementations must persist put() before returning."""
    def get(self, key: ProgressKey) -> StageProgress | None: ...
    def put(self, key: ProgressKey, progress: StageProgress) -> None: ...
    def remove(self, key: ProgressKey) -> None: ...
class InMemoryProgressStore:
    """Progress store for a single process lifetime."""
    def __init__(self) -> None:
        self._entries: dict[ProgressKey, StageProgress] = {}
    def get(self, key: ProgressKey) -> StageProgress | None:
        return self._entries.get(key)
    def put(self, key: ProgressKey, progress: StageProgress) -> None:
        self._entries[key] = progress
    def remove(self, key: ProgressKey) -> None:
        self._entries.pop(key, None)
    def __len__(self) -> int:
        return len(self._entries)
class JsonProgressStore:
    """Progress store backed by a JSON file, rewritten atomically on every change."""
    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._entries: dict[ProgressKey, StageProgress] = {}
        if self.path.exists():
            self._load()
    def _load(self) -> None:
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        for entry in data.get("progress", []):
            key = (entry["testcase"], entry["stage"])
            self._entries[key] = StageProgress.from_dict(entry)
    def _save(self) -> None:
        payload = {
            "progress": [
                {"testcase": testcase, "stage": stage, **progress.to_dict()}
                for (testcase, stage), progress in sorted(self._entries.items())
            ]
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
    def get(self, key: ProgressKey) -> StageProgress | None:
        return self._entries.get(key)
    def put(self, key: ProgressKey, progress: StageProgress) -> None:
        self._entries[key] = progress
        self._save()
    def remove(self, key: ProgressKey) -> None:
        if self._entries.pop(key, None) is not None:
            self._save()
def should_run(store: ProgressStore, testcase_id: str, stage: str) -> bool:
    """Return True the first time a stage is entered for a testcase.
    The attempt is persisted before returning, so a crash inside the stage
    leaves it marked as attempted.
    """
    key = (testcase_id, stage)
    progress = store.get(key) or StageProgress()
    if progress.attempted:
        return False
    progress.attempted = True
    progress.attempts += 1
    progress.last_attempt = time.time()
    store.put(key, progress)
    return True
def clear_progress(store: ProgressStore, testcase_id: str, stage: str) -> None:
    """Forget the attempt so the stage runs again for this testcase."""
    store.remove((testcase_id, stage))
__all__ = [
    "ProgressKey",
    "StageProgress",
    "ProgressStore",
    "InMemoryProgressStore",
    "JsonProgressStore",
    "should_run",
    "clear_progress",
]
