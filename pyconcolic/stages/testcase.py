"""Minimal testcase model shared with the corpus.
The corpus itself lives outside this package; the stages only need an input
buffer, a stable id and a metadata map keyed by type.
"""
from __future__ import annotations
import hashlib
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, TypeVar
from pyconcolic.core.exceptions import MutationApplyError
T = TypeVar("T")
@dataclass
class Testcase:
    """A corpus entry: the input bytes plus typed metadata."""
    __test__ = False
    input: bytes
    testcase_id: str = ""
    metadata_map: dict[type, Any] = field(default_factory=dict)
    def __post_init__(self) -> None:
        self.input = bytes(self.input)
        if not self.testcase_id:
            self.testcase_id = hashlib.sha256(self.input).hexdigest()[:16]
    def add_metadata(self, value: Any, kind: type | None = None) -> None:
        """Attach metadata under ``kind`` (default: its own type), replacing any previous value."""
        self.metadata_map[kind or type(value)] = value
    def metadata(self, kind: type[T]) -> T | None:
        return self.metadata_map.get(kind)
    def has_metadata(self, kind: type) -> bool:
        return kind in self.metadata_map
    def remove_metadata(self, kind: type) -> None:
        self.metadata_map.pop(kind, None)
def apply_mutation(data: bytes, mutation: Iterable[tuple[int, int]]) -> bytes:
    """Return a patched copy of ``data``; replacements are applied in order.
    Raises:
        MutationApplyError: if an offset lies outside ``data`` or a value is not a byte.
    """
    patched = bytearray(data)
    for offset, value in mutation:
        if not 0 <= offset < len(patched):
            raise MutationApplyError(f"offset {offset} is outside a {len(patched)}-byte input")
        if not 0 <= value <= 0xFF:
            raise MutationApplyError(f"value {value} at offset {offset} is not a byte")
        patched[offset] = value
    return bytes(patched)
__all__ = ["Testcase", "apply_mutation"]
