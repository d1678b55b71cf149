"""
Result records passed from the per-image worker to the aggregator.
"""

from __future__ import annotations
import threading
from dataclasses import dataclass, field
from typing import Optional

SUCCEEDED = "succeeded"
FAILED = "failed"


@dataclass(frozen=True)
class PerImageResult:
    """Everything the batch summaries need from one processed image."""
    file_prefix: str
    alignment: float
    dimension: int
    morphometric_row: str
    hdm_value: str
    gap_summary_row: Optional[str] = None


@dataclass(frozen=True)
class ImageOutcome:
    """Typed outcome of one unit of work, tagged with its submission sequence number."""
    seq: int
    file_prefix: str
    status: str
    result: Optional[PerImageResult] = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status == SUCCEEDED and self.result is not None


@dataclass
class Progress:
    """Per-batch progress counters (thread safe)."""
    total: int = 0
    completed: int = 0
    failed: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(self, outcome: ImageOutcome) -> None:
        with self._lock:
            self.completed += 1
            if not outcome.ok:
                self.failed += 1

    @property
    def fraction(self) -> float:
        return self.completed / self.total if self.total else 1.0
