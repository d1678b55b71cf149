"""
Batch summary aggregation.

RunAggregator merges per-image results into two append-only tables
(morphometry + HDM + alignment + dimension; gap summary). Outcomes may
arrive in any completion order; rows are released strictly by
submission sequence number under a single-writer lock.
"""

from __future__ import annotations
import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional

from twombli.pipeline.models import ImageOutcome, PerImageResult

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = ","


def compose_summary_row(result: PerImageResult) -> str:
    """`morphometricRow,hdmValue,alignment,dimension`."""
    return FIELD_SEPARATOR.join([
        result.morphometric_row,
        result.hdm_value,
        repr(float(result.alignment)),
        str(int(result.dimension)),
    ])


class BatchSummary:
    """Two append-only text tables, optionally mirrored to files."""

    def __init__(self, morphometric_path: str | Path | None = None,
                 gaps_path: str | Path | None = None) -> None:
        self.morphometric_path = Path(morphometric_path) if morphometric_path else None
        self.gaps_path = Path(gaps_path) if gaps_path else None
        self.morphometric_rows: List[str] = []
        self.gap_rows: List[str] = []

    @staticmethod
    def _append(path: Optional[Path], row: str) -> None:
        if path is None:
            return
        with open(path, "a", encoding="utf-8") as f:
            f.write(row + "\n")

    def append_morphometric(self, row: str) -> None:
        self._append(self.morphometric_path, row)
        self.morphometric_rows.append(row)

    def append_gap(self, row: str) -> None:
        self._append(self.gaps_path, row)
        self.gap_rows.append(row)


class RunAggregator:
    """Single-writer, sequence-ordered merge of per-image outcomes."""

    def __init__(self, sink: BatchSummary, gap_analysis: bool = True, first_seq: int = 1) -> None:
        self.sink = sink
        self.gap_analysis = gap_analysis
        self._next = first_seq
        self._pending: Dict[int, ImageOutcome] = {}
        self._lock = threading.Lock()
        self.merged: List[str] = []

    def submit(self, outcome: ImageOutcome) -> None:
        """Accept one outcome; release every row that is now in order."""
        with self._lock:
            if outcome.seq < self._next or outcome.seq in self._pending:
                raise ValueError(f"outcome for sequence {outcome.seq} submitted twice")
            self._pending[outcome.seq] = outcome
            while self._next in self._pending:
                self._release(self._pending.pop(self._next))
                self._next += 1

    def close(self) -> List[int]:
        """
        Flush outcomes still waiting behind a sequence number that never
        arrived. Returns the missing sequence numbers.
        """
        with self._lock:
            missing: List[int] = []
            for seq in sorted(self._pending):
                missing.extend(range(self._next, seq))
                self._release(self._pending.pop(seq))
                self._next = seq + 1
            if missing:
                logger.warning("no outcome received for sequence numbers %s", missing)
            return missing

    @property
    def pending(self) -> int:
        return len(self._pending)

    def _release(self, outcome: ImageOutcome) -> None:
        if outcome.ok:
            self._merge(outcome.result)
        else:
            logger.info("%s: skipped in summaries (%s)", outcome.file_prefix, outcome.reason)

    def _merge(self, result: PerImageResult) -> None:
        self.sink.append_morphometric(compose_summary_row(result))
        if self.gap_analysis:
            if result.gap_summary_row is not None:
                self.sink.append_gap(result.gap_summary_row)
            else:
                logger.info("%s: no gap row to merge", result.file_prefix)
        self.merged.append(result.file_prefix)
