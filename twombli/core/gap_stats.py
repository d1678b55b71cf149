"""
Gap-size statistics.

- Population mean / standard deviation of gap areas
- Nearest-rank percentiles (P5, P50, P95)
- Per-image gap row and sorted area array export
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List

from twombli.core.errors import EmptyGapSetError


@dataclass(frozen=True)
class GapSummary:
    """Five-number summary of the gap areas of one image."""
    mean: float
    stddev: float
    p5: float
    p50: float
    p95: float

    def row(self, prefix: str) -> str:
        """Space-separated gap row: `prefix mean stddev p5 p50 p95`."""
        return " ".join([prefix] + [repr(float(v)) for v in
                                    (self.mean, self.stddev, self.p5, self.p50, self.p95)])


def percentile_nearest_rank(sorted_values: List[float], p: float) -> float:
    """Nearest-rank percentile of an ascending list (no interpolation)."""
    if not sorted_values:
        raise EmptyGapSetError("percentile of an empty gap set")
    index = math.ceil(p / 100.0 * len(sorted_values))
    # p=0 would give index 0; clamp to the first rank
    return sorted_values[max(index, 1) - 1]


def gap_summary(areas: Iterable[float]) -> GapSummary:
    """Compute the GapSummary; raises EmptyGapSetError for no areas."""
    values = sorted(float(a) for a in areas)
    n = len(values)
    if n == 0:
        raise EmptyGapSetError("no gap regions were measured")
    if values[0] < 0 or any(math.isnan(v) for v in values):
        raise ValueError("gap areas must be non-negative numbers")
    mean = sum(values) / n
    stddev = math.sqrt(sum((v - mean) ** 2 for v in values) / n)
    return GapSummary(
        mean=mean,
        stddev=stddev,
        p5=percentile_nearest_rank(values, 5),
        p50=percentile_nearest_rank(values, 50),
        p95=percentile_nearest_rank(values, 95),
    )


def parse_gap_row(line: str) -> tuple[str, GapSummary]:
    """Inverse of GapSummary.row(); the prefix may not contain spaces."""
    parts = line.split()
    if len(parts) != 6:
        raise ValueError(f"expected 6 fields in gap row, got {len(parts)}: {line!r}")
    mean, std, p5, p50, p95 = (float(x) for x in parts[1:])
    return parts[0], GapSummary(mean, std, p5, p50, p95)


def write_gap_files(
    prefix: str,
    areas: Iterable[float],
    gaps_csv: str | Path,
    area_arrays_csv: str | Path,
) -> GapSummary:
    """
    Write the single-line gap summary and the sorted area array.

    The summary is computed first so an empty set writes nothing.
    """
    values = sorted(float(a) for a in areas)
    summary = gap_summary(values)
    Path(gaps_csv).write_text(summary.row(prefix), encoding="utf-8")
    with open(area_arrays_csv, "w", encoding="utf-8") as f:
        for a in values:
            f.write(f"{a!r}\n")
    return summary
