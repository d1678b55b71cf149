"""
High-density-matter (HDM) quantification of a density heat-map.

The heat-map renders dense matrix bright on a black background, so
HDM = 1 - black space = mean(heatmap) / 255.
"""

from __future__ import annotations
import csv
from pathlib import Path
import numpy as np


class HighDensityMatter:
    """Default density quantifier."""

    def quantify(self, heatmap: np.ndarray) -> float:
        if heatmap.size == 0:
            raise ValueError("empty heat-map")
        return float(heatmap.astype(np.float64).mean() / 255.0)


def write_hdm_results(path: str | Path, label: str, heatmap: np.ndarray, hdm: float) -> None:
    """Write the HDM result table; the HDM value is the last field."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["Label", "Area", "Mean", "HDM"])
        writer.writerow([label, int(heatmap.size), float(heatmap.mean()), hdm])
