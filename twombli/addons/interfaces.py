"""
Capability interfaces for the external analysis operations.

The pipeline only relies on these call signatures; the reference
implementations in this package can be replaced by any object that
provides the same method.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Mapping, Protocol
import numpy as np

from twombli.core.scale_params import ScaleParameters


@dataclass(frozen=True)
class Coherence:
    """Directional coherency of a mask (percentage) and its dominant orientation."""
    alignment: float
    orientation_deg: float
    title: str = ""


@dataclass(frozen=True)
class GapRegion:
    """One inscribed disk placed in the gap space."""
    x: int
    y: int
    radius: int
    area: float


class RidgeDetector(Protocol):
    """Single-scale ridge detection."""

    def detect(
        self,
        gray: np.ndarray,
        scale: ScaleParameters,
        min_branch_length: int,
        dark_lines: bool,
    ) -> np.ndarray:
        """Return a binary mask with the shape of `gray`."""
        ...


class CoherenceAnalyzer(Protocol):
    """Global directional coherency of a fused mask."""

    def analyze(self, mask: np.ndarray, title: str = "") -> Coherence:
        ...


class MorphometryAnalyzer(Protocol):
    """Network morphometry of a fused mask at one curvature window."""

    def analyze(self, mask: np.ndarray, curvature_window: int,
                min_branch_length: int, properties: Mapping[str, str], image: str = ""):
        """Return a row object exposing `header()` and `values()`."""
        ...


class GapDetector(Protocol):
    """Gap (inscribed-circle) detection in the non-fibre space."""

    def detect(self, mask: np.ndarray, min_gap_diameter: int) -> List[GapRegion]:
        ...


class DensityQuantifier(Protocol):
    """Scalar density (HDM) of a normalised heat-map."""

    def quantify(self, heatmap: np.ndarray) -> float:
        ...
