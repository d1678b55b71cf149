"""
Add-ons package: reference implementations of the external operations.

Provides:
- capability interfaces (ridge, coherence, morphometry, gaps, density)
- Hessian single-scale ridge detection
- structure-tensor coherency
- skeleton morphometry and CSV export
- maximum inscribed circles for gap detection
- HDM density quantification
"""

from dataclasses import dataclass, field

# ---- Interfaces ----
from .interfaces import (
    Coherence,
    GapRegion,
    RidgeDetector,
    CoherenceAnalyzer,
    MorphometryAnalyzer,
    GapDetector,
    DensityQuantifier,
)

# ---- Reference implementations ----
from .ridge_detect import HessianRidgeDetector, hessian_line_response
from .coherence import StructureTensorCoherence, structure_tensor
from .morphometry import (
    MorphometryRow,
    SkeletonMorphometry,
    load_properties_xml,
    write_morphometry_csv,
    box_count_dimension,
    lacunarity,
)
from .inscribed_circles import MaxInscribedCircles, draw_gap_overlay
from .hdm_quant import HighDensityMatter, write_hdm_results


@dataclass
class Operations:
    """The set of external operations used by one run."""
    ridge: RidgeDetector = field(default_factory=HessianRidgeDetector)
    coherence: CoherenceAnalyzer = field(default_factory=StructureTensorCoherence)
    morphometry: MorphometryAnalyzer = field(default_factory=SkeletonMorphometry)
    gaps: GapDetector = field(default_factory=MaxInscribedCircles)
    density: DensityQuantifier = field(default_factory=HighDensityMatter)


__all__ = [
    # interfaces
    "Coherence", "GapRegion", "RidgeDetector", "CoherenceAnalyzer", "MorphometryAnalyzer",
    "GapDetector", "DensityQuantifier", "Operations",
    # ridge detection
    "HessianRidgeDetector", "hessian_line_response",
    # coherence
    "StructureTensorCoherence", "structure_tensor",
    # morphometry
    "MorphometryRow", "SkeletonMorphometry", "load_properties_xml", "write_morphometry_csv",
    "box_count_dimension", "lacunarity",
    # gaps
    "MaxInscribedCircles", "draw_gap_overlay",
    # density
    "HighDensityMatter", "write_hdm_results",
]
