"""
Per-scale ridge detector parameters.

Derives the Gaussian smoothing width and the hysteresis thresholds for
one line width. The thresholds are the magnitude of the second-derivative
response of an ideal bar profile of the given contrast, truncated with
floor so that results are bit-reproducible.
"""

from __future__ import annotations
import math
from dataclasses import dataclass

# Byte-space contrast limits handed to the detector at every scale
HIGH_CONTRAST = 120.0
LOW_CONTRAST = 0.0


@dataclass(frozen=True)
class ScaleParameters:
    """Detector parameters for one swept line width."""
    line_width: int
    sigma: float
    lower_threshold: float
    upper_threshold: float


def sigma_from_line_width(line_width: int) -> float:
    """Gaussian σ for a target line width (px)."""
    return line_width / (2 * math.sqrt(3.0)) + 0.5


def threshold_from_limit(line_width: int, sigma: float, limit: float) -> float:
    """Second-derivative threshold for a bar of contrast `limit`."""
    h = line_width / 2.0
    response = -2 * limit * h / (math.sqrt(2 * math.pi) * sigma * sigma * sigma) \
        * math.exp(-(h * h) / (2 * sigma * sigma))
    return 0.17 * math.floor(abs(response))


def contrast_limits(dark_lines: bool) -> tuple[float, float]:
    """(lower, upper) contrast limits for bright or dark lines."""
    if dark_lines:
        return 255.0 - HIGH_CONTRAST, 255.0 - LOW_CONTRAST
    return LOW_CONTRAST, HIGH_CONTRAST


def scale_parameters(line_width: int, dark_lines: bool = False) -> ScaleParameters:
    """Derive ScaleParameters for one line width."""
    sigma = sigma_from_line_width(line_width)
    lo_limit, hi_limit = contrast_limits(dark_lines)
    return ScaleParameters(
        line_width=int(line_width),
        sigma=sigma,
        lower_threshold=threshold_from_limit(line_width, sigma, lo_limit),
        upper_threshold=threshold_from_limit(line_width, sigma, hi_limit),
    )
