"""
Density heat-map construction.

Includes:
- Saturated-percentile contrast stretch (any bit depth)
- Display-range lookup table
- Contrast-normalised density map for HDM quantification
"""

from __future__ import annotations
import cv2
import numpy as np

from twombli.core.io_utils import to_gray8


def saturated_range(gray: np.ndarray, saturated: float = 0.35) -> tuple[float, float]:
    """
    (lo, hi) intensities leaving `saturated` percent of the pixels,
    split between both tails, outside the range.
    """
    values = gray.ravel()
    threshold = int(values.size * saturated / 200.0)
    if values.dtype.kind == "u":
        hist = np.bincount(values.astype(np.intp))
        lo = int(np.argmax(np.cumsum(hist) > threshold))
        hi = len(hist) - 1 - int(np.argmax(np.cumsum(hist[::-1]) > threshold))
        return lo, hi
    ordered = np.sort(values)
    return float(ordered[threshold]), float(ordered[values.size - 1 - threshold])


def contrast_stretch(gray: np.ndarray, saturated: float = 0.35) -> np.ndarray:
    """
    Linear stretch so that `saturated` percent of pixels (split between
    both tails) are clipped to the ends of the output range.

    8-bit images map onto 0..255 through a lookup table; deeper integer
    images onto 0..dtype max and float images onto 0..1, keeping the dtype.
    """
    out = gray.copy()
    if out.size == 0:
        return out
    lo, hi = saturated_range(out, saturated)
    if hi <= lo:
        return out
    if out.dtype == np.uint8:
        lut = np.clip((np.arange(256, dtype=np.float64) - lo) * 255.0 / (hi - lo), 0, 255)
        return cv2.LUT(out, np.round(lut).astype(np.uint8))
    top = float(np.iinfo(out.dtype).max) if out.dtype.kind in "iu" else 1.0
    scaled = np.clip((out.astype(np.float64) - lo) * top / (hi - lo), 0.0, top)
    if out.dtype.kind in "iu":
        scaled = np.round(scaled)
    return scaled.astype(out.dtype)


def display_range_lut(lo: int, hi: int) -> np.ndarray:
    """256-entry table mapping the display range [lo, hi] onto 0..255."""
    v = (np.arange(256, dtype=np.float64) - lo) / float(hi - lo) * 256.0
    return np.clip(v, 0, 255).astype(np.uint8)


def build_density_map(
    image: np.ndarray,
    dark_lines: bool = False,
    max_display: int = 200,
    saturated: float = 0.35,
) -> np.ndarray:
    """
    Build the normalised density heat-map:
      1) 8-bit single channel copy
      2) invert when lines are bright
      3) apply display range [0, max_display] as a LUT
      4) invert again
      5) contrast stretch with the given saturation
    """
    g = to_gray8(image)
    if not dark_lines:
        g = cv2.bitwise_not(g)
    g = cv2.LUT(g, display_range_lut(0, max_display))
    g = cv2.bitwise_not(g)
    return contrast_stretch(g, saturated)
