"""
Structure-tensor coherency (dominant direction of a mask).

coherency = sqrt((Jyy - Jxx)^2 + 4 Jxy^2) / (Jxx + Jyy), where J is the
structure tensor averaged over the whole image.
"""

from __future__ import annotations
import math
import cv2
import numpy as np

from twombli.addons.interfaces import Coherence


def structure_tensor(img: np.ndarray) -> tuple[float, float, float]:
    """Image-averaged (Jxx, Jyy, Jxy) of the intensity gradients."""
    f = img.astype(np.float32)
    gx = cv2.Sobel(f, cv2.CV_32F, 1, 0, ksize=3)
    gy = cv2.Sobel(f, cv2.CV_32F, 0, 1, ksize=3)
    return float(np.mean(gx * gx)), float(np.mean(gy * gy)), float(np.mean(gx * gy))


class StructureTensorCoherence:
    """Default coherence analyzer; alignment is reported in percent."""

    def analyze(self, mask: np.ndarray, title: str = "") -> Coherence:
        jxx, jyy, jxy = structure_tensor(mask)
        trace = jxx + jyy
        if trace <= 1e-12:
            return Coherence(alignment=0.0, orientation_deg=0.0, title=title)
        coherency = math.sqrt((jyy - jxx) ** 2 + 4.0 * jxy * jxy) / trace
        orientation = 0.5 * math.degrees(math.atan2(2.0 * jxy, jyy - jxx))
        return Coherence(
            alignment=min(100.0, max(0.0, 100.0 * coherency)),
            orientation_deg=orientation,
            title=title,
        )
