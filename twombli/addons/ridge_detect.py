"""
Hessian-based single-scale ridge detection.

Curvilinear structure detection in the manner of Steger:
  1) Gaussian smoothing at σ
  2) Hessian from second-order derivatives, principal curvature response
  3) non-maximum suppression across the line (along the normal)
  4) hysteresis between the lower and upper thresholds (8-connected)
  5) thinning to one-pixel lines and removal of short lines
"""

from __future__ import annotations
import cv2
import numpy as np
from skimage.morphology import skeletonize

from twombli.core.scale_params import ScaleParameters


def hessian_line_response(gray: np.ndarray, sigma: float, dark_lines: bool = False) -> tuple[np.ndarray, np.ndarray]:
    """
    Principal curvature response and line-normal angle (radians).

    Bright lines give a strongly negative eigenvalue across the line,
    dark lines a strongly positive one; the response is positive in both cases.
    """
    img = gray.astype(np.float32)
    blur = cv2.GaussianBlur(img, (0, 0), sigmaX=sigma, sigmaY=sigma)
    # 3x3 Sobel second derivatives carry a factor 4 from the smoothing taps
    rxx = cv2.Sobel(blur, cv2.CV_32F, 2, 0, ksize=3) / 4.0
    ryy = cv2.Sobel(blur, cv2.CV_32F, 0, 2, ksize=3) / 4.0
    rxy = cv2.Sobel(blur, cv2.CV_32F, 1, 1, ksize=3) / 4.0

    root = np.sqrt((rxx - ryy) ** 2 + 4.0 * rxy * rxy)
    trace = rxx + ryy
    # Direction of the eigenvector of the larger eigenvalue
    theta = 0.5 * np.arctan2(2.0 * rxy, rxx - ryy)
    if dark_lines:
        resp = 0.5 * (trace + root)
        normal = theta
    else:
        resp = -0.5 * (trace - root)
        normal = theta + np.pi / 2.0
    return np.maximum(resp, 0.0).astype(np.float32), normal


def suppress_non_maxima(resp: np.ndarray, normal: np.ndarray) -> np.ndarray:
    """Keep pixels not smaller than both neighbours along the normal."""
    dx = np.rint(np.cos(normal)).astype(np.intp)
    dy = np.rint(np.sin(normal)).astype(np.intp)
    H, W = resp.shape
    yy, xx = np.indices((H, W))
    p = np.pad(resp, 1)
    fwd = p[yy + 1 + dy, xx + 1 + dx]
    bwd = p[yy + 1 - dy, xx + 1 - dx]
    return (resp > 0) & (resp >= fwd) & (resp >= bwd)


def hysteresis(values: np.ndarray, low: float, high: float) -> np.ndarray:
    """8-connected hysteresis: regions above `low` touching a pixel above `high`."""
    low_mask = (values > low).astype(np.uint8)
    _, labels = cv2.connectedComponents(low_mask, connectivity=8)
    strong = np.unique(labels[(values > high) & (low_mask > 0)])
    strong = strong[strong > 0]
    return np.isin(labels, strong)


def remove_short_lines(bw: np.ndarray, min_length: int) -> np.ndarray:
    """Drop 8-connected lines with fewer than `min_length` pixels."""
    if min_length <= 1:
        return bw
    num, labels, stats, _ = cv2.connectedComponentsWithStats(bw.astype(np.uint8), connectivity=8)
    keep = np.zeros(num, bool)
    keep[1:] = stats[1:, cv2.CC_STAT_AREA] >= min_length
    return keep[labels]


class HessianRidgeDetector:
    """Default single-scale ridge detector."""

    def detect(
        self,
        gray: np.ndarray,
        scale: ScaleParameters,
        min_branch_length: int,
        dark_lines: bool,
    ) -> np.ndarray:
        resp, normal = hessian_line_response(gray, scale.sigma, dark_lines)
        line_points = np.where(suppress_non_maxima(resp, normal), resp, 0.0)
        bw = hysteresis(line_points, scale.lower_threshold, scale.upper_threshold)
        if not bw.any():
            return bw
        return remove_short_lines(skeletonize(bw), min_branch_length)
