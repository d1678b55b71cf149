"""
Maximum inscribed circles in the gap space of a fibre mask.

Greedy placement of the largest non-overlapping disks, round by round:
each round recomputes the Euclidean distance map of the remaining free
space, visits its local maxima from largest to smallest and accepts every
disk that does not touch an already placed one.
"""

from __future__ import annotations
import math
from typing import List
import cv2
import numpy as np

from twombli.addons.interfaces import GapRegion


def nms2d(resp: np.ndarray, radius_px: int) -> np.ndarray:
    """2D non-maximum suppression via dilation comparison."""
    radius_px = max(1, int(radius_px))
    k = 2 * radius_px + 1
    dil = cv2.dilate(resp, cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (k, k)))
    return resp >= dil


def disk_template(r: int) -> np.ndarray:
    yy, xx = np.ogrid[-r:r + 1, -r:r + 1]
    return (xx * xx + yy * yy) <= r * r


def gap_space(mask: np.ndarray) -> np.ndarray:
    """Non-fibre pixels (uint8 1/0) with the one-pixel image frame excluded."""
    free = (np.asarray(mask) == 0).astype(np.uint8)
    free[0, :] = 0
    free[-1, :] = 0
    free[:, 0] = 0
    free[:, -1] = 0
    return free


class MaxInscribedCircles:
    """Default gap detector."""

    def __init__(self, max_rounds: int = 50) -> None:
        self.max_rounds = max_rounds

    def detect(self, mask: np.ndarray, min_gap_diameter: int) -> List[GapRegion]:
        free = gap_space(mask)
        H, W = free.shape
        min_r = max(1, math.ceil(min_gap_diameter / 2.0))
        occupied = np.zeros((H, W), bool)
        regions: List[GapRegion] = []

        for _ in range(self.max_rounds):
            avail = (free > 0) & ~occupied
            dist = cv2.distanceTransform(avail.astype(np.uint8), cv2.DIST_L2, cv2.DIST_MASK_PRECISE)
            peaks = np.argwhere((dist > min_r) & nms2d(dist, 1))
            if peaks.size == 0:
                break
            order = np.argsort(-dist[peaks[:, 0], peaks[:, 1]], kind="stable")

            placed = 0
            for y, x in peaks[order]:
                # largest radius whose disk stays clear of the nearest blocked pixel
                r = min(math.ceil(float(dist[y, x]) - 1e-3) - 1, y, x, H - 1 - y, W - 1 - x)
                if r < min_r:
                    continue
                tpl = disk_template(r)
                win = (slice(y - r, y + r + 1), slice(x - r, x + r + 1))
                if occupied[win][tpl].any():
                    continue
                disk = tpl & avail[win]
                occupied[win] |= disk
                regions.append(GapRegion(x=int(x), y=int(y), radius=r, area=float(np.count_nonzero(disk))))
                placed += 1
            if placed == 0:
                break
        return regions


def draw_gap_overlay(mask: np.ndarray, regions: List[GapRegion], thickness: int = 3) -> np.ndarray:
    """RGB (BGR order) rendering of the mask with red circle outlines."""
    gray = (np.asarray(mask) > 0).astype(np.uint8) * 255
    out = cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)
    for g in regions:
        cv2.circle(out, (g.x, g.y), g.radius, (0, 0, 255), thickness)
    return out
