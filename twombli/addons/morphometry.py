"""
Skeleton morphometry of a fibre mask.

Computes network metrics in the spirit of ANAMORF:
total length, end/branch points, branch statistics, projected area,
box-counting fractal dimension, lacunarity and mean curvature for a
given curvature window. Rows are exported to CSV, one per window.
"""

from __future__ import annotations
import csv
import logging
import math
import xml.etree.ElementTree as ET
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, List, Mapping, Sequence
import cv2
import numpy as np
from skimage.morphology import skeletonize

logger = logging.getLogger(__name__)

DEFAULT_BOX_SIZES = (2, 4, 8, 16, 32, 64, 128)
KNOWN_PROPERTIES = ("pixel_size", "box_sizes")

# 4-neighbours first so that walks follow staircases pixel by pixel
_STEPS = ((0, 1), (1, 0), (0, -1), (-1, 0), (1, 1), (1, -1), (-1, 1), (-1, -1))


@dataclass
class MorphometryRow:
    """Network metrics of one mask at one curvature window."""
    image: str
    curvature_window: int
    total_length: float
    endpoints: int
    branchpoints: int
    branches: int
    mean_branch_length: float
    projected_area_pct: float
    fractal_dimension: float
    lacunarity: float
    mean_curvature_deg: float

    @staticmethod
    def header() -> List[str]:
        return [
            "Image", "Curvature Window", "Total Length", "Endpoints", "Branchpoints",
            "Branches", "Mean Branch Length", "HGU Area (%)", "Box-Counting Fractal Dimension",
            "Lacunarity", "Mean Curvature (deg)",
        ]

    def values(self) -> List[object]:
        return [getattr(self, f.name) for f in fields(self)]


def load_properties_xml(path: str | Path | None) -> Dict[str, str]:
    """Read a Java properties XML file (<entry key="...">value</entry>)."""
    if not path:
        return {}
    root = ET.parse(str(path)).getroot()
    props: Dict[str, str] = {}
    for entry in root.iter("entry"):
        key = entry.get("key")
        if key is None:
            continue
        if key not in KNOWN_PROPERTIES:
            logger.debug("ignoring unknown morphometry property %r", key)
            continue
        props[key] = (entry.text or "").strip()
    return props


def neighbour_count(skel: np.ndarray) -> np.ndarray:
    """Number of 8-neighbours of every skeleton pixel (0 off the skeleton)."""
    s = skel.astype(np.uint8)
    k = np.ones((3, 3), np.float32)
    k[1, 1] = 0
    nb = cv2.filter2D(s, cv2.CV_16S, k, borderType=cv2.BORDER_CONSTANT)
    return np.where(skel, nb, 0)


def box_sizes_for(shape: tuple[int, int], sizes: Sequence[int]) -> List[int]:
    return [s for s in sizes if 1 < s <= min(shape)]


def _box_blocks(mask: np.ndarray, s: int) -> np.ndarray:
    H, W = mask.shape
    h, w = (H // s) * s, (W // s) * s
    return mask[:h, :w].reshape(h // s, s, w // s, s)


def box_count_dimension(mask: np.ndarray, sizes: Sequence[int] = DEFAULT_BOX_SIZES) -> float:
    """Slope of log N(s) against log(1/s)."""
    used, counts = [], []
    for s in box_sizes_for(mask.shape, sizes):
        n = int(np.count_nonzero(_box_blocks(mask, s).any(axis=(1, 3))))
        if n > 0:
            used.append(s)
            counts.append(n)
    if len(used) < 2:
        return 0.0
    slope, _ = np.polyfit(np.log(1.0 / np.asarray(used, float)), np.log(np.asarray(counts, float)), 1)
    return float(slope)


def lacunarity(mask: np.ndarray, sizes: Sequence[int] = DEFAULT_BOX_SIZES) -> float:
    """Mean over box sizes of (σ/μ)² of the box masses."""
    vals = []
    for s in box_sizes_for(mask.shape, sizes):
        mass = _box_blocks(mask, s).sum(axis=(1, 3)).astype(np.float64)
        mu = mass.mean()
        if mu > 0:
            vals.append(mass.var() / (mu * mu))
    return float(np.mean(vals)) if vals else 0.0


def trace_path(pixels: set) -> np.ndarray:
    """Order the pixels of a thin branch into a walk (N, 2) of (row, col)."""
    def nbrs(p):
        return [(p[0] + dy, p[1] + dx) for dy, dx in _STEPS if (p[0] + dy, p[1] + dx) in pixels]

    ends = [p for p in pixels if len(nbrs(p)) <= 1]
    start = min(ends) if ends else min(pixels)
    path, seen = [start], {start}
    cur = start
    while True:
        nxt = next((q for q in nbrs(cur) if q not in seen), None)
        if nxt is None:
            break
        path.append(nxt)
        seen.add(nxt)
        cur = nxt
    return np.asarray(path, dtype=np.float64)


def path_turning_angles(path: np.ndarray, window: int) -> np.ndarray:
    """Absolute turning angles (deg) between chords of half the window."""
    half = max(1, int(window) // 2)
    n = len(path)
    if n < 2 * half + 1:
        return np.empty(0)
    v1 = path[half:n - half] - path[:n - 2 * half]
    v2 = path[2 * half:] - path[half:n - half]
    cross = v1[:, 0] * v2[:, 1] - v1[:, 1] * v2[:, 0]
    dot = (v1 * v2).sum(axis=1)
    return np.degrees(np.abs(np.arctan2(cross, dot)))


def split_branches(skel: np.ndarray) -> tuple[List[set], np.ndarray, np.ndarray]:
    """Branch pixel sets (skeleton minus junctions), end and branch point masks."""
    nb = neighbour_count(skel)
    ends = skel & (nb == 1)
    junctions = skel & (nb >= 3)
    cut = cv2.dilate(junctions.astype(np.uint8), np.ones((3, 3), np.uint8)) > 0
    segs = (skel & ~cut).astype(np.uint8)
    num, labels, stats, _ = cv2.connectedComponentsWithStats(segs, connectivity=8)
    branches: List[set] = []
    for i in range(1, num):
        x, y, w, h = (
            stats[i, cv2.CC_STAT_LEFT],
            stats[i, cv2.CC_STAT_TOP],
            stats[i, cv2.CC_STAT_WIDTH],
            stats[i, cv2.CC_STAT_HEIGHT],
        )
        rows, cols = np.nonzero(labels[y:y + h, x:x + w] == i)
        branches.append(set(zip((rows + y).tolist(), (cols + x).tolist())))
    return branches, ends, junctions


class SkeletonMorphometry:
    """Default morphometry analyzer."""

    def analyze(self, mask: np.ndarray, curvature_window: int,
                min_branch_length: int = 10, properties: Mapping[str, str] | None = None,
                image: str = "") -> MorphometryRow:
        props = properties or {}
        px = float(props.get("pixel_size", 1.0))
        sizes = tuple(int(s) for s in props["box_sizes"].split(",")) if props.get("box_sizes") \
            else DEFAULT_BOX_SIZES

        bw = np.asarray(mask) > 0
        skel = skeletonize(bw) if bw.any() else bw.copy()
        branches, ends, junctions = split_branches(skel)
        kept = [b for b in branches if len(b) >= min_branch_length]

        angles = [path_turning_angles(trace_path(b), curvature_window) for b in kept]
        angles = np.concatenate(angles) if angles else np.empty(0)

        return MorphometryRow(
            image=image,
            curvature_window=int(curvature_window),
            total_length=float(np.count_nonzero(skel)) * px,
            endpoints=int(np.count_nonzero(ends)),
            branchpoints=int(np.count_nonzero(junctions)),
            branches=len(kept),
            mean_branch_length=float(np.mean([len(b) for b in kept])) * px if kept else 0.0,
            projected_area_pct=100.0 * float(np.count_nonzero(bw)) / bw.size if bw.size else 0.0,
            fractal_dimension=box_count_dimension(skel, sizes),
            lacunarity=lacunarity(bw, sizes),
            mean_curvature_deg=float(angles.mean()) if angles.size else 0.0,
        )


def write_morphometry_csv(path: str | Path, rows: List[MorphometryRow]) -> None:
    """Write morphometry rows (header + one row per curvature window)."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(MorphometryRow.header())
        for r in rows:
            writer.writerow(r.values())
