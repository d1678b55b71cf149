"""
Image I/O and output-directory utilities.

Provides robust grayscale image loading, file-prefix derivation,
batch input discovery and the per-run output directory layout.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List
import cv2
import numpy as np
from PIL import Image

from twombli.core.errors import ConfigError, OutputDirectoryError

IMAGE_EXTENSIONS = ("png", "tif", "tiff")

TWOMBLI_SUMMARY = "twombli_summary.csv"
GAPS_SUMMARY = "gaps_summary.csv"


def imread_single(path: str) -> np.ndarray:
    """Read an image as one channel, keeping its native bit depth."""
    img = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if img is None:
        # Fallback: use Pillow if OpenCV fails
        pil = Image.open(path)
        if pil.mode not in ("L", "I;16", "I;16B", "I;16L"):
            pil = pil.convert("L")
        arr = np.array(pil)
        if arr.dtype.byteorder not in ("=", "|"):
            arr = arr.astype(arr.dtype.newbyteorder("="))
        return arr
    return to_single_channel(img)


def imread_gray(path: str) -> np.ndarray:
    """Read an image and return it as an 8-bit grayscale array."""
    return to_gray8(imread_single(path))


def to_single_channel(img: np.ndarray) -> np.ndarray:
    """Colour to grayscale at the same bit depth; single-channel input is copied."""
    if img.ndim == 3 and img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2GRAY)
    if img.ndim == 3:
        return cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)
    return img.copy()


def to_gray8(img: np.ndarray) -> np.ndarray:
    """Return a single-channel 8-bit copy of an image array."""
    img = to_single_channel(img)
    if img.dtype != np.uint8:
        img = cv2.normalize(img, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
    return img


def file_prefix(path: str | Path) -> str:
    """File name without its final extension ('a.b.tif' -> 'a.b')."""
    name = Path(path).name
    return name.rsplit(".", 1)[0] if "." in name else name


def list_batch_images(input_dir: str | Path) -> List[Path]:
    """Image files in a folder whose names end with a known extension, sorted by name."""
    src = Path(input_dir)
    if not src.is_dir():
        raise ConfigError(f"input folder not found: {src}")
    return sorted(p for p in src.iterdir() if p.is_file() and p.name.endswith(IMAGE_EXTENSIONS))


def verify_output_dir_empty(output_dir: str | Path) -> Path:
    """
    Ensure the output folder exists, is writable and holds nothing.

    A missing folder is created. Raises OutputDirectoryError otherwise.
    """
    out = Path(output_dir)
    try:
        out.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputDirectoryError(f"cannot create output folder {out}: {e}") from e
    if any(out.iterdir()):
        raise OutputDirectoryError(f"output folder is not empty: {out}")
    if not os.access(out, os.W_OK):
        raise OutputDirectoryError(f"output folder is not writable: {out}")
    return out


@dataclass(frozen=True)
class OutputLayout:
    """Persisted folder layout of one run."""

    root: Path

    @property
    def masks(self) -> Path:
        return self.root / "masks"

    @property
    def hdm(self) -> Path:
        return self.root / "hdm"

    @property
    def hdm_csvs(self) -> Path:
        return self.root / "hdm_csvs"

    @property
    def gap_analysis(self) -> Path:
        return self.root / "gap_analysis"

    @property
    def twombli_summary(self) -> Path:
        return self.root / TWOMBLI_SUMMARY

    @property
    def gaps_summary(self) -> Path:
        return self.root / GAPS_SUMMARY

    def create(self) -> "OutputLayout":
        try:
            for d in (self.masks, self.hdm, self.hdm_csvs, self.gap_analysis):
                d.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputDirectoryError(f"cannot create output layout under {self.root}: {e}") from e
        return self

    # Per-image artefacts
    def mask_png(self, prefix: str) -> Path:
        return self.masks / f"{prefix}_masks.png"

    def morphometry_csv(self, prefix: str) -> Path:
        return self.masks / f"{prefix}_results.csv"

    def hdm_png(self, prefix: str) -> Path:
        return self.hdm / f"{prefix}_hdm.png"

    def hdm_csv(self, prefix: str) -> Path:
        return self.hdm_csvs / f"{prefix}_ResultsHDM.csv"

    def gaps_csv(self, prefix: str) -> Path:
        return self.gap_analysis / f"{prefix}_gaps.csv"

    def area_arrays_csv(self, prefix: str) -> Path:
        return self.gap_analysis / f"{prefix}_area_arrays.csv"

    def gap_png(self, prefix: str) -> Path:
        return self.gap_analysis / f"{prefix}_gap.png"


def write_png(path: str | Path, img: np.ndarray) -> None:
    """Write an 8-bit image (boolean masks become 0/255)."""
    if img.dtype == bool:
        img = img.astype(np.uint8) * 255
    if not cv2.imwrite(str(path), img):
        raise OSError(f"failed to write image: {path}")


def last_line(path: str | Path) -> str:
    """Last non-empty line of a text file."""
    lines = [ln for ln in Path(path).read_text(encoding="utf-8").splitlines() if ln.strip()]
    if not lines:
        raise ValueError(f"no data rows in {path}")
    return lines[-1]
