"""
Per-image worker: density map, multi-scale ridge mask, morphometry,
coherence and gap analysis for one image.

Stage failures and overrunning the per-image time limit are converted
into a failed ImageOutcome; an empty gap set only drops the gap row.
"""

from __future__ import annotations
import logging
import threading
from pathlib import Path
from typing import Callable, Optional
import numpy as np

from twombli.addons import draw_gap_overlay, write_hdm_results, write_morphometry_csv
from twombli.core import (
    EmptyGapSetError,
    ExternalOperationError,
    build_density_map,
    file_prefix,
    imread_single,
    last_line,
    multiscale_ridge_mask,
    prepare_ridge_base,
    write_gap_files,
    write_png,
)
from twombli.pipeline.context import RunContext
from twombli.pipeline.models import FAILED, SUCCEEDED, ImageOutcome, PerImageResult

logger = logging.getLogger(__name__)


def _call(operation: str, fn: Callable, *args, **kwargs):
    """Invoke an external operation; wrap any failure with its name."""
    try:
        return fn(*args, **kwargs)
    except ExternalOperationError:
        raise
    except Exception as e:
        raise ExternalOperationError(operation, str(e)) from e


class ImageWorker:
    """Runs the full analysis for one image inside a RunContext."""

    def __init__(self, ctx: RunContext) -> None:
        self.ctx = ctx
        self.P = ctx.params
        self.layout = ctx.layout
        self.ops = ctx.ops

    def run(self, seq: int, image_path: str | Path) -> ImageOutcome:
        prefix = file_prefix(image_path)
        try:
            result = self.process_with_deadline(prefix, image_path)
        except Exception as e:
            logger.error("%s: processing failed: %s", prefix, e)
            return ImageOutcome(seq=seq, file_prefix=prefix, status=FAILED, reason=str(e))
        return ImageOutcome(seq=seq, file_prefix=prefix, status=SUCCEEDED, result=result)

    def process_with_deadline(self, prefix: str, image_path: str | Path) -> PerImageResult:
        """
        Run process() under the context time limit.

        A unit that overruns is reported as an ExternalOperationError. Its
        daemon thread is abandoned and nothing it returns reaches the summaries.
        """
        timeout = self.ctx.timeout
        if timeout is None:
            return self.process(prefix, image_path)

        box: dict = {}

        def target():
            try:
                box["result"] = self.process(prefix, image_path)
            except Exception as e:
                box["error"] = e

        t = threading.Thread(target=target, name=f"twombli-{prefix}", daemon=True)
        t.start()
        t.join(timeout)
        if t.is_alive():
            raise ExternalOperationError("image processing", f"timed out after {timeout:g} s")
        if "error" in box:
            raise box["error"]
        return box["result"]

    def process(self, prefix: str, image_path: str | Path) -> PerImageResult:
        gray = imread_single(str(image_path))
        if gray.size == 0:
            raise ValueError(f"cannot read image: {image_path}")

        hdm_value = self.run_hdm(prefix, gray)
        mask = self.detect_ridges(prefix, gray)
        morphometric_row = self.run_morphometry(prefix, mask)
        coherence = _call("coherence", self.ops.coherence.analyze, mask.astype(np.uint8) * 255,
                          title=f"{prefix}_masks.png")
        gap_row = self.run_gap_analysis(prefix, mask) if self.P.perform_gap_analysis else None

        logger.info("%s: alignment=%.2f%% hdm=%s", prefix, coherence.alignment, hdm_value)
        return PerImageResult(
            file_prefix=prefix,
            alignment=float(coherence.alignment),
            dimension=int(mask.shape[0] * mask.shape[1]),
            morphometric_row=morphometric_row,
            hdm_value=hdm_value,
            gap_summary_row=gap_row,
        )

    def run_hdm(self, prefix: str, gray: np.ndarray) -> str:
        """Density map -> HDM table; returns the raw HDM field."""
        heat = build_density_map(gray, dark_lines=self.P.dark_lines,
                                 max_display=self.P.max_display_hdm,
                                 saturated=self.P.contrast_saturation)
        write_png(self.layout.hdm_png(prefix), heat)
        hdm = _call("density quantification", self.ops.density.quantify, heat)
        csv_path = self.layout.hdm_csv(prefix)
        write_hdm_results(csv_path, self.layout.hdm_png(prefix).name, heat, hdm)
        return last_line(csv_path).split(",")[-1]

    def detect_ridges(self, prefix: str, gray: np.ndarray) -> np.ndarray:
        base = prepare_ridge_base(gray, self.P.contrast_saturation)
        mask = multiscale_ridge_mask(
            base, self.ops.ridge,
            self.P.min_line_width, self.P.max_line_width,
            min_branch_length=self.P.min_branch_length,
            dark_lines=self.P.dark_lines,
            on_scale=lambda width, fused: logger.debug(
                "%s: width %d, fused mask has %d fibre pixels", prefix, width, int(np.count_nonzero(fused))),
        )
        write_png(self.layout.mask_png(prefix), mask)
        return mask

    def run_morphometry(self, prefix: str, mask: np.ndarray) -> str:
        """One morphometry pass per curvature window; returns the last CSV row."""
        rows = [
            _call("morphometry", self.ops.morphometry.analyze, mask, window,
                  self.P.min_branch_length, self.ctx.properties, image=f"{prefix}_masks.png")
            for window in self.P.curvature_windows()
        ]
        csv_path = self.layout.morphometry_csv(prefix)
        write_morphometry_csv(csv_path, rows)
        return last_line(csv_path)

    def run_gap_analysis(self, prefix: str, mask: np.ndarray) -> Optional[str]:
        regions = _call("gap detection", self.ops.gaps.detect, mask, self.P.min_gap_diameter)
        write_png(self.layout.gap_png(prefix), draw_gap_overlay(mask, regions))
        try:
            write_gap_files(prefix, [g.area for g in regions],
                            self.layout.gaps_csv(prefix), self.layout.area_arrays_csv(prefix))
        except EmptyGapSetError as e:
            logger.warning("%s: %s; gap row omitted", prefix, e)
            return None
        return self.layout.gaps_csv(prefix).read_text(encoding="utf-8").strip()


def process_image(seq: int, image_path: str | Path, ctx: RunContext) -> ImageOutcome:
    """Unit of work submitted to the batch pool."""
    return ImageWorker(ctx).run(seq, image_path)
