"""
Multi-scale ridge mask fusion.

Sweeps the line width from a minimum to a maximum, runs a single-scale
ridge detector once per width and unions the binary masks. The fused
mask is monotonically non-decreasing in pixel count as scales are added.
"""

from __future__ import annotations
import logging
from typing import Callable, Iterator
import numpy as np

from twombli.core.density import contrast_stretch
from twombli.core.errors import ConfigError, ExternalOperationError
from twombli.core.io_utils import to_gray8, to_single_channel
from twombli.core.scale_params import ScaleParameters, scale_parameters

logger = logging.getLogger(__name__)


def prepare_ridge_base(image: np.ndarray, saturated: float = 0.35) -> np.ndarray:
    """
    Contrast-enhanced 8-bit copy used as the detector input.

    The stretch runs at the native bit depth, before the 8-bit conversion.
    """
    return to_gray8(contrast_stretch(to_single_channel(image), saturated))


def iter_scales(min_line_width: int, max_line_width: int, dark_lines: bool) -> Iterator[ScaleParameters]:
    """ScaleParameters for every integer width in [min, max]."""
    for width in range(min_line_width, max_line_width + 1):
        yield scale_parameters(width, dark_lines)


def _detect_single(detector, gray: np.ndarray, scale: ScaleParameters,
                   min_branch_length: int, dark_lines: bool) -> np.ndarray:
    logger.debug("ridge detection: width=%d sigma=%.4f thr=[%.2f, %.2f]",
                 scale.line_width, scale.sigma, scale.lower_threshold, scale.upper_threshold)
    try:
        mask = detector.detect(gray.copy(), scale, min_branch_length, dark_lines)
    except Exception as e:
        raise ExternalOperationError("ridge detection", f"width {scale.line_width}: {e}") from e
    mask = np.asarray(mask)
    if mask.shape != gray.shape[:2]:
        raise ExternalOperationError(
            "ridge detection",
            f"width {scale.line_width}: mask shape {mask.shape} != image shape {gray.shape[:2]}",
        )
    return mask > 0


def multiscale_ridge_mask(
    gray: np.ndarray,
    detector,
    min_line_width: int,
    max_line_width: int,
    min_branch_length: int = 10,
    dark_lines: bool = False,
    on_scale: Callable[[int, np.ndarray], None] | None = None,
) -> np.ndarray:
    """
    Union of single-scale ridge masks over [min_line_width, max_line_width].

    Args:
        gray: 8-bit detector input (not modified).
        detector: object with `detect(gray, scale, min_branch_length, dark_lines)`.
        on_scale: optional callback receiving (line_width, fused mask so far).

    Returns:
        Boolean fused mask with the shape of `gray`.
    """
    if min_line_width < 1 or max_line_width < min_line_width:
        raise ConfigError(f"invalid line width range [{min_line_width}, {max_line_width}]")

    scales = iter_scales(min_line_width, max_line_width, dark_lines)
    first = next(scales)
    fused = _detect_single(detector, gray, first, min_branch_length, dark_lines)
    if on_scale:
        on_scale(first.line_width, fused)

    for scale in scales:
        fused = np.logical_or(fused, _detect_single(detector, gray, scale, min_branch_length, dark_lines))
        if on_scale:
            on_scale(scale.line_width, fused)
    return fused
