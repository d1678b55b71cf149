# Public API of the core package (re-export)
from .errors import (
    TwombliError,
    ConfigError,
    ExternalOperationError,
    EmptyGapSetError,
    OutputDirectoryError,
)
from .io_utils import (
    imread_single,
    imread_gray,
    to_single_channel,
    to_gray8,
    file_prefix,
    list_batch_images,
    verify_output_dir_empty,
    OutputLayout,
    write_png,
    last_line,
)
from .scale_params import (
    HIGH_CONTRAST,
    LOW_CONTRAST,
    ScaleParameters,
    sigma_from_line_width,
    threshold_from_limit,
    scale_parameters,
)
from .ridge_fusion import (
    prepare_ridge_base,
    iter_scales,
    multiscale_ridge_mask,
)
from .density import (
    saturated_range,
    contrast_stretch,
    display_range_lut,
    build_density_map,
)
from .gap_stats import (
    GapSummary,
    percentile_nearest_rank,
    gap_summary,
    parse_gap_row,
    write_gap_files,
)
from .params import Params

__all__ = [
    # errors
    "TwombliError", "ConfigError", "ExternalOperationError", "EmptyGapSetError", "OutputDirectoryError",
    # io / layout
    "imread_single", "imread_gray", "to_single_channel", "to_gray8",
    "file_prefix", "list_batch_images", "verify_output_dir_empty",
    "OutputLayout", "write_png", "last_line",
    # scale parameters
    "HIGH_CONTRAST", "LOW_CONTRAST", "ScaleParameters", "sigma_from_line_width",
    "threshold_from_limit", "scale_parameters",
    # multi-scale fusion
    "prepare_ridge_base", "iter_scales", "multiscale_ridge_mask",
    # density map
    "saturated_range", "contrast_stretch", "display_range_lut", "build_density_map",
    # gap statistics
    "GapSummary", "percentile_nearest_rank", "gap_summary", "parse_gap_row", "write_gap_files",
    # params
    "Params",
]
