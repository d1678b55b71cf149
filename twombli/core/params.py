"""
Analysis parameter data structure.

Defines the full set of ridge-detection, morphometry, density and
gap-analysis parameters used by a TWOMBLI run, together with range
validation and loading from JSON / plain mappings.
"""

from __future__ import annotations
import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

from twombli.core.errors import ConfigError

# Recognised camelCase option names -> dataclass fields
OPTION_ALIASES = {
    "minimumLineWidth": "min_line_width",
    "maximumLineWidth": "max_line_width",
    "darkLines": "dark_lines",
    "minimumBranchLength": "min_branch_length",
    "anamorfPropertiesFile": "anamorf_properties_file",
    "minimumCurvatureWindow": "min_curvature_window",
    "curvatureWindowStepSize": "curvature_window_step",
    "maximumCurvatureWindow": "max_curvature_window",
    "maximumDisplayHDM": "max_display_hdm",
    "contrastSaturation": "contrast_saturation",
    "performGapAnalysis": "perform_gap_analysis",
    "minimumGapDiameter": "min_gap_diameter",
}


def _coerce(key: str, default: Any, value: Any) -> Any:
    """Convert a config value to the type of the field's default."""
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        raise ConfigError(f"option {key}: expected true/false, got {value!r}")
    if isinstance(default, int):
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                pass
        raise ConfigError(f"option {key}: expected an integer, got {value!r}")
    if isinstance(default, float):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                pass
        raise ConfigError(f"option {key}: expected a number, got {value!r}")
    # optional file path
    if value is None or isinstance(value, (str, Path)):
        return str(value) if value else None
    raise ConfigError(f"option {key}: expected a file path, got {value!r}")


@dataclass
class Params:
    """Configuration parameters for one TWOMBLI run."""

    # Ridge detection sweep
    min_line_width: int = 5
    max_line_width: int = 20
    dark_lines: bool = False
    min_branch_length: int = 10

    # Morphometry
    anamorf_properties_file: str | None = None
    min_curvature_window: int = 40
    curvature_window_step: int = 10
    max_curvature_window: int = 40

    # Density map
    max_display_hdm: int = 200
    contrast_saturation: float = 0.35

    # Gap analysis
    perform_gap_analysis: bool = True
    min_gap_diameter: int = 0

    def validate(self) -> "Params":
        """Raise ConfigError on the first out-of-range value; return self."""
        if self.min_line_width < 1:
            raise ConfigError(f"min_line_width must be >= 1, got {self.min_line_width}")
        if self.max_line_width < self.min_line_width:
            raise ConfigError(
                f"max_line_width ({self.max_line_width}) < min_line_width ({self.min_line_width})"
            )
        if self.min_branch_length < 0:
            raise ConfigError(f"min_branch_length must be >= 0, got {self.min_branch_length}")
        if self.min_curvature_window < 1:
            raise ConfigError(f"min_curvature_window must be >= 1, got {self.min_curvature_window}")
        if self.curvature_window_step < 1:
            raise ConfigError(f"curvature_window_step must be >= 1, got {self.curvature_window_step}")
        if self.max_curvature_window < self.min_curvature_window:
            raise ConfigError(
                f"max_curvature_window ({self.max_curvature_window}) < "
                f"min_curvature_window ({self.min_curvature_window})"
            )
        if not 1 <= self.max_display_hdm <= 255:
            raise ConfigError(f"max_display_hdm must be in 1..255, got {self.max_display_hdm}")
        if not 0.0 <= self.contrast_saturation < 100.0:
            raise ConfigError(f"contrast_saturation must be in [0, 100), got {self.contrast_saturation}")
        if self.min_gap_diameter < 0:
            raise ConfigError(f"min_gap_diameter must be >= 0, got {self.min_gap_diameter}")
        if self.anamorf_properties_file and not Path(self.anamorf_properties_file).is_file():
            raise ConfigError(f"properties file not found: {self.anamorf_properties_file}")
        return self

    def curvature_windows(self) -> list[int]:
        """Curvature windows min, min+step, ... <= max."""
        return list(range(self.min_curvature_window, self.max_curvature_window + 1,
                          self.curvature_window_step))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Params":
        """Build Params from snake_case or camelCase keys, coercing each value to its field type."""
        defaults = {f.name: f.default for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = OPTION_ALIASES.get(key, key)
            if name not in defaults:
                raise ConfigError(f"unknown option: {key}")
            kwargs[name] = _coerce(key, defaults[name], value)
        return cls(**kwargs)

    @classmethod
    def from_json(cls, path: str | Path) -> "Params":
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"cannot read config {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"config {path} must hold a JSON object")
        return cls.from_mapping(data)
