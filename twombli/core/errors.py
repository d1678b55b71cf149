"""
Exception types shared by the pipeline.

Configuration and output-directory problems abort a batch before any
image is touched; the remaining kinds are scoped to one image.
"""

from __future__ import annotations


class TwombliError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(TwombliError, ValueError):
    """Invalid parameter value or range."""


class ExternalOperationError(TwombliError, RuntimeError):
    """A wrapped detector/analyzer failed for one image."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation


class EmptyGapSetError(TwombliError, ValueError):
    """Gap statistics requested for zero measured regions."""


class OutputDirectoryError(TwombliError, OSError):
    """Output directory missing, non-empty or not writable."""
