"""
Per-batch run context handed explicitly to every unit of work.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional

from twombli.addons import Operations
from twombli.core.io_utils import OutputLayout
from twombli.core.params import Params
from twombli.pipeline.aggregator import RunAggregator
from twombli.pipeline.models import Progress


@dataclass
class RunContext:
    """Parameters, operations, output layout, progress, sink and per-image time limit of one run."""
    params: Params
    layout: OutputLayout
    ops: Operations = field(default_factory=Operations)
    properties: Dict[str, str] = field(default_factory=dict)
    aggregator: Optional[RunAggregator] = None
    progress: Progress = field(default_factory=Progress)
    timeout: Optional[float] = None
