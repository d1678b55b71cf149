"""
Batch runner.

Discovers the input images, checks the output folder, processes every
image as an independent unit on a worker pool and merges the results
into the batch summaries in submission order.
"""

from __future__ import annotations
import logging
import xml.etree.ElementTree as ET
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from twombli.addons import Operations, load_properties_xml
from twombli.core import (
    ConfigError,
    OutputLayout,
    Params,
    file_prefix,
    list_batch_images,
    verify_output_dir_empty,
)
from twombli.pipeline.aggregator import BatchSummary, RunAggregator
from twombli.pipeline.context import RunContext
from twombli.pipeline.models import ImageOutcome, Progress
from twombli.pipeline.worker import process_image

logger = logging.getLogger(__name__)


@dataclass
class BatchReport:
    """Outcomes of a batch in submission order."""
    outcomes: List[ImageOutcome] = field(default_factory=list)
    layout: Optional[OutputLayout] = None
    summary: Optional[BatchSummary] = None

    @property
    def succeeded(self) -> List[str]:
        return [o.file_prefix for o in self.outcomes if o.ok]

    @property
    def failed(self) -> Dict[str, str]:
        return {o.file_prefix: o.reason for o in self.outcomes if not o.ok}


def _load_properties(params: Params) -> Dict[str, str]:
    try:
        return load_properties_xml(params.anamorf_properties_file)
    except (OSError, ET.ParseError) as e:
        raise ConfigError(f"cannot read properties file {params.anamorf_properties_file}: {e}") from e


def check_unique_prefixes(images: List[Path]) -> None:
    """Raise ConfigError when two input files would write the same per-image artefacts."""
    by_prefix: Dict[str, List[str]] = {}
    for p in images:
        by_prefix.setdefault(file_prefix(p), []).append(p.name)
    clashes = {k: v for k, v in by_prefix.items() if len(v) > 1}
    if clashes:
        detail = "; ".join(f"{k}: {', '.join(v)}" for k, v in sorted(clashes.items()))
        raise ConfigError(f"input files share an output prefix ({detail})")


def _check_timeout(timeout: Optional[float]) -> Optional[float]:
    if timeout is not None and not timeout > 0:
        raise ConfigError(f"timeout must be > 0 seconds, got {timeout}")
    return timeout


class BatchRunner:
    """Runs a folder of images with a shared parameter set."""

    def __init__(self, params: Params, ops: Operations | None = None, workers: int = 1,
                 timeout: float | None = None) -> None:
        if workers < 1:
            raise ConfigError(f"workers must be >= 1, got {workers}")
        self.params = params
        self.ops = ops or Operations()
        self.workers = workers
        self.timeout = _check_timeout(timeout)

    def run(self, input_dir: str | Path, output_dir: str | Path) -> BatchReport:
        self.params.validate()
        properties = _load_properties(self.params)

        images = list_batch_images(input_dir)
        if not images:
            logger.warning("no images found in %s", input_dir)
            return BatchReport()
        check_unique_prefixes(images)

        layout = OutputLayout(verify_output_dir_empty(output_dir)).create()
        sink = BatchSummary(layout.twombli_summary, layout.gaps_summary)
        ctx = RunContext(
            params=self.params,
            layout=layout,
            ops=self.ops,
            properties=properties,
            aggregator=RunAggregator(sink, gap_analysis=self.params.perform_gap_analysis),
            progress=Progress(total=len(images)),
            timeout=self.timeout,
        )
        logger.info("processing %d images with %d worker(s)", len(images), self.workers)

        outcomes: List[ImageOutcome] = []
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            futures = [pool.submit(process_image, seq, path, ctx) for seq, path in enumerate(images, start=1)]
            for fut in as_completed(futures):
                outcome = fut.result()
                ctx.aggregator.submit(outcome)
                ctx.progress.record(outcome)
                logger.info("[%d/%d %3.0f%%] %s: %s", ctx.progress.completed, ctx.progress.total,
                            100.0 * ctx.progress.fraction, outcome.file_prefix, outcome.status)
                outcomes.append(outcome)
        ctx.aggregator.close()

        outcomes.sort(key=lambda o: o.seq)
        if ctx.progress.failed:
            logger.warning("%d of %d images failed", ctx.progress.failed, ctx.progress.total)
        return BatchReport(outcomes=outcomes, layout=layout, summary=sink)


def run_single_image(
    image_path: str | Path,
    output_dir: str | Path,
    params: Params,
    ops: Operations | None = None,
    timeout: float | None = None,
) -> ImageOutcome:
    """Process one image into an output folder (no emptiness check, no summaries)."""
    params.validate()
    layout = OutputLayout(Path(output_dir)).create()
    ctx = RunContext(params=params, layout=layout, ops=ops or Operations(),
                     properties=_load_properties(params), progress=Progress(total=1),
                     timeout=_check_timeout(timeout))
    outcome = process_image(1, image_path, ctx)
    ctx.progress.record(outcome)
    return outcome
