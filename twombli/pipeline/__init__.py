from .models import SUCCEEDED, FAILED, PerImageResult, ImageOutcome, Progress
from .aggregator import BatchSummary, RunAggregator, compose_summary_row
from .context import RunContext
from .worker import ImageWorker, process_image
from .batch import BatchReport, BatchRunner, check_unique_prefixes, run_single_image

__all__ = [
    "SUCCEEDED", "FAILED", "PerImageResult", "ImageOutcome", "Progress",
    "BatchSummary", "RunAggregator", "compose_summary_row",
    "RunContext",
    "ImageWorker", "process_image",
    "BatchReport", "BatchRunner", "check_unique_prefixes", "run_single_image",
]
