"""
Command-line entry point.

  twombli run IMAGE --out DIR [options]     one image, per-image artefacts only
  twombli batch INPUT_DIR --out DIR [opts]  folder of images + batch summaries
"""

from __future__ import annotations
import argparse
import logging
import sys
from dataclasses import asdict

from twombli.core import Params, TwombliError
from twombli.pipeline import BatchRunner, run_single_image

logger = logging.getLogger(__name__)


def _add_param_args(ap: argparse.ArgumentParser) -> None:
    ap.add_argument("--config", type=str, default=None, help="JSON file with parameters (flags override it)")
    ap.add_argument("--min_line_width", type=int, default=None)
    ap.add_argument("--max_line_width", type=int, default=None)
    ap.add_argument("--dark_lines", action="store_true", default=None, help="fibres darker than background")
    ap.add_argument("--min_branch_length", type=int, default=None)
    ap.add_argument("--properties", dest="anamorf_properties_file", type=str, default=None,
                    help="morphometry properties XML")
    ap.add_argument("--min_curvature_window", type=int, default=None)
    ap.add_argument("--curvature_window_step", type=int, default=None)
    ap.add_argument("--max_curvature_window", type=int, default=None)
    ap.add_argument("--max_display_hdm", type=int, default=None)
    ap.add_argument("--contrast_saturation", type=float, default=None, help="saturated pixels (%%)")
    ap.add_argument("--no_gap_analysis", dest="perform_gap_analysis", action="store_false", default=None)
    ap.add_argument("--min_gap_diameter", type=int, default=None)
    ap.add_argument("-v", "--verbose", action="store_true")


def build_params(args: argparse.Namespace) -> Params:
    """Params from --config (if any) with explicit flags layered on top."""
    params = Params.from_json(args.config) if args.config else Params()
    values = asdict(params)
    for name in values:
        v = getattr(args, name, None)
        if v is not None:
            values[name] = v
    return Params(**values).validate()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="twombli", description="Fibre network quantification (TWOMBLI)")
    sub = ap.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="analyse a single image")
    run.add_argument("image")
    run.add_argument("--out", required=True)
    run.add_argument("--timeout", type=float, default=None, help="seconds allowed for the image")
    _add_param_args(run)

    batch = sub.add_parser("batch", help="analyse every png/tif/tiff image in a folder")
    batch.add_argument("input_dir")
    batch.add_argument("--out", required=True, help="empty output folder")
    batch.add_argument("--workers", type=int, default=1)
    batch.add_argument("--timeout", type=float, default=None, help="seconds allowed per image")
    _add_param_args(batch)
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s [%(levelname)s] %(message)s')
    try:
        params = build_params(args)
        if args.command == "run":
            outcome = run_single_image(args.image, args.out, params, timeout=args.timeout)
            if not outcome.ok:
                logger.error("failed: %s", outcome.reason)
                return 1
            print(f"Alignment : {outcome.result.alignment:.4f} %")
            print(f"Dimension : {outcome.result.dimension}")
            print(f"HDM       : {outcome.result.hdm_value}")
            return 0

        report = BatchRunner(params, workers=args.workers, timeout=args.timeout).run(args.input_dir, args.out)
        print(f"Succeeded : {len(report.succeeded)}")
        for prefix, reason in report.failed.items():
            print(f"Failed    : {prefix} ({reason})")
        if report.layout is not None:
            print(f"Summary   : {report.layout.twombli_summary}")
        return 0
    except TwombliError as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
