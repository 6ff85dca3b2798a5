# SPDX-License-Identifier: Apache-2.0
"""
letterfit - CLI Tool

Resolves font sizes for personalized documents: the largest body size that
fills its box, the P.S. size, and the name tier. Prints a JSON report.

Usage:
    fit-text <jobs.json> [options]

Examples:
    fit-text jobs.json                               # Approximate widths
    fit-text jobs.json --backend pdfium --standard-font Times-Roman
    fit-text jobs.json --backend freetype --font-file fonts/LilyWang.otf
    fit-text jobs.json --backend browser --font-family Georgia
    fit-text jobs.json --units mm -o sizes.json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, NoReturn

from letterfit.core.errors import PolicyConfigError
from letterfit.core.helpers import mm_to_pt
from letterfit.core.layout_policy import PolicyRegistry
from letterfit.measurement import (
    CharWidthMeasurer,
    get_browser_measurer,
    get_freetype_measurer,
    get_pdfium_measurer,
)
from letterfit.pipeline.document_fitter import (
    DocumentFitter,
    DocumentJob,
    FitterConfig,
    MeasurerFactory,
)

logger = logging.getLogger(__name__)

POLICY_FILE_ENV = "LETTERFIT_POLICY_FILE"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed argument Namespace.
    """
    parser = argparse.ArgumentParser(
        prog="fit-text",
        description="Resolve font sizes for personalized letters, envelopes and labels",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s jobs.json                                  # Approximate widths (default)
  %(prog)s jobs.json --backend pdfium                 # PDFium glyph metrics
  %(prog)s jobs.json --backend freetype --font-file LilyWang.otf
  %(prog)s jobs.json --backend browser              # Headless Chromium (needs playwright)
  %(prog)s jobs.json --policies policies.json         # Custom tuning

Environment Variables:
  LETTERFIT_POLICY_FILE   Policy JSON used when --policies is not given
""",
    )

    parser.add_argument(
        "input",
        type=Path,
        help="JSON file with one job or a list of jobs",
    )

    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Write the JSON report here instead of stdout",
    )

    parser.add_argument(
        "-p",
        "--policies",
        type=Path,
        help=f"Layout policy JSON (or set {POLICY_FILE_ENV})",
    )

    parser.add_argument(
        "-b",
        "--backend",
        default="approx",
        choices=["approx", "pdfium", "freetype", "browser"],
        help="Measurement backend (default: approx)",
    )

    font_group = parser.add_argument_group("Font options")
    font_group.add_argument(
        "--font-file",
        type=Path,
        help="TrueType/OpenType font for the pdfium, freetype or browser backend",
    )
    font_group.add_argument(
        "--standard-font",
        default="Helvetica",
        help="Standard PDF font for the pdfium backend (default: Helvetica)",
    )
    font_group.add_argument(
        "--font-family",
        default="serif",
        help="CSS font-family for the browser backend (default: serif)",
    )

    parser.add_argument(
        "--units",
        default="pt",
        choices=["pt", "mm"],
        help="Units of the region sizes in the job file (default: pt)",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        help="Seconds allowed per document before sizes are taken as-is",
    )

    parser.add_argument(
        "--concurrency",
        type=int,
        default=4,
        help="Documents fitted at once (default: 4)",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    return parser.parse_args(argv)


def create_measurer_factory(args: argparse.Namespace) -> MeasurerFactory:
    """Create a per-document measurement backend factory.

    Raises:
        SystemExit: If the font file is missing.
    """
    if args.font_file is not None and not args.font_file.exists():
        print(f"Error: Font file not found: {args.font_file}", file=sys.stderr)
        sys.exit(1)

    if args.backend == "pdfium":
        PdfiumMeasurer = get_pdfium_measurer()
        return lambda: PdfiumMeasurer(
            font_path=args.font_file, standard_font=args.standard_font
        )

    if args.backend == "freetype":
        FreeTypeMeasurer = get_freetype_measurer()
        return lambda: FreeTypeMeasurer(font_path=args.font_file)

    if args.backend == "browser":
        BrowserMeasurer = get_browser_measurer()
        return lambda: BrowserMeasurer.launch(
            font_family=args.font_family, font_path=args.font_file
        )

    return CharWidthMeasurer


def load_registry(args: argparse.Namespace) -> PolicyRegistry:
    """Load layout policies from --policies, the environment, or built-ins."""
    path = args.policies
    if path is None and os.environ.get(POLICY_FILE_ENV):
        path = Path(os.environ[POLICY_FILE_ENV])
    if path is None:
        return PolicyRegistry()
    return PolicyRegistry.from_json(path)


def load_jobs(path: Path, units: str) -> list[DocumentJob]:
    """Read jobs from a JSON file.

    Raises:
        ValueError: If the file is not a job or list of jobs.
    """
    data: Any = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("jobs", [data])
    if not isinstance(data, list):
        raise ValueError("Job file must contain an object or a list of objects")

    scale = mm_to_pt(1.0) if units == "mm" else 1.0
    jobs = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValueError(f"Job {index} is not an object")
        if "document_type" not in item:
            raise ValueError(f"Job {index} is missing document_type")
        job = DocumentJob.from_dict(item, scale=scale)
        if not job.document_id:
            job.document_id = str(index + 1)
        jobs.append(job)
    return jobs


async def run(args: argparse.Namespace) -> int:
    """Fit all jobs and write the report.

    Returns:
        Exit code (0: all documents fitted, 1: any failure).
    """
    input_path: Path = args.input
    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1

    try:
        registry = load_registry(args)
    except (FileNotFoundError, PolicyConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        jobs = load_jobs(input_path, args.units)
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        print(f"Error: Invalid job file: {e}", file=sys.stderr)
        return 1

    logger.debug("Fitting %d jobs with the %s backend", len(jobs), args.backend)
    config = FitterConfig(
        document_timeout=args.timeout,
        max_concurrency=args.concurrency,
    )
    fitter = DocumentFitter(create_measurer_factory(args), registry=registry, config=config)
    batch = await fitter.fit_batch(jobs)

    report = {
        "backend": args.backend,
        "documents": [result.to_dict() for result in batch.results],
        "stats": batch.stats,
    }
    text = json.dumps(report, indent=2)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text + "\n", encoding="utf-8")
        print(f"Report: {args.output}")
    else:
        print(text)

    for result in batch.failed:
        assert result.error is not None
        print(
            f"Error: document {result.document_id} failed ({result.error.stage}): {result.error}",
            file=sys.stderr,
        )
    return 1 if batch.failed else 0


def main() -> NoReturn:
    """Main entry point."""
    args = parse_args()

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    exit_code = asyncio.run(run(args))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
