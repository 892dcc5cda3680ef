"""Command-line entry point.

Usage:
    slidegen [--research research.txt] [--checkpoint slides.json] [--images-dir images]
    python -m slidegen ...

Exit code 0 means the run completed, even when some slide images failed or no
slide was valid. Exit code 1 means the run was aborted.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

from slidegen import __version__
from slidegen.core.config import settings
from slidegen.core.logging import get_logger, setup_logging
from slidegen.core.observability import write_metrics
from slidegen.domain.exceptions import PipelineError
from slidegen.images.generator import RetryPolicy, RetryingImageGenerator
from slidegen.pipeline.orchestrator import DeckPipeline
from slidegen.storage.slide_store import JsonSlideStore

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slidegen",
        description="Generate slides from research text and illustrate each one.",
    )
    parser.add_argument(
        "--research", default=settings.RESEARCH_FILE, help="Research text file"
    )
    parser.add_argument(
        "--checkpoint",
        default=settings.SLIDES_JSON_FILE,
        help="Slide checkpoint (JSON); reused when present",
    )
    parser.add_argument(
        "--images-dir", default=settings.IMAGES_DIR, help="Output directory"
    )
    parser.add_argument(
        "--slides",
        type=int,
        default=settings.EXPECTED_SLIDES_COUNT,
        help="Number of slides to ask the text model for",
    )
    parser.add_argument("--max-retries", type=int, default=settings.MAX_IMAGE_RETRIES)
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL")
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser


def build_pipeline(args: argparse.Namespace) -> DeckPipeline:
    generator = RetryingImageGenerator(
        args.images_dir,
        policy=RetryPolicy(
            max_retries=args.max_retries,
            initial_delay_ms=settings.INITIAL_IMAGE_RETRY_DELAY_MS,
        ),
    )
    return DeckPipeline(
        store=JsonSlideStore(args.checkpoint),
        research_path=args.research,
        images_dir=args.images_dir,
        generator=generator,
        expected_count=args.slides,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        summary = asyncio.run(build_pipeline(args).run())
    except PipelineError as e:
        logger.error("Run aborted", error=str(e), error_type=type(e).__name__)
        return 1
    except Exception as e:
        logger.exception("Unhandled error", error=str(e))
        return 1
    finally:
        if settings.METRICS_TEXTFILE:
            try:
                write_metrics(settings.METRICS_TEXTFILE)
            except OSError as e:
                logger.warning("Could not write metrics", error=str(e))

    for line in summary.report_lines():
        print(line)
    print("Script finished.")
    return 0


def run() -> None:
    sys.exit(main())
