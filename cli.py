"""Command line image extractor

Usage: pdf-extract-images [options] <inputfile>

Writes every image embedded in the PDF to <prefix>-<n>.<suffix>.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from engine.config import LOG_LEVELS, ExtractionConfig, PageRange
from extractors.image_extractor import extract_images
from utils.raster_codec import RasterCodecError
from utils.validation import ExtractionError, PdfValidationError

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

LOGGED_PACKAGES = ["cli", "engine", "extractors", "processors", "utils"]


class UsageArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that prints the usage text and exits with code 1 on bad arguments."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = UsageArgumentParser(
        prog="pdf-extract-images",
        description="Extract the embedded images of a PDF document to files.",
        allow_abbrev=False,
    )
    parser.add_argument("input", help="The PDF document to use")
    parser.add_argument("-password", dest="password", default=None,
                        help="Password to decrypt the document")
    parser.add_argument("-prefix", dest="prefix", default=None,
                        help="Image prefix (default to pdf name)")
    parser.add_argument("-directJPEG", dest="direct_jpeg", action="store_true",
                        help="Forces the direct extraction of JPEG/JPX images regardless of colorspace")
    parser.add_argument("-noColorConvert", dest="no_color_convert", action="store_true",
                        help="Images are extracted with their original colorspace if possible")
    parser.add_argument("-includeDensity", dest="include_density", action="store_true",
                        help="Write the estimated resolution into every image (disables direct JPEG copies)")
    parser.add_argument("-startPage", dest="start_page", type=int, default=1,
                        help="The first page to extract from (1 based)")
    parser.add_argument("-endPage", dest="end_page", type=int, default=None,
                        help="The last page to extract from (inclusive)")
    parser.add_argument("-quiet", dest="quiet", action="store_true",
                        help="Only log warnings and errors")
    return parser


def configure_logging(level: str) -> Console:
    """Send log records to stderr through a Rich handler."""
    console = Console(stderr=True)
    rich_handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        show_time=False,
        show_path=False,
    )
    logging.basicConfig(level=logging.WARNING, format="%(message)s", handlers=[rich_handler], force=True)

    for module_name in LOGGED_PACKAGES:
        logging.getLogger(module_name).setLevel(level)

    return console


def env_log_level() -> str:
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    return level if level in LOG_LEVELS else "INFO"


def config_from_args(args: argparse.Namespace) -> ExtractionConfig:
    if args.start_page < 1:
        raise PdfValidationError(f"-startPage must be >= 1, got {args.start_page}")
    if args.end_page is not None and args.end_page < args.start_page:
        raise PdfValidationError(f"-endPage ({args.end_page}) must be >= -startPage ({args.start_page})")

    return ExtractionConfig(
        password=args.password,
        prefix=args.prefix,
        direct_jpeg=args.direct_jpeg,
        no_color_convert=args.no_color_convert,
        include_density=args.include_density,
        page_range=PageRange(start=args.start_page, end=args.end_page),
        log_level="WARNING" if args.quiet else env_log_level(),
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
    except PdfValidationError as e:
        parser.error(str(e))

    console = configure_logging(config.log_level)

    try:
        result = extract_images(args.input, config)
    except (ExtractionError, PdfValidationError, RasterCodecError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        return EXIT_FAILURE

    if not args.quiet:
        console.print(
            f"[bold green]Extracted {len(result.images)} image(s)[/bold green] "
            f"from {result.pagesProcessed} page(s)"
        )
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
