"""
Slice & Slide

Application entry point.
Splits page images or PDF pages into editable blocks and exports them
as a PowerPoint presentation.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from config.defaults import (
    APP_NAME,
    APP_VERSION,
    MAX_GRANULARITY,
    MIN_GRANULARITY,
)
from config.settings_manager import SettingsManager
from core.converter import ConversionWorker
from core.exceptions import SlicerError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slice-and-slide",
        description=f"{APP_NAME} v{APP_VERSION} - convert page images to editable slides",
    )
    parser.add_argument("input", type=Path, help="PDF or image file")
    parser.add_argument(
        "-o", "--output", type=Path,
        help="Output PPTX file (default: input name with .pptx)",
    )
    parser.add_argument(
        "-g", "--granularity", type=int,
        help=f"Block grouping coarseness, {MIN_GRANULARITY}-{MAX_GRANULARITY}",
    )
    parser.add_argument("--ocr", action="store_true", help="Recognize text blocks")
    parser.add_argument("--lang", help="OCR languages, e.g. eng+jpn")
    parser.add_argument("--font", help="Font family for recognized text")
    parser.add_argument("--dpi", type=int, help="PDF rendering resolution")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command-line entry point.

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)

    # Configure root logger
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    logger.info("Initializing settings...")
    settings_manager = SettingsManager()
    settings = settings_manager.settings
    if args.lang:
        settings.ocr_languages = args.lang
    if args.font:
        settings.font_family = args.font
    if args.dpi:
        settings.pdf_dpi = args.dpi

    if args.ocr and not settings.is_valid():
        logger.warning("Tesseract not found - OCR may fail (set tesseract_path in settings)")

    output = args.output or args.input.with_suffix(".pptx")
    worker = ConversionWorker(settings)
    try:
        worker.run(args.input, output, args.granularity, run_ocr=args.ocr)
    except (SlicerError, OSError) as e:
        logger.error(f"Conversion failed: {e}")
        return 1

    settings_manager.update(last_output_dir=str(output.resolve().parent))
    return 0


if __name__ == "__main__":
    sys.exit(main())
