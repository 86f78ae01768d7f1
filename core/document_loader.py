"""
Input document loading.

Turns an uploaded image or a PDF into one raster per page.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from pdf2image import convert_from_path
from pdf2image.exceptions import (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFSyntaxError,
)

from config.defaults import PDF_RENDER_DPI

from .exceptions import DocumentLoadError, RasterDecodeError
from .raster import PixelBuffer

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tif", ".tiff", ".webp"}


def is_pdf(path: Path) -> bool:
    return path.suffix.lower() == ".pdf"


def load_document(
    path: Path,
    dpi: int = PDF_RENDER_DPI,
    poppler_path: Optional[str] = None
) -> List[PixelBuffer]:
    """
    Load a document as page rasters.

    Args:
        path: PDF or image file.
        dpi: Rendering resolution for PDF pages.
        poppler_path: Directory holding Poppler's binaries, if not on PATH.

    Returns:
        One PixelBuffer per page (a single one for images).

    Raises:
        DocumentLoadError: If the file is missing, unsupported or broken.
    """
    path = Path(path)
    if not path.exists():
        raise DocumentLoadError(f"File not found: {path}")

    if is_pdf(path):
        return _load_pdf(path, dpi, poppler_path)

    if path.suffix.lower() not in IMAGE_SUFFIXES:
        raise DocumentLoadError(f"Unsupported file type: {path.suffix}")

    try:
        raster = PixelBuffer.decode(path)
    except RasterDecodeError as e:
        raise DocumentLoadError(str(e)) from e
    logger.info(f"Loaded image {path.name}: {raster.width}x{raster.height}")
    return [raster]


def _load_pdf(path: Path, dpi: int, poppler_path: Optional[str]) -> List[PixelBuffer]:
    logger.info(f"Converting PDF to images at {dpi} DPI...")
    try:
        images = convert_from_path(
            str(path),
            dpi=dpi,
            poppler_path=poppler_path or None,
        )
    except PDFPageCountError as e:
        raise DocumentLoadError("Invalid PDF: could not determine page count") from e
    except PDFSyntaxError as e:
        raise DocumentLoadError("Invalid PDF: syntax error in PDF file") from e
    except PDFInfoNotInstalledError as e:
        raise DocumentLoadError("Poppler is not installed or not on PATH") from e

    if not images:
        raise DocumentLoadError("PDF has no pages")

    logger.info(f"Found {len(images)} pages")
    return [PixelBuffer(image) for image in images]
