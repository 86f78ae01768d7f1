"""
Core business logic package.

Contains block detection, OCR, page editing and PPTX generation modules.
"""
from .detector import DetectionParams, DetectionResult, detect_blocks, display_order
from .exceptions import (
    DocumentLoadError,
    ExportError,
    PageBusyError,
    PageNotFoundError,
    RasterDecodeError,
    RecognizerError,
    SlicerError,
)
from .geometry import (
    EMU_PER_INCH,
    calculate_slide_dimensions,
    get_aspect_ratio,
    px_to_emu,
    union_bbox,
)
from .models import Block, BlockKind, Page, PageStatus
from .ocr_preprocess import otsu_threshold, preprocess_for_ocr
from .ocr_processor import (
    OCRProcessor,
    RecognitionResult,
    RecognizedLine,
    Recognizer,
    RecognizerHandle,
    TesseractRecognizer,
)
from .page_model import PageModel
from .raster import PixelBuffer
from .region import extract_region, merge_blocks
from .scheduler import DetectionScheduler
from .slide_builder import SlideBuilder
from .text_color import extract_text_color

__all__ = [
    # Raster / model
    "PixelBuffer",
    "Block",
    "BlockKind",
    "Page",
    "PageStatus",
    # Detection
    "DetectionParams",
    "DetectionResult",
    "detect_blocks",
    "display_order",
    "extract_region",
    "merge_blocks",
    # OCR
    "preprocess_for_ocr",
    "otsu_threshold",
    "extract_text_color",
    "OCRProcessor",
    "Recognizer",
    "RecognizerHandle",
    "RecognitionResult",
    "RecognizedLine",
    "TesseractRecognizer",
    # Editing
    "PageModel",
    "DetectionScheduler",
    # Export
    "SlideBuilder",
    # Geometry
    "px_to_emu",
    "union_bbox",
    "calculate_slide_dimensions",
    "get_aspect_ratio",
    "EMU_PER_INCH",
    # Errors
    "SlicerError",
    "RasterDecodeError",
    "DocumentLoadError",
    "PageBusyError",
    "PageNotFoundError",
    "RecognizerError",
    "ExportError",
]
