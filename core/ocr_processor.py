"""
OCR processing module.

Handles text recognition for text blocks using Tesseract OCR and derives
the font metrics and color stored on each block.
"""
from __future__ import annotations

import logging
import math
import re
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

import pytesseract
from PIL import Image

from config.defaults import (
    BOLD_HEIGHT_RATIO,
    DEFAULT_LINE_HEIGHT_PX,
    FONT_SIZE_RATIO,
    OCR_CONFIDENCE_THRESHOLD,
    OCR_LANGUAGES,
)

from .exceptions import RecognizerError, SlicerError
from .models import Block, BlockKind, Page
from .ocr_preprocess import preprocess_for_ocr
from .raster import PixelBuffer
from .text_color import extract_text_color

logger = logging.getLogger(__name__)


@dataclass
class RecognizedLine:
    """One recognized text line with its bounding box."""

    text: str
    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def height(self) -> int:
        return abs(self.y1 - self.y0)


@dataclass
class RecognitionResult:
    """Full recognized text plus per-line records."""

    text: str
    lines: List[RecognizedLine] = field(default_factory=list)


class Recognizer(Protocol):
    """Text recognition engine."""

    def recognize(self, image: Image.Image, language: str) -> RecognitionResult:
        ...


class TesseractRecognizer:
    """
    Recognizer backed by the Tesseract executable.

    Words are grouped into lines using Tesseract's own block,
    paragraph and line numbering.
    """

    def __init__(
        self,
        tesseract_path: Optional[str] = None,
        confidence_threshold: float = OCR_CONFIDENCE_THRESHOLD
    ):
        """
        Initialize the recognizer.

        Args:
            tesseract_path: Path to tesseract executable. When omitted
                the executable is looked up on PATH by pytesseract.
            confidence_threshold: Words below this confidence are dropped.

        Raises:
            FileNotFoundError: If tesseract executable not found.
        """
        self.confidence_threshold = confidence_threshold

        if tesseract_path:
            if not Path(tesseract_path).exists():
                raise FileNotFoundError(
                    f"Tesseract executable not found: {tesseract_path}"
                )
            pytesseract.pytesseract.tesseract_cmd = tesseract_path

    def recognize(self, image: Image.Image, language: str) -> RecognitionResult:
        """
        Recognize text in an image.

        Raises:
            RecognizerError: If Tesseract fails or is missing.
        """
        try:
            ocr_data = pytesseract.image_to_data(
                image,
                lang=language,
                output_type=pytesseract.Output.DICT
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as e:
            raise RecognizerError(f"Tesseract error: {e}") from e

        words = self._extract_words(ocr_data)
        lines = self._group_into_lines(words)
        return RecognitionResult(
            text="\n".join(line.text for line in lines),
            lines=lines,
        )

    def _extract_words(self, ocr_data: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Extract valid words from OCR data.

        Filters out empty text and low-confidence results.
        """
        words = []
        n_boxes = len(ocr_data.get("text", []))

        for i in range(n_boxes):
            text = str(ocr_data["text"][i]).strip()
            if not text:
                continue

            # -1 marks structural elements
            conf = float(ocr_data["conf"][i])
            if conf < 0 or conf < self.confidence_threshold:
                continue

            words.append({
                "text": text,
                "key": (
                    int(ocr_data["block_num"][i]),
                    int(ocr_data["par_num"][i]),
                    int(ocr_data["line_num"][i]),
                ),
                "left": int(ocr_data["left"][i]),
                "top": int(ocr_data["top"][i]),
                "width": int(ocr_data["width"][i]),
                "height": int(ocr_data["height"][i]),
            })

        return words

    def _group_into_lines(self, words: List[Dict[str, Any]]) -> List[RecognizedLine]:
        """
        Group words into lines, in reading order.

        A line's box is the union of its word boxes.
        """
        grouped: Dict[Tuple[int, int, int], List[Dict[str, Any]]] = {}
        for word in words:
            grouped.setdefault(word["key"], []).append(word)

        lines = []
        for key in sorted(grouped):
            line_words = sorted(grouped[key], key=lambda w: w["left"])
            lines.append(RecognizedLine(
                text=" ".join(w["text"] for w in line_words),
                x0=min(w["left"] for w in line_words),
                y0=min(w["top"] for w in line_words),
                x1=max(w["left"] + w["width"] for w in line_words),
                y1=max(w["top"] + w["height"] for w in line_words),
            ))
        return lines


class RecognizerHandle:
    """
    Process-wide recognizer resource.

    The engine is created once (lazily, on first use, or explicitly
    through initialize()) and released by teardown(). Recognition calls
    are serialized because the engine is not reentrant.
    """

    def __init__(self, factory: Callable[[], Recognizer]):
        self._factory = factory
        self._recognizer: Optional[Recognizer] = None
        self._closed = False
        self._init_lock = threading.Lock()
        self._call_lock = threading.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._recognizer is not None

    def initialize(self) -> None:
        """Create the engine if needed. Reopens a torn-down handle."""
        with self._init_lock:
            self._closed = False
            if self._recognizer is None:
                logger.info("Initializing OCR engine")
                self._recognizer = self._factory()

    def teardown(self) -> None:
        """Release the engine; later calls fail until initialize()."""
        with self._init_lock, self._call_lock:
            self._recognizer = None
            self._closed = True
            logger.debug("OCR engine released")

    def recognize(self, image: Image.Image, language: str) -> RecognitionResult:
        """
        Recognize text through the shared engine.

        Raises:
            RecognizerError: If the handle was torn down or the engine fails.
        """
        if self._closed:
            raise RecognizerError("Recognizer has been torn down")
        if self._recognizer is None:
            self.initialize()
        with self._call_lock:
            if self._recognizer is None:
                raise RecognizerError("Recognizer has been torn down")
            return self._recognizer.recognize(image, language)

    def __enter__(self) -> RecognizerHandle:
        self.initialize()
        return self

    def __exit__(self, *exc) -> None:
        self.teardown()


_NON_ASCII_GAP = re.compile(r"([^\x00-\x7F])\s+([^\x00-\x7F])")


def clean_text(text: str) -> str:
    """
    Remove spaces inserted between full-width characters.

    Example:
        >>> clean_text("こ ん に ち は World")
        'こんにちは World'
    """
    # Matches overlap, so a second pass catches every other gap
    return _NON_ASCII_GAP.sub(r"\1\2", _NON_ASCII_GAP.sub(r"\1\2", text))


def upper_median(values: List[float], default: float) -> float:
    """Middle element of the sorted values (upper one for even counts)."""
    if not values:
        return default
    ordered = sorted(values)
    return ordered[len(ordered) // 2]


class OCRProcessor:
    """
    Runs recognition over the text blocks of a page.

    Preprocessing and color extraction are pure and run on a thread
    pool; recognition goes through the shared RecognizerHandle one
    block at a time.
    """

    def __init__(
        self,
        handle: RecognizerHandle,
        languages: str = OCR_LANGUAGES,
        max_workers: Optional[int] = None
    ):
        """
        Initialize the OCR processor.

        Args:
            handle: Shared recognizer handle.
            languages: OCR languages (e.g., "eng+jpn").
            max_workers: Thread pool size for preprocessing.
        """
        self.handle = handle
        self.languages = languages
        self.max_workers = max_workers
        logger.info(f"OCR processor ready with languages: {languages}")

    @staticmethod
    def _prepare(block: Block) -> Tuple[PixelBuffer, Tuple[int, int, int]]:
        # Color comes from the original image, not the binarized one
        return preprocess_for_ocr(block.image), extract_text_color(block.image)

    def process_page(
        self,
        page: Page,
        stop_event: Optional[threading.Event] = None
    ) -> int:
        """
        Recognize every text block of a page that has no text yet.

        Blocks are updated in place. A failure on one block is logged
        and the block is skipped.

        Args:
            page: Page whose blocks are recognized.
            stop_event: Optional event to signal cancellation.

        Returns:
            Number of blocks that received text.
        """
        pending = [
            b for b in page.blocks
            if b.kind == BlockKind.TEXT and not b.text
        ]
        if not pending:
            logger.debug(f"Page {page.page_number}: nothing to recognize")
            return 0

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            prepared = list(pool.map(self._prepare, pending))

        results: List[Tuple[Block, RecognitionResult, Tuple[int, int, int]]] = []
        page_line_heights: List[float] = []

        for block, (ocr_image, color) in zip(pending, prepared):
            if stop_event and stop_event.is_set():
                logger.debug("OCR cancelled")
                break
            try:
                result = self.handle.recognize(ocr_image.to_image(), self.languages)
            except (SlicerError, OSError, RuntimeError, ValueError) as e:
                logger.warning(f"OCR failed for block {block.id}: {e}")
                continue
            results.append((block, result, color))
            page_line_heights.extend(line.height for line in result.lines)

        page_median = upper_median(page_line_heights, DEFAULT_LINE_HEIGHT_PX)

        for block, result, color in results:
            block_median = upper_median(
                [line.height for line in result.lines], page_median
            )
            block.text = clean_text(result.text.strip())
            block.text_color = color
            block.text_line_height_px = block_median
            block.font_size_pt = math.floor(block_median * FONT_SIZE_RATIO + 0.5)
            block.is_bold = block_median > page_median * BOLD_HEIGHT_RATIO

        logger.info(
            f"Page {page.page_number}: recognized {len(results)}/{len(pending)} text blocks"
        )
        return len(results)
