"""
Batch conversion: document -> blocks -> (OCR) -> PPTX.

Runs the whole pipeline without interaction, either synchronously or
in a background thread.
"""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from config.settings_manager import Settings
from utils.log_handler import setup_logger

from .detector import clamp_granularity
from .document_loader import load_document
from .exceptions import SlicerError
from .ocr_processor import OCRProcessor, Recognizer, RecognizerHandle, TesseractRecognizer
from .page_model import PageModel
from .slide_builder import SlideBuilder


class ConversionWorker:
    """
    Converts one document to an editable presentation.

    Progress messages are sent to the optional callback through a
    dedicated logger.
    """

    def __init__(
        self,
        settings: Settings,
        callback: Optional[Callable[[str], None]] = None,
        recognizer_factory: Optional[Callable[[], Recognizer]] = None,
    ):
        """
        Initialize the conversion worker.

        Args:
            settings: Application settings (tool paths, languages, font).
            callback: Receives formatted progress messages.
            recognizer_factory: Creates the OCR engine (default: Tesseract).
        """
        self.settings = settings
        self.model = PageModel()
        self.stop_event = threading.Event()
        self.thread: Optional[threading.Thread] = None
        self.error: Optional[BaseException] = None
        self.output_path: Optional[Path] = None
        self._recognizer_factory = recognizer_factory or (
            lambda: TesseractRecognizer(settings.tesseract_path or None)
        )

        if callback is not None:
            self.logger = setup_logger("converter", callback)
        else:
            self.logger = logging.getLogger(__name__)

    def start(
        self,
        input_path: Path,
        output_path: Path,
        granularity: Optional[int] = None,
        run_ocr: bool = False
    ) -> None:
        """Start the conversion in a background thread."""
        self.stop_event.clear()
        self.error = None
        self.thread = threading.Thread(
            target=self._process,
            args=(input_path, output_path, granularity, run_ocr),
            daemon=True
        )
        self.thread.start()

    def stop(self) -> None:
        """Request cancellation of the conversion."""
        self.stop_event.set()
        self.logger.info("Cancellation requested...")

    def join(self, timeout: Optional[float] = None) -> None:
        if self.thread is not None:
            self.thread.join(timeout)

    def _process(
        self,
        input_path: Path,
        output_path: Path,
        granularity: Optional[int],
        run_ocr: bool
    ) -> None:
        try:
            self.run(input_path, output_path, granularity, run_ocr)
        except (SlicerError, OSError, RuntimeError) as e:
            self.error = e
            self.logger.error(f"Conversion failed: {e}")

    def run(
        self,
        input_path: Path,
        output_path: Path,
        granularity: Optional[int] = None,
        run_ocr: bool = False
    ) -> Optional[Path]:
        """
        Convert synchronously.

        Args:
            input_path: PDF or image file.
            output_path: PPTX file to write.
            granularity: Detection granularity (default: from settings).
            run_ocr: Recognize text blocks before exporting.

        Returns:
            The written file, or None if cancelled.

        Raises:
            SlicerError: If loading, detection, or export fails.
        """
        input_path = Path(input_path)
        output_path = Path(output_path)
        if granularity is None:
            granularity = self.settings.default_granularity
        granularity = clamp_granularity(granularity)

        self.logger.info(f"Starting conversion: {input_path.name}")
        rasters = load_document(
            input_path,
            dpi=self.settings.pdf_dpi,
            poppler_path=self.settings.poppler_path
        )
        pages = self.model.load_pages(rasters, granularity)

        for page in pages:
            if self.stop_event.is_set():
                self.logger.info("Conversion cancelled by user")
                return None
            self.logger.info(f"Analyzing page {page.page_number}/{len(pages)}...")
            self.model.detect_page(page.id)
            self.logger.info(f"  Found {len(self.model.get_page(page.id).blocks)} blocks")

        if run_ocr:
            self._recognize_all()
            if self.stop_event.is_set():
                self.logger.info("Conversion cancelled by user")
                return None

        self.logger.info("Generating PowerPoint...")
        builder = SlideBuilder(font_family=self.settings.font_family)
        builder.build(self.model.pages, self.stop_event)
        if self.stop_event.is_set():
            self.logger.info("Conversion cancelled by user")
            return None
        builder.save(output_path)

        self.output_path = output_path
        self.logger.info("Conversion completed successfully!")
        return output_path

    def _recognize_all(self) -> None:
        self.logger.info("Recognizing text (OCR)...")
        with RecognizerHandle(self._recognizer_factory) as handle:
            processor = OCRProcessor(handle, languages=self.settings.ocr_languages)
            for page in self.model.pages:
                if self.stop_event.is_set():
                    return
                count = self.model.run_ocr(page.id, processor, self.stop_event)
                self.logger.info(f"  Page {page.page_number}: {count} text blocks recognized")
