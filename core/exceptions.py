"""
Exception hierarchy for the block slicing pipeline.

    SlicerError
    ├── RasterDecodeError
    ├── DocumentLoadError
    ├── PageBusyError
    ├── PageNotFoundError
    ├── RecognizerError
    └── ExportError
"""
from __future__ import annotations


class SlicerError(Exception):
    """Base exception for all pipeline errors."""


class RasterDecodeError(SlicerError):
    """Raised when a source image cannot be decoded."""


class DocumentLoadError(SlicerError):
    """Raised when an input document cannot be opened or rasterized."""


class PageBusyError(SlicerError):
    """
    Raised when a page already has a detection, OCR pass or merge in flight.

    Callers may retry once the running operation completes.
    """

    def __init__(self, page_id: str):
        super().__init__(f"Page is busy: {page_id}")
        self.page_id = page_id


class PageNotFoundError(SlicerError, KeyError):
    """Raised when a page id does not exist in the document."""

    def __init__(self, page_id: str):
        super().__init__(page_id)
        self.page_id = page_id

    def __str__(self) -> str:
        return f"Unknown page: {self.page_id}"


class RecognizerError(SlicerError):
    """Raised when the OCR engine is unavailable or fails."""


class ExportError(SlicerError):
    """Raised when the presentation cannot be generated or written."""
