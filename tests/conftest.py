"""Pytest configuration and shared fixtures.

Provides synthetic page images and blocks so that the suite needs no
sample files and no Tesseract installation.
"""

from __future__ import annotations

import sys
import threading
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import numpy as np
import pytest

# Ensure project root is importable when running tests via python -m pytest
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from core.detector import DetectionResult  # noqa: E402
from core.models import Block, BlockKind  # noqa: E402
from core.ocr_processor import RecognitionResult, RecognizedLine  # noqa: E402
from core.raster import PixelBuffer  # noqa: E402

Rect = Tuple[int, int, int, int]


def page_array(
    width: int,
    height: int,
    rects: Iterable[Rect] = (),
    background: Tuple[int, int, int] = (255, 255, 255),
    color: Tuple[int, int, int] = (0, 0, 0),
) -> np.ndarray:
    """H×W×3 array with filled rectangles."""
    arr = np.empty((height, width, 3), dtype=np.uint8)
    arr[:, :] = background
    for x, y, w, h in rects:
        arr[y:y + h, x:x + w] = color
    return arr


def make_page(width: int, height: int, rects: Iterable[Rect] = (), **kwargs) -> PixelBuffer:
    """Page raster with black rectangles on white."""
    return PixelBuffer.from_array(page_array(width, height, rects, **kwargs))


def make_block(
    block_id: str,
    rect: Rect,
    kind: BlockKind = BlockKind.TEXT,
    source: Optional[PixelBuffer] = None,
) -> Block:
    x, y, w, h = rect
    image = source.crop(x, y, w, h) if source is not None else PixelBuffer.blank(w, h)
    return Block(id=block_id, x=x, y=y, width=w, height=h, image=image, kind=kind)


class FixedDetector:
    """Detector stand-in returning a fixed block layout and recording calls."""

    def __init__(self, rects: List[Rect], kind: BlockKind = BlockKind.TEXT):
        self.rects = rects
        self.kind = kind
        self.calls: List[int] = []

    def __call__(self, source, granularity, params=None) -> DetectionResult:
        self.calls.append(granularity)
        raster = PixelBuffer.decode(source)
        blocks = [
            make_block(f"block-{i}", rect, self.kind, raster)
            for i, rect in enumerate(self.rects)
        ]
        return DetectionResult(blocks=blocks, width=raster.width, height=raster.height)


class FakeRecognizer:
    """Recognizer returning scripted results in call order."""

    def __init__(self, results: Optional[List] = None):
        self.results = list(results or [])
        self.calls = 0

    def recognize(self, image, language):
        self.calls += 1
        if self.results:
            result = self.results.pop(0)
        else:
            result = RecognitionResult(text="text", lines=[])
        if isinstance(result, Exception):
            raise result
        return result


def lines(*heights: int) -> List[RecognizedLine]:
    """Recognized lines with the given heights, stacked vertically."""
    out = []
    top = 0
    for h in heights:
        out.append(RecognizedLine(text="line", x0=0, y0=top, x1=50, y1=top + h))
        top += h
    return out


# ==================== Sample Data Fixtures ====================


@pytest.fixture
def blank_page() -> PixelBuffer:
    """200x200 white page."""
    return make_page(200, 200)


@pytest.fixture
def merge_source() -> PixelBuffer:
    """40x40 page with three 10x10 squares."""
    return make_page(40, 40, [(0, 0, 10, 10), (20, 0, 10, 10), (0, 20, 10, 10)])


class BlockingDetector(FixedDetector):
    """Detector that waits for a release signal before returning."""

    def __init__(self, rects: List[Rect]):
        super().__init__(rects)
        self.started = threading.Event()
        self.release = threading.Event()

    def __call__(self, source, granularity, params=None) -> DetectionResult:
        self.started.set()
        assert self.release.wait(5)
        return super().__call__(source, granularity, params)
