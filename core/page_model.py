"""
Document state: pages, block edits, merging and undo history.
"""
from __future__ import annotations

import itertools
import logging
import threading
from collections import deque
from contextlib import contextmanager
from typing import Callable, Deque, Dict, FrozenSet, Iterable, Iterator, List, Optional

from config.defaults import DEFAULT_GRANULARITY, HISTORY_LIMIT

from .detector import DetectionParams, DetectionResult, clamp_granularity, detect_blocks
from .exceptions import PageBusyError, PageNotFoundError, RasterDecodeError
from .models import Block, BlockKind, Page, PageStatus
from .ocr_processor import OCRProcessor
from .raster import PixelBuffer, RasterSource
from .region import merge_blocks

logger = logging.getLogger(__name__)

Detector = Callable[..., DetectionResult]


class PageModel:
    """
    Owns the page collection of one document.

    Destructive edits (type toggle, background toggle, merge, OCR) push
    a deep snapshot of all pages first; undo() restores the latest one.
    Each page can run one detection / OCR / edit at a time; a second
    request while it is busy raises PageBusyError. Results of work that
    was superseded while running (granularity change, reset) are
    discarded using the page's generation counter.
    """

    def __init__(
        self,
        detector: Detector = detect_blocks,
        params: Optional[DetectionParams] = None,
        history_limit: int = HISTORY_LIMIT
    ):
        """
        Args:
            detector: Block detection function (source, granularity, params).
            params: Detection constants passed to the detector.
            history_limit: Number of undo snapshots kept.
        """
        self._detector = detector
        self._params = params
        self._pages: List[Page] = []
        self._history: Deque[List[Page]] = deque(maxlen=history_limit)
        self._selection: set = set()
        self._page_locks: Dict[str, threading.Lock] = {}
        self._state_lock = threading.RLock()
        self._merge_ids = itertools.count()

    # ------------------------------------------------------------------
    # Document lifecycle
    # ------------------------------------------------------------------

    def load_pages(
        self,
        sources: Iterable[RasterSource],
        granularity: int = DEFAULT_GRANULARITY
    ) -> List[Page]:
        """
        Replace the document with new pages, one per source image.

        Clears history and selection. Pages start Idle.

        Raises:
            RasterDecodeError: If a source cannot be decoded.
        """
        rasters = [PixelBuffer.decode(s) for s in sources]
        granularity = clamp_granularity(granularity)

        with self._state_lock:
            self.reset()
            self._pages = [
                Page(
                    id=f"page-{index + 1}",
                    page_number=index + 1,
                    source=raster,
                    granularity=granularity,
                )
                for index, raster in enumerate(rasters)
            ]
            self._page_locks = {p.id: threading.Lock() for p in self._pages}

        logger.info(f"Loaded {len(rasters)} pages")
        return list(self._pages)

    def reset(self) -> None:
        """Discard all pages, history and selection."""
        with self._state_lock:
            for page in self._pages:
                page.generation += 1
            self._pages = []
            self._history.clear()
            self._selection.clear()

    @property
    def pages(self) -> List[Page]:
        with self._state_lock:
            return list(self._pages)

    def get_page(self, page_id: str) -> Page:
        """
        Raises:
            PageNotFoundError: If no page has this id.
        """
        with self._state_lock:
            for page in self._pages:
                if page.id == page_id:
                    return page
        raise PageNotFoundError(page_id)

    def _is_live(self, page: Page) -> bool:
        return any(p is page for p in self._pages)

    @contextmanager
    def _busy(self, page_id: str) -> Iterator[None]:
        lock = self._page_locks.get(page_id)
        if lock is None:
            raise PageNotFoundError(page_id)
        if not lock.acquire(blocking=False):
            logger.warning(f"Rejected operation on busy page {page_id}")
            raise PageBusyError(page_id)
        try:
            yield
        finally:
            lock.release()

    def is_busy(self, page_id: str) -> bool:
        lock = self._page_locks.get(page_id)
        return lock is not None and lock.locked()

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------

    def set_granularity(self, page_id: str, value: float) -> int:
        """
        Record a new requested granularity for a page.

        A changed value invalidates in-flight work on the page and marks
        its blocks stale (status Idle until re-detected).

        Returns:
            The clamped granularity.
        """
        granularity = clamp_granularity(value)
        with self._state_lock:
            page = self.get_page(page_id)
            if granularity != page.granularity:
                page.granularity = granularity
                page.generation += 1
                if page.status == PageStatus.READY:
                    page.status = PageStatus.IDLE
        return granularity

    def needs_detection(self, page_id: str) -> bool:
        return self.get_page(page_id).needs_detection()

    def detect_page(self, page_id: str, granularity: Optional[int] = None) -> bool:
        """
        Run block detection on a page and replace its blocks.

        Args:
            page_id: Page to detect.
            granularity: Optional new granularity to request first.

        Returns:
            True if the result was applied, False if it went stale
            while running.

        Raises:
            PageBusyError: If the page is already being processed.
            RasterDecodeError: If the page image cannot be decoded;
                the page is put in Error state. Any other detector
                failure also leaves the page in Error and is re-raised.
        """
        if granularity is not None:
            self.set_granularity(page_id, granularity)
        with self._busy(page_id):
            return self._detect_locked(self.get_page(page_id))

    def _detect_locked(self, page: Page) -> bool:
        with self._state_lock:
            granularity = page.granularity
            generation = page.generation
            page.status = PageStatus.PROCESSING
            self._selection.clear()

        logger.info(f"Analyzing page {page.page_number} (granularity {granularity})")
        try:
            if self._params is not None:
                result = self._detector(page.source, granularity, self._params)
            else:
                result = self._detector(page.source, granularity)
        except RasterDecodeError:
            with self._state_lock:
                page.status = PageStatus.ERROR
            logger.error(f"Page {page.page_number}: image could not be decoded")
            raise
        except Exception as e:
            with self._state_lock:
                page.status = PageStatus.ERROR
            logger.error(f"Page {page.page_number}: detection failed: {e!r}")
            raise

        with self._state_lock:
            if page.generation != generation or not self._is_live(page):
                logger.info(f"Discarding stale detection for page {page.page_number}")
                page.status = PageStatus.IDLE
                return False
            page.blocks = result.blocks
            page.last_processed_granularity = granularity
            page.status = PageStatus.READY
        return True

    def ensure_detected(self) -> int:
        """
        Detect every page whose blocks are missing or stale.

        Returns:
            Number of pages detected.
        """
        count = 0
        for page in self.pages:
            if page.status != PageStatus.READY or page.needs_detection():
                if self.detect_page(page.id):
                    count += 1
        return count

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def _push_history(self) -> None:
        self._history.append([p.clone() for p in self._pages])

    @property
    def can_undo(self) -> bool:
        return len(self._history) > 0

    @property
    def history_size(self) -> int:
        return len(self._history)

    def undo(self) -> bool:
        """
        Restore the page collection saved before the last edit.

        Returns:
            False if there was nothing to undo.

        Raises:
            PageBusyError: If any page has work in flight.
        """
        with self._state_lock:
            for page_id, lock in self._page_locks.items():
                if lock.locked():
                    raise PageBusyError(page_id)
            if not self._history:
                return False

            for page in self._pages:
                page.generation += 1
            self._pages = self._history.pop()
            self._selection.clear()
            logger.debug(f"Undo ({len(self._history)} snapshots left)")
            return True

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    @property
    def selected_ids(self) -> FrozenSet[str]:
        with self._state_lock:
            return frozenset(self._selection)

    def select(self, block_ids: Iterable[str]) -> None:
        """Replace the selection."""
        with self._state_lock:
            self._selection = set(block_ids)

    def toggle_selection(self, block_id: str) -> bool:
        """Add or remove one block; returns True if now selected."""
        with self._state_lock:
            if block_id in self._selection:
                self._selection.discard(block_id)
                return False
            self._selection.add(block_id)
            return True

    def clear_selection(self) -> None:
        with self._state_lock:
            self._selection.clear()

    # ------------------------------------------------------------------
    # Block edits
    # ------------------------------------------------------------------

    def toggle_block_type(self, page_id: str, block_id: str) -> Optional[Block]:
        """
        Flip a block between text and image.

        The background flag is cleared on every transition.

        Returns:
            The edited block, or None if it does not exist.
        """
        with self._busy(page_id), self._state_lock:
            block = self.get_page(page_id).get_block(block_id)
            if block is None:
                return None
            self._push_history()
            block.kind = BlockKind.IMAGE if block.kind == BlockKind.TEXT else BlockKind.TEXT
            block.preserve_background = False
            return block

    def toggle_background(self, page_id: str, block_id: str) -> Optional[Block]:
        """
        Flip whether a text block keeps its image behind the text.

        Returns:
            The edited block, or None if it does not exist or is not text.
        """
        with self._busy(page_id), self._state_lock:
            block = self.get_page(page_id).get_block(block_id)
            if block is None or block.kind != BlockKind.TEXT:
                return None
            self._push_history()
            block.preserve_background = not block.preserve_background
            return block

    def merge_selected(
        self,
        page_id: str,
        block_ids: Optional[Iterable[str]] = None
    ) -> Optional[Block]:
        """
        Merge blocks into one image block covering their union.

        Args:
            page_id: Page holding the blocks.
            block_ids: Blocks to merge (default: current selection).

        Returns:
            The new block (appended last), or None when fewer than two
            blocks resolve or the crop fails. The page is unchanged then.
        """
        with self._busy(page_id), self._state_lock:
            page = self.get_page(page_id)
            wanted = set(self._selection if block_ids is None else block_ids)
            chosen = [b for b in page.blocks if b.id in wanted]
            if len(chosen) < 2:
                logger.info(f"Merge needs 2 or more blocks, {len(chosen)} found")
                return None

            merged = merge_blocks(
                page.source, chosen, f"block-merged-{next(self._merge_ids)}"
            )
            if merged is None:
                return None

            self._push_history()
            merged_ids = {b.id for b in chosen}
            page.blocks = [b for b in page.blocks if b.id not in merged_ids] + [merged]
            self._selection.clear()
            logger.info(f"Merged {len(chosen)} blocks into {merged.id}")
            return merged

    # ------------------------------------------------------------------
    # OCR
    # ------------------------------------------------------------------

    def run_ocr(
        self,
        page_id: str,
        processor: OCRProcessor,
        stop_event: Optional[threading.Event] = None
    ) -> int:
        """
        Recognize the text blocks of a page, detecting it first if needed.

        Recognition runs on a copy of the page; the result is applied
        (after pushing an undo snapshot) only if the page was not
        superseded meanwhile.

        Returns:
            Number of blocks that received text.
        """
        with self._busy(page_id):
            page = self.get_page(page_id)
            if page.needs_detection() or page.status != PageStatus.READY:
                if not self._detect_locked(page):
                    return 0

            with self._state_lock:
                generation = page.generation
                work = page.clone()

            recognized = processor.process_page(work, stop_event)

            with self._state_lock:
                if page.generation != generation or not self._is_live(page):
                    logger.info(f"Discarding stale OCR result for page {page.page_number}")
                    return 0
                if recognized:
                    self._push_history()
                    page.blocks = work.blocks
            return recognized
