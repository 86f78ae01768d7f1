"""
Debounced re-detection.

Collapses bursts of granularity changes (e.g. slider drags) into one
detection run per page once the input has been quiet for a while.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Optional

from config.defaults import GRANULARITY_DEBOUNCE_SECONDS

from .exceptions import PageBusyError, PageNotFoundError, SlicerError
from .page_model import PageModel

logger = logging.getLogger(__name__)


class DetectionScheduler:
    """
    Debounces granularity requests and runs detection in the background.

    A request for a page that is still being processed is kept and run
    again once the current detection finishes; only the latest
    granularity is applied.
    """

    def __init__(
        self,
        model: PageModel,
        delay: float = GRANULARITY_DEBOUNCE_SECONDS,
        on_done: Optional[Callable[[str, bool], None]] = None
    ):
        """
        Args:
            model: Document whose pages are detected.
            delay: Quiet period in seconds before detection starts.
            on_done: Called with (page_id, applied) after each run.
        """
        self.model = model
        self.delay = delay
        self.on_done = on_done
        self._timers: Dict[str, threading.Timer] = {}
        self._lock = threading.Lock()

    def request(self, page_id: str, granularity: float) -> int:
        """
        Record a granularity change and (re)start the page's quiet period.

        Returns:
            The clamped granularity.
        """
        value = self.model.set_granularity(page_id, granularity)
        self._schedule(page_id, self.delay)
        return value

    def _schedule(self, page_id: str, delay: float) -> None:
        with self._lock:
            previous = self._timers.pop(page_id, None)
            if previous is not None:
                previous.cancel()
            timer = threading.Timer(delay, self._fire, args=(page_id,))
            timer.daemon = True
            self._timers[page_id] = timer
            timer.start()

    def _fire(self, page_id: str) -> None:
        with self._lock:
            timer = self._timers.get(page_id)
            if timer is threading.current_thread():
                del self._timers[page_id]
        self._run(page_id)

    def _run(self, page_id: str) -> None:
        try:
            if not self.model.needs_detection(page_id):
                return
            applied = self.model.detect_page(page_id)
        except PageBusyError:
            logger.debug(f"Page {page_id} busy, retrying after quiet period")
            self._schedule(page_id, self.delay)
            return
        except PageNotFoundError:
            logger.debug(f"Page {page_id} no longer exists")
            return
        except SlicerError as e:
            logger.error(f"Detection failed for page {page_id}: {e}")
            if self.on_done:
                self.on_done(page_id, False)
            return

        if self.on_done:
            self.on_done(page_id, applied)

        # A newer request may have arrived while detecting
        if not applied and self._still_needed(page_id):
            with self._lock:
                pending = page_id in self._timers
            if not pending:
                self._schedule(page_id, 0)

    def _still_needed(self, page_id: str) -> bool:
        try:
            return self.model.needs_detection(page_id)
        except PageNotFoundError:
            return False

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._timers)

    def flush(self) -> None:
        """Run all pending requests now, on the calling thread."""
        with self._lock:
            timers = dict(self._timers)
            self._timers.clear()
        for page_id, timer in timers.items():
            timer.cancel()
            self._run(page_id)

    def cancel(self) -> None:
        """Drop all pending requests."""
        with self._lock:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()
