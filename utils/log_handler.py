"""
Callback logging handler.

Forwards formatted log messages to a callable so progress can be shown
outside the console (status lines, UI widgets, tests).
"""
from __future__ import annotations

import logging
from typing import Callable


class CallbackLogHandler(logging.Handler):
    """
    Logging handler that forwards messages to a callback.
    """

    def __init__(self, callback: Callable[[str], None]):
        """
        Initialize the handler.

        Args:
            callback: Function to call with formatted log messages.
        """
        super().__init__()
        self.callback = callback

        self.setFormatter(logging.Formatter(
            "%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S"
        ))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            self.callback(msg)
        except Exception:
            self.handleError(record)


def setup_logger(
    name: str,
    callback: Callable[[str], None],
    level: int = logging.INFO
) -> logging.Logger:
    """
    Route a named logger to a callback only.

    Any handlers already on the logger are replaced, and records stop
    propagating to the root logger, so a status line that shows
    "Analyzing page 2/5..." does not also print it to the console.

    Args:
        name: Logger name; ConversionWorker uses "converter".
        callback: Receives each formatted record, e.g. `messages.append`.
        level: Minimum level forwarded (default: INFO).

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    handler = CallbackLogHandler(callback)
    handler.setLevel(level)
    logger.addHandler(handler)

    logger.propagate = False

    return logger
