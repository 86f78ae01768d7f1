"""Tests for callback logging."""

from __future__ import annotations

import logging

from utils.log_handler import CallbackLogHandler, setup_logger


class TestSetupLogger:
    """Tests for setup_logger."""

    def test_messages_reach_callback(self):
        messages = []
        logger = setup_logger("test.callback", messages.append)

        logger.info("Analyzing page 1/2...")
        logger.debug("hidden")

        assert len(messages) == 1
        assert messages[0].endswith("INFO - Analyzing page 1/2...")
        assert logger.propagate is False

    def test_repeated_setup_does_not_duplicate(self):
        messages = []
        setup_logger("test.repeat", messages.append)
        logger = setup_logger("test.repeat", messages.append)

        logger.warning("once")

        assert len(messages) == 1
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], CallbackLogHandler)

    def test_failing_callback_is_handled(self, monkeypatch):
        """Errors in the callback go to handleError, not the caller."""
        errors = []

        def broken(message):
            raise RuntimeError("widget closed")

        logger = setup_logger("test.broken", broken)
        monkeypatch.setattr(CallbackLogHandler, "handleError", lambda self, record: errors.append(record))

        logger.error("boom")

        assert len(errors) == 1
        assert errors[0].levelno == logging.ERROR
