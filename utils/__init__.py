"""
Helper utilities: platform paths and logging handlers.
"""
from .log_handler import CallbackLogHandler, setup_logger
from .system import get_app_data_dir

__all__ = [
    "CallbackLogHandler",
    "setup_logger",
    "get_app_data_dir",
]
