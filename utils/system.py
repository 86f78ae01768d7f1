"""
Platform-specific path utilities
"""
import sys
import os
from pathlib import Path


def get_app_data_dir(dirname: str = "SliceAndSlide") -> Path:
    """
    Get application data directory
    Windows: %APPDATA%/SliceAndSlide
    Others: ~/.config/SliceAndSlide

    Args:
        dirname: Application directory name

    Returns:
        Path: Application data directory
    """
    if sys.platform == 'win32':
        base = Path(os.environ.get('APPDATA', ''))
    else:
        base = Path.home() / '.config'

    app_dir = base / dirname
    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir
