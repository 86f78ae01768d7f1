"""
Settings management class
- Save/load settings in JSON format
- Auto-detect Tesseract/Poppler paths
"""
from __future__ import annotations
import json
import shutil
import logging
from pathlib import Path
from dataclasses import dataclass, asdict, fields
from typing import Optional

from utils.system import get_app_data_dir
from .defaults import (
    APP_DATA_DIRNAME,
    SETTINGS_FILENAME,
    DEFAULT_TESSERACT_PATHS,
    DEFAULT_POPPLER_PATHS,
    DEFAULT_FONT_FAMILY,
    DEFAULT_GRANULARITY,
    MAX_GRANULARITY,
    MIN_GRANULARITY,
    OCR_LANGUAGES,
    PDF_RENDER_DPI,
)

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Application settings"""
    tesseract_path: str = ""
    poppler_path: str = ""
    ocr_languages: str = OCR_LANGUAGES
    font_family: str = DEFAULT_FONT_FAMILY
    default_granularity: int = DEFAULT_GRANULARITY
    pdf_dpi: int = PDF_RENDER_DPI
    last_output_dir: str = ""

    def is_valid(self) -> bool:
        """Check if the OCR engine is available"""
        return bool(self.tesseract_path) and Path(self.tesseract_path).exists()


class SettingsManager:
    """Manages settings reading, writing, and auto-detection"""

    def __init__(self, settings_path: Optional[Path] = None):
        self._settings_path = settings_path or get_app_data_dir(APP_DATA_DIRNAME) / SETTINGS_FILENAME
        self._settings: Settings = Settings()
        self._load()
        self._validate()

        # Auto-detect paths if not set or invalid
        if not self._settings.tesseract_path or not Path(self._settings.tesseract_path).exists():
            detected = self._detect_tesseract()
            if detected:
                self._settings.tesseract_path = str(detected)

        if not self._settings.poppler_path or not Path(self._settings.poppler_path).exists():
            detected = self._detect_poppler()
            if detected:
                self._settings.poppler_path = str(detected)

        self._save()

    @property
    def settings(self) -> Settings:
        return self._settings

    def update(self, **kwargs) -> None:
        """Update settings and save"""
        for key, value in kwargs.items():
            if hasattr(self._settings, key):
                setattr(self._settings, key, value)
            else:
                logger.warning(f"Ignoring unknown setting: {key}")
        self._validate()
        self._save()

    def _load(self) -> None:
        """Load settings from file"""
        if self._settings_path.exists():
            try:
                with open(self._settings_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                known = {f.name for f in fields(Settings)}
                self._settings = Settings(**{k: v for k, v in data.items() if k in known})
            except (json.JSONDecodeError, TypeError, AttributeError):
                logger.warning(f"Corrupt settings file, using defaults: {self._settings_path}")
                self._settings = Settings()

    def _validate(self) -> None:
        """Bring out-of-range numeric settings back to usable values"""
        s = self._settings
        try:
            granularity = int(s.default_granularity)
        except (TypeError, ValueError):
            granularity = DEFAULT_GRANULARITY
        clamped = min(MAX_GRANULARITY, max(MIN_GRANULARITY, granularity))
        if clamped != s.default_granularity:
            logger.warning(f"default_granularity {s.default_granularity!r} out of range, using {clamped}")
            s.default_granularity = clamped

        if not isinstance(s.pdf_dpi, int) or s.pdf_dpi <= 0:
            logger.warning(f"Invalid pdf_dpi {s.pdf_dpi!r}, using {PDF_RENDER_DPI}")
            s.pdf_dpi = PDF_RENDER_DPI

    def _save(self) -> None:
        """Save settings to file"""
        try:
            with open(self._settings_path, 'w', encoding='utf-8') as f:
                json.dump(asdict(self._settings), f, indent=2, ensure_ascii=False)
        except (IOError, OSError) as e:
            logger.error(f"Failed to save settings: {e}")

    def _detect_tesseract(self) -> Optional[Path]:
        """Auto-detect Tesseract"""
        which_result = shutil.which("tesseract")
        if which_result:
            return Path(which_result)

        for path in DEFAULT_TESSERACT_PATHS:
            if path.exists():
                return path

        return None

    def _detect_poppler(self) -> Optional[Path]:
        """Auto-detect Poppler"""
        # pdftoppm lives in Poppler's bin directory
        which_result = shutil.which("pdftoppm")
        if which_result:
            return Path(which_result).parent

        for path in DEFAULT_POPPLER_PATHS:
            if path.exists():
                return path

        return None
