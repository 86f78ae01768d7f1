"""Tests for settings persistence."""

from __future__ import annotations

import json
import logging

import pytest

from config.defaults import DEFAULT_GRANULARITY, OCR_LANGUAGES, PDF_RENDER_DPI
from config.settings_manager import Settings, SettingsManager


@pytest.fixture
def settings_path(tmp_path):
    return tmp_path / "settings.json"


class TestSettingsManager:
    """Tests for SettingsManager."""

    def test_defaults_are_written(self, settings_path):
        manager = SettingsManager(settings_path)

        assert settings_path.exists()
        assert manager.settings.ocr_languages == OCR_LANGUAGES
        assert manager.settings.default_granularity == DEFAULT_GRANULARITY

    def test_update_persists(self, settings_path):
        SettingsManager(settings_path).update(font_family="Arial", default_granularity=8)

        reloaded = SettingsManager(settings_path).settings

        assert reloaded.font_family == "Arial"
        assert reloaded.default_granularity == 8

    def test_unknown_keys_in_file_ignored(self, settings_path):
        settings_path.write_text(json.dumps({"font_family": "Meiryo", "theme": "dark"}))

        assert SettingsManager(settings_path).settings.font_family == "Meiryo"

    def test_corrupt_file_uses_defaults(self, settings_path, caplog):
        settings_path.write_text("{not json")

        with caplog.at_level(logging.WARNING):
            manager = SettingsManager(settings_path)

        assert manager.settings.font_family == Settings().font_family
        assert "Corrupt settings file" in caplog.text

    def test_update_unknown_key(self, settings_path, caplog):
        manager = SettingsManager(settings_path)

        with caplog.at_level(logging.WARNING):
            manager.update(colour="blue")

        assert "Ignoring unknown setting: colour" in caplog.text


class TestSettings:
    """Tests for the Settings dataclass."""

    def test_is_valid(self, tmp_path):
        assert not Settings().is_valid()
        assert not Settings(tesseract_path=str(tmp_path / "missing")).is_valid()

        exe = tmp_path / "tesseract"
        exe.write_text("")
        assert Settings(tesseract_path=str(exe)).is_valid()


class TestValidation:
    """Tests for out-of-range values in the settings file."""

    def test_granularity_is_clamped(self, settings_path):
        settings_path.write_text(json.dumps({"default_granularity": 42}))
        assert SettingsManager(settings_path).settings.default_granularity == 20

    def test_invalid_dpi_is_reset(self, settings_path):
        manager = SettingsManager(settings_path)
        manager.update(pdf_dpi=-5)
        assert manager.settings.pdf_dpi == PDF_RENDER_DPI
