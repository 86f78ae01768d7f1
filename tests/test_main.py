"""Tests for the command-line entry point."""

from __future__ import annotations

import json

import pytest
from PIL import Image

import main
from conftest import page_array
from config.settings_manager import SettingsManager


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep settings out of the user's profile."""
    path = tmp_path / "settings.json"
    monkeypatch.setattr(main, "SettingsManager", lambda: SettingsManager(path))
    return path


class TestMain:
    """Tests for main()."""

    def test_parser_defaults(self):
        args = main.build_parser().parse_args(["scan.png"])
        assert args.output is None
        assert args.granularity is None
        assert args.ocr is False

    def test_converts_image(self, tmp_path, isolated_settings):
        source = tmp_path / "scan.png"
        Image.fromarray(page_array(200, 150, [(20, 20, 100, 20)])).save(source)

        code = main.main([str(source), "-g", "4"])

        assert code == 0
        assert (tmp_path / "scan.pptx").exists()
        saved = json.loads(isolated_settings.read_text(encoding="utf-8"))
        assert saved["last_output_dir"] == str(tmp_path.resolve())

    def test_failure_exit_code(self, tmp_path):
        assert main.main([str(tmp_path / "missing.png")]) == 1
