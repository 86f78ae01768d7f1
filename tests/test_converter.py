"""End-to-end conversion tests with a stubbed OCR engine."""

from __future__ import annotations

import pytest
from PIL import Image
from pptx import Presentation
from pptx.enum.shapes import MSO_SHAPE_TYPE

from conftest import FakeRecognizer, page_array
from config.settings_manager import Settings
from core.converter import ConversionWorker
from core.exceptions import DocumentLoadError

# A text line above a tall image
RECTS = [(40, 40, 200, 30), (250, 120, 120, 150)]


@pytest.fixture
def input_path(tmp_path):
    path = tmp_path / "page.png"
    Image.fromarray(page_array(400, 300, RECTS)).save(path)
    return path


def make_worker(messages=None, recognizer=None) -> ConversionWorker:
    recognizer = recognizer or FakeRecognizer()
    return ConversionWorker(
        Settings(font_family="Arial"),
        callback=messages.append if messages is not None else None,
        recognizer_factory=lambda: recognizer,
    )


class TestConversionWorker:
    """Tests for ConversionWorker."""

    def test_image_only_export(self, input_path, tmp_path):
        output = tmp_path / "out.pptx"

        result = make_worker().run(input_path, output, granularity=3)

        assert result == output
        shapes = list(Presentation(str(output)).slides[0].shapes)
        assert len(shapes) == 2
        assert all(s.shape_type == MSO_SHAPE_TYPE.PICTURE for s in shapes)

    def test_ocr_export(self, input_path, tmp_path):
        """Recognized text blocks become editable text boxes."""
        messages = []
        recognizer = FakeRecognizer()
        output = tmp_path / "out.pptx"

        make_worker(messages, recognizer).run(input_path, output, granularity=3, run_ocr=True)

        shapes = list(Presentation(str(output)).slides[0].shapes)
        texts = [s.text_frame.text for s in shapes if s.has_text_frame]
        assert texts == ["text"]
        assert recognizer.calls == 1
        assert any("Recognizing text (OCR)" in m for m in messages)
        assert any("Conversion completed successfully!" in m for m in messages)

    def test_cancelled_before_start(self, input_path, tmp_path):
        worker = make_worker()
        worker.stop()

        assert worker.run(input_path, tmp_path / "out.pptx") is None
        assert not (tmp_path / "out.pptx").exists()

    def test_background_thread(self, input_path, tmp_path):
        worker = make_worker()
        output = tmp_path / "out.pptx"

        worker.start(input_path, output)
        worker.join(30)

        assert worker.error is None
        assert worker.output_path == output
        assert output.exists()

    def test_errors_are_recorded(self, tmp_path):
        messages = []
        worker = make_worker(messages)

        worker.start(tmp_path / "missing.png", tmp_path / "out.pptx")
        worker.join(30)

        assert isinstance(worker.error, DocumentLoadError)
        assert any("Conversion failed" in m for m in messages)

    def test_errors_propagate_synchronously(self, tmp_path):
        with pytest.raises(DocumentLoadError):
            make_worker().run(tmp_path / "missing.png", tmp_path / "out.pptx")
