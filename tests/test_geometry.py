"""Tests for coordinate utilities."""

from __future__ import annotations

import pytest

from core.geometry import (
    EMU_PER_INCH,
    calculate_slide_dimensions,
    clip_rect,
    get_aspect_ratio,
    inches_to_emu,
    px_to_emu,
    scale_rect,
    union_bbox,
)


class TestConversions:
    """Tests for EMU conversion."""

    def test_inches_to_emu(self):
        assert inches_to_emu(1) == EMU_PER_INCH
        assert inches_to_emu(10) == 9144000

    def test_px_to_emu(self):
        """Pixel lengths scale by the page factor."""
        emu_per_px = 9144000 / 1000
        assert px_to_emu(100, emu_per_px) == 914400
        assert px_to_emu(0, emu_per_px) == 0

    def test_slide_dimensions(self):
        """Slide height follows the image aspect ratio."""
        assert calculate_slide_dimensions(2000, 1500) == (9144000, 6858000)
        assert calculate_slide_dimensions(1000, 1000, slide_width_inches=5) == (4572000, 4572000)

    def test_aspect_ratio_zero_height(self):
        with pytest.raises(ValueError):
            get_aspect_ratio(100, 0)


class TestRectangles:
    """Tests for bounding-box helpers."""

    def test_union_bbox(self):
        """The union covers every rectangle."""
        assert union_bbox([(0, 0, 10, 10), (20, 0, 10, 10), (0, 20, 10, 10)]) == (0, 0, 30, 30)
        assert union_bbox([(5, 5, 1, 1)]) == (5, 5, 1, 1)

    def test_union_bbox_empty(self):
        with pytest.raises(ValueError):
            union_bbox([])

    def test_scale_rect_covers(self):
        """Origin is floored and size rounded up."""
        assert scale_rect(3, 4, 5, 6, 0.5) == (6, 8, 10, 12)
        assert scale_rect(1, 1, 1, 1, 0.3) == (3, 3, 4, 4)

    def test_clip_rect(self):
        """Rectangles are clipped to the image bounds."""
        assert clip_rect((-5, -5, 20, 20), 10, 10) == (0, 0, 10, 10)
        assert clip_rect((8, 8, 5, 5), 10, 10) == (8, 8, 2, 2)
        assert clip_rect((12, 0, 5, 5), 10, 10)[2] == 0
