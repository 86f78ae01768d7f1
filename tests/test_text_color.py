"""Tests for text color estimation."""

from __future__ import annotations

import numpy as np
import pytest

from core.raster import PixelBuffer
from core.text_color import (
    BLACK,
    WHITE,
    color_peaks,
    contrast_color,
    extract_text_color,
    quantize,
    rgb_to_hex,
)


def strip(*runs) -> PixelBuffer:
    """1-pixel-high RGBA image made of (count, rgba) runs."""
    pixels = []
    for count, rgba in runs:
        if len(rgba) == 3:
            rgba = (*rgba, 255)
        pixels.extend([rgba] * count)
    return PixelBuffer.from_array(np.array([pixels], dtype=np.uint8))


class TestExtractTextColor:
    """Tests for extract_text_color."""

    def test_red_on_white(self):
        """The second peak is the text color."""
        assert extract_text_color(strip((90, WHITE), (10, (255, 0, 0)))) == (255, 0, 0)

    def test_uniform_light_block(self):
        """Without a distinct second color, black contrasts a light background."""
        assert extract_text_color(strip((50, WHITE))) == BLACK

    def test_uniform_dark_block(self):
        assert extract_text_color(strip((50, (0, 0, 128)))) == WHITE

    def test_transparent_pixels_ignored(self):
        """Pixels with alpha below the cutoff do not vote."""
        image = strip((60, (0, 255, 0, 10)), (30, WHITE), (10, BLACK))
        assert extract_text_color(image) == BLACK

    def test_near_background_noise_skipped(self):
        """Colors close to the background are anti-aliasing, not text."""
        image = strip((80, WHITE), (15, (240, 240, 240)), (5, (0, 0, 255)))
        assert extract_text_color(image) == (0, 0, 255)

    def test_no_opaque_pixels(self):
        assert extract_text_color(strip((5, (10, 20, 30, 0)))) == BLACK

    def test_result_is_quantized(self):
        """Returned colors are on the quantization grid."""
        color = extract_text_color(strip((90, WHITE), (10, (33, 66, 104))))
        assert color == (30, 70, 100)


class TestHelpers:
    """Tests for the color helpers."""

    @pytest.mark.parametrize("value,expected", [(0, 0), (4, 0), (5, 10), (14, 10), (15, 20), (254, 250), (255, 255)])
    def test_quantize(self, value, expected):
        assert quantize(np.array([value]))[0] == expected

    def test_peak_ties_keep_first_occurrence(self):
        """Equally frequent colors are ordered by first appearance."""
        peaks = color_peaks(strip((3, (0, 0, 200)), (3, (200, 0, 0))))
        assert [c for c, _ in peaks] == [(0, 0, 200), (200, 0, 0)]

    def test_contrast_color(self):
        assert contrast_color(WHITE) == BLACK
        assert contrast_color(BLACK) == WHITE

    def test_rgb_to_hex(self):
        assert rgb_to_hex((255, 0, 16)) == "#ff0010"
