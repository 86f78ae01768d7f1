"""Tests for region extraction and merging."""

from __future__ import annotations

import numpy as np
import pytest

from conftest import make_block, make_page, page_array
from core.models import BlockKind
from core.raster import PixelBuffer
from core.region import extract_region, merge_blocks


class TestExtractRegion:
    """Tests for extract_region."""

    def test_exact_pixels(self):
        """The crop equals the source sub-array."""
        arr = np.arange(20 * 30 * 3, dtype=np.uint32).reshape(20, 30, 3) % 256
        source = PixelBuffer.from_array(arr)

        crop = extract_region(source, 5, 3, 10, 7)

        assert crop.size == (10, 7)
        assert np.array_equal(crop.to_array()[..., :3], arr[3:10, 5:15].astype(np.uint8))
        assert (crop.to_array()[..., 3] == 255).all()

    def test_crop_is_independent(self):
        """Each crop is a new buffer with the same pixels."""
        source = make_page(20, 20, [(0, 0, 5, 5)])
        crop = extract_region(source, 0, 0, 5, 5)
        assert crop == extract_region(source, 0, 0, 5, 5)
        assert crop is not source

    def test_empty_rectangle(self):
        """Zero-sized regions are rejected."""
        with pytest.raises(ValueError):
            extract_region(make_page(10, 10), 0, 0, 0, 5)


class TestMergeBlocks:
    """Tests for merge_blocks."""

    def test_union_of_three_squares(self, merge_source):
        """Three squares merge into one 30x30 image block."""
        blocks = [
            make_block("a", (0, 0, 10, 10), source=merge_source),
            make_block("b", (20, 0, 10, 10), source=merge_source),
            make_block("c", (0, 20, 10, 10), source=merge_source),
        ]

        merged = merge_blocks(merge_source, blocks, "block-merged-0")

        assert merged is not None
        assert merged.id == "block-merged-0"
        assert merged.bbox == (0, 0, 30, 30)
        assert merged.kind == BlockKind.IMAGE
        assert merged.text is None
        expected = page_array(40, 40, [(0, 0, 10, 10), (20, 0, 10, 10), (0, 20, 10, 10)])
        assert np.array_equal(merged.image.to_array()[..., :3], expected[:30, :30])

    def test_merged_text_becomes_image(self, merge_source):
        """Merging text blocks drops their recognized text."""
        a = make_block("a", (0, 0, 10, 10), source=merge_source)
        b = make_block("b", (20, 0, 10, 10), source=merge_source)
        a.text = "hello"

        merged = merge_blocks(merge_source, [a, b], "m")

        assert merged.kind == BlockKind.IMAGE
        assert not merged.has_text

    @pytest.mark.parametrize("count", [0, 1])
    def test_fewer_than_two(self, merge_source, count):
        """A single block or none is not a merge."""
        blocks = [make_block("a", (0, 0, 10, 10), source=merge_source)][:count]
        assert merge_blocks(merge_source, blocks, "m") is None
