"""
Block detection module.

Finds rectangular content regions on a page image by thresholding,
dilating and labeling connected components, then classifies each
region as text or image.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Collection, List, Optional

import cv2
import numpy as np
from PIL import Image

from config.defaults import (
    INK_THRESHOLD,
    KERNEL_GRANULARITY_FACTOR,
    MAX_GRANULARITY,
    MIN_GRANULARITY,
    MIN_KERNEL_HALF_WIDTH,
    NOISE_MAX_SIZE_PX,
    PROCESSING_SCALE,
    TEXT_MAX_HEIGHT_PX,
    TEXT_MIN_ASPECT_RATIO,
    WIDE_TEXT_MAX_HEIGHT_PX,
)

from .geometry import clip_rect, scale_rect
from .models import Block, BlockKind
from .raster import PixelBuffer, RasterSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionParams:
    """
    Tunable detection constants.

    The defaults are empirical; none of them is normative.
    """

    processing_scale: float = PROCESSING_SCALE
    ink_threshold: int = INK_THRESHOLD
    min_kernel_half_width: int = MIN_KERNEL_HALF_WIDTH
    kernel_granularity_factor: float = KERNEL_GRANULARITY_FACTOR
    noise_max_size_px: int = NOISE_MAX_SIZE_PX
    text_max_height_px: int = TEXT_MAX_HEIGHT_PX
    text_min_aspect_ratio: float = TEXT_MIN_ASPECT_RATIO
    wide_text_max_height_px: int = WIDE_TEXT_MAX_HEIGHT_PX

    def kernel_half_width(self, granularity: int) -> int:
        """Dilation half-width for a granularity value."""
        return max(
            self.min_kernel_half_width,
            math.floor(granularity * self.kernel_granularity_factor),
        )

    def classify(self, width: int, height: int) -> BlockKind:
        """
        Guess whether a native-size region holds text.

        Short regions, and wide regions of moderate height, are text.
        """
        if height < self.text_max_height_px:
            return BlockKind.TEXT
        aspect_ratio = width / height
        if aspect_ratio > self.text_min_aspect_ratio and height < self.wide_text_max_height_px:
            return BlockKind.TEXT
        return BlockKind.IMAGE


DEFAULT_PARAMS = DetectionParams()


@dataclass
class DetectionResult:
    """Detected blocks plus the native size of the source image."""

    blocks: List[Block]
    width: int
    height: int


def clamp_granularity(value: float) -> int:
    """Clamp a requested granularity to the supported range."""
    return int(min(MAX_GRANULARITY, max(MIN_GRANULARITY, round(value))))


def ink_mask(rgb: np.ndarray, threshold: int = INK_THRESHOLD) -> np.ndarray:
    """
    Binary content mask of an opaque H×W×3 image.

    A pixel is ink when its mean channel brightness is below threshold.
    """
    brightness = rgb[..., :3].astype(np.float32).sum(axis=2) / 3.0
    return (brightness < threshold).astype(np.uint8)


def _dilate_axis(mask: np.ndarray, half_width: int, axis: int) -> np.ndarray:
    n = mask.shape[axis]
    csum = np.cumsum(mask, axis=axis, dtype=np.int32)
    pad = [(0, 0)] * mask.ndim
    pad[axis] = (1, 0)
    csum = np.pad(csum, pad)

    idx = np.arange(n)
    hi = np.minimum(n, idx + half_width + 1)
    lo = np.maximum(0, idx - half_width + 1)
    window = np.take(csum, hi, axis=axis) - np.take(csum, lo, axis=axis)
    return (window > 0).astype(np.uint8)


def dilate(mask: np.ndarray, half_width: int) -> np.ndarray:
    """
    Square dilation of a binary mask.

    Every set pixel marks the window [p - k, p + k) around itself on
    both axes, clipped at the image border.
    """
    if mask.size == 0:
        return mask.astype(np.uint8)
    rows = _dilate_axis(mask.astype(np.uint8), half_width, axis=1)
    return _dilate_axis(rows, half_width, axis=0)


def _apply_mask(block_image: PixelBuffer, mask: np.ndarray) -> PixelBuffer:
    """Multiply the block's alpha by a resized component mask."""
    mask_image = Image.fromarray(mask).resize(
        block_image.size, Image.Resampling.BILINEAR
    )
    coverage = np.asarray(mask_image, dtype=np.float32) / 255.0

    pixels = block_image.to_array()
    alpha = pixels[..., 3].astype(np.float32) * coverage
    pixels[..., 3] = np.rint(alpha).astype(np.uint8)
    return PixelBuffer.from_array(pixels)


def detect_blocks(
    source: RasterSource,
    granularity: int,
    params: Optional[DetectionParams] = None
) -> DetectionResult:
    """
    Detect content blocks on a page image.

    Args:
        source: Page raster (PixelBuffer, PIL image, path or bytes).
        granularity: Grouping coarseness, 1-20. Not validated; larger
            values merge more distant content.
        params: Detection constants (default: DEFAULT_PARAMS).

    Returns:
        DetectionResult with blocks in raster order of their first
        pixel (top-to-bottom, left-to-right).

    Raises:
        RasterDecodeError: If the source cannot be decoded.
    """
    params = params or DEFAULT_PARAMS
    raster = PixelBuffer.decode(source)
    native_w, native_h = raster.size
    scale = params.processing_scale

    w = math.floor(native_w * scale)
    h = math.floor(native_h * scale)
    if w == 0 or h == 0:
        logger.debug(f"Image too small for detection: {native_w}x{native_h}")
        return DetectionResult(blocks=[], width=native_w, height=native_h)

    small = raster.flatten().resize(w, h).to_array()
    ink = ink_mask(small, params.ink_threshold)
    half_width = params.kernel_half_width(granularity)
    dilated = dilate(ink, half_width)

    n_labels, labels, stats, _ = cv2.connectedComponentsWithStats(
        dilated, connectivity=4, ltype=cv2.CV_32S
    )
    logger.debug(
        f"Granularity {granularity} (kernel {half_width}px): "
        f"{n_labels - 1} components on {w}x{h} canvas"
    )

    # np.unique reports each label's first flat index = raster order
    label_ids, first_index = np.unique(labels.ravel(), return_index=True)
    order = [
        int(label)
        for label, _ in sorted(zip(label_ids, first_index), key=lambda p: p[1])
        if label != 0
    ]

    blocks: List[Block] = []
    for label in order:
        x0 = int(stats[label, cv2.CC_STAT_LEFT])
        y0 = int(stats[label, cv2.CC_STAT_TOP])
        bw = int(stats[label, cv2.CC_STAT_WIDTH])
        bh = int(stats[label, cv2.CC_STAT_HEIGHT])

        # Noise filter
        if bw <= params.noise_max_size_px or bh <= params.noise_max_size_px:
            continue

        component = labels[y0:y0 + bh, x0:x0 + bw] == label
        mask = component.astype(np.uint8) * 255

        nx, ny, nw, nh = scale_rect(x0, y0, bw, bh, scale)
        block_image = _apply_mask(raster.crop(nx, ny, nw, nh), mask)

        cx, cy, cw, ch = clip_rect((nx, ny, nw, nh), native_w, native_h)
        if cw <= 0 or ch <= 0:
            continue
        if (cx, cy, cw, ch) != (nx, ny, nw, nh):
            block_image = block_image.crop(cx - nx, cy - ny, cw, ch)

        blocks.append(Block(
            id=f"block-{len(blocks)}",
            x=cx,
            y=cy,
            width=cw,
            height=ch,
            image=block_image,
            kind=params.classify(cw, ch),
        ))

    logger.info(
        f"Detected {len(blocks)} blocks "
        f"({sum(b.kind == BlockKind.TEXT for b in blocks)} text) "
        f"at granularity {granularity}"
    )
    return DetectionResult(blocks=blocks, width=native_w, height=native_h)


def display_order(
    blocks: List[Block],
    selected_ids: Collection[str] = ()
) -> List[Block]:
    """
    Blocks in drawing order.

    Larger blocks are drawn first so smaller ones stay visible on top;
    selected blocks are always drawn last.
    """
    by_area = sorted(blocks, key=lambda b: b.area, reverse=True)
    return (
        [b for b in by_area if b.id not in selected_ids]
        + [b for b in by_area if b.id in selected_ids]
    )
