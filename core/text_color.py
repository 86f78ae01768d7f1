"""
Foreground (text) color estimation for recognized blocks.

Uses color-frequency peaks: the most frequent quantized color is the
background, the next sufficiently different one is the text.
"""
from __future__ import annotations

import logging
import math
from typing import Tuple

import numpy as np

from config.defaults import (
    COLOR_ALPHA_CUTOFF,
    COLOR_MIN_DISTANCE,
    COLOR_QUANTIZATION_STEP,
)

from .raster import PixelBuffer

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]
BLACK: RGB = (0, 0, 0)
WHITE: RGB = (255, 255, 255)


def rgb_to_hex(color: RGB) -> str:
    """
    Format an RGB triple as a hex string.

    Example:
        >>> rgb_to_hex((255, 0, 16))
        '#ff0010'
    """
    return "#{:02x}{:02x}{:02x}".format(*color)


def luma(color: RGB) -> float:
    r, g, b = color
    return (r * 299 + g * 587 + b * 114) / 1000


def contrast_color(background: RGB) -> RGB:
    """Black on light backgrounds, white on dark ones."""
    return BLACK if luma(background) > 128 else WHITE


def quantize(channels: np.ndarray, step: int = COLOR_QUANTIZATION_STEP) -> np.ndarray:
    """Round to the nearest multiple of step (halves round up), capped at 255."""
    q = np.floor(channels.astype(np.float64) / step + 0.5) * step
    return np.minimum(q, 255).astype(np.int64)


def color_peaks(raster: PixelBuffer) -> list:
    """
    Quantized opaque colors ordered by descending frequency.

    Ties keep the order in which the colors first appear.

    Returns:
        List of ((r, g, b), count).
    """
    pixels = raster.to_array().reshape(-1, 4)
    opaque = pixels[pixels[:, 3] >= COLOR_ALPHA_CUTOFF]
    if len(opaque) == 0:
        return []

    q = quantize(opaque[:, :3])
    keys = (q[:, 0] << 16) | (q[:, 1] << 8) | q[:, 2]
    uniq, first, counts = np.unique(keys, return_index=True, return_counts=True)
    order = np.lexsort((first, -counts))

    return [
        ((int(uniq[i] >> 16) & 0xFF, int(uniq[i] >> 8) & 0xFF, int(uniq[i]) & 0xFF), int(counts[i]))
        for i in order
    ]


def extract_text_color(raster: PixelBuffer, min_distance: float = COLOR_MIN_DISTANCE) -> RGB:
    """
    Estimate the text color of a block image.

    Args:
        raster: Original (not preprocessed) block image.
        min_distance: RGB distance a color must keep from the background.

    Returns:
        RGB triple. Black when the image has no opaque pixels or cannot
        be read.
    """
    try:
        peaks = color_peaks(raster)
    except (ValueError, OSError, MemoryError) as e:
        logger.warning(f"Color extraction failed, defaulting to black: {e}")
        return BLACK

    if not peaks:
        return BLACK

    background = peaks[0][0]
    for color, _count in peaks[1:]:
        if math.dist(color, background) > min_distance:
            return color

    # Uniform block: contrast against the background
    return contrast_color(background)
