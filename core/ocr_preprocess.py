"""
Image normalization before text recognition.

Flattens transparency, converts to grayscale, stretches contrast,
corrects light-on-dark polarity and binarizes with Otsu's method.
"""
from __future__ import annotations

import logging
from typing import Tuple

import numpy as np

from .raster import PixelBuffer

logger = logging.getLogger(__name__)

# Luma weights (ITU-R BT.601)
LUMA_WEIGHTS = (0.299, 0.587, 0.114)

DARK_PAGE_MEAN = 128
LIGHT_BORDER_MEAN = 180
DARK_CENTER_MEAN = 160
MAX_BORDER_PX = 5


def to_grayscale(rgb: np.ndarray) -> np.ndarray:
    """
    Luma of an H×W×3(+) array, rounded to whole levels.

    Returns:
        H×W float array with values in [0, 255].
    """
    r, g, b = (rgb[..., i].astype(np.float64) for i in range(3))
    luma = r * LUMA_WEIGHTS[0] + g * LUMA_WEIGHTS[1] + b * LUMA_WEIGHTS[2]
    return np.clip(np.floor(luma + 0.5), 0, 255)


def stretch_contrast(gray: np.ndarray) -> np.ndarray:
    """Map the observed [min, max] range linearly onto [0, 255]."""
    low = float(gray.min())
    high = float(gray.max())
    if high <= low:
        return gray
    return np.floor((gray - low) / (high - low) * 255 + 0.5)


def border_width(width: int, height: int) -> int:
    return min(MAX_BORDER_PX, min(width, height) // 4)


def region_means(gray: np.ndarray) -> Tuple[float, float]:
    """
    Mean brightness of the border frame and of the central region.

    The border frame is taken as background, the middle 50% × 50%
    as the subject. Empty regions report white / the global mean.
    """
    h, w = gray.shape
    size = border_width(w, h)

    if size > 0:
        frame = np.ones((h, w), dtype=bool)
        frame[size:h - size, size:w - size] = False
        border_mean = float(gray[frame].mean())
    else:
        border_mean = 255.0

    center = gray[int(h * 0.25):int(h * 0.75), int(w * 0.25):int(w * 0.75)]
    center_mean = float(center.mean()) if center.size else float(gray.mean())
    return border_mean, center_mean


def should_invert(global_mean: float, border_mean: float, center_mean: float) -> bool:
    """
    Decide whether the image must be inverted for recognition.

    Dark pages (light text on dark) are inverted, as are light pages
    whose center holds a dark shape with text inside it.
    """
    if global_mean < DARK_PAGE_MEAN:
        return True
    return border_mean > LIGHT_BORDER_MEAN and center_mean < DARK_CENTER_MEAN


def otsu_threshold(histogram: np.ndarray) -> int:
    """
    Otsu's threshold for a 256-bin histogram.

    Pixels with value <= threshold form the dark class. When several
    consecutive thresholds share the maximal between-class variance
    (empty bins between the classes) the middle one is returned; all
    of them split the pixels identically.

    Args:
        histogram: Pixel count per gray level.

    Returns:
        Threshold in [0, 255].
    """
    hist = np.asarray(histogram, dtype=np.float64)
    total = hist.sum()
    if total == 0:
        return 0

    weighted_total = float(np.dot(np.arange(len(hist)), hist))
    sum_b = 0.0
    weight_b = 0.0
    max_var = 0.0
    best_start = best_end = 0

    for t in range(len(hist)):
        weight_b += hist[t]
        if weight_b == 0:
            continue
        weight_f = total - weight_b
        if weight_f == 0:
            break

        sum_b += t * hist[t]
        mean_b = sum_b / weight_b
        mean_f = (weighted_total - sum_b) / weight_f
        var_between = weight_b * weight_f * (mean_b - mean_f) ** 2

        if var_between > max_var:
            max_var = var_between
            best_start = best_end = t
        elif var_between == max_var and max_var > 0 and best_end == t - 1:
            best_end = t

    return (best_start + best_end) // 2


def binarize(gray: np.ndarray, threshold: int) -> np.ndarray:
    """Pixels above threshold become white, the rest black."""
    return np.where(gray > threshold, 255, 0).astype(np.uint8)


def _normalize(raster: PixelBuffer) -> PixelBuffer:
    rgba = raster.flatten().to_array()
    gray = to_grayscale(rgba)
    global_mean = float(gray.mean())

    gray = stretch_contrast(gray)

    border_mean, center_mean = region_means(gray)
    if should_invert(global_mean, border_mean, center_mean):
        logger.debug(
            f"Inverting block (global {global_mean:.0f}, "
            f"border {border_mean:.0f}, center {center_mean:.0f})"
        )
        gray = 255 - gray

    levels = gray.astype(np.uint8)
    histogram = np.bincount(levels.ravel(), minlength=256)
    threshold = otsu_threshold(histogram)
    bw = binarize(levels, threshold)

    return PixelBuffer.from_array(np.dstack([bw, bw, bw]))


def preprocess_for_ocr(raster: PixelBuffer) -> PixelBuffer:
    """
    Normalize a block image for recognition.

    Args:
        raster: Block image, possibly with transparency.

    Returns:
        Opaque black/white image of the same size. On failure the
        input is returned unchanged.
    """
    try:
        return _normalize(raster)
    except (ValueError, OSError, MemoryError) as e:
        logger.warning(f"OCR preprocessing failed, using original image: {e}")
        return raster
