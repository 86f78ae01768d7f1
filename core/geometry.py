"""
Coordinate and bounding-box utilities.

Converts between pixel coordinates and PowerPoint EMUs (English Metric Units)
and computes the rectangles used by detection and merging.
"""
from __future__ import annotations

import math
from typing import Iterable, Tuple

# Constants
EMU_PER_INCH = 914400  # 1 inch = 914400 EMU
POINTS_PER_INCH = 72

Rect = Tuple[int, int, int, int]  # (x, y, width, height)


def inches_to_emu(inches: float) -> int:
    """
    Convert inches to EMU.

    Example:
        >>> inches_to_emu(10)
        9144000
    """
    return int(round(inches * EMU_PER_INCH))


def px_to_emu(pixels: float, emu_per_px: float) -> int:
    """
    Convert a pixel length to EMU with a page-specific scale.

    Args:
        pixels: Length in source pixels.
        emu_per_px: EMU per source pixel (slide width / page width).

    Returns:
        EMU value as integer.
    """
    return int(round(pixels * emu_per_px))


def calculate_slide_dimensions(
    image_width_px: int,
    image_height_px: int,
    slide_width_inches: float = 10
) -> Tuple[int, int]:
    """
    Calculate slide dimensions from image size.

    The slide has a fixed width; its height follows the image's
    aspect ratio.

    Args:
        image_width_px: Image width in pixels.
        image_height_px: Image height in pixels.
        slide_width_inches: Slide width (default: 10 inches).

    Returns:
        Tuple of (width_emu, height_emu).

    Example:
        >>> calculate_slide_dimensions(2000, 1500)  # 4:3
        (9144000, 6858000)
    """
    width_emu = inches_to_emu(slide_width_inches)
    height_emu = int(round(width_emu / get_aspect_ratio(image_width_px, image_height_px)))
    return (width_emu, height_emu)


def get_aspect_ratio(width: int, height: int) -> float:
    """
    Calculate aspect ratio (width / height).

    Raises:
        ValueError: If height is zero.
    """
    if height == 0:
        raise ValueError("Height cannot be zero")
    return width / height


def union_bbox(rects: Iterable[Rect]) -> Rect:
    """
    Smallest axis-aligned rectangle containing all rectangles.

    Raises:
        ValueError: If no rectangle is given.

    Example:
        >>> union_bbox([(0, 0, 10, 10), (20, 0, 10, 10), (0, 20, 10, 10)])
        (0, 0, 30, 30)
    """
    rects = list(rects)
    if not rects:
        raise ValueError("union_bbox() needs at least one rectangle")
    min_x = min(r[0] for r in rects)
    min_y = min(r[1] for r in rects)
    max_x = max(r[0] + r[2] for r in rects)
    max_y = max(r[1] + r[3] for r in rects)
    return (min_x, min_y, max_x - min_x, max_y - min_y)


def scale_rect(
    x: int,
    y: int,
    width: int,
    height: int,
    scale: float
) -> Rect:
    """
    Map a rectangle from a resampled image back to the original.

    The origin is floored and the size rounded up, so the result
    always covers the scaled rectangle.

    Args:
        x: X coordinate in the resampled image.
        y: Y coordinate in the resampled image.
        width: Width in the resampled image.
        height: Height in the resampled image.
        scale: Resampled size / original size.

    Returns:
        Tuple of (x, y, width, height) in original pixels.
    """
    return (
        math.floor(x / scale),
        math.floor(y / scale),
        math.ceil(width / scale),
        math.ceil(height / scale),
    )


def clip_rect(rect: Rect, width: int, height: int) -> Rect:
    """Clip a rectangle to the bounds [0, width) × [0, height)."""
    x, y, w, h = rect
    x0 = min(max(x, 0), width)
    y0 = min(max(y, 0), height)
    x1 = min(max(x + w, 0), width)
    y1 = min(max(y + h, 0), height)
    return (x0, y0, x1 - x0, y1 - y0)
