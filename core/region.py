"""
Region extraction and block merging.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from .geometry import union_bbox
from .models import Block, BlockKind
from .raster import PixelBuffer

logger = logging.getLogger(__name__)


def extract_region(
    source: PixelBuffer,
    x: int,
    y: int,
    width: int,
    height: int
) -> PixelBuffer:
    """
    Copy a rectangle of the source image as a standalone image.

    No clamping is performed; the caller keeps the rectangle inside
    the source. The crop adds no transparency of its own.

    Raises:
        ValueError: If the rectangle is empty.
    """
    return source.crop(x, y, width, height)


def merge_blocks(
    source: PixelBuffer,
    blocks: Sequence[Block],
    block_id: str
) -> Optional[Block]:
    """
    Replace several blocks by one image block covering all of them.

    Args:
        source: Page source image.
        blocks: Blocks to merge.
        block_id: Id for the new block.

    Returns:
        New IMAGE block cropped from the source over the union
        bounding box, or None if fewer than 2 blocks were given or
        the crop failed.
    """
    if len(blocks) < 2:
        logger.debug(f"Merge needs at least 2 blocks, got {len(blocks)}")
        return None

    x, y, width, height = union_bbox(b.bbox for b in blocks)
    try:
        image = extract_region(source, x, y, width, height)
    except (ValueError, OSError) as e:
        logger.error(f"Failed to merge blocks: {e}")
        return None

    return Block(
        id=block_id,
        x=x,
        y=y,
        width=width,
        height=height,
        image=image,
        kind=BlockKind.IMAGE,
    )
