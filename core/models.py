"""
Page and block entities.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple

from .raster import PixelBuffer


class BlockKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"


class PageStatus(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"


@dataclass
class Block:
    """
    One rectangular content region of a page.

    Coordinates are native source-image pixels. The block owns its
    image, which has the same size as the rectangle and may carry
    transparency outside the detected shape.
    """

    id: str
    x: int
    y: int
    width: int
    height: int
    image: PixelBuffer
    kind: BlockKind = BlockKind.IMAGE
    text: Optional[str] = None
    font_size_pt: Optional[int] = None
    text_color: Optional[Tuple[int, int, int]] = None
    text_line_height_px: Optional[float] = None
    is_bold: Optional[bool] = None
    preserve_background: bool = False

    @property
    def right(self) -> int:
        """Right edge coordinate (exclusive)."""
        return self.x + self.width

    @property
    def bottom(self) -> int:
        """Bottom edge coordinate (exclusive)."""
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def bbox(self) -> Tuple[int, int, int, int]:
        """(x, y, width, height)."""
        return (self.x, self.y, self.width, self.height)

    @property
    def has_text(self) -> bool:
        return bool(self.text)

    def reset_recognition(self) -> None:
        """Forget OCR output so the block is recognized again."""
        self.text = None
        self.font_size_pt = None
        self.text_color = None
        self.text_line_height_px = None
        self.is_bold = None

    def clone(self) -> Block:
        """Deep copy, including the image."""
        return replace(self, image=self.image.copy())


@dataclass
class Page:
    """
    One source image and the blocks detected on it.

    `granularity` is the last requested detection parameter;
    `last_processed_granularity` is the one the current blocks were
    detected with. `generation` increases whenever a new request
    supersedes in-flight work.
    """

    id: str
    page_number: int
    source: PixelBuffer
    blocks: List[Block] = field(default_factory=list)
    status: PageStatus = PageStatus.IDLE
    granularity: int = 5
    last_processed_granularity: Optional[int] = None
    generation: int = 0

    @property
    def width(self) -> int:
        return self.source.width

    @property
    def height(self) -> int:
        return self.source.height

    def get_block(self, block_id: str) -> Optional[Block]:
        for block in self.blocks:
            if block.id == block_id:
                return block
        return None

    def needs_detection(self) -> bool:
        """True if never processed or the requested granularity is stale."""
        if self.status == PageStatus.IDLE:
            return True
        return self.last_processed_granularity != self.granularity

    def clone(self) -> Page:
        """
        Deep copy of the page and its blocks.

        The source raster is never mutated after loading, so the copy
        keeps a reference to it.
        """
        return replace(self, blocks=[b.clone() for b in self.blocks])
