"""
PowerPoint slide generation module.

Creates PPTX files with one slide per page, placing every block as a
picture or as an editable text box at its source position.
"""
from __future__ import annotations

import io
import logging
import math
import threading
from pathlib import Path
from typing import List, Optional

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.text import MSO_ANCHOR, MSO_AUTO_SIZE, PP_ALIGN
from pptx.util import Emu, Pt

from config.defaults import (
    DEFAULT_EXPORT_FONT_PT,
    DEFAULT_FONT_FAMILY,
    EXPORT_FONT_HEIGHT_RATIO,
    SLIDE_WIDTH_INCHES,
)

from .exceptions import ExportError
from .geometry import (
    EMU_PER_INCH,
    POINTS_PER_INCH,
    calculate_slide_dimensions,
    px_to_emu,
)
from .models import Block, BlockKind, Page

logger = logging.getLogger(__name__)


class SlideBuilder:
    """
    Builds PowerPoint presentations from detected pages.

    Slides share one size: a fixed width and the first page's aspect
    ratio. Each page is scaled to the slide width.
    """

    def __init__(
        self,
        font_family: str = DEFAULT_FONT_FAMILY,
        slide_width_inches: float = SLIDE_WIDTH_INCHES
    ):
        """
        Initialize the slide builder.

        Args:
            font_family: Font used for recognized text.
            slide_width_inches: Slide width (default: 10 inches).
        """
        self.font_family = font_family
        self.slide_width_inches = slide_width_inches
        self.prs: Optional[Presentation] = None
        self._slide_width: int = 0
        self._slide_height: int = 0
        logger.info(f"SlideBuilder initialized with font: {font_family}")

    def create_presentation(self, first_page: Page) -> None:
        """
        Initialize a new presentation.

        Sets slide dimensions based on the first page's aspect ratio.
        """
        self.prs = Presentation()

        width_emu, height_emu = calculate_slide_dimensions(
            first_page.width,
            first_page.height,
            self.slide_width_inches
        )

        self.prs.slide_width = width_emu
        self.prs.slide_height = height_emu
        self._slide_width = width_emu
        self._slide_height = height_emu

        logger.info(
            f"Presentation created: {first_page.width}x{first_page.height}px "
            f"-> {width_emu}x{height_emu} EMU"
        )

    def build(
        self,
        pages: List[Page],
        stop_event: Optional[threading.Event] = None
    ) -> None:
        """
        Create a presentation holding every page.

        Raises:
            ExportError: If there are no pages.
        """
        if not pages:
            raise ExportError("Nothing to export: document has no pages")
        self.create_presentation(pages[0])
        for page in pages:
            if stop_event and stop_event.is_set():
                logger.debug("Export cancelled")
                return
            self.add_page(page)

    def add_page(self, page: Page) -> None:
        """
        Add a slide with all blocks of a page.

        Raises:
            RuntimeError: If presentation not initialized.
        """
        if self.prs is None:
            raise RuntimeError(
                "Presentation not initialized. Call create_presentation() first."
            )

        slide = self.prs.slides.add_slide(self._get_blank_layout())
        emu_per_px = self._slide_width / page.width

        for block in page.blocks:
            if block.kind == BlockKind.TEXT and block.text:
                if block.preserve_background:
                    self._add_picture(slide, block, emu_per_px)
                self._add_text_box(slide, block, emu_per_px)
            else:
                self._add_picture(slide, block, emu_per_px)

        logger.debug(f"Added slide for page {page.page_number} with {len(page.blocks)} blocks")

    def _get_blank_layout(self):
        """
        Get a blank slide layout.

        Tries index 6 first (standard blank), falls back to last layout.
        """
        if len(self.prs.slide_layouts) > 6:
            return self.prs.slide_layouts[6]
        return self.prs.slide_layouts[-1]

    def _add_picture(self, slide, block: Block, emu_per_px: float) -> None:
        """Place the block's image (PNG, keeps transparency)."""
        slide.shapes.add_picture(
            io.BytesIO(block.image.to_png_bytes()),
            Emu(px_to_emu(block.x, emu_per_px)),
            Emu(px_to_emu(block.y, emu_per_px)),
            Emu(px_to_emu(block.width, emu_per_px)),
            Emu(px_to_emu(block.height, emu_per_px)),
        )

    def font_size_for(self, block: Block, emu_per_px: float) -> int:
        """
        Font size in points for a text block.

        Derived from the recognized line height when known; the font
        is a bit smaller than its line box.
        """
        if block.text_line_height_px:
            height_inches = block.text_line_height_px * emu_per_px / EMU_PER_INCH
            size = height_inches * POINTS_PER_INCH * EXPORT_FONT_HEIGHT_RATIO
        elif block.font_size_pt:
            size = block.font_size_pt
        else:
            size = DEFAULT_EXPORT_FONT_PT
        return max(1, math.floor(size + 0.5))

    def _add_text_box(self, slide, block: Block, emu_per_px: float) -> None:
        """
        Add an editable, transparent text box over the block's area.
        """
        textbox = slide.shapes.add_textbox(
            Emu(px_to_emu(block.x, emu_per_px)),
            Emu(px_to_emu(block.y, emu_per_px)),
            Emu(px_to_emu(block.width, emu_per_px)),
            Emu(px_to_emu(block.height, emu_per_px)),
        )

        tf = textbox.text_frame
        tf.word_wrap = True
        tf.vertical_anchor = MSO_ANCHOR.TOP
        tf.auto_size = MSO_AUTO_SIZE.TEXT_TO_FIT_SHAPE
        tf.text = block.text

        size = Pt(self.font_size_for(block, emu_per_px))
        color = RGBColor(*(block.text_color or (0, 0, 0)))
        for paragraph in tf.paragraphs:
            paragraph.alignment = PP_ALIGN.LEFT
            for run in paragraph.runs:
                run.font.name = self.font_family
                run.font.size = size
                run.font.bold = bool(block.is_bold)
                run.font.color.rgb = color

        # Make text box transparent
        textbox.fill.background()
        textbox.line.fill.background()

    def save(self, output_path: Path) -> None:
        """
        Save the presentation to a file.

        Raises:
            RuntimeError: If no presentation to save.
            ExportError: If file cannot be written.
        """
        if self.prs is None:
            raise RuntimeError("No presentation to save.")

        try:
            self.prs.save(str(output_path))
            logger.info(f"Presentation saved to: {output_path}")
        except (OSError, ValueError) as e:
            logger.error(f"Failed to save presentation: {e}")
            raise ExportError(f"Failed to save presentation: {e}") from e

    @property
    def slide_count(self) -> int:
        """Get the number of slides in the presentation."""
        if self.prs is None:
            return 0
        return len(self.prs.slides)
