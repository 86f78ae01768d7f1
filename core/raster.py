"""
Raster image container.

Wraps a decoded RGBA Pillow image and provides the sub-region and
resampling operations used by detection, merging and OCR.
"""
from __future__ import annotations

import io
from pathlib import Path
from typing import Tuple, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from .exceptions import RasterDecodeError

RGB = Tuple[int, int, int]
WHITE: RGB = (255, 255, 255)

RasterSource = Union[bytes, str, Path, Image.Image, "PixelBuffer"]


class PixelBuffer:
    """
    Owned RGBA raster.

    Every operation returns a new, independent buffer; the wrapped
    image is never shared between two buffers.
    """

    def __init__(self, image: Image.Image):
        """
        Initialize from a Pillow image.

        Args:
            image: Source image. Converted (copied) to RGBA.
        """
        if image.mode == "RGBA":
            self._image = image.copy()
        else:
            self._image = image.convert("RGBA")

    @classmethod
    def decode(cls, source: RasterSource) -> PixelBuffer:
        """
        Decode a raster from encoded bytes, a file path or an image.

        Args:
            source: PNG/JPEG bytes, path to an image file, PIL image
                or an existing PixelBuffer.

        Returns:
            Decoded PixelBuffer.

        Raises:
            RasterDecodeError: If the data cannot be decoded.
        """
        if isinstance(source, PixelBuffer):
            return source.copy()
        if isinstance(source, Image.Image):
            return cls(source)

        try:
            if isinstance(source, (bytes, bytearray)):
                stream = io.BytesIO(source)
                with Image.open(stream) as img:
                    img.load()
                    return cls(img)
            with Image.open(Path(source)) as img:
                img.load()
                return cls(img)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise RasterDecodeError(f"Cannot decode image: {e}") from e

    @classmethod
    def from_array(cls, array: np.ndarray) -> PixelBuffer:
        """
        Build a buffer from an H×W (gray), H×W×3 (RGB) or H×W×4 (RGBA) array.
        """
        data = np.ascontiguousarray(np.clip(array, 0, 255).astype(np.uint8))
        if data.ndim == 2 or (data.ndim == 3 and data.shape[2] in (3, 4)):
            return cls(Image.fromarray(data))
        raise ValueError(f"Unsupported array shape: {array.shape}")

    @classmethod
    def blank(cls, width: int, height: int, color=(255, 255, 255, 255)) -> PixelBuffer:
        """Create a buffer filled with a single color."""
        if len(color) == 3:
            color = (*color, 255)
        return cls(Image.new("RGBA", (width, height), tuple(color)))

    @property
    def width(self) -> int:
        return self._image.width

    @property
    def height(self) -> int:
        return self._image.height

    @property
    def size(self) -> Tuple[int, int]:
        return self._image.size

    def to_array(self) -> np.ndarray:
        """Return an H×W×4 uint8 copy of the samples."""
        return np.array(self._image, dtype=np.uint8)

    def to_image(self) -> Image.Image:
        """Return a copy of the wrapped image."""
        return self._image.copy()

    def copy(self) -> PixelBuffer:
        return PixelBuffer(self._image)

    def crop(self, x: int, y: int, width: int, height: int) -> PixelBuffer:
        """
        Copy a rectangle of the raster.

        Areas of the rectangle outside the raster become transparent.

        Args:
            x: Left edge.
            y: Top edge.
            width: Rectangle width (> 0).
            height: Rectangle height (> 0).

        Returns:
            New PixelBuffer of exactly width × height.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid crop size: {width}x{height}")
        return PixelBuffer(self._image.crop((x, y, x + width, y + height)))

    def resize(self, width: int, height: int, smooth: bool = True) -> PixelBuffer:
        """Resample to a new size (bilinear when smooth, nearest otherwise)."""
        resample = Image.Resampling.BILINEAR if smooth else Image.Resampling.NEAREST
        return PixelBuffer(self._image.resize((width, height), resample))

    def flatten(self, background: RGB = WHITE) -> PixelBuffer:
        """
        Composite onto an opaque background color.

        Transparent pixels take the background color; the result is
        fully opaque.
        """
        base = Image.new("RGBA", self._image.size, (*background, 255))
        base.alpha_composite(self._image)
        return PixelBuffer(base)

    def to_png_bytes(self) -> bytes:
        """Encode as PNG (lossless, keeps transparency)."""
        stream = io.BytesIO()
        self._image.save(stream, format="PNG")
        return stream.getvalue()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.size == other.size and np.array_equal(self.to_array(), other.to_array())

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height})"
