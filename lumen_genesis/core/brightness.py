"""
Brightness sampling for uploaded images.

This module handles:
- Wrapping interleaved RGB(A) pixel data in a PixelBuffer
- Fitting a decoded image into the canvas (the offscreen sampling bitmap)
- ITU-R BT.601 luma per pixel and over a whole buffer
- Suggesting a soil threshold from the image's mean brightness
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np
import structlog
from PIL import Image

from ..exceptions import PixelBufferError

logger = structlog.get_logger()

# BT.601 luma weights
LUMA_R = 0.299
LUMA_G = 0.587
LUMA_B = 0.114


@dataclass(frozen=True)
class PixelBuffer:
    """Interleaved pixel data (row-major, ``channels`` values per pixel)."""

    data: np.ndarray
    width: int
    height: int
    channels: int = 4

    def __post_init__(self):
        if self.channels < 3:
            raise PixelBufferError(f"Need at least 3 channels, got {self.channels}")
        expected = self.width * self.height * self.channels
        if self.data.size != expected:
            raise PixelBufferError(
                f"Buffer holds {self.data.size} values, expected {expected} "
                f"for {self.width}x{self.height}x{self.channels}"
            )

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelBuffer":
        """
        Build a buffer from an image array.

        Args:
            array: ``(H, W)`` grayscale, ``(H, W, 3)`` RGB or ``(H, W, 4)`` RGBA

        Returns:
            PixelBuffer over a flat copy of the data
        """
        array = np.asarray(array)
        if array.ndim == 2:
            array = np.repeat(array[:, :, np.newaxis], 3, axis=2)
        if array.ndim != 3:
            raise PixelBufferError(f"Unsupported image array shape {array.shape}")
        height, width, channels = array.shape
        return cls(
            data=np.ascontiguousarray(array).reshape(-1),
            width=width,
            height=height,
            channels=channels,
        )

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to sample."""
        return self.data.size == 0

    def as_image_array(self) -> np.ndarray:
        """View the data as ``(H, W, channels)``."""
        return self.data.reshape(self.height, self.width, self.channels)


def luminance(r: float, g: float, b: float) -> float:
    """Luma of a single RGB triple on the 0-255 scale."""
    return r * LUMA_R + g * LUMA_G + b * LUMA_B


def pixel_luminance(buffer: PixelBuffer, x: int, y: int) -> Optional[float]:
    """Luma of pixel ``(x, y)``, or None when the buffer is empty."""
    if buffer.is_empty:
        return None
    idx = (x + y * buffer.width) * buffer.channels
    r, g, b = buffer.data[idx : idx + 3]
    return luminance(float(r), float(g), float(b))


def luminance_grid(buffer: Optional[PixelBuffer]) -> Optional[np.ndarray]:
    """
    Luma for every pixel of the buffer.

    Args:
        buffer: Pixel buffer, may be None before an image is loaded

    Returns:
        ``(H, W)`` float array, or None if there is no pixel data yet
    """
    if buffer is None or buffer.is_empty:
        logger.warning("Luminance requested before pixels are ready")
        return None
    rgb = buffer.as_image_array()[:, :, :3].astype(np.float64)
    return rgb[:, :, 0] * LUMA_R + rgb[:, :, 1] * LUMA_G + rgb[:, :, 2] * LUMA_B


def fitted_size(
    width: int, height: int, canvas_width: int, canvas_height: int, ratio: float = 0.8
) -> Tuple[float, float]:
    """
    Display size of an image scaled to fit the canvas.

    The image keeps its aspect ratio and fills ``ratio`` of the tighter axis.
    """
    scale = min(canvas_width / width, canvas_height / height) * ratio
    return width * scale, height * scale


def fit_image(
    image: Union[Image.Image, np.ndarray],
    canvas_width: int,
    canvas_height: int,
    ratio: float = 0.8,
) -> PixelBuffer:
    """
    Render a decoded image into the offscreen bitmap used for sampling.

    Args:
        image: Decoded PIL image or ``(H, W[, C])`` array
        canvas_width: Canvas width in pixels
        canvas_height: Canvas height in pixels
        ratio: Share of the canvas the image may fill

    Returns:
        RGBA PixelBuffer of size ``floor(w*s) x floor(h*s)``
    """
    if isinstance(image, np.ndarray):
        image = Image.fromarray(image.astype(np.uint8))
    display_w, display_h = fitted_size(
        image.width, image.height, canvas_width, canvas_height, ratio
    )
    size = (max(1, math.floor(display_w)), max(1, math.floor(display_h)))
    resized = image.convert("RGBA").resize(size, Image.Resampling.BILINEAR)

    logger.info(
        "Image fitted to canvas",
        source=(image.width, image.height),
        fitted=size,
    )
    return PixelBuffer.from_array(np.asarray(resized))


def suggest_threshold(buffer: Optional[PixelBuffer], skip: int = 4) -> int:
    """
    Suggest a threshold a little below the image's mean brightness.

    Every ``skip``-th pixel is sampled; an empty buffer counts as mid-grey.
    """
    grid = luminance_grid(buffer)
    samples = grid.reshape(-1)[::skip] if grid is not None else np.empty(0)
    avg_brightness = float(samples.mean()) if samples.size else 128.0
    return math.floor(avg_brightness * 0.7)
