"""Image sink and export utilities for rendered images.

The rendering core hands its result to an ImageSink, which only needs two
operations: ``set_pixel(x, y, color)`` and ``finalize()``. This module
provides that protocol, a NumPy-backed implementation, and the global
normalization applied before encoding:

    byte = (value - min) / (max - min) * 255

where min and max are taken over every channel of every pixel, so relative
brightness between channels is preserved.

Supported formats:
    - PNG and any other format Pillow infers from the file extension
      (RGB, or single-channel "L" for grayscale renders)

Example:
    >>> from whitted.output.export import ImageBuffer
    >>> sink = ImageBuffer(512, 512)
    >>> renderer.write_to(sink)
    >>> sink.save("output.png")
"""

from __future__ import annotations

from typing import Protocol

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage


class ImageSink(Protocol):
    """Receiver of a finished render."""

    def set_pixel(self, x: int, y: int, color: tuple[float, float, float]) -> None:
        """Store the float color of pixel (x, y), y = 0 being the top row."""
        ...

    def finalize(self) -> object:
        """Called once after every pixel has been set."""
        ...


def normalize_to_byte_range(
    image: npt.NDArray[np.floating[npt.NBitBase]],
) -> npt.NDArray[np.uint8]:
    """Map an image linearly so its minimum is 0 and its maximum 255.

    The minimum and maximum are global over all pixels and channels. A
    constant image maps to all zeros.

    Args:
        image: Float image of any shape.

    Returns:
        uint8 array of the same shape.
    """
    data = np.asarray(image, dtype=np.float64)
    if data.size == 0:
        return np.zeros(data.shape, dtype=np.uint8)

    lo = float(data.min())
    hi = float(data.max())
    if hi <= lo:
        return np.zeros(data.shape, dtype=np.uint8)

    scaled = (data - lo) / (hi - lo) * 255.0
    return np.clip(np.rint(scaled), 0, 255).astype(np.uint8)


def to_grayscale(image: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    """Collapse an (H, W, 3) image whose channels are equal to (H, W)."""
    if image.ndim == 2:
        return image
    return np.ascontiguousarray(image[..., 0])


def save_png_from_array(
    image: npt.NDArray[np.float32],
    filepath: str,
    *,
    grayscale: bool = False,
) -> None:
    """Normalize a float image to [0, 255] and save it.

    Args:
        image: Float image of shape (H, W, 3), or (H, W) for grayscale.
        filepath: Output file path (format from the extension).
        grayscale: Write a single-channel image from the first channel.
    """
    if grayscale:
        image_uint8 = normalize_to_byte_range(to_grayscale(image))
        pil_image = PILImage.fromarray(image_uint8, mode="L")
    else:
        image_uint8 = normalize_to_byte_range(image)
        pil_image = PILImage.fromarray(image_uint8, mode="RGB")
    pil_image.save(filepath)


class ImageBuffer:
    """NumPy-backed ImageSink.

    Collects float pixels, then normalizes them globally on finalize().

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        grayscale: Whether finalize() produces a single-channel image.
    """

    def __init__(self, width: int, height: int, *, grayscale: bool = False) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.grayscale = grayscale
        self._pixels = np.zeros((height, width, 3), dtype=np.float32)
        self._result: npt.NDArray[np.uint8] | None = None

    def set_pixel(self, x: int, y: int, color: tuple[float, float, float]) -> None:
        """Store the float color of pixel (x, y).

        Raises:
            IndexError: If (x, y) is outside the image.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")
        self._pixels[y, x] = color
        self._result = None

    @property
    def pixels(self) -> npt.NDArray[np.float32]:
        """The raw float pixels, shape (height, width, 3)."""
        return self._pixels

    def finalize(self) -> npt.NDArray[np.uint8]:
        """Normalize the collected pixels to bytes.

        Returns:
            uint8 array of shape (height, width, 3), or (height, width) when
            grayscale.
        """
        source = to_grayscale(self._pixels) if self.grayscale else self._pixels
        self._result = normalize_to_byte_range(source)
        return self._result

    def save(self, filepath: str) -> None:
        """Encode the finalized image with Pillow.

        Args:
            filepath: Output file path (format from the extension).
        """
        result = self._result if self._result is not None else self.finalize()
        mode = "L" if self.grayscale else "RGB"
        PILImage.fromarray(result, mode=mode).save(filepath)
