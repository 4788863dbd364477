"""Output module: image sink and export.

Components:
    export: ImageSink protocol, NumPy-backed ImageBuffer, global min/max
        normalization and Pillow-based saving

Example:
    >>> from whitted.output import ImageBuffer
    >>> sink = ImageBuffer(512, 512)
    >>> renderer.write_to(sink)
    >>> sink.save("output.png")
"""

from whitted.output.export import (
    ImageBuffer,
    ImageSink,
    normalize_to_byte_range,
    save_png_from_array,
    to_grayscale,
)

__all__ = [
    "ImageSink",
    "ImageBuffer",
    "normalize_to_byte_range",
    "save_png_from_array",
    "to_grayscale",
]
