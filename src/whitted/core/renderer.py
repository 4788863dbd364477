"""Renderer facade: configuration, banded rendering and image hand-off.

This module provides a convenient wrapper around the integrator kernels that
supports:
- A single RenderConfig for resolution, field of view, depth and sampling
- Rendering in bands of rows with progress callbacks or a generator
- An optional deadline checked between bands
- Handing the finished image to an ImageSink or saving it directly

Every pixel is independent, so each band is one parallel kernel launch and
nothing needs to be locked. Global normalization happens only after the last
band, once all pixel values are known.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.core.renderer import RenderConfig, WhittedRenderer
    >>> from whitted.scene.default_scene import create_default_scene
    >>>
    >>> scene, camera = create_default_scene()
    >>> config = RenderConfig(width=512, height=512, fov_y=camera.fov_y)
    >>> renderer = WhittedRenderer(config, camera)
    >>> renderer.render()
    >>> renderer.save_image("spheres.png")
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Generator
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from whitted.camera.pinhole import set_projection, setup_camera
from whitted.core.integrator import (
    MAX_DEPTH,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    SAMPLES_PER_AXIS,
    SHADING_FACING,
    SHADING_PHONG,
    get_image_numpy,
    render_rows,
    setup_render_target,
)

if TYPE_CHECKING:
    from whitted.camera.pinhole import PinholeCamera
    from whitted.output.export import ImageSink

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]

SHADING_MODES = {
    "phong": SHADING_PHONG,
    "facing": SHADING_FACING,
}


@dataclass
class RenderConfig:
    """Settings consumed by the rendering core.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        fov_y: Vertical field-of-view parameter in radians (used as tan(fov_y)).
        max_depth: Reflection depth limit.
        samples_per_axis: N for the N x N sub-pixel grid.
        shading: "phong" for full Whitted shading, "facing" for the
            single-channel facing-ratio preview.
        tile_rows: Number of rows rendered per kernel launch.
    """

    width: int = 512
    height: int = 512
    fov_y: float = math.pi / 15.0
    max_depth: int = MAX_DEPTH
    samples_per_axis: int = SAMPLES_PER_AXIS
    shading: str = "phong"
    tile_rows: int = 64

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")
        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.samples_per_axis <= 0:
            raise ValueError(f"samples_per_axis must be positive, got {self.samples_per_axis}")
        if self.tile_rows <= 0:
            raise ValueError(f"tile_rows must be positive, got {self.tile_rows}")
        if self.shading not in SHADING_MODES:
            raise ValueError(
                f"Unknown shading mode: {self.shading!r} (expected one of {sorted(SHADING_MODES)})"
            )

    @property
    def grayscale(self) -> bool:
        """Whether the output is single-channel."""
        return self.shading == "facing"


class WhittedRenderer:
    """Render a configured scene into an image.

    The scene is set up beforehand with SceneManager. The camera pose comes
    from the camera passed in, or from the last setup_camera() call; the
    config always decides the field of view and resolution used for rays.

    Attributes:
        config: The render settings.
    """

    def __init__(self, config: RenderConfig, camera: PinholeCamera | None = None) -> None:
        """Initialize the renderer, the camera projection and the render target.

        Args:
            config: The render settings.
            camera: Optional camera to upload. Its resolution and fov_y must
                agree with the config.

        Raises:
            ValueError: If the camera disagrees with the config.
        """
        if camera is not None:
            if (camera.width, camera.height) != (config.width, config.height):
                raise ValueError(
                    f"Camera resolution {camera.width}x{camera.height} does not match "
                    f"render config {config.width}x{config.height}"
                )
            if not math.isclose(camera.fov_y, config.fov_y):
                raise ValueError(
                    f"Camera fov_y {camera.fov_y} does not match render config {config.fov_y}"
                )
            setup_camera(camera)

        self.config = config
        self._rows_done = 0
        set_projection(config.fov_y, config.width, config.height)
        setup_render_target(
            config.width,
            config.height,
            max_depth=config.max_depth,
            samples_per_axis=config.samples_per_axis,
            shading=SHADING_MODES[config.shading],
        )

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.config.width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.config.height

    @property
    def is_complete(self) -> bool:
        """Whether every row has been rendered."""
        return self._rows_done >= self.config.height

    def render_progressive(
        self,
        deadline: float | None = None,
    ) -> Generator[tuple[int, int], None, None]:
        """Render the image band by band, yielding after each band.

        Args:
            deadline: Optional time limit in seconds, checked before each band.

        Yields:
            Tuple of (rows_done, total_rows).

        Raises:
            TimeoutError: If the deadline passes before the image is complete.
        """
        total = self.config.height
        band = self.config.tile_rows
        self._rows_done = 0

        logger.info(
            "Rendering %dx%d, %d samples/pixel, max depth %d, %s shading",
            self.config.width,
            total,
            self.config.samples_per_axis**2,
            self.config.max_depth,
            self.config.shading,
        )
        start_time = time.perf_counter()

        for y_start in range(0, total, band):
            elapsed = time.perf_counter() - start_time
            if deadline is not None and elapsed > deadline:
                raise TimeoutError(
                    f"Render exceeded deadline of {deadline:.2f}s after "
                    f"{self._rows_done}/{total} rows"
                )

            y_end = min(y_start + band, total)
            render_rows(y_start, y_end)
            self._rows_done = y_end
            logger.debug("Rendered rows %d-%d", y_start, y_end - 1)
            yield (self._rows_done, total)

        logger.info("Render finished in %.2fs", time.perf_counter() - start_time)

    def render(
        self,
        callback: ProgressCallback | None = None,
        deadline: float | None = None,
    ) -> None:
        """Render the full image.

        Args:
            callback: Optional callback called after each band with
                (rows_done, total_rows).
            deadline: Optional time limit in seconds, checked before each band.

        Raises:
            TimeoutError: If the deadline passes before the image is complete.
        """
        for rows_done, total in self.render_progressive(deadline=deadline):
            if callback is not None:
                callback(rows_done, total)

    def _check_complete(self) -> None:
        if not self.is_complete:
            raise RuntimeError(
                f"Image is incomplete ({self._rows_done}/{self.config.height} rows). "
                "Call render() first."
            )

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the averaged float image, shape (height, width, 3), top row first."""
        self._check_complete()
        return get_image_numpy()

    def write_to(self, sink: ImageSink) -> None:
        """Hand every pixel to an image sink, then finalize it.

        Args:
            sink: Receives set_pixel(x, y, color) for every pixel and one
                finalize() call at the end.
        """
        image = self.get_image_numpy()
        for y in range(self.height):
            for x in range(self.width):
                r, g, b = image[y, x]
                sink.set_pixel(x, y, (float(r), float(g), float(b)))
        sink.finalize()

    def save_image(self, filepath: str) -> None:
        """Normalize the image to [0, 255] and save it.

        Args:
            filepath: Path to save the image (e.g., "output.png").
        """
        from whitted.output.export import save_png_from_array

        save_png_from_array(self.get_image_numpy(), filepath, grayscale=self.config.grayscale)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"WhittedRenderer(width={self.width}, height={self.height}, "
            f"rows_done={self._rows_done})"
        )
