"""Tests for the renderer facade.

This module tests the WhittedRenderer class including:
- RenderConfig validation
- Banded rendering with progress callbacks and generators
- Deadline handling
- Handing the image to an ImageSink
- Image output

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

import logging
import math
import os
import tempfile

import numpy as np
import pytest
from PIL import Image as PILImage


def _setup_small_scene(width=16, height=12):
    """A lit unit sphere in front of an identity camera with the default fov_y."""
    from whitted.camera.pinhole import PinholeCamera, setup_camera
    from whitted.scene.manager import SceneManager

    scene = SceneManager()
    scene.add_phong_sphere((0.0, 0.0, 0.0), 1.0, color=(0.8, 0.4, 0.2), kd=1.0, ks=0.5, kr=0.3)
    scene.add_light((2.0, 4.0, 5.0), (1.0, 1.0, 1.0))
    setup_camera(PinholeCamera(fov_y=math.pi / 15, width=width, height=height, position=(0.0, 0.0, 5.0)))
    return scene


class TestRenderConfig:
    """Test RenderConfig validation."""

    def test_defaults(self):
        """Test the defaults match the demo scene settings."""
        from whitted.core.renderer import RenderConfig

        config = RenderConfig()
        assert config.width == 512
        assert config.height == 512
        assert abs(config.fov_y - math.pi / 15) < 1e-12
        assert config.max_depth == 8
        assert config.samples_per_axis == 3
        assert config.shading == "phong"
        assert not config.grayscale

    def test_facing_is_grayscale(self):
        """Test the facing shading mode produces single-channel output."""
        from whitted.core.renderer import RenderConfig

        assert RenderConfig(shading="facing").grayscale

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"width": 0}, "must be positive"),
            ({"height": -4}, "must be positive"),
            ({"width": 4096}, "exceed maximum"),
            ({"max_depth": -1}, "max_depth"),
            ({"samples_per_axis": 0}, "samples_per_axis"),
            ({"tile_rows": 0}, "tile_rows"),
            ({"shading": "toon"}, "Unknown shading mode"),
        ],
    )
    def test_invalid_config(self, kwargs, message):
        """Test invalid settings raise ValueError."""
        from whitted.core.renderer import RenderConfig

        with pytest.raises(ValueError, match=message):
            RenderConfig(**kwargs)


class TestWhittedRendererRender:
    """Test rendering through the facade."""

    def test_init(self):
        """Test the renderer exposes its dimensions and starts incomplete."""
        from whitted.core.renderer import RenderConfig, WhittedRenderer

        renderer = WhittedRenderer(RenderConfig(width=32, height=24))
        assert renderer.width == 32
        assert renderer.height == 24
        assert not renderer.is_complete
        assert "rows_done=0" in repr(renderer)

    def test_render_completes(self):
        """Test render() marks the image complete and fills the buffer."""
        from whitted.core.renderer import RenderConfig, WhittedRenderer

        _setup_small_scene()
        renderer = WhittedRenderer(RenderConfig(width=16, height=12, tile_rows=5))
        renderer.render()

        assert renderer.is_complete
        image = renderer.get_image_numpy()
        assert image.shape == (12, 16, 3)
        assert image.max() > 0.1
        # Corners see only the background
        assert np.all(image[0, 0] == 0.0)

    def test_progress_callback(self):
        """Test the callback receives the row count after every band."""
        from whitted.core.renderer import RenderConfig, WhittedRenderer

        _setup_small_scene()
        renderer = WhittedRenderer(RenderConfig(width=16, height=12, tile_rows=5))

        calls = []
        renderer.render(callback=lambda done, total: calls.append((done, total)))

        assert calls == [(5, 12), (10, 12), (12, 12)]

    def test_render_progressive_generator(self):
        """Test the generator yields once per band."""
        from whitted.core.renderer import RenderConfig, WhittedRenderer

        _setup_small_scene()
        renderer = WhittedRenderer(RenderConfig(width=16, height=12, tile_rows=4))

        progress = list(renderer.render_progressive())
        assert progress == [(4, 12), (8, 12), (12, 12)]
        assert renderer.is_complete

    def test_partial_render_is_incomplete(self):
        """Test stopping the generator early leaves the image incomplete."""
        from whitted.core.renderer import RenderConfig, WhittedRenderer

        _setup_small_scene()
        renderer = WhittedRenderer(RenderConfig(width=16, height=12, tile_rows=4))

        gen = renderer.render_progressive()
        next(gen)
        assert not renderer.is_complete
        with pytest.raises(RuntimeError, match="incomplete"):
            renderer.get_image_numpy()

    def test_deadline_exceeded(self):
        """Test a negative deadline fails before the first band."""
        from whitted.core.renderer import RenderConfig, WhittedRenderer

        _setup_small_scene()
        renderer = WhittedRenderer(RenderConfig(width=16, height=12))

        with pytest.raises(TimeoutError, match="deadline"):
            renderer.render(deadline=-1.0)
        assert not renderer.is_complete

    def test_render_logs_progress(self, caplog):
        """Test start and finish are logged at INFO."""
        from whitted.core.renderer import RenderConfig, WhittedRenderer

        _setup_small_scene()
        renderer = WhittedRenderer(RenderConfig(width=16, height=12))

        with caplog.at_level(logging.INFO, logger="whitted.core.renderer"):
            renderer.render()

        messages = [record.getMessage() for record in caplog.records]
        assert any("Rendering 16x12" in m for m in messages)
        assert any("Render finished" in m for m in messages)

    def test_rendering_is_deterministic(self):
        """Test two renders of the same scene are identical."""
        from whitted.core.renderer import RenderConfig, WhittedRenderer

        _setup_small_scene()
        first = WhittedRenderer(RenderConfig(width=16, height=12))
        first.render()
        image_a = first.get_image_numpy().copy()

        second = WhittedRenderer(RenderConfig(width=16, height=12))
        second.render()
        image_b = second.get_image_numpy()

        assert np.array_equal(image_a, image_b)


class TestWhittedRendererCamera:
    """Test the config drives the camera projection."""

    def test_config_fov_changes_render(self):
        """Test a narrower config fov_y fills the corners that a wide one leaves empty."""
        from whitted.camera.pinhole import get_camera_info
        from whitted.core.renderer import RenderConfig, WhittedRenderer

        _setup_small_scene(width=8, height=8)

        wide = WhittedRenderer(RenderConfig(width=8, height=8, fov_y=0.5))
        assert abs(get_camera_info()["scale"] - math.tan(0.5)) < 1e-6
        wide.render()
        wide_image = wide.get_image_numpy().copy()

        narrow = WhittedRenderer(RenderConfig(width=8, height=8, fov_y=0.01))
        assert abs(get_camera_info()["scale"] - math.tan(0.01)) < 1e-6
        narrow.render()
        narrow_image = narrow.get_image_numpy()

        assert np.all(wide_image[0, 0] == 0.0)
        assert np.all(narrow_image[0, 0] >= 0.1 - 1e-5)
        assert not np.array_equal(wide_image, narrow_image)

    def test_config_resolution_overrides_camera(self):
        """Test rays are spread over the config resolution, not the last camera's."""
        from whitted.camera.pinhole import PinholeCamera, get_camera_info, setup_camera
        from whitted.core.renderer import RenderConfig, WhittedRenderer

        _setup_small_scene()
        setup_camera(PinholeCamera(fov_y=0.5, width=16, height=16, position=(0.0, 0.0, 5.0)))

        renderer = WhittedRenderer(RenderConfig(width=8, height=8, fov_y=0.5))
        info = get_camera_info()
        assert (info["width"], info["height"]) == (8, 8)

        renderer.render()
        image = renderer.get_image_numpy()
        # The sphere sits in the middle of the image, the corners stay empty
        assert np.all(image[4, 4] >= 0.1 - 1e-5)
        assert np.all(image[7, 7] == 0.0)

    def test_camera_argument_is_uploaded(self):
        """Test a camera passed to the renderer replaces the current pose."""
        from whitted.camera.pinhole import PinholeCamera, get_camera_info
        from whitted.core.renderer import RenderConfig, WhittedRenderer

        _setup_small_scene(width=8, height=8)
        camera = PinholeCamera(fov_y=0.3, width=8, height=8, position=(1.0, 2.0, 9.0))

        WhittedRenderer(RenderConfig(width=8, height=8, fov_y=0.3), camera)
        info = get_camera_info()
        assert np.allclose(info["origin"], (1.0, 2.0, 9.0))
        assert abs(info["scale"] - math.tan(0.3)) < 1e-6

    @pytest.mark.parametrize(
        "camera_kwargs, message",
        [
            ({"fov_y": 0.3, "width": 16, "height": 8}, "resolution"),
            ({"fov_y": 0.3, "width": 8, "height": 16}, "resolution"),
            ({"fov_y": 0.6, "width": 8, "height": 8}, "fov_y"),
        ],
    )
    def test_camera_mismatch_raises(self, camera_kwargs, message):
        """Test a camera that disagrees with the config is rejected."""
        from whitted.camera.pinhole import PinholeCamera
        from whitted.core.renderer import RenderConfig, WhittedRenderer

        with pytest.raises(ValueError, match=message):
            WhittedRenderer(RenderConfig(width=8, height=8, fov_y=0.3), PinholeCamera(**camera_kwargs))


class TestWhittedRendererOutput:
    """Test image hand-off and saving."""

    def test_write_to_sink(self):
        """Test every pixel reaches the sink before finalize()."""
        from whitted.core.renderer import RenderConfig, WhittedRenderer
        from whitted.output.export import ImageBuffer

        _setup_small_scene()
        renderer = WhittedRenderer(RenderConfig(width=16, height=12))
        renderer.render()

        sink = ImageBuffer(16, 12)
        renderer.write_to(sink)

        assert np.allclose(sink.pixels, renderer.get_image_numpy())

    def test_write_to_calls_finalize_once(self):
        """Test the sink protocol order: set_pixel for each pixel, then finalize."""
        from whitted.core.renderer import RenderConfig, WhittedRenderer

        class RecordingSink:
            def __init__(self):
                self.pixels = {}
                self.finalized = 0

            def set_pixel(self, x, y, color):
                assert self.finalized == 0
                self.pixels[(x, y)] = color

            def finalize(self):
                self.finalized += 1

        _setup_small_scene(width=5, height=3)
        renderer = WhittedRenderer(RenderConfig(width=5, height=3))
        renderer.render()

        sink = RecordingSink()
        renderer.write_to(sink)

        assert len(sink.pixels) == 15
        assert sink.finalized == 1

    def test_write_to_before_render_raises(self):
        """Test an incomplete image cannot be handed off."""
        from whitted.core.renderer import RenderConfig, WhittedRenderer
        from whitted.output.export import ImageBuffer

        renderer = WhittedRenderer(RenderConfig(width=4, height=4))
        with pytest.raises(RuntimeError):
            renderer.write_to(ImageBuffer(4, 4))

    @pytest.mark.parametrize("shading, mode", [("phong", "RGB"), ("facing", "L")])
    def test_save_image(self, shading, mode):
        """Test save_image writes a normalized PNG in the matching mode."""
        from whitted.core.renderer import RenderConfig, WhittedRenderer

        _setup_small_scene()
        renderer = WhittedRenderer(RenderConfig(width=16, height=12, shading=shading))
        renderer.render()

        with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as f:
            filepath = f.name

        try:
            renderer.save_image(filepath)

            img = PILImage.open(filepath)
            assert img.size == (16, 12)
            assert img.mode == mode
            pixels = np.asarray(img)
            assert pixels.min() == 0
            assert pixels.max() == 255
        finally:
            if os.path.exists(filepath):
                os.remove(filepath)
