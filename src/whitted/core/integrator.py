"""Whitted-style recursive ray tracing integrator.

This module implements the shading and image assembly kernels:

- ``shade_local``: Phong diffuse + specular over all point lights, with a
  binary shadow test per light and a 0.1 per-channel floor
- ``trace``: local shading plus the mirror-reflected ray weighted by the
  material's kr, cut off at a fixed maximum depth
- ``trace_facing``: single-channel facing-ratio shading (no lights)
- row-band kernels that supersample every pixel on a regular N x N grid
  and store the average in the render target

The reflection recursion ``trace(d) = local(d) + kr(d) * trace(d + 1)`` with
``trace(max_depth) = 0`` is evaluated as a loop that carries the product of
the kr values seen so far:

    color = sum over depth d of (kr(0) * ... * kr(d - 1)) * local(d)

The loop stops as soon as the ray escapes, the depth limit is reached or the
weight drops to exactly zero (a kr == 0 surface adds nothing beyond its own
local color).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.core.integrator import render_image, setup_render_target
    >>> from whitted.scene.default_scene import create_default_scene
    >>> from whitted.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_default_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(camera.width, camera.height)
    >>> render_image()
"""

import taichi as ti
import taichi.math as tm

from whitted.camera.pinhole import get_camera_origin, get_ray
from whitted.core.ray import make_ray, normalize, offset_point, reflect_about
from whitted.materials.phong import (
    eval_diffuse,
    eval_specular,
    get_material,
    get_material_kr,
)
from whitted.scene.intersection import (
    intersect_scene,
    is_shadowed,
    light_colors,
    light_positions,
    num_lights,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Maximum reflection depth; trace() at this depth returns black
MAX_DEPTH = 8

# Sub-pixel grid resolution per axis (3 x 3 = 9 samples per pixel)
SAMPLES_PER_AXIS = 3

# Reflection rays start this far from the surface
REFLECTION_EPSILON = 1e-3

# Per-channel lower bound of the local color (stands in for an ambient term)
AMBIENT_FLOOR = 0.1

# Color returned for rays that leave the scene
BACKGROUND_COLOR = vec3(0.0, 0.0, 0.0)

# Shading modes
SHADING_PHONG = 0
SHADING_FACING = 1

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Render settings
_max_depth = ti.field(dtype=ti.i32, shape=())
_samples_per_axis = ti.field(dtype=ti.i32, shape=())
_shading_mode = ti.field(dtype=ti.i32, shape=())

# Averaged color per pixel, indexed [x, y] with y = 0 at the top row
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Result of the single-ray, single-point and single-pixel helpers
_single_color = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_render_target(
    width: int,
    height: int,
    *,
    max_depth: int = MAX_DEPTH,
    samples_per_axis: int = SAMPLES_PER_AXIS,
    shading: int = SHADING_PHONG,
) -> None:
    """Initialize the render target and the render settings.

    The buffer is preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT; only
    the active region is rendered and read back.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).
        max_depth: Reflection depth limit.
        samples_per_axis: N for the N x N sub-pixel grid.
        shading: SHADING_PHONG or SHADING_FACING.

    Raises:
        ValueError: If a setting is out of range.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")
    if samples_per_axis <= 0:
        raise ValueError(f"samples_per_axis must be positive, got {samples_per_axis}")
    if shading not in (SHADING_PHONG, SHADING_FACING):
        raise ValueError(f"Unknown shading mode: {shading}")

    _image_width[None] = width
    _image_height[None] = height
    _max_depth[None] = max_depth
    _samples_per_axis[None] = samples_per_axis
    _shading_mode[None] = shading
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the color buffer to zero."""
    _color_buffer.fill(0.0)


def reset_render_target() -> None:
    """Clear the color buffer and mark the render target as not set up."""
    _render_target_initialized[None] = 0
    clear_render_target()


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Shading
# =============================================================================


@ti.func
def shade_local(
    point: vec3,
    normal: vec3,
    material_id: ti.i32,
    view_origin: vec3,
) -> vec3:
    """Compute the non-recursive Phong color of a surface point.

    Each light passes two filters before contributing: it must be on the
    front side of the surface (dot(normal, light_dir) >= 0) and the shadow
    ray toward it must be unobstructed. Surviving lights add a diffuse and a
    specular term. The sum is floored at AMBIENT_FLOOR per channel, so a
    point that no light reaches is exactly (0.1, 0.1, 0.1).

    Args:
        point: The surface point.
        normal: Unit outward normal at the point.
        material_id: Material of the surface.
        view_origin: Position of the viewer (the camera, also for bounces).

    Returns:
        The local RGB color.
    """
    material = get_material(material_id)
    view_dir = normalize(view_origin - point)

    color = vec3(0.0, 0.0, 0.0)
    for i in range(num_lights[None]):
        light_dir = normalize(light_positions[i] - point)

        front_facing = tm.dot(normal, light_dir) >= 0.0
        if front_facing:
            if is_shadowed(point, light_dir) == 0:
                color += eval_diffuse(material.color, material.kd, light_dir, normal)
                color += eval_specular(light_colors[i], material.ks, light_dir, normal, view_dir)

    return tm.max(color, vec3(AMBIENT_FLOOR, AMBIENT_FLOOR, AMBIENT_FLOOR))


@ti.func
def trace(ray_origin: vec3, ray_direction: vec3, depth: ti.i32, view_origin: vec3) -> vec3:
    """Trace a ray and its mirror reflections.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        depth: Depth of this ray; at or beyond the configured maximum the
            result is black.
        view_origin: Camera position used for the specular term.

    Returns:
        The shaded RGB color.
    """
    color = vec3(0.0, 0.0, 0.0)
    weight = 1.0
    origin = ray_origin
    direction = ray_direction

    # Active flag for path continuation (no break inside ti.func loops)
    active = 1

    for _ in range(depth, _max_depth[None]):
        if active == 1:
            hit = intersect_scene(origin, direction)

            if hit.distance < 0.0:
                color += weight * BACKGROUND_COLOR
                active = 0
            else:
                local = shade_local(hit.point, hit.normal, hit.material_id, view_origin)
                color += weight * local

                weight *= get_material_kr(hit.material_id)
                if weight == 0.0:
                    active = 0
                else:
                    reflected = make_ray(
                        hit.point, reflect_about(-direction, hit.normal)
                    )
                    origin = offset_point(reflected.origin, reflected.direction, REFLECTION_EPSILON)
                    direction = reflected.direction

    return color


@ti.func
def trace_facing(ray_origin: vec3, ray_direction: vec3) -> vec3:
    """Shade the nearest hit by its facing ratio dot(normal, -direction).

    This is the single-channel preview shading: no lights, no shadows and no
    reflections. Misses are 0.

    Returns:
        The facing ratio replicated into all three channels.
    """
    value = 0.0
    hit = intersect_scene(ray_origin, ray_direction)
    if hit.distance > 0.0:
        value = tm.dot(hit.normal, -ray_direction)
    return vec3(value, value, value)


@ti.func
def sample_pixel(pixel_x: ti.i32, pixel_y: ti.i32) -> vec3:
    """Average the traced color over the pixel's N x N sub-pixel grid.

    Sample k along an axis sits at offset (k + 0.5) / N inside the pixel.

    Args:
        pixel_x: Pixel column (0 = left).
        pixel_y: Pixel row (0 = top).

    Returns:
        The mean color of the N * N samples.
    """
    n = _samples_per_axis[None]
    inv_n = 1.0 / ti.cast(n, ti.f32)
    view_origin = get_camera_origin()

    total = vec3(0.0, 0.0, 0.0)
    for k in range(n):
        for l in range(n):
            px = ti.cast(pixel_x, ti.f32) + (ti.cast(k, ti.f32) + 0.5) * inv_n
            py = ti.cast(pixel_y, ti.f32) + (ti.cast(l, ti.f32) + 0.5) * inv_n
            ray = get_ray(px, py)

            if _shading_mode[None] == SHADING_FACING:
                total += trace_facing(ray.origin, ray.direction)
            else:
                total += trace(ray.origin, ray.direction, 0, view_origin)

    return total * inv_n * inv_n


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(y_start: ti.i32, y_end: ti.i32, width: ti.i32):
    """Render every pixel in rows [y_start, y_end).

    The outermost loop is parallelized by Taichi; pixels are independent so
    no synchronization is needed.
    """
    for i, j in ti.ndrange(width, (y_start, y_end)):
        _color_buffer[i, j] = sample_pixel(i, j)


@ti.kernel
def _render_single_pixel(pixel_x: ti.i32, pixel_y: ti.i32):
    """Render one pixel into the single-result field without touching the color buffer."""
    # Single-iteration outer loop keeps the sample loops serial
    for _ in range(1):
        _single_color[None] = sample_pixel(pixel_x, pixel_y)


@ti.kernel
def _trace_single_ray(origin: vec3, direction: vec3, depth: ti.i32, view_origin: vec3):
    """Trace one ray into the single-result field."""
    for _ in range(1):
        _single_color[None] = trace(origin, tm.normalize(direction), depth, view_origin)


@ti.kernel
def _shade_single_point(point: vec3, normal: vec3, material_id: ti.i32, view_origin: vec3):
    """Evaluate local shading at one point into the single-result field."""
    for _ in range(1):
        _single_color[None] = shade_local(point, tm.normalize(normal), material_id, view_origin)


def _read_single_color() -> tuple[float, float, float]:
    color = _single_color[None]
    return (float(color[0]), float(color[1]), float(color[2]))


# =============================================================================
# Public Rendering API
# =============================================================================


def render_rows(y_start: int, y_end: int) -> None:
    """Render a horizontal band of rows into the color buffer.

    Args:
        y_start: First row (inclusive, 0 = top).
        y_end: Last row (exclusive).

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the row range is outside the image.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    if not 0 <= y_start <= y_end <= height:
        raise ValueError(f"Invalid row range [{y_start}, {y_end}) for height {height}")
    if y_start == y_end:
        return
    _render_rows(y_start, y_end, width)


def render_image() -> None:
    """Render the whole image into the color buffer.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    _, height = get_image_dimensions()
    render_rows(0, height)


def render_pixel(pixel_x: int, pixel_y: int) -> tuple[float, float, float]:
    """Render a single pixel and return its averaged color.

    Useful for testing and debugging; the color buffer is not modified.

    Args:
        pixel_x: Pixel column (0 = left).
        pixel_y: Pixel row (0 = top).

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    _render_single_pixel(pixel_x, pixel_y)
    return _read_single_color()


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int = 0,
    view_origin: tuple[float, float, float] | None = None,
) -> tuple[float, float, float]:
    """Trace a single ray from Python.

    Uses the depth limit of the render target, so setup_render_target()
    must have been called.

    Args:
        origin: Ray origin.
        direction: Ray direction (normalized here).
        depth: Starting recursion depth.
        view_origin: Viewer position for the specular term. Defaults to the
            ray origin.

    Returns:
        Tuple of (R, G, B) color values.
    """
    _check_render_target_initialized()

    if view_origin is None:
        view_origin = origin
    _trace_single_ray(vec3(*origin), vec3(*direction), depth, vec3(*view_origin))
    return _read_single_color()


def shade_point(
    point: tuple[float, float, float],
    normal: tuple[float, float, float],
    material_id: int,
    view_origin: tuple[float, float, float],
) -> tuple[float, float, float]:
    """Evaluate local Phong shading at a point from Python.

    Args:
        point: The surface point.
        normal: The outward surface normal (normalized here).
        material_id: Material of the surface.
        view_origin: Viewer position.

    Returns:
        Tuple of (R, G, B) color values.
    """
    _shade_single_point(vec3(*point), vec3(*normal), material_id, vec3(*view_origin))
    return _read_single_color()


def get_image_numpy():
    """Get the rendered image as a NumPy array.

    Returns the averaged float colors without clamping or normalization.
    The array shape is (height, width, 3) with row 0 at the top.

    Returns:
        NumPy array of shape (height, width, 3), dtype float32.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    import numpy as np

    _check_render_target_initialized()

    width, height = get_image_dimensions()

    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # Transpose from (width, height, 3) to (height, width, 3)
    image = np.transpose(image, (1, 0, 2))

    return np.ascontiguousarray(image, dtype=np.float32)
