"""Ray data structure and vector utilities for the Whitted ray tracer.

This module provides the Ray dataclass and the small set of vector helpers the
tracer needs inside Taichi kernels: normalization, dot and cross products,
mirror reflection and self-intersection offsets.

Rays are built fresh for every primary, shadow and reflection cast and are
never mutated afterwards. ``make_ray`` normalizes the direction so that every
ray handed to the intersection routines carries a unit direction.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.core.ray import make_ray, ray_at, vec3
    >>> # Inside a Taichi kernel:
    >>> # ray = make_ray(vec3(0.0, 0.0, 5.0), vec3(0.0, 0.0, -3.0))
    >>> # point = ray_at(ray, 4.0)  # (0, 0, 1)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and a unit direction.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction of the ray (vec3, unit length when built
            through ``make_ray``).
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The distance along the ray. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from an origin and a (not necessarily unit) direction.

    The direction is normalized here, so callers may pass raw offsets such as
    ``light_position - point``.

    Args:
        origin: The starting point of the ray.
        direction: The direction vector. Must not be zero-length.

    Returns:
        A new Ray with a unit direction.
    """
    return Ray(origin=origin, direction=normalize(direction))


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Normalizing a zero vector is a precondition violation. With
    ``ti.init(debug=True)`` the assertion below stops the kernel instead of
    letting NaN propagate through the image.

    Args:
        v: The input vector (non-zero).

    Returns:
        A unit vector in the same direction as v.
    """
    norm = tm.length(v)
    assert norm > 0.0, "cannot normalize a zero-length vector"
    return v / norm


@ti.func
def reflect_about(v: vec3, axis: vec3) -> vec3:
    """Mirror a vector about an axis.

    Computes ``2 * dot(axis, v) * axis - v``. Unlike the usual ``reflect``
    convention the input points *away* from the surface (toward a light, or
    back along an incoming ray), and so does the result.

    For a unit axis the reflection preserves both the length of ``v`` and its
    projection onto the axis.

    Args:
        v: The vector to reflect.
        axis: The reflection axis, typically the unit surface normal.

    Returns:
        The mirrored vector.
    """
    return 2.0 * tm.dot(axis, v) * axis - v


@ti.func
def offset_point(point: vec3, direction: vec3, epsilon: ti.f32) -> vec3:
    """Push a point a small distance along a direction.

    Used to start shadow and reflection rays just off the surface they leave
    so that round-off does not make them hit that surface again.

    Args:
        point: The surface point.
        direction: The direction the new ray will travel (unit length).
        epsilon: The offset distance.

    Returns:
        point + epsilon * direction.
    """
    return point + epsilon * direction
