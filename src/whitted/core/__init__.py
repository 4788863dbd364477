"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure and kernel-side vector utilities
    linalg: Host-side vector/matrix helpers (spherical coordinates, basis rotation)
    integrator: Phong shading, reflection tracing and supersampling kernels
    renderer: RenderConfig and the WhittedRenderer facade

All per-ray operations run inside Taichi kernels; one-time setup math runs
on the Python side with NumPy.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    make_ray,
    normalize,
    offset_point,
    ray_at,
    reflect_about,
    vec3,
)

# Note: integrator and renderer are NOT imported here to avoid circular imports
# (the integrator depends on camera and scene, which depend on this package).
#
# For rendering, use:
#   from whitted.core.renderer import RenderConfig, WhittedRenderer

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "normalize",
    "dot",
    "cross",
    "reflect_about",
    "offset_point",
]
