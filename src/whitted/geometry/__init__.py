"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with numerically stable ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) returning a HitRecord
whose distance is negative when the ray misses.
"""

from .sphere import (
    MISS_DISTANCE,
    HitRecord,
    Sphere,
    hit_sphere,
    make_miss_record,
    sphere_normal,
)

__all__ = [
    "Sphere",
    "HitRecord",
    "MISS_DISTANCE",
    "hit_sphere",
    "make_miss_record",
    "sphere_normal",
]
