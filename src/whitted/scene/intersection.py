"""Scene-level ray queries: nearest hit and shadow occlusion.

This module stores the scene's spheres and point lights in Taichi fields and
answers the two queries the integrator needs:

- ``intersect_scene``: the closest hit with distance > 0 along a ray
- ``is_shadowed``: whether anything blocks a point's view of a light

Intersection is a linear scan over every sphere; there is no acceleration
structure. Lights carry a position and an un-clamped RGB color.

All positions and distances are single precision (``ti.f32``). The shadow
ray origin moves SHADOW_EPSILON along the light direction, so its distance
from the surface is only SHADOW_EPSILON * dot(n, L). For a light close to the
horizon (dot(n, L) around 1e-3) that is about 1e-7, below f32 resolution for
coordinates near 1, and the point may then shadow itself. The 0.1 ambient
floor hides this, since such a light contributes almost nothing anyway.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.scene.intersection import add_light, add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, 0.0), 1.0, material_id=0)
    0
    >>> add_light((0.0, 6.0, 2.0), (1.0, 1.0, 1.0))
    0
    >>> # Use intersect_scene / is_shadowed within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from whitted.core.ray import offset_point
from whitted.geometry.sphere import HitRecord, Sphere, hit_sphere, make_miss_record

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Maximum number of primitives and lights supported in the scene
MAX_SPHERES = 1024
MAX_LIGHTS = 64

# Shadow rays start this far from the surface, toward the light
SHADOW_EPSILON = 1e-4

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Point light storage
light_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all spheres and lights from the scene.

    Resets the counts to zero. The field data is not cleared but will be
    overwritten when new entries are added.
    """
    num_spheres[None] = 0
    num_lights[None] = 0


def add_sphere(center: tuple[float, float, float], radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere (must be positive).
        material_id: The material id to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        ValueError: If the radius is not positive.
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    if radius <= 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")

    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = vec3(center[0], center[1], center[2])
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def add_light(position: tuple[float, float, float], color: tuple[float, float, float]) -> int:
    """Add a point light to the scene.

    Args:
        position: The light position.
        color: The light color as (R, G, B). Components may exceed 1.0 to
            represent a brighter light but must not be negative.

    Returns:
        The index of the added light.

    Raises:
        ValueError: If a color component is negative.
        RuntimeError: If the maximum number of lights is exceeded.
    """
    for i, component in enumerate(color):
        if component < 0.0:
            raise ValueError(f"Light color component {i} = {component} is negative")

    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    light_positions[idx] = vec3(position[0], position[1], position[2])
    light_colors[idx] = vec3(color[0], color[1], color[2])
    num_lights[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_light_count() -> int:
    """Get the number of lights in the scene."""
    return int(num_lights[None])


@ti.func
def intersect_scene(ray_origin: vec3, ray_direction: vec3) -> HitRecord:
    """Find the closest hit in front of the ray origin.

    Tests every sphere and keeps the record with the smallest distance > 0.
    Hits at distance <= 0 are never selected. On exactly equal distances the
    first sphere tested wins.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.

    Returns:
        The closest HitRecord, or a miss record (distance < 0).
    """
    closest = make_miss_record()

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, sphere_material_ids[i])
        if rec.distance > 0.0:
            if closest.distance < 0.0 or rec.distance < closest.distance:
                closest = rec

    return closest


@ti.func
def is_shadowed(point: vec3, light_dir: vec3) -> ti.i32:
    """Test whether any sphere blocks the light seen from a point.

    The shadow ray starts SHADOW_EPSILON along light_dir so that it does not
    re-hit the surface it leaves. There is no distance bound toward the light:
    a sphere beyond the light still counts as an occluder.

    Args:
        point: The surface point being shaded.
        light_dir: Unit vector from the point toward the light.

    Returns:
        1 if the point is in shadow, 0 otherwise.
    """
    shadow_origin = offset_point(point, light_dir, SHADOW_EPSILON)
    rec = intersect_scene(shadow_origin, light_dir)
    shadowed = 0
    if rec.distance > 0.0:
        shadowed = 1
    return shadowed
