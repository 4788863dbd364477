"""Phong material: base color with diffuse, specular and reflective weights.

This module implements the classic empirical Phong reflectance terms used by
the Whitted integrator. A material carries:

- color: base RGB color in [0, 1], used by the diffuse term
- kd: diffuse coefficient
- ks: specular coefficient (scales the *light* color, not the base color)
- kr: mirror reflection weight applied to the recursively traced color

The terms for one light are:

    diffuse  = color * kd * dot(L, N)
    specular = light_color * ks * dot(V, R)^64,   R = reflect_about(L, N)

where L points from the surface to the light and V from the surface to the
camera. The specular base is not clamped: with the even exponent 64 a
negative dot(V, R) still produces a (tiny) positive highlight on the far
side of the reflection lobe.

Materials are stored in Taichi fields indexed by material id and are
read-only while rendering.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.materials.phong import add_phong_material
    >>> red = add_phong_material((0.8, 0.1, 0.1), kd=0.9, ks=0.5, kr=0.2)
"""

import taichi as ti
import taichi.math as tm

from whitted.core.ray import reflect_about

# Type alias for 3D vectors
vec3 = tm.vec3

# Exponent of the specular lobe
SPECULAR_EXPONENT = 64


@ti.dataclass
class PhongMaterial:
    """Phong material properties.

    Attributes:
        color: Base color (RGB, each component in [0, 1]).
        kd: Diffuse coefficient.
        ks: Specular coefficient.
        kr: Reflective coefficient.
    """

    color: vec3
    kd: ti.f32
    ks: ti.f32
    kr: ti.f32


@ti.func
def eval_diffuse(color: vec3, kd: ti.f32, light_dir: vec3, normal: vec3) -> vec3:
    """Evaluate the diffuse (view-independent) term for one light.

    Args:
        color: The material base color.
        kd: The diffuse coefficient.
        light_dir: Unit vector from the surface point toward the light.
        normal: Unit surface normal.

    Returns:
        color * kd * dot(light_dir, normal).
    """
    return color * kd * tm.dot(light_dir, normal)


@ti.func
def eval_specular(
    light_color: vec3,
    ks: ti.f32,
    light_dir: vec3,
    normal: vec3,
    view_dir: vec3,
) -> vec3:
    """Evaluate the specular (view-dependent) term for one light.

    Args:
        light_color: The light color (may exceed 1 to encode intensity).
        ks: The specular coefficient.
        light_dir: Unit vector from the surface point toward the light.
        normal: Unit surface normal.
        view_dir: Unit vector from the surface point toward the viewer.

    Returns:
        light_color * ks * dot(view_dir, reflected)^SPECULAR_EXPONENT.
    """
    reflected = tm.normalize(reflect_about(light_dir, normal))
    highlight = tm.dot(view_dir, reflected) ** SPECULAR_EXPONENT
    return light_color * ks * highlight


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of materials in the scene
MAX_MATERIALS = 256

# Storage for material properties (Structure of Arrays)
material_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_kd = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_ks = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_kr = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_phong_materials() -> None:
    """Clear all materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_materials[None] = 0


def add_phong_material(
    color: tuple[float, float, float],
    kd: float,
    ks: float,
    kr: float,
) -> int:
    """Add a Phong material to the material registry.

    Args:
        color: The base color as (R, G, B). Each component must be in [0, 1].
        kd: Diffuse coefficient (non-negative).
        ks: Specular coefficient (non-negative).
        kr: Reflective coefficient (non-negative).

    Returns:
        The id of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If a color component is outside [0, 1] or a coefficient
            is negative.
    """
    if len(color) != 3:
        raise ValueError(f"Color must have 3 components, got {len(color)}")
    for i, component in enumerate(color):
        if component < 0.0 or component > 1.0:
            raise ValueError(f"Color component {i} = {component} is outside [0, 1]")
    for name, value in (("kd", kd), ("ks", ks), ("kr", kr)):
        if value < 0.0:
            raise ValueError(f"Coefficient {name} must be non-negative, got {value}")

    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_colors[idx] = vec3(color[0], color[1], color[2])
    material_kd[idx] = kd
    material_ks[idx] = ks
    material_kr[idx] = kr
    num_materials[None] = idx + 1
    return idx


def get_material_count() -> int:
    """Get the number of materials in the registry."""
    return int(num_materials[None])


@ti.func
def get_material(material_id: ti.i32) -> PhongMaterial:
    """Look up a material by id.

    Args:
        material_id: The index of the material in the registry.

    Returns:
        The PhongMaterial stored under that id.
    """
    return PhongMaterial(
        color=material_colors[material_id],
        kd=material_kd[material_id],
        ks=material_ks[material_id],
        kr=material_kr[material_id],
    )


@ti.func
def get_material_kr(material_id: ti.i32) -> ti.f32:
    """Get the reflective coefficient of a material by id."""
    return material_kr[material_id]
