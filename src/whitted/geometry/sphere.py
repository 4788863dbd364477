"""Sphere primitive with numerically stable ray-sphere intersection.

This module provides a Sphere dataclass, the HitRecord produced by every
intersection test, and the intersection routine itself.

The ray-sphere intersection solves

    a*t^2 + b*t + c = 0

with a = dot(d, d), b = 2 * dot(o - center, d) and
c = |o - center|^2 - radius^2. Both roots come from the stable form

    q = -0.5 * (b + sign(b) * sqrt(b^2 - 4ac))
    t1 = q / a,  t2 = c / q

which avoids the catastrophic cancellation the textbook (-b +- sqrt(D)) / 2a
suffers when b^2 is much larger than 4ac.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.geometry.sphere import Sphere, hit_sphere, vec3
    >>> # Inside a Taichi kernel:
    >>> # rec = hit_sphere(origin, direction, Sphere(center=vec3(0.0), radius=1.0), 0)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Distance stored in a HitRecord that did not hit anything
MISS_DISTANCE = -1.0


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (strictly positive).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        distance: Distance along the ray to the hit. Negative (MISS_DISTANCE)
            means no hit; every other field is then meaningless.
        point: The 3D point where the ray met the surface.
        normal: Unit surface normal at the hit, always pointing out of the
            sphere, including when the ray starts inside it.
        material_id: The material of the hit primitive, -1 when unknown.
    """

    distance: ti.f32
    point: vec3
    normal: vec3
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord meaning "no intersection"."""
    return HitRecord(
        distance=MISS_DISTANCE,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=-1,
    )


@ti.func
def solve_quadratic_stable(a: ti.f32, b: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Compute both roots of a*t^2 + b*t + c = 0 without cancellation.

    Branches on the sign of b so that b and the square root are always added
    with matching signs.

    Args:
        a: Quadratic coefficient (non-zero).
        b: Linear coefficient.
        c: Constant term.
        sqrt_d: Square root of the discriminant b^2 - 4ac.

    Returns:
        Tuple (r1, r2) of the two roots, in no particular order.
    """
    q = 0.0
    if b < 0.0:
        q = 0.5 * (-b + sqrt_d)
    else:
        q = 0.5 * (-b - sqrt_d)

    r1 = 0.0
    r2 = 0.0
    if q == 0.0:
        # b == 0 and c == 0: both roots are zero
        r1 = 0.0
        r2 = 0.0
    else:
        r1 = q / a
        r2 = c / q
    return r1, r2


@ti.func
def select_root(r1: ti.f32, r2: ti.f32) -> ti.f32:
    """Pick the smaller non-negative root, or MISS_DISTANCE if both are negative."""
    distance = MISS_DISTANCE
    if r1 < 0.0 and r2 < 0.0:
        distance = MISS_DISTANCE
    elif r2 < 0.0:
        distance = r1
    elif r1 < 0.0 or r2 < r1:
        distance = r2
    else:
        distance = r1
    return distance


@ti.func
def sphere_normal(sphere: Sphere, surface_point: vec3) -> vec3:
    """Outward unit normal of a sphere at a point on its surface."""
    return tm.normalize(surface_point - sphere.center)


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    material_id: ti.i32,
) -> HitRecord:
    """Intersect a ray with a sphere.

    Roots behind the ray origin are rejected; of the remaining roots the
    nearest is returned. A tangent ray (zero discriminant) is a valid hit, and
    a ray starting exactly on the surface follows the same root selection
    with no special case.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The ray direction (unit length for the distance to be
            a true distance).
        sphere: The sphere to test.
        material_id: Material copied into the record on a hit.

    Returns:
        A HitRecord. ``distance < 0`` means the ray missed.
    """
    result = make_miss_record()

    diff = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    b = 2.0 * tm.dot(diff, ray_direction)
    c = tm.dot(diff, diff) - sphere.radius * sphere.radius

    discriminant = b * b - 4.0 * a * c
    if discriminant >= 0.0:
        r1, r2 = solve_quadratic_stable(a, b, c, ti.sqrt(discriminant))
        distance = select_root(r1, r2)

        if distance >= 0.0:
            point = ray_origin + distance * ray_direction
            result = HitRecord(
                distance=distance,
                point=point,
                normal=sphere_normal(sphere, point),
                material_id=material_id,
            )

    return result
