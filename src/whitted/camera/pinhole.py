"""Pinhole camera model for primary ray generation.

This module implements the pinhole camera that turns continuous pixel
coordinates into world-space rays. The camera supports:
- A projection scale derived from the vertical field of view
- Look-at placement on a sphere of radius rho around a target
- Sub-pixel coordinates for stratified supersampling

Projection maps pixel (px, py) to the view-space direction

    ndc_x = (2 * px / width - 1) * scale
    ndc_y = (1 - 2 * py / height) * scale
    dir   = normalize(orientation @ (ndc_x, ndc_y, -1))

with ``scale = tan(fov_y)``. The full angle goes into ``tan``, not the half
angle, so ``fov_y`` behaves as half of a conventional vertical field of view.
Pixel rows grow downward: py = 0 is the top edge of the image.

Setup runs once on the Python side (NumPy); the results are written to Taichi
fields that ``get_ray`` reads inside kernels.

Example:
    >>> import math
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.camera.pinhole import PinholeCamera, setup_camera
    >>>
    >>> camera = PinholeCamera(fov_y=math.pi / 15, width=512, height=512)
    >>> camera.look_at((0.0, 0.0, 0.0), rho=10.0, phi=math.pi / 4, theta=math.pi / 4)
    >>> setup_camera(camera)
    >>>
    >>> # Inside a Taichi kernel:
    >>> # ray = get_ray(256.5, 256.5)  # Ray through the image center
"""

import math
from dataclasses import dataclass, field

import numpy as np
import taichi as ti
import taichi.math as tm

from whitted.core import linalg
from whitted.core.ray import Ray, make_ray, vec3

# =============================================================================
# Camera Data Structures
# =============================================================================

# Canonical camera axes: the view looks down -z with +y up
CANONICAL_UP = (0.0, 1.0, 0.0)
CANONICAL_BACK = (0.0, 0.0, 1.0)


@dataclass
class PinholeCamera:
    """Configuration for a pinhole (perspective) camera.

    Attributes:
        fov_y: Vertical field-of-view parameter in radians, used as tan(fov_y).
        width: Output image width in pixels.
        height: Output image height in pixels.
        position: Camera position in world space.
        orientation: 3x3 matrix taking view-space directions to world space.
            Identity until ``look_at`` is called.
    """

    fov_y: float
    width: int
    height: int
    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    orientation: np.ndarray = field(default_factory=linalg.identity)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Camera resolution must be positive, got {self.width}x{self.height}"
            )

    @property
    def scale(self) -> float:
        """Projection scale applied to normalized device coordinates."""
        return math.tan(self.fov_y)

    def look_at(
        self,
        target: tuple[float, float, float],
        rho: float,
        phi: float,
        theta: float,
    ) -> None:
        """Place the camera on a sphere around a target, looking at it.

        The backward axis is z = spherical(1, phi, theta) and the up axis is
        y = spherical(1, pi/2 - phi, theta + pi), which is orthogonal to z
        for every phi and theta. The orientation is the change of basis
        taking the canonical (up, back) pair onto (y, z), and the camera sits
        at z * rho + target.

        Args:
            target: The point to look at.
            rho: Distance from the target.
            phi: Polar angle in radians (from +z).
            theta: Azimuth in radians (from +x toward +y).

        Raises:
            ValueError: If rho is not positive.
        """
        if rho <= 0.0:
            raise ValueError(f"Look-at distance must be positive, got {rho}")

        z = linalg.spherical(1.0, phi, theta)
        y = linalg.spherical(1.0, math.pi / 2.0 - phi, theta + math.pi)

        self.orientation = linalg.basis_rotation(CANONICAL_UP, CANONICAL_BACK, y, z)
        position = z * rho + linalg.vector(target)
        self.position = (float(position[0]), float(position[1]), float(position[2]))


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

# Camera origin (position)
_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# View-to-world rotation
_camera_orientation = ti.Matrix.field(3, 3, dtype=ti.f32, shape=())

# tan(fov_y)
_camera_scale = ti.field(dtype=ti.f32, shape=())

# Resolution used to normalize pixel coordinates
_camera_width = ti.field(dtype=ti.i32, shape=())
_camera_height = ti.field(dtype=ti.i32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: PinholeCamera) -> None:
    """Copy the camera state into the Taichi fields read by ``get_ray``.

    Must be called before rendering, and again after any change to the
    camera. The camera is read-only while a render runs.

    Args:
        camera: Camera configuration with position, orientation and FOV.
    """
    orientation = np.asarray(camera.orientation, dtype=np.float64)
    if orientation.shape != (3, 3):
        raise ValueError(f"Camera orientation must be 3x3, got shape {orientation.shape}")

    _camera_origin[None] = list(camera.position)
    _camera_orientation[None] = orientation.tolist()
    set_projection(camera.fov_y, camera.width, camera.height)


def set_projection(fov_y: float, width: int, height: int) -> None:
    """Overwrite the projection scale and resolution used by ``get_ray``.

    Position and orientation are left as uploaded by ``setup_camera``.

    Args:
        fov_y: Vertical field-of-view parameter in radians (used as tan(fov_y)).
        width: Image width in pixels.
        height: Image height in pixels.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Camera resolution must be positive, got {width}x{height}")

    _camera_scale[None] = math.tan(fov_y)
    _camera_width[None] = width
    _camera_height[None] = height


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def get_ray(px: ti.f32, py: ti.f32) -> Ray:
    """Generate the world-space ray through continuous pixel coordinates.

    Args:
        px: Horizontal pixel coordinate, sub-pixel offsets included
            (0 = left edge, width = right edge).
        py: Vertical pixel coordinate (0 = top edge, height = bottom edge).

    Returns:
        A Ray from the camera position with a unit direction.
    """
    width = ti.cast(_camera_width[None], ti.f32)
    height = ti.cast(_camera_height[None], ti.f32)
    scale = _camera_scale[None]

    ndc_x = (2.0 * px / width - 1.0) * scale
    ndc_y = (1.0 - 2.0 * py / height) * scale

    direction = _camera_orientation[None] @ vec3(ndc_x, ndc_y, -1.0)
    return make_ray(_camera_origin[None], direction)


@ti.func
def get_camera_origin() -> vec3:
    """Get the camera position in world space."""
    return _camera_origin[None]


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, object]:
    """Get the current camera field state for debugging.

    Returns:
        Dictionary with origin, orientation (row-major nested tuples), scale,
        width and height.
    """
    origin_vec = _camera_origin[None]
    matrix = _camera_orientation[None]

    return {
        "origin": (float(origin_vec[0]), float(origin_vec[1]), float(origin_vec[2])),
        "orientation": tuple(
            tuple(float(matrix[i, j]) for j in range(3)) for i in range(3)
        ),
        "scale": float(_camera_scale[None]),
        "width": int(_camera_width[None]),
        "height": int(_camera_height[None]),
    }
