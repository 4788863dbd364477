"""Default four-sphere scene.

This module provides a factory for the hard-coded demo scene: a large
reddish sphere at the origin, three smaller spheres around it, one white
point light above, and a camera orbiting at distance 10 looking at the
origin from 45 degrees of elevation and azimuth.

Every material is fully reflective (kr = 1), so the spheres mirror each
other up to the depth limit.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.scene.default_scene import create_default_scene
    >>> from whitted.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_default_scene()
    >>> setup_camera(camera)
    >>> # Now render using the scene and camera
"""

import math
from dataclasses import dataclass

from whitted.camera.pinhole import PinholeCamera
from whitted.scene.manager import SceneManager

# =============================================================================
# Default Scene Constants
# =============================================================================

# Image resolution
IMAGE_WIDTH = 512
IMAGE_HEIGHT = 512

# Field-of-view parameter (radians, used as tan(fov_y))
FOV_Y = math.pi / 15.0

# Camera orbit around the target
CAMERA_TARGET = (0.0, 0.0, 0.0)
CAMERA_RHO = 10.0
CAMERA_PHI = math.pi / 4.0
CAMERA_THETA = math.pi / 4.0

# Single white point light
LIGHT_POSITION = (0.0, 6.0, 2.0)
LIGHT_COLOR = (1.0, 1.0, 1.0)


@dataclass(frozen=True)
class SphereSpec:
    """A sphere of the default scene together with its material.

    Material coefficients are in (kd, ks, kr) order.
    """

    center: tuple[float, float, float]
    radius: float
    color: tuple[float, float, float]
    kd: float
    ks: float
    kr: float


DEFAULT_SPHERES = (
    SphereSpec((0.0, 0.0, 0.0), 1.0, (0.6, 0.3, 0.3), 0.8, 1.0, 1.0),
    SphereSpec((-1.0, 1.0, 0.0), 0.25, (0.0, 1.0, 0.0), 0.0, 1.0, 1.0),
    SphereSpec((1.0, -0.5, 0.0), 0.25, (1.0, 0.0, 0.0), 0.3, 1.0, 1.0),
    SphereSpec((0.75, 2.0, 1.0), 0.66, (0.8, 0.2, 1.0), 0.8, 1.0, 1.0),
)


# =============================================================================
# Default Scene Factory
# =============================================================================


def create_default_camera(
    width: int = IMAGE_WIDTH,
    height: int = IMAGE_HEIGHT,
) -> PinholeCamera:
    """Create the default camera, already placed with look_at().

    Args:
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        The configured PinholeCamera (call setup_camera() before rendering).
    """
    camera = PinholeCamera(fov_y=FOV_Y, width=width, height=height)
    camera.look_at(CAMERA_TARGET, CAMERA_RHO, CAMERA_PHI, CAMERA_THETA)
    return camera


def create_default_scene(
    width: int = IMAGE_WIDTH,
    height: int = IMAGE_HEIGHT,
) -> tuple[SceneManager, PinholeCamera]:
    """Create the default four-sphere scene.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A tuple of (SceneManager, PinholeCamera) where:
        - SceneManager contains the spheres, materials and light
        - PinholeCamera is placed on its orbit looking at the origin
    """
    scene = SceneManager()

    for spec in DEFAULT_SPHERES:
        scene.add_phong_sphere(
            spec.center,
            spec.radius,
            color=spec.color,
            kd=spec.kd,
            ks=spec.ks,
            kr=spec.kr,
        )

    scene.add_light(LIGHT_POSITION, LIGHT_COLOR)

    return scene, create_default_camera(width, height)
