"""Scene module for scene storage and ray queries.

Components:
    intersection: Sphere and light fields, nearest-hit and shadow queries
    manager: SceneManager for building scenes with materials
    default_scene: The hard-coded four-sphere demo scene

Scene data is stored in Taichi fields (Structure-of-Arrays) and is
read-only while rendering.
"""

from .default_scene import (
    DEFAULT_SPHERES,
    create_default_camera,
    create_default_scene,
)
from .intersection import (
    MAX_LIGHTS,
    MAX_SPHERES,
    add_light,
    add_sphere,
    clear_scene,
    get_light_count,
    get_sphere_count,
    intersect_scene,
    is_shadowed,
)
from .manager import LightInfo, MaterialInfo, SceneManager, SphereInfo

__all__ = [
    # Intersection module
    "add_sphere",
    "add_light",
    "clear_scene",
    "get_sphere_count",
    "get_light_count",
    "intersect_scene",
    "is_shadowed",
    "MAX_SPHERES",
    "MAX_LIGHTS",
    # Manager module
    "SceneManager",
    "MaterialInfo",
    "SphereInfo",
    "LightInfo",
    # Default scene
    "create_default_scene",
    "create_default_camera",
    "DEFAULT_SPHERES",
]
