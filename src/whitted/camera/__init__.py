"""Camera module for primary ray generation.

Components:
    pinhole: Pinhole (perspective) camera with look-at placement

Camera responsibilities:
    - Map continuous pixel coordinates (with sub-pixel offsets) to world rays
    - Derive the projection scale from the field of view
    - Build the view-to-world orientation from a spherical look-at
"""

from .pinhole import (
    PinholeCamera,
    get_camera_info,
    get_camera_origin,
    get_ray,
    set_projection,
    setup_camera,
)

__all__ = [
    "PinholeCamera",
    "setup_camera",
    "set_projection",
    "get_ray",
    "get_camera_origin",
    "get_camera_info",
]
