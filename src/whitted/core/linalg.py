"""Host-side vector and matrix helpers for scene and camera setup.

Kernels work on ``taichi.math`` vectors; everything computed once on the
Python side before rendering (the camera orientation, its position, light and
sphere placement) uses NumPy float64 arrays instead. This module holds those
helpers:

- ``vector``: build a 3-vector from any sequence of three numbers
- ``normalize``: unit vector, rejecting zero-length input
- ``reflect_about``: mirror a vector about an axis
- ``spherical``: point from spherical coordinates (r, phi, theta)
- ``identity`` / ``basis_rotation``: 3x3 linear maps used for camera orientation

Matrices are plain (3, 3) arrays in row-major order; apply them with ``m @ v``.

Example:
    >>> import numpy as np
    >>> from whitted.core.linalg import basis_rotation, spherical
    >>> z = spherical(1.0, 0.0, 0.0)
    >>> z
    array([0., 0., 1.])
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

Vector3 = npt.NDArray[np.float64]
Matrix3 = npt.NDArray[np.float64]

# Vectors shorter than this are treated as zero-length
ZERO_LENGTH_TOLERANCE = 1e-12


def vector(values: Sequence[float]) -> Vector3:
    """Convert a sequence of three numbers to a float64 vector.

    Raises:
        ValueError: If the input does not have exactly three components.
    """
    arr = np.asarray(values, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"Expected 3 components, got shape {arr.shape}")
    return arr


def normalize(v: Sequence[float]) -> Vector3:
    """Return the unit vector pointing along v.

    Args:
        v: The vector to normalize.

    Returns:
        A new unit-length vector. The input is not modified.

    Raises:
        ValueError: If v has (near) zero length.
    """
    arr = vector(v)
    norm = float(np.linalg.norm(arr))
    if norm < ZERO_LENGTH_TOLERANCE:
        raise ValueError(f"Cannot normalize a zero-length vector: {arr.tolist()}")
    return arr / norm


def reflect_about(v: Sequence[float], axis: Sequence[float]) -> Vector3:
    """Mirror v about axis: ``2 * dot(axis, v) * axis - v``."""
    v_arr = vector(v)
    axis_arr = vector(axis)
    return 2.0 * float(np.dot(axis_arr, v_arr)) * axis_arr - v_arr


def spherical(r: float, phi: float, theta: float) -> Vector3:
    """Convert spherical coordinates to a Cartesian point.

    Uses the z-up convention: phi is the polar angle measured from +z and
    theta the azimuth measured from +x toward +y.

        x = r * sin(phi) * cos(theta)
        y = r * sin(phi) * sin(theta)
        z = r * cos(phi)

    Args:
        r: Radius.
        phi: Polar angle in radians.
        theta: Azimuth in radians.

    Returns:
        The Cartesian vector.
    """
    sin_phi = math.sin(phi)
    return np.array(
        [
            r * sin_phi * math.cos(theta),
            r * sin_phi * math.sin(theta),
            r * math.cos(phi),
        ],
        dtype=np.float64,
    )


def identity() -> Matrix3:
    """Return the 3x3 identity matrix."""
    return np.eye(3, dtype=np.float64)


def basis_rotation(
    u: Sequence[float],
    v: Sequence[float],
    a: Sequence[float],
    b: Sequence[float],
) -> Matrix3:
    """Build the linear map taking the basis pair (u, v) onto (a, b).

    The third axis of each frame is completed with a cross product
    (u x v and a x b), and the result is ``[a b a x b] @ [u v u x v]^T``.
    This is a change of basis, not a general solve: both pairs are assumed to
    be orthonormal and no orthonormalization is performed here. Keeping the
    inputs orthonormal is the caller's job.

    Args:
        u: First source axis.
        v: Second source axis.
        a: Image of u.
        b: Image of v.

    Returns:
        A (3, 3) matrix M with M @ u == a and M @ v == b for orthonormal input.
    """
    u_arr, v_arr = vector(u), vector(v)
    a_arr, b_arr = vector(a), vector(b)

    source = np.column_stack([u_arr, v_arr, np.cross(u_arr, v_arr)])
    target = np.column_stack([a_arr, b_arr, np.cross(a_arr, b_arr)])
    return target @ source.T
