"""
adsbuild/geometry.py

Small 3D vector helpers shared by the lattice model and the placement
pipeline.  Everything works on plain numpy arrays of shape (3,) and returns
new arrays; rotation matrices act on column vectors (``R @ v``), so a stack
of positions is rotated with ``positions @ R.T``.

Angles are in radians unless a name says otherwise.
"""

from __future__ import annotations

import numpy as np

X_AXIS = np.array([1.0, 0.0, 0.0])
Y_AXIS = np.array([0.0, 1.0, 0.0])
Z_AXIS = np.array([0.0, 0.0, 1.0])

# Tolerance on 1 - cos(angle) below which two directions count as parallel.
PARALLEL_TOL = 1e-3


def as_vector(v) -> np.ndarray:
    """Return v as a float array of shape (3,)."""
    arr = np.asarray(v, dtype=float).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"Expected a 3-vector, got shape {np.shape(v)}.")
    return arr


def normalize(v) -> np.ndarray:
    """Unit vector along v.  Raises ValueError for a zero-length vector."""
    v = as_vector(v)
    norm = np.linalg.norm(v)
    if norm == 0.0:
        raise ValueError("Cannot normalise a zero-length vector.")
    return v / norm


def angle_between(u, v) -> float:
    """
    Unsigned angle between u and v in [0, pi].

    A zero-length input yields 0.0 rather than NaN.
    """
    u = as_vector(u)
    v = as_vector(v)
    prod = np.dot(u, u) * np.dot(v, v)
    if prod == 0.0:
        return 0.0
    cos = np.dot(u, v) / np.sqrt(prod)
    return float(np.arccos(np.clip(cos, -1.0, 1.0)))


def is_parallel(u, v, tol: float = PARALLEL_TOL) -> bool:
    """
    True when u and v point the same way within ``1 - cos(angle) < tol``.

    Zero-length inputs are reported as parallel.
    """
    u = as_vector(u)
    v = as_vector(v)
    nu = np.linalg.norm(u)
    nv = np.linalg.norm(v)
    if nu == 0.0 or nv == 0.0:
        return True
    return bool(np.dot(u, v) / (nu * nv) > 1.0 - tol)


def perpendicular(v) -> np.ndarray:
    """Some unit vector perpendicular to v."""
    v = normalize(v)
    # Cross with the axis least aligned with v
    trial = X_AXIS if abs(v[0]) < 0.9 else Y_AXIS
    return normalize(np.cross(v, trial))


def rotation_matrix(axis, angle: float) -> np.ndarray:
    """
    Rotation by ``angle`` about ``axis`` (right-hand rule), Rodrigues form.

    Parameters
    ----------
    axis:
        Rotation axis; need not be normalised but must be non-zero.
    angle:
        Rotation angle in radians.

    Returns
    -------
    np.ndarray of shape (3, 3)
    """
    k = normalize(axis)
    K = np.array([
        [0.0, -k[2], k[1]],
        [k[2], 0.0, -k[0]],
        [-k[1], k[0], 0.0],
    ])
    return np.eye(3) + np.sin(angle) * K + (1.0 - np.cos(angle)) * (K @ K)


def rotation_between(u, v, half_turn_axis=None) -> np.ndarray:
    """
    Minimal-angle rotation that maps the direction of u onto that of v.

    Parallel inputs give the identity.  Antiparallel inputs have no unique
    minimal rotation; a half turn about half_turn_axis is used, or about
    some axis perpendicular to u when none is given.
    """
    u = normalize(u)
    v = normalize(v)
    axis = np.cross(u, v)
    s = np.linalg.norm(axis)
    c = float(np.dot(u, v))
    if s < 1e-12:
        if c > 0.0:
            return np.eye(3)
        if half_turn_axis is None:
            half_turn_axis = perpendicular(u)
        return rotation_matrix(half_turn_axis, np.pi)
    return rotation_matrix(axis / s, np.arctan2(s, c))


def project_onto_line(point, origin, direction) -> np.ndarray:
    """Foot of the perpendicular dropped from point onto a line."""
    point = as_vector(point)
    origin = as_vector(origin)
    d = normalize(direction)
    return origin + np.dot(point - origin, d) * d


def project_onto_plane(point, plane_point, normal) -> np.ndarray:
    """Orthogonal projection of point onto the plane through plane_point."""
    point = as_vector(point)
    n = normalize(normal)
    return point - np.dot(point - as_vector(plane_point), n) * n


def signed_angle_about_z(u, v) -> float:
    """Angle that rotates the xy-projection of u onto that of v about +z."""
    u = as_vector(u)
    v = as_vector(v)
    cross_z = u[0] * v[1] - u[1] * v[0]
    dot = u[0] * v[0] + u[1] * v[1]
    return float(np.arctan2(cross_z, dot))
