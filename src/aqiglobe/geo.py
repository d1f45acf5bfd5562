"""Sphere geometry — geographic coordinates to globe-space points, and the globe's view transform.

Globe space is right-handed with +Y through the north pole and (lat 0, lng 0)
on +X, matching a Y-up 3D scene.
"""

import math
from typing import Iterable

import numpy as np

from aqiglobe.models import GeoCoordinate, RotationState

AXIAL_TILT_DEG = 23.5
MARKER_ALTITUDE = 1.02  # Markers float slightly above the surface


def project(coordinate: GeoCoordinate, radius: float) -> tuple[float, float, float]:
    """Place a geographic coordinate on the surface of a sphere.

    Colatitude phi = 90° - lat, azimuth theta = lng + 180°.

    Args:
        coordinate: Validated latitude/longitude.
        radius: Sphere radius in scene units.

    Returns:
        (x, y, z) in globe space.
    """
    phi = math.radians(90.0 - coordinate.lat)
    theta = math.radians(coordinate.lng + 180.0)
    x = -radius * math.sin(phi) * math.cos(theta)
    z = radius * math.sin(phi) * math.sin(theta)
    y = radius * math.cos(phi)
    return x, y, z


def project_many(coordinates: Iterable[GeoCoordinate], radius: float) -> np.ndarray:
    """Vectorized project(). Returns an (N, 3) array, one row per coordinate."""
    coords = list(coordinates)
    if not coords:
        return np.empty((0, 3))
    lat = np.array([c.lat for c in coords], dtype=float)
    lng = np.array([c.lng for c in coords], dtype=float)
    return project_grid(lat, lng, radius)


def project_grid(lat: np.ndarray, lng: np.ndarray, radius: float) -> np.ndarray:
    """Array form of project() for unvalidated degree arrays of matching shape.

    Returns an array of shape ``lat.shape + (3,)``.
    """
    phi = np.radians(90.0 - np.asarray(lat, dtype=float))
    theta = np.radians(np.asarray(lng, dtype=float) + 180.0)
    return np.stack(
        (
            -radius * np.sin(phi) * np.cos(theta),
            radius * np.cos(phi),
            radius * np.sin(phi) * np.sin(theta),
        ),
        axis=-1,
    )


def _rot_x(a: float) -> np.ndarray:
    c, s = math.cos(a), math.sin(a)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def _rot_y(a: float) -> np.ndarray:
    c, s = math.cos(a), math.sin(a)
    return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])


def _rot_z(a: float) -> np.ndarray:
    c, s = math.cos(a), math.sin(a)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def view_matrix(state: RotationState, tilt_deg: float = AXIAL_TILT_DEG) -> np.ndarray:
    """Rotation taking globe space to view space (XYZ Euler order).

    Pitch comes only from the user's drag, yaw is the simulated spin plus the
    drag yaw, and the axial tilt is fixed.
    """
    return (
        _rot_x(state.user_pitch)
        @ _rot_y(state.view_yaw)
        @ _rot_z(math.radians(tilt_deg))
    )


def to_view(points: np.ndarray, state: RotationState) -> np.ndarray:
    """Apply view_matrix to an (N, 3) array of globe-space points."""
    if len(points) == 0:
        return points
    return points @ view_matrix(state).T
