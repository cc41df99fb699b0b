"""Geometry utilities for GPS routes and curvature calculations."""

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

EARTH_RADIUS_M = 6371000.0
METRES_PER_DEG_LAT = math.pi * EARTH_RADIUS_M / 180.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate great circle distance between two GPS points in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate bearing from point 1 to point 2 in degrees (0-360)."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_lambda = math.radians(lon2 - lon1)

    x = math.sin(delta_lambda) * math.cos(phi2)
    y = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(
        delta_lambda
    )

    bearing_rad = math.atan2(x, y)
    return (math.degrees(bearing_rad) + 360) % 360


def angle_difference(angle1: float, angle2: float) -> float:
    """Calculate smallest difference between two angles in degrees (-180 to 180).

    Positive means angle2 is clockwise (to the right) of angle1.
    """
    diff = (angle2 - angle1 + 180) % 360 - 180
    return diff


def normalize_bearing(angle: float) -> float:
    """Normalise an angle to the (-180, 180] range."""
    angle = angle_difference(0.0, angle)
    if angle == -180.0:
        return 180.0
    return angle


def point_along_bearing(
    lat: float, lon: float, bearing_deg: float, distance_m: float
) -> Tuple[float, float]:
    """Calculate point at given distance and bearing from start point."""
    lat_rad = math.radians(lat)
    lon_rad = math.radians(lon)
    bearing_rad = math.radians(bearing_deg)
    angular = distance_m / EARTH_RADIUS_M

    lat2 = math.asin(
        math.sin(lat_rad) * math.cos(angular)
        + math.cos(lat_rad) * math.sin(angular) * math.cos(bearing_rad)
    )

    lon2 = lon_rad + math.atan2(
        math.sin(bearing_rad) * math.sin(angular) * math.cos(lat_rad),
        math.cos(angular) - math.sin(lat_rad) * math.sin(lat2),
    )

    return math.degrees(lat2), math.degrees(lon2)


def to_local_xy(
    lats: Sequence[float],
    lons: Sequence[float],
    origin: Optional[Tuple[float, float]] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Project lat/lon arrays onto a local metric plane.

    Equirectangular projection about the origin (first point by default)
    with a single longitude scale, so points interpolated linearly in
    lat/lon stay collinear. x is east, y is north, both in metres.
    """
    lat_arr = np.asarray(lats, dtype=float)
    lon_arr = np.asarray(lons, dtype=float)
    if origin is None:
        origin = (float(lat_arr[0]), float(lon_arr[0])) if lat_arr.size else (0.0, 0.0)
    lat0, lon0 = origin

    x = (lon_arr - lon0) * METRES_PER_DEG_LAT * math.cos(math.radians(lat0))
    y = (lat_arr - lat0) * METRES_PER_DEG_LAT
    return x, y


def from_local_xy(x: float, y: float, origin: Tuple[float, float]) -> Tuple[float, float]:
    """Inverse of to_local_xy for a single point."""
    lat0, lon0 = origin
    lat = lat0 + y / METRES_PER_DEG_LAT
    lon = lon0 + x / (METRES_PER_DEG_LAT * math.cos(math.radians(lat0)))
    return lat, lon


def circumradius(
    p1: Tuple[float, float],
    p2: Tuple[float, float],
    p3: Tuple[float, float],
    min_area: float = 1e-6,
) -> Optional[float]:
    """
    Radius of the circle through three planar points (metres).

    Uses R = abc / (4 * area). Returns None for a degenerate (near
    collinear) triangle.
    """
    x1, y1 = p1
    x2, y2 = p2
    x3, y3 = p3

    # Area of triangle
    area = abs((x1 * (y2 - y3) + x2 * (y3 - y1) + x3 * (y1 - y2)) / 2.0)
    if area < min_area:
        return None

    # Side lengths
    a = math.hypot(x2 - x3, y2 - y3)
    b = math.hypot(x1 - x3, y1 - y3)
    c = math.hypot(x1 - x2, y1 - y2)

    return (a * b * c) / (4.0 * area)


def circumradii(
    x: np.ndarray, y: np.ndarray, offset: int, min_area: float = 1e-6
) -> np.ndarray:
    """
    Circumradius at every index for the triangle (i - offset, i, i + offset).

    Indices without both neighbours, and degenerate triangles, are NaN.
    """
    n = len(x)
    radii = np.full(n, np.nan)
    if offset < 1 or n < 2 * offset + 1:
        return radii

    x1, y1 = x[:-2 * offset], y[:-2 * offset]
    x2, y2 = x[offset:n - offset], y[offset:n - offset]
    x3, y3 = x[2 * offset:], y[2 * offset:]

    area = np.abs((x1 * (y2 - y3) + x2 * (y3 - y1) + x3 * (y1 - y2)) / 2.0)
    a = np.hypot(x2 - x3, y2 - y3)
    b = np.hypot(x1 - x3, y1 - y3)
    c = np.hypot(x1 - x2, y1 - y2)

    valid = area >= min_area
    inner = np.full(len(area), np.nan)
    inner[valid] = (a[valid] * b[valid] * c[valid]) / (4.0 * area[valid])
    radii[offset:n - offset] = inner
    return radii


def cumulative_distances(lats: Sequence[float], lons: Sequence[float]) -> List[float]:
    """Running great-circle distance (metres) along a lat/lon polyline."""
    distances = [0.0] if len(lats) else []
    for i in range(1, len(lats)):
        step = haversine_distance(lats[i - 1], lons[i - 1], lats[i], lons[i])
        distances.append(distances[-1] + step)
    return distances
