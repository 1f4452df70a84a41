from __future__ import annotations

from math import cos, hypot, radians, sin, sqrt
from typing import Optional, Tuple

from geographiclib.geodesic import Geodesic

from ..core.types import Point, Pose


# points closer than this on both axes are treated as the same point
LINE_EPSILON = 1e-5


class DegenerateLineError(ValueError):
    """Raised when two coincident points cannot define a line."""


def wrap_angle(angle_deg: float) -> float:
    """Wrap an angle in degrees to [-180, 180)."""
    a = (angle_deg + 180.0) % 360.0 - 180.0
    return -180.0 if a == 180.0 else a


def plane_distance(p: Point, q: Point) -> float:
    """Distance between p and q on the horizontal plane (z ignored)."""
    return hypot(p.x - q.x, p.y - q.y)


def line_equation(p1: Point, p2: Point) -> Tuple[float, float, float]:
    """Coefficients (a, b, c) of ``a*x + b*y + c = 0`` through p1 and p2.

    Raises:
        DegenerateLineError: p1 and p2 coincide on the plane.
    """
    a = p2.y - p1.y
    b = p1.x - p2.x
    if abs(a) < LINE_EPSILON and abs(b) < LINE_EPSILON:
        raise DegenerateLineError(f"points ({p1.x}, {p1.y}) and ({p2.x}, {p2.y}) coincide")
    c = -a * p1.x - b * p1.y
    return a, b, c


def distance_point_to_line(point: Point, a: float, b: float, c: float) -> float:
    return abs(a * point.x + b * point.y + c) / sqrt(a * a + b * b)


def rotate_vector(v: Tuple[float, float], angle_deg: float) -> Tuple[float, float]:
    """Rotate a planar vector counter-clockwise about the vertical axis."""
    th = radians(angle_deg)
    return (v[0] * cos(th) - v[1] * sin(th), v[0] * sin(th) + v[1] * cos(th))


def to_local_frame(point: Point, pose: Pose) -> Point:
    """Express a map-frame point in the frame of ``pose`` (x forward, y left)."""
    th = radians(pose.yaw_deg)
    dx = point.x - pose.x
    dy = point.y - pose.y
    return Point(
        x=cos(th) * dx + sin(th) * dy,
        y=-sin(th) * dx + cos(th) * dy,
        z=point.z - pose.z,
    )


def to_map_frame(point: Point, pose: Pose) -> Point:
    """Inverse of :func:`to_local_frame`."""
    th = radians(pose.yaw_deg)
    return Point(
        x=pose.x + cos(th) * point.x - sin(th) * point.y,
        y=pose.y + sin(th) * point.x + cos(th) * point.y,
        z=pose.z + point.z,
    )


def lla_to_enu(
    home_lla: Tuple[float, float, Optional[float]], target_lla: Tuple[float, float, Optional[float]]
) -> Tuple[float, float, float]:
    """Convert LLA to local ENU with origin at home using GeographicLib.

    Args:
        home_lla: (lat, lon, alt) in degrees/meters.
        target_lla: (lat, lon, alt) in degrees/meters.

    Returns:
        (e, n, u) in meters.
    """
    geod = Geodesic.WGS84
    g = geod.Inverse(home_lla[0], home_lla[1], target_lla[0], target_lla[1])
    s12 = g["s12"]
    azi1 = radians(g["azi1"])  # forward azimuth from home to target
    north = s12 * cos(azi1)
    east = s12 * sin(azi1)
    up = (target_lla[2] if target_lla[2] is not None else 0.0) - (
        home_lla[2] if home_lla[2] is not None else 0.0
    )
    return float(east), float(north), float(up)
