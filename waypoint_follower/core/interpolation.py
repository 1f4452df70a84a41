"""Linear interpolation of the lookahead target on the active path segment.

The lookahead circle is centred on the vehicle. The target is the point where
that circle crosses the segment ``path[i-1] -> path[i]``, with ``i`` the index
returned by the waypoint search.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from ..utils.geo import (
    DegenerateLineError,
    distance_point_to_line,
    line_equation,
    plane_distance,
    rotate_vector,
)
from .types import Point, Pose, Waypoint

log = logging.getLogger(__name__)

# residual allowed when checking that a point satisfies the line equation
ON_LINE_TOLERANCE = 1e-5


class InterpolationFailure(Enum):
    DEGENERATE = "degenerate"
    OUT_OF_RANGE = "out_of_range"
    GEOMETRY_MISMATCH = "geometry_mismatch"
    NO_INTERSECTION_ON_SEGMENT = "no_intersection_on_segment"


@dataclass(frozen=True)
class InterpolationResult:
    target: Optional[Point] = None
    failure: Optional[InterpolationFailure] = None

    @property
    def ok(self) -> bool:
        return self.target is not None


def _fail(reason: InterpolationFailure) -> InterpolationResult:
    log.debug("interpolation failed: %s", reason.value)
    return InterpolationResult(failure=reason)


def interpolate_target(
    path: Sequence[Waypoint], waypoint_index: int, pose: Pose, lookahead_distance: float
) -> InterpolationResult:
    """Intersect the lookahead circle with the segment leading into ``waypoint_index``.

    The last waypoint (and the first, which has no preceding segment) is returned
    unchanged. Of the two circle/line intersections, the one ahead along the
    segment direction wins when both lie within the segment.

    Raises:
        IndexError: ``waypoint_index`` is outside the path.
    """
    if not 0 <= waypoint_index < len(path):
        raise IndexError(f"waypoint index {waypoint_index} outside path of length {len(path)}")
    if waypoint_index == len(path) - 1 or waypoint_index == 0:
        return InterpolationResult(target=path[waypoint_index].position)

    here = pose.position
    start = path[waypoint_index - 1].position
    end = path[waypoint_index].position

    try:
        a, b, c = line_equation(start, end)
    except DegenerateLineError:
        return _fail(InterpolationFailure.DEGENERATE)

    d = distance_point_to_line(here, a, b, c)
    if d > lookahead_distance:
        return _fail(InterpolationFailure.OUT_OF_RANGE)

    length = math.hypot(end.x - start.x, end.y - start.y)
    unit_v = ((end.x - start.x) / length, (end.y - start.y) / length)
    unit_w1 = rotate_vector(unit_v, 90.0)
    unit_w2 = rotate_vector(unit_v, -90.0)

    # foot of the perpendicular: only one of the two normals points at the line
    h1 = Point(x=here.x + d * unit_w1[0], y=here.y + d * unit_w1[1], z=here.z)
    h2 = Point(x=here.x + d * unit_w2[0], y=here.y + d * unit_w2[1], z=here.z)
    if abs(a * h1.x + b * h1.y + c) < ON_LINE_TOLERANCE:
        foot = h1
    elif abs(a * h2.x + b * h2.y + c) < ON_LINE_TOLERANCE:
        foot = h2
    else:
        return _fail(InterpolationFailure.GEOMETRY_MISMATCH)

    if d == lookahead_distance:
        return InterpolationResult(target=foot)

    s = math.sqrt(lookahead_distance**2 - d**2)
    ahead = Point(x=foot.x + s * unit_v[0], y=foot.y + s * unit_v[1], z=here.z)
    behind = Point(x=foot.x - s * unit_v[0], y=foot.y - s * unit_v[1], z=here.z)

    interval = plane_distance(end, start)
    if plane_distance(ahead, end) < interval:
        return InterpolationResult(target=ahead)
    if plane_distance(behind, end) < interval:
        return InterpolationResult(target=behind)
    return _fail(InterpolationFailure.NO_INTERSECTION_ON_SEGMENT)
