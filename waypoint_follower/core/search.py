from __future__ import annotations

import logging
from typing import Sequence

from ..utils.geo import plane_distance
from .types import Pose, Waypoint

log = logging.getLogger(__name__)


def select_next_waypoint(path: Sequence[Waypoint], pose: Pose, lookahead_distance: float) -> int:
    """Index of the first waypoint farther than ``lookahead_distance`` from the vehicle.

    Falls back to the last waypoint when the whole path lies inside the lookahead
    circle, so any non-empty path yields a target. Returns -1 for an empty path.
    """
    if not path:
        return -1
    here = pose.position
    last = len(path) - 1
    for i, wp in enumerate(path):
        if i == last:
            log.debug("search waypoint is the last (%d)", i)
            return i
        if plane_distance(wp.position, here) > lookahead_distance:
            return i
    return -1
