from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from ..core.types import Pose, Waypoint
from ..utils.geo import plane_distance

log = logging.getLogger(__name__)


class LocalPathPublisher:
    """Publishes the global path trimmed to start at the closest waypoint.

    The tracker searches its path from index 0, so it must be handed the part
    of the route that is still ahead. The closest index only moves forward.
    """

    def __init__(self, waypoints: Sequence[Waypoint], search_window: Optional[int] = None):
        self._wps: List[Waypoint] = list(waypoints)
        self._window = search_window
        self._closest = -1

    @property
    def closest_index(self) -> int:
        return self._closest

    def update(self, pose: Pose) -> Optional[Tuple[Waypoint, ...]]:
        """Return the trimmed path if the closest waypoint changed, else None."""
        if not self._wps:
            return None
        first = max(self._closest, 0)
        last = len(self._wps) if self._window is None else min(len(self._wps), first + self._window)
        here = pose.position
        best = first
        best_d = plane_distance(self._wps[first].position, here)
        for i in range(first + 1, last):
            d = plane_distance(self._wps[i].position, here)
            if d < best_d:
                best, best_d = i, d
        if best == self._closest:
            return None
        self._closest = best
        log.debug("closest waypoint %d (%.2f m)", best, best_d)
        return tuple(self._wps[best:])
