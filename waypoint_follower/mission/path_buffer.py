from __future__ import annotations

import threading
from typing import Optional, Sequence, Tuple

from ..core.types import Pose, Waypoint


class PathBuffer:
    """Latest pose and path, replaced wholesale and read as an immutable snapshot.

    Producers (localization, planning) may update from other threads; the
    follower takes one snapshot per tick so the core never sees a partial update.
    """

    def __init__(self, waypoints: Sequence[Waypoint] = (), pose: Optional[Pose] = None):
        self._lock = threading.Lock()
        self._path: Tuple[Waypoint, ...] = tuple(waypoints)
        self._pose = pose
        self._revision = 0

    def replace_path(self, waypoints: Sequence[Waypoint]) -> None:
        with self._lock:
            self._path = tuple(waypoints)
            self._revision += 1

    def update_pose(self, pose: Pose) -> None:
        with self._lock:
            self._pose = pose

    def snapshot(self) -> Tuple[Optional[Pose], Tuple[Waypoint, ...], int]:
        """Return (pose, path, path_revision) as seen at one instant."""
        with self._lock:
            return self._pose, self._path, self._revision
