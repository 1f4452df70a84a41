from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Sequence, Tuple

from ..mission.path_buffer import PathBuffer
from ..sim.vehicle import CommandSink
from ..utils.geo import plane_distance
from .controllers import CurvatureResult, PurePursuit, TrackingStatus
from .types import FollowerSettings, Pose, Waypoint

log = logging.getLogger(__name__)


class State(Enum):
    IDLE = 0
    TRACKING = 1
    HOLDING = 2
    COMPLETED = 3
    ABORTED = 4


class Follower:
    """Control loop glue: snapshot inputs, compute curvature, command the vehicle.

    A tick without curvature holds the last command for up to ``max_hold_ticks``
    ticks before stopping. Running out of path beyond the minimum lookahead
    distance completes the run.
    """

    def __init__(self, sink: CommandSink, inputs: PathBuffer, settings: FollowerSettings):
        self.sink = sink
        self.inputs = inputs
        self.settings = settings
        self.tracker = PurePursuit(settings.lookahead())
        self.state = State.IDLE
        self.is_done = False
        self.last_result: Optional[CurvatureResult] = None
        self._last_command: Optional[Tuple[float, float]] = None
        self._held = 0
        self._revision = -1

    def tick(self) -> Optional[CurvatureResult]:
        if self.is_done:
            return None
        pose, path, revision = self.inputs.snapshot()
        if revision != self._revision:
            self._revision = revision
            self.tracker.set_path(path)
            log.debug("Path updated: %d waypoints", len(path))

        if pose is None or not path:
            log.debug("Waiting for pose and path...")
            return None

        if self._reached_goal(pose, path):
            self._finish(State.COMPLETED)
            log.info("Reached final waypoint")
            return self.last_result

        self.tracker.set_pose(pose)
        result = self.tracker.can_get_curvature()
        self.last_result = result

        if result.success:
            speed = self.settings.speed_mps
            self._last_command = (speed, speed * result.kappa)
            self._held = 0
            self.state = State.TRACKING
            self.sink.drive(*self._last_command)
        elif result.status is TrackingStatus.NO_VALID_CURVE:
            self._finish(State.COMPLETED)
            log.info("Reached end of path")
        elif self._held < self.settings.max_hold_ticks:
            self._held += 1
            self.state = State.HOLDING
            if self._last_command is not None:
                self.sink.drive(*self._last_command)
            else:
                self.sink.stop()
            log.info("Holding last command (%d/%d)", self._held, self.settings.max_hold_ticks)
        else:
            self._finish(State.ABORTED)
            log.warning("Tracking aborted: %s", result.status.value)
        return result

    def _reached_goal(self, pose: Pose, path: Sequence[Waypoint]) -> bool:
        # only once the tracker is already aiming at the final waypoint
        if self.tracker.next_waypoint_index != len(path) - 1:
            return False
        return plane_distance(pose.position, path[-1].position) <= self.settings.minimum_lookahead_distance

    def _finish(self, state: State) -> None:
        self.sink.stop()
        self.state = state
        self.is_done = True

    def handle_estop(self) -> None:
        if self.is_done:
            self.sink.stop()
            return
        self._finish(State.ABORTED)

    def load_path(self, waypoints: Sequence[Waypoint]) -> None:
        """Start over on a new route."""
        self.inputs.replace_path(waypoints)
        self.is_done = False
        self.state = State.IDLE
        self._last_command = None
        self._held = 0
        self.sink.stop()
        log.info("Loaded path with %d waypoints", len(waypoints))

    def resume(self) -> None:
        """Re-arm after an abort; the next tick recomputes from fresh inputs."""
        if self.state is State.ABORTED:
            self.is_done = False
            self.state = State.IDLE
            self._last_command = None
            self._held = 0
