from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Sequence, Tuple

from ..utils.geo import plane_distance
from .curvature import compute_curvature
from .interpolation import InterpolationFailure, interpolate_target
from .search import select_next_waypoint
from .types import LookaheadConfig, Point, Pose, TrackingState, Waypoint

log = logging.getLogger(__name__)


class TrackingStatus(Enum):
    OK = "ok"
    PATH_LOST = "path_lost"
    NO_VALID_CURVE = "no_valid_curve"
    TARGET_LOST = "target_lost"


class TargetKind(Enum):
    RAW = "raw"
    INTERPOLATED = "interpolated"


@dataclass(frozen=True)
class CurvatureResult:
    """Outcome of one tracking tick. ``kappa`` is meaningful only on success.

    Unpacks as ``(success, kappa)``.
    """

    status: TrackingStatus
    kappa: float = 0.0
    state: TrackingState = field(default_factory=TrackingState)
    target_kind: Optional[TargetKind] = None
    interpolation_failure: Optional[InterpolationFailure] = None

    @property
    def success(self) -> bool:
        return self.status is TrackingStatus.OK

    def __iter__(self) -> Iterator:
        return iter((self.success, self.kappa))


def choose_target_kind(path_length: int, index: int, use_linear_interpolation: bool) -> TargetKind:
    """Raw waypoint at the path ends or with interpolation disabled, else interpolated."""
    if not use_linear_interpolation or index == 0 or index == path_length - 1:
        return TargetKind.RAW
    return TargetKind.INTERPOLATED


def has_valid_curve(path: Sequence[Waypoint], pose: Pose, minimum_lookahead_distance: float) -> bool:
    """True if some waypoint lies beyond the minimum lookahead distance."""
    here = pose.position
    return any(plane_distance(wp.position, here) > minimum_lookahead_distance for wp in path)


def try_compute_curvature(path: Sequence[Waypoint], pose: Pose, config: LookaheadConfig) -> CurvatureResult:
    """Compute the steering curvature for one control tick.

    Pure function of its inputs. Failures are reported through
    :class:`CurvatureResult.status`, never raised.
    """
    idx = select_next_waypoint(path, pose, config.lookahead_distance)
    if idx == -1:
        return CurvatureResult(status=TrackingStatus.PATH_LOST)
    state = TrackingState(next_waypoint_index=idx)

    if not has_valid_curve(path, pose, config.minimum_lookahead_distance):
        return CurvatureResult(status=TrackingStatus.NO_VALID_CURVE, state=state)

    kind = choose_target_kind(len(path), idx, config.use_linear_interpolation)
    if kind is TargetKind.RAW:
        target = path[idx].position
    else:
        interp = interpolate_target(path, idx, pose, config.lookahead_distance)
        if not interp.ok:
            return CurvatureResult(
                status=TrackingStatus.TARGET_LOST,
                state=state,
                target_kind=kind,
                interpolation_failure=interp.failure,
            )
        target = interp.target

    state = TrackingState(next_waypoint_index=idx, next_target_position=target)
    return CurvatureResult(
        status=TrackingStatus.OK,
        kappa=compute_curvature(target, pose),
        state=state,
        target_kind=kind,
    )


class PurePursuit:
    """Stateful wrapper holding the latest pose/path snapshot and last tick diagnostics."""

    def __init__(self, config: LookaheadConfig) -> None:
        self.config = config
        self._pose: Optional[Pose] = None
        self._path: Tuple[Waypoint, ...] = ()
        self._state = TrackingState()

    def set_config(self, config: LookaheadConfig) -> None:
        self.config = config

    def set_pose(self, pose: Optional[Pose]) -> None:
        """None drops a stale pose, e.g. after localization is lost."""
        self._pose = pose

    def set_path(self, waypoints: Sequence[Waypoint]) -> None:
        self._path = tuple(waypoints)
        self._state = TrackingState()

    @property
    def next_waypoint_index(self) -> int:
        return self._state.next_waypoint_index

    @property
    def next_waypoint_position(self) -> Optional[Point]:
        idx = self._state.next_waypoint_index
        if 0 <= idx < len(self._path):
            return self._path[idx].position
        return None

    @property
    def next_target_position(self) -> Optional[Point]:
        return self._state.next_target_position

    def can_get_curvature(self) -> CurvatureResult:
        if self._pose is None:
            log.info("no pose received yet")
            self._state = TrackingState()
            return CurvatureResult(status=TrackingStatus.PATH_LOST)
        result = try_compute_curvature(self._path, self._pose, self.config)
        self._state = result.state
        if result.success:
            log.debug(
                "next waypoint %d, target (%.3f, %.3f), kappa %f",
                result.state.next_waypoint_index,
                result.state.next_target_position.x,
                result.state.next_target_position.y,
                result.kappa,
            )
        elif result.status is TrackingStatus.TARGET_LOST:
            log.info("lost target (%s)", result.interpolation_failure.value)
        else:
            log.info("no curvature this tick: %s", result.status.value)
        return result
