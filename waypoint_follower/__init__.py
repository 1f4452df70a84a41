"""Pure pursuit waypoint follower."""

from .core.controllers import CurvatureResult, PurePursuit, TargetKind, TrackingStatus, try_compute_curvature
from .core.types import LookaheadConfig, Point, Pose, TrackingState, Waypoint

__all__ = [
    "CurvatureResult",
    "LookaheadConfig",
    "Point",
    "Pose",
    "PurePursuit",
    "TargetKind",
    "TrackingState",
    "TrackingStatus",
    "Waypoint",
    "try_compute_curvature",
]
