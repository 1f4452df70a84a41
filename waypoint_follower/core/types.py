from __future__ import annotations

import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Point(BaseModel):
    """Position in the map frame (metres)."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    z: float = 0.0


class Pose(BaseModel):
    """Vehicle pose in the map frame. Heading is yaw about the vertical axis."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    z: float = 0.0
    yaw_deg: float = 0.0

    @property
    def position(self) -> Point:
        return Point(x=self.x, y=self.y, z=self.z)

    @classmethod
    def from_quaternion(
        cls, x: float, y: float, z: float, qx: float, qy: float, qz: float, qw: float
    ) -> "Pose":
        """Build a pose from a position and orientation quaternion, keeping only yaw."""
        siny_cosp = 2.0 * (qw * qz + qx * qy)
        cosy_cosp = 1.0 - 2.0 * (qy * qy + qz * qz)
        return cls(x=x, y=y, z=z, yaw_deg=math.degrees(math.atan2(siny_cosp, cosy_cosp)))


class Waypoint(BaseModel):
    """Path waypoint in the map frame."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    z: float = 0.0
    speed_mps: Optional[float] = None

    @property
    def position(self) -> Point:
        return Point(x=self.x, y=self.y, z=self.z)


class LookaheadConfig(BaseModel):
    lookahead_distance: float = Field(gt=0.0)
    minimum_lookahead_distance: float = Field(gt=0.0)
    use_linear_interpolation: bool = True

    @model_validator(mode="after")
    def _check_minimum(self) -> "LookaheadConfig":
        if self.minimum_lookahead_distance > self.lookahead_distance:
            raise ValueError(
                "minimum_lookahead_distance must not exceed lookahead_distance "
                f"({self.minimum_lookahead_distance} > {self.lookahead_distance})"
            )
        return self


class TrackingState(BaseModel):
    """Target chosen on the last tick; -1 means no valid waypoint was found."""

    next_waypoint_index: int = -1
    next_target_position: Optional[Point] = None


class FollowerSettings(LookaheadConfig):
    """Merged runtime settings for the follower loop and simulation."""

    speed_mps: float = Field(default=1.0, gt=0.0)
    rate_hz: float = Field(default=20.0, gt=0.0)
    max_hold_ticks: int = Field(default=5, ge=0)
    max_ticks: int = Field(default=2000, gt=0)
    wheelbase_m: float = Field(default=2.7, gt=0.0)
    log_level: str = "INFO"
    log_file: Optional[str] = "logs/waypoint_follower.log"
    log_max_bytes: int = Field(default=2 * 1024 * 1024, gt=0)
    log_backup_count: int = Field(default=3, ge=0)

    def lookahead(self) -> LookaheadConfig:
        return LookaheadConfig(
            lookahead_distance=self.lookahead_distance,
            minimum_lookahead_distance=self.minimum_lookahead_distance,
            use_linear_interpolation=self.use_linear_interpolation,
        )
