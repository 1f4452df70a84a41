from __future__ import annotations

import math
from typing import Protocol

from ..core.types import Pose
from ..utils.geo import wrap_angle


class CommandSink(Protocol):
    """Consumer of the follower's (speed, yaw rate) command."""

    def drive(self, speed_mps: float, angular_velocity_rps: float) -> None: ...

    def stop(self) -> None: ...


class KinematicVehicle:
    """Simulated vehicle moving along constant-curvature arcs.

    Commands arrive as speed and yaw rate; the curvature followed is their
    ratio, clipped to what the steering limit allows for the wheelbase.
    """

    def __init__(self, pose: Pose, wheelbase_m: float = 2.7, max_steer_deg: float = 35.0) -> None:
        self.pose = pose
        self.wheelbase_m = wheelbase_m
        self.max_kappa = math.tan(math.radians(max_steer_deg)) / wheelbase_m
        self.speed_mps = 0.0
        self.kappa = 0.0

    def steering_angle_deg(self, kappa: float) -> float:
        return math.degrees(math.atan(self.wheelbase_m * kappa))

    def drive(self, speed_mps: float, angular_velocity_rps: float) -> None:
        self.speed_mps = speed_mps
        # at standstill the yaw rate carries no curvature; keep the last one
        if speed_mps != 0.0:
            kappa = angular_velocity_rps / speed_mps
            self.kappa = max(-self.max_kappa, min(self.max_kappa, kappa))

    def stop(self) -> None:
        self.speed_mps = 0.0

    def step(self, dt: float) -> Pose:
        """Advance the pose by ``dt`` seconds with the last command."""
        p = self.pose
        ds = self.speed_mps * dt
        th = math.radians(p.yaw_deg)
        if self.kappa == 0.0:
            x = p.x + ds * math.cos(th)
            y = p.y + ds * math.sin(th)
            th2 = th
        else:
            th2 = th + self.kappa * ds
            x = p.x + (math.sin(th2) - math.sin(th)) / self.kappa
            y = p.y - (math.cos(th2) - math.cos(th)) / self.kappa
        self.pose = Pose(x=x, y=y, z=p.z, yaw_deg=wrap_angle(math.degrees(th2)))
        return self.pose
