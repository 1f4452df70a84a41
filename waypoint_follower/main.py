from __future__ import annotations

import argparse
import json
import logging
import math
import os
import sys
from typing import Any, Dict, Optional, Sequence

import yaml
from pydantic import ValidationError

from .core.state_machine import Follower, State
from .core.types import FollowerSettings, Pose, Waypoint
from .mission.local_path import LocalPathPublisher
from .mission.path_buffer import PathBuffer
from .mission.path_loader import load_path
from .sim.vehicle import KinematicVehicle
from .utils.geo import plane_distance
from .utils.logging_setup import setup_logging

DEFAULT_CONFIG = os.path.join(os.path.dirname(__file__), "config", "default.yaml")

log = logging.getLogger(__name__)


def load_yaml(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_settings(config_path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> FollowerSettings:
    """Merge default.yaml, an optional override file, and CLI overrides (None values skipped)."""
    cfg = load_yaml(DEFAULT_CONFIG)
    if config_path:
        cfg.update(load_yaml(config_path))
    cfg.update({k: v for k, v in (overrides or {}).items() if v is not None})
    return FollowerSettings(**cfg)


def parse_start(text: str) -> Pose:
    parts = [float(p) for p in text.split(",")]
    if len(parts) not in (2, 3):
        raise ValueError(f"start pose must be 'x,y' or 'x,y,yaw_deg', got {text!r}")
    return Pose(x=parts[0], y=parts[1], yaw_deg=parts[2] if len(parts) == 3 else 0.0)


def default_start(path: Sequence[Waypoint]) -> Pose:
    """Start on the first waypoint, facing the second one."""
    first = path[0]
    yaw = 0.0
    if len(path) > 1:
        yaw = math.degrees(math.atan2(path[1].y - first.y, path[1].x - first.x))
    return Pose(x=first.x, y=first.y, z=first.z, yaw_deg=yaw)


def simulate(path: Sequence[Waypoint], settings: FollowerSettings, start: Optional[Pose] = None) -> dict:
    """Run the follower against a kinematic vehicle until it finishes or ``max_ticks`` elapse."""
    vehicle = KinematicVehicle(start or default_start(path), wheelbase_m=settings.wheelbase_m)
    planner = LocalPathPublisher(path)
    inputs = PathBuffer(planner.update(vehicle.pose) or (), pose=vehicle.pose)
    follower = Follower(vehicle, inputs, settings)
    dt = 1.0 / settings.rate_hz

    ticks = 0
    while not follower.is_done and ticks < settings.max_ticks:
        follower.tick()
        pose = vehicle.step(dt)
        inputs.update_pose(pose)
        local = planner.update(pose)
        if local is not None:
            inputs.replace_path(local)
        ticks += 1
    if not follower.is_done:
        log.warning("Stopped after %d ticks without finishing", ticks)
        follower.handle_estop()

    final = vehicle.pose
    return {
        "state": follower.state.name,
        "ticks": ticks,
        "final_pose": {"x": final.x, "y": final.y, "yaw_deg": final.yaw_deg},
        "distance_to_goal_m": plane_distance(final.position, path[-1].position),
        "last_steering_deg": vehicle.steering_angle_deg(vehicle.kappa),
    }


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="waypoint-follower")
    sub = parser.add_subparsers(dest="cmd", required=True)
    runp = sub.add_parser("run", help="Follow a path with a simulated vehicle")
    runp.add_argument("--path", required=True, help="Waypoint file (.csv, .yaml, .plan)")
    runp.add_argument("--config", type=str, default=None, help="Path to YAML settings override")
    runp.add_argument("--lookahead", type=float, default=None, help="Lookahead distance [m]")
    runp.add_argument("--min-lookahead", type=float, default=None, help="Minimum lookahead distance [m]")
    runp.add_argument(
        "--no-interpolation", action="store_true", help="Aim at raw waypoints instead of interpolated targets"
    )
    runp.add_argument("--speed", type=float, default=None, help="Target speed m/s")
    runp.add_argument("--max-ticks", type=int, default=None)
    runp.add_argument("--start", type=str, default=None, help="Start pose 'x,y[,yaw_deg]'")
    runp.add_argument("--log-level", type=str, default=os.getenv("LOG_LEVEL", None))
    runp.add_argument("--log-file", type=str, default=None, help="Rotating log file path")
    runp.add_argument("--no-log-file", action="store_true")

    args = parser.parse_args(argv)

    try:
        settings = load_settings(
            args.config,
            {
                "lookahead_distance": args.lookahead,
                "minimum_lookahead_distance": args.min_lookahead,
                "use_linear_interpolation": False if args.no_interpolation else None,
                "speed_mps": args.speed,
                "max_ticks": args.max_ticks,
                "log_level": args.log_level,
                "log_file": args.log_file,
            },
        )
        start = parse_start(args.start) if args.start else None
        log_path = setup_logging(settings, to_file=not args.no_log_file)
        path = load_path(args.path)
    except (OSError, ValueError, ValidationError) as e:
        print(f"waypoint-follower: {e}", file=sys.stderr)
        return 2

    if not path:
        print(f"waypoint-follower: no waypoints in {args.path}", file=sys.stderr)
        return 2

    log.info(
        "Following %d waypoints (lookahead %.2f m, interpolation %s)",
        len(path),
        settings.lookahead_distance,
        "on" if settings.use_linear_interpolation else "off",
    )
    if log_path:
        log.info("Writing log to %s", log_path)
    summary = simulate(path, settings, start)
    print(json.dumps(summary, indent=2))
    return 0 if summary["state"] == State.COMPLETED.name else 1


if __name__ == "__main__":
    sys.exit(main())
