from __future__ import annotations

import json
from typing import Any, List, Tuple

import pytest

from waypoint_follower.core.controllers import CurvatureResult, TrackingStatus
from waypoint_follower.core.state_machine import Follower, State
from waypoint_follower.core.types import FollowerSettings, Pose, Waypoint
from waypoint_follower.main import load_settings, main, simulate
from waypoint_follower.mission.local_path import LocalPathPublisher
from waypoint_follower.mission.path_buffer import PathBuffer
from waypoint_follower.utils.geo import plane_distance


class RecordingSink:
    """CommandSink that records the issued commands."""

    def __init__(self) -> None:
        self.history: List[Tuple[str, Tuple[Any, ...]]] = []

    def drive(self, speed_mps: float, angular_velocity_rps: float) -> None:
        self.history.append(("drive", (speed_mps, angular_velocity_rps)))

    def stop(self) -> None:
        self.history.append(("stop", ()))


def _settings(**kw) -> FollowerSettings:
    base = dict(
        lookahead_distance=4.5,
        minimum_lookahead_distance=1.0,
        speed_mps=2.0,
        rate_hz=20.0,
        max_hold_ticks=2,
        max_ticks=2000,
        wheelbase_m=1.0,
    )
    base.update(kw)
    return FollowerSettings(**base)


def _l_shaped_route() -> List[Waypoint]:
    leg1 = [Waypoint(x=float(i), y=0.0) for i in range(0, 31)]
    leg2 = [Waypoint(x=30.0, y=float(j)) for j in range(1, 31)]
    return leg1 + leg2


def test_follower_drives_then_completes_at_goal():
    sink = RecordingSink()
    route = [Waypoint(x=float(i), y=0.0) for i in range(0, 21)]
    inputs = PathBuffer(route, pose=Pose(x=0.0, y=0.0))
    follower = Follower(sink, inputs, _settings())

    follower.tick()
    assert follower.state is State.TRACKING
    assert sink.history[-1][0] == "drive"
    assert sink.history[-1][1][1] == pytest.approx(0.0, abs=1e-12)

    inputs.replace_path(route[-3:])
    inputs.update_pose(Pose(x=19.5, y=0.0))
    follower.tick()  # aims at the final waypoint
    follower.tick()
    assert follower.state is State.COMPLETED
    assert follower.is_done
    assert sink.history[-1] == ("stop", ())
    assert follower.tick() is None


def test_follower_commands_yaw_rate_from_curvature():
    sink = RecordingSink()
    route = [Waypoint(x=0.0, y=0.0), Waypoint(x=4.0, y=2.0), Waypoint(x=8.0, y=4.0)]
    follower = Follower(sink, PathBuffer(route, pose=Pose(x=0.0, y=0.0)), _settings(speed_mps=2.0))

    result = follower.tick()
    assert result.success
    assert result.kappa > 0.0
    speed, yaw_rate = sink.history[-1][1]
    assert speed == 2.0
    assert yaw_rate == pytest.approx(2.0 * result.kappa)


def test_follower_holds_then_aborts_on_lost_target(monkeypatch):
    sink = RecordingSink()
    route = [Waypoint(x=float(i), y=0.0) for i in range(0, 21)]
    follower = Follower(sink, PathBuffer(route, pose=Pose(x=0.0, y=0.0)), _settings(max_hold_ticks=2))
    follower.tick()
    first = sink.history[-1]

    monkeypatch.setattr(
        follower.tracker,
        "can_get_curvature",
        lambda: CurvatureResult(status=TrackingStatus.TARGET_LOST),
    )
    follower.tick()
    follower.tick()
    assert follower.state is State.HOLDING
    assert sink.history[-2:] == [first, first]

    follower.tick()
    assert follower.state is State.ABORTED
    assert sink.history[-1] == ("stop", ())

    follower.resume()
    assert follower.state is State.IDLE and not follower.is_done


def test_follower_waits_for_inputs_and_reloads_path():
    sink = RecordingSink()
    inputs = PathBuffer()
    follower = Follower(sink, inputs, _settings())
    assert follower.tick() is None
    assert follower.state is State.IDLE

    follower.handle_estop()
    assert follower.is_done and follower.state is State.ABORTED

    inputs.update_pose(Pose(x=0.0, y=0.0))
    follower.load_path([Waypoint(x=0.0, y=0.0), Waypoint(x=10.0, y=0.0)])
    assert not follower.is_done
    result = follower.tick()
    assert result is not None and result.success
    assert follower.state is State.TRACKING


def test_local_path_publisher_moves_forward_only():
    route = _l_shaped_route()
    planner = LocalPathPublisher(route)
    first = planner.update(Pose(x=0.2, y=0.0))
    assert first is not None and len(first) == len(route)
    assert planner.update(Pose(x=0.3, y=0.0)) is None

    ahead = planner.update(Pose(x=12.1, y=0.4))
    assert ahead[0] == route[12]
    # stepping back does not rewind the route
    assert planner.update(Pose(x=2.0, y=0.0)) is None
    assert planner.closest_index == 12


@pytest.mark.integration
def test_closed_loop_follows_l_shaped_route():
    route = _l_shaped_route()
    summary = simulate(route, _settings())
    assert summary["state"] == "COMPLETED"
    assert summary["distance_to_goal_m"] <= 1.0
    assert summary["ticks"] < 2000


@pytest.mark.integration
def test_closed_loop_without_interpolation():
    route = _l_shaped_route()
    summary = simulate(route, _settings(use_linear_interpolation=False), start=Pose(x=0.0, y=0.0, yaw_deg=0.0))
    assert summary["state"] == "COMPLETED"
    final = Waypoint(**{k: summary["final_pose"][k] for k in ("x", "y")})
    assert plane_distance(final.position, route[-1].position) <= 1.0


def test_load_settings_overrides(tmp_path):
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("lookahead_distance: 6.0\nspeed_mps: 3.0\n")
    s = load_settings(str(cfg), {"speed_mps": 1.5, "max_ticks": None})
    assert s.lookahead_distance == 6.0
    assert s.speed_mps == 1.5
    assert s.use_linear_interpolation is True


def test_cli_run(tmp_path, capsys):
    route = tmp_path / "route.csv"
    route.write_text("x,y\n" + "".join(f"{i},0\n" for i in range(0, 25)))
    code = main(["run", "--path", str(route), "--lookahead", "3.5", "--no-log-file", "--log-level", "WARNING"])
    out = json.loads(capsys.readouterr().out)
    assert code == 0
    assert out["state"] == "COMPLETED"
    assert out["final_pose"]["x"] > 23.0


def test_cli_rejects_bad_settings(tmp_path, capsys):
    route = tmp_path / "route.csv"
    route.write_text("0,0\n5,0\n")
    code = main(["run", "--path", str(route), "--lookahead", "1", "--min-lookahead", "2", "--no-log-file"])
    assert code == 2
    assert "waypoint-follower" in capsys.readouterr().err
