from __future__ import annotations

import pytest

from waypoint_follower.core.curvature import KAPPA_MIN, compute_curvature
from waypoint_follower.core.types import Point, Pose

ORIGIN = Pose(x=0.0, y=0.0, yaw_deg=0.0)


def test_straight_ahead_is_zero():
    assert compute_curvature(Point(x=10, y=0), ORIGIN) == 0.0


def test_left_is_positive_right_is_negative():
    assert compute_curvature(Point(x=4, y=2), ORIGIN) == pytest.approx(0.25)
    assert compute_curvature(Point(x=4, y=-2), ORIGIN) == pytest.approx(-0.25)


def test_abeam_target_saturates():
    assert compute_curvature(Point(x=0, y=5), ORIGIN) == KAPPA_MIN
    assert compute_curvature(Point(x=0, y=-5), ORIGIN) == -KAPPA_MIN


def test_target_on_vehicle_saturates_negative():
    assert compute_curvature(Point(x=0, y=0), ORIGIN) == -KAPPA_MIN


def test_custom_saturation():
    assert compute_curvature(Point(x=0, y=1), ORIGIN, kappa_saturation=2.5) == 2.5


def test_uses_vehicle_frame():
    pose = Pose(x=1.0, y=1.0, yaw_deg=90.0)
    assert compute_curvature(Point(x=1.0, y=11.0), pose) == pytest.approx(0.0, abs=1e-12)
    # 4 m ahead, 2 m to the right of a north-facing vehicle
    assert compute_curvature(Point(x=3.0, y=5.0), pose) == pytest.approx(-0.25)


def test_target_behind_keeps_lateral_sign():
    assert compute_curvature(Point(x=-2, y=1), ORIGIN) == pytest.approx(0.5)
