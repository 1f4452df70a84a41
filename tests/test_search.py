from __future__ import annotations

from waypoint_follower.core.search import select_next_waypoint
from waypoint_follower.core.types import Pose, Waypoint


def _path(*xy):
    return [Waypoint(x=x, y=y) for x, y in xy]


def test_empty_path_has_no_target():
    assert select_next_waypoint([], Pose(x=0, y=0), 5.0) == -1


def test_selects_first_waypoint_beyond_lookahead():
    path = _path((0, 0), (5, 0), (10, 0), (15, 5))
    assert select_next_waypoint(path, Pose(x=0, y=0), 7.0) == 2


def test_distance_equal_to_lookahead_is_not_beyond():
    path = _path((0, 0), (7, 0), (8, 0), (20, 0))
    assert select_next_waypoint(path, Pose(x=0, y=0), 7.0) == 2


def test_falls_back_to_last_waypoint_inside_radius():
    path = _path((0, 0), (1, 0), (2, 1), (1, 2))
    assert select_next_waypoint(path, Pose(x=0.5, y=0.5), 10.0) == 3


def test_single_waypoint_is_always_selected():
    assert select_next_waypoint(_path((100, 100)), Pose(x=0, y=0), 1.0) == 0
    assert select_next_waypoint(_path((0.1, 0)), Pose(x=0, y=0), 1.0) == 0


def test_height_is_ignored():
    path = [Waypoint(x=1, y=0, z=50.0), Waypoint(x=9, y=0)]
    assert select_next_waypoint(path, Pose(x=0, y=0), 5.0) == 1
