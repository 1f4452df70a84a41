from __future__ import annotations

import csv
import json
import os
from typing import List, Optional, Tuple

import yaml

from ..core.types import Waypoint
from ..utils.geo import lla_to_enu

KMPH_TO_MPS = 1.0 / 3.6


def load_waypoints_csv(path: str) -> List[Waypoint]:
    """Parse an Autoware-style waypoint CSV into map-frame waypoints.

    With a header, the ``x``, ``y``, ``z`` and ``velocity`` (km/h) columns are used;
    any other columns (``yaw``, ``change_flag``...) are ignored. Without a header
    each row is ``x,y[,z]``. Blank lines and ``#`` comments are skipped.
    """
    with open(path, "r", encoding="utf-8", newline="") as f:
        rows = [r for r in csv.reader(f) if r and not r[0].lstrip().startswith("#")]
    if not rows:
        return []

    header = [h.strip().lower() for h in rows[0]]
    wps: List[Waypoint] = []
    if "x" in header and "y" in header:
        ix, iy = header.index("x"), header.index("y")
        iz = header.index("z") if "z" in header else None
        iv = header.index("velocity") if "velocity" in header else None
        for lineno, row in enumerate(rows[1:], start=2):
            try:
                speed = float(row[iv]) * KMPH_TO_MPS if iv is not None and row[iv].strip() else None
                wps.append(
                    Waypoint(
                        x=float(row[ix]),
                        y=float(row[iy]),
                        z=float(row[iz]) if iz is not None and row[iz].strip() else 0.0,
                        speed_mps=speed,
                    )
                )
            except (IndexError, ValueError) as e:
                raise ValueError(f"{path}:{lineno}: malformed waypoint row {row!r}") from e
        return wps

    for lineno, row in enumerate(rows, start=1):
        try:
            z = float(row[2]) if len(row) > 2 and row[2].strip() else 0.0
            wps.append(Waypoint(x=float(row[0]), y=float(row[1]), z=z))
        except (IndexError, ValueError) as e:
            raise ValueError(f"{path}:{lineno}: malformed waypoint row {row!r}") from e
    return wps


def load_path_yaml(path: str) -> List[Waypoint]:
    """Load ``waypoints: [{x, y, z?, speed_mps?}, ...]`` or a bare list of ``[x, y(, z)]``."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    items = data.get("waypoints", []) if isinstance(data, dict) else data
    wps: List[Waypoint] = []
    for it in items:
        if isinstance(it, dict):
            wps.append(Waypoint(**it))
        else:
            xs = [float(v) for v in it]
            wps.append(Waypoint(x=xs[0], y=xs[1], z=xs[2] if len(xs) > 2 else 0.0))
    return wps


def load_qgc_plan(path: str, home: Optional[Tuple[float, float, float]] = None) -> List[Waypoint]:
    """Parse a QGroundControl .plan into local ENU waypoints.

    Only MAV_CMD_NAV_WAYPOINT items are converted. The ENU origin is ``home`` if
    given, else the plan's ``plannedHomePosition``, else the first waypoint.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    mission = data.get("mission", {})
    lla: List[Tuple[float, float, Optional[float], Optional[float]]] = []
    for it in mission.get("items", []):
        cmd = it.get("command") or it.get("Command")
        if cmd not in (16, "MAV_CMD_NAV_WAYPOINT"):
            continue
        coord = it.get("coordinate") or [None, None, None]
        params = it.get("params") or [None] * 7
        lat = coord[0] if coord[0] is not None else params[4]
        lon = coord[1] if coord[1] is not None else params[5]
        alt = coord[2] if len(coord) > 2 and coord[2] is not None else params[6]
        if lat is None or lon is None:
            continue
        speed = it.get("Speed")
        lla.append(
            (
                float(lat),
                float(lon),
                float(alt) if alt is not None else None,
                float(speed) if speed is not None else None,
            )
        )
    if not lla:
        return []

    if home is None:
        planned = mission.get("plannedHomePosition")
        if planned and len(planned) >= 2:
            home = (float(planned[0]), float(planned[1]), float(planned[2]) if len(planned) > 2 else 0.0)
        else:
            home = (lla[0][0], lla[0][1], lla[0][2] or 0.0)

    wps: List[Waypoint] = []
    for lat, lon, alt, speed in lla:
        e, n, u = lla_to_enu(home, (lat, lon, alt if alt is not None else home[2]))
        wps.append(Waypoint(x=e, y=n, z=u, speed_mps=speed))
    return wps


def load_path(path: str) -> List[Waypoint]:
    """Load a path file, choosing the parser from its extension."""
    ext = os.path.splitext(path)[1].lower()
    if ext == ".csv":
        return load_waypoints_csv(path)
    if ext in (".yaml", ".yml"):
        return load_path_yaml(path)
    if ext == ".plan":
        return load_qgc_plan(path)
    raise ValueError(f"unsupported path file extension: {ext or path}")
