from __future__ import annotations

import logging

from ..utils.geo import to_local_frame
from .types import Point, Pose

log = logging.getLogger(__name__)

# saturation magnitude used when the target is exactly abeam (1/m)
KAPPA_MIN = 1.0e9


def compute_curvature(target: Point, pose: Pose, kappa_saturation: float = KAPPA_MIN) -> float:
    """Signed curvature of the arc from the vehicle to ``target``.

    Fits ``y = a*x**2`` in the vehicle frame through the origin and the target,
    giving ``kappa = 2*y / x**2``. Positive values turn left. A target with local
    ``x`` exactly zero saturates to ``+/-kappa_saturation`` by the sign of ``y``.
    """
    pt = to_local_frame(target, pose)
    denominator = pt.x * pt.x
    numerator = 2.0 * pt.y
    if denominator != 0.0:
        kappa = numerator / denominator
    else:
        kappa = kappa_saturation if numerator > 0.0 else -kappa_saturation
    log.debug("kappa: %f (local target x=%.3f y=%.3f)", kappa, pt.x, pt.y)
    return kappa
