# position_smoother.py
# Exponential smoothing of label anchors.

import logging
from typing import Optional

from config import LABEL_SMOOTHING_FACTOR
from geometry import Point

logger = logging.getLogger(__name__)


class PositionSmoother:
    """Linear interpolation of an anchor toward its target, once per frame.

    ``result = previous + (target - previous) * alpha``. With no previous value
    the target is returned as is, so a new label does not slide in from the
    origin.
    """

    def __init__(self, alpha: float = LABEL_SMOOTHING_FACTOR):
        if not 0.0 < alpha <= 1.0:
            raise ValueError("alpha must be in (0, 1]")
        self.alpha = alpha

    def smooth(self, tracking_id, target: Point, previous: Optional[Point]) -> Point:
        if previous is None:
            logger.debug(f"PositionSmoother: first sighting of {tracking_id}, anchor at target")
            return target
        return Point(
            previous.x + (target.x - previous.x) * self.alpha,
            previous.y + (target.y - previous.y) * self.alpha,
        )
