# geometry.py
# Box and path helpers shared by the tracker, layout engine and renderer.

import math
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in display coordinates."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_trbl(cls, top, right, bottom, left) -> "Rect":
        """Build from the (top, right, bottom, left) order face_recognition uses."""
        return cls(float(left), float(top), float(right - left), float(bottom - top))

    @classmethod
    def from_xyxy(cls, x1, y1, x2, y2) -> "Rect":
        return cls(float(x1), float(y1), float(x2 - x1), float(y2 - y1))

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    @property
    def is_degenerate(self) -> bool:
        return not (self.width > 0 and self.height > 0)

    def scaled(self, factor: float) -> "Rect":
        return Rect(self.x * factor, self.y * factor, self.width * factor, self.height * factor)


def center_distance(box_a: Optional[Rect], box_b: Optional[Rect]) -> float:
    """Euclidean distance between box centers; a missing box is infinitely far."""
    if box_a is None or box_b is None:
        return math.inf
    ca = box_a.center
    cb = box_b.center
    return math.hypot(ca.x - cb.x, ca.y - cb.y)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def rounded_rect_points(rect: Rect, radius: float) -> np.ndarray:
    """Polygon outlining ``rect`` with rounded corners, ready for cv2.fillPoly.

    The radius is limited to half the shortest side and never negative.
    """
    radius = min(radius, rect.width / 2, rect.height / 2)
    radius = max(0, int(round(radius)))

    x1, y1 = int(round(rect.x)), int(round(rect.y))
    x2, y2 = int(round(rect.right)), int(round(rect.bottom))

    if radius == 0:
        return np.array([[x1, y1], [x2, y1], [x2, y2], [x1, y2]], dtype=np.int32)

    # corner centers and their arc ranges, clockwise from top-left
    corners = [
        ((x1 + radius, y1 + radius), 180, 270),
        ((x2 - radius, y1 + radius), 270, 360),
        ((x2 - radius, y2 - radius), 0, 90),
        ((x1 + radius, y2 - radius), 90, 180),
    ]
    points = []
    for center, start, end in corners:
        arc = cv2.ellipse2Poly(center, (radius, radius), 0, start, end, 15)
        points.extend(arc.tolist())
    return np.array(points, dtype=np.int32)
