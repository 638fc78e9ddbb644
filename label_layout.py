# label_layout.py
# Computes where a label's background and text go, kept inside the canvas.

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2

from config import FONT_SCALE, FONT_THICKNESS, OBJECT_LABEL_GAP, TEXT_MARGIN, TEXT_PADDING
from errors import GeometryDegenerate
from geometry import Point, Rect, clamp

logger = logging.getLogger(__name__)


class HersheyFont:
    """Font metrics backed by cv2.getTextSize."""

    def __init__(self, face: int = cv2.FONT_HERSHEY_SIMPLEX, scale: float = FONT_SCALE,
                 thickness: int = FONT_THICKNESS):
        self.face = face
        self.scale = scale
        self.thickness = thickness

    def measure(self, text: str) -> Tuple[int, int]:
        (width, height), _baseline = cv2.getTextSize(text, self.face, self.scale, self.thickness)
        return width, height


@dataclass(frozen=True)
class LabelLayout:
    rect_x: float
    rect_y: float
    rect_width: float
    rect_height: float
    text_x: float
    text_y: float  # vertical middle of the text line

    @property
    def rect(self) -> Rect:
        return Rect(self.rect_x, self.rect_y, self.rect_width, self.rect_height)


# ---------- Placement rules ----------

class Placement:
    """Where a label goes relative to a box.

    ``anchor_for`` turns a detection box into the anchor point the tracker
    smooths; ``origin`` turns an anchor plus the label size into the top-left
    corner of the background rectangle.
    """

    def anchor_for(self, box: Rect) -> Point:
        raise NotImplementedError

    def origin(self, anchor: Point, width: float, height: float) -> Tuple[float, float]:
        raise NotImplementedError


class LeftCenter(Placement):
    """Anchor is the rectangle's left-center, beside the box's right edge."""

    def __init__(self, margin: float = TEXT_MARGIN):
        self.margin = margin

    def anchor_for(self, box: Rect) -> Point:
        return Point(box.right + self.margin, box.y + box.height / 2)

    def origin(self, anchor, width, height):
        return anchor.x, anchor.y - height / 2


class CenteredInBox(Placement):
    def anchor_for(self, box: Rect) -> Point:
        return box.center

    def origin(self, anchor, width, height):
        return anchor.x - width / 2, anchor.y - height / 2


class CenteredAboveBox(Placement):
    """Centered horizontally over the box, ``gap`` pixels above its top edge."""

    def __init__(self, gap: float = OBJECT_LABEL_GAP):
        self.gap = gap

    def anchor_for(self, box: Rect) -> Point:
        return Point(box.x + box.width / 2, box.y)

    def origin(self, anchor, width, height):
        return anchor.x - width / 2, anchor.y - self.gap - height


# ---------- Layout ----------

def label_size(text: str, font, canvas_size: Tuple[float, float],
               padding: float = TEXT_PADDING) -> Tuple[float, float]:
    """Background rectangle size for ``text``, shrunk to fit the canvas.

    Raises GeometryDegenerate for an empty canvas or zero-size glyphs.
    """
    canvas_w, canvas_h = canvas_size
    if canvas_w <= 0 or canvas_h <= 0:
        raise GeometryDegenerate(f"canvas is {canvas_w}x{canvas_h}")

    text_w, text_h = font.measure(text)
    if text_w <= 0 or text_h <= 0:
        raise GeometryDegenerate(f"text {text!r} measured {text_w}x{text_h}")

    return min(text_w + 2 * padding, canvas_w), min(text_h + 2 * padding, canvas_h)


def layout(
    anchor: Point,
    text: str,
    font,
    canvas_size: Tuple[float, float],
    placement: Placement,
    padding: float = TEXT_PADDING,
) -> Optional[LabelLayout]:
    """Lay out one label.

    ``font`` is anything with ``measure(text) -> (width, height)``.
    ``canvas_size`` is (width, height). Returns None for degenerate input
    (empty text, empty canvas, zero-size glyphs, non-finite anchor); the
    caller skips that label.
    """
    if not text or anchor is None or not (math.isfinite(anchor.x) and math.isfinite(anchor.y)):
        logger.debug(f"layout: skipping label {text!r}, nothing to place")
        return None

    try:
        rect_w, rect_h = label_size(text, font, canvas_size, padding)
    except GeometryDegenerate as e:
        logger.debug(f"layout: skipping label {text!r}, {e}")
        return None

    canvas_w, canvas_h = canvas_size
    x, y = placement.origin(anchor, rect_w, rect_h)
    x = clamp(x, 0, canvas_w - rect_w)
    y = clamp(y, 0, canvas_h - rect_h)

    return LabelLayout(
        rect_x=x,
        rect_y=y,
        rect_width=rect_w,
        rect_height=rect_h,
        text_x=x + padding,
        text_y=y + rect_h / 2,
    )
