# overlay_renderer.py
# Draws face and object labels onto a BGR frame with OpenCV.

import logging
from typing import Iterable, Optional

import cv2
import numpy as np

from config import (
    BACKGROUND_COLOR,
    BACKGROUND_OPACITY,
    BACKGROUND_RADIUS,
    FONT_COLOR,
    OBJECT_BOX_COLOR,
    TEXT_PADDING,
)
from geometry import Point, Rect, rounded_rect_points
from label_layout import CenteredAboveBox, HersheyFont, LabelLayout, LeftCenter, Placement, layout

logger = logging.getLogger(__name__)


class OverlayRenderer:
    def __init__(
        self,
        font: Optional[HersheyFont] = None,
        face_placement: Optional[Placement] = None,
        object_placement: Optional[Placement] = None,
        padding: float = TEXT_PADDING,
    ):
        self.font = font or HersheyFont()
        self.face_placement = face_placement or LeftCenter()
        self.object_placement = object_placement or CenteredAboveBox()
        self.padding = padding

    def render(self, frame: np.ndarray, draw_orders: Iterable = (), objects: Iterable = ()) -> np.ndarray:
        for obj in objects:
            self.draw_object(frame, obj)
        for order in draw_orders:
            self.draw_label(frame, order.anchor, order.label.display_text, self.face_placement)
        return frame

    def draw_object(self, frame: np.ndarray, detection):
        box: Rect = detection.box
        if box is None or box.is_degenerate:
            logger.debug(f"OverlayRenderer: skipping degenerate {detection.class_name} box")
            return
        cv2.rectangle(
            frame,
            (int(box.x), int(box.y)),
            (int(box.right), int(box.bottom)),
            OBJECT_BOX_COLOR,
            2,
        )
        text = f"{detection.class_name} {detection.score:.0%}"
        self.draw_label(frame, self.object_placement.anchor_for(box), text, self.object_placement)

    def draw_label(self, frame: np.ndarray, anchor: Point, text: str, placement: Placement) -> Optional[LabelLayout]:
        height, width = frame.shape[:2]
        placed = layout(anchor, text, self.font, (width, height), placement, self.padding)
        if placed is None:
            return None

        self._fill_background(frame, placed.rect)

        _, text_h = self.font.measure(text)
        # putText takes the baseline; layout gives the vertical middle
        origin = (int(round(placed.text_x)), int(round(placed.text_y + text_h / 2)))
        cv2.putText(
            frame,
            text,
            origin,
            self.font.face,
            self.font.scale,
            FONT_COLOR,
            self.font.thickness,
            cv2.LINE_AA,
        )
        return placed

    @staticmethod
    def _fill_background(frame: np.ndarray, rect: Rect):
        height, width = frame.shape[:2]
        x1 = max(0, int(round(rect.x)))
        y1 = max(0, int(round(rect.y)))
        x2 = min(width, int(round(rect.right)))
        y2 = min(height, int(round(rect.bottom)))
        if x2 <= x1 or y2 <= y1:
            return

        roi = frame[y1:y2, x1:x2]
        shape = roi.copy()
        local = Rect(rect.x - x1, rect.y - y1, rect.width, rect.height)
        cv2.fillPoly(shape, [rounded_rect_points(local, BACKGROUND_RADIUS)], BACKGROUND_COLOR)
        cv2.addWeighted(shape, BACKGROUND_OPACITY, roi, 1 - BACKGROUND_OPACITY, 0, dst=roi)
