# camera_utils.py
# Camera utilities

import logging
from typing import Optional, Tuple

import cv2

from config import CAMERA_HEIGHT, CAMERA_WIDTH

logger = logging.getLogger(__name__)


def list_available_cameras(max_index: int = 5):
    """Return a list of camera indices that can be opened."""
    available = []
    for idx in range(max_index + 1):
        cap = cv2.VideoCapture(idx)
        ok = cap.isOpened()
        cap.release()
        if ok:
            available.append(idx)
    return available


class CameraSource:
    """Frame source for the render loop backed by cv2.VideoCapture."""

    def __init__(self, index: int = 0, width: int = CAMERA_WIDTH, height: int = CAMERA_HEIGHT):
        self.index = index
        self.width = width
        self.height = height
        self.cap = None
        self._size: Optional[Tuple[int, int]] = None

    @property
    def size(self) -> Optional[Tuple[int, int]]:
        return self._size

    def open(self) -> bool:
        self.release()
        self.cap = cv2.VideoCapture(self.index)
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

        if not self.cap.isOpened():
            logger.error(f"CameraSource: could not open camera index {self.index}")
            self.cap = None
            return False

        w = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        h = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self._size = (w, h) if w > 0 and h > 0 else None
        logger.info(f"CameraSource: opened camera {self.index} at {w}x{h}")
        return True

    def read(self):
        if self.cap is None or not self.cap.isOpened():
            return False, None
        return self.cap.read()

    def switch(self, index: int) -> bool:
        self.index = index
        return self.open()

    def release(self):
        if self.cap is not None:
            self.cap.release()
        self.cap = None
        self._size = None
