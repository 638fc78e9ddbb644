# detectors.py
# Wrappers around the face and object models. Models are imported and loaded
# in load(), which the render loop runs off the UI thread.

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import cv2
import numpy as np

from config import (
    DETECT_SCALE,
    FACE_MODEL,
    FACE_UPSAMPLE,
    OBJECT_MODEL,
    OBJECT_SCORE_THRESHOLD,
)
from errors import DetectionFailure, ModelUnavailable, NoFaceInImage
from geometry import Rect

logger = logging.getLogger(__name__)


@dataclass
class FaceObservation:
    box: Rect
    descriptor: np.ndarray


@dataclass
class ObjectDetection:
    box: Rect
    class_name: str
    score: float


@dataclass
class FrameAnalysis:
    faces: List[FaceObservation] = field(default_factory=list)
    objects: List[ObjectDetection] = field(default_factory=list)


class FaceDetector:
    def __init__(self, scale: float = DETECT_SCALE, upsample: int = FACE_UPSAMPLE, model: str = FACE_MODEL):
        self.scale = scale
        self.upsample = upsample
        self.model = model
        self._fr = None

    @property
    def loaded(self) -> bool:
        return self._fr is not None

    def load(self):
        try:
            import face_recognition
        except ImportError as e:
            raise ModelUnavailable(f"face_recognition is not installed: {e}") from e
        self._fr = face_recognition
        logger.info("FaceDetector: face_recognition models loaded")

    def detect(self, frame_bgr: np.ndarray) -> List[FaceObservation]:
        if self._fr is None:
            raise ModelUnavailable("face detector not loaded")

        img_small = cv2.resize(frame_bgr, (0, 0), fx=self.scale, fy=self.scale)
        img_small_rgb = cv2.cvtColor(img_small, cv2.COLOR_BGR2RGB)

        face_locations = self._fr.face_locations(
            img_small_rgb,
            number_of_times_to_upsample=self.upsample,
            model=self.model,
        )
        face_encodings = self._fr.face_encodings(img_small_rgb, face_locations)

        observations = []
        for (top, right, bottom, left), encoding in zip(face_locations, face_encodings):
            box = Rect.from_trbl(top, right, bottom, left).scaled(1 / self.scale)
            observations.append(FaceObservation(box=box, descriptor=np.array(encoding, dtype="float32")))
        return observations

    def encode_image(self, img_bgr: np.ndarray) -> np.ndarray:
        """Descriptor of the first face in a still image, at full resolution."""
        if self._fr is None:
            raise ModelUnavailable("face detector not loaded")
        if img_bgr is None or img_bgr.size == 0:
            raise NoFaceInImage("image is empty or unreadable")

        img_rgb = cv2.cvtColor(img_bgr, cv2.COLOR_BGR2RGB)
        boxes = self._fr.face_locations(img_rgb)
        if not boxes:
            raise NoFaceInImage("no face detected in the image")
        encodings = self._fr.face_encodings(img_rgb, boxes[:1])
        if not encodings:
            raise NoFaceInImage("could not compute a face descriptor")
        return np.array(encodings[0], dtype="float32")


class ObjectDetector:
    def __init__(self, model_name: str = OBJECT_MODEL, score_threshold: float = OBJECT_SCORE_THRESHOLD):
        self.model_name = model_name
        self.score_threshold = score_threshold
        self._model = None

    @property
    def loaded(self) -> bool:
        return self._model is not None

    def load(self):
        try:
            from ultralytics import YOLO
        except ImportError as e:
            raise ModelUnavailable(f"ultralytics is not installed: {e}") from e
        self._model = YOLO(self.model_name)
        logger.info(f"ObjectDetector: loaded {self.model_name}")

    def detect(self, frame_bgr: np.ndarray) -> List[ObjectDetection]:
        if self._model is None:
            raise ModelUnavailable("object detector not loaded")

        results = self._model(frame_bgr, conf=self.score_threshold, verbose=False)
        detections = []
        if not results or results[0].boxes is None:
            return detections

        names = self._model.names
        for x1, y1, x2, y2, conf, cls_id in results[0].boxes.data.cpu().numpy():
            cls_id = int(cls_id)
            class_name = names[cls_id] if cls_id in names else f"class_{cls_id}"
            detections.append(
                ObjectDetection(box=Rect.from_xyxy(x1, y1, x2, y2), class_name=class_name, score=float(conf))
            )
        return detections


class PerceptionModels:
    """The detectors the render loop runs each tick.

    The face detector is required; the object detector is optional and a
    failure to load it only disables object annotations.
    """

    def __init__(self, face_detector: Optional[FaceDetector] = None,
                 object_detector: Optional[ObjectDetector] = None):
        self.face_detector = face_detector or FaceDetector()
        self.object_detector = object_detector

    def load(self):
        self.face_detector.load()
        if self.object_detector is not None:
            try:
                self.object_detector.load()
            except Exception as e:
                logger.warning(f"PerceptionModels: object detection disabled ({e})")
                self.object_detector = None

    def analyze(self, frame_bgr: np.ndarray) -> FrameAnalysis:
        try:
            faces = self.face_detector.detect(frame_bgr)
            objects = []
            if self.object_detector is not None:
                objects = self.object_detector.detect(frame_bgr)
        except ModelUnavailable:
            raise
        except Exception as e:
            raise DetectionFailure(str(e)) from e
        return FrameAnalysis(faces=faces, objects=objects)
