# identity_tracker.py
# Turns unordered per-frame face matches into stable, smoothly moving labels.

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from config import BOX_PROXIMITY_THRESHOLD, STABILIZATION_FRAMES
from face_matcher import PersonLabel
from geometry import Point, Rect, center_distance
from label_layout import LeftCenter
from position_smoother import PositionSmoother

logger = logging.getLogger(__name__)


@dataclass
class DetectedFace:
    box: Optional[Rect]
    match_label: Optional[PersonLabel]  # None means Unknown
    match_distance: float = math.inf

    @property
    def is_known(self) -> bool:
        return self.match_label is not None


@dataclass
class TrackedIdentity:
    tracking_id: int
    label: PersonLabel
    frames_unknown: int
    last_raw_box: Rect
    smoothed_anchor: Point


@dataclass(frozen=True)
class DrawOrder:
    tracking_id: int
    label: PersonLabel
    anchor: Point


@dataclass
class TrackerStep:
    draw_orders: List[DrawOrder] = field(default_factory=list)
    next_tracked: Dict[int, TrackedIdentity] = field(default_factory=dict)


class IdentityTracker:
    """Owns the set of tracked identities between frames.

    Association is greedy nearest-first on box-center distance, one detection
    per identity, with recognized faces served before unknown ones. A
    recognized face only continues an identity with the same label. An unknown face continues the nearest identity for at most
    ``stabilization_frames - 1`` consecutive frames, keeping its label and
    freezing its anchor; an unknown face with no such history is never
    labeled. Identities that are not continued this frame are gone.
    """

    def __init__(
        self,
        proximity_threshold: float = BOX_PROXIMITY_THRESHOLD,
        stabilization_frames: int = STABILIZATION_FRAMES,
        smoother: Optional[PositionSmoother] = None,
        anchor_for: Optional[Callable[[Rect], Point]] = None,
    ):
        self.proximity_threshold = proximity_threshold
        self.stabilization_frames = stabilization_frames
        self.smoother = smoother or PositionSmoother()
        self.anchor_for = anchor_for or LeftCenter().anchor_for

        self._tracked: Dict[int, TrackedIdentity] = {}
        self._next_tracking_id: int = 1

    @property
    def tracked(self) -> Dict[int, TrackedIdentity]:
        return dict(self._tracked)

    def reset(self):
        if self._tracked:
            logger.info(f"IdentityTracker: discarding {len(self._tracked)} tracked identities")
        self._tracked = {}

    def update(self, detections) -> List[DrawOrder]:
        result = self.step(detections, self._tracked)
        self._tracked = result.next_tracked
        return result.draw_orders

    def _mint_tracking_id(self) -> int:
        tracking_id = self._next_tracking_id
        self._next_tracking_id += 1
        return tracking_id

    def _associate(self, detections: List[DetectedFace],
                   previous: Dict[int, TrackedIdentity]) -> Dict[int, int]:
        pairs = []
        for det_idx, det in enumerate(detections):
            for tracking_id, ident in previous.items():
                if not isinstance(ident.last_raw_box, Rect):
                    continue
                if det.is_known and ident.label != det.match_label:
                    continue
                dist = center_distance(det.box, ident.last_raw_box)
                if dist <= self.proximity_threshold:
                    pairs.append((not det.is_known, dist, det_idx, tracking_id))

        # recognized faces claim first, then nearest first; stable sort keeps
        # iteration order on ties
        pairs.sort(key=lambda p: (p[0], p[1]))

        matches: Dict[int, int] = {}
        claimed = set()
        for _unknown, _dist, det_idx, tracking_id in pairs:
            if det_idx in matches or tracking_id in claimed:
                continue
            matches[det_idx] = tracking_id
            claimed.add(tracking_id)
        return matches

    def step(self, current_detections, previous_tracked) -> TrackerStep:
        """One frame of association.

        Does not touch ``self._tracked``; ``previous_tracked`` is read only.
        """
        try:
            items = list(current_detections or [])
        except TypeError:
            logger.debug(f"IdentityTracker: detections not iterable ({type(current_detections).__name__})")
            return TrackerStep()
        previous = previous_tracked or {}

        detections = [
            d for d in items
            if isinstance(d, DetectedFace)
            and isinstance(d.box, Rect)
            and (d.match_label is None or isinstance(d.match_label, PersonLabel))
        ]
        if len(detections) != len(items):
            logger.debug(f"IdentityTracker: ignored {len(items) - len(detections)} malformed detections")

        matches = self._associate(detections, previous)
        result = TrackerStep()

        for det_idx, det in enumerate(detections):
            tracking_id = matches.get(det_idx)
            prev = previous.get(tracking_id) if tracking_id is not None else None

            if det.is_known:
                if prev is None:
                    tracking_id = self._mint_tracking_id()
                    logger.debug(f"IdentityTracker: new identity {tracking_id} for {det.match_label.name}")
                target = self.anchor_for(det.box)
                anchor = self.smoother.smooth(
                    tracking_id, target, prev.smoothed_anchor if prev else None
                )
                ident = TrackedIdentity(
                    tracking_id=tracking_id,
                    label=det.match_label,
                    frames_unknown=0,
                    last_raw_box=det.box,
                    smoothed_anchor=anchor,
                )
            else:
                if prev is None:
                    continue
                frames_unknown = prev.frames_unknown + 1
                if frames_unknown >= self.stabilization_frames:
                    logger.debug(
                        f"IdentityTracker: identity {tracking_id} ({prev.label.name}) unknown for "
                        f"{frames_unknown} frames, dropping"
                    )
                    continue
                ident = TrackedIdentity(
                    tracking_id=tracking_id,
                    label=prev.label,
                    frames_unknown=frames_unknown,
                    last_raw_box=det.box,
                    smoothed_anchor=prev.smoothed_anchor,
                )

            result.next_tracked[tracking_id] = ident
            result.draw_orders.append(DrawOrder(tracking_id, ident.label, ident.smoothed_anchor))

        return result
