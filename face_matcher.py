# face_matcher.py
# Nearest-descriptor matching against the registered identities.

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from config import FACE_MATCH_THRESHOLD

logger = logging.getLogger(__name__)

UNKNOWN_TEXT = "Unknown"


@dataclass(frozen=True)
class PersonLabel:
    """Who a registered face belongs to."""

    name: str
    relationship: str = ""

    @property
    def display_text(self) -> str:
        if self.relationship:
            return f"{self.name} ({self.relationship})"
        return self.name


@dataclass(frozen=True)
class MatchResult:
    label: Optional[PersonLabel]  # None means Unknown
    distance: float

    @property
    def is_known(self) -> bool:
        return self.label is not None

    @property
    def display_text(self) -> str:
        return self.label.display_text if self.label else UNKNOWN_TEXT


def find_best_match(embedding: np.ndarray, known_embeddings: np.ndarray):
    if known_embeddings.size == 0:
        return None, None
    diffs = known_embeddings - embedding.reshape(1, -1)
    dists = np.linalg.norm(diffs, axis=1)
    idx = int(np.argmin(dists))
    return idx, float(dists[idx])


class FaceMatcher:
    """Immutable snapshot of the registered descriptors.

    Rebuilt whenever the registrations change; matching never touches the
    store.
    """

    def __init__(self, entries: Sequence[Tuple[PersonLabel, np.ndarray]],
                 threshold: float = FACE_MATCH_THRESHOLD):
        self.threshold = threshold
        self._labels: List[PersonLabel] = [label for label, _ in entries]
        if entries:
            self._embeddings = np.vstack(
                [np.asarray(desc, dtype="float32").reshape(1, -1) for _, desc in entries]
            )
        else:
            self._embeddings = np.array([], dtype="float32")
        logger.info(f"FaceMatcher: built with {len(self._labels)} descriptors")

    def __len__(self) -> int:
        return len(self._labels)

    def match(self, descriptor) -> MatchResult:
        if descriptor is None or self._embeddings.size == 0:
            return MatchResult(None, math.inf)
        emb = np.asarray(descriptor, dtype="float32").reshape(-1)
        if emb.shape[0] != self._embeddings.shape[1]:
            logger.warning(
                f"FaceMatcher: descriptor length {emb.shape[0]} != {self._embeddings.shape[1]}"
            )
            return MatchResult(None, math.inf)

        idx, dist = find_best_match(emb, self._embeddings)
        if idx is None or dist > self.threshold:
            return MatchResult(None, math.inf if dist is None else dist)
        return MatchResult(self._labels[idx], dist)
