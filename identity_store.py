# identity_store.py

import os
import json
import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from config import REGISTRY_FILE
from face_matcher import FaceMatcher, PersonLabel
from ResourcePath import resource_path

logger = logging.getLogger(__name__)

# Older saves kept the label as one "name|relationship" string
LEGACY_SEPARATOR = "|"


@dataclass
class RegisteredFace:
    label: PersonLabel
    descriptor: np.ndarray


class IdentityStore:
    """Registered faces, persisted as one JSON file.

    File layout::

        [{"name": "Alice", "relationship": "Sister", "descriptors": [[...128 floats...]]}]
    """

    def __init__(self, path: str = REGISTRY_FILE):
        self.path = resource_path(path)
        self._entries: List[RegisteredFace] = self._load()

    # ---------- Read side ----------

    def list(self) -> List[RegisteredFace]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def has_name(self, name: str) -> bool:
        return any(entry.label.name == name for entry in self._entries)

    def build_matcher(self, threshold: Optional[float] = None) -> Optional[FaceMatcher]:
        """FaceMatcher over the current registrations, or None if there are none."""
        if not self._entries:
            return None
        entries = [(e.label, e.descriptor) for e in self._entries]
        if threshold is None:
            return FaceMatcher(entries)
        return FaceMatcher(entries, threshold=threshold)

    # ---------- Write side ----------

    def add(self, label: PersonLabel, descriptor: np.ndarray) -> RegisteredFace:
        descriptor = np.asarray(descriptor, dtype="float32").reshape(-1)
        if descriptor.size == 0:
            raise ValueError("descriptor must not be empty")
        entry = RegisteredFace(label=label, descriptor=descriptor)
        self._entries.append(entry)
        self._save()
        logger.info(f"IdentityStore: registered {label.display_text}")
        return entry

    def remove(self, index: int) -> Optional[RegisteredFace]:
        if index < 0 or index >= len(self._entries):
            logger.error(f"IdentityStore: invalid index for deletion: {index}")
            return None
        entry = self._entries.pop(index)
        self._save()
        logger.info(f"IdentityStore: deleted {entry.label.display_text} (index {index})")
        return entry

    def clear(self):
        self._entries = []
        self._save()
        logger.info("IdentityStore: all registrations cleared")

    # ---------- Persistence ----------

    def _load(self) -> List[RegisteredFace]:
        if not os.path.exists(self.path):
            logger.info("IdentityStore: no saved faces found")
            return []
        try:
            with open(self.path, "r") as f:
                raw = json.load(f)
            entries = [face for item in raw for face in self._decode(item)]
        except (OSError, ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning(f"IdentityStore: failed to parse {self.path}, starting empty ({e})")
            return []
        logger.info(f"IdentityStore: loaded {[e.label.display_text for e in entries]}")
        return entries

    @staticmethod
    def _decode(item: dict) -> List[RegisteredFace]:
        if "label" in item and "name" not in item:
            name, _, relationship = item["label"].partition(LEGACY_SEPARATOR)
        else:
            name, relationship = item["name"], item.get("relationship", "")
        label = PersonLabel(name=name, relationship=relationship)
        return [
            RegisteredFace(label=label, descriptor=np.array(d, dtype="float32"))
            for d in item.get("descriptors", [])
        ]

    def _save(self):
        if not self._entries:
            if os.path.exists(self.path):
                os.remove(self.path)
            return

        data = [
            {
                "name": e.label.name,
                "relationship": e.label.relationship,
                "descriptors": [e.descriptor.astype(float).tolist()],
            }
            for e in self._entries
        ]
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        tmp_path = self.path + ".tmp"
        with open(tmp_path, "w") as f:
            json.dump(data, f)
        os.replace(tmp_path, self.path)
