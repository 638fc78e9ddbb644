# class_filter.py
# Which generic object classes the overlay should annotate.

import os
import json
import logging
from typing import Iterable, List

from config import CLASS_FILTER_FILE, DEFAULT_ALLOWED_CLASSES
from ResourcePath import resource_path

logger = logging.getLogger(__name__)


class ClassFilterStore:
    def __init__(self, path: str = CLASS_FILTER_FILE, defaults: Iterable[str] = DEFAULT_ALLOWED_CLASSES):
        self.path = resource_path(path)
        self._classes: List[str] = self._load(list(defaults))

    def list(self) -> List[str]:
        return list(self._classes)

    def set(self, classes: Iterable[str]):
        cleaned = []
        for name in classes:
            name = name.strip().lower()
            if name and name not in cleaned:
                cleaned.append(name)
        self._classes = cleaned
        self._save()
        logger.info(f"ClassFilterStore: watching {self._classes}")

    def add(self, name: str):
        self.set(self._classes + [name])

    def remove(self, name: str) -> bool:
        name = name.strip().lower()
        if name not in self._classes:
            return False
        self.set([c for c in self._classes if c != name])
        return True

    def clear(self):
        self.set([])

    def filter(self, detections):
        """Keep only detections whose class is watched."""
        allowed = set(self._classes)
        return [d for d in detections if d.class_name.lower() in allowed]

    def _load(self, defaults: List[str]) -> List[str]:
        if not os.path.exists(self.path):
            return defaults
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
            return [str(c).strip().lower() for c in data if str(c).strip()]
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"ClassFilterStore: failed to parse {self.path}, using defaults ({e})")
            return defaults

    def _save(self):
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self._classes, f, indent=2)
