# registration.py
# Adds a person to the registry from a still image.

import logging
from dataclasses import dataclass

import numpy as np

from errors import MissingRegistrationField, NoFaceInImage
from face_matcher import PersonLabel
from identity_store import IdentityStore, RegisteredFace

logger = logging.getLogger(__name__)


@dataclass
class RegistrationOutcome:
    entry: RegisteredFace
    duplicate_name: bool = False


def validate_fields(name: str, relationship: str, image) -> PersonLabel:
    name = (name or "").strip()
    relationship = (relationship or "").strip()
    if not name or not relationship or image is None:
        raise MissingRegistrationField("Please provide name, relationship, and image.")
    return PersonLabel(name=name, relationship=relationship)


def register_face(store: IdentityStore, face_detector, name: str, relationship: str,
                  img_bgr: np.ndarray) -> RegistrationOutcome:
    """Encode the first face in ``img_bgr`` and store it under name/relationship.

    A name that is already registered is accepted; the outcome flags it so the
    caller can warn.
    """
    label = validate_fields(name, relationship, img_bgr)
    if getattr(img_bgr, "size", 0) == 0:
        raise NoFaceInImage("image is empty or unreadable")

    duplicate = store.has_name(label.name)
    if duplicate:
        logger.warning(f"register_face: {label.name!r} is already registered, adding another entry")

    descriptor = face_detector.encode_image(img_bgr)
    entry = store.add(label, descriptor)
    return RegistrationOutcome(entry=entry, duplicate_name=duplicate)
