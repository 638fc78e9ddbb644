# EncodeGenerator.py
# Bulk-registers faces from a folder of images named "Name__Relationship.jpg".

import os
import logging

import cv2

from detectors import FaceDetector
from errors import RegistrationError
from identity_store import IdentityStore
from registration import register_face
from ResourcePath import resource_path

logger = logging.getLogger(__name__)

FOLDER_PATH = "images"
NAME_SEPARATOR = "__"
DEFAULT_RELATIONSHIP = "Known"


def label_from_filename(filename: str):
    stem = os.path.splitext(os.path.basename(filename))[0]
    name, sep, relationship = stem.partition(NAME_SEPARATOR)
    name = name.replace("_", " ").strip()
    relationship = relationship.replace("_", " ").strip() if sep else ""
    return name, relationship or DEFAULT_RELATIONSHIP


def bootstrap(folder: str, store: IdentityStore, detector: FaceDetector) -> int:
    created = 0
    for filename in sorted(os.listdir(folder)):
        if filename.startswith("."):
            continue

        img_path = os.path.join(folder, filename)
        img = cv2.imread(img_path)
        if img is None:
            print(f"Skipping unreadable file: {img_path}")
            continue

        name, relationship = label_from_filename(filename)
        try:
            register_face(store, detector, name, relationship, img)
        except RegistrationError as e:
            print(f"{filename}: {e}, skipped")
            continue

        print(f"Registered {name} ({relationship}) from {filename}")
        created += 1
    return created


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    detector = FaceDetector()
    detector.load()
    store = IdentityStore()

    folder = resource_path(FOLDER_PATH)
    print(f"Bootstrapping registrations from {folder}/")
    created = bootstrap(folder, store, detector)
    print(f"Bootstrap complete. {created} faces registered.")


if __name__ == "__main__":
    main()
