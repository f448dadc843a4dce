# -*- coding: utf-8 -*-
import os
import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import cv2
import numpy as np
from PIL import Image

from faceresize.errors import ModelLoadError

logger = logging.getLogger(__name__)

CASCADE_MODEL_FILENAME: str = "haarcascade_frontalface_default.xml"
MIN_FACE_SIZE: int = 20
SCORE_THRESH: float = 4.0
PYRAMID_SCALE_FACTOR: float = 0.8
MIN_NEIGHBORS: int = 1

_model_cache: Dict[str, str] = {}
_model_lock = threading.Lock()
_thread_state = threading.local()


@dataclass(frozen=True)
class FaceCandidate:
    x: int
    y: int
    width: int
    height: int
    score: float

    @property
    def center(self) -> Tuple[int, int]:
        return self.x + self.width // 2, self.y + self.height // 2


def default_model_path() -> str:
    return os.path.join(cv2.data.haarcascades, CASCADE_MODEL_FILENAME)


def load_model_data(model_path: Optional[str] = None) -> str:
    """
    Returns the cascade XML text, reading it from disk only the first time a
    given path is requested. The returned text is shared by all threads.
    """
    path = os.path.abspath(model_path or default_model_path())
    with _model_lock:
        data = _model_cache.get(path)
        if data is None:
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    data = f.read()
            except OSError as e:
                raise ModelLoadError(f"Failed to read the face detection model '{path}': {e}")
            _model_cache[path] = data
            logger.debug(f"  -> Debug: Face detection model loaded from {path} ({len(data)} chars)")
    return data


def to_grayscale(img: Image.Image) -> np.ndarray:
    if img.mode != 'L':
        img = img.convert('L')
    return np.array(img, dtype=np.uint8)


class FaceLocator:
    """Multi-scale cascade scan returning the first face that clears SCORE_THRESH."""

    def __init__(self, model_data: str):
        self._classifier = cv2.CascadeClassifier()
        try:
            storage = cv2.FileStorage(model_data, cv2.FILE_STORAGE_READ | cv2.FILE_STORAGE_MEMORY)
            try:
                loaded = self._classifier.read(storage.getFirstTopLevelNode())
            finally:
                storage.release()
        except cv2.error as e:
            raise ModelLoadError(f"Failed to parse the face detection model: {e}")
        if not loaded or self._classifier.empty():
            raise ModelLoadError("Failed to read the face detection model from its data.")

    def locate(self, gray: np.ndarray) -> Optional[FaceCandidate]:
        if gray is None or gray.size == 0:
            logger.warning("  -> Warning: Input image for face detection is empty.")
            return None

        faces, scores = self._classifier.detectMultiScale2(
            gray,
            scaleFactor=1.0 / PYRAMID_SCALE_FACTOR,
            minNeighbors=MIN_NEIGHBORS,
            minSize=(MIN_FACE_SIZE, MIN_FACE_SIZE),
        )
        for (x, y, w, h), score in zip(faces, scores):
            if score < SCORE_THRESH:
                continue
            return FaceCandidate(int(x), int(y), int(w), int(h), float(score))
        return None


def get_face_locator(model_path: Optional[str] = None) -> FaceLocator:
    """Returns this thread's detector, building it from the shared model data on first use."""
    locators = getattr(_thread_state, 'locators', None)
    if locators is None:
        locators = _thread_state.locators = {}
    key = model_path or ''
    locator = locators.get(key)
    if locator is None:
        locator = FaceLocator(load_model_data(model_path))
        locators[key] = locator
    return locator


def locate_face(img: Image.Image, locator: FaceLocator) -> Optional[FaceCandidate]:
    face = locator.locate(to_grayscale(img))
    if face is None:
        logger.debug("  -> Debug: No face cleared the score threshold; using center crop.")
    else:
        logger.debug(f"  -> Debug: Face found at ({face.x},{face.y}) {face.width}x{face.height}, score {face.score}")
    return face
