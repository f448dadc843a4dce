# -*- coding: utf-8 -*-
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from faceresize.errors import CropError
from faceresize.face import FaceCandidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CropRegion:
    """Square crop placed on the source pixel grid."""
    x: int
    y: int
    side: int

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """(left, upper, right, lower) as expected by Image.crop."""
        return self.x, self.y, self.x + self.side, self.y + self.side


def center_crop_region(width: int, height: int) -> CropRegion:
    if width <= 0 or height <= 0:
        raise CropError(f"Cannot crop image with zero/negative dimensions ({width}x{height}).")
    side = min(width, height)
    x = width // 2 - side // 2
    y = height // 2 - side // 2
    return CropRegion(x, y, side)


def compute_crop_region(width: int, height: int, face: Optional[FaceCandidate] = None) -> CropRegion:
    """
    Computes the square crop for an image of the given size.
    With a face, the square is centered on the face and then pushed back inside
    the image: first the low edges (never negative), then the right/bottom edges.
    Without a face, the geometric center crop is returned.
    """
    if face is None:
        return center_crop_region(width, height)
    if width <= 0 or height <= 0:
        raise CropError(f"Cannot crop image with zero/negative dimensions ({width}x{height}).")

    side = min(width, height)
    cx, cy = face.center
    x = max(0, cx - side // 2)
    y = max(0, cy - side // 2)
    x = min(x, width - side)
    y = min(y, height - side)

    logger.debug(f"  -> Debug: Face center ({cx},{cy}) -> crop ({x},{y}) side {side} on {width}x{height}")
    return CropRegion(x, y, side)
