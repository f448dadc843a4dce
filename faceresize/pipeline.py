# -*- coding: utf-8 -*-
import os
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import cv2

from faceresize.crop import compute_crop_region
from faceresize.errors import FaceResizeError, UndecodableImageError
from faceresize.face import FaceLocator, locate_face
from faceresize.paths import determine_output_path, write_output
from faceresize.resize import (
    DEFAULT_JPEG_QUALITY,
    crop_and_resize,
    encode_image,
    load_image,
    resolve_output_format,
)

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"

LocatorFactory = Callable[[], FaceLocator]


@dataclass(frozen=True)
class ImageTask:
    source_path: str
    width: int
    height: int
    format_token: str
    output_dir: Optional[str] = None


@dataclass(frozen=True)
class BatchOutcome:
    source_path: str
    status: str
    output_path: Optional[str] = None
    reason: str = ""
    stage: Optional[str] = None

    @classmethod
    def succeeded(cls, source_path: str, output_path: str) -> "BatchOutcome":
        return cls(source_path, STATUS_SUCCESS, output_path=output_path)

    @classmethod
    def skipped(cls, source_path: str, reason: str) -> "BatchOutcome":
        return cls(source_path, STATUS_SKIPPED, reason=reason, stage="decode")

    @classmethod
    def failed(cls, source_path: str, reason: str, stage: Optional[str] = None) -> "BatchOutcome":
        return cls(source_path, STATUS_FAILED, reason=reason, stage=stage)

    @property
    def ok(self) -> bool:
        return self.status == STATUS_SUCCESS


def process_image(task: ImageTask, locator: FaceLocator, jpeg_quality: int = DEFAULT_JPEG_QUALITY) -> BatchOutcome:
    """
    Runs one file through format check, decode, face detection, crop,
    resize/encode and save. Errors are turned into a failed outcome tagged with
    the stage that raised them; undecodable files become a skipped outcome.
    """
    source_path = task.source_path
    filename = os.path.basename(source_path)
    start_time = time.time()
    stage = "format"
    try:
        pil_format = resolve_output_format(task.format_token)

        stage = "decode"
        try:
            img = load_image(source_path)
        except UndecodableImageError as e:
            logger.warning(f"  -> Warning: Skipping unsupported or broken file: {source_path} ({e})")
            return BatchOutcome.skipped(source_path, str(e))

        with img:
            stage = "detect"
            face = locate_face(img, locator)

            stage = "crop"
            region = compute_crop_region(img.width, img.height, face)

            stage = "resize"
            resized = crop_and_resize(img, region, task.width, task.height)

        stage = "encode"
        data = encode_image(resized, pil_format, jpeg_quality)

        stage = "path"
        output_path = determine_output_path(source_path, task.format_token, task.output_dir)

        stage = "save"
        write_output(output_path, data)
    except FaceResizeError as e:
        failed_stage = e.stage or stage
        logger.error(f"  -> Error: Failed processing image {source_path} [{failed_stage}]: {e}")
        return BatchOutcome.failed(source_path, str(e), failed_stage)
    except cv2.error as e:
        logger.error(f"  -> Error: Failed processing image {source_path} [{stage}]: OpenCV error: {e}")
        return BatchOutcome.failed(source_path, f"OpenCV error: {e}", stage)
    except (OSError, ValueError) as e:
        logger.error(f"  -> Error: Failed processing image {source_path} [{stage}]: {e}")
        return BatchOutcome.failed(source_path, str(e), stage)

    logger.debug(f"  -> Debug: {filename}: Saved {output_path} ({time.time() - start_time:.2f}s)")
    return BatchOutcome.succeeded(source_path, output_path)


def run_task(task: ImageTask, locator_factory: LocatorFactory, jpeg_quality: int = DEFAULT_JPEG_QUALITY) -> BatchOutcome:
    """Worker entry point: fetches this thread's detector and processes the task."""
    filename = os.path.basename(task.source_path)
    try:
        locator = locator_factory()
    except (FaceResizeError, cv2.error) as e:
        logger.error(f"  -> Error: {filename}: Could not create face detector: {e}")
        return BatchOutcome.failed(task.source_path, f"Could not create face detector: {e}", "detect")
    try:
        return process_image(task, locator, jpeg_quality)
    except Exception as e:
        logger.error(f"  -> Error: {filename}: Critical error in worker: {e}", exc_info=True)
        return BatchOutcome.failed(task.source_path, f"Critical error in worker: {e}")
