# -*- coding: utf-8 -*-
from typing import Optional


class FaceResizeError(Exception):
    """Base error. `stage` names the pipeline step that raised it, when known."""

    stage: Optional[str] = None

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class BatchSetupError(FaceResizeError):
    """Custom exception for critical errors that abort the whole run."""
    stage = "setup"


class ConfigError(FaceResizeError):
    stage = "config"


class InvalidSizeError(ConfigError):
    stage = "size"


class UnsupportedFormatError(ConfigError):
    stage = "format"


class ModelLoadError(FaceResizeError):
    stage = "detect"


class UndecodableImageError(FaceResizeError):
    stage = "decode"


class CropError(FaceResizeError):
    stage = "crop"


class EncodeError(FaceResizeError):
    stage = "encode"


class OutputPathError(FaceResizeError):
    stage = "path"
