# -*- coding: utf-8 -*-
import logging
from dataclasses import dataclass, field
from typing import Optional

from faceresize.resize import DEFAULT_JPEG_QUALITY, parse_size, resolve_output_format

logger = logging.getLogger(__name__)

DEFAULT_SIZE = "2000x2000"
DEFAULT_FORMAT = "jpg"


@dataclass
class ResizeConfig:
    """Holds all settings for one batch run."""
    input_path: str
    size: str = DEFAULT_SIZE
    output_format: str = DEFAULT_FORMAT
    output_path: Optional[str] = None
    jpeg_quality: int = DEFAULT_JPEG_QUALITY
    workers: Optional[int] = None
    model_path: Optional[str] = None
    verbose: bool = False

    # Derived values
    target_width: int = field(init=False, default=0)
    target_height: int = field(init=False, default=0)
    pil_format: str = field(init=False, default="")

    def __post_init__(self):
        """
        Validates the size and format once, before any work is scheduled.
        Raises InvalidSizeError / UnsupportedFormatError.
        """
        self.target_width, self.target_height = parse_size(self.size)
        self.pil_format = resolve_output_format(self.output_format)
        if not (1 <= self.jpeg_quality <= 100):
            logger.warning(f"  -> Warning: JPEG quality must be between 1 and 100 ({self.jpeg_quality}). Setting to {DEFAULT_JPEG_QUALITY}.")
            self.jpeg_quality = DEFAULT_JPEG_QUALITY
        if self.workers is not None and self.workers < 1:
            logger.warning(f"  -> Warning: Worker count must be >= 1 ({self.workers}). Using all available CPU cores.")
            self.workers = None
