# -*- coding: utf-8 -*-
import os
import logging
from typing import Optional

from faceresize.errors import EncodeError, OutputPathError

logger = logging.getLogger(__name__)

OUTPUT_SUFFIX: str = '_resized'


def determine_output_path(source_path: str, format_token: str, output_dir: Optional[str] = None) -> str:
    """
    Builds '{stem}_resized.{format_token}'. The token is used as given, so
    'jpeg' and 'jpg' keep their own extension even though they share an encoder.
    """
    filename = os.path.basename(source_path)
    stem = os.path.splitext(filename)[0]
    if not stem:
        raise OutputPathError(f"Failed to get the file stem for: {source_path}")

    new_filename = f"{stem}{OUTPUT_SUFFIX}.{format_token}"
    if output_dir:
        return os.path.join(output_dir, new_filename)
    return os.path.join(os.path.dirname(source_path) or '.', new_filename)


def ensure_parent_directory(path: str) -> str:
    parent_dir = os.path.dirname(path) or '.'
    if os.path.isdir(parent_dir):
        return parent_dir
    try:
        os.makedirs(parent_dir, exist_ok=True)
        logger.info(f"  -> Info: Created output directory: {os.path.abspath(parent_dir)}")
    except OSError as e:
        raise OutputPathError(f"Failed to create directory '{parent_dir}': {e}")
    return parent_dir


def write_output(path: str, data: bytes) -> None:
    ensure_parent_directory(path)
    try:
        with open(path, 'wb') as f:
            f.write(data)
    except OSError as e:
        if os.path.exists(path):
            try:
                os.remove(path)
                logger.warning(f"  -> Warning: Removed partially written output file: '{path}'")
            except OSError as rm_e:
                logger.error(f"  -> Error: Could not remove partially written output file '{path}': {rm_e}")
        raise EncodeError(f"Failed to save resized image: {path}: {e}", stage="save")
