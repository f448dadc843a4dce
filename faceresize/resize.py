# -*- coding: utf-8 -*-
import io
import logging
import re
from typing import Dict, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from faceresize.crop import CropRegion
from faceresize.errors import EncodeError, InvalidSizeError, UndecodableImageError, UnsupportedFormatError

logger = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 95

OUTPUT_FORMATS: Dict[str, str] = {
    "png": "PNG",
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "gif": "GIF",
    "bmp": "BMP",
    "tiff": "TIFF",
}

RESAMPLE_FILTER = Image.Resampling.LANCZOS

_SIZE_PART = re.compile(r"[0-9]+")


def resolve_output_format(format_token: str) -> str:
    pil_format = OUTPUT_FORMATS.get(str(format_token).strip().lower())
    if pil_format is None:
        raise UnsupportedFormatError(
            f"Unsupported format: '{format_token}'. Expected one of: {', '.join(OUTPUT_FORMATS)}"
        )
    return pil_format


def parse_size(size_str: str) -> Tuple[int, int]:
    """Parses 'WIDTHxHEIGHT' (e.g. '800x600') into two positive integers."""
    parts = str(size_str).strip().lower().split('x')
    if len(parts) != 2:
        raise InvalidSizeError(f"Invalid size format '{size_str}'. Expected format: widthxheight")
    if not all(_SIZE_PART.fullmatch(part.strip()) for part in parts):
        raise InvalidSizeError(f"Invalid size values in '{size_str}'. Width and height must be integers.")
    width, height = int(parts[0]), int(parts[1])
    if width <= 0 or height <= 0:
        raise InvalidSizeError(f"Invalid size '{size_str}'. Width and height must be positive.")
    return width, height


def load_image(path: str) -> Image.Image:
    try:
        with Image.open(path) as img:
            img.load()
            try:
                oriented = ImageOps.exif_transpose(img)
            except Exception as exif_err:
                logger.warning(f"  -> Warning: {path}: Error processing EXIF data: {exif_err}. Proceeding without EXIF orientation.")
                oriented = img.copy()
            if oriented is img:
                oriented = img.copy()
    except UnidentifiedImageError:
        raise UndecodableImageError(f"Cannot open or unsupported image format: {path}")
    except (OSError, ValueError, SyntaxError, EOFError, Image.DecompressionBombError) as e:
        raise UndecodableImageError(f"Failed to open image {path}: {e}")
    return oriented


def prepare_image_for_resample(img: Image.Image) -> Image.Image:
    """Palette and bilevel images are resized with NEAREST by Pillow; widen them first."""
    if img.mode in ('P', 'PA'):
        converted = img.convert("RGBA") if (img.mode == 'PA' or 'transparency' in img.info) else img.convert("RGB")
    elif img.mode == '1':
        converted = img.convert('L')
    else:
        return img
    logger.debug(f"  -> Debug: Image mode converted for resampling: '{img.mode}' -> '{converted.mode}'")
    return converted


def crop_and_resize(img: Image.Image, region: CropRegion, width: int, height: int) -> Image.Image:
    cropped = prepare_image_for_resample(img.crop(region.box))
    if cropped.size == (width, height):
        return cropped
    logger.debug(f"  -> Debug: Resizing crop {cropped.size} -> ({width},{height})")
    return cropped.resize((width, height), RESAMPLE_FILTER)


def prepare_image_for_save(img: Image.Image, pil_format: str) -> Image.Image:
    save_img = img
    original_mode = img.mode

    if pil_format == 'JPEG':
        if img.mode in ('RGBA', 'LA', 'P'):
            background = Image.new("RGB", img.size, (255, 255, 255))
            rgba = img.convert("RGBA")
            background.paste(rgba, mask=rgba.split()[3])
            save_img = background
        elif img.mode not in ('RGB', 'L'):
            save_img = img.convert('RGB')
    elif pil_format == 'BMP':
        if img.mode not in ('1', 'L', 'P', 'RGB', 'RGBA'):
            save_img = img.convert('RGB')
    elif pil_format == 'PNG':
        if img.mode == 'CMYK':
            save_img = img.convert('RGB')

    if save_img.mode != original_mode:
        logger.debug(f"  -> Debug: Image mode converted: '{original_mode}' -> '{save_img.mode}' (Target output format: {pil_format})")
    return save_img


def encode_image(img: Image.Image, pil_format: str, jpeg_quality: int = DEFAULT_JPEG_QUALITY) -> bytes:
    save_img = prepare_image_for_save(img, pil_format)

    save_kwargs = {}
    if pil_format == 'JPEG':
        save_kwargs.update({'quality': jpeg_quality, 'optimize': True, 'progressive': True})
    elif pil_format == 'PNG':
        save_kwargs['optimize'] = True
    elif pil_format == 'TIFF':
        save_kwargs['compression'] = 'tiff_lzw'

    buffer = io.BytesIO()
    try:
        save_img.save(buffer, format=pil_format, **save_kwargs)
    except (OSError, ValueError, KeyError) as e:
        raise EncodeError(f"Failed to encode image as {pil_format}: {e}")
    return buffer.getvalue()
