"""
Tests for size/format parsing, decoding, resizing and encoding.

Run with: pytest tests/test_resize.py -v
"""
from io import BytesIO

import pytest
from PIL import Image

from faceresize.crop import CropRegion
from faceresize.errors import InvalidSizeError, UndecodableImageError, UnsupportedFormatError
from faceresize.resize import (
    crop_and_resize,
    encode_image,
    load_image,
    parse_size,
    resolve_output_format,
)


class TestParseSize:
    def test_valid(self):
        assert parse_size("800x600") == (800, 600)

    def test_uppercase_separator_and_spaces(self):
        assert parse_size(" 300X200 ") == (300, 200)

    @pytest.mark.parametrize("value", [
        "800", "800x600x2", "axb", "800x", "0x100", "100x-5", "",
        "8_00x600", "\uff18\uff10\uff10x600", "+5x5", "1e3x10",
    ])
    def test_invalid(self, value):
        with pytest.raises(InvalidSizeError):
            parse_size(value)


class TestResolveOutputFormat:
    @pytest.mark.parametrize("token,expected", [
        ("png", "PNG"), ("jpg", "JPEG"), ("jpeg", "JPEG"), ("JPG", "JPEG"),
        ("gif", "GIF"), ("bmp", "BMP"), ("Tiff", "TIFF"),
    ])
    def test_supported(self, token, expected):
        assert resolve_output_format(token) == expected

    def test_jpg_and_jpeg_share_encoder(self):
        assert resolve_output_format("jpg") == resolve_output_format("jpeg")

    @pytest.mark.parametrize("token", ["webp", "tif", "", "png2"])
    def test_unsupported(self, token):
        with pytest.raises(UnsupportedFormatError):
            resolve_output_format(token)


class TestLoadImage:
    def test_decodes_valid_file(self, make_image):
        path = make_image("ok.png", size=(40, 30))
        img = load_image(str(path))
        assert img.size == (40, 30)

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "broken.jpg"
        path.write_bytes(b"not really a jpeg")
        with pytest.raises(UndecodableImageError):
            load_image(str(path))

    def test_truncated_file(self, tmp_path):
        path = tmp_path / "cut.png"
        Image.effect_noise((200, 200), 64).save(path)
        data = path.read_bytes()
        path.write_bytes(data[: len(data) // 2])
        with pytest.raises(UndecodableImageError):
            load_image(str(path))

    def test_directory_is_undecodable(self, tmp_path):
        with pytest.raises(UndecodableImageError):
            load_image(str(tmp_path))


class TestCropAndEncode:
    @pytest.mark.parametrize("token", ["png", "jpg", "jpeg", "gif", "bmp", "tiff"])
    def test_output_has_exact_target_size(self, token):
        img = Image.new("RGB", (120, 80), (10, 200, 30))
        resized = crop_and_resize(img, CropRegion(20, 0, 80), 33, 21)
        data = encode_image(resized, resolve_output_format(token))
        with Image.open(BytesIO(data)) as decoded:
            assert decoded.size == (33, 21)
            assert decoded.format == resolve_output_format(token)

    def test_rgba_to_jpeg(self):
        img = Image.new("RGBA", (10, 10), (255, 0, 0, 0))
        data = encode_image(img, "JPEG")
        with Image.open(BytesIO(data)) as decoded:
            assert decoded.mode == "RGB"
            assert decoded.getpixel((5, 5))[0] > 200

    def test_crop_uses_region(self):
        img = Image.new("RGB", (4, 2), (0, 0, 0))
        img.putpixel((3, 0), (255, 255, 255))
        cropped = crop_and_resize(img, CropRegion(2, 0, 2), 2, 2)
        assert cropped.getpixel((1, 0)) == (255, 255, 255)


def _palette_gradient(size=64):
    ramp = Image.linear_gradient("L").resize((size, size))
    rgb = Image.merge("RGB", (ramp, ramp.rotate(90), ramp.transpose(Image.Transpose.FLIP_LEFT_RIGHT)))
    return rgb.convert("P", palette=Image.Palette.ADAPTIVE)


class TestResampleModes:
    """Palette and bilevel sources must go through Lanczos like any other."""

    def test_palette_is_widened_and_smoothed(self):
        pal = _palette_gradient()
        out = crop_and_resize(pal, CropRegion(0, 0, 64), 13, 13)
        nearest = pal.resize((13, 13), Image.Resampling.NEAREST).convert("RGB")
        assert out.mode == "RGB"
        assert list(out.getdata()) != list(nearest.getdata())

    def test_palette_with_transparency_keeps_alpha(self):
        pal = _palette_gradient(32)
        pal.info["transparency"] = 0
        out = crop_and_resize(pal, CropRegion(0, 0, 32), 10, 10)
        assert out.mode == "RGBA"

    def test_bilevel_becomes_grayscale(self):
        img = Image.new("1", (40, 40), 0)
        img.paste(1, (0, 0, 20, 40))
        out = crop_and_resize(img, CropRegion(0, 0, 40), 7, 7)
        assert out.mode == "L"
        assert 0 < out.getpixel((3, 3)) < 255

    def test_palette_output_encodes_as_gif(self):
        data = encode_image(crop_and_resize(_palette_gradient(), CropRegion(0, 0, 64), 9, 9), "GIF")
        with Image.open(BytesIO(data)) as decoded:
            assert decoded.size == (9, 9)
