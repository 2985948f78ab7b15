"""Tests for capture normalization, profiles and surfaces."""

import io

import numpy as np
import pytest
from PIL import Image

from conftest import jpeg_bytes, png_bytes
from pagegeometry.capture import (
    check_media_type,
    encode_for_profile,
    ensure_extension,
    guess_media_type,
    media_type_to_extension,
    normalize_capture,
    select_output_media_type,
)
from pagegeometry.config import GeometryConfig, PipelineConfig, QualityProfile, get_profile
from pagegeometry.errors import ImageDecodeError, UnsupportedMediaTypeError
from pagegeometry.surface import PixelSurface, decode_surface, encode_surface


def sideways_capture(width=300, height=200) -> Image.Image:
    """Stored frame with a red block at the bottom-left; tag 6 makes it top-left."""
    pixels = np.full((height, width, 3), 255, dtype=np.uint8)
    pixels[height - 60:height, 0:60] = (255, 0, 0)
    return Image.fromarray(pixels)


def decode(data: bytes) -> Image.Image:
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        return img.copy()


class TestProfiles:
    """Tests for named quality profiles."""

    def test_default_profile(self):
        profile = get_profile("default")
        assert profile.max_edge == 1800
        assert profile.quality == 0.8
        assert profile.media_type == "image/jpeg"

    def test_share_profile(self):
        profile = get_profile("share")
        assert profile.max_edge == 1400
        assert profile.quality == 0.72

    def test_unknown_profile(self):
        with pytest.raises(ValueError, match="Unknown profile"):
            get_profile("print")

    def test_profile_validation(self):
        with pytest.raises(ValueError):
            QualityProfile("bad", max_edge=0)
        with pytest.raises(ValueError):
            QualityProfile("bad", max_edge=100, quality=1.5)
        with pytest.raises(ValueError):
            QualityProfile("bad", max_edge=100, media_type="image/gif")


class TestConfigValidation:
    """Tests for detection and pipeline configuration."""

    def test_defaults(self):
        config = GeometryConfig()
        assert (config.canny_low, config.canny_high, config.canny_aperture) == (75, 200, 3)
        assert config.blur_kernel == 5
        assert config.approx_epsilon_ratio == 0.02
        assert config.min_output_edge == 200

    @pytest.mark.parametrize("kwargs", [
        {"blur_kernel": 4},
        {"canny_low": 250},
        {"canny_aperture": 4},
        {"approx_epsilon_ratio": 0},
        {"min_output_edge": 0},
        {"detection_max_edge": 0},
    ])
    def test_invalid_geometry(self, kwargs):
        with pytest.raises(ValueError):
            GeometryConfig(**kwargs)

    def test_pipeline_rejects_unknown_profile(self):
        with pytest.raises(ValueError):
            PipelineConfig(profile="nope")


class TestMediaTypes:
    """Tests for media type handling."""

    def test_extensions(self):
        assert media_type_to_extension("image/png") == ".png"
        assert media_type_to_extension("image/webp") == ".webp"
        assert media_type_to_extension("image/jpeg") == ".jpg"

    def test_ensure_extension(self):
        assert ensure_extension("IMG_0001.HEIC", "image/jpeg") == "IMG_0001.jpg"
        assert ensure_extension("scan.png", "image/png") == "scan.png"
        assert ensure_extension("scan", "image/webp") == "scan.webp"
        assert ensure_extension("photo.JPG", "image/jpeg") == "photo.jpg"

    def test_guess_media_type(self):
        assert guess_media_type("a.JPEG") == "image/jpeg"
        assert guess_media_type("a.png") == "image/png"
        assert guess_media_type("a.tiff") is None
        assert guess_media_type("noext") is None

    def test_heic_rejected(self):
        with pytest.raises(UnsupportedMediaTypeError, match="HEIC"):
            check_media_type("image/heic")
        with pytest.raises(UnsupportedMediaTypeError):
            check_media_type("image/jpeg", filename="IMG_0001.heif")

    def test_non_image_rejected(self):
        with pytest.raises(UnsupportedMediaTypeError):
            check_media_type("application/pdf")
        with pytest.raises(UnsupportedMediaTypeError):
            check_media_type(None)

    def test_default_profile_keeps_supported_type(self):
        default = get_profile("default")
        assert select_output_media_type("image/png", default) == "image/png"
        assert select_output_media_type("image/bmp", default) == "image/jpeg"

    def test_share_profile_always_reencodes(self):
        assert select_output_media_type("image/png", get_profile("share")) == "image/jpeg"


class TestNormalizeCapture:
    """Tests for the full orientation normalization path."""

    def test_orientation_6_is_rotated_upright(self):
        data = jpeg_bytes(sideways_capture(), orientation=6)
        result = normalize_capture(data, "image/jpeg")

        assert result.orientation == 6
        assert result.surface.size == (200, 300)
        r, g, b = result.surface.pixels[30, 30]
        assert r > 200 and g < 60 and b < 60
        assert decode(result.data).size == (200, 300)

    def test_missing_exif_behaves_as_upright(self):
        data = jpeg_bytes(sideways_capture())
        result = normalize_capture(data, "image/jpeg")

        assert result.orientation == 1
        assert result.surface.size == (300, 200)
        r, g, b = result.surface.pixels[170, 30]
        assert r > 200 and g < 60 and b < 60

    def test_downscales_to_profile(self):
        data = jpeg_bytes(Image.new("RGB", (2400, 1600), "white"), orientation=8)
        result = normalize_capture(data, "image/jpeg", "share")
        assert result.surface.size == (933, 1400)

    def test_default_profile_keeps_png(self):
        data = png_bytes(Image.new("RGBA", (40, 30), (10, 20, 30, 128)))
        result = normalize_capture(data, "image/png")
        assert result.media_type == "image/png"
        assert decode(result.data).mode == "RGBA"

    def test_share_profile_writes_jpeg(self):
        data = png_bytes(Image.new("RGBA", (40, 30), (10, 20, 30, 255)))
        result = normalize_capture(data, "image/png", "share")
        assert result.media_type == "image/jpeg"
        assert result.data[:2] == b"\xff\xd8"

    def test_undecodable_bytes(self):
        with pytest.raises(ImageDecodeError):
            normalize_capture(b"\xff\xd8not really a jpeg", "image/jpeg")

    def test_heic_fails_before_decoding(self):
        with pytest.raises(UnsupportedMediaTypeError):
            normalize_capture(b"....ftypheic", "image/heic")

    def test_accepts_profile_instance(self):
        profile = QualityProfile("thumb", max_edge=20, quality=0.5)
        data = jpeg_bytes(Image.new("RGB", (100, 50), "white"))
        result = normalize_capture(data, "image/jpeg", profile)
        assert result.surface.size == (20, 10)
        assert result.profile is profile


class TestSurface:
    """Tests for PixelSurface and codecs."""

    def test_layouts(self):
        assert PixelSurface(np.zeros((2, 3), np.uint8)).mode == "L"
        assert PixelSurface(np.zeros((2, 3, 3), np.uint8)).mode == "RGB"
        assert PixelSurface(np.zeros((2, 3, 4), np.uint8)).mode == "RGBA"

    def test_rejects_bad_layouts(self):
        with pytest.raises(ValueError):
            PixelSurface(np.zeros((2, 3, 2), np.uint8))
        with pytest.raises(ValueError):
            PixelSurface(np.zeros((2, 3), np.float32))
        with pytest.raises(ValueError):
            PixelSurface(np.zeros((0, 3), np.uint8))

    def test_size_is_width_height(self):
        surface = PixelSurface(np.zeros((20, 30, 3), np.uint8))
        assert surface.size == (30, 20)
        assert surface.channels == 3

    def test_palette_images_normalized(self):
        img = Image.new("P", (4, 4))
        assert PixelSurface.from_image(img).mode == "RGB"

    def test_decode_does_not_apply_exif(self):
        """Decoding keeps the stored orientation; rotation is a separate step."""
        data = jpeg_bytes(sideways_capture(), orientation=6)
        assert decode_surface(data).size == (300, 200)

    def test_decode_garbage(self):
        with pytest.raises(ImageDecodeError):
            decode_surface(b"hello")

    def test_encode_jpeg_drops_alpha(self):
        surface = PixelSurface(np.full((10, 10, 4), 200, np.uint8))
        data = encode_surface(surface, "image/jpeg", 0.8)
        assert decode(data).mode == "RGB"

    def test_encode_unknown_type(self):
        with pytest.raises(ValueError):
            encode_surface(PixelSurface(np.zeros((2, 2), np.uint8)), "image/gif")

    def test_encode_for_profile_skips_quality_for_png(self):
        surface = PixelSurface(np.full((12, 16, 3), 90, np.uint8))
        share = get_profile("share")
        assert encode_for_profile(surface, "image/png", share) == encode_surface(surface, "image/png")
        assert encode_for_profile(surface, "image/jpeg", share) == encode_surface(surface, "image/jpeg", 0.72)

    def test_encode_for_profile_webp_uses_encoder_default(self):
        surface = PixelSurface(np.full((12, 16, 3), 90, np.uint8))
        share = get_profile("share")
        assert encode_for_profile(surface, "image/webp", share) == encode_surface(surface, "image/webp")

    def test_sixteen_bit_gray_keeps_tones(self):
        """16-bit samples are scaled to 8 bits instead of clipping to white."""
        wide = np.zeros((20, 30), dtype=np.uint16)
        wide[:, :10] = 0x2000
        wide[:, 10:20] = 0x8000
        wide[:, 20:] = 0xFFFF
        data = png_bytes(Image.fromarray(wide))

        result = normalize_capture(data, "image/png")

        assert result.surface.mode == "L"
        assert result.surface.pixels[5, 5] == 0x20
        assert result.surface.pixels[5, 15] == 0x80
        assert result.surface.pixels[5, 25] == 0xFF
        assert decode(result.data).getpixel((5, 5)) == 0x20

    def test_decompression_bomb_is_decode_error(self, monkeypatch):
        data = png_bytes(Image.new("RGB", (100, 100), "white"))
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)
        with pytest.raises(ImageDecodeError):
            decode_surface(data)
