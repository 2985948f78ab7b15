"""
Pixel surfaces: decoded raster images passed between pipeline stages.
"""

import io
import logging
from dataclasses import dataclass

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import ImageDecodeError

logger = logging.getLogger(__name__)

# Pillow format names by media type
_ENCODER_FORMATS = {
    "image/jpeg": "JPEG",
    "image/png": "PNG",
    "image/webp": "WEBP",
}

_CHANNEL_MODES = {3: "RGB", 4: "RGBA"}


@dataclass(frozen=True, eq=False)
class PixelSurface:
    """A height x width buffer of uint8 samples.

    Grayscale surfaces are 2-D; RGB and RGBA surfaces carry a trailing
    channel axis. Stages never modify a surface in place, they return a
    new one.
    """

    pixels: np.ndarray

    def __post_init__(self) -> None:
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"PixelSurface requires uint8 samples, got {self.pixels.dtype}")

        if self.pixels.ndim == 2:
            pass
        elif self.pixels.ndim == 3 and self.pixels.shape[2] in _CHANNEL_MODES:
            pass
        else:
            raise ValueError(f"Unsupported pixel layout: {self.pixels.shape}")

        if self.pixels.shape[0] < 1 or self.pixels.shape[1] < 1:
            raise ValueError(f"PixelSurface cannot be empty: {self.pixels.shape}")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        """(width, height), matching Pillow's convention."""
        return self.width, self.height

    @property
    def channels(self) -> int:
        return 1 if self.pixels.ndim == 2 else int(self.pixels.shape[2])

    @property
    def mode(self) -> str:
        """Pillow mode name: L, RGB or RGBA."""
        return "L" if self.channels == 1 else _CHANNEL_MODES[self.channels]

    @classmethod
    def from_image(cls, img: Image.Image) -> "PixelSurface":
        """Build a surface from a Pillow image, normalizing its mode."""
        if img.mode == "I" or img.mode.startswith("I;16"):
            # 16-bit samples keep their tonal range as 8-bit gray
            wide = np.clip(np.asarray(img, dtype=np.int64), 0, 0xFFFF)
            return cls((wide >> 8).astype(np.uint8))
        if img.mode not in ("L", "RGB", "RGBA"):
            has_alpha = "A" in img.getbands() or "transparency" in img.info
            img = img.convert("RGBA" if has_alpha else "RGB")
        # np.array copies, so the surface never aliases Pillow's buffer
        return cls(np.array(img, dtype=np.uint8))

    def to_image(self) -> Image.Image:
        """Return a Pillow image holding a copy of the pixels."""
        return Image.fromarray(self.pixels.copy())


def decode_surface(data: bytes) -> PixelSurface:
    """Decode compressed image bytes without applying EXIF orientation.

    Args:
        data: Raw file contents

    Returns:
        Decoded surface in stored (camera) orientation

    Raises:
        ImageDecodeError: If Pillow cannot decode the data
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return PixelSurface.from_image(img)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Image could not be decoded: {e}") from e


def encode_surface(surface: PixelSurface, media_type: str, quality: float | None = None) -> bytes:
    """Encode a surface to compressed bytes.

    Args:
        surface: Surface to encode
        media_type: One of image/jpeg, image/png, image/webp
        quality: Lossy quality in (0, 1]; ignored for PNG

    Returns:
        Encoded file contents
    """
    fmt = _ENCODER_FORMATS.get(media_type)
    if fmt is None:
        raise ValueError(f"Cannot encode media type: {media_type}")

    img = surface.to_image()
    options: dict = {}

    if fmt == "JPEG":
        # JPEG has no alpha channel
        if img.mode == "RGBA":
            img = img.convert("RGB")
        if quality is not None:
            options["quality"] = int(round(quality * 100))
    elif fmt == "WEBP" and quality is not None:
        options["quality"] = int(round(quality * 100))

    buffer = io.BytesIO()
    img.save(buffer, fmt, **options)
    data = buffer.getvalue()
    logger.debug(f"Encoded {surface.width}x{surface.height} {surface.mode} as {media_type} ({len(data)} bytes)")
    return data
