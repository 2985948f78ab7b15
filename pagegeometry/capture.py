"""
Capture normalization (Pipeline A).

Decodes a photo, reads its EXIF orientation, produces an upright surface
at the profile's resolution, and encodes it with the profile's settings.
"""

import logging
import re
from dataclasses import dataclass

from .config import DEFAULT_PROFILE, SUPPORTED_MEDIA_TYPES, QualityProfile, get_profile
from .errors import UnsupportedMediaTypeError
from .exif import orientation_or_default, read_exif_orientation
from .orientation import normalize_orientation
from .surface import PixelSurface, decode_surface, encode_surface

logger = logging.getLogger(__name__)

HEIC_PATTERN = re.compile(r"heic|heif", re.IGNORECASE)
HEIC_EXTENSION_PATTERN = re.compile(r"\.(heic|heif)$", re.IGNORECASE)
JPEG_PATTERN = re.compile(r"jpe?g", re.IGNORECASE)

EXTENSION_MEDIA_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".heic": "image/heic",
    ".heif": "image/heif",
}


@dataclass
class NormalizedCapture:
    """Result of normalizing a single capture."""

    surface: PixelSurface
    data: bytes
    media_type: str
    orientation: int
    profile: QualityProfile


def media_type_to_extension(media_type: str) -> str:
    """File extension for an output media type (JPEG is the fallback)."""
    if "png" in media_type:
        return ".png"
    if "webp" in media_type:
        return ".webp"
    return ".jpg"


def ensure_extension(name: str, media_type: str) -> str:
    """Replace a filename's extension so it matches media_type."""
    extension = media_type_to_extension(media_type)
    if name.lower().endswith(extension):
        return name
    return re.sub(r"\.[^.]+$", "", name) + extension


def guess_media_type(filename: str) -> str | None:
    """Media type from a file extension, or None if unknown."""
    match = re.search(r"\.[^.]+$", filename)
    if not match:
        return None
    return EXTENSION_MEDIA_TYPES.get(match.group(0).lower())


def check_media_type(media_type: str | None, filename: str | None = None) -> None:
    """Reject inputs the decoder cannot handle.

    Raises:
        UnsupportedMediaTypeError: For HEIC/HEIF or non-image media types
    """
    media_type = media_type or ""
    if HEIC_PATTERN.search(media_type) or (filename and HEIC_EXTENSION_PATTERN.search(filename)):
        raise UnsupportedMediaTypeError("HEIC/HEIF is not supported, capture as JPG or PNG instead")

    if not media_type.startswith("image/"):
        raise UnsupportedMediaTypeError(f"Media type {media_type or 'unknown'} is not supported")


def select_output_media_type(source_media_type: str, profile: QualityProfile) -> str:
    """Output media type for a profile.

    The default profile keeps any supported source type; other profiles
    always re-encode to their own media type.
    """
    if profile.name == DEFAULT_PROFILE and source_media_type in SUPPORTED_MEDIA_TYPES:
        return source_media_type
    return profile.media_type


def encode_for_profile(surface: PixelSurface, media_type: str, profile: QualityProfile) -> bytes:
    """Encode a surface, applying the profile quality only to JPEG output.

    PNG and WebP are written with the encoder defaults.
    """
    quality = profile.quality if JPEG_PATTERN.search(media_type) else None
    return encode_surface(surface, media_type, quality)


def normalize_capture(
    data: bytes,
    media_type: str | None,
    profile: str | QualityProfile = DEFAULT_PROFILE,
    filename: str | None = None,
) -> NormalizedCapture:
    """Decode, orient, resample and encode a captured photo.

    Args:
        data: Compressed file contents
        media_type: Declared media type (e.g. image/jpeg)
        profile: Profile name or instance
        filename: Optional original filename, used for format checks

    Returns:
        NormalizedCapture with the upright surface and encoded bytes

    Raises:
        UnsupportedMediaTypeError: If the media type cannot be processed
        ImageDecodeError: If the bytes cannot be decoded
    """
    if isinstance(profile, str):
        profile = get_profile(profile)

    check_media_type(media_type, filename)

    # Metadata failures are soft: None falls back to upright
    tag = read_exif_orientation(data)
    orientation = orientation_or_default(tag)
    if tag is None:
        logger.debug(f"No EXIF orientation in {filename or 'capture'}, assuming upright")

    surface = decode_surface(data)
    upright = normalize_orientation(surface, orientation, profile.max_edge)

    target_type = select_output_media_type(media_type, profile)
    encoded = encode_for_profile(upright, target_type, profile)

    logger.info(
        f"Normalized {filename or 'capture'}: {surface.width}x{surface.height} "
        f"-> {upright.width}x{upright.height} {target_type} (orientation {orientation}, profile {profile.name})"
    )
    return NormalizedCapture(
        surface=upright,
        data=encoded,
        media_type=target_type,
        orientation=orientation,
        profile=profile,
    )
