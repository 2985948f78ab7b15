"""Shared fixtures: synthetic captures and documents."""

import io
import struct

import cv2
import numpy as np
import pytest
from PIL import Image

from pagegeometry.surface import PixelSurface

# Known page corners in the synthetic document photo (TL, TR, BR, BL)
DOCUMENT_CORNERS = [(120, 90), (520, 120), (540, 440), (100, 420)]
DOCUMENT_SIZE = (640, 520)


def jpeg_bytes(img: Image.Image, orientation: int | None = None, quality: int = 95) -> bytes:
    """Encode a Pillow image as JPEG, optionally with an EXIF orientation tag."""
    buffer = io.BytesIO()
    if orientation is None:
        img.save(buffer, "JPEG", quality=quality)
    else:
        exif = Image.Exif()
        exif[0x0112] = orientation
        img.save(buffer, "JPEG", quality=quality, exif=exif)
    return buffer.getvalue()


def png_bytes(img: Image.Image) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, "PNG")
    return buffer.getvalue()


def build_exif_jpeg(
    orientation: int | None,
    byte_order: str = "MM",
    leading_tags: int = 2,
    with_app0: bool = True,
) -> bytes:
    """Hand-assemble a minimal JPEG marker stream carrying an EXIF IFD0.

    The stream is not decodable as an image; it only exercises the
    marker/TIFF walk.
    """
    endian = ">" if byte_order == "MM" else "<"

    entries = []
    for i in range(leading_tags):
        # ImageWidth / ImageLength style SHORT entries before Orientation
        entries.append(struct.pack(endian + "HHI", 0x0100 + i, 3, 1) + struct.pack(endian + "HH", 640, 0))
    if orientation is not None:
        entries.append(struct.pack(endian + "HHI", 0x0112, 3, 1) + struct.pack(endian + "HH", orientation, 0))

    ifd = struct.pack(endian + "H", len(entries)) + b"".join(entries) + struct.pack(endian + "I", 0)
    tiff = byte_order.encode("ascii") + struct.pack(endian + "HI", 42, 8) + ifd
    payload = b"Exif\x00\x00" + tiff
    app1 = b"\xff\xe1" + struct.pack(">H", len(payload) + 2) + payload

    app0 = b""
    if with_app0:
        jfif = b"JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
        app0 = b"\xff\xe0" + struct.pack(">H", len(jfif) + 2) + jfif

    scan = b"\xff\xda\x00\x08\x01\x01\x00\x00\x3f\x00" + b"\x12\x34\x56" + b"\xff\xd9"
    return b"\xff\xd8" + app0 + app1 + scan


def asymmetric_pattern(width: int = 60, height: int = 40) -> Image.Image:
    """White RGB image with distinct marks near three corners."""
    pixels = np.full((height, width, 3), 255, dtype=np.uint8)
    pixels[0:10, 0:15] = (255, 0, 0)  # top-left red
    pixels[0:10, width - 8:width] = (0, 0, 255)  # top-right blue
    pixels[height - 6:height, 0:5] = (0, 255, 0)  # bottom-left green
    return Image.fromarray(pixels)


def document_photo(
    corners=DOCUMENT_CORNERS,
    size=DOCUMENT_SIZE,
    rgba: bool = True,
) -> PixelSurface:
    """Bright convex page on a dark background."""
    width, height = size
    pixels = np.full((height, width, 3), 35, dtype=np.uint8)
    polygon = np.array(corners, dtype=np.int32).reshape(-1, 1, 2)
    cv2.fillPoly(pixels, [polygon], (240, 240, 240))
    if rgba:
        alpha = np.full((height, width, 1), 255, dtype=np.uint8)
        pixels = np.concatenate([pixels, alpha], axis=2)
    return PixelSurface(pixels)


@pytest.fixture
def document_surface() -> PixelSurface:
    return document_photo()


@pytest.fixture
def blank_surface() -> PixelSurface:
    return PixelSurface(np.full((300, 400, 4), 200, dtype=np.uint8))
