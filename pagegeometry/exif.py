"""
EXIF orientation scanning for JPEG byte streams.

Reads just enough of the marker segments to find the Orientation tag in
IFD0. No pixel data is decoded. Anything unexpected yields None: the tag
only tells us how to improve the image, so its absence is never an error.
"""

import logging
import struct

logger = logging.getLogger(__name__)

SOI_MARKER = 0xFFD8
APP1_MARKER = 0xFFE1
SOS_MARKER = 0xFFDA
EOI_MARKER = 0xFFD9

EXIF_SIGNATURE = b"Exif"
ORIENTATION_TAG = 0x0112
IFD_ENTRY_SIZE = 12

UPRIGHT = 1
VALID_ORIENTATIONS = range(1, 9)


def read_exif_orientation(data: bytes) -> int | None:
    """Extract the EXIF orientation tag from a JPEG byte stream.

    Args:
        data: Raw file contents

    Returns:
        The 16-bit Orientation value, or None if the stream is not a JPEG,
        has no EXIF block, or the block is truncated or malformed
    """
    try:
        return _scan_segments(memoryview(data))
    except (struct.error, IndexError) as e:
        logger.debug(f"Truncated EXIF data, assuming upright: {e}")
        return None


def orientation_or_default(value: int | None) -> int:
    """Map an unknown or out-of-range orientation to upright."""
    if value in VALID_ORIENTATIONS:
        return value
    if value is not None:
        logger.debug(f"Ignoring invalid orientation value {value}")
    return UPRIGHT


def _scan_segments(view: memoryview) -> int | None:
    if len(view) < 2 or struct.unpack_from(">H", view, 0)[0] != SOI_MARKER:
        return None

    offset = 2
    while offset < len(view):
        # Markers may be preceded by any number of 0xFF fill bytes
        while offset + 1 < len(view) and view[offset] == 0xFF and view[offset + 1] == 0xFF:
            offset += 1
        marker = struct.unpack_from(">H", view, offset)[0]

        if marker >> 8 != 0xFF or marker in (SOS_MARKER, EOI_MARKER):
            # Entropy-coded data or end of image; APP1 cannot follow
            return None

        length = struct.unpack_from(">H", view, offset + 2)[0]

        if marker == APP1_MARKER:
            if length < 10:
                return None
            payload = offset + 4
            if bytes(view[payload:payload + 4]) == EXIF_SIGNATURE:
                return _read_tiff_orientation(view, payload + 6)

        if length == 0:
            return None
        offset += length + 2

    return None


def _read_tiff_orientation(view: memoryview, tiff_start: int) -> int | None:
    byte_order = bytes(view[tiff_start:tiff_start + 2])
    if byte_order == b"II":
        endian = "<"
    elif byte_order == b"MM":
        endian = ">"
    else:
        return None

    first_ifd = struct.unpack_from(endian + "I", view, tiff_start + 4)[0]
    if first_ifd < 8:
        return None

    directory = tiff_start + first_ifd
    entry_count = struct.unpack_from(endian + "H", view, directory)[0]

    for i in range(entry_count):
        entry = directory + 2 + i * IFD_ENTRY_SIZE
        tag = struct.unpack_from(endian + "H", view, entry)[0]
        if tag == ORIENTATION_TAG:
            return struct.unpack_from(endian + "H", view, entry + 8)[0]

    return None
