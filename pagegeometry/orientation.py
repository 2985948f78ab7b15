"""
Orientation normalization: turn a camera-oriented surface upright.
"""

import logging

from PIL import Image

from .exif import orientation_or_default
from .surface import PixelSurface

logger = logging.getLogger(__name__)

# Tags whose transform includes a quarter turn, swapping width and height
QUARTER_TURN_ORIENTATIONS = frozenset({5, 6, 7, 8})

# EXIF orientation -> transpose that displays the stored image upright
_TRANSPOSES = {
    2: Image.Transpose.FLIP_LEFT_RIGHT,
    3: Image.Transpose.ROTATE_180,
    4: Image.Transpose.FLIP_TOP_BOTTOM,
    5: Image.Transpose.TRANSPOSE,
    6: Image.Transpose.ROTATE_270,  # 90 degrees clockwise
    7: Image.Transpose.TRANSVERSE,
    8: Image.Transpose.ROTATE_90,  # 90 degrees counter-clockwise
}


def compute_scale(width: int, height: int, max_edge: int | None) -> float:
    """Uniform downscale factor so the long edge fits max_edge.

    Never upscales. None means no limit.
    """
    if max_edge is None:
        return 1.0
    return min(1.0, max_edge / max(width, height))


def scaled_size(width: int, height: int, max_edge: int | None) -> tuple[int, int]:
    """Dimensions after downscaling, rounded half up and at least 1 pixel."""
    scale = compute_scale(width, height, max_edge)
    if scale == 1.0:
        return width, height
    return (
        max(1, int(width * scale + 0.5)),
        max(1, int(height * scale + 0.5)),
    )


def oriented_size(width: int, height: int, orientation: int) -> tuple[int, int]:
    """Output dimensions once the orientation transform is applied."""
    if orientation in QUARTER_TURN_ORIENTATIONS:
        return height, width
    return width, height


def normalize_orientation(
    surface: PixelSurface,
    orientation: int | None,
    max_edge: int | None = None,
) -> PixelSurface:
    """Resample a surface to max_edge and apply its EXIF orientation.

    Args:
        surface: Decoded surface in stored (camera) orientation
        orientation: EXIF orientation tag; None or invalid means upright
        max_edge: Longest edge of the output (None for no downscale)

    Returns:
        New upright surface
    """
    orientation = orientation_or_default(orientation)
    width, height = scaled_size(surface.width, surface.height, max_edge)

    img = surface.to_image()
    if (width, height) != surface.size:
        img = img.resize((width, height), Image.LANCZOS)

    transpose = _TRANSPOSES.get(orientation)
    if transpose is not None:
        img = img.transpose(transpose)

    result = PixelSurface.from_image(img)

    logger.debug(
        f"Oriented {surface.width}x{surface.height} (tag {orientation}) -> {result.width}x{result.height}"
    )
    return result
