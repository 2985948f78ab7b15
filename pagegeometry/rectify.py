"""
Document rectification (Pipeline B).

Finds the page quadrilateral in a photo and warps it onto an upright
rectangle. Rectification is best effort: when no page is found, or any
step fails, the caller gets the original surface back untouched.
"""

import logging
import math
from dataclasses import dataclass
from types import ModuleType

import numpy as np

from .buffers import BufferScope
from .config import GeometryConfig
from .contours import extract_contours
from .geometry import OrderedQuadrilateral, distance, order_corners, select_document_quad
from .runtime import VisionRuntime, default_runtime
from .surface import PixelSurface

logger = logging.getLogger(__name__)

MIN_OUTPUT_EDGE = 200


@dataclass
class RectificationResult:
    """Outcome of document rectification.

    On failure, surface is the input surface itself and corners is None.
    """

    surface: PixelSurface
    corners: OrderedQuadrilateral | None
    success: bool
    message: str = ""


def output_size(corners: OrderedQuadrilateral, min_edge: int = MIN_OUTPUT_EDGE) -> tuple[int, int]:
    """Size of the rectangle a quadrilateral is warped onto.

    Width is the longer of the top and bottom edges, height the longer of
    the left and right edges. Both are floored and clamped to min_edge.
    """
    top = distance(corners.top_left, corners.top_right)
    bottom = distance(corners.bottom_left, corners.bottom_right)
    left = distance(corners.top_left, corners.bottom_left)
    right = distance(corners.top_right, corners.bottom_right)

    width = max(min_edge, math.floor(max(top, bottom)))
    height = max(min_edge, math.floor(max(left, right)))
    return width, height


def perspective_matrix(cv: ModuleType, corners: OrderedQuadrilateral, width: int, height: int) -> np.ndarray:
    """Homography taking TL, TR, BR, BL to the corners of a width x height rectangle.

    Raises:
        ValueError: If the corners do not determine a usable transform
    """
    destination = np.array(
        [[0, 0], [width, 0], [width, height], [0, height]],
        dtype=np.float32,
    )
    try:
        matrix = cv.getPerspectiveTransform(corners.as_array(), destination)
    except cv.error as e:
        raise ValueError(f"Perspective transform could not be solved: {e}") from e

    if not np.all(np.isfinite(matrix)) or abs(np.linalg.det(matrix)) < 1e-12:
        raise ValueError("Perspective transform is singular")
    return matrix


def find_document(
    cv: ModuleType,
    surface: PixelSurface,
    config: GeometryConfig,
    scope: BufferScope,
) -> OrderedQuadrilateral | None:
    """Locate the page corners in full-resolution coordinates.

    Returns:
        Ordered corners, or None if no document was detected
    """
    contours, scale = extract_contours(cv, surface, config, scope)
    quad = select_document_quad(cv, contours, config.approx_epsilon_ratio)
    if quad is None:
        return None

    if scale != 1.0:
        quad = quad.scaled(1.0 / scale)
    return order_corners(quad.points)


def warp_to_rectangle(
    cv: ModuleType,
    surface: PixelSurface,
    corners: OrderedQuadrilateral,
    config: GeometryConfig,
    scope: BufferScope,
) -> PixelSurface:
    """Resample the full-resolution surface through the page homography."""
    width, height = output_size(corners, config.min_output_edge)
    matrix = scope.track(perspective_matrix(cv, corners, width, height))
    warped = cv.warpPerspective(surface.pixels, matrix, (width, height))
    return PixelSurface(warped)


def rectify_document(
    surface: PixelSurface,
    runtime: VisionRuntime | None = None,
    config: GeometryConfig | None = None,
) -> RectificationResult:
    """Detect a document in a surface and warp it upright.

    Args:
        surface: Source surface, typically already orientation-normalized
        runtime: Vision runtime handle (defaults to the shared one)
        config: Detection parameters

    Returns:
        RectificationResult; success is False when no document was found
        or rectification failed, in which case the input is returned as-is

    Raises:
        VisionRuntimeError: If OpenCV cannot be loaded
    """
    runtime = runtime or default_runtime()
    config = config or GeometryConfig()
    cv = runtime.ensure()

    try:
        with BufferScope() as scope:
            corners = find_document(cv, surface, config, scope)
            if corners is None:
                logger.info(f"No document detected in {surface.width}x{surface.height} image")
                return RectificationResult(surface, None, False, "No document detected")

            warped = warp_to_rectangle(cv, surface, corners, config, scope)
    except Exception as e:
        logger.warning(f"Document rectification failed, keeping original: {e}", exc_info=True)
        return RectificationResult(surface, None, False, f"Rectification failed: {e}")

    logger.info(f"Rectified document to {warped.width}x{warped.height}")
    return RectificationResult(warped, corners, True, "Document rectified")
