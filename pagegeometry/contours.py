"""
Edge detection and contour extraction for document detection.

Grayscale -> Gaussian blur -> Canny -> findContours (all contours, no
hierarchy, vertices only). An empty result is normal for images without
strong edges; it is up to the quadrilateral selector to report that.
"""

import logging
from types import ModuleType

import numpy as np

from .buffers import BufferScope
from .config import GeometryConfig
from .orientation import compute_scale, scaled_size
from .surface import PixelSurface

logger = logging.getLogger(__name__)


def to_grayscale(cv: ModuleType, pixels: np.ndarray) -> np.ndarray:
    """Single-channel copy of an L, RGB or RGBA pixel array."""
    if pixels.ndim == 2:
        return pixels.copy()
    code = cv.COLOR_RGBA2GRAY if pixels.shape[2] == 4 else cv.COLOR_RGB2GRAY
    return cv.cvtColor(pixels, code)


def downscale_for_detection(
    cv: ModuleType,
    gray: np.ndarray,
    max_edge: int | None,
) -> tuple[np.ndarray, float]:
    """Shrink a grayscale image so its long edge fits max_edge.

    Returns:
        Tuple of (working image, scale from full resolution to working copy).
        The input itself is returned with scale 1.0 when no shrinking is needed.
    """
    height, width = gray.shape[:2]
    size = scaled_size(width, height, max_edge)
    if size == (width, height):
        return gray, 1.0
    working = cv.resize(gray, size, interpolation=cv.INTER_AREA)
    return working, compute_scale(width, height, max_edge)


def detect_edges(cv: ModuleType, gray: np.ndarray, config: GeometryConfig, scope: BufferScope) -> np.ndarray:
    """Binary edge map of a grayscale image."""
    kernel = (config.blur_kernel, config.blur_kernel)
    # Sigma 0 lets OpenCV derive it from the kernel size
    blurred = scope.track(cv.GaussianBlur(gray, kernel, 0))
    return scope.track(
        cv.Canny(
            blurred,
            config.canny_low,
            config.canny_high,
            apertureSize=config.canny_aperture,
            L2gradient=False,
        )
    )


def find_contours(cv: ModuleType, edges: np.ndarray) -> list[np.ndarray]:
    """All closed contours of an edge map, without hierarchy."""
    contours, _ = cv.findContours(edges, cv.RETR_LIST, cv.CHAIN_APPROX_SIMPLE)
    return list(contours)


def extract_contours(
    cv: ModuleType,
    surface: PixelSurface,
    config: GeometryConfig,
    scope: BufferScope,
) -> tuple[list[np.ndarray], float]:
    """Run the edge/contour pipeline on a surface.

    Intermediate buffers are owned by scope and are released when the
    caller leaves it.

    Args:
        cv: Loaded OpenCV module
        surface: Source surface (any supported layout)
        config: Detection parameters
        scope: Scope that owns the intermediate buffers

    Returns:
        Tuple of (contours in working-copy coordinates, working-copy scale)
    """
    gray = scope.track(to_grayscale(cv, surface.pixels))

    working, scale = downscale_for_detection(cv, gray, config.detection_max_edge)
    if working is not gray:
        scope.track(working)

    edges = detect_edges(cv, working, config, scope)
    contours = scope.track(find_contours(cv, edges))

    logger.debug(
        f"Found {len(contours)} contours in {working.shape[1]}x{working.shape[0]} working copy (scale {scale:.3f})"
    )
    return contours, scale
