"""
Geometric primitives, quadrilateral selection and corner ordering.
"""

import logging
import math
from dataclasses import dataclass
from types import ModuleType
from typing import Sequence

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Point:
    """A point in source-image pixel coordinates."""

    x: float
    y: float

    def scaled(self, factor: float) -> "Point":
        return Point(self.x * factor, self.y * factor)


def distance(a: Point, b: Point) -> float:
    """Euclidean distance between two points."""
    return math.hypot(a.x - b.x, a.y - b.y)


@dataclass(frozen=True)
class Quadrilateral:
    """Four vertices in traversal order plus their enclosed (absolute) area."""

    points: tuple[Point, Point, Point, Point]
    area: float

    def __post_init__(self) -> None:
        if len(self.points) != 4:
            raise ValueError(f"Quadrilateral needs exactly 4 points, got {len(self.points)}")

    @classmethod
    def from_array(cls, approx: np.ndarray, area: float) -> "Quadrilateral":
        """Build from an OpenCV (4, 1, 2) or (4, 2) point array."""
        coords = np.asarray(approx, dtype=np.float64).reshape(-1, 2)
        points = tuple(Point(float(x), float(y)) for x, y in coords)
        return cls(points=points, area=float(area))

    def scaled(self, factor: float) -> "Quadrilateral":
        """Map coordinates between working-copy and full-resolution space."""
        return Quadrilateral(
            points=tuple(p.scaled(factor) for p in self.points),
            area=self.area * factor * factor,
        )


@dataclass(frozen=True)
class OrderedQuadrilateral:
    """Quadrilateral vertices labeled by their role on the page."""

    top_left: Point
    top_right: Point
    bottom_right: Point
    bottom_left: Point

    @property
    def points(self) -> tuple[Point, Point, Point, Point]:
        """Clockwise from top-left."""
        return (self.top_left, self.top_right, self.bottom_right, self.bottom_left)

    def as_array(self) -> np.ndarray:
        """(4, 2) float32 array in TL, TR, BR, BL order, as OpenCV expects."""
        return np.array([[p.x, p.y] for p in self.points], dtype=np.float32)


def order_corners(points: Sequence[Point]) -> OrderedQuadrilateral:
    """Assign four vertices to the TL, TR, BR, BL roles.

    TL has the smallest x+y and BR the largest; BL has the smallest x-y
    and TR the largest. Sorting is stable, so ties resolve by input order.

    This assumes the page is rotated less than about 45 degrees in-plane.
    Steeper rotations can swap roles and produce a sheared rectification.

    Args:
        points: Exactly four points

    Returns:
        OrderedQuadrilateral
    """
    if len(points) != 4:
        raise ValueError(f"order_corners needs exactly 4 points, got {len(points)}")

    by_sum = sorted(points, key=lambda p: p.x + p.y)
    by_diff = sorted(points, key=lambda p: p.x - p.y)

    return OrderedQuadrilateral(
        top_left=by_sum[0],
        top_right=by_diff[-1],
        bottom_right=by_sum[-1],
        bottom_left=by_diff[0],
    )


def select_document_quad(
    cv: ModuleType,
    contours: Sequence[np.ndarray],
    epsilon_ratio: float = 0.02,
) -> Quadrilateral | None:
    """Pick the largest convex four-sided approximation among contours.

    Each contour is simplified with Douglas-Peucker at a tolerance of
    epsilon_ratio times its closed perimeter. A single pass keeps the
    candidate with the largest area; zero-area candidates never win.

    Args:
        cv: Loaded OpenCV module
        contours: Contours from the edge extractor
        epsilon_ratio: Approximation tolerance as a fraction of perimeter

    Returns:
        The best Quadrilateral, or None if no contour qualifies
    """
    best: np.ndarray | None = None
    best_area = 0.0

    for contour in contours:
        perimeter = cv.arcLength(contour, True)
        approx = cv.approxPolyDP(contour, epsilon_ratio * perimeter, True)
        if len(approx) != 4 or not cv.isContourConvex(approx):
            continue

        area = abs(cv.contourArea(approx))
        if area > best_area:
            best_area = area
            best = approx

    if best is None:
        logger.debug(f"No convex quadrilateral among {len(contours)} contours")
        return None

    return Quadrilateral.from_array(best, best_area)
