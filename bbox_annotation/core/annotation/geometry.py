"""
Point and rectangle math for annotation shapes.

All coordinates are image-pixel coordinates with the origin at the
top-left corner. Nothing here rounds; rounding happens at export time.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class Point:
    """A single point in image space."""

    x: float
    y: float

    def translated(self, dx: float, dy: float) -> "Point":
        return Point(self.x + dx, self.y + dy)

    def to_dict(self):
        """Convert to dictionary for serialization."""
        return {"x": self.x, "y": self.y}


def distance(a: Point, b: Point) -> float:
    """Euclidean distance between two points."""
    return math.hypot(a.x - b.x, a.y - b.y)


def within_radius(a: Point, b: Point, radius: float) -> bool:
    """True if ``a`` lies strictly inside the circle of ``radius`` around ``b``."""
    return distance(a, b) < radius


def bounding_extents(points: Iterable[Point]) -> Tuple[float, float, float, float]:
    """
    Axis-aligned extents of a point set.

    Args:
        points: Non-empty iterable of points

    Returns:
        (xmin, ymin, xmax, ymax)

    Raises:
        ValueError: If ``points`` is empty
    """
    points = list(points)
    if not points:
        raise ValueError("Cannot compute extents of an empty point set")

    xs = [p.x for p in points]
    ys = [p.y for p in points]
    return min(xs), min(ys), max(xs), max(ys)


def normalize_rect(
    x: float, y: float, width: float, height: float
) -> Tuple[float, float, float, float]:
    """
    Move the origin of a rect so that width and height are non-negative.

    A drag can go in any direction, so a live rect may carry negative
    extents; the covered area is unchanged.
    """
    if width < 0:
        x, width = x + width, -width
    if height < 0:
        y, height = y + height, -height
    return x, y, width, height


def passes_size_gate(width: float, height: float, min_size: float = 5) -> bool:
    """A box is kept only if either side is strictly larger than ``min_size``."""
    return abs(width) > min_size or abs(height) > min_size


def rect_corners(x: float, y: float, width: float, height: float) -> List[Point]:
    """Corners of a rect in clockwise order starting at (x, y)."""
    return [
        Point(x, y),
        Point(x + width, y),
        Point(x + width, y + height),
        Point(x, y + height),
    ]


def translate_points(points: Sequence[Point], dx: float, dy: float) -> List[Point]:
    """Shift every point by the same delta."""
    return [p.translated(dx, dy) for p in points]


def transform_points(
    points: Sequence[Point],
    scale_x: float = 1.0,
    scale_y: float = 1.0,
    rotation: float = 0.0,
    tx: float = 0.0,
    ty: float = 0.0,
) -> List[Point]:
    """
    Apply a scale, rotation and translation to a point set.

    Each point is mapped as::

        x' = x * sx * cos(t) - y * sy * sin(t) + tx
        y' = x * sx * sin(t) + y * sy * cos(t) + ty

    Args:
        points: Points relative to the transform origin
        scale_x: Horizontal scale factor
        scale_y: Vertical scale factor
        rotation: Rotation in degrees (clockwise on screen, y points down)
        tx: Horizontal translation
        ty: Vertical translation

    Returns:
        Transformed points, same order as the input
    """
    if not points:
        return []

    theta = np.deg2rad(rotation)
    cos_t, sin_t = np.cos(theta), np.sin(theta)
    matrix = np.array(
        [
            [scale_x * cos_t, -scale_y * sin_t],
            [scale_x * sin_t, scale_y * cos_t],
        ]
    )

    coords = np.array([[p.x, p.y] for p in points], dtype=np.float64)
    result = coords @ matrix.T + np.array([tx, ty])

    return [Point(float(x), float(y)) for x, y in result]
