"""
Pure utility functions for annotation logic.

These functions have no side effects and can be tested in isolation.
"""

import re
from collections import Counter
from typing import Iterable, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from .geometry import Point
from .state import BoundingBox, Polygon

HEX_DIGITS = "0123456789ABCDEF"

_COLOR_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")


def generate_random_color(rng: Optional[np.random.Generator] = None) -> str:
    """
    Random 24-bit color as ``#RRGGBB``.

    Every nibble is drawn uniformly from the 16 hex digits.

    Args:
        rng: Optional numpy generator (for reproducible colors)

    Returns:
        Color string, upper-case hex
    """
    if rng is None:
        rng = np.random.default_rng()
    nibbles = rng.integers(0, 16, size=6)
    return "#" + "".join(HEX_DIGITS[int(n)] for n in nibbles)


def validate_color(color: str) -> str:
    """
    Normalize a color string to ``#RRGGBB``.

    Raises:
        ValueError: If color is not a 6-digit hex color
    """
    if not isinstance(color, str):
        raise ValueError(f"Color must be a string, got {type(color)}")

    match = _COLOR_RE.match(color.strip())
    if match is None:
        raise ValueError(f"Invalid color: {color!r}")

    return "#" + match.group(1).upper()


def hex_to_rgb(color: str) -> Tuple[int, int, int]:
    """Convert ``#RRGGBB`` to an (R, G, B) tuple."""
    value = validate_color(color)[1:]
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def validate_image(image: np.ndarray) -> None:
    """
    Validate that image has correct format.

    Raises:
        ValueError: If image is invalid
    """
    if image is None:
        raise ValueError("Image is None")

    if not isinstance(image, np.ndarray):
        raise ValueError(f"Image must be numpy array, got {type(image)}")

    if image.ndim != 3:
        raise ValueError(f"Image must be 3D (H, W, C), got shape {image.shape}")

    if image.shape[2] != 3:
        raise ValueError(f"Image must have 3 channels, got {image.shape[2]}")

    if image.dtype not in [np.uint8, np.float32, np.float64]:
        raise ValueError(f"Invalid image dtype: {image.dtype}")


def read_image(path) -> np.ndarray:
    """
    Decode an image file into an RGB array.

    Raises:
        ValueError: If the file cannot be decoded
    """
    image = cv2.imread(str(path))
    if image is None:
        raise ValueError(f"Could not read image: {path}")
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


def _int_point(point: Point) -> Tuple[int, int]:
    return int(round(point.x)), int(round(point.y))


def draw_boxes_on_image(
    image: np.ndarray,
    boxes: Iterable[BoundingBox],
    thickness: int = 2,
    selected_id: Optional[str] = None,
) -> np.ndarray:
    """
    Draw box outlines on a copy of an RGB image.

    The selected box is drawn with double thickness.
    """
    result = image.copy()

    for box in boxes:
        x0, y0, x1, y1 = box.extents()
        width = thickness * 2 if box.id == selected_id else thickness
        cv2.rectangle(
            result,
            (int(round(x0)), int(round(y0))),
            (int(round(x1)), int(round(y1))),
            hex_to_rgb(box.color),
            width,
        )

    return result


def draw_polygons_on_image(
    image: np.ndarray,
    polygons: Iterable[Polygon],
    thickness: int = 2,
    vertex_radius: int = 5,
    selected_id: Optional[str] = None,
) -> np.ndarray:
    """
    Draw closed polygon outlines and their vertex handles.

    Args:
        image: RGB image
        polygons: Polygons to draw
        thickness: Outline thickness
        vertex_radius: Radius of the filled vertex handles
        selected_id: Id of the polygon drawn with double thickness

    Returns:
        Image with polygons drawn
    """
    result = image.copy()

    for polygon in polygons:
        color = hex_to_rgb(polygon.color)
        pts = np.array([_int_point(p) for p in polygon.points], dtype=np.int32)
        width = thickness * 2 if polygon.id == selected_id else thickness
        cv2.polylines(result, [pts.reshape(-1, 1, 2)], True, color, width)

        for point in polygon.points:
            cv2.circle(result, _int_point(point), vertex_radius, color, -1)

    return result


def draw_polyline_on_image(
    image: np.ndarray,
    points: Sequence[Point],
    color: str,
    thickness: int = 2,
) -> np.ndarray:
    """Draw an open polyline (used for the in-progress polygon preview)."""
    result = image.copy()
    if len(points) < 2:
        return result

    pts = np.array([_int_point(p) for p in points], dtype=np.int32)
    cv2.polylines(result, [pts.reshape(-1, 1, 2)], False, hex_to_rgb(color), thickness)
    return result


def compute_shape_statistics(shapes: List) -> dict:
    """
    Compute statistics about annotated shapes.

    Args:
        shapes: List of BoundingBox / Polygon objects

    Returns:
        Dictionary with statistics
    """
    if not shapes:
        return {
            "num_total": 0,
            "num_boxes": 0,
            "num_polygons": 0,
            "labels": {},
        }

    num_boxes = sum(1 for s in shapes if isinstance(s, BoundingBox))
    labels = Counter(s.label for s in shapes)

    return {
        "num_total": len(shapes),
        "num_boxes": num_boxes,
        "num_polygons": len(shapes) - num_boxes,
        "labels": dict(labels),
    }
