"""
Authoritative collections of persisted boxes and polygons.

Every mutation of annotation data goes through ``ShapeStore``. Gate
failures and lookup misses are not errors: the call simply returns
``None`` and leaves the store untouched.
"""

import logging
from typing import Dict, List, Optional, Sequence

from .geometry import Point, normalize_rect, passes_size_gate
from .registry import ClassRegistry
from .state import BoundingBox, Polygon, Shape
from .utils import validate_color

logger = logging.getLogger(__name__)

BOX_FIELDS = frozenset({"x", "y", "width", "height", "label", "color"})
POLYGON_FIELDS = frozenset({"points", "label", "color"})


class ShapeStore:
    """
    Owns the boxes and polygons of the current image.

    Boxes and polygons are kept in creation order. Label and color
    changes go through the shared ``ClassRegistry`` so that all shapes
    carrying a label share its color.
    """

    def __init__(
        self,
        registry: Optional[ClassRegistry] = None,
        min_box_size: float = 5,
        min_polygon_points: int = 3,
    ):
        """
        Args:
            registry: Label/color registry shared with the session
            min_box_size: A box side must exceed this to be persisted
            min_polygon_points: Minimum vertex count of a persisted polygon
        """
        self.registry = registry if registry is not None else ClassRegistry()
        self.min_box_size = min_box_size
        self.min_polygon_points = min_polygon_points

        self._boxes: List[BoundingBox] = []
        self._polygons: List[Polygon] = []

    @property
    def boxes(self) -> List[BoundingBox]:
        return list(self._boxes)

    @property
    def polygons(self) -> List[Polygon]:
        return list(self._polygons)

    def shapes(self) -> List[Shape]:
        """All shapes: boxes in creation order, then polygons."""
        return [*self._boxes, *self._polygons]

    def __len__(self):
        return len(self._boxes) + len(self._polygons)

    def __contains__(self, shape_id):
        return self.find_shape(shape_id) is not None

    def add_box(self, box: BoundingBox) -> Optional[BoundingBox]:
        """
        Persist a drawn box if it passes the size gate.

        Returns:
            The stored (normalized) box, or None if the gate failed
        """
        if not passes_size_gate(box.width, box.height, self.min_box_size):
            logger.debug(
                f"Discarding box {box.width}x{box.height}: below size gate"
            )
            return None

        stored = box.normalized()
        self._boxes.append(stored)
        return stored

    def add_polygon(
        self,
        points: Sequence[Point],
        label: str = "",
        color: str = "#FF0000",
    ) -> Optional[Polygon]:
        """
        Persist a polygon if it has enough points.

        Returns:
            The stored polygon, or None if there were too few points
        """
        if len(points) < self.min_polygon_points:
            logger.debug(f"Discarding polygon with {len(points)} point(s)")
            return None

        polygon = Polygon(points=list(points), label=label, color=color)
        self._polygons.append(polygon)
        return polygon

    def find_shape(self, shape_id: str) -> Optional[Shape]:
        """Box or polygon with ``shape_id``, or None."""
        for shape in self._boxes:
            if shape.id == shape_id:
                return shape
        for shape in self._polygons:
            if shape.id == shape_id:
                return shape
        return None

    def update_shape(self, shape_id: str, **patch) -> Optional[Shape]:
        """
        Apply a partial update to the shape with ``shape_id``.

        A new label without a color takes the registry color for that
        label. A color is recorded for the shape's label and applied to
        every shape carrying it.

        Args:
            shape_id: Target shape
            **patch: Box fields (x, y, width, height) or polygon
                ``points``, plus ``label`` and ``color``

        Returns:
            The updated shape, or None if not found or rejected

        Raises:
            ValueError: If the patch names fields the shape does not have
        """
        shape = self.find_shape(shape_id)
        if shape is None:
            logger.debug(f"update_shape: no shape with id {shape_id}")
            return None

        allowed = BOX_FIELDS if isinstance(shape, BoundingBox) else POLYGON_FIELDS
        unknown = set(patch) - allowed
        if unknown:
            raise ValueError(
                f"Unknown field(s) for {shape.kind}: {', '.join(sorted(unknown))}"
            )

        color = patch.pop("color", None)
        if color is not None:
            color = validate_color(color)

        if "points" in patch:
            points = list(patch["points"])
            if len(points) < self.min_polygon_points:
                logger.debug(
                    f"Rejecting update of {shape_id}: {len(points)} point(s)"
                )
                return None
            patch["points"] = points

        label = patch.pop("label", None)
        for name, value in patch.items():
            setattr(shape, name, value)

        if isinstance(shape, BoundingBox):
            shape.x, shape.y, shape.width, shape.height = normalize_rect(
                shape.x, shape.y, shape.width, shape.height
            )

        if label is not None:
            shape.label = label
            if color is None:
                shape.color = self.registry.color_for(label)

        if color is not None:
            self.set_label_color(shape.label, color)

        return shape

    def move_vertex(self, polygon_id: str, index: int, point: Point) -> Optional[Polygon]:
        """Replace a single polygon vertex; other vertices are untouched."""
        shape = self.find_shape(polygon_id)
        if not isinstance(shape, Polygon):
            return None
        if not 0 <= index < len(shape.points):
            logger.debug(f"move_vertex: index {index} out of range for {polygon_id}")
            return None

        shape.points[index] = point
        return shape

    def set_label_color(self, label: str, color: str) -> List[Shape]:
        """
        Record ``color`` for ``label`` and recolor every shape carrying it.

        Returns:
            The shapes whose color was set
        """
        color = self.registry.set_color(label, color)
        updated = [s for s in self.shapes() if s.label == label]
        for shape in updated:
            shape.color = color
        return updated

    def delete_shape(self, shape_id: str) -> Optional[Shape]:
        """
        Remove the shape with ``shape_id`` from whichever collection has it.

        Clearing a selection that pointed at the shape is the caller's job.

        Returns:
            The removed shape, or None if not found
        """
        for collection in (self._boxes, self._polygons):
            for i, shape in enumerate(collection):
                if shape.id == shape_id:
                    return collection.pop(i)
        logger.debug(f"delete_shape: no shape with id {shape_id}")
        return None

    def clear(self):
        """Drop all shapes (the registry is kept)."""
        self._boxes.clear()
        self._polygons.clear()

    def to_dict(self) -> Dict[str, list]:
        """Convert to dictionary for serialization."""
        return {
            "boxes": [b.to_dict() for b in self._boxes],
            "polygons": [p.to_dict() for p in self._polygons],
        }
