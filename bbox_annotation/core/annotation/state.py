"""
State management for annotation sessions.

Contains the shape data classes and the states of the interaction
state machine. Exactly one state value is active at a time, so
combinations such as "selected while drawing a polygon" cannot be
represented.
"""

import uuid
from dataclasses import dataclass, field
from typing import List, Optional, Union

from .geometry import Point, bounding_extents, normalize_rect


def new_shape_id() -> str:
    """Process-unique identifier for a new shape."""
    return str(uuid.uuid4())


@dataclass
class BoundingBox:
    """An axis-aligned box. Width and height may be negative while drawing."""

    x: float
    y: float
    width: float = 0.0
    height: float = 0.0
    label: str = ""
    color: str = "#FF0000"
    id: str = field(default_factory=new_shape_id)

    kind = "box"

    def normalized(self) -> "BoundingBox":
        """Copy of this box with non-negative width and height."""
        x, y, width, height = normalize_rect(self.x, self.y, self.width, self.height)
        return BoundingBox(
            x=x,
            y=y,
            width=width,
            height=height,
            label=self.label,
            color=self.color,
            id=self.id,
        )

    @property
    def anchor(self) -> Point:
        return Point(self.x, self.y)

    def extents(self):
        x, y, width, height = normalize_rect(self.x, self.y, self.width, self.height)
        return x, y, x + width, y + height

    def to_dict(self):
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "kind": self.kind,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "label": self.label,
            "color": self.color,
        }


@dataclass
class Polygon:
    """A closed polygon; the last point connects back to the first."""

    points: List[Point] = field(default_factory=list)
    label: str = ""
    color: str = "#FF0000"
    id: str = field(default_factory=new_shape_id)

    kind = "polygon"

    @property
    def anchor(self) -> Point:
        return self.points[0]

    def extents(self):
        return bounding_extents(self.points)

    def to_dict(self):
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "kind": self.kind,
            "points": [p.to_dict() for p in self.points],
            "label": self.label,
            "color": self.color,
        }


Shape = Union[BoundingBox, Polygon]


@dataclass
class EditFields:
    """Values shown in the edit menu's label and color inputs."""

    label: str = ""
    color: str = "#FF0000"


@dataclass
class ImageInfo:
    """What the session knows about the loaded image."""

    path: Optional[str] = None
    width: int = 0
    height: int = 0


# Interaction states


@dataclass
class Idle:
    """Nothing selected, nothing being drawn."""

    name = "idle"


@dataclass
class DrawingBox:
    """Pointer is down and a draft box follows it."""

    draft: BoundingBox

    name = "drawing_box"


@dataclass
class DrawingPolygon:
    """Polygon mode: each click adds a point to the draft."""

    points: List[Point] = field(default_factory=list)
    cursor: Optional[Point] = None

    name = "drawing_polygon"

    @property
    def first_point(self) -> Optional[Point]:
        return self.points[0] if self.points else None


@dataclass
class Selected:
    """A persisted shape is selected; the edit menu may be open."""

    shape_id: str
    menu_open: bool = True
    menu_position: Point = field(default_factory=lambda: Point(0, 0))
    index: int = 0

    name = "selected"


InteractionState = Union[Idle, DrawingBox, DrawingPolygon, Selected]
