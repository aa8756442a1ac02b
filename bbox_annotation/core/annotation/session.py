"""
Annotation session management.

Core logic for turning pointer and keyboard input into boxes and
polygons. UI-agnostic - can be used with any interface (GUI, Web, CLI).
"""

import logging
from gettext import gettext as _
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from bbox_annotation.utils.env import load_config

from .events import AnnotationEvent, EventEmitter, EventType
from .export import export_voc_xml, write_voc_xml
from .geometry import (
    Point,
    transform_points,
    translate_points,
    within_radius,
)
from .navigation import NavigationIndex
from .registry import ClassRegistry
from .state import (
    BoundingBox,
    DrawingBox,
    DrawingPolygon,
    EditFields,
    Idle,
    ImageInfo,
    InteractionState,
    Polygon,
    Selected,
    Shape,
)
from .store import ShapeStore
from .utils import validate_color, validate_image

logger = logging.getLogger(__name__)

DELETE_KEY = "Delete"


class AnnotationSession:
    """
    Interaction state machine of the annotation editor.

    This class handles:
    - Box drawing by drag (pointer down, move, up)
    - Polygon drawing by discrete clicks, closed near the first point
    - Selection, the edit menu and next/previous navigation
    - Moving, transforming and deleting shapes
    - Label/color edits through the class registry
    - Export of the current image's shapes

    Every input runs to completion before the next one. Inputs that
    do not apply to the current state are ignored.
    """

    def __init__(self, cfg=None, registry: Optional[ClassRegistry] = None, seed=None):
        """
        Initialize annotation session.

        Args:
            cfg: Configuration tree, defaults to ``load_config()``
            registry: Class registry to share, a new one if None
            seed: Seed for random label colors of a new registry
        """
        self.cfg = cfg if cfg is not None else load_config()
        drawing = self.cfg.drawing

        self.closing_radius = drawing.closing_radius
        self.registry = registry if registry is not None else ClassRegistry(seed=seed)
        self.store = ShapeStore(
            self.registry,
            min_box_size=drawing.min_box_size,
            min_polygon_points=drawing.min_polygon_points,
        )
        self.navigation = NavigationIndex(self.store)

        # Current state
        self.state: InteractionState = Idle()
        self.fields = EditFields(label="", color=validate_color(drawing.default_color))
        self.image = ImageInfo()

        # Current image
        self._image: Optional[np.ndarray] = None

        # Event emitter for UI notifications
        self.events = EventEmitter()

    # State helpers

    @property
    def selected_id(self) -> Optional[str]:
        if isinstance(self.state, Selected):
            return self.state.shape_id
        return None

    @property
    def selected_shape(self) -> Optional[Shape]:
        shape_id = self.selected_id
        return self.store.find_shape(shape_id) if shape_id is not None else None

    @property
    def menu_open(self) -> bool:
        return isinstance(self.state, Selected) and self.state.menu_open

    @property
    def menu_position(self) -> Optional[Point]:
        if isinstance(self.state, Selected):
            return self.state.menu_position
        return None

    @property
    def is_drawing_polygon(self) -> bool:
        return isinstance(self.state, DrawingPolygon)

    @property
    def draft_box(self) -> Optional[BoundingBox]:
        if isinstance(self.state, DrawingBox):
            return self.state.draft
        return None

    @property
    def draft_points(self) -> List[Point]:
        if isinstance(self.state, DrawingPolygon):
            return list(self.state.points)
        return []

    def _emit(self, event_type: EventType, **data):
        self.events.emit(AnnotationEvent(event_type, data))

    def _transition(self, new_state: InteractionState):
        old_state = self.state
        old_selected = self.selected_id
        old_menu = (self.menu_open, self.menu_position)
        self.state = new_state

        if old_state.name != new_state.name:
            logger.debug(f"State {old_state.name} -> {new_state.name}")
            self._emit(EventType.STATE_CHANGED, previous=old_state.name, current=new_state.name)

        if old_selected != self.selected_id:
            self._emit(EventType.SELECTION_CHANGED, shape_id=self.selected_id)

        if old_menu != (self.menu_open, self.menu_position):
            self._emit(
                EventType.MENU_CHANGED,
                visible=self.menu_open,
                position=self.menu_position,
            )

    def _select(self, shape: Shape, menu_position: Point, menu_open: bool = True):
        self.fields.label = shape.label
        self.fields.color = shape.color
        self._transition(
            Selected(
                shape_id=shape.id,
                menu_open=menu_open,
                menu_position=menu_position,
                index=self.navigation.index_of(shape.id),
            )
        )

    def _commit(self, shape: Shape, menu_position: Point):
        self.fields.label = ""
        self._emit(EventType.SHAPE_ADDED, shape=shape)
        self._transition(
            Selected(
                shape_id=shape.id,
                menu_open=True,
                menu_position=menu_position,
                index=self.navigation.index_of(shape.id),
            )
        )

    # Image

    def load_image(
        self,
        image: Optional[np.ndarray] = None,
        image_path: Optional[str] = None,
        size: Optional[Tuple[int, int]] = None,
    ):
        """
        Load a new image for annotation. All shapes are dropped.

        Args:
            image: RGB image as numpy array, None if decoded elsewhere
            image_path: Image reference written to the export
            size: (width, height) when no array is given
        """
        width, height = size if size is not None else (0, 0)
        if image is not None:
            validate_image(image)
            height, width = image.shape[:2]

        was_drawing_polygon = self.is_drawing_polygon

        self._image = image
        self.image = ImageInfo(path=image_path, width=int(width), height=int(height))
        self.store.clear()
        self._transition(Idle())
        if was_drawing_polygon:
            self._emit(EventType.POLYGON_MODE_CHANGED, active=False)

        self._emit(
            EventType.IMAGE_LOADED,
            path=image_path,
            width=self.image.width,
            height=self.image.height,
        )

    # Pointer input

    def pointer_down(self, x: float, y: float, on_image: bool = True):
        """
        Handle a pointer press.

        Args:
            x: X coordinate in image space
            y: Y coordinate in image space
            on_image: False when the press landed on an existing shape
        """
        point = Point(x, y)

        if isinstance(self.state, DrawingPolygon):
            first = self.state.first_point
            if first is not None and within_radius(point, first, self.closing_radius):
                self.finish_polygon()
                return
            self.state.points.append(point)
            self._emit(EventType.DRAFT_UPDATED, points=list(self.state.points))
            return

        if isinstance(self.state, DrawingBox) or not on_image:
            return

        draft = BoundingBox(x=x, y=y, width=0, height=0, label="", color=self.fields.color)
        self._transition(DrawingBox(draft=draft))
        self._emit(EventType.DRAFT_UPDATED, draft=draft)

    def pointer_move(self, x: float, y: float):
        """Handle pointer movement."""
        if isinstance(self.state, DrawingBox):
            draft = self.state.draft
            draft.width = x - draft.x
            draft.height = y - draft.y
            self._emit(EventType.DRAFT_UPDATED, draft=draft)
        elif isinstance(self.state, DrawingPolygon) and self.state.points:
            self.state.cursor = Point(x, y)
            self._emit(
                EventType.DRAFT_UPDATED,
                points=list(self.state.points),
                cursor=self.state.cursor,
            )

    def pointer_up(self, x: float, y: float) -> Optional[BoundingBox]:
        """
        Handle a pointer release, committing the draft box if large enough.

        Returns:
            The persisted box, or None
        """
        if not isinstance(self.state, DrawingBox):
            return None

        draft = self.state.draft
        draft.width = x - draft.x
        draft.height = y - draft.y

        box = self.store.add_box(draft)
        if box is None:
            self._transition(Idle())
            self._emit(EventType.DRAFT_DISCARDED, draft=draft)
            return None

        self._commit(box, Point(x, y))
        return box

    # Polygon mode

    def start_polygon(self) -> bool:
        """Enter polygon drawing mode. Clears any selection."""
        if isinstance(self.state, (DrawingPolygon, DrawingBox)):
            return False

        self._transition(DrawingPolygon())
        self._emit(EventType.POLYGON_MODE_CHANGED, active=True)
        return True

    def stop_polygon(self) -> bool:
        """Leave polygon mode, discarding all draft points."""
        if not isinstance(self.state, DrawingPolygon):
            return False

        points = list(self.state.points)
        self._transition(Idle())
        if points:
            self._emit(EventType.DRAFT_DISCARDED, points=points)
        self._emit(EventType.POLYGON_MODE_CHANGED, active=False)
        return True

    def toggle_polygon(self) -> bool:
        """
        Start or cancel polygon drawing.

        Returns:
            True if polygon mode is active afterwards
        """
        if self.is_drawing_polygon:
            self.stop_polygon()
        else:
            self.start_polygon()
        return self.is_drawing_polygon

    def finish_polygon(self) -> Optional[Polygon]:
        """
        Close the draft polygon and leave polygon mode.

        Returns:
            The persisted polygon, or None if it had too few points
        """
        if not isinstance(self.state, DrawingPolygon):
            return None

        points = list(self.state.points)
        polygon = self.store.add_polygon(points, label="", color=self.fields.color)
        self._emit(EventType.POLYGON_MODE_CHANGED, active=False)

        if polygon is None:
            self._transition(Idle())
            self._emit(EventType.DRAFT_DISCARDED, points=points)
            return None

        self._commit(polygon, points[0])
        return polygon

    def preview_points(self) -> List[Point]:
        """Draft points followed by the pointer position, for live feedback."""
        if not isinstance(self.state, DrawingPolygon):
            return []
        points = list(self.state.points)
        if points and self.state.cursor is not None:
            points.append(self.state.cursor)
        return points

    def is_near_first_point(self) -> bool:
        """True if a click at the pointer position would close the polygon."""
        if not isinstance(self.state, DrawingPolygon):
            return False
        first, cursor = self.state.first_point, self.state.cursor
        if first is None or cursor is None:
            return False
        return within_radius(cursor, first, self.closing_radius)

    # Shape interaction

    def click_shape(self, shape_id: str, x: float, y: float) -> Optional[Shape]:
        """
        Select a shape clicked on the canvas and open the menu there.

        Ignored while drawing.
        """
        if isinstance(self.state, (DrawingPolygon, DrawingBox)):
            return None

        shape = self.store.find_shape(shape_id)
        if shape is None:
            logger.debug(f"click_shape: no shape with id {shape_id}")
            return None

        self._select(shape, Point(x, y))
        return shape

    def drag_end(self, shape_id: str, x: float, y: float) -> Optional[Shape]:
        """
        Apply the node position reported at the end of a shape drag.

        For a box the position is its new top-left corner. For a polygon
        it is the node offset: every point moves by it and a
        ``HANDLE_RESET`` event asks the canvas to zero the offset.
        """
        if isinstance(self.state, (DrawingPolygon, DrawingBox)):
            return None

        shape = self.store.find_shape(shape_id)
        if shape is None:
            return None

        if isinstance(shape, BoundingBox):
            shape = self.store.update_shape(shape_id, x=x, y=y)
            self._emit(EventType.SHAPE_UPDATED, shape=shape)
            return shape

        shape = self.store.update_shape(
            shape_id, points=translate_points(shape.points, x, y)
        )
        self._emit(EventType.SHAPE_UPDATED, shape=shape)
        self._emit(EventType.HANDLE_RESET, shape_id=shape_id)
        return shape

    def transform_end(
        self,
        shape_id: str,
        scale_x: float = 1.0,
        scale_y: float = 1.0,
        rotation: float = 0.0,
        x: Optional[float] = None,
        y: Optional[float] = None,
    ) -> Optional[Shape]:
        """
        Bake a transform handle's scale, rotation and position into a shape.

        Boxes stay axis-aligned: only scale and position are applied and
        the rotation is dropped when the handle resets.

        Args:
            shape_id: Transformed shape
            scale_x: Horizontal scale of the handle
            scale_y: Vertical scale of the handle
            rotation: Rotation of the handle in degrees
            x: Handle position (box origin, or polygon offset); None keeps it
            y: Handle position (box origin, or polygon offset); None keeps it

        Returns:
            The updated shape, or None if not found
        """
        if isinstance(self.state, (DrawingPolygon, DrawingBox)):
            return None

        shape = self.store.find_shape(shape_id)
        if shape is None:
            return None

        if isinstance(shape, BoundingBox):
            shape = self.store.update_shape(
                shape_id,
                x=shape.x if x is None else x,
                y=shape.y if y is None else y,
                width=shape.width * scale_x,
                height=shape.height * scale_y,
            )
        else:
            shape = self.store.update_shape(
                shape_id,
                points=transform_points(
                    shape.points, scale_x, scale_y, rotation, x or 0.0, y or 0.0
                ),
            )

        self._emit(EventType.SHAPE_UPDATED, shape=shape)
        self._emit(EventType.HANDLE_RESET, shape_id=shape_id)
        return shape

    def drag_vertex(self, polygon_id: str, index: int, x: float, y: float) -> Optional[Polygon]:
        """Move a single polygon vertex."""
        polygon = self.store.move_vertex(polygon_id, index, Point(x, y))
        if polygon is not None:
            self._emit(EventType.SHAPE_UPDATED, shape=polygon)
        return polygon

    def key_down(self, key: str) -> bool:
        """
        Handle a key press.

        Returns:
            True if the key was consumed
        """
        if key == DELETE_KEY and isinstance(self.state, Selected):
            self.delete_selected()
            return True
        return False

    def delete_shape(self, shape_id: str) -> Optional[Shape]:
        """Delete a shape; the selection is cleared if it pointed at it."""
        shape = self.store.delete_shape(shape_id)
        if shape is None:
            return None

        if self.selected_id == shape_id:
            self._transition(Idle())
        self._emit(EventType.SHAPE_DELETED, shape=shape)
        return shape

    def delete_selected(self) -> Optional[Shape]:
        """Delete the selected shape and close the menu."""
        shape_id = self.selected_id
        if shape_id is None:
            return None
        return self.delete_shape(shape_id)

    def clear_selection(self):
        if isinstance(self.state, Selected):
            self._transition(Idle())

    def close_menu(self):
        if self.menu_open:
            self._transition(
                Selected(
                    shape_id=self.state.shape_id,
                    menu_open=False,
                    menu_position=self.state.menu_position,
                    index=self.state.index,
                )
            )

    # Edit menu

    def change_label(self, label: str) -> Optional[Shape]:
        """
        Set the label field; the selected shape takes the label and its color.

        Returns:
            The updated shape, or None if nothing is selected
        """
        self.fields.label = label
        shape_id = self.selected_id

        if shape_id is None:
            self.fields.color = self.registry.color_for(label)
            return None

        shape = self.store.update_shape(shape_id, label=label)
        self.fields.color = shape.color
        self._emit(EventType.SHAPE_UPDATED, shape=shape)
        return shape

    def change_color(self, color: str) -> List[Shape]:
        """
        Set the color field and recolor every shape with the current label.

        Only available while the edit menu is open.

        Returns:
            The recolored shapes
        """
        if not self.menu_open:
            return []

        try:
            color = validate_color(color)
        except ValueError:
            logger.warning(_("Ignoring invalid color {color!r}").format(color=color))
            return []

        self.fields.color = color
        updated = self.store.set_label_color(self.fields.label, color)
        for shape in updated:
            self._emit(EventType.SHAPE_UPDATED, shape=shape)
        return updated

    def add_class(self) -> bool:
        """
        Register the label field as a reusable class and close the menu.

        Returns:
            True if a new class was added
        """
        label = self.fields.label.strip()
        added = self.registry.add_class(label, self.fields.color)
        if added:
            self.store.set_label_color(label, self.fields.color)
            self._emit(EventType.CLASS_ADDED, label=label, color=self.fields.color)

        self.close_menu()
        return added

    def select_class(self, label: str) -> Optional[Shape]:
        """Apply a reusable class to the selected shape and close the menu."""
        self.fields.label = label
        self.fields.color = self.registry.color_for(label)

        shape = None
        shape_id = self.selected_id
        if shape_id is not None:
            shape = self.store.update_shape(shape_id, label=label)
            self._emit(EventType.SHAPE_UPDATED, shape=shape)

        self.close_menu()
        return shape

    def known_classes(self) -> Tuple[str, ...]:
        return self.registry.known_labels()

    # Navigation

    def _navigate(self, offset: int) -> Optional[Shape]:
        shape_id = self.selected_id
        if shape_id is None:
            return None

        target = self.navigation.step(shape_id, offset)
        if target is None or target.id == shape_id:
            return target

        self._select(target, target.anchor, menu_open=True)
        return target

    def next_shape(self) -> Optional[Shape]:
        """Select the next shape in box-then-polygon order (no wraparound)."""
        return self._navigate(1)

    def previous_shape(self) -> Optional[Shape]:
        """Select the previous shape in box-then-polygon order (no wraparound)."""
        return self._navigate(-1)

    # Export

    def export(self) -> str:
        """Serialize all shapes of the current image to annotation XML."""
        export_cfg = self.cfg.export
        xml = export_voc_xml(
            self.store,
            image_ref=self.image.path,
            image_size=(self.image.width, self.image.height),
            indent=export_cfg.indent,
            folder=export_cfg.folder,
            database=export_cfg.database,
            depth=export_cfg.depth,
        )
        self._emit(
            EventType.ANNOTATIONS_EXPORTED,
            num_shapes=len(self.store),
            filename=export_cfg.filename,
            mime_type=export_cfg.mime_type,
        )
        return xml

    def export_to_file(self, directory) -> Path:
        """Write the export as ``annotations.xml`` into ``directory``."""
        path = write_voc_xml(self.export(), directory, self.cfg.export.filename)
        logger.info(_("Annotations saved to {path}").format(path=path))
        return path

    def get_visualization_data(self) -> Dict[str, Any]:
        """
        Get data needed for visualization.

        Returns:
            Dictionary with visualization data
        """
        return {
            "image": self._image,
            "state": self.state.name,
            "boxes": self.store.boxes,
            "polygons": self.store.polygons,
            "draft_box": self.draft_box,
            "preview_points": self.preview_points(),
            "near_first_point": self.is_near_first_point(),
            "selected_id": self.selected_id,
            "menu_open": self.menu_open,
            "menu_position": self.menu_position,
            "label": self.fields.label,
            "color": self.fields.color,
            "classes": self.known_classes(),
        }
