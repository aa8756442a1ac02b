"""
Canvas adapter for annotation session.

Bridges the AnnotationSession with a canvas-style GUI toolkit.
"""

from typing import Callable, Optional

import cv2
import numpy as np

from ..core.annotation import AnnotationEvent, AnnotationSession, EventType
from ..core.annotation.utils import (
    draw_boxes_on_image,
    draw_polygons_on_image,
    draw_polyline_on_image,
    read_image,
)

IMAGE_TARGET = "image"


class CanvasAdapter:
    """
    Adapter connecting AnnotationSession to a canvas widget.

    Provides a compatibility layer that:
    - Translates raw canvas events to session calls
    - Translates session events to GUI callbacks
    - Handles visualization rendering
    """

    def __init__(
        self,
        session: AnnotationSession,
        update_image_callback: Optional[Callable] = None,
        reset_handle_callback: Optional[Callable[[str], None]] = None,
        line_thickness: int = 2,
        vertex_radius: int = 5,
    ):
        """
        Initialize adapter.

        Args:
            session: Core annotation session
            update_image_callback: Callback to redraw the canvas
            reset_handle_callback: Called with a shape id whose drag or
                transform handle must return to identity
            line_thickness: Outline thickness for shapes
            vertex_radius: Radius of polygon vertex handles
        """
        self.session = session
        self.update_image_callback = update_image_callback
        self.reset_handle_callback = reset_handle_callback
        self.line_thickness = line_thickness
        self.vertex_radius = vertex_radius

        # Subscribe to session events
        self._setup_event_handlers()

    def _setup_event_handlers(self):
        """Setup event handlers for session events."""
        for event_type in (
            EventType.IMAGE_LOADED,
            EventType.DRAFT_UPDATED,
            EventType.DRAFT_DISCARDED,
            EventType.SHAPE_ADDED,
            EventType.SHAPE_UPDATED,
            EventType.SHAPE_DELETED,
            EventType.SELECTION_CHANGED,
            EventType.MENU_CHANGED,
        ):
            self.session.events.on(event_type, self._on_redraw)

        self.session.events.on(EventType.HANDLE_RESET, self._on_handle_reset)

    def _on_redraw(self, event: AnnotationEvent):
        """Handle any change that alters what is drawn."""
        if self.update_image_callback:
            self.update_image_callback()

    def _on_handle_reset(self, event: AnnotationEvent):
        """Handle a baked drag/transform."""
        if self.reset_handle_callback:
            self.reset_handle_callback(event.data["shape_id"])

    # Raw canvas events

    def open_image(self, path):
        """Decode an image file and load it into the session."""
        self.session.load_image(read_image(path), str(path))

    def on_mouse_down(self, x: float, y: float, target: str = IMAGE_TARGET):
        self.session.pointer_down(x, y, on_image=target == IMAGE_TARGET)

    def on_mouse_move(self, x: float, y: float):
        self.session.pointer_move(x, y)

    def on_mouse_up(self, x: float, y: float):
        self.session.pointer_up(x, y)

    def on_shape_click(self, shape_id: str, x: float, y: float):
        self.session.click_shape(shape_id, x, y)

    def on_shape_drag_end(self, shape_id: str, x: float, y: float):
        self.session.drag_end(shape_id, x, y)

    def on_vertex_drag(self, polygon_id: str, index: int, x: float, y: float):
        self.session.drag_vertex(polygon_id, index, x, y)

    def on_transform_end(self, shape_id: str, scale_x, scale_y, rotation, x, y):
        self.session.transform_end(shape_id, scale_x, scale_y, rotation, x, y)

    def on_key_down(self, key: str) -> bool:
        return self.session.key_down(key)

    def on_polygon_button(self) -> str:
        """
        Toggle polygon mode.

        Returns:
            Caption for the toggle button
        """
        active = self.session.toggle_polygon()
        return "Cancel Polygon" if active else "Draw Polygon"

    def get_visualization(self) -> Optional[np.ndarray]:
        """
        Get visualization for display.

        Returns:
            RGB visualization image, or None if no image is loaded
        """
        # Get visualization data from session
        viz_data = self.session.get_visualization_data()

        image = viz_data["image"]
        if image is None:
            return None

        vis = draw_boxes_on_image(
            image,
            viz_data["boxes"],
            thickness=self.line_thickness,
            selected_id=viz_data["selected_id"],
        )
        vis = draw_polygons_on_image(
            vis,
            viz_data["polygons"],
            thickness=self.line_thickness,
            vertex_radius=self.vertex_radius,
            selected_id=viz_data["selected_id"],
        )

        # Draft box, may have negative extents
        draft = viz_data["draft_box"]
        if draft is not None:
            vis = draw_boxes_on_image(vis, [draft], thickness=self.line_thickness)

        # Polygon preview line up to the pointer
        preview = viz_data["preview_points"]
        if preview:
            vis = draw_polyline_on_image(
                vis, preview, viz_data["color"], thickness=self.line_thickness
            )
            if viz_data["near_first_point"]:
                first = preview[0]
                cv2.circle(
                    vis,
                    (int(round(first.x)), int(round(first.y))),
                    self.vertex_radius + 2,
                    (255, 255, 255),
                    -1
                )

        return vis
