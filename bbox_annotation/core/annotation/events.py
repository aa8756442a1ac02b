"""
Event system for annotation workflow.

Provides a decoupled way for the annotation core to notify UI components
about state changes without depending on specific UI frameworks.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of events that can occur during annotation."""

    # Image events
    IMAGE_LOADED = "image_loaded"

    # Draft events
    DRAFT_UPDATED = "draft_updated"
    DRAFT_DISCARDED = "draft_discarded"
    POLYGON_MODE_CHANGED = "polygon_mode_changed"

    # Shape events
    SHAPE_ADDED = "shape_added"
    SHAPE_UPDATED = "shape_updated"
    SHAPE_DELETED = "shape_deleted"
    HANDLE_RESET = "handle_reset"

    # Selection and menu events
    SELECTION_CHANGED = "selection_changed"
    MENU_CHANGED = "menu_changed"

    # Class events
    CLASS_ADDED = "class_added"

    # Session events
    ANNOTATIONS_EXPORTED = "annotations_exported"
    STATE_CHANGED = "state_changed"


@dataclass
class AnnotationEvent:
    """Event that occurs during annotation."""

    event_type: EventType
    data: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if self.data is None:
            self.data = {}


class EventEmitter:
    """
    Simple event emitter for pub/sub pattern.

    Allows components to subscribe to events without tight coupling.
    """

    def __init__(self):
        self._listeners: Dict[EventType, List[Callable]] = {}

    def on(self, event_type: EventType, callback: Callable[[AnnotationEvent], None]):
        """Subscribe to an event type."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        self._listeners[event_type].append(callback)

    def off(self, event_type: EventType, callback: Callable[[AnnotationEvent], None]):
        """Unsubscribe from an event type."""
        if event_type in self._listeners:
            self._listeners[event_type].remove(callback)

    def emit(self, event: AnnotationEvent):
        """Emit an event to all subscribers."""
        if event.event_type in self._listeners:
            for callback in list(self._listeners[event.event_type]):
                try:
                    callback(event)
                except Exception:
                    # Log but don't crash on listener errors
                    logger.exception(f"Error in listener for {event.event_type.value}")

    def clear(self):
        """Clear all event listeners."""
        self._listeners.clear()
