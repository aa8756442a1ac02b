"""
Core annotation module - UI-agnostic annotation logic.

This module provides the data model, the interaction state machine and
the exporter of the box/polygon editor. It can be driven by any UI
framework (Tkinter, Qt, Web, etc).
"""

from .session import AnnotationSession
from .events import AnnotationEvent, EventType, EventEmitter
from .state import (
    BoundingBox,
    Polygon,
    Idle,
    DrawingBox,
    DrawingPolygon,
    Selected,
    EditFields,
    ImageInfo,
)
from .geometry import Point
from .registry import ClassRegistry
from .store import ShapeStore
from .navigation import NavigationIndex
from .export import EXPORT_FILENAME, EXPORT_MIME_TYPE, export_voc_xml, parse_voc_xml

__all__ = [
    "AnnotationSession",
    "AnnotationEvent",
    "EventType",
    "EventEmitter",
    "BoundingBox",
    "Polygon",
    "Idle",
    "DrawingBox",
    "DrawingPolygon",
    "Selected",
    "EditFields",
    "ImageInfo",
    "Point",
    "ClassRegistry",
    "ShapeStore",
    "NavigationIndex",
    "EXPORT_FILENAME",
    "EXPORT_MIME_TYPE",
    "export_voc_xml",
    "parse_voc_xml",
]
