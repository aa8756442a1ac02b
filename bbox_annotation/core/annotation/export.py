"""
Pascal VOC style XML export of a shape store.

Boxes become ``object/bndbox`` entries. Polygons additionally carry
their vertices as ``object/polygon/x1, y1, x2, y2 ...`` and a derived
bounding box. Coordinates are rounded only here, at serialization.
"""

import logging
import math
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional, Tuple
from xml.dom import minidom

from .geometry import Point
from .state import Polygon
from .store import ShapeStore

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "annotations.xml"
EXPORT_MIME_TYPE = "text/xml"


def round_coordinate(value: float) -> int:
    """Nearest integer, halves rounded up."""
    return int(math.floor(value + 0.5))


def _text(parent: ET.Element, tag: str, value) -> ET.Element:
    elem = ET.SubElement(parent, tag)
    elem.text = str(value)
    return elem


def _add_bndbox(parent: ET.Element, xmin, ymin, xmax, ymax):
    bndbox = ET.SubElement(parent, "bndbox")
    _text(bndbox, "xmin", round_coordinate(xmin))
    _text(bndbox, "ymin", round_coordinate(ymin))
    _text(bndbox, "xmax", round_coordinate(xmax))
    _text(bndbox, "ymax", round_coordinate(ymax))


def _add_object(parent: ET.Element, shape) -> ET.Element:
    obj = ET.SubElement(parent, "object")
    _text(obj, "name", shape.label)
    _text(obj, "pose", "Unspecified")
    _text(obj, "truncated", 0)
    _text(obj, "difficult", 0)
    _text(obj, "occluded", 0)

    if isinstance(shape, Polygon):
        polygon = ET.SubElement(obj, "polygon")
        for i, point in enumerate(shape.points, start=1):
            _text(polygon, f"x{i}", round_coordinate(point.x))
            _text(polygon, f"y{i}", round_coordinate(point.y))

    _add_bndbox(obj, *shape.extents())
    return obj


def build_voc_tree(
    store: ShapeStore,
    image_ref: Optional[str] = None,
    image_size: Optional[Tuple[int, int]] = None,
    folder: str = "images",
    database: str = "Unknown",
    depth: int = 3,
) -> ET.Element:
    """
    Build the ``annotation`` element for a store snapshot.

    Args:
        store: Shapes to export
        image_ref: Image file name or URL, used for filename and path
        image_size: (width, height) of the decoded image, None if unknown
        folder: Value of the folder element
        database: Value of source/database
        depth: Value of size/depth

    Returns:
        Root element
    """
    width, height = image_size if image_size is not None else (0, 0)
    ref = image_ref or ""

    root = ET.Element("annotation")
    _text(root, "folder", folder)
    _text(root, "filename", ref)
    _text(root, "path", ref)

    source = ET.SubElement(root, "source")
    _text(source, "database", database)

    size = ET.SubElement(root, "size")
    _text(size, "width", int(width or 0))
    _text(size, "height", int(height or 0))
    _text(size, "depth", depth)

    _text(root, "segmented", 0)

    for shape in store.shapes():
        _add_object(root, shape)

    return root


def export_voc_xml(
    store: ShapeStore,
    image_ref: Optional[str] = None,
    image_size: Optional[Tuple[int, int]] = None,
    indent: str = "  ",
    **kwargs,
) -> str:
    """
    Serialize a store to a pretty-printed XML string.

    Extra keyword arguments are passed to ``build_voc_tree``.
    """
    root = build_voc_tree(store, image_ref, image_size, **kwargs)
    rough_string = ET.tostring(root, "utf-8")
    reparsed = minidom.parseString(rough_string)
    xml = reparsed.toprettyxml(indent=indent)

    logger.debug(f"Exported {len(store)} shape(s) for {image_ref!r}")
    return xml


def write_voc_xml(xml: str, directory, filename: str = EXPORT_FILENAME) -> Path:
    """Write an exported document as UTF-8 and return its path."""
    path = Path(directory) / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(xml, encoding="utf-8")
    return path


def _int_child(elem: ET.Element, tag: str) -> int:
    child = elem.find(tag)
    if child is None or child.text is None:
        raise ValueError(f"Missing <{tag}> in <{elem.tag}>")
    return int(child.text)


def parse_voc_xml(xml: str) -> dict:
    """
    Read an exported document back into plain data.

    Returns:
        Dictionary with ``filename``, ``path``, ``size`` (width, height,
        depth) and ``objects``; each object has ``name``, ``bndbox``
        (xmin, ymin, xmax, ymax) and ``points`` (empty for boxes)

    Raises:
        ValueError: If the document is not valid annotation XML
    """
    try:
        root = ET.fromstring(xml.strip())
    except ET.ParseError as e:
        raise ValueError(f"Invalid annotation XML: {e}") from e

    if root.tag != "annotation":
        raise ValueError(f"Expected <annotation> root, got <{root.tag}>")

    size = root.find("size")
    if size is None:
        raise ValueError("Missing <size> in <annotation>")

    objects = []
    for obj in root.findall("object"):
        bndbox = obj.find("bndbox")
        if bndbox is None:
            raise ValueError("Missing <bndbox> in <object>")

        points = []
        polygon = obj.find("polygon")
        if polygon is not None:
            for i in range(1, len(polygon) // 2 + 1):
                points.append(
                    Point(_int_child(polygon, f"x{i}"), _int_child(polygon, f"y{i}"))
                )

        objects.append(
            {
                "name": obj.findtext("name") or "",
                "bndbox": tuple(
                    _int_child(bndbox, tag) for tag in ("xmin", "ymin", "xmax", "ymax")
                ),
                "points": points,
            }
        )

    return {
        "filename": root.findtext("filename") or "",
        "path": root.findtext("path") or "",
        "size": tuple(_int_child(size, tag) for tag in ("width", "height", "depth")),
        "objects": objects,
    }
