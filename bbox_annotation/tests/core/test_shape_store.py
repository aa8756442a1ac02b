"""
Tests for ShapeStore, ClassRegistry and NavigationIndex.
"""

import re

import pytest

from bbox_annotation.core.annotation import (
    BoundingBox,
    ClassRegistry,
    NavigationIndex,
    Point,
    ShapeStore,
)

TRIANGLE = [Point(0, 0), Point(50, 0), Point(25, 50)]


@pytest.fixture
def registry():
    return ClassRegistry(seed=7)


@pytest.fixture
def store(registry):
    return ShapeStore(registry)


class TestClassRegistry:
    """Test suite for label colors and reusable classes."""

    def test_color_for_is_idempotent(self, registry):
        assert registry.color_for("cat") == registry.color_for("cat")

    def test_color_format(self, registry):
        assert re.match(r"^#[0-9A-F]{6}$", registry.color_for("cat"))

    def test_same_seed_same_colors(self):
        a = ClassRegistry(seed=3)
        b = ClassRegistry(seed=3)
        assert a.color_for("x") == b.color_for("x")

    def test_set_color_overrides(self, registry):
        registry.color_for("cat")
        registry.set_color("cat", "#abcdef")

        assert registry.color_for("cat") == "#ABCDEF"

    def test_set_color_rejects_invalid(self, registry):
        with pytest.raises(ValueError):
            registry.set_color("cat", "blue")

    def test_known_labels_only_from_add_class(self, registry):
        registry.color_for("ad-hoc")
        registry.add_class("car")
        registry.add_class("bus")

        assert registry.known_labels() == ("car", "bus")
        assert not registry.is_known("ad-hoc")
        assert registry.has_color("ad-hoc")

    def test_add_class_records_color(self, registry):
        assert registry.add_class("car", "#010203")
        assert registry.color_for("car") == "#010203"

    def test_add_class_rejects_duplicates_and_empty(self, registry):
        assert registry.add_class("car")
        assert not registry.add_class("car")
        assert not registry.add_class(" car ")
        assert not registry.add_class("")
        assert registry.known_labels() == ("car",)


class TestShapeStore:
    """Test suite for ShapeStore."""

    def test_add_box_normalizes(self, store):
        box = store.add_box(BoundingBox(x=100, y=80, width=-90, height=-70))

        assert (box.x, box.y, box.width, box.height) == (10, 10, 90, 70)
        assert store.boxes == [box]

    def test_add_box_gate(self, store):
        assert store.add_box(BoundingBox(x=0, y=0, width=2, height=3)) is None
        assert len(store) == 0

    def test_add_polygon_gate(self, store):
        assert store.add_polygon(TRIANGLE[:2]) is None
        polygon = store.add_polygon(TRIANGLE, label="roof", color="#00FF00")

        assert polygon.points == TRIANGLE
        assert polygon.label == "roof"
        assert store.polygons == [polygon]

    def test_find_shape(self, store):
        box = store.add_box(BoundingBox(x=0, y=0, width=10, height=10))
        polygon = store.add_polygon(TRIANGLE)

        assert store.find_shape(box.id) is box
        assert store.find_shape(polygon.id) is polygon
        assert store.find_shape("missing") is None
        assert box.id in store

    def test_ids_are_unique(self, store):
        a = store.add_box(BoundingBox(x=0, y=0, width=10, height=10))
        b = store.add_box(BoundingBox(x=0, y=0, width=10, height=10))
        assert a.id != b.id

    def test_update_box_geometry(self, store):
        box = store.add_box(BoundingBox(x=0, y=0, width=10, height=10))

        store.update_shape(box.id, x=5, y=6, width=-4)

        assert (box.x, box.y, box.width, box.height) == (1, 6, 4, 10)

    def test_update_label_takes_registry_color(self, store, registry):
        box = store.add_box(BoundingBox(x=0, y=0, width=10, height=10))

        store.update_shape(box.id, label="cat")

        assert box.color == registry.color_for("cat")

    def test_update_color_propagates(self, store):
        a = store.add_box(BoundingBox(x=0, y=0, width=10, height=10, label="cat"))
        b = store.add_polygon(TRIANGLE, label="cat")
        c = store.add_box(BoundingBox(x=0, y=0, width=10, height=10, label="dog"))
        dog_color = c.color

        store.update_shape(a.id, color="#112233")

        assert a.color == b.color == "#112233"
        assert c.color == dog_color

    def test_update_points(self, store):
        polygon = store.add_polygon(TRIANGLE)
        square = [Point(0, 0), Point(1, 0), Point(1, 1), Point(0, 1)]

        store.update_shape(polygon.id, points=square)

        assert polygon.points == square

    def test_update_points_below_gate_is_rejected(self, store):
        polygon = store.add_polygon(TRIANGLE)

        assert store.update_shape(polygon.id, points=TRIANGLE[:2], label="x") is None
        assert polygon.points == TRIANGLE
        assert polygon.label == ""

    def test_update_unknown_field(self, store):
        box = store.add_box(BoundingBox(x=0, y=0, width=10, height=10))

        with pytest.raises(ValueError, match="points"):
            store.update_shape(box.id, points=TRIANGLE)

    def test_update_missing_is_noop(self, store):
        assert store.update_shape("missing", label="cat") is None

    def test_move_vertex(self, store):
        polygon = store.add_polygon(TRIANGLE)

        store.move_vertex(polygon.id, 2, Point(30, 60))

        assert polygon.points == [Point(0, 0), Point(50, 0), Point(30, 60)]

    def test_delete_shape(self, store):
        box = store.add_box(BoundingBox(x=0, y=0, width=10, height=10))
        polygon = store.add_polygon(TRIANGLE)

        assert store.delete_shape(polygon.id) is polygon
        assert store.shapes() == [box]
        assert store.delete_shape(polygon.id) is None

    def test_clear_keeps_registry(self, store, registry):
        store.add_box(BoundingBox(x=0, y=0, width=10, height=10))
        registry.add_class("car")

        store.clear()

        assert len(store) == 0
        assert registry.known_labels() == ("car",)

    def test_to_dict(self, store):
        store.add_box(BoundingBox(x=0, y=0, width=10, height=10))
        store.add_polygon(TRIANGLE)

        data = store.to_dict()

        assert len(data["boxes"]) == 1
        assert data["polygons"][0]["points"][1] == {"x": 50, "y": 0}


class TestNavigationIndex:
    """Test suite for combined-order traversal."""

    def test_combined_order(self, store):
        polygon = store.add_polygon(TRIANGLE)
        box = store.add_box(BoundingBox(x=0, y=0, width=10, height=10))

        nav = NavigationIndex(store)

        assert nav.order() == [box, polygon]
        assert nav.index_of(polygon.id) == 1
        assert nav.index_of("missing") is None
        assert nav.shape_at(0) is box
        assert nav.shape_at(5) is None

    def test_step_is_clamped(self, store):
        a = store.add_box(BoundingBox(x=0, y=0, width=10, height=10))
        b = store.add_box(BoundingBox(x=0, y=0, width=10, height=10))
        nav = NavigationIndex(store)

        assert nav.previous(a.id) is a
        assert nav.next(a.id) is b
        assert nav.next(b.id) is b
        assert nav.step(a.id, 10) is b

    def test_order_follows_deletions(self, store):
        a = store.add_box(BoundingBox(x=0, y=0, width=10, height=10))
        b = store.add_box(BoundingBox(x=0, y=0, width=10, height=10))
        c = store.add_box(BoundingBox(x=0, y=0, width=10, height=10))
        nav = NavigationIndex(store)

        store.delete_shape(b.id)

        assert nav.next(a.id) is c
        assert len(nav) == 2
