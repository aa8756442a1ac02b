"""
Tests for pure geometry and utility functions.

These tests validate individual pure functions that have no side effects.
"""

import math

import numpy as np
import pytest

from bbox_annotation.core.annotation.geometry import (
    Point,
    bounding_extents,
    distance,
    normalize_rect,
    passes_size_gate,
    rect_corners,
    transform_points,
    translate_points,
    within_radius,
)
from bbox_annotation.core.annotation.state import BoundingBox, Polygon
from bbox_annotation.core.annotation.utils import (
    compute_shape_statistics,
    draw_boxes_on_image,
    draw_polygons_on_image,
    generate_random_color,
    hex_to_rgb,
    validate_color,
    validate_image,
)


class TestGeometry:
    """Tests for point and rect math."""

    def test_distance(self):
        assert distance(Point(0, 0), Point(3, 4)) == 5

    def test_within_radius_is_strict(self):
        assert within_radius(Point(3, 4), Point(0, 0), 10)
        assert not within_radius(Point(10, 0), Point(0, 0), 10)

    def test_bounding_extents(self):
        points = [Point(0, 0), Point(50, 0), Point(25, 50)]
        assert bounding_extents(points) == (0, 0, 50, 50)

    def test_bounding_extents_empty(self):
        with pytest.raises(ValueError, match="empty"):
            bounding_extents([])

    def test_normalize_rect(self):
        assert normalize_rect(10, 10, 90, 70) == (10, 10, 90, 70)
        assert normalize_rect(100, 80, -90, -70) == (10, 10, 90, 70)
        assert normalize_rect(100, 10, -90, 70) == (10, 10, 90, 70)

    def test_passes_size_gate(self):
        assert not passes_size_gate(0, 0)
        assert not passes_size_gate(5, 5)
        assert not passes_size_gate(-5, 2)
        assert passes_size_gate(6, 0)
        assert passes_size_gate(0, -6)

    def test_rect_corners(self):
        assert rect_corners(0, 0, 2, 1) == [
            Point(0, 0),
            Point(2, 0),
            Point(2, 1),
            Point(0, 1),
        ]

    def test_translate_points(self):
        assert translate_points([Point(1, 2)], 3, -2) == [Point(4, 0)]

    def test_transform_identity(self):
        points = [Point(1.5, 2.5), Point(-3, 4)]
        assert transform_points(points) == points

    def test_transform_rotation(self):
        (result,) = transform_points([Point(1, 0)], rotation=90)
        assert result.x == pytest.approx(0, abs=1e-9)
        assert result.y == pytest.approx(1)

    def test_transform_matches_formula(self):
        sx, sy, angle, tx, ty = 1.5, 0.5, 30, 4, -2
        theta = math.radians(angle)
        (result,) = transform_points([Point(2, 3)], sx, sy, angle, tx, ty)

        assert result.x == pytest.approx(2 * sx * math.cos(theta) - 3 * sy * math.sin(theta) + tx)
        assert result.y == pytest.approx(2 * sx * math.sin(theta) + 3 * sy * math.cos(theta) + ty)

    def test_transform_empty(self):
        assert transform_points([], 2, 2) == []


class TestColors:
    """Tests for color helpers."""

    def test_random_color_format(self):
        rng = np.random.default_rng(0)
        for _ in range(20):
            color = generate_random_color(rng)
            assert len(color) == 7
            assert color.startswith("#")
            int(color[1:], 16)

    def test_random_color_is_seeded(self):
        a = generate_random_color(np.random.default_rng(42))
        b = generate_random_color(np.random.default_rng(42))
        assert a == b

    def test_validate_color(self):
        assert validate_color("#ff00aa") == "#FF00AA"
        assert validate_color("00ff00") == "#00FF00"

        with pytest.raises(ValueError):
            validate_color("#fff")
        with pytest.raises(ValueError):
            validate_color("red")
        with pytest.raises(ValueError):
            validate_color(None)

    def test_hex_to_rgb(self):
        assert hex_to_rgb("#FF8000") == (255, 128, 0)


class TestImages:
    """Tests for image validation and drawing."""

    def test_validate_image(self):
        validate_image(np.zeros((10, 10, 3), dtype=np.uint8))

        with pytest.raises(ValueError, match="None"):
            validate_image(None)
        with pytest.raises(ValueError, match="3D"):
            validate_image(np.zeros((10, 10)))
        with pytest.raises(ValueError, match="channels"):
            validate_image(np.zeros((10, 10, 4), dtype=np.uint8))
        with pytest.raises(ValueError, match="dtype"):
            validate_image(np.zeros((10, 10, 3), dtype=np.int64))

    def test_draw_boxes_does_not_modify_input(self):
        image = np.zeros((60, 60, 3), dtype=np.uint8)
        box = BoundingBox(x=10, y=10, width=30, height=30, color="#FF0000")

        result = draw_boxes_on_image(image, [box])

        assert image.sum() == 0
        np.testing.assert_array_equal(result[10, 20], [255, 0, 0])
        np.testing.assert_array_equal(result[25, 25], [0, 0, 0])

    def test_draw_negative_draft_box(self):
        image = np.zeros((60, 60, 3), dtype=np.uint8)
        draft = BoundingBox(x=40, y=40, width=-30, height=-30, color="#00FF00")

        result = draw_boxes_on_image(image, [draft])

        np.testing.assert_array_equal(result[10, 20], [0, 255, 0])

    def test_draw_polygons(self):
        image = np.zeros((60, 60, 3), dtype=np.uint8)
        polygon = Polygon(
            points=[Point(10, 10), Point(50, 10), Point(30, 50)], color="#0000FF"
        )

        result = draw_polygons_on_image(image, [polygon])

        np.testing.assert_array_equal(result[10, 30], [0, 0, 255])
        np.testing.assert_array_equal(result[10, 10], [0, 0, 255])


class TestStatistics:
    def test_empty(self):
        stats = compute_shape_statistics([])
        assert stats["num_total"] == 0
        assert stats["labels"] == {}

    def test_counts(self):
        shapes = [
            BoundingBox(x=0, y=0, width=10, height=10, label="cat"),
            BoundingBox(x=0, y=0, width=10, height=10, label="dog"),
            Polygon(points=[Point(0, 0), Point(1, 0), Point(0, 1)], label="cat"),
        ]

        stats = compute_shape_statistics(shapes)

        assert stats["num_total"] == 3
        assert stats["num_boxes"] == 2
        assert stats["num_polygons"] == 1
        assert stats["labels"] == {"cat": 2, "dog": 1}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
