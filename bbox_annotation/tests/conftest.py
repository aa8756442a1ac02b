"""
Test fixtures and utilities for bbox_annotation tests.

Provides reusable fixtures for sessions, images and event recording.
"""

import numpy as np
import pytest

from bbox_annotation.core.annotation import AnnotationSession, EventType
from bbox_annotation.utils.env import get_default_config


@pytest.fixture
def cfg():
    """Default configuration, independent of the environment."""
    return get_default_config()


@pytest.fixture
def session(cfg):
    """Fresh session with a seeded color generator."""
    return AnnotationSession(cfg=cfg, seed=1234)


@pytest.fixture
def test_image():
    """Create a test RGB image (width 160, height 120)."""
    return np.zeros((120, 160, 3), dtype=np.uint8)


@pytest.fixture
def recorded_events(session):
    """List that receives the type of every event the session emits."""
    received = []
    for event_type in EventType:
        session.events.on(event_type, lambda event: received.append(event.event_type))
    return received


@pytest.fixture
def draw_box():
    """Simulate a drag from (x0, y0) to (x1, y1)."""

    def _draw(session, x0, y0, x1, y1):
        session.pointer_down(x0, y0)
        session.pointer_move(x1, y1)
        return session.pointer_up(x1, y1)

    return _draw


@pytest.fixture
def draw_polygon():
    """Click ``points`` in polygon mode, then click on the first one."""

    def _draw(session, points, close=True):
        session.start_polygon()
        for x, y in points:
            session.pointer_down(x, y)
        if close:
            x, y = points[0]
            session.pointer_down(x + 1, y + 1)
        return session.selected_shape

    return _draw
