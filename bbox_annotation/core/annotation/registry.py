"""
Label to color mapping and the list of reusable classes.
"""

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from .utils import generate_random_color, validate_color

logger = logging.getLogger(__name__)


class ClassRegistry:
    """
    Keeps the color assigned to every label seen in the session.

    Two collections are tracked:
    - the color map, filled by any label that ever needed a color
    - the reusable classes, filled only through ``add_class``

    A label that was only auto-colored does not show up in
    ``known_labels``.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Args:
            seed: Seed for the random color generator
        """
        self._colors: Dict[str, str] = {}
        self._classes: List[str] = []
        self._rng = np.random.default_rng(seed)

    def color_for(self, label: str) -> str:
        """
        Color recorded for ``label``, assigning a random one on first use.
        """
        color = self._colors.get(label)
        if color is None:
            color = generate_random_color(self._rng)
            self._colors[label] = color
            logger.debug(f"Assigned color {color} to label {label!r}")
        return color

    def set_color(self, label: str, color: str) -> str:
        """
        Override the color of ``label``.

        Returns:
            The normalized color

        Raises:
            ValueError: If color is not a valid hex color
        """
        color = validate_color(color)
        self._colors[label] = color
        return color

    def has_color(self, label: str) -> bool:
        return label in self._colors

    def add_class(self, label: str, color: Optional[str] = None) -> bool:
        """
        Register ``label`` as a reusable class.

        Args:
            label: Class name; surrounding whitespace is stripped
            color: Color to record for the class (kept as-is when None)

        Returns:
            True if the class was added, False if empty or already known
        """
        label = label.strip()
        if not label or label in self._classes:
            return False

        self._classes.append(label)
        if color is not None:
            self.set_color(label, color)
        else:
            self.color_for(label)

        logger.debug(f"Registered class {label!r}")
        return True

    def is_known(self, label: str) -> bool:
        return label in self._classes

    def known_labels(self) -> Tuple[str, ...]:
        """Reusable classes in the order they were added."""
        return tuple(self._classes)

    def clear(self):
        self._colors.clear()
        self._classes.clear()
