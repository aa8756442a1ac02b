"""
Next/previous traversal over the combined box-then-polygon order.
"""

from typing import List, Optional

from .state import Shape
from .store import ShapeStore


class NavigationIndex:
    """
    Linear view over a store: all boxes by creation, then all polygons.

    The order is derived from the store on every call, so it stays
    correct after shapes are added or deleted.
    """

    def __init__(self, store: ShapeStore):
        self.store = store

    def order(self) -> List[Shape]:
        return self.store.shapes()

    def __len__(self):
        return len(self.store)

    def index_of(self, shape_id: str) -> Optional[int]:
        """Position of ``shape_id`` in the combined order, or None."""
        for i, shape in enumerate(self.order()):
            if shape.id == shape_id:
                return i
        return None

    def shape_at(self, index: int) -> Optional[Shape]:
        shapes = self.order()
        if 0 <= index < len(shapes):
            return shapes[index]
        return None

    def step(self, shape_id: str, offset: int) -> Optional[Shape]:
        """
        Shape ``offset`` positions away from ``shape_id``, clamped to the ends.

        Returns:
            The target shape (the same shape at either end), or None if
            ``shape_id`` is not in the store
        """
        index = self.index_of(shape_id)
        if index is None:
            return None

        shapes = self.order()
        target = min(max(index + offset, 0), len(shapes) - 1)
        return shapes[target]

    def next(self, shape_id: str) -> Optional[Shape]:
        return self.step(shape_id, 1)

    def previous(self, shape_id: str) -> Optional[Shape]:
        return self.step(shape_id, -1)
