"""
Interfaces module - UI adapters for annotation core.

Provides adapters to connect the core annotation logic
with different UI frameworks (Tkinter, Qt, Web, etc).
"""

from .gui_adapter import CanvasAdapter

__all__ = ['CanvasAdapter']
