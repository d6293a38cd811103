"""
Core package for hex editing.

This package implements the editable byte buffer, the marker and clipboard
store built on top of it, dump highlighting, and the EditorSession that ties
them to a cursor.
"""

from .buffer import ByteBuffer
from .regions import RegionStore
from .syntax import DumpHighlighter
from .session import EditorSession

__all__ = ['ByteBuffer', 'RegionStore', 'DumpHighlighter', 'EditorSession']
