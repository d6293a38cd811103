"""
hexpunch: byte buffer, pattern search and region editing for a hex editor.
"""

import logging

from .config import EditorConfig, configure_logging
from .core import ByteBuffer, DumpHighlighter, EditorSession, RegionStore
from .errors import (
    BufferRangeError,
    ConfigError,
    HexpunchError,
    InvalidMarkerError,
    NoSearchPatternError,
    PatternSyntaxError,
    ShortWriteError,
)
from .utils import (
    SearchEngine,
    SearchPattern,
    find_backward,
    find_backward_masked,
    find_forward,
    find_forward_masked,
)

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    'EditorConfig',
    'configure_logging',
    'ByteBuffer',
    'DumpHighlighter',
    'EditorSession',
    'RegionStore',
    'BufferRangeError',
    'ConfigError',
    'HexpunchError',
    'InvalidMarkerError',
    'NoSearchPatternError',
    'PatternSyntaxError',
    'ShortWriteError',
    'SearchEngine',
    'SearchPattern',
    'find_backward',
    'find_backward_masked',
    'find_forward',
    'find_forward_masked',
]
