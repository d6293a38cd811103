"""
Utility package for pattern search and hex formatting.
"""

from .search import (
    SearchEngine,
    SearchPattern,
    SearchResult,
    find_backward,
    find_backward_masked,
    find_forward,
    find_forward_masked,
)
from .hex_utils import (
    encode_value,
    format_dump_line,
    format_offset,
    interpret_bytes,
    parse_address,
    parse_hex_string,
    parse_search_input,
)

__all__ = [
    'SearchEngine',
    'SearchPattern',
    'SearchResult',
    'find_backward',
    'find_backward_masked',
    'find_forward',
    'find_forward_masked',
    'encode_value',
    'format_dump_line',
    'format_offset',
    'interpret_bytes',
    'parse_address',
    'parse_hex_string',
    'parse_search_input',
]
