"""
Named markers and the clipboard, with the region edits built on them.
"""

import logging
import string
from typing import BinaryIO, Dict, Final, Optional, Tuple

from ..errors import InvalidMarkerError
from .buffer import ByteBuffer

logger = logging.getLogger(__name__)

MARKER_SYMBOLS: Final[str] = string.ascii_lowercase


def marker_index(symbol: str) -> int:
    """Map a marker symbol a-z to its slot, rejecting anything else."""

    if not isinstance(symbol, str) or len(symbol) != 1 or symbol not in MARKER_SYMBOLS:
        raise InvalidMarkerError(symbol)

    return MARKER_SYMBOLS.index(symbol)


class RegionStore:
    """
    Marker table plus a single-slot clipboard over one byte buffer.

    Markers are plain offsets: they are stored as given and only clamped to
    the buffer length when a region is resolved. Regions are closed ranges
    ``[start, end]``; operations on an empty buffer do nothing.
    """

    def __init__(self, buffer: ByteBuffer) -> None:
        self.buffer = buffer
        self._markers = [0] * len(MARKER_SYMBOLS)
        self.clipboard: bytes = b''

    def set_marker(self, symbol: str, offset: int) -> None:
        self._markers[marker_index(symbol)] = offset

    def get_marker(self, symbol: str) -> int:
        return self._markers[marker_index(symbol)]

    def markers(self) -> Dict[str, int]:
        """Get every marker, unset ones included (they point at 0)."""

        return dict(zip(MARKER_SYMBOLS, self._markers))

    def read_marker_pair(self, first: str, second: str) -> Tuple[int, int]:
        """
        Resolve two markers into an ordered offset pair.

        Both offsets are clamped to the current buffer length, then swapped if
        needed so the first is not greater than the second.

        Args:
            first: Symbol of the first marker
            second: Symbol of the second marker

        Returns:
            Tuple[int, int]: ``(low, high)`` offsets
        """

        size = len(self.buffer)
        a = min(self.get_marker(first), size)
        b = min(self.get_marker(second), size)

        if b < a:
            a, b = b, a

        return a, b

    def _region(self, start: int, end: int) -> Optional[Tuple[int, int]]:
        size = len(self.buffer)
        if not size:
            return None

        if end < start:
            start, end = end, start

        return max(0, min(start, size - 1)), max(0, min(end, size - 1))

    def blank(self, start: int, end: int) -> int:
        """Zero-fill ``[start, end]``; returns the number of bytes blanked."""

        region = self._region(start, end)
        if region is None:
            return 0

        a, b = region
        self.buffer.overwrite(a, bytes(b - a + 1))
        logger.debug("Blanked [%d, %d]", a, b)

        return b - a + 1

    def cut(self, start: int, end: int) -> int:
        """Delete ``[start, end]`` without touching the clipboard."""

        region = self._region(start, end)
        if region is None:
            return 0

        a, b = region
        self.buffer.delete(a, b)
        logger.debug("Cut [%d, %d]", a, b)

        return b - a + 1

    def yank(self, start: int, end: int) -> int:
        """Copy ``[start, end]`` into the clipboard, replacing what it held."""

        region = self._region(start, end)
        if region is None:
            return 0

        a, b = region
        self.clipboard = bytes(self.buffer.read(a, b - a + 1))
        logger.debug("Yanked %d bytes", len(self.clipboard))

        return len(self.clipboard)

    def paste(self, before: int) -> int:
        """Insert the clipboard before ``before``; the clipboard is kept for reuse."""

        before = max(0, min(before, len(self.buffer)))
        self.buffer.insert(before, self.clipboard)

        return len(self.clipboard)

    def overwrite_from_clipboard(self, offset: int) -> bool:
        """
        Punch the clipboard over the bytes starting at ``offset``.

        Returns:
            bool: False, with the buffer untouched, if the clipboard does not fit
        """

        return self.buffer.overwrite(offset, self.clipboard)

    def export(self, start: int, end: int, sink: BinaryIO) -> int:
        """
        Write ``[start, end]`` to ``sink``.

        Args:
            start: First offset of the region
            end: Last offset of the region
            sink: Binary file-like object

        Returns:
            int: Number of bytes written

        Raises:
            ShortWriteError: If the sink took fewer bytes than requested
        """

        region = self._region(start, end)
        if region is None:
            return 0

        return self.buffer.write_to(sink, *region)
