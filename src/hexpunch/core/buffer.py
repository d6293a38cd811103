"""
Buffer module holding the editable bytes of a hex editing session.
"""

import logging
import os
from typing import BinaryIO, Optional, Tuple, Union

from ..config import DEFAULT_GROWTH_CHUNK, DEFAULT_INITIAL_CAPACITY
from ..errors import BufferRangeError, ShortWriteError

logger = logging.getLogger(__name__)

PathLike = Union[str, 'os.PathLike[str]']
BytesLike = Union[bytes, bytearray, memoryview]


class ByteBuffer:
    """Growable contiguous byte storage with splice-style editing."""

    INITIAL_CAPACITY = DEFAULT_INITIAL_CAPACITY
    GROWTH_CHUNK = DEFAULT_GROWTH_CHUNK

    def __init__(self, initial_capacity: Optional[int] = None,
                 growth_chunk: Optional[int] = None) -> None:
        capacity = self.INITIAL_CAPACITY if initial_capacity is None else initial_capacity
        if capacity < 0:
            raise ValueError("Capacity must not be negative")

        self.data = bytearray(capacity)
        self.length = 0
        self.growth_chunk = growth_chunk or self.GROWTH_CHUNK
        self.filename: Optional[str] = None
        self.modified = False

    def reset(self, initial_capacity: Optional[int] = None) -> None:
        """Empty the buffer and reserve fresh storage."""

        capacity = self.INITIAL_CAPACITY if initial_capacity is None else initial_capacity
        self.data = bytearray(capacity)
        self.length = 0
        self.modified = False

    @classmethod
    def from_bytes(cls, initial_data: BytesLike, **kwargs) -> 'ByteBuffer':
        """Create a buffer holding a copy of ``initial_data``."""

        buf = cls(initial_capacity=0, **kwargs)
        buf.load(initial_data)
        return buf

    def __len__(self) -> int:
        return self.length

    def __bytes__(self) -> bytes:
        return bytes(self.data[:self.length])

    def __repr__(self) -> str:
        return f"ByteBuffer(length={self.length}, capacity={self.capacity})"

    @property
    def capacity(self) -> int:
        return len(self.data)

    def _reserve(self, count: int) -> None:
        """Make room for ``count`` more bytes, growing by at least one chunk."""

        if self.length + count <= self.capacity:
            return

        extra = max(count, self.growth_chunk)

        # Fresh storage keeps views handed out by read() from pinning the old one.
        grown = bytearray(self.capacity + extra)
        grown[:self.length] = self.data[:self.length]
        self.data = grown

        logger.debug("Buffer capacity grown to %d bytes", self.capacity)

    def load(self, new_data: BytesLike) -> int:
        """
        Replace the whole buffer with ``new_data``.

        Args:
            new_data: Bytes that become the buffer contents

        Returns:
            int: Number of bytes loaded
        """

        self.data = bytearray(new_data)
        self.length = len(self.data)
        self.modified = False

        return self.length

    def read(self, offset: int, count: int) -> memoryview:
        """
        Get a read-only view of ``count`` bytes starting at ``offset``.

        The view is only valid until the next mutation of the buffer.
        """

        if offset < 0 or count < 0 or offset + count > self.length:
            raise BufferRangeError(
                f"Read of {count} bytes at {offset} exceeds buffer of {self.length} bytes",
                offset=offset, length=self.length)

        return memoryview(self.data).toreadonly()[offset:offset + count]

    def get_byte(self, offset: int) -> int:
        """Get the byte value at ``offset``."""

        if not 0 <= offset < self.length:
            raise BufferRangeError(f"Offset {offset} outside buffer", offset=offset,
                                   length=self.length)

        return self.data[offset]

    def get_line(self, line_number: int, bytes_per_line: int) -> Tuple[bytes, str]:
        """Get a line of hex data and its ASCII representation."""

        start = line_number * bytes_per_line
        end = min(start + bytes_per_line, self.length)
        hex_data = bytes(self.data[start:end]) if start < end else b''

        ascii_str = ''.join(chr(b) if 32 <= b <= 126 else '.' for b in hex_data)

        return hex_data, ascii_str

    def insert(self, before: int, new_data: BytesLike) -> None:
        """
        Insert ``new_data`` immediately before index ``before``.

        Args:
            before: Insertion point, between 0 and the buffer length
            new_data: Bytes to splice in
        """

        count = len(new_data)
        if not count:
            return

        if not 0 <= before <= self.length:
            raise BufferRangeError(f"Insert position {before} outside buffer",
                                   offset=before, length=self.length)

        # Copy first: new_data may be a view of this buffer.
        chunk = bytes(new_data)

        self._reserve(count)
        self.data[before + count:self.length + count] = self.data[before:self.length]
        self.data[before:before + count] = chunk
        self.length += count
        self.modified = True

    def insert_zeros(self, before: int, count: int) -> None:
        """Insert ``count`` zero bytes before index ``before``."""

        if count < 0:
            raise ValueError("Byte count must not be negative")

        self.insert(before, bytes(count))

    def delete(self, start: int, end: int) -> None:
        """
        Remove the closed range ``[start, end]``; the buffer shrinks by ``end - start + 1``.
        """

        if not 0 <= start <= end < self.length:
            raise BufferRangeError(f"Delete range [{start}, {end}] outside buffer",
                                   offset=start, length=self.length)

        count = end - start + 1
        self.data[start:self.length - count] = self.data[end + 1:self.length]
        self.length -= count
        self.modified = True

    def truncate(self, at: int) -> bool:
        """Discard every byte from ``at`` on. Requests past the end are rejected."""

        if at < 0 or at > self.length:
            logger.warning("Refusing to truncate %d byte buffer at %d", self.length, at)
            return False

        self.length = at
        self.modified = True
        return True

    def overwrite(self, offset: int, new_data: BytesLike) -> bool:
        """
        Copy ``new_data`` over the existing bytes starting at ``offset``.

        Args:
            offset: First byte to overwrite
            new_data: Replacement bytes

        Returns:
            bool: False, with the buffer untouched, if the bytes do not fit
        """

        count = len(new_data)
        if offset < 0 or offset + count > self.length:
            logger.warning("Overwrite of %d bytes at %d does not fit in %d bytes",
                           count, offset, self.length)
            return False

        if count:
            self.data[offset:offset + count] = bytes(new_data)
            self.modified = True

        return True

    def fill(self, start: int, end: int, value: int = 0) -> bool:
        """Set every byte of the closed range ``[start, end]`` to ``value``."""

        if not 0 <= value <= 255:
            raise ValueError("Byte value must be between 0 and 255")

        if end < start:
            return False

        return self.overwrite(start, bytes([value]) * (end - start + 1))

    def load_file(self, filename: PathLike) -> int:
        """
        Load data from a file, replacing the buffer contents.

        Args:
            filename: Path of the file to read

        Returns:
            int: Number of bytes read
        """

        with open(filename, 'rb') as f:
            count = self.load(f.read())

        self.filename = os.fspath(filename)
        logger.info("Read %d bytes from %s", count, self.filename)

        return count

    def insert_file(self, before: int, filename: PathLike) -> int:
        """Insert the contents of a file before ``before``, clamped to the buffer end."""

        with open(filename, 'rb') as f:
            chunk = f.read()

        self.insert(max(0, min(before, self.length)), chunk)
        logger.info("Inserted %d bytes from %s", len(chunk), os.fspath(filename))

        return len(chunk)

    def write_to(self, sink: BinaryIO, start: int, end: int) -> int:
        """
        Write the closed range ``[start, end]`` to a binary sink.

        Args:
            sink: Object with a ``write`` method accepting bytes
            start: First byte to write
            end: Last byte to write

        Returns:
            int: Number of bytes written

        Raises:
            ShortWriteError: If the sink accepted fewer bytes than requested, or
                failed outright (reported as 0 bytes written)
        """

        view = self.read(start, end - start + 1)
        requested = len(view)

        target = str(getattr(sink, 'name', ''))

        try:
            written = sink.write(view)
        except OSError as e:
            logger.warning("Write of %d bytes failed: %s", requested, e)
            raise ShortWriteError(requested, 0, target) from e

        if written is None:
            written = requested

        if written != requested:
            logger.warning("Short write: %d of %d bytes", written, requested)
            raise ShortWriteError(requested, written, target)

        return written

    def write_range(self, filename: PathLike, start: int, end: int) -> int:
        """Write the closed range ``[start, end]`` to a file."""

        with open(filename, 'wb') as f:
            written = self.write_to(f, start, end)

        logger.info("Wrote %d bytes to %s", written, os.fspath(filename))
        return written

    def save_file(self, filename: Optional[PathLike] = None) -> int:
        """
        Save data to a file.

        Args:
            filename: Optional filename to save to. If None, uses current filename.

        Returns:
            int: Number of bytes written
        """

        save_filename = filename if filename is not None else self.filename
        if not save_filename:
            raise ValueError("No filename specified")

        with open(save_filename, 'wb') as f:
            written = self.write_to(f, 0, self.length - 1) if self.length else 0

        self.filename = os.fspath(save_filename)
        self.modified = False
        logger.info("Wrote %d bytes to %s", written, self.filename)

        return written
