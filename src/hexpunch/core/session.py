"""
Editing session: one buffer, its markers and clipboard, a cursor and the
last search pattern.

The session is what a front end drives. Every operation runs to completion
and leaves a short human readable note in ``status_message``.
"""

import logging
import struct
from typing import Dict, Final, List, Optional, Tuple, Union

from ..config import EditorConfig
from ..errors import PatternSyntaxError
from ..utils.hex_utils import (
    HEX_DIGITS,
    ascii_preview,
    encode_value,
    format_dump_line,
    format_offset,
    interpret_bytes,
    parse_address,
    parse_search_input,
)
from ..utils.search import SearchPattern, SearchResult, SearchEngine
from .buffer import ByteBuffer, PathLike
from .regions import RegionStore
from .syntax import DumpHighlighter

logger = logging.getLogger(__name__)

RIGHT: Final[str] = 'right'
LEFT: Final[str] = 'left'
DOWN: Final[str] = 'down'
UP: Final[str] = 'up'

SANDBOX_SIZE: Final[int] = 64 * 40
SANDBOX_FILENAME: Final[str] = 'file.bin'
SANDBOX_GREETING: Final[bytes] = b"F1/! for help. Here's a sandbox."
SANDBOX_FLOATS: Final[Tuple[float, ...]] = (
    1.0, 2.0, -3.0, 112233445566.0, -1122334455667788.0, 3.14159, -3.14159, 0.0,
)
SANDBOX_DOUBLES: Final[Tuple[float, ...]] = (
    1.0, 2.0, -3.0, 112233445566.0, -1122334455667788.0,
    3.1415926535897931, -3.1415926535897931, 0.0,
)
SANDBOX_SPECIALS: Final[Tuple[int, ...]] = (
    0xFFFFFFFFFFFFFFFF, 0x7FFFFFFFFFFFFFFF, 0x8000000000000000, 0x0000000000000000,
)

PatternInput = Union[SearchPattern, str, bytes]


class EditorSession:
    """Holds the buffer, region store, search state and cursor of one editor."""

    def __init__(self, config: Optional[EditorConfig] = None,
                 buffer: Optional[ByteBuffer] = None) -> None:
        self.config = config or EditorConfig.from_env()
        if buffer is None:
            buffer = ByteBuffer(self.config.initial_capacity, self.config.growth_chunk)

        self.buffer = buffer
        self.regions = RegionStore(self.buffer)
        self.search = SearchEngine(self.buffer)
        self.highlighter = DumpHighlighter()

        self.cursor = 0
        self.low_nibble = False
        self.status_message = ''

    @classmethod
    def open(cls, filename: PathLike, config: Optional[EditorConfig] = None,
             offset: int = 0) -> 'EditorSession':
        """
        Create a session over the contents of a file.

        Args:
            filename: File to load
            config: Optional configuration, defaults to the environment
            offset: Initial cursor; negative values count from the end

        Returns:
            EditorSession: The new session
        """

        session = cls(config)
        session.open_file(filename)
        if offset:
            session.goto(offset)

        return session

    @property
    def bytes_per_line(self) -> int:
        return self.config.bytes_per_line

    def _note(self, message: str) -> None:
        self.status_message = message
        logger.debug(message)

    def _clamp_cursor(self) -> None:
        self.cursor = max(0, min(self.cursor, len(self.buffer) - 1))

    # Files

    def new(self) -> None:
        """Start over with an empty, pre-sized buffer."""

        self.buffer.reset(self.config.initial_capacity)
        self.cursor = 0
        self.low_nibble = False

    def sandbox(self) -> None:
        """Load the playground buffer used when no file is given."""

        data = bytearray(i & 0xFF for i in range(SANDBOX_SIZE))
        payload = (SANDBOX_GREETING
                   + struct.pack('<8f', *SANDBOX_FLOATS)
                   + struct.pack('<8d', *SANDBOX_DOUBLES)
                   + struct.pack('<4Q', *SANDBOX_SPECIALS))
        data[:len(payload)] = payload

        self.new()
        self.buffer.insert(0, data)
        self.buffer.modified = False

        if self.buffer.filename is None:
            self.buffer.filename = SANDBOX_FILENAME

    def open_file(self, filename: PathLike) -> int:
        """Replace the buffer with a file's contents. OSError propagates."""

        count = self.buffer.load_file(filename)
        self.cursor = 0
        self.low_nibble = False
        self._note(f"Read {count} bytes")

        return count

    def save_file(self, filename: Optional[PathLike] = None) -> int:
        written = self.buffer.save_file(filename)
        self._note(f"Wrote {written} bytes")

        return written

    def insert_file(self, filename: PathLike, after: bool = False) -> int:
        """Insert a file at the cursor (or after it); the buffer grows by its size."""

        before = min(self.cursor + int(after), len(self.buffer))
        count = self.buffer.insert_file(before, filename)
        self._note(f"Inserted {count} bytes")

        return count

    # Cursor movement

    def move(self, direction: str) -> bool:
        """
        Move the cursor one nibble left/right or one row up/down.

        Returns:
            bool: False when the move would leave the buffer
        """

        size = len(self.buffer)
        row = self.bytes_per_line

        if direction == RIGHT:
            if size == 0 or (self.cursor == size - 1 and self.low_nibble):
                return False
            self.cursor += int(self.low_nibble)
            self.low_nibble = not self.low_nibble

        elif direction == LEFT:
            if self.cursor == 0 and not self.low_nibble:
                return False
            self.cursor -= int(not self.low_nibble)
            self.low_nibble = not self.low_nibble

        elif direction == DOWN:
            if self.cursor + row >= size:
                return False
            self.cursor += row

        elif direction == UP:
            if self.cursor < row:
                return False
            self.cursor -= row

        else:
            raise ValueError(f"Unknown direction: {direction}")

        return True

    def page(self, direction: str, rows: int) -> None:
        """Move by ``rows`` rows, stopping at either end of the buffer."""

        size = len(self.buffer)
        span = rows * self.bytes_per_line

        if direction == DOWN:
            self.cursor = min(self.cursor + span, max(size - 1, 0))
        elif direction == UP:
            self.cursor = max(self.cursor - span, 0)
        else:
            raise ValueError(f"Unknown direction: {direction}")

    def home(self) -> None:
        self.cursor = 0
        self.low_nibble = False

    def end(self) -> None:
        self.cursor = max(len(self.buffer) - 1, 0)
        self.low_nibble = True

    def goto(self, address: Union[int, str]) -> bool:
        """Jump to ``address``; negative addresses count back from the end."""

        if isinstance(address, str):
            parsed = parse_address(address)
            if parsed is None:
                self._note(f"Bad address: {address!r}")
                return False
            address = parsed

        size = len(self.buffer)

        if 0 <= address < size:
            self.cursor = address
        elif address < 0 and size + address >= 0:
            self.cursor = size + address
        else:
            return False

        self._clamp_cursor()
        return True

    def advance(self, delta: int) -> None:
        """Move by ``delta`` bytes, wrapping around either end of the buffer."""

        size = len(self.buffer)
        if size == 0:
            return

        self.cursor = (self.cursor + delta) % size

    # Editing

    def punch_nibble(self, digit: str) -> bool:
        """Overwrite the nibble under the cursor with a hex digit and step right."""

        if len(digit) != 1 or digit not in HEX_DIGITS:
            raise ValueError(f"Not a hex digit: {digit!r}")

        if not len(self.buffer):
            self._note("There are no bytes in the file, perhaps insert some first")
            return False

        nibble = int(digit, 16)
        value = self.buffer.get_byte(self.cursor)

        if self.low_nibble:
            value = (value & 0xF0) | nibble
        else:
            value = (nibble << 4) | (value & 0x0F)

        self.buffer.overwrite(self.cursor, bytes([value]))
        self.move(RIGHT)

        return True

    def punch_text(self, code: int) -> bool:
        """Overwrite the byte under the cursor with a character code and step to the next byte."""

        if not len(self.buffer):
            self._note("There are no bytes in the file, perhaps insert some first")
            return False

        self.buffer.overwrite(self.cursor, bytes([code & 0xFF]))
        self.low_nibble = False
        if self.cursor < len(self.buffer) - 1:
            self.cursor += 1

        return True

    def punch_value(self, kind: str, text: str) -> bool:
        """
        Overwrite bytes at the cursor with an encoded number or character.

        Args:
            kind: ``u16le`` ... ``f64be`` or ``char``
            text: The value to encode

        Returns:
            bool: False, with the buffer untouched, if the value does not fit
        """

        encoded = encode_value(kind, text)

        if not self.buffer.overwrite(self.cursor, encoded):
            self._note("Won't fit!")
            return False

        self._note(f"Punched in {len(encoded)} bytes")
        return True

    def insert_nulls(self, count: int, after: bool = False) -> None:
        """Insert ``count`` zero bytes at the cursor, or right after it."""

        before = min(self.cursor + int(after), len(self.buffer))
        self.buffer.insert_zeros(before, count)
        self._note(f"Inserted {count} bytes")

    def truncate(self, at: Optional[int] = None) -> bool:
        """Truncate at the cursor (or ``at``); the cursor lands on the new last byte."""

        at = self.cursor if at is None else at

        if not self.buffer.truncate(at):
            self._note(f"Cannot truncate past the end ({len(self.buffer)} bytes)")
            return False

        self.cursor = at - 1 if at > 0 else 0
        self.low_nibble = False

        return True

    # Search

    def _coerce_pattern(self, pattern: Optional[PatternInput]) -> Optional[SearchPattern]:
        if pattern is None or isinstance(pattern, SearchPattern):
            return pattern

        if isinstance(pattern, str):
            return parse_search_input(pattern)

        if isinstance(pattern, (bytes, bytearray)):
            return SearchPattern(bytes(pattern))

        raise PatternSyntaxError(f"Unsupported pattern type: {type(pattern).__name__}")

    def _land(self, result: Optional[SearchResult]) -> Optional[int]:
        if result is None:
            self._note("Not found")
            return None

        self.cursor = result.position
        self.low_nibble = False
        self._note(f"Found at {format_offset(result.position)}")

        return result.position

    def find_forward(self, pattern: Optional[PatternInput] = None) -> Optional[int]:
        """
        Search after the cursor and move onto the first match. Does not wrap.

        Args:
            pattern: Pattern text, bytes or SearchPattern; None repeats the last one

        Returns:
            Optional[int]: New cursor position, or None if nothing was found

        Raises:
            PatternSyntaxError: If the pattern text is malformed
            NoSearchPatternError: If there is no pattern to repeat
        """

        parsed = self._coerce_pattern(pattern)
        size = len(self.buffer)

        if size == 0 or self.cursor >= size - 1:
            if parsed is not None:
                self.search.last_search = parsed
            return None

        return self._land(self.search.find_next(parsed, self.cursor + 1))

    def find_backward(self, pattern: Optional[PatternInput] = None) -> Optional[int]:
        """Search before the cursor and move onto the last match. Does not wrap."""

        parsed = self._coerce_pattern(pattern)

        if len(self.buffer) == 0 or self.cursor == 0:
            if parsed is not None:
                self.search.last_search = parsed
            return None

        return self._land(self.search.find_previous(parsed, self.cursor))

    def find_all(self, pattern: Optional[PatternInput] = None) -> List[int]:
        """
        Find every occurrence in the buffer without moving the cursor.

        Args:
            pattern: Pattern text, bytes or SearchPattern; None repeats the last one

        Returns:
            List[int]: Offsets of all matches, overlapping ones included
        """

        offsets = [result.position
                   for result in self.search.find_all(self._coerce_pattern(pattern))]
        self._note(f"{len(offsets)} matches")

        return offsets

    # Markers and regions

    def mark(self, symbol: str) -> bool:
        """Remember the cursor in marker ``symbol``."""

        if not len(self.buffer):
            return False

        self.regions.set_marker(symbol, self.cursor)
        return True

    def list_markers(self) -> Dict[str, int]:
        return self.regions.markers()

    def goto_marker(self, symbol: str) -> bool:
        """Jump to a marker; markers outside the buffer are ignored."""

        address = self.regions.get_marker(symbol)
        if not 0 <= address < len(self.buffer):
            return False

        self.cursor = address
        return True

    def blank_region(self, first: str, second: str) -> int:
        lo, hi = self.regions.read_marker_pair(first, second)
        return self.regions.blank(lo, hi)

    def cut_region(self, first: str, second: str) -> int:
        """Delete the bytes between two markers; the cursor moves before the gap."""

        lo, hi = self.regions.read_marker_pair(first, second)
        count = self.regions.cut(lo, hi)

        if count:
            self.cursor = lo - 1 if lo > 0 else 0
            self.low_nibble = False
            self._clamp_cursor()

        return count

    def yank_region(self, first: str, second: str) -> int:
        lo, hi = self.regions.read_marker_pair(first, second)
        count = self.regions.yank(lo, hi)
        self._note(f"{count} bytes copied to clipboard!")

        return count

    def write_region(self, first: str, second: str, filename: PathLike) -> int:
        """Write the bytes between two markers to a file."""

        lo, hi = self.regions.read_marker_pair(first, second)

        with open(filename, 'wb') as f:
            written = self.regions.export(lo, hi, f)

        self._note(f"Wrote {written} bytes")
        return written

    def paste(self, after: bool = False) -> int:
        """Insert the clipboard at the cursor, or right after it."""

        count = self.regions.paste(self.cursor + int(after))
        self._note(f"Inserted {count} bytes")

        return count

    def overwrite_from_clipboard(self) -> bool:
        size = len(self.regions.clipboard)

        if not self.regions.overwrite_from_clipboard(self.cursor):
            self._note(f"Not enough room to paste {size} bytes")
            return False

        self._note(f"Punched over {size} bytes")
        return True

    # Views

    def line_count(self) -> int:
        return (len(self.buffer) + self.bytes_per_line - 1) // self.bytes_per_line

    def cursor_line(self) -> int:
        return self.cursor // self.bytes_per_line

    def dump_lines(self, first_line: int = 0, count: Optional[int] = None) -> List[str]:
        """Render buffer rows as dump lines, ``count`` rows from ``first_line``."""

        last = self.line_count()
        if count is not None:
            last = min(last, first_line + count)

        lines = []
        for line_number in range(max(first_line, 0), last):
            data, _ = self.buffer.get_line(line_number, self.bytes_per_line)
            lines.append(format_dump_line(line_number * self.bytes_per_line, data,
                                          self.bytes_per_line))

        return lines

    def highlighted_lines(self, first_line: int = 0,
                          count: Optional[int] = None) -> List[List[Tuple[str, int]]]:
        return [self.highlighter.highlight_line(line)
                for line in self.dump_lines(first_line, count)]

    def interpret(self) -> Dict[str, object]:
        """Integer, float and binary readings of the bytes at the cursor."""

        size = len(self.buffer)
        if not size:
            return {}

        available = size - self.cursor
        readings = interpret_bytes(bytes(self.buffer.read(self.cursor, min(8, available))))
        readings['s'] = ascii_preview(bytes(self.buffer.read(self.cursor, min(64, available))))

        return readings

    def status(self) -> str:
        """Cursor position, size and percentage, as shown on the status line."""

        size = len(self.buffer)
        width = 16 if size > 0xFFFFFFFF else 8
        percent = int((self.cursor + 0.5 * self.low_nibble) * 100.0 / (size or 1))

        return f"{format_offset(self.cursor, width)}/{format_offset(size, width)} {percent:3d}%"
