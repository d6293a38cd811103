"""
Utility functions for hex pattern parsing, dump formatting and value codecs.
"""

import struct
from typing import Dict, Final, Optional, Tuple

from ..errors import PatternSyntaxError
from .search import SearchPattern

HEX_DIGITS: Final[str] = '0123456789abcdefABCDEF'
TEXT_PREFIX: Final[str] = 't'
WILDCARD: Final[str] = '?'
MASK_SEPARATOR: Final[str] = '/'

# kind -> (struct format, byte size)
VALUE_FORMATS: Final[Dict[str, Tuple[str, int]]] = {
    'u16le': ('<H', 2),
    'u16be': ('>H', 2),
    'u32le': ('<I', 4),
    'u32be': ('>I', 4),
    'u64le': ('<Q', 8),
    'u64be': ('>Q', 8),
    'f32le': ('<f', 4),
    'f32be': ('>f', 4),
    'f64le': ('<d', 8),
    'f64be': ('>d', 8),
}


def parse_hex_string(hex_str: str) -> bytes:
    """
    Parse a hex string into bytes.

    Args:
        hex_str (str): String of hex digit pairs (e.g. "FF 00 A5"), whitespace ignored

    Returns:
        bytes: Parsed bytes

    Raises:
        PatternSyntaxError: On non-hex characters or an odd number of digits
    """

    clean_str = ''.join(hex_str.split())

    bad = [c for c in clean_str if c not in HEX_DIGITS]
    if bad:
        raise PatternSyntaxError(f"Invalid hex character {bad[0]!r}")

    if len(clean_str) % 2:
        raise PatternSyntaxError("Odd number of hex digits")

    return bytes.fromhex(clean_str)


def parse_masked_hex(hex_str: str) -> Tuple[bytes, bytes]:
    """
    Parse hex digit pairs where ``?`` stands for a don't-care nibble.

    ``"DE ?? B? EF"`` gives data ``DE 00 B0 EF`` and mask ``FF 00 F0 FF``.

    Returns:
        Tuple[bytes, bytes]: The data bytes and their compare mask
    """

    clean_str = ''.join(hex_str.split())

    bad = [c for c in clean_str if c not in HEX_DIGITS and c != WILDCARD]
    if bad:
        raise PatternSyntaxError(f"Invalid hex character {bad[0]!r}")

    if len(clean_str) % 2:
        raise PatternSyntaxError("Odd number of hex digits")

    data = bytearray()
    mask = bytearray()

    for i in range(0, len(clean_str), 2):
        value = 0
        care = 0
        for digit in clean_str[i:i + 2]:
            value <<= 4
            care <<= 4
            if digit != WILDCARD:
                value |= int(digit, 16)
                care |= 0xF

        data.append(value)
        mask.append(care)

    return bytes(data), bytes(mask)


def parse_search_input(text: str) -> SearchPattern:
    """
    Build a search pattern from user input.

    Accepted forms:
        ``tHello``          literal text after a leading ``t``
        ``0f fe 42``        hex digit pairs, whitespace ignored
        ``de ?? be e?``     hex pairs with ``?`` don't-care nibbles
        ``de ad / ff 00``   hex data, a slash, then an explicit bit mask

    Args:
        text (str): The raw pattern text

    Returns:
        SearchPattern: A complete pattern, never a partial one

    Raises:
        PatternSyntaxError: If the text is empty or malformed
    """

    if text.startswith(TEXT_PREFIX):
        literal = text[len(TEXT_PREFIX):]
        if not literal:
            raise PatternSyntaxError("Empty search text")

        return SearchPattern(literal.encode('utf-8'))

    if not text.strip():
        raise PatternSyntaxError("Empty search pattern")

    if MASK_SEPARATOR in text:
        data_str, _, mask_str = text.partition(MASK_SEPARATOR)
        data = parse_hex_string(data_str)
        mask = parse_hex_string(mask_str)
        if len(data) != len(mask):
            raise PatternSyntaxError(
                f"Mask has {len(mask)} bytes but pattern has {len(data)}")

        return SearchPattern(data, mask)

    if WILDCARD in text:
        data, mask = parse_masked_hex(text)
        return SearchPattern(data, mask)

    return SearchPattern(parse_hex_string(text))


def format_offset(offset: int, width: int = 8) -> str:
    """
    Format a byte offset as a hex string.

    Args:
        offset (int): Byte offset to format
        width (int): Number of hex digits to use

    Returns:
        str: Formatted hex string
    """

    return f"{offset:0{width}X}"


def format_dump_line(offset: int, data: bytes, bytes_per_line: int = 32,
                     with_ascii: bool = True) -> str:
    """
    Format one dump row: address, hex bytes grouped by four, ASCII gutter.

    Short rows are padded so the ASCII column stays aligned.
    """

    groups = []
    for i in range(0, bytes_per_line, 4):
        chunk = data[i:i + 4]
        groups.append(chunk.hex().ljust(8))

    width = 16 if offset > 0xFFFFFFFF else 8
    line = f"{format_offset(offset, width)}  {' '.join(groups)}"

    if not with_ascii:
        return line.rstrip()

    ascii_str = ''.join(chr(b) if 32 <= b <= 126 else '.' for b in data)
    return f"{line}  |{ascii_str}|"


def _parse_number(text: str, floating: bool) -> float:
    text = text.strip()
    if not text:
        raise ValueError("Empty number")

    if floating:
        try:
            return float(text)
        except ValueError:
            return float.fromhex(text)

    return int(text.rstrip('uU'), 0)


def encode_value(kind: str, text: str) -> bytes:
    """
    Encode a typed number (or a single character) as raw bytes.

    Args:
        kind (str): One of ``VALUE_FORMATS`` or ``'char'``
        text (str): Number in Python literal syntax (``0x42``, ``-47``, ``3.14``,
            ``0x1.91eb86p+1``) or, for ``'char'``, one character

    Returns:
        bytes: The encoded value

    Raises:
        ValueError: For an unknown kind or an unparsable number
    """

    if kind == 'char':
        if len(text) != 1:
            raise ValueError("Expected exactly one character")
        return text.encode('latin-1')

    if kind not in VALUE_FORMATS:
        raise ValueError(f"Unknown value kind: {kind}")

    fmt, size = VALUE_FORMATS[kind]
    floating = kind.startswith('f')
    number = _parse_number(text, floating)

    if floating:
        try:
            return struct.pack(fmt, number)
        except (OverflowError, struct.error) as e:
            raise ValueError(f"{text!r} does not fit in {kind}") from e

    # Negative integers wrap to their two's complement bit pattern.
    return struct.pack(fmt, int(number) % (1 << (size * 8)))


def _signed(value: int, bits: int) -> int:
    return value - (1 << bits) if value & (1 << (bits - 1)) else value


def interpret_bytes(data: bytes) -> Dict[str, object]:
    """
    Read the leading bytes of ``data`` as characters, integers and floats.

    Only readings that fit in ``data`` are present; ``data`` is usually the
    bytes from the cursor onwards.
    """

    result: Dict[str, object] = {}
    if not data:
        return result

    first = data[0]
    result['c'] = chr(first) if 32 <= first <= 126 else ' '
    result['u8'] = first
    result['s8'] = _signed(first, 8)

    for bits in (16, 32, 64):
        size = bits // 8
        if len(data) < size:
            break

        for order, tag in (('little', 'le'), ('big', 'be')):
            value = int.from_bytes(data[:size], order)
            result[f'u{bits}{tag}'] = value
            result[f's{bits}{tag}'] = _signed(value, bits)

        if bits == 32:
            result['f32le'] = struct.unpack('<f', data[:4])[0]
            result['f32be'] = struct.unpack('>f', data[:4])[0]
        elif bits == 64:
            result['f64le'] = struct.unpack('<d', data[:8])[0]
            result['f64be'] = struct.unpack('>d', data[:8])[0]
            result['h64le'] = f"{result['u64le']:016x}"
            result['h64be'] = f"{result['u64be']:016x}"

    # Binary readings pad missing trailing bytes with zeros.
    padded = bytes(data[:8]).ljust(8, b'\x00')
    result['b64le'] = format_binary(int.from_bytes(padded, 'little'))
    result['b64be'] = format_binary(int.from_bytes(padded, 'big'))

    return result


def format_binary(value: int) -> str:
    """Format a 64-bit number as eight space-separated groups of bits, MSB first."""

    bits = f"{value & 0xFFFFFFFFFFFFFFFF:064b}"
    return ' '.join(bits[i:i + 8] for i in range(0, 64, 8))


def ascii_preview(data: bytes, width: int = 64) -> str:
    """Printable preview of up to ``width`` bytes, padded with spaces."""

    shown = ''.join(chr(b) if 32 <= b <= 126 else '.' for b in data[:width])
    return shown.ljust(width)


def parse_address(text: str) -> Optional[int]:
    """Parse an address in Python literal syntax (``0x1F``, ``-16``), or None."""

    try:
        return int(text.strip(), 0)
    except ValueError:
        return None
