"""
Dump highlighting for the hex view using Pygments.
"""

from typing import Any, Dict, Final, List, Tuple

from pygments.lexers.hexdump import HexdumpLexer
from pygments.token import Token

DUMP_COLORS: Final[Dict[str, int]] = {
    'offset': 1,       # Cyan
    'byte': 2,         # White
    'zero': 3,         # Dim
    'ascii': 4,        # Yellow
    'punctuation': 5,  # Magenta
    'default': 0,      # Default
}

TOKEN_COLOR_MAP: Final[Dict[Any, int]] = {
    Token.Name.Label: DUMP_COLORS['offset'],
    Token.Number.Hex: DUMP_COLORS['byte'],
    Token.Number: DUMP_COLORS['byte'],
    Token.String: DUMP_COLORS['ascii'],
    Token.Punctuation: DUMP_COLORS['punctuation'],
    Token.Text.Whitespace: DUMP_COLORS['default'],
    Token.Text: DUMP_COLORS['default'],
}

GUTTER_SEPARATOR: Final[str] = '  |'


class DumpHighlighter:
    """Splits rendered dump rows into colored segments."""

    def __init__(self) -> None:
        self.lexer = HexdumpLexer(ensurenl=False, stripnl=False)

    def highlight_line(self, line: str) -> List[Tuple[str, int]]:
        """
        Highlight one dump row.

        The address and hex columns go through the Pygments hexdump lexer; the
        ASCII gutter is emitted as a single string segment since rows are
        wider than the sixteen bytes the lexer recognizes.

        Args:
            line: A row as produced by ``format_dump_line``

        Returns:
            A list of (text, color_slot) tuples that concatenate back to ``line``
        """

        if not line:
            return []

        hex_part, separator, gutter = line.partition(GUTTER_SEPARATOR)

        result = []
        for token_type, text in self.lexer.get_tokens(hex_part):
            if not text:
                continue

            slot = self._get_token_color(token_type)
            if token_type in Token.Number and text.strip('0') == '':
                slot = DUMP_COLORS['zero']

            result.append((text, slot))

        if separator:
            result.append(('  ', DUMP_COLORS['default']))
            result.append(('|', DUMP_COLORS['punctuation']))

            body = gutter[:-1] if gutter.endswith('|') else gutter
            if body:
                result.append((body, DUMP_COLORS['ascii']))
            if gutter.endswith('|'):
                result.append(('|', DUMP_COLORS['punctuation']))

        return result

    def _get_token_color(self, token_type: Any) -> int:
        """
        Get the color slot for a token type.

        Args:
            token_type: The Pygments token type

        Returns:
            The color slot number
        """

        if token_type in TOKEN_COLOR_MAP:
            return TOKEN_COLOR_MAP[token_type]

        while token_type.parent:
            token_type = token_type.parent
            if token_type in TOKEN_COLOR_MAP:
                return TOKEN_COLOR_MAP[token_type]

        return DUMP_COLORS['default']
