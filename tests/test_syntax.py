import pytest

from hexpunch.core.syntax import DUMP_COLORS, DumpHighlighter
from hexpunch.utils.hex_utils import format_dump_line


@pytest.fixture
def highlighter() -> DumpHighlighter:
    return DumpHighlighter()


@pytest.mark.parametrize("data", [
    bytes(range(32)),
    b"hello | world, with a pipe |..",
    b"\x00",
    b"",
])
def test_segments_rebuild_line(highlighter: DumpHighlighter, data: bytes) -> None:
    line = format_dump_line(0x40, data)

    segments = highlighter.highlight_line(line)

    assert "".join(text for text, _ in segments) == line


def test_offset_and_zero_bytes(highlighter: DumpHighlighter) -> None:
    segments = highlighter.highlight_line(format_dump_line(0, b"\x00\x41\x42\x43"))

    assert segments[0] == ("00000000", DUMP_COLORS['offset'])
    assert ("00", DUMP_COLORS['zero']) in segments
    assert ("41", DUMP_COLORS['byte']) in segments


def test_ascii_gutter(highlighter: DumpHighlighter) -> None:
    segments = highlighter.highlight_line(format_dump_line(0, b"\x00ABC"))

    assert segments[-3:] == [
        ("|", DUMP_COLORS['punctuation']),
        (".ABC", DUMP_COLORS['ascii']),
        ("|", DUMP_COLORS['punctuation']),
    ]


def test_empty_line(highlighter: DumpHighlighter) -> None:
    assert highlighter.highlight_line("") == []
