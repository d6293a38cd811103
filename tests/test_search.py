import random
from typing import Optional

import pytest

from hexpunch.core.buffer import ByteBuffer
from hexpunch.errors import NoSearchPatternError, PatternSyntaxError
from hexpunch.utils.search import (
    NO_OVERLAP,
    ExactComparator,
    SearchEngine,
    SearchPattern,
    build_overlap_table,
    find_backward,
    find_backward_masked,
    find_forward,
    find_forward_masked,
)


def matches_at(haystack: bytes, needle: bytes, mask: Optional[bytes], offset: int) -> bool:
    for i, value in enumerate(needle):
        care = 0xFF if mask is None else mask[i]
        if (haystack[offset + i] ^ value) & care:
            return False
    return True


def brute_offsets(haystack: bytes, needle: bytes, mask: Optional[bytes] = None) -> list:
    if not needle or len(needle) > len(haystack):
        return []
    return [o for o in range(len(haystack) - len(needle) + 1)
            if matches_at(haystack, needle, mask, o)]


def random_bytes(rng: random.Random, size: int, alphabet: bytes) -> bytes:
    return bytes(rng.choice(alphabet) for _ in range(size))


def test_forward_scenario() -> None:
    assert find_forward(bytes.fromhex("000102030405"), bytes.fromhex("0304")) == 3


def test_backward_scenario() -> None:
    assert find_backward(bytes.fromhex("AABBAABBAA"), bytes.fromhex("AABB")) == 2


def test_masked_scenario() -> None:
    needle = bytes.fromhex("DEAD")
    mask = bytes.fromhex("FF00")

    assert find_forward_masked(bytes.fromhex("DEADBEEF"), needle, mask) == 0
    assert find_forward_masked(bytes.fromhex("DE00BEEF"), needle, mask) == 0


@pytest.mark.parametrize("haystack, needle", [
    (b"", b"a"),
    (b"abc", b""),
    (b"", b""),
    (b"ab", b"abc"),
])
def test_degenerate_inputs_not_found(haystack: bytes, needle: bytes) -> None:
    assert find_forward(haystack, needle) is None
    assert find_backward(haystack, needle) is None
    assert find_forward_masked(haystack, needle, b"\xff" * len(needle)) is None
    assert find_backward_masked(haystack, needle, b"\xff" * len(needle)) is None


def test_whole_haystack_match() -> None:
    assert find_forward(b"abc", b"abc") == 0
    assert find_backward(b"abc", b"abc") == 0


def test_not_found() -> None:
    assert find_forward(b"aaaa", b"b") is None
    assert find_backward(b"aaaa", b"ab") is None


def test_mask_length_mismatch_rejected() -> None:
    with pytest.raises(PatternSyntaxError):
        find_forward_masked(b"abcdef", b"ab", b"\xff")

    with pytest.raises(PatternSyntaxError):
        find_backward_masked(b"abcdef", b"ab", b"\xff\xff\xff")


def test_zero_mask_matches_anywhere() -> None:
    haystack = bytes(range(10))

    assert find_forward_masked(haystack, b"\x55\x66", b"\x00\x00") == 0
    assert find_backward_masked(haystack, b"\x55\x66", b"\x00\x00") == 8


def test_masked_match_after_incompatible_overlap() -> None:
    # The first window fails on its last byte; the match one byte later must not be skipped.
    haystack = bytes.fromhex("00000001")
    needle = bytes.fromhex("000001")
    mask = bytes.fromhex("00FFFF")

    assert find_forward_masked(haystack, needle, mask) == 1
    assert find_backward_masked(haystack, needle, mask) == 1


def test_nibble_mask() -> None:
    haystack = bytes.fromhex("12 3F 4A 5F 3E")
    needle = bytes.fromhex("30")
    mask = bytes.fromhex("F0")

    assert find_forward_masked(haystack, needle, mask) == 1
    assert find_backward_masked(haystack, needle, mask) == 4


def test_overlap_table_for_repeated_byte() -> None:
    skips, overlaps = build_overlap_table(ExactComparator(b"aaa"), 3)

    assert skips == [NO_OVERLAP] * 4
    assert overlaps == [NO_OVERLAP] * 4


def test_overlap_table_for_periodic_needle() -> None:
    skips, overlaps = build_overlap_table(ExactComparator(b"abab"), 4)

    assert skips == [NO_OVERLAP, 1, NO_OVERLAP, 3, NO_OVERLAP]
    assert overlaps == [NO_OVERLAP, 0, NO_OVERLAP, 0, NO_OVERLAP]


@pytest.mark.parametrize("seed", range(20))
def test_exact_search_agrees_with_brute_force(seed: int) -> None:
    rng = random.Random(seed)

    for _ in range(50):
        haystack = random_bytes(rng, rng.randint(0, 40), b"ab")
        needle = random_bytes(rng, rng.randint(0, 6), b"ab")
        offsets = brute_offsets(haystack, needle)

        assert find_forward(haystack, needle) == (offsets[0] if offsets else None)
        assert find_backward(haystack, needle) == (offsets[-1] if offsets else None)


@pytest.mark.parametrize("seed", range(20))
def test_masked_search_agrees_with_brute_force(seed: int) -> None:
    rng = random.Random(1000 + seed)

    for _ in range(50):
        haystack = random_bytes(rng, rng.randint(0, 40), b"\x00\x01\x10\x11")
        size = rng.randint(0, 6)
        needle = random_bytes(rng, size, b"\x00\x01\x10\x11")
        mask = random_bytes(rng, size, b"\x00\x01\x10\x11\xff")
        offsets = brute_offsets(haystack, needle, mask)

        assert find_forward_masked(haystack, needle, mask) == (offsets[0] if offsets else None)
        assert find_backward_masked(haystack, needle, mask) == (offsets[-1] if offsets else None)


@pytest.mark.parametrize("seed", range(10))
def test_all_ones_mask_matches_exact_search(seed: int) -> None:
    rng = random.Random(2000 + seed)

    for _ in range(50):
        haystack = random_bytes(rng, rng.randint(0, 30), b"xyz")
        needle = random_bytes(rng, rng.randint(1, 4), b"xyz")
        ones = b"\xff" * len(needle)

        assert find_forward_masked(haystack, needle, ones) == find_forward(haystack, needle)
        assert find_backward_masked(haystack, needle, ones) == find_backward(haystack, needle)


def test_search_accepts_memoryview() -> None:
    view = memoryview(b"hello world")

    assert find_forward(view, b"o") == 4
    assert find_backward(view, memoryview(b"o")) == 7


def test_repeated_searches_are_stable() -> None:
    haystack = b"abracadabra"

    first = [find_forward(haystack, b"abra"), find_backward(haystack, b"abra")]
    second = [find_forward(haystack, b"abra"), find_backward(haystack, b"abra")]

    assert first == second == [0, 7]


def test_search_pattern_validates_mask() -> None:
    with pytest.raises(PatternSyntaxError):
        SearchPattern(b"ab", b"\xff")


def test_search_pattern_dispatch() -> None:
    plain = SearchPattern(bytearray(b"ab"))
    masked = SearchPattern(b"a\x00", b"\xff\x00")

    assert isinstance(plain.data, bytes)
    assert not plain.is_masked
    assert masked.is_masked
    assert len(masked) == 2
    assert plain.find_forward(b"xxabab") == 2
    assert plain.find_backward(b"xxabab") == 4
    assert masked.find_forward(b"xaz") == 1
    assert masked.find_backward(b"azaq") == 2


def make_engine(data: bytes) -> SearchEngine:
    return SearchEngine(ByteBuffer.from_bytes(data))


def test_engine_find_next_from_offset() -> None:
    engine = make_engine(b"abcabcabc")

    result = engine.find_next(SearchPattern(b"abc"), 1)

    assert result.position == 3
    assert result.length == 3


def test_engine_find_previous_before_offset() -> None:
    engine = make_engine(b"abcabcabc")

    assert engine.find_previous(SearchPattern(b"abc"), 6).position == 3
    assert engine.find_previous(SearchPattern(b"abc"), 5).position == 0
    assert engine.find_previous(SearchPattern(b"abc"), 2) is None
    assert engine.find_previous(SearchPattern(b"abc")).position == 6


def test_engine_repeats_last_pattern() -> None:
    engine = make_engine(b"xyxyxy")
    engine.find_next(SearchPattern(b"xy"))

    assert engine.find_next(start_pos=1).position == 2
    assert engine.last_search == SearchPattern(b"xy")


def test_engine_without_pattern() -> None:
    engine = make_engine(b"xyz")

    with pytest.raises(NoSearchPatternError):
        engine.find_next()

    with pytest.raises(NoSearchPatternError):
        engine.find_previous()


def test_engine_find_all_includes_overlaps() -> None:
    engine = make_engine(b"aaaa")

    assert [r.position for r in engine.find_all(SearchPattern(b"aa"))] == [0, 1, 2]


def test_engine_past_end() -> None:
    engine = make_engine(b"abc")

    assert engine.find_next(SearchPattern(b"a"), 3) is None
    assert engine.find_previous(SearchPattern(b"a"), 0) is None
