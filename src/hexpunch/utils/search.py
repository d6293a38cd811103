"""
Search functionality for the hex editor.

Byte patterns are located with a Knuth-Morris-Pratt scan that runs either
forward (leftmost match) or backward (rightmost match), comparing bytes
exactly or through a bit mask where cleared bits are "don't care".
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple, Union

from ..errors import NoSearchPatternError, PatternSyntaxError

if TYPE_CHECKING:
    from ..core.buffer import ByteBuffer

logger = logging.getLogger(__name__)

NO_OVERLAP = -1

ByteSequence = Union[bytes, bytearray, memoryview]


class ExactComparator:
    """Plain byte equality against a needle."""

    def __init__(self, needle: Sequence[int]) -> None:
        self.needle = needle

    def matches(self, value: int, index: int) -> bool:
        return value == self.needle[index]

    def same(self, first: int, second: int) -> bool:
        return self.needle[first] == self.needle[second]

    def compatible(self, first: int, second: int) -> bool:
        return self.needle[first] == self.needle[second]


class MaskedComparator:
    """Byte equality restricted to the bits set in a parallel mask."""

    def __init__(self, needle: Sequence[int], mask: Sequence[int]) -> None:
        self.needle = needle
        self.mask = mask

    def matches(self, value: int, index: int) -> bool:
        return ((value ^ self.needle[index]) & self.mask[index]) == 0

    def same(self, first: int, second: int) -> bool:
        # Identical data and mask: a byte matching one position matches the other.
        return (self.needle[first] == self.needle[second]
                and self.mask[first] == self.mask[second])

    def compatible(self, first: int, second: int) -> bool:
        # Some byte can satisfy both positions.
        care = self.mask[first] & self.mask[second]
        return ((self.needle[first] ^ self.needle[second]) & care) == 0


Comparator = Union[ExactComparator, MaskedComparator]


def build_overlap_table(comparator: Comparator, size: int) -> Tuple[List[int], List[int]]:
    """
    Build the failure tables for a needle of ``size`` bytes.

    For every shift ``d`` the needle is correlated with itself: ``overlap``
    counts the leading positions confirmed equal to the positions ``d``
    further on. A mismatch at index ``i`` then resumes the scan at window
    ``m + skips[i]`` with ``overlaps[i]`` bytes already matched, or skips past
    the mismatching byte when ``skips[i]`` is ``NO_OVERLAP``.

    For exact comparison this is the classic table, ``skips[i] == i -
    overlaps[i]``. Masked comparison is not transitive, so shifts whose bytes
    are only compatible stay candidates and resume from the confirmed prefix.

    Args:
        comparator: Comparator wrapping the needle (and mask)
        size: Needle length

    Returns:
        Tuple[List[int], List[int]]: ``(skips, overlaps)``, each ``size + 1`` long
    """

    skips = [NO_OVERLAP] * (size + 1)
    overlaps = [NO_OVERLAP] * (size + 1)

    for shift in range(1, size):
        overlap = 0
        while overlap < size - shift and comparator.same(overlap, shift + overlap):
            overlap += 1

        reach = overlap
        while reach < size - shift and comparator.compatible(reach, shift + reach):
            reach += 1

        for index in range(overlap, reach + 1):
            position = shift + index
            if position >= size:
                break

            # Failing a position also fails an identical one.
            if overlap < index < reach and comparator.same(index, position):
                continue

            # Shifts are visited in increasing order; the first one recorded is
            # the smallest shift, i.e. the longest overlap.
            if skips[position] == NO_OVERLAP:
                skips[position] = shift
                overlaps[position] = overlap

    return skips, overlaps


def _search(haystack: ByteSequence, needle: ByteSequence,
            mask: Optional[ByteSequence], backward: bool) -> Optional[int]:
    size = len(needle)
    length = len(haystack)

    if not length or not size or size > length:
        return None

    if mask is not None and len(mask) != size:
        raise PatternSyntaxError(
            f"Mask length {len(mask)} does not match pattern length {size}")

    if backward:
        needle = bytes(needle)[::-1]
        mask = bytes(mask)[::-1] if mask is not None else None

    if mask is None:
        comparator: Comparator = ExactComparator(needle)
    else:
        comparator = MaskedComparator(needle, mask)

    skips, overlaps = build_overlap_table(comparator, size)

    last = length - 1
    window = 0
    matched = 0

    while window + matched < length:
        index = window + matched
        value = haystack[last - index] if backward else haystack[index]

        if comparator.matches(value, matched):
            matched += 1
            if matched == size:
                return length - window - size if backward else window
            continue

        if skips[matched] == NO_OVERLAP:
            window += matched + 1
            matched = 0
        else:
            window += skips[matched]
            matched = overlaps[matched]

    return None


def find_forward(haystack: ByteSequence, needle: ByteSequence) -> Optional[int]:
    """Return the offset of the leftmost occurrence of ``needle``, or None."""

    return _search(haystack, needle, None, backward=False)


def find_backward(haystack: ByteSequence, needle: ByteSequence) -> Optional[int]:
    """Return the offset of the rightmost occurrence of ``needle``, or None."""

    return _search(haystack, needle, None, backward=True)


def find_forward_masked(haystack: ByteSequence, needle: ByteSequence,
                        mask: ByteSequence) -> Optional[int]:
    """
    Return the leftmost offset where ``needle`` matches under ``mask``.

    A set mask bit means "compare", a cleared bit means "don't care".

    Args:
        haystack: Bytes to search in
        needle: Pattern bytes
        mask: Per-byte compare mask, same length as ``needle``

    Returns:
        Optional[int]: Offset of the match, or None if there is none
    """

    return _search(haystack, needle, mask, backward=False)


def find_backward_masked(haystack: ByteSequence, needle: ByteSequence,
                         mask: ByteSequence) -> Optional[int]:
    """Return the rightmost offset where ``needle`` matches under ``mask``."""

    return _search(haystack, needle, mask, backward=True)


@dataclass(frozen=True)
class SearchPattern:
    """Pattern bytes with an optional compare mask."""

    data: bytes
    mask: Optional[bytes] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'data', bytes(self.data))

        if self.mask is None:
            return

        object.__setattr__(self, 'mask', bytes(self.mask))
        if len(self.mask) != len(self.data):
            raise PatternSyntaxError(
                f"Mask length {len(self.mask)} does not match pattern length {len(self.data)}")

    def __len__(self) -> int:
        return len(self.data)

    @property
    def is_masked(self) -> bool:
        return self.mask is not None

    def find_forward(self, haystack: ByteSequence) -> Optional[int]:
        if self.mask is None:
            return find_forward(haystack, self.data)

        return find_forward_masked(haystack, self.data, self.mask)

    def find_backward(self, haystack: ByteSequence) -> Optional[int]:
        if self.mask is None:
            return find_backward(haystack, self.data)

        return find_backward_masked(haystack, self.data, self.mask)


class SearchResult:
    """Represents a search result: where the match starts and how long it is."""

    def __init__(self, position: int, length: int):
        self.position = position
        self.length = length

    def __repr__(self) -> str:
        return f"SearchResult(position={self.position}, length={self.length})"


class SearchEngine:
    """Runs pattern searches over a byte buffer and remembers the last pattern."""

    def __init__(self, buffer: "ByteBuffer") -> None:
        self.buffer = buffer
        self.last_search: Optional[SearchPattern] = None

    def _pattern(self, pattern: Optional[SearchPattern]) -> SearchPattern:
        if pattern is not None:
            self.last_search = pattern
            return pattern

        if self.last_search is None:
            raise NoSearchPatternError("No previous search pattern")

        return self.last_search

    def find_next(self, pattern: Optional[SearchPattern] = None,
                  start_pos: int = 0) -> Optional[SearchResult]:
        """
        Find the first occurrence at or after ``start_pos``.

        Args:
            pattern: Pattern to search for; None repeats the last search
            start_pos: Offset where the searched range begins

        Returns:
            Optional[SearchResult]: The match, or None if there is none
        """

        pattern = self._pattern(pattern)
        size = len(self.buffer)
        start_pos = max(0, start_pos)

        if start_pos >= size:
            return None

        haystack = self.buffer.read(start_pos, size - start_pos)
        found = pattern.find_forward(haystack)
        if found is None:
            logger.debug("Pattern of %d bytes not found after %d", len(pattern), start_pos)
            return None

        position = start_pos + found
        return SearchResult(position, len(pattern))

    def find_previous(self, pattern: Optional[SearchPattern] = None,
                      end_pos: Optional[int] = None) -> Optional[SearchResult]:
        """
        Find the last occurrence lying entirely before ``end_pos``.

        Args:
            pattern: Pattern to search for; None repeats the last search
            end_pos: Exclusive end of the searched range, defaults to the buffer end

        Returns:
            Optional[SearchResult]: The match, or None if there is none
        """

        pattern = self._pattern(pattern)
        size = len(self.buffer)
        end_pos = size if end_pos is None else min(end_pos, size)

        if end_pos <= 0:
            return None

        found = pattern.find_backward(self.buffer.read(0, end_pos))
        if found is None:
            logger.debug("Pattern of %d bytes not found before %d", len(pattern), end_pos)
            return None

        return SearchResult(found, len(pattern))

    def find_all(self, pattern: Optional[SearchPattern] = None) -> List[SearchResult]:
        """Find all (possibly overlapping) occurrences, in address order."""

        pattern = self._pattern(pattern)
        if not len(pattern):
            return []

        results = []
        pos = 0

        while True:
            result = self.find_next(pattern, pos)
            if not result:
                break

            results.append(result)
            pos = result.position + 1

        return results
