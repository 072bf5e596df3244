"""Block extraction: priority-ordered multi-pattern scan with overlap resolution.

Closing-marker offsets are indexed once per text, so resolving the end of
a candidate is a binary search instead of a rescan of the remaining text.
Extraction stays linear in the message length even when openers are
never closed.
"""

from __future__ import annotations

import logging
import re
from bisect import bisect_left, insort
from typing import Callable, Iterator, Optional

from ..patterns import (
    BODY_BLANK,
    BODY_NONEMPTY,
    DEFAULT_MIN_UNKNOWN_LENGTH,
    GENERIC_CLOSER,
    GENERIC_OPENER,
    KNOWN_PATTERNS,
    UNTRUSTED_CLOSER,
    UNTRUSTED_OPENER,
    UNTRUSTED_PREFIX,
    PatternSpec,
)
from ..types import Block, Kind

logger = logging.getLogger(__name__)

_WS = re.compile(r"\s*")

# pos -> (start, end) of the leftmost candidate at or after pos
Finder = Callable[[int], Optional[tuple[int, int]]]


class _SpanSet:
    """Accepted half-open spans, sorted and pairwise disjoint."""

    def __init__(self) -> None:
        self._spans: list[tuple[int, int]] = []

    def intersects(self, start: int, end: int) -> bool:
        # Last span starting before `end` has the largest end of those spans
        i = bisect_left(self._spans, (end,))
        return i > 0 and self._spans[i - 1][1] > start

    def add(self, start: int, end: int) -> None:
        insort(self._spans, (start, end))


def _index(regex: re.Pattern[str], text: str, fold: bool = False) -> dict[str, list[int]]:
    found: dict[str, list[int]] = {}
    for m in regex.finditer(text):
        key = m.group(1).lower() if fold else m.group(1)
        found.setdefault(key, []).append(m.start())
    return found


class _Closers:
    """Sorted offsets of closing markers in one text, built on first use."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._literal: dict[str, list[int]] = {}
        self._generic: dict[str, list[int]] | None = None
        self._untrusted: dict[str, list[int]] | None = None

    @staticmethod
    def _first_at(positions: list[int], pos: int) -> int:
        i = bisect_left(positions, pos)
        return positions[i] if i < len(positions) else -1

    def literal(self, marker: str, pos: int) -> int:
        positions = self._literal.get(marker)
        if positions is None:
            positions = []
            i = self._text.find(marker)
            while i != -1:
                positions.append(i)
                i = self._text.find(marker, i + len(marker))
            self._literal[marker] = positions
        return self._first_at(positions, pos)

    def generic(self, name: str, pos: int) -> int:
        if self._generic is None:
            self._generic = _index(GENERIC_CLOSER, self._text, fold=True)
        return self._first_at(self._generic.get(name.lower(), []), pos)

    def untrusted(self, suffix: str, pos: int) -> int:
        if self._untrusted is None:
            self._untrusted = _index(UNTRUSTED_CLOSER, self._text)
        return self._first_at(self._untrusted.get(suffix, []), pos)


def _tail_end(text: str, closers: _Closers, spec: PatternSpec, pos: int) -> int:
    """End of the pairs after the first one, or -1 when they do not follow."""
    last = len(spec.tags) - 1
    for i in range(1, len(spec.tags)):
        tag = spec.tags[i]
        pos = _WS.match(text, pos).end()
        opener = f"<{tag}>"
        if not text.startswith(opener, pos):
            return -1
        pos += len(opener)
        close = closers.literal(f"</{tag}>", pos)
        if close == -1 or (i == last and spec.body == BODY_NONEMPTY and close == pos):
            return -1
        pos = close + len(tag) + 3
    return pos


def _pair_finder(text: str, spec: PatternSpec, closers: _Closers) -> Finder:
    first = spec.tags[0]
    opener, closer = f"<{first}>", f"</{first}>"
    single = len(spec.tags) == 1
    # Openers sharing a first closer share everything after it
    tails: dict[int, int] = {}

    def find(pos: int) -> tuple[int, int] | None:
        while True:
            start = text.find(opener, pos)
            if start == -1:
                return None
            body = start + len(opener)
            if single and spec.body == BODY_BLANK:
                close = _WS.match(text, body).end()
                if text.startswith(closer, close):
                    return start, close + len(closer)
                pos = start + 1
                continue
            close = closers.literal(closer, body)
            if close == -1:
                # No later opener can be closed either
                return None
            if single:
                if spec.body != BODY_NONEMPTY or close > body:
                    return start, close + len(closer)
            else:
                if close not in tails:
                    tails[close] = _tail_end(text, closers, spec, close + len(closer))
                if tails[close] != -1:
                    return start, tails[close]
            pos = start + 1

    return find


def _untrusted_finder(text: str, closers: _Closers) -> Finder:
    def find(pos: int) -> tuple[int, int] | None:
        while True:
            m = UNTRUSTED_OPENER.search(text, pos)
            if m is None:
                return None
            suffix = m.group(1)
            close = closers.untrusted(suffix, m.end())
            if close != -1:
                return m.start(), close + len(UNTRUSTED_PREFIX) + len(suffix) + 3
            pos = m.start() + 1

    return find


def _generic_finder(text: str, closers: _Closers) -> Finder:
    def find(pos: int) -> tuple[int, int] | None:
        while True:
            m = GENERIC_OPENER.search(text, pos)
            if m is None:
                return None
            name = m.group(1)
            close = closers.generic(name, m.end())
            if close != -1:
                return m.start(), close + len(name) + 3
            pos = m.start() + 1

    return find


def _finder(text: str, spec: PatternSpec, closers: _Closers) -> Finder:
    if spec.suffixed:
        return _untrusted_finder(text, closers)
    return _pair_finder(text, spec, closers)


def _scan(
    find: Finder,
    claimed: _SpanSet,
    min_length: int = 0,
    label: str = "",
) -> Iterator[tuple[int, int]]:
    """Yield ``(start, end)`` for every acceptable candidate.

    A rejected candidate only advances the cursor by one character, so a
    later match that starts inside the rejected span is still found.
    """
    pos = 0
    while True:
        found = find(pos)
        if found is None:
            return
        start, end = found
        if end - start <= min_length or claimed.intersects(start, end):
            logger.debug("Rejected %s candidate at %d-%d", label or "generic", start, end)
            pos = start + 1
            continue
        claimed.add(start, end)
        yield start, end
        pos = end


def first_span(text: str, spec: PatternSpec) -> tuple[int, int] | None:
    """Leftmost span *spec* matches in *text*, ignoring all other specs."""
    return _finder(text, spec, _Closers(text))(0)


def first_unknown_span(
    text: str,
    min_length: int = DEFAULT_MIN_UNKNOWN_LENGTH,
) -> tuple[int, int] | None:
    """Leftmost generic pair strictly longer than *min_length*."""
    scan = _scan(_generic_finder(text, _Closers(text)), _SpanSet(), min_length)
    return next(scan, None)


def extract(
    text: str,
    *,
    min_unknown_length: int = DEFAULT_MIN_UNKNOWN_LENGTH,
    patterns: tuple[PatternSpec, ...] = KNOWN_PATTERNS,
) -> list[Block]:
    """Locate and classify every embedded block in *text*.

    Known patterns are tried in priority order; a match is accepted only if
    it does not intersect an already-accepted span.  Remaining same-name
    tag pairs strictly longer than *min_unknown_length* become ``Unknown``.
    Returns blocks sorted by start offset.
    """
    if not text or "<" not in text:
        return []

    closers = _Closers(text)
    claimed = _SpanSet()
    blocks: list[Block] = []

    for spec in patterns:
        for start, end in _scan(_finder(text, spec, closers), claimed, label=spec.name):
            blocks.append(Block(raw_text=text[start:end], kind=spec.kind, start=start, end=end))

    generic = _generic_finder(text, closers)
    for start, end in _scan(generic, claimed, min_length=min_unknown_length):
        blocks.append(Block(raw_text=text[start:end], kind=Kind.UNKNOWN, start=start, end=end))

    blocks.sort(key=lambda b: b.start)
    return blocks
