"""Content segmentation: interleave plain text with classified tag blocks."""

from __future__ import annotations

import hashlib
import logging
import threading
from collections import OrderedDict

from ..types import Block, ExtractionConfig, Kind, Segment, TagSegment, TextSegment
from .extractor import extract
from .fields import parse_fields

logger = logging.getLogger(__name__)


def segment(
    text: str,
    blocks: list[Block],
    config: ExtractionConfig | None = None,
) -> tuple[Segment, ...]:
    """Split *text* into ordered text and tag segments.

    Gap text is trimmed and dropped when empty.  Hidden blocks are consumed
    without producing a segment.  *blocks* must be sorted and disjoint, as
    returned by :func:`extract`.  Text without blocks comes back unmodified
    as a single segment.
    """
    if not blocks:
        return (TextSegment(content=text),) if text else ()

    segments: list[Segment] = []
    cursor = 0

    for block in blocks:
        if block.start > cursor:
            gap = text[cursor:block.start].strip()
            if gap:
                segments.append(TextSegment(content=gap))
        if block.kind is not Kind.HIDDEN:
            segments.append(TagSegment(block=block, fields=parse_fields(block, config)))
        cursor = block.end

    if cursor < len(text):
        trailing = text[cursor:].strip()
        if trailing:
            segments.append(TextSegment(content=trailing))

    return tuple(segments)


class SegmentCache:
    """Bounded LRU of ``text -> segments``, keyed by a content hash.

    Safe to share between threads; the segments themselves are immutable.
    """

    def __init__(self, max_entries: int = 256) -> None:
        self.max_entries = max(1, max_entries)
        self._entries: OrderedDict[str, tuple[Segment, ...]] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def key_for(text: str) -> str:
        return hashlib.sha256(text.encode("utf-8", "surrogatepass")).hexdigest()

    def get(self, text: str) -> tuple[Segment, ...] | None:
        key = self.key_for(text)
        with self._lock:
            found = self._entries.get(key)
            if found is None:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return found

    def put(self, text: str, segments: tuple[Segment, ...]) -> None:
        key = self.key_for(text)
        with self._lock:
            self._entries[key] = segments
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Segment cache evicted %s", evicted[:12])

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def cache_info(self) -> dict:
        with self._lock:
            return {
                "hits": self.hits,
                "misses": self.misses,
                "size": len(self._entries),
                "max_entries": self.max_entries,
            }


def segment_message(
    text: str,
    config: ExtractionConfig | None = None,
    cache: SegmentCache | None = None,
) -> tuple[Segment, ...]:
    """Full pipeline: extract blocks, parse fields, and segment *text*."""
    if cache is not None:
        cached = cache.get(text)
        if cached is not None:
            return cached

    cfg = config or ExtractionConfig()
    blocks = extract(text, min_unknown_length=cfg.min_unknown_length)
    result = segment(text, blocks, cfg)

    if cache is not None:
        cache.put(text, result)
    return result
