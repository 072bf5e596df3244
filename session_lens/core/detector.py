"""Tag detection: cheap single-shot classification without full extraction."""

from __future__ import annotations

from ..patterns import DEFAULT_MIN_UNKNOWN_LENGTH, KNOWN_PATTERNS
from ..types import Kind
from .extractor import extract, first_span, first_unknown_span


def detect(text: str, *, min_unknown_length: int = DEFAULT_MIN_UNKNOWN_LENGTH) -> Kind | None:
    """Return the kind of the highest-priority block present in *text*.

    Uses the extractor's pattern order and matchers.  Falls back to
    ``Kind.UNKNOWN`` when only a generic tag pair longer than
    *min_unknown_length* is present, and ``None`` when nothing block-like
    is found.
    """
    if not text or "<" not in text:
        return None
    for spec in KNOWN_PATTERNS:
        if first_span(text, spec) is not None:
            return spec.kind
    if first_unknown_span(text, min_unknown_length) is not None:
        return Kind.UNKNOWN
    return None


def has_renderable_block(
    text: str,
    *,
    min_unknown_length: int = DEFAULT_MIN_UNKNOWN_LENGTH,
) -> bool:
    """True when *text* holds at least one block that produces a segment."""
    kind = detect(text, min_unknown_length=min_unknown_length)
    if kind is Kind.HIDDEN:
        # Lower-priority kinds may still sit beside the hidden block.
        blocks = extract(text, min_unknown_length=min_unknown_length)
        return any(b.kind is not Kind.HIDDEN for b in blocks)
    return kind is not None
