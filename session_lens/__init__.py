"""session-lens: typed segmentation of assistant-session transcripts."""

from .config import load_config
from .core.detector import detect
from .core.extractor import extract
from .core.sanitizer import sanitize
from .core.segmenter import SegmentCache, segment, segment_message
from .types import (
    Block,
    Kind,
    Message,
    SessionLensConfig,
    TagSegment,
    TextSegment,
    Transcript,
)

__version__ = "0.1.0"

__all__ = [
    "load_config",
    "detect",
    "extract",
    "sanitize",
    "segment",
    "segment_message",
    "SegmentCache",
    "Block",
    "Kind",
    "Message",
    "SessionLensConfig",
    "TagSegment",
    "TextSegment",
    "Transcript",
]
