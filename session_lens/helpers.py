"""Shared serialization helpers for the JSON API and the CLI."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime

from .types import Block, Message, Segment, TextSegment


def dt_to_str(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None


def block_to_dict(block: Block) -> dict:
    return {
        "kind": block.kind.value,
        "start": block.start,
        "end": block.end,
        "raw_text": block.raw_text,
    }


def segment_to_dict(seg: Segment) -> dict:
    if isinstance(seg, TextSegment):
        return {"type": "text", "content": seg.content}
    fields = asdict(seg.fields) if seg.fields is not None else {}
    # Derived values the renderer relies on
    if hasattr(seg.fields, "output"):
        fields["output"] = seg.fields.output
        fields["is_error"] = seg.fields.is_error
    return {
        "type": "tag",
        "kind": seg.block.kind.value,
        "block": block_to_dict(seg.block),
        "fields": {k: list(v) if isinstance(v, tuple) else v for k, v in fields.items()},
    }


def segments_to_list(segments) -> list[dict]:
    return [segment_to_dict(s) for s in segments]


def message_to_dict(message: Message, segments) -> dict:
    return {
        "role": message.role,
        "uuid": message.uuid,
        "timestamp": dt_to_str(message.timestamp),
        "segments": segments_to_list(segments),
    }
