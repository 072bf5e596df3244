"""Transcript loading: JSONL session files into Message records.

Each line is one JSON event.  Only ``user``/``assistant``/``system`` events
with a ``message`` are kept; list content contributes its ``text`` blocks.
Undecodable lines are counted and skipped.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path

from .types import Message, Transcript

logger = logging.getLogger(__name__)

_ROLES = ("user", "assistant", "system")

# Session ids become file names; keep them to a safe alphabet.
SESSION_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")


def _parse_timestamp(value) -> datetime | None:
    """ISO 8601 string or unix epoch seconds."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def _content_text(content) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [
            b.get("text", "")
            for b in content
            if isinstance(b, dict) and b.get("type") == "text" and isinstance(b.get("text"), str)
        ]
        return "\n".join(p for p in parts if p)
    return ""


def parse_line(line: str) -> Message | None:
    """Parse one JSONL event into a Message, or None when not displayable."""
    data = json.loads(line)
    if not isinstance(data, dict):
        return None
    msg = data.get("message")
    if not isinstance(msg, dict):
        return None
    role = msg.get("role") or data.get("type")
    if role not in _ROLES:
        return None
    text = _content_text(msg.get("content"))
    if not text:
        return None
    return Message(
        role=role,
        content=text,
        timestamp=_parse_timestamp(data.get("timestamp")),
        uuid=str(data.get("uuid", "")),
    )


def parse_transcript(text: str, session_id: str = "") -> Transcript:
    transcript = Transcript(session_id=session_id)
    for lineno, line in enumerate(text.splitlines(), 1):
        if not line.strip():
            continue
        try:
            msg = parse_line(line)
        except (json.JSONDecodeError, RecursionError):
            transcript.skipped_lines += 1
            logger.debug("Skipping malformed line %d in %s", lineno, session_id or "<input>")
            continue
        if msg is not None:
            transcript.messages.append(msg)
    return transcript


def load_transcript(path: str | Path) -> Transcript:
    """Load a JSONL transcript; the session id is the file stem."""
    p = Path(path)
    return parse_transcript(p.read_text(encoding="utf-8", errors="replace"), session_id=p.stem)


def find_transcript(root: str | Path, session_id: str) -> Path | None:
    """Locate ``<session_id>.jsonl`` under *root* (one project level deep)."""
    if not SESSION_ID_RE.match(session_id):
        raise ValueError(f"Invalid session id: {session_id!r}")
    base = Path(root).expanduser()
    direct = base / f"{session_id}.jsonl"
    if direct.is_file():
        return direct
    if base.is_dir():
        for candidate in sorted(base.glob(f"*/{session_id}.jsonl")):
            if candidate.is_file():
                return candidate
    return None
