"""Shared fixtures for session-lens tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from session_lens.config import load_config
from session_lens.types import SessionLensConfig

TOOL_CALL_MESSAGE = (
    'Some text <tool_call><tool_name>Read</tool_name>'
    '<parameters>{"file_path":"/src/index.ts"}</parameters>'
    '<what_happened>Read a file</what_happened></tool_call> more text'
)

COMMAND_MESSAGE = (
    "<command-name>build</command-name>"
    "<command-message>Build project</command-message>"
    "<command-args>npm run build</command-args>"
)

UNTRUSTED_MESSAGE = "<untrusted-data-abc123><script>alert(1)</script>Hi</untrusted-data-abc123>"

OBSERVATION_XML = """<observation>
  <type>discovery</type>
  <title>Parser handles nested tags</title>
  <subtitle>Found while reading the extractor</subtitle>
  <facts>
    <fact>Patterns are ordered</fact>
    <fact>Composite commands win</fact>
    <fact>Hidden blocks are dropped</fact>
    <fact>Unknown needs a minimum length</fact>
    <fact>Untrusted content is sanitized</fact>
  </facts>
  <narrative>
    The extractor scans each pattern in priority order.
  </narrative>
  <files_read>
    <file>src/extractor.py</file>
    <file>src/patterns.py</file>
  </files_read>
</observation>"""


@pytest.fixture
def tool_call_message() -> str:
    return TOOL_CALL_MESSAGE


@pytest.fixture
def command_message() -> str:
    return COMMAND_MESSAGE


@pytest.fixture
def untrusted_message() -> str:
    return UNTRUSTED_MESSAGE


@pytest.fixture
def observation_xml() -> str:
    return OBSERVATION_XML


@pytest.fixture
def sample_config() -> SessionLensConfig:
    return load_config(config_dict={
        "extraction": {"min_unknown_length": 20, "cache_size": 8},
        "render": {"fact_preview_count": 3},
    })


def write_transcript(path: Path, events: list[dict]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(json.dumps(e) for e in events) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def transcript_events() -> list[dict]:
    return [
        {
            "type": "user", "uuid": "u1", "timestamp": "2026-01-28T10:00:00Z",
            "message": {"role": "user", "content": "Please read the index file"},
        },
        {
            "type": "assistant", "uuid": "a1", "timestamp": "2026-01-28T10:00:05Z",
            "message": {"role": "assistant", "content": [
                {"type": "thinking", "thinking": "..."},
                {"type": "text", "text": TOOL_CALL_MESSAGE},
            ]},
        },
        {
            "type": "user", "uuid": "u2", "timestamp": 1769594410,
            "message": {"role": "user", "content": UNTRUSTED_MESSAGE},
        },
        {
            "type": "user", "uuid": "u3",
            "message": {"role": "user", "content": [
                {"type": "tool_result", "tool_use_id": "t1", "content": "ok"},
            ]},
        },
        {"type": "summary", "summary": "not a message"},
    ]
