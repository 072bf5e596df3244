"""Per-kind field parsers.

Each parser receives the raw tag-delimited text of one block and pulls out
named sub-fields by locating known inner markers.  Every field is optional:
a missing marker leaves the field unset instead of failing the parse, and
no parser raises on malformed input.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Callable

from ..patterns import UNTRUSTED_PATTERN, inner_pattern, inner_text
from ..types import (
    Block,
    CommandFields,
    ExtractionConfig,
    Kind,
    LocalCommandFields,
    ObservationFields,
    ParsedFields,
    TaskNotificationFields,
    ToolCallFields,
    ToolErrorFields,
    UnknownFields,
    UntrustedFields,
)
from .sanitizer import sanitize

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = ExtractionConfig()

# Single-line markers; multi-line ones are read with inner_text()

# Tool calls
_TOOL_NAME = inner_pattern("tool_name")
_WHAT_HAPPENED = inner_pattern("what_happened")
_WORKING_DIRECTORY = inner_pattern("working_directory")

# Observations
_TYPE = inner_pattern("type")
_TITLE = inner_pattern("title")
_SUBTITLE = inner_pattern("subtitle")
_FACT = inner_pattern("fact")
_FILE = inner_pattern("file")

# Task notifications
_TASK_ID = inner_pattern("task-id")
_STATUS = inner_pattern("status")
_SUMMARY = inner_pattern("summary")

# Commands
_COMMAND_NAME = inner_pattern("command-name")

_TOOL_ERROR_TAG = re.compile(r"</?tool_use_error>")
_UNTRUSTED = re.compile(UNTRUSTED_PATTERN)
_UNKNOWN = re.compile(r"^<([a-z][a-z0-9_-]*)>([\s\S]*)</\1>$", re.IGNORECASE)


def _first(pattern: re.Pattern[str], text: str) -> str | None:
    """Trimmed body of the first match, or None when absent or blank."""
    m = pattern.search(text)
    if m is None:
        return None
    value = m.group(1).strip()
    return value or None


def _block(text: str, tag: str) -> str | None:
    """Trimmed body of the first multi-line ``tag`` pair, or None."""
    body = inner_text(text, tag)
    if body is None:
        return None
    return body.strip() or None


def _all(container_tag: str, inner: re.Pattern[str], text: str) -> tuple[str, ...]:
    container = inner_text(text, container_tag)
    if container is None:
        return ()
    return tuple(v.strip() for v in inner.findall(container) if v.strip())


def line_count(text: str) -> int:
    return len(text.split("\n")) if text else 0


def _truncate(text: str, limit: int, marker: str = "") -> str:
    if len(text) <= limit:
        return text
    return text[: limit - len(marker)] + marker


def summarize_parameters(payload: str, max_length: int = 100) -> str:
    """Display summary for a tool ``parameters`` payload.

    JSON objects surface their ``file_path``; anything else decodable is
    shown as compact JSON.  Undecodable payloads fall back to the raw text.
    Results are truncated to *max_length* characters.
    """
    raw = payload.strip()
    try:
        decoded = json.loads(raw)
        if isinstance(decoded, str):
            # Double-encoded payload: a JSON string holding JSON
            decoded = json.loads(decoded)
    except (ValueError, RecursionError):
        if len(raw) >= 2 and raw[0] == raw[-1] == '"':
            raw = raw[1:-1]
        logger.debug("Undecodable parameters payload (%d chars)", len(raw))
        return raw[:max_length]

    if isinstance(decoded, dict):
        file_path = decoded.get("file_path")
        if isinstance(file_path, str) and file_path:
            return file_path[:max_length]
    try:
        compact = json.dumps(decoded, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError, RecursionError):
        return raw[:max_length]
    return compact[:max_length]


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------

def parse_tool_call(raw: str, config: ExtractionConfig = _DEFAULT_CONFIG) -> ToolCallFields:
    params = inner_text(raw, "parameters")
    summary = None
    if params is not None and params.strip():
        summary = summarize_parameters(params, config.parameter_summary_max)
    return ToolCallFields(
        tool_name=_first(_TOOL_NAME, raw),
        parameter_summary=summary,
        what_happened=_first(_WHAT_HAPPENED, raw),
        working_directory=_first(_WORKING_DIRECTORY, raw),
        outcome=_block(raw, "outcome"),
    )


def parse_observation(raw: str, config: ExtractionConfig = _DEFAULT_CONFIG) -> ObservationFields:
    return ObservationFields(
        category=_first(_TYPE, raw),
        title=_first(_TITLE, raw),
        subtitle=_first(_SUBTITLE, raw),
        facts=_all("facts", _FACT, raw),
        narrative=_block(raw, "narrative"),
        files_read=_all("files_read", _FILE, raw),
        files_modified=_all("files_modified", _FILE, raw),
    )


def parse_local_command(raw: str, config: ExtractionConfig = _DEFAULT_CONFIG) -> LocalCommandFields:
    stdout = inner_text(raw, "local-command-stdout")
    stderr = inner_text(raw, "local-command-stderr")
    return LocalCommandFields(
        stdout=stdout.strip() if stdout is not None else None,
        stderr=stderr.strip() if stderr is not None else None,
    )


def parse_task_notification(raw: str, config: ExtractionConfig = _DEFAULT_CONFIG) -> TaskNotificationFields:
    return TaskNotificationFields(
        task_id=_first(_TASK_ID, raw),
        status=_first(_STATUS, raw),
        summary=_first(_SUMMARY, raw),
        result=_block(raw, "result"),
    )


def parse_command(raw: str, config: ExtractionConfig = _DEFAULT_CONFIG) -> CommandFields:
    args = _block(raw, "command-args") or ""
    return CommandFields(
        name=_first(_COMMAND_NAME, raw) or "",
        message=_block(raw, "command-message"),
        args_body=args,
        default_expanded=line_count(args) <= config.collapse_line_threshold,
    )


def parse_tool_error(raw: str, config: ExtractionConfig = _DEFAULT_CONFIG) -> ToolErrorFields:
    error_text = _TOOL_ERROR_TAG.sub("", raw).strip()
    first_line = error_text.split("\n")[0].strip()
    return ToolErrorFields(
        error_text=error_text,
        headline=_truncate(first_line, config.error_headline_max, "..."),
    )


def parse_untrusted(raw: str, config: ExtractionConfig = _DEFAULT_CONFIG) -> UntrustedFields:
    m = _UNTRUSTED.match(raw)
    if m is None:
        suffix, inner = "", raw.strip()
    else:
        suffix, inner = m.group("suffix"), m.group("inner").strip()
    lines = line_count(inner)
    return UntrustedFields(
        suffix=suffix,
        sanitized=sanitize(inner),
        line_count=lines,
        default_expanded=lines <= config.collapse_line_threshold,
    )


def parse_unknown(raw: str, config: ExtractionConfig = _DEFAULT_CONFIG) -> UnknownFields:
    m = _UNKNOWN.match(raw)
    if m is None:
        return UnknownFields(body=raw.strip())
    return UnknownFields(tag_name=m.group(1), body=m.group(2).strip())


_PARSERS: dict[Kind, Callable[[str, ExtractionConfig], ParsedFields]] = {
    Kind.OBSERVED_ACTION: parse_tool_call,
    Kind.TOOL_CALL: parse_tool_call,
    Kind.OBSERVATION: parse_observation,
    Kind.LOCAL_COMMAND_OUTPUT: parse_local_command,
    Kind.TASK_NOTIFICATION: parse_task_notification,
    Kind.COMMAND_INVOCATION: parse_command,
    Kind.TOOL_ERROR: parse_tool_error,
    Kind.UNTRUSTED_CONTENT: parse_untrusted,
    Kind.UNKNOWN: parse_unknown,
}


def parse_fields(block: Block, config: ExtractionConfig | None = None) -> ParsedFields | None:
    """Kind-specific fields for *block*; ``None`` for hidden blocks."""
    parser = _PARSERS.get(block.kind)
    if parser is None:
        return None
    return parser(block.raw_text, config or _DEFAULT_CONFIG)
