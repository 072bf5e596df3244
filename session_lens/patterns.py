"""Pattern table for embedded transcript blocks.

Kept in a standalone module so the detector and the extractor share one
priority order. Earlier specs win:

- the untrusted wrapper comes first, so nothing inside it can be claimed
  as trusted markup;
- composite command patterns come before the single-field command
  fragments that would otherwise split the same text into three hidden
  pieces.

Every pair ends at the first closing marker after its opener.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .types import Kind

# Body rules for the last pair of a spec
BODY_ANY = "any"
BODY_NONEMPTY = "nonempty"
BODY_BLANK = "blank"


@dataclass(frozen=True)
class PatternSpec:
    """One entry of the priority table.

    ``tags`` are matched in sequence, separated by optional whitespace.
    ``body`` constrains the last pair's body.  A ``suffixed`` spec is the
    untrusted wrapper, whose closing marker must repeat the opener's suffix.
    """
    name: str
    kind: Kind
    tags: tuple[str, ...]
    body: str = BODY_ANY
    suffixed: bool = False


UNTRUSTED_PREFIX = "untrusted-data-"
UNTRUSTED_SUFFIX = r"[A-Za-z0-9_-]+"

# The closing marker must repeat the opener's suffix; a differently-suffixed
# closer inside the payload is payload text.
UNTRUSTED_PATTERN = (
    rf"<{UNTRUSTED_PREFIX}(?P<suffix>{UNTRUSTED_SUFFIX})>"
    r"(?P<inner>[\s\S]*?)"
    rf"</{UNTRUSTED_PREFIX}(?P=suffix)>"
)
UNTRUSTED_OPENER = re.compile(rf"<{UNTRUSTED_PREFIX}({UNTRUSTED_SUFFIX})>")
UNTRUSTED_CLOSER = re.compile(rf"</{UNTRUSTED_PREFIX}({UNTRUSTED_SUFFIX})>")

_COMMAND = ("command-name", "command-message", "command-args")

KNOWN_PATTERNS: tuple[PatternSpec, ...] = (
    PatternSpec("untrusted_data", Kind.UNTRUSTED_CONTENT, ("untrusted-data",), suffixed=True),
    PatternSpec("observed_from_primary_session", Kind.OBSERVED_ACTION, ("observed_from_primary_session",)),
    PatternSpec("observation", Kind.OBSERVATION, ("observation",)),
    PatternSpec("tool_call", Kind.TOOL_CALL, ("tool_call",)),
    PatternSpec("local_command_stdout", Kind.LOCAL_COMMAND_OUTPUT, ("local-command-stdout",)),
    PatternSpec("local_command_stderr", Kind.LOCAL_COMMAND_OUTPUT, ("local-command-stderr",)),
    PatternSpec("task_notification", Kind.TASK_NOTIFICATION, ("task-notification",)),
    PatternSpec("tool_use_error", Kind.TOOL_ERROR, ("tool_use_error",)),
    # Composite command invocations, either name/message order
    PatternSpec("command_name_message_args", Kind.COMMAND_INVOCATION, _COMMAND, body=BODY_NONEMPTY),
    PatternSpec(
        "command_message_name_args", Kind.COMMAND_INVOCATION,
        (_COMMAND[1], _COMMAND[0], _COMMAND[2]), body=BODY_NONEMPTY,
    ),
    # Hidden: system noise and leftover command fragments
    PatternSpec("local_command_caveat", Kind.HIDDEN, ("local-command-caveat",)),
    PatternSpec("system_reminder", Kind.HIDDEN, ("system-reminder",)),
    PatternSpec("empty_command_args", Kind.HIDDEN, ("command-args",), body=BODY_BLANK),
    PatternSpec("command_message", Kind.HIDDEN, ("command-message",)),
    PatternSpec("command_name", Kind.HIDDEN, ("command-name",)),
    PatternSpec("claude_mem_context", Kind.HIDDEN, ("claude-mem-context",)),
)

# Fallback for any other same-name tag pair (names compare case-insensitively).
GENERIC_OPENER = re.compile(r"<([a-z][a-z0-9_-]*)>", re.IGNORECASE)
GENERIC_CLOSER = re.compile(r"</([a-z][a-z0-9_-]*)>", re.IGNORECASE)

# Generic pairs must be strictly longer than this to count as Unknown.
DEFAULT_MIN_UNKNOWN_LENGTH = 20


def inner_pattern(tag: str) -> re.Pattern[str]:
    """Pattern capturing the single-line body of ``<tag>...</tag>`` as group 1."""
    return re.compile(rf"<{re.escape(tag)}>([^<]+)</{re.escape(tag)}>")


def inner_text(text: str, tag: str) -> str | None:
    """Body of the first ``<tag>...</tag>`` pair in *text*, or None.

    Only the first opener is considered: a later opener can only reach a
    closer that the first one reaches too.
    """
    opener, closer = f"<{tag}>", f"</{tag}>"
    start = text.find(opener)
    if start == -1:
        return None
    body_start = start + len(opener)
    close = text.find(closer, body_start)
    if close == -1:
        return None
    return text[body_start:close]
