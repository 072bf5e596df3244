"""Command-tag helpers for user messages.

Slash commands and hooks inject ``<command-name>``-style markers into user
messages.  These helpers decide whether a message is system noise and
recover the human-typed part of a command message.
"""

from __future__ import annotations

import re

SYSTEM_PREFIXES: tuple[str, ...] = (
    "<local-command-caveat>",
    "<command-name>",
    "<command-message>",
    "<local-command-stdout>",
    "<system-reminder>",
    '{"type":"tool_result"',
)

STRIPPED_TAGS: tuple[str, ...] = (
    "command-name",
    "command-message",
    "command-args",
    "local-command-stdout",
    "system-reminder",
)

_NAME_RE = re.compile(r"<command-name>[\s\S]*?</command-name>\s*")
_MESSAGE_RE = re.compile(r"<command-message>[\s\S]*?</command-message>\s*")
_ARGS_RE = re.compile(r"<command-args>([\s\S]*?)</command-args>")


def is_system_content(text: str) -> bool:
    """True when a user message is empty or starts with a system/hook marker."""
    trimmed = text.strip()
    return not trimmed or trimmed.startswith(SYSTEM_PREFIXES)


def strip_command_tags(text: str) -> str:
    """Remove complete command/system tag pairs and trim the result.

    An opener without a closer stops stripping for that tag; the remaining
    text is kept as-is.
    """
    result = text
    for tag in STRIPPED_TAGS:
        open_tag = f"<{tag}>"
        close_tag = f"</{tag}>"
        while True:
            start = result.find(open_tag)
            if start == -1:
                break
            close = result.find(close_tag, start)
            if close == -1:
                break
            result = result[:start] + result[close + len(close_tag):]
    return result.strip()


def clean_command_tags(text: str) -> str:
    """Recover the user-typed part of a slash-command message.

    A non-empty ``<command-args>`` body wins; otherwise the name and message
    markers (and an empty args pair) are removed and the rest is returned.
    """
    m = _ARGS_RE.search(text)
    if m is not None:
        args = m.group(1).strip()
        if args:
            return args
    cleaned = _NAME_RE.sub("", text)
    cleaned = _MESSAGE_RE.sub("", cleaned)
    cleaned = _ARGS_RE.sub("", cleaned)
    return cleaned.strip()
