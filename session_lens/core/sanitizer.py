"""Sanitization gate for untrusted, externally-sourced content.

Every markup-significant character is replaced with an HTML character
reference, so the result carries no tag delimiters, quotes, or attribute
assignments.  Inside a literal text container the references decode back
to the original characters: ``<script>`` is shown, never executed.

Existing well-formed character references are left alone, which makes
the gate idempotent: ``sanitize(sanitize(x)) == sanitize(x)``.
"""

from __future__ import annotations

import re

_REPLACEMENTS: dict[str, str] = {
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "`": "&#x60;",
    "=": "&#x3D;",
}

# A bare ampersand, or one of the markup characters above.
_UNSAFE_RE = re.compile(
    r"&(?!(?:[A-Za-z][A-Za-z0-9]{1,31}|#[0-9]{1,7}|#[xX][0-9A-Fa-f]{1,6});)"
    r"|[<>\"'`=]"
)

# Characters that must never survive the gate.
FORBIDDEN_CHARS = frozenset(_REPLACEMENTS)


def _replace(match: re.Match[str]) -> str:
    ch = match.group(0)
    if ch == "&":
        return "&amp;"
    return _REPLACEMENTS[ch]


def sanitize(inner_text: str | None) -> str:
    """Neutralize untrusted text for display in a non-markup container.

    Returns ``""`` for empty or whitespace-only input.
    """
    if not inner_text or not inner_text.strip():
        return ""
    # Lone surrogates cannot be encoded by the response layer.
    text = inner_text.encode("utf-8", "replace").decode("utf-8")
    return _UNSAFE_RE.sub(_replace, text)


def is_inert(text: str) -> bool:
    """True when *text* carries no markup-significant characters."""
    if any(ch in FORBIDDEN_CHARS for ch in text):
        return False
    return _UNSAFE_RE.search(text) is None
