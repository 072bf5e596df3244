"""HTML rendering of segments: one widget per Kind plus a generic fallback.

Every piece of message text is escaped.  Untrusted payloads are only ever
placed inside ``<pre>`` as gate output; they never pass through markup.
"""

from __future__ import annotations

import html
from dataclasses import asdict, is_dataclass

from .core.fields import parse_fields
from .core.sanitizer import sanitize
from .core.segmenter import SegmentCache, segment_message
from .types import (
    CommandFields,
    ExtractionConfig,
    Kind,
    LocalCommandFields,
    Message,
    ObservationFields,
    RenderConfig,
    Segment,
    TagSegment,
    TaskNotificationFields,
    TextSegment,
    ToolCallFields,
    ToolErrorFields,
    Transcript,
    UntrustedFields,
)

LABELS: dict[Kind, str] = {
    Kind.OBSERVED_ACTION: "Tool Call",
    Kind.OBSERVATION: "Observation",
    Kind.TOOL_CALL: "Tool",
    Kind.LOCAL_COMMAND_OUTPUT: "Command Output",
    Kind.TASK_NOTIFICATION: "Agent Task",
    Kind.COMMAND_INVOCATION: "Command",
    Kind.TOOL_ERROR: "Tool Error",
    Kind.UNTRUSTED_CONTENT: "External Content",
    Kind.HIDDEN: "Hidden",
    Kind.UNKNOWN: "Structured Content",
}


def _e(text: str | None) -> str:
    return html.escape(text or "", quote=True)


def _card(kind: Kind, summary: str, body: str, *, open_: bool = False) -> str:
    attr = " open" if open_ else ""
    return (
        f'<details class="sl-card sl-{kind.value}"{attr}>'
        f'<summary><span class="sl-label">{_e(LABELS[kind])}</span> '
        f'<span class="sl-summary">{summary}</span></summary>'
        f'<div class="sl-body">{body}</div></details>'
    )


# ---------------------------------------------------------------------------
# Widgets
# ---------------------------------------------------------------------------

def _render_text(seg: TextSegment) -> str:
    return f'<div class="sl-text">{_e(seg.content)}</div>'


def _render_tool_call(kind: Kind, f: ToolCallFields) -> str:
    if kind is Kind.OBSERVED_ACTION:
        summary = _e(f.what_happened or "Action")
        if f.parameter_summary:
            filename = f.parameter_summary.rsplit("/", 1)[-1] or f.parameter_summary
            summary += f" &middot; {_e(filename)}"
    else:
        summary = _e(f.tool_name or "Tool Call")
        if f.what_happened:
            summary += f" &middot; {_e(f.what_happened)}"
    rows = []
    if f.working_directory:
        rows.append(f'<p class="sl-cwd">{_e(f.working_directory)}</p>')
    if f.parameter_summary:
        rows.append(f'<p class="sl-params"><span class="sl-dim">Input:</span> {_e(f.parameter_summary)}</p>')
    if f.outcome:
        rows.append(f'<p class="sl-outcome">{_e(f.outcome)}</p>')
    return _card(kind, summary, "".join(rows))


def _render_observation(f: ObservationFields, cfg: RenderConfig, expanded: bool) -> str:
    summary = f"{_e(f.category or 'Discovery')} &middot; {_e(f.title or 'Observation')}"
    parts = []
    if f.subtitle:
        parts.append(f'<p class="sl-subtitle">{_e(f.subtitle)}</p>')
    if f.facts:
        shown = f.facts if expanded else f.facts[: cfg.fact_preview_count]
        items = "".join(f"<li>{_e(fact)}</li>" for fact in shown)
        hidden = len(f.facts) - len(shown)
        if hidden > 0:
            items += f'<li class="sl-more">+{hidden} more...</li>'
        parts.append(f'<p class="sl-dim">Key facts:</p><ul class="sl-facts">{items}</ul>')
    if f.narrative:
        parts.append(f'<p class="sl-narrative">{_e(f.narrative)}</p>')
    if f.files_read:
        parts.append(f'<p class="sl-files">Files: {_e(", ".join(f.files_read))}</p>')
    if f.files_modified:
        parts.append(f'<p class="sl-files">Modified: {_e(", ".join(f.files_modified))}</p>')
    return _card(Kind.OBSERVATION, summary, "".join(parts), open_=expanded)


def _render_local_command(f: LocalCommandFields) -> str:
    output = f.output
    cls = "sl-terminal sl-error" if f.is_error else "sl-terminal"
    return f'<pre class="{cls}">{_e(output)}</pre>'


def _render_task_notification(f: TaskNotificationFields, expanded: bool) -> str:
    status = f.status or "unknown"
    summary = f'<span class="sl-status sl-status-{_e(status)}">{_e(status)}</span> {_e(f.summary or "Agent task")}'
    body = f'<div class="sl-result">{_e(f.result)}</div>' if f.result else ""
    return _card(Kind.TASK_NOTIFICATION, summary, body, open_=expanded)


def _render_command(f: CommandFields, expanded: bool) -> str:
    body = ""
    if f.args_body:
        if f.default_expanded or expanded:
            body = f'<pre class="sl-args">{_e(f.args_body)}</pre>'
        else:
            first_line = f.args_body.split("\n")[0]
            body = f'<pre class="sl-args sl-collapsed">{_e(first_line)}...</pre>'
    return _card(Kind.COMMAND_INVOCATION, f'<code>{_e(f.name)}</code>', body, open_=True)


def _render_tool_error(f: ToolErrorFields) -> str:
    summary = _e(f.headline)
    body = f'<pre class="sl-terminal sl-error">{_e(f.error_text)}</pre>'
    return _card(Kind.TOOL_ERROR, summary, body, open_=True)


def _render_untrusted(f: UntrustedFields, cfg: RenderConfig, expanded: bool) -> str:
    # Gate output is idempotent, so re-applying it costs nothing if the
    # fields were built elsewhere.
    text = sanitize(f.sanitized)
    show_all = f.default_expanded or expanded
    if not show_all:
        lines = text.split("\n")
        text = "\n".join(lines[: cfg.untrusted_preview_lines])
        if len(lines) > cfg.untrusted_preview_lines:
            text += "\n..."
    return _card(
        Kind.UNTRUSTED_CONTENT, "",
        f'<pre class="sl-untrusted-body">{text}</pre>',
        open_=True,
    )


def _render_generic(seg: TagSegment) -> str:
    """Key/value display of the parsed fields, or the raw tag body."""
    rows = []
    if seg.fields is not None and is_dataclass(seg.fields):
        for key, value in asdict(seg.fields).items():
            if value in (None, "", (), []):
                continue
            if isinstance(value, (list, tuple)):
                value = ", ".join(str(v) for v in value)
            rows.append(f"<tr><th>{_e(key)}</th><td>{_e(str(value))}</td></tr>")
    if rows:
        body = f'<table class="sl-kv">{"".join(rows)}</table>'
    else:
        body = f'<pre class="sl-raw">{_e(seg.block.raw_text)}</pre>'
    return _card(seg.kind, "", body)


def render_segment(
    seg: Segment,
    config: RenderConfig | None = None,
    *,
    expanded: bool = False,
) -> str:
    """Render one segment to an HTML fragment."""
    cfg = config or RenderConfig()
    if isinstance(seg, TextSegment):
        return _render_text(seg)

    kind = seg.kind
    fields = seg.fields if seg.fields is not None else parse_fields(seg.block)

    if kind is Kind.HIDDEN:
        return ""
    elif kind in (Kind.TOOL_CALL, Kind.OBSERVED_ACTION) and isinstance(fields, ToolCallFields):
        return _render_tool_call(kind, fields)
    elif kind is Kind.OBSERVATION and isinstance(fields, ObservationFields):
        return _render_observation(fields, cfg, expanded)
    elif kind is Kind.LOCAL_COMMAND_OUTPUT and isinstance(fields, LocalCommandFields) and fields.output:
        return _render_local_command(fields)
    elif kind is Kind.TASK_NOTIFICATION and isinstance(fields, TaskNotificationFields):
        return _render_task_notification(fields, expanded)
    elif kind is Kind.COMMAND_INVOCATION and isinstance(fields, CommandFields):
        return _render_command(fields, expanded)
    elif kind is Kind.TOOL_ERROR and isinstance(fields, ToolErrorFields):
        return _render_tool_error(fields)
    elif kind is Kind.UNTRUSTED_CONTENT:
        if not isinstance(fields, UntrustedFields):
            fields = parse_fields(seg.block)
        return _render_untrusted(fields, cfg, expanded)
    else:
        # Unknown and any kind without a bespoke widget
        return _render_generic(TagSegment(block=seg.block, fields=fields))


def render_segments(
    segments: tuple[Segment, ...] | list[Segment],
    config: RenderConfig | None = None,
    *,
    expanded: bool = False,
) -> str:
    return "".join(render_segment(s, config, expanded=expanded) for s in segments)


def render_message(
    message: Message,
    render_config: RenderConfig | None = None,
    extraction_config: ExtractionConfig | None = None,
    cache: SegmentCache | None = None,
) -> str:
    segments = segment_message(message.content, extraction_config, cache)
    role = message.role if message.role in ("user", "assistant", "system") else "system"
    when = ""
    if message.timestamp is not None:
        when = f'<time datetime="{_e(message.timestamp.isoformat())}">{_e(message.timestamp.strftime("%H:%M"))}</time>'
    return (
        f'<article class="sl-message sl-{role}">'
        f'<header><span class="sl-role">{_e(role)}</span>{when}</header>'
        f"{render_segments(segments, render_config)}</article>"
    )


def render_transcript(
    transcript: Transcript,
    render_config: RenderConfig | None = None,
    extraction_config: ExtractionConfig | None = None,
    cache: SegmentCache | None = None,
) -> str:
    """Render a whole transcript as a standalone HTML page."""
    body = "".join(
        render_message(m, render_config, extraction_config, cache)
        for m in transcript.messages
    )
    return _page(_e(transcript.session_id or "session"), body)


STYLE = """\
  :root {
    --bg: #0d1117; --surface: #161b22; --border: #30363d;
    --text: #c9d1d9; --text-dim: #8b949e; --accent: #58a6ff;
    --green: #3fb950; --yellow: #d29922; --red: #f85149; --amber: #e3b341;
  }
  * { margin: 0; padding: 0; box-sizing: border-box; }
  body {
    font-family: 'SF Mono', 'Fira Code', 'Cascadia Code', monospace;
    background: var(--bg); color: var(--text); font-size: 13px; line-height: 1.5;
  }
  .container { max-width: 1000px; margin: 0 auto; padding: 16px; }
  .sl-message { border: 1px solid var(--border); border-radius: 6px; padding: 12px; margin-bottom: 12px; }
  .sl-message header { color: var(--text-dim); margin-bottom: 6px; display: flex; gap: 8px; }
  .sl-user { background: var(--surface); }
  .sl-text { white-space: pre-wrap; margin: 4px 0; }
  .sl-card { border: 1px solid var(--border); border-radius: 6px; margin: 8px 0; }
  .sl-card summary { padding: 6px 10px; cursor: pointer; }
  .sl-body { padding: 6px 10px; border-top: 1px solid var(--border); }
  .sl-label { color: var(--accent); }
  .sl-dim, .sl-cwd, .sl-files { color: var(--text-dim); }
  .sl-terminal { background: #010409; color: var(--green); padding: 6px 10px; white-space: pre-wrap; }
  .sl-error { color: var(--red); }
  .sl-command { border-left: 4px solid #818cf8; }
  .sl-tool_error { border-left: 4px solid var(--red); }
  .sl-untrusted_data { border: 1px dashed var(--amber); border-left: 4px solid var(--amber); }
  .sl-untrusted-body, .sl-args, .sl-raw { white-space: pre-wrap; word-break: break-all; }
  .sl-kv th { text-align: left; color: var(--text-dim); padding-right: 12px; }
"""


def _page(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>\n<html lang=\"en\">\n<head>\n<meta charset=\"utf-8\">\n"
        f"<title>{title}</title>\n<style>\n{STYLE}</style>\n</head>\n"
        f"<body><div class=\"container\">{body}</div></body>\n</html>\n"
    )
