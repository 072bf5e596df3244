"""All dataclasses, enums, and type aliases for session-lens."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Union


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class Kind(str, Enum):
    """Closed set of embedded-block kinds.

    Values are the wire names used by the JSON API and the renderer's CSS
    classes.
    """

    OBSERVED_ACTION = "observed_action"
    OBSERVATION = "observation"
    TOOL_CALL = "tool_call"
    LOCAL_COMMAND_OUTPUT = "local_command"
    TASK_NOTIFICATION = "task_notification"
    COMMAND_INVOCATION = "command"
    TOOL_ERROR = "tool_error"
    UNTRUSTED_CONTENT = "untrusted_data"
    HIDDEN = "hidden"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Block:
    """A matched span of message text classified into one Kind."""
    raw_text: str
    kind: Kind
    start: int
    end: int


# ---------------------------------------------------------------------------
# Parsed fields (one record per kind)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ToolCallFields:
    """Fields for ToolCall and ObservedAction blocks."""
    tool_name: str | None = None
    parameter_summary: str | None = None
    what_happened: str | None = None
    working_directory: str | None = None
    outcome: str | None = None


@dataclass(frozen=True)
class ObservationFields:
    category: str | None = None  # the inner <type> marker
    title: str | None = None
    subtitle: str | None = None
    facts: tuple[str, ...] = ()
    narrative: str | None = None
    files_read: tuple[str, ...] = ()
    files_modified: tuple[str, ...] = ()


@dataclass(frozen=True)
class LocalCommandFields:
    stdout: str | None = None
    stderr: str | None = None

    @property
    def output(self) -> str:
        return (self.stdout or self.stderr or "").strip()

    @property
    def is_error(self) -> bool:
        return self.stderr is not None and self.stdout is None


@dataclass(frozen=True)
class TaskNotificationFields:
    task_id: str | None = None
    status: str | None = None
    summary: str | None = None
    result: str | None = None


@dataclass(frozen=True)
class CommandFields:
    name: str = ""
    message: str | None = None
    args_body: str = ""
    default_expanded: bool = True  # UI hint: collapse long argument bodies


@dataclass(frozen=True)
class ToolErrorFields:
    error_text: str = ""
    headline: str = ""


@dataclass(frozen=True)
class UntrustedFields:
    """Untrusted payload after the sanitization gate.

    ``sanitized`` is safe to place inside a literal text container only.
    """
    suffix: str = ""
    sanitized: str = ""
    line_count: int = 0
    default_expanded: bool = True


@dataclass(frozen=True)
class UnknownFields:
    tag_name: str = ""
    body: str = ""


ParsedFields = Union[
    ToolCallFields,
    ObservationFields,
    LocalCommandFields,
    TaskNotificationFields,
    CommandFields,
    ToolErrorFields,
    UntrustedFields,
    UnknownFields,
]


# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextSegment:
    content: str


@dataclass(frozen=True)
class TagSegment:
    block: Block
    fields: ParsedFields | None = None

    @property
    def kind(self) -> Kind:
        return self.block.kind


Segment = Union[TextSegment, TagSegment]


# ---------------------------------------------------------------------------
# Transcripts
# ---------------------------------------------------------------------------

@dataclass
class Message:
    role: str  # "user", "assistant", "system"
    content: str
    timestamp: datetime | None = None
    uuid: str = ""


@dataclass
class Transcript:
    session_id: str
    messages: list[Message] = field(default_factory=list)
    skipped_lines: int = 0


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class ExtractionConfig:
    """Knobs for the extraction pipeline."""
    min_unknown_length: int = 20  # generic tag pairs must be strictly longer
    parameter_summary_max: int = 100
    collapse_line_threshold: int = 10
    error_headline_max: int = 60
    cache_size: int = 256


@dataclass
class RenderConfig:
    fact_preview_count: int = 3
    untrusted_preview_lines: int = 3


@dataclass
class DashboardConfig:
    host: str = "127.0.0.1"
    port: int = 5858
    transcripts_root: str = "~/.claude/projects"
    log_level: str = "info"


@dataclass
class SessionLensConfig:
    version: str = "0.1"
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)
