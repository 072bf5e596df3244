"""Tests for per-kind field parsers."""

import json

import pytest

from session_lens.core.fields import (
    line_count,
    parse_command,
    parse_fields,
    parse_local_command,
    parse_observation,
    parse_task_notification,
    parse_tool_call,
    parse_tool_error,
    parse_unknown,
    parse_untrusted,
    summarize_parameters,
)
from session_lens.types import (
    Block,
    ExtractionConfig,
    Kind,
    ToolCallFields,
    UnknownFields,
)


class TestSummarizeParameters:
    def test_file_path_wins(self):
        assert summarize_parameters('{"file_path":"/src/index.ts","limit":5}') == "/src/index.ts"

    def test_compact_json(self):
        assert summarize_parameters('{"command": "npm install"}') == '{"command":"npm install"}'

    def test_plain_text(self):
        assert summarize_parameters("ls -la") == "ls -la"

    def test_quoted_plain_text(self):
        assert summarize_parameters('"ls -la"') == "ls -la"

    def test_double_encoded(self):
        payload = json.dumps(json.dumps({"file_path": "/a.py"}))
        assert summarize_parameters(payload) == "/a.py"

    def test_empty_file_path_falls_back_to_json(self):
        assert summarize_parameters('{"file_path":""}') == '{"file_path":""}'

    def test_truncated(self):
        payload = json.dumps({"command": "x" * 200})
        assert len(summarize_parameters(payload)) == 100
        assert len(summarize_parameters(payload, max_length=20)) == 20

    def test_deep_nesting_does_not_raise(self):
        payload = "[" * 100000
        assert summarize_parameters(payload) == "[" * 100

    def test_non_ascii_kept(self):
        assert summarize_parameters('{"q":"caf\\u00e9"}') == '{"q":"café"}'


class TestToolCall:
    def test_all_fields(self, tool_call_message):
        start = tool_call_message.index("<tool_call>")
        raw = tool_call_message[start:tool_call_message.index("</tool_call>") + len("</tool_call>")]
        fields = parse_tool_call(raw)
        assert fields == ToolCallFields(
            tool_name="Read",
            parameter_summary="/src/index.ts",
            what_happened="Read a file",
        )

    def test_observed_action_markers(self):
        raw = (
            "<observed_from_primary_session>"
            "<what_happened>Edit</what_happened>"
            "<working_directory>/repo</working_directory>"
            '<parameters>"{\\"file_path\\":\\"/repo/a.py\\"}"</parameters>'
            "<outcome>\n  applied\n</outcome>"
            "</observed_from_primary_session>"
        )
        fields = parse_tool_call(raw)
        assert fields.what_happened == "Edit"
        assert fields.working_directory == "/repo"
        assert fields.parameter_summary == "/repo/a.py"
        assert fields.outcome == "applied"
        assert fields.tool_name is None

    def test_missing_markers(self):
        assert parse_tool_call("<tool_call></tool_call>") == ToolCallFields()

    def test_blank_parameters(self):
        assert parse_tool_call("<tool_call><parameters>  </parameters></tool_call>").parameter_summary is None

    def test_summary_limit_from_config(self):
        raw = '<tool_call><parameters>{"command":"' + "y" * 50 + '"}</parameters></tool_call>'
        fields = parse_tool_call(raw, ExtractionConfig(parameter_summary_max=10))
        assert len(fields.parameter_summary) == 10


class TestObservation:
    def test_all_fields(self, observation_xml):
        fields = parse_observation(observation_xml)
        assert fields.category == "discovery"
        assert fields.title == "Parser handles nested tags"
        assert fields.subtitle == "Found while reading the extractor"
        assert len(fields.facts) == 5
        assert fields.facts[0] == "Patterns are ordered"
        assert fields.narrative == "The extractor scans each pattern in priority order."
        assert fields.files_read == ("src/extractor.py", "src/patterns.py")
        assert fields.files_modified == ()

    def test_empty(self):
        fields = parse_observation("<observation></observation>")
        assert fields.title is None
        assert fields.facts == ()


class TestLocalCommand:
    def test_stdout(self):
        fields = parse_local_command("<local-command-stdout>\n  done\n</local-command-stdout>")
        assert fields.output == "done"
        assert fields.is_error is False

    def test_stderr_only_is_error(self):
        fields = parse_local_command("<local-command-stderr>boom</local-command-stderr>")
        assert fields.output == "boom"
        assert fields.is_error is True

    def test_empty_output(self):
        fields = parse_local_command("<local-command-stdout></local-command-stdout>")
        assert fields.output == ""


class TestTaskNotification:
    def test_fields(self):
        raw = (
            "<task-notification><task-id>a1b2</task-id><status>completed</status>"
            "<summary>Agent finished</summary><result>\nAll tests pass\n</result>"
            "</task-notification>"
        )
        fields = parse_task_notification(raw)
        assert fields.task_id == "a1b2"
        assert fields.status == "completed"
        assert fields.summary == "Agent finished"
        assert fields.result == "All tests pass"

    def test_missing_fields(self):
        fields = parse_task_notification("<task-notification></task-notification>")
        assert fields.status is None
        assert fields.result is None


class TestCommand:
    def _raw(self, args):
        return (
            "<command-name>build</command-name>"
            "<command-message>Build project</command-message>"
            f"<command-args>{args}</command-args>"
        )

    def test_fields(self, command_message):
        fields = parse_command(command_message)
        assert fields.name == "build"
        assert fields.message == "Build project"
        assert fields.args_body == "npm run build"
        assert fields.default_expanded is True

    def test_ten_lines_expanded(self):
        args = "\n".join(f"line{i}" for i in range(10))
        assert parse_command(self._raw(args)).default_expanded is True

    def test_eleven_lines_collapsed(self):
        args = "\n".join(f"line{i}" for i in range(11))
        fields = parse_command(self._raw(args))
        assert line_count(fields.args_body) == 11
        assert fields.default_expanded is False


class TestToolError:
    def test_short(self):
        fields = parse_tool_error("<tool_use_error>File not found</tool_use_error>")
        assert fields.error_text == "File not found"
        assert fields.headline == "File not found"

    def test_long_headline_truncated(self):
        first = "E" * 80
        fields = parse_tool_error(f"<tool_use_error>{first}\nsecond line</tool_use_error>")
        assert fields.headline == "E" * 57 + "..."
        assert len(fields.headline) == 60
        assert fields.error_text == f"{first}\nsecond line"


class TestUntrusted:
    def test_fields(self, untrusted_message):
        fields = parse_untrusted(untrusted_message)
        assert fields.suffix == "abc123"
        assert fields.sanitized == "&lt;script&gt;alert(1)&lt;/script&gt;Hi"
        assert fields.line_count == 1
        assert fields.default_expanded is True

    def test_long_payload_collapsed(self):
        body = "\n".join(f"row {i}" for i in range(12))
        fields = parse_untrusted(f"<untrusted-data-x>{body}</untrusted-data-x>")
        assert fields.line_count == 12
        assert fields.default_expanded is False

    def test_blank_payload(self):
        fields = parse_untrusted("<untrusted-data-x>   </untrusted-data-x>")
        assert fields.sanitized == ""
        assert fields.line_count == 0


class TestUnknown:
    def test_tag_and_body(self):
        fields = parse_unknown("<custom_block>\n payload \n</custom_block>")
        assert fields == UnknownFields(tag_name="custom_block", body="payload")


class TestParseFields:
    def test_hidden_has_no_fields(self):
        block = Block(raw_text="<system-reminder>x</system-reminder>", kind=Kind.HIDDEN, start=0, end=36)
        assert parse_fields(block) is None

    @pytest.mark.parametrize("raw,kind", [
        ("<tool_call><tool_name>Bash</tool_name></tool_call>", Kind.TOOL_CALL),
        ("<observation><title>t</title></observation>", Kind.OBSERVATION),
        ("<tool_use_error>x</tool_use_error>", Kind.TOOL_ERROR),
        ("<custom_block>long enough body</custom_block>", Kind.UNKNOWN),
    ])
    def test_dispatch(self, raw, kind):
        block = Block(raw_text=raw, kind=kind, start=0, end=len(raw))
        assert parse_fields(block) is not None

    def test_malformed_input_never_raises(self):
        for kind in Kind:
            block = Block(raw_text="<<<>>> not even close", kind=kind, start=0, end=21)
            parse_fields(block)
