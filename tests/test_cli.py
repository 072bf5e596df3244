"""Tests for the session-lens CLI."""

import io
import json

import pytest

from conftest import COMMAND_MESSAGE, TOOL_CALL_MESSAGE, write_transcript
from session_lens.cli.main import build_parser, main


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    # Keep config discovery away from any real config file
    monkeypatch.chdir(tmp_path)


class TestParser:
    def test_global_config_flag(self):
        args = build_parser().parse_args(["-c", "x.yaml", "detect"])
        assert args.config == "x.yaml"
        assert args.command == "detect"

    def test_no_command_exits(self):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 1


class TestDetect:
    def test_from_file(self, tmp_path, capsys):
        path = tmp_path / "msg.txt"
        path.write_text(COMMAND_MESSAGE)
        main(["detect", "--input", str(path)])
        assert capsys.readouterr().out.strip() == "command"

    def test_from_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("just words"))
        main(["detect"])
        assert capsys.readouterr().out.strip() == "none"


class TestSegments:
    def test_json_output(self, tmp_path, capsys):
        path = tmp_path / "msg.txt"
        path.write_text(TOOL_CALL_MESSAGE)
        main(["segments", "-i", str(path)])
        data = json.loads(capsys.readouterr().out)
        assert [s["type"] for s in data["segments"]] == ["text", "tag", "text"]
        assert data["segments"][1]["kind"] == "tool_call"

    def test_config_threshold(self, tmp_path, monkeypatch, capsys):
        cfg = tmp_path / "custom.yaml"
        cfg.write_text("extraction:\n  min_unknown_length: 5\n")
        monkeypatch.setattr("sys.stdin", io.StringIO("<ab>123456</ab>"))
        main(["-c", str(cfg), "segments"])
        data = json.loads(capsys.readouterr().out)
        assert data["segments"][0]["kind"] == "unknown"


class TestRender:
    def test_html(self, tmp_path, transcript_events, capsys):
        path = write_transcript(tmp_path / "s1.jsonl", transcript_events)
        main(["render", str(path)])
        out = capsys.readouterr().out
        assert out.startswith("<!DOCTYPE html>")
        assert "sl-tool_call" in out

    def test_json(self, tmp_path, transcript_events, capsys):
        path = write_transcript(tmp_path / "s1.jsonl", transcript_events)
        main(["render", str(path), "--json"])
        data = json.loads(capsys.readouterr().out)
        assert data["session_id"] == "s1"
        assert [m["uuid"] for m in data["messages"]] == ["u1", "a1", "u2"]
        assert data["messages"][0]["timestamp"] == "2026-01-28T10:00:00+00:00"

    def test_output_file(self, tmp_path, transcript_events, capsys):
        path = write_transcript(tmp_path / "s1.jsonl", transcript_events)
        out_file = tmp_path / "s1.html"
        main(["render", str(path), "-o", str(out_file)])
        assert "Wrote 3 messages" in capsys.readouterr().out
        assert "sl-untrusted_data" in out_file.read_text()

    def test_skipped_lines_reported(self, tmp_path, capsys):
        path = tmp_path / "s2.jsonl"
        path.write_text('{"message":{"role":"user","content":"hi"}}\n{oops\n')
        main(["render", str(path), "--json"])
        assert "Skipped 1 malformed lines" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["render", str(tmp_path / "nope.jsonl")])
        assert exc.value.code == 1
        assert "Transcript not found" in capsys.readouterr().err


class TestConfigValidate:
    def test_valid(self, tmp_path, capsys):
        cfg = tmp_path / "session-lens.yaml"
        cfg.write_text("dashboard:\n  port: 8080\n")
        main(["-c", str(cfg), "config", "validate"])
        assert "Config is valid." in capsys.readouterr().out

    def test_invalid(self, tmp_path, capsys):
        cfg = tmp_path / "session-lens.yaml"
        cfg.write_text("dashboard:\n  port: 0\n")
        with pytest.raises(SystemExit) as exc:
            main(["-c", str(cfg), "config", "validate"])
        assert exc.value.code == 1
        assert "dashboard.port" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit):
            main(["-c", str(tmp_path / "nope.yaml"), "config", "validate"])
        assert "Error loading config" in capsys.readouterr().err

    def test_serve_rejects_invalid_config(self, tmp_path, capsys):
        cfg = tmp_path / "session-lens.yaml"
        cfg.write_text("dashboard:\n  log_level: loud\n")
        with pytest.raises(SystemExit):
            main(["-c", str(cfg), "serve"])
        assert "Config error" in capsys.readouterr().err
