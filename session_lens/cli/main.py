"""CLI: session-lens segments, detect, render, serve, config validate."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from ..config import load_config, validate_config
from ..core.detector import detect
from ..core.segmenter import segment_message
from ..helpers import message_to_dict, segments_to_list


def _read_input(args) -> str:
    if args.input:
        return Path(args.input).read_text(encoding="utf-8")
    return sys.stdin.read()


def cmd_segments(args):
    """Print the segments of one message as JSON."""
    config = load_config(args.config)
    text = _read_input(args)
    segments = segment_message(text, config.extraction)
    print(json.dumps({"segments": segments_to_list(segments)}, indent=2, ensure_ascii=False))


def cmd_detect(args):
    """Print the highest-priority block kind, or 'none'."""
    config = load_config(args.config)
    kind = detect(_read_input(args), min_unknown_length=config.extraction.min_unknown_length)
    print(kind.value if kind is not None else "none")


def cmd_render(args):
    """Render a JSONL transcript to HTML (or JSON with --json)."""
    from ..core.segmenter import SegmentCache
    from ..render import render_transcript
    from ..transcript import load_transcript

    config = load_config(args.config)
    path = Path(args.session_file)
    if not path.is_file():
        print(f"Transcript not found: {path}", file=sys.stderr)
        sys.exit(1)

    transcript = load_transcript(path)
    if transcript.skipped_lines:
        print(f"Skipped {transcript.skipped_lines} malformed lines", file=sys.stderr)

    cache = SegmentCache(max_entries=config.extraction.cache_size)
    if args.json:
        output = json.dumps({
            "session_id": transcript.session_id,
            "messages": [
                message_to_dict(m, segment_message(m.content, config.extraction, cache))
                for m in transcript.messages
            ],
        }, indent=2, ensure_ascii=False)
    else:
        output = render_transcript(transcript, config.render, config.extraction, cache)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Wrote {len(transcript.messages)} messages to {args.output}")
    else:
        print(output)


def cmd_serve(args):
    """Start the web dashboard."""
    try:
        import uvicorn
        from ..dashboard import create_app
    except ImportError:
        print("Run: pip install session-lens", file=sys.stderr)
        sys.exit(1)

    config = load_config(args.config)
    errors = validate_config(config)
    if errors:
        for err in errors:
            print(f"Config error: {err}", file=sys.stderr)
        sys.exit(1)

    host = args.host or config.dashboard.host
    port = args.port or config.dashboard.port
    app = create_app(config=config)
    print(f"session-lens dashboard on http://{host}:{port}/dashboard")
    uvicorn.run(app, host=host, port=port, log_level=config.dashboard.log_level)


def cmd_config_validate(args):
    """Validate config file."""
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    errors = validate_config(config)
    if errors:
        print("Config validation errors:")
        for err in errors:
            print(f"  - {err}")
        sys.exit(1)
    else:
        print("Config is valid.")
        print(f"  Unknown-tag threshold: {config.extraction.min_unknown_length}")
        print(f"  Segment cache size:    {config.extraction.cache_size}")
        print(f"  Transcripts root:      {config.dashboard.transcripts_root}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="session-lens",
        description="Typed segmentation and rendering of assistant-session transcripts",
    )
    parser.add_argument("--config", "-c", help="Path to config file")

    subparsers = parser.add_subparsers(dest="command")

    # segments
    segments_parser = subparsers.add_parser("segments", help="Segment one message (JSON output)")
    segments_parser.add_argument("--input", "-i", help="Input file (default: stdin)")

    # detect
    detect_parser = subparsers.add_parser("detect", help="Detect the first block kind in a message")
    detect_parser.add_argument("--input", "-i", help="Input file (default: stdin)")

    # render
    render_parser = subparsers.add_parser("render", help="Render a JSONL transcript")
    render_parser.add_argument("session_file", help="Path to a .jsonl session transcript")
    render_parser.add_argument("--output", "-o", help="Write to file instead of stdout")
    render_parser.add_argument("--json", action="store_true", help="Emit segments as JSON")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the web dashboard")
    serve_parser.add_argument("--port", "-p", type=int, default=None)
    serve_parser.add_argument("--host", default=None)

    # config
    config_parser = subparsers.add_parser("config", help="Config operations")
    config_sub = config_parser.add_subparsers(dest="config_command")
    config_sub.add_parser("validate", help="Validate config file")

    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "segments":
        cmd_segments(args)
    elif args.command == "detect":
        cmd_detect(args)
    elif args.command == "render":
        cmd_render(args)
    elif args.command == "serve":
        cmd_serve(args)
    elif args.command == "config":
        if args.config_command == "validate":
            cmd_config_validate(args)
        else:
            print("Usage: session-lens config validate")
            sys.exit(1)


if __name__ == "__main__":
    main()
