"""Configuration loading, validation, and defaults."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from .types import (
    DashboardConfig,
    ExtractionConfig,
    RenderConfig,
    SessionLensConfig,
)

CONFIG_FILENAMES = [
    "session-lens.yaml",
    "session-lens.yml",
    "session-lens.json",
    "sessionlens.yaml",
    "sessionlens.yml",
    "sessionlens.json",
]

LOG_LEVELS = ("critical", "error", "warning", "info", "debug", "trace")


def _discover_config() -> Path | None:
    """Search CWD then parent dirs up to home for a config file."""
    cwd = Path.cwd()
    home = Path.home()
    search = cwd
    while True:
        for name in CONFIG_FILENAMES:
            candidate = search / name
            if candidate.is_file():
                return candidate
        if search == home or search == search.parent:
            break
        search = search.parent
    return None


def _build_config(raw: dict[str, Any]) -> SessionLensConfig:
    """Build a SessionLensConfig from a raw dict."""
    extraction_raw = raw.get("extraction", {}) or {}
    extraction = ExtractionConfig(
        min_unknown_length=extraction_raw.get("min_unknown_length", 20),
        parameter_summary_max=extraction_raw.get("parameter_summary_max", 100),
        collapse_line_threshold=extraction_raw.get("collapse_line_threshold", 10),
        error_headline_max=extraction_raw.get("error_headline_max", 60),
        cache_size=extraction_raw.get("cache_size", 256),
    )

    render_raw = raw.get("render", {}) or {}
    render = RenderConfig(
        fact_preview_count=render_raw.get("fact_preview_count", 3),
        untrusted_preview_lines=render_raw.get("untrusted_preview_lines", 3),
    )

    dash_raw = raw.get("dashboard", {}) or {}
    dashboard = DashboardConfig(
        host=dash_raw.get("host", "127.0.0.1"),
        port=dash_raw.get("port", 5858),
        transcripts_root=dash_raw.get("transcripts_root", "~/.claude/projects"),
        log_level=dash_raw.get("log_level", "info"),
    )

    return SessionLensConfig(
        version=str(raw.get("version", "0.1")),
        extraction=extraction,
        render=render,
        dashboard=dashboard,
    )


def validate_config(config: SessionLensConfig) -> list[str]:
    """Validate a config. Returns list of error strings (empty = valid)."""
    errors: list[str] = []

    if config.extraction.min_unknown_length < 0:
        errors.append("extraction.min_unknown_length must be >= 0")

    if config.extraction.parameter_summary_max < 1:
        errors.append("extraction.parameter_summary_max must be >= 1")

    if config.extraction.collapse_line_threshold < 1:
        errors.append("extraction.collapse_line_threshold must be >= 1")

    # Room for at least one character before the "..." marker
    if config.extraction.error_headline_max < 4:
        errors.append("extraction.error_headline_max must be >= 4")

    if config.extraction.cache_size < 1:
        errors.append("extraction.cache_size must be >= 1")

    if config.render.fact_preview_count < 0:
        errors.append("render.fact_preview_count must be >= 0")

    if config.render.untrusted_preview_lines < 1:
        errors.append("render.untrusted_preview_lines must be >= 1")

    if not 0 < config.dashboard.port < 65536:
        errors.append(f"dashboard.port ({config.dashboard.port}) must be in 1-65535")

    if config.dashboard.log_level not in LOG_LEVELS:
        errors.append(
            f"dashboard.log_level '{config.dashboard.log_level}' "
            f"must be one of: {', '.join(LOG_LEVELS)}"
        )

    return errors


def load_config(
    config_path: str | Path | None = None,
    config_dict: dict | None = None,
) -> SessionLensConfig:
    """Load config from dict, explicit path, or auto-discover."""
    if config_dict is not None:
        return _build_config(config_dict)

    if config_path is not None:
        path = Path(config_path)
    else:
        path = _discover_config()

    if path is None:
        # Return defaults
        return _build_config({})

    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    text = path.read_text()
    if path.suffix == ".json":
        raw = json.loads(text)
    else:
        raw = yaml.safe_load(text) or {}

    return _build_config(raw)
