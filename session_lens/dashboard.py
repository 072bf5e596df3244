"""Web dashboard for session-lens.

Serves a self-contained HTML page at ``/dashboard``, a JSON segmentation
API under ``/api``, and server-rendered transcripts at
``/sessions/{session_id}``.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse

from .config import load_config
from .core.detector import detect, has_renderable_block
from .core.segmenter import SegmentCache, segment_message
from .helpers import segments_to_list
from .render import STYLE, render_segments, render_transcript
from .transcript import find_transcript, load_transcript
from .types import SessionLensConfig

logger = logging.getLogger(__name__)


def get_dashboard_html() -> str:
    """Return the full self-contained HTML page for the dashboard."""
    return _DASHBOARD_HTML.replace("/*STYLE*/", STYLE)


async def _text_from(request: Request) -> str | JSONResponse:
    """The ``text`` field of a JSON body, or an error response."""
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse({"error": "Body must be JSON"}, status_code=400)
    text = body.get("text") if isinstance(body, dict) else None
    if not isinstance(text, str):
        return JSONResponse({"error": "Field 'text' must be a string"}, status_code=400)
    return text


def register_dashboard_routes(
    app: FastAPI,
    config: SessionLensConfig,
    cache: SegmentCache,
) -> None:
    """Register ``/dashboard``, ``/api/*`` and ``/sessions/*`` routes."""

    @app.get("/dashboard")
    async def dashboard_page():
        return HTMLResponse(get_dashboard_html())

    @app.post("/api/segments")
    async def api_segments(request: Request):
        text = await _text_from(request)
        if isinstance(text, JSONResponse):
            return text
        segments = await asyncio.to_thread(segment_message, text, config.extraction, cache)
        return JSONResponse({"segments": segments_to_list(segments)})

    @app.post("/api/detect")
    async def api_detect(request: Request):
        text = await _text_from(request)
        if isinstance(text, JSONResponse):
            return text
        min_length = config.extraction.min_unknown_length
        kind = await asyncio.to_thread(detect, text, min_unknown_length=min_length)
        renderable = await asyncio.to_thread(has_renderable_block, text, min_unknown_length=min_length)
        return JSONResponse({
            "kind": kind.value if kind is not None else None,
            "renderable": renderable,
        })

    @app.post("/api/render")
    async def api_render(request: Request):
        text = await _text_from(request)
        if isinstance(text, JSONResponse):
            return text
        segments = await asyncio.to_thread(segment_message, text, config.extraction, cache)
        return HTMLResponse(render_segments(segments, config.render))

    @app.get("/api/cache")
    async def api_cache():
        return JSONResponse(cache.cache_info())

    @app.get("/sessions/{session_id}")
    async def session_page(session_id: str):
        try:
            path = find_transcript(config.dashboard.transcripts_root, session_id)
        except ValueError:
            return JSONResponse({"error": "Invalid session id"}, status_code=400)
        if path is None:
            return JSONResponse({"error": f"Session not found: {session_id}"}, status_code=404)

        transcript = await asyncio.to_thread(load_transcript, path)
        logger.info(
            "Rendering session %s: %d messages, %d skipped lines",
            session_id, len(transcript.messages), transcript.skipped_lines,
        )
        page = await asyncio.to_thread(
            render_transcript, transcript, config.render, config.extraction, cache,
        )
        return HTMLResponse(page)


def create_app(
    config_path: str | Path | None = None,
    *,
    config: SessionLensConfig | None = None,
) -> FastAPI:
    """Create the FastAPI dashboard application."""
    if config is None:
        config = load_config(config_path)
    cache = SegmentCache(max_entries=config.extraction.cache_size)

    app = FastAPI(title="session-lens")
    app.state.config = config
    app.state.segment_cache = cache
    register_dashboard_routes(app, config, cache)

    logger.info(
        "Dashboard ready: transcripts_root=%s, cache_size=%d",
        config.dashboard.transcripts_root, cache.max_entries,
    )
    return app


_DASHBOARD_HTML = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>session-lens</title>
<style>
/*STYLE*/
  textarea {
    width: 100%; min-height: 160px; background: var(--surface); color: var(--text);
    border: 1px solid var(--border); border-radius: 6px; padding: 8px; font: inherit;
  }
  button {
    margin: 8px 0; padding: 4px 12px; background: var(--surface); color: var(--accent);
    border: 1px solid var(--border); border-radius: 6px; cursor: pointer;
  }
  #kind { color: var(--text-dim); margin-left: 8px; }
</style>
</head>
<body>
<div class="container">
  <header><h1>session-lens</h1></header>
  <textarea id="input" placeholder="Paste a transcript message"></textarea>
  <div><button id="go">Segment</button><span id="kind"></span></div>
  <div id="output" class="sl-message"></div>
</div>
<script>
  const input = document.getElementById('input');
  const output = document.getElementById('output');
  const kind = document.getElementById('kind');
  document.getElementById('go').addEventListener('click', async () => {
    const payload = JSON.stringify({text: input.value});
    const headers = {'Content-Type': 'application/json'};
    const [rendered, detected] = await Promise.all([
      fetch('/api/render', {method: 'POST', headers, body: payload}).then(r => r.text()),
      fetch('/api/detect', {method: 'POST', headers, body: payload}).then(r => r.json()),
    ]);
    // Server output escapes all message text; untrusted content is gate output in <pre>.
    output.innerHTML = rendered;
    kind.textContent = detected.kind ? 'first block: ' + detected.kind : 'no blocks';
  });
</script>
</body>
</html>
"""
