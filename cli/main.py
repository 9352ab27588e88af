"""PageFeed CLI — entry-point for analysing pages and running the API server.

Usage:
    python cli/main.py --help

Commands:
    analyze   → convert one page to a JSON Feed and print it
    extract   → print the extraction preview (title, main content, items)
    serve     → run the HTTP API under uvicorn
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from pagefeed.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json
from typing import Any, Callable, Optional

import typer

from pagefeed.config import configure_logging, settings
from pagefeed.errors import PageFeedError
from pagefeed.service.orchestrator import AUTO_MODE, AnalyzeOrchestrator

app = typer.Typer(
    name="pagefeed",
    help="PageFeed CLI — web page to JSON Feed.",
    no_args_is_help=True,
)


def _echo_json(payload: dict[str, Any], pretty: bool) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2 if pretty else None))


def _run(action: Callable[[], dict[str, Any]], pretty: bool) -> None:
    try:
        data = action()
    except PageFeedError as exc:
        _echo_json({"status": "error", "message": str(exc)}, pretty)
        raise typer.Exit(1)
    _echo_json({"status": "success", "data": data}, pretty)


# ---------------------------------------------------------------------------
# Analyze commands
# ---------------------------------------------------------------------------
@app.command("analyze")
def analyze(
    url: str = typer.Option(..., help="Absolute http(s) URL of the page to convert."),
    ai: str = typer.Option(
        AUTO_MODE,
        help=f"Build strategy: {AUTO_MODE} | " + " | ".join(settings.provider_names),
    ),
    pretty: bool = typer.Option(True, help="Indent the JSON output."),
) -> None:
    """Convert a page to a JSON Feed document and print the response envelope."""
    configure_logging()
    orchestrator = AnalyzeOrchestrator(settings)
    _run(lambda: orchestrator.analyze(ai, url), pretty)


@app.command("extract")
def extract(
    url: str = typer.Option(..., help="Absolute http(s) URL of the page to extract."),
    pretty: bool = typer.Option(True, help="Indent the JSON output."),
) -> None:
    """Print the page title, main content and detected list items."""
    configure_logging()
    orchestrator = AnalyzeOrchestrator(settings)
    _run(lambda: orchestrator.extract(url), pretty)


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (default: $HOST)."),
    port: Optional[int] = typer.Option(None, help="Bind port (default: $PORT)."),
    reload: bool = typer.Option(False, help="Reload on code changes."),
) -> None:
    """Run the PageFeed HTTP API."""
    import uvicorn

    configure_logging()
    bind_host = host or settings.host
    bind_port = port or settings.port
    typer.echo(f"[serve] Listening on http://{bind_host}:{bind_port}")
    uvicorn.run(
        "pagefeed.api.app:app",
        host=bind_host,
        port=bind_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
