"""Analyze endpoints — page -> JSON Feed.

Routes
------
GET /api/analyze?ai=<provider|auto>&url=<url>    -> feed envelope
GET /api/extract?url=<url>                       -> extraction preview

Both respond with ``{"status": "success", "data": {...}}`` or
``{"status": "error", "message": "..."}`` and carry ``RateLimit-*`` headers.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from pagefeed.service.orchestrator import AnalyzeOrchestrator, AnalyzeResponse

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _client_id(request: Request) -> str:
    """First ``X-Forwarded-For`` hop, else the socket peer address."""
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client is not None:
        return request.client.host
    return "unknown"


def _json(result: AnalyzeResponse) -> JSONResponse:
    return JSONResponse(
        status_code=result.status_code,
        content=result.body,
        headers=result.headers,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/analyze")
def analyze(
    request: Request,
    url: Optional[str] = None,
    ai: Optional[str] = None,
) -> JSONResponse:
    """Convert the page at *url* into a JSON Feed document.

    Args:
        url: Absolute ``http(s)://`` URL of the page to analyze.
        ai: Name of a configured AI provider, or ``auto`` (the default) for
            the built-in heuristic extractor.
    """
    orchestrator: AnalyzeOrchestrator = request.app.state.orchestrator
    return _json(orchestrator.handle(_client_id(request), ai, url))


@router.get("/extract")
def extract(request: Request, url: Optional[str] = None) -> JSONResponse:
    """Return the page title, main content and detected list items."""
    orchestrator: AnalyzeOrchestrator = request.app.state.orchestrator
    return _json(orchestrator.handle_extract(_client_id(request), url))
