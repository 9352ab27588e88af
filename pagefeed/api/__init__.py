"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from pagefeed.api import app

    uvicorn pagefeed.api:app --reload
"""

from pagefeed.api.app import app, create_app

__all__ = ["app", "create_app"]
