"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from searchrelay.api import app

    uvicorn searchrelay.api:app
"""

from searchrelay.api.app import app

__all__ = ["app"]
