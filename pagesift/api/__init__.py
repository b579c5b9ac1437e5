"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from pagesift.api import app

    uvicorn pagesift.api:app --reload
"""

from pagesift.api.app import app

__all__ = ["app"]
