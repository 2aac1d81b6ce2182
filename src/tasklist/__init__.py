"""
Tasklist backend package.

The query engine lives in ``tasklist.query`` and has no web dependencies;
the FastAPI application is ``tasklist.main.app``.
"""

from .query import QueryCriteria, apply_status_change, filter_todos, query, sort_todos

__all__ = ["QueryCriteria", "apply_status_change", "filter_todos", "query", "sort_todos"]
