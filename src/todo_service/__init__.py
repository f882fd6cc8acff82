"""
ToDo Service package.

Exposes the ToDo CRUD operations over HTTP/JSON, backed by a pooled SQLite
table. The FastAPI application lives in ``todo_service.main``.
"""

__version__ = "0.1.0"
