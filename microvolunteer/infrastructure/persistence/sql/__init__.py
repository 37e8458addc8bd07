"""SQL persistence adapters (PostgreSQL in production, SQLite in tests)."""

from .category_repository import SqlCategoryRepository
from .database import create_schema, get_engine, get_session_factory
from .task_repository import SqlTaskRepository

__all__ = [
    "SqlCategoryRepository",
    "SqlTaskRepository",
    "create_schema",
    "get_engine",
    "get_session_factory",
]
