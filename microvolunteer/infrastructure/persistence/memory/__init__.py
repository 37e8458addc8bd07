"""In-memory persistence adapters."""

from .category_repository import InMemoryCategoryRepository
from .task_repository import InMemoryTaskRepository

__all__ = ["InMemoryCategoryRepository", "InMemoryTaskRepository"]
