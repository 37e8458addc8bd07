"""Repository Interfaces

Abstract interfaces for data access (Port pattern in Hexagonal Architecture).
Infrastructure layer implements these interfaces.
"""

from .category_repository import ICategoryRepository
from .task_repository import ITaskRepository, TaskScope

__all__ = ["ICategoryRepository", "ITaskRepository", "TaskScope"]
