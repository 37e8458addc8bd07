"""Business Logic Layer

Service classes orchestrate business operations using domain entities and repositories.
"""

from .capacity_gate import CapacityGate
from .category_service import CategoryService
from .participation_coordinator import ParticipationCoordinator
from .task_lifecycle import TaskLifecycleManager

__all__ = ["CapacityGate", "CategoryService", "ParticipationCoordinator", "TaskLifecycleManager"]
