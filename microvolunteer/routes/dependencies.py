"""FastAPI Dependencies for MicroVolunteer

Provides dependency injection for core services.
"""

from typing import Annotated

from fastapi import Depends

from ..auth.middleware import get_principal
from ..core.entities import Principal
from ..services import CategoryService, ParticipationCoordinator, TaskLifecycleManager

# Global service instances (initialized in lifespan)
_coordinator: ParticipationCoordinator | None = None
_lifecycle: TaskLifecycleManager | None = None
_categories: CategoryService | None = None


def init_services(
    coordinator: ParticipationCoordinator,
    lifecycle: TaskLifecycleManager,
    categories: CategoryService | None = None,
) -> None:
    """Initialize global service instances (called from lifespan)"""
    global _coordinator, _lifecycle, _categories

    _coordinator = coordinator
    _lifecycle = lifecycle
    _categories = categories


# Dependency functions
def get_coordinator() -> ParticipationCoordinator:
    """Get ParticipationCoordinator instance"""
    if _coordinator is None:
        raise RuntimeError("ParticipationCoordinator not initialized")
    return _coordinator


def get_lifecycle() -> TaskLifecycleManager:
    """Get TaskLifecycleManager instance"""
    if _lifecycle is None:
        raise RuntimeError("TaskLifecycleManager not initialized")
    return _lifecycle


def get_category_service() -> CategoryService:
    """Get CategoryService instance"""
    if _categories is None:
        raise RuntimeError("CategoryService not initialized")
    return _categories


# Type aliases for cleaner dependency injection
CoordinatorDep = Annotated[ParticipationCoordinator, Depends(get_coordinator)]
LifecycleDep = Annotated[TaskLifecycleManager, Depends(get_lifecycle)]
CategoryServiceDep = Annotated[CategoryService, Depends(get_category_service)]
PrincipalDep = Annotated[Principal, Depends(get_principal)]
