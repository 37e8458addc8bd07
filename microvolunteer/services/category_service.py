"""Category Service

Administration of task categories. Anyone may read them; only ADMIN
principals create, edit, deactivate or delete them.
"""

from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime

import structlog

from ..core.entities import Category, Principal
from ..core.exceptions import (
    CategoryInactiveException,
    CategoryInUseException,
    CategoryNameTakenException,
    CategoryNotFoundException,
    UnauthorizedAccessException,
)
from ..core.interfaces import ICategoryRepository, ITaskRepository

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _require_admin(principal: Principal, operation: str) -> None:
    if not principal.is_admin:
        logger.warning(
            "unauthorized_category_operation",
            principal_id=principal.external_id,
            operation=operation,
        )
        raise UnauthorizedAccessException(operation)


class CategoryService:
    """
    Category Service

    Orchestrates category operations:
    - listing and lookup
    - admin-only create / update / deactivate / delete
    - the "may a task use this category" check
    """

    def __init__(
        self,
        repository: ICategoryRepository,
        task_repository: ITaskRepository,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize Category Service

        Args:
            repository: Category repository
            task_repository: Task repository (task counts per category)
            clock: Returns the current time (defaults to UTC now)
        """
        self.repository = repository
        self.task_repository = task_repository
        self._clock = clock or _utcnow

    # ========== Queries ==========

    async def list_categories(self, active_only: bool = False) -> list[Category]:
        return await self.repository.find_all(active_only=active_only)

    async def get_category(self, category_id: str) -> Category:
        category = await self.repository.find_by_id(category_id)
        if category is None:
            raise CategoryNotFoundException(category_id)
        return category

    async def task_count(self, category_id: str) -> int:
        return await self.task_repository.count_by_category(category_id)

    async def require_assignable(self, category_id: str) -> Category:
        """
        Category that a task may be filed under

        Raises:
            CategoryNotFoundException: Category does not exist
            CategoryInactiveException: Category was deactivated
        """
        category = await self.get_category(category_id)
        if not category.active:
            raise CategoryInactiveException(category_id)
        return category

    # ========== Administration ==========

    async def create_category(
        self,
        principal: Principal,
        name: str,
        description: str = "",
    ) -> Category:
        """
        Raises:
            UnauthorizedAccessException: Caller is not ADMIN
            CategoryNameTakenException: Name already in use
            ValueError: Invalid name or description
        """
        _require_admin(principal, "create_category")

        now = self._clock()
        category = Category(
            category_id=Category.new_id(),
            name=name,
            description=description,
            created_at=now,
            updated_at=now,
        )
        if await self.repository.find_by_name(category.name) is not None:
            raise CategoryNameTakenException(category.name)
        await self.repository.save(category)

        logger.info("category_created", category_id=category.category_id, name=category.name)
        return category

    async def update_category(
        self,
        category_id: str,
        principal: Principal,
        name: str | None = None,
        description: str | None = None,
    ) -> Category:
        """
        Rename or re-describe an active category

        Raises:
            UnauthorizedAccessException: Caller is not ADMIN
            CategoryNotFoundException: Category does not exist
            CategoryInactiveException: Category was deactivated
            CategoryNameTakenException: New name already in use
            ValueError: Invalid name or description
        """
        _require_admin(principal, "update_category")
        category = await self.get_category(category_id)
        if not category.active:
            raise CategoryInactiveException(category_id)

        changes: dict[str, str] = {}
        if name is not None:
            changes["name"] = name
        if description is not None:
            changes["description"] = description
        updated = replace(category, updated_at=self._clock(), **changes)

        if updated.name != category.name:
            other = await self.repository.find_by_name(updated.name)
            if other is not None and other.category_id != category_id:
                raise CategoryNameTakenException(updated.name)
        await self.repository.save(updated)

        logger.info("category_updated", category_id=category_id, fields=sorted(changes))
        return updated

    async def deactivate_category(self, category_id: str, principal: Principal) -> Category:
        """
        Raises:
            UnauthorizedAccessException: Caller is not ADMIN
            CategoryNotFoundException: Category does not exist
            CategoryInactiveException: Category is already inactive
        """
        _require_admin(principal, "deactivate_category")
        category = await self.get_category(category_id)
        if not category.active:
            raise CategoryInactiveException(category_id)

        category.deactivate(at=self._clock())
        await self.repository.save(category)

        logger.info("category_deactivated", category_id=category_id)
        return category

    async def delete_category(self, category_id: str, principal: Principal) -> None:
        """
        Raises:
            UnauthorizedAccessException: Caller is not ADMIN
            CategoryNotFoundException: Category does not exist
            CategoryInUseException: Tasks are still filed under it
        """
        _require_admin(principal, "delete_category")
        await self.get_category(category_id)

        task_count = await self.task_repository.count_by_category(category_id)
        if task_count:
            raise CategoryInUseException(category_id, task_count)
        if not await self.repository.delete(category_id):
            raise CategoryNotFoundException(category_id)

        logger.info("category_deleted", category_id=category_id)
