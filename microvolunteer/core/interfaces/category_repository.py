"""Category Repository Interface"""

from abc import ABC, abstractmethod

from ..entities import Category


class ICategoryRepository(ABC):
    """Abstract interface for Category persistence"""

    @abstractmethod
    async def save(self, category: Category) -> None:
        """
        Save or update a category

        Raises:
            CategoryNameTakenException: If another category already has the name
        """
        pass

    @abstractmethod
    async def find_by_id(self, category_id: str) -> Category | None:
        pass

    @abstractmethod
    async def find_by_name(self, name: str) -> Category | None:
        """Find a category by exact name"""
        pass

    @abstractmethod
    async def find_all(self, active_only: bool = False) -> list[Category]:
        """All categories ordered by name"""
        pass

    @abstractmethod
    async def delete(self, category_id: str) -> bool:
        """
        Delete a category

        Returns:
            True if it existed

        Raises:
            CategoryInUseException: If the store refuses because tasks
                still reference it
        """
        pass
