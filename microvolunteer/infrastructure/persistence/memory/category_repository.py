"""In-memory Implementation of ICategoryRepository"""

from copy import deepcopy

from ....core.entities import Category
from ....core.exceptions import CategoryNameTakenException
from ....core.interfaces import ICategoryRepository


class InMemoryCategoryRepository(ICategoryRepository):
    """Dict-backed CategoryRepository keyed by category_id"""

    def __init__(self) -> None:
        self._categories: dict[str, Category] = {}

    async def save(self, category: Category) -> None:
        for other in self._categories.values():
            if other.name == category.name and other.category_id != category.category_id:
                raise CategoryNameTakenException(category.name)
        self._categories[category.category_id] = deepcopy(category)

    async def find_by_id(self, category_id: str) -> Category | None:
        category = self._categories.get(category_id)
        return deepcopy(category) if category else None

    async def find_by_name(self, name: str) -> Category | None:
        for category in self._categories.values():
            if category.name == name:
                return deepcopy(category)
        return None

    async def find_all(self, active_only: bool = False) -> list[Category]:
        categories = sorted(
            (c for c in self._categories.values() if c.active or not active_only),
            key=lambda c: c.name,
        )
        return [deepcopy(c) for c in categories]

    async def delete(self, category_id: str) -> bool:
        return self._categories.pop(category_id, None) is not None
