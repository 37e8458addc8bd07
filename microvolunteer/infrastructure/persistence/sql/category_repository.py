"""SQL Implementation of ICategoryRepository"""

import structlog
from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ....core.entities import Category
from ....core.exceptions import (
    CategoryInUseException,
    CategoryNameTakenException,
    StorageUnavailableException,
)
from ....core.interfaces import ICategoryRepository
from .database import as_utc as _tz
from .models import CategoryModel

logger = structlog.get_logger()


def _model_to_category(row: CategoryModel) -> Category:
    return Category(
        category_id=row.category_id,
        name=row.name,
        description=row.description or "",
        active=row.active,
        created_at=_tz(row.created_at),
        updated_at=_tz(row.updated_at),
    )


def _apply_category(row: CategoryModel, category: Category) -> None:
    row.name = category.name
    row.description = category.description
    row.active = category.active
    row.created_at = _tz(category.created_at)
    row.updated_at = _tz(category.updated_at)


class SqlCategoryRepository(ICategoryRepository):
    """SQL-backed CategoryRepository; name uniqueness is a table constraint"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def save(self, category: Category) -> None:
        try:
            async with self._session_factory() as session, session.begin():
                row = await session.get(CategoryModel, category.category_id)
                if row is None:
                    row = CategoryModel(category_id=category.category_id)
                    session.add(row)
                _apply_category(row, category)
        except IntegrityError as e:
            raise CategoryNameTakenException(category.name) from e
        except DBAPIError as e:
            logger.error("category_save_failed", category_id=category.category_id, error=str(e))
            raise StorageUnavailableException("Category storage is unavailable") from e

    async def find_by_id(self, category_id: str) -> Category | None:
        async with self._session_factory() as session:
            row = await session.get(CategoryModel, category_id)
            return _model_to_category(row) if row else None

    async def find_by_name(self, name: str) -> Category | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(CategoryModel).where(CategoryModel.name == name)
            )
            row = result.scalar_one_or_none()
            return _model_to_category(row) if row else None

    async def find_all(self, active_only: bool = False) -> list[Category]:
        async with self._session_factory() as session:
            stmt = select(CategoryModel)
            if active_only:
                stmt = stmt.where(CategoryModel.active.is_(True))
            result = await session.execute(stmt.order_by(CategoryModel.name.asc()))
            return [_model_to_category(r) for r in result.scalars().all()]

    async def delete(self, category_id: str) -> bool:
        try:
            async with self._session_factory() as session, session.begin():
                row = await session.get(CategoryModel, category_id)
                if row is None:
                    return False
                await session.delete(row)
        except IntegrityError as e:
            raise CategoryInUseException(category_id) from e
        except DBAPIError as e:
            logger.error("category_delete_failed", category_id=category_id, error=str(e))
            raise StorageUnavailableException("Category storage is unavailable") from e
        return True
