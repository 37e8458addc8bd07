"""Pytest Configuration and Fixtures

Shared fixtures for all tests.
"""

import pytest

from microvolunteer.core.entities import Principal, Role, Task
from microvolunteer.infrastructure.persistence.memory import (
    InMemoryCategoryRepository,
    InMemoryTaskRepository,
)
from microvolunteer.services import (
    CapacityGate,
    CategoryService,
    ParticipationCoordinator,
    TaskLifecycleManager,
)
from tests.factories import fixed_clock, make_task

# =============================================================================
# Principals
# =============================================================================


@pytest.fixture
def organizer() -> Principal:
    return Principal(external_id="organizer-1", roles=frozenset({Role.ORGANIZER}))


@pytest.fixture
def admin() -> Principal:
    return Principal(external_id="admin-1", roles=frozenset({Role.ADMIN}))


@pytest.fixture
def volunteer_a() -> Principal:
    return Principal(external_id="volunteer-a", roles=frozenset({Role.VOLUNTEER}))


@pytest.fixture
def volunteer_b() -> Principal:
    return Principal(external_id="volunteer-b", roles=frozenset({Role.VOLUNTEER}))


@pytest.fixture
def volunteer_c() -> Principal:
    return Principal(external_id="volunteer-c", roles=frozenset({Role.VOLUNTEER}))


# =============================================================================
# Services over the in-memory repository
# =============================================================================


@pytest.fixture
def repository() -> InMemoryTaskRepository:
    return InMemoryTaskRepository(lock_timeout=1.0)


@pytest.fixture
def coordinator(repository) -> ParticipationCoordinator:
    return ParticipationCoordinator(repository, CapacityGate(), clock=fixed_clock)


@pytest.fixture
def category_repository() -> InMemoryCategoryRepository:
    return InMemoryCategoryRepository()


@pytest.fixture
def category_service(category_repository, repository) -> CategoryService:
    return CategoryService(category_repository, repository, clock=fixed_clock)


@pytest.fixture
def lifecycle(repository, coordinator, category_service) -> TaskLifecycleManager:
    return TaskLifecycleManager(
        repository, coordinator, categories=category_service, clock=fixed_clock
    )


@pytest.fixture
async def open_task(repository) -> Task:
    """OPEN task with two places, created by organizer-1"""
    task = make_task()
    await repository.save(task)
    return task
