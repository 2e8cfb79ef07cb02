"""Pytest configuration and fixtures for unit tests."""

from typing import Any

import pytest

from momentum.core.clock import FixedClock
from momentum.core.config import Settings
from momentum.domain.goal import Goal
from momentum.domain.task import Task
from momentum.services.goal_service import GoalService
from momentum.services.insight_service import InsightService
from momentum.services.task_lifecycle import TaskLifecycle
from tests.unit.helpers import NOW, USER_ID
from tests.unit.mocks import InMemoryRecordStore


@pytest.fixture
def store() -> InMemoryRecordStore:
    """Provides a fresh InMemoryRecordStore for each test."""
    return InMemoryRecordStore()


@pytest.fixture
def clock() -> FixedClock:
    """Clock frozen at NOW (2024-06-15 12:00 UTC)."""
    return FixedClock(NOW)


@pytest.fixture
def settings() -> Settings:
    """Default settings, ignoring any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def lifecycle(store: InMemoryRecordStore, clock: FixedClock) -> TaskLifecycle:
    return TaskLifecycle(store=store, clock=clock)


@pytest.fixture
def goal_service(store: InMemoryRecordStore) -> GoalService:
    return GoalService(store=store)


@pytest.fixture
def insight_service(store: InMemoryRecordStore, clock: FixedClock, settings: Settings) -> InsightService:
    return InsightService(store=store, clock=clock, settings=settings)


@pytest.fixture
def task_factory():
    """Factory for building Task models without touching a store.

    Usage:
        task = task_factory(status="completed", scheduled_for=NOW)
    """
    counter = iter(range(1, 10_000))

    def _create_task(**kwargs: Any) -> Task:
        data: dict[str, Any] = {
            "id": f"task_{next(counter)}",
            "user_id": USER_ID,
            "title": "Test task",
        }
        data.update(kwargs)
        return Task.model_validate(data)

    return _create_task


@pytest.fixture
def goal_factory():
    """Factory for building Goal models without touching a store.

    Usage:
        goal = goal_factory(category="health", completion_percentage=80)
    """
    counter = iter(range(1, 10_000))

    def _create_goal(**kwargs: Any) -> Goal:
        data: dict[str, Any] = {
            "id": f"goal_{next(counter)}",
            "user_id": USER_ID,
            "title": "Test goal",
        }
        data.update(kwargs)
        return Goal.model_validate(data)

    return _create_goal
