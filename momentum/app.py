"""Composition root: wires settings, logging, clock, store and services."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from momentum.core.clock import Clock, SystemClock
from momentum.core.config import Settings, get_settings
from momentum.core.db_client import RecordStore, SQLiteRecordStore
from momentum.core.logging import configure_logfire
from momentum.services.goal_service import GoalService
from momentum.services.insight_analyzer import InsightAnalyzer
from momentum.services.insight_service import InsightService
from momentum.services.recurrence_engine import RecurrenceEngine
from momentum.services.task_lifecycle import TaskLifecycle
from momentum.services.task_query_service import TaskQueryService


logger = logging.getLogger(__name__)


@dataclass
class MomentumCore:
    """Service graph handed to the UI collaborator."""

    settings: Settings
    clock: Clock
    store: RecordStore
    tasks: TaskLifecycle
    queries: TaskQueryService
    goals: GoalService
    insights: InsightService

    async def close(self) -> None:
        """Close the store connection if the store is SQLite-backed."""
        if isinstance(self.store, SQLiteRecordStore):
            await self.store.close()


async def create_core(
    settings: Settings | None = None,
    *,
    store: RecordStore | None = None,
    clock: Clock | None = None,
) -> MomentumCore:
    """Build the core.

    Without an explicit store, an SQLite store at ``settings.sqlite_db_path``
    is opened and its schema created.
    """
    settings = settings or get_settings()
    configure_logfire(settings)

    clock = clock or SystemClock(settings.tzinfo)
    if store is None:
        sqlite_store = SQLiteRecordStore(settings.sqlite_db_path)
        await sqlite_store.init_db()
        store = sqlite_store

    core = MomentumCore(
        settings=settings,
        clock=clock,
        store=store,
        tasks=TaskLifecycle(store=store, clock=clock, recurrence=RecurrenceEngine()),
        queries=TaskQueryService(clock),
        goals=GoalService(store=store),
        insights=InsightService(
            store=store,
            clock=clock,
            analyzer=InsightAnalyzer(settings.tzinfo),
            settings=settings,
        ),
    )

    logger.info("Momentum core ready", extra={"store": type(store).__name__, "timezone": settings.timezone})
    return core


@asynccontextmanager
async def open_core(
    settings: Settings | None = None,
    *,
    store: RecordStore | None = None,
    clock: Clock | None = None,
) -> AsyncIterator[MomentumCore]:
    """Async context manager around create_core() that closes the store on exit."""
    core = await create_core(settings, store=store, clock=clock)
    try:
        yield core
    finally:
        await core.close()
