"""Insight generation, listing and read tracking."""

import logging

from momentum.core.clock import Clock, to_utc_iso
from momentum.core.config import Settings
from momentum.core.db_client import RecordStore, sanitize_param
from momentum.core.errors import NotFoundError
from momentum.core.logging import log_with_user_context, span
from momentum.domain.goal import Goal
from momentum.domain.insight import Insight
from momentum.domain.task import Task
from momentum.services.insight_analyzer import InsightAnalyzer


logger = logging.getLogger(__name__)

TASKS = "tasks"
GOALS = "goals"
INSIGHTS = "insights"


class InsightService:
    """Runs the analyzer over recent history and persists what it finds."""

    def __init__(
        self,
        *,
        store: RecordStore,
        clock: Clock,
        analyzer: InsightAnalyzer | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or Settings()
        self._store = store
        self._clock = clock
        self._analyzer = analyzer or InsightAnalyzer(settings.tzinfo)
        self._task_window = settings.insight_task_window
        self._goal_window = settings.insight_goal_window
        self._list_limit = settings.insight_list_limit

    async def generate_insights(self, *, user_id: str) -> list[Insight]:
        """Analyze the newest tasks and goals of a user and store the resulting insights.

        The insights of one run are stored together: if any write fails, none
        of them is kept.

        Args:
            user_id: Owner whose history is analyzed

        Returns:
            The stored insights, in analyzer order (may be empty)

        Raises:
            PersistenceError: If reading history or storing an insight fails
        """
        with span("insight_service.generate_insights"):
            owner_filter = f'user_id = "{sanitize_param(user_id)}"'

            task_records = await self._store.list_records(
                collection=TASKS,
                per_page=self._task_window,
                filter_query=owner_filter,
                sort="-created",
            )
            goal_records = await self._store.list_records(
                collection=GOALS,
                per_page=self._goal_window,
                filter_query=owner_filter,
                sort="-created",
            )

            tasks = [Task.model_validate(r) for r in task_records]
            goals = [Goal.model_validate(r) for r in goal_records]
            drafts = self._analyzer.analyze(tasks, goals)

            records = await self._store.create_records(
                collection=INSIGHTS,
                data=[{**draft.model_dump(mode="json"), "user_id": user_id, "read_at": None} for draft in drafts],
            )
            insights = [Insight.model_validate(r) for r in records]

            log_with_user_context(
                logger,
                "info",
                "Generated insights",
                user_id=user_id,
                tasks_analyzed=len(tasks),
                goals_analyzed=len(goals),
                insights=len(insights),
            )
            return insights

    async def list_insights(self, *, user_id: str, limit: int | None = None) -> list[Insight]:
        """Newest insights for a user, at most ``limit`` (default from settings)."""
        records = await self._store.list_records(
            collection=INSIGHTS,
            per_page=limit or self._list_limit,
            filter_query=f'user_id = "{sanitize_param(user_id)}"',
            sort="-created",
        )
        return [Insight.model_validate(r) for r in records]

    async def mark_insight_read(self, *, user_id: str, insight_id: str) -> Insight:
        """Set ``read_at`` the first time an insight is read.

        Calling it again succeeds and keeps the original ``read_at``.

        Raises:
            NotFoundError: If the insight does not exist or belongs to someone else
        """
        with span("insight_service.mark_insight_read"):
            msg = "Insight not found or does not belong to user"
            try:
                record = await self._store.get_record(collection=INSIGHTS, record_id=insight_id)
            except NotFoundError as e:
                raise NotFoundError(msg, collection=INSIGHTS, record_id=insight_id) from e

            if str(record.get("user_id")) != str(user_id):
                raise NotFoundError(msg, collection=INSIGHTS, record_id=insight_id)

            insight = Insight.model_validate(record)
            if insight.read_at is not None:
                logger.debug("Insight %s already read at %s", insight.id, insight.read_at)
                return insight

            updated = await self._store.update_record(
                collection=INSIGHTS,
                record_id=insight.id,
                data={"read_at": to_utc_iso(self._clock.now())},
            )

            log_with_user_context(logger, "info", "Marked insight read", user_id=user_id, insight_id=insight.id)
            return Insight.model_validate(updated)
