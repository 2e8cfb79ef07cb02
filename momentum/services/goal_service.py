"""Goal management: owner-scoped CRUD, progress updates and statistics."""

import logging
from collections.abc import Iterable
from typing import Any

from momentum.core.config import constants
from momentum.core.db_client import RecordStore, sanitize_param
from momentum.core.errors import NotFoundError, ValidationError
from momentum.core.logging import log_with_user_context, span
from momentum.core.rounding import round_half_up
from momentum.domain.create_models import GoalCreate
from momentum.domain.goal import Goal, GoalStatus
from momentum.domain.update_models import GoalUpdate
from momentum.models.service_models import GoalStatistics


logger = logging.getLogger(__name__)

GOALS = "goals"

_NON_NULLABLE_FIELDS = ("title", "category", "priority", "status")


def clamp_percentage(value: int) -> int:
    return max(constants.MIN_GOAL_PERCENTAGE, min(constants.MAX_GOAL_PERCENTAGE, value))


def goal_statistics(goals: Iterable[Goal]) -> GoalStatistics:
    """Counts by status and the rounded mean progress over all goals."""
    goals = list(goals)
    average = sum(g.completion_percentage for g in goals) / len(goals) if goals else 0

    return GoalStatistics(
        total=len(goals),
        active=sum(1 for g in goals if g.status == GoalStatus.ACTIVE),
        completed=sum(1 for g in goals if g.status == GoalStatus.COMPLETED),
        paused=sum(1 for g in goals if g.status == GoalStatus.PAUSED),
        average_progress=round_half_up(average),
    )


class GoalService:
    """Owner-scoped goal operations."""

    def __init__(self, *, store: RecordStore) -> None:
        self._store = store

    async def create_goal(self, new_goal: GoalCreate) -> Goal:
        """Create an active goal.

        Raises:
            ValidationError: If user_id or title is missing
        """
        with span("goal_service.create_goal"):
            if not new_goal.user_id:
                raise ValidationError("User ID is required")

            title = new_goal.title.strip()
            if not title:
                raise ValidationError("Goal title is required")

            goal_data = new_goal.model_dump(mode="json")
            goal_data.update(
                {
                    "title": title,
                    "description": new_goal.description.strip() if new_goal.description else None,
                    "status": GoalStatus.ACTIVE,
                    "completion_percentage": clamp_percentage(new_goal.completion_percentage),
                }
            )

            record = await self._store.create_record(collection=GOALS, data=goal_data)
            goal = Goal.model_validate(record)

            log_with_user_context(logger, "info", "Created goal", user_id=goal.user_id, goal_id=goal.id)
            return goal

    async def get_goal(self, *, goal_id: str, user_id: str) -> Goal:
        """Get a goal owned by ``user_id``.

        Raises:
            NotFoundError: If the goal does not exist or belongs to someone else
        """
        msg = "Goal not found or does not belong to user"
        try:
            record = await self._store.get_record(collection=GOALS, record_id=goal_id)
        except NotFoundError as e:
            raise NotFoundError(msg, collection=GOALS, record_id=goal_id) from e

        if str(record.get("user_id")) != str(user_id):
            raise NotFoundError(msg, collection=GOALS, record_id=goal_id)

        return Goal.model_validate(record)

    async def list_goals(self, *, user_id: str, page_size: int = constants.DEFAULT_PER_PAGE_LIMIT) -> list[Goal]:
        """All goals owned by ``user_id``, newest first."""
        filter_query = f'user_id = "{sanitize_param(user_id)}"'
        goals: list[Goal] = []
        page = 1

        while True:
            records = await self._store.list_records(
                collection=GOALS,
                page=page,
                per_page=page_size,
                filter_query=filter_query,
                sort="-created",
            )
            goals.extend(Goal.model_validate(r) for r in records)
            if len(records) < page_size:
                break
            page += 1

        return goals

    async def update_goal(self, *, goal_id: str, user_id: str, patch: GoalUpdate) -> Goal:
        """Apply a partial update to a goal.

        Raises:
            ValidationError: If the patch is empty or blanks a required field
            NotFoundError: If the goal does not exist or belongs to someone else
        """
        with span("goal_service.update_goal"):
            changes: dict[str, Any] = patch.model_dump(mode="json", exclude_unset=True)
            if not changes:
                raise ValidationError("No fields to update")

            for field in _NON_NULLABLE_FIELDS:
                if field in changes and changes[field] is None:
                    raise ValidationError(f"{field} cannot be cleared")

            if "title" in changes:
                changes["title"] = changes["title"].strip()
                if not changes["title"]:
                    raise ValidationError("Goal title is required")

            goal = await self.get_goal(goal_id=goal_id, user_id=user_id)
            record = await self._store.update_record(collection=GOALS, record_id=goal.id, data=changes)

            log_with_user_context(logger, "info", "Updated goal", user_id=user_id, goal_id=goal.id, fields=list(changes))
            return Goal.model_validate(record)

    async def update_goal_progress(self, *, goal_id: str, user_id: str, percentage: int) -> Goal:
        """Set progress, clamped to 0-100.

        Status becomes ``completed`` when ``percentage`` is 100 or more and
        ``active`` otherwise (which also resumes a paused goal).

        Raises:
            NotFoundError: If the goal does not exist or belongs to someone else
        """
        with span("goal_service.update_goal_progress"):
            goal = await self.get_goal(goal_id=goal_id, user_id=user_id)

            status = GoalStatus.COMPLETED if percentage >= constants.MAX_GOAL_PERCENTAGE else GoalStatus.ACTIVE
            record = await self._store.update_record(
                collection=GOALS,
                record_id=goal.id,
                data={"completion_percentage": clamp_percentage(percentage), "status": status},
            )

            log_with_user_context(
                logger,
                "info",
                "Updated goal progress",
                user_id=user_id,
                goal_id=goal.id,
                percentage=percentage,
                status=status,
            )
            return Goal.model_validate(record)

    async def delete_goal(self, *, goal_id: str, user_id: str) -> None:
        """Hard-delete a goal. Tasks linked to it keep their dangling goal_id.

        Raises:
            NotFoundError: If the goal does not exist or belongs to someone else
        """
        with span("goal_service.delete_goal"):
            goal = await self.get_goal(goal_id=goal_id, user_id=user_id)
            await self._store.delete_record(collection=GOALS, record_id=goal.id)

            log_with_user_context(logger, "info", "Deleted goal", user_id=user_id, goal_id=goal.id)
