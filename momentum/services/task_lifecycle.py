"""Task lifecycle: creation, state transitions and completion bookkeeping.

Transitions:
    pending / in_progress --complete--> completed
    pending / in_progress --skip-->     skipped

``completed`` and ``skipped`` are terminal for complete/skip. ``reschedule``
puts any task back to pending at the top of the next hour, and ``update``
patches fields without consulting the state machine.

Every operation is scoped to the caller: a task owned by someone else is
reported exactly like a missing one.
"""

import logging
from datetime import timedelta
from typing import Any

from momentum.core.clock import Clock, to_utc_iso
from momentum.core.config import constants
from momentum.core.db_client import RecordStore, sanitize_param
from momentum.core.errors import InvalidStateTransitionError, NotFoundError, ValidationError
from momentum.core.logging import log_with_user_context, span
from momentum.core.rounding import round_half_up
from momentum.domain.create_models import TaskCreate
from momentum.domain.task import CompletionHistoryEntry, EnergyLevel, Task, TaskStatus
from momentum.domain.update_models import TaskUpdate
from momentum.models.service_models import CompletionResult
from momentum.services.recurrence_engine import RecurrenceEngine


logger = logging.getLogger(__name__)

TASKS = "tasks"

ALLOWED_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.PENDING: {TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED, TaskStatus.SKIPPED},
    TaskStatus.IN_PROGRESS: {TaskStatus.PENDING, TaskStatus.COMPLETED, TaskStatus.SKIPPED},
    TaskStatus.COMPLETED: set(),
    TaskStatus.SKIPPED: set(),
}

# Columns that cannot be cleared through update()
_NON_NULLABLE_FIELDS = ("title", "difficulty_level", "energy_requirement", "status", "is_recurring")


def _clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(upper, value))


def clamp_difficulty(level: int | None) -> int:
    """Clamp difficulty to 1-5; missing or zero means the default."""
    return _clamp(
        level or constants.DEFAULT_DIFFICULTY_LEVEL,
        constants.MIN_DIFFICULTY_LEVEL,
        constants.MAX_DIFFICULTY_LEVEL,
    )


def estimated_duration(minutes: int | None) -> int:
    """Estimated duration in minutes; missing or zero means the default."""
    if minutes is not None and minutes < 0:
        raise ValidationError(f"Estimated duration must be a positive number of minutes, got {minutes}")
    return minutes or constants.DEFAULT_DURATION_MINUTES


def ensure_transition(task: Task, target: TaskStatus) -> None:
    """Raise InvalidStateTransitionError unless ``task`` may move to ``target``."""
    if target not in ALLOWED_TRANSITIONS[task.status]:
        msg = f"Cannot mark task {task.id} as {target}: it is already {task.status}"
        raise InvalidStateTransitionError(msg)


class TaskLifecycle:
    """Owns task state transitions and completion statistics."""

    def __init__(
        self,
        *,
        store: RecordStore,
        clock: Clock,
        recurrence: RecurrenceEngine | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._recurrence = recurrence or RecurrenceEngine()

    async def create(self, new_task: TaskCreate) -> Task:
        """Validate, normalize and persist a new pending task.

        Args:
            new_task: Task input

        Returns:
            The stored task

        Raises:
            ValidationError: If user_id or title is missing, the estimated
                duration is negative, or a recurring task has no pattern
            PersistenceError: If the store write fails
        """
        with span("task_lifecycle.create"):
            if not new_task.user_id:
                raise ValidationError("User ID is required")

            title = new_task.title.strip()
            if not title:
                raise ValidationError("Task title is required")

            if new_task.is_recurring and new_task.recurrence_pattern is None:
                raise ValidationError("Recurring tasks require a recurrence pattern")

            description = new_task.description.strip() if new_task.description else None
            recurrence_config = None
            if new_task.is_recurring and new_task.recurrence_config is not None:
                recurrence_config = new_task.recurrence_config.model_dump(mode="json", exclude_none=True)

            task_data: dict[str, Any] = {
                "user_id": new_task.user_id,
                "goal_id": new_task.goal_id or None,
                "title": title,
                "description": description or None,
                "scheduled_for": to_utc_iso(new_task.scheduled_for),
                "estimated_duration_minutes": estimated_duration(new_task.estimated_duration_minutes),
                "difficulty_level": clamp_difficulty(new_task.difficulty_level),
                "energy_requirement": new_task.energy_requirement or EnergyLevel.MEDIUM,
                "status": TaskStatus.PENDING,
                "is_recurring": new_task.is_recurring,
                "recurrence_pattern": new_task.recurrence_pattern if new_task.is_recurring else None,
                "recurrence_config": recurrence_config,
                "ai_generated": False,
                "context": {},
                "streak_count": 0,
                "completion_count": 0,
                "total_completion_time_minutes": 0,
                "average_completion_time_minutes": 0,
            }

            record = await self._store.create_record(collection=TASKS, data=task_data)
            task = Task.model_validate(record)

            log_with_user_context(
                logger, "info", "Created task", user_id=task.user_id, task_id=task.id, recurring=task.is_recurring
            )
            return task

    async def get_task(self, *, task_id: str, user_id: str) -> Task:
        """Get a task owned by ``user_id``.

        Raises:
            NotFoundError: If the task does not exist or belongs to someone else
        """
        try:
            record = await self._store.get_record(collection=TASKS, record_id=task_id)
        except NotFoundError as e:
            msg = "Task not found or does not belong to user"
            raise NotFoundError(msg, collection=TASKS, record_id=task_id) from e

        if str(record.get("user_id")) != str(user_id):
            msg = "Task not found or does not belong to user"
            raise NotFoundError(msg, collection=TASKS, record_id=task_id)

        return Task.model_validate(record)

    async def list_tasks(self, *, user_id: str, page_size: int = constants.DEFAULT_PER_PAGE_LIMIT) -> list[Task]:
        """All tasks owned by ``user_id``, earliest scheduled first (unscheduled last)."""
        with span("task_lifecycle.list_tasks"):
            filter_query = f'user_id = "{sanitize_param(user_id)}"'
            tasks: list[Task] = []
            page = 1

            while True:
                records = await self._store.list_records(
                    collection=TASKS,
                    page=page,
                    per_page=page_size,
                    filter_query=filter_query,
                    sort="+scheduled_for",
                )
                tasks.extend(Task.model_validate(r) for r in records)
                if len(records) < page_size:
                    break
                page += 1

            logger.debug("Retrieved %d tasks for user %s", len(tasks), user_id)
            return tasks

    async def complete(
        self,
        *,
        task_id: str,
        user_id: str,
        satisfaction: int = constants.DEFAULT_SATISFACTION,
        notes: str | None = None,
    ) -> CompletionResult:
        """Complete a task, record statistics and continue a recurring series.

        The successor of a recurring task is created after the completion is
        stored. If that second write fails the completion still stands and
        the failure is reported in ``CompletionResult.successor_error``.

        Args:
            task_id: Task ID
            user_id: Caller's user ID
            satisfaction: Satisfaction rating from 1 to 5
            notes: Optional completion notes

        Returns:
            CompletionResult with the completed task and optional successor

        Raises:
            ValidationError: If satisfaction is outside 1-5
            InvalidStateTransitionError: If the task is already completed or skipped
            NotFoundError: If the task does not exist or belongs to someone else
            PersistenceError: If storing the completion fails
        """
        with span("task_lifecycle.complete"):
            if not constants.MIN_SATISFACTION <= satisfaction <= constants.MAX_SATISFACTION:
                msg = (
                    f"Satisfaction must be between {constants.MIN_SATISFACTION} "
                    f"and {constants.MAX_SATISFACTION}, got {satisfaction}"
                )
                raise ValidationError(msg)

            task = await self.get_task(task_id=task_id, user_id=user_id)
            ensure_transition(task, TaskStatus.COMPLETED)

            now = self._clock.now()
            time_spent = task.estimated_duration_minutes or constants.DEFAULT_DURATION_MINUTES
            completion_count = task.completion_count + 1
            total_time = task.total_completion_time_minutes + time_spent

            entry = CompletionHistoryEntry(
                completed_at=now,
                satisfaction=satisfaction,
                notes=notes,
                time_spent=time_spent,
            )
            # Keys written by collaborators ride along in model_extra
            context = {
                **(task.context.model_extra or {}),
                **task.context.model_dump(mode="json", exclude_unset=True),
            }
            context["last_satisfaction"] = satisfaction
            context["last_notes"] = notes
            context["completion_history"] = [
                *context.get("completion_history", []),
                entry.model_dump(mode="json"),
            ]

            update_data: dict[str, Any] = {
                "status": TaskStatus.COMPLETED,
                "completed_at": to_utc_iso(now),
                "streak_count": task.streak_count + 1,
                "completion_count": completion_count,
                "total_completion_time_minutes": total_time,
                "average_completion_time_minutes": round_half_up(total_time / completion_count),
                "context": context,
            }

            record = await self._store.update_record(collection=TASKS, record_id=task.id, data=update_data)
            result = CompletionResult(task=Task.model_validate(record))

            log_with_user_context(
                logger,
                "info",
                "Completed task",
                user_id=user_id,
                task_id=task.id,
                satisfaction=satisfaction,
                streak_count=result.task.streak_count,
            )

            if task.is_recurring and task.recurrence_pattern:
                result.next_task, result.successor_error = await self._continue_series(task)

            return result

    async def _continue_series(self, task: Task) -> tuple[Task | None, str | None]:
        """Create the next occurrence of a recurring task.

        Returns (successor, None) on success, (None, None) when the series has
        ended or the task was never scheduled, and (None, error) on failure.
        """
        if task.scheduled_for is None:
            logger.debug("Recurring task %s has no schedule; no successor created", task.id)
            return None, None

        # Failures here are reported, never raised
        try:
            next_date = self._recurrence.next_occurrence(
                task.scheduled_for, task.recurrence_pattern, task.recurrence_config
            )
            if next_date is None:
                log_with_user_context(logger, "info", "Recurring series ended", user_id=task.user_id, task_id=task.id)
                return None, None

            successor = await self.create(
                TaskCreate(
                    user_id=task.user_id,
                    goal_id=task.goal_id,
                    title=task.title,
                    description=task.description,
                    scheduled_for=next_date,
                    estimated_duration_minutes=task.estimated_duration_minutes,
                    difficulty_level=task.difficulty_level,
                    energy_requirement=task.energy_requirement,
                    is_recurring=True,
                    recurrence_pattern=task.recurrence_pattern,
                    recurrence_config=task.recurrence_config,
                )
            )
        except Exception as e:
            log_with_user_context(
                logger,
                "error",
                "Failed to create next occurrence of recurring task",
                user_id=task.user_id,
                task_id=task.id,
                error=str(e),
            )
            return None, str(e)

        log_with_user_context(
            logger,
            "info",
            "Created next occurrence",
            user_id=task.user_id,
            task_id=task.id,
            next_task_id=successor.id,
            scheduled_for=to_utc_iso(successor.scheduled_for),
        )
        return successor, None

    async def skip(self, *, task_id: str, user_id: str, reason: str | None = None) -> Task:
        """Skip a task.

        The task's context is replaced by ``{"skip_reason": reason}``; earlier
        context (including completion history) is discarded.

        Raises:
            InvalidStateTransitionError: If the task is already completed or skipped
            NotFoundError: If the task does not exist or belongs to someone else
        """
        with span("task_lifecycle.skip"):
            task = await self.get_task(task_id=task_id, user_id=user_id)
            ensure_transition(task, TaskStatus.SKIPPED)

            record = await self._store.update_record(
                collection=TASKS,
                record_id=task.id,
                data={
                    "status": TaskStatus.SKIPPED,
                    "skipped_at": to_utc_iso(self._clock.now()),
                    "context": {"skip_reason": reason},
                },
            )

            log_with_user_context(logger, "info", "Skipped task", user_id=user_id, task_id=task.id, reason=reason)
            return Task.model_validate(record)

    async def update(self, *, task_id: str, user_id: str, patch: TaskUpdate) -> Task:
        """Apply a partial update to a task.

        Raises:
            ValidationError: If the patch is empty, blanks the title, clears a
                required field or sets a negative estimated duration
            NotFoundError: If the task does not exist or belongs to someone else
        """
        with span("task_lifecycle.update"):
            changes = patch.model_dump(mode="json", exclude_unset=True)
            if not changes:
                raise ValidationError("No fields to update")

            for field in _NON_NULLABLE_FIELDS:
                if field in changes and changes[field] is None:
                    raise ValidationError(f"{field} cannot be cleared")

            if "title" in changes:
                changes["title"] = changes["title"].strip()
                if not changes["title"]:
                    raise ValidationError("Task title is required")

            if "difficulty_level" in changes:
                changes["difficulty_level"] = clamp_difficulty(changes["difficulty_level"])

            if changes.get("estimated_duration_minutes") is not None:
                changes["estimated_duration_minutes"] = estimated_duration(changes["estimated_duration_minutes"])

            if "scheduled_for" in changes:
                changes["scheduled_for"] = to_utc_iso(patch.scheduled_for)

            if changes.get("is_recurring") is False:
                changes["recurrence_pattern"] = None
                changes["recurrence_config"] = None

            task = await self.get_task(task_id=task_id, user_id=user_id)
            record = await self._store.update_record(collection=TASKS, record_id=task.id, data=changes)

            log_with_user_context(logger, "info", "Updated task", user_id=user_id, task_id=task.id, fields=list(changes))
            return Task.model_validate(record)

    async def delete(self, *, task_id: str, user_id: str) -> None:
        """Hard-delete a task.

        Raises:
            NotFoundError: If the task does not exist or belongs to someone else
        """
        with span("task_lifecycle.delete"):
            task = await self.get_task(task_id=task_id, user_id=user_id)
            await self._store.delete_record(collection=TASKS, record_id=task.id)

            log_with_user_context(logger, "info", "Deleted task", user_id=user_id, task_id=task.id, title=task.title)

    async def reschedule(self, *, task_id: str, user_id: str) -> Task:
        """Move a task to the top of the next hour and make it pending again.

        Raises:
            NotFoundError: If the task does not exist or belongs to someone else
        """
        with span("task_lifecycle.reschedule"):
            task = await self.get_task(task_id=task_id, user_id=user_id)

            now = self._clock.now()
            next_hour = now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)

            record = await self._store.update_record(
                collection=TASKS,
                record_id=task.id,
                data={"scheduled_for": to_utc_iso(next_hour), "status": TaskStatus.PENDING},
            )

            log_with_user_context(
                logger,
                "info",
                "Rescheduled task",
                user_id=user_id,
                task_id=task.id,
                scheduled_for=to_utc_iso(next_hour),
            )
            return Task.model_validate(record)
