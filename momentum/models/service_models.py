"""Pydantic models for service layer return types.

These models provide type safety at service boundaries, converting store
dictionaries and aggregates into typed objects.
"""

from pydantic import BaseModel

from momentum.domain.task import Task


class CompletionResult(BaseModel):
    """Outcome of completing a task.

    The completion itself always succeeded when this is returned. For
    recurring tasks ``next_task`` holds the successor, or ``successor_error``
    explains why it could not be created.
    """

    task: Task
    next_task: Task | None = None
    successor_error: str | None = None

    @property
    def successor_failed(self) -> bool:
        return self.successor_error is not None


class TaskStatistics(BaseModel):
    """Aggregate statistics over a task collection."""

    total: int
    completed: int
    pending: int
    skipped: int
    today_total: int
    today_completed: int
    today_pending: int
    overdue: int
    upcoming: int
    recurring: int
    completion_rate: int
    today_completion_rate: int
    total_completion_time: int
    average_satisfaction: int


class WeeklyStats(BaseModel):
    """Task activity for the last seven days."""

    total_tasks: int
    completed_tasks: int
    completion_rate: int
    average_per_day: int


class GoalStatistics(BaseModel):
    """Aggregate statistics over a goal collection."""

    total: int
    active: int
    completed: int
    paused: int
    average_progress: int
