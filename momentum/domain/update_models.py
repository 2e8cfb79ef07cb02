"""Update models for store operations."""

from datetime import datetime

from pydantic import BaseModel

from momentum.domain.goal import GoalCategory, GoalPriority, GoalStatus
from momentum.domain.task import EnergyLevel, RecurrenceConfig, RecurrencePattern, TaskStatus


class TaskUpdate(BaseModel):
    """Partial task patch; only fields explicitly set are written."""

    title: str | None = None
    description: str | None = None
    goal_id: str | None = None
    scheduled_for: datetime | None = None
    estimated_duration_minutes: int | None = None
    difficulty_level: int | None = None
    energy_requirement: EnergyLevel | None = None
    status: TaskStatus | None = None
    is_recurring: bool | None = None
    recurrence_pattern: RecurrencePattern | None = None
    recurrence_config: RecurrenceConfig | None = None


class GoalUpdate(BaseModel):
    """Partial goal patch; only fields explicitly set are written."""

    title: str | None = None
    description: str | None = None
    category: GoalCategory | None = None
    priority: GoalPriority | None = None
    target_date: datetime | None = None
    status: GoalStatus | None = None
    success_criteria: list[str] | None = None
