"""Pydantic models for creating records in the store."""

from datetime import datetime

from pydantic import BaseModel, Field

from momentum.domain.goal import GoalCategory, GoalPriority
from momentum.domain.task import EnergyLevel, RecurrenceConfig, RecurrencePattern, TaskStatus


class TaskCreate(BaseModel):
    """Input for creating a task.

    Only shape is checked here; required-field and range rules are applied by
    the task lifecycle so they surface as core validation errors.
    """

    user_id: str = Field(..., description="Owner user ID")
    title: str = Field(..., description="Task title (trimmed, must not be empty)")
    description: str | None = Field(default=None, description="Detailed description (trimmed)")
    goal_id: str | None = Field(default=None, description="Linked goal ID")
    scheduled_for: datetime | None = Field(default=None, description="When the task is scheduled")
    estimated_duration_minutes: int | None = Field(default=None, description="Defaults to 30 when missing")
    difficulty_level: int | None = Field(default=None, description="Clamped to 1-5, defaults to 2")
    energy_requirement: EnergyLevel | None = Field(default=None, description="Defaults to medium")
    status: TaskStatus | None = Field(default=None, description="Ignored: new tasks are always pending")
    is_recurring: bool = Field(default=False, description="Whether completing spawns a successor")
    recurrence_pattern: RecurrencePattern | None = Field(default=None, description="Required when recurring")
    recurrence_config: RecurrenceConfig | None = Field(default=None, description="Recurrence settings")


class GoalCreate(BaseModel):
    """Input for creating a goal."""

    user_id: str = Field(..., description="Owner user ID")
    title: str = Field(..., description="Goal title (trimmed, must not be empty)")
    description: str | None = Field(default=None, description="Detailed description")
    category: GoalCategory = Field(default=GoalCategory.PERSONAL, description="Life area")
    priority: GoalPriority = Field(default=GoalPriority.MEDIUM, description="Goal priority")
    target_date: datetime | None = Field(default=None, description="Target completion date")
    completion_percentage: int = Field(default=0, description="Initial progress, clamped to 0-100")
    ai_generated: bool = Field(default=False, description="Whether the goal was suggested by the assistant")
    original_prompt: str | None = Field(default=None, description="Free text the goal was parsed from")
    success_criteria: list[str] = Field(default_factory=list, description="How the user will know it is done")
