"""Task domain models and enums."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from momentum.domain.json_fields import decode_json


class TaskStatus(StrEnum):
    """Task lifecycle status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class EnergyLevel(StrEnum):
    """Energy a task demands from the user."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecurrencePattern(StrEnum):
    """Cadence governing successor-task creation."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class TaskDisplayStatus(StrEnum):
    """Bucket a task falls into for display."""

    COMPLETED = "completed"
    OVERDUE = "overdue"
    PENDING = "pending"
    UPCOMING = "upcoming"


class RecurrenceConfig(BaseModel):
    """Recurrence settings for a recurring task.

    Only ``interval`` and ``end_date`` affect the next occurrence; the other
    fields are stored for the UI and carried over to successor tasks.
    """

    interval: int | None = Field(default=None, description="Repeat every N periods (treated as 1 when unset)")
    end_date: datetime | None = Field(default=None, description="Series ends once an occurrence would pass this")
    max_occurrences: int | None = Field(default=None, description="Stored but not enforced")
    days_of_week: list[int] | None = Field(default=None, description="Stored but not enforced (0=Sunday)")
    day_of_month: int | None = Field(default=None, description="Stored but not enforced")


class CompletionHistoryEntry(BaseModel):
    """One completion appended to a task's history."""

    completed_at: datetime
    satisfaction: int
    notes: str | None = None
    time_spent: int


class TaskContext(BaseModel):
    """Free-form task context with the keys the core reads and writes.

    Unknown keys written by collaborators are kept.
    """

    model_config = ConfigDict(extra="allow")

    last_satisfaction: int | None = None
    last_notes: str | None = None
    skip_reason: str | None = None
    completion_history: list[CompletionHistoryEntry] = Field(default_factory=list)


class Task(BaseModel):
    """Task data transfer object."""

    id: str = Field(..., description="Unique task ID from the store")
    user_id: str = Field(..., description="Owner user ID")
    goal_id: str | None = Field(default=None, description="Linked goal ID (weak reference)")
    title: str = Field(..., description="Task title")
    description: str | None = Field(default=None, description="Detailed task description")
    scheduled_for: datetime | None = Field(default=None, description="When the task is scheduled")
    estimated_duration_minutes: int | None = Field(default=None, description="Estimated duration in minutes")
    difficulty_level: int = Field(default=2, ge=1, le=5, description="Difficulty from 1 (easy) to 5 (hard)")
    energy_requirement: EnergyLevel = Field(default=EnergyLevel.MEDIUM, description="Energy required")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Current lifecycle status")
    completed_at: datetime | None = Field(default=None, description="Set when the task is completed")
    skipped_at: datetime | None = Field(default=None, description="Set when the task is skipped")
    ai_generated: bool = Field(default=False, description="Whether the task was suggested by the assistant")
    context: TaskContext = Field(default_factory=TaskContext, description="Free-form task context")
    is_recurring: bool = Field(default=False, description="Whether completing spawns a successor")
    recurrence_pattern: RecurrencePattern | None = Field(default=None, description="Recurrence cadence")
    recurrence_config: RecurrenceConfig | None = Field(default=None, description="Recurrence settings")
    streak_count: int = Field(default=0, description="Completions recorded on this task (never reset)")
    completion_count: int = Field(default=0, description="Number of completions")
    total_completion_time_minutes: int = Field(default=0, description="Sum of time spent across completions")
    average_completion_time_minutes: int = Field(default=0, description="Rounded mean time per completion")
    created: datetime | None = Field(default=None, description="Creation timestamp")
    updated: datetime | None = Field(default=None, description="Last update timestamp")

    @field_validator("context", mode="before")
    @classmethod
    def decode_context(cls, v: Any) -> Any:
        """Accept context as stored JSON text."""
        return decode_json(v, default={})

    @field_validator("recurrence_config", mode="before")
    @classmethod
    def decode_recurrence_config(cls, v: Any) -> Any:
        """Accept recurrence config as stored JSON text."""
        return decode_json(v)

    @field_validator(
        "streak_count",
        "completion_count",
        "total_completion_time_minutes",
        "average_completion_time_minutes",
        mode="before",
    )
    @classmethod
    def default_counters(cls, v: Any) -> Any:
        """Missing counters count as zero."""
        return 0 if v is None else v
