"""Domain models and DTOs."""

from momentum.domain.create_models import GoalCreate, TaskCreate
from momentum.domain.goal import Goal, GoalCategory, GoalPriority, GoalStatus
from momentum.domain.insight import Insight, InsightDraft, InsightType
from momentum.domain.task import (
    CompletionHistoryEntry,
    EnergyLevel,
    RecurrenceConfig,
    RecurrencePattern,
    Task,
    TaskContext,
    TaskDisplayStatus,
    TaskStatus,
)
from momentum.domain.update_models import GoalUpdate, TaskUpdate


__all__ = [
    "CompletionHistoryEntry",
    "EnergyLevel",
    "Goal",
    "GoalCategory",
    "GoalCreate",
    "GoalPriority",
    "GoalStatus",
    "GoalUpdate",
    "Insight",
    "InsightDraft",
    "InsightType",
    "RecurrenceConfig",
    "RecurrencePattern",
    "Task",
    "TaskContext",
    "TaskCreate",
    "TaskDisplayStatus",
    "TaskStatus",
    "TaskUpdate",
]
