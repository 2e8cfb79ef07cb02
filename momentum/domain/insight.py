"""Insight domain models and enums."""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, field_validator

from momentum.domain.json_fields import decode_json


class InsightType(StrEnum):
    """Kind of observation an insight makes."""

    PATTERN_RECOGNITION = "pattern_recognition"
    BEHAVIORAL_COACHING = "behavioral_coaching"
    ACHIEVEMENT = "achievement"
    SUGGESTION = "suggestion"


class CompletionRateMetadata(BaseModel):
    """Evidence for the consistency achievement."""

    kind: Literal["completion_rate"] = "completion_rate"
    completion_rate: float
    total_tasks: int


class SkipRateMetadata(BaseModel):
    """Evidence for the skip-pattern coaching insight."""

    kind: Literal["skip_rate"] = "skip_rate"
    skip_rate: float
    skipped_tasks: int


class PeakHourMetadata(BaseModel):
    """Evidence for the peak-productivity insight."""

    kind: Literal["peak_hour"] = "peak_hour"
    peak_hour: int
    task_count: int


class GoalProgressMetadata(BaseModel):
    """Evidence for the goal progress achievement or boost suggestion."""

    kind: Literal["goal_progress"] = "goal_progress"
    avg_progress: float
    active_goals_count: int


class StreakMetadata(BaseModel):
    """Evidence for the streak achievement."""

    kind: Literal["streak"] = "streak"
    max_streak: int
    tasks_with_streaks: int


class CategoryStrengthMetadata(BaseModel):
    """Evidence for the category strength insight."""

    kind: Literal["category_strength"] = "category_strength"
    best_category: str
    best_rate: float
    worst_category: str
    worst_rate: float


InsightMetadata = Annotated[
    CompletionRateMetadata
    | SkipRateMetadata
    | PeakHourMetadata
    | GoalProgressMetadata
    | StreakMetadata
    | CategoryStrengthMetadata,
    Field(discriminator="kind"),
]


class InsightDraft(BaseModel):
    """An insight produced by the analyzer, not yet persisted."""

    type: InsightType
    title: str
    description: str
    confidence: float = Field(..., ge=0, le=1)
    actionable: bool
    icon: str
    metadata: InsightMetadata


class Insight(BaseModel):
    """Persisted insight data transfer object."""

    id: str = Field(..., description="Unique insight ID from the store")
    user_id: str = Field(..., description="Owner user ID")
    type: InsightType = Field(..., description="Insight type")
    title: str = Field(..., description="Short headline")
    description: str = Field(..., description="Full observation text")
    confidence: float = Field(..., ge=0, le=1, description="Confidence score")
    actionable: bool = Field(default=False, description="Whether the user can act on it")
    icon: str = Field(..., description="Glyph shown next to the insight")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Evidence behind the insight")
    read_at: datetime | None = Field(default=None, description="Set once when the user reads it")
    created: datetime | None = Field(default=None, description="Creation timestamp")
    updated: datetime | None = Field(default=None, description="Last update timestamp")

    @field_validator("metadata", mode="before")
    @classmethod
    def decode_metadata(cls, v: Any) -> Any:
        """Accept metadata as stored JSON text."""
        return decode_json(v, default={})
