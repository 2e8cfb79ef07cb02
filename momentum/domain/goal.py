"""Goal domain models and enums."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from momentum.domain.json_fields import decode_json


class GoalCategory(StrEnum):
    """Life area a goal belongs to."""

    HEALTH = "health"
    CAREER = "career"
    LEARNING = "learning"
    HABITS = "habits"
    FINANCE = "finance"
    RELATIONSHIPS = "relationships"
    PERSONAL = "personal"


class GoalStatus(StrEnum):
    """Goal lifecycle status."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class GoalPriority(StrEnum):
    """How pressing a goal is."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Goal(BaseModel):
    """Goal data transfer object."""

    id: str = Field(..., description="Unique goal ID from the store")
    user_id: str = Field(..., description="Owner user ID")
    title: str = Field(..., description="Goal title")
    description: str | None = Field(default=None, description="Detailed goal description")
    category: GoalCategory = Field(default=GoalCategory.PERSONAL, description="Life area")
    priority: GoalPriority = Field(default=GoalPriority.MEDIUM, description="Goal priority")
    target_date: datetime | None = Field(default=None, description="Target completion date")
    status: GoalStatus = Field(default=GoalStatus.ACTIVE, description="Current goal status")
    completion_percentage: int = Field(default=0, ge=0, le=100, description="Progress from 0 to 100")
    ai_generated: bool = Field(default=False, description="Whether the goal was suggested by the assistant")
    original_prompt: str | None = Field(default=None, description="Free text the goal was parsed from")
    success_criteria: list[str] = Field(default_factory=list, description="How the user will know it is done")
    created: datetime | None = Field(default=None, description="Creation timestamp")
    updated: datetime | None = Field(default=None, description="Last update timestamp")

    @field_validator("success_criteria", mode="before")
    @classmethod
    def decode_success_criteria(cls, v: Any) -> Any:
        """Accept success criteria as stored JSON text."""
        return decode_json(v, default=[])
