"""Configuration management for momentum."""

from zoneinfo import ZoneInfo

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MOMENTUM_",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage Configuration
    sqlite_db_path: str = Field(default="momentum.db", description="Path to the SQLite database file")

    # Time Configuration
    timezone: str = Field(default="UTC", description="IANA timezone that defines 'today' and hour-of-day buckets")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment reported to Logfire")

    # Insight Generation Configuration
    insight_task_window: int = Field(default=50, ge=1, description="Number of most recent tasks analyzed per run")
    insight_goal_window: int = Field(default=20, ge=1, description="Number of most recent goals analyzed per run")
    insight_list_limit: int = Field(default=10, ge=1, description="Default number of insights returned by listings")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate the timezone is a known IANA key."""
        try:
            ZoneInfo(v)
        except (KeyError, ValueError) as e:
            msg = f"Unknown timezone: {v}"
            raise ValueError(msg) from e
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        """Timezone object for the configured timezone."""
        return ZoneInfo(self.timezone)


# Application Constants
class Constants:
    """Application-wide constants."""

    # Task Defaults
    DEFAULT_DURATION_MINUTES: int = 30
    DEFAULT_DIFFICULTY_LEVEL: int = 2
    MIN_DIFFICULTY_LEVEL: int = 1
    MAX_DIFFICULTY_LEVEL: int = 5

    # Completion Feedback
    DEFAULT_SATISFACTION: int = 3
    MIN_SATISFACTION: int = 1
    MAX_SATISFACTION: int = 5

    # Overdue Policies (hours past scheduled time)
    OVERDUE_STRICT_HOURS: int = 1  # Per-task overdue flag
    OVERDUE_LENIENT_HOURS: int = 2  # Statistics and display status

    # Display status: tasks further out than this are "upcoming"
    UPCOMING_HORIZON_HOURS: int = 1

    # Goal Progress
    MIN_GOAL_PERCENTAGE: int = 0
    MAX_GOAL_PERCENTAGE: int = 100

    # Weekly Stats
    WEEKLY_STATS_DAYS: int = 7

    # Pagination Defaults
    DEFAULT_PER_PAGE_LIMIT: int = 100


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()


constants = Constants()
