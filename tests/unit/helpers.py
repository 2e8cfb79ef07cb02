"""Shared values for unit tests."""

from datetime import UTC, datetime


NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)
USER_ID = "user_alice"
OTHER_USER_ID = "user_bob"
