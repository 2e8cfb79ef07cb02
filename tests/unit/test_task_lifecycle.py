"""Unit tests for the task lifecycle."""

import logging
from datetime import UTC, datetime, timedelta, timezone

import pytest

from momentum.core.errors import InvalidStateTransitionError, NotFoundError, PersistenceError, ValidationError
from momentum.domain.create_models import TaskCreate
from momentum.domain.task import EnergyLevel, RecurrenceConfig, RecurrencePattern, Task, TaskStatus
from momentum.domain.update_models import TaskUpdate
from tests.unit.helpers import NOW, OTHER_USER_ID, USER_ID


async def _seed_task(store, **overrides) -> dict:
    """Insert a task record directly, bypassing create() normalization."""
    data = {
        "user_id": USER_ID,
        "title": "Seeded task",
        "status": "pending",
        "difficulty_level": 2,
        "energy_requirement": "medium",
        "estimated_duration_minutes": 30,
        "is_recurring": False,
        "context": {},
        "streak_count": 0,
        "completion_count": 0,
        "total_completion_time_minutes": 0,
        "average_completion_time_minutes": 0,
    }
    data.update(overrides)
    return await store.create_record(collection="tasks", data=data)


@pytest.mark.unit
class TestCreate:
    """Tests for TaskLifecycle.create()."""

    async def test_applies_defaults(self, lifecycle):
        """Missing duration, difficulty and energy get their defaults."""
        task = await lifecycle.create(TaskCreate(user_id=USER_ID, title="Write report"))

        assert task.status == TaskStatus.PENDING
        assert task.estimated_duration_minutes == 30
        assert task.difficulty_level == 2
        assert task.energy_requirement == EnergyLevel.MEDIUM
        assert task.ai_generated is False
        assert task.streak_count == 0
        assert task.completion_count == 0
        assert task.context.model_dump(exclude_unset=True) == {}

    async def test_trims_title_and_description(self, lifecycle):
        """Title and description are stored trimmed."""
        task = await lifecycle.create(
            TaskCreate(user_id=USER_ID, title="  Stretch  ", description="  ten minutes \n")
        )

        assert task.title == "Stretch"
        assert task.description == "ten minutes"

    async def test_blank_description_stored_as_none(self, lifecycle):
        """A whitespace-only description is dropped."""
        task = await lifecycle.create(TaskCreate(user_id=USER_ID, title="Stretch", description="   "))

        assert task.description is None

    @pytest.mark.parametrize(("given", "expected"), [(0, 2), (-3, 1), (1, 1), (4, 4), (9, 5)])
    async def test_clamps_difficulty(self, lifecycle, given, expected):
        """Difficulty is clamped to 1-5, with 0 meaning the default."""
        task = await lifecycle.create(TaskCreate(user_id=USER_ID, title="Lift", difficulty_level=given))

        assert task.difficulty_level == expected

    async def test_forces_pending_status(self, lifecycle):
        """A caller-supplied status is ignored."""
        task = await lifecycle.create(TaskCreate(user_id=USER_ID, title="Read", status=TaskStatus.COMPLETED))

        assert task.status == TaskStatus.PENDING
        assert task.completed_at is None

    async def test_nulls_recurrence_when_not_recurring(self, lifecycle):
        """Pattern and config are dropped for one-off tasks."""
        task = await lifecycle.create(
            TaskCreate(
                user_id=USER_ID,
                title="One-off",
                is_recurring=False,
                recurrence_pattern=RecurrencePattern.DAILY,
                recurrence_config=RecurrenceConfig(interval=2),
            )
        )

        assert task.is_recurring is False
        assert task.recurrence_pattern is None
        assert task.recurrence_config is None

    async def test_keeps_recurrence_settings(self, lifecycle):
        """Recurring tasks keep their pattern and config."""
        task = await lifecycle.create(
            TaskCreate(
                user_id=USER_ID,
                title="Water plants",
                scheduled_for=NOW,
                is_recurring=True,
                recurrence_pattern=RecurrencePattern.WEEKLY,
                recurrence_config=RecurrenceConfig(interval=2),
            )
        )

        assert task.is_recurring is True
        assert task.recurrence_pattern == RecurrencePattern.WEEKLY
        assert task.recurrence_config == RecurrenceConfig(interval=2)
        assert task.scheduled_for == NOW

    @pytest.mark.parametrize("title", ["", "   ", "\n\t"])
    async def test_rejects_blank_title_before_store_call(self, lifecycle, store, title):
        """A blank title raises ValidationError without writing."""
        with pytest.raises(ValidationError, match="title"):
            await lifecycle.create(TaskCreate(user_id=USER_ID, title=title))

        assert store.write_count == 0

    async def test_rejects_missing_user_id(self, lifecycle, store):
        """An empty user ID raises ValidationError without writing."""
        with pytest.raises(ValidationError, match="User ID"):
            await lifecycle.create(TaskCreate(user_id="", title="Walk"))

        assert store.write_count == 0

    async def test_rejects_recurring_without_pattern(self, lifecycle, store):
        """Recurring tasks need a pattern."""
        with pytest.raises(ValidationError, match="pattern"):
            await lifecycle.create(TaskCreate(user_id=USER_ID, title="Walk", is_recurring=True))

        assert store.write_count == 0

    @pytest.mark.parametrize("minutes", [-1, -45])
    async def test_rejects_negative_duration_before_store_call(self, lifecycle, store, minutes):
        """A negative estimate raises ValidationError without writing."""
        with pytest.raises(ValidationError, match="Estimated duration"):
            await lifecycle.create(TaskCreate(user_id=USER_ID, title="Walk", estimated_duration_minutes=minutes))

        assert store.write_count == 0

    async def test_zero_duration_gets_default(self, lifecycle):
        """Zero minutes falls back to the 30 minute default."""
        task = await lifecycle.create(TaskCreate(user_id=USER_ID, title="Walk", estimated_duration_minutes=0))

        assert task.estimated_duration_minutes == 30

    async def test_stores_schedule_in_utc(self, lifecycle, store):
        """Offsets are normalized to UTC before writing."""
        plus_five = timezone(timedelta(hours=5))

        task = await lifecycle.create(
            TaskCreate(user_id=USER_ID, title="Walk", scheduled_for=datetime(2024, 6, 15, 10, 0, tzinfo=plus_five))
        )

        assert store.records("tasks")[0]["scheduled_for"] == "2024-06-15T05:00:00+00:00"
        assert task.scheduled_for == datetime(2024, 6, 15, 5, 0, tzinfo=UTC)

    async def test_store_failure_propagates(self, lifecycle, store):
        """PersistenceError from the store reaches the caller."""
        store.fail_next_create("tasks")

        with pytest.raises(PersistenceError):
            await lifecycle.create(TaskCreate(user_id=USER_ID, title="Walk"))


@pytest.mark.unit
class TestComplete:
    """Tests for TaskLifecycle.complete()."""

    async def test_marks_completed_and_updates_counters(self, lifecycle):
        """Status, timestamp, streak and counters are updated."""
        task = await lifecycle.create(TaskCreate(user_id=USER_ID, title="Run", estimated_duration_minutes=45))

        result = await lifecycle.complete(task_id=task.id, user_id=USER_ID, satisfaction=4, notes="felt good")
        done = result.task

        assert done.status == TaskStatus.COMPLETED
        assert done.completed_at == NOW
        assert done.skipped_at is None
        assert done.streak_count == task.streak_count + 1
        assert done.completion_count == task.completion_count + 1
        assert done.total_completion_time_minutes == 45
        assert done.average_completion_time_minutes == 45
        assert result.next_task is None
        assert result.successor_error is None

    async def test_records_history_and_feedback(self, lifecycle):
        """Satisfaction and notes land in context and history."""
        task = await lifecycle.create(TaskCreate(user_id=USER_ID, title="Run"))

        result = await lifecycle.complete(task_id=task.id, user_id=USER_ID, satisfaction=5, notes="easy")
        context = result.task.context

        assert context.last_satisfaction == 5
        assert context.last_notes == "easy"
        assert len(context.completion_history) == 1
        entry = context.completion_history[0]
        assert entry.completed_at == NOW
        assert entry.satisfaction == 5
        assert entry.notes == "easy"
        assert entry.time_spent == 30

    async def test_default_satisfaction_is_three(self, lifecycle):
        """Satisfaction defaults to 3 when not given."""
        task = await lifecycle.create(TaskCreate(user_id=USER_ID, title="Run"))

        result = await lifecycle.complete(task_id=task.id, user_id=USER_ID)

        assert result.task.context.last_satisfaction == 3
        assert result.task.context.last_notes is None

    async def test_merges_existing_context(self, lifecycle, store):
        """Existing context keys and history survive completion."""
        earlier = {"completed_at": "2024-06-01T08:00:00+00:00", "satisfaction": 2, "notes": None, "time_spent": 20}
        record = await _seed_task(store, context={"mood": "sunny", "completion_history": [earlier]})

        result = await lifecycle.complete(task_id=record["id"], user_id=USER_ID, satisfaction=4)
        stored = (await store.get_record(collection="tasks", record_id=record["id"]))["context"]

        assert stored["mood"] == "sunny"
        assert stored["last_satisfaction"] == 4
        assert len(stored["completion_history"]) == 2
        assert stored["completion_history"][0]["satisfaction"] == 2
        assert result.task.context.completion_history[1].satisfaction == 4

    async def test_average_accumulates_and_rounds_half_up(self, lifecycle, store):
        """Average is recomputed from totals and .5 rounds up."""
        record = await _seed_task(
            store,
            estimated_duration_minutes=3,
            streak_count=1,
            completion_count=1,
            total_completion_time_minutes=2,
            average_completion_time_minutes=2,
        )

        result = await lifecycle.complete(task_id=record["id"], user_id=USER_ID)

        assert result.task.completion_count == 2
        assert result.task.total_completion_time_minutes == 5
        assert result.task.average_completion_time_minutes == 3
        assert result.task.streak_count == 2

    async def test_missing_duration_counts_as_thirty_minutes(self, lifecycle, store):
        """A task without an estimate adds 30 minutes."""
        record = await _seed_task(store, estimated_duration_minutes=None)

        result = await lifecycle.complete(task_id=record["id"], user_id=USER_ID)

        assert result.task.total_completion_time_minutes == 30

    async def test_in_progress_task_can_be_completed(self, lifecycle, store):
        """Completion is allowed from in_progress."""
        record = await _seed_task(store, status="in_progress")

        result = await lifecycle.complete(task_id=record["id"], user_id=USER_ID)

        assert result.task.status == TaskStatus.COMPLETED

    @pytest.mark.parametrize("satisfaction", [0, 6, -1])
    async def test_rejects_out_of_range_satisfaction(self, lifecycle, store, satisfaction):
        """Satisfaction outside 1-5 fails before any write."""
        record = await _seed_task(store)
        writes = store.write_count

        with pytest.raises(ValidationError, match="Satisfaction"):
            await lifecycle.complete(task_id=record["id"], user_id=USER_ID, satisfaction=satisfaction)

        assert store.write_count == writes

    @pytest.mark.parametrize("status", ["completed", "skipped"])
    async def test_terminal_task_cannot_be_completed(self, lifecycle, store, status):
        """Completing a completed or skipped task is rejected without writing."""
        record = await _seed_task(store, status=status)
        writes = store.write_count

        with pytest.raises(InvalidStateTransitionError):
            await lifecycle.complete(task_id=record["id"], user_id=USER_ID)

        assert store.write_count == writes

    async def test_invalid_transition_is_a_validation_error(self, lifecycle, store):
        """Callers handling ValidationError also catch state errors."""
        record = await _seed_task(store, status="completed")

        with pytest.raises(ValidationError):
            await lifecycle.complete(task_id=record["id"], user_id=USER_ID)

    async def test_missing_task_raises_not_found(self, lifecycle):
        """Unknown IDs raise NotFoundError."""
        with pytest.raises(NotFoundError):
            await lifecycle.complete(task_id="missing", user_id=USER_ID)

    async def test_other_users_task_raises_not_found(self, lifecycle, store):
        """Another user's task looks exactly like a missing one."""
        record = await _seed_task(store, user_id=OTHER_USER_ID)

        with pytest.raises(NotFoundError):
            await lifecycle.complete(task_id=record["id"], user_id=USER_ID)

        stored = await store.get_record(collection="tasks", record_id=record["id"])
        assert stored["status"] == "pending"


@pytest.mark.unit
class TestRecurringCompletion:
    """Tests for successor creation when completing recurring tasks."""

    async def _create_daily(self, lifecycle, **overrides) -> Task:
        data = {
            "user_id": USER_ID,
            "title": "Morning pages",
            "description": "Three pages",
            "goal_id": "goal_writing",
            "scheduled_for": NOW,
            "estimated_duration_minutes": 20,
            "difficulty_level": 3,
            "energy_requirement": EnergyLevel.LOW,
            "is_recurring": True,
            "recurrence_pattern": RecurrencePattern.DAILY,
            "recurrence_config": RecurrenceConfig(interval=1),
        }
        data.update(overrides)
        return await lifecycle.create(TaskCreate(**data))

    async def test_daily_completion_creates_next_day_task(self, lifecycle, store):
        """Completing a daily task creates a pending copy one day later."""
        task = await self._create_daily(lifecycle)

        result = await lifecycle.complete(task_id=task.id, user_id=USER_ID)
        successor = result.next_task

        assert successor is not None
        assert successor.id != task.id
        assert successor.status == TaskStatus.PENDING
        assert successor.scheduled_for == NOW + timedelta(days=1)
        assert successor.is_recurring is True
        assert successor.title == task.title

        original = Task.model_validate(await store.get_record(collection="tasks", record_id=task.id))
        assert original.status == TaskStatus.COMPLETED
        assert original == result.task
        assert len(store.records("tasks")) == 2

    async def test_successor_copies_settings_with_fresh_counters(self, lifecycle):
        """The successor carries the task's settings but starts its own bookkeeping."""
        task = await self._create_daily(lifecycle, recurrence_config=RecurrenceConfig(interval=2, max_occurrences=5))

        successor = (await lifecycle.complete(task_id=task.id, user_id=USER_ID, satisfaction=5)).next_task

        assert successor.description == "Three pages"
        assert successor.goal_id == "goal_writing"
        assert successor.estimated_duration_minutes == 20
        assert successor.difficulty_level == 3
        assert successor.energy_requirement == EnergyLevel.LOW
        assert successor.recurrence_pattern == RecurrencePattern.DAILY
        assert successor.recurrence_config == RecurrenceConfig(interval=2, max_occurrences=5)
        assert successor.scheduled_for == NOW + timedelta(days=2)
        assert successor.streak_count == 0
        assert successor.completion_count == 0
        assert successor.context.completion_history == []

    async def test_successor_anchored_on_schedule_not_completion_time(self, lifecycle, clock):
        """The next date comes from scheduled_for, even when completed late."""
        task = await self._create_daily(lifecycle, scheduled_for=NOW - timedelta(days=3))
        clock.advance(timedelta(hours=5))

        successor = (await lifecycle.complete(task_id=task.id, user_id=USER_ID)).next_task

        assert successor.scheduled_for == NOW - timedelta(days=2)

    async def test_monthly_successor(self, lifecycle):
        """Monthly tasks move by calendar month."""
        anchor = datetime(2024, 1, 31, 18, 0, tzinfo=UTC)
        task = await self._create_daily(
            lifecycle, scheduled_for=anchor, recurrence_pattern=RecurrencePattern.MONTHLY, recurrence_config=None
        )

        successor = (await lifecycle.complete(task_id=task.id, user_id=USER_ID)).next_task

        assert successor.scheduled_for == datetime(2024, 2, 29, 18, 0, tzinfo=UTC)

    async def test_no_successor_without_schedule(self, lifecycle, store):
        """Unscheduled recurring tasks do not continue."""
        task = await self._create_daily(lifecycle, scheduled_for=None)

        result = await lifecycle.complete(task_id=task.id, user_id=USER_ID)

        assert result.next_task is None
        assert result.successor_error is None
        assert len(store.records("tasks")) == 1

    async def test_no_successor_past_end_date(self, lifecycle, store):
        """The series ends silently once the next date passes end_date."""
        task = await self._create_daily(
            lifecycle, recurrence_config=RecurrenceConfig(end_date=NOW + timedelta(hours=12))
        )

        result = await lifecycle.complete(task_id=task.id, user_id=USER_ID)

        assert result.task.status == TaskStatus.COMPLETED
        assert result.next_task is None
        assert result.successor_error is None
        assert len(store.records("tasks")) == 1

    async def test_no_successor_for_custom_pattern(self, lifecycle, store):
        """Custom recurrence never produces a successor."""
        task = await self._create_daily(lifecycle, recurrence_pattern=RecurrencePattern.CUSTOM)

        result = await lifecycle.complete(task_id=task.id, user_id=USER_ID)

        assert result.next_task is None
        assert len(store.records("tasks")) == 1

    async def test_completion_survives_successor_failure(self, lifecycle, store, caplog):
        """A failing successor write is reported, not raised, and the completion stands."""
        task = await self._create_daily(lifecycle)
        store.fail_next_create("tasks")

        with caplog.at_level(logging.ERROR, logger="momentum.services.task_lifecycle"):
            result = await lifecycle.complete(task_id=task.id, user_id=USER_ID)

        assert result.task.status == TaskStatus.COMPLETED
        assert result.next_task is None
        assert result.successor_failed is True
        assert "injected failure" in result.successor_error

        stored = await store.get_record(collection="tasks", record_id=task.id)
        assert stored["status"] == TaskStatus.COMPLETED
        assert len(store.records("tasks")) == 1
        assert any("Failed to create next occurrence" in r.getMessage() for r in caplog.records)

    async def test_completion_store_failure_propagates(self, lifecycle, store, monkeypatch):
        """A failure writing the completion itself is raised."""
        task = await self._create_daily(lifecycle)

        async def failing_update(**kwargs):
            raise PersistenceError("disk full")

        monkeypatch.setattr(store, "update_record", failing_update)

        with pytest.raises(PersistenceError, match="disk full"):
            await lifecycle.complete(task_id=task.id, user_id=USER_ID)

        assert len(store.records("tasks")) == 1


@pytest.mark.unit
class TestSkip:
    """Tests for TaskLifecycle.skip()."""

    async def test_marks_skipped(self, lifecycle, store):
        """Status and skipped_at are set; completion fields untouched."""
        record = await _seed_task(store)

        task = await lifecycle.skip(task_id=record["id"], user_id=USER_ID, reason="raining")

        assert task.status == TaskStatus.SKIPPED
        assert task.skipped_at == NOW
        assert task.completed_at is None
        assert task.streak_count == 0

    async def test_replaces_context_instead_of_merging(self, lifecycle, store):
        """Prior context, including history, is discarded."""
        history = [{"completed_at": "2024-06-01T08:00:00+00:00", "satisfaction": 4, "notes": None, "time_spent": 30}]
        record = await _seed_task(
            store, context={"mood": "tired", "last_satisfaction": 4, "completion_history": history}
        )

        task = await lifecycle.skip(task_id=record["id"], user_id=USER_ID, reason="too tired")

        stored = await store.get_record(collection="tasks", record_id=record["id"])
        assert stored["context"] == {"skip_reason": "too tired"}
        assert task.context.model_dump(exclude_unset=True) == {"skip_reason": "too tired"}

    async def test_skip_without_reason(self, lifecycle, store):
        """A missing reason is stored as null."""
        record = await _seed_task(store, context={"mood": "ok"})

        await lifecycle.skip(task_id=record["id"], user_id=USER_ID)

        stored = await store.get_record(collection="tasks", record_id=record["id"])
        assert stored["context"] == {"skip_reason": None}

    @pytest.mark.parametrize("status", ["completed", "skipped"])
    async def test_terminal_task_cannot_be_skipped(self, lifecycle, store, status):
        """Skipping a completed or skipped task is rejected."""
        record = await _seed_task(store, status=status)

        with pytest.raises(InvalidStateTransitionError):
            await lifecycle.skip(task_id=record["id"], user_id=USER_ID)

    async def test_missing_task_raises_not_found(self, lifecycle):
        """Unknown IDs raise NotFoundError."""
        with pytest.raises(NotFoundError):
            await lifecycle.skip(task_id="missing", user_id=USER_ID)


@pytest.mark.unit
class TestUpdate:
    """Tests for TaskLifecycle.update()."""

    async def test_patches_only_given_fields(self, lifecycle, store):
        """Unset fields keep their values."""
        record = await _seed_task(store, description="keep me")

        task = await lifecycle.update(task_id=record["id"], user_id=USER_ID, patch=TaskUpdate(title="  Renamed "))

        assert task.title == "Renamed"
        assert task.description == "keep me"

    async def test_clamps_difficulty(self, lifecycle, store):
        """Difficulty is clamped on update too."""
        record = await _seed_task(store)

        task = await lifecycle.update(task_id=record["id"], user_id=USER_ID, patch=TaskUpdate(difficulty_level=9))

        assert task.difficulty_level == 5

    async def test_rejects_negative_duration_before_store_call(self, lifecycle, store):
        """A negative estimate is refused on update too."""
        record = await _seed_task(store)
        writes = store.write_count

        with pytest.raises(ValidationError, match="Estimated duration"):
            await lifecycle.update(
                task_id=record["id"], user_id=USER_ID, patch=TaskUpdate(estimated_duration_minutes=-10)
            )

        assert store.write_count == writes
        assert store.records("tasks")[0]["estimated_duration_minutes"] == 30

    async def test_zero_duration_gets_default(self, lifecycle, store):
        record = await _seed_task(store, estimated_duration_minutes=45)

        task = await lifecycle.update(
            task_id=record["id"], user_id=USER_ID, patch=TaskUpdate(estimated_duration_minutes=0)
        )

        assert task.estimated_duration_minutes == 30

    async def test_stores_new_schedule_in_utc(self, lifecycle, store):
        """A patched schedule is written in UTC."""
        record = await _seed_task(store)
        minus_four = timezone(timedelta(hours=-4))

        await lifecycle.update(
            task_id=record["id"],
            user_id=USER_ID,
            patch=TaskUpdate(scheduled_for=datetime(2024, 6, 15, 20, 0, tzinfo=minus_four)),
        )

        assert store.records("tasks")[0]["scheduled_for"] == "2024-06-16T00:00:00+00:00"

    async def test_turning_off_recurrence_clears_settings(self, lifecycle, store):
        """is_recurring=False drops pattern and config."""
        record = await _seed_task(store, is_recurring=True, recurrence_pattern="daily", recurrence_config={"interval": 2})

        task = await lifecycle.update(task_id=record["id"], user_id=USER_ID, patch=TaskUpdate(is_recurring=False))

        assert task.is_recurring is False
        assert task.recurrence_pattern is None
        assert task.recurrence_config is None

    async def test_can_clear_optional_field(self, lifecycle, store):
        """Explicit None clears nullable fields."""
        record = await _seed_task(store, scheduled_for=NOW.isoformat())

        task = await lifecycle.update(task_id=record["id"], user_id=USER_ID, patch=TaskUpdate(scheduled_for=None))

        assert task.scheduled_for is None

    async def test_update_is_not_gated_by_status(self, lifecycle, store):
        """Completed tasks can still be edited."""
        record = await _seed_task(store, status="completed")

        task = await lifecycle.update(task_id=record["id"], user_id=USER_ID, patch=TaskUpdate(title="Edited"))

        assert task.title == "Edited"
        assert task.status == TaskStatus.COMPLETED

    async def test_empty_patch_rejected(self, lifecycle, store):
        """A patch with no fields raises ValidationError."""
        record = await _seed_task(store)

        with pytest.raises(ValidationError, match="No fields"):
            await lifecycle.update(task_id=record["id"], user_id=USER_ID, patch=TaskUpdate())

    @pytest.mark.parametrize("patch", [TaskUpdate(title="   "), TaskUpdate(title=None), TaskUpdate(status=None)])
    async def test_required_fields_cannot_be_blanked(self, lifecycle, store, patch):
        """Title and other required fields cannot be cleared."""
        record = await _seed_task(store)
        writes = store.write_count

        with pytest.raises(ValidationError):
            await lifecycle.update(task_id=record["id"], user_id=USER_ID, patch=patch)

        assert store.write_count == writes

    async def test_other_users_task_raises_not_found(self, lifecycle, store):
        """Updates are scoped to the owner."""
        record = await _seed_task(store, user_id=OTHER_USER_ID)

        with pytest.raises(NotFoundError):
            await lifecycle.update(task_id=record["id"], user_id=USER_ID, patch=TaskUpdate(title="Mine now"))

        stored = await store.get_record(collection="tasks", record_id=record["id"])
        assert stored["title"] == "Seeded task"


@pytest.mark.unit
class TestDelete:
    """Tests for TaskLifecycle.delete()."""

    async def test_deletes_own_task(self, lifecycle, store):
        """The record is removed entirely."""
        record = await _seed_task(store)

        await lifecycle.delete(task_id=record["id"], user_id=USER_ID)

        assert store.records("tasks") == []

    async def test_nonexistent_task_raises_and_leaves_store_unmodified(self, lifecycle, store):
        """Deleting an unknown ID fails without side effects."""
        await _seed_task(store)
        before = store.records("tasks")
        writes = store.write_count

        with pytest.raises(NotFoundError):
            await lifecycle.delete(task_id="does-not-exist", user_id=USER_ID)

        assert store.records("tasks") == before
        assert store.write_count == writes

    async def test_other_users_task_raises_and_leaves_store_unmodified(self, lifecycle, store):
        """Deleting someone else's task fails without side effects."""
        record = await _seed_task(store, user_id=OTHER_USER_ID)
        before = store.records("tasks")

        with pytest.raises(NotFoundError):
            await lifecycle.delete(task_id=record["id"], user_id=USER_ID)

        assert store.records("tasks") == before


@pytest.mark.unit
class TestReschedule:
    """Tests for TaskLifecycle.reschedule()."""

    async def test_moves_to_top_of_next_hour(self, lifecycle, store, clock):
        """Scheduled time becomes the next full hour after now."""
        clock.set(datetime(2024, 6, 15, 12, 34, 56, 789, tzinfo=UTC))
        record = await _seed_task(store, scheduled_for="2024-06-15T08:00:00+00:00")

        task = await lifecycle.reschedule(task_id=record["id"], user_id=USER_ID)

        assert task.scheduled_for == datetime(2024, 6, 15, 13, 0, tzinfo=UTC)

    async def test_exact_hour_moves_a_full_hour(self, lifecycle, store):
        """At exactly 12:00 the task moves to 13:00."""
        record = await _seed_task(store)

        task = await lifecycle.reschedule(task_id=record["id"], user_id=USER_ID)

        assert task.scheduled_for == datetime(2024, 6, 15, 13, 0, tzinfo=UTC)

    async def test_crosses_midnight(self, lifecycle, store, clock):
        """23:30 reschedules to 00:00 the next day."""
        clock.set(datetime(2024, 6, 15, 23, 30, tzinfo=UTC))
        record = await _seed_task(store)

        task = await lifecycle.reschedule(task_id=record["id"], user_id=USER_ID)

        assert task.scheduled_for == datetime(2024, 6, 16, 0, 0, tzinfo=UTC)

    async def test_writes_utc_whatever_the_clock_zone(self, lifecycle, store, clock):
        """A clock in a local zone still produces a UTC timestamp."""
        clock.set(datetime(2024, 6, 15, 9, 30, tzinfo=timezone(timedelta(hours=9))))
        record = await _seed_task(store)

        await lifecycle.reschedule(task_id=record["id"], user_id=USER_ID)

        assert store.records("tasks")[0]["scheduled_for"] == "2024-06-15T01:00:00+00:00"

    async def test_resets_status_to_pending(self, lifecycle, store):
        """A skipped task becomes pending again."""
        record = await _seed_task(store, status="skipped")

        task = await lifecycle.reschedule(task_id=record["id"], user_id=USER_ID)

        assert task.status == TaskStatus.PENDING

    async def test_other_users_task_raises_not_found(self, lifecycle, store):
        """Rescheduling is owner scoped like everything else."""
        record = await _seed_task(store, user_id=OTHER_USER_ID)

        with pytest.raises(NotFoundError):
            await lifecycle.reschedule(task_id=record["id"], user_id=USER_ID)


@pytest.mark.unit
class TestReads:
    """Tests for get_task() and list_tasks()."""

    async def test_get_task(self, lifecycle, store):
        """Owners can read their task."""
        record = await _seed_task(store)

        task = await lifecycle.get_task(task_id=record["id"], user_id=USER_ID)

        assert task.id == record["id"]

    async def test_list_tasks_is_owner_scoped_and_ordered(self, lifecycle, store):
        """Only the caller's tasks, earliest scheduled first, unscheduled last."""
        await _seed_task(store, title="later", scheduled_for="2024-06-17T09:00:00+00:00")
        await _seed_task(store, title="unscheduled")
        await _seed_task(store, title="earlier", scheduled_for="2024-06-16T09:00:00+00:00")
        await _seed_task(store, title="not mine", user_id=OTHER_USER_ID, scheduled_for="2024-06-10T09:00:00+00:00")

        tasks = await lifecycle.list_tasks(user_id=USER_ID)

        assert [t.title for t in tasks] == ["earlier", "later", "unscheduled"]

    async def test_list_tasks_orders_mixed_offsets_by_instant(self, lifecycle):
        """Tasks created with different offsets come back in time order."""
        plus_five = timezone(timedelta(hours=5))
        await lifecycle.create(
            TaskCreate(user_id=USER_ID, title="later", scheduled_for=datetime(2024, 6, 15, 6, 0, tzinfo=UTC))
        )
        await lifecycle.create(
            TaskCreate(user_id=USER_ID, title="earlier", scheduled_for=datetime(2024, 6, 15, 10, 0, tzinfo=plus_five))
        )

        tasks = await lifecycle.list_tasks(user_id=USER_ID)

        assert [t.title for t in tasks] == ["earlier", "later"]

    async def test_list_tasks_reads_every_page(self, lifecycle, store):
        """Results beyond one page are fetched too."""
        for day in range(1, 6):
            await _seed_task(store, title=f"day {day}", scheduled_for=f"2024-06-0{day}T09:00:00+00:00")

        tasks = await lifecycle.list_tasks(user_id=USER_ID, page_size=2)

        assert [t.title for t in tasks] == ["day 1", "day 2", "day 3", "day 4", "day 5"]
