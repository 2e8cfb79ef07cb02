"""Time-relative task views and aggregate statistics.

All functions are pure: they take the task collection and ``now`` explicitly.
"Today" is the calendar date of ``now`` in ``now``'s timezone, and stored
timestamps are compared in that same timezone.

Overdue policies:
- strict (1h): the simple per-task overdue flag
- lenient (2h): statistics, the overdue view and task_status()
"""

from collections.abc import Iterable
from datetime import date, datetime, timedelta

from momentum.core.clock import Clock, as_aware
from momentum.core.config import constants
from momentum.core.rounding import percentage, round_half_up
from momentum.domain.task import Task, TaskDisplayStatus, TaskStatus
from momentum.models.service_models import TaskStatistics, WeeklyStats


_SECONDS_PER_HOUR = 3600


def _hours_since_scheduled(task: Task, now: datetime) -> float | None:
    if task.scheduled_for is None:
        return None
    return (now - as_aware(task.scheduled_for)).total_seconds() / _SECONDS_PER_HOUR


def _local_date(value: datetime, now: datetime) -> date:
    return as_aware(value, now.tzinfo).date()


def _is_overdue(task: Task, now: datetime, threshold_hours: int) -> bool:
    if task.status == TaskStatus.COMPLETED:
        return False
    hours = _hours_since_scheduled(task, now)
    return hours is not None and hours > threshold_hours


def is_overdue_strict(task: Task, *, now: datetime) -> bool:
    """More than 1 hour past its scheduled time and not completed."""
    return _is_overdue(task, now, constants.OVERDUE_STRICT_HOURS)


def is_overdue_lenient(task: Task, *, now: datetime) -> bool:
    """More than 2 hours past its scheduled time and not completed."""
    return _is_overdue(task, now, constants.OVERDUE_LENIENT_HOURS)


def todays_tasks(tasks: Iterable[Task], *, now: datetime) -> list[Task]:
    """Tasks scheduled for today's date or at any earlier time, whatever their status."""
    return [
        t
        for t in tasks
        if t.scheduled_for is not None
        and (_local_date(t.scheduled_for, now) == now.date() or as_aware(t.scheduled_for) < now)
    ]


def overdue_tasks(tasks: Iterable[Task], *, now: datetime) -> list[Task]:
    """Tasks that are lenient-overdue."""
    return [t for t in tasks if is_overdue_lenient(t, now=now)]


def upcoming_tasks(tasks: Iterable[Task], *, now: datetime) -> list[Task]:
    """Pending tasks scheduled strictly after ``now``."""
    return [
        t
        for t in tasks
        if t.status == TaskStatus.PENDING and t.scheduled_for is not None and as_aware(t.scheduled_for) > now
    ]


def recurring_tasks(tasks: Iterable[Task]) -> list[Task]:
    return [t for t in tasks if t.is_recurring]


def average_satisfaction(tasks: Iterable[Task]) -> int:
    """Rounded mean last satisfaction over completed tasks that recorded one."""
    ratings = [
        t.context.last_satisfaction
        for t in tasks
        if t.status == TaskStatus.COMPLETED and t.context.last_satisfaction is not None
    ]
    if not ratings:
        return 0
    return round_half_up(sum(ratings) / len(ratings))


def task_statistics(tasks: Iterable[Task], *, now: datetime) -> TaskStatistics:
    """Aggregate counts and rates over ``tasks``.

    Rates are whole percentages rounded half-up; an empty collection yields
    all zeros.
    """
    tasks = list(tasks)
    today = todays_tasks(tasks, now=now)

    completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
    today_completed = sum(1 for t in today if t.status == TaskStatus.COMPLETED)

    return TaskStatistics(
        total=len(tasks),
        completed=completed,
        pending=sum(1 for t in tasks if t.status == TaskStatus.PENDING),
        skipped=sum(1 for t in tasks if t.status == TaskStatus.SKIPPED),
        today_total=len(today),
        today_completed=today_completed,
        today_pending=sum(1 for t in today if t.status == TaskStatus.PENDING),
        overdue=len(overdue_tasks(tasks, now=now)),
        upcoming=len(upcoming_tasks(tasks, now=now)),
        recurring=len(recurring_tasks(tasks)),
        completion_rate=round_half_up(percentage(completed, len(tasks))),
        today_completion_rate=round_half_up(percentage(today_completed, len(today))),
        total_completion_time=sum(t.total_completion_time_minutes for t in tasks),
        average_satisfaction=average_satisfaction(tasks),
    )


def task_status(task: Task, *, now: datetime) -> TaskDisplayStatus:
    """Display bucket for a single task.

    Skipped tasks are reported as overdue.
    """
    if task.status == TaskStatus.COMPLETED:
        return TaskDisplayStatus.COMPLETED
    if task.status == TaskStatus.SKIPPED:
        return TaskDisplayStatus.OVERDUE

    if task.scheduled_for is not None:
        if is_overdue_lenient(task, now=now):
            return TaskDisplayStatus.OVERDUE

        hours_until = -_hours_since_scheduled(task, now)
        if hours_until > constants.UPCOMING_HORIZON_HOURS:
            return TaskDisplayStatus.UPCOMING

    return TaskDisplayStatus.PENDING


def group_tasks_by_date(tasks: Iterable[Task], *, now: datetime) -> dict[date, list[Task]]:
    """Scheduled tasks keyed by local calendar date, each day ordered by time.

    Unscheduled tasks are left out. Keys appear in first-seen order.
    """
    grouped: dict[date, list[Task]] = {}
    for task in tasks:
        if task.scheduled_for is None:
            continue
        grouped.setdefault(_local_date(task.scheduled_for, now), []).append(task)

    for day_tasks in grouped.values():
        day_tasks.sort(key=lambda t: as_aware(t.scheduled_for))

    return grouped


def weekly_stats(tasks: Iterable[Task], *, now: datetime) -> WeeklyStats:
    """Activity over tasks created in the last seven days."""
    week_ago = now - timedelta(days=constants.WEEKLY_STATS_DAYS)
    weekly = [t for t in tasks if t.created is not None and as_aware(t.created) >= week_ago]

    total = len(weekly)
    completed = sum(1 for t in weekly if t.status == TaskStatus.COMPLETED)

    return WeeklyStats(
        total_tasks=total,
        completed_tasks=completed,
        completion_rate=round_half_up(percentage(completed, total)),
        average_per_day=round_half_up(total / constants.WEEKLY_STATS_DAYS),
    )


_MOTIVATION_TIERS: list[tuple[int, str]] = [
    (80, "Incredible momentum! You're crushing your goals! 🚀"),
    (60, "Great progress! You're building excellent habits! ⭐"),
    (40, "Good start! Keep pushing forward, you've got this! 💪"),
]


def motivational_message(completion_rate: int) -> str:
    """Encouragement for a 0-100 completion rate, as shown beside the weekly stats."""
    if completion_rate == 0:
        return "Ready to make today extraordinary? Your future self will thank you! 💪"
    if completion_rate == 100:
        return "Outstanding! You've mastered today's challenges. You're unstoppable! 🌟"
    for threshold, message in _MOTIVATION_TIERS:
        if completion_rate >= threshold:
            return message
    return "Every journey begins with a single step. You're on your way! 🎯"


def calculate_streak_days(tasks: Iterable[Task], *, now: datetime) -> int:
    """Consecutive calendar days, ending today, with at least one completion.

    A day without completions breaks the streak; if nothing was completed
    today the streak is 0.
    """
    completion_days = {
        _local_date(t.completed_at, now)
        for t in tasks
        if t.status == TaskStatus.COMPLETED and t.completed_at is not None
    }

    streak = 0
    day = now.date()
    while day in completion_days:
        streak += 1
        day -= timedelta(days=1)

    return streak


class TaskQueryService:
    """Task views bound to a clock."""

    def __init__(self, clock: Clock) -> None:
        self._clock = clock

    def todays(self, tasks: Iterable[Task]) -> list[Task]:
        return todays_tasks(tasks, now=self._clock.now())

    def overdue(self, tasks: Iterable[Task]) -> list[Task]:
        return overdue_tasks(tasks, now=self._clock.now())

    def upcoming(self, tasks: Iterable[Task]) -> list[Task]:
        return upcoming_tasks(tasks, now=self._clock.now())

    def recurring(self, tasks: Iterable[Task]) -> list[Task]:
        return recurring_tasks(tasks)

    def statistics(self, tasks: Iterable[Task]) -> TaskStatistics:
        return task_statistics(tasks, now=self._clock.now())

    def status(self, task: Task) -> TaskDisplayStatus:
        return task_status(task, now=self._clock.now())

    def is_overdue_strict(self, task: Task) -> bool:
        return is_overdue_strict(task, now=self._clock.now())

    def is_overdue_lenient(self, task: Task) -> bool:
        return is_overdue_lenient(task, now=self._clock.now())

    def group_by_date(self, tasks: Iterable[Task]) -> dict[date, list[Task]]:
        return group_tasks_by_date(tasks, now=self._clock.now())

    def weekly_stats(self, tasks: Iterable[Task]) -> WeeklyStats:
        return weekly_stats(tasks, now=self._clock.now())

    def streak_days(self, tasks: Iterable[Task]) -> int:
        return calculate_streak_days(tasks, now=self._clock.now())

    def motivation(self, tasks: Iterable[Task]) -> str:
        return motivational_message(self.weekly_stats(tasks).completion_rate)
