"""Heuristic behavioural insights over a user's recent tasks and goals.

Each heuristic looks at the same input and contributes at most one insight.
They run in a fixed order and never suppress one another, so the output
order is stable for a given input:

1. consistency (achievement)
2. skip pattern (behavioural coaching)
3. peak hour (pattern recognition)
4. goal progress (achievement) or goal boost (suggestion)
5. streak (achievement)
6. category strength (pattern recognition)

The analyzer is pure: no store access, no clock. ``user_id`` and creation
time are added when the drafts are persisted.
"""

import logging
from collections import Counter
from collections.abc import Sequence
from datetime import UTC, tzinfo

from momentum.core.clock import as_aware
from momentum.core.rounding import percentage, round_half_up
from momentum.domain.goal import Goal, GoalStatus
from momentum.domain.insight import (
    CategoryStrengthMetadata,
    CompletionRateMetadata,
    GoalProgressMetadata,
    InsightDraft,
    InsightType,
    PeakHourMetadata,
    SkipRateMetadata,
    StreakMetadata,
)
from momentum.domain.task import Task, TaskStatus


logger = logging.getLogger(__name__)

# Consistency
CONSISTENCY_MIN_RATE = 80
CONSISTENCY_MIN_COMPLETED = 5

# Skip pattern
SKIP_MIN_RATE = 30
SKIP_MIN_SKIPPED = 3

# Peak hour
PEAK_HOUR_MIN_SAMPLES = 5
PEAK_HOUR_MIN_COUNT = 3

# Goal progress
GOALS_NEAR_DONE_MIN_PROGRESS = 70
GOALS_BOOST_MAX_PROGRESS = 20
GOALS_BOOST_MIN_ACTIVE = 2

# Streak
STREAK_MIN_LENGTH = 7

# Category strength
CATEGORY_MIN_COUNT = 2
CATEGORY_MIN_BEST_RATE = 80
CATEGORY_MIN_SPREAD = 30


def consistency_insight(tasks: Sequence[Task]) -> InsightDraft | None:
    completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
    rate = percentage(completed, len(tasks))

    if rate < CONSISTENCY_MIN_RATE or completed < CONSISTENCY_MIN_COMPLETED:
        return None

    return InsightDraft(
        type=InsightType.ACHIEVEMENT,
        title="Consistency Champion! 🏆",
        description=f"You've completed {round_half_up(rate)}% of your tasks. Your dedication is impressive!",
        confidence=0.95,
        actionable=False,
        icon="🏆",
        metadata=CompletionRateMetadata(completion_rate=rate, total_tasks=len(tasks)),
    )


def skip_pattern_insight(tasks: Sequence[Task]) -> InsightDraft | None:
    skipped = sum(1 for t in tasks if t.status == TaskStatus.SKIPPED)
    rate = percentage(skipped, len(tasks))

    if rate < SKIP_MIN_RATE or skipped < SKIP_MIN_SKIPPED:
        return None

    return InsightDraft(
        type=InsightType.BEHAVIORAL_COACHING,
        title="Task Skipping Pattern Detected ⚠️",
        description=(
            f"You're skipping {round_half_up(rate)}% of tasks. "
            "Consider if tasks are too difficult or poorly timed."
        ),
        confidence=0.85,
        actionable=True,
        icon="⚠️",
        metadata=SkipRateMetadata(skip_rate=rate, skipped_tasks=skipped),
    )


def peak_hour_insight(tasks: Sequence[Task], tz: tzinfo = UTC) -> InsightDraft | None:
    """Most common local scheduled hour among completed tasks.

    Equal counts resolve to the earliest hour of the day.
    """
    hours = [
        as_aware(t.scheduled_for, tz).hour
        for t in tasks
        if t.status == TaskStatus.COMPLETED and t.scheduled_for is not None
    ]
    if len(hours) < PEAK_HOUR_MIN_SAMPLES:
        return None

    counts = Counter(hours)
    peak_hour, peak_count = min(counts.items(), key=lambda item: (-item[1], item[0]))
    if peak_count < PEAK_HOUR_MIN_COUNT:
        return None

    return InsightDraft(
        type=InsightType.PATTERN_RECOGNITION,
        title="Peak Productivity Time Found! 📈",
        description=f"You're most productive at {peak_hour}:00. Schedule important tasks during this time.",
        confidence=0.80,
        actionable=True,
        icon="📈",
        metadata=PeakHourMetadata(peak_hour=peak_hour, task_count=peak_count),
    )


def goal_progress_insight(goals: Sequence[Goal]) -> InsightDraft | None:
    """Celebrate nearly finished goals, or nudge when several are stalled.

    The two outcomes are mutually exclusive for the same set of active goals.
    """
    active = [g for g in goals if g.status == GoalStatus.ACTIVE]
    if not active:
        return None

    avg_progress = sum(g.completion_percentage for g in active) / len(active)
    metadata = GoalProgressMetadata(avg_progress=avg_progress, active_goals_count=len(active))

    if avg_progress >= GOALS_NEAR_DONE_MIN_PROGRESS:
        return InsightDraft(
            type=InsightType.ACHIEVEMENT,
            title="Goals Almost Complete! 🎯",
            description=f"Your active goals are {round_half_up(avg_progress)}% complete. You're doing great!",
            confidence=0.90,
            actionable=False,
            icon="🎯",
            metadata=metadata,
        )

    if avg_progress <= GOALS_BOOST_MAX_PROGRESS and len(active) >= GOALS_BOOST_MIN_ACTIVE:
        return InsightDraft(
            type=InsightType.SUGGESTION,
            title="Need a Boost? 💪",
            description=(
                f"Your goals are only {round_half_up(avg_progress)}% complete. "
                "Try breaking them into smaller tasks."
            ),
            confidence=0.75,
            actionable=True,
            icon="💪",
            metadata=metadata,
        )

    return None


def streak_insight(tasks: Sequence[Task]) -> InsightDraft | None:
    streaks = [t.streak_count for t in tasks if t.streak_count > 0]
    if not streaks:
        return None

    max_streak = max(streaks)
    if max_streak < STREAK_MIN_LENGTH:
        return None

    return InsightDraft(
        type=InsightType.ACHIEVEMENT,
        title="Streak Master! 🔥",
        description=f"You've maintained a {max_streak}-day streak on some tasks. Consistency is key!",
        confidence=0.95,
        actionable=False,
        icon="🔥",
        metadata=StreakMetadata(max_streak=max_streak, tasks_with_streaks=len(streaks)),
    )


def category_strength_insight(tasks: Sequence[Task], goals: Sequence[Goal]) -> InsightDraft | None:
    """Compare completion rates across the categories of linked goals.

    Tasks without a goal, or linked to a goal not in ``goals``, are ignored.
    Equal rates resolve to the category seen first.
    """
    category_by_goal = {g.id: g.category.value for g in goals}

    totals: dict[str, list[int]] = {}
    for task in tasks:
        category = category_by_goal.get(task.goal_id) if task.goal_id else None
        if category is None:
            continue
        stats = totals.setdefault(category, [0, 0])
        stats[0] += 1
        if task.status == TaskStatus.COMPLETED:
            stats[1] += 1

    if len(totals) < CATEGORY_MIN_COUNT:
        return None

    rates = [(category, percentage(completed, total)) for category, (total, completed) in totals.items()]
    best_category, best_rate = max(rates, key=lambda item: item[1])
    worst_category, worst_rate = min(rates, key=lambda item: item[1])

    if best_rate < CATEGORY_MIN_BEST_RATE or best_rate - worst_rate < CATEGORY_MIN_SPREAD:
        return None

    return InsightDraft(
        type=InsightType.PATTERN_RECOGNITION,
        title="Category Strength Identified! 💪",
        description=(
            f"You excel in {best_category} tasks ({round_half_up(best_rate)}% completion). "
            "Consider applying similar strategies to other areas."
        ),
        confidence=0.85,
        actionable=True,
        icon="💪",
        metadata=CategoryStrengthMetadata(
            best_category=best_category,
            best_rate=best_rate,
            worst_category=worst_category,
            worst_rate=worst_rate,
        ),
    )


class InsightAnalyzer:
    """Runs every heuristic over a task/goal snapshot.

    ``tz`` decides which local hour a scheduled time falls in.
    """

    def __init__(self, tz: tzinfo = UTC) -> None:
        self._tz = tz

    def analyze(self, tasks: Sequence[Task], goals: Sequence[Goal]) -> list[InsightDraft]:
        candidates = [
            consistency_insight(tasks),
            skip_pattern_insight(tasks),
            peak_hour_insight(tasks, self._tz),
            goal_progress_insight(goals),
            streak_insight(tasks),
            category_strength_insight(tasks, goals),
        ]
        drafts = [draft for draft in candidates if draft is not None]

        logger.debug("Analyzed %d tasks and %d goals: %d insights", len(tasks), len(goals), len(drafts))
        return drafts
