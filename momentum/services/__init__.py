from momentum.services.goal_service import GoalService, goal_statistics
from momentum.services.insight_analyzer import InsightAnalyzer
from momentum.services.insight_service import InsightService
from momentum.services.recurrence_engine import RecurrenceEngine, next_occurrence
from momentum.services.task_lifecycle import TaskLifecycle
from momentum.services.task_query_service import TaskQueryService


__all__ = [
    "GoalService",
    "InsightAnalyzer",
    "InsightService",
    "RecurrenceEngine",
    "TaskLifecycle",
    "TaskQueryService",
    "goal_statistics",
    "next_occurrence",
]
