"""SQLite schema for the tasks, goals and insights collections."""

import logging
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from momentum.core.db_client import SQLiteRecordStore


logger = logging.getLogger(__name__)


TABLE_SCHEMAS: dict[str, str] = {
    "goals": """CREATE TABLE IF NOT EXISTS goals (
        id TEXT PRIMARY KEY,
        created TEXT NOT NULL,
        updated TEXT NOT NULL,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT,
        category TEXT NOT NULL DEFAULT 'personal'
            CHECK (category IN ('health', 'career', 'learning', 'habits', 'finance', 'relationships', 'personal')),
        priority TEXT NOT NULL DEFAULT 'medium' CHECK (priority IN ('low', 'medium', 'high', 'critical')),
        target_date TEXT,
        status TEXT NOT NULL DEFAULT 'active' CHECK (status IN ('active', 'paused', 'completed', 'archived')),
        completion_percentage INTEGER NOT NULL DEFAULT 0
            CHECK (completion_percentage BETWEEN 0 AND 100),
        ai_generated INTEGER NOT NULL DEFAULT 0,
        original_prompt TEXT,
        success_criteria TEXT NOT NULL DEFAULT '[]'
    )""",
    "tasks": """CREATE TABLE IF NOT EXISTS tasks (
        id TEXT PRIMARY KEY,
        created TEXT NOT NULL,
        updated TEXT NOT NULL,
        user_id TEXT NOT NULL,
        goal_id TEXT,
        title TEXT NOT NULL,
        description TEXT,
        scheduled_for TEXT,
        estimated_duration_minutes INTEGER,
        difficulty_level INTEGER NOT NULL DEFAULT 2 CHECK (difficulty_level BETWEEN 1 AND 5),
        energy_requirement TEXT NOT NULL DEFAULT 'medium' CHECK (energy_requirement IN ('low', 'medium', 'high')),
        status TEXT NOT NULL DEFAULT 'pending'
            CHECK (status IN ('pending', 'in_progress', 'completed', 'skipped')),
        completed_at TEXT,
        skipped_at TEXT,
        ai_generated INTEGER NOT NULL DEFAULT 0,
        context TEXT NOT NULL DEFAULT '{}',
        is_recurring INTEGER NOT NULL DEFAULT 0,
        recurrence_pattern TEXT CHECK (recurrence_pattern IN ('daily', 'weekly', 'monthly', 'custom')),
        recurrence_config TEXT,
        streak_count INTEGER NOT NULL DEFAULT 0,
        completion_count INTEGER NOT NULL DEFAULT 0,
        total_completion_time_minutes INTEGER NOT NULL DEFAULT 0,
        average_completion_time_minutes INTEGER NOT NULL DEFAULT 0
    )""",
    "insights": """CREATE TABLE IF NOT EXISTS insights (
        id TEXT PRIMARY KEY,
        created TEXT NOT NULL,
        updated TEXT NOT NULL,
        user_id TEXT NOT NULL,
        type TEXT NOT NULL
            CHECK (type IN ('pattern_recognition', 'behavioral_coaching', 'achievement', 'suggestion')),
        title TEXT NOT NULL,
        description TEXT NOT NULL,
        confidence REAL NOT NULL CHECK (confidence BETWEEN 0 AND 1),
        actionable INTEGER NOT NULL DEFAULT 0,
        icon TEXT NOT NULL,
        metadata TEXT NOT NULL DEFAULT '{}',
        read_at TEXT
    )""",
}

INDEXES: list[str] = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_user_id ON tasks (user_id)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_scheduled_for ON tasks (scheduled_for)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_goal_id ON tasks (goal_id)",
    "CREATE INDEX IF NOT EXISTS idx_goals_user_id ON goals (user_id)",
    "CREATE INDEX IF NOT EXISTS idx_insights_user_id ON insights (user_id)",
]


async def init_db(store: "SQLiteRecordStore") -> None:
    """Create all tables and indexes on the store's database."""
    conn = await store.get_connection()

    for table_name, ddl in TABLE_SCHEMAS.items():
        await conn.execute(ddl)
        logger.debug("Ensured table exists", extra={"table": table_name})

    for index_sql in INDEXES:
        await conn.execute(index_sql)

    await conn.commit()
    logger.info("Database schema initialized", extra={"db_path": str(store.db_path), "tables": list(TABLE_SCHEMAS)})
