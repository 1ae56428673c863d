"""SQLite schema management (code-first approach)."""

import logging

from src.core import db_client


logger = logging.getLogger(__name__)


# Central list of all collections in the schema, in dependency order
COLLECTIONS = [
    "tasks",
    "task_logs",
    "notifications",
]


_TABLE_SCHEMAS: dict[str, str] = {
    "tasks": """CREATE TABLE IF NOT EXISTS tasks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created TEXT NOT NULL,
        updated TEXT NOT NULL,
        title TEXT NOT NULL CHECK (length(title) <= 200),
        description TEXT NOT NULL DEFAULT '' CHECK (length(description) <= 2000),
        priority TEXT NOT NULL DEFAULT 'Medium' CHECK (priority IN ('Low', 'Medium', 'High')),
        status TEXT NOT NULL DEFAULT 'Pending'
            CHECK (status IN ('Pending', 'In Progress', 'Completed')),
        due_date TEXT,
        assignee_id TEXT,
        creator_id TEXT NOT NULL
    )""",
    "task_logs": """CREATE TABLE IF NOT EXISTS task_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created TEXT NOT NULL,
        updated TEXT NOT NULL,
        task_id TEXT NOT NULL,
        action TEXT NOT NULL CHECK (length(action) <= 100),
        actor_id TEXT NOT NULL,
        details TEXT NOT NULL DEFAULT '' CHECK (length(details) <= 500)
    )""",
    "notifications": """CREATE TABLE IF NOT EXISTS notifications (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created TEXT NOT NULL,
        updated TEXT NOT NULL,
        recipient_id TEXT NOT NULL,
        message TEXT NOT NULL CHECK (length(message) <= 500),
        is_read INTEGER NOT NULL DEFAULT 0,
        task_id TEXT
    )""",
}


_INDEXES: list[str] = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_creator_id ON tasks (creator_id)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_assignee_id ON tasks (assignee_id)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks (status)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_priority ON tasks (priority)",
    "CREATE INDEX IF NOT EXISTS idx_task_logs_task_created ON task_logs (task_id, created)",
    "CREATE INDEX IF NOT EXISTS idx_task_logs_actor_id ON task_logs (actor_id)",
    "CREATE INDEX IF NOT EXISTS idx_notifications_recipient_created ON notifications (recipient_id, created)",
    "CREATE INDEX IF NOT EXISTS idx_notifications_is_read ON notifications (is_read)",
    "CREATE INDEX IF NOT EXISTS idx_notifications_task_id ON notifications (task_id)",
]


def get_table_schemas() -> dict[str, str]:
    """Return CREATE TABLE statements keyed by collection name."""
    return {name: _TABLE_SCHEMAS[name] for name in COLLECTIONS}


def get_indexes() -> list[str]:
    """Return CREATE INDEX statements for all collections."""
    return list(_INDEXES)


async def init_db(*, db_path: str | None = None) -> None:
    """Create all collections and indexes (idempotent).

    Args:
        db_path: Optional database path. If not provided, uses settings.sqlite_db_path.
    """
    logger.info("Starting SQLite schema sync...")

    conn = await db_client.get_connection(db_path=db_path)

    for collection_name, ddl in get_table_schemas().items():
        await conn.execute(ddl)
        logger.debug("Ensured collection: %s", collection_name)

    for index_sql in get_indexes():
        await conn.execute(index_sql)

    await conn.commit()
    logger.info("SQLite schema sync complete", extra={"collections": COLLECTIONS})
