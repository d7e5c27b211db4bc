"""Repository factory to abstract DB backend (SQLite vs Postgres)."""
from __future__ import annotations

from typing import Any

import aiosqlite

from taskhub.db.repositories.activities import SqliteActivityRepository
from taskhub.db.repositories.projects import SqliteProjectRepository
from taskhub.db.repositories.tasks import SqliteTaskRepository
from taskhub.db.repositories.users import SqliteUserRepository


def get_user_repository(db: Any):
    if isinstance(db, aiosqlite.Connection):
        return SqliteUserRepository(db)
    from taskhub.db.repositories.postgres.users import PostgresUserRepository
    return PostgresUserRepository(db)

def get_project_repository(db: Any):
    if isinstance(db, aiosqlite.Connection):
        return SqliteProjectRepository(db)
    from taskhub.db.repositories.postgres.projects import PostgresProjectRepository
    return PostgresProjectRepository(db)

def get_task_repository(db: Any):
    if isinstance(db, aiosqlite.Connection):
        return SqliteTaskRepository(db)
    from taskhub.db.repositories.postgres.tasks import PostgresTaskRepository
    return PostgresTaskRepository(db)

def get_activity_repository(db: Any):
    if isinstance(db, aiosqlite.Connection):
        return SqliteActivityRepository(db)
    from taskhub.db.repositories.postgres.activities import PostgresActivityRepository
    return PostgresActivityRepository(db)
