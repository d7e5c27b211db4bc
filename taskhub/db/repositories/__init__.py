"""Repository package for database access."""

from .users import SqliteUserRepository
from .projects import SqliteProjectRepository
from .tasks import SqliteTaskRepository
from .activities import SqliteActivityRepository

__all__ = [
    "SqliteUserRepository",
    "SqliteProjectRepository",
    "SqliteTaskRepository",
    "SqliteActivityRepository",
]
