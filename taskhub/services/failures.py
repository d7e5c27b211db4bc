"""Translate driver exceptions into the dashboard error taxonomy."""
from __future__ import annotations

import asyncpg

from taskhub.errors import DashboardError, QueryFailed, StoreUnavailable

_UNAVAILABLE_SQLITE_MARKERS = ("database is locked", "unable to open", "disk i/o error")


def _is_store_unavailable(exc: BaseException) -> bool:
    if isinstance(exc, (OSError, asyncpg.InterfaceError, asyncpg.exceptions.PostgresConnectionError)):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _UNAVAILABLE_SQLITE_MARKERS)


def as_dashboard_error(exc: BaseException, message: str) -> DashboardError:
    """Wrap ``exc`` with a client-safe ``message``; dashboard errors pass through."""
    if isinstance(exc, DashboardError):
        return exc
    if _is_store_unavailable(exc):
        return StoreUnavailable(message)
    return QueryFailed(message)
