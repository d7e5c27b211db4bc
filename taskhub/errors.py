"""Dashboard error taxonomy.

Every error carries the HTTP status the app-level handler should answer with
and whether its message is safe to show to clients (``operational``).
"""
from __future__ import annotations


class DashboardError(Exception):
    status_code = 500
    operational = True

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class Unauthenticated(DashboardError):
    status_code = 401


class UnsupportedCaller(Unauthenticated):
    """Token carried a role this service does not know."""


class InvalidOptions(DashboardError):
    status_code = 400

    def __init__(self, message: str, *, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []


class StoreUnavailable(DashboardError):
    status_code = 500


class QueryFailed(DashboardError):
    status_code = 500
