"""Observability helpers."""

from taskhub.observability.otel import (
    initialize,
    shutdown,
    start_span,
    record_dashboard_request,
    record_dashboard_section,
)

__all__ = [
    "initialize",
    "shutdown",
    "start_span",
    "record_dashboard_request",
    "record_dashboard_section",
]
