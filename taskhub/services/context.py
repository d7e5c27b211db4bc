"""Per-request dashboard context shared by every section."""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from taskhub.date_utils import normalize_iso_date, window_start
from taskhub.roles import Caller
from taskhub.services.membership import ProjectMembership


@dataclass(frozen=True)
class DashboardContext:
    caller: Caller
    now: datetime
    window_start: datetime
    membership: ProjectMembership | None = None

    @classmethod
    def create(cls, caller: Caller, now: datetime, stats_days: int) -> DashboardContext:
        return cls(caller=caller, now=now, window_start=window_start(now, stats_days))

    @property
    def now_iso(self) -> str:
        return normalize_iso_date(self.now)

    @property
    def window_start_iso(self) -> str:
        return normalize_iso_date(self.window_start)

    def with_membership(self, membership: ProjectMembership) -> DashboardContext:
        return replace(self, membership=membership)
