"""Sync decisions and run reports."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SyncStatus(str, Enum):
    """Terminal state of one desired timesheet in a sync run."""

    CREATE = "CREATE"
    EXISTS_MATCH = "EXISTS_MATCH"
    EXISTS_DIFF = "EXISTS_DIFF"
    MISSING_EMPLOYEE = "MISSING_EMPLOYEE"
    ERROR = "ERROR"


@dataclass(frozen=True)
class SyncDecision:
    employee_id: str
    status: SyncStatus
    note: str = ""
    payload: dict[str, Any] | None = None

    @property
    def wrote(self) -> bool:
        return self.status == SyncStatus.CREATE


@dataclass(frozen=True)
class LeavePushResult:
    """Outcome of the leave application batch write."""

    submitted: int
    ok: bool
    note: str = ""
    idempotency_key: str | None = None


@dataclass
class SyncReport:
    """Everything a sync run decided, plus warnings from the build steps."""

    period_start: str
    period_end: str
    decisions: list[SyncDecision] = field(default_factory=list)
    leave: LeavePushResult | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def counts(self) -> dict[str, int]:
        tally = Counter(decision.status.value for decision in self.decisions)
        return {status.value: tally.get(status.value, 0) for status in SyncStatus}

    @property
    def success(self) -> bool:
        """No decision ended in ERROR and the leave batch (if any) went through."""
        if any(d.status == SyncStatus.ERROR for d in self.decisions):
            return False
        return self.leave is None or self.leave.ok
