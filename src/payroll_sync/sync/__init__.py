"""Idempotent sync of computed timesheets to the payroll system."""

from payroll_sync.sync.compare import normalize_timesheet, timesheets_equal
from payroll_sync.sync.engine import SyncContext, SyncEngine
from payroll_sync.sync.locks import AdvisoryLock, KeyedLock
from payroll_sync.sync.service import SalariedEmployee, SyncRequest, SyncService
from payroll_sync.sync.types import LeavePushResult, SyncDecision, SyncReport, SyncStatus

__all__ = [
    "AdvisoryLock",
    "KeyedLock",
    "LeavePushResult",
    "SalariedEmployee",
    "SyncContext",
    "SyncDecision",
    "SyncEngine",
    "SyncReport",
    "SyncRequest",
    "SyncService",
    "SyncStatus",
    "normalize_timesheet",
    "timesheets_equal",
]
