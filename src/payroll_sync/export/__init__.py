"""Wire-shaped export: timesheet aggregation and leave application drafts."""

from payroll_sync.export.aggregator import AggregationResult, PeriodError, aggregate_timesheets
from payroll_sync.export.leave_builder import LeaveBuildResult, build_leave_applications
from payroll_sync.export.types import LeaveApplicationDraft, Timesheet

__all__ = [
    "AggregationResult",
    "LeaveApplicationDraft",
    "LeaveBuildResult",
    "PeriodError",
    "Timesheet",
    "aggregate_timesheets",
    "build_leave_applications",
]
