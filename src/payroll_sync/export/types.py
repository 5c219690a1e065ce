"""Wire-shaped records written to the external payroll system."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class Timesheet:
    """Per-employee, per-period units by earnings rate.

    Each unit tuple has one entry per day of the inclusive period.
    """

    employee_id: str
    start_date: date
    end_date: date
    lines: dict[str, tuple[Decimal, ...]] = field(default_factory=dict)
    status: str = "DRAFT"
    timesheet_id: str | None = None
    # Rate ids that arrived on more than one line; their units are summed in ``lines``
    split_rates: tuple[str, ...] = ()

    @property
    def day_count(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "EmployeeID": self.employee_id,
            "StartDate": self.start_date.isoformat(),
            "EndDate": self.end_date.isoformat(),
            "Status": self.status,
            "TimesheetLines": [
                {"EarningsRateID": rate_id, "NumberOfUnits": [float(u) for u in units]}
                for rate_id, units in self.lines.items()
            ],
        }
        if self.timesheet_id:
            payload["TimesheetID"] = self.timesheet_id
        return payload


@dataclass(frozen=True)
class LeaveApplicationDraft:
    """One leave application for one employee on one day."""

    employee_id: str
    leave_type_id: str
    title: str
    start_date: date
    end_date: date
    period_start: date
    period_end: date
    units: Decimal

    def to_payload(self) -> dict[str, Any]:
        return {
            "EmployeeID": self.employee_id,
            "LeaveTypeID": self.leave_type_id,
            "Title": self.title,
            "StartDate": self.start_date.isoformat(),
            "EndDate": self.end_date.isoformat(),
            "LeavePeriods": [
                {
                    "PayPeriodStartDate": self.period_start.isoformat(),
                    "PayPeriodEndDate": self.period_end.isoformat(),
                    "NumberOfUnits": float(self.units),
                }
            ],
        }
