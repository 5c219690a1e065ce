"""Upstream payload normalization.

Time sources and the payroll API name the same concept many ways
(``employeeName`` / ``staff_name`` / ``User.Name`` ...). Every raw record
is reduced to one canonical internal type here, so nothing downstream
inspects raw shapes. Missing or malformed fields become None.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any

from payroll_sync.calculators.types import TimeEntry
from payroll_sync.catalog.types import (
    CatalogEmployee,
    PayrollCalendar,
    PayTemplateLine,
    RateCatalog,
    RateCatalogEntry,
    RateKind,
)
from payroll_sync.export.types import Timesheet
from payroll_sync.periods import PayCycle

EMPLOYEE_ID_FIELDS = ("xeroEmployeeId", "employeeId", "employeeID", "employee_id", "EmployeeID")
EMPLOYEE_NAME_FIELDS = ("employeeName", "employee_name", "staffName", "staff_name", "userName", "user_name")
EMPLOYEE_OBJECT_FIELDS = ("employee", "staff", "user", "Employee", "Staff", "User")
JOB_FIELDS = ("jobCode", "job_code", "job", "jobId", "job_id", "siteCode", "site_code")
START_FIELDS = ("startTime", "start_time", "start", "StartTime", "startAt")
END_FIELDS = ("endTime", "end_time", "end", "EndTime", "endAt")
DATE_FIELDS = ("timeEntryDate", "date", "day", "dateISO", "workDate", "work_date", "startDate", "start_date")
DURATION_FIELDS = ("paidDuration", "unchargedTimeDuration", "duration", "hours", "Hours")
BREAK_FIELDS = ("unpaidBreakMinutes", "unpaid_break_minutes", "breakMinutes", "break_minutes", "unpaidBreak")
LEAVE_TYPE_FIELDS = ("unchargedTimeType", "leaveType", "leave_type", "LeaveType")
ENTRY_TYPE_FIELDS = ("entryType", "entry_type", "timeType", "time_type", "type")
CATEGORY_FIELDS = ("category", "Category", "payCategory")
PAY_RATE_FIELDS = ("payRate", "pay_rate", "hourlyRate", "rate")

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
_MS_DATE = re.compile(r"/Date\((-?\d+)([+-]\d{4})?\)/")
_ISO_DATE_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})")


def first_present(record: Mapping[str, Any], keys: Sequence[str]) -> Any:
    """First value under ``keys`` that is neither None nor blank."""
    for key in keys:
        value = record.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def first_text(record: Mapping[str, Any], keys: Sequence[str]) -> str | None:
    value = first_present(record, keys)
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value).strip()


def parse_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_decimal(value: Any) -> Decimal | None:
    number = parse_number(value)
    if number is None:
        return None
    if isinstance(value, str):
        return Decimal(value.strip())
    return Decimal(str(number))


def parse_external_date(value: Any) -> date | None:
    """Dates as "YYYY-MM-DD", an ISO timestamp prefix, or "/Date(ms+0000)/"."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    ms = _MS_DATE.search(text)
    if ms is not None:
        try:
            return datetime.fromtimestamp(int(ms.group(1)) / 1000, tz=timezone.utc).date()
        except (ValueError, OverflowError, OSError):
            return None
    prefix = _ISO_DATE_PREFIX.match(text)
    if prefix is not None:
        try:
            return date.fromisoformat(prefix.group(1))
        except ValueError:
            return None
    return None


def parse_timestamp(value: Any, day: date | None = None) -> datetime | None:
    """ISO timestamp, or "HH:MM" combined with ``day``."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    clock = _HHMM.match(text)
    if clock is not None:
        if day is None:
            return None
        hour, minute, second = int(clock.group(1)), int(clock.group(2)), int(clock.group(3) or 0)
        if hour > 23 or minute > 59 or second > 59:
            return None
        return datetime.combine(day, time(hour, minute, second))
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def _person_name(value: Any) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, Mapping):
        direct = first_text(value, ("name", "fullName", "full_name", "Name", "displayName"))
        if direct:
            return direct
        first = first_text(value, ("firstName", "first_name", "FirstName")) or ""
        last = first_text(value, ("lastName", "last_name", "LastName")) or ""
        return f"{first} {last}".strip() or None
    return None


def employee_name(record: Mapping[str, Any]) -> str | None:
    direct = first_text(record, EMPLOYEE_NAME_FIELDS)
    if direct:
        return direct
    for key in EMPLOYEE_OBJECT_FIELDS:
        name = _person_name(record.get(key))
        if name:
            return name
    return None


def job_code(record: Mapping[str, Any]) -> str | None:
    job_no = first_text(record, ("jobNo", "job_no", "jobNumber"))
    if job_no:
        return f"JOB-{job_no}"
    value = first_present(record, JOB_FIELDS)
    if isinstance(value, Mapping):
        return first_text(value, ("code", "jobCode", "name", "id"))
    return str(value).strip() if value is not None else None


def parse_time_entry(record: Mapping[str, Any]) -> TimeEntry:
    """Canonical TimeEntry from a raw time-source record."""
    work_date = parse_external_date(first_present(record, DATE_FIELDS))
    start = parse_timestamp(first_present(record, START_FIELDS), work_date)
    end_raw = first_present(record, END_FIELDS)
    end = parse_timestamp(end_raw, work_date)
    if (
        start is not None
        and end is not None
        and _HHMM.match(str(end_raw).strip())
        and start.tzinfo is None
        and end <= start
    ):
        # Clock-only times crossing midnight
        end += timedelta(days=1)
    if work_date is None and start is not None:
        work_date = start.date()

    duration = None
    for key in DURATION_FIELDS:
        number = parse_number(record.get(key))
        if number is not None and number > 0:
            duration = number
            break

    return TimeEntry(
        employee_name=employee_name(record) or "",
        employee_id=first_text(record, EMPLOYEE_ID_FIELDS),
        job_code=job_code(record),
        start=start,
        end=end,
        duration=duration,
        unpaid_break_minutes=parse_number(first_present(record, BREAK_FIELDS)) or 0,
        work_date=work_date,
        leave_type=first_text(record, LEAVE_TYPE_FIELDS),
        entry_type=first_text(record, ENTRY_TYPE_FIELDS),
        category=first_text(record, CATEGORY_FIELDS),
        pay_rate=parse_decimal(first_present(record, PAY_RATE_FIELDS)),
    )


def _earnings_kind(record: Mapping[str, Any]) -> RateKind:
    earnings_type = (first_text(record, ("EarningsType", "earningsType")) or "").upper()
    if "ORDINARY" in earnings_type:
        return RateKind.ORDINARY
    if "OVERTIME" in earnings_type:
        return RateKind.OVERTIME
    return RateKind.OTHER


def parse_pay_items(payload: Mapping[str, Any]) -> RateCatalog:
    """RateCatalog from a PayItems response (earnings rates and leave types)."""
    items = payload.get("PayItems", payload)
    if not isinstance(items, Mapping):
        return RateCatalog()

    earnings: list[RateCatalogEntry] = []
    for raw in items.get("EarningsRates") or []:
        rate_id = first_text(raw, ("EarningsRateID", "earningsRateId", "id"))
        name = first_text(raw, ("Name", "name"))
        if not rate_id or not name:
            continue
        earnings.append(
            RateCatalogEntry(
                id=rate_id,
                name=name,
                kind=_earnings_kind(raw),
                rate_per_unit=parse_decimal(first_present(raw, ("RatePerUnit", "ratePerUnit"))),
            )
        )

    leave: list[RateCatalogEntry] = []
    for raw in items.get("LeaveTypes") or []:
        type_id = first_text(raw, ("LeaveTypeID", "leaveTypeId", "id"))
        name = first_text(raw, ("Name", "name"))
        if type_id and name:
            leave.append(RateCatalogEntry(id=type_id, name=name, kind=RateKind.LEAVE))

    return RateCatalog(earnings_rates=tuple(earnings), leave_types=tuple(leave))


def parse_employee(record: Mapping[str, Any]) -> CatalogEmployee | None:
    employee_id = first_text(record, ("EmployeeID", "employeeId", "id"))
    if not employee_id:
        return None

    template = record.get("PayTemplate")
    raw_lines = template.get("EarningsLines") if isinstance(template, Mapping) else None
    lines: list[PayTemplateLine] = []
    for raw in raw_lines or []:
        rate_id = first_text(raw, ("EarningsRateID", "earningsRateId"))
        if not rate_id:
            continue
        lines.append(
            PayTemplateLine(
                earnings_rate_id=rate_id,
                rate_per_unit=parse_decimal(raw.get("RatePerUnit")),
                annual_salary=parse_decimal(raw.get("AnnualSalary")),
                fixed_amount=parse_decimal(first_present(raw, ("FixedAmount", "Amount"))),
                units_per_week=parse_decimal(raw.get("NumberOfUnitsPerWeek")),
            )
        )

    return CatalogEmployee(
        employee_id=employee_id,
        first_name=first_text(record, ("FirstName", "firstName")) or "",
        last_name=first_text(record, ("LastName", "lastName")) or "",
        status=first_text(record, ("Status", "status")) or "ACTIVE",
        ordinary_earnings_rate_id=first_text(
            record, ("OrdinaryEarningsRateID", "ordinaryEarningsRateId")
        ),
        payroll_calendar_id=first_text(record, ("PayrollCalendarID", "payrollCalendarId")),
        pay_template=tuple(lines),
        annual_salary=parse_decimal(first_present(record, ("AnnualSalary", "annualSalary"))),
        weekly_hours=parse_decimal(first_present(record, ("WeeklyHours", "weeklyHours"))),
    )


def parse_calendar(record: Mapping[str, Any]) -> PayrollCalendar | None:
    calendar_id = first_text(record, ("PayrollCalendarID", "payrollCalendarId", "id"))
    if not calendar_id:
        return None
    return PayrollCalendar(
        calendar_id=calendar_id,
        name=first_text(record, ("Name", "name")) or "",
        cycle=PayCycle.from_calendar_type(first_text(record, ("CalendarType", "calendarType"))),
        start_date=parse_external_date(first_present(record, ("StartDate", "startDate"))),
        payment_date=parse_external_date(first_present(record, ("PaymentDate", "paymentDate"))),
    )


def parse_timesheet(record: Mapping[str, Any]) -> Timesheet | None:
    employee_id = first_text(record, ("EmployeeID", "employeeId"))
    start = parse_external_date(first_present(record, ("StartDate", "startDate")))
    end = parse_external_date(first_present(record, ("EndDate", "endDate")))
    if not employee_id or start is None or end is None:
        return None

    lines: dict[str, tuple[Decimal, ...]] = {}
    split: list[str] = []
    for raw in record.get("TimesheetLines") or []:
        rate_id = first_text(raw, ("EarningsRateID", "earningsRateId"))
        if not rate_id:
            continue
        units = [parse_decimal(u) or Decimal("0") for u in raw.get("NumberOfUnits") or []]
        if rate_id in lines:
            # Repeated rate lines are summed day by day and remembered
            if rate_id not in split:
                split.append(rate_id)
            previous = list(lines[rate_id])
            width = max(len(previous), len(units))
            previous += [Decimal("0")] * (width - len(previous))
            units += [Decimal("0")] * (width - len(units))
            units = [a + b for a, b in zip(previous, units)]
        lines[rate_id] = tuple(units)

    return Timesheet(
        employee_id=employee_id,
        start_date=start,
        end_date=end,
        lines=lines,
        status=first_text(record, ("Status", "status")) or "DRAFT",
        timesheet_id=first_text(record, ("TimesheetID", "timesheetId")),
        split_rates=tuple(split),
    )
