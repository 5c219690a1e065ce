"""Normalize-then-compare for desired vs existing timesheets."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from payroll_sync.calculators.line_builder import LineBuilder
from payroll_sync.export.types import Timesheet

NormalizedLine = tuple[str, tuple[Decimal, ...]]
NormalizedTimesheet = tuple[str, date, date, tuple[NormalizedLine, ...]]


def _as_decimal(value: object) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def normalize_timesheet(timesheet: Timesheet) -> NormalizedTimesheet:
    """Comparable form: trimmed ids, 2dp units, empty lines dropped, sorted by rate id."""
    lines = []
    for rate_id, units in timesheet.lines.items():
        key = (rate_id or "").strip()
        if not key or not units:
            continue
        lines.append((key, tuple(LineBuilder.round_units(_as_decimal(u)) for u in units)))
    lines.sort(key=lambda line: line[0])
    return (
        timesheet.employee_id.strip(),
        timesheet.start_date,
        timesheet.end_date,
        tuple(lines),
    )


def timesheets_equal(a: Timesheet, b: Timesheet) -> bool:
    # A rate split over several lines cannot be reproduced by one desired line
    if a.split_rates or b.split_rates:
        return False
    return normalize_timesheet(a) == normalize_timesheet(b)


def describe_difference(desired: Timesheet, existing: Timesheet) -> str:
    """Short human-readable reason two timesheets differ."""
    emp_a, start_a, end_a, lines_a = normalize_timesheet(desired)
    emp_b, start_b, end_b, lines_b = normalize_timesheet(existing)
    if (emp_a, start_a, end_a) != (emp_b, start_b, end_b):
        return "employee or period differs"
    split = existing.split_rates or desired.split_rates
    if split:
        return f"earnings rate {', '.join(split)} is split across several lines"
    if len(lines_a) != len(lines_b):
        return f"line count differs ({len(lines_a)} desired, {len(lines_b)} existing)"
    for (rate_a, units_a), (rate_b, units_b) in zip(lines_a, lines_b):
        if rate_a != rate_b:
            return f"earnings rates differ ({rate_a} vs {rate_b})"
        if units_a != units_b:
            return f"units differ for earnings rate {rate_a}"
    return "no difference"
