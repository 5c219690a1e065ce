"""Buckets worked pay lines into day-indexed timesheet unit arrays."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from payroll_sync.calculators.line_builder import LineBuilder
from payroll_sync.calculators.types import PayLine
from payroll_sync.catalog.directory import EmployeeDirectory
from payroll_sync.catalog.rate_resolver import RateResolver
from payroll_sync.export.types import Timesheet
from payroll_sync.periods import PayPeriod

logger = logging.getLogger(__name__)

MAX_PERIOD_DAYS = 31


class PeriodError(ValueError):
    """Raised when a pay period cannot be expressed as a timesheet."""

    def __init__(self, period_start: date, period_end: date):
        self.period_start = period_start
        self.period_end = period_end
        self.day_count = (period_end - period_start).days + 1
        super().__init__(
            f"Pay period {period_start} to {period_end} spans {self.day_count} days; "
            f"expected 1 to {MAX_PERIOD_DAYS}"
        )


@dataclass
class AggregationResult:
    timesheets: list[Timesheet] = field(default_factory=list)
    missing_employees: list[str] = field(default_factory=list)
    missing_categories: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def aggregate_timesheets(
    lines: Iterable[PayLine],
    period_start: date,
    period_end: date,
    resolver: RateResolver,
    directory: EmployeeDirectory,
) -> AggregationResult:
    """Sum worked hours into ``timesheet[employee][rate][day]``.

    Leave lines are ignored. Lines that cannot be placed (unknown
    employee, date outside the period, unresolved category) are dropped
    with a warning; the rest of the batch continues.
    """
    period = PayPeriod(start=period_start, end=period_end)
    day_count = period.day_count
    if not 1 <= day_count <= MAX_PERIOD_DAYS:
        raise PeriodError(period_start, period_end)

    result = AggregationResult()
    cells: dict[str, dict[str, list[Decimal]]] = {}

    for line in lines:
        if line.is_leave:
            continue

        employee = directory.resolve(line.employee_id, line.employee_name)
        if employee is None:
            label = line.employee_name or line.employee_id or "unknown employee"
            if label not in result.missing_employees:
                result.missing_employees.append(label)
                result.warnings.append(f"No active payroll employee matches {label}")
            continue

        if line.work_date is None:
            result.warnings.append(f"Dropped {line.category} line for {employee.name}: missing date")
            continue
        index = period.day_index(line.work_date)
        if not period.contains(line.work_date):
            result.warnings.append(
                f"Dropped {line.category} line for {employee.name}: "
                f"{line.work_date} is outside the pay period"
            )
            continue

        rate_id = resolver.resolve(line.category, employee, multiplier=line.multiplier)
        if rate_id is None:
            missing = f"{employee.name}: {line.category}"
            if missing not in result.missing_categories:
                result.missing_categories.append(missing)
                result.warnings.append(f"No earnings rate for category '{line.category}' ({employee.name})")
            continue

        rates = cells.setdefault(employee.employee_id, {})
        units = rates.setdefault(rate_id, [Decimal("0")] * day_count)
        units[index] += line.hours

    for employee_id, rates in cells.items():
        result.timesheets.append(
            Timesheet(
                employee_id=employee_id,
                start_date=period_start,
                end_date=period_end,
                lines={
                    rate_id: tuple(LineBuilder.round_units(value) for value in units)
                    for rate_id, units in rates.items()
                },
            )
        )

    for warning in result.warnings:
        logger.warning(warning)
    return result
