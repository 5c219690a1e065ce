"""Leave pay lines → leave application drafts."""

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
from payroll_sync.export.types import LeaveApplicationDraft

logger = logging.getLogger(__name__)


@dataclass
class LeaveBuildResult:
    drafts: list[LeaveApplicationDraft] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def build_leave_applications(
    lines: Iterable[PayLine],
    directory: EmployeeDirectory,
    resolver: RateResolver,
    period_start: date,
    period_end: date,
) -> LeaveBuildResult:
    """One draft per employee, day and leave type; no merging across days."""
    result = LeaveBuildResult()
    hours: dict[tuple[str, date, str], Decimal] = {}
    titles: dict[tuple[str, date, str], str] = {}

    for line in lines:
        if not line.is_leave:
            continue
        who = line.employee_name or line.employee_id or "unknown employee"

        employee = directory.resolve(line.employee_id, line.employee_name)
        if employee is None:
            result.warnings.append(f"Leave skipped: no Xero EmployeeID for {who}")
            continue

        leave_type_id = resolver.resolve_leave_type(line.category)
        if leave_type_id is None:
            result.warnings.append(
                f"Leave skipped: could not find Xero LeaveTypeID for '{line.category}' ({who})"
            )
            continue

        if line.work_date is None:
            result.warnings.append(f"Leave skipped: missing date for {who} ({line.category})")
            continue

        if line.minutes <= 0:
            result.warnings.append(f"Leave skipped: 0 hours for {who} on {line.work_date}")
            continue

        key = (employee.employee_id, line.work_date, leave_type_id)
        hours[key] = hours.get(key, Decimal("0")) + line.hours
        titles.setdefault(key, line.category)

    for key, total in hours.items():
        employee_id, day, leave_type_id = key
        result.drafts.append(
            LeaveApplicationDraft(
                employee_id=employee_id,
                leave_type_id=leave_type_id,
                title=titles[key],
                start_date=day,
                end_date=day,
                period_start=period_start,
                period_end=period_end,
                units=LineBuilder.round_units(total, LineBuilder.LEAVE_UNIT_PRECISION),
            )
        )

    for warning in result.warnings:
        logger.warning(warning)
    return result
