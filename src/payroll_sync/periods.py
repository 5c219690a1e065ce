"""Pay period arithmetic."""

from __future__ import annotations

import calendar
from collections import Counter
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from payroll_sync.catalog.types import CatalogEmployee, PayrollCalendar


class PayCycle(str, Enum):
    """Pay frequencies understood by the period helpers."""

    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"
    FOUR_WEEKLY = "four_weekly"
    MONTHLY = "monthly"

    @classmethod
    def from_calendar_type(cls, value: str | None) -> PayCycle | None:
        """Map an external calendar type ("FOURWEEKLY", "Fortnightly", ...)."""
        if not value:
            return None
        key = value.strip().upper().replace("_", "").replace("-", "").replace(" ", "")
        return _CALENDAR_TYPES.get(key)

    @property
    def periods_per_year(self) -> int:
        return _PERIODS_PER_YEAR[self]


_CALENDAR_TYPES = {
    "WEEKLY": PayCycle.WEEKLY,
    "FORTNIGHTLY": PayCycle.FORTNIGHTLY,
    "FOURWEEKLY": PayCycle.FOUR_WEEKLY,
    "MONTHLY": PayCycle.MONTHLY,
}

_PERIODS_PER_YEAR = {
    PayCycle.WEEKLY: 52,
    PayCycle.FORTNIGHTLY: 26,
    PayCycle.FOUR_WEEKLY: 13,
    PayCycle.MONTHLY: 12,
}


@dataclass(frozen=True)
class PayPeriod:
    """An inclusive date range."""

    start: date
    end: date

    @property
    def day_count(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def day_index(self, day: date) -> int:
        """Offset of ``day`` from the period start (may fall outside the period)."""
        return (day - self.start).days

    def days(self) -> Iterator[date]:
        for offset in range(max(self.day_count, 0)):
            yield self.start + timedelta(days=offset)

    def weekdays(self) -> list[date]:
        return [day for day in self.days() if day.weekday() < 5]

    @property
    def weeks(self) -> float:
        """Number of working weeks the period represents."""
        if self.day_count == 7:
            return 1.0
        if self.day_count == 14:
            return 2.0
        return self.day_count / 7


def add_months(day: date, months: int) -> date:
    """Add calendar months, clamping to the last day of the target month."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def _next_start(start: date, cycle: PayCycle) -> date:
    if cycle == PayCycle.WEEKLY:
        return start + timedelta(days=7)
    if cycle == PayCycle.FORTNIGHTLY:
        return start + timedelta(days=14)
    if cycle == PayCycle.FOUR_WEEKLY:
        return start + timedelta(days=28)
    return add_months(start, 1)


def period_from_start(start: date, cycle: PayCycle) -> PayPeriod:
    """Period beginning on ``start``; the end is the day before the next start."""
    return PayPeriod(start=start, end=_next_start(start, cycle) - timedelta(days=1))


def calendar_period(anchor: date, cycle: PayCycle, on: date) -> PayPeriod:
    """Period of a calendar anchored at ``anchor`` that contains ``on``.

    Dates before the anchor resolve to the anchor's first period.
    """
    period = period_from_start(anchor, cycle)
    while period.end < on:
        period = period_from_start(period.end + timedelta(days=1), cycle)
    return period


def suggest_period(
    calendars: Sequence[PayrollCalendar],
    employees: Sequence[CatalogEmployee],
    on: date,
) -> PayPeriod | None:
    """Current period of the calendar assigned to the most active employees."""
    usable = {
        cal.calendar_id: cal
        for cal in calendars
        if cal.cycle is not None and cal.start_date is not None
    }
    if not usable:
        return None

    usage = Counter(
        employee.payroll_calendar_id
        for employee in employees
        if employee.is_active and employee.payroll_calendar_id in usable
    )
    if usage:
        chosen = usable[usage.most_common(1)[0][0]]
    else:
        chosen = next(iter(usable.values()))

    return calendar_period(chosen.start_date, chosen.cycle, on)  # type: ignore[arg-type]
