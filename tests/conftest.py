"""Pytest fixtures for payroll sync tests."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from payroll_sync.calculators.types import PayLine, TimeEntry
from payroll_sync.catalog.directory import EmployeeDirectory
from payroll_sync.catalog.rate_resolver import RateResolver
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
from payroll_sync.providers.stub import StubPayrollProvider

PERIOD_START = date(2024, 1, 1)  # Monday
PERIOD_END = date(2024, 1, 7)

RATE_ORDINARY = "rate-ordinary"
RATE_TIME_AND_HALF = "rate-ot15"
RATE_DOUBLE = "rate-double"
RATE_LUNCH = "rate-lunch"

LEAVE_ANNUAL = "leave-annual"
LEAVE_PERSONAL = "leave-personal"
LEAVE_LONG_SERVICE = "leave-lsl"

CALENDAR_WEEKLY = "cal-weekly"


def make_entry(
    name: str = "John Worde",
    start: str = "06:00",
    end: str = "18:00",
    day: date = PERIOD_START,
    **kwargs,
) -> TimeEntry:
    """Worked entry on ``day`` between two HH:MM clock times."""
    start_dt = datetime.combine(day, datetime.strptime(start, "%H:%M").time())
    end_dt = datetime.combine(day, datetime.strptime(end, "%H:%M").time())
    return TimeEntry(employee_name=name, start=start_dt, end=end_dt, work_date=day, **kwargs)


def make_line(
    category: str,
    minutes: int,
    day: date = PERIOD_START,
    name: str = "John Worde",
    multiplier: str = "1",
    is_leave: bool = False,
    employee_id: str | None = None,
) -> PayLine:
    return PayLine(
        category=category,
        multiplier=Decimal(multiplier),
        minutes=minutes,
        employee_id=employee_id,
        employee_name=name,
        work_date=day,
        is_leave=is_leave,
    )


def make_timesheet(employee_id: str, lines: dict[str, list[str]]) -> Timesheet:
    return Timesheet(
        employee_id=employee_id,
        start_date=PERIOD_START,
        end_date=PERIOD_END,
        lines={rate: tuple(Decimal(u) for u in units) for rate, units in lines.items()},
    )


@pytest.fixture
def catalog() -> RateCatalog:
    """Catalog mirroring a typical AU payroll setup."""
    return RateCatalog(
        earnings_rates=(
            RateCatalogEntry(RATE_ORDINARY, "Ordinary Hours", RateKind.ORDINARY, Decimal("30.00")),
            RateCatalogEntry(RATE_TIME_AND_HALF, "Overtime - Time and a Half", RateKind.OVERTIME),
            RateCatalogEntry(RATE_DOUBLE, "Double Time", RateKind.OVERTIME),
            RateCatalogEntry(RATE_LUNCH, "Lunch", RateKind.OTHER),
        ),
        leave_types=(
            RateCatalogEntry(LEAVE_ANNUAL, "Annual Leave", RateKind.LEAVE),
            RateCatalogEntry(LEAVE_PERSONAL, "Personal/Carer's Leave", RateKind.LEAVE),
            RateCatalogEntry(LEAVE_LONG_SERVICE, "Long Service Leave", RateKind.LEAVE),
        ),
    )


@pytest.fixture
def employees() -> list[CatalogEmployee]:
    return [
        CatalogEmployee(
            employee_id="emp-john",
            first_name="John",
            last_name="Worde",
            ordinary_earnings_rate_id=RATE_ORDINARY,
            payroll_calendar_id=CALENDAR_WEEKLY,
            pay_template=(PayTemplateLine(RATE_ORDINARY, rate_per_unit=Decimal("32.50")),),
        ),
        CatalogEmployee(
            employee_id="emp-jane",
            first_name="Jane",
            last_name="Smith",
            ordinary_earnings_rate_id=RATE_ORDINARY,
            payroll_calendar_id=CALENDAR_WEEKLY,
        ),
        CatalogEmployee(
            employee_id="emp-nocal",
            first_name="Nora",
            last_name="Calloway",
            ordinary_earnings_rate_id=RATE_ORDINARY,
        ),
        CatalogEmployee(
            employee_id="emp-gone",
            first_name="Old",
            last_name="Timer",
            status="TERMINATED",
        ),
    ]


@pytest.fixture
def calendars() -> list[PayrollCalendar]:
    return [
        PayrollCalendar(
            calendar_id=CALENDAR_WEEKLY,
            name="Weekly",
            cycle=PayCycle.WEEKLY,
            start_date=PERIOD_START,
        )
    ]


@pytest.fixture
def directory(employees: list[CatalogEmployee]) -> EmployeeDirectory:
    return EmployeeDirectory(employees)


@pytest.fixture
def resolver(catalog: RateCatalog) -> RateResolver:
    return RateResolver(catalog)


@pytest.fixture
def stub_provider(
    catalog: RateCatalog,
    employees: list[CatalogEmployee],
    calendars: list[PayrollCalendar],
) -> StubPayrollProvider:
    return StubPayrollProvider(catalog=catalog, employees=employees, calendars=calendars)
