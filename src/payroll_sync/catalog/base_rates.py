"""Ordinary hourly base rate derivation from pay templates."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal

from payroll_sync.calculators.line_builder import LineBuilder
from payroll_sync.catalog.types import (
    BaseRateSource,
    CatalogEmployee,
    EmployeeBaseRate,
    PayrollCalendar,
    PayTemplateLine,
    RateCatalog,
    RateCatalogEntry,
    RateKind,
)
from payroll_sync.periods import PayCycle

logger = logging.getLogger(__name__)

# (name pattern, points); every matching rule adds its points
NAME_SCORES: tuple[tuple[re.Pattern[str], int], ...] = (
    (re.compile(r"^\s*ordinary\s+hours\s*$", re.I), 50),
    (re.compile(r"ordinary\s+hours", re.I), 35),
    (re.compile(r"ordinary", re.I), 10),
    (re.compile(r"base", re.I), 6),
    (re.compile(r"normal", re.I), 3),
)
ORDINARY_KIND_BONUS = 10

DEFAULT_WEEKLY_HOURS = Decimal("38")
MIN_PERIOD_TOTAL = Decimal("50")
MIN_ANNUAL_SALARY = Decimal("1000")
MAX_ANNUAL_SALARY = Decimal("5000000")
WEEKS_PER_YEAR = 52


def score_rate(entry: RateCatalogEntry) -> int:
    """How strongly a catalog rate looks like the ordinary hourly rate."""
    score = sum(points for pattern, points in NAME_SCORES if pattern.search(entry.name))
    if entry.kind == RateKind.ORDINARY:
        score += ORDINARY_KIND_BONUS
    return score


def _positive(value: Decimal | None) -> Decimal | None:
    if value is None or not value.is_finite() or value <= 0:
        return None
    return value


def line_rate(line: PayTemplateLine, catalog: RateCatalog) -> Decimal | None:
    """Explicit line rate, else the catalog default for that rate id."""
    explicit = _positive(line.rate_per_unit)
    if explicit is not None:
        return explicit
    entry = catalog.earnings_rate(line.earnings_rate_id)
    return _positive(entry.rate_per_unit) if entry is not None else None


def _from_pay_template(
    employee: CatalogEmployee, catalog: RateCatalog
) -> EmployeeBaseRate | None:
    best: EmployeeBaseRate | None = None
    best_score = -1
    for line in employee.pay_template:
        entry = catalog.earnings_rate(line.earnings_rate_id)
        rate = line_rate(line, catalog)
        if entry is None or rate is None:
            continue
        score = score_rate(entry)
        # Strictly greater: ties keep the first candidate
        if score > best_score:
            best_score = score
            best = EmployeeBaseRate(
                employee_id=employee.employee_id,
                employee_name=employee.name,
                rate=rate,
                source=BaseRateSource.PAY_TEMPLATE,
                earnings_rate_id=entry.id,
            )
    return best


def _from_catalog_default(
    employee: CatalogEmployee, catalog: RateCatalog
) -> EmployeeBaseRate | None:
    entry = catalog.earnings_rate(employee.ordinary_earnings_rate_id)
    if entry is None:
        return None
    rate = _positive(entry.rate_per_unit)
    if rate is None:
        return None
    return EmployeeBaseRate(
        employee_id=employee.employee_id,
        employee_name=employee.name,
        rate=rate,
        source=BaseRateSource.CATALOG_DEFAULT,
        earnings_rate_id=entry.id,
    )


def annual_salary(employee: CatalogEmployee, cycle: PayCycle | None) -> Decimal | None:
    """Plausible annual salary, or None.

    Uses the declared annual salary, then annual figures on earnings
    lines, then per-period fixed amounts annualised by pay frequency.
    """
    annual = _positive(employee.annual_salary)
    if annual is None:
        declared = [line.annual_salary for line in employee.pay_template if _positive(line.annual_salary)]
        if declared:
            annual = sum(declared, Decimal("0"))
    if annual is None and cycle is not None:
        fixed = [line.fixed_amount for line in employee.pay_template if _positive(line.fixed_amount)]
        period_total = sum(fixed, Decimal("0"))
        if period_total >= MIN_PERIOD_TOTAL:
            annual = period_total * cycle.periods_per_year
        elif fixed:
            logger.debug("Discarding period total %s for %s", period_total, employee.name)
    if annual is None or not (MIN_ANNUAL_SALARY <= annual <= MAX_ANNUAL_SALARY):
        return None
    return annual


def weekly_hours(employee: CatalogEmployee) -> Decimal:
    declared = _positive(employee.weekly_hours)
    if declared is not None:
        return declared
    for line in employee.pay_template:
        units = _positive(line.units_per_week)
        if units is not None:
            return units
    return DEFAULT_WEEKLY_HOURS


def _from_salary(
    employee: CatalogEmployee, cycle: PayCycle | None
) -> EmployeeBaseRate | None:
    annual = annual_salary(employee, cycle)
    if annual is None:
        return None
    hourly = annual / (weekly_hours(employee) * WEEKS_PER_YEAR)
    return EmployeeBaseRate(
        employee_id=employee.employee_id,
        employee_name=employee.name,
        rate=hourly.quantize(LineBuilder.RATE_PRECISION, rounding=ROUND_HALF_UP),
        source=BaseRateSource.SALARY,
    )


def derive_base_rates(
    employees: Iterable[CatalogEmployee],
    catalog: RateCatalog,
    calendars: Sequence[PayrollCalendar] = (),
) -> list[EmployeeBaseRate]:
    """Best ordinary hourly rate per active employee.

    Employees with no usable rate are left out; callers treat a missing
    entry as "rate unknown".
    """
    cycles = {calendar.calendar_id: calendar.cycle for calendar in calendars}
    results: list[EmployeeBaseRate] = []
    for employee in employees:
        if not employee.is_active:
            continue
        derived = (
            _from_pay_template(employee, catalog)
            or _from_catalog_default(employee, catalog)
            or _from_salary(employee, cycles.get(employee.payroll_calendar_id or ""))
        )
        if derived is None:
            logger.info("No base rate derivable for %s", employee.name)
            continue
        results.append(derived)
    return results
