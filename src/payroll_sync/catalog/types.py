"""Snapshot types for the external payroll catalog and employee directory."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from payroll_sync.names import normalize_name
from payroll_sync.periods import PayCycle


class RateKind(str, Enum):
    """Broad class of an external rate definition."""

    ORDINARY = "ordinary"
    LEAVE = "leave"
    OVERTIME = "overtime"
    OTHER = "other"


@dataclass(frozen=True)
class RateCatalogEntry:
    """An earnings rate or leave type defined in the external system."""

    id: str
    name: str
    kind: RateKind = RateKind.OTHER
    rate_per_unit: Decimal | None = None


@dataclass(frozen=True)
class RateCatalog:
    """Read-only catalog snapshot for one sync run."""

    earnings_rates: tuple[RateCatalogEntry, ...] = ()
    leave_types: tuple[RateCatalogEntry, ...] = ()

    def earnings_rate(self, rate_id: str | None) -> RateCatalogEntry | None:
        if not rate_id:
            return None
        for entry in self.earnings_rates:
            if entry.id == rate_id:
                return entry
        return None


@dataclass(frozen=True)
class PayTemplateLine:
    """One earnings line of an employee's pay template."""

    earnings_rate_id: str
    rate_per_unit: Decimal | None = None
    annual_salary: Decimal | None = None
    fixed_amount: Decimal | None = None
    units_per_week: Decimal | None = None


@dataclass(frozen=True)
class PayrollCalendar:
    calendar_id: str
    name: str
    cycle: PayCycle | None
    start_date: date | None = None
    payment_date: date | None = None


@dataclass(frozen=True)
class CatalogEmployee:
    """An employee as known to the external payroll system."""

    employee_id: str
    first_name: str = ""
    last_name: str = ""
    status: str = "ACTIVE"
    ordinary_earnings_rate_id: str | None = None
    payroll_calendar_id: str | None = None
    pay_template: tuple[PayTemplateLine, ...] = ()
    annual_salary: Decimal | None = None
    weekly_hours: Decimal | None = None

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def normalized_name(self) -> str:
        return normalize_name(self.name)

    @property
    def is_active(self) -> bool:
        return self.status.upper() == "ACTIVE"


class BaseRateSource(str, Enum):
    """Where a derived base rate came from."""

    PAY_TEMPLATE = "pay_template"
    CATALOG_DEFAULT = "catalog_default"
    SALARY = "salary"


@dataclass(frozen=True)
class EmployeeBaseRate:
    employee_id: str
    employee_name: str
    rate: Decimal
    source: BaseRateSource
    earnings_rate_id: str | None = None


@dataclass
class CatalogSnapshot:
    """Everything fetched from the payroll system at the start of a run."""

    catalog: RateCatalog
    employees: list[CatalogEmployee] = field(default_factory=list)
    calendars: list[PayrollCalendar] = field(default_factory=list)
