"""External payroll catalog: rate resolution and base rate derivation."""

from payroll_sync.catalog.base_rates import derive_base_rates
from payroll_sync.catalog.directory import EmployeeDirectory
from payroll_sync.catalog.rate_resolver import RateResolver
from payroll_sync.catalog.types import (
    BaseRateSource,
    CatalogEmployee,
    CatalogSnapshot,
    EmployeeBaseRate,
    PayrollCalendar,
    PayTemplateLine,
    RateCatalog,
    RateCatalogEntry,
    RateKind,
)

__all__ = [
    "BaseRateSource",
    "CatalogEmployee",
    "CatalogSnapshot",
    "EmployeeBaseRate",
    "EmployeeDirectory",
    "PayTemplateLine",
    "PayrollCalendar",
    "RateCatalog",
    "RateCatalogEntry",
    "RateKind",
    "RateResolver",
    "derive_base_rates",
]
