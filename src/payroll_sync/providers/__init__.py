"""Payroll system provider adapters."""

from payroll_sync.providers.base import CreateResult, LeaveSubmitResult, PayrollProvider
from payroll_sync.providers.errors import (
    CatalogUnavailableError,
    PayrollApiError,
    PayrollErrorKind,
)
from payroll_sync.providers.stub import StubPayrollProvider
from payroll_sync.providers.xero import XeroPayrollProvider

__all__ = [
    "CatalogUnavailableError",
    "CreateResult",
    "LeaveSubmitResult",
    "PayrollApiError",
    "PayrollErrorKind",
    "PayrollProvider",
    "StubPayrollProvider",
    "XeroPayrollProvider",
]
