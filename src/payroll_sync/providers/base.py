"""Payroll system provider protocol.

A provider is the only thing the sync layer talks to. Implementations
must raise PayrollApiError for every transport or API failure so the
engine can record it per employee.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from payroll_sync.catalog.types import CatalogEmployee, PayrollCalendar, RateCatalog
from payroll_sync.export.types import LeaveApplicationDraft, Timesheet


@dataclass(frozen=True)
class CreateResult:
    """Result of creating a timesheet."""

    timesheet_id: str | None
    status: str | None = None


@dataclass(frozen=True)
class LeaveSubmitResult:
    """Result of submitting a batch of leave applications."""

    submitted: int
    application_ids: tuple[str, ...] = ()


class PayrollProvider(Protocol):
    """Interface for the external payroll system."""

    provider_name: str

    async def fetch_rate_catalog(self) -> RateCatalog:
        """List earnings rates and leave types."""
        ...

    async def list_employees(self) -> list[CatalogEmployee]:
        """List employees with their pay templates."""
        ...

    async def get_employee(self, employee_id: str) -> CatalogEmployee | None:
        """Fetch one employee's full record (includes the pay calendar)."""
        ...

    async def list_payroll_calendars(self) -> list[PayrollCalendar]:
        ...

    async def find_timesheet(
        self,
        employee_id: str,
        start_date: date,
        end_date: date,
    ) -> Timesheet | None:
        """Existing timesheet for exactly this employee and period, if any."""
        ...

    async def create_timesheet(
        self,
        timesheet: Timesheet,
        idempotency_key: str,
    ) -> CreateResult:
        """Create one timesheet in a single call."""
        ...

    async def create_leave_applications(
        self,
        drafts: Sequence[LeaveApplicationDraft],
        idempotency_key: str,
    ) -> LeaveSubmitResult:
        ...
