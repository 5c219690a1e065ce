"""In-memory payroll provider for local development and testing."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from datetime import date

from payroll_sync.catalog.types import CatalogEmployee, PayrollCalendar, RateCatalog
from payroll_sync.export.types import LeaveApplicationDraft, Timesheet
from payroll_sync.providers.base import CreateResult, LeaveSubmitResult
from payroll_sync.providers.errors import PayrollApiError, PayrollErrorKind


class StubPayrollProvider:
    """Stub payroll system.

    Stores timesheets keyed by employee and period, honours idempotency
    keys the way the real API does, and can be told to fail lookups or
    writes for specific employees.
    """

    provider_name = "stub"

    def __init__(
        self,
        catalog: RateCatalog | None = None,
        employees: Iterable[CatalogEmployee] = (),
        calendars: Iterable[PayrollCalendar] = (),
        timesheets: Iterable[Timesheet] = (),
    ):
        self.catalog = catalog or RateCatalog()
        self.employees = {e.employee_id: e for e in employees}
        self.calendars = list(calendars)
        self.timesheets: dict[tuple[str, date, date], Timesheet] = {}
        for timesheet in timesheets:
            self.timesheets[(timesheet.employee_id, timesheet.start_date, timesheet.end_date)] = timesheet
        self.leave_applications: list[LeaveApplicationDraft] = []

        # Failure injection
        self.fail_lookup_for: set[str] = set()
        self.fail_create_for: set[str] = set()
        self.fail_leave = False

        # Call tracking
        self.create_calls = 0
        self.leave_calls = 0
        self.idempotency_keys: list[str] = []
        self._by_key: dict[str, CreateResult] = {}

    async def fetch_rate_catalog(self) -> RateCatalog:
        return self.catalog

    async def list_employees(self) -> list[CatalogEmployee]:
        return list(self.employees.values())

    async def get_employee(self, employee_id: str) -> CatalogEmployee | None:
        return self.employees.get(employee_id)

    async def list_payroll_calendars(self) -> list[PayrollCalendar]:
        return list(self.calendars)

    async def find_timesheet(
        self,
        employee_id: str,
        start_date: date,
        end_date: date,
    ) -> Timesheet | None:
        if employee_id in self.fail_lookup_for:
            raise PayrollApiError("Stub lookup failure", status_code=503)
        return self.timesheets.get((employee_id, start_date, end_date))

    async def create_timesheet(
        self,
        timesheet: Timesheet,
        idempotency_key: str,
    ) -> CreateResult:
        self.create_calls += 1
        self.idempotency_keys.append(idempotency_key)
        if idempotency_key in self._by_key:
            return self._by_key[idempotency_key]
        if timesheet.employee_id in self.fail_create_for:
            raise PayrollApiError(
                "A validation exception occurred",
                status_code=400,
                kind=PayrollErrorKind.VALIDATION,
            )

        key = (timesheet.employee_id, timesheet.start_date, timesheet.end_date)
        if key in self.timesheets:
            raise PayrollApiError(
                "Timesheet already exists for this period",
                status_code=400,
                kind=PayrollErrorKind.TIMESHEET_EXISTS,
            )

        timesheet_id = f"TSSTUB-{uuid.uuid4().hex[:12].upper()}"
        self.timesheets[key] = Timesheet(
            employee_id=timesheet.employee_id,
            start_date=timesheet.start_date,
            end_date=timesheet.end_date,
            lines=dict(timesheet.lines),
            status=timesheet.status,
            timesheet_id=timesheet_id,
        )
        result = CreateResult(timesheet_id=timesheet_id, status=timesheet.status)
        self._by_key[idempotency_key] = result
        return result

    async def create_leave_applications(
        self,
        drafts: Sequence[LeaveApplicationDraft],
        idempotency_key: str,
    ) -> LeaveSubmitResult:
        self.leave_calls += 1
        self.idempotency_keys.append(idempotency_key)
        if self.fail_leave:
            raise PayrollApiError("Stub leave failure", status_code=500)
        self.leave_applications.extend(drafts)
        ids = tuple(f"LASTUB-{uuid.uuid4().hex[:12].upper()}" for _ in drafts)
        return LeaveSubmitResult(submitted=len(drafts), application_ids=ids)
