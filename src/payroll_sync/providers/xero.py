"""Xero Payroll (AU) provider over httpx."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date
from typing import Any

import httpx

from payroll_sync.catalog.types import CatalogEmployee, PayrollCalendar, RateCatalog
from payroll_sync.config import Settings
from payroll_sync.export.types import LeaveApplicationDraft, Timesheet
from payroll_sync.ingest import (
    first_text,
    parse_calendar,
    parse_employee,
    parse_pay_items,
    parse_timesheet,
)
from payroll_sync.providers.base import CreateResult, LeaveSubmitResult
from payroll_sync.providers.errors import (
    PayrollApiError,
    PayrollErrorKind,
    classify_error,
    extract_error_message,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.xero.com/payroll.xro/1.0"


class XeroPayrollProvider:
    """Talks to the Xero Payroll API with a caller-supplied bearer token.

    Token refresh is the caller's concern. Every request carries a bounded
    timeout and is never retried here; failures surface as PayrollApiError.
    """

    provider_name = "xero"

    def __init__(
        self,
        access_token: str,
        tenant_id: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        client: httpx.AsyncClient | None = None,
        catalog_timeout: float = 15.0,
        employee_timeout: float = 10.0,
        timesheet_timeout: float = 15.0,
        leave_timeout: float = 20.0,
    ):
        self.access_token = access_token
        self.tenant_id = tenant_id
        self.base_url = base_url.rstrip("/")
        self.catalog_timeout = catalog_timeout
        self.employee_timeout = employee_timeout
        self.timesheet_timeout = timesheet_timeout
        self.leave_timeout = leave_timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        access_token: str,
        tenant_id: str,
        client: httpx.AsyncClient | None = None,
    ) -> XeroPayrollProvider:
        return cls(
            access_token,
            tenant_id,
            base_url=settings.payroll_api_base,
            client=client,
            catalog_timeout=settings.catalog_timeout_seconds,
            employee_timeout=settings.employee_timeout_seconds,
            timesheet_timeout=settings.timesheet_timeout_seconds,
            leave_timeout=settings.leave_timeout_seconds,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> XeroPayrollProvider:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _headers(self, idempotency_key: str | None = None) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Xero-tenant-id": self.tenant_id,
            "Accept": "application/json",
        }
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        timeout: float,
        json: Any = None,
        idempotency_key: str | None = None,
    ) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = await self._client.request(
                method,
                url,
                headers=self._headers(idempotency_key),
                json=json,
                timeout=timeout,
            )
        except httpx.TimeoutException as exc:
            raise PayrollApiError(
                f"{method} {path} timed out after {timeout:g}s",
                kind=PayrollErrorKind.TIMEOUT,
            ) from exc
        except httpx.HTTPError as exc:
            raise PayrollApiError(f"{method} {path} failed: {exc}") from exc

        if response.status_code == 404 and method == "GET":
            return None
        if response.status_code >= 400:
            message = extract_error_message(response.text)
            raise PayrollApiError(
                message,
                status_code=response.status_code,
                kind=classify_error(message, response.status_code),
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise PayrollApiError(
                f"{method} {path} returned a non-JSON body",
                status_code=response.status_code,
            ) from exc

    async def fetch_rate_catalog(self) -> RateCatalog:
        payload = await self._request("GET", "PayItems", timeout=self.catalog_timeout)
        return parse_pay_items(payload or {})

    async def list_employees(self) -> list[CatalogEmployee]:
        payload = await self._request("GET", "Employees", timeout=self.catalog_timeout)
        employees = [parse_employee(raw) for raw in (payload or {}).get("Employees") or []]
        return [employee for employee in employees if employee is not None]

    async def get_employee(self, employee_id: str) -> CatalogEmployee | None:
        payload = await self._request(
            "GET", f"Employees/{employee_id}", timeout=self.employee_timeout
        )
        for raw in (payload or {}).get("Employees") or []:
            employee = parse_employee(raw)
            if employee is not None:
                return employee
        return None

    async def list_payroll_calendars(self) -> list[PayrollCalendar]:
        payload = await self._request("GET", "PayrollCalendars", timeout=self.catalog_timeout)
        calendars = [parse_calendar(raw) for raw in (payload or {}).get("PayrollCalendars") or []]
        return [calendar for calendar in calendars if calendar is not None]

    async def find_timesheet(
        self,
        employee_id: str,
        start_date: date,
        end_date: date,
    ) -> Timesheet | None:
        payload = await self._request("GET", "Timesheets", timeout=self.timesheet_timeout)
        for raw in (payload or {}).get("Timesheets") or []:
            timesheet = parse_timesheet(raw)
            if (
                timesheet is not None
                and timesheet.employee_id == employee_id
                and timesheet.start_date == start_date
                and timesheet.end_date == end_date
            ):
                return timesheet
        return None

    async def create_timesheet(
        self,
        timesheet: Timesheet,
        idempotency_key: str,
    ) -> CreateResult:
        payload = await self._request(
            "POST",
            "Timesheets",
            timeout=self.timesheet_timeout,
            json=[timesheet.to_payload()],
            idempotency_key=idempotency_key,
        )
        created = ((payload or {}).get("Timesheets") or [{}])[0]
        logger.info(
            "Created timesheet for %s (%s to %s)",
            timesheet.employee_id,
            timesheet.start_date,
            timesheet.end_date,
        )
        return CreateResult(
            timesheet_id=first_text(created, ("TimesheetID",)),
            status=first_text(created, ("Status",)),
        )

    async def create_leave_applications(
        self,
        drafts: Sequence[LeaveApplicationDraft],
        idempotency_key: str,
    ) -> LeaveSubmitResult:
        payload = await self._request(
            "POST",
            "LeaveApplications",
            timeout=self.leave_timeout,
            json=[draft.to_payload() for draft in drafts],
            idempotency_key=idempotency_key,
        )
        created = (payload or {}).get("LeaveApplications") or []
        ids = tuple(
            value
            for value in (first_text(raw, ("LeaveApplicationID",)) for raw in created)
            if value
        )
        return LeaveSubmitResult(submitted=len(drafts), application_ids=ids)
