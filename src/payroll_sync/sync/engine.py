"""Idempotent timesheet sync against the external payroll system."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from payroll_sync.calculators.line_builder import LineBuilder
from payroll_sync.catalog.directory import EmployeeDirectory
from payroll_sync.export.types import LeaveApplicationDraft, Timesheet
from payroll_sync.providers.base import PayrollProvider
from payroll_sync.providers.errors import PayrollApiError
from payroll_sync.sync.compare import describe_difference, timesheets_equal
from payroll_sync.sync.locks import KeyedLock, SyncLock, timesheet_lock_key
from payroll_sync.sync.types import LeavePushResult, SyncDecision, SyncStatus

logger = logging.getLogger(__name__)

NO_PAY_CALENDAR_NOTE = "Employee appears to have no Pay Run Calendar assigned"


@dataclass(frozen=True)
class SyncContext:
    """Run-time knobs for one sync run, passed in explicitly."""

    concurrency: int = 4
    require_pay_calendar: bool = True

    def __post_init__(self) -> None:
        if self.concurrency < 1:
            raise ValueError("concurrency must be at least 1")


def timesheet_idempotency_key(timesheet: Timesheet) -> str:
    """Same employee, period and content always give the same key."""
    digest = LineBuilder.compute_content_hash(timesheet.to_payload())
    return (
        f"timesheet-{timesheet.employee_id}-{timesheet.start_date.isoformat()}-"
        f"{timesheet.end_date.isoformat()}-{digest}"
    )


def leave_idempotency_key(drafts: Sequence[LeaveApplicationDraft]) -> str:
    payloads = sorted(
        (draft.to_payload() for draft in drafts),
        key=lambda p: (p["EmployeeID"], p["StartDate"], p["LeaveTypeID"]),
    )
    return f"leave-{LineBuilder.compute_content_hash(payloads)}"


class SyncEngine:
    """Decides CREATE / EXISTS_MATCH / EXISTS_DIFF per desired timesheet.

    State per timesheet:
    - not in the directory -> MISSING_EMPLOYEE
    - existing lookup fails -> ERROR, no write
    - no existing record -> create -> CREATE (or ERROR if the write fails)
    - existing equals desired after normalization -> EXISTS_MATCH, no write
    - existing differs -> EXISTS_DIFF, no write, left for manual review

    Existing records are never overwritten. The lookup and the create run
    under one lock per employee and period.
    """

    def __init__(
        self,
        provider: PayrollProvider,
        directory: EmployeeDirectory,
        context: SyncContext | None = None,
        lock: SyncLock | None = None,
    ):
        self.provider = provider
        self.directory = directory
        self.context = context or SyncContext()
        self.lock = lock or KeyedLock()

    async def sync_timesheets(self, desired: Sequence[Timesheet]) -> list[SyncDecision]:
        """Sync every timesheet on a bounded worker pool, in input order."""
        semaphore = asyncio.Semaphore(self.context.concurrency)

        async def worker(timesheet: Timesheet) -> SyncDecision:
            async with semaphore:
                return await self.sync_timesheet(timesheet)

        decisions = await asyncio.gather(*(worker(t) for t in desired))
        return list(decisions)

    async def sync_timesheet(self, desired: Timesheet) -> SyncDecision:
        employee_id = desired.employee_id
        if employee_id not in self.directory:
            return SyncDecision(
                employee_id=employee_id,
                status=SyncStatus.MISSING_EMPLOYEE,
                note=f"Employee {employee_id} is not an active payroll employee",
            )

        try:
            if self.context.require_pay_calendar and not await self._has_pay_calendar(employee_id):
                return SyncDecision(employee_id, SyncStatus.ERROR, NO_PAY_CALENDAR_NOTE)

            key = timesheet_lock_key(employee_id, desired.start_date, desired.end_date)
            async with self.lock.hold(key):
                return await self._check_then_create(desired)
        except PayrollApiError as exc:
            return SyncDecision(employee_id, SyncStatus.ERROR, f"Payroll API error: {exc}")
        except Exception as exc:
            logger.exception("Unexpected error syncing timesheet for %s", employee_id)
            return SyncDecision(employee_id, SyncStatus.ERROR, f"Unexpected error: {exc}")

    async def _has_pay_calendar(self, employee_id: str) -> bool:
        employee = self.directory.get(employee_id)
        if employee is not None and employee.payroll_calendar_id:
            return True
        # List responses can omit the calendar; the detail record has it
        detail = await self.provider.get_employee(employee_id)
        return detail is not None and bool(detail.payroll_calendar_id)

    async def _check_then_create(self, desired: Timesheet) -> SyncDecision:
        employee_id = desired.employee_id
        try:
            existing = await self.provider.find_timesheet(
                employee_id, desired.start_date, desired.end_date
            )
        except PayrollApiError as exc:
            return SyncDecision(
                employee_id,
                SyncStatus.ERROR,
                f"Failed checking existing timesheets: {exc.message}",
            )

        if existing is not None:
            if timesheets_equal(desired, existing):
                return SyncDecision(
                    employee_id,
                    SyncStatus.EXISTS_MATCH,
                    "Timesheet already exists and matches",
                )
            return SyncDecision(
                employee_id,
                SyncStatus.EXISTS_DIFF,
                f"Timesheet already exists but differs: {describe_difference(desired, existing)}",
                payload={"desired": desired.to_payload(), "existing": existing.to_payload()},
            )

        idempotency_key = timesheet_idempotency_key(desired)
        try:
            created = await self.provider.create_timesheet(desired, idempotency_key)
        except PayrollApiError as exc:
            return SyncDecision(
                employee_id,
                SyncStatus.ERROR,
                f"Create failed ({exc.kind.value}): {exc.message}",
            )

        return SyncDecision(
            employee_id,
            SyncStatus.CREATE,
            f"Created timesheet {created.timesheet_id or ''}".strip(),
            payload={"timesheet_id": created.timesheet_id, "idempotency_key": idempotency_key},
        )

    async def push_leave_applications(
        self, drafts: Sequence[LeaveApplicationDraft]
    ) -> LeavePushResult:
        """Write leave drafts in one batch.

        There is no existence check here; repeated runs rely on the
        idempotency key alone.
        """
        if not drafts:
            return LeavePushResult(submitted=0, ok=True, note="No leave to push")

        idempotency_key = leave_idempotency_key(drafts)
        try:
            result = await self.provider.create_leave_applications(drafts, idempotency_key)
        except PayrollApiError as exc:
            logger.warning("Leave push failed: %s", exc)
            return LeavePushResult(
                submitted=0,
                ok=False,
                note=f"Leave push failed: {exc.message}",
                idempotency_key=idempotency_key,
            )
        return LeavePushResult(
            submitted=result.submitted,
            ok=True,
            note=f"Pushed {result.submitted} leave application(s)",
            idempotency_key=idempotency_key,
        )
