"""Tests for the idempotent timesheet sync engine."""

import asyncio
from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from payroll_sync.catalog.directory import EmployeeDirectory
from payroll_sync.catalog.types import CatalogEmployee
from payroll_sync.export.types import LeaveApplicationDraft
from payroll_sync.providers.stub import StubPayrollProvider
from payroll_sync.sync.engine import (
    NO_PAY_CALENDAR_NOTE,
    SyncContext,
    SyncEngine,
    leave_idempotency_key,
    timesheet_idempotency_key,
)
from payroll_sync.sync.locks import KeyedLock
from payroll_sync.sync.types import LeavePushResult, SyncReport, SyncStatus
from tests.conftest import LEAVE_ANNUAL, PERIOD_END, PERIOD_START, RATE_ORDINARY, make_timesheet


def john_timesheet(hours: str = "8"):
    return make_timesheet("emp-john", {RATE_ORDINARY: [hours, "8", "8", "8", "8", "0", "0"]})


def annual_leave(day: date = PERIOD_START) -> LeaveApplicationDraft:
    return LeaveApplicationDraft(
        employee_id="emp-john",
        leave_type_id=LEAVE_ANNUAL,
        title="Annual Leave",
        start_date=day,
        end_date=day,
        period_start=PERIOD_START,
        period_end=PERIOD_END,
        units=Decimal("7.6000"),
    )


@pytest.fixture
def engine(stub_provider, directory) -> SyncEngine:
    return SyncEngine(stub_provider, directory)


class TestSyncTimesheet:
    """Test the per-timesheet decision table."""

    @pytest.mark.asyncio
    async def test_create_then_match(self, engine: SyncEngine, stub_provider: StubPayrollProvider):
        first = await engine.sync_timesheet(john_timesheet())
        second = await engine.sync_timesheet(john_timesheet())

        assert first.status == SyncStatus.CREATE
        assert first.wrote
        assert first.payload["timesheet_id"].startswith("TSSTUB-")
        assert first.payload["idempotency_key"] == timesheet_idempotency_key(john_timesheet())
        assert second.status == SyncStatus.EXISTS_MATCH
        assert second.note == "Timesheet already exists and matches"
        assert stub_provider.create_calls == 1

    @pytest.mark.asyncio
    async def test_existing_different_is_not_overwritten(self, engine, stub_provider):
        await engine.sync_timesheet(john_timesheet("8"))

        decision = await engine.sync_timesheet(john_timesheet("9"))

        assert decision.status == SyncStatus.EXISTS_DIFF
        assert "units differ" in decision.note
        assert decision.payload["desired"]["TimesheetLines"][0]["NumberOfUnits"][0] == 9.0
        assert decision.payload["existing"]["TimesheetLines"][0]["NumberOfUnits"][0] == 8.0
        assert stub_provider.create_calls == 1

    @pytest.mark.asyncio
    async def test_existing_with_split_rate_needs_review(self, engine, stub_provider):
        existing = replace(john_timesheet(), timesheet_id="TS-9", split_rates=(RATE_ORDINARY,))
        stub_provider.timesheets[(existing.employee_id, existing.start_date, existing.end_date)] = existing

        decision = await engine.sync_timesheet(john_timesheet())

        assert decision.status == SyncStatus.EXISTS_DIFF
        assert "split across several lines" in decision.note
        assert stub_provider.create_calls == 0

    @pytest.mark.asyncio
    async def test_missing_employee(self, engine, stub_provider):
        decision = await engine.sync_timesheet(make_timesheet("emp-unknown", {RATE_ORDINARY: ["1"]}))

        assert decision.status == SyncStatus.MISSING_EMPLOYEE
        assert stub_provider.create_calls == 0

    @pytest.mark.asyncio
    async def test_lookup_failure_does_not_write(self, engine, stub_provider):
        stub_provider.fail_lookup_for.add("emp-john")

        decision = await engine.sync_timesheet(john_timesheet())

        assert decision.status == SyncStatus.ERROR
        assert decision.note == "Failed checking existing timesheets: Stub lookup failure"
        assert stub_provider.create_calls == 0

    @pytest.mark.asyncio
    async def test_create_failure(self, engine, stub_provider):
        stub_provider.fail_create_for.add("emp-john")

        decision = await engine.sync_timesheet(john_timesheet())

        assert decision.status == SyncStatus.ERROR
        assert decision.note == "Create failed (validation): A validation exception occurred"

    @pytest.mark.asyncio
    async def test_no_pay_calendar(self, engine, stub_provider):
        decision = await engine.sync_timesheet(make_timesheet("emp-nocal", {RATE_ORDINARY: ["1"]}))

        assert decision.status == SyncStatus.ERROR
        assert decision.note == NO_PAY_CALENDAR_NOTE
        assert stub_provider.create_calls == 0

    @pytest.mark.asyncio
    async def test_calendar_backfilled_from_detail_record(self, stub_provider):
        listed = CatalogEmployee(employee_id="emp-john", first_name="John", last_name="Worde")
        engine = SyncEngine(stub_provider, EmployeeDirectory([listed]))

        decision = await engine.sync_timesheet(john_timesheet())

        assert decision.status == SyncStatus.CREATE

    @pytest.mark.asyncio
    async def test_calendar_check_can_be_disabled(self, stub_provider, directory):
        engine = SyncEngine(stub_provider, directory, SyncContext(require_pay_calendar=False))

        decision = await engine.sync_timesheet(make_timesheet("emp-nocal", {RATE_ORDINARY: ["1"]}))

        assert decision.status == SyncStatus.CREATE

    @pytest.mark.asyncio
    async def test_unexpected_error_recorded(self, engine, stub_provider, monkeypatch):
        async def boom(*args, **kwargs):
            raise RuntimeError("socket closed")

        monkeypatch.setattr(stub_provider, "find_timesheet", boom)

        decision = await engine.sync_timesheet(john_timesheet())

        assert decision.status == SyncStatus.ERROR
        assert decision.note == "Unexpected error: socket closed"


class TestSyncTimesheets:
    """Test batch behaviour."""

    @pytest.mark.asyncio
    async def test_error_does_not_stop_others(self, engine, stub_provider):
        stub_provider.fail_create_for.add("emp-john")
        batch = [
            john_timesheet(),
            make_timesheet("emp-jane", {RATE_ORDINARY: ["7.6"]}),
            make_timesheet("emp-unknown", {RATE_ORDINARY: ["1"]}),
        ]

        decisions = await engine.sync_timesheets(batch)

        assert [d.employee_id for d in decisions] == ["emp-john", "emp-jane", "emp-unknown"]
        assert [d.status for d in decisions] == [
            SyncStatus.ERROR,
            SyncStatus.CREATE,
            SyncStatus.MISSING_EMPLOYEE,
        ]

    @pytest.mark.asyncio
    async def test_duplicates_in_one_run_create_once(self, engine, stub_provider):
        decisions = await engine.sync_timesheets([john_timesheet(), john_timesheet()])

        assert sorted(d.status.value for d in decisions) == ["CREATE", "EXISTS_MATCH"]
        assert stub_provider.create_calls == 1

    @pytest.mark.asyncio
    async def test_concurrent_engines_share_lock(self, stub_provider, directory):
        lock = KeyedLock()
        a = SyncEngine(stub_provider, directory, lock=lock)
        b = SyncEngine(stub_provider, directory, lock=lock)

        results = await asyncio.gather(
            a.sync_timesheet(john_timesheet()),
            b.sync_timesheet(john_timesheet()),
        )

        assert sorted(d.status.value for d in results) == ["CREATE", "EXISTS_MATCH"]
        assert stub_provider.create_calls == 1
        assert len(lock) == 0

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, catalog):
        class SlowProvider(StubPayrollProvider):
            active = 0
            peak = 0

            async def find_timesheet(self, employee_id, start_date, end_date):
                SlowProvider.active += 1
                SlowProvider.peak = max(SlowProvider.peak, SlowProvider.active)
                await asyncio.sleep(0.01)
                SlowProvider.active -= 1
                return None

        employees = [
            CatalogEmployee(employee_id=f"emp-{i}", first_name=f"Worker{i}", last_name="Test")
            for i in range(8)
        ]
        provider = SlowProvider(catalog=catalog, employees=employees)
        engine = SyncEngine(
            provider,
            EmployeeDirectory(employees),
            SyncContext(concurrency=2, require_pay_calendar=False),
        )

        decisions = await engine.sync_timesheets(
            [make_timesheet(e.employee_id, {RATE_ORDINARY: ["1"]}) for e in employees]
        )

        assert all(d.status == SyncStatus.CREATE for d in decisions)
        assert SlowProvider.peak == 2

    def test_concurrency_must_be_positive(self):
        with pytest.raises(ValueError):
            SyncContext(concurrency=0)


class TestIdempotencyKeys:
    """Keys depend only on employee, period and content."""

    def test_timesheet_key_is_deterministic(self):
        key = timesheet_idempotency_key(john_timesheet())

        assert key == timesheet_idempotency_key(john_timesheet())
        assert key.startswith("timesheet-emp-john-2024-01-01-2024-01-07-")
        assert key != timesheet_idempotency_key(john_timesheet("9"))

    def test_leave_key_ignores_order(self):
        monday, tuesday = annual_leave(), annual_leave(date(2024, 1, 2))

        assert leave_idempotency_key([monday, tuesday]) == leave_idempotency_key([tuesday, monday])
        assert leave_idempotency_key([monday]).startswith("leave-")


class TestPushLeave:
    """Test the leave batch write."""

    @pytest.mark.asyncio
    async def test_nothing_to_push(self, engine, stub_provider):
        result = await engine.push_leave_applications([])

        assert result.ok
        assert result.submitted == 0
        assert result.note == "No leave to push"
        assert stub_provider.leave_calls == 0

    @pytest.mark.asyncio
    async def test_push(self, engine, stub_provider):
        result = await engine.push_leave_applications([annual_leave()])

        assert result.ok
        assert result.submitted == 1
        assert result.idempotency_key in stub_provider.idempotency_keys
        assert len(stub_provider.leave_applications) == 1

    @pytest.mark.asyncio
    async def test_push_failure_reported(self, engine, stub_provider):
        stub_provider.fail_leave = True

        result = await engine.push_leave_applications([annual_leave()])

        assert not result.ok
        assert result.note == "Leave push failed: Stub leave failure"


class TestSyncReport:
    """Test report counts and success."""

    @pytest.mark.asyncio
    async def test_counts_include_every_status(self, engine):
        report = SyncReport(period_start="2024-01-01", period_end="2024-01-07")
        report.decisions = await engine.sync_timesheets([john_timesheet()])

        assert report.counts == {
            "CREATE": 1,
            "EXISTS_MATCH": 0,
            "EXISTS_DIFF": 0,
            "MISSING_EMPLOYEE": 0,
            "ERROR": 0,
        }
        assert report.success

    def test_failed_leave_is_not_success(self):
        report = SyncReport("2024-01-01", "2024-01-07", leave=LeavePushResult(0, ok=False))

        assert not report.success
