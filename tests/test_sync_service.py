"""End-to-end tests for a sync run against the stub provider."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from payroll_sync.calculators.pipeline import RuleBook
from payroll_sync.calculators.types import Ruleset, RulesetValidationError, TimeEntry
from payroll_sync.export.aggregator import PeriodError
from payroll_sync.providers.errors import CatalogUnavailableError
from payroll_sync.providers.stub import StubPayrollProvider
from payroll_sync.sync.service import SalariedEmployee, SyncRequest, SyncService
from payroll_sync.sync.types import SyncStatus
from tests.conftest import (
    PERIOD_END,
    PERIOD_START,
    RATE_DOUBLE,
    RATE_ORDINARY,
    RATE_TIME_AND_HALF,
    make_entry,
)

TUESDAY = date(2024, 1, 2)


def week_request(**kwargs) -> SyncRequest:
    entries = [
        make_entry("John Worde", "06:00", "18:00"),
        TimeEntry(employee_name="John Worde", work_date=TUESDAY, duration=7.6, leave_type="Annual Leave"),
    ]
    defaults = dict(
        entries=entries,
        period_start=PERIOD_START,
        period_end=PERIOD_END,
        salaried=[SalariedEmployee("Jane Smith")],
    )
    defaults.update(kwargs)
    return SyncRequest(**defaults)


@pytest.fixture
def service(stub_provider: StubPayrollProvider) -> SyncService:
    return SyncService(stub_provider)


class TestSyncRun:
    """Test a full run and its rerun."""

    @pytest.mark.asyncio
    async def test_first_run_creates(self, service: SyncService, stub_provider: StubPayrollProvider):
        report = await service.run(week_request())

        assert report.success
        assert report.counts["CREATE"] == 2
        john = stub_provider.timesheets[("emp-john", PERIOD_START, PERIOD_END)]
        assert john.lines[RATE_ORDINARY][0] == Decimal("8")
        assert john.lines[RATE_TIME_AND_HALF][0] == Decimal("2")
        assert john.lines[RATE_DOUBLE][0] == Decimal("2")
        assert john.lines[RATE_ORDINARY][1] == Decimal("0")

        jane = stub_provider.timesheets[("emp-jane", PERIOD_START, PERIOD_END)]
        assert jane.lines[RATE_ORDINARY] == tuple(
            Decimal(v) for v in ("7.6", "7.6", "7.6", "7.6", "7.6", "0", "0")
        )

        assert report.leave.ok
        assert report.leave.submitted == 1
        [leave] = stub_provider.leave_applications
        assert (leave.employee_id, leave.start_date, leave.units) == ("emp-john", TUESDAY, Decimal("7.6000"))

    @pytest.mark.asyncio
    async def test_rerun_matches_and_keeps_leave_key(self, service, stub_provider):
        first = await service.run(week_request())
        second = await service.run(week_request())

        assert [d.status for d in second.decisions] == [SyncStatus.EXISTS_MATCH, SyncStatus.EXISTS_MATCH]
        assert stub_provider.create_calls == 2
        assert second.leave.idempotency_key == first.leave.idempotency_key

    @pytest.mark.asyncio
    async def test_leave_not_pushed_when_disabled(self, service, stub_provider):
        report = await service.run(week_request(push_leave=False))

        assert report.leave is None
        assert stub_provider.leave_calls == 0

    @pytest.mark.asyncio
    async def test_leave_failure_does_not_block_timesheets(self, service, stub_provider):
        stub_provider.fail_leave = True

        report = await service.run(week_request())

        assert not report.leave.ok
        assert report.counts["CREATE"] == 2
        assert not report.success

    @pytest.mark.asyncio
    async def test_unknown_people_become_warnings(self, service):
        request = week_request(entries=[make_entry("Ghost Person")], salaried=[])

        report = await service.run(request)

        assert report.decisions == []
        assert "No base rate for Ghost Person; cost recorded as 0" in report.warnings
        assert "No active payroll employee matches Ghost Person" in report.warnings

    @pytest.mark.asyncio
    async def test_rate_mapping_overrides(self, service, stub_provider):
        request = week_request(salaried=[], rate_mapping={"OT2.0": RATE_TIME_AND_HALF})

        await service.run(request)

        john = stub_provider.timesheets[("emp-john", PERIOD_START, PERIOD_END)]
        assert RATE_DOUBLE not in john.lines
        assert john.lines[RATE_TIME_AND_HALF][0] == Decimal("4")


class TestRunFailsFast:
    """Bad input fails before any network call."""

    @pytest.mark.asyncio
    async def test_invalid_ruleset(self, service, stub_provider):
        request = week_request(rulebook=RuleBook(company=Ruleset(tiers=())))

        with pytest.raises(RulesetValidationError):
            await service.run(request)
        assert stub_provider.create_calls == 0
        assert stub_provider.leave_calls == 0

    @pytest.mark.asyncio
    async def test_period_too_long(self, service):
        request = week_request(period_end=PERIOD_START + timedelta(days=39))

        with pytest.raises(PeriodError):
            await service.run(request)

    @pytest.mark.asyncio
    async def test_empty_catalog(self):
        service = SyncService(StubPayrollProvider())

        with pytest.raises(CatalogUnavailableError):
            await service.run(week_request())


class TestBuildProfiles:
    """Test base rates and salaried flags on profiles."""

    @pytest.mark.asyncio
    async def test_profiles(self, service):
        snapshot = await service.load_snapshot()

        salaried = [SalariedEmployee("jane smith", Decimal("40"))]

        profiles = {p.employee_id: p for p in service.build_profiles(snapshot, salaried)}

        assert set(profiles) == {"emp-john", "emp-jane", "emp-nocal"}
        assert profiles["emp-john"].base_rate == Decimal("32.5000")
        assert profiles["emp-jane"].base_rate == Decimal("30.0000")
        assert profiles["emp-jane"].no_timesheets
        assert profiles["emp-jane"].weekly_hours == Decimal("40")
        assert not profiles["emp-john"].no_timesheets
