"""One end-to-end sync run: fetch catalog, compute, aggregate, push."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from payroll_sync.calculators.pipeline import PayLinePipeline, RuleBook
from payroll_sync.calculators.types import EmployeeProfile, PayLineBatch, TimeEntry
from payroll_sync.catalog.base_rates import derive_base_rates
from payroll_sync.catalog.directory import EmployeeDirectory
from payroll_sync.catalog.rate_resolver import RateResolver
from payroll_sync.catalog.types import CatalogSnapshot
from payroll_sync.export.aggregator import MAX_PERIOD_DAYS, PeriodError, aggregate_timesheets
from payroll_sync.export.leave_builder import build_leave_applications
from payroll_sync.names import normalize_name
from payroll_sync.periods import PayPeriod
from payroll_sync.providers.base import PayrollProvider
from payroll_sync.providers.errors import CatalogUnavailableError
from payroll_sync.sync.engine import SyncContext, SyncEngine
from payroll_sync.sync.locks import SyncLock
from payroll_sync.sync.types import SyncReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SalariedEmployee:
    """An employee who does not log time and is topped up to weekly hours."""

    name: str
    weekly_hours: Decimal = Decimal("38")


@dataclass
class SyncRequest:
    entries: Sequence[TimeEntry]
    period_start: date
    period_end: date
    rulebook: RuleBook = field(default_factory=RuleBook)
    rate_mapping: Mapping[str, str] = field(default_factory=dict)
    salaried: Sequence[SalariedEmployee] = ()
    push_leave: bool = True
    apply_base_rate_to_leave: bool = False


class SyncService:
    """Orchestrates a sync run against one provider.

    The catalog and employee directory are fetched fresh for every run
    and dropped afterwards.
    """

    def __init__(
        self,
        provider: PayrollProvider,
        context: SyncContext | None = None,
        lock: SyncLock | None = None,
    ):
        self.provider = provider
        self.context = context or SyncContext()
        self.lock = lock

    async def load_snapshot(self) -> CatalogSnapshot:
        catalog = await self.provider.fetch_rate_catalog()
        if not catalog.earnings_rates:
            raise CatalogUnavailableError()
        employees = await self.provider.list_employees()
        calendars = await self.provider.list_payroll_calendars()
        return CatalogSnapshot(catalog=catalog, employees=employees, calendars=calendars)

    @staticmethod
    def build_profiles(
        snapshot: CatalogSnapshot,
        salaried: Sequence[SalariedEmployee],
    ) -> list[EmployeeProfile]:
        rates = {
            rate.employee_id: rate.rate
            for rate in derive_base_rates(snapshot.employees, snapshot.catalog, snapshot.calendars)
        }
        salaried_by_name = {normalize_name(s.name): s for s in salaried}
        profiles = []
        for employee in snapshot.employees:
            if not employee.is_active:
                continue
            flagged = salaried_by_name.get(employee.normalized_name)
            profiles.append(
                EmployeeProfile(
                    name=employee.name,
                    employee_id=employee.employee_id,
                    base_rate=rates.get(employee.employee_id),
                    no_timesheets=flagged is not None,
                    weekly_hours=flagged.weekly_hours if flagged else Decimal("38"),
                )
            )
        return profiles

    def compute(
        self,
        request: SyncRequest,
        snapshot: CatalogSnapshot,
    ) -> PayLineBatch:
        pipeline = PayLinePipeline(
            request.rulebook,
            self.build_profiles(snapshot, request.salaried),
            apply_base_rate_to_leave=request.apply_base_rate_to_leave,
        )
        return pipeline.run(
            request.entries,
            PayPeriod(start=request.period_start, end=request.period_end),
        )

    async def run(self, request: SyncRequest) -> SyncReport:
        # Configuration and period errors fail before any network call
        request.rulebook.validate()
        day_count = (request.period_end - request.period_start).days + 1
        if not 1 <= day_count <= MAX_PERIOD_DAYS:
            raise PeriodError(request.period_start, request.period_end)

        logger.info(
            "Starting sync for %s to %s with %d entries",
            request.period_start,
            request.period_end,
            len(request.entries),
        )
        snapshot = await self.load_snapshot()
        directory = EmployeeDirectory(snapshot.employees)
        resolver = RateResolver(snapshot.catalog, request.rate_mapping)

        batch = self.compute(request, snapshot)
        aggregation = aggregate_timesheets(
            batch.worked_lines,
            request.period_start,
            request.period_end,
            resolver,
            directory,
        )
        leave = build_leave_applications(
            batch.leave_lines,
            directory,
            resolver,
            request.period_start,
            request.period_end,
        )

        report = SyncReport(
            period_start=request.period_start.isoformat(),
            period_end=request.period_end.isoformat(),
            warnings=[*batch.warnings, *aggregation.warnings, *leave.warnings],
        )

        engine = SyncEngine(self.provider, directory, self.context, self.lock)
        if request.push_leave:
            report.leave = await engine.push_leave_applications(leave.drafts)
        report.decisions = await engine.sync_timesheets(aggregation.timesheets)

        logger.info("Sync finished: %s", report.counts)
        return report
