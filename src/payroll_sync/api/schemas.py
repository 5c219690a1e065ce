"""Pydantic schemas for API request/response models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from payroll_sync.calculators.pipeline import LineTotals, RuleBook
from payroll_sync.calculators.types import LunchRule, Ruleset, Tier
from payroll_sync.sync.types import SyncReport


# ============================================================================
# Rules
# ============================================================================


class TierIn(BaseModel):
    label: str
    multiplier: Decimal
    first_minutes: int | None = None


def _default_tiers() -> list[TierIn]:
    return [
        TierIn(label="OT1.5", multiplier=Decimal("1.5"), first_minutes=120),
        TierIn(label="OT2.0", multiplier=Decimal("2.0")),
    ]


class LunchIn(BaseModel):
    minutes: int
    paid: bool = False
    work_multiplier: Decimal = Decimal("1")
    category: str = "lunch"


class RulesetIn(BaseModel):
    """Overtime ruleset; validated when converted, not here."""

    ordinary_minutes_per_day: int = 480
    tiers: list[TierIn] = Field(default_factory=_default_tiers)
    lunch: LunchIn | None = None

    def to_ruleset(self) -> Ruleset:
        return Ruleset(
            ordinary_minutes_per_day=self.ordinary_minutes_per_day,
            tiers=tuple(
                Tier(label=t.label, multiplier=t.multiplier, first_minutes=t.first_minutes)
                for t in self.tiers
            ),
            lunch=LunchRule(**self.lunch.model_dump()) if self.lunch else None,
        )


class RuleBookIn(BaseModel):
    company: RulesetIn = Field(default_factory=RulesetIn)
    by_job: dict[str, RulesetIn] = Field(default_factory=dict)
    by_employee: dict[str, RulesetIn] = Field(default_factory=dict)

    def to_rulebook(self) -> RuleBook:
        return RuleBook(
            company=self.company.to_ruleset(),
            by_job={k: v.to_ruleset() for k, v in self.by_job.items()},
            by_employee={k: v.to_ruleset() for k, v in self.by_employee.items()},
        )


# ============================================================================
# Pay line computation
# ============================================================================


class ComputeRequest(BaseModel):
    """Raw time entries in any of the supported upstream shapes."""

    entries: list[dict[str, Any]]
    rules: RuleBookIn = Field(default_factory=RuleBookIn)
    base_rates: dict[str, Decimal] = Field(default_factory=dict)
    period_start: date | None = None
    period_end: date | None = None
    apply_base_rate_to_leave: bool = False


class PayLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category: str
    multiplier: Decimal
    minutes: int
    employee_id: str | None = None
    employee_name: str
    base_rate: Decimal | None = None
    cost: Decimal
    job_code: str | None = None
    work_date: date | None = None
    is_leave: bool


class TotalsOut(BaseModel):
    minutes: int
    cost: Decimal

    @classmethod
    def from_totals(cls, totals: LineTotals) -> TotalsOut:
        return cls(minutes=totals.minutes, cost=totals.cost)


class ComputeResponse(BaseModel):
    lines: list[PayLineOut]
    by_category: dict[str, TotalsOut]
    by_employee: dict[str, TotalsOut]
    total_cost: Decimal
    warnings: list[str]


# ============================================================================
# Sync
# ============================================================================


class SalariedIn(BaseModel):
    name: str
    weekly_hours: Decimal = Field(default=Decimal("38"), gt=0)


class SyncRequestIn(BaseModel):
    entries: list[dict[str, Any]]
    period_start: date
    period_end: date
    rules: RuleBookIn = Field(default_factory=RuleBookIn)
    rate_mapping: dict[str, str] = Field(default_factory=dict)
    salaried: list[SalariedIn] = Field(default_factory=list)
    push_leave: bool = True
    require_pay_calendar: bool = True
    apply_base_rate_to_leave: bool = False


class SyncDecisionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    status: str
    note: str
    payload: dict[str, Any] | None = None


class LeavePushOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    submitted: int
    ok: bool
    note: str
    idempotency_key: str | None = None


class SyncResponse(BaseModel):
    period_start: date
    period_end: date
    decisions: list[SyncDecisionOut]
    leave: LeavePushOut | None = None
    warnings: list[str]
    counts: dict[str, int]
    success: bool

    @classmethod
    def from_report(cls, report: SyncReport) -> SyncResponse:
        return cls(
            period_start=date.fromisoformat(report.period_start),
            period_end=date.fromisoformat(report.period_end),
            decisions=[
                SyncDecisionOut(
                    employee_id=d.employee_id,
                    status=d.status.value,
                    note=d.note,
                    payload=d.payload,
                )
                for d in report.decisions
            ],
            leave=LeavePushOut.model_validate(report.leave) if report.leave else None,
            warnings=report.warnings,
            counts=report.counts,
            success=report.success,
        )


class SuggestedPeriodResponse(BaseModel):
    period_start: date
    period_end: date
    day_count: int


class ErrorResponse(BaseModel):
    detail: Any
    code: str
