"""Payroll sync endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from payroll_sync.api.dependencies import AppSettings, Lock, Provider
from payroll_sync.api.schemas import (
    ErrorResponse,
    SuggestedPeriodResponse,
    SyncRequestIn,
    SyncResponse,
)
from payroll_sync.ingest import parse_time_entry
from payroll_sync.periods import suggest_period
from payroll_sync.sync.engine import SyncContext
from payroll_sync.sync.service import SalariedEmployee, SyncRequest, SyncService

router = APIRouter(tags=["sync"])


@router.post(
    "/sync",
    response_model=SyncResponse,
    responses={
        401: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def sync_timesheets(
    payload: SyncRequestIn,
    provider: Provider,
    settings: AppSettings,
    lock: Lock,
) -> SyncResponse:
    """Compute pay lines for the period and sync them as draft timesheets."""
    request = SyncRequest(
        entries=[parse_time_entry(raw) for raw in payload.entries],
        period_start=payload.period_start,
        period_end=payload.period_end,
        rulebook=payload.rules.to_rulebook(),
        rate_mapping=payload.rate_mapping,
        salaried=[SalariedEmployee(name=s.name, weekly_hours=s.weekly_hours) for s in payload.salaried],
        push_leave=payload.push_leave,
        apply_base_rate_to_leave=payload.apply_base_rate_to_leave,
    )
    context = SyncContext(
        concurrency=settings.sync_concurrency,
        require_pay_calendar=payload.require_pay_calendar,
    )
    report = await SyncService(provider, context, lock).run(request)
    return SyncResponse.from_report(report)


@router.get(
    "/periods/suggested",
    response_model=SuggestedPeriodResponse,
    responses={404: {"model": ErrorResponse}},
)
async def suggested_period(
    provider: Provider,
    on: Annotated[date | None, Query()] = None,
) -> SuggestedPeriodResponse:
    """Current period of the pay calendar most employees are on."""
    calendars = await provider.list_payroll_calendars()
    employees = await provider.list_employees()
    period = suggest_period(calendars, employees, on or date.today())
    if period is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No usable payroll calendar found",
        )
    return SuggestedPeriodResponse(
        period_start=period.start,
        period_end=period.end,
        day_count=period.day_count,
    )
