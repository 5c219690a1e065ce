"""Pay line computation endpoint (no payroll system access)."""

from fastapi import APIRouter, HTTPException, status

from payroll_sync.api.schemas import (
    ComputeRequest,
    ComputeResponse,
    ErrorResponse,
    PayLineOut,
    TotalsOut,
)
from payroll_sync.calculators.pipeline import PayLinePipeline, PayRunSummary
from payroll_sync.calculators.types import EmployeeProfile
from payroll_sync.ingest import parse_time_entry
from payroll_sync.periods import PayPeriod

router = APIRouter(prefix="/pay-lines", tags=["pay-lines"])


@router.post(
    "/compute",
    response_model=ComputeResponse,
    responses={422: {"model": ErrorResponse}},
)
async def compute_pay_lines(payload: ComputeRequest) -> ComputeResponse:
    """Classify, tier and cost raw time entries."""
    if (payload.period_start is None) != (payload.period_end is None):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="period_start and period_end must be given together",
        )

    period = None
    if payload.period_start is not None and payload.period_end is not None:
        period = PayPeriod(start=payload.period_start, end=payload.period_end)

    profiles = [
        EmployeeProfile(name=name, base_rate=rate) for name, rate in payload.base_rates.items()
    ]
    pipeline = PayLinePipeline(
        payload.rules.to_rulebook(),
        profiles,
        apply_base_rate_to_leave=payload.apply_base_rate_to_leave,
    )
    batch = pipeline.run([parse_time_entry(raw) for raw in payload.entries], period)
    summary = PayRunSummary.from_lines(batch.lines)

    return ComputeResponse(
        lines=[PayLineOut.model_validate(line) for line in batch.lines],
        by_category={k: TotalsOut.from_totals(v) for k, v in summary.by_category.items()},
        by_employee={k: TotalsOut.from_totals(v) for k, v in summary.by_employee.items()},
        total_cost=batch.total_cost,
        warnings=batch.warnings,
    )
