"""Pay line costing and deterministic content hashing."""

from __future__ import annotations

import hashlib
import json
from dataclasses import replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from payroll_sync.calculators.types import PayLine


class LineBuilder:
    """Enriches engine output and hashes payloads for idempotency keys.

    Rounding:
    - Money to 2 decimals (half up)
    - Timesheet units to 2 decimals, leave units to 4
    - Internal compute unrounded
    """

    CENTS = Decimal("0.01")
    UNIT_PRECISION = Decimal("0.01")
    LEAVE_UNIT_PRECISION = Decimal("0.0001")
    RATE_PRECISION = Decimal("0.0001")

    @staticmethod
    def round_to_cents(amount: Decimal) -> Decimal:
        """Round amount to 2 decimal places (cents)."""
        return amount.quantize(LineBuilder.CENTS, rounding=ROUND_HALF_UP)

    @staticmethod
    def round_units(value: Decimal, precision: Decimal | None = None) -> Decimal:
        return value.quantize(precision or LineBuilder.UNIT_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def compute_cost(minutes: int, base_rate: Decimal | None, multiplier: Decimal) -> Decimal:
        """cost = (minutes / 60) * base_rate * multiplier, in cents."""
        if base_rate is None or minutes <= 0:
            return Decimal("0.00")
        hours = Decimal(minutes) / Decimal(60)
        return LineBuilder.round_to_cents(hours * base_rate * multiplier)

    @staticmethod
    def enrich(
        line: PayLine,
        *,
        employee_id: str | None,
        employee_name: str,
        base_rate: Decimal | None,
        job_code: str | None,
        work_date: date | None,
        charge: bool = True,
    ) -> PayLine:
        """Attach employee context and cost; ``charge=False`` leaves cost at zero."""
        cost = (
            LineBuilder.compute_cost(line.minutes, base_rate, line.multiplier)
            if charge
            else Decimal("0.00")
        )
        return replace(
            line,
            employee_id=employee_id,
            employee_name=employee_name,
            base_rate=base_rate,
            cost=cost,
            job_code=job_code,
            work_date=work_date,
        )

    @staticmethod
    def compute_content_hash(payload: Any) -> str:
        """Deterministic hash of a JSON-serializable payload.

        Identical payloads always produce identical hashes, regardless of
        key order.
        """
        json_str = json.dumps(payload, sort_keys=True, default=str)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]
