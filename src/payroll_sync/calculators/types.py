"""Type definitions for the pay line pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any


class RulesetValidationError(ValueError):
    """Raised when an overtime ruleset cannot be used for computation."""

    def __init__(self, errors: list[str], scope: str = "company"):
        self.errors = errors
        self.scope = scope
        super().__init__(f"Invalid {scope} ruleset: " + "; ".join(errors))


@dataclass(frozen=True)
class TimeEntry:
    """One worked or leave interval for one employee, as read from the time source."""

    employee_name: str
    employee_id: str | None = None
    job_code: str | None = None

    start: datetime | None = None
    end: datetime | None = None
    # Explicit duration; values above 24 are minutes, otherwise hours
    duration: float | None = None
    unpaid_break_minutes: float = 0

    work_date: date | None = None

    # Free-text labels used for leave detection, in priority order
    leave_type: str | None = None
    entry_type: str | None = None
    category: str | None = None

    pay_rate: Decimal | None = None

    @property
    def day(self) -> date | None:
        """Day the entry is booked against."""
        if self.work_date is not None:
            return self.work_date
        if self.start is not None:
            return self.start.date()
        return None


@dataclass(frozen=True)
class Tier:
    """A slice of overtime paid at ``multiplier``, capped at ``first_minutes`` if set."""

    label: str
    multiplier: Decimal
    first_minutes: int | None = None


@dataclass(frozen=True)
class LunchRule:
    """Lunch deduction folded into the unpaid break."""

    minutes: int
    paid: bool = False
    work_multiplier: Decimal = Decimal("1")
    category: str = "lunch"


DEFAULT_TIERS = (
    Tier(label="OT1.5", multiplier=Decimal("1.5"), first_minutes=120),
    Tier(label="OT2.0", multiplier=Decimal("2.0")),
)


@dataclass(frozen=True)
class Ruleset:
    """Daily ordinary cap plus ordered overtime tiers."""

    ordinary_minutes_per_day: int = 480
    tiers: tuple[Tier, ...] = DEFAULT_TIERS
    lunch: LunchRule | None = None

    def validation_errors(self) -> list[str]:
        errors: list[str] = []
        if self.ordinary_minutes_per_day < 0:
            errors.append("ordinary_minutes_per_day must be >= 0")
        if not self.tiers:
            errors.append("at least one tier is required")
        for index, tier in enumerate(self.tiers):
            name = tier.label or f"tier {index + 1}"
            if not tier.multiplier.is_finite() or tier.multiplier <= 0:
                errors.append(f"{name}: multiplier must be a positive number")
            if tier.first_minutes is None and index != len(self.tiers) - 1:
                errors.append(f"{name}: only the last tier may omit first_minutes")
            if tier.first_minutes is not None and tier.first_minutes < 0:
                errors.append(f"{name}: first_minutes must be >= 0")
        if self.lunch is not None and self.lunch.minutes < 0:
            errors.append("lunch minutes must be >= 0")
        return errors

    def validate(self, scope: str = "company") -> None:
        """Raise RulesetValidationError if the ruleset is unusable."""
        errors = self.validation_errors()
        if errors:
            raise RulesetValidationError(errors, scope=scope)


@dataclass(frozen=True)
class PayLine:
    """A categorized block of minutes at a multiplier.

    The Tier Engine fills only category, multiplier and minutes; the
    pipeline enriches the rest.
    """

    category: str
    multiplier: Decimal
    minutes: int

    employee_id: str | None = None
    employee_name: str = ""
    base_rate: Decimal | None = None
    cost: Decimal = Decimal("0")
    job_code: str | None = None
    work_date: date | None = None
    is_leave: bool = False

    @property
    def hours(self) -> Decimal:
        return Decimal(self.minutes) / Decimal(60)

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "multiplier": str(self.multiplier),
            "minutes": self.minutes,
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "base_rate": str(self.base_rate) if self.base_rate is not None else None,
            "cost": str(self.cost),
            "job_code": self.job_code,
            "work_date": self.work_date.isoformat() if self.work_date else None,
            "is_leave": self.is_leave,
        }


@dataclass(frozen=True)
class EmployeeProfile:
    """What the pipeline knows about an employee before computing."""

    name: str
    employee_id: str | None = None
    base_rate: Decimal | None = None
    no_timesheets: bool = False
    weekly_hours: Decimal = Decimal("38")


@dataclass
class PayLineBatch:
    """Result of running the pipeline over a set of entries."""

    lines: list[PayLine] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def worked_lines(self) -> list[PayLine]:
        return [line for line in self.lines if not line.is_leave]

    @property
    def leave_lines(self) -> list[PayLine]:
        return [line for line in self.lines if line.is_leave]

    @property
    def total_cost(self) -> Decimal:
        return sum((line.cost for line in self.lines), Decimal("0"))
