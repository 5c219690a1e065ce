"""Entry → pay line pipeline.

Each entry is classified once: leave entries become a single untiered
line, everything else goes through the Tier Engine. Lines are then
enriched with employee context and cost.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from decimal import Decimal

from payroll_sync.calculators import leave_classifier, tier_engine
from payroll_sync.calculators.line_builder import LineBuilder
from payroll_sync.calculators.types import (
    EmployeeProfile,
    PayLine,
    PayLineBatch,
    Ruleset,
    TimeEntry,
)
from payroll_sync.names import find_unique_match, normalize_name
from payroll_sync.periods import PayPeriod

logger = logging.getLogger(__name__)

SALARIED_DAY_START = time(9, 0)


@dataclass(frozen=True)
class RuleBook:
    """Company ruleset with per-job and per-employee overrides.

    Employee overrides (keyed by id or name) beat job overrides, which
    beat the company ruleset.
    """

    company: Ruleset = field(default_factory=Ruleset)
    by_job: Mapping[str, Ruleset] = field(default_factory=dict)
    by_employee: Mapping[str, Ruleset] = field(default_factory=dict)

    def validate(self) -> None:
        self.company.validate("company")
        for job, ruleset in self.by_job.items():
            ruleset.validate(f"job {job}")
        for employee, ruleset in self.by_employee.items():
            ruleset.validate(f"employee {employee}")

    def for_entry(self, entry: TimeEntry) -> Ruleset:
        if entry.employee_id and entry.employee_id in self.by_employee:
            return self.by_employee[entry.employee_id]
        name = normalize_name(entry.employee_name)
        if name:
            for key, ruleset in self.by_employee.items():
                if normalize_name(key) == name:
                    return ruleset
        if entry.job_code:
            job = entry.job_code.strip().lower()
            for key, ruleset in self.by_job.items():
                if key.strip().lower() == job:
                    return ruleset
        return self.company


class ProfileIndex:
    """Lookup of employee profiles by id, then by normalized name."""

    def __init__(self, profiles: Iterable[EmployeeProfile]):
        self.profiles = list(profiles)
        self._by_id = {p.employee_id: p for p in self.profiles if p.employee_id}
        self._by_name = {normalize_name(p.name): p for p in self.profiles if p.name}

    def find(self, employee_id: str | None, name: str | None) -> EmployeeProfile | None:
        if employee_id and employee_id in self._by_id:
            return self._by_id[employee_id]
        key = normalize_name(name)
        if not key:
            return None
        if key in self._by_name:
            return self._by_name[key]
        match = find_unique_match(key, self._by_name)
        return self._by_name[match] if match is not None else None


def compute_entry(entry: TimeEntry, ruleset: Ruleset) -> list[PayLine]:
    """Raw lines for one entry; leave bypasses tiering."""
    classification = leave_classifier.classify(entry)
    if classification.is_leave:
        line = leave_classifier.leave_line(entry, classification)
        return [line] if line is not None else []
    return tier_engine.compute(entry, ruleset)


def _belongs_to(line: PayLine, profile: EmployeeProfile) -> bool:
    if profile.employee_id and line.employee_id == profile.employee_id:
        return True
    return normalize_name(line.employee_name) == normalize_name(profile.name)


def salaried_entries(
    profile: EmployeeProfile,
    period: PayPeriod,
    recorded_minutes: int,
) -> list[TimeEntry]:
    """Synthetic weekday entries topping a salaried employee up to their weekly hours."""
    target = round(float(profile.weekly_hours) * 60 * period.weeks)
    remaining = target - recorded_minutes
    weekdays = period.weekdays()
    if remaining <= 0 or not weekdays:
        return []

    per_day = math.ceil(remaining / len(weekdays))
    entries: list[TimeEntry] = []
    for day in weekdays:
        minutes = min(per_day, remaining)
        if minutes <= 0:
            break
        start = datetime.combine(day, SALARIED_DAY_START)
        entries.append(
            TimeEntry(
                employee_name=profile.name,
                employee_id=profile.employee_id,
                start=start,
                end=start + timedelta(minutes=minutes),
                work_date=day,
                category=tier_engine.ORDINARY_CATEGORY,
            )
        )
        remaining -= minutes
    return entries


class PayLinePipeline:
    """Runs entries through classification, tiering and enrichment."""

    def __init__(
        self,
        rulebook: RuleBook,
        profiles: Sequence[EmployeeProfile] = (),
        *,
        apply_base_rate_to_leave: bool = False,
    ):
        # Configuration errors fail before any computation
        rulebook.validate()
        self.rulebook = rulebook
        self.profiles = ProfileIndex(profiles)
        self.apply_base_rate_to_leave = apply_base_rate_to_leave

    def run(self, entries: Iterable[TimeEntry], period: PayPeriod | None = None) -> PayLineBatch:
        batch = PayLineBatch()
        unpriced: set[str] = set()

        for entry in entries:
            day = entry.day
            if period is not None:
                if day is None:
                    batch.warnings.append(
                        f"Skipped entry for {entry.employee_name or 'unknown employee'}: missing date"
                    )
                    continue
                if not period.contains(day):
                    continue
            batch.lines.extend(self._lines_for(entry, unpriced, batch))

        if period is not None:
            for profile in self.profiles.profiles:
                if not profile.no_timesheets:
                    continue
                recorded = sum(
                    line.minutes for line in batch.lines if _belongs_to(line, profile)
                )
                for entry in salaried_entries(profile, period, recorded):
                    batch.lines.extend(self._lines_for(entry, unpriced, batch))

        logger.info(
            "Computed %d pay lines (%d leave) with %d warnings",
            len(batch.lines),
            len(batch.leave_lines),
            len(batch.warnings),
        )
        return batch

    def _lines_for(
        self,
        entry: TimeEntry,
        unpriced: set[str],
        batch: PayLineBatch,
    ) -> list[PayLine]:
        profile = self.profiles.find(entry.employee_id, entry.employee_name)
        base_rate = entry.pay_rate
        if profile is not None and profile.base_rate is not None:
            base_rate = profile.base_rate
        employee_id = entry.employee_id or (profile.employee_id if profile else None)
        employee_name = entry.employee_name or (profile.name if profile else "")

        lines = compute_entry(entry, self.rulebook.for_entry(entry))
        if lines and base_rate is None:
            key = normalize_name(employee_name)
            if key not in unpriced:
                unpriced.add(key)
                batch.warnings.append(f"No base rate for {employee_name}; cost recorded as 0")

        return [
            LineBuilder.enrich(
                line,
                employee_id=employee_id,
                employee_name=employee_name,
                base_rate=base_rate,
                job_code=entry.job_code,
                work_date=entry.day,
                charge=not line.is_leave or self.apply_base_rate_to_leave,
            )
            for line in lines
        ]


@dataclass
class LineTotals:
    minutes: int = 0
    cost: Decimal = Decimal("0.00")

    def add(self, line: PayLine) -> None:
        self.minutes += line.minutes
        self.cost += line.cost


@dataclass
class PayRunSummary:
    """Minutes and cost per category, per employee."""

    by_category: dict[str, LineTotals] = field(default_factory=dict)
    by_employee: dict[str, LineTotals] = field(default_factory=dict)

    @classmethod
    def from_lines(cls, lines: Iterable[PayLine]) -> PayRunSummary:
        summary = cls()
        for line in lines:
            summary.by_category.setdefault(line.category, LineTotals()).add(line)
            summary.by_employee.setdefault(line.employee_name, LineTotals()).add(line)
        return summary
