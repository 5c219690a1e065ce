"""Tiered overtime computation for a single time entry."""

from __future__ import annotations

from decimal import Decimal

from payroll_sync.calculators.durations import MINUTES_PER_DAY, clamp_minutes, raw_minutes
from payroll_sync.calculators.types import PayLine, Ruleset, Tier, TimeEntry

ORDINARY_CATEGORY = "ordinary"
OVERTIME_CATEGORY = "overtime"
FALLBACK_MULTIPLIER = Decimal("1.5")

_ONE = Decimal("1")


def _usable(tier: Tier) -> bool:
    return tier.multiplier.is_finite() and tier.multiplier > 0


def split_minutes(worked: int, ruleset: Ruleset) -> list[PayLine]:
    """Consume ``worked`` minutes across ordinary time then the tiers in order.

    Any minutes left once every tier has hit its cap are paid at the last
    tier's multiplier (1.5 without tiers) so time is never dropped.
    """
    lines: list[PayLine] = []
    remaining = max(worked, 0)

    ordinary = clamp_minutes(ruleset.ordinary_minutes_per_day, 0, MINUTES_PER_DAY)
    take = min(remaining, ordinary)
    if take > 0:
        lines.append(PayLine(category=ORDINARY_CATEGORY, multiplier=_ONE, minutes=take))
        remaining -= take

    for tier in ruleset.tiers:
        if remaining <= 0:
            break
        if not _usable(tier):
            continue
        if tier.first_minutes is None:
            cap = remaining
        else:
            cap = clamp_minutes(tier.first_minutes, 0, MINUTES_PER_DAY)
        take = min(remaining, cap)
        if take > 0:
            lines.append(
                PayLine(
                    category=tier.label or OVERTIME_CATEGORY,
                    multiplier=tier.multiplier,
                    minutes=take,
                )
            )
            remaining -= take

    if remaining > 0:
        last = ruleset.tiers[-1] if ruleset.tiers else None
        if last is not None and _usable(last):
            category, multiplier = last.label or OVERTIME_CATEGORY, last.multiplier
        else:
            category, multiplier = OVERTIME_CATEGORY, FALLBACK_MULTIPLIER

        lines.append(PayLine(category=category, multiplier=multiplier, minutes=remaining))

    return lines


def compute(entry: TimeEntry, ruleset: Ruleset) -> list[PayLine]:
    """Split one worked entry into ordered pay lines.

    Lunch minutes are always deducted alongside the unpaid break; a paid
    lunch is then added back as its own line after the tiered lines.
    """
    raw = raw_minutes(entry)

    lunch = ruleset.lunch
    lunch_minutes = clamp_minutes(lunch.minutes, 0, raw) if lunch is not None else 0
    break_minutes = clamp_minutes(
        clamp_minutes(entry.unpaid_break_minutes, 0, raw) + lunch_minutes, 0, raw
    )

    lines = split_minutes(raw - break_minutes, ruleset)

    if lunch is not None and lunch.paid and lunch_minutes > 0:
        multiplier = lunch.work_multiplier
        if not multiplier.is_finite() or multiplier <= 0:
            multiplier = _ONE
        lines.append(
            PayLine(
                category=lunch.category or "lunch",
                multiplier=multiplier,
                minutes=lunch_minutes,
            )
        )

    return lines
