"""Leave detection over free-text entry labels."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from payroll_sync.calculators.durations import explicit_minutes, span_minutes
from payroll_sync.calculators.types import PayLine, TimeEntry

# Checked as case-insensitive substrings
LEAVE_VOCABULARY: tuple[str, ...] = (
    "leave",
    "annual",
    "sick",
    "personal",
    "carer",
    "long service",
    "lsl",
    "public holiday",
    "holiday",
)

# Entry attributes inspected, highest priority first
LABEL_FIELDS: tuple[str, ...] = ("leave_type", "entry_type", "category")


@dataclass(frozen=True)
class LeaveClassification:
    is_leave: bool
    leave_label: str | None = None


NOT_LEAVE = LeaveClassification(is_leave=False)


def is_leave_label(label: str | None) -> bool:
    if not label:
        return False
    lowered = label.lower()
    return any(term in lowered for term in LEAVE_VOCABULARY)


def entry_label(entry: TimeEntry) -> str | None:
    """First non-empty label in priority order."""
    for name in LABEL_FIELDS:
        value = getattr(entry, name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def classify(entry: TimeEntry) -> LeaveClassification:
    """Tag an entry as leave or worked time.

    Only the first non-empty label is tested, so an entry typed "Work"
    with a category mentioning leave is still worked time.
    """
    label = entry_label(entry)
    if is_leave_label(label):
        return LeaveClassification(is_leave=True, leave_label=label)
    return NOT_LEAVE


def leave_minutes(entry: TimeEntry) -> int:
    """Explicit duration wins over the start/end span for leave."""
    minutes = explicit_minutes(entry.duration)
    if minutes > 0:
        return minutes
    return span_minutes(entry.start, entry.end)


def leave_line(entry: TimeEntry, classification: LeaveClassification) -> PayLine | None:
    """Single untiered line for a leave entry, or None when it has no time."""
    minutes = leave_minutes(entry)
    if minutes <= 0:
        return None
    return PayLine(
        category=classification.leave_label or "leave",
        multiplier=Decimal("1"),
        minutes=minutes,
        is_leave=True,
    )
