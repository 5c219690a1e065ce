"""Category → external earnings rate / leave type resolution.

Resolution is driven by ordered rule tables rather than inline branches
so each policy can be tested and swapped on its own.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from decimal import Decimal, InvalidOperation

from payroll_sync.calculators.leave_classifier import is_leave_label
from payroll_sync.catalog.types import CatalogEmployee, RateCatalog, RateCatalogEntry
from payroll_sync.names import normalize_name

ORDINARY_NAME = re.compile(r"ordinary|normal|base", re.IGNORECASE)

# (category pattern, catalog name pattern), first category match wins
LEAVE_RULES: tuple[tuple[re.Pattern[str], re.Pattern[str]], ...] = (
    (re.compile(r"annual", re.I), re.compile(r"annual\s*leave", re.I)),
    (re.compile(r"sick", re.I), re.compile(r"sick\s*leave", re.I)),
    (re.compile(r"personal|carer", re.I), re.compile(r"personal\s*leave|carer", re.I)),
    (re.compile(r"long\s*service|\blsl\b", re.I), re.compile(r"long\s*service", re.I)),
    (re.compile(r"holiday", re.I), re.compile(r"public\s*holiday", re.I)),
)
GENERIC_LEAVE_NAME = re.compile(r"leave", re.I)

DOUBLE_TIME_NAME = re.compile(r"double|\b2(\.0)?\b|x\s*2\b|\b2\s*x", re.I)
TIME_AND_HALF_NAME = re.compile(r"time\s*and\s*a\s*half|1\.5|x\s*1\.5|1\.5\s*x", re.I)
GENERIC_OVERTIME_NAME = re.compile(r"overtime|\bot\b", re.I)

OVERTIME_CATEGORY = re.compile(
    r"overtime|\bot\b|\bot\s*\d|double|time\s*and\s*a\s*half|\d\s*x\b|\bx\s*\d", re.I
)
MULTIPLIER_TOKEN = re.compile(r"\d+(?:\.\d+)?")

DOUBLE_TIME_FLOOR = Decimal("1.9")
TIME_AND_HALF_FLOOR = Decimal("1.4")


def first_named(
    entries: Iterable[RateCatalogEntry], pattern: re.Pattern[str]
) -> RateCatalogEntry | None:
    for entry in entries:
        if pattern.search(entry.name):
            return entry
    return None


def parse_multiplier(category: str) -> Decimal | None:
    """Numeric multiplier carried by a category label ("OT1.5" → 1.5)."""
    lowered = category.lower()
    match = MULTIPLIER_TOKEN.search(lowered)
    if match is not None:
        try:
            return Decimal(match.group())
        except InvalidOperation:
            return None
    if "double" in lowered:
        return Decimal("2")
    if re.search(r"time\s*and\s*a\s*half", lowered):
        return Decimal("1.5")
    return None


def is_ordinary_category(category: str) -> bool:
    lowered = category.strip().lower()
    return lowered == "ord" or "ordinary" in lowered


class RateResolver:
    """Maps pay line categories onto a catalog snapshot.

    Resolution order for earnings rates:
    1. Explicit category mapping (case-insensitive)
    2. Ordinary: the employee's own default rate, else an ordinary-named rate
    3. Leave: leave-specific name patterns, else any rate named "leave"
    4. Overtime: double-time or time-and-a-half by multiplier, else generic overtime
    5. Exact catalog name match (e.g. "Lunch")
    """

    def __init__(self, catalog: RateCatalog, mapping: Mapping[str, str] | None = None):
        self.catalog = catalog
        self.mapping = {k.strip().lower(): v for k, v in (mapping or {}).items() if v}

    def resolve(
        self,
        category: str,
        employee: CatalogEmployee | None = None,
        multiplier: Decimal | None = None,
    ) -> str | None:
        """Earnings rate id for ``category``, or None when unresolvable."""
        if not category:
            return None
        mapped = self.mapping.get(category.strip().lower())
        if mapped:
            return mapped

        rates = self.catalog.earnings_rates

        if is_ordinary_category(category):
            if employee is not None and employee.ordinary_earnings_rate_id:
                return employee.ordinary_earnings_rate_id
            return _id(first_named(rates, ORDINARY_NAME))

        if is_leave_label(category):
            return _id(self._match_leave(category, rates, allow_generic=True))

        if OVERTIME_CATEGORY.search(category) or (multiplier is not None and multiplier > 1):
            return _id(self._match_overtime(category, multiplier))

        return _id(self._match_exact(category, rates))

    def resolve_leave_type(self, label: str) -> str | None:
        """Leave type id for a leave label: exact name first, then leave patterns."""
        if not label:
            return None
        mapped = self.mapping.get(label.strip().lower())
        if mapped:
            return mapped
        leave_types = self.catalog.leave_types
        exact = self._match_exact(label, leave_types)
        if exact is not None:
            return exact.id
        return _id(self._match_leave(label, leave_types, allow_generic=False))

    def _match_leave(
        self,
        category: str,
        entries: tuple[RateCatalogEntry, ...],
        allow_generic: bool,
    ) -> RateCatalogEntry | None:
        for category_pattern, name_pattern in LEAVE_RULES:
            if category_pattern.search(category):
                found = first_named(entries, name_pattern)
                if found is not None:
                    return found
                break
        if allow_generic:
            return first_named(entries, GENERIC_LEAVE_NAME)
        return None

    def _match_overtime(self, category: str, multiplier: Decimal | None) -> RateCatalogEntry | None:
        rates = self.catalog.earnings_rates
        value = parse_multiplier(category)
        if value is None:
            value = multiplier

        specific = None
        if value is not None and value >= DOUBLE_TIME_FLOOR:
            specific = first_named(rates, DOUBLE_TIME_NAME)
        elif value is not None and value >= TIME_AND_HALF_FLOOR:
            specific = first_named(rates, TIME_AND_HALF_NAME)
        return specific or first_named(rates, GENERIC_OVERTIME_NAME)

    @staticmethod
    def _match_exact(
        label: str, entries: tuple[RateCatalogEntry, ...]
    ) -> RateCatalogEntry | None:
        key = normalize_name(label)
        for entry in entries:
            if normalize_name(entry.name) == key:
                return entry
        return None


def _id(entry: RateCatalogEntry | None) -> str | None:
    return entry.id if entry is not None else None
