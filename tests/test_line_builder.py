"""Tests for line costing and hashing."""

from datetime import date
from decimal import Decimal

from payroll_sync.calculators.line_builder import LineBuilder
from payroll_sync.calculators.types import PayLine


class TestLineBuilder:
    """Test line builder functionality."""

    def test_round_to_cents(self):
        """Test rounding to 2 decimal places."""
        assert LineBuilder.round_to_cents(Decimal("10.125")) == Decimal("10.13")
        assert LineBuilder.round_to_cents(Decimal("10.124")) == Decimal("10.12")
        assert LineBuilder.round_to_cents(Decimal("10.135")) == Decimal("10.14")

    def test_round_units(self):
        assert LineBuilder.round_units(Decimal("0.3333")) == Decimal("0.33")
        assert LineBuilder.round_units(
            Decimal("7.59999"), LineBuilder.LEAVE_UNIT_PRECISION
        ) == Decimal("7.6000")

    def test_compute_cost(self):
        """cost = hours * base rate * multiplier."""
        assert LineBuilder.compute_cost(90, Decimal("30"), Decimal("1.5")) == Decimal("67.50")
        assert LineBuilder.compute_cost(480, Decimal("32.50"), Decimal("1")) == Decimal("260.00")
        assert LineBuilder.compute_cost(20, Decimal("25"), Decimal("1")) == Decimal("8.33")

    def test_compute_cost_without_rate(self):
        assert LineBuilder.compute_cost(480, None, Decimal("1")) == Decimal("0.00")

    def test_enrich(self):
        line = PayLine(category="OT2.0", multiplier=Decimal("2.0"), minutes=60)

        enriched = LineBuilder.enrich(
            line,
            employee_id="emp-john",
            employee_name="John Worde",
            base_rate=Decimal("30"),
            job_code="JB-1001",
            work_date=date(2024, 1, 1),
        )

        assert enriched.cost == Decimal("60.00")
        assert enriched.employee_id == "emp-john"
        assert enriched.job_code == "JB-1001"
        assert enriched.work_date == date(2024, 1, 1)
        assert line.cost == Decimal("0")  # original untouched

    def test_enrich_without_charge(self):
        line = PayLine(category="Annual Leave", multiplier=Decimal("1"), minutes=480, is_leave=True)

        enriched = LineBuilder.enrich(
            line,
            employee_id=None,
            employee_name="John Worde",
            base_rate=Decimal("30"),
            job_code=None,
            work_date=None,
            charge=False,
        )

        assert enriched.cost == Decimal("0.00")
        assert enriched.base_rate == Decimal("30")
        assert enriched.is_leave is True

    def test_content_hash_deterministic(self):
        """Same content hashes the same regardless of key order."""
        a = LineBuilder.compute_content_hash({"b": [1, 2], "a": "x"})
        b = LineBuilder.compute_content_hash({"a": "x", "b": [1, 2]})
        c = LineBuilder.compute_content_hash({"a": "x", "b": [1, 3]})

        assert a == b
        assert a != c
        assert len(a) == 32
