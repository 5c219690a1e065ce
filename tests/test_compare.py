"""Tests for timesheet normalization and comparison."""

from datetime import date
from decimal import Decimal

from payroll_sync.export.types import Timesheet
from payroll_sync.sync.compare import describe_difference, normalize_timesheet, timesheets_equal
from tests.conftest import make_timesheet


class TestTimesheetsEqual:
    """Normalization makes equality order and precision independent."""

    def test_line_order_does_not_matter(self):
        a = make_timesheet("emp-1", {"ord": ["8", "8"], "ot": ["1", "0"]})
        b = make_timesheet("emp-1", {"ot": ["1", "0"], "ord": ["8", "8"]})

        assert timesheets_equal(a, b)
        assert normalize_timesheet(a) == normalize_timesheet(b)

    def test_units_rounded_to_two_places(self):
        a = make_timesheet("emp-1", {"ord": ["2.004"]})
        b = make_timesheet("emp-1", {"ord": ["2.0"]})
        c = make_timesheet("emp-1", {"ord": ["2.01"]})

        assert timesheets_equal(a, b)
        assert not timesheets_equal(b, c)

    def test_ids_trimmed_and_empty_lines_dropped(self):
        desired = make_timesheet("emp-1", {"ord": ["8"]})
        existing = Timesheet(
            employee_id=" emp-1 ",
            start_date=desired.start_date,
            end_date=desired.end_date,
            lines={" ord ": (Decimal("8.00"),), "": (Decimal("1"),), "ot": ()},
            timesheet_id="TS-1",
        )

        assert timesheets_equal(desired, existing)

    def test_different_period(self):
        a = make_timesheet("emp-1", {"ord": ["8"]})
        b = Timesheet("emp-1", a.start_date, date(2024, 1, 14), a.lines)

        assert not timesheets_equal(a, b)
        assert describe_difference(a, b) == "employee or period differs"

    def test_describe_difference(self):
        a = make_timesheet("emp-1", {"ord": ["8"], "ot": ["1"]})
        b = make_timesheet("emp-1", {"ord": ["8"]})
        c = make_timesheet("emp-1", {"ord": ["7"], "ot": ["1"]})

        assert describe_difference(a, b) == "line count differs (2 desired, 1 existing)"
        assert describe_difference(a, c) == "units differ for earnings rate ord"
        assert describe_difference(a, a) == "no difference"

    def test_split_rate_never_matches(self):
        desired = make_timesheet("emp-1", {"ord": ["8"]})
        existing = Timesheet(
            employee_id="emp-1",
            start_date=desired.start_date,
            end_date=desired.end_date,
            lines={"ord": (Decimal("8"),)},
            split_rates=("ord",),
        )

        assert normalize_timesheet(desired) == normalize_timesheet(existing)
        assert not timesheets_equal(desired, existing)
        assert describe_difference(desired, existing) == "earnings rate ord is split across several lines"
