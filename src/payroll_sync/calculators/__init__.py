"""Pay line calculation: tiering, leave detection and costing."""

from payroll_sync.calculators.leave_classifier import LeaveClassification, classify
from payroll_sync.calculators.line_builder import LineBuilder
from payroll_sync.calculators.pipeline import PayLinePipeline, PayRunSummary, RuleBook
from payroll_sync.calculators.tier_engine import compute
from payroll_sync.calculators.types import (
    EmployeeProfile,
    LunchRule,
    PayLine,
    PayLineBatch,
    Ruleset,
    RulesetValidationError,
    Tier,
    TimeEntry,
)

__all__ = [
    "EmployeeProfile",
    "LeaveClassification",
    "LineBuilder",
    "LunchRule",
    "PayLine",
    "PayLineBatch",
    "PayLinePipeline",
    "PayRunSummary",
    "RuleBook",
    "Ruleset",
    "RulesetValidationError",
    "Tier",
    "TimeEntry",
    "classify",
    "compute",
]
