"""Pay line computation and idempotent payroll timesheet sync."""

__version__ = "0.1.0"
