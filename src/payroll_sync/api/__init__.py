"""HTTP API for pay line computation and payroll sync."""
