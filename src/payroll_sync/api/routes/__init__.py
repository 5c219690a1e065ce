"""API routes."""

from payroll_sync.api.routes.health import router as health_router
from payroll_sync.api.routes.pay_lines import router as pay_lines_router
from payroll_sync.api.routes.sync import router as sync_router

__all__ = ["health_router", "pay_lines_router", "sync_router"]
