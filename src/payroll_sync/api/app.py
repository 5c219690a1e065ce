"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from payroll_sync import __version__
from payroll_sync.api.routes import health_router, pay_lines_router, sync_router
from payroll_sync.calculators.types import RulesetValidationError
from payroll_sync.database import dispose_db, init_db
from payroll_sync.export.aggregator import PeriodError
from payroll_sync.providers.errors import CatalogUnavailableError, PayrollApiError
from payroll_sync.sync.locks import AdvisoryLock, KeyedLock

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    factory = init_db()
    if factory is not None:
        app.state.sync_lock = AdvisoryLock(factory)
    yield
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Payroll Sync API",
        description="Tiered overtime pay lines and idempotent timesheet sync",
        version=__version__,
        lifespan=lifespan,
    )
    # Replaced by an advisory lock at startup when a database is configured
    app.state.sync_lock = KeyedLock()

    @app.exception_handler(RulesetValidationError)
    async def ruleset_error_handler(request: Request, exc: RulesetValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": exc.errors, "code": "INVALID_RULESET"},
        )

    @app.exception_handler(PeriodError)
    async def period_error_handler(request: Request, exc: PeriodError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc), "code": "INVALID_PERIOD"},
        )

    @app.exception_handler(CatalogUnavailableError)
    async def catalog_error_handler(request: Request, exc: CatalogUnavailableError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": exc.detail, "code": "CATALOG_UNAVAILABLE"},
        )

    @app.exception_handler(PayrollApiError)
    async def payroll_error_handler(request: Request, exc: PayrollApiError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": exc.message, "code": f"PAYROLL_{exc.kind.value.upper()}"},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    app.include_router(health_router)
    app.include_router(pay_lines_router, prefix="/api/v1")
    app.include_router(sync_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
