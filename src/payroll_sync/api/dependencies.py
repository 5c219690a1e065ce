"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from payroll_sync.config import Settings, get_settings
from payroll_sync.providers.base import PayrollProvider
from payroll_sync.providers.xero import XeroPayrollProvider
from payroll_sync.sync.locks import KeyedLock, SyncLock


def get_app_settings() -> Settings:
    return get_settings()


async def get_access_token(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Bearer token for the payroll API; refresh happens upstream."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization: Bearer <token> header is required",
        )
    token = authorization[len("bearer "):].strip()
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Bearer token is empty",
        )
    return token


async def get_tenant_id(
    xero_tenant_id: Annotated[str | None, Header()] = None,
) -> str:
    """Extract tenant ID from header."""
    if not xero_tenant_id or not xero_tenant_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Xero-Tenant-Id header is required",
        )
    return xero_tenant_id.strip()


AppSettings = Annotated[Settings, Depends(get_app_settings)]
AccessToken = Annotated[str, Depends(get_access_token)]
TenantId = Annotated[str, Depends(get_tenant_id)]


async def get_payroll_provider(
    settings: AppSettings,
    access_token: AccessToken,
    tenant_id: TenantId,
) -> AsyncGenerator[PayrollProvider, None]:
    provider = XeroPayrollProvider.from_settings(settings, access_token, tenant_id)
    try:
        yield provider
    finally:
        await provider.aclose()


def get_sync_lock(request: Request) -> SyncLock:
    """Process-wide lock shared by every request of this app."""
    lock = getattr(request.app.state, "sync_lock", None)
    if lock is None:
        lock = KeyedLock()
        request.app.state.sync_lock = lock
    return lock


# Type aliases for cleaner dependency injection
Provider = Annotated[PayrollProvider, Depends(get_payroll_provider)]
Lock = Annotated[SyncLock, Depends(get_sync_lock)]
