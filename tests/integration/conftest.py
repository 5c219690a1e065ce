"""API test fixtures: the real app wired to the stub payroll provider."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from payroll_sync.api.app import create_app
from payroll_sync.api.dependencies import AccessToken, TenantId, get_payroll_provider
from payroll_sync.providers.stub import StubPayrollProvider

AUTH_HEADERS = {
    "Authorization": "Bearer test-token",
    "Xero-Tenant-Id": "tenant-1",
}


@pytest.fixture
def app(stub_provider: StubPayrollProvider) -> FastAPI:
    """App whose provider dependency yields the shared stub."""
    app = create_app()

    async def stub_dependency(access_token: AccessToken, tenant_id: TenantId) -> StubPayrollProvider:
        return stub_provider

    app.dependency_overrides[get_payroll_provider] = stub_dependency
    return app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
