"""Shared test fixtures: an in-memory accounting store and an API client over it."""

import pytest
from httpx import ASGITransport, AsyncClient

from src.acc_ledger.api.router import get_accounting_service
from src.acc_ledger.application.service import AccountingService
from src.main import app
from tests.fakes import FakeAccountingDao


@pytest.fixture
def store() -> FakeAccountingDao:
    return FakeAccountingDao()


@pytest.fixture
def service(store: FakeAccountingDao) -> AccountingService:
    return AccountingService(lambda: store)


@pytest.fixture
async def client(service: AccountingService) -> AsyncClient:
    """Async HTTP client with the ledger service bound to the in-memory store."""
    app.dependency_overrides[get_accounting_service] = lambda: service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
