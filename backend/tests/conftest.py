"""
Shared fixtures: both storage backends, a summary engine on top of them,
a sale factory and an API client running the real lifespan.
"""
import asyncio

import pytest
from fastapi.testclient import TestClient

from chaifi.config import Settings
from chaifi.schemas.transaction import TransactionCreate
from chaifi.services.summary_service import SummaryEngine
from chaifi.services.transaction_service import record_transaction
from chaifi.storage import DatabaseStorage, MemoryStorage


@pytest.fixture
def settings():
    return Settings(STORAGE_BACKEND="memory", DATABASE_URL=None)


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def db_storage(tmp_path):
    storage = DatabaseStorage(f"sqlite:///{tmp_path / 'pos.db'}")
    asyncio.run(storage.connect())
    yield storage
    asyncio.run(storage.close())


@pytest.fixture(params=["memory", "database"])
def storage(request):
    """Runs the test once per backend"""
    fixture_names = {"memory": "memory_storage", "database": "db_storage"}
    return request.getfixturevalue(fixture_names[request.param])


@pytest.fixture
def engine(storage):
    return SummaryEngine(storage)


@pytest.fixture
def make_sale():
    """Build a TransactionCreate payload with sensible defaults"""

    def _make(date="2024-01-03", total="100.00", method="cash", items=None, **extra):
        data = {
            "items": items or [{"id": "1", "name": "Masala Chai", "unitPrice": total, "quantity": 1}],
            "totalAmount": total,
            "paymentMethod": method,
            "date": date,
        }
        data.update(extra)
        return TransactionCreate.model_validate(data)

    return _make


@pytest.fixture
def record(storage, engine, settings):
    """Coroutine factory: persist a payload through the real recording path"""

    async def _record(payload):
        transaction, updated = await record_transaction(storage, engine, payload, settings)
        assert updated
        return transaction

    return _record


@pytest.fixture
def client():
    from chaifi.main import app

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
