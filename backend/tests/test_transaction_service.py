"""Transaction payload validation and recording tests"""
import asyncio
from datetime import datetime

import pytest
from pydantic import ValidationError

from chaifi.config import Settings
from chaifi.exceptions import StorageError, TransactionValidationError
from chaifi.schemas.transaction import PaymentMethod, TransactionCreate
from chaifi.services.transaction_service import (
    build_transaction,
    check_total_consistency,
    expected_total,
    record_transaction,
)


def _payload(**overrides):
    data = {
        "items": [
            {"id": 1, "name": "Masala Chai", "price": "25", "quantity": 2},
            {"id": "5", "name": "Samosa", "unitPrice": 20, "quantity": 1},
        ],
        "totalAmount": "75",
        "paymentMethod": "cash",
        "date": "2024-01-03",
    }
    data.update(overrides)
    return TransactionCreate.model_validate(data)


def test_payload_normalises_amounts_and_ids():
    payload = _payload()
    assert payload.total_amount == "75.00"
    assert payload.items[0].id == "1"
    assert payload.items[0].unit_price == 25.0
    assert payload.payment_method == PaymentMethod.CASH


@pytest.mark.parametrize("overrides", [
    {"totalAmount": "abc"},
    {"totalAmount": "-5"},
    {"paymentMethod": "card"},
    {"date": "03-01-2024"},
    {"items": [{"id": "1", "name": "Chai", "unitPrice": "x", "quantity": 1}]},
    {"items": [{"id": "1", "name": "Chai", "unitPrice": 10, "quantity": 0}]},
    {"splitPayment": {"gpayAmount": 10, "cashAmount": 5}},
    {"paymentMethod": "creditor", "creditor": {"name": "   "}},
    {"creditor": {"name": "Ravi"}},
])
def test_invalid_payloads_are_rejected(overrides):
    with pytest.raises(ValidationError):
        _payload(**overrides)


def test_build_transaction_fills_defaults(settings):
    now = datetime(2024, 1, 3, 9, 5)
    tx = build_transaction(_payload(billerName="  "), settings, now=now)
    assert tx.biller_name == "Sriram"
    assert tx.day_name == "Wednesday"
    assert tx.time == "9:05 AM"
    assert tx.created_at == now
    assert len(tx.id) == 36


def test_build_transaction_keeps_client_fields(settings):
    tx = build_transaction(_payload(billerName="Anu", dayName="Wed", time="10:30 AM"), settings)
    assert tx.biller_name == "Anu"
    assert tx.day_name == "Wed"
    assert tx.time == "10:30 AM"


def test_transaction_ids_are_unique(settings):
    ids = {build_transaction(_payload(), settings).id for _ in range(50)}
    assert len(ids) == 50


def test_expected_total_includes_extras():
    payload = _payload(totalAmount="85", extras=[{"name": "Parcel", "amount": "10"}])
    assert expected_total(payload) == 85.0
    check_total_consistency(payload, 0.01)


def test_total_mismatch_is_trusted_by_default(settings):
    tx = build_transaction(_payload(totalAmount="999"), settings)
    assert tx.total_amount == "999.00"


def test_total_mismatch_rejected_when_enforced():
    strict = Settings(STORAGE_BACKEND="memory", ENFORCE_TOTAL_CONSISTENCY=True)
    with pytest.raises(TransactionValidationError) as exc_info:
        build_transaction(_payload(totalAmount="999"), strict)
    assert exc_info.value.field == "totalAmount"


def test_record_transaction_persists_and_summarises(memory_storage, settings):
    from chaifi.services.summary_service import SummaryEngine

    engine = SummaryEngine(memory_storage)

    async def scenario():
        tx, updated = await record_transaction(memory_storage, engine, _payload(), settings)
        return tx, updated, await memory_storage.get_transaction(tx.id), await memory_storage.get_daily_summary("2024-01-03")

    tx, updated, stored, daily = asyncio.run(scenario())
    assert updated is True
    assert stored == tx
    assert daily.total_amount == "75.00"


def test_record_transaction_reports_stale_summaries(memory_storage, settings, caplog):
    from chaifi.services.summary_service import SummaryEngine

    class BrokenEngine(SummaryEngine):
        async def apply_transaction(self, transaction):
            raise StorageError("summary table locked")

    engine = BrokenEngine(memory_storage)

    async def scenario():
        tx, updated = await record_transaction(memory_storage, engine, _payload(), settings)
        return tx, updated, await memory_storage.get_transaction(tx.id)

    with caplog.at_level("WARNING", logger="chaifi"):
        tx, updated, stored = asyncio.run(scenario())

    assert updated is False
    assert stored is not None
    assert "summaries for 2024-01-03 are stale" in caplog.text
