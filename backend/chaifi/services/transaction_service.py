"""
Transaction recording: build the persisted sale from a validated payload,
store it, then fold it into the summaries.
"""
import logging
import uuid
from datetime import datetime
from typing import Optional, Tuple

from chaifi.config import Settings
from chaifi.exceptions import StorageError, TransactionValidationError
from chaifi.schemas.transaction import Transaction, TransactionCreate
from chaifi.services.summary_service import SummaryEngine
from chaifi.storage.base import Storage
from chaifi.utils.amounts import format_amount, parse_amount
from chaifi.utils.periods import day_name, utcnow

logger = logging.getLogger(__name__)


def expected_total(payload: TransactionCreate) -> float:
    """Σ(unitPrice × quantity) over the cart plus every extra charge."""
    items_total = sum(item.unit_price * item.quantity for item in payload.items)
    extras_total = sum(extra.amount for extra in payload.extras or [])
    return items_total + extras_total


def check_total_consistency(payload: TransactionCreate, tolerance: float) -> None:
    expected = expected_total(payload)
    actual = parse_amount(payload.total_amount)
    if abs(expected - actual) > tolerance:
        raise TransactionValidationError(
            f"totalAmount {payload.total_amount} does not match items and extras ({format_amount(expected)})",
            field="totalAmount",
        )


def build_transaction(
    payload: TransactionCreate,
    settings: Settings,
    now: Optional[datetime] = None,
) -> Transaction:
    """
    Assign id and createdAt and fill defaults.

    totalAmount is trusted as sent by the till unless
    ENFORCE_TOTAL_CONSISTENCY is switched on.
    """
    if settings.ENFORCE_TOTAL_CONSISTENCY:
        check_total_consistency(payload, settings.TOTAL_TOLERANCE)

    created_at = now or utcnow()
    biller = (payload.biller_name or "").strip() or settings.DEFAULT_BILLER_NAME

    return Transaction(
        id=str(uuid.uuid4()),
        items=payload.items,
        total_amount=payload.total_amount,
        payment_method=payload.payment_method,
        biller_name=biller,
        split_payment=payload.split_payment,
        creditor=payload.creditor,
        extras=payload.extras or None,
        date=payload.date,
        day_name=payload.day_name or day_name(payload.date),
        time=payload.time or created_at.strftime("%I:%M %p").lstrip("0"),
        created_at=created_at,
    )


async def record_transaction(
    storage: Storage,
    engine: SummaryEngine,
    payload: TransactionCreate,
    settings: Settings,
) -> Tuple[Transaction, bool]:
    """
    Persist a sale and update its summaries.

    Returns:
        Tuple of (transaction, summaries_updated). A False flag means the
        sale IS saved but the summaries missed it; a recalculation of the
        affected periods repairs them.
    """
    transaction = build_transaction(payload, settings)
    saved = await storage.create_transaction(transaction)
    logger.info(
        "Recorded transaction %s: %s %s on %s",
        saved.id, saved.total_amount, saved.payment_method.value, saved.date,
    )

    try:
        await engine.apply_transaction(saved)
    except StorageError as e:
        logger.warning(
            "Transaction %s saved but summaries for %s are stale: %s",
            saved.id, saved.date, e,
        )
        return saved, False

    return saved, True
