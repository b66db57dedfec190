"""
Transaction API Endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from chaifi.config import Settings, get_settings, settings as app_settings
from chaifi.dependencies import get_storage, get_summary_engine
from chaifi.exceptions import InvalidPeriodError
from chaifi.schemas.transaction import Transaction, TransactionCreate
from chaifi.services.summary_service import SummaryEngine
from chaifi.services.transaction_service import record_transaction
from chaifi.storage.base import Storage
from chaifi.utils.periods import format_date, parse_date

router = APIRouter(tags=["transactions"])

STALE_HEADER = "X-Summaries-Stale"


@router.post("", response_model=Transaction)
async def create_transaction(
    payload: TransactionCreate,
    response: Response,
    storage: Storage = Depends(get_storage),
    engine: SummaryEngine = Depends(get_summary_engine),
    settings: Settings = Depends(get_settings),
):
    """
    Record a completed sale and fold it into the daily, weekly and monthly summaries
    """
    transaction, summaries_updated = await record_transaction(storage, engine, payload, settings)
    if not summaries_updated:
        response.headers[STALE_HEADER] = "true"
    return transaction


@router.get("", response_model=List[Transaction])
async def list_transactions(
    limit: Optional[int] = Query(None, ge=1, le=app_settings.MAX_PAGE_SIZE),
    storage: Storage = Depends(get_storage),
):
    """Most recent transactions first"""
    return await storage.get_transactions(limit)


@router.get("/date/{date}", response_model=List[Transaction])
async def list_transactions_for_date(
    date: str,
    storage: Storage = Depends(get_storage),
):
    try:
        day = format_date(parse_date(date))
    except ValueError as e:
        raise InvalidPeriodError(str(e))
    return await storage.get_transactions_by_date(day)


@router.get("/{transaction_id}", response_model=Transaction)
async def get_transaction(
    transaction_id: str,
    storage: Storage = Depends(get_storage),
):
    transaction = await storage.get_transaction(transaction_id)
    if not transaction:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Transaction not found",
        )
    return transaction
