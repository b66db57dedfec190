"""
Creditor API Endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from chaifi.dependencies import get_storage
from chaifi.exceptions import InvalidPeriodError
from chaifi.schemas.creditor import CreditorReport
from chaifi.services.report_service import get_creditor_report
from chaifi.storage.base import Storage
from chaifi.utils.periods import format_date, month_bounds, parse_date, utcnow

router = APIRouter(tags=["creditors"])


def _resolve_range(date: Optional[str], start: Optional[str], end: Optional[str]):
    """A single day, an explicit range, or the current month when nothing is given"""
    if date:
        day = format_date(parse_date(date))
        return day, day
    if start or end:
        first = format_date(parse_date(start)) if start else "0001-01-01"
        last = format_date(parse_date(end)) if end else "9999-12-31"
        if first > last:
            raise ValueError(f"start {first} is after end {last}")
        return first, last
    return month_bounds(format_date(utcnow()))


@router.get("", response_model=CreditorReport)
async def creditor_balances(
    date: Optional[str] = Query(None),
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    storage: Storage = Depends(get_storage),
):
    """Credit sales grouped by creditor with outstanding balances"""
    try:
        first, last = _resolve_range(date, start, end)
    except ValueError as e:
        raise InvalidPeriodError(str(e))
    return await get_creditor_report(storage, first, last)
