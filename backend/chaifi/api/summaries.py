"""
Summary API Endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from chaifi.config import settings
from chaifi.dependencies import get_storage, get_summary_engine
from chaifi.exceptions import InvalidPeriodError
from chaifi.schemas.summary import (
    DailySummary,
    MonthlySummary,
    RebuildResponse,
    RecalculateResponse,
    SummaryPeriod,
    WeeklySummary,
)
from chaifi.services.summary_service import SummaryEngine, period_key
from chaifi.storage.base import Storage

router = APIRouter(tags=["summaries"])


def _limit_query():
    return Query(settings.DEFAULT_SUMMARY_LIMIT, ge=1, le=settings.MAX_PAGE_SIZE)


def _not_found(tier: str, key: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"No {tier} summary for {key}",
    )


@router.get("/daily", response_model=List[DailySummary])
async def list_daily_summaries(
    limit: int = _limit_query(),
    storage: Storage = Depends(get_storage),
):
    """Daily summaries, most recent date first"""
    return await storage.get_daily_summaries(limit)


@router.get("/weekly", response_model=List[WeeklySummary])
async def list_weekly_summaries(
    limit: int = _limit_query(),
    storage: Storage = Depends(get_storage),
):
    return await storage.get_weekly_summaries(limit)


@router.get("/monthly", response_model=List[MonthlySummary])
async def list_monthly_summaries(
    limit: int = _limit_query(),
    storage: Storage = Depends(get_storage),
):
    return await storage.get_monthly_summaries(limit)


@router.get("/daily/{date}", response_model=DailySummary)
async def get_daily_summary(date: str, storage: Storage = Depends(get_storage)):
    key = period_key(SummaryPeriod.DAY, date)
    summary = await storage.get_daily_summary(key)
    if summary is None:
        raise _not_found("daily", key)
    return summary


@router.get("/weekly/{week_start}", response_model=WeeklySummary)
async def get_weekly_summary(week_start: str, storage: Storage = Depends(get_storage)):
    """Any date inside the week is accepted and mapped to its Monday"""
    key = period_key(SummaryPeriod.WEEK, week_start)
    summary = await storage.get_weekly_summary(key)
    if summary is None:
        raise _not_found("weekly", key)
    return summary


@router.get("/monthly/{month}", response_model=MonthlySummary)
async def get_monthly_summary(month: str, storage: Storage = Depends(get_storage)):
    key = period_key(SummaryPeriod.MONTH, month)
    summary = await storage.get_monthly_summary(key)
    if summary is None:
        raise _not_found("monthly", key)
    return summary


@router.post("/recalculate", response_model=RecalculateResponse)
async def recalculate_summary(
    period: str = Query(..., description="day, week or month"),
    date: Optional[str] = Query(None, description="Any date inside the period (YYYY-MM allowed for months)"),
    engine: SummaryEngine = Depends(get_summary_engine),
):
    """
    Rebuild one summary row from the transactions it covers.

    Used to repair summaries flagged stale after a failed update.
    """
    if not date:
        raise InvalidPeriodError("date is required")
    key, summary = await engine.recalculate(period, date)
    return RecalculateResponse(period=period, key=key, summary=summary)


@router.post("/rebuild", response_model=RebuildResponse)
async def rebuild_summaries(engine: SummaryEngine = Depends(get_summary_engine)):
    """Rebuild every summary tier from the full transaction log"""
    return RebuildResponse(**await engine.rebuild_all())
