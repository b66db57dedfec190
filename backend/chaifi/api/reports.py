"""
Report Download API Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, status

from chaifi.dependencies import get_storage
from chaifi.schemas.summary import PeriodReport, SummaryPeriod
from chaifi.services.report_service import get_period_report
from chaifi.services.summary_service import period_key
from chaifi.storage.base import Storage

router = APIRouter(tags=["reports"])

_PERIODS = {
    "daily": SummaryPeriod.DAY,
    "weekly": SummaryPeriod.WEEK,
    "monthly": SummaryPeriod.MONTH,
}


@router.get("/{tier}/{key}", response_model=PeriodReport)
async def download_report(
    tier: str,
    key: str,
    storage: Storage = Depends(get_storage),
):
    """
    Summary plus every transaction in the period, for invoice and report downloads
    """
    period = _PERIODS.get(tier)
    if period is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown report type {tier!r}",
        )
    normalised = period_key(period, key)
    report = await get_period_report(storage, period, normalised)
    if report is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No {tier} summary for {normalised}",
        )
    return report
