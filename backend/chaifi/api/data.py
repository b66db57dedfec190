"""
Data Management API Endpoints
"""
from fastapi import APIRouter, Depends, Query

from chaifi.dependencies import get_summary_engine
from chaifi.schemas.summary import ClearDataResponse, SummaryPeriod
from chaifi.services.summary_service import SummaryEngine, parse_period

router = APIRouter(tags=["data"])

_CLEAR_MESSAGES = {
    SummaryPeriod.DAY: "Cleared data for {key}",
    SummaryPeriod.WEEK: "Cleared weekly data starting {key}",
    SummaryPeriod.MONTH: "Cleared monthly data for {key}",
}


@router.delete("/clear", response_model=ClearDataResponse)
async def clear_data(
    period: str = Query(..., description="day, week or month"),
    date: str = Query(..., description="Any date inside the period (YYYY-MM allowed for months)"),
    engine: SummaryEngine = Depends(get_summary_engine),
):
    """
    Delete a day, week or month of transactions and their summaries.

    Summaries in other tiers that overlapped the cleared range are rebuilt
    from the transactions that remain.
    """
    tier = parse_period(period)
    key, _ = await engine.clear_period(tier, date)
    return ClearDataResponse(message=_CLEAR_MESSAGES[tier].format(key=key))
