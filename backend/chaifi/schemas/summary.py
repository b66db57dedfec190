"""
Summary Schemas - running totals per day, week and month
"""
from typing import List, Optional, Union
from datetime import datetime
import enum
import uuid

from pydantic import Field

from chaifi.schemas import CamelModel
from chaifi.schemas.transaction import Transaction
from chaifi.utils.periods import utcnow


class SummaryPeriod(str, enum.Enum):
    """Aggregation granularity"""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


def _new_id() -> str:
    return str(uuid.uuid4())


class SummaryTotals(CamelModel):
    """The four aggregate fields shared by every tier"""
    total_amount: str = "0.00"
    gpay_amount: str = "0.00"
    cash_amount: str = "0.00"
    order_count: int = 0


class DailySummary(SummaryTotals):
    id: str = Field(default_factory=_new_id)
    date: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class WeeklySummary(SummaryTotals):
    id: str = Field(default_factory=_new_id)
    week_start: str
    week_end: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class MonthlySummary(SummaryTotals):
    id: str = Field(default_factory=_new_id)
    month: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


AnySummary = Union[DailySummary, WeeklySummary, MonthlySummary]


class ClearDataResponse(CamelModel):
    message: str


class RecalculateResponse(CamelModel):
    """Outcome of rebuilding one summary row"""
    period: SummaryPeriod
    key: str
    summary: Optional[AnySummary] = None


class RebuildResponse(CamelModel):
    """Row counts written by a full rebuild"""
    daily: int
    weekly: int
    monthly: int


class PeriodReport(CamelModel):
    """Summary plus its transactions, used for invoice/report downloads"""
    summary: AnySummary
    transactions: List[Transaction]
