"""
Storage capability interface.

Every backend must give read-after-write consistency inside one process:
a summary written by one call is what the next get_* call returns.
Creating a summary whose period key already exists raises
DuplicateSummaryError on every backend.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from chaifi.schemas.menu import MenuItem
from chaifi.schemas.summary import DailySummary, WeeklySummary, MonthlySummary
from chaifi.schemas.transaction import Transaction


class Storage(ABC):
    """Async persistence contract shared by the memory and database backends"""

    name: str = "abstract"

    def __init__(self):
        # Set when this backend was chosen because the preferred one failed
        self.fallback_reason: Optional[str] = None

    async def connect(self) -> None:
        """Open connections and prepare schema/seed data."""

    async def close(self) -> None:
        """Release connections."""

    # Menu

    @abstractmethod
    async def get_menu_items(self) -> List[MenuItem]:
        ...

    @abstractmethod
    async def get_menu_item(self, item_id: str) -> Optional[MenuItem]:
        ...

    # Transactions

    @abstractmethod
    async def create_transaction(self, transaction: Transaction) -> Transaction:
        ...

    @abstractmethod
    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        ...

    @abstractmethod
    async def get_transactions(self, limit: Optional[int] = None) -> List[Transaction]:
        """Most recently created first."""

    @abstractmethod
    async def get_transactions_by_date(self, date: str) -> List[Transaction]:
        ...

    @abstractmethod
    async def get_transactions_by_date_range(self, start_date: str, end_date: str) -> List[Transaction]:
        """Transactions with start_date <= date <= end_date (inclusive)."""

    # Daily summaries

    @abstractmethod
    async def get_daily_summary(self, date: str) -> Optional[DailySummary]:
        ...

    @abstractmethod
    async def get_daily_summaries(self, limit: Optional[int] = None) -> List[DailySummary]:
        """Most recent date first."""

    @abstractmethod
    async def create_daily_summary(self, summary: DailySummary) -> DailySummary:
        ...

    @abstractmethod
    async def update_daily_summary(self, summary: DailySummary) -> DailySummary:
        ...

    @abstractmethod
    async def delete_daily_summary(self, date: str) -> bool:
        ...

    # Weekly summaries

    @abstractmethod
    async def get_weekly_summary(self, week_start: str) -> Optional[WeeklySummary]:
        ...

    @abstractmethod
    async def get_weekly_summaries(self, limit: Optional[int] = None) -> List[WeeklySummary]:
        ...

    @abstractmethod
    async def create_weekly_summary(self, summary: WeeklySummary) -> WeeklySummary:
        ...

    @abstractmethod
    async def update_weekly_summary(self, summary: WeeklySummary) -> WeeklySummary:
        ...

    @abstractmethod
    async def delete_weekly_summary(self, week_start: str) -> bool:
        ...

    # Monthly summaries

    @abstractmethod
    async def get_monthly_summary(self, month: str) -> Optional[MonthlySummary]:
        ...

    @abstractmethod
    async def get_monthly_summaries(self, limit: Optional[int] = None) -> List[MonthlySummary]:
        ...

    @abstractmethod
    async def create_monthly_summary(self, summary: MonthlySummary) -> MonthlySummary:
        ...

    @abstractmethod
    async def update_monthly_summary(self, summary: MonthlySummary) -> MonthlySummary:
        ...

    @abstractmethod
    async def delete_monthly_summary(self, month: str) -> bool:
        ...

    # Bulk deletion. These remove rows only; dependent summaries are
    # recomputed by the summary engine afterwards.

    @abstractmethod
    async def clear_data_by_day(self, date: str) -> int:
        """Delete the date's transactions and daily summary. Returns transactions removed."""

    @abstractmethod
    async def clear_data_by_week(self, week_start: str) -> int:
        """Delete the week's transactions, its daily summaries and the weekly summary."""

    @abstractmethod
    async def clear_data_by_month(self, month: str) -> int:
        """Delete the month's transactions plus daily/weekly/monthly rows keyed inside it."""
