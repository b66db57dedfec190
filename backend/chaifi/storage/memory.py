"""
In-memory storage backend.
Keyed dicts that live as long as the process; reseeded on construction.
"""
import logging
from typing import Dict, List, Optional

from chaifi.exceptions import DuplicateSummaryError, StorageError
from chaifi.schemas.menu import MenuItem
from chaifi.schemas.summary import DailySummary, WeeklySummary, MonthlySummary
from chaifi.schemas.transaction import Transaction
from chaifi.storage.base import Storage
from chaifi.storage.seed import build_default_menu
from chaifi.utils.periods import month_bounds, utcnow, week_end

logger = logging.getLogger(__name__)


class MemoryStorage(Storage):
    """Dict-backed storage; summaries keyed by their period key"""

    name = "memory"

    def __init__(self, seed_menu: bool = True):
        super().__init__()
        self._menu_items: Dict[str, MenuItem] = {}
        self._transactions: Dict[str, Transaction] = {}
        self._daily: Dict[str, DailySummary] = {}
        self._weekly: Dict[str, WeeklySummary] = {}
        self._monthly: Dict[str, MonthlySummary] = {}

        if seed_menu:
            for item in build_default_menu():
                self._menu_items[item.id] = item
            logger.debug("Seeded %d default menu items", len(self._menu_items))

    # Menu

    async def get_menu_items(self) -> List[MenuItem]:
        return [item.model_copy() for item in self._menu_items.values()]

    async def get_menu_item(self, item_id: str) -> Optional[MenuItem]:
        item = self._menu_items.get(item_id)
        return item.model_copy() if item else None

    # Transactions

    async def create_transaction(self, transaction: Transaction) -> Transaction:
        if transaction.id in self._transactions:
            raise StorageError(f"Transaction {transaction.id} already exists")
        self._transactions[transaction.id] = transaction
        return transaction

    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self._transactions.get(transaction_id)

    async def get_transactions(self, limit: Optional[int] = None) -> List[Transaction]:
        result = _newest_first(self._transactions.values())
        return result[:limit] if limit else result

    async def get_transactions_by_date(self, date: str) -> List[Transaction]:
        return _newest_first(t for t in self._transactions.values() if t.date == date)

    async def get_transactions_by_date_range(self, start_date: str, end_date: str) -> List[Transaction]:
        return _newest_first(
            t for t in self._transactions.values() if start_date <= t.date <= end_date
        )

    # Daily summaries

    async def get_daily_summary(self, date: str) -> Optional[DailySummary]:
        return _copy(self._daily.get(date))

    async def get_daily_summaries(self, limit: Optional[int] = None) -> List[DailySummary]:
        return _latest(self._daily, limit)

    async def create_daily_summary(self, summary: DailySummary) -> DailySummary:
        return _insert(self._daily, "daily", summary.date, summary)

    async def update_daily_summary(self, summary: DailySummary) -> DailySummary:
        return _replace(self._daily, "daily", summary.date, summary)

    async def delete_daily_summary(self, date: str) -> bool:
        return self._daily.pop(date, None) is not None

    # Weekly summaries

    async def get_weekly_summary(self, week_start: str) -> Optional[WeeklySummary]:
        return _copy(self._weekly.get(week_start))

    async def get_weekly_summaries(self, limit: Optional[int] = None) -> List[WeeklySummary]:
        return _latest(self._weekly, limit)

    async def create_weekly_summary(self, summary: WeeklySummary) -> WeeklySummary:
        return _insert(self._weekly, "weekly", summary.week_start, summary)

    async def update_weekly_summary(self, summary: WeeklySummary) -> WeeklySummary:
        return _replace(self._weekly, "weekly", summary.week_start, summary)

    async def delete_weekly_summary(self, week_start: str) -> bool:
        return self._weekly.pop(week_start, None) is not None

    # Monthly summaries

    async def get_monthly_summary(self, month: str) -> Optional[MonthlySummary]:
        return _copy(self._monthly.get(month))

    async def get_monthly_summaries(self, limit: Optional[int] = None) -> List[MonthlySummary]:
        return _latest(self._monthly, limit)

    async def create_monthly_summary(self, summary: MonthlySummary) -> MonthlySummary:
        return _insert(self._monthly, "monthly", summary.month, summary)

    async def update_monthly_summary(self, summary: MonthlySummary) -> MonthlySummary:
        return _replace(self._monthly, "monthly", summary.month, summary)

    async def delete_monthly_summary(self, month: str) -> bool:
        return self._monthly.pop(month, None) is not None

    # Bulk deletion

    async def clear_data_by_day(self, date: str) -> int:
        removed = self._delete_transactions(date, date)
        self._daily.pop(date, None)
        return removed

    async def clear_data_by_week(self, week_start: str) -> int:
        end = week_end(week_start)
        removed = self._delete_transactions(week_start, end)
        for key in [d for d in self._daily if week_start <= d <= end]:
            del self._daily[key]
        self._weekly.pop(week_start, None)
        return removed

    async def clear_data_by_month(self, month: str) -> int:
        first, last = month_bounds(month)
        removed = self._delete_transactions(first, last)
        for key in [d for d in self._daily if d.startswith(month)]:
            del self._daily[key]
        for key in [w for w in self._weekly if w.startswith(month)]:
            del self._weekly[key]
        self._monthly.pop(month, None)
        return removed

    def _delete_transactions(self, start_date: str, end_date: str) -> int:
        doomed = [
            tx_id for tx_id, t in self._transactions.items()
            if start_date <= t.date <= end_date
        ]
        for tx_id in doomed:
            del self._transactions[tx_id]
        return len(doomed)


def _newest_first(transactions) -> List[Transaction]:
    return sorted(transactions, key=lambda t: t.created_at, reverse=True)


def _copy(summary):
    return summary.model_copy() if summary is not None else None


def _latest(table: dict, limit: Optional[int]) -> list:
    keys = sorted(table, reverse=True)
    if limit:
        keys = keys[:limit]
    return [table[k].model_copy() for k in keys]


def _insert(table: dict, tier: str, key: str, summary):
    if key in table:
        raise DuplicateSummaryError(tier, key)
    stored = summary.model_copy()
    table[key] = stored
    return stored.model_copy()


def _replace(table: dict, tier: str, key: str, summary):
    if key not in table:
        raise StorageError(f"No {tier} summary for {key}")
    stored = summary.model_copy(update={"updated_at": utcnow()})
    table[key] = stored
    return stored.model_copy()
