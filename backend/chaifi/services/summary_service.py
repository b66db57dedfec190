"""
Summary engine: keeps the daily, weekly and monthly rows in step with the
transaction log.

Each tier is maintained independently from transactions. A new sale is added
into the three rows for its date; deletions never decrement, they rebuild the
affected rows from whatever transactions remain. Every read-modify-write of a
row runs under a per-row asyncio.Lock so concurrent sales on the same period
cannot lose an update.
"""
import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Dict, Iterable, List, Optional, Tuple

from chaifi.exceptions import InvalidPeriodError
from chaifi.schemas.summary import (
    AnySummary,
    DailySummary,
    MonthlySummary,
    SummaryPeriod,
    SummaryTotals,
    WeeklySummary,
)
from chaifi.schemas.transaction import PaymentMethod, Transaction
from chaifi.storage.base import Storage
from chaifi.utils.amounts import add_amounts, format_amount, parse_amount
from chaifi.utils.periods import (
    format_date,
    month_bounds,
    month_key,
    months_overlapping,
    parse_date,
    week_bounds,
    week_end,
    week_start,
    week_starts_overlapping,
)

logger = logging.getLogger(__name__)

_TOTAL_FIELDS = ("total_amount", "gpay_amount", "cash_amount", "order_count")
_TIER_NAMES = {
    SummaryPeriod.DAY: "daily",
    SummaryPeriod.WEEK: "weekly",
    SummaryPeriod.MONTH: "monthly",
}


def payment_breakdown(transaction: Transaction) -> Tuple[float, float]:
    """
    (gpay, cash) contributed by one transaction.

    Split sales use the recorded portions regardless of totalAmount.
    Creditor sales add to the total only; what they owe is reported by the
    creditor read-model, not by these tiers.
    """
    method = transaction.payment_method
    if method == PaymentMethod.GPAY:
        return parse_amount(transaction.total_amount), 0.0
    if method == PaymentMethod.CASH:
        return 0.0, parse_amount(transaction.total_amount)
    if method == PaymentMethod.SPLIT:
        split = transaction.split_payment
        if split is None:
            return 0.0, 0.0
        return parse_amount(split.gpay_amount), parse_amount(split.cash_amount)
    return 0.0, 0.0


def aggregate(transactions: Iterable[Transaction]) -> SummaryTotals:
    """Totals for a set of transactions, built from scratch."""
    total = gpay = cash = 0.0
    count = 0
    for t in transactions:
        total += parse_amount(t.total_amount)
        g, c = payment_breakdown(t)
        gpay += g
        cash += c
        count += 1
    return SummaryTotals(
        total_amount=format_amount(total),
        gpay_amount=format_amount(gpay),
        cash_amount=format_amount(cash),
        order_count=count,
    )


def parse_period(period) -> SummaryPeriod:
    try:
        return SummaryPeriod(period)
    except ValueError:
        raise InvalidPeriodError(f"Invalid period {period!r}, expected day, week or month")


def period_key(period: SummaryPeriod, value: str) -> str:
    """
    Normalise a date (or YYYY-MM for months) to the period's key.
    Any date inside a week maps to that week's Monday.
    """
    try:
        if period == SummaryPeriod.DAY:
            return format_date(parse_date(value))
        if period == SummaryPeriod.WEEK:
            return week_start(value)
        return month_key(value)
    except ValueError as e:
        raise InvalidPeriodError(str(e))


def period_range(period: SummaryPeriod, key: str) -> Tuple[str, str]:
    """Inclusive first/last date covered by a period key."""
    if period == SummaryPeriod.DAY:
        return key, key
    if period == SummaryPeriod.WEEK:
        return week_bounds(key)
    return month_bounds(key)


def _same_totals(summary: AnySummary, totals: SummaryTotals) -> bool:
    return all(getattr(summary, f) == getattr(totals, f) for f in _TOTAL_FIELDS)


class SummaryEngine:
    """Applies transactions to summaries and rebuilds them after deletions"""

    def __init__(self, storage: Storage):
        self.storage = storage
        # (tier, key) -> [lock, holders + waiters]; dropped when the count reaches 0
        self._locks: Dict[Tuple[SummaryPeriod, str], list] = {}

    @asynccontextmanager
    async def _locked(self, period: SummaryPeriod, key: str):
        """Hold the lock for one summary row, creating it on first use."""
        name = (period, key)
        entry = self._locks.get(name)
        if entry is None:
            entry = self._locks[name] = [asyncio.Lock(), 0]
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[name]

    def _ops(self, period: SummaryPeriod):
        s = self.storage
        if period == SummaryPeriod.DAY:
            return s.get_daily_summary, s.create_daily_summary, s.update_daily_summary, s.delete_daily_summary
        if period == SummaryPeriod.WEEK:
            return s.get_weekly_summary, s.create_weekly_summary, s.update_weekly_summary, s.delete_weekly_summary
        return s.get_monthly_summary, s.create_monthly_summary, s.update_monthly_summary, s.delete_monthly_summary

    @staticmethod
    def _new_summary(period: SummaryPeriod, key: str, totals: SummaryTotals) -> AnySummary:
        fields = totals.model_dump()
        if period == SummaryPeriod.DAY:
            return DailySummary(date=key, **fields)
        if period == SummaryPeriod.WEEK:
            return WeeklySummary(week_start=key, week_end=week_end(key), **fields)
        return MonthlySummary(month=key, **fields)

    # Incremental path

    async def apply_transaction(self, transaction: Transaction) -> None:
        """
        Add one transaction into its day, week and month rows.

        Tiers are written one after another with no rollback: if a later
        write fails, earlier tiers keep the increment and the caller is
        expected to treat the summaries as stale until recalculated.
        """
        gpay, cash = payment_breakdown(transaction)
        contribution = SummaryTotals(
            total_amount=format_amount(parse_amount(transaction.total_amount)),
            gpay_amount=format_amount(gpay),
            cash_amount=format_amount(cash),
            order_count=1,
        )
        for period in (SummaryPeriod.DAY, SummaryPeriod.WEEK, SummaryPeriod.MONTH):
            key = period_key(period, transaction.date)
            await self._increment(period, key, contribution)

    async def _increment(self, period: SummaryPeriod, key: str, contribution: SummaryTotals) -> AnySummary:
        get, create, update, _ = self._ops(period)
        async with self._locked(period, key):
            existing = await get(key)
            if existing is None:
                return await create(self._new_summary(period, key, contribution))
            return await update(existing.model_copy(update={
                "total_amount": add_amounts(existing.total_amount, contribution.total_amount),
                "gpay_amount": add_amounts(existing.gpay_amount, contribution.gpay_amount),
                "cash_amount": add_amounts(existing.cash_amount, contribution.cash_amount),
                "order_count": existing.order_count + contribution.order_count,
            }))

    # Recomputation path

    async def _write_totals(self, period: SummaryPeriod, key: str, totals: SummaryTotals) -> Optional[AnySummary]:
        """Store totals for a key (caller holds the lock). Zero orders removes the row."""
        get, create, update, delete = self._ops(period)
        if totals.order_count == 0:
            await delete(key)
            return None
        existing = await get(key)
        if existing is None:
            return await create(self._new_summary(period, key, totals))
        if _same_totals(existing, totals):
            return existing
        return await update(existing.model_copy(update=totals.model_dump()))

    async def recompute(self, period: SummaryPeriod, key: str) -> Optional[AnySummary]:
        """Rebuild one row from its transactions; None when the period has no data."""
        start, end = period_range(period, key)
        async with self._locked(period, key):
            transactions = await self.storage.get_transactions_by_date_range(start, end)
            summary = await self._write_totals(period, key, aggregate(transactions))
        logger.debug("Recomputed %s summary %s: %s", period.value, key,
                     summary.total_amount if summary else "removed")
        return summary

    async def recalculate(self, period, date: str) -> Tuple[str, Optional[AnySummary]]:
        """Public recovery entry point: rebuild the row containing `date`."""
        period = parse_period(period)
        key = period_key(period, date)
        summary = await self.recompute(period, key)
        logger.info("Recalculated %s summary for %s", period.value, key)
        return key, summary

    async def rebuild_all(self) -> Dict[str, int]:
        """Rebuild every tier from the full transaction log; drop rows with no data."""
        transactions = await self.storage.get_transactions()

        groups: Dict[SummaryPeriod, Dict[str, List[Transaction]]] = {
            period: defaultdict(list) for period in SummaryPeriod
        }
        for t in transactions:
            for period in SummaryPeriod:
                groups[period][period_key(period, t.date)].append(t)

        existing_keys = {
            SummaryPeriod.DAY: [s.date for s in await self.storage.get_daily_summaries()],
            SummaryPeriod.WEEK: [s.week_start for s in await self.storage.get_weekly_summaries()],
            SummaryPeriod.MONTH: [s.month for s in await self.storage.get_monthly_summaries()],
        }

        written = {}
        for period in SummaryPeriod:
            _, _, _, delete = self._ops(period)
            for key in existing_keys[period]:
                if key not in groups[period]:
                    async with self._locked(period, key):
                        await delete(key)
            for key, rows in groups[period].items():
                async with self._locked(period, key):
                    await self._write_totals(period, key, aggregate(rows))
            written[_TIER_NAMES[period]] = len(groups[period])

        logger.info(
            "Rebuilt summaries from %d transactions: %d daily, %d weekly, %d monthly",
            len(transactions), written["daily"], written["weekly"], written["monthly"],
        )
        return written

    # Deletion workflow

    async def clear_period(self, period, date: str) -> Tuple[str, int]:
        """
        Delete a day, week or month of data and rebuild the summaries that
        overlapped it. Safe to repeat: clearing an empty period changes nothing.

        Returns (period key, transactions removed).
        """
        period = parse_period(period)
        key = period_key(period, date)

        if period == SummaryPeriod.DAY:
            removed = await self.storage.clear_data_by_day(key)
            await self.recompute(SummaryPeriod.WEEK, week_start(key))
            await self.recompute(SummaryPeriod.MONTH, month_key(key))
        elif period == SummaryPeriod.WEEK:
            removed = await self.storage.clear_data_by_week(key)
            for month in months_overlapping(key, week_end(key)):
                await self.recompute(SummaryPeriod.MONTH, month)
        else:
            removed = await self.storage.clear_data_by_month(key)
            first, last = month_bounds(key)
            # Weeks straddling the month boundary keep their other-month days
            for monday in week_starts_overlapping(first, last):
                await self.recompute(SummaryPeriod.WEEK, monday)

        logger.info("Cleared %s %s: %d transactions removed", period.value, key, removed)
        return key, removed
