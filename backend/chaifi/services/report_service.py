"""
Read-models computed on demand from transactions: menu item sales,
outstanding creditor balances and per-period report payloads.
"""
from collections import defaultdict
from typing import Dict, List, Optional

from chaifi.schemas.creditor import CreditorBalance, CreditorReport, CreditorSale
from chaifi.schemas.menu import MenuItemSales
from chaifi.schemas.summary import PeriodReport, SummaryPeriod
from chaifi.schemas.transaction import PaymentMethod, Transaction
from chaifi.services.summary_service import period_range
from chaifi.storage.base import Storage
from chaifi.utils.amounts import format_amount, parse_amount


async def get_menu_item_sales(storage: Storage, date: str) -> List[MenuItemSales]:
    """Units sold and revenue per current menu item on a date, best sellers first."""
    transactions = await storage.get_transactions_by_date(date)
    menu_items = await storage.get_menu_items()

    sold: Dict[str, int] = defaultdict(int)
    for t in transactions:
        for line in t.items:
            sold[line.id] += line.quantity

    sales = [
        MenuItemSales(
            id=item.id,
            name=item.name,
            category=item.category,
            price=item.price,
            total_sold=sold.get(item.id, 0),
            revenue=format_amount(sold.get(item.id, 0) * parse_amount(item.price)),
        )
        for item in menu_items
    ]
    # sorted() is stable, so ties keep menu order
    return sorted(sales, key=lambda s: s.total_sold, reverse=True)


def _creditor_amounts(t: Transaction):
    total = parse_amount(t.total_amount)
    if t.creditor is None:
        return "Unknown", total, 0.0, total
    return t.creditor.name, total, t.creditor.paid_amount, t.creditor.balance_amount


async def get_creditor_report(storage: Storage, start_date: str, end_date: str) -> CreditorReport:
    """Creditor sales in [start_date, end_date] grouped by creditor, largest balance first."""
    transactions = await storage.get_transactions_by_date_range(start_date, end_date)

    grouped: Dict[str, List[CreditorSale]] = defaultdict(list)
    totals: Dict[str, List[float]] = defaultdict(lambda: [0.0, 0.0, 0.0])

    for t in sorted(transactions, key=lambda tx: (tx.date, tx.created_at)):
        if t.payment_method != PaymentMethod.CREDITOR:
            continue
        name, total, paid, balance = _creditor_amounts(t)
        grouped[name].append(CreditorSale(
            transaction_id=t.id,
            date=t.date,
            total_amount=format_amount(total),
            paid_amount=format_amount(paid),
            balance_amount=format_amount(balance),
        ))
        bucket = totals[name]
        bucket[0] += total
        bucket[1] += paid
        bucket[2] += balance

    creditors = [
        CreditorBalance(
            name=name,
            transaction_count=len(sales),
            total_amount=format_amount(totals[name][0]),
            paid_amount=format_amount(totals[name][1]),
            balance_amount=format_amount(totals[name][2]),
            sales=sales,
        )
        for name, sales in grouped.items()
    ]
    creditors.sort(key=lambda c: parse_amount(c.balance_amount), reverse=True)

    return CreditorReport(
        start=start_date,
        end=end_date,
        total_outstanding=format_amount(sum(v[2] for v in totals.values())),
        creditors=creditors,
    )


async def get_period_report(storage: Storage, period: SummaryPeriod, key: str) -> Optional[PeriodReport]:
    """Summary row and its transactions, or None when the period has no summary."""
    if period == SummaryPeriod.DAY:
        summary = await storage.get_daily_summary(key)
    elif period == SummaryPeriod.WEEK:
        summary = await storage.get_weekly_summary(key)
    else:
        summary = await storage.get_monthly_summary(key)

    if summary is None:
        return None

    start, end = period_range(period, key)
    transactions = await storage.get_transactions_by_date_range(start, end)
    return PeriodReport(summary=summary, transactions=transactions)
