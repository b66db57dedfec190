"""
Summary engine tests, run against both storage backends.
"""
import asyncio

import pytest

from chaifi.exceptions import InvalidPeriodError, StorageError
from chaifi.schemas.summary import SummaryPeriod
from chaifi.services.summary_service import SummaryEngine, aggregate, payment_breakdown, period_key
from chaifi.services.transaction_service import build_transaction


def _totals(summary):
    return {
        "totalAmount": summary.total_amount,
        "gpayAmount": summary.gpay_amount,
        "cashAmount": summary.cash_amount,
        "orderCount": summary.order_count,
    }


def test_single_cash_sale_updates_all_tiers(storage, record, make_sale):
    async def scenario():
        await record(make_sale(date="2024-01-03", total="100.00", method="cash"))
        return (
            await storage.get_daily_summary("2024-01-03"),
            await storage.get_weekly_summary("2024-01-01"),
            await storage.get_monthly_summary("2024-01"),
        )

    daily, weekly, monthly = asyncio.run(scenario())
    expected = {"totalAmount": "100.00", "gpayAmount": "0.00", "cashAmount": "100.00", "orderCount": 1}
    assert _totals(daily) == expected
    assert _totals(weekly) == expected
    assert _totals(monthly) == expected
    assert weekly.week_end == "2024-01-07"


def test_two_sales_same_day_accumulate(storage, record, make_sale):
    async def scenario():
        await record(make_sale(total="50.00", method="gpay"))
        await record(make_sale(total="30.00", method="cash"))
        return await storage.get_daily_summary("2024-01-03")

    daily = asyncio.run(scenario())
    assert _totals(daily) == {"totalAmount": "80.00", "gpayAmount": "50.00", "cashAmount": "30.00", "orderCount": 2}


def test_clear_day_removes_day_and_rebuilds_week(storage, engine, record, make_sale):
    async def scenario():
        await record(make_sale(total="50.00", method="gpay"))
        await record(make_sale(total="30.00", method="cash"))
        key, removed = await engine.clear_period("day", "2024-01-03")
        return (
            key, removed,
            await storage.get_daily_summary("2024-01-03"),
            await storage.get_weekly_summary("2024-01-01"),
            await storage.get_monthly_summary("2024-01"),
            await storage.get_transactions_by_date("2024-01-03"),
        )

    key, removed, daily, weekly, monthly, remaining = asyncio.run(scenario())
    assert key == "2024-01-03"
    assert removed == 2
    assert daily is None
    assert weekly is None
    assert monthly is None
    assert remaining == []


def test_clear_day_keeps_rest_of_week(storage, engine, record, make_sale):
    async def scenario():
        await record(make_sale(date="2024-01-03", total="50.00", method="gpay"))
        await record(make_sale(date="2024-01-05", total="20.00", method="cash"))
        await engine.clear_period("day", "2024-01-03")
        return await storage.get_weekly_summary("2024-01-01"), await storage.get_monthly_summary("2024-01")

    weekly, monthly = asyncio.run(scenario())
    expected = {"totalAmount": "20.00", "gpayAmount": "0.00", "cashAmount": "20.00", "orderCount": 1}
    assert _totals(weekly) == expected
    assert _totals(monthly) == expected


def test_split_payment_attribution(storage, record, make_sale):
    async def scenario():
        await record(make_sale(
            total="50.00", method="split",
            splitPayment={"gpayAmount": 30, "cashAmount": 20},
        ))
        return await storage.get_daily_summary("2024-01-03")

    daily = asyncio.run(scenario())
    assert _totals(daily) == {"totalAmount": "50.00", "gpayAmount": "30.00", "cashAmount": "20.00", "orderCount": 1}


def test_creditor_sale_counts_toward_total_only(storage, record, make_sale):
    async def scenario():
        await record(make_sale(
            total="60.00", method="creditor",
            creditor={"name": "Ravi", "paidAmount": 10, "balanceAmount": 50, "totalAmount": 60},
        ))
        return await storage.get_daily_summary("2024-01-03")

    daily = asyncio.run(scenario())
    assert _totals(daily) == {"totalAmount": "60.00", "gpayAmount": "0.00", "cashAmount": "0.00", "orderCount": 1}


def test_payment_breakdown_without_split_details(make_sale, settings):
    tx = build_transaction(make_sale(total="40.00", method="split"), settings)
    assert payment_breakdown(tx) == (0.0, 0.0)


def test_aggregate_matches_incremental_totals_in_any_order(storage, engine, record, make_sale):
    sales = [
        make_sale(date="2024-01-01", total="10.10", method="cash"),
        make_sale(date="2024-01-02", total="20.20", method="gpay"),
        make_sale(date="2024-01-07", total="30.30", method="split",
                  splitPayment={"gpayAmount": 10.3, "cashAmount": 20}),
        make_sale(date="2024-01-02", total="5.00", method="creditor"),
    ]

    async def scenario():
        for sale in reversed(sales):
            await record(sale)
        incremental = await storage.get_weekly_summary("2024-01-01")
        transactions = await storage.get_transactions_by_date_range("2024-01-01", "2024-01-07")
        return incremental, aggregate(transactions)

    incremental, rebuilt = asyncio.run(scenario())
    assert _totals(incremental) == _totals(rebuilt)
    assert rebuilt.total_amount == "65.60"
    assert rebuilt.gpay_amount == "30.50"
    assert rebuilt.cash_amount == "30.10"
    assert rebuilt.order_count == 4


def test_recalculate_is_idempotent(storage, engine, record, make_sale):
    async def scenario():
        await record(make_sale(total="12.50", method="gpay"))
        await record(make_sale(total="7.50", method="cash"))
        _, first = await engine.recalculate("week", "2024-01-05")
        _, second = await engine.recalculate("week", "2024-01-05")
        return first, second

    first, second = asyncio.run(scenario())
    assert first.model_dump() == second.model_dump()
    assert first.total_amount == "20.00"
    assert first.week_start == "2024-01-01"


def test_recalculate_repairs_drifted_summary(storage, engine, record, make_sale):
    async def scenario():
        await record(make_sale(total="40.00", method="cash"))
        daily = await storage.get_daily_summary("2024-01-03")
        await storage.update_daily_summary(daily.model_copy(update={"total_amount": "999.00", "order_count": 9}))
        key, repaired = await engine.recalculate("day", "2024-01-03")
        return key, repaired

    key, repaired = asyncio.run(scenario())
    assert key == "2024-01-03"
    assert _totals(repaired) == {"totalAmount": "40.00", "gpayAmount": "0.00", "cashAmount": "40.00", "orderCount": 1}


def test_recalculate_empty_period_returns_none(engine):
    key, summary = asyncio.run(engine.recalculate("month", "2024-05"))
    assert key == "2024-05"
    assert summary is None


def test_recalculate_rejects_unknown_period(engine):
    with pytest.raises(InvalidPeriodError):
        asyncio.run(engine.recalculate("year", "2024-01-01"))
    with pytest.raises(InvalidPeriodError):
        asyncio.run(engine.recalculate("day", "2024-02-30"))


def test_clear_week_normalises_to_monday(storage, engine, record, make_sale):
    async def scenario():
        await record(make_sale(date="2024-01-02", total="10.00"))
        await record(make_sale(date="2024-01-09", total="15.00"))
        key, removed = await engine.clear_period("week", "2024-01-05")
        return (
            key, removed,
            await storage.get_weekly_summary("2024-01-01"),
            await storage.get_daily_summary("2024-01-02"),
            await storage.get_monthly_summary("2024-01"),
        )

    key, removed, weekly, daily, monthly = asyncio.run(scenario())
    assert key == "2024-01-01"
    assert removed == 1
    assert weekly is None
    assert daily is None
    assert monthly.total_amount == "15.00"
    assert monthly.order_count == 1


def test_clear_week_straddling_months_rebuilds_both(storage, engine, record, make_sale):
    # Week of 2024-01-29 runs into February
    async def scenario():
        await record(make_sale(date="2024-01-30", total="10.00"))
        await record(make_sale(date="2024-02-02", total="20.00"))
        await record(make_sale(date="2024-02-20", total="5.00"))
        await engine.clear_period("week", "2024-01-29")
        return await storage.get_monthly_summary("2024-01"), await storage.get_monthly_summary("2024-02")

    january, february = asyncio.run(scenario())
    assert january is None
    assert february.total_amount == "5.00"
    assert february.order_count == 1


def test_clear_month_removes_everything_in_month(storage, engine, record, make_sale):
    async def scenario():
        for day in ("2024-03-01", "2024-03-15", "2024-03-31"):
            await record(make_sale(date=day, total="10.00"))
        key, removed = await engine.clear_period("month", "2024-03")
        return (
            key, removed,
            await storage.get_transactions_by_date_range("2024-03-01", "2024-03-31"),
            await storage.get_daily_summaries(),
            await storage.get_monthly_summary("2024-03"),
            await storage.get_weekly_summary("2024-03-11"),
        )

    key, removed, transactions, dailies, monthly, weekly = asyncio.run(scenario())
    assert key == "2024-03"
    assert removed == 3
    assert transactions == []
    assert [d for d in dailies if d.date.startswith("2024-03")] == []
    assert monthly is None
    assert weekly is None


def test_clear_month_keeps_other_month_days_of_straddling_weeks(storage, engine, record, make_sale):
    # Week of 2024-02-26 holds Feb 26-29 and Mar 1-3
    async def scenario():
        await record(make_sale(date="2024-02-27", total="11.00"))
        await record(make_sale(date="2024-03-02", total="22.00"))
        await engine.clear_period("month", "2024-03-10")
        return await storage.get_weekly_summary("2024-02-26"), await storage.get_monthly_summary("2024-02")

    weekly, february = asyncio.run(scenario())
    assert weekly.total_amount == "11.00"
    assert weekly.order_count == 1
    assert february.total_amount == "11.00"


def test_clear_empty_period_is_a_no_op(storage, engine, record, make_sale):
    async def scenario():
        await record(make_sale(date="2024-01-03", total="10.00"))
        first = await engine.clear_period("day", "2024-06-01")
        again = await engine.clear_period("day", "2024-06-01")
        return first, again, await storage.get_daily_summary("2024-01-03")

    first, again, daily = asyncio.run(scenario())
    assert first == ("2024-06-01", 0)
    assert again == ("2024-06-01", 0)
    assert daily.total_amount == "10.00"


def test_rebuild_all_restores_every_tier(storage, engine, record, make_sale):
    async def scenario():
        await record(make_sale(date="2024-01-03", total="10.00", method="gpay"))
        await record(make_sale(date="2024-02-14", total="20.00", method="cash"))
        await storage.create_daily_summary(
            (await storage.get_daily_summary("2024-01-03")).model_copy(update={"id": "orphan", "date": "2023-12-31"})
        )
        await storage.delete_monthly_summary("2024-02")
        counts = await engine.rebuild_all()
        return (
            counts,
            await storage.get_daily_summary("2023-12-31"),
            await storage.get_monthly_summary("2024-02"),
        )

    counts, orphan, february = asyncio.run(scenario())
    assert counts == {"daily": 2, "weekly": 2, "monthly": 2}
    assert orphan is None
    assert february.total_amount == "20.00"


def test_concurrent_sales_do_not_lose_updates(storage, engine, record, make_sale):
    async def scenario():
        await asyncio.gather(*(
            record(make_sale(total="10.00", method="cash")) for _ in range(20)
        ))
        return await storage.get_daily_summary("2024-01-03"), await storage.get_monthly_summary("2024-01")

    daily, monthly = asyncio.run(scenario())
    assert daily.order_count == 20
    assert daily.total_amount == "200.00"
    assert monthly.order_count == 20


def test_period_key_normalisation():
    assert period_key(SummaryPeriod.DAY, "2024-01-03") == "2024-01-03"
    assert period_key(SummaryPeriod.WEEK, "2024-01-07") == "2024-01-01"
    assert period_key(SummaryPeriod.MONTH, "2024-01-31") == "2024-01"
    with pytest.raises(InvalidPeriodError):
        period_key(SummaryPeriod.MONTH, "January")


def test_failed_summary_write_surfaces_as_storage_error(memory_storage, make_sale, settings):
    async def broken_update(summary):
        raise StorageError("disk full")

    engine = SummaryEngine(memory_storage)
    memory_storage.update_weekly_summary = broken_update
    tx1 = build_transaction(make_sale(total="5.00"), settings)
    tx2 = build_transaction(make_sale(total="5.00"), settings)

    async def scenario():
        await engine.apply_transaction(tx1)
        with pytest.raises(StorageError):
            await engine.apply_transaction(tx2)
        return await memory_storage.get_daily_summary("2024-01-03")

    daily = asyncio.run(scenario())
    # The daily tier was already written before the weekly update failed
    assert daily.order_count == 2


def test_row_locks_are_released_after_use(storage, engine, record, make_sale):
    async def scenario():
        await asyncio.gather(*(record(make_sale(date=f"2024-01-0{day}")) for day in range(1, 8)))
        await engine.recalculate("week", "2024-01-03")
        await engine.clear_period("month", "2024-01")
        await engine.rebuild_all()
        return dict(engine._locks)

    assert asyncio.run(scenario()) == {}


def test_contended_row_lock_serialises_holders(memory_storage):
    engine = SummaryEngine(memory_storage)

    async def scenario():
        order = []

        async def hold(tag):
            async with engine._locked(SummaryPeriod.DAY, "2024-01-03"):
                order.append(f"{tag}-in")
                await asyncio.sleep(0)
                order.append(f"{tag}-out")

        await asyncio.gather(hold("a"), hold("b"))
        return order

    assert asyncio.run(scenario()) == ["a-in", "a-out", "b-in", "b-out"]
    assert engine._locks == {}
