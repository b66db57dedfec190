"""
Database storage backend.

Tables play the role of document collections: nested cart data is stored as
JSON documents, and the period keys carry unique constraints so the database
itself rejects a second summary row for the same date/week/month.

SQLAlchemy sessions are synchronous, so every operation runs in a worker
thread through asyncio.to_thread and the event loop keeps serving requests.
"""
import asyncio
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy import desc, text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from chaifi.database import Base, create_db_engine, create_session_factory
from chaifi.exceptions import DuplicateSummaryError, StorageError, StorageUnavailableError
from chaifi.models import (
    MenuItemRecord,
    TransactionRecord,
    DailySummaryRecord,
    WeeklySummaryRecord,
    MonthlySummaryRecord,
)
from chaifi.schemas.menu import MenuItem
from chaifi.schemas.summary import DailySummary, WeeklySummary, MonthlySummary
from chaifi.schemas.transaction import Transaction
from chaifi.storage.base import Storage
from chaifi.storage.seed import build_default_menu
from chaifi.utils.periods import month_bounds, utcnow, week_end

logger = logging.getLogger(__name__)

_SUMMARY_FIELDS = ("total_amount", "gpay_amount", "cash_amount", "order_count")


class DatabaseStorage(Storage):
    """SQLAlchemy-backed storage (PostgreSQL in production, SQLite in tests)"""

    name = "database"

    def __init__(self, database_url: str, echo: bool = False, seed_menu: bool = True):
        super().__init__()
        self.database_url = database_url
        self.echo = echo
        self.seed_menu = seed_menu
        self._engine = None
        self._session_factory = None

    async def connect(self) -> None:
        """Create the engine, verify connectivity, create tables and seed the menu."""
        await asyncio.to_thread(self._connect)
        logger.info("Connected to database storage (%s)", self._engine.url.get_backend_name())

    def _connect(self) -> None:
        try:
            self._engine = create_db_engine(self.database_url, echo=self.echo)
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            Base.metadata.create_all(bind=self._engine)
        except (SQLAlchemyError, ImportError) as e:
            raise StorageUnavailableError(f"Cannot connect to database: {e}") from e

        self._session_factory = create_session_factory(self._engine)

        if self.seed_menu:
            with self._session() as db:
                if db.query(MenuItemRecord).count() == 0:
                    for item in build_default_menu():
                        db.add(MenuItemRecord(**item.model_dump()))
                    logger.info("Seeded default menu items")

    async def close(self) -> None:
        if self._engine is not None:
            await asyncio.to_thread(self._engine.dispose)
            logger.info("Disconnected from database storage")

    @contextmanager
    def _session(self) -> Iterator[Session]:
        if self._session_factory is None:
            raise StorageUnavailableError("Database storage is not connected")
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except IntegrityError:
            db.rollback()
            raise
        except OperationalError as e:
            db.rollback()
            raise StorageUnavailableError(f"Database unavailable: {e}") from e
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"Database error: {e}") from e
        finally:
            db.close()

    # Menu

    async def get_menu_items(self) -> List[MenuItem]:
        return await asyncio.to_thread(self._get_menu_items)

    async def get_menu_item(self, item_id: str) -> Optional[MenuItem]:
        return await asyncio.to_thread(self._get_menu_item, item_id)

    def _get_menu_items(self) -> List[MenuItem]:
        with self._session() as db:
            rows = db.query(MenuItemRecord).order_by(MenuItemRecord.category, MenuItemRecord.name).all()
            return [MenuItem.model_validate(r) for r in rows]

    def _get_menu_item(self, item_id: str) -> Optional[MenuItem]:
        with self._session() as db:
            row = db.query(MenuItemRecord).filter(MenuItemRecord.id == item_id).first()
            return MenuItem.model_validate(row) if row else None

    # Transactions

    async def create_transaction(self, transaction: Transaction) -> Transaction:
        return await asyncio.to_thread(self._create_transaction, transaction)

    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return await asyncio.to_thread(self._get_transaction, transaction_id)

    async def get_transactions(self, limit: Optional[int] = None) -> List[Transaction]:
        return await asyncio.to_thread(self._get_transactions, limit)

    async def get_transactions_by_date(self, date: str) -> List[Transaction]:
        return await self.get_transactions_by_date_range(date, date)

    async def get_transactions_by_date_range(self, start_date: str, end_date: str) -> List[Transaction]:
        return await asyncio.to_thread(self._get_transactions_in_range, start_date, end_date)

    def _create_transaction(self, transaction: Transaction) -> Transaction:
        doc = transaction.model_dump(mode="json", by_alias=True)
        record = TransactionRecord(
            id=transaction.id,
            items=doc["items"],
            extras=doc["extras"],
            total_amount=transaction.total_amount,
            payment_method=transaction.payment_method.value,
            split_payment=doc["splitPayment"],
            creditor=doc["creditor"],
            biller_name=transaction.biller_name,
            date=transaction.date,
            day_name=transaction.day_name,
            time=transaction.time,
            created_at=transaction.created_at,
        )
        try:
            with self._session() as db:
                db.add(record)
        except IntegrityError as e:
            raise StorageError(f"Transaction {transaction.id} already exists") from e
        return transaction

    def _get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        with self._session() as db:
            row = db.query(TransactionRecord).filter(TransactionRecord.id == transaction_id).first()
            return Transaction.model_validate(row) if row else None

    def _get_transactions(self, limit: Optional[int]) -> List[Transaction]:
        with self._session() as db:
            query = db.query(TransactionRecord).order_by(desc(TransactionRecord.created_at))
            if limit:
                query = query.limit(limit)
            return [Transaction.model_validate(r) for r in query.all()]

    def _get_transactions_in_range(self, start_date: str, end_date: str) -> List[Transaction]:
        with self._session() as db:
            rows = db.query(TransactionRecord).filter(
                TransactionRecord.date >= start_date,
                TransactionRecord.date <= end_date,
            ).order_by(desc(TransactionRecord.created_at)).all()
            return [Transaction.model_validate(r) for r in rows]

    # Daily summaries

    async def get_daily_summary(self, date: str) -> Optional[DailySummary]:
        return await self._get_summary(DailySummaryRecord, DailySummaryRecord.date, date, DailySummary)

    async def get_daily_summaries(self, limit: Optional[int] = None) -> List[DailySummary]:
        return await self._list_summaries(DailySummaryRecord, DailySummaryRecord.date, limit, DailySummary)

    async def create_daily_summary(self, summary: DailySummary) -> DailySummary:
        return await self._create_summary(DailySummaryRecord, "daily", summary.date, summary, DailySummary)

    async def update_daily_summary(self, summary: DailySummary) -> DailySummary:
        return await self._update_summary(
            DailySummaryRecord, DailySummaryRecord.date, "daily", summary.date, summary, DailySummary
        )

    async def delete_daily_summary(self, date: str) -> bool:
        return await self._delete_summary(DailySummaryRecord, DailySummaryRecord.date, date)

    # Weekly summaries

    async def get_weekly_summary(self, week_start: str) -> Optional[WeeklySummary]:
        return await self._get_summary(
            WeeklySummaryRecord, WeeklySummaryRecord.week_start, week_start, WeeklySummary
        )

    async def get_weekly_summaries(self, limit: Optional[int] = None) -> List[WeeklySummary]:
        return await self._list_summaries(
            WeeklySummaryRecord, WeeklySummaryRecord.week_start, limit, WeeklySummary
        )

    async def create_weekly_summary(self, summary: WeeklySummary) -> WeeklySummary:
        return await self._create_summary(
            WeeklySummaryRecord, "weekly", summary.week_start, summary, WeeklySummary
        )

    async def update_weekly_summary(self, summary: WeeklySummary) -> WeeklySummary:
        return await self._update_summary(
            WeeklySummaryRecord, WeeklySummaryRecord.week_start, "weekly",
            summary.week_start, summary, WeeklySummary,
        )

    async def delete_weekly_summary(self, week_start: str) -> bool:
        return await self._delete_summary(WeeklySummaryRecord, WeeklySummaryRecord.week_start, week_start)

    # Monthly summaries

    async def get_monthly_summary(self, month: str) -> Optional[MonthlySummary]:
        return await self._get_summary(MonthlySummaryRecord, MonthlySummaryRecord.month, month, MonthlySummary)

    async def get_monthly_summaries(self, limit: Optional[int] = None) -> List[MonthlySummary]:
        return await self._list_summaries(
            MonthlySummaryRecord, MonthlySummaryRecord.month, limit, MonthlySummary
        )

    async def create_monthly_summary(self, summary: MonthlySummary) -> MonthlySummary:
        return await self._create_summary(MonthlySummaryRecord, "monthly", summary.month, summary, MonthlySummary)

    async def update_monthly_summary(self, summary: MonthlySummary) -> MonthlySummary:
        return await self._update_summary(
            MonthlySummaryRecord, MonthlySummaryRecord.month, "monthly", summary.month, summary, MonthlySummary
        )

    async def delete_monthly_summary(self, month: str) -> bool:
        return await self._delete_summary(MonthlySummaryRecord, MonthlySummaryRecord.month, month)

    # Bulk deletion

    async def clear_data_by_day(self, date: str) -> int:
        return await asyncio.to_thread(self._clear_range, date, date, week_start=None, month=None)

    async def clear_data_by_week(self, week_start: str) -> int:
        return await asyncio.to_thread(
            self._clear_range, week_start, week_end(week_start), week_start=week_start, month=None
        )

    async def clear_data_by_month(self, month: str) -> int:
        first, last = month_bounds(month)
        return await asyncio.to_thread(self._clear_range, first, last, week_start=None, month=month)

    def _clear_range(self, first: str, last: str, week_start: Optional[str], month: Optional[str]) -> int:
        """
        Delete transactions and daily rows in [first, last].

        A week clear also drops that week's row; a month clear drops the month
        row and every weekly row keyed inside the month.
        """
        with self._session() as db:
            removed = db.query(TransactionRecord).filter(
                TransactionRecord.date >= first,
                TransactionRecord.date <= last,
            ).delete(synchronize_session=False)
            db.query(DailySummaryRecord).filter(
                DailySummaryRecord.date >= first,
                DailySummaryRecord.date <= last,
            ).delete(synchronize_session=False)
            if week_start is not None:
                db.query(WeeklySummaryRecord).filter(
                    WeeklySummaryRecord.week_start == week_start
                ).delete(synchronize_session=False)
            if month is not None:
                db.query(WeeklySummaryRecord).filter(
                    WeeklySummaryRecord.week_start >= first,
                    WeeklySummaryRecord.week_start <= last,
                ).delete(synchronize_session=False)
                db.query(MonthlySummaryRecord).filter(
                    MonthlySummaryRecord.month == month
                ).delete(synchronize_session=False)
        return removed

    # Shared summary helpers

    async def _get_summary(self, model, key_column, key, schema):
        def query():
            with self._session() as db:
                row = db.query(model).filter(key_column == key).first()
                return schema.model_validate(row) if row else None

        return await asyncio.to_thread(query)

    async def _list_summaries(self, model, key_column, limit, schema):
        def query():
            with self._session() as db:
                q = db.query(model).order_by(desc(key_column))
                if limit:
                    q = q.limit(limit)
                return [schema.model_validate(r) for r in q.all()]

        return await asyncio.to_thread(query)

    async def _create_summary(self, model, tier, key, summary, schema):
        def insert():
            record = model(**summary.model_dump())
            try:
                with self._session() as db:
                    db.add(record)
            except IntegrityError as e:
                raise DuplicateSummaryError(tier, key) from e
            return schema.model_validate(record)

        return await asyncio.to_thread(insert)

    async def _update_summary(self, model, key_column, tier, key, summary, schema):
        def update():
            with self._session() as db:
                row = db.query(model).filter(key_column == key).first()
                if row is None:
                    raise StorageError(f"No {tier} summary for {key}")
                for field in _SUMMARY_FIELDS:
                    setattr(row, field, getattr(summary, field))
                row.updated_at = utcnow()
                db.flush()
                return schema.model_validate(row)

        return await asyncio.to_thread(update)

    async def _delete_summary(self, model, key_column, key) -> bool:
        def delete():
            with self._session() as db:
                return db.query(model).filter(key_column == key).delete(synchronize_session=False)

        return await asyncio.to_thread(delete) > 0
