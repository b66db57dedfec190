"""
Daily Summary - running totals for one calendar date.
Incremented on every sale, rebuilt from transactions after deletions.
"""
from sqlalchemy import Column, String, DateTime, Integer, UniqueConstraint

from chaifi.database import Base
from chaifi.utils.periods import utcnow


class DailySummaryRecord(Base):
    __tablename__ = "daily_summaries"

    id = Column(String(36), primary_key=True)
    date = Column(String(10), nullable=False)  # YYYY-MM-DD

    # Amounts as 2-decimal strings
    total_amount = Column(String, default="0.00", nullable=False)
    gpay_amount = Column(String, default="0.00", nullable=False)
    cash_amount = Column(String, default="0.00", nullable=False)
    order_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('date', name='uq_daily_summaries_date'),
    )

    def __repr__(self):
        return f"<DailySummaryRecord {self.date} {self.total_amount}>"
