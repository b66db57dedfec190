"""
Weekly Summary - running totals for a Monday-to-Sunday week
"""
from sqlalchemy import Column, String, DateTime, Integer, UniqueConstraint

from chaifi.database import Base
from chaifi.utils.periods import utcnow


class WeeklySummaryRecord(Base):
    __tablename__ = "weekly_summaries"

    id = Column(String(36), primary_key=True)
    week_start = Column(String(10), nullable=False)  # Monday, YYYY-MM-DD
    week_end = Column(String(10), nullable=False)  # Sunday, YYYY-MM-DD

    total_amount = Column(String, default="0.00", nullable=False)
    gpay_amount = Column(String, default="0.00", nullable=False)
    cash_amount = Column(String, default="0.00", nullable=False)
    order_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('week_start', name='uq_weekly_summaries_week_start'),
    )

    def __repr__(self):
        return f"<WeeklySummaryRecord {self.week_start}..{self.week_end} {self.total_amount}>"
