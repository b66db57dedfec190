"""
Monthly Summary - running totals for a YYYY-MM month
"""
from sqlalchemy import Column, String, DateTime, Integer, UniqueConstraint

from chaifi.database import Base
from chaifi.utils.periods import utcnow


class MonthlySummaryRecord(Base):
    __tablename__ = "monthly_summaries"

    id = Column(String(36), primary_key=True)
    month = Column(String(7), nullable=False)  # YYYY-MM

    total_amount = Column(String, default="0.00", nullable=False)
    gpay_amount = Column(String, default="0.00", nullable=False)
    cash_amount = Column(String, default="0.00", nullable=False)
    order_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('month', name='uq_monthly_summaries_month'),
    )

    def __repr__(self):
        return f"<MonthlySummaryRecord {self.month} {self.total_amount}>"
