"""
Transaction Model - one sale, nested cart data kept as JSON documents
"""
from sqlalchemy import Column, String, DateTime, Index

from chaifi.database import Base, JSONDocument
from chaifi.utils.periods import utcnow


class TransactionRecord(Base):
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True)

    # Cart
    items = Column(JSONDocument, nullable=False)  # [{"id", "name", "unitPrice", "quantity"}]
    extras = Column(JSONDocument, nullable=True)  # [{"name", "amount"}]
    total_amount = Column(String, nullable=False)  # "125.00"

    # Payment details
    payment_method = Column(String, nullable=False)  # cash, gpay, split, creditor
    split_payment = Column(JSONDocument, nullable=True)  # {"gpayAmount", "cashAmount"}
    creditor = Column(JSONDocument, nullable=True)  # {"name", "paidAmount", "balanceAmount", "totalAmount"}
    biller_name = Column(String, nullable=False)

    # Aggregation key and display fields
    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    day_name = Column(String, nullable=False)
    time = Column(String, nullable=False)  # HH:MM AM/PM

    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_transactions_date', 'date'),
        Index('idx_transactions_created_at', 'created_at'),
    )

    def __repr__(self):
        return f"<TransactionRecord {self.id} {self.date} {self.total_amount}>"
