"""
Creditor Schemas - outstanding credit computed on demand from transactions
"""
from typing import List

from chaifi.schemas import CamelModel


class CreditorSale(CamelModel):
    transaction_id: str
    date: str
    total_amount: str
    paid_amount: str
    balance_amount: str


class CreditorBalance(CamelModel):
    name: str
    transaction_count: int
    total_amount: str
    paid_amount: str
    balance_amount: str
    sales: List[CreditorSale]


class CreditorReport(CamelModel):
    start: str
    end: str
    total_outstanding: str
    creditors: List[CreditorBalance]
