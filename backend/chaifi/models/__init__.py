"""
Models package - Import all models so Base.metadata knows every table
"""
from chaifi.database import Base

from chaifi.models.menu_item import MenuItemRecord
from chaifi.models.transaction import TransactionRecord
from chaifi.models.daily_summary import DailySummaryRecord
from chaifi.models.weekly_summary import WeeklySummaryRecord
from chaifi.models.monthly_summary import MonthlySummaryRecord

__all__ = [
    "Base",
    "MenuItemRecord",
    "TransactionRecord",
    "DailySummaryRecord",
    "WeeklySummaryRecord",
    "MonthlySummaryRecord",
]
