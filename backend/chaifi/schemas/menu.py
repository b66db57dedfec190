"""
Menu Schemas
"""
from typing import Any

from pydantic import field_validator

from chaifi.schemas import CamelModel
from chaifi.utils.amounts import parse_amount, format_amount


class MenuItem(CamelModel):
    id: str
    name: str
    description: str = ""
    price: str
    category: str
    image: str = ""
    available: bool = True

    @field_validator("price", mode="before")
    @classmethod
    def normalise_price(cls, value: Any) -> str:
        return format_amount(parse_amount(value, strict=True))


class MenuItemSales(CamelModel):
    """How much of one menu item sold on a date"""
    id: str
    name: str
    category: str
    price: str
    total_sold: int
    revenue: str
