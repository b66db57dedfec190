"""
Menu API Endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from chaifi.dependencies import get_storage
from chaifi.exceptions import InvalidPeriodError
from chaifi.schemas.menu import MenuItem, MenuItemSales
from chaifi.services.report_service import get_menu_item_sales
from chaifi.storage.base import Storage
from chaifi.utils.periods import format_date, parse_date, utcnow

router = APIRouter(tags=["menu"])


@router.get("", response_model=List[MenuItem])
async def list_menu_items(storage: Storage = Depends(get_storage)):
    return await storage.get_menu_items()


@router.get("/sales", response_model=List[MenuItemSales])
async def menu_item_sales(
    date: Optional[str] = Query(None, description="Sales date, defaults to today"),
    storage: Storage = Depends(get_storage),
):
    """Units sold and revenue per menu item for one day"""
    try:
        day = format_date(parse_date(date)) if date else format_date(utcnow())
    except ValueError as e:
        raise InvalidPeriodError(str(e))
    return await get_menu_item_sales(storage, day)
