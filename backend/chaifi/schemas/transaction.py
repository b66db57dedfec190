"""
Transaction Schemas
"""
from typing import Optional, List, Any
from datetime import datetime
import enum

from pydantic import AliasChoices, ConfigDict, Field, field_validator, model_validator

from chaifi.schemas import CamelModel
from chaifi.utils.amounts import parse_amount, format_amount
from chaifi.utils.periods import parse_date, format_date


class PaymentMethod(str, enum.Enum):
    """How a sale was settled"""
    CASH = "cash"
    GPAY = "gpay"
    SPLIT = "split"
    CREDITOR = "creditor"


class LineItem(CamelModel):
    """One cart line: a menu item and how many were sold"""
    id: str
    name: str
    unit_price: float = Field(
        ..., ge=0, validation_alias=AliasChoices("unitPrice", "unit_price", "price")
    )
    quantity: int = Field(..., ge=1)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("unit_price", mode="before")
    @classmethod
    def parse_price(cls, value: Any) -> float:
        return parse_amount(value, strict=True)


class ExtraCharge(CamelModel):
    """Ad-hoc line added at the counter (e.g. parcel charge)"""
    name: str
    amount: float

    @field_validator("amount", mode="before")
    @classmethod
    def parse_extra_amount(cls, value: Any) -> float:
        return parse_amount(value, strict=True)


class SplitPayment(CamelModel):
    """GPay / cash portions of a split settlement"""
    gpay_amount: float = Field(0.0, ge=0)
    cash_amount: float = Field(0.0, ge=0)


class CreditorDetails(CamelModel):
    """Sale recorded against a creditor, partially or fully unpaid"""
    name: str = Field(..., min_length=1)
    paid_amount: float = Field(0.0, ge=0)
    balance_amount: float = Field(0.0, ge=0)
    total_amount: float = Field(0.0, ge=0)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Creditor name is required")
        return value


class TransactionCreate(CamelModel):
    """Incoming sale payload (server assigns id and createdAt)"""
    items: List[LineItem]
    total_amount: str
    payment_method: PaymentMethod
    biller_name: Optional[str] = None
    split_payment: Optional[SplitPayment] = None
    creditor: Optional[CreditorDetails] = None
    extras: Optional[List[ExtraCharge]] = None
    date: str
    day_name: Optional[str] = None
    time: Optional[str] = None

    @field_validator("total_amount", mode="before")
    @classmethod
    def normalise_total(cls, value: Any) -> str:
        amount = parse_amount(value, strict=True)
        if amount < 0:
            raise ValueError("totalAmount cannot be negative")
        return format_amount(amount)

    @field_validator("date", mode="before")
    @classmethod
    def normalise_date(cls, value: Any) -> str:
        return format_date(parse_date(value))

    @model_validator(mode="after")
    def check_payment_details(self) -> "TransactionCreate":
        if self.split_payment is not None and self.payment_method != PaymentMethod.SPLIT:
            raise ValueError("splitPayment is only allowed when paymentMethod is 'split'")
        if self.creditor is not None and self.payment_method != PaymentMethod.CREDITOR:
            raise ValueError("creditor is only allowed when paymentMethod is 'creditor'")
        return self


class Transaction(CamelModel):
    """Persisted sale; never modified after creation"""
    model_config = ConfigDict(frozen=True)

    id: str
    items: List[LineItem]
    total_amount: str
    payment_method: PaymentMethod
    biller_name: str
    split_payment: Optional[SplitPayment] = None
    creditor: Optional[CreditorDetails] = None
    extras: Optional[List[ExtraCharge]] = None
    date: str
    day_name: str
    time: str
    created_at: datetime

