"""
Request schemas for the sales endpoints.

Field names follow the JSON wire format (camelCase). These check shape and
types only; the lifecycle manager enforces the business rules.
"""
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class SaleItemIn(BaseModel):
    colorId: str = Field(..., min_length=1, description="Color (stock-unit) being sold")
    quantity: int = Field(..., gt=0, description="Units sold")
    rate: Optional[Decimal] = Field(None, ge=0, description="Rate snapshot; defaults to the variant's rate")
    subtotal: Optional[Decimal] = Field(None, ge=0, description="Ignored; recomputed as quantity × rate")


class SaleCreate(BaseModel):
    customerName: str = Field(..., min_length=1)
    customerPhone: str = Field(..., min_length=1)
    totalAmount: Optional[Decimal] = Field(None, ge=0, description="Advisory; recomputed from items")
    amountPaid: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    paymentStatus: Optional[Literal["unpaid", "partial", "paid"]] = None
    items: List[SaleItemIn] = Field(..., min_length=1)


class PaymentIn(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    notes: Optional[str] = None


class ReturnIn(BaseModel):
    quantity: int = Field(..., gt=0)
    reason: Optional[str] = Field(None, description="Defaults to 'Customer return'")
