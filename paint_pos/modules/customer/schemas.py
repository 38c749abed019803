from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field


class CustomerPaymentIn(BaseModel):
    """One payment to spread over the customer's open bills, oldest first."""
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    notes: Optional[str] = None


class AccountFilterArgs(BaseModel):
    search: str = ""
    status: Literal["all", "overdue", "recent"] = "all"
    amount: Literal["all", "small", "medium", "large"] = "all"
