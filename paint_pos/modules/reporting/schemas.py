from typing import Literal, Optional

from pydantic import BaseModel, Field

from ...constants import DEFAULT_LOW_STOCK_THRESHOLD


class SalesReportArgs(BaseModel):
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    groupBy: Literal["day", "week", "month"] = "day"


class InventoryReportArgs(BaseModel):
    lowStockThreshold: int = Field(default=DEFAULT_LOW_STOCK_THRESHOLD, ge=0)
