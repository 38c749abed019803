from typing import List, Optional

from pydantic import BaseModel, Field


class StockSetIn(BaseModel):
    stockQuantity: int = Field(..., ge=0)


class StockInIn(BaseModel):
    quantity: int = Field(..., gt=0)
    notes: Optional[str] = None


class StockInItem(BaseModel):
    colorId: str
    quantity: int


class BulkStockInIn(BaseModel):
    items: List[StockInItem] = Field(..., min_length=1)
