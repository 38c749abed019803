from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class ProductIn(BaseModel):
    company: str = Field(..., min_length=1)
    productName: str = Field(..., min_length=1)


class ProductPatch(BaseModel):
    company: Optional[str] = None
    productName: Optional[str] = None


class VariantIn(BaseModel):
    productId: str = Field(..., min_length=1)
    packingSize: str = Field(..., min_length=1)
    rate: Decimal = Field(..., gt=0)


class VariantPatch(BaseModel):
    productId: Optional[str] = None
    packingSize: Optional[str] = None
    rate: Optional[Decimal] = Field(default=None, gt=0)


class RateIn(BaseModel):
    rate: Decimal = Field(..., gt=0)


class RateUpdate(BaseModel):
    variantId: str
    rate: Decimal


class BulkRatesIn(BaseModel):
    """Each update is applied on its own; one bad row does not block the rest."""
    updates: List[RateUpdate] = Field(..., min_length=1)


class ColorIn(BaseModel):
    variantId: str = Field(..., min_length=1)
    colorName: str = Field(..., min_length=1)
    colorCode: str = Field(..., min_length=1)
    stockQuantity: int = Field(default=0, ge=0)


class ColorPatch(BaseModel):
    variantId: Optional[str] = None
    colorName: Optional[str] = None
    colorCode: Optional[str] = None


class ProductSearchArgs(BaseModel):
    query: str = ""
    company: Optional[str] = None


class ColorSearchArgs(BaseModel):
    query: str = ""
    company: Optional[str] = None
    product: Optional[str] = None
    variant: Optional[str] = None
