# database/repositories/queries.py
"""Typed parameter structs for the read-only search and report queries."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from paint_pos.constants import DEFAULT_LOW_STOCK_THRESHOLD

GROUP_BY_CHOICES = ("day", "week", "month")


@dataclass(frozen=True)
class ProductSearchQuery:
    query: str = ""
    company: Optional[str] = None


@dataclass(frozen=True)
class ColorSearchQuery:
    query: str = ""
    company: Optional[str] = None
    product: Optional[str] = None
    variant: Optional[str] = None


@dataclass(frozen=True)
class SalesReportQuery:
    start_date: Optional[str] = None  # inclusive 'YYYY-MM-DD'
    end_date: Optional[str] = None    # inclusive 'YYYY-MM-DD'
    group_by: str = "day"


@dataclass(frozen=True)
class InventoryReportQuery:
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD


@dataclass(frozen=True)
class AccountFilter:
    """Filters for the consolidated unpaid-accounts view."""
    search: str = ""
    status: str = "all"   # all | overdue (oldest bill > 30 days) | recent (<= 7 days)
    amount: str = "all"   # all | small (<= 1000) | medium (1000-5000] | large (> 5000)
