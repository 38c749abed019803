# database/repositories/__init__.py
"""
Repository layer public API.

Usage:
    from paint_pos.database.repositories import (
        ProductsRepo, Product, Variant, Color,
        InventoryRepo,
        SalesRepo, Sale, SaleItem,
        CustomersRepo, DashboardRepo, ReportingRepo,
        DomainError, ValidationError, NotFoundError, ConflictError,
    )
"""

# ----------------- Errors ------------------
from .errors import ConflictError, DomainError, NotFoundError, ValidationError

# ---------------- Catalog ------------------
from .products_repo import Color, Product, ProductsRepo, Variant

# ---------------- Inventory ----------------
from .inventory_repo import InventoryRepo

# ------------------ Sales ------------------
from .sales_repo import Sale, SaleItem, SalesRepo

# ------------- Read models -----------------
from .customers_repo import CustomersRepo
from .dashboard_repo import DashboardRepo
from .reporting_repo import ReportingRepo

__all__ = [
    "DomainError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "ProductsRepo",
    "Product",
    "Variant",
    "Color",
    "InventoryRepo",
    "SalesRepo",
    "Sale",
    "SaleItem",
    "CustomersRepo",
    "DashboardRepo",
    "ReportingRepo",
]
