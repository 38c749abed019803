"""
Sales module package exports.

- SaleLifecycleManager: create/merge sales, item mutations, payments, deletion.
- The blueprint lives in `.routes` and is registered by the app factory.
"""

from .lifecycle import CreateSaleResult, SaleLifecycleManager

__all__ = ["SaleLifecycleManager", "CreateSaleResult"]
