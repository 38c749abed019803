from .consolidation import BillConsolidationEngine, account_to_dict

__all__ = ["BillConsolidationEngine", "account_to_dict"]
