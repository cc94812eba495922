from .stock_ledger import (
    InsufficientStockError,
    ProductNotFoundError,
    StockLedgerError,
    check_availability,
    reconcile,
    release,
    reserve,
)

__all__ = [
    "InsufficientStockError",
    "ProductNotFoundError",
    "StockLedgerError",
    "check_availability",
    "reconcile",
    "release",
    "reserve",
]
