from .stock_fifo import (
    InsufficientStockError,
    StockError,
    StockLine,
    StockRestorationError,
    available_quantity,
    deduct_stock_fifo,
    ensure_available,
    restore_stock_lifo,
)
from .stock_intake import add_stock_entry, receive_stock

__all__ = [
    "InsufficientStockError",
    "StockError",
    "StockLine",
    "StockRestorationError",
    "add_stock_entry",
    "available_quantity",
    "deduct_stock_fifo",
    "ensure_available",
    "receive_stock",
    "restore_stock_lifo",
]
