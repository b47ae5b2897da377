"""Selectors for the order kernel (read side)."""

from order_kernel.selectors.history_selector import HistorySelector
from order_kernel.selectors.order_selector import OrderSelector
from order_kernel.selectors.sales_selector import ItemSalesTotal, SalesSelector

__all__ = [
    "HistorySelector",
    "ItemSalesTotal",
    "OrderSelector",
    "SalesSelector",
]
