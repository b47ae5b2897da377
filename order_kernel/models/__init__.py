"""Domain models for the order kernel."""

from order_kernel.models.buyer import Buyer, BuyerItem, BuyerStatus
from order_kernel.models.item import Item, ItemStatus, StockReceipt
from order_kernel.models.member import Member, MemberRole
from order_kernel.models.order import OrderHeader, OrderLine, OrderStatus
from order_kernel.models.sale_history import SaleHistory

__all__ = [
    "Buyer",
    "BuyerItem",
    "BuyerStatus",
    "Item",
    "ItemStatus",
    "StockReceipt",
    "Member",
    "MemberRole",
    "OrderHeader",
    "OrderLine",
    "OrderStatus",
    "SaleHistory",
]
