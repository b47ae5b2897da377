"""Services for the order kernel (write side)."""

from order_kernel.services.buyer_service import BuyerService
from order_kernel.services.item_service import ItemService
from order_kernel.services.member_service import MemberService
from order_kernel.services.order_code_service import OrderCodeGenerator
from order_kernel.services.order_service import OrderService
from order_kernel.services.sale_history_recorder import SaleHistoryRecorder
from order_kernel.services.sale_report import SaleReport
from order_kernel.services.sequence_service import SequenceService
from order_kernel.services.stock_sources import (
    CostBasis,
    ItemCostBasis,
    ReceiptStockBaseline,
    StaticCostBasis,
    StaticStockBaseline,
    StockBaseline,
)

__all__ = [
    "BuyerService",
    "CostBasis",
    "ItemCostBasis",
    "ItemService",
    "MemberService",
    "OrderCodeGenerator",
    "OrderService",
    "ReceiptStockBaseline",
    "SaleHistoryRecorder",
    "SaleReport",
    "SequenceService",
    "StaticCostBasis",
    "StaticStockBaseline",
    "StockBaseline",
]
