"""Pure domain layer: clock, order codes, lifecycle guards, commands and DTOs."""

from order_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SystemClock,
)
from order_kernel.domain.dtos import (
    MAX_DATE,
    MIN_DATE,
    BuyerInfo,
    InventoryInfo,
    ItemInfo,
    MemberInfo,
    OrderInfo,
    OrderLineInfo,
    OrderSearch,
    Page,
    SaleHistoryInfo,
    SaleReportRow,
)
from order_kernel.domain.patches import (
    UNSET,
    NewOrder,
    NewOrderLine,
    OrderLinePatch,
    OrderPatch,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "MAX_DATE",
    "MIN_DATE",
    "BuyerInfo",
    "InventoryInfo",
    "ItemInfo",
    "MemberInfo",
    "OrderInfo",
    "OrderLineInfo",
    "OrderSearch",
    "Page",
    "SaleHistoryInfo",
    "SaleReportRow",
    "UNSET",
    "NewOrder",
    "NewOrderLine",
    "OrderLinePatch",
    "OrderPatch",
]
