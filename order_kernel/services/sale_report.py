"""
SaleReport -- inventory and margin engine.

Responsibility:
    Derives available stock per item and produces per-item sales/margin
    reports over a date window.  Consulted synchronously by OrderService
    for the stock check at order creation, and independently by reporting
    callers.

Architecture position:
    Kernel > Services.  Reads through SalesSelector; baseline and cost come
    from the StockBaseline / CostBasis collaborators.

Invariants enforced:
    - Inventory = baseline - sum(quantity) over lines whose header still
      holds stock.  Cancelling or rejecting an order restores its
      quantities by exclusion from the sum; nothing is written back.
    - Inventory is recomputed on every call and never cached.
    - Margin never divides by zero: zero revenue or an unknown cost basis
      reports a margin of 0.

Failure modes:
    - ConditionNotFitError when the report window starts after it ends.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.orm import Session

from order_kernel.domain.dtos import MAX_DATE, MIN_DATE, InventoryInfo, SaleReportRow
from order_kernel.logging_config import get_logger
from order_kernel.selectors.sales_selector import SalesSelector
from order_kernel.services.stock_sources import (
    CostBasis,
    ItemCostBasis,
    ReceiptStockBaseline,
    StockBaseline,
)

logger = get_logger("services.sale_report")

MARGIN_QUANTUM = Decimal("0.0001")


def margin_rate(revenue: Decimal, cost: Decimal | None) -> Decimal:
    """``(revenue - cost) / revenue`` to 4 places; 0 if revenue is 0 or cost unknown."""
    if cost is None or revenue == 0:
        return Decimal("0")
    return ((revenue - cost) / revenue).quantize(MARGIN_QUANTUM, rounding=ROUND_HALF_UP)


class SaleReport:
    """
    Inventory and sales report computations.

    Contract:
        Read-only.  Never flushes or commits.
    """

    def __init__(
        self,
        session: Session,
        baseline: StockBaseline | None = None,
        cost_basis: CostBasis | None = None,
    ):
        self._sales = SalesSelector(session)
        self._baseline = baseline or ReceiptStockBaseline(session)
        self._cost_basis = cost_basis or ItemCostBasis(session)

    def calculate_inventory(self, item_cd: str) -> int:
        """Available quantity of an item right now.  May be negative."""
        return self._baseline.baseline(item_cd) - self._sales.committed_quantity(item_cd)

    def get_stock(self, item_cd: str) -> InventoryInfo:
        return InventoryInfo(item_cd=item_cd, available=self.calculate_inventory(item_cd))

    def get_sale_report(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[SaleReportRow]:
        """
        Per-item quantity, revenue, cost and margin for orders created in
        ``[start_date, end_date]`` (inclusive whole days).

        Omitted bounds default to the unbounded window.  Rows are ordered by
        item_cd; items with no counted line in the window are absent.
        """
        start_date = start_date or MIN_DATE
        end_date = end_date or MAX_DATE

        rows = []
        for total in self._sales.item_sales(start_date, end_date):
            unit_cost = self._cost_basis.unit_cost(total.item_cd)
            total_cost = unit_cost * total.total_quantity if unit_cost is not None else None
            rows.append(
                SaleReportRow(
                    item_cd=total.item_cd,
                    total_quantity=total.total_quantity,
                    total_revenue=total.total_revenue,
                    total_cost=total_cost,
                    margin_rate=margin_rate(total.total_revenue, total_cost),
                )
            )

        logger.info(
            "sale_report_generated",
            extra={
                "start_date": start_date,
                "end_date": end_date,
                "item_count": len(rows),
            },
        )
        return rows
