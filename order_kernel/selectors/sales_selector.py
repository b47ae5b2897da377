"""
Module: order_kernel.selectors.sales_selector
Responsibility: Aggregate queries over order lines for inventory and sales
    reporting.
Architecture position: Kernel > Selectors.  Used by SaleReport.

Invariants enforced:
    - Only lines whose header still holds stock are counted: headers in
      CANCELLED or REJECTED are excluded by status, never by deleting rows.
    - Nothing is cached.  Every call reads the current committed quantities,
      so concurrent writers are always reflected.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import Numeric, cast, func, select

from order_kernel.domain.transitions import RELEASED_STATUSES
from order_kernel.models.order import OrderHeader, OrderLine
from order_kernel.selectors.base import BaseSelector, day_bounds

_RELEASED = [status.value for status in RELEASED_STATUSES]


@dataclass(frozen=True)
class ItemSalesTotal:
    """Quantity and revenue of one item over a window."""

    item_cd: str
    total_quantity: int
    total_revenue: Decimal


class SalesSelector(BaseSelector[OrderLine]):
    """Read-only aggregates over counted order lines."""

    def _counted_lines(self, *columns):
        return (
            select(*columns)
            .select_from(OrderLine)
            .join(OrderHeader, OrderLine.order_id == OrderHeader.id)
            .where(OrderHeader.status.not_in(_RELEASED))
        )

    def committed_quantity(self, item_cd: str) -> int:
        """Sum of quantities on counted lines for the item (0 if none)."""
        total = self.session.execute(
            self._counted_lines(
                func.coalesce(func.sum(OrderLine.quantity), 0)
            ).where(OrderLine.item_cd == item_cd)
        ).scalar_one()
        return int(total)

    def item_sales(self, start_date: date, end_date: date) -> list[ItemSalesTotal]:
        """
        Per-item totals of counted lines whose header was created in the window.

        Items without a counted line in the window are absent.  Ordered by
        item_cd.
        """
        window_start, window_end = day_bounds(start_date, end_date)
        revenue = func.sum(
            cast(OrderLine.unit_price * OrderLine.quantity, Numeric(38, 9))
        )
        rows = self.session.execute(
            self._counted_lines(
                OrderLine.item_cd,
                func.sum(OrderLine.quantity).label("total_quantity"),
                revenue.label("total_revenue"),
            )
            .where(OrderHeader.created_at >= window_start)
            .where(OrderHeader.created_at <= window_end)
            .group_by(OrderLine.item_cd)
            .order_by(OrderLine.item_cd)
        ).all()

        return [
            ItemSalesTotal(
                item_cd=row.item_cd,
                total_quantity=int(row.total_quantity),
                total_revenue=Decimal(row.total_revenue or 0),
            )
            for row in rows
        ]
