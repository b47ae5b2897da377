"""
Module: order_kernel.selectors.order_selector
Responsibility: Read-only order lookups and the multi-criteria paginated
    order query.
Architecture position: Kernel > Selectors.  Used by OrderService read paths.

Invariants enforced:
    - Absent filters match all.  The date window defaults to
      ``[1900-01-01, 9999-12-31]`` and applies to header created_at.
    - The item filter is an EXISTS on order lines, so a header with several
      matching lines appears once.
    - Ordering is created_at DESC, then order_code DESC, so equal
      timestamps still page deterministically.

Failure modes:
    - ConditionNotFitError on page < 1, size < 1, or start after end.
    - find_order returns None for an unknown id (OrderService raises).
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from order_kernel.domain.dtos import OrderInfo, OrderSearch, Page
from order_kernel.models.order import OrderHeader, OrderLine
from order_kernel.selectors.base import (
    DEFAULT_MAX_PAGE_SIZE,
    BaseSelector,
    checked_page,
    day_bounds,
)


class OrderSelector(BaseSelector[OrderHeader]):
    """
    Selector for order queries.

    Guarantees:
        - Lines are eager-loaded (selectinload) and ordered by line_no.
        - Results are OrderInfo DTOs.
    """

    def __init__(self, session: Session, max_page_size: int = DEFAULT_MAX_PAGE_SIZE):
        super().__init__(session)
        self._max_page_size = max_page_size

    def find_order(self, order_id: UUID) -> OrderInfo | None:
        header = self.session.execute(
            select(OrderHeader)
            .where(OrderHeader.id == order_id)
            .options(selectinload(OrderHeader.lines))
        ).scalar_one_or_none()
        return OrderInfo.from_model(header) if header else None

    def find_by_code(self, order_code: str) -> OrderInfo | None:
        header = self.session.execute(
            select(OrderHeader)
            .where(OrderHeader.order_code == order_code)
            .options(selectinload(OrderHeader.lines))
        ).scalar_one_or_none()
        return OrderInfo.from_model(header) if header else None

    def _conditions(self, search: OrderSearch) -> list:
        window_start, window_end = day_bounds(*search.window)
        conditions = [
            OrderHeader.created_at >= window_start,
            OrderHeader.created_at <= window_end,
        ]
        if search.status is not None:
            conditions.append(OrderHeader.status == search.status.value)
        if search.buyer_cd:
            conditions.append(OrderHeader.buyer_cd == search.buyer_cd)
        if search.order_id is not None:
            conditions.append(OrderHeader.id == search.order_id)
        if search.item_cd:
            conditions.append(
                select(OrderLine.id)
                .where(
                    OrderLine.order_id == OrderHeader.id,
                    OrderLine.item_cd == search.item_cd,
                )
                .exists()
            )
        return conditions

    def find_orders(
        self,
        search: OrderSearch | None = None,
        page: int = 1,
        size: int = 10,
    ) -> Page[OrderInfo]:
        """
        One page of orders matching every supplied filter.

        Args:
            search: Filters; None matches all orders.
            page: 1-indexed page number.
            size: Page size, capped at the selector's max_page_size.
        """
        search = search or OrderSearch()
        page, size = checked_page(page, size, self._max_page_size)
        conditions = self._conditions(search)

        total = self.session.execute(
            select(func.count()).select_from(OrderHeader).where(*conditions)
        ).scalar_one()

        headers = self.session.execute(
            select(OrderHeader)
            .where(*conditions)
            .order_by(OrderHeader.created_at.desc(), OrderHeader.order_code.desc())
            .offset(Page.offset(page, size))
            .limit(size)
            .options(selectinload(OrderHeader.lines))
        ).scalars().all()

        return Page(
            items=tuple(OrderInfo.from_model(h) for h in headers),
            page=page,
            size=size,
            total_elements=total,
        )
