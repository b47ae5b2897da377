"""
Module: order_kernel.selectors.history_selector
Responsibility: Read path over the append-only sale history ledger.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Newest first: created_at DESC.
    - Read-only.  History rows are written exclusively by
      SaleHistoryRecorder.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from order_kernel.domain.dtos import Page, SaleHistoryInfo
from order_kernel.models.sale_history import SaleHistory
from order_kernel.selectors.base import DEFAULT_MAX_PAGE_SIZE, BaseSelector, checked_page


class HistorySelector(BaseSelector[SaleHistory]):

    def __init__(self, session: Session, max_page_size: int = DEFAULT_MAX_PAGE_SIZE):
        super().__init__(session)
        self._max_page_size = max_page_size

    def count_for_order(self, order_id: UUID) -> int:
        return self.session.execute(
            select(func.count())
            .select_from(SaleHistory)
            .where(SaleHistory.order_id == order_id)
        ).scalar_one()

    def find_histories(
        self,
        order_id: UUID,
        page: int = 1,
        size: int = 10,
    ) -> Page[SaleHistoryInfo]:
        """One page of an order's history snapshots, newest first."""
        page, size = checked_page(page, size, self._max_page_size)

        rows = self.session.execute(
            select(SaleHistory)
            .where(SaleHistory.order_id == order_id)
            .order_by(SaleHistory.created_at.desc())
            .offset(Page.offset(page, size))
            .limit(size)
        ).scalars().all()

        return Page(
            items=tuple(SaleHistoryInfo.from_model(row) for row in rows),
            page=page,
            size=size,
            total_elements=self.count_for_order(order_id),
        )

    def latest_for_order(self, order_id: UUID) -> SaleHistoryInfo | None:
        row = self.session.execute(
            select(SaleHistory)
            .where(SaleHistory.order_id == order_id)
            .order_by(SaleHistory.created_at.desc())
            .limit(1)
        ).scalar_one_or_none()
        return SaleHistoryInfo.from_model(row) if row else None
