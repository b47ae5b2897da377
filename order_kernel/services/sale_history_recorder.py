"""
SaleHistoryRecorder -- appends one audit snapshot per order mutation.

Responsibility:
    Writes a SaleHistory row capturing the header's status, dates, buyer
    and a snapshot of every line, together with the acting employee.

Architecture position:
    Kernel > Services.  Called by OrderService after each successful
    mutation, inside the same transaction, so a rolled-back mutation leaves
    no history and a committed one always has exactly one row.

Invariants enforced:
    - Append-only: the recorder only inserts.  ORM listeners block UPDATE
      and DELETE on SaleHistory.
    - Never skipped, never batched: one call, one row.
    - The snapshot never fails on a soft-deleted buyer; the name is looked
      up regardless of buyer status and left None if the code is unknown.

Audit relevance:
    The snapshot is JSON-safe (Decimal and datetimes as strings) so it
    reads the same on every database backend.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from order_kernel.domain.clock import Clock, SystemClock
from order_kernel.domain.dtos import MemberInfo
from order_kernel.logging_config import get_logger
from order_kernel.models.buyer import Buyer
from order_kernel.models.order import OrderHeader, OrderLine, OrderStatus
from order_kernel.models.sale_history import SaleHistory

logger = get_logger("services.sale_history")


def snapshot_line(line: OrderLine) -> dict[str, Any]:
    return {
        "line_id": str(line.id),
        "line_no": line.line_no,
        "item_cd": line.item_cd,
        "quantity": line.quantity,
        "unit_price": str(line.unit_price),
        "start_date": line.start_date.isoformat() if line.start_date else None,
        "end_date": line.end_date.isoformat() if line.end_date else None,
        "unit": line.unit,
    }


class SaleHistoryRecorder:
    """Inserts SaleHistory rows.  Flushes, never commits."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()

    def _buyer_name(self, buyer_cd: str) -> str | None:
        return self._session.execute(
            select(Buyer.buyer_nm).where(Buyer.buyer_cd == buyer_cd)
        ).scalar_one_or_none()

    def record(self, order: OrderHeader, member: MemberInfo) -> SaleHistory:
        """
        Append a snapshot of ``order`` as it stands now.

        Preconditions:
            - ``order`` has been flushed (it has an id and order_code).

        Returns:
            The flushed SaleHistory row.
        """
        status = OrderStatus(order.status)
        history = SaleHistory(
            created_at=self._clock.now_utc(),
            employee_id=member.employee_id,
            member_id=member.member_id,
            order_id=order.id,
            order_code=order.order_code,
            order_status=status.value,
            order_date=order.created_at,
            request_date=order.request_date,
            buyer_cd=order.buyer_cd,
            buyer_nm=self._buyer_name(order.buyer_cd),
            lines_snapshot=[
                snapshot_line(line)
                for line in sorted(order.lines, key=lambda ln: ln.line_no)
            ],
        )
        self._session.add(history)
        self._session.flush()

        logger.info(
            "sale_history_recorded",
            extra={
                "order_id": order.id,
                "order_code": order.order_code,
                "order_status": status.value,
                "employee_id": member.employee_id,
                "line_count": len(history.lines_snapshot),
            },
        )
        return history
