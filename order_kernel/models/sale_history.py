"""
Module: order_kernel.models.sale_history
Responsibility: ORM persistence for the append-only sale history ledger.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Append-only: SaleHistory rows are never updated or deleted (ORM
      listeners in db/immutability.py raise ImmutabilityViolationError).
    - Exactly one row per successful mutating lifecycle call, written by
      SaleHistoryRecorder inside the same transaction as the mutation.
    - Rows are self-contained snapshots: buyer name, status and lines are
      copied, not referenced, so later edits never rewrite history.

Audit relevance:
    SaleHistory IS the order audit trail.  For any order, the rows ordered
    by created_at replay every state the header and its lines passed
    through, with the employee who caused each change.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from order_kernel.db.base import Base, UUIDString


class SaleHistory(Base):
    """Immutable snapshot of an order at the moment of a mutation."""

    __tablename__ = "sale_histories"

    __table_args__ = (
        Index("idx_sale_history_order", "order_id", "created_at"),
        Index("idx_sale_history_employee", "employee_id"),
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False)

    # Actor
    employee_id: Mapped[str] = mapped_column(String(50), nullable=False)
    member_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    order_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("order_headers.id"),
        nullable=False,
    )
    order_code: Mapped[str] = mapped_column(String(20), nullable=False)

    # Header state at time of write
    order_status: Mapped[str] = mapped_column(String(20), nullable=False)
    order_date: Mapped[datetime] = mapped_column(nullable=False)
    request_date: Mapped[datetime | None] = mapped_column(nullable=True)
    buyer_cd: Mapped[str] = mapped_column(String(50), nullable=False)
    buyer_nm: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # [{"line_id", "line_no", "item_cd", "quantity", "unit_price",
    #   "start_date", "end_date", "unit"}, ...]
    lines_snapshot: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    def __repr__(self) -> str:
        return f"<SaleHistory {self.order_code} {self.order_status} by {self.employee_id}>"
