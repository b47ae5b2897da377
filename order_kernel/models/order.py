"""
Module: order_kernel.models.order
Responsibility: ORM persistence for order headers and their order lines.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - order_code is globally unique (uq_order_code) and, within one date
      token, strictly increasing (allocated by OrderCodeGenerator).
    - An OrderHeader exclusively owns its OrderLines (header -> lines is the
      only relationship; there is no line -> buyer or buyer -> header graph).
    - Headers and lines are NEVER physically deleted.  CANCELLED is a
      status, and cancelled lines stay for audit (ORM listener in
      db/immutability.py).
    - buyer_cd and item_cd are business keys without FK constraints, so
      soft-deleted buyers/items never orphan historical orders.

Failure modes:
    - IntegrityError on duplicate order_code (retried by run_with_retry).
    - ImmutabilityViolationError on DELETE of a header or line.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from order_kernel.db.base import TrackedBase, UUIDString


class OrderStatus(str, Enum):
    """Order lifecycle status.

    Contract: Transition rules live in ``order_kernel.domain.transitions``.
    REQUEST_TEMP (draft) and PURCHASE_REQUEST (submitted) are open;
    APPROVED, REJECTED and CANCELLED are terminal.
    """

    REQUEST_TEMP = "REQUEST_TEMP"
    PURCHASE_REQUEST = "PURCHASE_REQUEST"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class OrderHeader(TrackedBase):
    """
    Top-level order record.

    created_by_id and member_id both hold the submitting member; member_id
    is the domain reference, created_by_id the tracking column shared with
    every TrackedBase model.
    """

    __tablename__ = "order_headers"

    __table_args__ = (
        UniqueConstraint("order_code", name="uq_order_code"),
        Index("idx_order_status", "status"),
        Index("idx_order_buyer", "buyer_cd"),
        Index("idx_order_created", "created_at"),
    )

    order_code: Mapped[str] = mapped_column(String(20), nullable=False)

    status: Mapped[OrderStatus] = mapped_column(
        String(20),
        nullable=False,
        default=OrderStatus.PURCHASE_REQUEST,
    )

    # Requested delivery date/time
    request_date: Mapped[datetime | None] = mapped_column(nullable=True)

    buyer_cd: Mapped[str] = mapped_column(String(50), nullable=False)

    member_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("members.id"),
        nullable=False,
    )

    lines: Mapped[list["OrderLine"]] = relationship(
        back_populates="order",
        order_by="OrderLine.line_no",
        cascade="save-update, merge",
    )

    def __repr__(self) -> str:
        return f"<OrderHeader {self.order_code} status={self.status}>"


class OrderLine(TrackedBase):
    """A single item / quantity / price / date-range entry within an order."""

    __tablename__ = "order_lines"

    __table_args__ = (
        Index("idx_order_line_order", "order_id"),
        Index("idx_order_line_item", "item_cd"),
    )

    order_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("order_headers.id"),
        nullable=False,
    )

    # 1-based position within the order
    line_no: Mapped[int] = mapped_column(nullable=False)

    item_cd: Mapped[str] = mapped_column(String(50), nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)
    start_date: Mapped[datetime | None] = mapped_column(nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(nullable=True)
    unit: Mapped[str | None] = mapped_column(String(20), nullable=True)

    order: Mapped[OrderHeader] = relationship(back_populates="lines")

    @property
    def amount(self) -> Decimal:
        return self.unit_price * self.quantity

    def __repr__(self) -> str:
        return f"<OrderLine {self.item_cd} x {self.quantity}>"
