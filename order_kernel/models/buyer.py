"""
Module: order_kernel.models.buyer
Responsibility: ORM persistence for buyers (customer accounts placing orders)
    and their buyer-specific item prices.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - buyer_cd is the business key and is globally unique (uq_buyer_cd).
      Orders reference buyers by buyer_cd, never by surrogate id.
    - Buyers are never deleted; INACTIVE is the soft-delete state.
    - Name / tel / email uniqueness is checked by BuyerService before
      insert (Conflict errors), not by catching constraint violations.

Failure modes:
    - IntegrityError on duplicate buyer_cd if the pre-insert check was
      bypassed by a concurrent writer.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from order_kernel.db.base import TrackedBase


class BuyerStatus(str, Enum):
    """Buyer lifecycle status. INACTIVE is the soft-delete flag."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class Buyer(TrackedBase):
    """A customer account, identified by its stable business code."""

    __tablename__ = "buyers"

    __table_args__ = (
        UniqueConstraint("buyer_cd", name="uq_buyer_cd"),
        Index("idx_buyer_name", "buyer_nm"),
        Index("idx_buyer_status", "status"),
    )

    buyer_cd: Mapped[str] = mapped_column(String(50), nullable=False)
    buyer_nm: Mapped[str] = mapped_column(String(255), nullable=False)
    tel: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    business_type: Mapped[str | None] = mapped_column(String(100), nullable=True)

    status: Mapped[BuyerStatus] = mapped_column(
        String(20),
        nullable=False,
        default=BuyerStatus.ACTIVE,
    )

    @property
    def is_active(self) -> bool:
        return BuyerStatus(self.status) == BuyerStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<Buyer {self.buyer_cd} status={self.status}>"


class BuyerItem(TrackedBase):
    """
    Buyer-specific contract price for an item.

    Used when an order line arrives without a unit price: the contract price
    valid at order time wins over the item's list price.
    """

    __tablename__ = "buyer_items"

    __table_args__ = (
        Index("idx_buyer_item_pair", "buyer_cd", "item_cd"),
    )

    buyer_cd: Mapped[str] = mapped_column(String(50), nullable=False)
    item_cd: Mapped[str] = mapped_column(String(50), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)

    # Open-ended when None
    start_date: Mapped[datetime | None] = mapped_column(nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<BuyerItem {self.buyer_cd}/{self.item_cd} price={self.unit_price}>"
