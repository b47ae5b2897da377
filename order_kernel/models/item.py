"""
Module: order_kernel.models.item
Responsibility: ORM persistence for sellable items and the stock receipts
    that form the default inventory baseline.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - item_cd is the business key and is globally unique (uq_item_cd).
      Order lines reference items by item_cd.
    - Items are never deleted; NOT_FOR_SALE is the soft-delete state.
    - There is NO stored stock balance.  Available stock is always derived:
      sum(StockReceipt.quantity) - sum(counted OrderLine.quantity).

Audit relevance:
    The Item row doubles as the lock anchor for stock checks: order
    creation takes ``SELECT ... FOR UPDATE`` on every referenced item
    before reading inventory, serializing concurrent orders per item.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from order_kernel.db.base import TrackedBase


class ItemStatus(str, Enum):
    """Item sale status. NOT_FOR_SALE is the soft-delete flag."""

    ON_SALE = "ON_SALE"
    NOT_FOR_SALE = "NOT_FOR_SALE"


class Item(TrackedBase):
    """A sellable product, identified by its stable business code."""

    __tablename__ = "items"

    __table_args__ = (
        UniqueConstraint("item_cd", name="uq_item_cd"),
        Index("idx_item_name", "item_nm"),
        Index("idx_item_status", "status"),
    )

    item_cd: Mapped[str] = mapped_column(String(50), nullable=False)
    item_nm: Mapped[str] = mapped_column(String(255), nullable=False)
    unit: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # List price
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)

    # Cost basis for margin reports (ItemCostBasis); None = unknown
    unit_cost: Mapped[Decimal | None] = mapped_column(nullable=True)

    status: Mapped[ItemStatus] = mapped_column(
        String(20),
        nullable=False,
        default=ItemStatus.ON_SALE,
    )

    def __repr__(self) -> str:
        return f"<Item {self.item_cd} status={self.status}>"


class StockReceipt(TrackedBase):
    """Quantity received into stock for an item (receiving system feed)."""

    __tablename__ = "stock_receipts"

    __table_args__ = (
        Index("idx_stock_receipt_item", "item_cd"),
    )

    item_cd: Mapped[str] = mapped_column(String(50), nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False)
    received_at: Mapped[datetime] = mapped_column(nullable=False)
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<StockReceipt {self.item_cd} qty={self.quantity}>"
