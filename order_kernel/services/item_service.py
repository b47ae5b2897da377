"""
Service layer for Item operations.

Manages sellable items, their stock receipts and price resolution for new
order lines.  Items are referenced by business code (item_cd) and are never
deleted: discontinuing an item is a soft delete to NOT_FOR_SALE.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import or_, select

from order_kernel.domain.clock import Clock, SystemClock
from order_kernel.domain.dtos import ItemInfo
from order_kernel.exceptions import (
    ItemCodeAlreadyExistsError,
    ItemNameAlreadyExistsError,
    ItemNotFoundError,
)
from order_kernel.logging_config import get_logger
from order_kernel.models.buyer import BuyerItem
from order_kernel.models.item import Item, ItemStatus, StockReceipt
from order_kernel.services.base import BaseService

logger = get_logger("services.item")


class ItemService(BaseService[Item]):
    """
    Service for managing items.

    All public lookups return ItemInfo DTOs.  ``lock_items`` is the one
    method that hands out ORM rows, to OrderService, as stock lock anchors.
    """

    def __init__(self, session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def _find_by_code(self, item_cd: str) -> Item | None:
        return self.session.execute(
            select(Item).where(Item.item_cd == item_cd)
        ).scalar_one_or_none()

    def _get_by_code(self, item_cd: str) -> Item:
        item = self._find_by_code(item_cd)
        if item is None:
            raise ItemNotFoundError(item_cd)
        return item

    def find_verified_item(self, item_cd: str) -> ItemInfo:
        """
        Look up an item by business code.

        Raises:
            ItemNotFoundError: Unknown item code.
        """
        return ItemInfo.from_model(self._get_by_code(item_cd))

    def list_items_on_sale(self) -> list[ItemInfo]:
        items = self.session.execute(
            select(Item)
            .where(Item.status != ItemStatus.NOT_FOR_SALE.value)
            .order_by(Item.item_cd)
        ).scalars().all()
        return [ItemInfo.from_model(i) for i in items]

    def lock_items(self, item_cds: Iterable[str]) -> dict[str, Item]:
        """
        Lock the Item rows for the given codes with ``SELECT ... FOR UPDATE``.

        Rows are locked in item_cd order so two orders touching the same
        items always acquire locks in the same sequence.

        Raises:
            ItemNotFoundError: Any code is unknown (first missing code in
                sorted order).
        """
        wanted = sorted(set(item_cds))
        rows = self.session.execute(
            select(Item)
            .where(Item.item_cd.in_(wanted))
            .order_by(Item.item_cd)
            .with_for_update()
        ).scalars().all()

        locked = {item.item_cd: item for item in rows}
        for item_cd in wanted:
            if item_cd not in locked:
                raise ItemNotFoundError(item_cd)
        return locked

    def register_item(
        self,
        item_cd: str,
        item_nm: str,
        unit_price: Decimal,
        actor_id: UUID,
        unit: str | None = None,
        unit_cost: Decimal | None = None,
    ) -> ItemInfo:
        """
        Register a new item.

        Raises:
            ItemCodeAlreadyExistsError: Code already registered.
            ItemNameAlreadyExistsError: Name already registered.
        """
        if self._find_by_code(item_cd) is not None:
            raise ItemCodeAlreadyExistsError(item_cd)
        name_taken = self.session.execute(
            select(Item.id).where(Item.item_nm == item_nm).limit(1)
        ).first()
        if name_taken is not None:
            raise ItemNameAlreadyExistsError(item_nm)

        item = Item(
            item_cd=item_cd,
            item_nm=item_nm,
            unit=unit,
            unit_price=Decimal(str(unit_price)),
            unit_cost=Decimal(str(unit_cost)) if unit_cost is not None else None,
            status=ItemStatus.ON_SALE,
            created_by_id=actor_id,
        )
        self.session.add(item)
        self.session.flush()

        logger.info("item_registered", extra={"item_cd": item_cd})
        return ItemInfo.from_model(item)

    def update_item(
        self,
        item_cd: str,
        actor_id: UUID,
        item_nm: str | None = None,
        unit: str | None = None,
        unit_price: Decimal | None = None,
        unit_cost: Decimal | None = None,
    ) -> ItemInfo:
        """Update item details.  None leaves a field unchanged."""
        item = self._get_by_code(item_cd)

        if item_nm is not None and item_nm != item.item_nm:
            name_taken = self.session.execute(
                select(Item.id).where(Item.item_nm == item_nm).limit(1)
            ).first()
            if name_taken is not None:
                raise ItemNameAlreadyExistsError(item_nm)
            item.item_nm = item_nm
        if unit is not None:
            item.unit = unit
        if unit_price is not None:
            item.unit_price = Decimal(str(unit_price))
        if unit_cost is not None:
            item.unit_cost = Decimal(str(unit_cost))
        item.updated_by_id = actor_id

        self.session.flush()
        return ItemInfo.from_model(item)

    def discontinue_item(self, item_cd: str, actor_id: UUID) -> ItemInfo:
        """Soft-delete an item to NOT_FOR_SALE.  Existing orders are unaffected."""
        item = self._get_by_code(item_cd)
        item.status = ItemStatus.NOT_FOR_SALE
        item.updated_by_id = actor_id
        self.session.flush()

        logger.info("item_discontinued", extra={"item_cd": item_cd})
        return ItemInfo.from_model(item)

    def receive_stock(
        self,
        item_cd: str,
        quantity: int,
        actor_id: UUID,
        reference: str | None = None,
    ) -> UUID:
        """
        Record a stock receipt, raising the item's inventory baseline.

        Returns:
            The id of the new StockReceipt row.
        """
        if quantity < 1:
            raise ValueError(f"received quantity must be positive, got {quantity}")
        self._get_by_code(item_cd)

        receipt = StockReceipt(
            item_cd=item_cd,
            quantity=quantity,
            received_at=self._clock.now_utc(),
            reference=reference,
            created_by_id=actor_id,
        )
        self.session.add(receipt)
        self.session.flush()

        logger.info(
            "stock_received",
            extra={"item_cd": item_cd, "quantity": quantity, "reference": reference},
        )
        return receipt.id

    def resolve_unit_price(self, buyer_cd: str, item_cd: str, at: datetime) -> Decimal:
        """
        Price a line for this buyer at ``at``.

        The buyer's contract price valid at ``at`` wins (latest start date
        first); otherwise the item's list price.
        """
        contract_price = self.session.execute(
            select(BuyerItem.unit_price)
            .where(
                BuyerItem.buyer_cd == buyer_cd,
                BuyerItem.item_cd == item_cd,
                or_(BuyerItem.start_date.is_(None), BuyerItem.start_date <= at),
                or_(BuyerItem.end_date.is_(None), BuyerItem.end_date >= at),
            )
            .order_by(BuyerItem.start_date.desc().nulls_last(), BuyerItem.created_at.desc())
            .limit(1)
        ).scalar_one_or_none()

        if contract_price is not None:
            return contract_price
        return self._get_by_code(item_cd).unit_price
