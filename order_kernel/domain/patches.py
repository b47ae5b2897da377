"""
Command objects for order mutations.

NewOrder / NewOrderLine describe an order to create.  OrderPatch and
OrderLinePatch describe partial updates with explicit presence: a field
left as ``UNSET`` is not touched, and ``None`` is never a value a patch can
write.

    OrderPatch(status=OrderStatus.CANCELLED)        # status only
    OrderPatch(request_date=datetime(2025, 1, 3))   # request date only
    OrderLinePatch(quantity=7, unit_price=Decimal("12.50"))
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal
from typing import Any

from order_kernel.models.order import OrderStatus


class _Unset:
    """Marker type for a patch field that was not supplied."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Unset, ())


UNSET: Any = _Unset()


def is_set(value: Any) -> bool:
    return value is not UNSET


class _Patch:
    """Shared behaviour for the patch dataclasses."""

    def __post_init__(self) -> None:
        for f in fields(self):
            if getattr(self, f.name) is None:
                raise ValueError(f"{type(self).__name__}.{f.name} cannot be None")

    def present(self) -> dict[str, Any]:
        """Fields the caller supplied, by name."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if is_set(getattr(self, f.name))
        }

    @property
    def is_empty(self) -> bool:
        return not self.present()


@dataclass(frozen=True)
class OrderPatch(_Patch):
    status: OrderStatus | _Unset = UNSET
    request_date: datetime | _Unset = UNSET

    def __post_init__(self) -> None:
        super().__post_init__()
        if is_set(self.status):
            object.__setattr__(self, "status", OrderStatus(self.status))

    @property
    def target_status(self) -> OrderStatus | None:
        """The status this patch moves to, or None if it leaves status alone."""
        return self.status if is_set(self.status) else None


@dataclass(frozen=True)
class OrderLinePatch(_Patch):
    quantity: int | _Unset = UNSET
    unit_price: Decimal | _Unset = UNSET
    start_date: datetime | _Unset = UNSET
    end_date: datetime | _Unset = UNSET

    def __post_init__(self) -> None:
        super().__post_init__()
        if is_set(self.quantity) and self.quantity < 1:
            raise ValueError(f"quantity must be positive, got {self.quantity}")
        if is_set(self.unit_price):
            object.__setattr__(self, "unit_price", Decimal(str(self.unit_price)))
            if self.unit_price < 0:
                raise ValueError(f"unit_price cannot be negative, got {self.unit_price}")


@dataclass(frozen=True)
class NewOrderLine:
    """
    One line of an order to create.

    unit_price None means "resolve it": the buyer's contract price for the
    item if one is valid, otherwise the item's list price.
    """

    item_cd: str
    quantity: int
    unit_price: Decimal | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    unit: str | None = None

    def __post_init__(self) -> None:
        if not self.item_cd:
            raise ValueError("item_cd is required")
        if self.quantity < 1:
            raise ValueError(f"quantity must be positive, got {self.quantity}")
        if self.unit_price is not None:
            object.__setattr__(self, "unit_price", Decimal(str(self.unit_price)))
            if self.unit_price < 0:
                raise ValueError(f"unit_price cannot be negative, got {self.unit_price}")


@dataclass(frozen=True)
class NewOrder:
    """
    An order to create.

    status None means the configured default status.
    """

    buyer_cd: str
    lines: tuple[NewOrderLine, ...]
    status: OrderStatus | None = None
    request_date: datetime | None = None

    def __post_init__(self) -> None:
        if not self.buyer_cd:
            raise ValueError("buyer_cd is required")
        object.__setattr__(self, "lines", tuple(self.lines))
        if not self.lines:
            raise ValueError("an order needs at least one line")

    @property
    def quantities(self) -> dict[str, int]:
        """Requested quantity per item code, summed over lines."""
        totals: dict[str, int] = {}
        for line in self.lines:
            totals[line.item_cd] = totals.get(line.item_cd, 0) + line.quantity
        return totals
