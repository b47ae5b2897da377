"""
DTOs -- Immutable read models returned by services and selectors.

Responsibility:
    Defines the frozen data structures that leave the kernel: OrderInfo and
    OrderLineInfo (order reads and mutation results), SaleHistoryInfo,
    InventoryInfo, SaleReportRow, the collaborator lookups (MemberInfo,
    BuyerInfo, ItemInfo), plus the query envelope types OrderSearch and Page.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.
    ``from_model()`` class methods are boundary converters; they are only
    invoked from services and selectors, never from domain logic.

Invariants enforced:
    - Callers never receive ORM instances, so nothing outside a service can
      mutate a header, line or history row by accident.
    - Page numbers are 1-indexed; ``Page.offset`` is the only place the
      0-indexed offset is derived.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Generic, TypeVar
from uuid import UUID

from order_kernel.models.order import OrderStatus

if TYPE_CHECKING:
    from order_kernel.models.buyer import Buyer
    from order_kernel.models.item import Item
    from order_kernel.models.member import Member
    from order_kernel.models.order import OrderHeader, OrderLine
    from order_kernel.models.sale_history import SaleHistory

T = TypeVar("T")

# Unbounded window used when a caller leaves a date filter out
MIN_DATE = date(1900, 1, 1)
MAX_DATE = date(9999, 12, 31)


@dataclass(frozen=True)
class OrderLineInfo:
    line_id: UUID
    order_id: UUID
    line_no: int
    item_cd: str
    quantity: int
    unit_price: Decimal
    start_date: datetime | None
    end_date: datetime | None
    unit: str | None

    @property
    def amount(self) -> Decimal:
        return self.unit_price * self.quantity

    @classmethod
    def from_model(cls, line: OrderLine) -> OrderLineInfo:
        return cls(
            line_id=line.id,
            order_id=line.order_id,
            line_no=line.line_no,
            item_cd=line.item_cd,
            quantity=line.quantity,
            unit_price=line.unit_price,
            start_date=line.start_date,
            end_date=line.end_date,
            unit=line.unit,
        )


@dataclass(frozen=True)
class OrderInfo:
    """
    An order header with its lines, as seen by callers.

    Guarantees:
        - lines are ordered by line_no.
        - status is always an ``OrderStatus``.
    """

    order_id: UUID
    order_code: str
    status: OrderStatus
    request_date: datetime | None
    created_at: datetime
    buyer_cd: str
    member_id: UUID
    lines: tuple[OrderLineInfo, ...] = ()

    @property
    def total_amount(self) -> Decimal:
        return sum((line.amount for line in self.lines), Decimal("0"))

    @classmethod
    def from_model(cls, header: OrderHeader) -> OrderInfo:
        return cls(
            order_id=header.id,
            order_code=header.order_code,
            status=OrderStatus(header.status),
            request_date=header.request_date,
            created_at=header.created_at,
            buyer_cd=header.buyer_cd,
            member_id=header.member_id,
            lines=tuple(
                OrderLineInfo.from_model(line)
                for line in sorted(header.lines, key=lambda ln: ln.line_no)
            ),
        )


@dataclass(frozen=True)
class SaleHistoryInfo:
    """One audit snapshot of an order."""

    history_id: UUID
    created_at: datetime
    employee_id: str
    order_id: UUID
    order_code: str
    order_status: OrderStatus
    order_date: datetime
    request_date: datetime | None
    buyer_cd: str
    buyer_nm: str | None
    lines: tuple[dict[str, Any], ...] = ()

    @classmethod
    def from_model(cls, row: SaleHistory) -> SaleHistoryInfo:
        return cls(
            history_id=row.id,
            created_at=row.created_at,
            employee_id=row.employee_id,
            order_id=row.order_id,
            order_code=row.order_code,
            order_status=OrderStatus(row.order_status),
            order_date=row.order_date,
            request_date=row.request_date,
            buyer_cd=row.buyer_cd,
            buyer_nm=row.buyer_nm,
            lines=tuple(dict(line) for line in row.lines_snapshot),
        )


@dataclass(frozen=True)
class InventoryInfo:
    item_cd: str
    available: int


@dataclass(frozen=True)
class SaleReportRow:
    """
    Sales aggregate for one item over a date window.

    margin_rate is ``(total_revenue - total_cost) / total_revenue``, and
    ``Decimal("0")`` when revenue is zero or the cost basis is unknown
    (total_cost None).
    """

    item_cd: str
    total_quantity: int
    total_revenue: Decimal
    total_cost: Decimal | None
    margin_rate: Decimal


@dataclass(frozen=True)
class MemberInfo:
    member_id: UUID
    employee_id: str
    name: str
    role: str

    @classmethod
    def from_model(cls, member: Member) -> MemberInfo:
        return cls(
            member_id=member.id,
            employee_id=member.employee_id,
            name=member.name,
            role=str(getattr(member.role, "value", member.role)),
        )


@dataclass(frozen=True)
class BuyerInfo:
    buyer_id: UUID
    buyer_cd: str
    buyer_nm: str
    tel: str
    email: str | None
    address: str | None
    business_type: str | None
    status: str

    @classmethod
    def from_model(cls, buyer: Buyer) -> BuyerInfo:
        return cls(
            buyer_id=buyer.id,
            buyer_cd=buyer.buyer_cd,
            buyer_nm=buyer.buyer_nm,
            tel=buyer.tel,
            email=buyer.email,
            address=buyer.address,
            business_type=buyer.business_type,
            status=str(getattr(buyer.status, "value", buyer.status)),
        )


@dataclass(frozen=True)
class ItemInfo:
    item_id: UUID
    item_cd: str
    item_nm: str
    unit: str | None
    unit_price: Decimal
    unit_cost: Decimal | None
    status: str

    @classmethod
    def from_model(cls, item: Item) -> ItemInfo:
        return cls(
            item_id=item.id,
            item_cd=item.item_cd,
            item_nm=item.item_nm,
            unit=item.unit,
            unit_price=item.unit_price,
            unit_cost=item.unit_cost,
            status=str(getattr(item.status, "value", item.status)),
        )


@dataclass(frozen=True)
class OrderSearch:
    """
    Composable order filter.  Every field left as None matches all.

    start_date / end_date bound the header created_at, inclusive on whole
    days, and default to the unbounded window.
    """

    status: OrderStatus | None = None
    buyer_cd: str | None = None
    item_cd: str | None = None
    order_id: UUID | None = None
    start_date: date | None = None
    end_date: date | None = None

    def __post_init__(self) -> None:
        if self.status is not None:
            object.__setattr__(self, "status", OrderStatus(self.status))

    @property
    def window(self) -> tuple[date, date]:
        return (self.start_date or MIN_DATE, self.end_date or MAX_DATE)


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a query result.  ``page`` is 1-indexed."""

    items: tuple[T, ...]
    page: int
    size: int
    total_elements: int
    total_pages: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))
        object.__setattr__(
            self, "total_pages", math.ceil(self.total_elements / self.size)
        )

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @staticmethod
    def offset(page: int, size: int) -> int:
        return (page - 1) * size
